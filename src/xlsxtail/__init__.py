"""Collect fixed-shape binary channel batches from MQTT topics into an xlsx workbook.

The package is split the same way the data flows:
- :mod:`xlsxtail.core` decodes payloads, accumulates rows and finalizes once.
- :mod:`xlsxtail.dataio` owns the workbook on disk and output file naming.
- :mod:`xlsxtail.remote` subscribes to topics on one or more brokers.
- :mod:`xlsxtail.config` loads the typed runtime configuration.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
