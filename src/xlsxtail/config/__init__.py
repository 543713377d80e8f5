"""Configuration objects and helpers for xlsxtail.

Settings come from an optional YAML file (flat keys or a ``tail:`` block)
overlaid with command-line flags. The resulting :class:`TailConfig` is what
the collector wiring and the MQTT source are built from.
"""

from .runtime import (
    DEFAULT_BROKER_PORT,
    DEFAULT_CHART_TITLE,
    DEFAULT_HEADER_LABELS,
    TailConfig,
    config_from_mapping,
    load_config,
    load_mapping,
    parse_address,
)

__all__ = [
    "DEFAULT_BROKER_PORT",
    "DEFAULT_CHART_TITLE",
    "DEFAULT_HEADER_LABELS",
    "TailConfig",
    "config_from_mapping",
    "load_config",
    "load_mapping",
    "parse_address",
]
