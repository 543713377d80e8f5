"""Workbook output helpers (xlsx sink, chart descriptions and file naming).

Modules here keep disk-level concerns isolated from the rest of the package:
- :mod:`xlsx_sink` writes rows, charts and the final workbook via openpyxl.
- :mod:`chart` describes the summary line chart independently of openpyxl.
- :mod:`file_paths` derives output file names from broker addresses.
"""

from .chart import ChartSeries, ChartSpec, line_chart_spec
from .file_paths import derive_output_filename, output_path
from .xlsx_sink import TabularSink, XlsxSink

__all__ = [
    "ChartSeries",
    "ChartSpec",
    "line_chart_spec",
    "derive_output_filename",
    "output_path",
    "TabularSink",
    "XlsxSink",
]
