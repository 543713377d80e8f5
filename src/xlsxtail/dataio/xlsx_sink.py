"""Tabular sink backed by an in-memory openpyxl workbook."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List, Protocol, Sequence

from openpyxl import Workbook
from openpyxl.chart import LineChart, Series
from openpyxl.chart.data_source import StrRef
from openpyxl.chart.series import SeriesLabel

from ..errors import SinkSaveError, SinkWriteError
from .chart import DEFAULT_SHEET, ChartSpec

logger = logging.getLogger(__name__)

# Excel's hard row limit per worksheet.
MAX_ROWS = 1_048_576


class TabularSink(Protocol):
    """Interface the table writes through. Implementations are not thread-safe."""

    def set_row(self, row_index: int, values: Sequence[Any]) -> None:  # pragma: no cover - protocol
        ...

    def set_header_row(self, labels: Sequence[str]) -> None:  # pragma: no cover - protocol
        ...

    def attach_chart(self, spec: ChartSpec) -> None:  # pragma: no cover - protocol
        ...

    def save(self, path: Path) -> None:  # pragma: no cover - protocol
        ...


class XlsxSink:
    """Writes fixed-width rows into a single worksheet and saves it as ``.xlsx``."""

    def __init__(self, column_count: int = 8, sheet_name: str = DEFAULT_SHEET) -> None:
        if column_count <= 0:
            raise ValueError("column_count must be positive")
        self.column_count = column_count
        self.workbook = Workbook()
        self.worksheet = self.workbook.active
        self.worksheet.title = sheet_name
        self._charts: List[ChartSpec] = []

    @property
    def charts(self) -> List[ChartSpec]:
        """Chart descriptions attached so far, in order."""
        return list(self._charts)

    # ------------------------------------------------------------------ rows
    def set_row(self, row_index: int, values: Sequence[Any]) -> None:
        if not 1 <= row_index <= MAX_ROWS:
            raise SinkWriteError(f"row {row_index} is outside the worksheet (1..{MAX_ROWS})")
        if len(values) != self.column_count:
            raise SinkWriteError(
                f"row {row_index} has {len(values)} values, expected {self.column_count}"
            )
        try:
            for column, value in enumerate(values, start=1):
                self.worksheet.cell(row=row_index, column=column, value=value)
        except (TypeError, ValueError) as exc:
            raise SinkWriteError(f"cannot write row {row_index}: {exc}") from exc

    def set_header_row(self, labels: Sequence[str]) -> None:
        self.set_row(1, [str(label) for label in labels])

    # ------------------------------------------------------------------ charts
    def attach_chart(self, spec: ChartSpec) -> None:
        if not spec.series:
            raise SinkWriteError("chart has no series")
        chart = LineChart()
        chart.title = spec.title
        try:
            for item in spec.series:
                series = Series(item.values_ref)
                series.tx = SeriesLabel(strRef=StrRef(item.name_ref))
                chart.series.append(series)
            self.worksheet.add_chart(chart, spec.anchor)
        except (TypeError, ValueError) as exc:
            raise SinkWriteError(f"cannot attach chart {spec.title!r}: {exc}") from exc
        self._charts.append(spec)
        logger.debug("Attached chart %r with %d series at %s", spec.title, len(spec.series), spec.anchor)

    # ------------------------------------------------------------------ persistence
    def save(self, path: Path) -> None:
        """
        Save the workbook to ``path``.

        Parent directories are created as needed.
        """
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            self.workbook.save(path)
        except OSError as exc:
            raise SinkSaveError(f"failed to save workbook to {path}: {exc}") from exc
        logger.info("Saved workbook to %s", path)


__all__ = ["MAX_ROWS", "TabularSink", "XlsxSink"]
