"""Sink-independent description of the summary line chart."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from openpyxl.utils import get_column_letter

DEFAULT_SHEET = "Sheet1"
DEFAULT_ANCHOR = "I1"
CHART_FIRST_ROW = 2
CHART_LAST_ROW = 2000


@dataclass(frozen=True, slots=True)
class ChartSeries:
    """One column plotted as a line: name from the header cell, values below it."""

    column: str
    header_row: int = 1
    first_row: int = CHART_FIRST_ROW
    last_row: int = CHART_LAST_ROW
    sheet: str = DEFAULT_SHEET

    @property
    def name_ref(self) -> str:
        return f"{self.sheet}!${self.column}${self.header_row}"

    @property
    def values_ref(self) -> str:
        return f"{self.sheet}!${self.column}${self.first_row}:${self.column}${self.last_row}"


@dataclass(frozen=True, slots=True)
class ChartSpec:
    title: str
    series: List[ChartSeries] = field(default_factory=list)
    anchor: str = DEFAULT_ANCHOR

    @property
    def columns(self) -> List[str]:
        return [s.column for s in self.series]


def line_chart_spec(
    title: str,
    column_count: int,
    *,
    first_row: int = CHART_FIRST_ROW,
    last_row: int = CHART_LAST_ROW,
    sheet: str = DEFAULT_SHEET,
    anchor: str = DEFAULT_ANCHOR,
) -> ChartSpec:
    """
    Build a chart with one series per column, ``A`` through the last column.

    Every series covers the same fixed value range so the chart layout does
    not depend on how many rows were actually collected.
    """
    if column_count <= 0:
        raise ValueError(f"column_count must be positive, got {column_count}")
    if not 1 <= first_row <= last_row:
        raise ValueError(f"invalid value range rows {first_row}..{last_row}")
    series = [
        ChartSeries(
            column=get_column_letter(idx),
            header_row=1,
            first_row=first_row,
            last_row=last_row,
            sheet=sheet,
        )
        for idx in range(1, column_count + 1)
    ]
    return ChartSpec(title=title, series=series, anchor=anchor)
