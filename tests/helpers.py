from __future__ import annotations

import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from xlsxtail.core.decoder import encode_batch
from xlsxtail.core.models import BATCH_COLUMNS, BATCH_ROWS
from xlsxtail.dataio.chart import ChartSpec
from xlsxtail.errors import SinkSaveError, SinkWriteError


def make_values(seed: int = 0, fill: Optional[float] = None) -> np.ndarray:
    if fill is not None:
        return np.full((BATCH_ROWS, BATCH_COLUMNS), fill, dtype=np.float64)
    rng = np.random.default_rng(seed)
    return rng.standard_normal((BATCH_ROWS, BATCH_COLUMNS))


def make_payload(seed: int = 0, fill: Optional[float] = None) -> bytes:
    return encode_batch(make_values(seed, fill))


class RecordingSink:
    """In-memory sink that records every call; optionally fails on demand."""

    def __init__(
        self,
        *,
        fail_at_row: Optional[int] = None,
        fail_header: bool = False,
        fail_chart: bool = False,
        fail_save: bool = False,
    ) -> None:
        self.rows: Dict[int, List[Any]] = {}
        self.header: Optional[List[str]] = None
        self.charts: List[ChartSpec] = []
        self.saved: List[Path] = []
        self.fail_at_row = fail_at_row
        self.fail_header = fail_header
        self.fail_chart = fail_chart
        self.fail_save = fail_save
        self._lock = threading.Lock()

    def set_row(self, row_index: int, values: Sequence[Any]) -> None:
        if self.fail_at_row is not None and row_index >= self.fail_at_row:
            raise SinkWriteError(f"row {row_index} rejected")
        with self._lock:
            self.rows[row_index] = list(values)

    def set_header_row(self, labels: Sequence[str]) -> None:
        if self.fail_header:
            raise SinkWriteError("header rejected")
        self.header = list(labels)

    def attach_chart(self, spec: ChartSpec) -> None:
        if self.fail_chart:
            raise SinkWriteError("chart rejected")
        self.charts.append(spec)

    def save(self, path: Path) -> None:
        if self.fail_save:
            raise SinkSaveError(f"disk full while writing {path}")
        self.saved.append(Path(path))


