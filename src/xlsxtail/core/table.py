"""Shared accumulating table: a tabular sink plus its write cursor."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Sequence

from ..dataio.chart import ChartSpec
from ..dataio.xlsx_sink import TabularSink
from ..errors import SinkWriteError
from .models import RecordBatch

logger = logging.getLogger(__name__)

HEADER_ROW = 1
FIRST_DATA_ROW = 2


class Table:
    """
    Row-appending front end for a :class:`TabularSink`.

    Every handler shares one instance. The lock is held for a whole batch so
    rows of one message land contiguously, and for header/chart/save so the
    finalizer never interleaves with an append. Handlers also hold it via
    :meth:`locked` around their append and message count, so no batch can land
    after the finalize claim.
    """

    def __init__(self, sink: TabularSink, first_row: int = FIRST_DATA_ROW) -> None:
        if first_row <= HEADER_ROW:
            raise ValueError(f"first data row must be below the header row, got {first_row}")
        self.sink = sink
        self._cursor = first_row
        self._lock = threading.RLock()

    def locked(self) -> threading.RLock:
        """The table lock, for callers that must pair an append with other state."""
        return self._lock

    @property
    def cursor(self) -> int:
        """Index of the next free data row."""
        with self._lock:
            return self._cursor

    @property
    def rows_written(self) -> int:
        with self._lock:
            return self._cursor - FIRST_DATA_ROW

    def append_batch(self, batch: RecordBatch, *, source: str = "") -> int:
        """
        Append every row of ``batch`` at the cursor and return how many were written.

        A sink write error stops the batch; rows already written stay in place
        and the cursor only covers them.
        """
        written = 0
        with self._lock:
            for values in batch.iter_rows():
                try:
                    self.sink.set_row(self._cursor, values)
                except SinkWriteError as exc:
                    logger.error(
                        "Row write failed at row %d (%s), dropping %d remaining rows: %s",
                        self._cursor,
                        source or "unknown topic",
                        batch.rows - written,
                        exc,
                    )
                    break
                self._cursor += 1
                written += 1
        return written

    def write_header(self, labels: Sequence[str]) -> None:
        with self._lock:
            self.sink.set_header_row(labels)

    def attach_chart(self, spec: ChartSpec) -> None:
        with self._lock:
            self.sink.attach_chart(spec)

    def save(self, path: Path) -> None:
        with self._lock:
            self.sink.save(path)
