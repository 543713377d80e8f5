"""Shared value objects for messages and decoded record batches."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

import numpy as np

BATCH_ROWS = 1024
BATCH_COLUMNS = 8


@dataclass(frozen=True, slots=True)
class Message:
    topic: str
    body: bytes


@dataclass(frozen=True, slots=True)
class RecordBatch:
    """
    One decoded payload: ``BATCH_ROWS`` rows of ``BATCH_COLUMNS`` float64 values.

    The shape is checked on construction so code that writes the batch into a
    sink can iterate it without re-validating.
    """

    values: np.ndarray

    def __post_init__(self) -> None:
        if self.values.shape != (BATCH_ROWS, BATCH_COLUMNS):
            raise ValueError(
                f"record batch must be {BATCH_ROWS}x{BATCH_COLUMNS}, got {self.values.shape}"
            )
        if self.values.dtype != np.float64:
            raise ValueError(f"record batch must hold float64 values, got {self.values.dtype}")
        self.values.setflags(write=False)

    @property
    def rows(self) -> int:
        return int(self.values.shape[0])

    @property
    def columns(self) -> int:
        return int(self.values.shape[1])

    def iter_rows(self) -> Iterator[list[float]]:
        """Yield each row as a list of Python floats, in payload order."""
        for row in self.values:
            yield row.tolist()

    def __len__(self) -> int:  # pragma: no cover - trivial
        return self.rows
