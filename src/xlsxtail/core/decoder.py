"""Binary layout of a record batch payload.

A payload is ``BATCH_ROWS * BATCH_COLUMNS`` little-endian IEEE-754 doubles in
row-major order, with no header or padding.
"""

from __future__ import annotations

import numpy as np

from ..errors import DecodeError
from .models import BATCH_COLUMNS, BATCH_ROWS, RecordBatch

PAYLOAD_DTYPE = np.dtype("<f8")
EXPECTED_PAYLOAD_BYTES = BATCH_ROWS * BATCH_COLUMNS * PAYLOAD_DTYPE.itemsize


def decode_batch(payload: bytes | bytearray | memoryview) -> RecordBatch:
    """
    Decode ``payload`` into a :class:`RecordBatch`.

    Raises :class:`DecodeError` unless the payload is exactly
    ``EXPECTED_PAYLOAD_BYTES`` long. Nothing is returned for partial input.
    """
    try:
        view = memoryview(payload)
    except TypeError as exc:
        raise DecodeError(f"payload is not a byte buffer: {type(payload).__name__}") from exc

    size = view.nbytes
    if size != EXPECTED_PAYLOAD_BYTES:
        raise DecodeError(
            f"payload is {size} bytes, expected {EXPECTED_PAYLOAD_BYTES} "
            f"({BATCH_ROWS} rows x {BATCH_COLUMNS} float64 columns)"
        )

    flat = np.frombuffer(view.cast("B"), dtype=PAYLOAD_DTYPE)
    # astype copies into native byte order and detaches from the message buffer
    values = flat.reshape(BATCH_ROWS, BATCH_COLUMNS).astype(np.float64)
    return RecordBatch(values)


def encode_batch(batch: RecordBatch | np.ndarray) -> bytes:
    """Inverse of :func:`decode_batch`."""
    values = batch.values if isinstance(batch, RecordBatch) else np.asarray(batch)
    if values.shape != (BATCH_ROWS, BATCH_COLUMNS):
        raise ValueError(f"expected shape {(BATCH_ROWS, BATCH_COLUMNS)}, got {values.shape}")
    return np.ascontiguousarray(values, dtype=PAYLOAD_DTYPE).tobytes()


__all__ = ["EXPECTED_PAYLOAD_BYTES", "PAYLOAD_DTYPE", "decode_batch", "encode_batch"]
