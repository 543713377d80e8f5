from __future__ import annotations

import struct

import numpy as np
import pytest

from xlsxtail.core.decoder import EXPECTED_PAYLOAD_BYTES, decode_batch, encode_batch
from xlsxtail.core.models import BATCH_COLUMNS, BATCH_ROWS, RecordBatch
from xlsxtail.errors import DecodeError

from helpers import make_values


def test_expected_payload_size_is_1024_rows_of_8_doubles() -> None:
    assert EXPECTED_PAYLOAD_BYTES == 1024 * 8 * 8


def test_round_trip_is_bit_exact_including_special_values() -> None:
    values = make_values(seed=7)
    values[0, :4] = [np.nan, np.inf, -np.inf, -0.0]
    values[1, 0] = np.finfo(np.float64).tiny

    batch = decode_batch(encode_batch(values))

    assert batch.values.shape == (BATCH_ROWS, BATCH_COLUMNS)
    np.testing.assert_array_equal(batch.values.view(np.uint64), values.view(np.uint64))


def test_payload_is_little_endian_row_major() -> None:
    values = np.zeros((BATCH_ROWS, BATCH_COLUMNS))
    payload = bytearray(encode_batch(values))
    # second value of the first row, then first value of the second row
    payload[8:16] = struct.pack("<d", 1.5)
    payload[64:72] = struct.pack("<d", -2.25)

    batch = decode_batch(bytes(payload))

    assert batch.values[0, 1] == 1.5
    assert batch.values[1, 0] == -2.25


@pytest.mark.parametrize("size", [0, EXPECTED_PAYLOAD_BYTES - 10, EXPECTED_PAYLOAD_BYTES - 8, EXPECTED_PAYLOAD_BYTES + 8])
def test_wrong_length_is_rejected(size: int) -> None:
    with pytest.raises(DecodeError):
        decode_batch(b"\x00" * size)


def test_accepts_bytearray_and_memoryview() -> None:
    payload = encode_batch(make_values(seed=1))
    expected = decode_batch(payload).values

    np.testing.assert_array_equal(decode_batch(bytearray(payload)).values, expected)
    np.testing.assert_array_equal(decode_batch(memoryview(payload)).values, expected)


def test_non_buffer_payload_is_a_decode_error() -> None:
    with pytest.raises(DecodeError):
        decode_batch("not bytes")  # type: ignore[arg-type]


def test_decoded_batch_is_read_only_and_detached_from_payload() -> None:
    payload = bytearray(encode_batch(make_values(fill=1.0)))
    batch = decode_batch(payload)

    payload[:8] = struct.pack("<d", 99.0)

    assert batch.values[0, 0] == 1.0
    with pytest.raises(ValueError):
        batch.values[0, 0] = 2.0


def test_record_batch_rejects_wrong_shape_and_dtype() -> None:
    with pytest.raises(ValueError):
        RecordBatch(np.zeros((BATCH_ROWS - 1, BATCH_COLUMNS)))
    with pytest.raises(ValueError):
        RecordBatch(np.zeros((BATCH_ROWS, BATCH_COLUMNS), dtype=np.float32))


def test_iter_rows_yields_python_floats_in_order() -> None:
    values = make_values(seed=3)
    rows = list(RecordBatch(values.copy()).iter_rows())

    assert len(rows) == BATCH_ROWS
    assert rows[5] == values[5].tolist()
    assert all(isinstance(v, float) for v in rows[0])


def test_encode_rejects_wrong_shape() -> None:
    with pytest.raises(ValueError):
        encode_batch(np.zeros((2, 8)))
