"""Core collector: decode payloads, accumulate rows, finalize exactly once.

Handlers for every subscribed topic share one :class:`Table` (sink plus
write cursor) and one :class:`CompletionCoordinator` (global message count
and finalize claim). The winning handler runs the :class:`Finalizer`, which
saves the workbook and signals the process driver.
"""

from .coordinator import CompletionCoordinator, CompletionState
from .decoder import EXPECTED_PAYLOAD_BYTES, decode_batch, encode_batch
from .finalizer import Finalizer
from .handler import StreamHandler
from .models import BATCH_COLUMNS, BATCH_ROWS, Message, RecordBatch
from .pipeline_wiring import CollectorHandles, build_collector
from .table import FIRST_DATA_ROW, HEADER_ROW, Table

__all__ = [
    "BATCH_COLUMNS",
    "BATCH_ROWS",
    "EXPECTED_PAYLOAD_BYTES",
    "Message",
    "RecordBatch",
    "decode_batch",
    "encode_batch",
    "Table",
    "HEADER_ROW",
    "FIRST_DATA_ROW",
    "CompletionCoordinator",
    "CompletionState",
    "StreamHandler",
    "Finalizer",
    "CollectorHandles",
    "build_collector",
]
