"""Factory helpers that wire the collector from configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, TextIO

from ..config import TailConfig
from ..dataio.xlsx_sink import TabularSink, XlsxSink
from .coordinator import CompletionCoordinator
from .finalizer import Finalizer
from .handler import StreamHandler
from .models import BATCH_COLUMNS
from .table import Table

SinkFactory = Callable[[], TabularSink]


def default_sink() -> TabularSink:
    return XlsxSink(column_count=BATCH_COLUMNS)


@dataclass(slots=True)
class CollectorHandles:
    """Return value from :func:`build_collector` containing ready-to-use pieces."""

    table: Table
    coordinator: CompletionCoordinator
    finalizer: Finalizer
    handlers: Dict[str, StreamHandler] = field(default_factory=dict)

    @property
    def messages_handled(self) -> int:
        return self.coordinator.message_count


def build_collector(
    cfg: TailConfig,
    *,
    sink_factory: Optional[SinkFactory] = None,
    stdout: Optional[TextIO] = None,
) -> CollectorHandles:
    """
    Build the shared table, coordinator, finalizer and one handler per topic.

    Parameters
    ----------
    cfg:
        Runtime configuration. It is sanitized and validated here, so a
        :class:`~xlsxtail.errors.ConfigError` surfaces before anything subscribes.
    sink_factory:
        Callable creating the tabular sink. Defaults to an :class:`XlsxSink`.
    stdout:
        Stream for the print-topic diagnostic (``sys.stdout`` when omitted).
    """
    normalized = cfg.sanitized()
    normalized.validate()

    sink = (sink_factory or default_sink)()
    table = Table(sink)
    coordinator = CompletionCoordinator(normalized.total_messages)
    finalizer = Finalizer(
        table,
        coordinator,
        normalized.primary_address,
        output_dir=normalized.output_dir,
        header_labels=normalized.header_labels,
        chart_title=normalized.chart_title,
    )
    handlers = {
        topic: StreamHandler(
            topic,
            table,
            coordinator,
            finalizer,
            print_topic=normalized.print_topic,
            stdout=stdout,
        )
        for topic in normalized.topics
    }
    return CollectorHandles(table=table, coordinator=coordinator, finalizer=finalizer, handlers=handlers)


__all__ = ["CollectorHandles", "SinkFactory", "build_collector", "default_sink"]
