"""Per-topic message callback: decode, append, count, maybe finalize."""

from __future__ import annotations

import logging
import sys
from typing import Optional, Protocol, TextIO

from ..errors import DecodeError
from .coordinator import CompletionCoordinator
from .decoder import decode_batch
from .models import Message
from .table import Table

logger = logging.getLogger(__name__)


class FinalizeAction(Protocol):
    def finalize(self) -> object:  # pragma: no cover - protocol
        ...


class StreamHandler:
    """
    Message callback for one subscribed topic.

    The message source runs one worker per topic, so ``messages_handled`` is
    only touched from that worker. Everything shared across topics goes
    through :class:`Table` and :class:`CompletionCoordinator`.
    """

    def __init__(
        self,
        topic: str,
        table: Table,
        coordinator: CompletionCoordinator,
        finalizer: FinalizeAction,
        *,
        print_topic: bool = False,
        stdout: Optional[TextIO] = None,
    ) -> None:
        self.topic = topic
        self.table = table
        self.coordinator = coordinator
        self.finalizer = finalizer
        self.print_topic = print_topic
        self._stdout = stdout
        self.messages_handled = 0
        self.decode_errors = 0

    def __call__(self, message: Message) -> bool:
        return self.handle_message(message.body)

    def handle_message(self, body: bytes) -> bool:
        """
        Process one payload. Returns ``True`` when the payload was decoded and counted.

        Decode and row write errors are logged, never raised, so a bad
        message cannot stop the topic's worker.
        """
        if self.coordinator.finalized:
            logger.debug("Dropping message on %s received after finalization", self.topic)
            return False

        if self.print_topic:
            out = self._stdout or sys.stdout
            out.write(f"{self.topic} | ")
            out.flush()

        try:
            batch = decode_batch(body)
        except DecodeError as exc:
            self.decode_errors += 1
            logger.warning("Skipping message on %s: %s", self.topic, exc)
            return False

        with self.table.locked():
            if self.coordinator.finalized:
                logger.debug("Dropping message on %s: finalized while decoding", self.topic)
                return False
            written = self.table.append_batch(batch, source=self.topic)
            claimed = self.coordinator.record_message()
        self.messages_handled += 1
        logger.debug(
            "%s: message %d wrote %d rows, next row %d",
            self.topic,
            self.messages_handled,
            written,
            self.table.cursor,
        )

        if claimed:
            self.finalizer.finalize()
        return True
