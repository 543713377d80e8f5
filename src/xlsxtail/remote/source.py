"""Message source interface and the per-topic worker threads behind it."""

from __future__ import annotations

import logging
import threading
import time
from queue import Empty, Full, Queue
from typing import Callable, Optional, Protocol

from ..core.models import Message

logger = logging.getLogger(__name__)

MessageHandler = Callable[[Message], object]

_POLL_INTERVAL_S = 0.1


class MessageSource(Protocol):
    """What the collector needs from a pub/sub client."""

    def subscribe(self, topic: str, handler: MessageHandler) -> None:  # pragma: no cover - protocol
        ...

    def set_concurrency_credit(self, credit: int) -> None:  # pragma: no cover - protocol
        ...

    def start(self) -> None:  # pragma: no cover - protocol
        ...

    def stop(self, *, join: bool = True, timeout: Optional[float] = None) -> None:  # pragma: no cover - protocol
        ...


class TopicWorker:
    """Bounded queue plus one thread that feeds a topic's messages to its handler.

    ``offer`` blocks while the queue is full, which pushes back on whoever
    delivers messages. With ``max_block_s`` set, a message that still does not
    fit after that long is dropped and counted in ``dropped``; the MQTT source
    sets it below the keepalive so a stalled handler cannot starve the client
    loop of its PINGREQs. The worker drains what is already queued before it
    exits on :meth:`stop`.
    """

    def __init__(
        self,
        topic: str,
        handler: MessageHandler,
        credit: int = 1,
        *,
        max_block_s: Optional[float] = None,
    ) -> None:
        self.topic = topic
        self.handler = handler
        self.queue: Queue[Message] = Queue(maxsize=max(1, int(credit)))
        self.max_block_s = max_block_s
        self._stop_event = threading.Event()
        self._closed = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.delivered = 0
        self.failed = 0
        self.dropped = 0

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._run,
            name=f"XlsxTailWorker({self.topic})",
            daemon=True,
        )
        self._thread.start()

    def offer(self, message: Message) -> bool:
        """Queue ``message``; returns ``False`` if it was closed out or dropped."""
        started = time.monotonic()
        while not self._closed.is_set():
            try:
                self.queue.put(message, timeout=_POLL_INTERVAL_S)
                return True
            except Full:
                waited = time.monotonic() - started
                if self.max_block_s is not None and waited >= self.max_block_s:
                    self.dropped += 1
                    logger.warning(
                        "Dropping message on %s: queue full for %.1f s (%d dropped so far)",
                        self.topic,
                        waited,
                        self.dropped,
                    )
                    return False
        logger.debug("Discarding message on %s: worker is closed", self.topic)
        return False

    def close(self) -> None:
        """Stop accepting new messages."""
        self._closed.set()

    def stop(self, *, join: bool = True, timeout: Optional[float] = None) -> None:
        self.close()
        self._stop_event.set()
        if join and self._thread is not None:
            self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self) -> None:
        while True:
            try:
                message = self.queue.get(timeout=_POLL_INTERVAL_S)
            except Empty:
                if self._stop_event.is_set():
                    break
                continue
            try:
                self.handler(message)
                self.delivered += 1
            except Exception:
                self.failed += 1
                logger.exception("Handler for %s failed", self.topic)
            finally:
                self.queue.task_done()
