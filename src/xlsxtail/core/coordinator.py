"""Completion coordinator: global message count and the one-shot finalize claim."""

from __future__ import annotations

import enum
import logging
import threading
from typing import Optional

logger = logging.getLogger(__name__)


class CompletionState(enum.Enum):
    ACCUMULATING = "accumulating"
    FINALIZED = "finalized"


class CompletionCoordinator:
    """
    Counts handled messages across all topics and hands out the finalize right once.

    ``record_message()`` increments the count and, in the same locked step,
    decides whether this caller is the one that crossed ``target``. A target
    of zero or less disables automatic finalization.

    The coordinator also carries the completion signal the process driver
    waits on (:meth:`wait`), so handlers never terminate the process
    themselves.
    """

    def __init__(self, target: int) -> None:
        self.target = int(target)
        self._count = 0
        self._state = CompletionState.ACCUMULATING
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._exit_code: Optional[int] = None

    # ------------------------------------------------------------------ counting
    @property
    def message_count(self) -> int:
        with self._lock:
            return self._count

    @property
    def state(self) -> CompletionState:
        with self._lock:
            return self._state

    @property
    def finalized(self) -> bool:
        return self.state is CompletionState.FINALIZED

    def record_message(self) -> bool:
        """
        Count one handled message.

        Returns ``True`` for exactly one caller: the first whose increment
        reaches the target. Every later caller gets ``False``.
        """
        with self._lock:
            self._count += 1
            if self._state is CompletionState.FINALIZED:
                return False
            if self.target > 0 and self._count >= self.target:
                self._state = CompletionState.FINALIZED
                logger.info("Message target %d reached, finalizing", self.target)
                return True
            return False

    # ------------------------------------------------------------------ completion signal
    def signal_done(self, exit_code: int = 0) -> None:
        """Publish the process exit code; only the first call has an effect."""
        with self._lock:
            if self._exit_code is None:
                self._exit_code = int(exit_code)
        self._done.set()

    @property
    def exit_code(self) -> Optional[int]:
        with self._lock:
            return self._exit_code

    def is_done(self) -> bool:
        return self._done.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until :meth:`signal_done` is called; returns ``False`` on timeout."""
        return self._done.wait(timeout)
