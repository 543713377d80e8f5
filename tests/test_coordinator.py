from __future__ import annotations

import threading

import pytest

from xlsxtail.core.coordinator import CompletionCoordinator, CompletionState


def test_claims_once_when_target_reached() -> None:
    coordinator = CompletionCoordinator(target=3)

    results = [coordinator.record_message() for _ in range(5)]

    assert results == [False, False, True, False, False]
    assert coordinator.state is CompletionState.FINALIZED
    assert coordinator.message_count == 5


@pytest.mark.parametrize("target", [0, -1])
def test_non_positive_target_never_finalizes(target: int) -> None:
    coordinator = CompletionCoordinator(target=target)

    assert not any(coordinator.record_message() for _ in range(1000))
    assert coordinator.state is CompletionState.ACCUMULATING
    assert not coordinator.finalized


def test_exactly_one_winner_under_concurrent_increments() -> None:
    for _ in range(20):
        threads_count = 16
        coordinator = CompletionCoordinator(target=threads_count // 2)
        barrier = threading.Barrier(threads_count)
        wins = []
        wins_lock = threading.Lock()

        def _worker() -> None:
            barrier.wait()
            if coordinator.record_message():
                with wins_lock:
                    wins.append(threading.get_ident())

        threads = [threading.Thread(target=_worker) for _ in range(threads_count)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5.0)

        assert len(wins) == 1
        assert coordinator.message_count == threads_count


def test_completion_signal_keeps_first_exit_code() -> None:
    coordinator = CompletionCoordinator(target=1)
    assert not coordinator.wait(timeout=0.01)
    assert coordinator.exit_code is None

    coordinator.signal_done(0)
    coordinator.signal_done(3)

    assert coordinator.is_done()
    assert coordinator.wait(timeout=0.01)
    assert coordinator.exit_code == 0


def test_wait_wakes_up_on_signal_from_other_thread() -> None:
    coordinator = CompletionCoordinator(target=1)
    timer = threading.Timer(0.05, coordinator.signal_done)
    timer.start()
    try:
        assert coordinator.wait(timeout=2.0)
    finally:
        timer.cancel()
