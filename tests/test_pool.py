# tests/test_pool.py
from __future__ import annotations

import threading
import time

import pytest

from jobfleet.logs import LogLevel
from jobfleet.pool import InputError, ItemError, PoolTimeoutError, TaskPool


class RecordingLogger:
    def __init__(self) -> None:
        self.records: list[tuple[LogLevel, str]] = []

    def log(self, level: LogLevel, message: str) -> None:
        self.records.append((level, message))

    def levels(self) -> list[LogLevel]:
        return [level for level, _ in self.records]


def test_empty_items_returns_without_logging() -> None:
    logger = RecordingLogger()
    pool = TaskPool(logger)

    assert pool.run([], lambda x: x, max_concurrency=2) == []
    assert logger.records == []


@pytest.mark.parametrize("bound", [0, -3])
def test_non_positive_concurrency_is_input_error(bound: int) -> None:
    calls: list[int] = []
    pool = TaskPool(RecordingLogger())

    with pytest.raises(InputError):
        pool.run([1, 2], calls.append, max_concurrency=bound)
    assert calls == []


def test_results_follow_item_order() -> None:
    def worker(n: int) -> int:
        time.sleep(0.01 * (5 - n))
        return n * n

    pool = TaskPool(RecordingLogger())

    assert pool.run([1, 2, 3, 4], worker, max_concurrency=4) == [1, 4, 9, 16]


def test_never_exceeds_max_concurrency() -> None:
    lock = threading.Lock()
    active = 0
    peak = 0

    def worker(item: int) -> int:
        nonlocal active, peak
        with lock:
            active += 1
            peak = max(peak, active)
        time.sleep(0.05)
        with lock:
            active -= 1
        return item

    pool = TaskPool(RecordingLogger())
    results = pool.run(range(5), worker, max_concurrency=2)

    assert results == [0, 1, 2, 3, 4]
    assert 1 <= peak <= 2


def test_worker_exception_does_not_cancel_siblings() -> None:
    def worker(item: str) -> str:
        if item == "bad":
            raise ValueError("boom")
        return item.upper()

    pool = TaskPool(RecordingLogger())
    results = pool.run(["a", "bad", "c"], worker, max_concurrency=1)

    assert results[0] == "A"
    assert results[2] == "C"
    assert isinstance(results[1], ItemError)
    assert results[1].index == 1
    assert results[1].item == "bad"
    assert results[1].message == "ValueError: boom"


def test_deadline_raises_timeout_with_partial_results() -> None:
    release = threading.Event()

    def worker(item: int) -> int:
        if item == 1:
            release.wait(5)
        return item

    pool = TaskPool(RecordingLogger())
    try:
        with pytest.raises(PoolTimeoutError) as info:
            pool.run([0, 1], worker, max_concurrency=2, deadline=0.2)
    finally:
        release.set()

    assert info.value.completed == {0: 0}
    assert info.value.pending == 1


def test_logs_start_and_success() -> None:
    logger = RecordingLogger()
    TaskPool(logger).run([1, 2], str, max_concurrency=2)

    assert logger.levels() == [LogLevel.INFO, LogLevel.SUCCESS]
    assert "2 item(s)" in logger.records[0][1]
