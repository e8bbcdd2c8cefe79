# tests/test_registry.py
from __future__ import annotations

import threading
import time

import pytest

from jobfleet.jobs import StartFailure, TaskRegistry, TaskState
from jobfleet.logs import LogLevel


class RecordingLogger:
    def __init__(self) -> None:
        self.records: list[tuple[LogLevel, str]] = []

    def log(self, level: LogLevel, message: str) -> None:
        self.records.append((level, message))


def _wait_terminal(handle, timeout: float = 5.0) -> None:
    end = time.monotonic() + timeout
    while not handle.state.is_terminal:
        if time.monotonic() > end:
            raise AssertionError(f"{handle} did not finish")
        time.sleep(0.01)


@pytest.fixture
def registry():
    reg = TaskRegistry(max_workers=2, logger=RecordingLogger())
    yield reg
    reg.shutdown(wait=True)


def test_start_runs_work_with_arguments(registry: TaskRegistry) -> None:
    handle = registry.start("add", lambda a, b=0: a + b, 2, b=3)
    _wait_terminal(handle)

    assert handle.state == TaskState.COMPLETED
    assert handle.result == 5
    assert handle.errors == ()


def test_ids_are_unique_even_for_same_name(registry: TaskRegistry) -> None:
    handles = [registry.start("same", lambda: None) for _ in range(5)]

    assert len({h.id for h in handles}) == 5
    assert {h.name for h in handles} == {"same"}
    assert len(registry) == 5
    assert list(registry) == handles


def test_failed_work_records_error(registry: TaskRegistry) -> None:
    def work() -> None:
        raise RuntimeError("disk full")

    handle = registry.start("broken", work)
    _wait_terminal(handle)

    assert handle.state == TaskState.FAILED
    assert handle.result is None
    assert [(e.kind, e.message) for e in handle.errors] == [("RuntimeError", "disk full")]


def test_non_callable_work_is_start_failure() -> None:
    logger = RecordingLogger()
    reg = TaskRegistry(max_workers=1, logger=logger)
    try:
        with pytest.raises(StartFailure):
            reg.start("nope", 42)
        assert len(reg) == 0
        assert logger.records[-1][0] == LogLevel.ERROR
    finally:
        reg.shutdown()


def test_start_after_shutdown_is_start_failure() -> None:
    reg = TaskRegistry(max_workers=1, logger=RecordingLogger())
    reg.shutdown()

    with pytest.raises(StartFailure):
        reg.start("late", lambda: None)
    assert len(reg) == 0


def test_terminal_state_never_changes(registry: TaskRegistry) -> None:
    gate = threading.Event()
    handle = registry.start("slow", gate.wait, 5)

    assert handle.mark_timeout() is True
    gate.set()
    time.sleep(0.1)

    assert handle.state == TaskState.TIMEOUT
    assert handle.result is None
    assert handle.mark_timeout() is False


def test_stop_pending_task() -> None:
    reg = TaskRegistry(max_workers=1, logger=RecordingLogger())
    gate = threading.Event()
    try:
        busy = reg.start("busy", gate.wait, 5)
        while busy.state != TaskState.RUNNING:
            time.sleep(0.01)
        queued = reg.start("queued", lambda: "never")

        assert reg.stop(queued) is True
        assert queued.state == TaskState.STOPPED
        assert reg.stop(busy) is False
    finally:
        gate.set()
        reg.shutdown()


def test_collect_is_once_per_handle(registry: TaskRegistry) -> None:
    handle = registry.start("once", lambda: "value")
    _wait_terminal(handle)

    results = []
    threads = [
        threading.Thread(target=lambda: results.append(registry.collect(handle)))
        for _ in range(8)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    collected = [r for r in results if r is not None]
    assert len(collected) == 1
    assert collected[0].result == "value"
    assert registry.is_collected(handle)


def test_collect_ignores_running_handle(registry: TaskRegistry) -> None:
    gate = threading.Event()
    handle = registry.start("slow", gate.wait, 5)
    try:
        assert registry.collect(handle) is None
        assert not registry.is_collected(handle)
    finally:
        gate.set()


def test_release_removes_handle(registry: TaskRegistry) -> None:
    handle = registry.start("x", lambda: 1)
    _wait_terminal(handle)

    registry.release(handle)

    assert len(registry) == 0
    with pytest.raises(KeyError):
        registry.get(handle.id)


def test_shutdown_marks_queued_tasks_stopped() -> None:
    reg = TaskRegistry(max_workers=1, logger=RecordingLogger())
    gate = threading.Event()
    busy = reg.start("busy", gate.wait, 5)
    while busy.state != TaskState.RUNNING:
        time.sleep(0.01)
    queued = reg.start("queued", lambda: "never")

    reg.shutdown(wait=False)
    gate.set()

    assert queued.state == TaskState.STOPPED
    assert queued.result is None
    _wait_terminal(busy)
    assert busy.state == TaskState.COMPLETED


def test_release_forgets_collected_ids(registry: TaskRegistry) -> None:
    handle = registry.start("x", lambda: 1)
    _wait_terminal(handle)

    assert registry.collect(handle) is not None
    registry.release(handle)

    assert not registry.is_collected(handle)
    assert registry._collected == set()
    assert registry.collect(handle) is None
