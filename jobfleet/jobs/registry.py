from __future__ import annotations

import concurrent.futures
import itertools
import threading
from collections.abc import Callable, Iterator
from typing import Any

from jobfleet.logs import Logger, LogLevel, get_logger
from jobfleet.pool import default_concurrency

from .types import StartFailure, TaskError, TaskOutcome, TaskState


class TaskHandle:
    """One background unit of work tracked by a `TaskRegistry`.

    State only moves forward: once a terminal state has been recorded,
    later transitions (a worker finishing after a timeout, for example)
    are ignored.
    """

    def __init__(self, id: int, name: str):
        self.id = id
        self.name = name
        self._state = TaskState.PENDING
        self._result: Any = None
        self._errors: list[TaskError] = []
        self._lock = threading.Lock()
        self._future: concurrent.futures.Future | None = None

    def __repr__(self) -> str:
        return f"TaskHandle(id={self.id}, name={self.name!r}, state={self.state.value})"

    @property
    def state(self) -> TaskState:
        with self._lock:
            return self._state

    @property
    def result(self) -> Any:
        with self._lock:
            return self._result

    @property
    def errors(self) -> tuple[TaskError, ...]:
        with self._lock:
            return tuple(self._errors)

    def _transition(
        self,
        new: TaskState,
        result: Any = None,
        error: TaskError | None = None,
    ) -> bool:
        with self._lock:
            if self._state.is_terminal:
                return False
            if new == TaskState.PENDING:
                return False
            if new == TaskState.RUNNING and self._state != TaskState.PENDING:
                return False
            self._state = new
            if new == TaskState.COMPLETED:
                self._result = result
            if error is not None:
                self._errors.append(error)
            return True

    def mark_timeout(self) -> bool:
        return self._transition(TaskState.TIMEOUT)

    def snapshot(self) -> TaskOutcome:
        with self._lock:
            return TaskOutcome(
                id=self.id,
                name=self.name,
                state=self._state,
                result=self._result,
                errors=tuple(self._errors),
            )

    def _execute(self, work: Callable[..., Any], args: tuple, kwargs: dict) -> None:
        if not self._transition(TaskState.RUNNING):
            return
        try:
            value = work(*args, **kwargs)
        except Exception as exc:
            self._transition(TaskState.FAILED, error=TaskError.from_exception(exc))
            return
        self._transition(TaskState.COMPLETED, result=value)


class TaskRegistry:
    """Launches named background tasks and tracks their handles.

    Access to the tracked set and to the collected ids is serialized so a
    handle's outcome can only be collected once, even with concurrent
    callers.
    """

    def __init__(
        self,
        max_workers: int | None = None,
        logger: Logger | None = None,
        thread_prefix: str = "jobfleet-job",
    ):
        self.logger = logger or get_logger(__name__)
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=max_workers or default_concurrency(),
            thread_name_prefix=thread_prefix,
        )
        self._ids = itertools.count(1)
        self._handles: dict[int, TaskHandle] = {}
        self._collected: set[int] = set()
        self._lock = threading.Lock()
        self._closed = False

    def __enter__(self) -> TaskRegistry:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown(wait=False)

    def __len__(self) -> int:
        with self._lock:
            return len(self._handles)

    def __iter__(self) -> Iterator[TaskHandle]:
        with self._lock:
            return iter(list(self._handles.values()))

    def get(self, id: int) -> TaskHandle:
        with self._lock:
            if id not in self._handles:
                raise KeyError(id)
            return self._handles[id]

    def start(self, name: str, work: Callable[..., Any], *args: Any, **kwargs: Any) -> TaskHandle:
        if not callable(work):
            self.logger.log(LogLevel.ERROR, f"Task '{name}': work is not callable")
            raise StartFailure(name, f"{type(work).__name__} object is not callable")

        with self._lock:
            if self._closed:
                self.logger.log(LogLevel.ERROR, f"Task '{name}': registry is shut down")
                raise StartFailure(name, "registry is shut down")

            handle = TaskHandle(next(self._ids), name)
            try:
                handle._future = self._executor.submit(handle._execute, work, args, kwargs)
            except RuntimeError as exc:
                self.logger.log(LogLevel.ERROR, f"Task '{name}': {exc}")
                raise StartFailure(name, str(exc)) from exc

            self._handles[handle.id] = handle

        self.logger.log(LogLevel.INFO, f"Started task '{name}' (id={handle.id})")
        return handle

    def stop(self, handle: TaskHandle) -> bool:
        """Stop a task that has not begun running yet."""
        future = handle._future
        if future is None or not future.cancel():
            return False
        stopped = handle._transition(TaskState.STOPPED)
        if stopped:
            self.logger.log(LogLevel.INFO, f"Stopped task '{handle.name}' (id={handle.id})")
        return stopped

    def collect(self, handle: TaskHandle) -> TaskOutcome | None:
        with self._lock:
            if handle.id in self._collected or handle.id not in self._handles:
                return None
            outcome = handle.snapshot()
            if not outcome.state.is_terminal:
                return None
            self._collected.add(handle.id)
            return outcome

    def is_collected(self, handle: TaskHandle) -> bool:
        with self._lock:
            return handle.id in self._collected

    def release(self, handle: TaskHandle) -> None:
        with self._lock:
            self._handles.pop(handle.id, None)
            self._collected.discard(handle.id)
        future = handle._future
        if future is not None and not handle.state.is_terminal:
            future.cancel()

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            self._closed = True
            handles = list(self._handles.values())
        self._executor.shutdown(wait=wait, cancel_futures=True)
        for handle in handles:
            if handle._future is not None and handle._future.cancelled():
                handle._transition(TaskState.STOPPED)
