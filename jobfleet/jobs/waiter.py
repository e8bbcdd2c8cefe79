from __future__ import annotations

import time
from collections.abc import Callable, Iterable

from jobfleet.logs import Logger, LogLevel, get_logger

from .registry import TaskHandle, TaskRegistry
from .types import TaskOutcome, TaskState


class JobWaiter:
    """Polls a set of handles until they all finish or a deadline passes.

    Each handle yields exactly one outcome. Handles still running at the
    deadline are reported as TIMEOUT; their work is not interrupted.
    """

    def __init__(
        self,
        registry: TaskRegistry,
        logger: Logger | None = None,
        poll_interval: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {poll_interval}")
        self.registry = registry
        self.logger = logger or get_logger(__name__)
        self.poll_interval = poll_interval
        self._clock = clock
        self._sleep = sleep

    def wait_all(
        self,
        handles: Iterable[TaskHandle],
        deadline: float,
        show_progress: bool = False,
    ) -> list[TaskOutcome]:
        handles = list(handles)
        pending = {handle.id: handle for handle in handles}
        if not pending:
            return []

        total = len(pending)
        outcomes: dict[int, TaskOutcome] = {}
        start = self._clock()

        try:
            while True:
                self._poll(pending, outcomes)

                if show_progress:
                    done = total - len(pending)
                    self.logger.log(
                        LogLevel.INFO,
                        f"Progress: {done}/{total} ({done * 100 // total}%)",
                    )

                if not pending:
                    break

                if self._clock() - start >= deadline:
                    self._expire(pending, outcomes, deadline)
                    break

                remaining = start + deadline - self._clock()
                self._sleep(min(self.poll_interval, max(0.0, remaining)))
        finally:
            self._release_all(handles)

        return list(outcomes.values())

    def _poll(self, pending: dict[int, TaskHandle], outcomes: dict[int, TaskOutcome]) -> None:
        for tid, handle in list(pending.items()):
            if not handle.state.is_terminal:
                continue
            outcome = self.registry.collect(handle)
            del pending[tid]
            if outcome is None:
                # Already collected by another waiter.
                continue
            outcomes[tid] = outcome
            self._report(outcome)

    def _expire(
        self,
        pending: dict[int, TaskHandle],
        outcomes: dict[int, TaskOutcome],
        deadline: float,
    ) -> None:
        for tid, handle in list(pending.items()):
            handle.mark_timeout()
            outcome = self.registry.collect(handle)
            del pending[tid]
            if outcome is None:
                continue
            outcomes[tid] = outcome
            if outcome.state == TaskState.TIMEOUT:
                self.logger.log(
                    LogLevel.ERROR,
                    f"Task '{outcome.name}' (id={tid}) did not finish within {deadline}s",
                )
            else:
                self._report(outcome)

    def _report(self, outcome: TaskOutcome) -> None:
        if outcome.state == TaskState.COMPLETED:
            self.logger.log(LogLevel.SUCCESS, f"Task '{outcome.name}' (id={outcome.id}) completed")
            return
        detail = "; ".join(f"{e.kind}: {e.message}" for e in outcome.errors)
        message = f"Task '{outcome.name}' (id={outcome.id}) {outcome.state.value}"
        self.logger.log(LogLevel.ERROR, f"{message}: {detail}" if detail else message)

    def _release_all(self, handles: list[TaskHandle]) -> None:
        for handle in handles:
            try:
                self.registry.release(handle)
            except Exception as exc:
                self.logger.log(
                    LogLevel.WARN,
                    f"Could not release task '{handle.name}' (id={handle.id}): {exc}",
                )

