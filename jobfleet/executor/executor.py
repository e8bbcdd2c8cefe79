import os
import subprocess
import time

from jobfleet.config import ProjectConfig, TaskConfig
from jobfleet.jobs import JobWaiter, TaskOutcome, TaskRegistry, TaskState

from .types import CommandResult, RunResult


def run_command(task: TaskConfig, timeout: float | None = None) -> CommandResult:
    start = time.monotonic()
    result = subprocess.run(
        task.command,
        shell=True,
        cwd=task.working_dir or None,
        env={**os.environ, **task.env},
        capture_output=True,
        text=True,
        timeout=timeout,
    )
    duration = time.monotonic() - start
    return CommandResult(task.id, result.returncode, result.stdout, result.stderr, duration)


def _run_before(task: TaskConfig, deadline_at: float) -> CommandResult:
    remaining = deadline_at - time.monotonic()
    if remaining <= 0:
        raise TimeoutError(f"{task.id}: deadline passed before the command started")
    return run_command(task, timeout=remaining)


def _timed_out(outcome: TaskOutcome | None) -> bool:
    if outcome is None or outcome.state == TaskState.TIMEOUT:
        return True
    # The child may be killed just before the waiter reaches its deadline
    return any(e.kind in ("TimeoutExpired", "TimeoutError") for e in outcome.errors)


class Executor:
    """Starts configured shell commands as background tasks and waits on them."""

    def __init__(self, project: ProjectConfig, registry: TaskRegistry, waiter: JobWaiter):
        self.project = project
        self.registry = registry
        self.waiter = waiter

    def _run(self, order: list[str], *, deadline: float, show_progress: bool) -> RunResult:
        # Commands still running at the deadline are killed, not left behind
        deadline_at = time.monotonic() + deadline
        handles = [
            self.registry.start(tid, _run_before, self.project.get_task(tid), deadline_at)
            for tid in order
        ]
        names = {handle.id: handle.name for handle in handles}

        collected = self.waiter.wait_all(
            handles,
            deadline=deadline,
            show_progress=show_progress,
        )

        outcomes = {names[outcome.id]: outcome for outcome in collected}
        failed: list[str] = []
        timed_out: list[str] = []
        for tid in order:
            outcome = outcomes.get(tid)
            if _timed_out(outcome):
                timed_out.append(tid)
            elif outcome.state != TaskState.COMPLETED or outcome.result.returncode != 0:
                failed.append(tid)

        return RunResult(order, outcomes, failed, timed_out)

    def run_all(self, *, deadline: float | None = None, show_progress: bool | None = None) -> RunResult:
        return self.run_targets(self.project.tasks_ids(), deadline=deadline, show_progress=show_progress)

    def run_targets(
        self,
        targets: list[str],
        *,
        deadline: float | None = None,
        show_progress: bool | None = None,
    ) -> RunResult:
        order = []
        for tid in targets:
            self.project.get_task(tid)
            if tid not in order:
                order.append(tid)

        settings = self.project.settings
        return self._run(
            order,
            deadline=settings.deadline if deadline is None else deadline,
            show_progress=settings.show_progress if show_progress is None else show_progress,
        )
