from dataclasses import dataclass

from jobfleet.jobs import TaskOutcome


@dataclass(frozen=True)
class CommandResult:
    task_id: str
    returncode: int
    stdout: str
    stderr: str
    duration_s: float


@dataclass(frozen=True)
class RunResult:
    order: list[str]
    outcomes: dict[str, TaskOutcome]
    failed: list[str]
    timed_out: list[str]

    @property
    def success(self) -> bool:
        return not self.failed and not self.timed_out
