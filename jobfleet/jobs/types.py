from dataclasses import dataclass
from enum import Enum
from typing import Any


class TaskState(Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    STOPPED = "stopped"
    TIMEOUT = "timeout"

    @property
    def is_terminal(self) -> bool:
        return self not in (TaskState.PENDING, TaskState.RUNNING)


@dataclass(frozen=True)
class TaskError:
    kind: str
    message: str

    @classmethod
    def from_exception(cls, exc: BaseException) -> "TaskError":
        return cls(type(exc).__name__, str(exc))


@dataclass(frozen=True)
class TaskOutcome:
    id: int
    name: str
    state: TaskState
    result: Any
    errors: tuple[TaskError, ...] = ()

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0


class JobError(Exception):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)


class StartFailure(JobError):
    def __init__(self, name: str, reason: str):
        super().__init__(f"Could not start task '{name}': {reason}")
        self.name = name
        self.reason = reason
