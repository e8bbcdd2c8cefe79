from .registry import TaskHandle, TaskRegistry
from .types import JobError, StartFailure, TaskError, TaskOutcome, TaskState
from .waiter import JobWaiter

__all__ = [
    "JobError",
    "JobWaiter",
    "StartFailure",
    "TaskError",
    "TaskHandle",
    "TaskOutcome",
    "TaskRegistry",
    "TaskState",
]
