from jobfleet.jobs import JobWaiter, TaskHandle, TaskOutcome, TaskRegistry, TaskState
from jobfleet.pool import TaskPool
from jobfleet.results import ResultAggregator, Summary
from jobfleet.testrun import ParallelTestRunner, TestFileOutcome

__all__ = [
    "JobWaiter",
    "ParallelTestRunner",
    "ResultAggregator",
    "Summary",
    "TaskHandle",
    "TaskOutcome",
    "TaskPool",
    "TaskRegistry",
    "TaskState",
    "TestFileOutcome",
]
