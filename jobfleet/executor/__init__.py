from .executor import Executor, run_command
from .types import CommandResult, RunResult

__all__ = ["CommandResult", "Executor", "RunResult", "run_command"]
