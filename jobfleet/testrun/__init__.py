from .engine import PytestEngine, TestEngine, parse_junit_report, parse_summary_line
from .runner import ParallelTestRunner
from .types import (
    EngineError,
    EngineResult,
    NoValidInputError,
    TestFileOutcome,
    TestRunConfig,
    TestRunReport,
)

__all__ = [
    "EngineError",
    "EngineResult",
    "NoValidInputError",
    "ParallelTestRunner",
    "parse_junit_report",
    "parse_summary_line",
    "PytestEngine",
    "TestEngine",
    "TestFileOutcome",
    "TestRunConfig",
    "TestRunReport",
]
