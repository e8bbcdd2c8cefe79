from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from jobfleet.pool import InputError
from jobfleet.results import Summary

VERBOSITY_LEVELS = ("minimal", "normal", "detailed")


@dataclass(frozen=True)
class TestRunConfig:
    __test__ = False

    target: Path | None = None
    verbosity: str = "minimal"
    collect_results: bool = True
    extra_args: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.verbosity not in VERBOSITY_LEVELS:
            raise ValueError(
                f"verbosity must be one of {', '.join(VERBOSITY_LEVELS)}, got {self.verbosity!r}"
            )


@dataclass(frozen=True)
class EngineResult:
    passed: int
    failed: int
    skipped: int
    duration_s: float


@dataclass(frozen=True)
class TestFileOutcome:
    """Result of running one test file; `success` holds only for a clean run."""

    __test__ = False

    file_path: str
    success: bool
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    duration_s: float = 0.0
    error_message: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        if min(self.passed, self.failed, self.skipped) < 0:
            raise ValueError(f"{self.file_path}: counts must be non-negative")
        expected = self.failed == 0 and self.error_message is None
        if self.success != expected:
            raise ValueError(
                f"{self.file_path}: success={self.success} contradicts "
                f"failed={self.failed}, error_message={self.error_message!r}"
            )

    @classmethod
    def from_result(cls, file_path: str, result: EngineResult) -> TestFileOutcome:
        return cls(
            file_path=file_path,
            success=result.failed == 0,
            passed=result.passed,
            failed=result.failed,
            skipped=result.skipped,
            duration_s=result.duration_s,
        )

    @classmethod
    def from_fault(cls, file_path: str, message: str) -> TestFileOutcome:
        return cls(file_path=file_path, success=False, failed=1, error_message=message)


@dataclass(frozen=True)
class TestRunReport:
    __test__ = False

    summary: Summary
    outcomes: list[TestFileOutcome]
    missing: list[str]


class EngineError(Exception):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)


class NoValidInputError(InputError):
    def __init__(self, files: list[str]):
        super().__init__(f"None of the {len(files)} given test file(s) exist")
        self.files = files
