from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FailureRecord:
    source: str
    failed: int
    message: str | None = None


@dataclass(frozen=True)
class Summary:
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    total_duration_s: float = 0.0
    failures: tuple[FailureRecord, ...] = ()

    @property
    def total_tests(self) -> int:
        return self.passed + self.failed + self.skipped

    @property
    def success(self) -> bool:
        return self.failed == 0

    def combine(self, other: Summary) -> Summary:
        return Summary(
            passed=self.passed + other.passed,
            failed=self.failed + other.failed,
            skipped=self.skipped + other.skipped,
            total_duration_s=self.total_duration_s + other.total_duration_s,
            failures=self.failures + other.failures,
        )
