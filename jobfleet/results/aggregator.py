from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from jobfleet.jobs import TaskOutcome
from jobfleet.logs import Logger, LogLevel, get_logger

from .types import FailureRecord, Summary

_COUNT_FIELDS = ("passed", "failed", "skipped")


@dataclass(frozen=True)
class _Contribution:
    source: str
    passed: int
    failed: int
    skipped: int
    duration_s: float
    message: str | None


class ResultAggregator:
    """Folds result records into a single `Summary`.

    Accepted records are test file outcomes, task outcomes wrapping a
    count-bearing result, objects exposing `passed`/`failed`/`skipped`
    attributes, or mappings with those keys. A record that cannot be read
    contributes nothing and is logged as a warning.
    """

    def __init__(self, logger: Logger | None = None):
        self.logger = logger or get_logger(__name__)

    def merge(self, outcomes: Iterable[Any]) -> Summary:
        passed = failed = skipped = 0
        duration = 0.0
        failures: list[FailureRecord] = []

        for position, record in enumerate(outcomes):
            part = self._read(record, f"record #{position}")
            if part is None:
                continue
            passed += part.passed
            failed += part.failed
            skipped += part.skipped
            duration += part.duration_s
            if part.failed > 0:
                failures.append(FailureRecord(part.source, part.failed, part.message))

        return Summary(passed, failed, skipped, duration, tuple(failures))

    def _read(self, record: Any, fallback: str) -> _Contribution | None:
        if isinstance(record, TaskOutcome):
            if record.result is None:
                detail = "; ".join(e.message for e in record.errors) or record.state.value
                self.logger.log(
                    LogLevel.WARN,
                    f"Task '{record.name}' has no result to aggregate ({detail})",
                )
                return None
            return self._read(record.result, record.name)

        source = _field(record, "file_path") or _field(record, "name") or fallback
        values = [_field(record, name) for name in _COUNT_FIELDS]
        if all(value is None for value in values):
            self.logger.log(LogLevel.WARN, f"{source}: no test counts found, ignoring")
            return None

        counts = []
        for name, value in zip(_COUNT_FIELDS, values):
            if value is None:
                value = 0
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                self.logger.log(
                    LogLevel.WARN, f"{source}: invalid '{name}' count {value!r}, ignoring record"
                )
                return None
            counts.append(value)

        duration = _field(record, "duration_s") or 0.0
        if not isinstance(duration, (int, float)) or duration < 0:
            self.logger.log(LogLevel.WARN, f"{source}: invalid duration {duration!r}, using 0")
            duration = 0.0

        return _Contribution(
            str(source), *counts, float(duration), _field(record, "error_message")
        )


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)
