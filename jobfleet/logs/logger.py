from __future__ import annotations

import logging
from enum import Enum
from typing import Protocol

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")


class LogLevel(Enum):
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARN = "WARN"
    ERROR = "ERROR"


_STDLIB_LEVELS = {
    LogLevel.INFO: logging.INFO,
    LogLevel.SUCCESS: SUCCESS,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


class Logger(Protocol):
    def log(self, level: LogLevel, message: str) -> None: ...


class StdLogger:
    """Forwards `log(level, message)` calls to a stdlib logger."""

    def __init__(self, logger: logging.Logger | None = None):
        self._logger = logger or logging.getLogger("jobfleet")

    def log(self, level: LogLevel, message: str) -> None:
        self._logger.log(_STDLIB_LEVELS[level], message)


class NullLogger:
    def log(self, level: LogLevel, message: str) -> None:
        pass


def get_logger(name: str) -> StdLogger:
    return StdLogger(logging.getLogger(name))
