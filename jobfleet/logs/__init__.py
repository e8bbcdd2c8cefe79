from .logger import SUCCESS, Logger, LogLevel, NullLogger, StdLogger, get_logger

__all__ = ["get_logger", "Logger", "LogLevel", "NullLogger", "StdLogger", "SUCCESS"]
