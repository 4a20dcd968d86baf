"""Level-routed logging front end.

Library code calls the module-level functions (``debug``, ``info`` ...);
the application registers concrete loggers per level with
:func:`register_logger`. Until then every message goes to a
:class:`NullLogger`.
"""

from __future__ import annotations

import sys
import time
from enum import IntEnum
from typing import IO


class LogLevel(IntEnum):
    """Package-level log levels, in ascending priority."""

    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3
    CRITICAL = 4

    def __str__(self) -> str:
        return self.name.lower()


MIN_LEVEL = LogLevel.DEBUG
MAX_LEVEL = LogLevel.CRITICAL

# Syslog priorities: lower numbers are more severe.
LOG_CRIT = 2
LOG_ERR = 3
LOG_WARNING = 4
LOG_INFO = 6
LOG_DEBUG = 7

_SYSLOG_PRIORITY = {
    LogLevel.DEBUG: LOG_DEBUG,
    LogLevel.INFO: LOG_INFO,
    LogLevel.WARNING: LOG_WARNING,
    LogLevel.ERROR: LOG_ERR,
    LogLevel.CRITICAL: LOG_CRIT,
}


def parse_log_level(text: str) -> LogLevel | None:
    """Return the level named by *text* (any case), or None if unknown."""
    try:
        return LogLevel[text.upper()] if text else None
    except KeyError:
        return None


def _render(msg: str, args: tuple) -> str:
    return msg % args if args else msg


class Logger:
    """Logger interface; the base class keeps its level and drops messages."""

    def __init__(self) -> None:
        self._priority = LOG_DEBUG

    def debug(self, msg: str, *args) -> None:
        """Record a debug message."""

    def info(self, msg: str, *args) -> None:
        """Record an informational message."""

    def warning(self, msg: str, *args) -> None:
        """Record a warning."""

    def error(self, msg: str, *args) -> None:
        """Record an error."""

    def critical(self, msg: str, *args) -> None:
        """Record a critical message."""

    def set_log_level(self, priority: int) -> None:
        self._priority = priority

    def get_log_level(self) -> int:
        return self._priority

    def close(self) -> None:
        """Release anything the logger holds."""


class NullLogger(Logger):
    """Logger that drops every message."""


class ConsoleLogger(Logger):
    """Logger writing to the console: info to stdout, everything else to stderr."""

    def __init__(
        self,
        prefix: str = "",
        timestamps: bool = True,
        stdout: IO[str] | None = None,
        stderr: IO[str] | None = None,
    ) -> None:
        super().__init__()
        self._prefix = prefix
        self._timestamps = timestamps
        self._stdout = stdout
        self._stderr = stderr

    def _write(self, threshold: int, tag: str, msg: str, args: tuple, stream) -> None:
        if self._priority < threshold:
            return
        stamp = time.strftime("%Y/%m/%d %H:%M:%S ") if self._timestamps else ""
        stream.write(f"{self._prefix}{stamp}{tag} {_render(msg, args)}\n")
        stream.flush()

    def debug(self, msg: str, *args) -> None:
        self._write(LOG_DEBUG, "[DEBUG]", msg, args, self._stderr or sys.stderr)

    def info(self, msg: str, *args) -> None:
        self._write(LOG_INFO, "[INFO]", msg, args, self._stdout or sys.stdout)

    def warning(self, msg: str, *args) -> None:
        self._write(LOG_WARNING, "[WARNING]", msg, args, self._stderr or sys.stderr)

    def error(self, msg: str, *args) -> None:
        self._write(LOG_ERR, "[ERROR]", msg, args, self._stderr or sys.stderr)

    def critical(self, msg: str, *args) -> None:
        self._write(LOG_CRIT, "[CRITICAL]", msg, args, self._stderr or sys.stderr)


_loggers: list[Logger] = [NullLogger()] * len(LogLevel)
_level: LogLevel = LogLevel.DEBUG


def register_logger(min_level: LogLevel, max_level: LogLevel, logger: Logger) -> None:
    """Route every level from *min_level* to *max_level* to *logger*."""
    low, high = LogLevel(min_level), LogLevel(max_level)
    for level in range(low, high + 1):
        _loggers[level] = logger


def debug(msg: str, *args) -> None:
    _loggers[LogLevel.DEBUG].debug(msg, *args)


def info(msg: str, *args) -> None:
    _loggers[LogLevel.INFO].info(msg, *args)


def warning(msg: str, *args) -> None:
    _loggers[LogLevel.WARNING].warning(msg, *args)


def error(msg: str, *args) -> None:
    _loggers[LogLevel.ERROR].error(msg, *args)


def critical(msg: str, *args) -> None:
    _loggers[LogLevel.CRITICAL].critical(msg, *args)


def fatal(msg: str, *args) -> None:
    """Log a critical message, close all loggers and exit with status 1."""
    _loggers[LogLevel.CRITICAL].critical(msg, *args)
    close()
    raise SystemExit(1)


def set_log_level(level: LogLevel) -> None:
    """Set the package-level threshold and push it to every registered logger."""
    global _level
    _level = LogLevel(level)
    priority = _SYSLOG_PRIORITY[_level]
    for logger in _unique_loggers():
        logger.set_log_level(priority)


def get_log_level() -> LogLevel:
    return _level


def close() -> None:
    """Close every registered logger."""
    for logger in _unique_loggers():
        logger.close()


def _unique_loggers() -> list[Logger]:
    seen: dict[int, Logger] = {}
    for logger in _loggers:
        seen.setdefault(id(logger), logger)
    return list(seen.values())