"""Log severity levels and their textual form."""

from __future__ import annotations

from enum import IntEnum


class LogLevel(IntEnum):
    """Severity of a log message, ordered from least to most severe."""

    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3


_NAMES = {
    LogLevel.DEBUG: "debug",
    LogLevel.INFO: "info",
    LogLevel.WARNING: "warning",
    LogLevel.ERROR: "error",
}

_BY_NAME = {name: level for level, name in _NAMES.items()}


def parse_log_level(raw: str) -> LogLevel:
    """Parse a level name, ignoring case and surrounding whitespace.

    Raises ValueError if the name is not a known level.
    """
    normalized = raw.strip().lower()
    try:
        return _BY_NAME[normalized]
    except KeyError:
        raise ValueError(f"unknown log level: {raw!r}") from None


def log_level_to_string(level: LogLevel) -> str:
    """Return the lower-case name used for a level in configuration files."""
    return _NAMES.get(LogLevel(level), "info")