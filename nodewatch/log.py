"""A small thread-safe logger writing to a file and, optionally, the console."""

from __future__ import annotations

import os
import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import TextIO

from nodewatch.levels import LogLevel

_LETTERS = {
    LogLevel.DEBUG: "D",
    LogLevel.INFO: "I",
    LogLevel.WARNING: "W",
    LogLevel.ERROR: "E",
}


class Logger:
    """Writes timestamped lines to a file; drops messages until initialised."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._file: TextIO | None = None
        self._min_level = LogLevel.DEBUG
        self._console_enabled = True

    @property
    def initialized(self) -> bool:
        return self._file is not None

    def init(self, file_path: str | os.PathLike[str]) -> None:
        """Open ``file_path`` for appending, creating parent directories.

        Raises OSError if the directory or file cannot be created.
        """
        with self._lock:
            self._close_file()
            path = Path(file_path)
            path.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(path, "a", encoding="utf-8")

    def shutdown(self) -> None:
        """Flush and close the log file; later messages are dropped."""
        with self._lock:
            self._close_file()

    def set_level(self, level: LogLevel) -> None:
        with self._lock:
            self._min_level = LogLevel(level)

    def enable_console_output(self, enable: bool) -> None:
        with self._lock:
            self._console_enabled = bool(enable)

    def debug(self, message: str) -> None:
        self._log(LogLevel.DEBUG, message)

    def info(self, message: str) -> None:
        self._log(LogLevel.INFO, message)

    def warning(self, message: str) -> None:
        self._log(LogLevel.WARNING, message)

    def error(self, message: str) -> None:
        self._log(LogLevel.ERROR, message)

    def __enter__(self) -> "Logger":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()

    def _close_file(self) -> None:
        if self._file is not None:
            self._file.flush()
            self._file.close()
            self._file = None

    def _log(self, level: LogLevel, message: str) -> None:
        with self._lock:
            if self._file is None or level < self._min_level:
                return
            stamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
            line = f"[{stamp}] [{_LETTERS.get(level, 'U')}] {message}"
            self._file.write(line + "\n")
            self._file.flush()
            if self._console_enabled:
                stream = sys.stderr if level is LogLevel.ERROR else sys.stdout
                print(line, file=stream)