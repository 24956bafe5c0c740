"""Levelled logging to standard output and, optionally, to a file."""

from __future__ import annotations

import enum
import threading
import time
from typing import IO

APP_NAME = "SLS"


class LogLevel(enum.IntEnum):
    """Log levels; a message is written when its level is at most the logger's."""

    FATAL = 0
    ERROR = 1
    WARNING = 2
    INFO = 3
    DEBUG = 4
    TRACE = 5


class Logger:
    """Writes timestamped log lines to stdout and to an optional log file."""

    def __init__(self, level: LogLevel = LogLevel.INFO) -> None:
        self.level = LogLevel(level)
        self.log_filename = ""
        self._file: IO[str] | None = None
        self._lock = threading.Lock()

    def log(self, level: int, message: str) -> str | None:
        """Write a message if the level passes; return the written line or None."""
        level = LogLevel(level)
        if level > self.level:
            return None
        now = time.time()
        seconds = int(now)
        millis = int((now - seconds) * 1000)
        stamp = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(seconds))
        line = f"{stamp}:{millis:03d} {APP_NAME} {level.name}: {message}\n"
        with self._lock:
            print(line, end="")
            if self._file is not None:
                self._file.write(line)
                self._file.flush()
        return line

    def set_level(self, name: str) -> LogLevel:
        """Set the level by name, case-insensitive; an unknown name keeps the current level."""
        upper = name.upper()
        try:
            self.level = LogLevel[upper]
        except KeyError:
            print(f"!!!wrong log level '{upper}', set default '{self.level.name}'.")
        else:
            print(f"set log level='{upper}'.")
        return self.level

    def set_log_file(self, path: str) -> None:
        """Append log lines to a file; only the first file set is used."""
        with self._lock:
            if self.log_filename:
                return
            self.log_filename = str(path)
            self._file = open(self.log_filename, "a", encoding="utf-8")

    def close(self) -> None:
        """Close the log file, if one is open."""
        with self._lock:
            if self._file is not None:
                self._file.close()
                self._file = None


_instance: Logger | None = None
_instance_lock = threading.Lock()


def get_logger() -> Logger:
    """Return the process-wide logger, creating it on first use."""
    global _instance
    with _instance_lock:
        if _instance is None:
            _instance = Logger()
        return _instance


def log(level: int, message: str) -> str | None:
    """Log through the process-wide logger."""
    return get_logger().log(level, message)


def set_log_level(name: str) -> LogLevel:
    """Set the level of the process-wide logger by name."""
    return get_logger().set_level(name)


def set_log_file(path: str) -> None:
    """Set the log file of the process-wide logger."""
    get_logger().set_log_file(path)