"""A small logger that writes lines with a level lead to a file, the console or UDP."""

from __future__ import annotations

import abc
import enum
import io
import socket
import sys
import threading
import time
from typing import Any, TextIO


class LogLevel(enum.IntEnum):
    TRACE = 0
    INFO = 1
    WARNING = 2
    ERROR = 3
    FATAL = 4


_LEVEL_NAMES = ("TRACE", "INFO", "WARN", "ERROR", "FATAL")
_UNKNOWN_LEAD = "[?????] "
_NO_LOGGER_LEAD = "[-----] "


class Logger(abc.ABC):
    """Base class: decides what gets logged and how each line starts."""

    def __init__(self, level: int = LogLevel.INFO, print_timestamp: bool = True) -> None:
        self.level = level
        self.print_timestamp = print_timestamp
        self.lock = threading.Lock()

    @property
    @abc.abstractmethod
    def stream(self) -> TextIO:
        """Where log text is written."""

    def flush_stream(self) -> None:
        """Hand a finished line to its destination."""

    def should_log_for(self, level: int) -> bool:
        return level >= self.level

    def get_lead(self, level: int) -> str:
        """Prefix of a log line: level name and, optionally, local time."""
        if not LogLevel.TRACE <= level <= LogLevel.FATAL:
            return _UNKNOWN_LEAD
        name = _LEVEL_NAMES[int(level)]
        if self.print_timestamp:
            now = time.localtime()
            return f"[{name:<5}][{now.tm_hour:02d}:{now.tm_min:02d}:{now.tm_sec:02d}] "
        return f"[{name:<5}] "

    def close(self) -> None:
        """Release whatever the logger holds."""

    def __enter__(self) -> "Logger":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class FileLogger(Logger):
    """Writes log lines to a file, truncating it when opened."""

    def __init__(self, path: str, level: int = LogLevel.INFO, print_timestamp: bool = True) -> None:
        super().__init__(level, print_timestamp)
        self._file = open(path, "w", encoding="utf-8")

    @property
    def stream(self) -> TextIO:
        return self._file

    def close(self) -> None:
        self._file.close()


class ConsoleLogger(Logger):
    """Writes log lines to standard output."""

    @property
    def stream(self) -> TextIO:
        return sys.stdout


class UdpLogger(Logger):
    """Sends each log line as one NUL-terminated UDP datagram."""

    def __init__(
        self, host: str, port: int, level: int = LogLevel.INFO, print_timestamp: bool = True
    ) -> None:
        super().__init__(level, print_timestamp)
        self._address = (host, port & 0xFFFF)
        self._buffer = io.StringIO()
        try:
            self._socket: socket.socket | None = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        except OSError:
            print("socket() failed.", file=sys.stderr)
            self._socket = None

    @property
    def stream(self) -> TextIO:
        return self._buffer

    def flush_stream(self) -> None:
        payload = self._buffer.getvalue().encode("utf-8") + b"\0"
        try:
            if self._socket is None:
                raise OSError("no socket")
            self._socket.sendto(payload, self._address)
        except OSError:
            print("sendto() failed.", file=sys.stderr)
        self._buffer.seek(0)
        self._buffer.truncate(0)

    def close(self) -> None:
        if self._socket is not None:
            self._socket.close()
            self._socket = None


class LogTransaction:
    """One log line, written inside a ``with`` block.

    Text written while the level is below the logger's threshold is discarded.
    Leaving the block after a FATAL line exits the program with status 1.
    """

    def __init__(self, logger: Logger | None, level: int) -> None:
        self._logger = logger
        self._level = level
        self._null = io.StringIO()

    @property
    def _active(self) -> bool:
        return self._logger is not None and self._logger.should_log_for(self._level)

    @property
    def stream(self) -> TextIO:
        if self._logger is None:
            return sys.stdout
        if not self._logger.should_log_for(self._level):
            return self._null
        return self._logger.stream

    def write(self, text: Any) -> "LogTransaction":
        self.stream.write(str(text))
        return self

    def __enter__(self) -> "LogTransaction":
        if self._logger is None:
            sys.stdout.write(_NO_LOGGER_LEAD)
            return self
        if self._active:
            self._logger.lock.acquire()
            self._logger.stream.write(self._logger.get_lead(self._level))
        return self

    def __exit__(self, *exc_info: Any) -> None:
        if self._logger is None:
            sys.stdout.write("\n")
            sys.stdout.flush()
            return
        if not self._active:
            return
        try:
            stream = self._logger.stream
            stream.write("\n")
            stream.flush()
            self._logger.flush_stream()
        finally:
            self._logger.lock.release()
        if self._level == LogLevel.FATAL:
            raise SystemExit(1)


def create_file_logger(
    path: str, level: int = LogLevel.INFO, print_timestamp: bool = True
) -> FileLogger:
    return FileLogger(path, level, print_timestamp)


def create_console_logger(level: int = LogLevel.INFO, print_timestamp: bool = True) -> ConsoleLogger:
    return ConsoleLogger(level, print_timestamp)


def create_udp_logger(
    host: str, port: int, level: int = LogLevel.INFO, print_timestamp: bool = True
) -> UdpLogger:
    return UdpLogger(host, port, level, print_timestamp)


def log(logger: Logger | None, level: int) -> LogTransaction:
    """Start a log line: ``with log(logger, LogLevel.INFO) as line: line.write(...)``."""
    return LogTransaction(logger, level)