"""Logging with stacked message prefixes."""

from __future__ import annotations

import sys
import time
from typing import Any, Iterable, Protocol, TextIO


class Logger(Protocol):
    """The interface used for logging."""

    def print(self, *args: Any) -> None: ...

    def println(self, *args: Any) -> None: ...

    def printf(self, msg: str, *args: Any) -> None: ...


class _StreamLog:
    """Writes timestamped lines to a stream, standard error by default."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    def _write(self, text: str) -> None:
        stream = self._stream if self._stream is not None else sys.stderr
        stamp = time.strftime("%Y/%m/%d %H:%M:%S ")
        if not text.endswith("\n"):
            text += "\n"
        stream.write(stamp + text)
        stream.flush()

    def print(self, *args: Any) -> None:
        self._write(" ".join(str(arg) for arg in args))

    def println(self, *args: Any) -> None:
        self._write(" ".join(str(arg) for arg in args))

    def printf(self, msg: str, *args: Any) -> None:
        self._write(msg % args if args else msg)


class StdLogger:
    """Forwards to a logger, prefixing formatted messages with a prefix path."""

    def __init__(
        self,
        log: Logger | None = None,
        debug: bool = False,
        prefix_path: Iterable[str] = (),
    ) -> None:
        self.log: Logger = log if log is not None else _StreamLog()
        self.debug = debug
        self.prefix_path: tuple[str, ...] = tuple(prefix_path)
        joined = " > ".join(self.prefix_path)
        self._prefix = f"[{joined}] " if joined else ""

    def print(self, *args: Any) -> None:
        self.log.print(*args)

    def println(self, *args: Any) -> None:
        self.log.print(*args)

    def printf(self, msg: str, *args: Any) -> None:
        self.log.printf(f"{self._prefix}{msg}", *args)

    def debugf(self, msg: str, *args: Any) -> None:
        """Log a formatted message only when debugging is enabled."""
        if self.debug:
            self.log.printf(f"{self._prefix}{msg}", *args)

    def prefix(self, prefix: str) -> "StdLogger":
        """Return a logger with ``prefix`` appended to the prefix path."""
        return self.stack_prefix(prefix)

    def stack_prefix(self, prefix: str) -> "StdLogger":
        """Return a logger with ``prefix`` appended to the prefix path."""
        path = self.prefix_path + ((prefix,) if prefix else ())
        return StdLogger(self.log, self.debug, path)

    def current_prefix(self) -> str:
        return self._prefix


_default_logger = StdLogger(_StreamLog())


def default_logger() -> StdLogger:
    """Return the logger writing to standard error."""
    return _default_logger


def debug(enabled: bool) -> None:
    """Enable or disable debug logging on the default logger."""
    _default_logger.debug = enabled


def wrap_logger(log: Logger, debug: bool) -> StdLogger:
    """Wrap a logger so it supports prefixes and debug messages."""
    return StdLogger(log, debug)