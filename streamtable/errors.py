"""Error types and stack-trace helpers."""

from __future__ import annotations

import traceback
from itertools import dropwhile, takewhile
from pathlib import Path
from types import TracebackType

_PACKAGE_DIR = Path(__file__).resolve().parent


class TopicNotFoundError(LookupError):
    """The requested topic was not found."""

    def __init__(self, message: str = "requested topic was not found") -> None:
        super().__init__(message)


class VisitAbortedError(RuntimeError):
    """A visit over all values was aborted by cancellation or rebalance."""

    def __init__(
        self, message: str = "VisitAll aborted due to context cancel or rebalance"
    ) -> None:
        super().__init__(message)


class ProcessingError(RuntimeError):
    """A non-transient error occurred while processing a message."""

    def __init__(self, partition: int, error: BaseException) -> None:
        super().__init__(f"error processing message (partition={partition}): {error}")
        self.partition = partition
        self.error = error
        self.__cause__ = error


class SetupError(RuntimeError):
    """A non-transient error occurred while setting up partitions."""

    def __init__(self, partition: int, error: BaseException) -> None:
        super().__init__(f"error setting up (partition={partition}): {error}")
        self.partition = partition
        self.error = error
        self.__cause__ = error


def _is_internal(frame: traceback.FrameSummary) -> bool:
    try:
        return Path(frame.filename).resolve().parent == _PACKAGE_DIR
    except (OSError, ValueError):
        return False


def _format(frame: traceback.FrameSummary) -> str:
    return f"{frame.name}\n\t{frame.filename}:{frame.lineno}"


def user_stacktrace(tb: TracebackType | None = None) -> list[str]:
    """Format the user-code part of a stack, innermost frame first.

    Frames of this package's own modules are dropped from the top, and the
    listing stops at the next such frame. If nothing is left, the whole stack
    is returned. Without a traceback the current stack is used.
    """
    if tb is None:
        frames = traceback.extract_stack()[:-1]
    else:
        frames = traceback.extract_tb(tb)
    innermost_first = list(reversed(frames))
    remaining = dropwhile(_is_internal, innermost_first)
    lines = [_format(f) for f in takewhile(lambda f: not _is_internal(f), remaining)]
    return lines or [_format(f) for f in innermost_first]