"""Iteration over the keys and decoded values of a table."""

from __future__ import annotations

from typing import Any, Iterator as TypingIterator, Protocol

from streamtable.codec import Codec


class StorageIterator(Protocol):
    """The raw iterator a storage provides."""

    def next(self) -> bool: ...

    def err(self) -> BaseException | None: ...

    def key(self) -> bytes | None: ...

    def value(self) -> bytes | None: ...

    def release(self) -> None: ...

    def seek(self, key: bytes) -> bool: ...


class Iterator:
    """Iterates over a storage, decoding values with a codec."""

    def __init__(self, storage_iterator: StorageIterator, codec: Codec) -> None:
        self._iter = storage_iterator
        self._codec = codec

    def next(self) -> bool:
        """Advance to the next pair; False once exhausted or failed."""
        return self._iter.next()

    def err(self) -> BaseException | None:
        """Return the error that stopped the iteration, if any."""
        return self._iter.err()

    def key(self) -> str:
        """Return the current key."""
        data = self._iter.key()
        if data is None:
            return ""
        return bytes(data).decode("utf-8", errors="surrogateescape")

    def value(self) -> Any:
        """Return the current value decoded, or None if there is none."""
        data = self._iter.value()
        if data is None:
            return None
        return self._codec.decode(data)

    def release(self) -> None:
        """Release the iterator; it cannot be used afterwards."""
        self._iter.release()

    def seek(self, key: str) -> bool:
        """Move to the first pair whose key is greater than or equal to ``key``.

        After a successful seek the current pair is that one; calling next
        right away would skip it.
        """
        return self._iter.seek(key.encode("utf-8", errors="surrogateescape"))

    def __iter__(self) -> TypingIterator[tuple[str, Any]]:
        """Yield the remaining (key, value) pairs, raising any iteration error."""
        while self.next():
            yield self.key(), self.value()
        error = self.err()
        if error is not None:
            raise error