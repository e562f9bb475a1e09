"""Message headers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping


@dataclass(frozen=True)
class RecordHeader:
    """A single header as carried by a Kafka record."""

    key: bytes
    value: bytes


class Headers(dict):
    """Message headers mapping names to byte values."""

    def merged(self, *others: Mapping[str, bytes] | None) -> "Headers | None":
        """Return a new mapping with all headers merged; later keys win.

        Returns None when the result would be empty.
        """
        result = Headers(self)
        for other in others:
            if other:
                result.update(other)
        return result or None

    def to_records(self) -> list[RecordHeader]:
        """Convert the headers to record headers."""
        return [
            RecordHeader(key.encode("utf-8", errors="surrogateescape"), value)
            for key, value in self.items()
        ]


def headers_from_records(records: Iterable[RecordHeader] | None) -> Headers:
    """Build headers from record headers; later records override earlier ones."""
    return Headers(
        {
            bytes(record.key).decode("utf-8", errors="surrogateescape"): record.value
            for record in records or ()
        }
    )