"""Codecs that turn values into bytes and back."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_INT_PATTERN = re.compile(r"[+-]?[0-9]+")


class CodecError(ValueError):
    """Raised when a value cannot be encoded or decoded."""


class Codec(ABC):
    """Encodes values to bytes and decodes bytes to values."""

    @abstractmethod
    def encode(self, value: Any) -> bytes:
        """Encode ``value`` into bytes."""

    @abstractmethod
    def decode(self, data: bytes) -> Any:
        """Decode ``data`` into a value."""


class Bytes(Codec):
    """Passes raw bytes through unchanged."""

    def encode(self, value: Any) -> bytes:
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise CodecError(
                f"Bytes: value to encode is not of type bytes but {type(value).__name__}"
            )
        return bytes(value)

    def decode(self, data: bytes) -> bytes:
        return data


class String(Codec):
    """Encodes text as UTF-8."""

    def encode(self, value: Any) -> bytes:
        if not isinstance(value, str):
            raise CodecError(
                f"String: value to encode is not of type str but {type(value).__name__}"
            )
        return value.encode("utf-8", errors="surrogateescape")

    def decode(self, data: bytes) -> str:
        return bytes(data).decode("utf-8", errors="surrogateescape")


class Int64(Codec):
    """Encodes 64-bit signed integers as their decimal text."""

    def encode(self, value: Any) -> bytes:
        if isinstance(value, bool) or not isinstance(value, int):
            raise CodecError(
                f"Int64: value to encode is not an integer but {type(value).__name__}"
            )
        if not _INT64_MIN <= value <= _INT64_MAX:
            raise CodecError(f"Int64: value {value} is out of the 64-bit range")
        return str(value).encode("ascii")

    def decode(self, data: bytes) -> int:
        try:
            text = bytes(data).decode("ascii")
        except UnicodeDecodeError as exc:
            raise CodecError(f"error parsing data {data!r}: {exc}") from exc
        if not _INT_PATTERN.fullmatch(text):
            raise CodecError(f"error parsing data {data!r}: invalid syntax")
        number = int(text)
        if not _INT64_MIN <= number <= _INT64_MAX:
            raise CodecError(f"error parsing data {data!r}: value out of range")
        return number