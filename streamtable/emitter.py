"""Emitting encoded messages into a topic."""

from __future__ import annotations

import threading
from concurrent.futures import Future
from typing import Any, Mapping, Protocol

from streamtable.codec import Codec, CodecError
from streamtable.headers import Headers


class EmitterClosedError(RuntimeError):
    """Raised for messages emitted after the emitter was finished."""

    def __init__(self, message: str = "emitter already closed") -> None:
        super().__init__(message)


class Producer(Protocol):
    """Sends raw messages; each send returns a future of its outcome."""

    def emit(self, topic: str, key: str, value: bytes | None) -> Future: ...

    def emit_with_headers(
        self,
        topic: str,
        key: str,
        value: bytes | None,
        headers: Mapping[str, bytes] | None,
    ) -> Future: ...

    def close(self) -> None: ...


class Emitter:
    """Encodes messages with a codec and emits them into one topic."""

    def __init__(
        self,
        producer: Producer,
        topic: str,
        codec: Codec,
        default_headers: Mapping[str, bytes] | None = None,
    ) -> None:
        self.producer = producer
        self.topic = str(topic)
        self.codec = codec
        self.default_headers = (
            Headers(default_headers) if default_headers is not None else None
        )
        self._cond = threading.Condition()
        self._pending = 0
        self._closed = False

    def _emit_done(self, _future: Future) -> None:
        with self._cond:
            self._pending -= 1
            if self._pending == 0:
                self._cond.notify_all()

    def emit_with_headers(
        self, key: str, msg: Any, headers: Mapping[str, bytes] | None = None
    ) -> Future:
        """Emit ``msg`` under ``key`` with extra headers; return its future.

        Encoding errors are raised at once. After finish the returned future
        holds an EmitterClosedError.
        """
        data: bytes | None = None
        if msg is not None:
            try:
                data = self.codec.encode(msg)
            except Exception as exc:
                raise CodecError(
                    f"Error encoding value for key {key} in topic {self.topic}: {exc}"
                ) from exc

        with self._cond:
            if self._closed:
                future: Future = Future()
                future.set_exception(EmitterClosedError())
                return future
            self._pending += 1

        try:
            if headers is None and self.default_headers is None:
                future = self.producer.emit(self.topic, key, data)
            else:
                merged = Headers(self.default_headers or {}).merged(headers)
                future = self.producer.emit_with_headers(self.topic, key, data, merged)
        except BaseException:
            self._emit_done(Future())
            raise
        future.add_done_callback(self._emit_done)
        return future

    def emit(self, key: str, msg: Any) -> Future:
        """Emit ``msg`` under ``key``; return its future."""
        return self.emit_with_headers(key, msg, None)

    def emit_sync_with_headers(
        self, key: str, msg: Any, headers: Mapping[str, bytes] | None = None
    ) -> None:
        """Emit with headers and wait, raising the error of the send if any."""
        future = self.emit_with_headers(key, msg, headers)
        error = future.exception()
        if error is not None:
            raise error

    def emit_sync(self, key: str, msg: Any) -> None:
        """Emit and wait, raising the error of the send if any."""
        self.emit_sync_with_headers(key, msg, None)

    def finish(self) -> None:
        """Reject new messages, wait for pending ones and close the producer."""
        with self._cond:
            self._closed = True
            self._cond.wait_for(lambda: self._pending == 0)
        self.producer.close()

    def __enter__(self) -> "Emitter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.finish()