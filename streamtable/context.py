"""The context handed to processor callbacks for each consumed message."""

from __future__ import annotations

import threading
from concurrent.futures import Future
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Mapping, Protocol

from streamtable.graph import GroupGraph, loop_name, table_name
from streamtable.headers import Headers, RecordHeader, headers_from_records

EmitFunc = Callable[[str, str, "bytes | None", "Mapping[str, bytes] | None"], Future]

_STATELESS = "Cannot access state in stateless processor"


class ContextError(RuntimeError):
    """Raised when a callback uses its context incorrectly or an operation fails."""


class PartitionTable(Protocol):
    """The local storage of one partition of a table."""

    def get(self, key: str) -> bytes | None: ...

    def set(self, key: str, value: bytes) -> None: ...

    def delete(self, key: str) -> None: ...

    def set_offset(self, offset: int) -> None: ...

    def track_message_write(self, ctx: Any, size: int) -> None: ...


class TableView(Protocol):
    """A view over a whole table returning decoded values."""

    def get(self, key: str) -> Any: ...


@dataclass
class Message:
    """A consumed message."""

    key: str = ""
    timestamp: datetime | None = None
    topic: str = ""
    offset: int = 0
    partition: int = 0
    headers: list[RecordHeader] = field(default_factory=list)
    value: bytes | None = None


@dataclass
class _Counters:
    emits: int = 0
    dones: int = 0
    stores: int = 0


def _future_error(future: Future) -> BaseException | None:
    if future.cancelled():
        return ContextError("emit cancelled")
    return future.exception()


class CallbackContext:
    """Gives a callback access to its message, the group table and emitting.

    The input message is committed once the callback finished and every
    emit (and every deferred commit) completed without error. If one of them
    failed, the asynchronous failer is called instead.
    """

    def __init__(
        self,
        graph: GroupGraph,
        msg: Message | None = None,
        *,
        emitter: EmitFunc | None = None,
        commit: Callable[[], None] | None = None,
        async_failer: Callable[[BaseException], None] | None = None,
        sync_failer: Callable[[BaseException], None] | None = None,
        table: PartitionTable | None = None,
        pviews: Mapping[str, PartitionTable] | None = None,
        views: Mapping[str, TableView] | None = None,
        track_output_stats: Callable[[Any, str, int], None] | None = None,
        emitter_default_headers: Mapping[str, bytes] | None = None,
        run_context: Any = None,
    ) -> None:
        self.graph = graph
        self.msg = msg
        self._emitter = emitter
        self._commit = commit
        self._async_failer = async_failer
        self._sync_failer = sync_failer
        self.table = table
        self.pviews = pviews
        self.views = views
        self._track_output_stats = track_output_stats
        self._default_headers = Headers(emitter_default_headers or {})
        self._run_context = run_context
        self._headers: Headers | None = None

        self.counters = _Counters()
        self._errors: list[BaseException] = []
        self._done = False
        self._lock = threading.RLock()
        self._wg = threading.Condition()
        self._pending = 0

    # message accessors

    def _message(self) -> Message:
        if self.msg is None:
            raise ContextError("context has no message")
        return self.msg

    def topic(self) -> str:
        return self._message().topic

    def key(self) -> str:
        return self._message().key

    def partition(self) -> int:
        return self._message().partition

    def offset(self) -> int:
        return self._message().offset

    def group(self) -> str:
        return self.graph.group()

    def timestamp(self) -> datetime | None:
        return self._message().timestamp

    def headers(self) -> Headers:
        """Return the headers of the input message, converted on first use."""
        if self._headers is None:
            self._headers = headers_from_records(self._message().headers)
        return self._headers

    def context(self) -> Any:
        """Return the context the processor was started with."""
        return self._run_context

    @property
    def errors(self) -> list[BaseException]:
        """The asynchronous errors collected so far."""
        with self._lock:
            return list(self._errors)

    def _track(self, topic: str, size: int) -> None:
        if self._track_output_stats is not None:
            self._track_output_stats(self._run_context, topic, size)

    # group table

    def value(self) -> Any:
        """Return the decoded value of the message key in the group table."""
        if self.table is None or self.graph.group_table() is None:
            self.fail(_STATELESS)
        try:
            data = self.table.get(self.key())
        except Exception as exc:
            self.fail(ContextError(f"error reading value: {exc}"))
        if data is None:
            return None
        try:
            return self.graph.group_table().codec.decode(data)
        except Exception as exc:
            self.fail(ContextError(f"error decoding value: {exc}"))

    def set_value(self, value: Any, headers: Mapping[str, bytes] | None = None) -> None:
        """Store ``value`` for the message key and send it to the table topic."""
        edge = self.graph.group_table()
        if edge is None or self.table is None:
            self.fail(_STATELESS)
        if value is None:
            self.fail("cannot set nil as value")
        try:
            encoded = edge.codec.encode(value)
        except Exception as exc:
            self.fail(ContextError(f"error encoding value: {exc}"))

        key = self.key()
        with self._lock:
            self.counters.stores += 1
        try:
            self.table.set(key, encoded)
        except Exception as exc:
            self.fail(ContextError(f"error storing value: {exc}"))

        table = self.table
        with self._lock:
            self.counters.emits += 1
        future = self._send(edge.topic, key, encoded, headers)

        def on_done(f: Future) -> None:
            error = _future_error(f)
            if error is None:
                offset = getattr(f.result(), "offset", 0)
                if offset:
                    try:
                        table.set_offset(offset)
                    except Exception as exc:
                        error = exc
            self._emit_done(error)

        future.add_done_callback(on_done)
        self._track(edge.topic, len(encoded))
        table.track_message_write(self._run_context, len(encoded))

    def delete(self, headers: Mapping[str, bytes] | None = None) -> None:
        """Delete the message key from the group table and its topic."""
        edge = self.graph.group_table()
        if edge is None or self.table is None:
            self.fail(_STATELESS)
        key = self.key()
        with self._lock:
            self.counters.stores += 1
        try:
            self.table.delete(key)
        except Exception as exc:
            self.fail(ContextError(f"error deleting key ({key}) from storage: {exc}"))
        with self._lock:
            self.counters.emits += 1
        future = self._send(edge.topic, key, None, headers)
        future.add_done_callback(lambda f: self._emit_done(_future_error(f)))

    # other tables

    def join(self, table: str) -> Any:
        """Return the value of the message key in a joined table."""
        if self.pviews is None or table not in self.pviews:
            self.fail(f"table {table} not subscribed")
        key = self.key()
        try:
            data = self.pviews[table].get(key)
        except Exception as exc:
            self.fail(ContextError(f"error getting key {key} of table {table}: {exc}"))
        if data is None:
            return None
        codec = self.graph.codec(table)
        if codec is None:
            self.fail(f"no codec for table {table}")
        try:
            return codec.decode(data)
        except Exception as exc:
            self.fail(ContextError(f"error decoding value key {key} of table {table}: {exc}"))

    def lookup(self, table: str, key: str) -> Any:
        """Return the value of ``key`` in a looked-up table."""
        if self.views is None or table not in self.views:
            self.fail(f"topic {table} not subscribed")
        try:
            return self.views[table].get(key)
        except Exception as exc:
            self.fail(ContextError(f"error getting key {key} of table {table}: {exc}"))

    # emitting

    def emit(
        self,
        topic: str,
        key: str,
        value: Any,
        headers: Mapping[str, bytes] | None = None,
    ) -> None:
        """Encode ``value`` and send it asynchronously to an output topic."""
        topic = str(topic)
        group = self.graph.group()
        if topic == "":
            self.fail("cannot emit to empty topic")
        if topic == loop_name(group):
            self.fail("cannot emit to loop topic (use Loopback instead)")
        if topic == table_name(group):
            self.fail("cannot emit to table topic (use SetValue instead)")
        if not self.graph.is_output_topic(topic):
            self.fail(
                f"topic {topic} is not configured for output. "
                "Did you specify output(..) when defining the processor?"
            )
        codec = self.graph.codec(topic)
        if codec is None:
            self.fail(f"no codec for topic {topic}")
        data = None
        if value is not None:
            try:
                data = codec.encode(value)
            except Exception as exc:
                self.fail(ContextError(f"error encoding message for topic {topic}: {exc}"))
        self._emit(topic, key, data, headers)

    def loopback(
        self, key: str, value: Any, headers: Mapping[str, bytes] | None = None
    ) -> None:
        """Send ``value`` to another key of the group through the loop topic."""
        edge = self.graph.loop_stream()
        if edge is None:
            self.fail("no loop topic configured")
        try:
            data = edge.codec.encode(value)
        except Exception as exc:
            self.fail(ContextError(f"error encoding message for key {key}: {exc}"))
        self._emit(edge.topic, key, data, headers)

    def _send(
        self,
        topic: str,
        key: str,
        value: bytes | None,
        headers: Mapping[str, bytes] | None,
    ) -> Future:
        if self._emitter is None:
            raise ContextError("no emitter configured")
        return self._emitter(topic, key, value, headers)

    def _emit(
        self,
        topic: str,
        key: str,
        value: bytes | None,
        headers: Mapping[str, bytes] | None,
    ) -> None:
        with self._lock:
            self.counters.emits += 1
        merged = self._default_headers.merged(headers)
        future = self._send(topic, key, value, merged)

        def on_done(f: Future) -> None:
            error = _future_error(f)
            if error is not None:
                error = ContextError(f"error emitting to {topic}: {error}")
            self._emit_done(error)

        future.add_done_callback(on_done)
        self._track(topic, len(value or b""))

    # commit handling

    def fail(self, error: BaseException | str) -> None:
        """Stop the callback by raising ``error``, after telling the failer."""
        if not isinstance(error, BaseException):
            error = ContextError(str(error))
        if self._sync_failer is not None:
            self._sync_failer(error)
        raise error

    def defer_commit(self) -> Callable[..., None]:
        """Hold back the commit until the returned function has been called.

        The function takes an optional error; only its first call counts.
        """
        with self._lock:
            self.counters.emits += 1
        called = threading.Event()
        guard = threading.Lock()

        def done(error: BaseException | None = None) -> None:
            with guard:
                if called.is_set():
                    return
                called.set()
            self._emit_done(error)

        return done

    def start(self) -> None:
        """Mark the context as in flight; call before any emit."""
        with self._wg:
            self._pending += 1

    def finish(self, error: BaseException | None = None) -> None:
        """Mark the callback as returned; commits once all emits are done."""
        with self._lock:
            self._done = True
            self._try_commit(error)

    def wait(self, timeout: float | None = None) -> bool:
        """Wait until the context committed or failed; False on timeout."""
        with self._wg:
            return self._wg.wait_for(lambda: self._pending <= 0, timeout)

    def _emit_done(self, error: BaseException | None) -> None:
        with self._lock:
            self.counters.dones += 1
            self._try_commit(error)

    def _try_commit(self, error: BaseException | None) -> None:
        if error is not None:
            self._errors.append(error)
        if not self._done or self.counters.emits > self.counters.dones:
            return
        if self._errors:
            combined = (
                self._errors[0]
                if len(self._errors) == 1
                else ContextError("; ".join(str(e) for e in self._errors))
            )
            if self._async_failer is not None:
                self._async_failer(combined)
        elif self._commit is not None:
            self._commit()
        self._mark_done()

    def _mark_done(self) -> None:
        with self._wg:
            self._pending -= 1
            if self._pending <= 0:
                self._wg.notify_all()