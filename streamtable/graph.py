"""Group graphs: the topics a processor group consumes from and produces to."""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import chain
from typing import Any, Callable, Iterable, Iterator, Sequence

from streamtable.codec import Codec

ProcessCallback = Callable[[Any, Any], None]

_DEFAULT_TABLE_SUFFIX = "-table"
_DEFAULT_LOOP_SUFFIX = "-loop"


@dataclass
class _Suffixes:
    table: str = _DEFAULT_TABLE_SUFFIX
    loop: str = _DEFAULT_LOOP_SUFFIX


_suffixes = _Suffixes()


class GraphError(ValueError):
    """Raised when a group graph is defined or used incorrectly."""


def set_table_suffix(suffix: str) -> None:
    """Change the suffix appended to a group name to form its table topic."""
    _suffixes.table = suffix


def set_loop_suffix(suffix: str) -> None:
    """Change the suffix appended to a group name to form its loop topic."""
    _suffixes.loop = suffix


def reset_suffixes() -> None:
    """Restore the default table and loop suffixes."""
    _suffixes.table = _DEFAULT_TABLE_SUFFIX
    _suffixes.loop = _DEFAULT_LOOP_SUFFIX


def table_name(group: str) -> str:
    """Return the name of the table topic of ``group``."""
    return f"{group}{_suffixes.table}"


def loop_name(group: str) -> str:
    """Return the name of the loop topic of ``group``."""
    return f"{group}{_suffixes.loop}"


def group_table(group: str) -> str:
    """Return the name of the group table of ``group``."""
    return table_name(group)


def strings_to_streams(*names: str) -> list[str]:
    """Return the given names as a list of stream names."""
    return [str(name) for name in names]


def _codec_name(codec: Codec | None) -> str:
    return "None" if codec is None else type(codec).__name__


class Edge:
    """A topic together with the codec of its messages."""

    topic: str
    codec: Codec | None

    def __str__(self) -> str:
        return f"{self.topic}/{_codec_name(self.codec)}"


@dataclass
class InputStream(Edge):
    """An input stream consumed with a callback."""

    topic: str
    codec: Codec | None
    callback: ProcessCallback | None


@dataclass
class InputStreams(Edge):
    """Several input streams sharing one codec and callback."""

    streams: tuple[InputStream, ...] = field(default_factory=tuple)

    @property
    def topic(self) -> str:  # type: ignore[override]
        return ",".join(stream.topic for stream in self.streams)

    @property
    def codec(self) -> Codec | None:  # type: ignore[override]
        return self.streams[0].codec if self.streams else None

    def __iter__(self) -> Iterator[InputStream]:
        return iter(self.streams)

    def __len__(self) -> int:
        return len(self.streams)

    def __str__(self) -> str:
        if not self.streams:
            return "empty input streams"
        return f"input streams: {self.topic}/{_codec_name(self.codec)}"


@dataclass
class LoopStream(Edge):
    """The loopback stream of a group; its topic is set from the group name."""

    topic: str
    codec: Codec | None
    callback: ProcessCallback | None

    def set_group(self, group: str) -> None:
        self.topic = loop_name(group)


@dataclass
class InputTable(Edge):
    """A co-partitioned table joined by the group."""

    topic: str
    codec: Codec | None


@dataclass
class CrossTable(Edge):
    """A table looked up by the group; need not be co-partitioned."""

    topic: str
    codec: Codec | None


@dataclass
class GroupTableEdge(Edge):
    """The group's own table; its topic is set from the group name."""

    topic: str
    codec: Codec | None

    def set_group(self, group: str) -> None:
        self.topic = group_table(group)


@dataclass
class OutputStream(Edge):
    """A stream the group may emit into."""

    topic: str
    codec: Codec | None


@dataclass
class VisitorEdge(Edge):
    """A named visitor that iterates over the group's state."""

    topic: str
    callback: ProcessCallback | None
    codec: Codec | None = None

    def __str__(self) -> str:
        return f"visitor {self.topic}"


def chain_edges(*edge_lists: Iterable[Edge]) -> list[Edge]:
    """Concatenate lists of edges into one list."""
    return list(chain.from_iterable(edge_lists))


def edge_topics(edges: Iterable[Edge]) -> list[str]:
    """Return the topic names of ``edges``."""
    return [edge.topic for edge in edges]


def input_stream(topic: str, codec: Codec | None, callback: ProcessCallback) -> InputStream:
    """Define an input stream consumed with ``callback``."""
    return InputStream(str(topic), codec, callback)


def input_streams(
    topics: Sequence[str], codec: Codec | None, callback: ProcessCallback
) -> InputStreams | None:
    """Define several input streams sharing one codec and callback.

    Returns None when ``topics`` is empty.
    """
    if not topics:
        return None
    return InputStreams(tuple(input_stream(t, codec, callback) for t in topics))


def visitor(name: str, callback: ProcessCallback) -> VisitorEdge:
    """Define a visitor that can iterate over the whole group state."""
    return VisitorEdge(name, callback)


def loop(codec: Codec | None, callback: ProcessCallback) -> LoopStream:
    """Define the loopback stream of the group."""
    return LoopStream("", codec, callback)


def join(topic: str, codec: Codec | None) -> InputTable:
    """Define a co-partitioned table to join."""
    return InputTable(str(topic), codec)


def lookup(topic: str, codec: Codec | None) -> CrossTable:
    """Define a table to look up values in."""
    return CrossTable(str(topic), codec)


def persist(codec: Codec | None) -> GroupTableEdge:
    """Define the group table with the codec of its values."""
    return GroupTableEdge("", codec)


def output(topic: str, codec: Codec | None) -> OutputStream:
    """Define an output stream."""
    return OutputStream(str(topic), codec)


class GroupGraph:
    """The specification of a processor group and all the topics it uses."""

    def __init__(self, group: str) -> None:
        self._group = str(group)
        self._input_tables: list[InputTable] = []
        self._cross_tables: list[CrossTable] = []
        self._input_streams: list[InputStream] = []
        self._output_streams: list[OutputStream] = []
        self._loop_stream: list[LoopStream] = []
        self._group_table: list[GroupTableEdge] = []
        self._visitors: list[VisitorEdge] = []
        self._codecs: dict[str, Codec | None] = {}
        self._callbacks: dict[str, ProcessCallback | None] = {}
        self._output_topics: set[str] = set()
        self._joint: set[str] = set()

    def group(self) -> str:
        return self._group

    def input_streams(self) -> list[Edge]:
        return list(self._input_streams)

    def joint_tables(self) -> list[Edge]:
        return list(self._input_tables)

    def lookup_tables(self) -> list[Edge]:
        return list(self._cross_tables)

    def loop_stream(self) -> LoopStream | None:
        return self._loop_stream[0] if self._loop_stream else None

    def group_table(self) -> GroupTableEdge | None:
        return self._group_table[0] if self._group_table else None

    def output_streams(self) -> list[Edge]:
        return list(self._output_streams)

    def all_edges(self) -> list[Edge]:
        """Return every edge of the graph."""
        return chain_edges(
            self._input_tables,
            self._cross_tables,
            self._input_streams,
            self._output_streams,
            self._loop_stream,
            self._group_table,
            self._visitors,
        )

    def is_output_topic(self, topic: str) -> bool:
        return topic in self._output_topics

    def inputs(self) -> list[Edge]:
        """Return all input streams and tables."""
        return chain_edges(self._input_streams, self._input_tables, self._cross_tables)

    def copartitioned(self) -> list[Edge]:
        """Return the input streams and joined tables."""
        return chain_edges(self._input_streams, self._input_tables)

    def codec(self, topic: str) -> Codec | None:
        return self._codecs.get(topic)

    def callback(self, topic: str) -> ProcessCallback | None:
        return self._callbacks.get(topic)

    def joint(self, topic: str) -> bool:
        return topic in self._joint

    def _add_input(self, stream: InputStream) -> None:
        if not stream.topic:
            raise GraphError("Input topic cannot be empty. This will not work.")
        if stream.topic in self._callbacks:
            raise GraphError(
                f"Callback for topic {stream.topic} already exists. "
                "It is illegal to consume a topic twice"
            )
        self._codecs[stream.topic] = stream.codec
        self._callbacks[stream.topic] = stream.callback
        self._input_streams.append(stream)

    def _add(self, edge: Edge | None) -> None:
        if isinstance(edge, InputStreams):
            for stream in edge:
                self._add_input(stream)
        elif isinstance(edge, InputStream):
            self._add_input(edge)
        elif isinstance(edge, LoopStream):
            edge.set_group(self._group)
            self._codecs[edge.topic] = edge.codec
            self._callbacks[edge.topic] = edge.callback
            self._loop_stream.append(edge)
        elif isinstance(edge, OutputStream):
            self._codecs[edge.topic] = edge.codec
            self._output_streams.append(edge)
            self._output_topics.add(edge.topic)
        elif isinstance(edge, InputTable):
            self._codecs[edge.topic] = edge.codec
            self._input_tables.append(edge)
            self._joint.add(edge.topic)
        elif isinstance(edge, CrossTable):
            self._codecs[edge.topic] = edge.codec
            self._cross_tables.append(edge)
        elif isinstance(edge, GroupTableEdge):
            edge.set_group(self._group)
            self._codecs[edge.topic] = edge.codec
            self._group_table.append(edge)
        elif isinstance(edge, VisitorEdge):
            self._visitors.append(edge)

    def validate(self) -> None:
        """Check the graph, raising GraphError if it is invalid."""
        if len(self._loop_stream) > 1:
            raise GraphError("more than one loop stream in group graph")
        if len(self._group_table) > 1:
            raise GraphError("more than one group table in group graph")
        if not self._input_streams:
            raise GraphError("no input stream in group graph")
        loop_topic = loop_name(self._group)
        table_topic = table_name(self._group)
        for edge in chain_edges(
            self._output_streams,
            self._input_streams,
            self._input_tables,
            self._cross_tables,
        ):
            if edge.topic == loop_topic:
                raise GraphError("should not directly use loop stream")
            if edge.topic == table_topic:
                raise GraphError("should not directly use group table")
        if self._visitors and not self._group_table:
            raise GraphError("visitors cannot be used in a stateless processor")


def define_group(group: str, *edges: Edge | None) -> GroupGraph:
    """Create a group graph named ``group`` from ``edges``; None edges are ignored."""
    graph = GroupGraph(group)
    for edge in edges:
        graph._add(edge)
    return graph