# streamtable

Building blocks for stateful stream processing on partitioned message logs.
A processor group consumes a set of copartitioned input streams, keeps its
state in a group table, and may emit into output streams, loop messages back
to itself, and read joined or looked-up tables. This package provides the
pieces to describe such a group and to handle one message in it: group graphs,
codecs, headers, an emitter, the callback context, a rebalance strategy,
configuration, a table iterator and a prefixing logger.

## Installation

```
pip install streamtable
```

## Defining a group (`streamtable.graph`)

```python
from streamtable.codec import String, Int64
from streamtable.graph import define_group, input_stream, persist, output

def count(ctx, msg):
    counter = ctx.value() or 0
    ctx.set_value(counter + 1)

graph = define_group(
    "example-group",
    input_stream("example-stream", String(), count),
    persist(Int64()),
    output("example-output", String()),
)
graph.validate()                  # raises GraphError on an invalid graph
print(graph.group_table().topic)  # "example-group-table"
```

Edges are made with `input_stream`, `input_streams` (several topics sharing a
codec and callback; `None` for an empty list), `loop`, `join`, `lookup`,
`persist`, `output` and `visitor`. `define_group` ignores `None` edges and
raises `GraphError` for an empty input topic or a topic consumed twice.
`validate()` rejects more than one loop or group table, a graph without input
streams, direct use of the group's table or loop topic, and visitors without a
group table.

`GroupGraph` answers `group()`, `input_streams()`, `joint_tables()`,
`lookup_tables()`, `loop_stream()`, `group_table()`, `output_streams()`,
`all_edges()`, `inputs()`, `copartitioned()`, `codec(topic)`,
`callback(topic)`, `joint(topic)` and `is_output_topic(topic)`.

The table and loop topic suffixes default to `-table` and `-loop`. Change them
with `set_table_suffix` and `set_loop_suffix`, restore them with
`reset_suffixes`; `table_name`, `loop_name` and `group_table` build the names.
`strings_to_streams`, `chain_edges` and `edge_topics` are small helpers.

## Codecs (`streamtable.codec`)

`Bytes`, `String` and `Int64` implement the `Codec` interface with
`encode(value)` and `decode(data)`. They raise `CodecError` (a `ValueError`)
for a value of the wrong type; `Int64` also rejects values outside the signed
64-bit range and data that is not a decimal integer.

## Headers (`streamtable.headers`)

`Headers` is a `dict` from `str` to `bytes`. `merged(*others)` returns a new
`Headers` in which later keys win, or `None` when the result is empty.
`to_records()` and `headers_from_records()` convert to and from lists of
`RecordHeader`.

## Emitting (`streamtable.emitter`)

```python
from streamtable.codec import String
from streamtable.emitter import Emitter

with Emitter(producer, "example-stream", String(), None) as emitter:
    emitter.emit_sync("some-key", "some-value")
```

The producer passed in does the sending: it needs `emit(topic, key, value)`
and `emit_with_headers(topic, key, value, headers)`, each returning a
`concurrent.futures.Future`, and `close()`. `emit` and `emit_with_headers`
return that future; `emit_sync` and `emit_sync_with_headers` wait on it and
raise its error. Encoding errors are raised at once as `CodecError`.
`finish()` (also called on leaving the `with` block) waits for pending
messages and closes the producer; after it, the future of every emit holds an
`EmitterClosedError`.

## Callback context (`streamtable.context`)

`CallbackContext(graph, msg, emitter=..., commit=..., ...)` is what a callback
receives for a `Message`. It offers `key()`, `topic()`, `partition()`,
`offset()`, `timestamp()`, `headers()`, `group()`, `context()`, `value()`,
`set_value()`, `delete()`, `join()`, `lookup()`, `emit()`, `loopback()`,
`fail()` and `defer_commit()`. Misuse, such as emitting to a topic that is not
an output or reading state in a stateless group, raises `ContextError` through
`fail()`.

The caller brackets a callback with `start()` and `finish()`. Once the
callback has finished and every emit and deferred commit has completed, the
`commit` callable is run, or the `async_failer` with the collected errors if
any failed; `wait(timeout)` blocks until then.

## Rebalancing (`streamtable.copartition`)

`CopartitioningStrategy().plan(members, topics)` assigns the same partition
ranges of every topic to each member, so copartitioned topics are consumed
together. `members` maps member ids to requested topics, `topics` maps topics
to partitions. It raises `RebalanceError` when topics have different
partitions. `CopartitioningStrategy(fail_on_inconsistent_topics=True)` (also
available as `STRICT_COPARTITIONING_STRATEGY`) additionally rejects members
asking for different topic sets.

## Configuration (`streamtable.config`)

`default_config()` returns a `Config` with `ConsumerConfig` and
`ProducerConfig` defaults (snappy compression, wait-for-local acks, newest
initial offset, the copartitioning strategy). `replace_global_config(config)`
installs a copy for later use and raises `ValueError` for `None`;
`global_config()` returns a copy of it.

## Other helpers

- `streamtable.iterator.Iterator` wraps a storage iterator and decodes values
  with a codec; iterating over it yields `(key, value)` pairs and raises the
  storage's error at the end, if any.
- `streamtable.logger` provides `StdLogger` with stacked prefixes
  (`[a > b] `), `default_logger()`, `debug(enabled)` and `wrap_logger()`.
- `streamtable.errors` provides `ProcessingError`, `SetupError`,
  `VisitAbortedError`, `TopicNotFoundError` and `user_stacktrace()`.

## What this package does not do

It does not connect to a message broker. There is no producer, consumer,
topic manager, processor runner, view or local table storage here: the
emitter, context and iterator work with objects you supply that do the
sending and storing. The package has no command-line interface.