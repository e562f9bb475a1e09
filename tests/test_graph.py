import pytest

from streamtable.codec import Int64, String
from streamtable.graph import (
    CrossTable,
    GraphError,
    InputStream,
    InputTable,
    chain_edges,
    define_group,
    edge_topics,
    group_table,
    input_stream,
    input_streams,
    join,
    lookup,
    loop,
    loop_name,
    output,
    persist,
    reset_suffixes,
    set_loop_suffix,
    set_table_suffix,
    strings_to_streams,
    table_name,
    visitor,
)

c = String()


def cb(ctx, msg):
    return None


@pytest.fixture(autouse=True)
def _clean_suffixes():
    reset_suffixes()
    yield
    reset_suffixes()


def test_validate_no_input():
    with pytest.raises(GraphError, match="no input"):
        define_group("group").validate()


def test_validate_ok():
    g = define_group("group", input_stream("input-topic", c, cb))
    assert g.validate() is None
    assert g.input_streams()[0].topic == "input-topic"


@pytest.mark.parametrize(
    "edges, message",
    [
        ((input_stream("input-topic", c, cb), loop(c, cb), loop(c, cb)), "more than one loop"),
        ((input_stream("input-topic", c, cb), persist(c), persist(c)), "more than one group table"),
        ((input_stream(table_name("group"), c, cb), persist(c)), "group table"),
        ((input_stream(loop_name("group"), c, cb), loop(c, cb)), "loop stream"),
        ((input_stream("input-topic", c, cb), join(loop_name("group"), c)), "loop stream"),
        ((input_stream("input-topic", c, cb), output(loop_name("group"), c)), "loop stream"),
        ((input_stream("input-topic", c, cb), lookup(loop_name("group"), c)), "loop stream"),
        ((input_stream("input-topic", c, cb), visitor("v", cb)), "stateless"),
    ],
)
def test_validate_errors(edges, message):
    g = define_group("group", *edges)
    with pytest.raises(GraphError, match=message):
        g.validate()


def test_chain_edges():
    assert chain_edges() == []
    assert chain_edges([], []) == []
    assert chain_edges([join("a", None)], []) == [join("a", None)]
    assert chain_edges([join("a", None)], [join("a", None), join("b", None)]) == [
        join("a", None),
        join("a", None),
        join("b", None),
    ]


def test_codec():
    g = define_group(
        "group",
        input_stream("input-topic", c, cb),
        input_streams(["input-topic2", "input-topic3"], c, cb),
    )
    for topic in ["input-topic", "input-topic2", "input-topic3"]:
        assert g.codec(topic) is c
    assert g.codec("unknown") is None


def test_callback():
    g = define_group(
        "group",
        input_stream("input-topic", c, cb),
        input_streams(["input-topic2", "input-topic3"], c, cb),
    )
    for topic in ["input-topic", "input-topic2", "input-topic3"]:
        assert g.callback(topic) is cb


def test_getters():
    g = define_group(
        "group",
        input_stream("t1", c, cb),
        input_stream("t2", c, cb),
        output("t3", c),
        output("t4", c),
        output("t5", c),
        input_streams(["t6", "t7"], c, cb),
    )
    assert g.group() == "group"
    assert len(g.input_streams()) == 4
    assert len(g.output_streams()) == 3
    assert g.loop_stream() is None

    g = define_group(
        "group",
        input_stream("t1", c, cb),
        input_stream("t2", c, cb),
        output("t3", c),
        output("t4", c),
        output("t5", c),
        loop(c, cb),
    )
    assert len(g.input_streams()) == 2
    assert len(g.output_streams()) == 3
    assert g.group_table() is None
    assert g.loop_stream().topic == loop_name("group")

    g = define_group(
        "group",
        input_stream("t1", c, cb),
        input_stream("t2", c, cb),
        output("t3", c),
        output("t4", c),
        output("t5", c),
        loop(c, cb),
        join("a1", c),
        join("a2", c),
        join("a3", c),
        join("a4", c),
        lookup("b1", c),
        lookup("b2", c),
        persist(c),
    )
    assert len(g.input_streams()) == 2
    assert len(g.output_streams()) == 3
    assert len(g.joint_tables()) == 4
    assert len(g.lookup_tables()) == 2
    assert g.group_table().topic == table_name("group")


def test_inputs_edge():
    topics = input_streams(["a", "b", "c"], c, cb)
    assert topics.topic == "a,b,c"
    assert "a,b,c/String" in str(topics)
    assert topics.codec is c


def test_inputs_empty_is_none_and_ignored():
    assert input_streams([], c, cb) is None
    g = define_group("group", input_streams([], c, cb), input_stream("x", c, cb))
    assert edge_topics(g.input_streams()) == ["x"]


def test_update_suffixes():
    set_loop_suffix("-loop1")
    set_table_suffix("-table1")
    g = define_group("group", input_stream("input-topic", c, cb), persist(c), persist(c))
    assert table_name(g.group()) == "group-table1"
    assert loop_name(g.group()) == "group-loop1"
    assert g.group_table().topic == "group-table1"

    reset_suffixes()
    assert table_name(g.group()) == "group-table"
    assert loop_name(g.group()) == "group-loop"


def test_strings_to_streams():
    streams = strings_to_streams("input1", "input2")
    assert streams == ["input1", "input2"]


def test_group_table_name():
    assert group_table("g") == "g-table"


def test_empty_input_topic_rejected():
    with pytest.raises(GraphError, match="cannot be empty"):
        define_group("group", input_stream("", c, cb))


def test_duplicate_input_rejected():
    with pytest.raises(GraphError, match="already exists"):
        define_group("group", input_stream("a", c, cb), input_stream("a", c, cb))


def test_output_and_joint_lookup():
    i64 = Int64()
    g = define_group(
        "group",
        input_stream("in", c, cb),
        output("out", i64),
        join("j", c),
        lookup("l", c),
    )
    assert g.is_output_topic("out")
    assert not g.is_output_topic("in")
    assert g.joint("j")
    assert not g.joint("l")
    assert g.codec("out") is i64


def test_inputs_and_copartitioned_order():
    g = define_group(
        "group",
        lookup("l", c),
        join("j", c),
        input_stream("in", c, cb),
    )
    assert edge_topics(g.inputs()) == ["in", "j", "l"]
    assert edge_topics(g.copartitioned()) == ["in", "j"]
    assert isinstance(g.inputs()[1], InputTable)
    assert isinstance(g.inputs()[2], CrossTable)


def test_all_edges():
    g = define_group(
        "group",
        input_stream("in", c, cb),
        output("out", c),
        loop(c, cb),
        persist(c),
        visitor("reset", cb),
        join("j", c),
        lookup("l", c),
    )
    assert edge_topics(g.all_edges()) == [
        "j",
        "l",
        "in",
        "out",
        "group-loop",
        "group-table",
        "reset",
    ]
    assert g.validate() is None


def test_edge_strings():
    assert str(visitor("reset", cb)) == "visitor reset"
    assert str(join("t", c)) == "t/String"
    assert str(input_stream("s", None, cb)) == "s/None"
    assert input_stream("s", c, cb) == InputStream("s", c, cb)


def test_loop_callback_registered():
    g = define_group("group", input_stream("in", c, cb), loop(c, cb))
    assert g.callback("group-loop") is cb
    assert g.codec("group-loop") is c