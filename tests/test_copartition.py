import pytest

from streamtable.copartition import (
    COPARTITIONING_STRATEGY,
    STRICT_COPARTITIONING_STRATEGY,
    CopartitioningStrategy,
    RebalanceError,
)


def test_name():
    assert COPARTITIONING_STRATEGY.name() == "copartition"


def test_assignment_data_is_empty():
    assert COPARTITIONING_STRATEGY.assignment_data("M1", {"T1": [0]}, 1) is None


def test_strict_flag():
    assert STRICT_COPARTITIONING_STRATEGY == CopartitioningStrategy(True)


@pytest.mark.parametrize(
    "members, topics, use_strict",
    [
        pytest.param({"M1": ["T1"]}, {"T2": [0, 1, 2]}, True, id="inconsistent-topic-members"),
        pytest.param(
            {"M1": ["T1", "T2"]},
            {"T1": [0, 1, 2], "T2": [0, 1]},
            False,
            id="not-copartitioned",
        ),
        pytest.param(
            {"M1": ["T1", "T2"], "M2": ["T2"]},
            {"T1": [0, 1, 2], "T2": [0, 1, 2]},
            True,
            id="inconsistent-members",
        ),
    ],
)
def test_plan_errors(members, topics, use_strict):
    strategy = CopartitioningStrategy(use_strict)
    with pytest.raises(RebalanceError):
        strategy.plan(members, topics)


@pytest.mark.parametrize(
    "members, topics, expected",
    [
        pytest.param(
            {"M1": ["T1", "T2"], "M2": ["T2"]},
            {"T1": [0, 1, 2], "T2": [0, 1, 2]},
            {"M1": {"T1": [0, 1], "T2": [0, 1]}, "M2": {"T2": [2]}},
            id="tolerate-inconsistent-members",
        ),
        pytest.param(
            {"M1": ["T1"]},
            {"T1": [0, 1, 2]},
            {"M1": {"T1": [0, 1, 2]}},
            id="single-member",
        ),
        pytest.param(
            {"M1": ["T1"], "M2": ["T1"]},
            {"T1": [0, 1, 2]},
            {"M1": {"T1": [0, 1]}, "M2": {"T1": [2]}},
            id="multi-member",
        ),
        pytest.param(
            {"M1": ["T1", "T2", "T3"], "M2": ["T2", "T3", "T1"], "M3": ["T2", "T3", "T1"]},
            {"T1": [0, 1, 2, 3, 4, 5], "T2": [0, 1, 2, 3, 4, 5], "T3": [0, 1, 2, 3, 4, 5]},
            {
                "M1": {"T1": [0, 1], "T2": [0, 1], "T3": [0, 1]},
                "M2": {"T1": [2, 3], "T2": [2, 3], "T3": [2, 3]},
                "M3": {"T1": [4, 5], "T2": [4, 5], "T3": [4, 5]},
            },
            id="multi-member-multitopic",
        ),
    ],
)
def test_plan(members, topics, expected):
    assert COPARTITIONING_STRATEGY.plan(members, topics) == expected


def test_plan_sorts_unordered_partitions():
    plan = COPARTITIONING_STRATEGY.plan({"M1": ["T1"]}, {"T1": [2, 0, 1]})
    assert plan == {"M1": {"T1": [0, 1, 2]}}


def test_plan_covers_every_partition_once():
    members = {f"M{i}": ["T1"] for i in range(4)}
    plan = COPARTITIONING_STRATEGY.plan(members, {"T1": list(range(10))})
    assigned = [p for member in plan.values() for p in member["T1"]]
    assert sorted(assigned) == list(range(10))


def test_plan_without_members_is_empty():
    assert COPARTITIONING_STRATEGY.plan({}, {"T1": [0, 1]}) == {}