"""Rebalance strategy that keeps co-partitioned topics together."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Mapping, Sequence

Plan = dict[str, dict[str, list[int]]]


class RebalanceError(RuntimeError):
    """Raised when no valid assignment plan can be made."""


@dataclass(frozen=True)
class CopartitioningStrategy:
    """Assigns the same partitions of every topic to the same member.

    With ``fail_on_inconsistent_topics`` set, members requesting different
    sets of topics cause an error instead of being tolerated.
    """

    fail_on_inconsistent_topics: bool = False

    def name(self) -> str:
        return "copartition"

    def plan(
        self,
        members: Mapping[str, Sequence[str]],
        topics: Mapping[str, Sequence[int]],
    ) -> Plan:
        """Plan the assignment of topic partitions to members.

        ``members`` maps member ids to the topics they request, ``topics`` maps
        topic names to their partitions.
        """
        all_partitions: Sequence[int] = []
        all_topics: list[str] = []
        for topic, partitions in topics.items():
            all_topics.append(topic)
            if not all_partitions:
                all_partitions = partitions
            elif not _same_set(all_partitions, partitions):
                raise RebalanceError(
                    "Error balancing. Not all topics are copartitioned. "
                    "All topics need to have the same number of partitions: "
                    f"{dict(topics)!r}"
                )

        for member_topics in members.values():
            if self.fail_on_inconsistent_topics and not _same_set(
                all_topics, member_topics
            ):
                raise RebalanceError(
                    "Error balancing. Not all members request the same list of "
                    "topics. A group-name clash might be the reason: "
                    f"{dict(members)!r}"
                )

        member_ids = sorted(members)
        partitions = sorted(all_partitions)
        plan: Plan = {}
        if not member_ids:
            return plan

        step = len(partitions) / len(member_ids)
        for idx, member_id in enumerate(member_ids):
            low = math.floor(idx * step + 0.5)
            high = math.floor((idx + 1) * step + 0.5)
            assigned = partitions[low:high]
            if not assigned:
                continue
            member_plan = plan.setdefault(member_id, {})
            for topic in members[member_id]:
                member_plan.setdefault(topic, []).extend(assigned)
        return plan

    def assignment_data(
        self, member_id: str, topics: Mapping[str, Sequence[int]], generation_id: int
    ) -> None:
        """This strategy carries no assignment data."""
        return None


def _same_set(a: Sequence, b: Sequence) -> bool:
    if len(a) != len(b):
        return False
    known = set(a)
    return all(item in known for item in b)


COPARTITIONING_STRATEGY = CopartitioningStrategy()
STRICT_COPARTITIONING_STRATEGY = CopartitioningStrategy(fail_on_inconsistent_topics=True)