"""
Shared scoring context and grouping helpers for constraint functions.

Every constraint is a pure function of a ScoringContext that returns a number
of penalty units (the ConstraintManager applies weights). A context can cover
the whole solution or a subset of its allocations; the solver scores subsets
to get cheap move deltas.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from itertools import combinations
from typing import Callable, Hashable, Iterable, Iterator, Optional, TypeVar

from sectionsched.model import Allocation, Placement, ScheduleSolution

K = TypeVar("K", bound=Hashable)

Placed = tuple[Allocation, Placement]


@dataclass
class ScoringContext:
    """Resolved view of the allocations being scored."""
    solution: ScheduleSolution
    allocations: list[Allocation]
    computer_lab_program: str = "BSIT"
    placed: list[Placed] = field(default_factory=list)

    @classmethod
    def build(
        cls,
        solution: ScheduleSolution,
        allocations: Optional[Iterable[Allocation]] = None,
        computer_lab_program: str = "BSIT",
    ) -> "ScoringContext":
        allocs = list(solution.allocations if allocations is None else allocations)
        placed = []
        for allocation in allocs:
            placement = solution.placement(allocation)
            if placement is not None:
                placed.append((allocation, placement))
        return cls(
            solution=solution,
            allocations=allocs,
            computer_lab_program=computer_lab_program,
            placed=placed,
        )

    @property
    def movable(self) -> Iterator[Allocation]:
        return (a for a in self.allocations if not a.pinned)

    @property
    def movable_placed(self) -> Iterator[Placed]:
        return (p for p in self.placed if not p[0].pinned)

    def placed_by(self, key: Callable[[Allocation, Placement], Optional[K]]) -> dict[K, list[Placed]]:
        """Group placed allocations by key; a None key drops the allocation."""
        return group_by(self.placed, lambda item: key(item[0], item[1]))


# =============================================================================
# Helpers
# =============================================================================

def group_by(items: Iterable, key: Callable) -> dict:
    """Group items into lists by key, skipping items whose key is None."""
    groups: dict = defaultdict(list)
    for item in items:
        k = key(item)
        if k is not None:
            groups[k].append(item)
    return groups


def any_movable(items: Iterable[Placed]) -> bool:
    return any(not allocation.pinned for allocation, _ in items)


def movable_pairs(items: list[Placed]) -> Iterator[tuple[Placed, Placed]]:
    """Unordered pairs in which at least one allocation is movable."""
    for first, second in combinations(items, 2):
        if not (first[0].pinned and second[0].pinned):
            yield first, second


def sort_by_start(items: Iterable[Placed]) -> list[Placed]:
    return sorted(items, key=lambda item: (item[1].start_minutes, item[0].id))


def count_overlaps(items: Iterable[Placed]) -> int:
    """
    Count overlapping pairs among allocations that share a resource.

    Per day, allocations are sorted by start time and each one is compared with
    the following ones until the first that starts at or after its end. A pair
    overlaps when the later one starts before the earlier one ends, or both
    start at the same time.
    """
    overlaps = 0
    by_day = group_by(items, lambda item: item[1].day)

    for day_items in by_day.values():
        if len(day_items) < 2:
            continue
        ordered = sort_by_start(day_items)
        for i, (_, current) in enumerate(ordered):
            for _, following in ordered[i + 1:]:
                if (following.start_minutes < current.end_minutes
                        or following.start_minutes == current.start_minutes):
                    overlaps += 1
                else:
                    break

    return overlaps


def find_overlapping_pairs(items: Iterable[Placed]) -> list[tuple[Placed, Placed]]:
    """Same sweep as count_overlaps, returning the offending pairs."""
    pairs: list[tuple[Placed, Placed]] = []
    by_day = group_by(items, lambda item: item[1].day)

    for day_items in by_day.values():
        ordered = sort_by_start(day_items)
        for i, current in enumerate(ordered):
            for following in ordered[i + 1:]:
                if (following[1].start_minutes < current[1].end_minutes
                        or following[1].start_minutes == current[1].start_minutes):
                    pairs.append((current, following))
                else:
                    break

    return pairs
