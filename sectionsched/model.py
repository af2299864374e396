"""
Planning model: allocations, the hard/soft score and the solution arena.

The solution holds catalog facts (timeslots, classrooms, teachers, sections)
keyed by id, plus the allocations the solver assigns. Allocations reference
facts by id only, so the solver can reassign them freely and equality is
never derived from mutable fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

from .data.models import Classroom, Day, Section, Teacher, minutes_to_time
from .data.timeslots import Timeslot, TimeslotCatalog
from .exceptions import PinnedAllocationError


# =============================================================================
# Score
# =============================================================================

@dataclass(frozen=True, order=True)
class HardSoftScore:
    """
    Hierarchical penalty score.

    Both parts are penalties, so lower is better and comparison is
    lexicographic (hard first). Soft may go negative through rewards.
    """
    hard: int = 0
    soft: int = 0

    @classmethod
    def zero(cls) -> "HardSoftScore":
        return cls(0, 0)

    @property
    def is_feasible(self) -> bool:
        """Hard constraints must be fully satisfied."""
        return self.hard == 0

    def __add__(self, other: "HardSoftScore") -> "HardSoftScore":
        return HardSoftScore(self.hard + other.hard, self.soft + other.soft)

    def __sub__(self, other: "HardSoftScore") -> "HardSoftScore":
        return HardSoftScore(self.hard - other.hard, self.soft - other.soft)

    def __str__(self) -> str:
        return f"{self.hard}hard/{self.soft}soft"


# =============================================================================
# Allocation
# =============================================================================

@dataclass(eq=False)
class Allocation:
    """
    One class session to place.

    Pinned allocations come pre-assigned from published sessions and never
    move; movable allocations start unassigned.
    """
    id: int
    subject_code: str
    subject_name: str
    teacher_id: Optional[str]
    section_id: str
    duration_minutes: int
    is_major: bool = False
    pinned: bool = False

    # Planning variables
    timeslot_id: Optional[int] = None
    classroom_id: Optional[str] = None

    @property
    def is_assigned(self) -> bool:
        return self.timeslot_id is not None and self.classroom_id is not None

    def __str__(self) -> str:
        return f"{self.subject_code} ({self.id})"


@dataclass(frozen=True)
class Placement:
    """Resolved time range of an assigned allocation."""
    day: Day
    start_minutes: int
    end_minutes: int

    def overlaps(self, other: "Placement") -> bool:
        """Same day and intersecting ranges (identical starts always collide)."""
        if self.day != other.day:
            return False
        if self.start_minutes == other.start_minutes:
            return True
        return self.start_minutes < other.end_minutes and other.start_minutes < self.end_minutes

    def chains_with(self, other: "Placement") -> bool:
        """Same day and one ends exactly when the other starts."""
        return self.day == other.day and (
            self.end_minutes == other.start_minutes or other.end_minutes == self.start_minutes
        )

    def __str__(self) -> str:
        return f"{self.day.label} {minutes_to_time(self.start_minutes)}-{minutes_to_time(self.end_minutes)}"


# =============================================================================
# Solution
# =============================================================================

Assignment = tuple[Optional[int], Optional[str]]


class ScheduleSolution:
    """
    Arena of facts plus the allocation entities.

    ``assign`` is the only sanctioned way to change an allocation's timeslot
    or classroom; it refuses to touch pinned allocations.
    """

    def __init__(
        self,
        timeslots: TimeslotCatalog,
        classrooms: Iterable[Classroom],
        teachers: Iterable[Teacher],
        sections: Iterable[Section],
        allocations: Iterable[Allocation],
    ):
        self.timeslots = timeslots
        self.classrooms: dict[str, Classroom] = {c.id: c for c in classrooms}
        self.teachers: dict[str, Teacher] = {t.id: t for t in teachers}
        self.sections: dict[str, Section] = {s.id: s for s in sections}
        self.allocations: list[Allocation] = list(allocations)
        self.score: Optional[HardSoftScore] = None

        self._by_id = {a.id: a for a in self.allocations}

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def get_timeslot(self, allocation: Allocation) -> Optional[Timeslot]:
        return self.timeslots.get(allocation.timeslot_id)

    def get_classroom(self, allocation: Allocation) -> Optional[Classroom]:
        if allocation.classroom_id is None:
            return None
        return self.classrooms.get(allocation.classroom_id)

    def get_section(self, allocation: Allocation) -> Optional[Section]:
        return self.sections.get(allocation.section_id)

    def placement(self, allocation: Allocation) -> Optional[Placement]:
        """Day/start/end of an allocation, or None while it has no timeslot."""
        timeslot = self.timeslots.get(allocation.timeslot_id)
        if timeslot is None:
            return None
        return Placement(
            day=timeslot.day,
            start_minutes=timeslot.start_minutes,
            end_minutes=timeslot.start_minutes + max(allocation.duration_minutes, 0),
        )

    @property
    def classroom_list(self) -> list[Classroom]:
        return list(self.classrooms.values())

    @property
    def movable_allocations(self) -> list[Allocation]:
        return [a for a in self.allocations if not a.pinned]

    @property
    def pinned_allocations(self) -> list[Allocation]:
        return [a for a in self.allocations if a.pinned]

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def assign(
        self,
        allocation: Allocation,
        timeslot_id: Optional[int],
        classroom_id: Optional[str],
    ) -> Assignment:
        """
        Set an allocation's timeslot and classroom.

        Returns:
            The previous (timeslot_id, classroom_id) pair

        Raises:
            PinnedAllocationError: If the allocation is pinned
        """
        if allocation.pinned:
            raise PinnedAllocationError(f"Allocation {allocation} is pinned and cannot be reassigned")
        previous = (allocation.timeslot_id, allocation.classroom_id)
        allocation.timeslot_id = timeslot_id
        allocation.classroom_id = classroom_id
        return previous

    def snapshot(self) -> dict[int, Assignment]:
        """Capture the assignments of all movable allocations."""
        return {a.id: (a.timeslot_id, a.classroom_id) for a in self.allocations if not a.pinned}

    def restore(self, snapshot: dict[int, Assignment]) -> None:
        """Restore movable assignments captured by ``snapshot``."""
        for allocation_id, (timeslot_id, classroom_id) in snapshot.items():
            self.assign(self._by_id[allocation_id], timeslot_id, classroom_id)

    def summary(self) -> dict[str, int]:
        return {
            "timeslots": len(self.timeslots),
            "classrooms": len(self.classrooms),
            "teachers": len(self.teachers),
            "sections": len(self.sections),
            "allocations": len(self.allocations),
            "pinned": len(self.pinned_allocations),
            "movable": len(self.movable_allocations),
        }
