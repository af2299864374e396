"""
Local search moves.

Each move changes the assignment of one or two movable allocations through
``ScheduleSolution.assign`` and returns the move that undoes it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, Optional

from .model import Allocation, ScheduleSolution


class Move(ABC):
    """Base class for moves."""

    name = "move"

    @property
    @abstractmethod
    def allocations(self) -> tuple[Allocation, ...]:
        """Allocations whose assignment the move changes."""

    @abstractmethod
    def target_classrooms(self) -> set[str]:
        """Classroom ids the touched allocations end up in."""

    @abstractmethod
    def apply(self, solution: ScheduleSolution) -> "Move":
        """Apply the move and return its undo move."""

    def is_doable(self) -> bool:
        return all(not a.pinned for a in self.allocations)

    def signature(self) -> tuple:
        return (self.name,) + tuple(a.id for a in self.allocations)


@dataclass
class ChangeTimeslotMove(Move):
    allocation: Allocation
    timeslot_id: Optional[int]

    name = "change_timeslot"

    @property
    def allocations(self) -> tuple[Allocation, ...]:
        return (self.allocation,)

    def target_classrooms(self) -> set[str]:
        return {self.allocation.classroom_id} - {None}

    def is_doable(self) -> bool:
        return super().is_doable() and self.timeslot_id != self.allocation.timeslot_id

    def apply(self, solution: ScheduleSolution) -> Move:
        old_timeslot, _ = solution.assign(self.allocation, self.timeslot_id, self.allocation.classroom_id)
        return ChangeTimeslotMove(self.allocation, old_timeslot)


@dataclass
class ChangeClassroomMove(Move):
    allocation: Allocation
    classroom_id: Optional[str]

    name = "change_classroom"

    @property
    def allocations(self) -> tuple[Allocation, ...]:
        return (self.allocation,)

    def target_classrooms(self) -> set[str]:
        return {self.classroom_id} - {None}

    def is_doable(self) -> bool:
        return super().is_doable() and self.classroom_id != self.allocation.classroom_id

    def apply(self, solution: ScheduleSolution) -> Move:
        _, old_classroom = solution.assign(self.allocation, self.allocation.timeslot_id, self.classroom_id)
        return ChangeClassroomMove(self.allocation, old_classroom)


@dataclass
class ChangeAssignmentMove(Move):
    """Change both timeslot and classroom."""
    allocation: Allocation
    timeslot_id: Optional[int]
    classroom_id: Optional[str]

    name = "change_assignment"

    @property
    def allocations(self) -> tuple[Allocation, ...]:
        return (self.allocation,)

    def target_classrooms(self) -> set[str]:
        return {self.classroom_id} - {None}

    def is_doable(self) -> bool:
        current = (self.allocation.timeslot_id, self.allocation.classroom_id)
        return super().is_doable() and current != (self.timeslot_id, self.classroom_id)

    def apply(self, solution: ScheduleSolution) -> Move:
        old_timeslot, old_classroom = solution.assign(self.allocation, self.timeslot_id, self.classroom_id)
        return ChangeAssignmentMove(self.allocation, old_timeslot, old_classroom)


@dataclass
class SwapAssignmentsMove(Move):
    """Exchange the timeslot and classroom of two allocations."""
    first: Allocation
    second: Allocation

    name = "swap_assignments"

    @property
    def allocations(self) -> tuple[Allocation, ...]:
        return (self.first, self.second)

    def target_classrooms(self) -> set[str]:
        return {self.first.classroom_id, self.second.classroom_id} - {None}

    def is_doable(self) -> bool:
        if not super().is_doable() or self.first is self.second:
            return False
        return (self.first.timeslot_id, self.first.classroom_id) != (
            self.second.timeslot_id, self.second.classroom_id
        )

    def apply(self, solution: ScheduleSolution) -> Move:
        first_assignment = (self.first.timeslot_id, self.first.classroom_id)
        solution.assign(self.first, self.second.timeslot_id, self.second.classroom_id)
        solution.assign(self.second, *first_assignment)
        return SwapAssignmentsMove(self.first, self.second)


# =============================================================================
# Scoring scope
# =============================================================================

def related_allocations(
    solution: ScheduleSolution,
    touched: Iterable[Allocation],
    classroom_ids: Iterable[str] = (),
) -> list[Allocation]:
    """
    Allocations whose score terms can change when ``touched`` move.

    Every constraint groups by teacher, section, classroom or subject, or
    looks at movable allocations only, so scoring this subset before and after
    a move gives the exact score delta.
    """
    touched = list(touched)
    teachers = {a.teacher_id for a in touched if a.teacher_id is not None}
    sections = {a.section_id for a in touched}
    subjects = {a.subject_code for a in touched}
    classrooms = {a.classroom_id for a in touched if a.classroom_id is not None}
    classrooms.update(classroom_ids)

    return [
        a for a in solution.allocations
        if not a.pinned
        or a.teacher_id in teachers
        or a.section_id in sections
        or a.subject_code in subjects
        or a.classroom_id in classrooms
    ]
