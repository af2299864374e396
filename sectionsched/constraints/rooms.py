"""
Room suitability constraints for timetabling.

This module provides:
- Room-type requirements (computer lab, general lab, lecture room)
- Classroom consistency for the same subject and teacher
- Capacity utilization (soft)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from sectionsched.data.models import is_lab_room_type, is_lecture_room_type

from .core import ScoringContext, any_movable, movable_pairs

if TYPE_CHECKING:
    from sectionsched.data.models import Classroom, Section
    from sectionsched.model import Allocation


# Utilization bands as fractions of capacity
UTILIZATION_IDEAL = (0.5, 0.9)
UTILIZATION_TOLERABLE = (0.3, 1.0)
ZERO_CAPACITY_LEVEL = 3


# =============================================================================
# Room Suitability
# =============================================================================

@dataclass
class RoomSuitability:
    """Suitability analysis for a classroom-allocation pair."""
    classroom_id: str
    is_valid: bool
    reasons: list[str] = field(default_factory=list)


def _is_computer_lab_subject(allocation: Allocation, section: Optional[Section], program: str) -> bool:
    return allocation.is_major and section is not None and section.program.casefold() == program.casefold()


def check_room_suitability(
    allocation: Allocation,
    classroom: Classroom,
    section: Optional[Section],
    computer_lab_program: str = "BSIT",
) -> RoomSuitability:
    """
    Check whether a classroom satisfies the room-type rule for an allocation.

    Major subjects need a laboratory-tagged room, non-major subjects a
    lecture-tagged one.
    """
    reasons = []
    if allocation.is_major:
        if not is_lab_room_type(classroom.type):
            if _is_computer_lab_subject(allocation, section, computer_lab_program):
                reasons.append(f"{computer_lab_program} major needs a computer laboratory")
            else:
                reasons.append("major subject needs a laboratory")
    elif not is_lecture_room_type(classroom.type):
        reasons.append("non-major subject needs a lecture room")

    return RoomSuitability(classroom_id=classroom.id, is_valid=not reasons, reasons=reasons)


def _room_type_violations(ctx: ScoringContext, computer_lab: Optional[bool], major: bool) -> int:
    violations = 0
    for allocation in ctx.movable:
        if allocation.is_major != major:
            continue
        section = ctx.solution.get_section(allocation)
        if computer_lab is not None:
            is_cs = _is_computer_lab_subject(allocation, section, ctx.computer_lab_program)
            if is_cs != computer_lab:
                continue
        classroom = ctx.solution.get_classroom(allocation)
        if classroom is None:
            violations += 1
        elif major and not is_lab_room_type(classroom.type):
            violations += 1
        elif not major and not is_lecture_room_type(classroom.type):
            violations += 1
    return violations


def computer_lab_requirement(ctx: ScoringContext) -> int:
    """Movable majors of the computer-lab program outside a laboratory."""
    return _room_type_violations(ctx, computer_lab=True, major=True)


def general_lab_requirement(ctx: ScoringContext) -> int:
    """Other movable majors outside a laboratory."""
    return _room_type_violations(ctx, computer_lab=False, major=True)


def lecture_room_requirement(ctx: ScoringContext) -> int:
    """Movable non-major allocations outside a lecture room."""
    return _room_type_violations(ctx, computer_lab=None, major=False)


# =============================================================================
# Consistency
# =============================================================================

def classroom_consistency(ctx: ScoringContext) -> int:
    """Pairs of one subject and teacher that sit in different classrooms."""
    violations = 0
    groups = ctx.placed_by(
        lambda a, p: (a.subject_code, a.teacher_id) if a.teacher_id is not None else None
    )

    for items in groups.values():
        if not any_movable(items):
            continue
        for (a, _), (b, _) in movable_pairs(items):
            if a.classroom_id is not None and b.classroom_id is not None and a.classroom_id != b.classroom_id:
                violations += 1

    return violations


# =============================================================================
# Utilization (soft)
# =============================================================================

def utilization_level(capacity: int, students: int) -> int:
    """
    Penalty level for how well a section fills a classroom.

    0 inside 50-90%, 1 inside 30-100%, 2 outside that, 3 for a room with no
    recorded capacity.
    """
    if capacity <= 0:
        return ZERO_CAPACITY_LEVEL
    ratio = students / capacity
    low, high = UTILIZATION_IDEAL
    if low <= ratio <= high:
        return 0
    low, high = UTILIZATION_TOLERABLE
    if low <= ratio <= high:
        return 1
    return 2


def classroom_utilization(ctx: ScoringContext) -> int:
    total = 0
    for allocation in ctx.movable:
        classroom = ctx.solution.get_classroom(allocation)
        section = ctx.solution.get_section(allocation)
        if classroom is None or section is None:
            continue
        total += utilization_level(classroom.capacity, section.number_of_students)
    return total
