"""
No-overlap constraints for timetabling.

This module provides the hard constraints that prevent double-booking of:
- Teachers (cannot teach two sessions at the same time)
- Classrooms (cannot host two sessions at the same time)
- Sections (cannot attend two sessions at the same time)

plus two direct pairwise checks that catch exact same-start collisions and
duplicated sessions of one subject.

Unlike the rules in the other modules these count every pair, pinned or not.
"""

from __future__ import annotations

from dataclasses import dataclass
from itertools import combinations
from typing import TYPE_CHECKING

from .core import ScoringContext, count_overlaps, find_overlapping_pairs

if TYPE_CHECKING:
    from sectionsched.model import Allocation, Placement, ScheduleSolution


RESOURCE_KINDS = ("teacher", "classroom", "section")


@dataclass
class OverlapViolation:
    """Two allocations double-booking one resource."""
    resource: str          # 'teacher', 'classroom' or 'section'
    resource_id: str
    first: Allocation
    second: Allocation
    placement: Placement

    def __str__(self) -> str:
        return (
            f"{self.resource} {self.resource_id}: {self.first} overlaps "
            f"{self.second} on {self.placement}"
        )


def _resource_key(resource: str):
    if resource == "teacher":
        return lambda a, p: a.teacher_id
    if resource == "classroom":
        return lambda a, p: a.classroom_id
    if resource == "section":
        return lambda a, p: a.section_id
    raise ValueError(f"Unknown resource kind: {resource}")


def teacher_conflicts(ctx: ScoringContext) -> int:
    """Overlapping session pairs per teacher."""
    return sum(count_overlaps(items) for items in ctx.placed_by(_resource_key("teacher")).values())


def classroom_conflicts(ctx: ScoringContext) -> int:
    """Overlapping session pairs per classroom."""
    return sum(count_overlaps(items) for items in ctx.placed_by(_resource_key("classroom")).values())


def section_conflicts(ctx: ScoringContext) -> int:
    """Overlapping session pairs per section."""
    return sum(count_overlaps(items) for items in ctx.placed_by(_resource_key("section")).values())


def exact_time_collisions(ctx: ScoringContext) -> int:
    """
    Pairs starting at the same day and time that share a teacher, classroom
    or section.
    """
    collisions = 0
    by_start = ctx.placed_by(lambda a, p: (p.day, p.start_minutes))

    for items in by_start.values():
        for (a, _), (b, _) in combinations(items, 2):
            same_teacher = a.teacher_id is not None and a.teacher_id == b.teacher_id
            same_classroom = a.classroom_id is not None and a.classroom_id == b.classroom_id
            if same_teacher or same_classroom or a.section_id == b.section_id:
                collisions += 1

    return collisions


def duplicate_sessions(ctx: ScoringContext) -> int:
    """Pairs of the same subject for the same section at the same day and time."""
    duplicates = 0
    groups = ctx.placed_by(lambda a, p: (a.subject_code, a.section_id, p.day, p.start_minutes))

    for items in groups.values():
        n = len(items)
        duplicates += n * (n - 1) // 2

    return duplicates


def find_resource_overlaps(solution: ScheduleSolution) -> list[OverlapViolation]:
    """
    Scan every teacher, classroom and section for overlapping sessions.

    Independent of the weighted score, so the validator can re-check an
    accepted solution.
    """
    ctx = ScoringContext.build(solution)
    violations: list[OverlapViolation] = []

    for resource in RESOURCE_KINDS:
        for resource_id, items in ctx.placed_by(_resource_key(resource)).items():
            for (first, placement), (second, _) in find_overlapping_pairs(items):
                violations.append(OverlapViolation(
                    resource=resource,
                    resource_id=resource_id,
                    first=first,
                    second=second,
                    placement=placement,
                ))

    return violations
