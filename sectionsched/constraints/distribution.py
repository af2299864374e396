"""
Subject distribution constraints for timetabling.

This module provides constraints that shape how one subject's sessions are
spread over the week:
- Major sessions of one subject chain end-to-end within a day
- A teacher's major sessions never overlap across sections
- A teacher's major subject lands on different days for different sections
- Non-major sessions repeat at one start time on different days

plus the two soft rewards for a clean repeating grid and sequential majors.
"""

from __future__ import annotations

from itertools import combinations

from .core import ScoringContext, any_movable, group_by, movable_pairs, sort_by_start


def major_sequencing(ctx: ScoringContext) -> int:
    """
    Consecutive majors of one subject, teacher, section and day that do not
    chain end-to-end.
    """
    violations = 0
    groups = ctx.placed_by(
        lambda a, p: (a.subject_code, a.teacher_id, a.section_id, p.day) if a.is_major else None
    )

    for items in groups.values():
        if len(items) < 2 or not any_movable(items):
            continue
        ordered = sort_by_start(items)
        for (_, current), (_, following) in zip(ordered, ordered[1:]):
            if current.end_minutes != following.start_minutes:
                violations += 1

    return violations


def teacher_major_overlap(ctx: ScoringContext) -> int:
    """Overlapping, non-chained major pairs of one teacher on one day."""
    violations = 0
    groups = ctx.placed_by(
        lambda a, p: (a.teacher_id, p.day) if a.is_major and a.teacher_id is not None else None
    )

    for items in groups.values():
        for (_, first), (_, second) in movable_pairs(items):
            if first.overlaps(second) and not first.chains_with(second):
                violations += 1

    return violations


def cross_section_same_day(ctx: ScoringContext) -> int:
    """Same major subject and teacher on one day for two different sections."""
    violations = 0
    groups = ctx.placed_by(
        lambda a, p: (a.subject_code, a.teacher_id) if a.is_major and a.teacher_id is not None else None
    )

    for items in groups.values():
        for (a, first), (b, second) in movable_pairs(items):
            if a.section_id != b.section_id and first.day == second.day:
                violations += 1

    return violations


def non_major_pattern(ctx: ScoringContext) -> int:
    """
    Non-major sessions of one subject, teacher and section must share a start
    time and sit on different days; each pair breaking either is penalized.
    """
    violations = 0
    groups = ctx.placed_by(
        lambda a, p: None if a.is_major else (a.subject_code, a.teacher_id, a.section_id)
    )

    for items in groups.values():
        for (_, first), (_, second) in movable_pairs(items):
            if first.start_minutes != second.start_minutes or first.day == second.day:
                violations += 1

    return violations


# =============================================================================
# Rewards (soft)
# =============================================================================

def non_major_grid_matches(ctx: ScoringContext) -> int:
    """Movable non-major pairs of different subjects sharing a start time on different days."""
    matches = 0
    by_start = group_by(
        (item for item in ctx.movable_placed if not item[0].is_major),
        lambda item: item[1].start_minutes,
    )

    for items in by_start.values():
        for (a, first), (b, second) in combinations(items, 2):
            if a.subject_code != b.subject_code and first.day != second.day:
                matches += 1

    return matches


def major_sequential_matches(ctx: ScoringContext) -> int:
    """Movable majors of one subject and section where one ends as the other starts."""
    matches = 0
    groups = group_by(
        (item for item in ctx.movable_placed if item[0].is_major),
        lambda item: (item[0].subject_code, item[0].section_id, item[1].day),
    )

    for items in groups.values():
        for (_, first), (_, second) in combinations(items, 2):
            if first.chains_with(second):
                matches += 1

    return matches
