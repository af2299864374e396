"""
Daily limit constraints for timetabling.

This module provides:
- Latest end time for movable sessions
- Major-subject density per section and per teacher per day
- Late evening start penalty (soft)
"""

from __future__ import annotations

from sectionsched.data.timeslots import DAILY_BANDS

from .core import ScoringContext, any_movable

# Last minute of the afternoon band (20:30)
LATEST_END_MINUTES = DAILY_BANDS[-1][1]
LATE_START_MINUTES = 18 * 60

MAX_SECTION_MAJORS_PER_DAY = 2
MAX_TEACHER_MAJORS_PER_DAY = 6


def latest_end_time(ctx: ScoringContext) -> int:
    """Movable allocations ending after 20:30."""
    return sum(
        1 for _, placement in ctx.movable_placed
        if placement.end_minutes > LATEST_END_MINUTES
    )


def _major_overflow(ctx: ScoringContext, key, limit: int) -> int:
    overflow = 0
    groups = ctx.placed_by(lambda a, p: (key(a), p.day) if a.is_major and key(a) is not None else None)
    for items in groups.values():
        if any_movable(items) and len(items) > limit:
            overflow += len(items) - limit
    return overflow


def section_major_density(ctx: ScoringContext) -> int:
    """Major allocations beyond two per section per day."""
    return _major_overflow(ctx, lambda a: a.section_id, MAX_SECTION_MAJORS_PER_DAY)


def teacher_major_density(ctx: ScoringContext) -> int:
    """Major allocations beyond six per teacher per day."""
    return _major_overflow(ctx, lambda a: a.teacher_id, MAX_TEACHER_MAJORS_PER_DAY)


def late_evening_classes(ctx: ScoringContext) -> int:
    return sum(
        1 for _, placement in ctx.movable_placed
        if placement.start_minutes > LATE_START_MINUTES
    )
