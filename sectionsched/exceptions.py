"""Exception types raised by the scheduling engine."""

from __future__ import annotations


class SchedulingError(Exception):
    """Base class for all scheduling engine errors."""
    pass


class InvalidArgumentError(SchedulingError, ValueError):
    """Raised when a submission is malformed (empty requests, missing section id, bad hours)."""
    pass


class NotFoundError(SchedulingError, LookupError):
    """Raised when a referenced section, teacher or classroom does not exist."""
    pass


class InfeasibleError(SchedulingError):
    """Raised when no acceptable (hard score 0) timetable could be produced."""
    pass


class PinnedAllocationError(SchedulingError):
    """Raised on an attempt to reassign a pinned allocation."""
    pass


class DuplicateJobError(InvalidArgumentError):
    """Raised when a problem id already has a solve in flight."""
    pass
