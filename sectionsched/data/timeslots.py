"""
Timeslot catalog generation.

The weekly grid is fixed policy: Monday-Saturday, a morning band 08:00-12:30
and an afternoon band 13:00-20:30, each sliced into 90-minute windows with the
last window clipped to the band boundary (8 windows per day, 48 per week).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Optional

from .models import Day, minutes_to_time

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

SLOT_MINUTES = 90
DAILY_BANDS: tuple[tuple[int, int], ...] = (
    (8 * 60, 12 * 60 + 30),    # 08:00-12:30
    (13 * 60, 20 * 60 + 30),   # 13:00-20:30
)
SCHEDULE_DAYS: tuple[Day, ...] = tuple(Day)


# =============================================================================
# Timeslot
# =============================================================================

@dataclass(frozen=True, eq=False)
class Timeslot:
    """
    One schedulable time window.

    Equality and hashing are by object identity: two catalogs produce slots
    with the same ids and times, and those must never be confused.
    """
    id: int
    day: Day
    start_minutes: int
    end_minutes: int

    @property
    def key(self) -> tuple[Day, int]:
        """Lookup key (day, start minutes)."""
        return (self.day, self.start_minutes)

    def __str__(self) -> str:
        return f"{self.day.label} {minutes_to_time(self.start_minutes)}-{minutes_to_time(self.end_minutes)}"


def generate_timeslots() -> list[Timeslot]:
    """
    Generate the weekly timeslot catalog.

    Deterministic: every call yields the same sequence (ids 1..N in
    day-then-time order), built from fresh Timeslot objects.
    """
    timeslots: list[Timeslot] = []
    next_id = 1

    for day in SCHEDULE_DAYS:
        for band_start, band_end in DAILY_BANDS:
            start = band_start
            while start < band_end:
                end = min(start + SLOT_MINUTES, band_end)
                timeslots.append(Timeslot(id=next_id, day=day, start_minutes=start, end_minutes=end))
                next_id += 1
                start += SLOT_MINUTES

    logger.debug("Generated %d timeslots for %d days", len(timeslots), len(SCHEDULE_DAYS))
    return timeslots


# =============================================================================
# Catalog
# =============================================================================

class TimeslotCatalog:
    """Ordered timeslot collection with lookups by id and by (day, start)."""

    def __init__(self, timeslots: Optional[list[Timeslot]] = None):
        self.timeslots = timeslots if timeslots is not None else generate_timeslots()
        self._by_id = {ts.id: ts for ts in self.timeslots}
        self._by_key = {}
        for ts in self.timeslots:
            self._by_key.setdefault(ts.key, ts)

    def __iter__(self) -> Iterator[Timeslot]:
        return iter(self.timeslots)

    def __len__(self) -> int:
        return len(self.timeslots)

    def get(self, timeslot_id: Optional[int]) -> Optional[Timeslot]:
        """Get timeslot by ID."""
        if timeslot_id is None:
            return None
        return self._by_id.get(timeslot_id)

    def find(self, day: Day | int, start_minutes: int) -> Optional[Timeslot]:
        """Get the timeslot starting at a given time on a given day."""
        return self._by_key.get((Day(day), start_minutes))

    def on_day(self, day: Day | int) -> list[Timeslot]:
        """All timeslots of one day, in start order."""
        day = Day(day)
        return [ts for ts in self.timeslots if ts.day == day]

    @property
    def days(self) -> list[Day]:
        return sorted({ts.day for ts in self.timeslots})
