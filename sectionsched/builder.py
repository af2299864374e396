"""
Allocation building.

Turns scheduling requests for one target section into movable allocations and
reconstructs every published session of the other sections as a pinned
allocation, so the solver can see live resource usage system-wide.
"""

from __future__ import annotations

import itertools
import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, Optional

from .exceptions import NotFoundError
from .model import Allocation, ScheduleSolution
from .data.models import Classroom, PublishedSession, ScheduleRequest, Section, Teacher, parse_clock_time
from .data.timeslots import TimeslotCatalog

logger = logging.getLogger(__name__)

SESSION_MINUTES = 90
MINUTES_PER_DAY = 1440


# =============================================================================
# Duration Split
# =============================================================================

def split_session_durations(hours_per_week: int) -> list[int]:
    """
    Decompose weekly class hours into session durations in minutes.

    1 hour gives a single 60-minute session; anything longer is cut into
    ceil(hours / 1.5) sessions of 90 minutes, the last one trimmed to the
    remaining time. Zero or negative hours give no sessions.

    Example:
        >>> split_session_durations(3)
        [90, 90]
        >>> split_session_durations(5)
        [90, 90, 90, 30]
    """
    if hours_per_week <= 0:
        return []
    if hours_per_week == 1:
        return [60]

    remaining = hours_per_week * 60
    durations: list[int] = []
    for _ in range(math.ceil(hours_per_week / 1.5)):
        if remaining <= 0:
            break
        duration = min(SESSION_MINUTES, remaining)
        durations.append(duration)
        remaining -= duration
    return durations


# =============================================================================
# Build Result
# =============================================================================

@dataclass
class DataIntegrityIssue:
    """A published session that could not be turned into a pinned allocation."""
    session_id: str
    reason: str

    def __str__(self) -> str:
        return f"session {self.session_id}: {self.reason}"


@dataclass
class BuildResult:
    """Allocations ready for solving plus any skipped published sessions."""
    section: Section
    allocations: list[Allocation] = field(default_factory=list)
    issues: list[DataIntegrityIssue] = field(default_factory=list)

    @property
    def movable(self) -> list[Allocation]:
        return [a for a in self.allocations if not a.pinned]

    @property
    def pinned(self) -> list[Allocation]:
        return [a for a in self.allocations if a.pinned]

    @property
    def skipped_count(self) -> int:
        return len(self.issues)


# =============================================================================
# Builder
# =============================================================================

class AllocationBuilder:
    """
    Builds the working allocation set for one section.

    Usage:
        builder = AllocationBuilder(teachers, classrooms, sections)
        result = builder.build("sec-1", requests, published_sessions)
        solution = builder.create_solution(result)
    """

    def __init__(
        self,
        teachers: Iterable[Teacher],
        classrooms: Iterable[Classroom],
        sections: Iterable[Section],
        timeslots: Optional[TimeslotCatalog] = None,
    ):
        self.teachers = {t.id: t for t in teachers}
        self.classrooms = {c.id: c for c in classrooms}
        self.sections = {s.id: s for s in sections}
        self.timeslots = timeslots or TimeslotCatalog()
        self._ids = itertools.count(1)

    def build(
        self,
        section_id: str,
        requests: Iterable[ScheduleRequest],
        published: Iterable[PublishedSession] = (),
    ) -> BuildResult:
        """
        Build movable allocations for the section and pinned ones for the rest.

        Published sessions of the target section are dropped (they are replaced
        by this solve). Published sessions that cannot be resolved are skipped
        and reported as DataIntegrityIssue entries.

        Raises:
            NotFoundError: If the section or a requested teacher does not exist
        """
        section = self.sections.get(section_id)
        if section is None:
            raise NotFoundError(f"Section with ID {section_id} not found")

        result = BuildResult(section=section)

        for request in requests:
            if request.section_id is not None and request.section_id != section_id:
                logger.debug("Ignoring request %s for other section %s", request.subject_code, request.section_id)
                continue
            result.allocations.extend(self._allocations_for_request(section, request))

        movable_count = len(result.allocations)

        for session in published:
            if session.section_id == section_id:
                continue
            allocation = self._pinned_allocation(session, result.issues)
            if allocation is not None:
                result.allocations.append(allocation)

        for issue in result.issues:
            logger.warning("Skipped published %s", issue)

        logger.info(
            "Built %d allocations for section %s (%d movable, %d pinned, %d skipped)",
            len(result.allocations), section_id, movable_count,
            len(result.allocations) - movable_count, len(result.issues),
        )
        return result

    def create_solution(self, result: BuildResult) -> ScheduleSolution:
        """Wrap a build result into a fresh solution over this builder's catalog."""
        return ScheduleSolution(
            timeslots=self.timeslots,
            classrooms=self.classrooms.values(),
            teachers=self.teachers.values(),
            sections=self.sections.values(),
            allocations=result.allocations,
        )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _allocations_for_request(self, section: Section, request: ScheduleRequest) -> list[Allocation]:
        teacher_id = request.teacher_id
        if teacher_id is not None and teacher_id not in self.teachers:
            raise NotFoundError(f"Teacher with ID {teacher_id} not found for subject {request.subject_code}")

        durations = split_session_durations(request.class_hours_per_week)
        logger.debug("Split %s (%dh) into sessions %s", request.subject_code, request.class_hours_per_week, durations)

        return [
            Allocation(
                id=next(self._ids),
                subject_code=request.subject_code,
                subject_name=request.subject_name,
                teacher_id=teacher_id,
                section_id=section.id,
                duration_minutes=duration,
                is_major=request.is_major,
                pinned=False,
            )
            for duration in durations
        ]

    def _pinned_allocation(
        self,
        session: PublishedSession,
        issues: list[DataIntegrityIssue],
    ) -> Optional[Allocation]:
        if session.teacher_id is not None and session.teacher_id not in self.teachers:
            issues.append(DataIntegrityIssue(session.id, f"unknown teacher '{session.teacher_id}'"))
            return None

        classroom = self.classrooms.get(session.classroom_id)
        if classroom is None:
            issues.append(DataIntegrityIssue(session.id, f"unknown classroom '{session.classroom_id}'"))
            return None

        if session.section_id not in self.sections:
            issues.append(DataIntegrityIssue(session.id, f"unknown section '{session.section_id}'"))
            return None

        try:
            start = parse_clock_time(session.start_time)
            end = parse_clock_time(session.end_time)
        except ValueError as e:
            issues.append(DataIntegrityIssue(session.id, str(e)))
            return None

        timeslot = self.timeslots.find(session.day_of_week, start)
        if timeslot is None:
            issues.append(DataIntegrityIssue(
                session.id, f"no timeslot at {session.day_of_week.label} {session.start_time}"
            ))
            return None

        duration = end - start
        if duration < 0:
            duration += MINUTES_PER_DAY
        if duration <= 0:
            issues.append(DataIntegrityIssue(session.id, f"non-positive duration {duration}"))
            return None

        return Allocation(
            id=next(self._ids),
            subject_code=session.subject_code,
            subject_name=session.subject_name,
            teacher_id=session.teacher_id,
            section_id=session.section_id,
            duration_minutes=duration,
            # Published records carry no major flag; lab rooms imply major subjects
            is_major=classroom.is_lab,
            pinned=True,
            timeslot_id=timeslot.id,
            classroom_id=classroom.id,
        )
