"""
Output schema for solved section schedules.

Accepted solutions are converted into PublishedSession records (the format
the record store persists) and into a JSON-serializable SolveOutput with a
per-day view for display.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from sectionsched.data.models import Day, PublishedSession, format_clock_time, parse_clock_time
from sectionsched.model import HardSoftScore, ScheduleSolution


# =============================================================================
# Enums
# =============================================================================

class OutputStatus(str, Enum):
    """Solve outcome for output."""
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    FAILED = "failed"
    CANCELLED = "cancelled"


# =============================================================================
# Session Output
# =============================================================================

class SessionOutput(BaseModel):
    """A single scheduled session in the output."""
    id: str
    subject_code: str = Field(alias="subjectCode")
    subject_name: str = Field(alias="subjectName")
    teacher_id: Optional[str] = Field(default=None, alias="teacherId")
    section_id: str = Field(alias="sectionId")
    classroom_id: str = Field(alias="classroomId")
    day_of_week: str = Field(alias="dayOfWeek")  # 'MONDAY'
    start_time: str = Field(alias="startTime")  # 'hh:mm AM'
    end_time: str = Field(alias="endTime")

    # Optional enriched data
    teacher_name: Optional[str] = Field(default=None, alias="teacherName")
    classroom_name: Optional[str] = Field(default=None, alias="classroomName")
    section_name: Optional[str] = Field(default=None, alias="sectionName")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_session(
        cls,
        session: PublishedSession,
        solution: ScheduleSolution | None = None,
    ) -> SessionOutput:
        """Create from a PublishedSession, with names looked up in the solution."""
        teacher = classroom = section = None
        if solution is not None:
            teacher = solution.teachers.get(session.teacher_id) if session.teacher_id else None
            classroom = solution.classrooms.get(session.classroom_id)
            section = solution.sections.get(session.section_id)
        return cls(
            id=session.id,
            subjectCode=session.subject_code,
            subjectName=session.subject_name,
            teacherId=session.teacher_id,
            sectionId=session.section_id,
            classroomId=session.classroom_id,
            dayOfWeek=session.day_of_week.name,
            startTime=session.start_time,
            endTime=session.end_time,
            teacherName=teacher.name if teacher else None,
            classroomName=classroom.name if classroom else None,
            sectionName=section.display_name if section else None,
        )


class ScoreOutput(BaseModel):
    """Hard/soft score."""
    hard: int
    soft: int
    feasible: bool

    @classmethod
    def from_score(cls, score: HardSoftScore) -> ScoreOutput:
        return cls(hard=score.hard, soft=score.soft, feasible=score.is_feasible)


class DaySchedule(BaseModel):
    """Sessions of a single day."""
    day: int
    day_name: str = Field(alias="dayName")
    sessions: list[SessionOutput]

    model_config = {"populate_by_name": True}


# =============================================================================
# Complete Output
# =============================================================================

class SolveOutput(BaseModel):
    """Complete output for one solve job."""
    problem_id: str = Field(alias="problemId")
    section_id: Optional[str] = Field(default=None, alias="sectionId")
    status: OutputStatus
    reason: str = ""
    score: Optional[ScoreOutput] = None
    solve_time_seconds: float = Field(default=0.0, alias="solveTimeSeconds")
    sessions: list[SessionOutput] = Field(default_factory=list)
    by_day: dict[int, DaySchedule] = Field(default_factory=dict, alias="byDay")
    skipped_sessions: list[str] = Field(default_factory=list, alias="skippedSessions")
    repairs: list[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True}

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return self.model_dump_json(by_alias=True, indent=indent)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return self.model_dump(by_alias=True)


# =============================================================================
# Conversion Functions
# =============================================================================

def solution_to_sessions(
    solution: ScheduleSolution,
    problem_id: str,
    section_id: Optional[str] = None,
) -> list[PublishedSession]:
    """
    Convert the movable allocations of a solution into session records.

    Pinned allocations already exist in the record store and are left out.
    Session ids are derived from the problem id and allocation id.

    Args:
        solution: Accepted solution
        problem_id: Solve job that produced the sessions
        section_id: Restrict to one section (all movable allocations if None)

    Returns:
        PublishedSession records in day/start order
    """
    sessions = []
    for allocation in solution.movable_allocations:
        if section_id is not None and allocation.section_id != section_id:
            continue
        placement = solution.placement(allocation)
        if placement is None or allocation.classroom_id is None:
            continue
        sessions.append(PublishedSession(
            id=f"{problem_id}-{allocation.id}",
            problem_id=problem_id,
            subject_code=allocation.subject_code,
            subject_name=allocation.subject_name,
            teacher_id=allocation.teacher_id,
            section_id=allocation.section_id,
            classroom_id=allocation.classroom_id,
            day_of_week=placement.day,
            start_time=format_clock_time(placement.start_minutes),
            end_time=format_clock_time(placement.end_minutes),
        ))
    return sorted(sessions, key=_session_sort_key)


def _session_sort_key(session: PublishedSession) -> tuple[int, int, str]:
    return (int(session.day_of_week), parse_clock_time(session.start_time), session.id)


def group_sessions_by_day(sessions: list[SessionOutput]) -> dict[int, DaySchedule]:
    """Group session outputs into DaySchedule views."""
    by_day: dict[int, list[SessionOutput]] = {}
    for session in sessions:
        day = Day[session.day_of_week]
        by_day.setdefault(int(day), []).append(session)

    return {
        day: DaySchedule(
            day=day,
            dayName=Day(day).label,
            sessions=sorted(items, key=lambda s: parse_clock_time(s.start_time)),
        )
        for day, items in sorted(by_day.items())
    }


def create_solve_output(
    problem_id: str,
    status: OutputStatus,
    sessions: list[PublishedSession] | None = None,
    solution: ScheduleSolution | None = None,
    score: HardSoftScore | None = None,
    section_id: Optional[str] = None,
    reason: str = "",
    solve_time_seconds: float = 0.0,
    skipped_sessions: list[str] | None = None,
    repairs: list[str] | None = None,
) -> SolveOutput:
    """
    Create a SolveOutput for a finished job.

    Args:
        problem_id: Solve job id
        status: Outcome
        sessions: Persisted session records (empty for rejected jobs)
        solution: Solution used to look up display names
        score: Final score, if any
        section_id: Target section
        reason: Rejection/failure reason
        solve_time_seconds: Wall-clock solve time
        skipped_sessions: Descriptions of published sessions that were skipped
        repairs: Descriptions of repair moves

    Returns:
        SolveOutput with the per-day view populated
    """
    outputs = [SessionOutput.from_session(s, solution) for s in sessions or []]
    return SolveOutput(
        problemId=problem_id,
        sectionId=section_id,
        status=status,
        reason=reason,
        score=ScoreOutput.from_score(score) if score is not None else None,
        solveTimeSeconds=solve_time_seconds,
        sessions=outputs,
        byDay=group_sessions_by_day(outputs),
        skippedSessions=skipped_sessions or [],
        repairs=repairs or [],
    )
