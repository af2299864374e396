"""
Persistence boundary for catalog records and published sessions.

The engine reads teachers, classrooms, sections and published sessions, and
writes accepted sessions back, through ScheduleRepository. The in-memory
implementation keeps the reverse references (``schedule_ids``) on teachers,
classrooms and sections in step with the sessions it stores.
"""

from __future__ import annotations

import logging
import threading
from typing import Iterable, Optional, Protocol

from .data.models import Classroom, PublishedSession, Section, Teacher

logger = logging.getLogger(__name__)


class ScheduleRepository(Protocol):
    """Record store consumed by the job coordinator."""

    def list_teachers(self) -> list[Teacher]: ...

    def list_classrooms(self) -> list[Classroom]: ...

    def list_sections(self) -> list[Section]: ...

    def list_sessions(self) -> list[PublishedSession]: ...

    def replace_section_sessions(self, section_id: str, sessions: list[PublishedSession]) -> None:
        """Replace every session of a section with a new set."""
        ...

    def delete_by_problem_id(self, problem_id: str) -> int:
        """Delete sessions tagged with a problem id; returns the count deleted."""
        ...


class InMemoryScheduleRepository:
    """Lock-guarded in-memory ScheduleRepository."""

    def __init__(
        self,
        teachers: Iterable[Teacher] = (),
        classrooms: Iterable[Classroom] = (),
        sections: Iterable[Section] = (),
        sessions: Iterable[PublishedSession] = (),
    ):
        self._lock = threading.RLock()
        self._teachers = {t.id: t for t in teachers}
        self._classrooms = {c.id: c for c in classrooms}
        self._sections = {s.id: s for s in sections}
        self._sessions: dict[str, PublishedSession] = {}
        for session in sessions:
            self._add(session)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def list_teachers(self) -> list[Teacher]:
        with self._lock:
            return list(self._teachers.values())

    def list_classrooms(self) -> list[Classroom]:
        with self._lock:
            return list(self._classrooms.values())

    def list_sections(self) -> list[Section]:
        with self._lock:
            return list(self._sections.values())

    def list_sessions(self) -> list[PublishedSession]:
        with self._lock:
            return list(self._sessions.values())

    def get_session(self, session_id: str) -> Optional[PublishedSession]:
        with self._lock:
            return self._sessions.get(session_id)

    def sessions_for_section(self, section_id: str) -> list[PublishedSession]:
        with self._lock:
            return [s for s in self._sessions.values() if s.section_id == section_id]

    def sessions_for_problem(self, problem_id: str) -> list[PublishedSession]:
        with self._lock:
            return [s for s in self._sessions.values() if s.problem_id == problem_id]

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def replace_section_sessions(self, section_id: str, sessions: list[PublishedSession]) -> None:
        with self._lock:
            removed = [s.id for s in self._sessions.values() if s.section_id == section_id]
            for session_id in removed:
                self._remove(session_id)
            for session in sessions:
                self._add(session)
        logger.info(
            "Replaced sessions of section %s: %d removed, %d saved",
            section_id, len(removed), len(sessions),
        )

    def delete_by_problem_id(self, problem_id: str) -> int:
        with self._lock:
            doomed = [s.id for s in self._sessions.values() if s.problem_id == problem_id]
            for session_id in doomed:
                self._remove(session_id)
        if doomed:
            logger.info("Deleted %d session(s) of problem %s", len(doomed), problem_id)
        return len(doomed)

    # -------------------------------------------------------------------------
    # Reverse references
    # -------------------------------------------------------------------------

    def _owners(self, session: PublishedSession) -> list:
        owners = [
            self._teachers.get(session.teacher_id) if session.teacher_id else None,
            self._classrooms.get(session.classroom_id),
            self._sections.get(session.section_id),
        ]
        return [owner for owner in owners if owner is not None]

    def _add(self, session: PublishedSession) -> None:
        if session.id in self._sessions:
            self._remove(session.id)
        self._sessions[session.id] = session
        for owner in self._owners(session):
            if session.id not in owner.schedule_ids:
                owner.schedule_ids.append(session.id)

    def _remove(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return
        for owner in self._owners(session):
            if session_id in owner.schedule_ids:
                owner.schedule_ids.remove(session_id)
