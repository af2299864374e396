"""Tests for the in-memory schedule repository."""

from __future__ import annotations

import pytest

from sectionsched.data.models import PublishedSession
from sectionsched.repository import InMemoryScheduleRepository


def _session(session_id: str, section_id: str = "s1", problem_id: str | None = None, **overrides) -> PublishedSession:
    data = dict(
        id=session_id,
        problem_id=problem_id,
        subject_code="IT101",
        teacher_id="t1",
        section_id=section_id,
        classroom_id="lec1",
        day_of_week="MONDAY",
        start_time="08:00 AM",
        end_time="09:30 AM",
    )
    data.update(overrides)
    return PublishedSession(**data)


@pytest.fixture
def repository(teachers, classrooms, sections) -> InMemoryScheduleRepository:
    return InMemoryScheduleRepository(
        teachers, classrooms, sections,
        sessions=[_session("a", "s1"), _session("b", "s2", problem_id="p-old", teacher_id="t2")],
    )


class TestReads:
    """Tests for listing records."""

    def test_lists(self, repository):
        assert len(repository.list_teachers()) == 2
        assert len(repository.list_classrooms()) == 4
        assert len(repository.list_sections()) == 3
        assert {s.id for s in repository.list_sessions()} == {"a", "b"}

    def test_lookups(self, repository):
        assert repository.get_session("a").section_id == "s1"
        assert repository.get_session("missing") is None
        assert [s.id for s in repository.sessions_for_section("s2")] == ["b"]
        assert [s.id for s in repository.sessions_for_problem("p-old")] == ["b"]


class TestReverseReferences:
    """Owners track the sessions that reference them."""

    def test_initial_sessions_linked(self, repository, teachers, classrooms, sections):
        assert teachers[0].schedule_ids == ["a"]
        assert teachers[1].schedule_ids == ["b"]
        assert classrooms[0].schedule_ids == ["a", "b"]
        assert sections[0].schedule_ids == ["a"]

    def test_replace_section_sessions(self, repository, teachers, classrooms, sections):
        repository.replace_section_sessions("s1", [_session("c", "s1", problem_id="p1", classroom_id="lec2")])

        assert {s.id for s in repository.list_sessions()} == {"b", "c"}
        assert sections[0].schedule_ids == ["c"]
        assert teachers[0].schedule_ids == ["c"]
        assert classrooms[0].schedule_ids == ["b"]
        assert classrooms[1].schedule_ids == ["c"]

    def test_replace_with_nothing_clears(self, repository, sections):
        repository.replace_section_sessions("s1", [])
        assert repository.sessions_for_section("s1") == []
        assert sections[0].schedule_ids == []

    def test_delete_by_problem_id(self, repository, teachers, classrooms):
        assert repository.delete_by_problem_id("p-old") == 1
        assert repository.get_session("b") is None
        assert teachers[1].schedule_ids == []
        assert classrooms[0].schedule_ids == ["a"]

    def test_delete_unknown_problem(self, repository):
        assert repository.delete_by_problem_id("nope") == 0
        assert len(repository.list_sessions()) == 2

    def test_re_adding_same_id_does_not_duplicate(self, teachers, classrooms, sections):
        repository = InMemoryScheduleRepository(
            teachers, classrooms, sections, sessions=[_session("a"), _session("a", classroom_id="lec2")],
        )
        assert len(repository.list_sessions()) == 1
        assert classrooms[0].schedule_ids == []
        assert classrooms[1].schedule_ids == ["a"]
        assert teachers[0].schedule_ids == ["a"]
