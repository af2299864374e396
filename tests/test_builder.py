"""Tests for duration splitting and allocation building."""

from __future__ import annotations

import pytest

from sectionsched.builder import AllocationBuilder, split_session_durations
from sectionsched.data.models import Day, PublishedSession, ScheduleRequest
from sectionsched.exceptions import NotFoundError


class TestSplitSessionDurations:
    """Tests for weekly hours to session durations."""

    @pytest.mark.parametrize("hours,expected", [
        (1, [60]),
        (2, [90, 30]),
        (3, [90, 90]),
        (4, [90, 90, 60]),
        (5, [90, 90, 90, 30]),
        (6, [90, 90, 90, 90]),
    ])
    def test_split(self, hours, expected):
        assert split_session_durations(hours) == expected

    @pytest.mark.parametrize("hours", [0, -1, -5])
    def test_non_positive_gives_nothing(self, hours):
        assert split_session_durations(hours) == []

    @pytest.mark.parametrize("hours", range(2, 13))
    def test_sessions_cover_hours_and_cap_at_ninety(self, hours):
        durations = split_session_durations(hours)
        assert sum(durations) == hours * 60
        assert all(0 < d <= 90 for d in durations)


def _session(session_id: str, **overrides) -> PublishedSession:
    data = dict(
        id=session_id,
        subject_code="ED101",
        subject_name="Foundations",
        teacher_id="t2",
        section_id="s3",
        classroom_id="lec1",
        day_of_week="MONDAY",
        start_time="08:00 AM",
        end_time="09:30 AM",
    )
    data.update(overrides)
    return PublishedSession(**data)


@pytest.fixture
def builder(teachers, classrooms, sections, catalog) -> AllocationBuilder:
    return AllocationBuilder(teachers, classrooms, sections, catalog)


class TestAllocationBuilder:
    """Tests for building movable and pinned allocations."""

    def test_movable_allocations_from_requests(self, builder):
        requests = [
            ScheduleRequest(subject_code="IT101", teacher_id="t1", section_id="s1", class_hours_per_week=3),
            ScheduleRequest(subject_code="IT102", teacher_id="t1", section_id="s1", class_hours_per_week=1,
                            is_major=True),
        ]
        result = builder.build("s1", requests)

        assert len(result.movable) == 3
        assert [a.duration_minutes for a in result.movable] == [90, 90, 60]
        assert all(not a.is_assigned for a in result.movable)
        assert result.movable[2].is_major
        assert len({a.id for a in result.allocations}) == len(result.allocations)

    def test_requests_for_other_sections_ignored(self, builder):
        requests = [
            ScheduleRequest(subject_code="IT101", section_id="s1", class_hours_per_week=3),
            ScheduleRequest(subject_code="IT999", section_id="s2", class_hours_per_week=3),
        ]
        result = builder.build("s1", requests)
        assert {a.subject_code for a in result.allocations} == {"IT101"}

    def test_request_without_teacher(self, builder):
        result = builder.build("s1", [ScheduleRequest(subject_code="PE1", class_hours_per_week=2)])
        assert all(a.teacher_id is None for a in result.allocations)

    def test_unknown_section(self, builder):
        with pytest.raises(NotFoundError):
            builder.build("nope", [ScheduleRequest(subject_code="IT101", class_hours_per_week=3)])

    def test_unknown_teacher(self, builder):
        with pytest.raises(NotFoundError):
            builder.build("s1", [ScheduleRequest(subject_code="IT101", teacher_id="ghost", class_hours_per_week=3)])

    def test_published_sessions_become_pinned(self, builder, slot):
        result = builder.build("s1", [], [_session("p1")])
        assert len(result.pinned) == 1
        pinned = result.pinned[0]
        assert pinned.timeslot_id == slot(Day.MONDAY, "08:00")
        assert pinned.classroom_id == "lec1"
        assert pinned.duration_minutes == 90
        assert not pinned.is_major

    def test_pinned_in_lab_is_major(self, builder):
        result = builder.build("s1", [], [_session("p1", classroom_id="lab1")])
        assert result.pinned[0].is_major

    def test_target_section_sessions_dropped(self, builder):
        result = builder.build("s1", [], [_session("p1", section_id="s1"), _session("p2")])
        assert [a.section_id for a in result.pinned] == ["s3"]
        assert result.skipped_count == 0

    def test_overnight_duration_wraps(self, builder):
        result = builder.build("s1", [], [_session("p1", start_time="07:00 PM", end_time="01:00 AM")])
        assert result.pinned[0].duration_minutes == 6 * 60

    @pytest.mark.parametrize("overrides,reason", [
        ({"teacher_id": "ghost"}, "unknown teacher"),
        ({"classroom_id": "ghost"}, "unknown classroom"),
        ({"section_id": "ghost"}, "unknown section"),
        ({"start_time": "whenever"}, "Unrecognised time"),
        ({"start_time": "08:30 AM", "end_time": "10:00 AM"}, "no timeslot"),
        ({"end_time": "08:00 AM"}, "non-positive duration"),
    ])
    def test_unresolvable_sessions_skipped(self, builder, overrides, reason):
        result = builder.build("s1", [], [_session("bad", **overrides), _session("good", day_of_week="TUESDAY")])
        assert len(result.pinned) == 1
        assert result.skipped_count == 1
        assert result.issues[0].session_id == "bad"
        assert reason in result.issues[0].reason

    def test_create_solution(self, builder):
        result = builder.build("s1", [ScheduleRequest(subject_code="IT101", class_hours_per_week=3)], [_session("p1")])
        solution = builder.create_solution(result)
        assert len(solution.movable_allocations) == 2
        assert len(solution.pinned_allocations) == 1
        assert set(solution.classrooms) == {"lec1", "lec2", "lab1", "lab2"}
