"""Shared fixtures: a small catalog and factories for allocations and solutions."""

from __future__ import annotations

from typing import Optional

import pytest

from sectionsched.data.models import Classroom, Day, Section, Teacher, time_to_minutes
from sectionsched.data.timeslots import TimeslotCatalog
from sectionsched.model import Allocation, ScheduleSolution


@pytest.fixture
def teachers() -> list[Teacher]:
    return [
        Teacher(id="t1", name="Ana Reyes", department="IT"),
        Teacher(id="t2", name="Ben Cruz", department="Education"),
    ]


@pytest.fixture
def classrooms() -> list[Classroom]:
    return [
        Classroom(id="lec1", name="Room 101", capacity=40, type="Lecture Room"),
        Classroom(id="lec2", name="Room 102", capacity=40, type="Lecture Room"),
        Classroom(id="lab1", name="CL 1", capacity=40, type="Computer Laboratory"),
        Classroom(id="lab2", name="CL 2", capacity=40, type="Computer Laboratory"),
    ]


@pytest.fixture
def sections() -> list[Section]:
    return [
        Section(id="s1", program="BSIT", year_level=1, section_name="A", number_of_students=30),
        Section(id="s2", program="BSIT", year_level=1, section_name="B", number_of_students=30),
        Section(id="s3", program="BSED", year_level=2, section_name="A", number_of_students=30),
    ]


@pytest.fixture
def catalog() -> TimeslotCatalog:
    return TimeslotCatalog()


@pytest.fixture
def slot(catalog):
    """Timeslot id lookup: slot(Day.MONDAY, "08:00")."""
    def lookup(day: Day, start: str) -> int:
        timeslot = catalog.find(day, time_to_minutes(start))
        assert timeslot is not None, f"no timeslot at {day} {start}"
        return timeslot.id
    return lookup


@pytest.fixture
def allocation():
    """Allocation factory with sensible defaults."""
    counter = iter(range(1, 10_000))

    def make(
        subject_code: str = "IT101",
        teacher_id: Optional[str] = "t1",
        section_id: str = "s1",
        duration: int = 90,
        is_major: bool = False,
        pinned: bool = False,
        timeslot_id: Optional[int] = None,
        classroom_id: Optional[str] = None,
    ) -> Allocation:
        return Allocation(
            id=next(counter),
            subject_code=subject_code,
            subject_name=subject_code,
            teacher_id=teacher_id,
            section_id=section_id,
            duration_minutes=duration,
            is_major=is_major,
            pinned=pinned,
            timeslot_id=timeslot_id,
            classroom_id=classroom_id,
        )
    return make


@pytest.fixture
def make_solution(catalog, teachers, classrooms, sections):
    """Build a ScheduleSolution over the shared catalog."""
    def make(allocations, rooms=None) -> ScheduleSolution:
        return ScheduleSolution(
            timeslots=catalog,
            classrooms=rooms if rooms is not None else classrooms,
            teachers=teachers,
            sections=sections,
            allocations=allocations,
        )
    return make
