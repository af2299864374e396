"""
Pydantic models for the section scheduling data model.

These are the records exchanged with the catalog / record store: teachers,
classrooms, sections, scheduling requests and previously published sessions.

Time conventions:
- Time inside the engine is minutes from midnight (0-1439)
- Days are 0-5 (Monday-Saturday)
- The record store keeps times as 12-hour strings, e.g. "08:00 AM"

Example times:
- 8:00 AM = 480
- 12:30 PM = 750
- 8:30 PM = 1230
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


# =============================================================================
# Constants and Enums
# =============================================================================

class Day(int, Enum):
    """Day of week: 0=Monday through 5=Saturday."""
    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5

    @classmethod
    def parse(cls, value: Any) -> "Day":
        """Accept a Day, an index, or a day name such as 'MONDAY' / 'Mon'."""
        if isinstance(value, Day):
            return value
        if isinstance(value, int):
            return cls(value)
        if isinstance(value, str):
            key = value.strip().upper()
            if key.isdigit():
                return cls(int(key))
            for day in cls:
                if day.name == key or day.name[:3] == key:
                    return day
        raise ValueError(f"Unknown day: {value!r}")

    @property
    def label(self) -> str:
        return self.name.capitalize()


LECTURE_ROOM_TAGS = ("lecture", "classroom")
LAB_ROOM_TAGS = ("lab", "laboratory", "computer")


# =============================================================================
# Helper Functions
# =============================================================================

def minutes_to_time(minutes: int) -> str:
    """Convert minutes from midnight to HH:MM format."""
    h, m = divmod(minutes, 60)
    return f"{h:02d}:{m:02d}"


def time_to_minutes(time_str: str) -> int:
    """Convert HH:MM format to minutes from midnight."""
    h, m = map(int, time_str.split(":"))
    return h * 60 + m


def format_clock_time(minutes: int) -> str:
    """Format minutes from midnight as a 12-hour record-store time ('01:30 PM')."""
    h, m = divmod(minutes % 1440, 60)
    suffix = "AM" if h < 12 else "PM"
    return f"{(h % 12) or 12:02d}:{m:02d} {suffix}"


def parse_clock_time(value: str) -> int:
    """
    Parse a record-store time into minutes from midnight.

    Accepts 12-hour ('08:00 AM') and 24-hour ('08:00') forms.

    Raises:
        ValueError: If the string is not a recognised time
    """
    text = value.strip().upper()
    for fmt in ("%I:%M %p", "%I:%M%p", "%H:%M"):
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        return parsed.hour * 60 + parsed.minute
    raise ValueError(f"Unrecognised time: {value!r}")


def is_lab_room_type(room_type: Optional[str]) -> bool:
    """Whether a free-text classroom type tag denotes a laboratory."""
    tag = (room_type or "").strip().lower()
    return any(part in tag for part in LAB_ROOM_TAGS)


def is_lecture_room_type(room_type: Optional[str]) -> bool:
    """Whether a free-text classroom type tag denotes a lecture room."""
    tag = (room_type or "").strip().lower()
    return any(part in tag for part in LECTURE_ROOM_TAGS)


# =============================================================================
# Catalog Entity Models
# =============================================================================

class Teacher(BaseModel):
    """Teacher entity."""
    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1, description="Unique identifier")
    name: str = Field(min_length=1, description="Full name")
    department: Optional[str] = Field(default=None, description="Academic department")
    schedule_ids: list[str] = Field(default_factory=list, description="Published session IDs")

    def __str__(self) -> str:
        return f"{self.name} ({self.id})"


class Classroom(BaseModel):
    """Classroom / laboratory."""
    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1, description="Unique identifier")
    name: str = Field(min_length=1, description="Room name/number")
    capacity: int = Field(default=0, ge=0, description="Seats (0 = unknown)")
    type: str = Field(default="", description="Free-text type tag, e.g. 'Lecture Room'")
    schedule_ids: list[str] = Field(default_factory=list, description="Published session IDs")

    @property
    def is_lab(self) -> bool:
        return is_lab_room_type(self.type)

    @property
    def is_lecture_room(self) -> bool:
        return is_lecture_room_type(self.type)

    def __str__(self) -> str:
        return f"{self.name} ({self.type or 'untyped'})"


class Section(BaseModel):
    """Student section (a cohort that attends classes together)."""
    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1, description="Unique identifier")
    program: str = Field(min_length=1, description="Program code, e.g. 'BSIT'")
    year_level: int = Field(default=1, ge=1, le=10, description="Year level")
    section_name: str = Field(default="", description="Section label, e.g. 'A'")
    number_of_students: int = Field(default=0, ge=0, description="Student count")
    schedule_ids: list[str] = Field(default_factory=list, description="Published session IDs")

    @property
    def display_name(self) -> str:
        return f"{self.program} {self.year_level}-{self.section_name}".strip("- ")

    def __str__(self) -> str:
        return self.display_name


# =============================================================================
# Request / Record Models
# =============================================================================

class ScheduleRequest(BaseModel):
    """A subject to schedule for a section."""
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    subject_code: str = Field(min_length=1, description="Subject code")
    subject_name: str = Field(default="", description="Subject name")
    teacher_id: Optional[str] = Field(default=None, description="Assigned teacher (optional)")
    section_id: Optional[str] = Field(default=None, description="Target section")
    class_hours_per_week: int = Field(description="Weekly class hours")
    is_major: bool = Field(default=False, description="Major (laboratory) subject")

    @field_validator("teacher_id", "section_id", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def __str__(self) -> str:
        return f"{self.subject_code} ({self.class_hours_per_week}h/week)"


class PublishedSession(BaseModel):
    """A session persisted by a previous accepted solve."""
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    id: str = Field(min_length=1, description="Unique identifier")
    problem_id: Optional[str] = Field(default=None, description="Solve job that produced it")
    subject_code: str = Field(min_length=1, description="Subject code")
    subject_name: str = Field(default="", description="Subject name")
    teacher_id: Optional[str] = Field(default=None, description="Teacher ID")
    section_id: str = Field(description="Section ID")
    classroom_id: str = Field(description="Classroom ID")
    day_of_week: Day = Field(description="Day of week")
    start_time: str = Field(description="Start time, e.g. '08:00 AM'")
    end_time: str = Field(description="End time, e.g. '09:30 AM'")

    @field_validator("day_of_week", mode="before")
    @classmethod
    def parse_day(cls, value: Any) -> Day:
        return Day.parse(value)

    def __str__(self) -> str:
        return (
            f"{self.subject_code} {self.day_of_week.label} "
            f"{self.start_time}-{self.end_time}"
        )


# =============================================================================
# Problem Bundle
# =============================================================================

class SchedulingProblem(BaseModel):
    """
    Complete input for one file-driven solve.

    Bundles a snapshot of the catalog, the published sessions system-wide, the
    target section and the requests to schedule for it.
    """
    model_config = ConfigDict(extra="forbid")

    teachers: list[Teacher] = Field(default_factory=list, description="Teachers")
    classrooms: list[Classroom] = Field(min_length=1, description="Classrooms")
    sections: list[Section] = Field(min_length=1, description="Sections")
    sessions: list[PublishedSession] = Field(default_factory=list, description="Published sessions")
    section_id: Optional[str] = Field(default=None, description="Target section")
    requests: list[ScheduleRequest] = Field(default_factory=list, description="Subjects to schedule")

    # Lookup caches (populated after validation)
    _teacher_map: dict[str, Teacher] = {}
    _classroom_map: dict[str, Classroom] = {}
    _section_map: dict[str, Section] = {}

    def model_post_init(self, __context: Any) -> None:
        """Build lookup maps after model initialization."""
        self._teacher_map = {t.id: t for t in self.teachers}
        self._classroom_map = {c.id: c for c in self.classrooms}
        self._section_map = {s.id: s for s in self.sections}

    @model_validator(mode="after")
    def validate_no_duplicate_ids(self) -> "SchedulingProblem":
        """Ensure no duplicate IDs within each entity type."""
        errors: list[str] = []

        def check_duplicates(items: list, entity_name: str) -> None:
            seen: set[str] = set()
            for item in items:
                if item.id in seen:
                    errors.append(f"Duplicate {entity_name} ID: '{item.id}'")
                seen.add(item.id)

        check_duplicates(self.teachers, "teacher")
        check_duplicates(self.classrooms, "classroom")
        check_duplicates(self.sections, "section")
        check_duplicates(self.sessions, "session")

        if errors:
            raise ValueError("Duplicate ID validation failed:\n" + "\n".join(f"  - {e}" for e in errors))

        return self

    @property
    def target_section_id(self) -> Optional[str]:
        """Explicit section id, else the one carried by the first request."""
        if self.section_id:
            return self.section_id
        return self.requests[0].section_id if self.requests else None

    def get_teacher(self, teacher_id: str) -> Optional[Teacher]:
        """Get teacher by ID."""
        return self._teacher_map.get(teacher_id)

    def get_classroom(self, classroom_id: str) -> Optional[Classroom]:
        """Get classroom by ID."""
        return self._classroom_map.get(classroom_id)

    def get_section(self, section_id: str) -> Optional[Section]:
        """Get section by ID."""
        return self._section_map.get(section_id)

    def summary(self) -> dict[str, Any]:
        """Get a summary of the problem data."""
        return {
            "teachers": len(self.teachers),
            "classrooms": len(self.classrooms),
            "sections": len(self.sections),
            "published_sessions": len(self.sessions),
            "requests": len(self.requests),
            "target_section": self.target_section_id,
        }
