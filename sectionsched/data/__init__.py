"""Data model, timeslot catalog and loading."""

from .models import (
    Day,
    Teacher,
    Classroom,
    Section,
    ScheduleRequest,
    PublishedSession,
    SchedulingProblem,
    minutes_to_time,
    time_to_minutes,
    format_clock_time,
    parse_clock_time,
)
from .timeslots import Timeslot, TimeslotCatalog, generate_timeslots
from .loader import load_problem, parse_problem, DataValidationError

__all__ = [
    # Models
    "Day",
    "Teacher",
    "Classroom",
    "Section",
    "ScheduleRequest",
    "PublishedSession",
    "SchedulingProblem",
    "minutes_to_time",
    "time_to_minutes",
    "format_clock_time",
    "parse_clock_time",
    # Timeslots
    "Timeslot",
    "TimeslotCatalog",
    "generate_timeslots",
    # Loader
    "load_problem",
    "parse_problem",
    "DataValidationError",
]
