"""Solution output formatting."""

from .schema import (
    OutputStatus,
    SessionOutput,
    ScoreOutput,
    DaySchedule,
    SolveOutput,
    solution_to_sessions,
    group_sessions_by_day,
    create_solve_output,
)

__all__ = [
    "OutputStatus",
    "SessionOutput",
    "ScoreOutput",
    "DaySchedule",
    "SolveOutput",
    "solution_to_sessions",
    "group_sessions_by_day",
    "create_solve_output",
]
