"""Section Scheduler - weekly class timetabling with local search."""

from .builder import AllocationBuilder, split_session_durations
from .constraints import ConstraintManager, ConstraintWeights
from .exceptions import (
    SchedulingError,
    InvalidArgumentError,
    NotFoundError,
    InfeasibleError,
    PinnedAllocationError,
    DuplicateJobError,
)
from .jobs import JobCoordinator, JobStatus, JobOutcome
from .local_search import LocalSearchSolver, SolverConfig, SolverResult, SolverStatus
from .model import Allocation, HardSoftScore, ScheduleSolution
from .repository import InMemoryScheduleRepository, ScheduleRepository
from .validation import PostSolveValidator, ValidationReport

__all__ = [
    # Building
    "AllocationBuilder",
    "split_session_durations",
    # Model
    "Allocation",
    "HardSoftScore",
    "ScheduleSolution",
    # Scoring
    "ConstraintManager",
    "ConstraintWeights",
    # Solving
    "LocalSearchSolver",
    "SolverConfig",
    "SolverResult",
    "SolverStatus",
    # Validation
    "PostSolveValidator",
    "ValidationReport",
    # Jobs
    "JobCoordinator",
    "JobStatus",
    "JobOutcome",
    "InMemoryScheduleRepository",
    "ScheduleRepository",
    # Errors
    "SchedulingError",
    "InvalidArgumentError",
    "NotFoundError",
    "InfeasibleError",
    "PinnedAllocationError",
    "DuplicateJobError",
]
