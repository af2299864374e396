"""
Asynchronous solve jobs.

The JobCoordinator validates a submission and builds its allocations on the
caller's thread, then solves, validates and persists on a background worker.
Status queries read a lock-guarded registry and never block on a solve.

Lifecycle per problem id:
    NOT_SOLVING -> SOLVING_SCHEDULED -> SOLVING_ACTIVE -> NOT_SOLVING
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, Optional

from .builder import AllocationBuilder, DataIntegrityIssue
from .config import Settings, get_settings
from .constraints import ConstraintManager, ConstraintWeights
from .data.models import PublishedSession, ScheduleRequest
from .data.timeslots import TimeslotCatalog
from .exceptions import DuplicateJobError, InfeasibleError, InvalidArgumentError
from .local_search import LocalSearchSolver, SolverConfig, SolverResult, SolverStatus
from .model import ScheduleSolution
from .output.schema import solution_to_sessions
from .repository import ScheduleRepository
from .validation import PostSolveValidator, ValidationReport

logger = logging.getLogger(__name__)

CompletionHandler = Callable[[str, ScheduleSolution, ValidationReport], None]


class JobStatus(str, Enum):
    """Solve state of a problem id."""
    NOT_SOLVING = "NOT_SOLVING"
    SOLVING_SCHEDULED = "SOLVING_SCHEDULED"
    SOLVING_ACTIVE = "SOLVING_ACTIVE"


class JobOutcome(str, Enum):
    """How a finished job ended."""
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


@dataclass
class JobRecord:
    """Registry entry for one problem id."""
    problem_id: str
    section_id: str
    status: JobStatus = JobStatus.SOLVING_SCHEDULED
    skipped_sessions: list[DataIntegrityIssue] = field(default_factory=list)
    outcome: Optional[JobOutcome] = None
    error: Optional[str] = None
    solver_result: Optional[SolverResult] = None
    report: Optional[ValidationReport] = None
    sessions: list[PublishedSession] = field(default_factory=list)
    solution: Optional[ScheduleSolution] = None
    future: Optional[Future] = None
    cancel_event: threading.Event = field(default_factory=threading.Event)
    submitted_at: float = field(default_factory=time.time)
    finished_at: Optional[float] = None

    @property
    def is_active(self) -> bool:
        return self.status != JobStatus.NOT_SOLVING


class JobRegistry:
    """Lock-guarded map of problem id to JobRecord."""

    def __init__(self):
        self._lock = threading.Lock()
        self._jobs: dict[str, JobRecord] = {}

    def register(self, record: JobRecord) -> None:
        """
        Add a record, replacing a finished one for the same id.

        Raises:
            DuplicateJobError: If a solve for the id is still in flight
        """
        with self._lock:
            existing = self._jobs.get(record.problem_id)
            if existing is not None and existing.is_active:
                raise DuplicateJobError(f"Problem {record.problem_id} is already being solved")
            self._jobs[record.problem_id] = record

    def get(self, problem_id: str) -> Optional[JobRecord]:
        with self._lock:
            return self._jobs.get(problem_id)

    def status(self, problem_id: str) -> JobStatus:
        """Current status; unknown ids are NOT_SOLVING."""
        with self._lock:
            record = self._jobs.get(problem_id)
            return record.status if record is not None else JobStatus.NOT_SOLVING

    def set_status(self, problem_id: str, status: JobStatus) -> None:
        with self._lock:
            record = self._jobs.get(problem_id)
            if record is not None:
                record.status = status
                if status == JobStatus.NOT_SOLVING:
                    record.finished_at = time.time()

    def active(self) -> list[JobRecord]:
        with self._lock:
            return [r for r in self._jobs.values() if r.is_active]

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)


class JobCoordinator:
    """
    Runs solve jobs on a background executor.

    Usage:
        coordinator = JobCoordinator(repository)
        problem_id = coordinator.submit("sec-1", requests)
        coordinator.status(problem_id)   # SOLVING_SCHEDULED / SOLVING_ACTIVE
        coordinator.wait(problem_id)     # tests and CLI only
    """

    def __init__(
        self,
        repository: ScheduleRepository,
        settings: Settings | None = None,
        executor: Executor | None = None,
        on_complete: CompletionHandler | None = None,
        weights: ConstraintWeights | None = None,
        solver_config: SolverConfig | None = None,
    ):
        """
        Initialize the coordinator.

        Args:
            repository: Record store for catalog reads and session writes
            settings: Engine settings (cached defaults if None)
            executor: Executor for background solves (a thread pool sized from
                settings is created and owned if None)
            on_complete: Called as (problem_id, solution, report) on acceptance
            weights: ConstraintWeights override
            solver_config: Solver budget override
        """
        self.repository = repository
        self.settings = settings or get_settings()
        self.on_complete = on_complete
        self.weights = weights
        self.solver_config = solver_config or SolverConfig.from_settings(self.settings)
        self.registry = JobRegistry()

        self._owns_executor = executor is None
        self.executor = executor or ThreadPoolExecutor(
            max_workers=self.settings.max_workers,
            thread_name_prefix="sectionsched-solver",
        )

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def submit(self, section_id: str, requests: Iterable[ScheduleRequest]) -> str:
        """Start a solve under a fresh problem id and return the id."""
        problem_id = str(uuid.uuid4())
        self.solve(problem_id, section_id, requests)
        return problem_id

    def solve(self, problem_id: str, section_id: str, requests: Iterable[ScheduleRequest]) -> JobRecord:
        """
        Start a solve for a caller-chosen problem id.

        Validation and allocation building happen synchronously; solving,
        validation and persistence run in the background.

        Raises:
            InvalidArgumentError: Empty requests, missing section id,
                non-positive weekly hours, requests for another section or
                nothing left to schedule
            NotFoundError: Unknown section or teacher
            DuplicateJobError: A solve for this problem id is in flight
        """
        requests = list(requests or [])
        self._validate_submission(problem_id, section_id, requests)

        existing = self.registry.get(problem_id)
        if existing is not None and existing.is_active:
            raise DuplicateJobError(f"Problem {problem_id} is already being solved")

        manager = self._manager()
        builder = AllocationBuilder(
            self.repository.list_teachers(),
            self.repository.list_classrooms(),
            self.repository.list_sections(),
            TimeslotCatalog(),
        )
        build = builder.build(section_id, requests, self.repository.list_sessions())
        if not build.movable:
            raise InvalidArgumentError(f"No sessions to schedule for section {section_id}")
        solution = builder.create_solution(build)

        record = JobRecord(
            problem_id=problem_id,
            section_id=section_id,
            skipped_sessions=list(build.issues),
            solution=solution,
        )
        self.registry.register(record)
        logger.info("Job %s scheduled for section %s (%d skipped sessions)",
                    problem_id, section_id, len(build.issues))

        record.future = self.executor.submit(self._run, record, solution, manager)
        return record

    def status(self, problem_id: str) -> JobStatus:
        """Current status of a problem id; never blocks on a solve."""
        return self.registry.status(problem_id)

    def get_job(self, problem_id: str) -> Optional[JobRecord]:
        return self.registry.get(problem_id)

    def cancel(self, problem_id: str) -> bool:
        """
        Stop a job cooperatively and discard its result.

        Returns:
            True if an in-flight job was found
        """
        record = self.registry.get(problem_id)
        if record is None or not record.is_active:
            return False

        record.cancel_event.set()
        if record.future is not None and record.future.cancel():
            # Never started
            record.outcome = JobOutcome.CANCELLED
            self.registry.set_status(problem_id, JobStatus.NOT_SOLVING)
        logger.info("Job %s cancellation requested", problem_id)
        return True

    def wait(self, problem_id: str, timeout: Optional[float] = None) -> Optional[JobRecord]:
        """Block until a job's background work is done (tests and CLI only)."""
        record = self.registry.get(problem_id)
        if record is None:
            return None
        if record.future is not None and not record.future.cancelled():
            record.future.result(timeout=timeout)
        return record

    def shutdown(self, wait: bool = True) -> None:
        for record in self.registry.active():
            record.cancel_event.set()
        if self._owns_executor:
            self.executor.shutdown(wait=wait)

    def __enter__(self) -> "JobCoordinator":
        return self

    def __exit__(self, *args) -> None:
        self.shutdown(wait=True)

    # -------------------------------------------------------------------------
    # Background work
    # -------------------------------------------------------------------------

    def _run(self, record: JobRecord, solution: ScheduleSolution, manager: ConstraintManager) -> JobRecord:
        problem_id = record.problem_id
        try:
            if record.cancel_event.is_set():
                record.outcome = JobOutcome.CANCELLED
                return record

            self.registry.set_status(problem_id, JobStatus.SOLVING_ACTIVE)
            logger.info("Job %s solving (%d allocations)", problem_id, len(solution.allocations))

            solver = LocalSearchSolver(manager, self.solver_config, record.cancel_event)
            result = solver.solve(solution)
            record.solver_result = result

            if result.status == SolverStatus.CANCELLED or record.cancel_event.is_set():
                record.outcome = JobOutcome.CANCELLED
                self.repository.delete_by_problem_id(problem_id)
                logger.info("Job %s cancelled, result discarded", problem_id)
                return record

            if result.status != SolverStatus.FEASIBLE:
                raise InfeasibleError(f"No feasible schedule found (score {result.score})")

            validator = PostSolveValidator(manager, target_section_id=record.section_id)
            report = validator.validate(solution, result.score)
            record.report = report
            if not report.accepted:
                raise InfeasibleError(f"Solution rejected: {report.reason}")

            sessions = solution_to_sessions(solution, problem_id, record.section_id)
            self.repository.replace_section_sessions(record.section_id, sessions)
            record.sessions = sessions
            if self.on_complete is not None:
                self.on_complete(problem_id, solution, report)

            record.outcome = JobOutcome.ACCEPTED
            logger.info("Job %s accepted: %d sessions saved, score %s", problem_id, len(sessions), report.score)

        except InfeasibleError as e:
            record.outcome = JobOutcome.REJECTED
            record.error = str(e)
            logger.warning("Job %s rejected: %s", problem_id, e)
            self._cleanup(problem_id)
        except Exception as e:
            record.outcome = JobOutcome.FAILED
            record.error = str(e)
            logger.exception("Job %s failed", problem_id)
            self._cleanup(problem_id)
        finally:
            self.registry.set_status(problem_id, JobStatus.NOT_SOLVING)

        return record

    def _cleanup(self, problem_id: str) -> None:
        try:
            self.repository.delete_by_problem_id(problem_id)
        except Exception:
            logger.exception("Cleanup of problem %s failed", problem_id)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _manager(self) -> ConstraintManager:
        return ConstraintManager(self.weights, computer_lab_program=self.settings.computer_lab_program)

    @staticmethod
    def _validate_submission(problem_id: str, section_id: str, requests: list[ScheduleRequest]) -> None:
        if not problem_id:
            raise InvalidArgumentError("Problem id is required")
        if not section_id or not str(section_id).strip():
            raise InvalidArgumentError("Section id is required")
        if not requests:
            raise InvalidArgumentError("At least one schedule request is required")
        for request in requests:
            if request.class_hours_per_week <= 0:
                raise InvalidArgumentError(
                    f"Weekly hours must be positive for {request.subject_code} "
                    f"(got {request.class_hours_per_week})"
                )
            if request.section_id is not None and request.section_id != section_id:
                raise InvalidArgumentError(
                    f"Request {request.subject_code} belongs to section {request.section_id}, "
                    f"not {section_id}"
                )
