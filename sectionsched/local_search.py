"""
Solver: construction followed by simulated-annealing local search.

The search mutates one ScheduleSolution in place on a single thread. Moves
are scored by the delta over related allocations; hard regressions are
rejected, soft-only regressions are accepted with probability
exp(-delta / temperature). The best solution seen is snapshotted and restored
at the end.
"""

from __future__ import annotations

import logging
import math
import random
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .config import Settings, get_settings
from .constraints import ConstraintManager, check_room_suitability
from .construction import ConstructionHeuristic, ConstructionStats
from .model import HardSoftScore, ScheduleSolution
from .moves import (
    ChangeAssignmentMove,
    ChangeClassroomMove,
    ChangeTimeslotMove,
    Move,
    SwapAssignmentsMove,
    related_allocations,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, HardSoftScore, HardSoftScore], None]


# =============================================================================
# Configuration and Result
# =============================================================================

@dataclass
class SolverConfig:
    """Search budget and annealing parameters."""
    time_limit_seconds: float = 30.0
    max_steps: Optional[int] = None
    unimproved_step_limit: int = 2000
    random_seed: Optional[int] = 42
    start_temperature: float = 10.0
    cooling_rate: float = 0.995
    min_temperature: float = 0.05
    reheat_after_steps: int = 1000

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "SolverConfig":
        settings = settings or get_settings()
        return cls(
            time_limit_seconds=settings.solver_time_limit_seconds,
            max_steps=settings.solver_max_steps,
            unimproved_step_limit=settings.solver_unimproved_step_limit,
            random_seed=settings.solver_random_seed,
            start_temperature=settings.solver_start_temperature,
            cooling_rate=settings.solver_cooling_rate,
            min_temperature=settings.solver_min_temperature,
            reheat_after_steps=settings.solver_reheat_after_steps,
        )


class SolverStatus(str, Enum):
    """Solver result status."""
    FEASIBLE = "FEASIBLE"
    INFEASIBLE = "INFEASIBLE"
    CANCELLED = "CANCELLED"


@dataclass
class SolverResult:
    """Outcome of one solve; the solution itself holds the best assignment."""
    status: SolverStatus
    score: HardSoftScore
    steps: int
    accepted_moves: int
    elapsed_seconds: float
    construction: Optional[ConstructionStats] = None

    @property
    def is_feasible(self) -> bool:
        return self.status == SolverStatus.FEASIBLE


# =============================================================================
# Move Selection
# =============================================================================

class MoveSelector:
    """
    Random neighbourhood over movable allocations.

    Classroom candidates are limited to rooms whose type suits the allocation,
    falling back to every room when none does.
    """

    # (move kind, relative weight)
    MOVE_WEIGHTS = (
        ("change_timeslot", 40),
        ("change_classroom", 15),
        ("change_assignment", 25),
        ("swap_assignments", 20),
    )

    def __init__(self, solution: ScheduleSolution, rng: random.Random, computer_lab_program: str = "BSIT"):
        self.solution = solution
        self.rng = rng
        self.movable = solution.movable_allocations
        self.timeslot_ids = [ts.id for ts in solution.timeslots]
        self._kinds = [kind for kind, _ in self.MOVE_WEIGHTS]
        self._weights = [weight for _, weight in self.MOVE_WEIGHTS]

        self.rooms: dict[int, list[str]] = {}
        for allocation in self.movable:
            section = solution.get_section(allocation)
            suitable = [
                c.id for c in solution.classroom_list
                if check_room_suitability(allocation, c, section, computer_lab_program).is_valid
            ]
            self.rooms[allocation.id] = suitable or list(solution.classrooms)

    def select(self) -> Optional[Move]:
        if not self.movable:
            return None
        allocation = self.rng.choice(self.movable)
        kind = self.rng.choices(self._kinds, weights=self._weights)[0]

        if kind == "change_timeslot":
            return ChangeTimeslotMove(allocation, self.rng.choice(self.timeslot_ids))
        if kind == "change_classroom":
            return ChangeClassroomMove(allocation, self.rng.choice(self.rooms[allocation.id]))
        if kind == "change_assignment":
            return ChangeAssignmentMove(
                allocation,
                self.rng.choice(self.timeslot_ids),
                self.rng.choice(self.rooms[allocation.id]),
            )
        if len(self.movable) < 2:
            return None
        other = self.rng.choice(self.movable)
        return SwapAssignmentsMove(allocation, other)


# =============================================================================
# Solver
# =============================================================================

class LocalSearchSolver:
    """
    Two-phase solver over a ScheduleSolution.

    Usage:
        solver = LocalSearchSolver(ConstraintManager(), SolverConfig(time_limit_seconds=5))
        result = solver.solve(solution)
    """

    def __init__(
        self,
        manager: ConstraintManager | None = None,
        config: SolverConfig | None = None,
        cancel_event: threading.Event | None = None,
        progress_callback: ProgressCallback | None = None,
    ):
        """
        Initialize the solver.

        Args:
            manager: Constraint manager used for scoring
            config: Search budget (defaults from settings if None)
            cancel_event: Set to stop the search at the next step boundary
            progress_callback: Called as (step, current, best) on new best scores
        """
        self.manager = manager or ConstraintManager()
        self.config = config or SolverConfig.from_settings()
        self.cancel_event = cancel_event or threading.Event()
        self.progress_callback = progress_callback

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def solve(self, solution: ScheduleSolution) -> SolverResult:
        """
        Assign every movable allocation, then improve by local search.

        Pinned allocations are never touched. On return the solution holds the
        best assignment found and ``solution.score`` its full score.
        """
        config = self.config
        started = time.monotonic()
        deadline = started + config.time_limit_seconds
        rng = random.Random(config.random_seed)

        construction = ConstructionHeuristic(self.manager, should_stop=lambda: self.cancelled).construct(solution)

        current = self.manager.score(solution)
        best = current
        best_snapshot = solution.snapshot()
        logger.info("Construction score: %s", current)

        selector = MoveSelector(solution, rng, self.manager.computer_lab_program)
        temperature = config.start_temperature
        steps = accepted = 0
        last_improvement = 0

        while not self.cancelled and selector.movable:
            if config.max_steps is not None and steps >= config.max_steps:
                break
            if time.monotonic() >= deadline:
                break
            if best.is_feasible and steps - last_improvement >= config.unimproved_step_limit:
                logger.debug("Stopping: no improvement in %d steps", config.unimproved_step_limit)
                break

            steps += 1
            move = selector.select()
            if move is None or not move.is_doable():
                continue

            related = related_allocations(solution, move.allocations, move.target_classrooms())
            before = self.manager.score(solution, related)
            undo = move.apply(solution)
            after = self.manager.score(solution, related)
            candidate = current + (after - before)

            if self._accept(current, candidate, temperature, rng):
                current = candidate
                accepted += 1
                if current < best:
                    best = current
                    best_snapshot = solution.snapshot()
                    last_improvement = steps
                    logger.debug("Step %d: new best %s (%s)", steps, best, move.name)
                    if self.progress_callback is not None:
                        self.progress_callback(steps, current, best)
            else:
                undo.apply(solution)

            temperature = max(config.min_temperature, temperature * config.cooling_rate)
            if steps - last_improvement > 0 and (steps - last_improvement) % config.reheat_after_steps == 0:
                temperature = config.start_temperature
                logger.debug("Step %d: reheating to %.2f", steps, temperature)

        solution.restore(best_snapshot)
        solution.score = self.manager.score(solution)
        elapsed = time.monotonic() - started

        if self.cancelled:
            status = SolverStatus.CANCELLED
        elif solution.score.is_feasible:
            status = SolverStatus.FEASIBLE
        else:
            status = SolverStatus.INFEASIBLE

        logger.info(
            "Solve finished: %s, score %s, %d steps, %d accepted, %.2fs",
            status.value, solution.score, steps, accepted, elapsed,
        )
        return SolverResult(
            status=status,
            score=solution.score,
            steps=steps,
            accepted_moves=accepted,
            elapsed_seconds=elapsed,
            construction=construction,
        )

    @staticmethod
    def _accept(
        current: HardSoftScore,
        candidate: HardSoftScore,
        temperature: float,
        rng: random.Random,
    ) -> bool:
        if candidate <= current:
            return True
        if candidate.hard > current.hard:
            return False
        delta = candidate.soft - current.soft
        return rng.random() < math.exp(-delta / max(temperature, 1e-9))


def solve(
    solution: ScheduleSolution,
    manager: ConstraintManager | None = None,
    config: SolverConfig | None = None,
    cancel_event: threading.Event | None = None,
) -> SolverResult:
    """Convenience wrapper around LocalSearchSolver."""
    return LocalSearchSolver(manager, config, cancel_event).solve(solution)
