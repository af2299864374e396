"""
Constraint modules for the timetabling solver.

This package contains the scoring rules as pure functions of a
ScoringContext, and the ConstraintManager that weights them into a
HardSoftScore.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import Callable, Iterable, Optional

from sectionsched.model import Allocation, HardSoftScore, ScheduleSolution

from .core import (
    ScoringContext,
    count_overlaps,
    find_overlapping_pairs,
    group_by,
)

from .no_overlap import (
    teacher_conflicts,
    classroom_conflicts,
    section_conflicts,
    exact_time_collisions,
    duplicate_sessions,
    find_resource_overlaps,
    OverlapViolation,
)

from .rooms import (
    computer_lab_requirement,
    general_lab_requirement,
    lecture_room_requirement,
    classroom_consistency,
    classroom_utilization,
    check_room_suitability,
    utilization_level,
    RoomSuitability,
)

from .daily_limits import (
    latest_end_time,
    section_major_density,
    teacher_major_density,
    late_evening_classes,
)

from .distribution import (
    major_sequencing,
    teacher_major_overlap,
    cross_section_same_day,
    non_major_pattern,
    non_major_grid_matches,
    major_sequential_matches,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Constraint Manager Configuration
# =============================================================================

@dataclass
class ConstraintWeights:
    """Penalty weights per constraint. Rewards use their weight negatively."""
    # Hard: resource usage
    teacher_conflict: int = 1
    classroom_conflict: int = 1
    section_conflict: int = 1
    exact_time_collision: int = 1
    duplicate_session: int = 1

    # Hard: room type (lab requirements outrank the other hard rules)
    computer_lab: int = 10
    general_lab: int = 5
    lecture_room: int = 5

    # Hard: daily limits
    latest_end: int = 1
    section_major_density: int = 2
    teacher_major_density: int = 2

    # Hard: distribution
    major_sequencing: int = 1
    teacher_major_overlap: int = 1
    classroom_consistency: int = 1
    cross_section_same_day: int = 1
    non_major_pattern: int = 1

    # Soft
    non_major_grid_reward: int = 10
    major_sequential_reward: int = 10
    late_evening: int = 2
    utilization: int = 1

    def __post_init__(self):
        for f in fields(self):
            if getattr(self, f.name) < 0:
                raise ValueError(f"Constraint weight {f.name} must be non-negative")


@dataclass(frozen=True)
class ConstraintDefinition:
    """One scoring rule and how it contributes to the score."""
    name: str
    function: Callable[[ScoringContext], int]
    weight_name: str
    hard: bool = True
    reward: bool = False


CONSTRAINTS: tuple[ConstraintDefinition, ...] = (
    ConstraintDefinition("Teacher conflict", teacher_conflicts, "teacher_conflict"),
    ConstraintDefinition("Classroom conflict", classroom_conflicts, "classroom_conflict"),
    ConstraintDefinition("Section conflict", section_conflicts, "section_conflict"),
    ConstraintDefinition("Exact time collision", exact_time_collisions, "exact_time_collision"),
    ConstraintDefinition("Duplicate session", duplicate_sessions, "duplicate_session"),
    ConstraintDefinition("Computer lab requirement", computer_lab_requirement, "computer_lab"),
    ConstraintDefinition("Laboratory requirement", general_lab_requirement, "general_lab"),
    ConstraintDefinition("Lecture room requirement", lecture_room_requirement, "lecture_room"),
    ConstraintDefinition("Latest end time", latest_end_time, "latest_end"),
    ConstraintDefinition("Section major density", section_major_density, "section_major_density"),
    ConstraintDefinition("Teacher major density", teacher_major_density, "teacher_major_density"),
    ConstraintDefinition("Major sequencing", major_sequencing, "major_sequencing"),
    ConstraintDefinition("Teacher major overlap", teacher_major_overlap, "teacher_major_overlap"),
    ConstraintDefinition("Classroom consistency", classroom_consistency, "classroom_consistency"),
    ConstraintDefinition("Cross-section same day", cross_section_same_day, "cross_section_same_day"),
    ConstraintDefinition("Non-major pattern", non_major_pattern, "non_major_pattern"),
    ConstraintDefinition("Non-major grid", non_major_grid_matches, "non_major_grid_reward",
                         hard=False, reward=True),
    ConstraintDefinition("Major sequential", major_sequential_matches, "major_sequential_reward",
                         hard=False, reward=True),
    ConstraintDefinition("Late evening start", late_evening_classes, "late_evening", hard=False),
    ConstraintDefinition("Classroom utilization", classroom_utilization, "utilization", hard=False),
)


@dataclass
class ConstraintMatch:
    """Explanation line: how often a rule matched and what it cost."""
    name: str
    hard: bool
    matches: int
    penalty: int

    def __str__(self) -> str:
        level = "hard" if self.hard else "soft"
        return f"{self.name}: {self.matches} match(es), {self.penalty}{level}"


# =============================================================================
# Constraint Manager
# =============================================================================

class ConstraintManager:
    """
    Centralized scoring of all timetabling constraints.

    Usage:
        manager = ConstraintManager(weights=ConstraintWeights())
        score = manager.score(solution)
        for match in manager.explain(solution):
            print(match)
    """

    def __init__(
        self,
        weights: ConstraintWeights | None = None,
        computer_lab_program: str = "BSIT",
    ):
        """
        Initialize the constraint manager.

        Args:
            weights: Penalty weights (uses defaults if None)
            computer_lab_program: Program code whose majors need a computer lab
        """
        self.weights = weights or ConstraintWeights()
        self.computer_lab_program = computer_lab_program

    def _context(
        self,
        solution: ScheduleSolution,
        allocations: Optional[Iterable[Allocation]],
    ) -> ScoringContext:
        return ScoringContext.build(solution, allocations, self.computer_lab_program)

    def _evaluate(self, ctx: ScoringContext) -> list[ConstraintMatch]:
        results = []
        for definition in CONSTRAINTS:
            matches = definition.function(ctx)
            weight = getattr(self.weights, definition.weight_name)
            penalty = matches * weight
            if definition.reward:
                penalty = -penalty
            results.append(ConstraintMatch(definition.name, definition.hard, matches, penalty))
        return results

    def score(
        self,
        solution: ScheduleSolution,
        allocations: Optional[Iterable[Allocation]] = None,
    ) -> HardSoftScore:
        """
        Score a solution, or only the given subset of its allocations.

        Args:
            solution: Solution whose assignments are scored
            allocations: Subset to score (all allocations if None)

        Returns:
            HardSoftScore of the scored allocations
        """
        hard = soft = 0
        for match in self._evaluate(self._context(solution, allocations)):
            if match.hard:
                hard += match.penalty
            else:
                soft += match.penalty
        return HardSoftScore(hard, soft)

    def explain(self, solution: ScheduleSolution) -> list[ConstraintMatch]:
        """Per-constraint match counts and weighted penalties for a full solution."""
        return self._evaluate(self._context(solution, None))

    def update_score(self, solution: ScheduleSolution) -> HardSoftScore:
        """Score the full solution and store it on ``solution.score``."""
        solution.score = self.score(solution)
        logger.debug("Scored solution: %s", solution.score)
        return solution.score


__all__ = [
    # Manager
    "ConstraintManager",
    "ConstraintWeights",
    "ConstraintDefinition",
    "ConstraintMatch",
    "CONSTRAINTS",
    "ScoringContext",
    # Helpers
    "count_overlaps",
    "find_overlapping_pairs",
    "group_by",
    # No-overlap
    "teacher_conflicts",
    "classroom_conflicts",
    "section_conflicts",
    "exact_time_collisions",
    "duplicate_sessions",
    "find_resource_overlaps",
    "OverlapViolation",
    # Rooms
    "computer_lab_requirement",
    "general_lab_requirement",
    "lecture_room_requirement",
    "classroom_consistency",
    "classroom_utilization",
    "check_room_suitability",
    "utilization_level",
    "RoomSuitability",
    # Daily limits
    "latest_end_time",
    "section_major_density",
    "teacher_major_density",
    "late_evening_classes",
    # Distribution
    "major_sequencing",
    "teacher_major_overlap",
    "cross_section_same_day",
    "non_major_pattern",
    "non_major_grid_matches",
    "major_sequential_matches",
]
