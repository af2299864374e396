"""
Post-solve validation and repair.

Re-checks the solver's best solution independently of the weighted score:
resource overlaps, and one major subject taught by one teacher to several
sections on the same day. Day collisions get one deterministic repair pass;
the solution is accepted only if it is clean and fully re-scores to hard 0.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from .constraints import ConstraintManager, OverlapViolation, find_resource_overlaps
from .constraints.core import ScoringContext, any_movable, sort_by_start
from .data.models import Day
from .model import Allocation, HardSoftScore, Placement, ScheduleSolution

logger = logging.getLogger(__name__)


# =============================================================================
# Report
# =============================================================================

@dataclass
class DayCollision:
    """One teacher's major subject on one day for more than one section."""
    teacher_id: str
    subject_code: str
    day: Day
    allocations: list[Allocation]

    @property
    def section_ids(self) -> list[str]:
        return sorted({a.section_id for a in self.allocations})

    def __str__(self) -> str:
        return (
            f"{self.subject_code} by teacher {self.teacher_id} on {self.day.label} "
            f"for sections {', '.join(self.section_ids)}"
        )


@dataclass
class RepairMove:
    """An allocation moved by the repair pass."""
    allocation_id: int
    from_timeslot_id: Optional[int]
    to_timeslot_id: int

    def __str__(self) -> str:
        return f"allocation {self.allocation_id}: timeslot {self.from_timeslot_id} -> {self.to_timeslot_id}"


@dataclass
class ValidationReport:
    """Accept/reject decision and what led to it."""
    accepted: bool
    reason: str = ""
    overlaps: list[OverlapViolation] = field(default_factory=list)
    collisions: list[DayCollision] = field(default_factory=list)
    repairs: list[RepairMove] = field(default_factory=list)
    score: Optional[HardSoftScore] = None

    def __str__(self) -> str:
        verdict = "accepted" if self.accepted else f"rejected ({self.reason})"
        return (
            f"Validation {verdict}: {len(self.overlaps)} overlap(s), "
            f"{len(self.collisions)} day collision(s), {len(self.repairs)} repair move(s), "
            f"score {self.score}"
        )


# =============================================================================
# Detection
# =============================================================================

def find_cross_section_day_collisions(solution: ScheduleSolution) -> list[DayCollision]:
    """
    Groups of one teacher's major subject on one day spanning several sections.

    Only groups with at least one movable allocation are reported; ordered by
    (teacher, subject, day).
    """
    ctx = ScoringContext.build(solution)
    groups = ctx.placed_by(
        lambda a, p: (a.teacher_id, a.subject_code, p.day)
        if a.is_major and a.teacher_id is not None else None
    )

    collisions = []
    for (teacher_id, subject_code, day), items in sorted(groups.items(), key=lambda kv: kv[0]):
        if not any_movable(items):
            continue
        if len({a.section_id for a, _ in items}) < 2:
            continue
        collisions.append(DayCollision(
            teacher_id=teacher_id,
            subject_code=subject_code,
            day=day,
            allocations=[a for a, _ in sort_by_start(items)],
        ))
    return collisions


# =============================================================================
# Repair
# =============================================================================

def _select_section_to_move(collision: DayCollision, target_section_id: Optional[str]) -> Optional[str]:
    movable_sections = sorted({a.section_id for a in collision.allocations if not a.pinned})
    if not movable_sections:
        return None
    if target_section_id in movable_sections:
        return target_section_id
    return movable_sections[0]


def _is_free(
    solution: ScheduleSolution,
    allocation: Allocation,
    placement: Placement,
    moving: list[Allocation],
) -> bool:
    for other in solution.allocations:
        if other is allocation or any(other is m for m in moving):
            continue
        other_placement = solution.placement(other)
        if other_placement is None or not other_placement.overlaps(placement):
            continue
        shares_teacher = allocation.teacher_id is not None and other.teacher_id == allocation.teacher_id
        if shares_teacher or other.classroom_id == allocation.classroom_id or other.section_id == allocation.section_id:
            return False
    return True


def _subject_on_day_elsewhere(
    solution: ScheduleSolution,
    collision: DayCollision,
    section_id: str,
    day: Day,
) -> bool:
    for other in solution.allocations:
        if (other.section_id == section_id or other.teacher_id != collision.teacher_id
                or other.subject_code != collision.subject_code or not other.is_major):
            continue
        placement = solution.placement(other)
        if placement is not None and placement.day == day:
            return True
    return False


def _plan_day(
    solution: ScheduleSolution,
    collision: DayCollision,
    moving: list[Allocation],
    start_minutes: int,
    day: Day,
) -> Optional[list[int]]:
    """Timeslot ids chaining ``moving`` from ``start_minutes`` on ``day``, if all free."""
    if _subject_on_day_elsewhere(solution, collision, moving[0].section_id, day):
        return None

    plan = []
    start = start_minutes
    for allocation in moving:
        timeslot = solution.timeslots.find(day, start)
        if timeslot is None:
            return None
        placement = Placement(day, start, start + allocation.duration_minutes)
        if not _is_free(solution, allocation, placement, moving):
            return None
        plan.append(timeslot.id)
        start += allocation.duration_minutes
    return plan


def repair_cross_section_day_collisions(
    solution: ScheduleSolution,
    collisions: list[DayCollision],
    target_section_id: Optional[str] = None,
) -> tuple[bool, list[RepairMove]]:
    """
    One deterministic repair pass over day collisions.

    For each collision the section to move is the target section when it has
    movable sessions there, else the lowest section id that does. Its sessions
    of the subject on that day move to the lowest-ordinal other day where
    they fit chained end-to-end from the same start time without clashing
    with the teacher, classroom or section.

    Returns:
        (all collisions repaired, moves made)
    """
    moves: list[RepairMove] = []

    for collision in collisions:
        section_id = _select_section_to_move(collision, target_section_id)
        if section_id is None:
            logger.warning("Cannot repair %s: all sessions are pinned", collision)
            return False, moves

        moving = [
            a for a in collision.allocations
            if a.section_id == section_id and not a.pinned
            and solution.placement(a) is not None and solution.placement(a).day == collision.day
        ]
        if not moving:
            # Already moved by an earlier repair in this pass
            continue
        moving.sort(key=lambda a: (solution.placement(a).start_minutes, a.id))
        start_minutes = solution.placement(moving[0]).start_minutes

        plan = None
        for day in solution.timeslots.days:
            if day == collision.day:
                continue
            plan = _plan_day(solution, collision, moving, start_minutes, day)
            if plan is not None:
                break

        if plan is None:
            logger.warning("Cannot repair %s: no free day at the same start time", collision)
            return False, moves

        for allocation, timeslot_id in zip(moving, plan):
            previous, _ = solution.assign(allocation, timeslot_id, allocation.classroom_id)
            moves.append(RepairMove(allocation.id, previous, timeslot_id))
            logger.info("Repair moved %s of section %s to %s", allocation, section_id, solution.get_timeslot(allocation))

    return True, moves


# =============================================================================
# Validator
# =============================================================================

class PostSolveValidator:
    """
    Accepts or rejects a solved solution before it is persisted.

    Usage:
        validator = PostSolveValidator(manager, target_section_id="sec-1")
        report = validator.validate(solution)
        if report.accepted:
            persist(solution)
    """

    def __init__(self, manager: ConstraintManager | None = None, target_section_id: Optional[str] = None):
        self.manager = manager or ConstraintManager()
        self.target_section_id = target_section_id

    def validate(self, solution: ScheduleSolution, score: Optional[HardSoftScore] = None) -> ValidationReport:
        """
        Validate and, if needed, repair a solution in place.

        Args:
            solution: Solver output
            score: Score reported by the solver (re-computed if None)

        Returns:
            ValidationReport; ``accepted`` means the solution is safe to persist
        """
        if score is None:
            score = solution.score if solution.score is not None else self.manager.score(solution)

        if not score.is_feasible:
            return self._reject("infeasible", score=score)

        overlaps = find_resource_overlaps(solution)
        collisions = find_cross_section_day_collisions(solution)

        if overlaps and not collisions:
            return self._reject("resource overlaps", overlaps=overlaps, score=score)

        repairs: list[RepairMove] = []
        if collisions:
            logger.info("Found %d cross-section day collision(s), repairing", len(collisions))
            repaired, repairs = repair_cross_section_day_collisions(solution, collisions, self.target_section_id)
            if not repaired:
                return self._reject(
                    "unrepairable day collision", overlaps=overlaps,
                    collisions=collisions, repairs=repairs, score=score,
                )

            overlaps = find_resource_overlaps(solution)
            remaining = find_cross_section_day_collisions(solution)
            if overlaps or remaining:
                return self._reject(
                    "violations persist after repair", overlaps=overlaps,
                    collisions=remaining or collisions, repairs=repairs, score=score,
                )

        final_score = self.manager.score(solution)
        solution.score = final_score
        if not final_score.is_feasible:
            return self._reject(
                "infeasible after repair", collisions=collisions, repairs=repairs, score=final_score,
            )

        report = ValidationReport(
            accepted=True,
            overlaps=overlaps,
            collisions=collisions,
            repairs=repairs,
            score=final_score,
        )
        logger.info("%s", report)
        return report

    @staticmethod
    def _reject(reason: str, **kwargs) -> ValidationReport:
        report = ValidationReport(accepted=False, reason=reason, **kwargs)
        logger.warning("%s", report)
        return report


def validate_solution(
    solution: ScheduleSolution,
    manager: ConstraintManager | None = None,
    target_section_id: Optional[str] = None,
) -> ValidationReport:
    """Convenience wrapper around PostSolveValidator."""
    return PostSolveValidator(manager, target_section_id).validate(solution)
