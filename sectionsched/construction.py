"""
First-fit construction heuristic.

Movable allocations are placed one by one in id order. Each takes the first
(timeslot, classroom) pair of the catalog product that adds no hard penalty
against what is already placed, or else the pair adding the least.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .constraints import ConstraintManager
from .exceptions import SchedulingError
from .model import Allocation, HardSoftScore, ScheduleSolution
from .moves import related_allocations

logger = logging.getLogger(__name__)


@dataclass
class ConstructionStats:
    """Statistics about a construction run."""
    placed: int = 0
    placed_without_conflict: int = 0
    placed_with_conflict: int = 0
    candidates_evaluated: int = 0


class ConstructionHeuristic:
    """
    Assigns every unassigned movable allocation.

    Always terminates with every movable allocation assigned, even when the
    result is infeasible.
    """

    def __init__(self, manager: ConstraintManager, should_stop: Optional[Callable[[], bool]] = None):
        self.manager = manager
        self.should_stop = should_stop or (lambda: False)

    def construct(self, solution: ScheduleSolution) -> ConstructionStats:
        stats = ConstructionStats()
        timeslots = list(solution.timeslots)
        classrooms = solution.classroom_list

        if not timeslots or not classrooms:
            logger.warning("Cannot construct: %d timeslots, %d classrooms", len(timeslots), len(classrooms))
            return stats

        pending = sorted(
            (a for a in solution.movable_allocations if not a.is_assigned),
            key=lambda a: a.id,
        )

        for allocation in pending:
            if self.should_stop():
                logger.info("Construction interrupted after %d placements", stats.placed)
                break
            added_hard = self._place(solution, allocation, timeslots, classrooms, stats)
            stats.placed += 1
            if added_hard == 0:
                stats.placed_without_conflict += 1
            else:
                stats.placed_with_conflict += 1
                logger.debug("Placed %s with %d new hard penalty", allocation, added_hard)

        logger.info(
            "Construction placed %d allocations (%d with conflicts)",
            stats.placed, stats.placed_with_conflict,
        )
        return stats

    def _place(
        self,
        solution: ScheduleSolution,
        allocation: Allocation,
        timeslots: list,
        classrooms: list,
        stats: ConstructionStats,
    ) -> int:
        baselines: dict[str, tuple[list[Allocation], HardSoftScore]] = {}
        best: Optional[tuple[int, int, str]] = None

        for timeslot in timeslots:
            for classroom in classrooms:
                if classroom.id not in baselines:
                    related = [
                        a for a in related_allocations(solution, [allocation], [classroom.id])
                        if a.is_assigned or a is allocation
                    ]
                    others = [a for a in related if a is not allocation]
                    baselines[classroom.id] = (related, self.manager.score(solution, others))
                related, baseline = baselines[classroom.id]

                solution.assign(allocation, timeslot.id, classroom.id)
                added_hard = (self.manager.score(solution, related) - baseline).hard
                stats.candidates_evaluated += 1

                if added_hard <= 0:
                    return 0
                if best is None or added_hard < best[0]:
                    best = (added_hard, timeslot.id, classroom.id)

        if best is None:
            raise SchedulingError(f"No timeslot or classroom to place allocation {allocation.id}")
        solution.assign(allocation, best[1], best[2])
        return best[0]
