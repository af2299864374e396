"""Tests for post-solve validation and day-collision repair."""

from __future__ import annotations

import pytest

from sectionsched.data.models import Day
from sectionsched.model import HardSoftScore
from sectionsched.validation import (
    PostSolveValidator,
    find_cross_section_day_collisions,
    repair_cross_section_day_collisions,
    validate_solution,
)


@pytest.fixture
def colliding(allocation, slot):
    """Section s1 (movable) and s2 (pinned) both get IT201 from t1 on Monday 08:00."""
    movable = allocation(subject_code="IT201", section_id="s1", is_major=True, duration=60,
                         timeslot_id=slot(Day.MONDAY, "08:00"), classroom_id="lab1")
    pinned = allocation(subject_code="IT201", section_id="s2", is_major=True, duration=60, pinned=True,
                        timeslot_id=slot(Day.MONDAY, "08:00"), classroom_id="lab1")
    return movable, pinned


class TestFindCollisions:
    """Tests for cross-section day collision detection."""

    def test_detects_collision(self, colliding, make_solution):
        collisions = find_cross_section_day_collisions(make_solution(list(colliding)))
        assert len(collisions) == 1
        collision = collisions[0]
        assert (collision.teacher_id, collision.subject_code, collision.day) == ("t1", "IT201", Day.MONDAY)
        assert collision.section_ids == ["s1", "s2"]

    def test_pinned_only_group_ignored(self, allocation, make_solution, slot):
        allocs = [
            allocation(subject_code="IT201", section_id=section, is_major=True, pinned=True,
                       timeslot_id=slot(Day.MONDAY, start), classroom_id="lab1")
            for section, start in [("s2", "08:00"), ("s3", "13:00")]
        ]
        assert find_cross_section_day_collisions(make_solution(allocs)) == []

    def test_non_majors_ignored(self, allocation, make_solution, slot):
        allocs = [
            allocation(section_id="s1", timeslot_id=slot(Day.MONDAY, "08:00"), classroom_id="lec1"),
            allocation(section_id="s2", timeslot_id=slot(Day.MONDAY, "13:00"), classroom_id="lec1"),
        ]
        assert find_cross_section_day_collisions(make_solution(allocs)) == []

    def test_single_section_ignored(self, allocation, make_solution, slot):
        allocs = [
            allocation(subject_code="IT201", is_major=True, timeslot_id=slot(Day.MONDAY, "08:00"), classroom_id="lab1"),
            allocation(subject_code="IT201", is_major=True, timeslot_id=slot(Day.MONDAY, "09:30"), classroom_id="lab1"),
        ]
        assert find_cross_section_day_collisions(make_solution(allocs)) == []


class TestRepair:
    """Tests for the deterministic repair pass."""

    def test_moves_movable_section_to_next_day(self, colliding, make_solution, slot):
        movable, pinned = colliding
        solution = make_solution([movable, pinned])
        collisions = find_cross_section_day_collisions(solution)

        repaired, moves = repair_cross_section_day_collisions(solution, collisions, "s1")

        assert repaired
        assert movable.timeslot_id == slot(Day.TUESDAY, "08:00")
        assert pinned.timeslot_id == slot(Day.MONDAY, "08:00")
        assert len(moves) == 1
        assert moves[0].from_timeslot_id == slot(Day.MONDAY, "08:00")
        assert moves[0].to_timeslot_id == slot(Day.TUESDAY, "08:00")

    def test_chains_several_sessions(self, allocation, make_solution, slot):
        first = allocation(subject_code="IT201", section_id="s1", is_major=True,
                           timeslot_id=slot(Day.MONDAY, "08:00"), classroom_id="lab1")
        second = allocation(subject_code="IT201", section_id="s1", is_major=True,
                            timeslot_id=slot(Day.MONDAY, "09:30"), classroom_id="lab1")
        other = allocation(subject_code="IT201", section_id="s2", is_major=True, pinned=True,
                           timeslot_id=slot(Day.MONDAY, "13:00"), classroom_id="lab2")
        solution = make_solution([first, second, other])

        repaired, moves = repair_cross_section_day_collisions(
            solution, find_cross_section_day_collisions(solution),
        )

        assert repaired
        assert [m.to_timeslot_id for m in moves] == [slot(Day.TUESDAY, "08:00"), slot(Day.TUESDAY, "09:30")]

    def test_skips_busy_day(self, colliding, allocation, make_solution, slot):
        movable, pinned = colliding
        busy = allocation(subject_code="ED1", teacher_id="t1", section_id="s3", pinned=True,
                          timeslot_id=slot(Day.TUESDAY, "08:00"), classroom_id="lec1")
        solution = make_solution([movable, pinned, busy])

        repaired, _ = repair_cross_section_day_collisions(solution, find_cross_section_day_collisions(solution))

        assert repaired
        assert movable.timeslot_id == slot(Day.WEDNESDAY, "08:00")


class TestPostSolveValidator:
    """Tests for accept/reject decisions."""

    def test_repairs_and_accepts(self, colliding, make_solution, slot):
        movable, pinned = colliding
        solution = make_solution([movable, pinned])

        report = PostSolveValidator(target_section_id="s1").validate(solution, HardSoftScore.zero())

        assert report.accepted
        assert report.reason == ""
        assert len(report.collisions) == 1
        assert len(report.repairs) == 1
        assert movable.timeslot_id == slot(Day.TUESDAY, "08:00")
        assert report.score.hard == 0
        assert solution.score == report.score

    def test_unrepairable(self, colliding, allocation, make_solution, slot):
        movable, pinned = colliding
        busy = [
            allocation(subject_code=f"ED{day.value}", section_id="s3", pinned=True,
                       timeslot_id=slot(day, "08:00"), classroom_id="lec1")
            for day in Day if day != Day.MONDAY
        ]
        solution = make_solution([movable, pinned] + busy)

        report = PostSolveValidator(target_section_id="s1").validate(solution, HardSoftScore.zero())

        assert not report.accepted
        assert report.reason == "unrepairable day collision"
        assert movable.timeslot_id == slot(Day.MONDAY, "08:00")

    def test_infeasible_score_rejected(self, allocation, make_solution, slot):
        solution = make_solution([allocation(timeslot_id=slot(Day.MONDAY, "08:00"), classroom_id="lec1")])
        report = PostSolveValidator().validate(solution, HardSoftScore(1, 0))
        assert not report.accepted
        assert report.reason == "infeasible"

    def test_overlap_without_collision_rejected(self, allocation, make_solution, slot):
        allocs = [
            allocation(section_id="s1", timeslot_id=slot(Day.MONDAY, "08:00"), classroom_id="lec1"),
            allocation(subject_code="GE1", section_id="s2", timeslot_id=slot(Day.MONDAY, "08:00"), classroom_id="lec2"),
        ]
        report = PostSolveValidator().validate(make_solution(allocs), HardSoftScore.zero())
        assert not report.accepted
        assert report.reason == "resource overlaps"
        assert report.overlaps[0].resource == "teacher"

    def test_clean_solution_accepted(self, allocation, make_solution, slot):
        allocs = [
            allocation(timeslot_id=slot(Day.MONDAY, "08:00"), classroom_id="lec1"),
            allocation(timeslot_id=slot(Day.WEDNESDAY, "08:00"), classroom_id="lec1"),
        ]
        solution = make_solution(allocs)
        report = validate_solution(solution)
        assert report.accepted
        assert report.repairs == []
        assert report.score == HardSoftScore.zero()

    def test_hidden_hard_violation_rejected_after_rescore(self, allocation, make_solution, slot):
        # Reported score claims feasible but a non-major sits in a lab
        solution = make_solution([allocation(timeslot_id=slot(Day.MONDAY, "08:00"), classroom_id="lab1")])
        report = PostSolveValidator().validate(solution, HardSoftScore.zero())
        assert not report.accepted
        assert report.reason == "infeasible after repair"
        assert report.score.hard == 5
