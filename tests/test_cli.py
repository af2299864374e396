"""Tests for CLI module."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from sectionsched.cli import app


runner = CliRunner()


@pytest.fixture
def problem_data() -> dict:
    """Small solvable problem as a dictionary."""
    return {
        "sectionId": "s1",
        "teachers": [{"id": "t1", "name": "Ana Reyes"}, {"id": "t2", "name": "Ben Cruz"}],
        "classrooms": [
            {"id": "lec1", "name": "Room 101", "capacity": 40, "type": "Lecture Room"},
            {"id": "lab1", "name": "CL 1", "capacity": 40, "type": "Computer Laboratory"},
        ],
        "sections": [
            {"id": "s1", "program": "BSIT", "yearLevel": 1, "sectionName": "A", "numberOfStudents": 30},
            {"id": "s2", "program": "BSIT", "yearLevel": 1, "sectionName": "B", "numberOfStudents": 30},
        ],
        "requests": [
            {"subjectCode": "IT101", "subjectName": "Intro to Computing", "teacherId": "t1",
             "sectionId": "s1", "classHoursPerWeek": 3},
            {"subjectCode": "IT102", "subjectName": "Programming 1", "teacherId": "t1",
             "sectionId": "s1", "classHoursPerWeek": 3, "isMajor": True},
        ],
        "sessions": [
            {"id": "p1", "subjectCode": "GE1", "teacherId": "t2", "sectionId": "s2", "classroomId": "lec1",
             "dayOfWeek": "MONDAY", "startTime": "08:00 AM", "endTime": "09:30 AM"},
            {"id": "p2", "subjectCode": "GE1", "teacherId": "t2", "sectionId": "s2", "classroomId": "lec1",
             "dayOfWeek": "MONDAY", "startTime": "08:15 AM", "endTime": "09:30 AM"},
        ],
    }


@pytest.fixture
def problem_file(tmp_path, problem_data) -> Path:
    path = tmp_path / "problem.json"
    path.write_text(json.dumps(problem_data))
    return path


class TestTimeslotsCommand:
    """Tests for the timeslots command."""

    def test_lists_catalog(self):
        result = runner.invoke(app, ["timeslots"])
        assert result.exit_code == 0
        assert "Timeslots (48)" in result.stdout
        assert "Saturday" in result.stdout


class TestValidateCommand:
    """Tests for the validate command."""

    def test_valid_problem(self, problem_file):
        result = runner.invoke(app, ["validate", str(problem_file), "--verbose"])
        assert result.exit_code == 0
        assert "Schema validation passed" in result.stdout
        assert "Movable allocations" in result.stdout
        assert "1 published session(s) skipped" in result.stdout

    def test_unknown_teacher(self, tmp_path, problem_data):
        problem_data["requests"][0]["teacherId"] = "ghost"
        path = tmp_path / "bad.json"
        path.write_text(json.dumps(problem_data))
        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 1

    def test_invalid_schema(self, tmp_path, problem_data):
        problem_data["classrooms"] = []
        path = tmp_path / "bad.json"
        path.write_text(json.dumps(problem_data))
        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 1
        assert "Error loading input" in result.stdout

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["validate", str(tmp_path / "missing.json")])
        assert result.exit_code == 1
        assert "not found" in result.stdout


class TestSolveCommand:
    """Tests for the solve command."""

    def test_solve_writes_output(self, problem_file, tmp_path):
        output = tmp_path / "out" / "sessions.json"
        result = runner.invoke(app, [
            "solve", str(problem_file), "-o", str(output),
            "--time-limit", "10", "--max-steps", "1500", "--seed", "3",
        ])
        assert result.exit_code == 0, result.stdout

        data = json.loads(output.read_text())
        assert data["status"] == "accepted"
        assert data["sectionId"] == "s1"
        assert len(data["sessions"]) == 4
        assert data["score"]["hard"] == 0
        assert len(data["skippedSessions"]) == 1

    def test_solve_infeasible_exits_nonzero(self, tmp_path, problem_data):
        problem_data["classrooms"] = [c for c in problem_data["classrooms"] if c["id"] != "lab1"]
        problem_data["sessions"] = []
        path = tmp_path / "nolab.json"
        path.write_text(json.dumps(problem_data))
        output = tmp_path / "out.json"

        result = runner.invoke(app, [
            "solve", str(path), "-o", str(output), "--time-limit", "5", "--max-steps", "300",
        ])
        assert result.exit_code == 1
        assert json.loads(output.read_text())["status"] == "rejected"

    def test_solve_missing_file(self, tmp_path):
        result = runner.invoke(app, ["solve", str(tmp_path / "missing.json")])
        assert result.exit_code == 1
