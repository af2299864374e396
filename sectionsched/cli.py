"""
Command-line interface for the section scheduler.

Usage:
    python -m sectionsched solve problem.json -o sessions.json --time-limit 10
    python -m sectionsched validate problem.json
    python -m sectionsched timeslots
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from rich.text import Text

from .builder import AllocationBuilder
from .config import Settings, configure_logging, get_settings
from .data.loader import DataValidationError, load_problem
from .data.models import SchedulingProblem, minutes_to_time
from .data.timeslots import TimeslotCatalog
from .exceptions import InvalidArgumentError, NotFoundError
from .jobs import JobCoordinator, JobOutcome, JobRecord
from .output.schema import OutputStatus, SolveOutput, create_solve_output
from .repository import InMemoryScheduleRepository

# Create Typer app
app = typer.Typer(
    name="sectionsched",
    help="Weekly section timetable solver using local search.",
    add_completion=False,
)

# Rich console for pretty output
console = Console()

OUTCOME_STATUS = {
    JobOutcome.ACCEPTED: OutputStatus.ACCEPTED,
    JobOutcome.REJECTED: OutputStatus.REJECTED,
    JobOutcome.FAILED: OutputStatus.FAILED,
    JobOutcome.CANCELLED: OutputStatus.CANCELLED,
}


# =============================================================================
# Helper Functions
# =============================================================================

def load_input(input_path: Path) -> SchedulingProblem:
    """Load and validate a problem file."""
    if not input_path.exists():
        console.print(f"[red]Error:[/red] Input file not found: {input_path}")
        raise typer.Exit(code=1)

    try:
        return load_problem(input_path)
    except (json.JSONDecodeError, DataValidationError) as e:
        console.print(f"[red]Error loading input:[/red] {e}")
        raise typer.Exit(code=1)


def setup_logging(settings: Settings, verbose: bool) -> None:
    """Route log records through rich."""
    level = "DEBUG" if verbose else settings.log_level
    configure_logging(
        settings.model_copy(update={"log_level": level, "log_format": "%(message)s"}),
        handler=RichHandler(console=console, show_path=False),
    )


def require_section(problem: SchedulingProblem) -> str:
    section_id = problem.target_section_id
    if not section_id:
        console.print("[red]Error:[/red] Problem has no target section (set 'sectionId')")
        raise typer.Exit(code=1)
    return section_id


def build_output(record: JobRecord) -> SolveOutput:
    """Convert a finished job record into a SolveOutput."""
    score = None
    if record.report is not None and record.report.score is not None:
        score = record.report.score
    elif record.solver_result is not None:
        score = record.solver_result.score

    return create_solve_output(
        problem_id=record.problem_id,
        status=OUTCOME_STATUS.get(record.outcome, OutputStatus.FAILED),
        sessions=record.sessions,
        solution=record.solution,
        score=score,
        section_id=record.section_id,
        reason=record.error or "",
        solve_time_seconds=record.solver_result.elapsed_seconds if record.solver_result else 0.0,
        skipped_sessions=[str(issue) for issue in record.skipped_sessions],
        repairs=[str(move) for move in record.report.repairs] if record.report else [],
    )


def print_summary(output: SolveOutput) -> None:
    """Print solve summary to console."""
    status_color = "green" if output.status == OutputStatus.ACCEPTED else "red"
    status_text = Text(output.status.value.upper(), style=f"bold {status_color}")

    console.print(Panel(
        status_text,
        title="Solve Status",
        subtitle=f"Solved in {output.solve_time_seconds:.2f}s",
    ))

    table = Table(title="Summary", show_header=False, box=None)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Problem", output.problem_id)
    table.add_row("Section", output.section_id or "-")
    table.add_row("Sessions", str(len(output.sessions)))
    if output.score is not None:
        table.add_row("Score", f"{output.score.hard}hard/{output.score.soft}soft")
    table.add_row("Skipped published", str(len(output.skipped_sessions)))
    table.add_row("Repairs", str(len(output.repairs)))
    if output.reason:
        table.add_row("Reason", output.reason)

    console.print(table)


def print_timetable(output: SolveOutput) -> None:
    """Print the per-day session table."""
    if not output.sessions:
        return

    table = Table(title="Timetable")
    table.add_column("Day", style="cyan")
    table.add_column("Time", style="white")
    table.add_column("Subject", style="bold")
    table.add_column("Room", style="green")
    table.add_column("Teacher", style="yellow")

    for schedule in output.by_day.values():
        for i, session in enumerate(schedule.sessions):
            table.add_row(
                schedule.day_name if i == 0 else "",
                f"{session.start_time} - {session.end_time}",
                f"{session.subject_code} {session.subject_name}".strip(),
                session.classroom_name or session.classroom_id,
                session.teacher_name or session.teacher_id or "-",
            )

    console.print(table)


# =============================================================================
# Commands
# =============================================================================

@app.command()
def solve(
    input_file: Path = typer.Argument(
        ...,
        help="Path to problem JSON file",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output", "-o",
        help="Path to write the solve output JSON",
    ),
    time_limit: Optional[float] = typer.Option(
        None,
        "--time-limit", "-t",
        help="Maximum solving time in seconds",
        min=0.1,
    ),
    max_steps: Optional[int] = typer.Option(
        None,
        "--max-steps",
        help="Maximum local search steps",
        min=1,
    ),
    seed: Optional[int] = typer.Option(
        None,
        "--seed",
        help="Random seed",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable debug logging",
    ),
) -> None:
    """
    Solve the weekly schedule of one section.

    Loads the problem, runs a solve job against an in-memory record store,
    and prints the accepted sessions.

    Example:
        python -m sectionsched solve problem.json -o sessions.json -t 10
    """
    settings = get_settings()
    overrides = {}
    if time_limit is not None:
        overrides["solver_time_limit_seconds"] = time_limit
    if max_steps is not None:
        overrides["solver_max_steps"] = max_steps
    if seed is not None:
        overrides["solver_random_seed"] = seed
    settings = settings.model_copy(update=overrides)
    setup_logging(settings, verbose)

    console.print(f"\n[bold]Loading problem from:[/bold] {input_file}")
    problem = load_input(input_file)
    section_id = require_section(problem)

    console.print(
        f"[green]Loaded:[/green] {len(problem.requests)} requests, {len(problem.teachers)} teachers, "
        f"{len(problem.classrooms)} classrooms, {len(problem.sessions)} published sessions"
    )

    repository = InMemoryScheduleRepository(
        problem.teachers, problem.classrooms, problem.sections, problem.sessions,
    )

    with JobCoordinator(repository, settings=settings) as coordinator:
        try:
            problem_id = coordinator.submit(section_id, problem.requests)
        except (InvalidArgumentError, NotFoundError) as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(code=1)

        console.print(f"\n[bold]Solving (time limit: {settings.solver_time_limit_seconds}s)...[/bold]")
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            progress.add_task("Searching for a feasible schedule...", total=None)
            record = coordinator.wait(problem_id)

    solve_output = build_output(record)

    console.print()
    print_summary(solve_output)
    print_timetable(solve_output)

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(solve_output.to_json())
        console.print(f"\n[green]Output saved to:[/green] {output}")

    if solve_output.status != OutputStatus.ACCEPTED:
        console.print("\n[red]No acceptable schedule found.[/red]")
        raise typer.Exit(code=1)

    console.print()


@app.command()
def validate(
    input_file: Path = typer.Argument(
        ...,
        help="Path to problem JSON file to validate",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="List skipped published sessions",
    ),
) -> None:
    """
    Validate a problem file and build its allocations without solving.

    Example:
        python -m sectionsched validate problem.json
    """
    console.print(f"\n[bold]Validating:[/bold] {input_file}\n")

    console.print("[cyan]1. Loading problem...[/cyan]")
    problem = load_input(input_file)
    console.print("   [green]Schema validation passed[/green]")

    console.print("[cyan]2. Building allocations...[/cyan]")
    section_id = require_section(problem)
    builder = AllocationBuilder(problem.teachers, problem.classrooms, problem.sections)
    try:
        result = builder.build(section_id, problem.requests, problem.sessions)
    except (InvalidArgumentError, NotFoundError) as e:
        console.print(f"   [red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    if result.issues:
        console.print(f"   [yellow]{len(result.issues)} published session(s) skipped[/yellow]")
        if verbose:
            for issue in result.issues:
                console.print(f"   - {issue}")
    else:
        console.print("   [green]All published sessions resolved[/green]")

    console.print("\n[bold]Summary:[/bold]")
    table = Table(show_header=False, box=None)
    table.add_column("Entity", style="cyan")
    table.add_column("Count", style="white")

    table.add_row("Target section", section_id)
    table.add_row("Requests", str(len(problem.requests)))
    table.add_row("Movable allocations", str(len(result.movable)))
    table.add_row("Pinned allocations", str(len(result.pinned)))
    table.add_row("Skipped sessions", str(result.skipped_count))
    table.add_row("Timeslots", str(len(builder.timeslots)))

    console.print(table)
    console.print("\n[green]Validation complete.[/green]\n")


@app.command()
def timeslots() -> None:
    """Print the weekly timeslot catalog."""
    catalog = TimeslotCatalog()

    table = Table(title=f"Timeslots ({len(catalog)})")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Day", style="white")
    table.add_column("Start", style="green")
    table.add_column("End", style="green")

    for ts in catalog:
        table.add_row(str(ts.id), ts.day.label, minutes_to_time(ts.start_minutes), minutes_to_time(ts.end_minutes))

    console.print(table)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
