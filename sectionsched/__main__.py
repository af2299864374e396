"""
Entry point for running the scheduler as a module.

Usage:
    python -m sectionsched solve problem.json -o sessions.json
    python -m sectionsched validate problem.json
    python -m sectionsched timeslots
"""

from sectionsched.cli import main

if __name__ == "__main__":
    main()
