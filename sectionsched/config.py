"""
Configuration management for the scheduling engine.

Values are read from environment variables prefixed with ``SECTIONSCHED_``
(or a local ``.env`` file), e.g. ``SECTIONSCHED_SOLVER_TIME_LIMIT_SECONDS=10``.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Settings(BaseSettings):
    """Engine settings."""

    model_config = SettingsConfigDict(
        env_prefix="SECTIONSCHED_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Solver budget
    solver_time_limit_seconds: float = Field(default=30.0, gt=0)
    solver_max_steps: Optional[int] = Field(default=None, ge=1)
    solver_unimproved_step_limit: int = Field(default=2000, ge=1)
    solver_random_seed: Optional[int] = 42

    # Simulated annealing
    solver_start_temperature: float = Field(default=10.0, gt=0)
    solver_cooling_rate: float = Field(default=0.995, gt=0, lt=1)
    solver_min_temperature: float = Field(default=0.05, gt=0)
    solver_reheat_after_steps: int = Field(default=1000, ge=1)

    # Jobs
    max_workers: int = Field(default=4, ge=1)

    # Policy
    computer_lab_program: str = "BSIT"

    # Logging
    log_level: str = "INFO"
    log_format: str = LOG_FORMAT


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()


def configure_logging(settings: Settings | None = None, handler: logging.Handler | None = None) -> None:
    """Configure root logging from settings."""
    settings = settings or get_settings()
    handlers = [handler] if handler is not None else None
    logging.basicConfig(
        level=settings.log_level.upper(),
        format=settings.log_format,
        handlers=handlers,
        force=True,
    )
