"""
Configuration settings for the neurosched scheduling engine.

Uses Pydantic Settings for environment variable management with .env file support.
Every variable is prefixed with NEUROSCHED_ (e.g. NEUROSCHED_REQUEST_RETENTION=0.85).
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from neurosched.study.parameters import SchedulerParameters


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="NEUROSCHED_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # FSRS Scheduling
    # ========================================
    request_retention: float = Field(
        default=0.9,
        gt=0.0,
        lt=1.0,
        description="Target recall probability at the next review",
    )
    minimum_interval: int = Field(
        default=1,
        ge=1,
        description="Shortest interval the engine schedules (days)",
    )
    maximum_interval: int = Field(
        default=36500,
        description="Longest interval the engine schedules (days)",
    )
    stability_min: float = Field(
        default=0.1,
        description="Lower clamp for stability (days)",
    )
    stability_max: float = Field(
        default=36500.0,
        description="Upper clamp for stability (days)",
    )
    graduation_stability: float = Field(
        default=2.0,
        description="Stability a learning card needs to graduate to review (days)",
    )
    enable_fuzz: bool = Field(
        default=True,
        description="Spread due dates with a small deterministic perturbation",
    )
    fuzz_factor: float = Field(
        default=0.05,
        description="Maximum relative fuzz applied to an interval",
    )
    strict_clock: bool = Field(
        default=False,
        description="Raise ClockSkew instead of treating skewed reviews as elapsed 0",
    )

    # ========================================
    # Cognitive Load Adaptation
    # ========================================
    high_load_threshold: float = Field(
        default=0.8,
        description="Load above which intervals are compressed",
    )
    low_load_threshold: float = Field(
        default=0.3,
        description="Load below which intervals are expanded",
    )
    high_load_factor: float = Field(
        default=0.7,
        description="Interval multiplier under high load",
    )
    low_load_factor: float = Field(
        default=1.2,
        ge=1.2,
        le=1.3,
        description="Interval multiplier under low load",
    )
    default_cognitive_load: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Load assumed when no load source is configured",
    )

    # ========================================
    # Review Pipeline
    # ========================================
    degraded_mode: bool = Field(
        default=False,
        description="Fall back to linear scheduling when a card fails validation",
    )

    # ========================================
    # Storage
    # ========================================
    database_path: Path = Field(
        default=Path.home() / ".neurosched" / "state.db",
        description="SQLite file used by the command line card store",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging verbosity level",
    )

    def scheduler_parameters(self) -> SchedulerParameters:
        """Build the validated engine parameters from these settings."""
        return SchedulerParameters(
            request_retention=self.request_retention,
            minimum_interval=self.minimum_interval,
            maximum_interval=self.maximum_interval,
            stability_min=self.stability_min,
            stability_max=self.stability_max,
            graduation_stability=self.graduation_stability,
            enable_fuzz=self.enable_fuzz,
            fuzz_factor=self.fuzz_factor,
            strict_clock=self.strict_clock,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
