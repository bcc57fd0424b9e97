"""
FSRS parameters and bounds.

The scheduler engine holds nothing but one of these, so every engine built
from the same parameters behaves identically.
"""

from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# =============================================================================
# FSRS CONSTANTS
# =============================================================================

# Default FSRS weights (19 values)
DEFAULT_WEIGHTS: tuple[float, ...] = (
    0.4072,   # w0: initial stability for Again
    1.1829,   # w1: initial stability for Hard
    3.1262,   # w2: initial stability for Good
    15.4722,  # w3: initial stability for Easy
    7.2102,   # w4: initial difficulty anchor
    0.5316,   # w5: initial difficulty slope
    1.0651,   # w6: difficulty step per rating
    0.0234,   # w7: difficulty mean reversion
    1.616,    # w8: recall stability growth
    0.1544,   # w9: stability saturation
    1.0824,   # w10: retrievability gain
    1.9813,   # w11: lapse stability scale
    0.0953,   # w12: lapse difficulty exponent
    0.2975,   # w13: lapse stability exponent
    2.2042,   # w14: lapse retrievability gain
    0.2407,   # w15: hard penalty
    2.9466,   # w16: easy bonus
    0.5034,   # w17: short-term stability rate
    0.6567,   # w18: short-term rating offset
)

WEIGHT_COUNT = 19

DIFFICULTY_MIN = 1.0
DIFFICULTY_MAX = 10.0


class SchedulerParameters(BaseModel):
    """Validated configuration for the scheduler engine."""

    model_config = ConfigDict(frozen=True)

    weights: tuple[float, ...] = DEFAULT_WEIGHTS
    request_retention: float = Field(default=0.9, gt=0.0, lt=1.0)
    minimum_interval: int = Field(default=1, ge=1)
    maximum_interval: int = Field(default=36500, ge=4)
    stability_min: float = Field(default=0.1, gt=0.0)
    stability_max: float = Field(default=36500.0, gt=0.0)
    graduation_stability: float = Field(default=2.0, gt=0.0)
    enable_fuzz: bool = True
    fuzz_factor: float = Field(default=0.05, ge=0.0, lt=1.0)
    fuzz_min_interval: float = Field(default=2.5, ge=0.0)
    strict_clock: bool = False

    @field_validator("weights")
    @classmethod
    def _check_weights(cls, value: tuple[float, ...]) -> tuple[float, ...]:
        if len(value) != WEIGHT_COUNT:
            raise ValueError(f"expected {WEIGHT_COUNT} weights, got {len(value)}")
        if not all(math.isfinite(w) for w in value):
            raise ValueError("weights must be finite numbers")
        return tuple(float(w) for w in value)

    @model_validator(mode="after")
    def _check_bounds(self) -> SchedulerParameters:
        # Strict rating ordering needs room for four distinct intervals
        if self.maximum_interval < self.minimum_interval + 3:
            raise ValueError("maximum_interval must exceed minimum_interval by at least 3 days")
        if self.stability_min >= self.stability_max:
            raise ValueError("stability_min must be below stability_max")
        return self

    @property
    def interval_factor(self) -> float:
        """Days per unit of stability at the requested retention."""
        return 9.0 * (1.0 / self.request_retention - 1.0)
