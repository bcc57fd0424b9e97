"""
Load-Adaptive Interval Adjuster.

Post-processes the interval proposed by the scheduler engine using a 0-1
cognitive-load estimate:

- load > 0.8: compress (x0.7) - review sooner instead of compounding
  forgetting with overload
- load < 0.3: expand (x1.2) - the learner can handle longer gaps
- otherwise: unchanged

Only the next due date is adapted. Stability and difficulty stay exactly as
the engine computed them, so analytics over the memory model remain
independent of load.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from loguru import logger

from neurosched.core.clock import ensure_utc
from neurosched.core.models import Card


@dataclass
class LoadAdjusterConfig:
    """Thresholds and multipliers for load adaptation."""

    high_load_threshold: float = 0.8
    low_load_threshold: float = 0.3
    high_load_factor: float = 0.7
    low_load_factor: float = 1.2
    minimum_interval: int = 1
    maximum_interval: int = 36500


class LoadAdaptiveAdjuster:
    """Scales scheduled intervals by cognitive load."""

    def __init__(self, config: LoadAdjusterConfig | None = None):
        self.config = config or LoadAdjusterConfig()

    def factor_for(self, cognitive_load: float) -> float:
        """Interval multiplier for a load value."""
        load = self._normalise_load(cognitive_load)
        if load > self.config.high_load_threshold:
            return self.config.high_load_factor
        if load < self.config.low_load_threshold:
            return self.config.low_load_factor
        return 1.0

    def adjust(self, scheduled_days: int, cognitive_load: float) -> int:
        """
        Adjusted interval in whole days.

        Args:
            scheduled_days: Interval proposed by the scheduler engine
            cognitive_load: Current load estimate in [0, 1]

        Returns:
            floor(days * factor), at least minimum_interval and at most
            maximum_interval
        """
        adjusted = math.floor(scheduled_days * self.factor_for(cognitive_load))
        return max(self.config.minimum_interval, min(self.config.maximum_interval, adjusted))

    def adjust_card(self, card: Card, cognitive_load: float, reviewed_at: datetime | None = None) -> Card:
        """
        Copy of an engine-produced card with scheduled_days and due adapted.

        The due date is re-anchored on the review time (the card's
        last_review unless given).
        """
        anchor = ensure_utc(reviewed_at) if reviewed_at is not None else card.last_review
        if anchor is None:
            raise ValueError(f"Card {card.id} has no review time to anchor the adjusted due date")

        days = self.adjust(card.scheduled_days, cognitive_load)
        if days == card.scheduled_days:
            return card
        return card.model_copy(update={"scheduled_days": days, "due": anchor + timedelta(days=days)})

    @staticmethod
    def _normalise_load(cognitive_load: float) -> float:
        if math.isnan(cognitive_load):
            logger.warning("Cognitive load is NaN - treating as neutral 0.5")
            return 0.5
        if cognitive_load < 0.0 or cognitive_load > 1.0:
            clamped = min(1.0, max(0.0, cognitive_load))
            logger.warning("Cognitive load {} outside [0, 1] - clamped to {}", cognitive_load, clamped)
            return clamped
        return cognitive_load
