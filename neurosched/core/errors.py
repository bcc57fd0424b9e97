"""
Scheduling error kinds.

Input problems are raised so the caller can fix and retry; computed outputs
are clamped by the engine instead of raising.
"""

from __future__ import annotations

from datetime import datetime


class SchedulingError(Exception):
    """Base class for every error raised by the scheduling core."""


class InvalidRating(SchedulingError, ValueError):
    """Rating outside the canonical set, or a domain score out of range."""

    def __init__(self, value: object, domain: str = "canonical"):
        self.value = value
        self.domain = domain
        super().__init__(f"Invalid {domain} rating: {value!r}")


class InvalidCardState(SchedulingError):
    """A card handed to the engine violates one or more invariants."""

    def __init__(self, card_id: str, violations: list[str]):
        self.card_id = card_id
        self.violations = list(violations)
        super().__init__(f"Card {card_id} violates invariants: {'; '.join(self.violations)}")


class ClockSkew(SchedulingError):
    """Review timestamp precedes the card's last review."""

    def __init__(self, card_id: str, now: datetime, last_review: datetime):
        self.card_id = card_id
        self.now = now
        self.last_review = last_review
        super().__init__(
            f"Clock skew on card {card_id}: review at {now.isoformat()} "
            f"precedes last review at {last_review.isoformat()}"
        )


class CardNotFound(SchedulingError, LookupError):
    """No card with the requested id exists in the store."""

    def __init__(self, card_id: str):
        self.card_id = card_id
        super().__init__(f"Card {card_id} not found")
