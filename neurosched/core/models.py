"""
Core data model for scheduling.

Card is the unit under scheduling; ReviewLog is the immutable audit record
written for every processed review. Both serialize to flat JSON-ready
records with ISO-8601 timestamps.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum, IntEnum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from neurosched.core.clock import days_between, ensure_utc

DEFAULT_STABILITY = 1.0
DEFAULT_DIFFICULTY = 5.0


class Rating(IntEnum):
    """Canonical review ratings consumed by the scheduler engine."""

    AGAIN = 1  # Complete failure, needs immediate re-study
    HARD = 2  # Difficult recall
    GOOD = 3  # Normal recall
    EASY = 4  # Effortless recall

    @property
    def is_success(self) -> bool:
        """Good and Easy count as successful recall."""
        return self >= Rating.GOOD

    @property
    def label(self) -> str:
        return self.name.lower()


class CardState(str, Enum):
    """Lifecycle state of a card."""

    NEW = "new"
    LEARNING = "learning"
    REVIEW = "review"
    RELEARNING = "relearning"


class ItemDomain(str, Enum):
    """Kind of learning material a card holds."""

    FLASHCARD = "flashcard"
    LOGIC = "logic"

    @property
    def display_name(self) -> str:
        return {
            ItemDomain.FLASHCARD: "Flashcard",
            ItemDomain.LOGIC: "Logic training",
        }[self]


class Card(BaseModel):
    """Scheduling state of one unit of learning material."""

    model_config = ConfigDict(frozen=True)

    id: str
    due: datetime
    state: CardState = CardState.NEW
    stability: float = DEFAULT_STABILITY
    difficulty: float = DEFAULT_DIFFICULTY
    last_review: Optional[datetime] = None
    elapsed_days: int = 0
    scheduled_days: int = 0
    reps: int = 0
    lapses: int = 0
    domain: ItemDomain = ItemDomain.FLASHCARD
    topic: Optional[str] = None

    @field_validator("due", "last_review")
    @classmethod
    def _normalise_timestamp(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value) if value is not None else None

    @classmethod
    def new(
        cls,
        card_id: str,
        now: datetime,
        domain: ItemDomain = ItemDomain.FLASHCARD,
        topic: str | None = None,
    ) -> Card:
        """Create a never-reviewed card, due immediately."""
        return cls(id=card_id, due=now, domain=domain, topic=topic)

    def is_due(self, now: datetime) -> bool:
        return self.due <= ensure_utc(now)

    def days_overdue(self, now: datetime) -> float:
        """Fractional days past due; negative while the card is not yet due."""
        return days_between(self.due, now)

    def to_record(self) -> dict[str, Any]:
        """Flat, JSON-ready record."""
        return self.model_dump(mode="json")

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Card:
        return cls.model_validate(record)

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, payload: str | bytes) -> Card:
        return cls.model_validate_json(payload)


class ReviewLog(BaseModel):
    """Immutable record of a single review event."""

    model_config = ConfigDict(frozen=True)

    card_id: str
    rating: Rating
    reviewed_at: datetime
    state_before: CardState
    state_after: CardState
    elapsed_days: int
    scheduled_days: int
    interval_days: int
    stability_before: float
    stability_after: float
    difficulty_before: float
    difficulty_after: float
    domain: ItemDomain = ItemDomain.FLASHCARD

    @field_validator("reviewed_at")
    @classmethod
    def _normalise_timestamp(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @property
    def is_success(self) -> bool:
        return self.rating.is_success

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> ReviewLog:
        return cls.model_validate(record)
