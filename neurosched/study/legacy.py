"""
Legacy SM-2 conversion.

Imports cards kept under the SM-2 scheme (easiness factor, interval,
repetitions) as FSRS cards, and maps FSRS difficulty back onto an ease
factor for consumers that still display one.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone

from neurosched.core.clock import ensure_utc
from neurosched.core.models import Card, CardState, ItemDomain
from neurosched.study.parameters import DIFFICULTY_MAX, DIFFICULTY_MIN

MIN_EASE = 1.3
MAX_EASE = 4.0
DEFAULT_EASE = 2.5


@dataclass
class SM2Snapshot:
    """SM-2 algorithm state for a single item."""

    item_id: str
    easiness_factor: float = DEFAULT_EASE
    interval_days: int = 1
    repetitions: int = 0
    next_review: date | datetime | None = None
    last_reviewed: datetime | None = None


def stability_from_sm2(easiness_factor: float, interval_days: int) -> float:
    """Higher ease suggests higher stability."""
    return max(1.0, interval_days * (easiness_factor / DEFAULT_EASE))


def difficulty_from_ease(easiness_factor: float) -> float:
    """Lower ease factor suggests higher difficulty."""
    scaled = 10 - ((easiness_factor - MIN_EASE) / (MAX_EASE - MIN_EASE)) * 9
    return max(DIFFICULTY_MIN, min(DIFFICULTY_MAX, scaled))


def ease_factor_from_difficulty(difficulty: float, performance: int | None = None) -> float:
    """
    Convert FSRS difficulty (1-10) to an ease factor (1.3-4.0).

    An optional 1-5 performance score nudges the result by 0.1 per point
    away from 3.
    """
    base = MAX_EASE - ((difficulty - 1) / 9) * (MAX_EASE - MIN_EASE)
    adjustment = (performance - 3) * 0.1 if performance is not None else 0.0
    return max(MIN_EASE, min(MAX_EASE, base + adjustment))


def card_from_sm2(
    snapshot: SM2Snapshot,
    now: datetime,
    domain: ItemDomain = ItemDomain.FLASHCARD,
    topic: str | None = None,
) -> Card:
    """Build an FSRS card from SM-2 state. Lapses are not tracked by SM-2 and start at 0."""
    now = ensure_utc(now)
    due = _as_datetime(snapshot.next_review) or now

    if snapshot.repetitions <= 0:
        return Card.new(snapshot.item_id, due, domain=domain, topic=topic)

    interval = max(1, snapshot.interval_days)
    last_review = _as_datetime(snapshot.last_reviewed) or (due - timedelta(days=interval))
    if due < last_review:
        due = last_review

    return Card(
        id=snapshot.item_id,
        due=due,
        state=CardState.LEARNING if interval < 4 else CardState.REVIEW,
        stability=stability_from_sm2(snapshot.easiness_factor, interval),
        difficulty=difficulty_from_ease(snapshot.easiness_factor),
        last_review=last_review,
        scheduled_days=interval,
        reps=snapshot.repetitions,
        lapses=0,
        domain=domain,
        topic=topic,
    )


def _as_datetime(value: date | datetime | None) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    return datetime.combine(value, time.min, tzinfo=timezone.utc)
