"""
Session Composer.

Selects and orders due items for a review session given the learner's
cognitive load and the time available.

Sizing:
1. Base size - due count clamped to the domain's bounds
   (logic training 3-8, flashcards 5-20)
2. Load scaling - >0.8 halves (floor 2), (0.6, 0.8] x0.7, <0.3 x1.3
3. Time limit - available minutes / minutes per item
   (logic 4.5 min, flashcards 1.5 min)

Ordering: priority = difficulty * 2 + days overdue, hardest and most
overdue first.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Sequence

from loguru import logger

from neurosched.core.clock import Clock, SystemClock
from neurosched.core.models import Card, ItemDomain


@dataclass(frozen=True)
class SessionProfile:
    """Sizing rules for one kind of material."""

    domain: ItemDomain
    min_base_size: int
    max_base_size: int
    minutes_per_item: float


DEFAULT_PROFILES: dict[ItemDomain, SessionProfile] = {
    # Logic training is more demanding than flashcards
    ItemDomain.LOGIC: SessionProfile(ItemDomain.LOGIC, 3, 8, 4.5),
    ItemDomain.FLASHCARD: SessionProfile(ItemDomain.FLASHCARD, 5, 20, 1.5),
}

HIGH_LOAD = 0.8
ELEVATED_LOAD = 0.6
LOW_LOAD = 0.3


@dataclass
class SessionPlan:
    """Ordered subset of due items plus the reasoning behind its size."""

    items: list[Card]
    reasoning: str
    domain: ItemDomain
    base_size: int = 0
    load_adjusted_size: int = 0
    time_limit: int = 0
    minutes_per_item: float = 0.0
    notes: list[str] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.items)

    @property
    def estimated_minutes(self) -> float:
        return self.size * self.minutes_per_item


class SessionComposer:
    """Builds review sessions from the due queue."""

    def __init__(
        self,
        clock: Clock | None = None,
        profiles: dict[ItemDomain, SessionProfile] | None = None,
    ):
        self.clock = clock or SystemClock()
        self.profiles = profiles or DEFAULT_PROFILES

    def compose_session(
        self,
        due_cards: Sequence[Card],
        cognitive_load: float,
        available_minutes: float,
        domain: ItemDomain | None = None,
    ) -> SessionPlan:
        """
        Pick and order items for a session.

        Args:
            due_cards: Items currently due
            cognitive_load: Load estimate in [0, 1]
            available_minutes: Time the learner has
            domain: Sizing profile to use (inferred from the items if None)

        Returns:
            SessionPlan with the ordered items and a human-readable reasoning
        """
        domain = domain or self._infer_domain(due_cards)
        profile = self.profiles[domain]
        total = len(due_cards)

        if total == 0:
            return SessionPlan(
                items=[],
                reasoning=f"{domain.display_name} session: nothing due for review",
                domain=domain,
                minutes_per_item=profile.minutes_per_item,
            )

        base_size = min(profile.max_base_size, max(profile.min_base_size, total))
        sized, notes = self._scale_for_load(base_size, total, cognitive_load)

        time_limit = max(0, math.floor(available_minutes / profile.minutes_per_item))
        if time_limit < sized:
            notes.append("limited by available time")

        final_size = max(0, min(sized, time_limit, total))
        items = self.order_by_priority(due_cards)[:final_size]

        reasoning = f"{domain.display_name} session: {final_size} items selected"
        if notes:
            reasoning += f" ({'; '.join(notes)})"

        logger.debug(
            "Composed session: {} of {} due, load={:.2f}, minutes={}",
            final_size,
            total,
            cognitive_load,
            available_minutes,
        )

        return SessionPlan(
            items=items,
            reasoning=reasoning,
            domain=domain,
            base_size=base_size,
            load_adjusted_size=sized,
            time_limit=time_limit,
            minutes_per_item=profile.minutes_per_item,
            notes=notes,
        )

    def priority(self, card: Card, now: datetime | None = None) -> float:
        return card.difficulty * 2 + card.days_overdue(now or self.clock.now())

    def order_by_priority(self, cards: Sequence[Card]) -> list[Card]:
        """Hardest and most overdue first; ties broken by id."""
        now = self.clock.now()
        return sorted(cards, key=lambda c: (-self.priority(c, now), c.id))

    @staticmethod
    def _scale_for_load(base_size: int, total: int, cognitive_load: float) -> tuple[int, list[str]]:
        notes: list[str] = []
        if cognitive_load > HIGH_LOAD:
            notes.append("reduced due to high cognitive load")
            return max(2, math.floor(base_size * 0.5)), notes
        if cognitive_load > ELEVATED_LOAD:
            notes.append("reduced due to elevated cognitive load")
            return math.floor(base_size * 0.7), notes
        if cognitive_load < LOW_LOAD:
            notes.append("expanded due to low cognitive load")
            return min(total, math.floor(base_size * 1.3)), notes
        return base_size, notes

    @staticmethod
    def _infer_domain(cards: Sequence[Card]) -> ItemDomain:
        if any(card.domain == ItemDomain.LOGIC for card in cards):
            return ItemDomain.LOGIC
        return ItemDomain.FLASHCARD
