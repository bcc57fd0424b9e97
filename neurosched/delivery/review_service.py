"""
Review Service - the submit-review and request-session entry points.

Pipeline for one review:
1. Translate the domain rating to a canonical Rating
2. Engine computes the new memory state and interval
3. Load adjuster adapts the interval to the current cognitive load
4. Updated card (and its review log) are persisted

With degraded mode on, a card that fails validation is still scheduled
using a linear fallback instead of raising.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Sequence

from loguru import logger

from neurosched.adaptive.load_adjuster import LoadAdaptiveAdjuster, LoadAdjusterConfig
from neurosched.adaptive.session_composer import SessionComposer, SessionPlan
from neurosched.config import Settings, get_settings
from neurosched.core.clock import Clock, SystemClock, days_between, ensure_utc
from neurosched.core.errors import CardNotFound, InvalidCardState
from neurosched.core.models import Card, Rating, ReviewLog
from neurosched.delivery.load_source import CognitiveLoadSource
from neurosched.delivery.state_store import CardStore, ReviewLogStore
from neurosched.study.rating_translator import (
    FlashcardRating,
    LogicScore,
    domain_rating_for,
    translate,
)
from neurosched.study.retention_engine import SchedulerEngine


@dataclass
class ReviewOutcome:
    """Result of a processed review."""

    card: Card
    review_log: ReviewLog
    raw_interval_days: int
    adjusted_interval_days: int
    cognitive_load: float
    degraded: bool = False
    degraded_reason: str | None = None

    @property
    def rating(self) -> Rating:
        return self.review_log.rating


class ReviewService:
    """
    Orchestrates scheduling, load adaptation and persistence.

    Single writer per card is the caller's responsibility.
    """

    def __init__(
        self,
        store: CardStore | None = None,
        engine: SchedulerEngine | None = None,
        adjuster: LoadAdaptiveAdjuster | None = None,
        composer: SessionComposer | None = None,
        load_source: CognitiveLoadSource | None = None,
        clock: Clock | None = None,
        default_cognitive_load: float = 0.5,
        degraded_mode: bool = False,
    ):
        self.store = store
        self.clock = clock or SystemClock()
        self.engine = engine or SchedulerEngine()
        self.adjuster = adjuster or LoadAdaptiveAdjuster(
            LoadAdjusterConfig(
                minimum_interval=self.engine.params.minimum_interval,
                maximum_interval=self.engine.params.maximum_interval,
            )
        )
        self.composer = composer or SessionComposer(clock=self.clock)
        self.load_source = load_source
        self.default_cognitive_load = default_cognitive_load
        self.degraded_mode = degraded_mode

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        store: CardStore | None = None,
        load_source: CognitiveLoadSource | None = None,
        clock: Clock | None = None,
    ) -> ReviewService:
        """Wire every component from application settings."""
        settings = settings or get_settings()
        adjuster = LoadAdaptiveAdjuster(
            LoadAdjusterConfig(
                high_load_threshold=settings.high_load_threshold,
                low_load_threshold=settings.low_load_threshold,
                high_load_factor=settings.high_load_factor,
                low_load_factor=settings.low_load_factor,
                minimum_interval=settings.minimum_interval,
                maximum_interval=settings.maximum_interval,
            )
        )
        return cls(
            store=store,
            engine=SchedulerEngine(settings.scheduler_parameters()),
            adjuster=adjuster,
            load_source=load_source,
            clock=clock,
            default_cognitive_load=settings.default_cognitive_load,
            degraded_mode=settings.degraded_mode,
        )

    # =========================================================================
    # Reviews
    # =========================================================================

    def submit_review(
        self,
        card_id: str,
        domain_rating: Any,
        now: datetime | None = None,
        cognitive_load: float | None = None,
        persist: bool = True,
    ) -> ReviewOutcome:
        """
        Process a review of a stored card.

        Args:
            card_id: Card to review
            domain_rating: FlashcardRating / LogicScore, or a raw value
                interpreted in the card's own domain
            now: Review time (clock time if None)
            cognitive_load: Overrides the load source when given
            persist: Write the updated card and its log back to the store

        Raises:
            CardNotFound: no card with this id
            InvalidRating, InvalidCardState, ClockSkew: see SchedulerEngine
        """
        store = self._require_store()
        card = store.get(card_id)
        if card is None:
            raise CardNotFound(card_id)

        outcome = self.review_card(card, domain_rating, now=now, cognitive_load=cognitive_load)

        if persist:
            if isinstance(store, ReviewLogStore):
                store.record_review(outcome.card, outcome.review_log)
            else:
                store.put(outcome.card)

        return outcome

    def review_card(
        self,
        card: Card,
        domain_rating: Any,
        now: datetime | None = None,
        cognitive_load: float | None = None,
    ) -> ReviewOutcome:
        """Process a review without touching any store."""
        now = ensure_utc(now) if now is not None else self.clock.now()
        if not isinstance(domain_rating, (FlashcardRating, LogicScore)):
            domain_rating = domain_rating_for(card.domain, domain_rating)
        rating = translate(domain_rating)
        load = self.current_load() if cognitive_load is None else cognitive_load

        try:
            scheduled, review_log = self.engine.schedule(card, rating, now)
            degraded_reason = None
        except InvalidCardState as exc:
            if not self.degraded_mode:
                raise
            degraded_reason = "; ".join(exc.violations)
            logger.warning("Degraded scheduling for card {}: {}", card.id, degraded_reason)
            scheduled, review_log = self._fallback_schedule(card, rating, now)

        raw_days = scheduled.scheduled_days
        adjusted = self.adjuster.adjust_card(scheduled, load, reviewed_at=now)
        bounded = self.engine.clamp_interval(adjusted.scheduled_days)
        if bounded != adjusted.scheduled_days:
            adjusted = adjusted.model_copy(update={"scheduled_days": bounded, "due": now + timedelta(days=bounded)})
        if adjusted.scheduled_days != raw_days:
            review_log = review_log.model_copy(update={"interval_days": adjusted.scheduled_days})

        logger.info(
            "Reviewed {}: {} -> {} (due in {}d, load {:.2f})",
            card.id,
            rating.label,
            adjusted.state.value,
            adjusted.scheduled_days,
            load,
        )

        return ReviewOutcome(
            card=adjusted,
            review_log=review_log,
            raw_interval_days=raw_days,
            adjusted_interval_days=adjusted.scheduled_days,
            cognitive_load=load,
            degraded=degraded_reason is not None,
            degraded_reason=degraded_reason,
        )

    # =========================================================================
    # Sessions
    # =========================================================================

    def due_cards(self, now: datetime | None = None, limit: int | None = None) -> list[Card]:
        return self._require_store().query_due(now or self.clock.now(), limit)

    def request_session(
        self,
        due_cards: Sequence[Card] | None = None,
        cognitive_load: float | None = None,
        available_minutes: float = 30,
    ) -> SessionPlan:
        """
        Compose a review session.

        Args:
            due_cards: Candidate items (the store's due queue if None)
            cognitive_load: Load estimate (load source if None)
            available_minutes: Time the learner has
        """
        if due_cards is None:
            due_cards = self.due_cards()
        load = self.current_load() if cognitive_load is None else cognitive_load
        return self.composer.compose_session(due_cards, load, available_minutes)

    def current_load(self) -> float:
        if self.load_source is None:
            return self.default_cognitive_load
        return self.load_source.current_load()

    # =========================================================================
    # Internals
    # =========================================================================

    def _require_store(self) -> CardStore:
        if self.store is None:
            raise RuntimeError("ReviewService has no card store configured")
        return self.store

    def _fallback_schedule(self, card: Card, rating: Rating, now: datetime) -> tuple[Card, ReviewLog]:
        """Linear rescheduling for cards the engine refuses: scheduled_days * G / 3."""
        engine = self.engine
        stability = engine.clamp_stability(card.stability)
        difficulty = engine.clamp_difficulty(card.difficulty)
        interval = engine.clamp_interval(round(max(0, card.scheduled_days) * int(rating) / 3))

        state = engine.transition(card.state, rating, stability)
        reps = max(0, card.reps) + 1
        lapses = min(max(0, card.lapses), reps - 1)
        if engine.counts_as_lapse(card.state, rating):
            lapses += 1

        elapsed = 0
        if card.last_review is not None:
            elapsed = max(0, math.floor(days_between(card.last_review, now)))

        updated = card.model_copy(
            update={
                "state": state,
                "stability": stability,
                "difficulty": difficulty,
                "elapsed_days": elapsed,
                "scheduled_days": interval,
                "reps": reps,
                "lapses": lapses,
                "last_review": now,
                "due": now + timedelta(days=interval),
            }
        )
        review_log = ReviewLog(
            card_id=card.id,
            rating=rating,
            reviewed_at=now,
            state_before=card.state,
            state_after=state,
            elapsed_days=elapsed,
            scheduled_days=max(0, card.scheduled_days),
            interval_days=interval,
            stability_before=card.stability if math.isfinite(card.stability) else stability,
            stability_after=stability,
            difficulty_before=card.difficulty if math.isfinite(card.difficulty) else difficulty,
            difficulty_after=difficulty,
            domain=card.domain,
        )
        return updated, review_log
