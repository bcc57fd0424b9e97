"""
Retention Engine - FSRS scheduling core.

Turns a canonical rating into an updated memory model (stability and
difficulty) and a concrete next-due date for a single card.

Implements:
1. FSRS memory model - stability/difficulty update rules
2. Retrievability - R = (1 + t / 9S)^-1 power forgetting curve
3. State machine - New -> Learning -> Review <-> Relearning
4. Interval computation - bounded, fuzzed, strictly ordered by rating

The engine is a pure value: it holds only its parameters, has no hidden
state, and is safe to share across threads. Reviews of the same card must be
serialized by the caller.

Based on research from:
- Ye (FSRS algorithm)
- Wozniak (SM algorithms)
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, NamedTuple

from loguru import logger

from neurosched.core.clock import days_between, ensure_utc
from neurosched.core.errors import ClockSkew, InvalidCardState, InvalidRating
from neurosched.core.models import Card, CardState, Rating, ReviewLog
from neurosched.study.parameters import DIFFICULTY_MAX, DIFFICULTY_MIN, SchedulerParameters


class SchedulingOutcome(NamedTuple):
    """Updated card plus the audit record of the review that produced it."""

    card: Card
    review_log: ReviewLog


@dataclass(frozen=True)
class _MemoryState:
    """Candidate memory state for one rating, before interval selection."""

    stability: float
    difficulty: float
    state: CardState
    lapsed: bool


def coerce_rating(value: object) -> Rating:
    """
    Validate a canonical rating.

    Accepts Rating members or the plain ints 1-4; anything else raises
    InvalidRating.
    """
    if isinstance(value, Rating):
        return value
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidRating(value)
    try:
        return Rating(value)
    except ValueError:
        raise InvalidRating(value) from None


class SchedulerEngine:
    """
    FSRS Spaced Repetition Scheduler.

    Calculates the next memory state and review interval for a card based
    on the rating given and the time elapsed since the previous review.
    """

    def __init__(self, params: SchedulerParameters | None = None):
        self.params = params or SchedulerParameters()
        self.w = self.params.weights

    # =========================================================================
    # Public API
    # =========================================================================

    def schedule(self, card: Card, rating: Rating | int, now: datetime) -> SchedulingOutcome:
        """
        Process one review.

        Args:
            card: Card whose invariants hold on entry
            rating: Canonical rating (Again/Hard/Good/Easy)
            now: Review timestamp (early and late reviews are both fine)

        Returns:
            SchedulingOutcome(card, review_log)

        Raises:
            InvalidRating: rating outside the canonical set
            InvalidCardState: card violates invariants on entry
            ClockSkew: now precedes last_review and strict_clock is enabled
        """
        rating = coerce_rating(rating)
        outcome = self.preview(card, now)[rating]

        after = outcome.card
        logger.debug(
            "Scheduled {} ({}): rating={} state {}->{} S={:.2f} D={:.2f} interval={}d",
            card.id,
            card.domain.value,
            rating.label,
            card.state.value,
            after.state.value,
            after.stability,
            after.difficulty,
            after.scheduled_days,
        )
        return outcome

    def preview(self, card: Card, now: datetime) -> dict[Rating, SchedulingOutcome]:
        """
        Outcome of every rating for this review, without committing to one.

        All four candidates share the same fuzz draw, so the interval ordering
        Again < Hard < Good < Easy holds across them.
        """
        self.validate_card(card)
        now = ensure_utc(now)
        elapsed = self._elapsed_days(card, now)

        candidates = {rating: self._next_memory_state(card, rating, elapsed) for rating in Rating}
        intervals = self._ordered_intervals(
            card, now, {rating: state.stability for rating, state in candidates.items()}
        )

        return {
            rating: self._build_outcome(card, rating, candidates[rating], intervals[rating], elapsed, now)
            for rating in Rating
        }

    def retrievability(self, card: Card, now: datetime) -> float:
        """Current recall probability (0-1); 1.0 for cards never reviewed."""
        if card.state == CardState.NEW or card.last_review is None:
            return 1.0
        elapsed = max(0.0, days_between(card.last_review, now))
        return self._forgetting_curve(elapsed, card.stability)

    def next_interval(self, stability: float) -> int:
        """Days until retrievability decays to the requested retention."""
        return self.clamp_interval(round(stability * self.params.interval_factor))

    def is_due(self, card: Card, now: datetime) -> bool:
        return card.is_due(now)

    def due_cards(self, cards: Iterable[Card], now: datetime) -> list[Card]:
        """Cards due at `now`, earliest due first."""
        return sorted((card for card in cards if card.is_due(now)), key=lambda c: (c.due, c.id))

    # =========================================================================
    # Validation and clamping
    # =========================================================================

    def invariant_violations(self, card: Card) -> list[str]:
        """List every invariant the card breaks (empty when valid)."""
        violations = []
        p = self.params

        if not math.isfinite(card.stability) or not (p.stability_min <= card.stability <= p.stability_max):
            violations.append(
                f"stability {card.stability} outside [{p.stability_min}, {p.stability_max}]"
            )
        if not math.isfinite(card.difficulty) or not (DIFFICULTY_MIN <= card.difficulty <= DIFFICULTY_MAX):
            violations.append(f"difficulty {card.difficulty} outside [{DIFFICULTY_MIN}, {DIFFICULTY_MAX}]")
        if card.reps < 0:
            violations.append(f"reps {card.reps} is negative")
        if card.lapses < 0:
            violations.append(f"lapses {card.lapses} is negative")
        if card.lapses > card.reps:
            violations.append(f"lapses {card.lapses} exceed reps {card.reps}")
        if card.elapsed_days < 0:
            violations.append(f"elapsed_days {card.elapsed_days} is negative")
        if card.scheduled_days < 0:
            violations.append(f"scheduled_days {card.scheduled_days} is negative")

        if card.state == CardState.NEW:
            if card.last_review is not None:
                violations.append("new card has a last_review")
            if card.reps != 0:
                violations.append(f"new card has {card.reps} reps")
        else:
            if card.last_review is None:
                violations.append(f"{card.state.value} card has no last_review")
            if card.reps < 1:
                violations.append(f"{card.state.value} card has no completed reps")

        if card.last_review is not None and card.due < card.last_review:
            violations.append("due precedes last_review")

        return violations

    def validate_card(self, card: Card) -> None:
        violations = self.invariant_violations(card)
        if violations:
            raise InvalidCardState(card.id, violations)

    def clamp_stability(self, value: float) -> float:
        return self._clamp("stability", value, self.params.stability_min, self.params.stability_max)

    def clamp_difficulty(self, value: float) -> float:
        return self._clamp("difficulty", value, DIFFICULTY_MIN, DIFFICULTY_MAX)

    def clamp_interval(self, days: int) -> int:
        return int(self._clamp("interval", days, self.params.minimum_interval, self.params.maximum_interval))

    def transition(self, state: CardState, rating: Rating, stability: float) -> CardState:
        """State after a review, given the stability it produced."""
        if state == CardState.NEW:
            return CardState.LEARNING
        if state == CardState.LEARNING:
            if rating == Rating.AGAIN:
                return CardState.LEARNING
            if stability >= self.params.graduation_stability:
                return CardState.REVIEW
            return CardState.LEARNING
        if rating == Rating.AGAIN:
            return CardState.RELEARNING
        return CardState.REVIEW

    @staticmethod
    def counts_as_lapse(state: CardState, rating: Rating) -> bool:
        return rating == Rating.AGAIN and state in (CardState.REVIEW, CardState.RELEARNING)

    # =========================================================================
    # FSRS formulas
    # =========================================================================

    def _forgetting_curve(self, elapsed_days: float, stability: float) -> float:
        return 1.0 / (1.0 + elapsed_days / (9.0 * stability))

    def _initial_stability(self, rating: Rating) -> float:
        """Initial stability based on first review rating."""
        return self.w[rating - 1]

    def _initial_difficulty(self, rating: Rating) -> float:
        """Initial difficulty based on first review rating."""
        return self.w[4] - math.exp(self.w[5] * (rating - 1)) + 1

    def _next_difficulty(self, d: float, rating: Rating) -> float:
        """Update difficulty: step by rating, damp near the ceiling, revert toward the easy anchor."""
        delta = -self.w[6] * (rating - 3)
        damped = d + delta * (10 - d) / 9
        anchor = min(DIFFICULTY_MAX, max(DIFFICULTY_MIN, self._initial_difficulty(Rating.EASY)))
        return self.w[7] * anchor + (1 - self.w[7]) * damped

    def _next_recall_stability(self, d: float, s: float, r: float, rating: Rating) -> float:
        """Calculate new stability after successful recall."""
        hard_penalty = self.w[15] if rating == Rating.HARD else 1.0
        easy_bonus = self.w[16] if rating == Rating.EASY else 1.0

        return s * (
            1
            + math.exp(self.w[8])
            * (11 - d)
            * math.pow(s, -self.w[9])
            * (math.exp((1 - r) * self.w[10]) - 1)
            * hard_penalty
            * easy_bonus
        )

    def _next_forget_stability(self, d: float, s: float, r: float) -> float:
        """Calculate new stability after forgetting."""
        new_s = (
            self.w[11]
            * math.pow(d, -self.w[12])
            * (math.pow(s + 1, self.w[13]) - 1)
            * math.exp((1 - r) * self.w[14])
        )
        return min(s, new_s)

    def _short_term_stability(self, s: float, rating: Rating) -> float:
        """Stability change for a review within a day of the previous one."""
        return s * math.exp(self.w[17] * (rating - 3 + self.w[18]))

    # =========================================================================
    # Internals
    # =========================================================================

    def _elapsed_days(self, card: Card, now: datetime) -> int:
        if card.last_review is None:
            return 0

        delta = days_between(card.last_review, now)
        if delta < 0:
            skew = ClockSkew(card.id, now, card.last_review)
            if self.params.strict_clock:
                raise skew
            logger.warning("{} - treating elapsed days as 0", skew)
            return 0
        return int(math.floor(delta))

    def _next_memory_state(self, card: Card, rating: Rating, elapsed: int) -> _MemoryState:
        if card.state == CardState.NEW:
            return _MemoryState(
                stability=self.clamp_stability(self._initial_stability(rating)),
                difficulty=self.clamp_difficulty(self._initial_difficulty(rating)),
                state=CardState.LEARNING,
                lapsed=False,
            )

        s, d = card.stability, card.difficulty
        if elapsed < 1:
            new_s = self._short_term_stability(s, rating)
        else:
            r = self._forgetting_curve(elapsed, s)
            if rating == Rating.AGAIN:
                new_s = self._next_forget_stability(d, s, r)
            else:
                new_s = self._next_recall_stability(d, s, r, rating)

        new_s = self.clamp_stability(new_s)
        return _MemoryState(
            stability=new_s,
            difficulty=self.clamp_difficulty(self._next_difficulty(d, rating)),
            state=self.transition(card.state, rating, new_s),
            lapsed=self.counts_as_lapse(card.state, rating),
        )

    def _fuzz_draw(self, card: Card, now: datetime) -> float:
        # Seeded per review so repeated previews of one review agree
        seed = f"{card.id}:{card.reps}:{now.isoformat()}"
        return random.Random(seed).uniform(-self.params.fuzz_factor, self.params.fuzz_factor)

    def _ordered_intervals(
        self,
        card: Card,
        now: datetime,
        stabilities: dict[Rating, float],
    ) -> dict[Rating, int]:
        p = self.params
        raw = {rating: s * p.interval_factor for rating, s in stabilities.items()}

        if p.enable_fuzz and p.fuzz_factor > 0:
            fuzz = self._fuzz_draw(card, now)
            raw = {
                rating: ivl * (1 + fuzz) if ivl >= p.fuzz_min_interval else ivl
                for rating, ivl in raw.items()
            }

        low, high = p.minimum_interval, p.maximum_interval
        again = min(max(round(raw[Rating.AGAIN]), low), high - 3)
        hard = min(max(round(raw[Rating.HARD]), again + 1), high - 2)
        good = min(max(round(raw[Rating.GOOD]), hard + 1), high - 1)
        easy = min(max(round(raw[Rating.EASY]), good + 1), high)

        return {Rating.AGAIN: again, Rating.HARD: hard, Rating.GOOD: good, Rating.EASY: easy}

    def _build_outcome(
        self,
        card: Card,
        rating: Rating,
        memory: _MemoryState,
        interval: int,
        elapsed: int,
        now: datetime,
    ) -> SchedulingOutcome:
        updated = card.model_copy(
            update={
                "state": memory.state,
                "stability": memory.stability,
                "difficulty": memory.difficulty,
                "elapsed_days": elapsed,
                "scheduled_days": interval,
                "reps": card.reps + 1,
                "lapses": card.lapses + (1 if memory.lapsed else 0),
                "last_review": now,
                "due": now + timedelta(days=interval),
            }
        )
        review_log = ReviewLog(
            card_id=card.id,
            rating=rating,
            reviewed_at=now,
            state_before=card.state,
            state_after=memory.state,
            elapsed_days=elapsed,
            scheduled_days=card.scheduled_days,
            interval_days=interval,
            stability_before=card.stability,
            stability_after=memory.stability,
            difficulty_before=card.difficulty,
            difficulty_after=memory.difficulty,
            domain=card.domain,
        )
        return SchedulingOutcome(updated, review_log)

    @staticmethod
    def _clamp(name: str, value: float, low: float, high: float) -> float:
        if math.isnan(value):
            logger.debug("Clamped NaN {} to {}", name, low)
            return low
        clamped = min(high, max(low, value))
        if clamped != value:
            logger.debug("Clamped {} {} into [{}, {}]", name, value, low, high)
        return clamped

