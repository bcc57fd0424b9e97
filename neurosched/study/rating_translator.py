"""
Rating Translator.

Maps domain-specific performance scales onto the four canonical ratings the
scheduler engine consumes. Each review domain has its own closed variant:

- FlashcardRating: the canonical levels used directly (ints 1-4, Rating
  members, or the labels again/hard/good/easy; legacy "perfect" means Easy)
- LogicScore: 1-5 logic-training performance score

Logic Rating System:
1 = Complete failure (logical errors, poor reasoning)      -> Again
2 = Partial understanding (some errors in reasoning)       -> Hard
3 = Good logic (correct reasoning, minor issues)           -> Good
4 = Excellent logic (strong reasoning, well-structured)    -> Easy
5 = Perfect logic (flawless reasoning, elegant structure)  -> Easy

Scores 4 and 5 intentionally collapse onto Easy: the scheduler has no
rating above Easy.

All functions here are pure and deterministic.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from neurosched.core.errors import InvalidRating
from neurosched.core.models import ItemDomain, Rating

LOGIC_SCORE_TO_RATING: dict[int, Rating] = {
    1: Rating.AGAIN,
    2: Rating.HARD,
    3: Rating.GOOD,
    4: Rating.EASY,
    5: Rating.EASY,
}

FLASHCARD_LABELS: dict[str, Rating] = {
    "again": Rating.AGAIN,
    "hard": Rating.HARD,
    "good": Rating.GOOD,
    "easy": Rating.EASY,
    "perfect": Rating.EASY,  # legacy five-button scale
}


@dataclass(frozen=True)
class FlashcardRating:
    """Flashcard review answer on the canonical four-level scale."""

    value: Union[Rating, int, str]

    domain = ItemDomain.FLASHCARD


@dataclass(frozen=True)
class LogicScore:
    """Logic-training performance score (1-5)."""

    score: int

    domain = ItemDomain.LOGIC


DomainRating = Union[FlashcardRating, LogicScore]


def translate(domain_rating: DomainRating) -> Rating:
    """
    Convert a domain rating into a canonical Rating.

    Raises:
        InvalidRating: value outside the variant's declared domain
    """
    if isinstance(domain_rating, LogicScore):
        return _translate_logic(domain_rating.score)
    if isinstance(domain_rating, FlashcardRating):
        return _translate_flashcard(domain_rating.value)
    raise InvalidRating(domain_rating, domain="unknown")


def domain_rating_for(domain: ItemDomain | str, value: Union[Rating, int, str]) -> DomainRating:
    """Wrap a raw value in the variant matching a card's domain."""
    domain = ItemDomain(domain)
    if domain == ItemDomain.LOGIC:
        if isinstance(value, str):
            try:
                value = int(value.strip())
            except ValueError:
                raise InvalidRating(value, domain=domain.value) from None
        return LogicScore(value)  # type: ignore[arg-type]
    return FlashcardRating(value)


def _translate_logic(score: object) -> Rating:
    if isinstance(score, bool) or not isinstance(score, int):
        raise InvalidRating(score, domain=ItemDomain.LOGIC.value)
    try:
        return LOGIC_SCORE_TO_RATING[score]
    except KeyError:
        raise InvalidRating(score, domain=ItemDomain.LOGIC.value) from None


def _translate_flashcard(value: object) -> Rating:
    if isinstance(value, Rating):
        return value
    if isinstance(value, str):
        label = value.strip().lower()
        if label.isascii() and label.isdigit():
            return _translate_flashcard(int(label))
        try:
            return FLASHCARD_LABELS[label]
        except KeyError:
            raise InvalidRating(value, domain=ItemDomain.FLASHCARD.value) from None
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidRating(value, domain=ItemDomain.FLASHCARD.value)
    try:
        return Rating(value)
    except ValueError:
        raise InvalidRating(value, domain=ItemDomain.FLASHCARD.value) from None
