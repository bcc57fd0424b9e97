"""
Study Module - FSRS scheduling.

Provides:
- SchedulerEngine: stability/difficulty updates, state machine, intervals
- SchedulerParameters: validated weights and bounds
- Rating translation for flashcard and logic-training domains
- Legacy SM-2 conversion
"""

from neurosched.study.legacy import SM2Snapshot, card_from_sm2, ease_factor_from_difficulty
from neurosched.study.parameters import DEFAULT_WEIGHTS, SchedulerParameters
from neurosched.study.rating_translator import (
    DomainRating,
    FlashcardRating,
    LogicScore,
    domain_rating_for,
    translate,
)
from neurosched.study.retention_engine import SchedulerEngine, SchedulingOutcome, coerce_rating

__all__ = [
    "SchedulerEngine",
    "SchedulingOutcome",
    "SchedulerParameters",
    "DEFAULT_WEIGHTS",
    "coerce_rating",
    "DomainRating",
    "FlashcardRating",
    "LogicScore",
    "translate",
    "domain_rating_for",
    "SM2Snapshot",
    "card_from_sm2",
    "ease_factor_from_difficulty",
]
