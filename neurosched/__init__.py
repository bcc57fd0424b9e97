"""
neurosched - FSRS spaced-repetition scheduling with cognitive-load adaptation.

Subpackages:
- core: cards, review logs, errors, clocks
- study: FSRS engine, parameters, rating translation, SM-2 import
- adaptive: load-adaptive intervals and session composition
- analytics: progress reporting
- delivery: card stores, load sources, review service
- cli: typer command line
"""

__version__ = "1.0.0"

from neurosched.adaptive import LoadAdaptiveAdjuster, SessionComposer, SessionPlan
from neurosched.analytics import ProgressAnalyzer, ProgressReport
from neurosched.core import (
    Card,
    CardNotFound,
    CardState,
    ClockSkew,
    FixedClock,
    InvalidCardState,
    InvalidRating,
    ItemDomain,
    Rating,
    ReviewLog,
    SchedulingError,
    SystemClock,
)
from neurosched.delivery import InMemoryCardStore, ReviewOutcome, ReviewService, SqliteCardStore
from neurosched.study import (
    FlashcardRating,
    LogicScore,
    SchedulerEngine,
    SchedulerParameters,
    translate,
)

__all__ = [
    "__version__",
    "Card",
    "CardState",
    "ItemDomain",
    "Rating",
    "ReviewLog",
    "SchedulingError",
    "InvalidRating",
    "InvalidCardState",
    "ClockSkew",
    "CardNotFound",
    "SystemClock",
    "FixedClock",
    "SchedulerEngine",
    "SchedulerParameters",
    "FlashcardRating",
    "LogicScore",
    "translate",
    "LoadAdaptiveAdjuster",
    "SessionComposer",
    "SessionPlan",
    "ProgressAnalyzer",
    "ProgressReport",
    "InMemoryCardStore",
    "SqliteCardStore",
    "ReviewService",
    "ReviewOutcome",
]
