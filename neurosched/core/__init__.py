"""
Core Module - Shared domain models and interfaces.

Components:
- models: Card, ReviewLog and the rating/state/domain enums
- errors: Scheduling error kinds
- clock: Injectable clock capability and UTC helpers
"""

from neurosched.core.clock import Clock, FixedClock, SystemClock, days_between, ensure_utc
from neurosched.core.errors import (
    CardNotFound,
    ClockSkew,
    InvalidCardState,
    InvalidRating,
    SchedulingError,
)
from neurosched.core.models import Card, CardState, ItemDomain, Rating, ReviewLog

__all__ = [
    # Models
    "Card",
    "CardState",
    "ItemDomain",
    "Rating",
    "ReviewLog",
    # Errors
    "SchedulingError",
    "InvalidRating",
    "InvalidCardState",
    "ClockSkew",
    "CardNotFound",
    # Clock
    "Clock",
    "SystemClock",
    "FixedClock",
    "ensure_utc",
    "days_between",
]
