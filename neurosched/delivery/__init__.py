"""
Delivery Layer - stores, load sources and the review pipeline.

Components:
- CardStore implementations (in-memory, SQLite)
- CognitiveLoadSource implementations (static, session history)
- ReviewService: submit_review / request_session entry points
"""
from neurosched.delivery.load_source import (
    CognitiveLoadSource,
    SessionHistoryLoadSource,
    StaticLoadSource,
    StudySessionSummary,
)
from neurosched.delivery.review_service import ReviewOutcome, ReviewService
from neurosched.delivery.state_store import (
    CardStore,
    InMemoryCardStore,
    ReviewLogStore,
    SqliteCardStore,
)

__all__ = [
    "CardStore",
    "ReviewLogStore",
    "InMemoryCardStore",
    "SqliteCardStore",
    "CognitiveLoadSource",
    "StaticLoadSource",
    "SessionHistoryLoadSource",
    "StudySessionSummary",
    "ReviewService",
    "ReviewOutcome",
]
