"""
Cognitive load sources.

The adaptive layer needs a single number in [0, 1]. Sources either return
a fixed value or derive one from recent study sessions:

    session load = 1.0
                   +0.3 when pace > 1.5 items/min, -0.2 when < 0.5
                   x1.4 for logic training
                   +0.2 beyond 45 min, -0.1 under 15 min
    raw load     = mean over completed sessions, kept in [0.5, 2.0]
    load         = (raw - 0.5) / 1.5
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, Sequence

from neurosched.core.clock import days_between
from neurosched.core.models import ItemDomain

RAW_LOAD_MIN = 0.5
RAW_LOAD_MAX = 2.0
DEFAULT_SESSION_MINUTES = 25.0
DEFAULT_ITEMS_STUDIED = 10


class CognitiveLoadSource(Protocol):
    """Anything that can estimate the learner's current cognitive load."""

    def current_load(self) -> float: ...


class StaticLoadSource:
    """Always reports the same load."""

    def __init__(self, load: float = 0.5):
        self.load = load

    def current_load(self) -> float:
        return self.load


@dataclass
class StudySessionSummary:
    """What the load heuristic needs to know about a past session."""

    started_at: datetime
    ended_at: datetime | None = None
    items_studied: int | None = None
    domain: ItemDomain = ItemDomain.FLASHCARD
    completed: bool = True

    @property
    def duration_minutes(self) -> float:
        if self.ended_at is None:
            return DEFAULT_SESSION_MINUTES
        return days_between(self.started_at, self.ended_at) * 24 * 60


def session_load(session: StudySessionSummary) -> float:
    """Raw load of one session (1.0 is a standard flashcard session)."""
    duration = session.duration_minutes
    items = session.items_studied or DEFAULT_ITEMS_STUDIED
    load = 1.0

    pace = items / max(1.0, duration)
    if pace > 1.5:
        load += 0.3
    elif pace < 0.5:
        load -= 0.2

    if session.domain == ItemDomain.LOGIC:
        load *= 1.4

    if duration > 45:
        load += 0.2
    elif duration < 15:
        load -= 0.1

    return load


def normalise_raw_load(raw: float) -> float:
    """Map the 0.5-2.0 raw scale onto [0, 1]."""
    raw = max(RAW_LOAD_MIN, min(RAW_LOAD_MAX, raw))
    return (raw - RAW_LOAD_MIN) / (RAW_LOAD_MAX - RAW_LOAD_MIN)


class SessionHistoryLoadSource:
    """Estimates load from the last few completed study sessions."""

    def __init__(self, sessions: Sequence[StudySessionSummary] = (), window: int = 10):
        self.sessions = list(sessions)
        self.window = window

    def record(self, session: StudySessionSummary) -> None:
        self.sessions.append(session)

    def raw_load(self) -> float:
        completed = [s for s in self.sessions[-self.window:] if s.completed]
        if not completed:
            return 1.0
        average = sum(session_load(s) for s in completed) / len(completed)
        return max(RAW_LOAD_MIN, min(RAW_LOAD_MAX, average))

    def current_load(self) -> float:
        return normalise_raw_load(self.raw_load())
