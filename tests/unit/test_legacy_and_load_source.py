"""Unit tests for SM-2 import and cognitive load sources."""

from datetime import date, timedelta

import pytest

from neurosched.core.models import CardState, ItemDomain
from neurosched.delivery.load_source import (
    SessionHistoryLoadSource,
    StaticLoadSource,
    StudySessionSummary,
    normalise_raw_load,
    session_load,
)
from neurosched.study.legacy import (
    SM2Snapshot,
    card_from_sm2,
    difficulty_from_ease,
    ease_factor_from_difficulty,
)


class TestSM2Import:
    def test_unreviewed_becomes_new(self, engine, now):
        card = card_from_sm2(SM2Snapshot("a"), now)
        assert card.state == CardState.NEW
        assert engine.invariant_violations(card) == []

    def test_long_interval_becomes_review(self, engine, now):
        snapshot = SM2Snapshot("b", easiness_factor=2.5, interval_days=10, repetitions=4, next_review=date(2024, 3, 5))
        card = card_from_sm2(snapshot, now, domain=ItemDomain.LOGIC)

        assert card.state == CardState.REVIEW
        assert card.stability == pytest.approx(10.0)
        assert card.difficulty == pytest.approx(6.0)
        assert card.last_review == card.due - timedelta(days=10)
        assert card.domain == ItemDomain.LOGIC
        assert engine.invariant_violations(card) == []

    def test_short_interval_becomes_learning(self, now):
        card = card_from_sm2(SM2Snapshot("c", interval_days=2, repetitions=1), now)
        assert card.state == CardState.LEARNING

    def test_imported_card_can_be_scheduled(self, engine, now):
        card = card_from_sm2(SM2Snapshot("d", interval_days=6, repetitions=3), now)
        updated, _ = engine.schedule(card, 3, now + timedelta(days=1))
        assert updated.reps == 4


class TestEaseConversion:
    def test_difficulty_extremes(self):
        assert difficulty_from_ease(1.3) == pytest.approx(10.0)
        assert difficulty_from_ease(4.0) == pytest.approx(1.0)
        assert difficulty_from_ease(9.0) == 1.0

    def test_ease_from_difficulty(self):
        assert ease_factor_from_difficulty(1.0) == pytest.approx(4.0)
        assert ease_factor_from_difficulty(10.0) == pytest.approx(1.3)
        assert ease_factor_from_difficulty(5.5, performance=5) == pytest.approx(2.85)
        assert ease_factor_from_difficulty(1.0, performance=5) == 4.0


class TestLoadSources:
    def test_static(self):
        assert StaticLoadSource(0.7).current_load() == 0.7

    def test_empty_history_is_baseline(self):
        source = SessionHistoryLoadSource()
        assert source.raw_load() == 1.0
        assert source.current_load() == pytest.approx(1 / 3)

    def test_logic_sessions_weigh_more(self, now):
        session = StudySessionSummary(
            started_at=now, ended_at=now + timedelta(minutes=30), items_studied=20, domain=ItemDomain.LOGIC
        )
        assert session_load(session) == pytest.approx(1.4)
        assert SessionHistoryLoadSource([session]).current_load() == pytest.approx(0.6)

    def test_short_fast_flashcard_session(self, now):
        session = StudySessionSummary(started_at=now, ended_at=now + timedelta(minutes=10), items_studied=20)
        assert session_load(session) == pytest.approx(1.2)

    def test_incomplete_sessions_ignored(self, now):
        source = SessionHistoryLoadSource()
        source.record(StudySessionSummary(started_at=now, completed=False, domain=ItemDomain.LOGIC))
        assert source.raw_load() == 1.0

    def test_normalisation_bounds(self):
        assert normalise_raw_load(0.1) == 0.0
        assert normalise_raw_load(2.0) == 1.0
        assert normalise_raw_load(5.0) == 1.0
