"""
Integration tests for the review pipeline against the SQLite card store.

Simulates several weeks of study with a fixed clock and checks that state,
review logs and analytics survive a reopen of the database.
"""

import sqlite3
from datetime import timedelta

import pytest

from neurosched.analytics.progress_analyzer import ProgressAnalyzer
from neurosched.core.models import Card, CardState, ItemDomain, Rating
from neurosched.delivery.review_service import ReviewService
from neurosched.delivery.state_store import SqliteCardStore

pytestmark = pytest.mark.integration


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "state.db"


@pytest.fixture
def store(db_path):
    store = SqliteCardStore(db_path)
    yield store
    store.close()


class TestSqliteCardStore:
    def test_round_trip(self, store, review_card, new_card):
        store.put(review_card)
        store.put(new_card)

        assert store.get("card-review") == review_card
        assert store.get("card-new") == new_card
        assert store.get("missing") is None
        assert len(store) == 2

    def test_put_replaces(self, store, review_card):
        store.put(review_card)
        store.put(review_card.model_copy(update={"stability": 12.5}))
        assert store.get("card-review").stability == 12.5
        assert len(store) == 1

    def test_query_due_ordering_and_limit(self, store, now):
        for i, offset in enumerate([2, -3, 0, -1]):
            store.put(Card.new(f"c{i}", now + timedelta(days=offset)))

        assert [c.id for c in store.query_due(now)] == ["c1", "c3", "c2"]
        assert [c.id for c in store.query_due(now, limit=2)] == ["c1", "c3"]
        assert store.count_due(now) == 3

    def test_sub_second_due_times(self, store, now):
        store.put(Card.new("later", now + timedelta(microseconds=500)))
        store.put(Card.new("exact", now))
        assert [c.id for c in store.query_due(now)] == ["exact"]

    def test_creates_parent_directory(self, tmp_path):
        nested = tmp_path / "a" / "b" / "state.db"
        with SqliteCardStore(nested) as store:
            assert len(store) == 0
        assert nested.exists()

    def test_failed_log_write_rolls_back_card(self, store, engine, clock, review_card, monkeypatch):
        store.put(review_card)
        service = ReviewService(store=store, engine=engine, clock=clock)

        def broken_write(cursor, review_log):
            raise sqlite3.OperationalError("disk I/O error")

        monkeypatch.setattr(store, "_write_log", broken_write)
        with pytest.raises(sqlite3.OperationalError):
            service.submit_review("card-review", 3)

        assert store.get("card-review") == review_card
        assert store.review_logs() == []


class TestReviewPipeline:
    def test_weeks_of_study(self, db_path, engine, clock):
        with SqliteCardStore(db_path) as store:
            store.put(Card.new("ospf", clock.now(), topic="routing"))
            store.put(Card.new("modus-ponens", clock.now(), domain=ItemDomain.LOGIC, topic="logic"))
            service = ReviewService(store=store, engine=engine, clock=clock)

            ratings = {"ospf": [3, 3, 4, 3], "modus-ponens": [2, 3, 5, 5]}
            for step in range(4):
                for card_id, scores in ratings.items():
                    card = store.get(card_id)
                    clock.set(max(clock.now(), card.due))
                    service.submit_review(card_id, scores[step])

        with SqliteCardStore(db_path) as reopened:
            ospf = reopened.get("ospf")
            logic = reopened.get("modus-ponens")
            logs = reopened.review_logs()

            assert ospf.state == CardState.REVIEW
            assert ospf.reps == 4
            assert logic.reps == 4
            assert logic.domain == ItemDomain.LOGIC
            assert len(logs) == 8
            assert [log.rating for log in reopened.review_logs("modus-ponens")] == [
                Rating.HARD,
                Rating.GOOD,
                Rating.EASY,
                Rating.EASY,
            ]
            assert all(engine.invariant_violations(c) == [] for c in reopened.all_cards())

            report = ProgressAnalyzer(clock).analyze(reopened.all_cards(), logs)
            assert report.total_cards == 2
            assert report.review_count == 8
            assert report.average_retention == pytest.approx(7 / 8)

    def test_lapse_is_logged(self, store, engine, clock, review_card):
        store.put(review_card)
        service = ReviewService(store=store, engine=engine, clock=clock)

        outcome = service.submit_review("card-review", "again")

        assert outcome.card.lapses == 1
        stored_log = store.review_logs("card-review")[0]
        assert stored_log.state_before == CardState.REVIEW
        assert stored_log.state_after == CardState.RELEARNING
        assert stored_log.interval_days == 2
        assert stored_log.reviewed_at == clock.now()

    def test_session_from_stored_queue(self, store, clock):
        for i in range(25):
            store.put(Card.new(f"card-{i:02d}", clock.now() - timedelta(hours=i)))
        service = ReviewService(store=store, clock=clock)

        plan = service.request_session(cognitive_load=0.9, available_minutes=60)

        assert plan.size == 10
        assert "reduced due to high cognitive load" in plan.reasoning
