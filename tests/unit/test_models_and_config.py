"""Unit tests for the data model, engine parameters and settings."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from neurosched.config import Settings
from neurosched.core.clock import FixedClock, days_between, ensure_utc
from neurosched.core.models import Card, CardState, ItemDomain, Rating
from neurosched.study.parameters import DEFAULT_WEIGHTS, SchedulerParameters


class TestCard:
    def test_new_card_defaults(self, now):
        card = Card.new("c1", now, domain=ItemDomain.LOGIC, topic="logic")
        assert card.state == CardState.NEW
        assert card.stability == 1.0
        assert card.difficulty == 5.0
        assert card.last_review is None
        assert card.is_due(now)

    def test_naive_timestamps_become_utc(self):
        card = Card(id="c", due=datetime(2024, 1, 1, 12, 0))
        assert card.due.tzinfo == timezone.utc

    def test_record_round_trip(self, review_card):
        record = review_card.to_record()
        assert record["state"] == "review"
        assert isinstance(record["due"], str)
        assert Card.from_record(record) == review_card
        assert Card.from_record(record).to_record() == record
        assert Card.from_json(review_card.to_json()) == review_card
        assert Card.from_json(review_card.to_json()).to_json() == review_card.to_json()

    def test_new_card_round_trip(self, new_card):
        record = new_card.to_record()
        assert record["last_review"] is None
        assert Card.from_record(record) == new_card
        assert Card.from_record(record).to_record() == record

    def test_offset_timestamps_round_trip_as_utc(self, now):
        plus_two = timezone(timedelta(hours=2))
        card = Card(
            id="offset",
            due=(now + timedelta(days=3)).astimezone(plus_two),
            state=CardState.REVIEW,
            stability=3.0,
            last_review=now.astimezone(plus_two),
            scheduled_days=3,
            reps=2,
        )
        record = card.to_record()
        restored = Card.from_record(record)

        assert restored.due == now + timedelta(days=3)
        assert restored.last_review.utcoffset() == timedelta(0)
        assert restored.to_record() == record

    def test_cards_are_immutable(self, review_card):
        with pytest.raises(ValidationError):
            review_card.stability = 3.0

    def test_days_overdue(self, review_card, now):
        assert review_card.days_overdue(now + timedelta(hours=12)) == pytest.approx(0.5)
        assert review_card.days_overdue(now - timedelta(days=2)) == pytest.approx(-2.0)


class TestRating:
    def test_success(self):
        assert not Rating.AGAIN.is_success
        assert not Rating.HARD.is_success
        assert Rating.GOOD.is_success
        assert Rating.EASY.is_success
        assert Rating.EASY.label == "easy"


class TestClock:
    def test_fixed_clock_advances(self, now):
        clock = FixedClock(now)
        clock.advance(days=1.5)
        assert days_between(now, clock.now()) == pytest.approx(1.5)

    def test_ensure_utc_converts_offsets(self):
        plus_two = timezone(timedelta(hours=2))
        value = ensure_utc(datetime(2024, 1, 1, 12, 0, tzinfo=plus_two))
        assert value == datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)


class TestSchedulerParameters:
    def test_defaults(self):
        params = SchedulerParameters()
        assert params.weights == DEFAULT_WEIGHTS
        assert params.interval_factor == pytest.approx(1.0)

    def test_weight_count_checked(self):
        with pytest.raises(ValidationError):
            SchedulerParameters(weights=DEFAULT_WEIGHTS[:17])

    def test_weights_must_be_finite(self):
        with pytest.raises(ValidationError):
            SchedulerParameters(weights=(float("nan"),) + DEFAULT_WEIGHTS[1:])

    def test_interval_range_needs_room(self):
        with pytest.raises(ValidationError):
            SchedulerParameters(minimum_interval=5, maximum_interval=6)

    @pytest.mark.parametrize("retention", [0.0, 1.0, 1.2])
    def test_retention_range(self, retention):
        with pytest.raises(ValidationError):
            SchedulerParameters(request_retention=retention)


class TestSettings:
    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("NEUROSCHED_REQUEST_RETENTION", "0.85")
        monkeypatch.setenv("NEUROSCHED_DEGRADED_MODE", "true")
        settings = Settings(_env_file=None)

        assert settings.request_retention == 0.85
        assert settings.degraded_mode is True
        assert settings.scheduler_parameters().request_retention == 0.85

    def test_low_load_factor_range(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, low_load_factor=1.5)

    def test_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.high_load_threshold == 0.8
        assert settings.low_load_threshold == 0.3
        assert settings.default_cognitive_load == 0.5
        assert settings.log_level == "WARNING"
