"""Unit tests for load-adaptive interval adjustment."""

from datetime import timedelta

import pytest

from neurosched.adaptive.load_adjuster import LoadAdaptiveAdjuster, LoadAdjusterConfig
from neurosched.core.models import Rating


@pytest.fixture
def adjuster():
    return LoadAdaptiveAdjuster()


class TestFactor:
    @pytest.mark.parametrize(
        "load, factor",
        [(0.9, 0.7), (1.0, 0.7), (0.8, 1.0), (0.5, 1.0), (0.3, 1.0), (0.29, 1.2), (0.0, 1.2)],
    )
    def test_thresholds(self, adjuster, load, factor):
        assert adjuster.factor_for(load) == factor


class TestAdjust:
    def test_high_load_compresses(self, adjuster):
        assert adjuster.adjust(10, 0.9) == 7

    def test_low_load_expands(self, adjuster):
        assert adjuster.adjust(10, 0.1) == 12

    def test_neutral_load_unchanged(self, adjuster):
        assert adjuster.adjust(10, 0.5) == 10

    def test_never_below_minimum(self, adjuster):
        assert adjuster.adjust(1, 0.95) == 1

    def test_never_above_maximum(self):
        adjuster = LoadAdaptiveAdjuster(LoadAdjusterConfig(maximum_interval=100))
        assert adjuster.adjust(100, 0.0) == 100

    def test_nan_load_is_neutral(self, adjuster, log_messages):
        assert adjuster.adjust(10, float("nan")) == 10
        assert any(m.startswith("WARNING") for m in log_messages)

    def test_out_of_range_load_clamped(self, adjuster, log_messages):
        assert adjuster.adjust(10, 1.7) == 7
        assert adjuster.adjust(10, -0.4) == 12
        assert sum(m.startswith("WARNING") for m in log_messages) == 2


class TestAdjustCard:
    def test_only_due_date_changes(self, adjuster, engine, review_card, now):
        scheduled, _ = engine.schedule(review_card, Rating.GOOD, now)
        adjusted = adjuster.adjust_card(scheduled, 0.9)

        assert adjusted.scheduled_days == 23
        assert adjusted.due == now + timedelta(days=23)
        assert adjusted.stability == scheduled.stability
        assert adjusted.difficulty == scheduled.difficulty
        assert adjusted.state == scheduled.state

    def test_unchanged_interval_returns_same_card(self, adjuster, engine, review_card, now):
        scheduled, _ = engine.schedule(review_card, Rating.GOOD, now)
        assert adjuster.adjust_card(scheduled, 0.5) is scheduled

    def test_new_card_has_no_anchor(self, adjuster, new_card):
        with pytest.raises(ValueError):
            adjuster.adjust_card(new_card.model_copy(update={"scheduled_days": 10}), 0.9)
