"""Unit tests for review-session composition."""

from datetime import timedelta

import pytest

from neurosched.adaptive.session_composer import SessionComposer
from neurosched.core.models import Card, CardState, ItemDomain


def make_cards(count, domain=ItemDomain.FLASHCARD, *, start, difficulty=5.0):
    return [
        Card(
            id=f"{domain.value}-{i:03d}",
            due=start - timedelta(days=i % 3),
            state=CardState.REVIEW,
            stability=5.0,
            difficulty=difficulty,
            last_review=start - timedelta(days=10),
            reps=2,
            domain=domain,
        )
        for i in range(count)
    ]


@pytest.fixture
def composer(clock):
    return SessionComposer(clock=clock)


class TestSizing:
    def test_logic_under_high_load_and_short_time(self, composer, now):
        plan = composer.compose_session(make_cards(20, ItemDomain.LOGIC, start=now), 0.85, 20)

        assert plan.domain == ItemDomain.LOGIC
        assert plan.base_size == 8
        assert plan.load_adjusted_size == 4
        assert plan.time_limit == 4
        assert plan.size == 4
        assert "reduced due to high cognitive load" in plan.reasoning
        assert plan.reasoning.startswith("Logic training session: 4 items selected")

    def test_flashcards_neutral_load(self, composer, now):
        plan = composer.compose_session(make_cards(30, start=now), 0.5, 60)
        assert plan.size == 20
        assert plan.estimated_minutes == pytest.approx(30.0)
        assert plan.notes == []

    def test_time_limits_session(self, composer, now):
        plan = composer.compose_session(make_cards(30, start=now), 0.5, 9)
        assert plan.size == 6
        assert "limited by available time" in plan.reasoning

    def test_low_load_never_exceeds_due(self, composer, now):
        plan = composer.compose_session(make_cards(3, start=now), 0.1, 60)
        assert plan.size == 3

    def test_elevated_load(self, composer, now):
        plan = composer.compose_session(make_cards(10, start=now), 0.7, 60)
        assert plan.size == 7

    def test_nothing_due(self, composer):
        plan = composer.compose_session([], 0.5, 30)
        assert plan.items == []
        assert "nothing due" in plan.reasoning

    def test_no_time(self, composer, now):
        plan = composer.compose_session(make_cards(5, start=now), 0.5, 0)
        assert plan.size == 0

    def test_items_are_subset_of_input(self, composer, now):
        cards = make_cards(12, start=now)
        plan = composer.compose_session(cards, 0.5, 60)
        assert set(c.id for c in plan.items) <= set(c.id for c in cards)


class TestOrdering:
    def test_hardest_and_most_overdue_first(self, composer, now):
        easy = make_cards(1, start=now, difficulty=2.0)[0].model_copy(update={"id": "easy"})
        hard = easy.model_copy(update={"id": "hard", "difficulty": 9.0})
        overdue = easy.model_copy(update={"id": "overdue", "due": now - timedelta(days=30)})

        ordered = composer.order_by_priority([easy, hard, overdue])
        assert [c.id for c in ordered] == ["overdue", "hard", "easy"]

    def test_ties_broken_by_id(self, composer, now):
        base = make_cards(1, start=now)[0]
        cards = [base.model_copy(update={"id": i}) for i in ("b", "c", "a")]
        assert [c.id for c in composer.order_by_priority(cards)] == ["a", "b", "c"]

    def test_priority(self, composer, now):
        card = make_cards(1, start=now, difficulty=4.0)[0]
        assert composer.priority(card) == pytest.approx(8.0)
