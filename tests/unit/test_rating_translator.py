"""Unit tests for domain rating translation."""

import pytest

from neurosched.core.errors import InvalidRating
from neurosched.core.models import ItemDomain, Rating
from neurosched.study.rating_translator import (
    FlashcardRating,
    LogicScore,
    domain_rating_for,
    translate,
)


class TestLogicScores:
    @pytest.mark.parametrize(
        "score, expected",
        [(1, Rating.AGAIN), (2, Rating.HARD), (3, Rating.GOOD), (4, Rating.EASY), (5, Rating.EASY)],
    )
    def test_mapping(self, score, expected):
        assert translate(LogicScore(score)) == expected

    @pytest.mark.parametrize("score", [0, 6, -3, True, 3.5, "3"])
    def test_out_of_domain(self, score):
        with pytest.raises(InvalidRating) as exc_info:
            translate(LogicScore(score))
        assert exc_info.value.domain == "logic"


class TestFlashcardRatings:
    @pytest.mark.parametrize("value", [1, 2, 3, 4])
    def test_ints_are_canonical(self, value):
        assert translate(FlashcardRating(value)) == Rating(value)

    def test_labels(self):
        assert translate(FlashcardRating("again")) == Rating.AGAIN
        assert translate(FlashcardRating(" Good ")) == Rating.GOOD
        assert translate(FlashcardRating("perfect")) == Rating.EASY

    def test_digit_strings(self):
        assert translate(FlashcardRating("2")) == Rating.HARD

    def test_rating_member_passthrough(self):
        assert translate(FlashcardRating(Rating.EASY)) is Rating.EASY

    @pytest.mark.parametrize("value", [0, 5, "excellent", "5", "²", "٣", False, None, 2.5])
    def test_out_of_domain(self, value):
        with pytest.raises(InvalidRating):
            translate(FlashcardRating(value))


class TestDomainRatingFor:
    def test_logic_domain_parses_strings(self):
        assert domain_rating_for(ItemDomain.LOGIC, "5") == LogicScore(5)
        assert domain_rating_for("logic", 2) == LogicScore(2)

    def test_logic_domain_rejects_labels(self):
        with pytest.raises(InvalidRating):
            domain_rating_for(ItemDomain.LOGIC, "good")

    def test_logic_domain_rejects_superscript_digits(self):
        with pytest.raises(InvalidRating):
            translate(domain_rating_for(ItemDomain.LOGIC, "²"))

    def test_flashcard_domain(self):
        assert domain_rating_for(ItemDomain.FLASHCARD, "hard") == FlashcardRating("hard")

    def test_unknown_variant(self):
        with pytest.raises(InvalidRating):
            translate(3)
