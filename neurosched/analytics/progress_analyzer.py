"""
Progress Analyzer.

Read-only analytics over card records and their review logs:

- Mastery distribution: success rate blended with normalized stability,
  bucketed into beginner / intermediate / advanced / expert
- At-risk detection: weak recent success, or mediocre success and due soon
- Trend: recent-window success rate against the older window

Never mutates its inputs and tolerates empty collections.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Iterable, Sequence

from neurosched.core.clock import Clock, SystemClock
from neurosched.core.models import Card, ReviewLog

SUCCESS_WEIGHT = 0.7
STABILITY_WEIGHT = 0.3


class MasteryBand(str, Enum):
    """Mastery band for a single card."""

    BEGINNER = "beginner"  # 0-39%
    INTERMEDIATE = "intermediate"  # 40-69%
    ADVANCED = "advanced"  # 70-89%
    EXPERT = "expert"  # 90-100%

    @classmethod
    def from_score(cls, score: float) -> MasteryBand:
        """
        Convert a 0-1 mastery score to a band.

        Args:
            score: Mastery score between 0 and 1

        Returns:
            Corresponding MasteryBand
        """
        if score < 0.4:
            return cls.BEGINNER
        elif score < 0.7:
            return cls.INTERMEDIATE
        elif score < 0.9:
            return cls.ADVANCED
        else:
            return cls.EXPERT

    @property
    def display_name(self) -> str:
        return self.value.title()

    @property
    def color(self) -> str:
        """Rich color for CLI display."""
        return {
            MasteryBand.BEGINNER: "red",
            MasteryBand.INTERMEDIATE: "yellow",
            MasteryBand.ADVANCED: "cyan",
            MasteryBand.EXPERT: "green",
        }[self]


class ProgressTrend(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


@dataclass
class CardMastery:
    """Mastery state of one card."""

    card: Card
    success_rate: float
    review_count: int
    score: float
    band: MasteryBand


@dataclass
class AtRiskCard:
    """A card likely to be forgotten."""

    card: Card
    success_rate: float
    due_soon: bool
    reason: str


@dataclass
class ProgressReport:
    """Aggregate view of learning progress."""

    total_cards: int = 0
    review_count: int = 0
    overall_mastery: float = 0.0
    average_retention: float = 0.0
    distribution: dict[MasteryBand, int] = field(
        default_factory=lambda: {band: 0 for band in MasteryBand}
    )
    at_risk: list[AtRiskCard] = field(default_factory=list)
    trend: ProgressTrend = ProgressTrend.STABLE
    strengths_by_topic: dict[str, float] = field(default_factory=dict)
    recommendations: list[str] = field(default_factory=list)

    @property
    def mastery_percentage(self) -> float:
        return self.overall_mastery * 100


class ProgressAnalyzer:
    """
    Derives mastery, risk and trend from persisted cards and review logs.

    Success means a Good or Easy rating.
    """

    def __init__(
        self,
        clock: Clock | None = None,
        recent_window_days: int = 7,
        trend_threshold: float = 0.1,
        recent_review_count: int = 5,
        min_trend_samples: int = 3,
        stability_norm_days: float = 10.0,
        at_risk_limit: int | None = 5,
    ):
        self.clock = clock or SystemClock()
        self.recent_window_days = recent_window_days
        self.trend_threshold = trend_threshold
        self.recent_review_count = recent_review_count
        self.min_trend_samples = min_trend_samples
        self.stability_norm_days = stability_norm_days
        self.at_risk_limit = at_risk_limit

    # =========================================================================
    # Mastery
    # =========================================================================

    def card_mastery(self, card: Card, logs: Sequence[ReviewLog]) -> CardMastery:
        """Mastery of one card given its own review logs."""
        if not logs:
            return CardMastery(card, 0.0, 0, 0.0, MasteryBand.BEGINNER)

        success_rate = _success_rate(logs)
        score = min(
            1.0,
            success_rate * SUCCESS_WEIGHT
            + min(1.0, card.stability / self.stability_norm_days) * STABILITY_WEIGHT,
        )
        return CardMastery(card, success_rate, len(logs), score, MasteryBand.from_score(score))

    def mastery_distribution(
        self,
        cards: Iterable[Card],
        logs: Iterable[ReviewLog],
    ) -> dict[MasteryBand, int]:
        by_card = _group_logs(logs)
        distribution = {band: 0 for band in MasteryBand}
        for card in cards:
            distribution[self.card_mastery(card, by_card.get(card.id, [])).band] += 1
        return distribution

    # =========================================================================
    # Risk
    # =========================================================================

    def at_risk(
        self,
        cards: Iterable[Card],
        logs: Iterable[ReviewLog],
        limit: int | None = None,
    ) -> list[AtRiskCard]:
        """
        Cards whose recent success rate is below 0.5, or below 0.7 while
        due within 24 hours. Cards without reviews count as a 0% success rate.
        """
        by_card = _group_logs(logs)
        horizon = self.clock.now() + timedelta(hours=24)
        flagged = []

        for card in cards:
            history = by_card.get(card.id)
            due_soon = card.due <= horizon
            if not history:
                flagged.append(AtRiskCard(card, 0.0, due_soon, "never reviewed"))
                continue

            rate = _success_rate(history[-self.recent_review_count:])
            if rate < 0.5:
                flagged.append(AtRiskCard(card, rate, due_soon, f"recent success {rate:.0%}"))
            elif rate < 0.7 and due_soon:
                flagged.append(AtRiskCard(card, rate, due_soon, f"recent success {rate:.0%}, due within 24h"))

        flagged.sort(key=lambda item: (item.success_rate, item.card.id))
        return flagged[:limit] if limit is not None else flagged

    # =========================================================================
    # Trend
    # =========================================================================

    def trend(self, logs: Iterable[ReviewLog]) -> ProgressTrend:
        """Compare the recent window's success rate against the older reviews."""
        cutoff = self.clock.now() - timedelta(days=self.recent_window_days)
        recent, older = [], []
        for log in logs:
            (recent if log.reviewed_at >= cutoff else older).append(log)

        if len(recent) < self.min_trend_samples or len(older) < self.min_trend_samples:
            return ProgressTrend.STABLE

        recent_rate = _success_rate(recent)
        older_rate = _success_rate(older)
        if recent_rate > older_rate + self.trend_threshold:
            return ProgressTrend.IMPROVING
        if recent_rate < older_rate - self.trend_threshold:
            return ProgressTrend.DECLINING
        return ProgressTrend.STABLE

    # =========================================================================
    # Report
    # =========================================================================

    def analyze(self, cards: Iterable[Card], logs: Iterable[ReviewLog]) -> ProgressReport:
        cards = list(cards)
        logs = list(logs)

        if not cards:
            return ProgressReport(
                recommendations=["Start with a few basic items to build a review history"],
            )

        by_card = _group_logs(logs)
        distribution = {band: 0 for band in MasteryBand}
        for card in cards:
            distribution[self.card_mastery(card, by_card.get(card.id, [])).band] += 1

        success_rate = _success_rate(logs)
        avg_stability = sum(card.stability for card in cards) / len(cards)
        overall = min(
            1.0,
            success_rate * SUCCESS_WEIGHT
            + min(1.0, avg_stability / self.stability_norm_days) * STABILITY_WEIGHT,
        )

        report = ProgressReport(
            total_cards=len(cards),
            review_count=len(logs),
            overall_mastery=overall,
            average_retention=success_rate,
            distribution=distribution,
            at_risk=self.at_risk(cards, logs, limit=self.at_risk_limit),
            trend=self.trend(logs),
            strengths_by_topic=self.strengths_by_topic(cards, logs),
        )
        report.recommendations = self._recommendations(report)
        return report

    def strengths_by_topic(self, cards: Iterable[Card], logs: Iterable[ReviewLog]) -> dict[str, float]:
        """Success rate per topic, over topics with at least one review."""
        by_card = _group_logs(logs)
        per_topic: dict[str, list[ReviewLog]] = defaultdict(list)
        for card in cards:
            if card.topic and card.id in by_card:
                per_topic[card.topic].extend(by_card[card.id])
        return {topic: _success_rate(topic_logs) for topic, topic_logs in sorted(per_topic.items())}

    def _recommendations(self, report: ProgressReport) -> list[str]:
        recommendations = []

        if report.overall_mastery < 0.4:
            recommendations.append("Focus on fundamentals before adding new material")

        weakest = sorted(report.strengths_by_topic.items(), key=lambda item: item[1])[:2]
        if weakest:
            recommendations.append(f"Strengthen {' and '.join(topic for topic, _ in weakest)}")

        if report.at_risk:
            recommendations.append(f"Review {len(report.at_risk)} struggling items immediately")

        if report.trend == ProgressTrend.DECLINING:
            recommendations.append("Reduce session intensity and review fundamentals")
        elif report.trend == ProgressTrend.IMPROVING:
            recommendations.append("Good progress! Consider tackling harder material")

        if report.review_count:
            recommendations.append(retention_suggestion(report.average_retention))

        return recommendations


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def retention_suggestion(average_retention: float) -> str:
    """One-line advice from the share of successful reviews."""
    if average_retention < 0.8:
        return "Focus on understanding rather than memorization; break complex items into smaller pieces"
    if average_retention > 0.95:
        return "Excellent retention! Consider adding more challenging material"
    return "Good progress! Keep up consistent daily reviews"


def recommend_content_level(current_level: int, recent_scores: Sequence[int]) -> int:
    """
    Suggest a 1-5 content difficulty level from recent logic-training scores.

    Needs at least three scores; an average of 4.5+ raises the level, 2.0 or
    below lowers it.
    """
    if len(recent_scores) < 3:
        return current_level

    average = sum(recent_scores) / len(recent_scores)
    if average >= 4.5 and current_level < 5:
        return current_level + 1
    if average <= 2.0 and current_level > 1:
        return current_level - 1
    return current_level


def _success_rate(logs: Sequence[ReviewLog]) -> float:
    if not logs:
        return 0.0
    return sum(1 for log in logs if log.is_success) / len(logs)


def _group_logs(logs: Iterable[ReviewLog]) -> dict[str, list[ReviewLog]]:
    grouped: dict[str, list[ReviewLog]] = defaultdict(list)
    for log in sorted(logs, key=lambda item: item.reviewed_at):
        grouped[log.card_id].append(log)
    return grouped
