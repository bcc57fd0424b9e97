"""Analytics - read-only progress reporting over cards and review logs."""

from neurosched.analytics.progress_analyzer import (
    AtRiskCard,
    CardMastery,
    MasteryBand,
    ProgressAnalyzer,
    ProgressReport,
    ProgressTrend,
    recommend_content_level,
)

__all__ = [
    "ProgressAnalyzer",
    "ProgressReport",
    "CardMastery",
    "AtRiskCard",
    "MasteryBand",
    "ProgressTrend",
    "recommend_content_level",
]
