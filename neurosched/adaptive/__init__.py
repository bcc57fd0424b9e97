"""
Adaptive Layer - cognitive-load aware scheduling.

Components:
- LoadAdaptiveAdjuster: scales engine intervals by cognitive load
- SessionComposer: sizes and orders review sessions
"""
from neurosched.adaptive.load_adjuster import LoadAdaptiveAdjuster, LoadAdjusterConfig
from neurosched.adaptive.session_composer import (
    DEFAULT_PROFILES,
    SessionComposer,
    SessionPlan,
    SessionProfile,
)

__all__ = [
    "LoadAdaptiveAdjuster",
    "LoadAdjusterConfig",
    "SessionComposer",
    "SessionPlan",
    "SessionProfile",
    "DEFAULT_PROFILES",
]
