"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from loguru import logger

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from neurosched.core.clock import FixedClock  # noqa: E402
from neurosched.core.models import Card, CardState, ItemDomain  # noqa: E402
from neurosched.study.parameters import SchedulerParameters  # noqa: E402
from neurosched.study.retention_engine import SchedulerEngine  # noqa: E402

T0 = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (SQLite store)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def now():
    return T0


@pytest.fixture
def clock():
    """Clock frozen at T0."""
    return FixedClock(T0)


@pytest.fixture
def engine():
    """Engine with fuzz disabled so intervals are exact."""
    return SchedulerEngine(SchedulerParameters(enable_fuzz=False))


@pytest.fixture
def fuzzy_engine():
    return SchedulerEngine(SchedulerParameters())


@pytest.fixture
def new_card():
    return Card.new("card-new", T0, topic="networking")


@pytest.fixture
def review_card():
    """Review card last seen 10 days ago with S=10, D=5."""
    return Card(
        id="card-review",
        due=T0,
        state=CardState.REVIEW,
        stability=10.0,
        difficulty=5.0,
        last_review=T0 - timedelta(days=10),
        scheduled_days=10,
        reps=5,
        lapses=0,
        topic="networking",
    )


@pytest.fixture
def logic_card():
    return Card(
        id="logic-001",
        due=T0 - timedelta(days=1),
        state=CardState.REVIEW,
        stability=4.0,
        difficulty=6.0,
        last_review=T0 - timedelta(days=5),
        scheduled_days=4,
        reps=3,
        domain=ItemDomain.LOGIC,
        topic="syllogisms",
    )


@pytest.fixture
def log_messages():
    """Capture loguru output as a list of 'LEVEL message' strings."""
    messages: list[str] = []
    handler_id = logger.add(lambda m: messages.append(f"{m.record['level'].name} {m.record['message']}"), level="DEBUG")
    yield messages
    logger.remove(handler_id)
