"""
Test Configuration and Fixtures

Shared fixtures for the tracker test suite.
"""

import os

import pytest

# Keep settings deterministic regardless of the developer's environment.
os.environ.setdefault("MONGO_TRACKER_LOG_LEVEL", "WARNING")


# =============================================================================
# PYTEST CONFIGURATION
# =============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests (in-memory document store)")


def pytest_collection_modifyitems(config, items):
    """
    Auto-assign tier markers so we can run:
    - pytest -m unit
    - pytest -m integration

    Convention:
    - tests/integration/** => integration
    - everything else      => unit
    """
    for item in items:
        path = str(getattr(item, "fspath", ""))
        # If the test is already explicitly tiered, do not override.
        if item.get_closest_marker("integration") or item.get_closest_marker("unit"):
            continue
        if "/tests/integration/" in path or "\\tests\\integration\\" in path:
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# =============================================================================
# TRACKER FIXTURES
# =============================================================================


@pytest.fixture
def fake_clock():
    """Deterministic clock for the in-memory document store."""
    from tests.support.clock import FakeClock

    return FakeClock.fixed()


@pytest.fixture
def tree_model():
    from tests.support.entities import build_tree_model

    return build_tree_model()


@pytest.fixture
def book_model():
    from tests.support.entities import build_book_model

    return build_book_model()


@pytest.fixture
def settings():
    from mongo_tracker.config import TrackerSettings

    return TrackerSettings(log_level="WARNING")
