"""Pytest configuration and shared fixtures."""

from datetime import datetime, timedelta

import pytest

from taskscheduler.domain.types import SchedulingConstraints, TimeRange

# Monday
MONDAY = datetime(2025, 3, 3)


def pytest_configure(config):
    """Configure pytest."""
    # Add custom markers
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (deselect with '-m \"not integration\"')"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


@pytest.fixture
def monday():
    """Midnight at the start of a Monday."""
    return MONDAY


@pytest.fixture
def now(monday):
    """Fixed "now": Monday 08:00, before the working window opens."""
    return monday + timedelta(hours=8)


@pytest.fixture
def working_hours():
    return TimeRange.parse("09:00", "17:00")


@pytest.fixture
def constraints(working_hours):
    """9-to-5, no restrictions, 15 minute break."""
    return SchedulingConstraints(working_hours=working_hours)
