# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests
- Integration tests
"""

from datetime import datetime

import pytest

from src.core.config.settings import SchedulingSettings
from src.domains.scheduling import LifecyclePolicy


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (requires a database)"
    )


# =============================================================================
# Helper Fixtures
# =============================================================================


@pytest.fixture
def monday_morning() -> datetime:
    """A Monday at 10:00, well in the future."""
    return datetime(2030, 1, 7, 10, 0)


@pytest.fixture
def scheduling_settings() -> SchedulingSettings:
    """Provide scheduling settings with the stock business rules."""
    return SchedulingSettings(
        company_name="Test Academy",
        low_credit_alerts_enabled=True,
        low_credit_threshold=5,
        xp_per_completed_session=50,
        assignment_due_days=7,
        join_buffer_minutes_before=15,
        join_buffer_minutes_after=10,
        max_recurring_occurrences=52,
    )


@pytest.fixture
def lifecycle_policy(scheduling_settings: SchedulingSettings) -> LifecyclePolicy:
    """Provide a lifecycle policy built from the test settings."""
    return LifecyclePolicy.from_settings(scheduling_settings)
