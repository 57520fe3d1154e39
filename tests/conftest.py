"""Shared fixtures for the CronScale test suite."""

from datetime import datetime, timedelta, timezone
from typing import List

import pytest

from cronscale.monitoring.metrics import TimestampedMetric


@pytest.fixture
def wednesday_10am() -> datetime:
    return datetime(2025, 10, 15, 10, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def saturday_10am() -> datetime:
    return datetime(2025, 10, 18, 10, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_metrics():
    """Build a metric series from plain values, one sample per minute."""
    def _make(*values: float) -> List[TimestampedMetric]:
        start = datetime(2025, 10, 15, 9, 50, 0, tzinfo=timezone.utc)
        return [
            TimestampedMetric(timestamp=start + timedelta(minutes=i), value=v)
            for i, v in enumerate(values)
        ]
    return _make
