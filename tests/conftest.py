"""Shared fixtures: deterministic ids and clock."""

from datetime import datetime, timezone
from itertools import count

import pytest

from travel_ops.domain.models import FlightSegment

FIXED_NOW = datetime(2025, 5, 1, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def new_id():
    """Sequential ids: dep-1, dep-2, ..."""
    counter = count(1)
    return lambda: f"dep-{next(counter)}"


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def tap():
    return FlightSegment(airline="TAP", departure_date="2025-06-02", return_date="2025-06-09")


@pytest.fixture
def iberia():
    return FlightSegment(airline="Iberia", departure_date="2025-07-14", return_date="2025-07-21")


@pytest.fixture
def fixed_now():
    return FIXED_NOW
