"""Test fixtures for timetable engine tests."""

from datetime import date

import pytest

from timetable_engine.constants import TransportMode
from timetable_engine.exceptions import DirectionsServiceError
from timetable_engine.models import (
    Coordinates,
    Member,
    Owner,
    RecurringPreference,
    RoomSettings,
)

# 2025-09-15 is a Monday
MONDAY = date(2025, 9, 15)
WEEKDAYS = (1, 2, 3, 4, 5)


class FakeDirections:
    """Directions provider returning fixed minutes per destination."""

    def __init__(self, minutes_by_destination: dict | None = None, default: int = 10, fail: bool = False):
        self.minutes_by_destination = minutes_by_destination or {}
        self.default = default
        self.fail = fail
        self.calls: list[tuple] = []

    def travel_times(self, origin, destinations, mode):
        self.calls.append((origin, list(destinations), mode))
        if self.fail:
            raise DirectionsServiceError("service down", status="UNAVAILABLE")
        return [
            self.minutes_by_destination.get((origin.rounded(), d.rounded()), self.default)
            for d in destinations
        ]


@pytest.fixture
def monday():
    return MONDAY


@pytest.fixture
def make_owner():
    """Factory for an owner open on weekdays within the given hours."""

    def _make(start="09:00", end="18:00", days=WEEKDAYS, location=None, personal_times=()):
        return Owner(
            id="owner",
            preferences=tuple(RecurringPreference(d, start, end) for d in days),
            personal_times=tuple(personal_times),
            location=location,
        )

    return _make


@pytest.fixture
def owner(make_owner):
    return make_owner()


@pytest.fixture
def make_member():
    """Factory for a member with recurring windows given as (day, start, end[, priority])."""

    def _make(member_id, *windows, **kwargs):
        preferences = []
        for window in windows:
            day, start, end, *rest = window
            priority = rest[0] if rest else 3
            preferences.append(RecurringPreference(day, start, end, priority))
        return Member(id=member_id, preferences=tuple(preferences), **kwargs)

    return _make


@pytest.fixture
def settings():
    return RoomSettings()


@pytest.fixture
def make_settings():
    def _make(**kwargs):
        return RoomSettings(**kwargs)

    return _make


@pytest.fixture
def driving_settings():
    return RoomSettings(transport_mode=TransportMode.DRIVING, min_hours_per_week=1)


@pytest.fixture
def origin():
    return Coordinates(37.5665, 126.9780)


@pytest.fixture
def make_directions():
    """Factory for a fake directions provider."""
    return FakeDirections
