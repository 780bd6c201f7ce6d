"""Tests for validation and prohibited-window predicates."""

from datetime import date

import pytest

from timetable_engine.exceptions import InvalidInputError
from timetable_engine.models import (
    DatedBlock,
    DatedPreference,
    Member,
    RecurringBlock,
    RecurringPreference,
    RoomSettings,
)
from timetable_engine.validators import (
    blocks_for_date,
    find_blocked_overlap,
    is_date_in_range,
    is_weekend_date,
    preference_applies_to_date,
    validate_inputs,
    validate_settings,
    validate_time_range,
)


class TestSchedulePredicates:
    def test_weekend(self):
        assert is_weekend_date(date(2025, 9, 13))
        assert is_weekend_date(date(2025, 9, 14))
        assert not is_weekend_date(date(2025, 9, 15))

    def test_date_in_range_is_half_open(self):
        start, end = date(2025, 9, 15), date(2025, 9, 22)
        assert is_date_in_range(date(2025, 9, 15), start, end)
        assert not is_date_in_range(date(2025, 9, 22), start, end)

    def test_weekend_preference_never_applies(self):
        saturday = RecurringPreference(6, "09:00", "10:00")
        assert not preference_applies_to_date(saturday, date(2025, 9, 20))

    def test_dated_weekend_preference_ignored(self):
        pref = DatedPreference(date(2025, 9, 20), "09:00", "10:00")
        assert not preference_applies_to_date(pref, date(2025, 9, 20))


class TestProhibitedWindows:
    def test_blocks_for_date_merges_sources(self):
        personal = [RecurringBlock("12:00", "13:00", days=(1,))]
        room = [RecurringBlock("15:00", "16:00")]
        exceptions = [DatedBlock(date(2025, 9, 16), "09:00", "10:00")]

        monday = blocks_for_date(date(2025, 9, 15), personal, room, exceptions)
        tuesday = blocks_for_date(date(2025, 9, 16), personal, room, exceptions)

        assert [b.start_time for b in monday] == ["12:00", "15:00"]
        assert [b.start_time for b in tuesday] == ["09:00", "15:00"]

    def test_find_blocked_overlap(self):
        blocks = [RecurringBlock("12:00", "13:00"), RecurringBlock("10:00", "10:30")]
        found = find_blocked_overlap("09:45", "12:30", blocks)
        assert found.start_time == "10:00"
        assert find_blocked_overlap("13:00", "14:00", blocks) is None


class TestValidateTimeRange:
    def test_valid(self):
        assert validate_time_range("09:00", "10:30") == (True, None)

    def test_start_after_end(self):
        is_valid, error = validate_time_range("11:00", "10:00")
        assert not is_valid
        assert "not before" in error

    def test_off_grid(self):
        is_valid, _ = validate_time_range("09:15", "10:00")
        assert not is_valid
        assert validate_time_range("09:15", "10:00", on_grid=False) == (True, None)

    def test_malformed(self):
        is_valid, _ = validate_time_range("nine", "10:00")
        assert not is_valid


class TestValidateInputs:
    def test_settings_hours(self):
        is_valid, _ = validate_settings(RoomSettings(schedule_start_hour=18, schedule_end_hour=9))
        assert not is_valid

    def test_negative_quota(self):
        is_valid, _ = validate_settings(RoomSettings(min_hours_per_week=-1))
        assert not is_valid

    def test_duplicate_member_ids(self, owner, settings):
        members = [Member(id="m1"), Member(id="m1")]
        with pytest.raises(InvalidInputError, match="duplicate"):
            validate_inputs(members, owner, settings)

    def test_member_with_owner_id(self, owner, settings):
        with pytest.raises(InvalidInputError):
            validate_inputs([Member(id="owner")], owner, settings)

    def test_bad_member_preference(self, owner, settings):
        member = Member(id="m1", preferences=(RecurringPreference(1, "10:00", "09:00"),))
        with pytest.raises(InvalidInputError) as exc_info:
            validate_inputs([member], owner, settings)
        assert exc_info.value.field == "members[m1]"

    def test_valid_inputs(self, owner, settings, make_member):
        validate_inputs([make_member("m1", (1, "09:00", "11:00"))], owner, settings)
