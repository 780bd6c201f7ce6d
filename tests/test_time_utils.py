"""Tests for time and date helpers."""

from datetime import date, datetime

import pytest

from timetable_engine.time_utils import (
    day_of_week,
    generate_slot_times,
    is_on_grid,
    is_time_overlapping,
    iter_dates,
    minutes_to_time,
    parse_date,
    personal_day_to_day_of_week,
    slot_end_time,
    slots_for_minutes,
    time_to_minutes,
    week_start,
)


class TestTimeConversion:
    """Tests for HH:MM conversion."""

    def test_time_to_minutes(self):
        assert time_to_minutes("00:00") == 0
        assert time_to_minutes("09:30") == 570
        assert time_to_minutes("24:00") == 1440

    def test_invalid_time_raises(self):
        with pytest.raises(ValueError):
            time_to_minutes("9am")

    def test_minutes_to_time(self):
        assert minutes_to_time(570) == "09:30"
        assert minutes_to_time(615) == "10:15"

    def test_slot_end_time(self):
        assert slot_end_time("09:00") == "09:30"
        assert slot_end_time("23:30") == "24:00"

    def test_is_on_grid(self):
        assert is_on_grid("10:30")
        assert not is_on_grid("10:15")
        assert not is_on_grid("garbage")


class TestSlotGeneration:
    """Tests for slot expansion."""

    def test_generate_slot_times(self):
        assert generate_slot_times("09:00", "10:30") == ["09:00", "09:30", "10:00"]

    def test_empty_range(self):
        assert generate_slot_times("10:00", "10:00") == []

    def test_off_grid_range_covers_touched_slots(self):
        assert generate_slot_times("10:15", "11:15") == ["10:00", "10:30", "11:00"]

    def test_slots_for_minutes_rounds_up(self):
        assert slots_for_minutes(60) == 2
        assert slots_for_minutes(45) == 2
        assert slots_for_minutes(30) == 1


class TestOverlap:
    def test_overlapping(self):
        assert is_time_overlapping("09:00", "10:00", "09:30", "10:30")

    def test_touching_ranges_do_not_overlap(self):
        assert not is_time_overlapping("09:00", "10:00", "10:00", "11:00")


class TestDates:
    """Tests for date helpers."""

    def test_day_of_week_sunday_is_zero(self):
        assert day_of_week(date(2025, 9, 14)) == 0
        assert day_of_week(date(2025, 9, 15)) == 1
        assert day_of_week(date(2025, 9, 20)) == 6

    def test_personal_day_conversion(self):
        assert personal_day_to_day_of_week(1) == 1
        assert personal_day_to_day_of_week(7) == 0

    def test_week_start_is_monday(self):
        assert week_start(date(2025, 9, 18)) == date(2025, 9, 15)
        assert week_start(date(2025, 9, 15)) == date(2025, 9, 15)

    def test_iter_dates_is_half_open(self):
        dates = list(iter_dates(date(2025, 9, 15), date(2025, 9, 18)))
        assert dates == [date(2025, 9, 15), date(2025, 9, 16), date(2025, 9, 17)]

    def test_parse_date(self):
        assert parse_date("2025-09-15") == date(2025, 9, 15)
        assert parse_date("2025-09-15T10:00:00") == date(2025, 9, 15)
        assert parse_date(datetime(2025, 9, 15, 10)) == date(2025, 9, 15)
