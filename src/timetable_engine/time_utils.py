"""Time and date arithmetic on the 30-minute slot grid."""

from collections.abc import Iterator
from datetime import date, datetime, timedelta

from .constants import MINUTES_PER_HOUR, MINUTES_PER_SLOT


def time_to_minutes(time_str: str) -> int:
    """Convert an HH:MM string to minutes since midnight.

    Args:
        time_str: Time such as "09:30" (24:00 is accepted as end of day)

    Returns:
        Minutes since midnight

    Raises:
        ValueError: If the string is not HH:MM
    """
    hours, sep, minutes = time_str.partition(":")
    if not sep or not hours.isdigit() or not minutes.isdigit():
        raise ValueError(f"Invalid time: '{time_str}'")
    return int(hours) * MINUTES_PER_HOUR + int(minutes)


def minutes_to_time(minutes: int) -> str:
    """Convert minutes since midnight to HH:MM."""
    return f"{minutes // MINUTES_PER_HOUR:02d}:{minutes % MINUTES_PER_HOUR:02d}"


def slot_end_time(start_time: str) -> str:
    """End time of the slot starting at start_time (e.g. '09:00' -> '09:30')."""
    return minutes_to_time(time_to_minutes(start_time) + MINUTES_PER_SLOT)


def is_on_grid(time_str: str) -> bool:
    """Check that a time falls on a slot boundary."""
    try:
        return time_to_minutes(time_str) % MINUTES_PER_SLOT == 0
    except ValueError:
        return False


def generate_slot_times(start_time: str, end_time: str) -> list[str]:
    """List slot start times covering [start_time, end_time).

    A range that does not start on the grid is widened to the slot that
    contains its start, so every slot touched by the range is returned.

    Example:
        generate_slot_times("09:00", "10:30") -> ["09:00", "09:30", "10:00"]
    """
    start = time_to_minutes(start_time)
    end = time_to_minutes(end_time)
    current = start - start % MINUTES_PER_SLOT
    times = []
    while current < end:
        times.append(minutes_to_time(current))
        current += MINUTES_PER_SLOT
    return times


def is_time_overlapping(start1: str, end1: str, start2: str, end2: str) -> bool:
    """Check whether [start1, end1) and [start2, end2) overlap."""
    return time_to_minutes(start1) < time_to_minutes(end2) and time_to_minutes(
        start2
    ) < time_to_minutes(end1)


def duration_minutes(start_time: str, end_time: str) -> int:
    return time_to_minutes(end_time) - time_to_minutes(start_time)


def slot_count(start_time: str, end_time: str) -> int:
    """Number of grid slots between two grid-aligned times."""
    return duration_minutes(start_time, end_time) // MINUTES_PER_SLOT


def slots_for_minutes(minutes: int) -> int:
    """Slots needed to cover a duration, rounded up."""
    return -(-minutes // MINUTES_PER_SLOT)


def day_of_week(value: date) -> int:
    """Day of week with 0=Sunday .. 6=Saturday."""
    return (value.weekday() + 1) % 7


def personal_day_to_day_of_week(day: int) -> int:
    """Convert personal-time days (1=Monday .. 7=Sunday) to 0=Sunday."""
    return 0 if day == 7 else day


def week_start(value: date) -> date:
    """Monday of the week containing value."""
    return value - timedelta(days=value.weekday())


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Iterate dates in [start, end)."""
    current = start
    while current < end:
        yield current
        current += timedelta(days=1)


def parse_date(value: str | date | datetime) -> date:
    """Parse an ISO date (a datetime keeps only its date part)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.fromisoformat(str(value)).date()


def parse_datetime(value: str | datetime) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))
