"""Validation logic and date/window predicates for the timetable engine."""

from datetime import date

from .constants import WEEKEND_DAYS
from .exceptions import InvalidInputError
from .models import (
    AvailabilityPreference,
    BlockedTime,
    Member,
    Owner,
    RoomSettings,
    ScheduleRequest,
)
from .time_utils import day_of_week, is_on_grid, is_time_overlapping, time_to_minutes


# ---------------------------------------------------------------------------
# Schedule predicates
# ---------------------------------------------------------------------------


def is_weekend_day(dow: int) -> bool:
    """Check a 0=Sunday day of week against the weekend."""
    return dow in WEEKEND_DAYS


def is_weekend_date(value: date) -> bool:
    return is_weekend_day(day_of_week(value))


def is_date_in_range(value: date, start: date, end: date) -> bool:
    """Check that start <= value < end."""
    return start <= value < end


def preference_applies_to_date(preference: AvailabilityPreference, value: date) -> bool:
    """Check whether a preference contributes availability on a date.

    Weekend dates never do.
    """
    if is_weekend_date(value):
        return False
    return preference.applies_to(value)


def block_applies_to_date(block: BlockedTime, value: date) -> bool:
    return block.applies_to(value)


# ---------------------------------------------------------------------------
# Prohibited windows
# ---------------------------------------------------------------------------


def blocks_for_date(
    value: date,
    personal_times: tuple[BlockedTime, ...] | list[BlockedTime] = (),
    room_blocked_times: tuple[BlockedTime, ...] | list[BlockedTime] = (),
    room_exceptions: tuple[BlockedTime, ...] | list[BlockedTime] = (),
) -> list[BlockedTime]:
    """Collect every prohibited window that applies on a date.

    Args:
        value: Date being scheduled
        personal_times: Member or owner personal times
        room_blocked_times: Room-level blocked times
        room_exceptions: Room exceptions

    Returns:
        Windows sorted by start time
    """
    blocks = [
        b
        for b in (*personal_times, *room_blocked_times, *room_exceptions)
        if block_applies_to_date(b, value)
    ]
    return sorted(blocks, key=lambda b: time_to_minutes(b.start_time))


def find_blocked_overlap(
    start_time: str, end_time: str, blocks: list[BlockedTime]
) -> BlockedTime | None:
    """Return the earliest window overlapping [start_time, end_time), if any."""
    overlapping = [
        b for b in blocks if is_time_overlapping(start_time, end_time, b.start_time, b.end_time)
    ]
    if not overlapping:
        return None
    return min(overlapping, key=lambda b: time_to_minutes(b.start_time))


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------


def validate_time_range(
    start_time: str, end_time: str, on_grid: bool = True
) -> tuple[bool, str | None]:
    """Validate an HH:MM range.

    Args:
        start_time: Range start
        end_time: Range end
        on_grid: Require both ends on the 30-minute grid

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        start = time_to_minutes(start_time)
        end = time_to_minutes(end_time)
    except ValueError as exc:
        return False, str(exc)

    if end > 24 * 60:
        return False, f"Time past end of day: '{end_time}'"

    if start >= end:
        return False, f"Start {start_time} is not before end {end_time}"

    if on_grid and not (is_on_grid(start_time) and is_on_grid(end_time)):
        return False, f"Range {start_time}-{end_time} is not on the 30-minute grid"

    return True, None


def validate_priority(priority: int) -> tuple[bool, str | None]:
    if priority < 0:
        return False, f"Negative priority: {priority}"
    return True, None


def validate_day_of_week(dow: int) -> tuple[bool, str | None]:
    if not 0 <= dow <= 6:
        return False, f"Day of week out of range: {dow}"
    return True, None


def validate_settings(settings: RoomSettings) -> tuple[bool, str | None]:
    """Validate room settings.

    Args:
        settings: Room settings

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not 0 <= settings.schedule_start_hour < settings.schedule_end_hour <= 24:
        return False, (
            f"Schedule hours must satisfy 0 <= start < end <= 24, got "
            f"{settings.schedule_start_hour}-{settings.schedule_end_hour}"
        )

    if settings.min_hours_per_week < 0:
        return False, f"Negative min_hours_per_week: {settings.min_hours_per_week}"

    if settings.num_weeks < 1:
        return False, f"num_weeks must be at least 1, got {settings.num_weeks}"

    if settings.min_class_duration_minutes <= 0:
        return False, (
            f"min_class_duration_minutes must be positive, got "
            f"{settings.min_class_duration_minutes}"
        )

    for block in (*settings.blocked_times, *settings.room_exceptions):
        is_valid, error = validate_time_range(block.start_time, block.end_time, on_grid=False)
        if not is_valid:
            return False, error

    return True, None


def _validate_participant(participant: Member | Owner) -> tuple[bool, str | None]:
    for pref in participant.preferences:
        is_valid, error = validate_time_range(pref.start_time, pref.end_time)
        if not is_valid:
            return False, error
        is_valid, error = validate_priority(pref.priority)
        if not is_valid:
            return False, error
        is_valid, error = validate_day_of_week(pref.day_of_week)
        if not is_valid:
            return False, error

    for block in participant.personal_times:
        is_valid, error = validate_time_range(block.start_time, block.end_time, on_grid=False)
        if not is_valid:
            return False, error

    return True, None


def validate_inputs(
    members: list[Member], owner: Owner, settings: RoomSettings
) -> None:
    """Validate run inputs before any scheduling happens.

    Raises:
        InvalidInputError: On the first invalid field found
    """
    is_valid, error = validate_settings(settings)
    if not is_valid:
        raise InvalidInputError(error, field="settings")

    is_valid, error = _validate_participant(owner)
    if not is_valid:
        raise InvalidInputError(error, field="owner")

    seen: set[str] = set()
    for member in members:
        if member.id in seen:
            raise InvalidInputError(f"duplicate member id '{member.id}'", field="members")
        seen.add(member.id)
        if member.id == owner.id:
            raise InvalidInputError(
                f"member '{member.id}' has the owner's id", field="members"
            )
        is_valid, error = _validate_participant(member)
        if not is_valid:
            raise InvalidInputError(error, field=f"members[{member.id}]")
        if member.carry_over < 0:
            raise InvalidInputError(
                f"negative carry_over: {member.carry_over}", field=f"members[{member.id}]"
            )


def validate_request(request: ScheduleRequest) -> None:
    """Validate a loaded schedule request.

    Raises:
        InvalidInputError: On the first invalid field found
    """
    validate_inputs(request.members, request.owner, request.settings)
