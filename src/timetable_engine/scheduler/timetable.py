"""Timetable construction from owner and member availability."""

import logging
from collections.abc import Iterable
from datetime import date

from ..constants import MINUTES_PER_HOUR, AssignmentMode
from ..models import (
    AvailabilityPreference,
    BlockedTime,
    Member,
    Owner,
    RoomSettings,
    SlotKey,
    Timetable,
)
from ..time_utils import generate_slot_times, slot_end_time, time_to_minutes
from ..validators import blocks_for_date, find_blocked_overlap, preference_applies_to_date

logger = logging.getLogger(__name__)


def _slot_blocked(start_time: str, blocks: list[BlockedTime]) -> bool:
    return find_blocked_overlap(start_time, slot_end_time(start_time), blocks) is not None


def expand_preferences(
    preferences: Iterable[AvailabilityPreference], dates: Iterable[date]
) -> dict[SlotKey, int]:
    """Expand preferences into slot keys with the highest priority covering each.

    Args:
        preferences: Recurring or dated preferences
        dates: Dates to expand over

    Returns:
        Mapping of slot key to priority
    """
    preferences = list(preferences)
    expanded: dict[SlotKey, int] = {}
    for value in dates:
        for pref in preferences:
            if not preference_applies_to_date(pref, value):
                continue
            for start_time in generate_slot_times(pref.start_time, pref.end_time):
                key = (value, start_time)
                expanded[key] = max(expanded.get(key, pref.priority), pref.priority)
    return expanded


class TimetableCreationService:
    """Builds the slot timetable for one run.

    The owner's availability, less the owner's personal times and the room's
    blocked windows and exceptions, clipped to the room's schedule hours,
    bounds every member. Members are then removed from slots their own
    personal times cover.
    """

    def __init__(self, settings: RoomSettings) -> None:
        self.settings = settings
        self._day_start = settings.schedule_start_hour * MINUTES_PER_HOUR
        self._day_end = settings.schedule_end_hour * MINUTES_PER_HOUR

    def run_dates(self, dates: Iterable[date], reference_date: date | None = None) -> list[date]:
        """Dates to schedule, honoring the from-today mode."""
        dates = list(dates)
        if self.settings.assignment_mode == AssignmentMode.FROM_TODAY and reference_date:
            dates = [d for d in dates if d >= reference_date]
        return dates

    def _within_hours(self, start_time: str) -> bool:
        start = time_to_minutes(start_time)
        return self._day_start <= start and time_to_minutes(slot_end_time(start_time)) <= self._day_end

    def build_owner_available_set(self, owner: Owner, dates: list[date]) -> dict[SlotKey, int]:
        """Slot keys the owner can host, with the owner's priority."""
        owner_slots = expand_preferences(owner.preferences, dates)
        available: dict[SlotKey, int] = {}
        blocks_cache: dict[date, list[BlockedTime]] = {}
        for key, priority in owner_slots.items():
            slot_date, start_time = key
            if not self._within_hours(start_time):
                continue
            if slot_date not in blocks_cache:
                blocks_cache[slot_date] = blocks_for_date(
                    slot_date,
                    owner.personal_times,
                    self.settings.blocked_times,
                    self.settings.room_exceptions,
                )
            if _slot_blocked(start_time, blocks_cache[slot_date]):
                continue
            available[key] = priority
        return available

    def create_timetable(
        self,
        members: list[Member],
        owner: Owner,
        dates: Iterable[date],
        reference_date: date | None = None,
    ) -> Timetable:
        """Build the timetable for the given dates.

        Args:
            members: Room members
            owner: Room owner
            dates: Dates in the run window
            reference_date: First schedulable date in from-today mode

        Returns:
            Timetable whose slots each hold the owner plus at least one member
        """
        dates = self.run_dates(dates, reference_date)
        owner_set = self.build_owner_available_set(owner, dates)
        timetable = Timetable()

        for member in members:
            member_slots = expand_preferences(member.preferences, dates)
            for key in sorted(member_slots):
                if key not in owner_set:
                    continue
                slot = timetable.get_or_create(*key)
                slot.add_availability(owner.id, owner_set[key], is_owner=True)
                slot.add_availability(member.id, member_slots[key])

        for member in members:
            self._remove_personal_times(timetable, member)

        logger.info(
            f"Created timetable: {len(owner_set)} owner slots, {len(timetable)} usable slots "
            f"across {len(timetable.dates())} day(s)"
        )
        return timetable

    def _remove_personal_times(self, timetable: Timetable, member: Member) -> None:
        if not member.personal_times:
            return
        for slot_date in timetable.dates():
            blocks = blocks_for_date(slot_date, member.personal_times)
            if not blocks:
                continue
            for key in timetable.keys_for_date(slot_date):
                slot = timetable.get(key)
                if slot and slot.can_use(member.id) and _slot_blocked(key[1], blocks):
                    timetable.remove_member(key, member.id)
                    logger.debug(f"Removed {member.id} from {key} (personal time)")
