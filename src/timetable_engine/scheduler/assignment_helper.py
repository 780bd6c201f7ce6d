"""Quota bookkeeping and slot assignment primitives."""

import logging
import math
from datetime import date

from ..constants import AUTO_ASSIGNMENT_SUBJECT, DAY_NAMES, SLOTS_PER_HOUR
from ..models import (
    AssignedSlot,
    Assignment,
    ExistingSlot,
    Member,
    RoomSettings,
    SlotKey,
    Timetable,
)
from ..time_utils import day_of_week, generate_slot_times, slot_end_time

logger = logging.getLogger(__name__)


def calculate_required_slots(member: Member, settings: RoomSettings, num_weeks: int = 1) -> int:
    """Slots a member needs: (weekly minimum x weeks + carry-over) hours, in slots.

    Args:
        member: Member with any outstanding carry-over
        settings: Room settings with the weekly minimum
        num_weeks: Weeks covered by the quota

    Returns:
        Required slot count, rounded up
    """
    hours = settings.min_hours_per_week * num_weeks + member.carry_over
    # round() first so float noise such as 1.5000000001 * 2 does not add a slot
    return math.ceil(round(hours * SLOTS_PER_HOUR, 6))


def initialize_assignments(
    members: list[Member], settings: RoomSettings, num_weeks: int = 1
) -> dict[str, Assignment]:
    """Create an empty Assignment per member, preserving input order."""
    return {
        m.id: Assignment(member_id=m.id, required_slots=calculate_required_slots(m, settings, num_weeks))
        for m in members
    }


def assign_slot(
    timetable: Timetable,
    assignments: dict[str, Assignment],
    key: SlotKey,
    member_id: str,
    subject: str = AUTO_ASSIGNMENT_SUBJECT,
) -> bool:
    """Give one free slot to a member.

    Returns:
        True if assigned, False if the slot is taken or the member cannot use it
    """
    slot = timetable.get(key)
    if slot is None or slot.is_assigned or not slot.can_use(member_id):
        return False

    slot.assigned_to = member_id
    assignment = assignments[member_id]
    assignment.assigned_slots += 1
    assignment.slots.append(
        AssignedSlot(
            date=slot.date,
            day=DAY_NAMES[slot.day_of_week],
            start_time=slot.start_time,
            end_time=slot.end_time,
            subject=subject,
        )
    )
    logger.debug(f"Assigned {key[0]} {key[1]} to {member_id}")
    return True


def assign_keys(
    timetable: Timetable,
    assignments: dict[str, Assignment],
    keys: list[SlotKey],
    member_id: str,
    subject: str = AUTO_ASSIGNMENT_SUBJECT,
) -> int:
    """Assign several slots, returning how many were actually assigned."""
    return sum(1 for key in keys if assign_slot(timetable, assignments, key, member_id, subject))


def load_existing_slots(
    timetable: Timetable,
    assignments: dict[str, Assignment],
    existing_slots: list[ExistingSlot],
    window: tuple[date, date] | None = None,
) -> int:
    """Mark previously persisted slots as taken.

    Slots held by members of this run count toward their quota. Slots of
    anyone else still block the time. With a window, only slots dated in
    [start, end) are loaded.

    Returns:
        Number of grid slots marked
    """
    marked = 0
    for existing in existing_slots:
        if window is not None and not window[0] <= existing.date < window[1]:
            continue
        covered = 0
        for start_time in generate_slot_times(existing.start_time, existing.end_time):
            slot = timetable.get_or_create(existing.date, start_time)
            if slot.is_assigned and slot.assigned_to != existing.member_id:
                logger.warning(
                    f"Existing slot {existing.date} {start_time} for {existing.member_id} "
                    f"already held by {slot.assigned_to}"
                )
                continue
            if slot.is_assigned:
                continue
            slot.assigned_to = existing.member_id
            covered += 1

        marked += covered
        assignment = assignments.get(existing.member_id)
        if assignment is not None and covered:
            assignment.assigned_slots += covered
            assignment.slots.append(
                AssignedSlot(
                    date=existing.date,
                    day=DAY_NAMES[day_of_week(existing.date)],
                    start_time=existing.start_time,
                    end_time=existing.end_time,
                    subject=existing.subject or AUTO_ASSIGNMENT_SUBJECT,
                )
            )

    if marked:
        logger.info(f"Loaded {len(existing_slots)} existing slot record(s) ({marked} grid slots)")
    return marked


def free_keys_for_member(timetable: Timetable, member_id: str) -> list[SlotKey]:
    """Sorted free slot keys the member can use."""
    return [
        key
        for key in timetable.sorted_keys()
        if not timetable[key].is_assigned and timetable[key].can_use(member_id)
    ]


def contiguous_runs(keys: list[SlotKey]) -> list[list[SlotKey]]:
    """Split sorted keys into runs of back-to-back slots."""
    runs: list[list[SlotKey]] = []
    for key in sorted(keys):
        if runs and Timetable.are_consecutive(runs[-1][-1], key):
            runs[-1].append(key)
        else:
            runs.append([key])
    return runs


def next_key(key: SlotKey) -> SlotKey:
    return (key[0], slot_end_time(key[1]))


def is_unique_top_priority(
    timetable: Timetable,
    key: SlotKey,
    member_id: str,
    competing: set[str] | None = None,
) -> bool:
    """Check that the member holds strictly the highest priority on a slot.

    Args:
        timetable: Current timetable
        key: Slot key
        member_id: Member to check
        competing: If given, only these members compete (e.g. those under quota)
    """
    slot = timetable.get(key)
    if slot is None:
        return False
    own = slot.entry_for(member_id)
    if own is None or own.is_owner:
        return False
    for entry in slot.non_owner_entries():
        if entry.member_id == member_id:
            continue
        if competing is not None and entry.member_id not in competing:
            continue
        if entry.priority >= own.priority:
            return False
    return True


def under_quota(assignments: dict[str, Assignment]) -> set[str]:
    return {m for m, a in assignments.items() if not a.is_satisfied}
