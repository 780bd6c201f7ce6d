"""Conflict identification and merging into contiguous blocks."""

import logging
from collections import defaultdict

from ..models import ConflictBlock, SlotKey, Timetable

logger = logging.getLogger(__name__)


def identify_conflicts(timetable: Timetable) -> tuple[list[SlotKey], dict[str, int]]:
    """Find free slots claimed by more than one member.

    Args:
        timetable: Current timetable

    Returns:
        Tuple of (sorted conflicting keys, open free-slot count per member)
    """
    conflict_keys: list[SlotKey] = []
    open_counts: dict[str, int] = defaultdict(int)

    for key in timetable.sorted_keys():
        slot = timetable[key]
        if slot.is_assigned:
            continue
        claimants = slot.non_owner_entries()
        for entry in claimants:
            open_counts[entry.member_id] += 1
        if len(claimants) > 1:
            conflict_keys.append(key)

    return conflict_keys, dict(open_counts)


def merge_conflicts(timetable: Timetable, conflict_keys: list[SlotKey]) -> list[ConflictBlock]:
    """Merge adjacent conflicting slots of the same date into blocks.

    A block's contenders are the union of its slots' claimants.
    """
    blocks: list[ConflictBlock] = []
    current: ConflictBlock | None = None

    for key in sorted(conflict_keys):
        contenders = frozenset(a.member_id for a in timetable[key].non_owner_entries())
        if current is not None and Timetable.are_consecutive(current.slot_keys[-1], key):
            current.slot_keys.append(key)
            current.contenders = current.contenders | contenders
            continue
        current = ConflictBlock(
            date=key[0],
            day_of_week=timetable[key].day_of_week,
            slot_keys=[key],
            contenders=contenders,
        )
        blocks.append(current)

    return blocks


def find_conflict_blocks(timetable: Timetable) -> list[ConflictBlock]:
    """Identify and merge conflicts in one call."""
    conflict_keys, _ = identify_conflicts(timetable)
    blocks = merge_conflicts(timetable, conflict_keys)
    logger.debug(f"{len(conflict_keys)} conflicting slot(s) in {len(blocks)} block(s)")
    return blocks


def conflict_dates_by_member(blocks: list[ConflictBlock]) -> dict[str, set]:
    """Dates on which each member contends for at least one block."""
    dates: dict[str, set] = defaultdict(set)
    for block in blocks:
        for member_id in block.contenders:
            dates[member_id].add(block.date)
    return dates
