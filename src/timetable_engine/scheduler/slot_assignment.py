"""Greedy assignment passes run before conflict resolution."""

import logging

from ..constants import (
    BLOCK_SLOTS,
    HIGH_PRIORITY_TIER,
    LOW_PRIORITY_TIER,
    MAX_ITERATION_ROUNDS,
    MID_PRIORITY_TIER,
    PARTIAL_BLOCK_LIMIT,
    SLOTS_PER_HOUR,
    AssignmentMode,
)
from ..models import Assignment, Member, SlotKey, Timetable
from .assignment_helper import (
    assign_keys,
    contiguous_runs,
    free_keys_for_member,
    is_unique_top_priority,
    next_key,
    under_quota,
)
from .conflicts import conflict_dates_by_member, find_conflict_blocks, identify_conflicts

logger = logging.getLogger(__name__)


def sort_members_by_mode(
    members: list[Member],
    open_counts: dict[str, int],
    mode: AssignmentMode,
) -> list[Member]:
    """Order members for the time-order pass.

    Higher declared priority always comes first. Within a priority, the
    normal mode serves members with the fewest open slots first and
    first-come-first-served serves the earliest joiners first. Input order
    breaks remaining ties.
    """
    order = {m.id: i for i, m in enumerate(members)}

    if mode == AssignmentMode.FIRST_COME_FIRST_SERVED:

        def key(m: Member):
            joined = m.joined_at.timestamp() if m.joined_at else float("inf")
            return (-m.declared_priority, joined, order[m.id])

    else:

        def key(m: Member):
            return (-m.declared_priority, open_counts.get(m.id, 0), order[m.id])

    return sorted(members, key=key)


class SlotAssignmentService:
    """Runs the greedy passes over a timetable.

    Passes, in order: deficit-first carry-over, undisputed (tier 3 then
    tier 1), time-order, iterative (tier 2). None of them fail; whatever
    they leave is handled by conflict resolution and negotiation.
    """

    def __init__(
        self,
        timetable: Timetable,
        assignments: dict[str, Assignment],
        members: list[Member],
        mode: AssignmentMode = AssignmentMode.NORMAL,
        max_rounds: int = MAX_ITERATION_ROUNDS,
        block_slots: int = BLOCK_SLOTS,
    ) -> None:
        self.timetable = timetable
        self.assignments = assignments
        self.members = members
        self.mode = mode
        self.max_rounds = max_rounds
        # Largest partial block the time-order pass hands out at once
        self.block_slots = max(1, block_slots)
        self.round_cap_hits = 0

    def run(self) -> None:
        """Run every pass in order."""
        self.assign_carry_over_first()
        self.assign_undisputed(HIGH_PRIORITY_TIER)
        self.assign_undisputed(LOW_PRIORITY_TIER)
        self.assign_by_time_order()
        self.assign_iterative(MID_PRIORITY_TIER)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _remaining(self, member_id: str) -> int:
        return self.assignments[member_id].remaining_slots

    def _free_pair(self, key: SlotKey, member_id: str) -> list[SlotKey] | None:
        """The one-hour block starting at key, if both slots are free for the member."""
        second = next_key(key)
        for k in (key, second):
            slot = self.timetable.get(k)
            if slot is None or slot.is_assigned or not slot.can_use(member_id):
                return None
        return [key, second]

    def _assign(self, keys: list[SlotKey], member_id: str) -> int:
        return assign_keys(self.timetable, self.assignments, keys, member_id)

    # ------------------------------------------------------------------
    # Pass 0: deficit-first
    # ------------------------------------------------------------------

    def assign_carry_over_first(self) -> int:
        """Give members with carry-over their owed hours before anyone else.

        Only idle slots where the member holds the top priority (ties
        allowed) are used, in one-hour blocks.

        Returns:
            Slots assigned
        """
        owed_members = sorted(
            (m for m in self.members if m.carry_over > 0),
            key=lambda m: -m.carry_over,
        )
        total = 0
        for member in owed_members:
            owed = min(round(member.carry_over * SLOTS_PER_HOUR), self._remaining(member.id))
            given = 0
            for key in free_keys_for_member(self.timetable, member.id):
                if given >= owed:
                    break
                block = self._free_pair(key, member.id)
                if block is None or not all(self._holds_top(k, member.id) for k in block):
                    continue
                given += self._assign(block, member.id)
            if given:
                logger.debug(f"Carry-over pass gave {member.id} {given} slot(s)")
            total += given
        if total:
            logger.info(f"Deficit-first pass assigned {total} slot(s)")
        return total

    def _holds_top(self, key: SlotKey, member_id: str) -> bool:
        slot = self.timetable[key]
        own = slot.entry_for(member_id)
        return own is not None and all(e.priority <= own.priority for e in slot.non_owner_entries())

    # ------------------------------------------------------------------
    # Pass 1: undisputed
    # ------------------------------------------------------------------

    def _is_undisputed(self, key: SlotKey, member_id: str, tier: int) -> bool:
        slot = self.timetable[key]
        own = slot.entry_for(member_id)
        if own is None or own.is_owner or own.priority < tier:
            return False
        others = [e for e in slot.non_owner_entries(min_priority=tier) if e.member_id != member_id]
        if not others:
            return True
        return all(e.priority < own.priority for e in others)

    def assign_undisputed(self, tier: int) -> int:
        """Round-robin over undisputed one-hour blocks at a priority tier.

        Each round every under-quota member takes at most one block. Slots
        inside a conflict block, and dates on which the member is in a
        conflict, are left for later passes.

        Args:
            tier: Minimum priority a member's claim must have

        Returns:
            Slots assigned
        """
        blocks = find_conflict_blocks(self.timetable)
        conflict_keys = {k for b in blocks for k in b.slot_keys}
        conflict_dates = conflict_dates_by_member(blocks)

        total = 0
        rounds = 0
        progressed = True
        while progressed:
            if rounds >= self.max_rounds:
                self.round_cap_hits += 1
                logger.warning(
                    f"Undisputed pass (tier {tier}) stopped at the {self.max_rounds}-round cap"
                )
                break
            rounds += 1
            progressed = False
            for member in self.members:
                if self._remaining(member.id) <= 0:
                    continue
                block = self._find_undisputed_block(
                    member.id, tier, conflict_keys, conflict_dates.get(member.id, set())
                )
                if block:
                    total += self._assign(block, member.id)
                    progressed = True

        logger.info(f"Undisputed pass (tier {tier}): {total} slot(s) in {rounds} round(s)")
        return total

    def _find_undisputed_block(
        self, member_id: str, tier: int, conflict_keys: set[SlotKey], conflict_dates: set
    ) -> list[SlotKey] | None:
        for key in free_keys_for_member(self.timetable, member_id):
            if key[0] in conflict_dates:
                continue
            block = self._free_pair(key, member_id)
            if block is None or any(k in conflict_keys for k in block):
                continue
            if all(self._is_undisputed(k, member_id, tier) for k in block):
                return block
        return None

    # ------------------------------------------------------------------
    # Pass 2: time order
    # ------------------------------------------------------------------

    def assign_by_time_order(self) -> int:
        """Walk slots in time order giving complete fits, then partial blocks.

        A complete fit is a contiguous run, starting at the current slot,
        where one under-quota member is the unique top-priority claimant of
        every slot and the run covers that member's whole remaining need.

        Returns:
            Slots assigned
        """
        total = 0
        for key in self.timetable.sorted_keys():
            slot = self.timetable[key]
            if slot.is_assigned:
                continue
            competing = under_quota(self.assignments)
            claimants = [e for e in slot.non_owner_entries() if e.member_id in competing]
            if not claimants:
                continue
            top = max(e.priority for e in claimants)
            leaders = [e.member_id for e in claimants if e.priority == top]
            if len(leaders) != 1:
                continue
            member_id = leaders[0]
            need = self._remaining(member_id)
            run = self._top_priority_run(key, member_id, competing, need)
            if len(run) == need:
                total += self._assign(run, member_id)
                logger.debug(f"Complete fit for {member_id}: {len(run)} slot(s) from {key}")

        _, open_counts = identify_conflicts(self.timetable)
        ordered = sort_members_by_mode(self.members, open_counts, self.mode)
        for member in ordered:
            for _ in range(PARTIAL_BLOCK_LIMIT):
                if self._remaining(member.id) <= 0:
                    break
                block = self._find_partial_block(member.id)
                if not block:
                    break
                total += self._assign(block, member.id)

        logger.info(f"Time-order pass assigned {total} slot(s)")
        return total

    def _top_priority_run(
        self, start: SlotKey, member_id: str, competing: set[str], limit: int
    ) -> list[SlotKey]:
        run: list[SlotKey] = []
        key = start
        while len(run) < limit:
            slot = self.timetable.get(key)
            if slot is None or slot.is_assigned or not slot.can_use(member_id):
                break
            if not is_unique_top_priority(self.timetable, key, member_id, competing):
                break
            run.append(key)
            key = next_key(key)
        return run

    def _find_partial_block(self, member_id: str) -> list[SlotKey] | None:
        """Earliest free run (up to one class length, capped at the need) where the member leads."""
        competing = under_quota(self.assignments)
        candidates = [
            k
            for k in free_keys_for_member(self.timetable, member_id)
            if is_unique_top_priority(self.timetable, k, member_id, competing)
        ]
        size = min(self.block_slots, self._remaining(member_id))
        runs = contiguous_runs(candidates)
        for run in runs:
            if len(run) >= size:
                return run[:size]
        # No run of the full size; take the longest shorter one
        if runs:
            return max(runs, key=len)
        return None

    # ------------------------------------------------------------------
    # Pass 3: iterative
    # ------------------------------------------------------------------

    def assign_iterative(self, tier: int = MID_PRIORITY_TIER) -> int:
        """Repeatedly serve the least-progressed member one block at a time.

        Progress is assigned / required; ties go to the higher declared
        priority. A member with no eligible block drops out. Stops when
        nobody can progress.

        Returns:
            Slots assigned
        """
        blocks = find_conflict_blocks(self.timetable)
        conflict_keys = {k for b in blocks for k in b.slot_keys}
        conflict_dates = conflict_dates_by_member(blocks)
        order = {m.id: i for i, m in enumerate(self.members)}
        exhausted: set[str] = set()

        total = 0
        rounds = 0
        while True:
            candidates = [
                m
                for m in self.members
                if m.id not in exhausted and self._remaining(m.id) > 0
            ]
            if not candidates:
                break
            if rounds >= self.max_rounds:
                self.round_cap_hits += 1
                logger.warning(f"Iterative pass stopped at the {self.max_rounds}-round cap")
                break
            rounds += 1

            member = min(
                candidates,
                key=lambda m: (
                    self.assignments[m.id].progress,
                    -m.declared_priority,
                    order[m.id],
                ),
            )
            block = self._find_iterative_block(
                member.id, tier, conflict_keys, conflict_dates.get(member.id, set())
            )
            if block is None:
                exhausted.add(member.id)
                continue
            total += self._assign(block, member.id)

        logger.info(f"Iterative pass (tier {tier}) assigned {total} slot(s)")
        return total

    def _find_iterative_block(
        self, member_id: str, tier: int, conflict_keys: set[SlotKey], conflict_dates: set
    ) -> list[SlotKey] | None:
        competing = under_quota(self.assignments)
        for key in free_keys_for_member(self.timetable, member_id):
            if key[0] in conflict_dates:
                continue
            block = self._free_pair(key, member_id)
            if block is None or any(k in conflict_keys for k in block):
                continue
            if all(
                self.timetable[k].entry_for(member_id).priority >= tier
                and is_unique_top_priority(self.timetable, k, member_id, competing)
                for k in block
            ):
                return block
        return None
