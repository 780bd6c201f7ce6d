"""Owner-side resolution of contested slots."""

import logging

from ..models import Assignment, Owner, SlotKey, Timetable
from .assignment_helper import assign_keys, next_key
from .conflicts import identify_conflicts

logger = logging.getLogger(__name__)


class ConflictResolutionService:
    """Resolves contested slots where the owner's choice is forced.

    Owner claim takes contested slots nobody still needs (only when the room
    enables it). Owner yield hands a contested slot to its one under-quota
    claimant.
    """

    def __init__(
        self,
        timetable: Timetable,
        assignments: dict[str, Assignment],
        owner: Owner,
        owner_claims_contested: bool = False,
    ) -> None:
        self.timetable = timetable
        self.assignments = assignments
        self.owner = owner
        self.owner_claims_contested = owner_claims_contested

    def run(self) -> None:
        self.owner_claim()
        self.owner_yield()

    def _needy_claimants(self, key: SlotKey) -> list[str]:
        return [
            e.member_id
            for e in self.timetable[key].non_owner_entries()
            if e.member_id in self.assignments and not self.assignments[e.member_id].is_satisfied
        ]

    def owner_claim(self) -> int:
        """Let the owner take contested slots whose contenders have all met quota.

        Returns:
            Slots claimed
        """
        if not self.owner_claims_contested:
            return 0

        conflict_keys, _ = identify_conflicts(self.timetable)
        claimed = 0
        for key in conflict_keys:
            if not self._needy_claimants(key):
                self.timetable[key].assigned_to = self.owner.id
                claimed += 1
        if claimed:
            logger.info(f"Owner claimed {claimed} contested slot(s)")
        return claimed

    def owner_yield(self) -> int:
        """Hand contested slots to their single under-quota claimant.

        Slots are handed over in one-hour units: a slot is yielded with the
        following slot when that one also yields to the same member. A lone
        slot is yielded only when the member needs exactly one more slot.

        Returns:
            Slots yielded
        """
        conflict_keys, _ = identify_conflicts(self.timetable)
        yielded = 0
        for key in conflict_keys:
            slot = self.timetable[key]
            if slot.is_assigned:
                continue
            needy = self._needy_claimants(key)
            if len(needy) != 1:
                continue
            member_id = needy[0]
            remaining = self.assignments[member_id].remaining_slots

            pair = next_key(key)
            neighbour = self.timetable.get(pair)
            if (
                neighbour is not None
                and not neighbour.is_assigned
                and len(neighbour.non_owner_entries()) > 1
                and self._needy_claimants(pair) == [member_id]
            ):
                yielded += assign_keys(self.timetable, self.assignments, [key, pair], member_id)
            elif remaining == 1:
                yielded += assign_keys(self.timetable, self.assignments, [key], member_id)

        if yielded:
            logger.info(f"Owner yielded {yielded} contested slot(s)")
        return yielded
