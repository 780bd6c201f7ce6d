"""Deterministic resolution of contested blocks.

Each block still contested after the greedy passes is settled by a chain of
strategies. A strategy looks at the block and the current state and either
names a winner or passes. The last strategy always decides.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from ..constants import BLOCK_SLOTS, FAIRNESS_GAP_THRESHOLD
from ..models import Assignment, ConflictBlock, Member, SlotKey, Timetable
from .assignment_helper import assign_keys, contiguous_runs, free_keys_for_member
from .conflicts import find_conflict_blocks

logger = logging.getLogger(__name__)


@dataclass
class Resolution:
    """Winner of a contested block and the rule that picked them."""

    winner: str
    strategy: str


@dataclass
class NegotiationState:
    """What strategies may look at."""

    timetable: Timetable
    assignments: dict[str, Assignment]
    member_order: dict[str, int]

    def block_keys_for(self, block: ConflictBlock, member_id: str) -> list[SlotKey]:
        """Free slots of the block the member can use."""
        return [
            k
            for k in block.slot_keys
            if not self.timetable[k].is_assigned and self.timetable[k].can_use(member_id)
        ]

    def flexibility(self, block: ConflictBlock, member_id: str) -> int:
        """Free slots the member could use outside this block."""
        inside = set(block.slot_keys)
        return sum(1 for k in free_keys_for_member(self.timetable, member_id) if k not in inside)


Strategy = Callable[[ConflictBlock, list[str], NegotiationState], Resolution | None]


def flexibility_strategy(
    block: ConflictBlock, contenders: list[str], state: NegotiationState
) -> Resolution | None:
    """The contender with strictly the fewest alternatives wins."""
    scores = {m: state.flexibility(block, m) for m in contenders}
    lowest = min(scores.values())
    leaders = [m for m, s in scores.items() if s == lowest]
    if len(leaders) == 1:
        return Resolution(winner=leaders[0], strategy="flexibility")
    return None


def fairness_gap_strategy(
    block: ConflictBlock, contenders: list[str], state: NegotiationState
) -> Resolution | None:
    """A contender far behind the others wins when the block covers every need."""
    if len(contenders) < 2:
        return None
    total_need = sum(state.assignments[m].remaining_slots for m in contenders)
    if total_need > block.slot_count:
        return None
    ranked = sorted(contenders, key=lambda m: state.assignments[m].assigned_slots)
    least = state.assignments[ranked[0]].assigned_slots
    runner_up = state.assignments[ranked[1]].assigned_slots
    if runner_up - least > FAIRNESS_GAP_THRESHOLD:
        return Resolution(winner=ranked[0], strategy="fairness_gap")
    return None


def fewest_assigned_strategy(
    block: ConflictBlock, contenders: list[str], state: NegotiationState
) -> Resolution | None:
    """Fewest assigned slots wins; then the larger remaining need; then input order."""
    winner = min(
        contenders,
        key=lambda m: (
            state.assignments[m].assigned_slots,
            -state.assignments[m].remaining_slots,
            state.member_order[m],
        ),
    )
    return Resolution(winner=winner, strategy="fewest_assigned")


DEFAULT_STRATEGIES: tuple[Strategy, ...] = (
    flexibility_strategy,
    fairness_gap_strategy,
    fewest_assigned_strategy,
)


def award_size(need: int, available_run: int) -> int:
    """Slots to award: the need rounded up to whole hours, clipped to the run."""
    rounded = -(-need // BLOCK_SLOTS) * BLOCK_SLOTS
    return min(rounded, available_run)


class NegotiationCreationService:
    """Settles every remaining conflict block.

    Contenders already at quota drop out. A sole remaining contender takes
    exactly what it still needs. Otherwise the strategies pick a single
    winner, who takes their need rounded up to whole hours from the block's
    first open run.
    """

    def __init__(
        self,
        timetable: Timetable,
        assignments: dict[str, Assignment],
        members: list[Member],
        strategies: tuple[Strategy, ...] = DEFAULT_STRATEGIES,
    ) -> None:
        self.timetable = timetable
        self.assignments = assignments
        self.strategies = strategies
        self.state = NegotiationState(
            timetable=timetable,
            assignments=assignments,
            member_order={m.id: i for i, m in enumerate(members)},
        )
        self.resolutions: list[tuple[ConflictBlock, Resolution]] = []

    def run(self) -> int:
        """Resolve all current conflict blocks in time order.

        Returns:
            Slots awarded
        """
        blocks = find_conflict_blocks(self.timetable)
        awarded = sum(self.resolve_block(block) for block in blocks)
        logger.info(f"Negotiation settled {len(self.resolutions)} of {len(blocks)} block(s), {awarded} slot(s)")
        return awarded

    def _active_contenders(self, block: ConflictBlock) -> list[str]:
        contenders = [
            m
            for m in block.contenders
            if m in self.assignments
            and not self.assignments[m].is_satisfied
            and self.state.block_keys_for(block, m)
        ]
        return sorted(contenders, key=lambda m: self.state.member_order[m])

    def choose_winner(self, block: ConflictBlock, contenders: list[str]) -> Resolution:
        """Apply strategies in order until one decides."""
        for strategy in self.strategies:
            resolution = strategy(block, contenders, self.state)
            if resolution is not None:
                return resolution
        # The final strategy always decides; keep input order as the last resort
        return Resolution(winner=contenders[0], strategy="input_order")

    def resolve_block(self, block: ConflictBlock) -> int:
        """Resolve one block.

        Returns:
            Slots awarded from the block
        """
        contenders = self._active_contenders(block)
        if not contenders:
            return 0

        if len(contenders) == 1:
            resolution = Resolution(winner=contenders[0], strategy="sole_contender")
        else:
            resolution = self.choose_winner(block, contenders)

        winner = resolution.winner
        runs = contiguous_runs(self.state.block_keys_for(block, winner))
        if not runs:
            return 0
        run = runs[0]
        need = self.assignments[winner].remaining_slots
        if resolution.strategy == "sole_contender":
            size = min(need, len(run))
        else:
            size = award_size(need, len(run))
        awarded = assign_keys(self.timetable, self.assignments, run[:size], winner)

        self.resolutions.append((block, resolution))
        logger.debug(
            f"Block {block.date} {block.start_time}-{block.end_time}: {winner} wins "
            f"{awarded} slot(s) by {resolution.strategy}"
        )
        return awarded
