"""Week-end carry-over of unmet quota and intervention flags."""

import logging
from dataclasses import replace
from datetime import date, datetime, time, timedelta

from ..constants import INTERVENTION_LOOKBACK_DAYS, INTERVENTION_SHORTFALL_WEEKS, SLOTS_PER_HOUR
from ..models import Assignment, CarryOverAssignment, Member, UnassignedMemberInfo

logger = logging.getLogger(__name__)


def week_timestamp(week_start: date) -> datetime:
    return datetime.combine(week_start, time.min)


def has_recent_shortfall(member: Member, week_start: date) -> bool:
    """Check for a carry-over entry from the previous week (on or after its start)."""
    window_start = week_start - timedelta(days=INTERVENTION_LOOKBACK_DAYS)
    for entry in member.carry_over_history:
        entry_date = entry.timestamp.date()
        if window_start <= entry_date < week_start and entry.amount > 0:
            return True
    return False


def compute_carry_over(
    members: list[Member],
    assignments: dict[str, Assignment],
    week_start: date,
) -> list[CarryOverAssignment]:
    """Record each member's shortfall for the week.

    Sets ``needs_intervention`` on members short for a second consecutive
    week.

    Args:
        members: Members of the run, with their history
        assignments: Assignments after every pass
        week_start: Monday of the week being closed

    Returns:
        One CarryOverAssignment per short member
    """
    timestamp = week_timestamp(week_start)
    records: list[CarryOverAssignment] = []

    for member in members:
        assignment = assignments.get(member.id)
        if assignment is None or assignment.deficit_slots <= 0:
            continue

        deficit_hours = assignment.deficit_slots / SLOTS_PER_HOUR
        records.append(
            CarryOverAssignment(
                member_id=member.id,
                amount=deficit_hours,
                timestamp=timestamp,
                reason=f"Short {deficit_hours:g}h in week of {week_start.isoformat()}",
            )
        )

        if has_recent_shortfall(member, week_start):
            assignment.needs_intervention = True
            assignment.intervention_reason = (
                f"Short of quota for {INTERVENTION_SHORTFALL_WEEKS} consecutive weeks "
                f"({deficit_hours:g}h missing this week)"
            )
            logger.warning(f"{member.id} needs intervention: {assignment.intervention_reason}")

    if records:
        logger.info(f"{len(records)} member(s) carry a deficit out of {week_start.isoformat()}")
    return records


def build_unassigned_info(assignments: dict[str, Assignment]) -> list[UnassignedMemberInfo]:
    """Members still short, with the hours they need."""
    return [
        UnassignedMemberInfo(member_id=a.member_id, needed_hours=a.deficit_slots / SLOTS_PER_HOUR)
        for a in assignments.values()
        if a.deficit_slots > 0
    ]


def roll_member_forward(
    member: Member, record: CarryOverAssignment | None
) -> Member:
    """The member as they enter the next week.

    The next week's carry-over is this week's deficit (zero when met), and
    any deficit is appended to the history.
    """
    if record is None:
        return replace(member, carry_over=0.0)
    return replace(
        member,
        carry_over=record.amount,
        carry_over_history=(*member.carry_over_history, record.entry()),
    )
