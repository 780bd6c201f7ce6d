"""Sequential scheduling over several weeks."""

import logging
from collections.abc import Callable
from datetime import date, timedelta

from ..models import (
    Assignment,
    ExistingSlot,
    Member,
    RoomSettings,
    ScheduleResult,
    Timetable,
)
from .assignment_helper import calculate_required_slots
from .carry_over import build_unassigned_info, roll_member_forward

logger = logging.getLogger(__name__)

WeekRunner = Callable[[list[Member], list[ExistingSlot], date], ScheduleResult]


class MultiWeekSchedulingService:
    """Runs one week at a time, feeding each week's outcome into the next.

    Between weeks, members carry their deficit and history forward and every
    slot assigned so far is passed on as an existing slot.
    """

    def __init__(self, run_week: WeekRunner, settings: RoomSettings) -> None:
        self.run_week = run_week
        self.settings = settings

    def run(
        self,
        members: list[Member],
        existing_slots: list[ExistingSlot],
        week_start: date,
    ) -> ScheduleResult:
        """Schedule ``settings.num_weeks`` weeks starting at week_start.

        Returns:
            Aggregated result across all weeks
        """
        num_weeks = self.settings.num_weeks
        current_members = list(members)
        persisted = list(existing_slots)
        weekly: list[ScheduleResult] = []

        for week in range(num_weeks):
            start = week_start + timedelta(weeks=week)
            logger.info(f"Scheduling week {week + 1}/{num_weeks} starting {start.isoformat()}")
            result = self.run_week(current_members, persisted, start)
            weekly.append(result)

            records = {r.member_id: r for r in result.carry_over_assignments}
            current_members = [roll_member_forward(m, records.get(m.id)) for m in current_members]
            persisted = persisted + week_existing_slots(result, start)

        return self._aggregate(members, weekly, week_start)

    def _aggregate(
        self, members: list[Member], weekly: list[ScheduleResult], week_start: date
    ) -> ScheduleResult:
        # Required is the whole-run demand, so any deficit is counted once
        assignments: dict[str, Assignment] = {}
        for member in members:
            total = Assignment(
                member_id=member.id,
                required_slots=calculate_required_slots(member, self.settings, len(weekly)),
            )
            for result in weekly:
                week = result.assignments.get(member.id)
                if week is None:
                    continue
                total.assigned_slots += week.assigned_slots
                total.slots.extend(week.slots)
                if week.needs_intervention:
                    total.needs_intervention = True
                    total.intervention_reason = week.intervention_reason
            assignments[member.id] = total

        timetable = Timetable()
        for result in weekly:
            timetable.slots.update(result.timetable.slots)

        return ScheduleResult(
            assignments=assignments,
            carry_over_assignments=[c for r in weekly for c in r.carry_over_assignments],
            unassigned_members_info=build_unassigned_info(assignments),
            timetable=timetable,
            warnings=[w for r in weekly for w in r.warnings],
            week_start=week_start,
            num_weeks=len(weekly),
        )


def week_existing_slots(result: ScheduleResult, week_start: date) -> list[ExistingSlot]:
    """Slots a weekly result assigned, as existing slots for later weeks."""
    week_end = week_start + timedelta(days=7)
    return [
        ExistingSlot(
            member_id=a.member_id,
            date=s.date,
            start_time=s.start_time,
            end_time=s.end_time,
            subject=s.subject,
        )
        for a in result.assignments.values()
        for s in a.slots
        if week_start <= s.date < week_end
    ]
