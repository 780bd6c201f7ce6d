"""Entry point tying the scheduling services together."""

import logging
from datetime import date, timedelta

from ..models import (
    ExistingSlot,
    Member,
    Owner,
    RoomSettings,
    ScheduleRequest,
    ScheduleResult,
)
from ..time_utils import iter_dates, slots_for_minutes
from ..travel import TravelTimeService
from ..validators import validate_inputs
from .assignment_helper import initialize_assignments, load_existing_slots
from .carry_over import build_unassigned_info, compute_carry_over
from .conflict_resolution import ConflictResolutionService
from .multi_week import MultiWeekSchedulingService
from .negotiation import NegotiationCreationService
from .public_transport import PublicTransportAssignmentService
from .slot_assignment import SlotAssignmentService
from .timetable import TimetableCreationService

logger = logging.getLogger(__name__)


class SchedulingAlgorithm:
    """Runs a complete auto-schedule.

    A run validates its inputs, builds the timetable, loads existing slots,
    assigns slots (the default passes or the travel-aware policy), settles
    contested blocks and records carry-over. Runs longer than a week are
    delegated week by week to MultiWeekSchedulingService.
    """

    def __init__(self, travel_service: TravelTimeService | None = None) -> None:
        """Initialize the algorithm.

        Args:
            travel_service: Travel time estimator, required only when the
                room uses a transport mode.
        """
        self.travel_service = travel_service

    def run(
        self,
        members: list[Member],
        owner: Owner,
        existing_slots: list[ExistingSlot],
        settings: RoomSettings,
        week_start: date,
        reference_date: date | None = None,
    ) -> ScheduleResult:
        """Schedule the room.

        Args:
            members: Members in priority-neutral input order
            owner: Room owner
            existing_slots: Previously persisted slots
            settings: Room settings
            week_start: Monday of the first week
            reference_date: First schedulable date for the from-today mode

        Returns:
            ScheduleResult

        Raises:
            InvalidInputError: If members, owner or settings are malformed
        """
        validate_inputs(members, owner, settings)
        logger.info(
            f"Auto-scheduling {len(members)} member(s) from {week_start.isoformat()} "
            f"for {settings.num_weeks} week(s)"
        )

        if settings.num_weeks > 1:
            service = MultiWeekSchedulingService(
                run_week=lambda week_members, persisted, start: self._run_week(
                    week_members, owner, persisted, settings, start, reference_date
                ),
                settings=settings,
            )
            return service.run(members, existing_slots, week_start)

        return self._run_week(members, owner, existing_slots, settings, week_start, reference_date)

    def _run_week(
        self,
        members: list[Member],
        owner: Owner,
        existing_slots: list[ExistingSlot],
        settings: RoomSettings,
        week_start: date,
        reference_date: date | None,
    ) -> ScheduleResult:
        week_end = week_start + timedelta(days=7)
        creator = TimetableCreationService(settings)
        dates = creator.run_dates(iter_dates(week_start, week_end), reference_date)
        timetable = creator.create_timetable(members, owner, dates)

        assignments = initialize_assignments(members, settings)
        load_existing_slots(timetable, assignments, existing_slots, window=(week_start, week_end))
        warnings: list[str] = []

        travel_done = False
        if settings.travel_enabled:
            travel_done = self._run_travel(
                timetable, assignments, members, owner, settings, dates, warnings
            )
        if not travel_done:
            SlotAssignmentService(
                timetable,
                assignments,
                members,
                mode=settings.assignment_mode,
                block_slots=slots_for_minutes(settings.min_class_duration_minutes),
            ).run()
            ConflictResolutionService(
                timetable, assignments, owner, settings.owner_claims_contested
            ).run()
            NegotiationCreationService(timetable, assignments, members).run()

        carry_over = compute_carry_over(members, assignments, week_start)
        result = ScheduleResult(
            assignments=assignments,
            carry_over_assignments=carry_over,
            unassigned_members_info=build_unassigned_info(assignments),
            timetable=timetable,
            warnings=warnings,
            week_start=week_start,
            num_weeks=1,
        )
        stats = timetable.stats()
        logger.info(
            f"Week {week_start.isoformat()}: {stats['assigned_slots']}/{stats['total_slots']} "
            f"slots assigned, {len(result.unassigned_members_info)} member(s) short"
        )
        return result

    def _run_travel(self, timetable, assignments, members, owner, settings, dates, warnings) -> bool:
        """Run the travel-aware policy; False means fall back to the default passes."""
        if self.travel_service is None:
            message = "No travel service configured; using default assignment"
            logger.warning(message)
            warnings.append(message)
            return False

        service = PublicTransportAssignmentService(
            timetable, assignments, members, owner, settings, self.travel_service
        )
        completed = service.run(dates)
        warnings.extend(service.warnings)
        return completed


def run_auto_schedule(
    members: list[Member],
    owner: Owner,
    existing_slots: list[ExistingSlot],
    settings: RoomSettings,
    week_start: date,
    reference_date: date | None = None,
    travel_service: TravelTimeService | None = None,
) -> ScheduleResult:
    """Schedule a room in one call.

    See SchedulingAlgorithm.run for the arguments.
    """
    return SchedulingAlgorithm(travel_service).run(
        members, owner, existing_slots, settings, week_start, reference_date
    )


def run_from_request(
    request: ScheduleRequest, travel_service: TravelTimeService | None = None
) -> ScheduleResult:
    """Schedule from a loaded ScheduleRequest."""
    return run_auto_schedule(
        request.members,
        request.owner,
        request.existing_slots,
        request.settings,
        request.week_start,
        request.reference_date,
        travel_service=travel_service,
    )
