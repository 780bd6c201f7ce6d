"""Travel-aware assignment: sequencing members by travel time."""

import logging
from datetime import date

from ..constants import (
    DAY_NAMES,
    HARD_BLOCK_END,
    HARD_BLOCK_START,
    MINUTES_PER_HOUR,
    MINUTES_PER_SLOT,
    TRAVEL_ASSIGNMENT_SUBJECT,
    TRAVEL_DAY_START,
    TransportMode,
)
from ..models import (
    AssignedSlot,
    Assignment,
    BlockedTime,
    Coordinates,
    Member,
    Owner,
    RecurringBlock,
    RoomSettings,
    SlotKey,
    Timetable,
)
from ..time_utils import (
    day_of_week,
    generate_slot_times,
    minutes_to_time,
    slots_for_minutes,
    time_to_minutes,
)
from ..travel import TravelTimeService
from ..validators import blocks_for_date, find_blocked_overlap, preference_applies_to_date

logger = logging.getLogger(__name__)

# Visits never run into the evening
HARD_BLOCK = RecurringBlock(HARD_BLOCK_START, HARD_BLOCK_END, name="evening")

# Bound on pushes past blocked windows and occupied slots for one candidate window
MAX_BLOCK_PUSHES = 20


class PublicTransportAssignmentService:
    """Assigns one visit per member per day, routing the owner between members.

    Each day starts at the owner's location. The next visit goes to the
    nearest unsatisfied member who can be fitted; the owner then moves to
    that member's location. The first visit of a day starts without travel
    time, later ones start after the travel from the previous member.
    """

    def __init__(
        self,
        timetable: Timetable,
        assignments: dict[str, Assignment],
        members: list[Member],
        owner: Owner,
        settings: RoomSettings,
        travel_service: TravelTimeService,
    ) -> None:
        self.timetable = timetable
        self.assignments = assignments
        self.members = members
        self.owner = owner
        self.settings = settings
        self.travel_service = travel_service
        self.mode: TransportMode = settings.transport_mode or TransportMode.DRIVING
        self.duration = settings.min_class_duration_minutes
        self.warnings: list[str] = []
        # Minute ranges of visits per date, and the grid slots they touch
        self._visits: dict[date, list[tuple[int, int]]] = {}
        self._visit_keys: set[SlotKey] = set()

    def run(self, dates: list[date]) -> bool:
        """Assign visits over the given dates.

        Returns:
            False if the mode was aborted (owner has no location)
        """
        if self.owner.location is None:
            message = "Owner has no location; travel-aware assignment skipped"
            logger.warning(message)
            self.warnings.append(message)
            return False

        located = []
        for member in self.members:
            if member.location is None:
                message = f"Member {member.id} has no location and was excluded from travel assignment"
                logger.warning(message)
                self.warnings.append(message)
            else:
                located.append(member)

        total = 0
        for value in sorted(dates):
            total += self._assign_day(value, located)

        logger.info(f"Travel-aware assignment placed {total} visit(s) ({self.mode.value})")
        return True

    def _assign_day(self, value: date, members: list[Member]) -> int:
        location: Coordinates = self.owner.location
        previous_end: int | None = None
        visited: set[str] = set()
        placed = 0

        while True:
            candidates = [
                m
                for m in members
                if m.id not in visited
                and not self.assignments[m.id].is_satisfied
                and any(preference_applies_to_date(p, value) for p in m.preferences)
            ]
            if not candidates:
                break

            minutes = self.travel_service.estimate_travel_times_batch(
                location, [m.location for m in candidates], self.mode
            )
            order = {m.id: i for i, m in enumerate(members)}
            ranked = sorted(zip(candidates, minutes), key=lambda cm: (cm[1], order[cm[0].id]))

            chosen = None
            for member, travel in ranked:
                window = self._fit(member, value, previous_end, travel)
                if window is not None:
                    chosen = (member, window)
                    break
            if chosen is None:
                break

            member, (start, end) = chosen
            self._record(member, value, start, end)
            visited.add(member.id)
            location = member.location
            previous_end = end
            placed += 1

        return placed

    def _blocks(self, member: Member, value: date) -> list[BlockedTime]:
        blocks = blocks_for_date(
            value,
            (*member.personal_times, *self.owner.personal_times),
            self.settings.blocked_times,
            self.settings.room_exceptions,
        )
        return [*blocks, HARD_BLOCK]

    def _fit(
        self, member: Member, value: date, previous_end: int | None, travel: int
    ) -> tuple[int, int] | None:
        """Earliest (start, end) in minutes for a visit to the member, if any.

        The start is pushed past blocked windows and occupied time until the
        visit fits or leaves its preference window.
        """
        blocks = self._blocks(member, value)
        windows = sorted(
            (p for p in member.preferences if preference_applies_to_date(p, value)),
            key=lambda p: time_to_minutes(p.start_time),
        )
        for window in windows:
            window_start = time_to_minutes(window.start_time)
            window_end = time_to_minutes(window.end_time)
            if previous_end is None:
                start = max(time_to_minutes(TRAVEL_DAY_START), window_start)
            else:
                start = max(previous_end + travel, window_start)

            for _ in range(MAX_BLOCK_PUSHES):
                end = start + self.duration
                if end > window_end or end > 24 * MINUTES_PER_HOUR:
                    break
                overlap = find_blocked_overlap(minutes_to_time(start), minutes_to_time(end), blocks)
                if overlap is not None:
                    start = time_to_minutes(overlap.end_time)
                    continue
                occupied_until = self._occupied_until(member, value, start, end)
                if occupied_until is None:
                    return start, end
                start = occupied_until
        return None

    def _slot_keys(self, value: date, start: int, end: int) -> list[SlotKey]:
        return [
            (value, t) for t in generate_slot_times(minutes_to_time(start), minutes_to_time(end))
        ]

    def _occupied_until(self, member: Member, value: date, start: int, end: int) -> int | None:
        """End minute of the first obstacle in [start, end), or None when the range is free.

        Grid slots touched by an earlier visit only block the minutes that
        visit actually used.
        """
        for key in self._slot_keys(value, start, end):
            slot = self.timetable.get(key)
            slot_end = time_to_minutes(key[1]) + MINUTES_PER_SLOT
            if slot is None or not slot.can_use(member.id):
                return slot_end
            if slot.is_assigned and key not in self._visit_keys:
                return slot_end

        for visit_start, visit_end in self._visits.get(value, []):
            if visit_start < end and start < visit_end:
                return visit_end
        return None

    def _record(self, member: Member, value: date, start: int, end: int) -> None:
        for key in self._slot_keys(value, start, end):
            slot = self.timetable[key]
            # A slot shared with the previous visit keeps its first assignee
            if not slot.is_assigned:
                slot.assigned_to = member.id
            self._visit_keys.add(key)
        self._visits.setdefault(value, []).append((start, end))

        assignment = self.assignments[member.id]
        assignment.assigned_slots += slots_for_minutes(end - start)
        assignment.slots.append(
            AssignedSlot(
                date=value,
                day=DAY_NAMES[day_of_week(value)],
                start_time=minutes_to_time(start),
                end_time=minutes_to_time(end),
                subject=TRAVEL_ASSIGNMENT_SUBJECT,
            )
        )
        logger.debug(
            f"Visit {member.id} on {value} {minutes_to_time(start)}-{minutes_to_time(end)}"
        )
