"""Tests for travel-aware assignment."""

from datetime import date

import pytest

from timetable_engine.constants import TransportMode
from timetable_engine.models import Coordinates, ExistingSlot, RecurringBlock, RoomSettings
from timetable_engine.scheduler import run_auto_schedule
from timetable_engine.scheduler.assignment_helper import initialize_assignments
from timetable_engine.scheduler.public_transport import PublicTransportAssignmentService
from timetable_engine.scheduler.timetable import TimetableCreationService
from timetable_engine.travel import TravelTimeService

MONDAY = date(2025, 9, 15)

HOME = Coordinates(37.50, 127.00)
NEAR = Coordinates(37.51, 127.01)
FAR = Coordinates(37.60, 127.10)
MID = Coordinates(37.70, 127.20)


@pytest.fixture
def travel(make_directions):
    provider = make_directions(
        {
            (HOME.rounded(), NEAR.rounded()): 5,
            (HOME.rounded(), FAR.rounded()): 20,
            (NEAR.rounded(), FAR.rounded()): 15,
            (HOME.rounded(), MID.rounded()): 30,
            (NEAR.rounded(), MID.rounded()): 25,
            (FAR.rounded(), MID.rounded()): 10,
        }
    )
    return TravelTimeService(provider)


def run_travel(members, owner, settings, travel):
    dates = [MONDAY]
    timetable = TimetableCreationService(settings).create_timetable(members, owner, dates)
    assignments = initialize_assignments(members, settings)
    service = PublicTransportAssignmentService(timetable, assignments, members, owner, settings, travel)
    completed = service.run(dates)
    return completed, timetable, assignments, service


class TestVisitSequencing:
    def test_nearest_first_then_travel_offset(self, make_owner, make_member, driving_settings, travel):
        owner = make_owner(location=HOME)
        near = make_member("near", (1, "09:00", "12:00"), location=NEAR)
        far = make_member("far", (1, "09:00", "12:00"), location=FAR)

        completed, timetable, assignments, _ = run_travel([far, near], owner, driving_settings, travel)

        assert completed
        first = assignments["near"].slots[0]
        second = assignments["far"].slots[0]
        assert (first.start_time, first.end_time) == ("09:00", "10:00")
        assert (second.start_time, second.end_time) == ("10:15", "11:15")
        assert second.subject == "Visit"
        assert assignments["far"].assigned_slots == 2
        # Off-grid visit marks every slot it overlaps
        for start in ("10:00", "10:30", "11:00"):
            assert timetable[(MONDAY, start)].assigned_to == "far"

    def test_visits_chain_through_shared_slots(self, make_owner, make_member, driving_settings, travel):
        owner = make_owner(location=HOME)
        members = [
            make_member("near", (1, "09:00", "17:00"), location=NEAR),
            make_member("far", (1, "09:00", "17:00"), location=FAR),
            make_member("mid", (1, "09:00", "17:00"), location=MID),
        ]

        _, timetable, assignments, _ = run_travel(members, owner, driving_settings, travel)

        visits = [
            (m, s.start_time, s.end_time) for m in ("near", "far", "mid") for s in assignments[m].slots
        ]
        assert visits == [
            ("near", "09:00", "10:00"),
            ("far", "10:15", "11:15"),
            ("mid", "11:25", "12:25"),
        ]
        # The 11:00 slot is shared; it stays with the visit that took it first
        assert timetable[(MONDAY, "11:00")].assigned_to == "far"
        assert timetable[(MONDAY, "12:00")].assigned_to == "mid"
        assert assignments["mid"].assigned_slots == 2

    def test_occupied_start_pushes_visit(self, make_owner, make_member, driving_settings, travel):
        owner = make_owner(location=HOME)
        near = make_member("near", (1, "09:00", "17:00"), location=NEAR)
        existing = [ExistingSlot(member_id="someone_else", date=MONDAY, start_time="09:00", end_time="10:00")]

        result = run_auto_schedule(
            [near], owner, existing, driving_settings, MONDAY, travel_service=travel
        )

        visit = result.assignments["near"].slots[0]
        assert (visit.start_time, visit.end_time) == ("10:00", "11:00")
        assert result.timetable[(MONDAY, "09:00")].assigned_to == "someone_else"

    def test_window_too_short_after_push(self, make_owner, make_member, driving_settings, travel):
        owner = make_owner(location=HOME)
        near = make_member("near", (1, "09:00", "10:30"), location=NEAR)
        existing = [ExistingSlot(member_id="someone_else", date=MONDAY, start_time="09:00", end_time="10:00")]

        result = run_auto_schedule(
            [near], owner, existing, driving_settings, MONDAY, travel_service=travel
        )
        assert result.assignments["near"].slots == []

    def test_one_visit_per_member_per_day(self, make_owner, make_member, travel):
        owner = make_owner(location=HOME)
        settings = RoomSettings(transport_mode=TransportMode.DRIVING, min_hours_per_week=3)
        near = make_member("near", (1, "09:00", "17:00"), location=NEAR)

        _, _, assignments, _ = run_travel([near], owner, settings, travel)
        assert len(assignments["near"].slots) == 1

    def test_blocked_time_pushes_start(self, make_owner, make_member, driving_settings, travel):
        owner = make_owner(location=HOME)
        near = make_member(
            "near",
            (1, "09:00", "12:00"),
            location=NEAR,
            personal_times=(RecurringBlock("09:00", "09:30", days=(1,)),),
        )

        _, _, assignments, _ = run_travel([near], owner, driving_settings, travel)
        visit = assignments["near"].slots[0]
        assert (visit.start_time, visit.end_time) == ("09:30", "10:30")

    def test_evening_is_hard_blocked(self, make_owner, make_member, travel):
        owner = make_owner(location=HOME)
        settings = RoomSettings(
            transport_mode=TransportMode.DRIVING, min_hours_per_week=1, schedule_end_hour=20
        )
        late = make_member("late", (1, "16:30", "18:00"), location=NEAR)

        _, _, assignments, _ = run_travel([late], owner, settings, travel)
        assert assignments["late"].assigned_slots == 0


class TestTravelFallbacks:
    def test_member_without_location_excluded(self, make_owner, make_member, driving_settings, travel):
        owner = make_owner(location=HOME)
        near = make_member("near", (1, "09:00", "12:00"), location=NEAR)
        lost = make_member("lost", (1, "09:00", "12:00"))

        completed, _, assignments, service = run_travel([near, lost], owner, driving_settings, travel)

        assert completed
        assert assignments["lost"].assigned_slots == 0
        assert any("lost" in w for w in service.warnings)

    def test_owner_without_location_aborts(self, owner, make_member, driving_settings, travel):
        near = make_member("near", (1, "09:00", "12:00"), location=NEAR)
        completed, _, assignments, service = run_travel([near], owner, driving_settings, travel)

        assert not completed
        assert assignments["near"].assigned_slots == 0
        assert service.warnings

    def test_schedule_falls_back_to_default_passes(self, owner, make_member, driving_settings, travel):
        near = make_member("near", (1, "09:00", "12:00"), location=NEAR)
        result = run_auto_schedule([near], owner, [], driving_settings, MONDAY, travel_service=travel)

        assert result.warnings
        assert result.assignments["near"].slots[0].subject == "Auto-assigned"
        assert result.assignments["near"].is_satisfied

    def test_schedule_without_travel_service(self, make_owner, make_member, driving_settings):
        near = make_member("near", (1, "09:00", "12:00"), location=NEAR)
        result = run_auto_schedule(
            [near], make_owner(location=HOME), [], driving_settings, MONDAY
        )
        assert any("travel service" in w for w in result.warnings)
        assert result.assignments["near"].is_satisfied

    def test_schedule_with_travel(self, make_owner, make_member, driving_settings, travel):
        near = make_member("near", (1, "09:00", "12:00"), location=NEAR)
        result = run_auto_schedule(
            [near], make_owner(location=HOME), [], driving_settings, MONDAY, travel_service=travel
        )
        assert result.warnings == []
        assert result.assignments["near"].slots[0].subject == "Visit"
