"""Tests for data models."""

from datetime import date, datetime

import pytest

from timetable_engine.constants import AssignmentMode, TransportMode
from timetable_engine.exceptions import InvalidInputError
from timetable_engine.models import (
    AssignedSlot,
    Assignment,
    CarryOverAssignment,
    Coordinates,
    DatedBlock,
    DatedPreference,
    Member,
    RecurringBlock,
    RecurringPreference,
    RoomSettings,
    ScheduleRequest,
    ScheduleResult,
    Slot,
    Timetable,
    UnassignedMemberInfo,
    block_from_dict,
    preference_from_dict,
)


class TestPreferences:
    """Tests for availability preference parsing."""

    def test_recurring_preference(self):
        pref = preference_from_dict(
            {"day_of_week": 1, "start_time": "09:00", "end_time": "10:00", "priority": 2}
        )
        assert isinstance(pref, RecurringPreference)
        assert pref.priority == 2
        assert pref.applies_to(date(2025, 9, 15))
        assert not pref.applies_to(date(2025, 9, 16))

    def test_dated_preference(self):
        pref = preference_from_dict(
            {"specific_date": "2025-09-17", "start_time": "09:00", "end_time": "10:00"}
        )
        assert isinstance(pref, DatedPreference)
        assert pref.priority == 3
        assert pref.day_of_week == 3
        assert pref.applies_to(date(2025, 9, 17))

    def test_both_day_and_date_rejected(self):
        with pytest.raises(InvalidInputError):
            preference_from_dict(
                {
                    "day_of_week": 1,
                    "specific_date": "2025-09-15",
                    "start_time": "09:00",
                    "end_time": "10:00",
                }
            )

    def test_neither_day_nor_date_rejected(self):
        with pytest.raises(InvalidInputError):
            preference_from_dict({"start_time": "09:00", "end_time": "10:00"})

    def test_missing_time_rejected(self):
        with pytest.raises(InvalidInputError) as exc_info:
            preference_from_dict({"day_of_week": 1, "start_time": "09:00"})
        assert exc_info.value.field == "preferences"


class TestBlocks:
    """Tests for blocked time parsing."""

    def test_personal_time_days(self):
        block = block_from_dict({"days": [1, 3], "start_time": "12:00", "end_time": "13:00"})
        assert isinstance(block, RecurringBlock)
        assert block.applies_to(date(2025, 9, 15))  # Monday
        assert not block.applies_to(date(2025, 9, 16))

    def test_sunday_is_day_seven(self):
        block = block_from_dict({"days": [7], "start_time": "12:00", "end_time": "13:00"})
        assert block.applies_to(date(2025, 9, 14))

    def test_room_blocked_time_applies_every_day(self):
        block = block_from_dict({"name": "lunch", "start_time": "12:00", "end_time": "13:00"})
        assert block.name == "lunch"
        assert block.applies_to(date(2025, 9, 15))
        assert block.applies_to(date(2025, 9, 19))

    def test_dated_exception(self):
        block = block_from_dict(
            {"type": "date_specific", "specific_date": "2025-09-16", "start_time": "09:00", "end_time": "18:00"}
        )
        assert isinstance(block, DatedBlock)
        assert block.applies_to(date(2025, 9, 16))
        assert not block.applies_to(date(2025, 9, 15))

    def test_daily_recurring_exception_uses_sunday_zero(self):
        block = block_from_dict(
            {"type": "daily_recurring", "day_of_week": 2, "start_time": "09:00", "end_time": "10:00"}
        )
        assert block.applies_to(date(2025, 9, 16))  # Tuesday
        assert not block.applies_to(date(2025, 9, 15))


class TestMember:
    def test_from_dict(self):
        member = Member.from_dict(
            {
                "id": "m1",
                "preferences": [{"day_of_week": 1, "start_time": "09:00", "end_time": "10:00", "priority": 1}],
                "location": {"lat": 37.5, "lng": 127.0},
                "carry_over": 1.5,
                "carry_over_history": [{"amount": 1, "timestamp": "2025-09-08T00:00:00"}],
                "joined_at": "2025-01-01T08:00:00",
            }
        )
        assert member.id == "m1"
        assert member.location == Coordinates(37.5, 127.0)
        assert member.carry_over == 1.5
        assert member.carry_over_history[0].timestamp == datetime(2025, 9, 8)
        assert member.declared_priority == 1

    def test_missing_id_rejected(self):
        with pytest.raises(InvalidInputError):
            Member.from_dict({"preferences": []})

    def test_declared_priority_defaults(self):
        assert Member(id="m").declared_priority == 3

    def test_incomplete_location_is_none(self):
        member = Member.from_dict({"id": "m", "location": {"lat": 1.0}})
        assert member.location is None


class TestRoomSettings:
    def test_defaults(self):
        settings = RoomSettings.from_dict(None)
        assert settings.schedule_start_hour == 9
        assert settings.schedule_end_hour == 18
        assert settings.min_hours_per_week == 3
        assert settings.assignment_mode == AssignmentMode.NORMAL
        assert settings.transport_mode is None
        assert not settings.travel_enabled

    def test_parses_modes_and_hours(self):
        settings = RoomSettings.from_dict(
            {
                "schedule_start_hour": "08:00",
                "assignment_mode": "first_come_first_served",
                "transport_mode": "public",
            }
        )
        assert settings.schedule_start_hour == 8
        assert settings.assignment_mode == AssignmentMode.FIRST_COME_FIRST_SERVED
        assert settings.transport_mode == TransportMode.TRANSIT
        assert settings.travel_enabled

    def test_normal_transport_disables_travel(self):
        assert RoomSettings.from_dict({"transport_mode": "normal"}).transport_mode is None

    def test_unknown_mode_rejected(self):
        with pytest.raises(InvalidInputError):
            RoomSettings.from_dict({"assignment_mode": "lottery"})


class TestTimetable:
    """Tests for Timetable helpers."""

    def test_get_or_create_is_lazy(self):
        timetable = Timetable()
        slot = timetable.get_or_create(date(2025, 9, 15), "09:00")
        assert slot.day_of_week == 1
        assert timetable.get_or_create(date(2025, 9, 15), "09:00") is slot
        assert len(timetable) == 1

    def test_remove_last_member_deletes_slot(self):
        timetable = Timetable()
        slot = timetable.get_or_create(date(2025, 9, 15), "09:00")
        slot.add_availability("owner", 3, is_owner=True)
        slot.add_availability("m1", 3)
        timetable.remove_member(slot.key, "m1")
        assert slot.key not in timetable

    def test_remove_member_keeps_shared_slot(self):
        timetable = Timetable()
        slot = timetable.get_or_create(date(2025, 9, 15), "09:00")
        slot.add_availability("m1", 3)
        slot.add_availability("m2", 3)
        timetable.remove_member(slot.key, "m1")
        assert slot.key in timetable
        assert slot.entry_for("m1") is None

    def test_are_consecutive(self):
        d = date(2025, 9, 15)
        assert Timetable.are_consecutive((d, "09:00"), (d, "09:30"))
        assert not Timetable.are_consecutive((d, "09:00"), (d, "10:00"))
        assert not Timetable.are_consecutive((d, "09:00"), (date(2025, 9, 16), "09:30"))

    def test_conflicting_ignores_owner(self):
        slot = Slot(date=date(2025, 9, 15), start_time="09:00", day_of_week=1)
        slot.add_availability("owner", 3, is_owner=True)
        slot.add_availability("m1", 3)
        assert not slot.is_conflicting
        slot.add_availability("m2", 1)
        assert slot.is_conflicting

    def test_owner_cannot_use_slot(self):
        slot = Slot(date=date(2025, 9, 15), start_time="09:00", day_of_week=1)
        slot.add_availability("owner", 3, is_owner=True)
        assert not slot.can_use("owner")


class TestAssignment:
    def test_hours_and_deficit(self):
        assignment = Assignment(member_id="m1", required_slots=6, assigned_slots=4)
        assert assignment.assigned_hours == 2.0
        assert assignment.deficit_slots == 2
        assert not assignment.is_satisfied

    def test_overshoot_has_no_deficit(self):
        assignment = Assignment(member_id="m1", required_slots=1, assigned_slots=2)
        assert assignment.deficit_slots == 0
        assert assignment.is_satisfied


class TestScheduleResult:
    """Tests for result serialization."""

    def test_round_trip(self):
        d = date(2025, 9, 15)
        timetable = Timetable()
        slot = timetable.get_or_create(d, "09:00")
        slot.add_availability("owner", 3, is_owner=True)
        slot.add_availability("m1", 2)
        slot.assigned_to = "m1"
        result = ScheduleResult(
            assignments={
                "m1": Assignment(
                    member_id="m1",
                    required_slots=2,
                    assigned_slots=1,
                    slots=[AssignedSlot(d, "monday", "09:00", "09:30")],
                    needs_intervention=True,
                    intervention_reason="short",
                )
            },
            carry_over_assignments=[
                CarryOverAssignment("m1", 0.5, datetime(2025, 9, 15), "Short 0.5h")
            ],
            unassigned_members_info=[UnassignedMemberInfo("m1", 0.5)],
            timetable=timetable,
            warnings=["note"],
            week_start=d,
            generation_date="2025-09-14T12:00:00",
        )

        restored = ScheduleResult.from_dict(result.to_dict())

        assert restored.to_dict() == result.to_dict()
        assert restored.assignments["m1"].slots[0].start_time == "09:00"
        assert restored.timetable[(d, "09:00")].assigned_to == "m1"
        assert restored.negotiations == []


class TestScheduleRequest:
    def test_from_dict(self):
        request = ScheduleRequest.from_dict(
            {
                "owner": {"id": "owner", "preferences": []},
                "members": [{"id": "m1"}],
                "settings": {"min_hours_per_week": 2},
                "week_start": "2025-09-15",
                "existing_slots": [{"member_id": "m1", "date": "2025-09-15", "start_time": "09:00"}],
            }
        )
        assert request.week_start == date(2025, 9, 15)
        assert request.settings.min_hours_per_week == 2
        assert request.existing_slots[0].end_time == "09:30"
        assert request.reference_date is None

    def test_members_must_be_list(self):
        with pytest.raises(InvalidInputError):
            ScheduleRequest.from_dict(
                {"owner": {"id": "o"}, "members": {}, "week_start": "2025-09-15"}
            )

    def test_missing_week_start(self):
        with pytest.raises(InvalidInputError):
            ScheduleRequest.from_dict({"owner": {"id": "o"}, "members": []})

    def test_null_lists_read_as_empty(self):
        request = ScheduleRequest.from_dict(
            {
                "owner": {"id": "o", "preferences": None},
                "members": [{"id": "m1", "preferences": None, "personal_times": None}],
                "settings": {"blocked_times": None},
                "week_start": "2025-09-15",
                "existing_slots": None,
            }
        )
        assert request.members[0].preferences == ()
        assert request.members[0].personal_times == ()
        assert request.settings.blocked_times == ()
        assert request.existing_slots == []

    @pytest.mark.parametrize(
        "member",
        [
            {"id": "m1", "preferences": "monday"},
            {"id": "m1", "preferences": ["monday"]},
            {"id": "m1", "preferences": {"day_of_week": 1}},
            {"id": "m1", "personal_times": [None]},
            {"id": "m1", "location": [1, 2]},
            {"id": "m1", "location": "37.5,127.0"},
            {"id": "m1", "carry_over_history": [42]},
            "m1",
        ],
    )
    def test_malformed_member_raises_invalid_input(self, member):
        with pytest.raises(InvalidInputError):
            ScheduleRequest.from_dict(
                {"owner": {"id": "o"}, "members": [member], "week_start": "2025-09-15"}
            )

    @pytest.mark.parametrize(
        "overrides",
        [
            {"owner": {"id": "o", "preferences": [7]}},
            {"owner": {"id": "o", "location": [1, 2]}},
            {"owner": None},
            {"settings": "weekly"},
            {"settings": {"blocked_times": ["lunch"]}},
            {"settings": {"room_exceptions": {"start_time": "12:00"}}},
            {"existing_slots": ["m1"]},
            {"existing_slots": {"member_id": "m1"}},
        ],
    )
    def test_malformed_request_raises_invalid_input(self, overrides):
        data = {"owner": {"id": "o"}, "members": [], "week_start": "2025-09-15"}
        data.update(overrides)
        with pytest.raises(InvalidInputError):
            ScheduleRequest.from_dict(data)
