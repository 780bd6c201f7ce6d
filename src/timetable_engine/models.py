"""Data models for timetable assignment."""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from .constants import (
    AUTO_ASSIGNMENT_SUBJECT,
    COORDINATE_PRECISION,
    DEFAULT_MIN_CLASS_DURATION_MINUTES,
    DEFAULT_MIN_HOURS_PER_WEEK,
    DEFAULT_NUM_WEEKS,
    DEFAULT_PRIORITY,
    DEFAULT_SCHEDULE_END_HOUR,
    DEFAULT_SCHEDULE_START_HOUR,
    SLOTS_PER_HOUR,
    AssignmentMode,
    TransportMode,
)
from .exceptions import InvalidInputError
from .time_utils import (
    day_of_week,
    parse_date,
    parse_datetime,
    personal_day_to_day_of_week,
    slot_end_time,
    time_to_minutes,
)

# (date, "HH:MM") - sorts chronologically
SlotKey = tuple[date, str]


def _require(data: dict[str, Any], key: str, context: str) -> Any:
    if key not in data or data[key] is None:
        raise InvalidInputError(f"missing '{key}'", field=context)
    return data[key]


def _object(data: Any, context: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise InvalidInputError(f"{context} entry must be an object", field=context)
    return data


def _records(data: dict[str, Any], key: str, context: str) -> list[Any]:
    """List-valued field; missing or null means empty."""
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise InvalidInputError(f"'{key}' must be a list", field=context)
    return value


@dataclass(frozen=True)
class Coordinates:
    """A geographic point."""

    lat: float
    lng: float

    def rounded(self, places: int = COORDINATE_PRECISION) -> tuple[float, float]:
        """Coordinates rounded for cache keys (4 places is about 11 m)."""
        return (round(self.lat, places), round(self.lng, places))

    def as_param(self) -> str:
        return f"{self.lat},{self.lng}"

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "Coordinates | None":
        if data is None:
            return None
        _object(data, "location")
        if not data or data.get("lat") is None or data.get("lng") is None:
            return None
        try:
            return cls(lat=float(data["lat"]), lng=float(data["lng"]))
        except (TypeError, ValueError) as exc:
            raise InvalidInputError(str(exc), field="location") from exc

    def to_dict(self) -> dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}


# ---------------------------------------------------------------------------
# Availability preferences: Recurring | Dated
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RecurringPreference:
    """Weekly availability on a day of week (0=Sunday .. 6=Saturday)."""

    day_of_week: int
    start_time: str
    end_time: str
    priority: int = DEFAULT_PRIORITY

    def applies_to(self, value: date) -> bool:
        return day_of_week(value) == self.day_of_week

    def to_dict(self) -> dict[str, Any]:
        return {
            "day_of_week": self.day_of_week,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "priority": self.priority,
        }


@dataclass(frozen=True)
class DatedPreference:
    """Availability on one specific date."""

    specific_date: date
    start_time: str
    end_time: str
    priority: int = DEFAULT_PRIORITY

    @property
    def day_of_week(self) -> int:
        return day_of_week(self.specific_date)

    def applies_to(self, value: date) -> bool:
        return value == self.specific_date

    def to_dict(self) -> dict[str, Any]:
        return {
            "specific_date": self.specific_date.isoformat(),
            "start_time": self.start_time,
            "end_time": self.end_time,
            "priority": self.priority,
        }


AvailabilityPreference = RecurringPreference | DatedPreference


def preference_from_dict(data: dict[str, Any]) -> AvailabilityPreference:
    """Build a preference, rejecting records that carry both a day and a date."""
    _object(data, "preferences")
    has_day = data.get("day_of_week") is not None
    has_date = bool(data.get("specific_date"))
    if has_day and has_date:
        raise InvalidInputError(
            "preference has both day_of_week and specific_date", field="preferences"
        )
    if not has_day and not has_date:
        raise InvalidInputError(
            "preference needs day_of_week or specific_date", field="preferences"
        )

    start_time = _require(data, "start_time", "preferences")
    end_time = _require(data, "end_time", "preferences")
    try:
        priority = int(data.get("priority") or DEFAULT_PRIORITY)
        if has_date:
            return DatedPreference(
                specific_date=parse_date(data["specific_date"]),
                start_time=start_time,
                end_time=end_time,
                priority=priority,
            )
        return RecurringPreference(
            day_of_week=int(data["day_of_week"]),
            start_time=start_time,
            end_time=end_time,
            priority=priority,
        )
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(str(exc), field="preferences") from exc


# ---------------------------------------------------------------------------
# Blocked / personal time: Recurring | Dated
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RecurringBlock:
    """A window removed every week on the given days.

    Days use 1=Monday .. 7=Sunday. No days means every day (room-level
    blocked times such as lunch).
    """

    start_time: str
    end_time: str
    days: tuple[int, ...] = ()
    name: str = ""

    def applies_to(self, value: date) -> bool:
        if not self.days:
            return True
        return any(personal_day_to_day_of_week(d) == day_of_week(value) for d in self.days)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "days": list(self.days),
        }


@dataclass(frozen=True)
class DatedBlock:
    """A window removed on one specific date."""

    specific_date: date
    start_time: str
    end_time: str
    name: str = ""

    def applies_to(self, value: date) -> bool:
        return value == self.specific_date

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "specific_date": self.specific_date.isoformat(),
        }


BlockedTime = RecurringBlock | DatedBlock


def block_from_dict(data: dict[str, Any]) -> BlockedTime:
    """Build a blocked window from a personal time, room blocked time or room exception.

    Room exceptions use ``type`` = "daily_recurring" with a ``day_of_week``
    (0=Sunday) or "date_specific" with a ``specific_date``.
    """
    _object(data, "blocked_times")
    start_time = _require(data, "start_time", "blocked_times")
    end_time = _require(data, "end_time", "blocked_times")
    name = data.get("name") or data.get("title") or ""
    try:
        if data.get("specific_date") and data.get("type") != "daily_recurring":
            return DatedBlock(
                specific_date=parse_date(data["specific_date"]),
                start_time=start_time,
                end_time=end_time,
                name=name,
            )
        if data.get("type") == "daily_recurring" and data.get("day_of_week") is not None:
            dow = int(data["day_of_week"])
            return RecurringBlock(start_time, end_time, days=(7 if dow == 0 else dow,), name=name)
        days = tuple(int(d) for d in data.get("days") or ())
        return RecurringBlock(start_time, end_time, days=days, name=name)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(str(exc), field="blocked_times") from exc


# ---------------------------------------------------------------------------
# Participants and settings
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CarryOverEntry:
    """A weekly deficit carried into the following week."""

    amount: float
    timestamp: datetime
    reason: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CarryOverEntry":
        _object(data, "carry_over_history")
        try:
            return cls(
                amount=float(data.get("amount", 0)),
                timestamp=parse_datetime(_require(data, "timestamp", "carry_over_history")),
                reason=data.get("reason", ""),
            )
        except (TypeError, ValueError) as exc:
            raise InvalidInputError(str(exc), field="carry_over_history") from exc

    def to_dict(self) -> dict[str, Any]:
        return {
            "amount": self.amount,
            "timestamp": self.timestamp.isoformat(),
            "reason": self.reason,
        }


@dataclass(frozen=True)
class Member:
    """A room member asking for time."""

    id: str
    preferences: tuple[AvailabilityPreference, ...] = ()
    personal_times: tuple[BlockedTime, ...] = ()
    location: Coordinates | None = None
    carry_over: float = 0.0
    carry_over_history: tuple[CarryOverEntry, ...] = ()
    joined_at: datetime | None = None
    display_name: str = ""

    @property
    def declared_priority(self) -> int:
        """Highest priority across the member's preferences."""
        if not self.preferences:
            return DEFAULT_PRIORITY
        return max(p.priority for p in self.preferences)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Member":
        if not isinstance(data, dict):
            raise InvalidInputError("member must be an object", field="members")
        member_id = str(_require(data, "id", "members"))
        try:
            carry_over = float(data.get("carry_over") or 0)
            joined_at = parse_datetime(data["joined_at"]) if data.get("joined_at") else None
        except (TypeError, ValueError) as exc:
            raise InvalidInputError(str(exc), field=f"members[{member_id}]") from exc
        history = _records(data, "carry_over_history", "members")
        return cls(
            id=member_id,
            preferences=tuple(
                preference_from_dict(p) for p in _records(data, "preferences", "members")
            ),
            personal_times=tuple(
                block_from_dict(p) for p in _records(data, "personal_times", "members")
            ),
            location=Coordinates.from_dict(data.get("location")),
            carry_over=carry_over,
            carry_over_history=tuple(CarryOverEntry.from_dict(h) for h in history),
            joined_at=joined_at,
            display_name=data.get("display_name", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "preferences": [p.to_dict() for p in self.preferences],
            "personal_times": [p.to_dict() for p in self.personal_times],
            "location": self.location.to_dict() if self.location else None,
            "carry_over": self.carry_over,
            "carry_over_history": [h.to_dict() for h in self.carry_over_history],
            "joined_at": self.joined_at.isoformat() if self.joined_at else None,
        }


@dataclass(frozen=True)
class Owner:
    """The owner of the shared space; their availability bounds every member."""

    id: str
    preferences: tuple[AvailabilityPreference, ...] = ()
    personal_times: tuple[BlockedTime, ...] = ()
    location: Coordinates | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Owner":
        if not isinstance(data, dict):
            raise InvalidInputError("owner must be an object", field="owner")
        return cls(
            id=str(_require(data, "id", "owner")),
            preferences=tuple(
                preference_from_dict(p) for p in _records(data, "preferences", "owner")
            ),
            personal_times=tuple(
                block_from_dict(p) for p in _records(data, "personal_times", "owner")
            ),
            location=Coordinates.from_dict(data.get("location")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "preferences": [p.to_dict() for p in self.preferences],
            "personal_times": [p.to_dict() for p in self.personal_times],
            "location": self.location.to_dict() if self.location else None,
        }


@dataclass(frozen=True)
class RoomSettings:
    """Room-level scheduling settings."""

    schedule_start_hour: int = DEFAULT_SCHEDULE_START_HOUR
    schedule_end_hour: int = DEFAULT_SCHEDULE_END_HOUR
    blocked_times: tuple[BlockedTime, ...] = ()
    room_exceptions: tuple[BlockedTime, ...] = ()
    min_hours_per_week: float = DEFAULT_MIN_HOURS_PER_WEEK
    num_weeks: int = DEFAULT_NUM_WEEKS
    assignment_mode: AssignmentMode = AssignmentMode.NORMAL
    transport_mode: TransportMode | None = None
    min_class_duration_minutes: int = DEFAULT_MIN_CLASS_DURATION_MINUTES
    owner_claims_contested: bool = False

    @property
    def travel_enabled(self) -> bool:
        return self.transport_mode is not None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "RoomSettings":
        data = _object(data or {}, "settings")
        blocked = _records(data, "blocked_times", "settings")
        room_exceptions = _records(data, "room_exceptions", "settings")
        try:
            return cls(
                schedule_start_hour=_hour(data.get("schedule_start_hour"), DEFAULT_SCHEDULE_START_HOUR),
                schedule_end_hour=_hour(data.get("schedule_end_hour"), DEFAULT_SCHEDULE_END_HOUR),
                blocked_times=tuple(block_from_dict(b) for b in blocked),
                room_exceptions=tuple(block_from_dict(b) for b in room_exceptions),
                min_hours_per_week=float(data.get("min_hours_per_week", DEFAULT_MIN_HOURS_PER_WEEK)),
                num_weeks=int(data.get("num_weeks", DEFAULT_NUM_WEEKS)),
                assignment_mode=AssignmentMode(data.get("assignment_mode") or "normal"),
                transport_mode=TransportMode.parse(data.get("transport_mode")),
                min_class_duration_minutes=int(
                    data.get("min_class_duration_minutes", DEFAULT_MIN_CLASS_DURATION_MINUTES)
                ),
                owner_claims_contested=bool(data.get("owner_claims_contested", False)),
            )
        except (TypeError, ValueError) as exc:
            raise InvalidInputError(str(exc), field="settings") from exc

    def to_dict(self) -> dict[str, Any]:
        return {
            "schedule_start_hour": self.schedule_start_hour,
            "schedule_end_hour": self.schedule_end_hour,
            "blocked_times": [b.to_dict() for b in self.blocked_times],
            "room_exceptions": [b.to_dict() for b in self.room_exceptions],
            "min_hours_per_week": self.min_hours_per_week,
            "num_weeks": self.num_weeks,
            "assignment_mode": self.assignment_mode.value,
            "transport_mode": self.transport_mode.value if self.transport_mode else None,
            "min_class_duration_minutes": self.min_class_duration_minutes,
            "owner_claims_contested": self.owner_claims_contested,
        }


def _hour(value: Any, default: int) -> int:
    """Accept 9 or "09:00" for an hour setting."""
    if value is None or value == "":
        return default
    if isinstance(value, str):
        return int(value.split(":")[0])
    return int(value)


@dataclass(frozen=True)
class ExistingSlot:
    """A previously persisted assignment loaded for idempotent re-runs."""

    member_id: str
    date: date
    start_time: str
    end_time: str
    subject: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExistingSlot":
        _object(data, "existing_slots")
        try:
            return cls(
                member_id=str(_require(data, "member_id", "existing_slots")),
                date=parse_date(_require(data, "date", "existing_slots")),
                start_time=_require(data, "start_time", "existing_slots"),
                end_time=data.get("end_time") or slot_end_time(data["start_time"]),
                subject=data.get("subject", ""),
            )
        except (TypeError, ValueError) as exc:
            raise InvalidInputError(str(exc), field="existing_slots") from exc

    def to_dict(self) -> dict[str, Any]:
        return {
            "member_id": self.member_id,
            "date": self.date.isoformat(),
            "start_time": self.start_time,
            "end_time": self.end_time,
            "subject": self.subject,
        }


# ---------------------------------------------------------------------------
# Timetable
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SlotAvailability:
    """One claimant of a slot."""

    member_id: str
    priority: int
    is_owner: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"member_id": self.member_id, "priority": self.priority, "is_owner": self.is_owner}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SlotAvailability":
        return cls(
            member_id=data["member_id"],
            priority=int(data["priority"]),
            is_owner=bool(data.get("is_owner", False)),
        )


@dataclass
class Slot:
    """An atomic 30-minute unit keyed by (date, start_time)."""

    date: date
    start_time: str
    day_of_week: int
    assigned_to: str | None = None
    available: list[SlotAvailability] = field(default_factory=list)

    @property
    def key(self) -> SlotKey:
        return (self.date, self.start_time)

    @property
    def end_time(self) -> str:
        return slot_end_time(self.start_time)

    @property
    def is_assigned(self) -> bool:
        return self.assigned_to is not None

    def entry_for(self, member_id: str) -> SlotAvailability | None:
        for entry in self.available:
            if entry.member_id == member_id:
                return entry
        return None

    def non_owner_entries(self, min_priority: int | None = None) -> list[SlotAvailability]:
        """Claimants other than the owner, optionally at or above a priority."""
        return [
            a
            for a in self.available
            if not a.is_owner and (min_priority is None or a.priority >= min_priority)
        ]

    def can_use(self, member_id: str) -> bool:
        entry = self.entry_for(member_id)
        return entry is not None and not entry.is_owner

    @property
    def is_conflicting(self) -> bool:
        return len(self.non_owner_entries()) > 1

    def add_availability(self, member_id: str, priority: int, is_owner: bool = False) -> None:
        if self.entry_for(member_id) is None:
            self.available.append(SlotAvailability(member_id, priority, is_owner))

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "start_time": self.start_time,
            "day_of_week": self.day_of_week,
            "assigned_to": self.assigned_to,
            "available": [a.to_dict() for a in self.available],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Slot":
        return cls(
            date=parse_date(data["date"]),
            start_time=data["start_time"],
            day_of_week=int(data["day_of_week"]),
            assigned_to=data.get("assigned_to"),
            available=[SlotAvailability.from_dict(a) for a in data.get("available", [])],
        )


class Timetable:
    """Slots of a run, created lazily as availability touches them."""

    def __init__(self, slots: dict[SlotKey, Slot] | None = None) -> None:
        self.slots: dict[SlotKey, Slot] = slots if slots is not None else {}

    def __len__(self) -> int:
        return len(self.slots)

    def __contains__(self, key: object) -> bool:
        return key in self.slots

    def __getitem__(self, key: SlotKey) -> Slot:
        return self.slots[key]

    def get(self, key: SlotKey) -> Slot | None:
        return self.slots.get(key)

    def values(self):
        return self.slots.values()

    def get_or_create(self, slot_date: date, start_time: str) -> Slot:
        key = (slot_date, start_time)
        slot = self.slots.get(key)
        if slot is None:
            slot = Slot(date=slot_date, start_time=start_time, day_of_week=day_of_week(slot_date))
            self.slots[key] = slot
        return slot

    def remove_member(self, key: SlotKey, member_id: str) -> None:
        """Withdraw a member from a slot, deleting the slot once nobody can use it.

        A slot left with only the owner entry counts as empty.
        """
        slot = self.slots.get(key)
        if slot is None:
            return
        slot.available = [a for a in slot.available if a.member_id != member_id]
        if not slot.non_owner_entries() and not slot.is_assigned:
            del self.slots[key]

    def sorted_keys(self) -> list[SlotKey]:
        return sorted(self.slots)

    def keys_for_date(self, slot_date: date) -> list[SlotKey]:
        return sorted(k for k in self.slots if k[0] == slot_date)

    def dates(self) -> list[date]:
        return sorted({k[0] for k in self.slots})

    @staticmethod
    def are_consecutive(key1: SlotKey, key2: SlotKey) -> bool:
        """True if key2 starts where key1 ends on the same date."""
        return key1[0] == key2[0] and slot_end_time(key1[1]) == key2[1]

    def stats(self) -> dict[str, int]:
        total = len(self.slots)
        assigned = sum(1 for s in self.slots.values() if s.is_assigned)
        return {"total_slots": total, "assigned_slots": assigned, "available_slots": total - assigned}

    def to_dict(self) -> list[dict[str, Any]]:
        return [self.slots[k].to_dict() for k in self.sorted_keys()]

    @classmethod
    def from_dict(cls, data: list[dict[str, Any]]) -> "Timetable":
        slots = [Slot.from_dict(s) for s in data]
        return cls({s.key: s for s in slots})


@dataclass
class ConflictBlock:
    """A run of contiguous slots on one date claimed by several members."""

    date: date
    day_of_week: int
    slot_keys: list[SlotKey]
    contenders: frozenset[str]

    @property
    def slot_count(self) -> int:
        return len(self.slot_keys)

    @property
    def start_time(self) -> str:
        return self.slot_keys[0][1]

    @property
    def end_time(self) -> str:
        return slot_end_time(self.slot_keys[-1][1])

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "day_of_week": self.day_of_week,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "slot_count": self.slot_count,
            "contenders": sorted(self.contenders),
        }


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass
class AssignedSlot:
    """A time range given to a member."""

    date: date
    day: str
    start_time: str
    end_time: str
    subject: str = AUTO_ASSIGNMENT_SUBJECT

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "day": self.day,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "subject": self.subject,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AssignedSlot":
        return cls(
            date=parse_date(data["date"]),
            day=data["day"],
            start_time=data["start_time"],
            end_time=data["end_time"],
            subject=data.get("subject", AUTO_ASSIGNMENT_SUBJECT),
        )

    @property
    def sort_key(self) -> tuple[date, int]:
        return (self.date, time_to_minutes(self.start_time))


@dataclass
class Assignment:
    """Per-member quota and assigned slots.

    Quantities are counted in 30-minute slots.
    """

    member_id: str
    required_slots: int
    assigned_slots: int = 0
    slots: list[AssignedSlot] = field(default_factory=list)
    needs_intervention: bool = False
    intervention_reason: str | None = None

    @property
    def assigned_hours(self) -> float:
        return self.assigned_slots / SLOTS_PER_HOUR

    @property
    def remaining_slots(self) -> int:
        return max(0, self.required_slots - self.assigned_slots)

    @property
    def deficit_slots(self) -> int:
        """Same as remaining_slots; named for the end-of-week view."""
        return self.remaining_slots

    @property
    def is_satisfied(self) -> bool:
        return self.assigned_slots >= self.required_slots

    @property
    def progress(self) -> float:
        if self.required_slots <= 0:
            return 1.0
        return self.assigned_slots / self.required_slots

    def to_dict(self) -> dict[str, Any]:
        return {
            "member_id": self.member_id,
            "assigned_slots": self.assigned_slots,
            "assigned_hours": self.assigned_hours,
            "required_slots": self.required_slots,
            "slots": [s.to_dict() for s in self.slots],
            "needs_intervention": self.needs_intervention,
            "intervention_reason": self.intervention_reason,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Assignment":
        return cls(
            member_id=data["member_id"],
            required_slots=int(data["required_slots"]),
            assigned_slots=int(data.get("assigned_slots", 0)),
            slots=[AssignedSlot.from_dict(s) for s in data.get("slots", [])],
            needs_intervention=bool(data.get("needs_intervention", False)),
            intervention_reason=data.get("intervention_reason"),
        )


@dataclass
class CarryOverAssignment:
    """A deficit recorded for a member at the end of a run."""

    member_id: str
    amount: float
    timestamp: datetime
    reason: str

    def entry(self) -> CarryOverEntry:
        return CarryOverEntry(amount=self.amount, timestamp=self.timestamp, reason=self.reason)

    def to_dict(self) -> dict[str, Any]:
        return {"member_id": self.member_id, **self.entry().to_dict()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CarryOverAssignment":
        entry = CarryOverEntry.from_dict(data)
        return cls(
            member_id=data["member_id"],
            amount=entry.amount,
            timestamp=entry.timestamp,
            reason=entry.reason,
        )


@dataclass
class UnassignedMemberInfo:
    """A member whose demand was not met this run."""

    member_id: str
    needed_hours: float

    def to_dict(self) -> dict[str, Any]:
        return {"member_id": self.member_id, "needed_hours": self.needed_hours}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UnassignedMemberInfo":
        return cls(member_id=data["member_id"], needed_hours=float(data["needed_hours"]))


@dataclass
class ScheduleResult:
    """Result of a scheduling run."""

    assignments: dict[str, Assignment] = field(default_factory=dict)
    carry_over_assignments: list[CarryOverAssignment] = field(default_factory=list)
    unassigned_members_info: list[UnassignedMemberInfo] = field(default_factory=list)
    # Reserved for an interactive negotiation flow; always empty.
    negotiations: list[dict[str, Any]] = field(default_factory=list)
    timetable: Timetable = field(default_factory=Timetable)
    warnings: list[str] = field(default_factory=list)
    week_start: date | None = None
    num_weeks: int = 1
    generation_date: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def total_assigned_slots(self) -> int:
        return sum(a.assigned_slots for a in self.assignments.values())

    @property
    def members_needing_intervention(self) -> list[str]:
        return [m for m, a in self.assignments.items() if a.needs_intervention]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "generation_date": self.generation_date,
            "week_start": self.week_start.isoformat() if self.week_start else None,
            "num_weeks": self.num_weeks,
            "assignments": {m: a.to_dict() for m, a in self.assignments.items()},
            "carry_over_assignments": [c.to_dict() for c in self.carry_over_assignments],
            "unassigned_members_info": [u.to_dict() for u in self.unassigned_members_info],
            "negotiations": list(self.negotiations),
            "timetable": self.timetable.to_dict(),
            "warnings": list(self.warnings),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScheduleResult":
        return cls(
            assignments={
                m: Assignment.from_dict(a) for m, a in data.get("assignments", {}).items()
            },
            carry_over_assignments=[
                CarryOverAssignment.from_dict(c) for c in data.get("carry_over_assignments", [])
            ],
            unassigned_members_info=[
                UnassignedMemberInfo.from_dict(u) for u in data.get("unassigned_members_info", [])
            ],
            negotiations=list(data.get("negotiations", [])),
            timetable=Timetable.from_dict(data.get("timetable", [])),
            warnings=list(data.get("warnings", [])),
            week_start=parse_date(data["week_start"]) if data.get("week_start") else None,
            num_weeks=int(data.get("num_weeks", 1)),
            generation_date=data.get("generation_date", ""),
        )


@dataclass
class ScheduleRequest:
    """Everything a run needs, as loaded from the caller."""

    owner: Owner
    members: list[Member]
    settings: RoomSettings
    week_start: date
    existing_slots: list[ExistingSlot] = field(default_factory=list)
    reference_date: date | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScheduleRequest":
        if not isinstance(data, dict):
            raise InvalidInputError("request must be an object")
        members = data.get("members")
        if not isinstance(members, list):
            raise InvalidInputError("members must be a list", field="members")
        try:
            week_start = parse_date(_require(data, "week_start", "week_start"))
            reference_date = (
                parse_date(data["reference_date"]) if data.get("reference_date") else None
            )
        except ValueError as exc:
            raise InvalidInputError(str(exc), field="week_start") from exc
        return cls(
            owner=Owner.from_dict(data.get("owner")),
            members=[Member.from_dict(m) for m in members],
            settings=RoomSettings.from_dict(data.get("settings")),
            week_start=week_start,
            existing_slots=[
                ExistingSlot.from_dict(s) for s in _records(data, "existing_slots", "existing_slots")
            ],
            reference_date=reference_date,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "owner": self.owner.to_dict(),
            "members": [m.to_dict() for m in self.members],
            "settings": self.settings.to_dict(),
            "week_start": self.week_start.isoformat(),
            "existing_slots": [s.to_dict() for s in self.existing_slots],
            "reference_date": self.reference_date.isoformat() if self.reference_date else None,
        }
