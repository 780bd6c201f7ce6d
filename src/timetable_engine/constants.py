"""Constants for timetable assignment."""

from enum import Enum


class AssignmentMode(str, Enum):
    """Member ordering used by the time-order pass."""

    NORMAL = "normal"
    FIRST_COME_FIRST_SERVED = "first_come_first_served"
    FROM_TODAY = "from_today"


class TransportMode(str, Enum):
    """Transport modes understood by the directions service."""

    TRANSIT = "transit"
    DRIVING = "driving"
    WALKING = "walking"
    BICYCLING = "bicycling"

    @classmethod
    def parse(cls, value: str | None) -> "TransportMode | None":
        """Parse a transport mode setting.

        "normal" (or nothing) disables the travel policy, "public" is an
        alias for transit.
        """
        if value is None or value == "" or value == "normal":
            return None
        if value == "public":
            return cls.TRANSIT
        return cls(value)


# Slot grid
MINUTES_PER_SLOT = 30
MINUTES_PER_HOUR = 60
SLOTS_PER_HOUR = MINUTES_PER_HOUR // MINUTES_PER_SLOT

# One-hour block, the unit of most assignment passes
BLOCK_SLOTS = 2

# Room defaults
DEFAULT_SCHEDULE_START_HOUR = 9
DEFAULT_SCHEDULE_END_HOUR = 18
DEFAULT_MIN_HOURS_PER_WEEK = 3
DEFAULT_NUM_WEEKS = 1
DEFAULT_MIN_CLASS_DURATION_MINUTES = 60
DEFAULT_PRIORITY = 3

# Priority tiers for the undisputed and iterative passes
HIGH_PRIORITY_TIER = 3
LOW_PRIORITY_TIER = 1
MID_PRIORITY_TIER = 2

# Termination cap for the round-robin and iterative loops
MAX_ITERATION_ROUNDS = 1000

# Best-effort partial blocks per member in the time-order pass
PARTIAL_BLOCK_LIMIT = 3

# Fairness gap, in slots (one hour)
FAIRNESS_GAP_THRESHOLD = 2

# Carry-over
INTERVENTION_SHORTFALL_WEEKS = 2
INTERVENTION_LOOKBACK_DAYS = 7

# Travel policy
TRAVEL_DAY_START = "09:00"
HARD_BLOCK_START = "17:00"
HARD_BLOCK_END = "24:00"
DIRECTIONS_BATCH_SIZE = 25
DEFAULT_TRAVEL_MINUTES = 30
TRAVEL_CACHE_TTL_SECONDS = 24 * 60 * 60
TRAVEL_CACHE_MAX_SIZE = 10000
COORDINATE_PRECISION = 4

# Order in which other modes are consulted when a mode has no cached value
FALLBACK_MODE_ORDER = [
    TransportMode.TRANSIT,
    TransportMode.DRIVING,
    TransportMode.WALKING,
    TransportMode.BICYCLING,
]

AUTO_ASSIGNMENT_SUBJECT = "Auto-assigned"
TRAVEL_ASSIGNMENT_SUBJECT = "Visit"

DAY_NAMES = {
    0: "sunday",
    1: "monday",
    2: "tuesday",
    3: "wednesday",
    4: "thursday",
    5: "friday",
    6: "saturday",
}

WEEKEND_DAYS = (0, 6)
