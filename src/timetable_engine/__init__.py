"""Timetable engine - slot assignment for shared rooms.

Members declare weekly or date-specific availability with priorities; the
owner declares when the room is open. The engine assigns 30-minute slots so
every member reaches a weekly quota where possible, settles contested time
deterministically and carries shortfalls into the following week. An
optional travel-aware mode sequences visits by travel time.

Example usage:
    from timetable_engine import load_schedule_request, run_from_request

    request = load_schedule_request("request.json")
    result = run_from_request(request)

    for member_id, assignment in result.assignments.items():
        print(f"{member_id}: {assignment.assigned_hours}h")

    # Export to JSON
    from timetable_engine.exporters import JSONExporter
    JSONExporter().export(result, "result.json")
"""

from .config import EngineConfig, load_config
from .constants import AssignmentMode, TransportMode
from .exceptions import DirectionsServiceError, InvalidInputError, SchedulingError
from .exporters import CSVExporter, ExcelExporter, JSONExporter, get_exporter
from .loader import load_schedule_request, load_schedule_result
from .models import (
    Assignment,
    Coordinates,
    DatedBlock,
    DatedPreference,
    ExistingSlot,
    Member,
    Owner,
    RecurringBlock,
    RecurringPreference,
    RoomSettings,
    ScheduleRequest,
    ScheduleResult,
    Timetable,
)
from .scheduler import SchedulingAlgorithm, run_auto_schedule, run_from_request
from .travel import DirectionsClient, TravelTimeCache, TravelTimeService

__version__ = "0.1.0"

__all__ = [
    # Entry points
    "SchedulingAlgorithm",
    "run_auto_schedule",
    "run_from_request",
    "load_schedule_request",
    "load_schedule_result",
    # Models
    "Member",
    "Owner",
    "RoomSettings",
    "RecurringPreference",
    "DatedPreference",
    "RecurringBlock",
    "DatedBlock",
    "Coordinates",
    "ExistingSlot",
    "Timetable",
    "Assignment",
    "ScheduleRequest",
    "ScheduleResult",
    "AssignmentMode",
    "TransportMode",
    # Travel
    "TravelTimeService",
    "TravelTimeCache",
    "DirectionsClient",
    # Config
    "EngineConfig",
    "load_config",
    # Exporters
    "JSONExporter",
    "CSVExporter",
    "ExcelExporter",
    "get_exporter",
    # Exceptions
    "SchedulingError",
    "InvalidInputError",
    "DirectionsServiceError",
]
