"""Slot assignment services.

Main classes:
- SchedulingAlgorithm: Runs a complete auto-schedule (facade)
- TimetableCreationService: Builds the slot timetable from availability
- SlotAssignmentService: Greedy passes (carry-over, undisputed, time-order, iterative)
- ConflictResolutionService: Owner claim and owner yield
- NegotiationCreationService: Settles contested blocks by fairness strategies
- MultiWeekSchedulingService: Week-by-week runs with carry-over
- PublicTransportAssignmentService: Travel-aware visit sequencing

Usage:
    from timetable_engine.scheduler import run_auto_schedule

    result = run_auto_schedule(members, owner, [], settings, week_start)
"""

from .algorithm import SchedulingAlgorithm, run_auto_schedule, run_from_request
from .carry_over import compute_carry_over
from .conflict_resolution import ConflictResolutionService
from .conflicts import find_conflict_blocks, identify_conflicts, merge_conflicts
from .multi_week import MultiWeekSchedulingService
from .negotiation import (
    DEFAULT_STRATEGIES,
    NegotiationCreationService,
    Resolution,
    fairness_gap_strategy,
    fewest_assigned_strategy,
    flexibility_strategy,
)
from .public_transport import PublicTransportAssignmentService
from .slot_assignment import SlotAssignmentService, sort_members_by_mode
from .timetable import TimetableCreationService

__all__ = [
    # Facade
    "SchedulingAlgorithm",
    "run_auto_schedule",
    "run_from_request",
    # Services
    "TimetableCreationService",
    "SlotAssignmentService",
    "ConflictResolutionService",
    "NegotiationCreationService",
    "MultiWeekSchedulingService",
    "PublicTransportAssignmentService",
    # Conflicts
    "identify_conflicts",
    "merge_conflicts",
    "find_conflict_blocks",
    # Negotiation strategies
    "Resolution",
    "DEFAULT_STRATEGIES",
    "flexibility_strategy",
    "fairness_gap_strategy",
    "fewest_assigned_strategy",
    # Helpers
    "sort_members_by_mode",
    "compute_carry_over",
]
