"""Scheduler package - deadline-driven study block allocation.

This package turns fixed events, deadline tasks and availability preferences
into non-overlapping study blocks plus warnings for what does not fit:
- Availability resolution (free study windows per day)
- Task prioritization and session chunking
- Greedy block allocation over a shared interval pool
- Conflict detection for passes and manual moves
- Warning reporting for unscheduled time

Main entry points:
- generate_schedule / SchedulingService: one full pass
- Rescheduler: state container that re-runs passes as inputs change
- get_horizon: scheduling range from course and task dates
"""

from .allocator import BlockAllocator, allocate
from .availability import check_preferences, merge_periods, resolve_availability
from .conflicts import check_interval, check_move, validate
from .core import (
    AllocationResult,
    Conflict,
    FreeInterval,
    MoveResult,
    ScheduleResult,
    ScheduleWarnings,
    SessionChunk,
    WarningDetail,
)
from .horizon import get_horizon
from .pool import IntervalPool
from .prioritizer import expand, prioritize
from .reporting import report
from .rescheduler import PassState, Rescheduler, ScheduleSnapshot
from .service import SchedulingService, generate_schedule
from .validator import ScheduleInputValidator

__all__ = [
    # Core dataclasses
    "AllocationResult",
    "Conflict",
    "FreeInterval",
    "MoveResult",
    "ScheduleResult",
    "ScheduleWarnings",
    "SessionChunk",
    "WarningDetail",
    # Pipeline stages
    "resolve_availability",
    "check_preferences",
    "merge_periods",
    "prioritize",
    "expand",
    "IntervalPool",
    "BlockAllocator",
    "allocate",
    "validate",
    "check_interval",
    "check_move",
    "report",
    # Input validation
    "ScheduleInputValidator",
    # High-level service
    "SchedulingService",
    "generate_schedule",
    # State container
    "Rescheduler",
    "ScheduleSnapshot",
    "PassState",
    # Horizon
    "get_horizon",
]
