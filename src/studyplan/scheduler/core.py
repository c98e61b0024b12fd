"""Core dataclasses for the allocation engine."""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any

from studyplan.models import TimeBlock

SECONDS_PER_HOUR = 3600


def _default_dict() -> dict[str, Any]:
    return {}


@dataclass(frozen=True)
class FreeInterval:
    """A stretch of study time with nothing scheduled in it."""

    start: datetime
    end: datetime

    @property
    def length(self) -> timedelta:
        return self.end - self.start

    @property
    def day(self) -> date:
        return self.start.date()

    def is_empty(self) -> bool:
        return self.end <= self.start


@dataclass(frozen=True)
class SessionChunk:
    """One session's worth of a task's required time."""

    task_id: str
    index: int  # Position within the task's chunk list, 0-based
    duration: timedelta


@dataclass
class AllocationResult:
    """Output of a single allocator run."""

    blocks: list[TimeBlock]
    remaining: list[FreeInterval]  # Free time nobody claimed
    unplaced: dict[str, list[SessionChunk]]  # task_id -> chunks that did not fit


@dataclass(frozen=True)
class WarningDetail:
    """How much of a task could not be placed before its due date."""

    task_id: str
    missing_hours: float


@dataclass
class ScheduleWarnings:
    """Tasks that could not be (fully) scheduled."""

    unscheduled_task_ids: set[str] = field(default_factory=set[str])
    message: str = ""
    details: list[WarningDetail] = field(default_factory=list[WarningDetail])

    @property
    def total_missing_hours(self) -> float:
        return sum(detail.missing_hours for detail in self.details)

    def __bool__(self) -> bool:
        return bool(self.unscheduled_task_ids)


@dataclass(frozen=True)
class Conflict:
    """A block overlapping another block or an event."""

    block_id: str
    other_id: str


@dataclass
class MoveResult:
    """Outcome of a manual move: accepted, or rejected with the conflicting IDs."""

    ok: bool
    conflicts: list[str] = field(default_factory=list[str])
    block: TimeBlock | None = None  # The block at its new position when accepted


@dataclass
class ScheduleResult:
    """Complete result of a full pass."""

    blocks: list[TimeBlock]
    warnings: ScheduleWarnings
    metadata: dict[str, Any] = field(default_factory=_default_dict)


def hours(delta: timedelta) -> float:
    """Convert a timedelta to fractional hours."""
    return delta.total_seconds() / SECONDS_PER_HOUR
