"""Data models for studyplan."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from enum import Enum

MINUTES_PER_HOUR = 60
MIN_COMPLEXITY = 1
MAX_COMPLEXITY = 5


class EventType(str, Enum):
    """Kinds of fixed calendar occupation."""

    LECTURE = "lecture"
    EXAM = "exam"
    CLINICAL = "clinical"
    SIMULATION = "simulation"
    OFFICE_HOURS = "office-hours"
    OTHER = "other"


class TaskStatus(str, Enum):
    """Progress of a task."""

    NOT_STARTED = "not-started"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class BlockOrigin(str, Enum):
    """Who placed a time block."""

    AUTO = "auto"  # Placed by the allocator, regenerated on every pass
    MANUAL = "manual"  # Pinned by the user, a fixed obstacle for passes


@dataclass(frozen=True)
class Course:
    """A course; only its end date matters to the engine (horizon resolution)."""

    id: str
    name: str
    code: str = ""
    end_date: date | None = None


@dataclass(frozen=True)
class Event:
    """A fixed, immovable calendar occupation (class, exam, clinical)."""

    id: str
    title: str
    start: datetime
    end: datetime
    type: EventType = EventType.OTHER
    course_id: str | None = None
    location: str | None = None

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


@dataclass(frozen=True)
class Task:
    """A deadline-bound unit of work requiring study time."""

    id: str
    title: str
    due_date: datetime
    estimated_hours: float
    course_id: str | None = None
    type: str = "assignment"
    complexity: int = 3
    buffer_percentage: float = 0.0  # 20 means +20% on top of the estimate
    status: TaskStatus = TaskStatus.NOT_STARTED

    @property
    def required_hours(self) -> float:
        """Estimated hours padded by the buffer percentage."""
        return self.estimated_hours * (1 + self.buffer_percentage / 100)

    @property
    def required_time(self) -> timedelta:
        """Required hours rounded up to whole minutes."""
        # Subtract a hair before ceil so 1.2 * 60 = 72.00000000000001 stays 72
        minutes = math.ceil(self.required_hours * MINUTES_PER_HOUR - 1e-9)
        return timedelta(minutes=max(minutes, 0))

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED


@dataclass(frozen=True)
class TimeBlock:
    """A study session assigned to exactly one task."""

    id: str
    task_id: str
    start: datetime
    end: datetime
    origin: BlockOrigin = BlockOrigin.AUTO

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def is_manual(self) -> bool:
        return self.origin == BlockOrigin.MANUAL

    def moved_to(self, new_start: datetime) -> TimeBlock:
        """Return this block at a new start, same duration, pinned as manual."""
        return replace(
            self,
            start=new_start,
            end=new_start + self.duration,
            origin=BlockOrigin.MANUAL,
        )

    def resized_to(self, new_end: datetime) -> TimeBlock:
        """Return this block with a new end, same start, pinned as manual."""
        return replace(self, end=new_end, origin=BlockOrigin.MANUAL)


@dataclass(frozen=True)
class Horizon:
    """The date range over which scheduling is attempted."""

    start: datetime
    end: datetime


@dataclass
class ScheduleInput:
    """Everything a pass reads, as loaded from a schedule file."""

    courses: list[Course] = field(default_factory=list)
    tasks: list[Task] = field(default_factory=list)
    events: list[Event] = field(default_factory=list)
    blocks: list[TimeBlock] = field(default_factory=list)


def overlaps(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    """Half-open interval overlap; touching end-to-start does not overlap."""
    return start_a < end_b and start_b < end_a
