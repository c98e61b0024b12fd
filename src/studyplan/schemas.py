"""Pydantic schemas for schedule YAML data validation."""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from .models import MAX_COMPLEXITY, MIN_COMPLEXITY, BlockOrigin, EventType, TaskStatus

# A bare date as a due date means the end of that day
END_OF_DAY = time(23, 59)


def _as_datetime(v: Any, default_time: time) -> Any:
    """Promote YAML dates to datetimes; leave everything else to pydantic."""
    if isinstance(v, date) and not isinstance(v, datetime):
        return datetime.combine(v, default_time)
    return v


class CourseSchema(BaseModel):
    """Schema for a course entry."""

    name: str
    code: str = ""
    end_date: date | None = None

    @field_validator("code", mode="before")
    @classmethod
    def coerce_code_to_string(cls, v: Any) -> str:
        """Course codes like 301 load as ints."""
        return "" if v is None else str(v)


class TaskSchema(BaseModel):
    """Schema for a task entry.

    ``complexity`` and ``buffer`` are optional; the loader fills them from the
    engine defaults in the configuration.
    """

    title: str
    due: datetime
    hours: float = Field(gt=0)
    course: str | None = None
    type: str = "assignment"
    complexity: int | None = Field(default=None, ge=MIN_COMPLEXITY, le=MAX_COMPLEXITY)
    buffer: float | None = Field(default=None, ge=0)
    status: TaskStatus = TaskStatus.NOT_STARTED

    @field_validator("due", mode="before")
    @classmethod
    def date_means_end_of_day(cls, v: Any) -> Any:
        return _as_datetime(v, END_OF_DAY)


class EventSchema(BaseModel):
    """Schema for a fixed event entry."""

    title: str
    start: datetime
    end: datetime
    type: EventType = EventType.OTHER
    course: str | None = None
    location: str | None = None

    @model_validator(mode="after")
    def validate_order(self) -> EventSchema:
        """Ensure the event starts before it ends."""
        if self.start >= self.end:
            raise ValueError(f"event start ({self.start}) must be before end ({self.end})")
        return self


class BlockSchema(BaseModel):
    """Schema for a saved time block entry."""

    task: str
    start: datetime
    end: datetime
    origin: BlockOrigin = BlockOrigin.MANUAL

    @model_validator(mode="after")
    def validate_order(self) -> BlockSchema:
        """Ensure the block starts before it ends."""
        if self.start >= self.end:
            raise ValueError(f"block start ({self.start}) must be before end ({self.end})")
        return self


class ScheduleFileSchema(BaseModel):
    """Schema for the entire schedule YAML file. Every section maps id -> entry."""

    courses: dict[str, CourseSchema] = Field(default_factory=dict)
    tasks: dict[str, TaskSchema] = Field(default_factory=dict)
    events: dict[str, EventSchema] = Field(default_factory=dict)
    blocks: dict[str, BlockSchema] = Field(default_factory=dict)

    @field_validator("courses", "tasks", "events", "blocks", mode="before")
    @classmethod
    def empty_section(cls, v: Any) -> Any:
        """An empty YAML section (``tasks:``) loads as None."""
        return {} if v is None else v


class BlockFileSchema(BaseModel):
    """Schema for a saved block file."""

    version: int
    blocks: dict[str, BlockSchema] = Field(default_factory=dict)

    @field_validator("blocks", mode="before")
    @classmethod
    def empty_section(cls, v: Any) -> Any:
        return {} if v is None else v
