"""YAML parser for schedule files."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from .config import EngineConfig
from .exceptions import ParseError, ValidationError
from .models import Course, Event, ScheduleInput, Task, TimeBlock
from .schemas import BlockSchema, ScheduleFileSchema


def read_yaml_mapping(path: Path, what: str) -> dict[str, Any]:
    """Read a YAML file whose root must be a mapping."""
    if not path.exists():
        raise ParseError(f"File not found: {path}")

    try:
        with path.open(encoding="utf-8") as f:
            data: Any = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ParseError(f"Failed to parse {what} YAML: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ParseError(f"{what.capitalize()} must contain a dictionary at the root level")
    return data


def to_block(block_id: str, entry: BlockSchema) -> TimeBlock:
    return TimeBlock(
        id=block_id,
        task_id=entry.task,
        start=entry.start,
        end=entry.end,
        origin=entry.origin,
    )


class ScheduleParser:
    """Parser for schedule YAML files.

    This parser only handles YAML parsing and record creation. For loading
    with configuration discovery and reference checks, use load_schedule()
    from studyplan.loader.
    """

    def parse_file(
        self, file_path: Path | str, engine: EngineConfig | None = None
    ) -> ScheduleInput:
        """Parse a YAML file into a ScheduleInput."""
        data = read_yaml_mapping(Path(file_path), "schedule")
        return self._parse_data(data, engine)

    def _parse_data(
        self, data: dict[str, Any], engine: EngineConfig | None = None
    ) -> ScheduleInput:
        try:
            schema = ScheduleFileSchema(**data)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid schedule structure: {e}") from e

        engine = engine or EngineConfig()
        default_complexity = engine.default_complexity
        default_buffer = engine.default_buffer_percentage

        courses = [
            Course(id=course_id, name=c.name, code=c.code, end_date=c.end_date)
            for course_id, c in schema.courses.items()
        ]
        tasks = [
            Task(
                id=task_id,
                title=t.title,
                due_date=t.due,
                estimated_hours=t.hours,
                course_id=t.course,
                type=t.type,
                complexity=default_complexity if t.complexity is None else t.complexity,
                buffer_percentage=default_buffer if t.buffer is None else t.buffer,
                status=t.status,
            )
            for task_id, t in schema.tasks.items()
        ]
        events = [
            Event(
                id=event_id,
                title=e.title,
                start=e.start,
                end=e.end,
                type=e.type,
                course_id=e.course,
                location=e.location,
            )
            for event_id, e in schema.events.items()
        ]
        blocks = [to_block(block_id, b) for block_id, b in schema.blocks.items()]

        return ScheduleInput(courses=courses, tasks=tasks, events=events, blocks=blocks)
