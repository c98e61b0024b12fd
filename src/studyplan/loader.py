"""Schedule loading with configuration discovery, plus saved block files.

Block files preserve placed blocks between runs, so blocks the student
pinned by moving them stay where they were put on the next pass.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from .config import StudyPlanConfig, discover_config
from .exceptions import MissingReferenceError, ValidationError
from .models import ScheduleInput, TimeBlock
from .parser import ScheduleParser, read_yaml_mapping, to_block
from .schemas import BlockFileSchema

BLOCK_FILE_VERSION = 1


def load_schedule(
    path: Path | str,
    config_path: Path | None = None,
    *,
    config: StudyPlanConfig | None = None,
) -> ScheduleInput:
    """Load and validate a schedule file.

    Args:
        path: Path to the schedule YAML file
        config_path: Optional explicit path to config file
        config: Optional explicit config (overrides discovery)

    Returns:
        ScheduleInput with task defaults taken from the engine config

    Raises:
        ParseError: If the file is missing or not valid YAML
        ValidationError: If an entry fails its schema
        MissingReferenceError: If a task, event or block names an unknown id
    """
    path = Path(path)
    if config is None:
        config = discover_config(path, config_path)

    schedule = ScheduleParser().parse_file(path, config.engine)
    validate_references(schedule)
    return schedule


def validate_references(schedule: ScheduleInput) -> None:
    """Check that course and task references resolve."""
    course_ids = {c.id for c in schedule.courses}
    task_ids = {t.id for t in schedule.tasks}

    for task in schedule.tasks:
        if task.course_id is not None and task.course_id not in course_ids:
            raise MissingReferenceError(
                f"Task '{task.id}' references unknown course '{task.course_id}'"
            )
    for event in schedule.events:
        if event.course_id is not None and event.course_id not in course_ids:
            raise MissingReferenceError(
                f"Event '{event.id}' references unknown course '{event.course_id}'"
            )
    for block in schedule.blocks:
        if block.task_id not in task_ids:
            raise MissingReferenceError(
                f"Time block '{block.id}' references unknown task '{block.task_id}'"
            )


def write_blocks(path: Path, blocks: Iterable[TimeBlock]) -> None:
    """Save blocks to a block file.

    Args:
        path: Path to write the block file
        blocks: Blocks to save, in any order (written sorted by start)
    """
    blocks_data: dict[str, dict[str, Any]] = {}
    for block in sorted(blocks, key=lambda b: (b.start, b.id)):
        blocks_data[block.id] = {
            "task": block.task_id,
            "start": block.start.isoformat(timespec="minutes"),
            "end": block.end.isoformat(timespec="minutes"),
            "origin": block.origin.value,
        }

    output: dict[str, Any] = {
        "version": BLOCK_FILE_VERSION,
        "blocks": blocks_data,
    }

    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(output, f, default_flow_style=False, sort_keys=False)


def read_blocks(path: Path) -> list[TimeBlock]:
    """Load a block file.

    Raises:
        ParseError: If the file is missing or not valid YAML
        ValidationError: If the format or version is invalid
    """
    data = read_yaml_mapping(path, "block file")
    try:
        schema = BlockFileSchema(**data)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid block file: {e}") from e

    if schema.version != BLOCK_FILE_VERSION:
        raise ValidationError(
            f"Unsupported block file version {schema.version}, expected {BLOCK_FILE_VERSION}"
        )
    return [to_block(block_id, entry) for block_id, entry in schema.blocks.items()]
