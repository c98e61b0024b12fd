"""Configuration models and loader for studyplan.

A single configuration file (studyplan_config.yaml) holds the student's
availability preferences, horizon fallbacks and engine switches.
"""

from __future__ import annotations

import re
from datetime import time, timedelta
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from . import context
from .exceptions import ParseError, ValidationError

CONFIG_FILENAME = "studyplan_config.yaml"

_CLOCK_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


class StudyHours(BaseModel):
    """Daily study window, applied to every calendar day."""

    start: str = "09:00"
    end: str = "22:00"

    @field_validator("start", "end", mode="before")
    @classmethod
    def validate_clock(cls, v: Any) -> str:
        """Accept HH:MM strings, datetime.time, or YAML 1.1 sexagesimal ints."""
        if isinstance(v, time):
            return v.strftime("%H:%M")
        # PyYAML reads an unquoted 21:00 as the base-60 integer 1260
        if isinstance(v, int) and not isinstance(v, bool):
            hours, minutes = divmod(v, 60)
            v = f"{hours:02d}:{minutes:02d}"
        value = str(v).strip()
        if not _CLOCK_RE.match(value):
            raise ValueError(f"study hours must be HH:MM, got '{value}'")
        return value

    @model_validator(mode="after")
    def validate_window(self) -> StudyHours:
        """Ensure the window opens before it closes."""
        if self.start_time >= self.end_time:
            raise ValueError(
                f"study hours start ({self.start}) must be before end ({self.end})"
            )
        return self

    @property
    def start_time(self) -> time:
        return time.fromisoformat(self.start)

    @property
    def end_time(self) -> time:
        return time.fromisoformat(self.end)


class Preferences(BaseModel):
    """Availability preferences consumed by the allocation engine."""

    study_hours: StudyHours = StudyHours()
    session_duration: int = Field(default=120, gt=0)  # minutes
    break_duration: int = Field(default=15, ge=0)  # minutes

    @property
    def session(self) -> timedelta:
        return timedelta(minutes=self.session_duration)

    @property
    def gap(self) -> timedelta:
        return timedelta(minutes=self.break_duration)


class HorizonConfig(BaseModel):
    """Fallbacks for horizon resolution when course dates are missing."""

    minimum_days: int = Field(default=21, ge=1)
    fallback_weeks: int = Field(default=16, ge=1)


class EngineConfig(BaseModel):
    """Switches for the rescheduler and defaults for loaded tasks."""

    auto_reschedule: bool = True
    default_buffer_percentage: float = Field(default=20.0, ge=0)
    default_complexity: int = Field(default=3, ge=1, le=5)


class StudyPlanConfig(BaseModel):
    """Complete configuration file contents."""

    preferences: Preferences = Preferences()
    horizon: HorizonConfig = HorizonConfig()
    engine: EngineConfig = EngineConfig()


def load_config(config_path: Path | str) -> StudyPlanConfig:
    """Load configuration from a YAML file.

    Args:
        config_path: Path to studyplan_config.yaml

    Returns:
        Validated StudyPlanConfig (missing sections take their defaults)

    Raises:
        FileNotFoundError: If config file doesn't exist
        ParseError: If the file is not valid YAML or not a mapping
        ValidationError: If a section fails validation
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with config_path.open(encoding="utf-8") as f:
            data: Any = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ParseError(f"Failed to parse config YAML: {e}") from e

    if data is None:
        return StudyPlanConfig()
    if not isinstance(data, dict):
        raise ParseError("Config must contain a dictionary at the root level")

    unknown = set(data) - set(StudyPlanConfig.model_fields)
    if unknown:
        raise ValidationError(f"Unknown config section(s): {', '.join(sorted(unknown))}")

    try:
        return StudyPlanConfig.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid configuration: {e}") from e


def discover_config(
    input_path: Path | None = None, config_path: Path | None = None
) -> StudyPlanConfig:
    """Find and load configuration, falling back to defaults.

    Search order:
    1. Explicit config_path argument
    2. Global context (set via CLI --config)
    3. Input file directory / studyplan_config.yaml
    4. Current directory / studyplan_config.yaml
    """
    if config_path is not None:
        return load_config(config_path)

    ctx_config = context.get_config_path()
    if ctx_config is not None:
        return load_config(ctx_config)

    if input_path is not None:
        dir_config = Path(input_path).parent / CONFIG_FILENAME
        if dir_config.exists():
            return load_config(dir_config)

    cwd_config = Path(CONFIG_FILENAME)
    if cwd_config.exists():
        return load_config(cwd_config)

    return StudyPlanConfig()
