"""Pytest configuration and fixtures for studyplan tests."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime
from typing import Any

import pytest

from studyplan import context
from studyplan.config import Preferences, StudyHours
from studyplan.logger import reset_logger
from studyplan.models import BlockOrigin, Event, EventType, Horizon, Task, TimeBlock


def dt(day: int = 1, hour: int = 0, minute: int = 0, month: int = 9) -> datetime:
    """Build a datetime in September 2025 (or ``month``) without the boilerplate."""
    return datetime(2025, month, day, hour, minute)


def make_task(task_id: str, due: datetime, hours: float, **kwargs: Any) -> Task:
    """Create a Task with sensible defaults for tests."""
    return Task(
        id=task_id,
        title=kwargs.pop("title", task_id.replace("-", " ").title()),
        due_date=due,
        estimated_hours=hours,
        **kwargs,
    )


def make_event(
    event_id: str, start: datetime, end: datetime, event_type: EventType = EventType.LECTURE
) -> Event:
    """Create a fixed Event."""
    return Event(id=event_id, title=event_id, start=start, end=end, type=event_type)


def make_block(
    block_id: str,
    task_id: str,
    start: datetime,
    end: datetime,
    origin: BlockOrigin = BlockOrigin.MANUAL,
) -> TimeBlock:
    """Create a TimeBlock (manual unless stated otherwise)."""
    return TimeBlock(id=block_id, task_id=task_id, start=start, end=end, origin=origin)


def make_prefs(
    start: str = "09:00", end: str = "21:00", session: int = 60, gap: int = 15
) -> Preferences:
    """Preferences for the reference scenario unless overridden."""
    return Preferences(
        study_hours=StudyHours(start=start, end=end),
        session_duration=session,
        break_duration=gap,
    )


def one_day(day: int = 1) -> Horizon:
    """Horizon covering a single calendar day."""
    return Horizon(start=dt(day, 0, 0), end=dt(day, 23, 59))


@pytest.fixture
def prefs() -> Preferences:
    """09:00-21:00 window, 60 minute sessions, 15 minute breaks."""
    return make_prefs()


@pytest.fixture
def week() -> Horizon:
    """Horizon from Monday 2025-09-01 to the end of Sunday 2025-09-07."""
    return Horizon(start=dt(1, 0, 0), end=dt(7, 23, 59))


@pytest.fixture(autouse=True)
def clean_global_state() -> Iterator[None]:
    """Reset the logger and the CLI config path around each test."""
    reset_logger()
    context.set_config_path(None)
    yield
    reset_logger()
    context.set_config_path(None)
