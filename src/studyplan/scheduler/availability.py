"""Availability resolution: free study windows from events and preferences."""

import bisect
from collections.abc import Iterable
from datetime import datetime, timedelta

from studyplan.config import Preferences
from studyplan.exceptions import ValidationError
from studyplan.logger import get_logger
from studyplan.models import Event, Horizon, TimeBlock

from .core import FreeInterval

logger = get_logger()

Period = tuple[datetime, datetime]


def merge_periods(periods: Iterable[Period]) -> list[Period]:
    """Merge overlapping or touching periods into a sorted, non-overlapping list."""
    sorted_periods = sorted(periods, key=lambda x: x[0])
    if not sorted_periods:
        return []

    merged: list[Period] = [sorted_periods[0]]
    for start, end in sorted_periods[1:]:
        last_start, last_end = merged[-1]
        if start <= last_end:
            merged[-1] = (last_start, max(last_end, end))
        else:
            merged.append((start, end))

    return merged


def check_preferences(preferences: Preferences) -> None:
    """Reject preferences that cannot describe any study time.

    Pydantic already validates on construction; this guards instances built
    with ``model_construct`` or mutated afterwards.
    """
    if preferences.study_hours.start_time >= preferences.study_hours.end_time:
        raise ValidationError(
            f"study hours start ({preferences.study_hours.start}) must be before "
            f"end ({preferences.study_hours.end})"
        )
    if preferences.session_duration <= 0:
        raise ValidationError(
            f"session duration must be positive, got {preferences.session_duration}"
        )
    if preferences.break_duration < 0:
        raise ValidationError(
            f"break duration must not be negative, got {preferences.break_duration}"
        )


def busy_periods(
    events: Iterable[Event],
    horizon: Horizon,
    *,
    pinned: Iterable[TimeBlock] = (),
    gap: timedelta = timedelta(0),
) -> list[Period]:
    """Collect the busy time inside the horizon.

    Each busy period is extended by ``gap`` at its end so the next study block
    starts after a break. Pinned blocks are study blocks themselves, so they
    are also extended by ``gap`` at their start.
    """
    raw: list[Period] = [(e.start, e.end + gap) for e in events]
    raw.extend((b.start - gap, b.end + gap) for b in pinned)
    return merge_periods(
        (max(start, horizon.start), min(end, horizon.end + gap))
        for start, end in raw
        if end > horizon.start and start < horizon.end
    )


def resolve_availability(
    events: Iterable[Event],
    preferences: Preferences,
    horizon: Horizon,
    *,
    pinned: Iterable[TimeBlock] = (),
) -> list[FreeInterval]:
    """Compute the free study intervals in chronological order.

    Args:
        events: Fixed events; those outside the horizon are ignored
        preferences: Daily study window and break length
        horizon: Range to resolve over
        pinned: Manual blocks, busy like events plus a break before them

    Returns:
        Non-empty free intervals, sorted by start

    Raises:
        ValidationError: If the study window or horizon is inverted
    """
    check_preferences(preferences)
    if horizon.start >= horizon.end:
        raise ValidationError(f"horizon start {horizon.start} must be before end {horizon.end}")

    busy = busy_periods(events, horizon, pinned=pinned, gap=preferences.gap)
    window_open = preferences.study_hours.start_time
    window_close = preferences.study_hours.end_time

    free: list[FreeInterval] = []
    day = horizon.start.date()
    while day <= horizon.end.date():
        day_start = max(datetime.combine(day, window_open), horizon.start)
        day_end = min(datetime.combine(day, window_close), horizon.end)
        day += timedelta(days=1)
        if day_start >= day_end:
            continue

        cursor = day_start
        # First busy period that ends after the window opens
        idx = bisect.bisect_right(busy, cursor, key=lambda p: p[1])
        while idx < len(busy) and busy[idx][0] < day_end:
            busy_start, busy_end = busy[idx]
            if busy_start > cursor:
                free.append(FreeInterval(cursor, busy_start))
            cursor = max(cursor, busy_end)
            idx += 1
        if cursor < day_end:
            free.append(FreeInterval(cursor, day_end))

    logger.checks(
        f"Resolved {len(free)} free interval(s) from {len(busy)} busy period(s) "
        f"between {horizon.start:%Y-%m-%d} and {horizon.end:%Y-%m-%d}"
    )
    return free
