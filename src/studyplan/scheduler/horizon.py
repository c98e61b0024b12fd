"""Scheduling horizon resolution from course and task dates."""

from collections.abc import Iterable
from datetime import datetime, time, timedelta

from studyplan.config import HorizonConfig
from studyplan.models import Course, Horizon, Task


def _ceil_to_minute(moment: datetime) -> datetime:
    truncated = moment.replace(second=0, microsecond=0)
    return truncated if truncated == moment else truncated + timedelta(minutes=1)


def get_horizon(
    courses: Iterable[Course],
    tasks: Iterable[Task],
    now: datetime,
    config: HorizonConfig | None = None,
) -> Horizon:
    """Compute the range over which scheduling is attempted.

    The end is the later of the last course end date and the last pending due
    date. Without any known date it falls back to ``fallback_weeks`` from now.
    Either way it is never earlier than ``minimum_days`` after the start of
    today.

    Args:
        courses: Courses with optional end dates
        tasks: Tasks; completed ones are ignored
        now: Current moment, the horizon start (rounded up to the minute)
        config: Fallback settings (defaults: 16 weeks, 21 days)

    Returns:
        Horizon from now to the resolved end
    """
    config = config or HorizonConfig()
    start = _ceil_to_minute(now)

    candidates: list[datetime] = [
        datetime.combine(c.end_date, time.max) for c in courses if c.end_date is not None
    ]
    candidates.extend(t.due_date for t in tasks if not t.is_completed)

    if candidates:
        end = max(candidates)
    else:
        end = start + timedelta(weeks=config.fallback_weeks)

    today = datetime.combine(now.date(), time.min)
    floor = today + timedelta(days=config.minimum_days)
    return Horizon(start=start, end=max(end, floor))
