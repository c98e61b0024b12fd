"""Shared pool of free intervals consumed by the allocator."""

import bisect
from datetime import date, datetime, timedelta

from studyplan.logger import get_logger

from .core import FreeInterval

logger = get_logger()


class IntervalPool:
    """Free time held as an arena of immutable interval records.

    Consuming time replaces the record at its index with a shorter one, so
    the arena stays sorted by start and never changes length. Each day keeps
    a cursor to its first interval that still has time left, and a global
    cursor skips days that are fully used. This keeps the search for the
    earliest fitting interval close to O(log n) for the due-date bound plus
    the live intervals actually inspected.
    """

    def __init__(self, intervals: list[FreeInterval], gap: timedelta = timedelta(0)) -> None:
        """Initialize the pool.

        Args:
            intervals: Free intervals (any order); empty ones are dropped
            gap: Break enforced after every placement before the next one
        """
        self._arena: list[FreeInterval] = sorted(
            (iv for iv in intervals if not iv.is_empty()), key=lambda iv: iv.start
        )
        self.gap = gap

        self._days: list[date] = []
        self._day_bounds: dict[date, tuple[int, int]] = {}
        for idx, interval in enumerate(self._arena):
            day = interval.day
            if day in self._day_bounds:
                lo, _ = self._day_bounds[day]
                self._day_bounds[day] = (lo, idx + 1)
            else:
                self._days.append(day)
                self._day_bounds[day] = (idx, idx + 1)

        self._day_cursor: dict[date, int] = {day: lo for day, (lo, _) in self._day_bounds.items()}
        self._first_day = 0

    def __len__(self) -> int:
        return sum(1 for iv in self._arena if not iv.is_empty())

    def find(self, duration: timedelta, deadline: datetime) -> int | None:
        """Find the earliest interval that can hold ``duration`` ending by ``deadline``.

        Returns:
            Arena index of the interval, or None if nothing qualifies
        """
        last_day = bisect.bisect_right(self._days, deadline.date())

        for day_pos in range(self._first_day, last_day):
            day = self._days[day_pos]
            _, hi = self._day_bounds[day]
            for idx in range(self._day_cursor[day], hi):
                interval = self._arena[idx]
                if interval.start > deadline:
                    return None
                if interval.is_empty():
                    continue
                usable_end = min(interval.end, deadline)
                if usable_end - interval.start >= duration:
                    return idx
                logger.debug(
                    f"    {interval.start:%Y-%m-%d %H:%M}-{interval.end:%H:%M} too short "
                    f"for {duration} before {deadline:%Y-%m-%d %H:%M}"
                )
        return None

    def consume(self, idx: int, duration: timedelta) -> tuple[datetime, datetime]:
        """Take ``duration`` from the start of interval ``idx``.

        The interval shrinks by the placed time plus the break.

        Returns:
            (start, end) of the placed time
        """
        interval = self._arena[idx]
        start = interval.start
        end = start + duration
        if end > interval.end:
            raise ValueError(f"Cannot take {duration} from interval {interval}")

        self._arena[idx] = FreeInterval(min(end + self.gap, interval.end), interval.end)
        self._advance(interval.day)
        return start, end

    def _advance(self, day: date) -> None:
        """Move the day cursor, and then the day cursor list, past used intervals."""
        _, hi = self._day_bounds[day]
        cursor = self._day_cursor[day]
        while cursor < hi and self._arena[cursor].is_empty():
            cursor += 1
        self._day_cursor[day] = cursor

        while self._first_day < len(self._days):
            first = self._days[self._first_day]
            if self._day_cursor[first] < self._day_bounds[first][1]:
                break
            self._first_day += 1

    def remaining(self) -> list[FreeInterval]:
        """Free intervals that still have time left, in chronological order."""
        return [iv for iv in self._arena if not iv.is_empty()]
