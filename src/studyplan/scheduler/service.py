"""High-level scheduling service: one full allocation pass."""

from collections.abc import Iterable
from datetime import timedelta

from studyplan.config import Preferences
from studyplan.exceptions import ScheduleConflictError
from studyplan.logger import get_logger
from studyplan.models import Event, Horizon, Task, TimeBlock

from .allocator import BlockAllocator
from .availability import resolve_availability
from .conflicts import validate
from .core import ScheduleResult, hours
from .prioritizer import prioritize
from .reporting import report
from .validator import ScheduleInputValidator

logger = get_logger()


class SchedulingService:
    """Runs the full pipeline over one set of inputs.

    This service coordinates:
    - ScheduleInputValidator (fatal input errors)
    - resolve_availability (free study time)
    - prioritize / BlockAllocator (greedy placement)
    - validate (no-overlap invariant on the new blocks)
    - report (unscheduled-task warnings)

    It holds no state between calls; the same inputs always give the same
    result.
    """

    def __init__(  # noqa: PLR0913 - mirrors generate_schedule
        self,
        tasks: Iterable[Task],
        events: Iterable[Event],
        preferences: Preferences,
        horizon: Horizon,
        *,
        pinned: Iterable[TimeBlock] = (),
    ):
        """Initialize the service.

        Args:
            tasks: All tasks; completed ones are not allocated
            events: Fixed events
            preferences: Study window, session and break lengths
            horizon: Range to schedule over
            pinned: Blocks held fixed (manual blocks and kept history)
        """
        self.tasks = list(tasks)
        self.events = list(events)
        self.preferences = preferences
        self.horizon = horizon
        self.pinned = list(pinned)
        self.validator = ScheduleInputValidator()

    def schedule(self) -> ScheduleResult:
        """Run validation, availability, allocation, conflict check and reporting.

        Returns:
            ScheduleResult with pinned plus new blocks (sorted by start) and warnings

        Raises:
            ValidationError: If inputs or preferences are malformed
            ScheduleConflictError: If a new block overlaps anything
        """
        self.validator.validate(self.tasks, self.events, self.pinned)

        free = resolve_availability(
            self.events, self.preferences, self.horizon, pinned=self.pinned
        )
        ordered = prioritize(self.tasks)
        allocation = BlockAllocator(ordered, free, self.preferences, pinned=self.pinned).allocate()

        blocks = sorted([*self.pinned, *allocation.blocks], key=lambda b: (b.start, b.id))
        new_ids = {b.id for b in allocation.blocks}
        conflicts = validate(blocks, self.events)
        fatal = [c for c in conflicts if c.block_id in new_ids or c.other_id in new_ids]
        for conflict in conflicts:
            if conflict not in fatal:
                logger.warning(
                    f"Pinned block '{conflict.block_id}' overlaps '{conflict.other_id}'"
                )
        if fatal:
            raise ScheduleConflictError(
                f"Allocation produced {len(fatal)} overlapping block(s)",
                [(c.block_id, c.other_id) for c in fatal],
            )

        warnings = report(allocation.unplaced)
        if warnings:
            logger.changes(warnings.message)

        remaining = sum((iv.length for iv in allocation.remaining), timedelta(0))
        return ScheduleResult(
            blocks=blocks,
            warnings=warnings,
            metadata={
                "tasks_considered": len(ordered),
                "free_intervals": len(free),
                "blocks_placed": len(allocation.blocks),
                "free_hours_left": hours(remaining),
            },
        )


def generate_schedule(
    tasks: Iterable[Task],
    events: Iterable[Event],
    preferences: Preferences,
    horizon: Horizon,
    *,
    pinned: Iterable[TimeBlock] = (),
) -> ScheduleResult:
    """Full recompute entry point."""
    return SchedulingService(tasks, events, preferences, horizon, pinned=pinned).schedule()
