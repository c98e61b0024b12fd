"""Deterministic greedy block allocator."""

from collections.abc import Iterable
from datetime import timedelta

from studyplan.config import Preferences
from studyplan.logger import VERBOSITY_DEBUG, get_logger, verbosity_enabled
from studyplan.models import BlockOrigin, Task, TimeBlock

from .core import AllocationResult, FreeInterval, SessionChunk
from .pool import IntervalPool
from .prioritizer import expand

logger = get_logger()


class BlockAllocator:
    """Greedily assigns session chunks to free intervals in priority order.

    This allocator:
    1. Walks tasks in the order given (see ``prioritize``)
    2. Expands each task into session chunks, net of its manual blocks
    3. Puts each chunk at the start of the earliest interval that holds it
       before the task's due date
    4. Stops placing a task's chunks at the first one that does not fit

    Time taken by a task is gone from the shared pool, so a task processed
    later can never displace an earlier (more urgent) one.
    """

    def __init__(
        self,
        tasks: list[Task],
        free_intervals: list[FreeInterval],
        preferences: Preferences,
        *,
        pinned: Iterable[TimeBlock] = (),
    ):
        """Initialize the allocator.

        Args:
            tasks: Tasks in priority order
            free_intervals: Free time from the availability resolver
            preferences: Session and break lengths
            pinned: Manual blocks; they count toward their task's required time
        """
        self.tasks = tasks
        self.preferences = preferences
        self.pinned = list(pinned)
        self.pool = IntervalPool(free_intervals, gap=preferences.gap)

        self._taken_ids = {block.id for block in self.pinned}
        self._pinned_time: dict[str, timedelta] = {}
        for block in self.pinned:
            self._pinned_time[block.task_id] = (
                self._pinned_time.get(block.task_id, timedelta(0)) + block.duration
            )

    def allocate(self) -> AllocationResult:
        """Run the allocation.

        Returns:
            AllocationResult with new auto blocks, leftover free time and
            unplaced chunks per task
        """
        blocks: list[TimeBlock] = []
        unplaced: dict[str, list[SessionChunk]] = {}

        for task in self.tasks:
            chunks = expand(
                task,
                self.preferences.session,
                already_scheduled=self._pinned_time.get(task.id, timedelta(0)),
            )
            if verbosity_enabled(VERBOSITY_DEBUG):
                logger.debug(
                    f"  Task {task.id}: {len(chunks)} chunk(s), due {task.due_date:%Y-%m-%d %H:%M}"
                )

            placed, missing = self._place_task(task, chunks)
            blocks.extend(placed)
            if missing:
                unplaced[task.id] = missing
                logger.checks(
                    f"Task {task.id}: {len(missing)} of {len(chunks)} chunk(s) did not fit "
                    f"before {task.due_date:%Y-%m-%d %H:%M}"
                )

        return AllocationResult(blocks=blocks, remaining=self.pool.remaining(), unplaced=unplaced)

    def _place_task(
        self, task: Task, chunks: list[SessionChunk]
    ) -> tuple[list[TimeBlock], list[SessionChunk]]:
        """Place a task's chunks in order, returning (blocks, unplaced chunks)."""
        placed: list[TimeBlock] = []
        for position, chunk in enumerate(chunks):
            idx = self.pool.find(chunk.duration, task.due_date)
            if idx is None:
                return placed, chunks[position:]

            start, end = self.pool.consume(idx, chunk.duration)
            block = TimeBlock(
                id=self._next_block_id(task.id),
                task_id=task.id,
                start=start,
                end=end,
                origin=BlockOrigin.AUTO,
            )
            placed.append(block)
            logger.changes(
                f"Placed {block.id} for '{task.title}': "
                f"{start:%Y-%m-%d %H:%M}-{end:%H:%M}"
            )
        return placed, []

    def _next_block_id(self, task_id: str) -> str:
        """Deterministic block ID that does not collide with pinned blocks."""
        n = 1
        while f"{task_id}-{n}" in self._taken_ids:
            n += 1
        block_id = f"{task_id}-{n}"
        self._taken_ids.add(block_id)
        return block_id


def allocate(
    ordered_tasks: list[Task],
    free_intervals: list[FreeInterval],
    preferences: Preferences,
    *,
    pinned: Iterable[TimeBlock] = (),
) -> AllocationResult:
    """Allocate session chunks for ``ordered_tasks`` into ``free_intervals``."""
    return BlockAllocator(ordered_tasks, free_intervals, preferences, pinned=pinned).allocate()
