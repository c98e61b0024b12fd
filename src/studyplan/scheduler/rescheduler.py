"""Rescheduler: the state container that keeps blocks valid as inputs change.

All mutation goes through the command methods below. Each accepted command
bumps the input revision and, when auto-rescheduling is on, triggers a pass.
A pass runs to completion before the next one starts; triggers that arrive
while a pass is running (for example from a subscriber reacting to a commit)
are coalesced into one follow-up pass over the latest inputs.
"""

from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

from studyplan.config import Preferences
from studyplan.exceptions import MissingReferenceError, ValidationError
from studyplan.logger import get_logger
from studyplan.models import BlockOrigin, Event, Horizon, Task, TaskStatus, TimeBlock

from . import service
from .availability import check_preferences
from .conflicts import check_interval, check_move
from .core import MoveResult, ScheduleWarnings
from .validator import ScheduleInputValidator

logger = get_logger()


class PassState(str, Enum):
    """Whether a pass is currently computing."""

    IDLE = "idle"
    RUNNING = "running"


@dataclass(frozen=True)
class ScheduleSnapshot:
    """Committed blocks and warnings, replaced as a whole on every commit."""

    blocks: tuple[TimeBlock, ...]
    warnings: ScheduleWarnings
    revision: int  # Input revision the blocks were last brought up to


Listener = Callable[[ScheduleSnapshot], None]


class Rescheduler:
    """Command/query API over tasks, events, preferences and committed blocks."""

    def __init__(  # noqa: PLR0913 - initial state for every input
        self,
        preferences: Preferences,
        horizon: Horizon,
        *,
        tasks: Iterable[Task] = (),
        events: Iterable[Event] = (),
        blocks: Iterable[TimeBlock] = (),
        auto_reschedule: bool = True,
    ):
        """Initialize with existing state. No pass runs until triggered.

        Args:
            preferences: Availability preferences
            horizon: Range to schedule over
            tasks: Current tasks
            events: Current fixed events
            blocks: Previously committed blocks (manual ones stay pinned)
            auto_reschedule: Run a pass after every accepted command
        """
        check_preferences(preferences)
        self.validator = ScheduleInputValidator()
        task_list, event_list, block_list = list(tasks), list(events), list(blocks)
        self.validator.validate(task_list, event_list, block_list)

        self._preferences = preferences
        self._horizon = horizon
        self._tasks: dict[str, Task] = {t.id: t for t in task_list}
        self._events: dict[str, Event] = {e.id: e for e in event_list}
        self._snapshot = ScheduleSnapshot(
            blocks=_ordered(block_list), warnings=ScheduleWarnings(), revision=0
        )
        self.auto_reschedule = auto_reschedule

        self._revision = 0
        self._state = PassState.IDLE
        self._pending = False
        self._batch_depth = 0
        self._deferred = False
        self._listeners: list[Listener] = []
        self.passes_run = 0

    # Queries

    @property
    def state(self) -> PassState:
        return self._state

    @property
    def snapshot(self) -> ScheduleSnapshot:
        return self._snapshot

    @property
    def blocks(self) -> list[TimeBlock]:
        return list(self._snapshot.blocks)

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks.values())

    @property
    def events(self) -> list[Event]:
        return list(self._events.values())

    @property
    def preferences(self) -> Preferences:
        return self._preferences

    @property
    def horizon(self) -> Horizon:
        return self._horizon

    def get_warnings(self) -> ScheduleWarnings:
        """Current unscheduled-task report."""
        return self._snapshot.warnings

    def blocks_for_task(self, task_id: str) -> list[TimeBlock]:
        return [b for b in self._snapshot.blocks if b.task_id == task_id]

    # Subscriptions

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with each committed snapshot.

        Returns:
            A function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # Task commands

    def add_task(self, task: Task) -> None:
        if task.id in self._tasks:
            raise ValidationError(f"Duplicate task id '{task.id}'")
        self.validator.check_task(task)
        self._tasks[task.id] = task
        self._changed(f"task '{task.id}' added")

    def update_task(self, task: Task) -> None:
        self._require_task(task.id)
        self.validator.check_task(task)
        self._tasks[task.id] = task
        self._changed(f"task '{task.id}' edited")

    def complete_task(self, task_id: str) -> None:
        task = self._require_task(task_id)
        self._tasks[task_id] = replace(task, status=TaskStatus.COMPLETED)
        self._changed(f"task '{task_id}' completed")

    def remove_task(self, task_id: str) -> None:
        """Delete a task together with all of its blocks."""
        self._require_task(task_id)
        del self._tasks[task_id]
        self._set_blocks(b for b in self._snapshot.blocks if b.task_id != task_id)
        self._changed(f"task '{task_id}' deleted")

    # Event commands

    def add_event(self, event: Event) -> None:
        if event.id in self._events:
            raise ValidationError(f"Duplicate event id '{event.id}'")
        self.validator.check_event(event)
        self._events[event.id] = event
        self._changed(f"event '{event.id}' added")

    def update_event(self, event: Event) -> None:
        if event.id not in self._events:
            raise MissingReferenceError(f"Unknown event '{event.id}'")
        self.validator.check_event(event)
        self._events[event.id] = event
        self._changed(f"event '{event.id}' edited")

    def remove_event(self, event_id: str) -> None:
        if event_id not in self._events:
            raise MissingReferenceError(f"Unknown event '{event_id}'")
        del self._events[event_id]
        self._changed(f"event '{event_id}' deleted")

    # Preference and horizon commands

    def set_preferences(self, preferences: Preferences) -> None:
        check_preferences(preferences)
        self._preferences = preferences
        self._changed("preferences changed")

    def set_horizon(self, horizon: Horizon) -> None:
        if horizon.start >= horizon.end:
            raise ValidationError(
                f"horizon start {horizon.start} must be before end {horizon.end}"
            )
        self._horizon = horizon
        self._changed("horizon changed")

    # Block commands

    def add_block(self, block: TimeBlock) -> MoveResult:
        """Pin a new manual block unless it overlaps a block or an event.

        Raises:
            ValidationError: If the block ID is taken or the block ends before it starts
            MissingReferenceError: If the block's task is unknown
        """
        if any(b.id == block.id for b in self._snapshot.blocks):
            raise ValidationError(f"Duplicate time block id '{block.id}'")
        self.validator.check_block(block, set(self._tasks))

        current = self._snapshot.blocks
        conflicts = check_interval(block.start, block.end, current, self._events.values())
        if conflicts:
            return MoveResult(ok=False, conflicts=conflicts)

        pinned = replace(block, origin=BlockOrigin.MANUAL)
        self._set_blocks([*current, pinned])
        logger.changes(
            f"Pinned {block.id} at {block.start:%Y-%m-%d %H:%M}-{block.end:%H:%M}"
        )
        self._changed(f"block '{block.id}' added")
        return MoveResult(ok=True, block=pinned)

    def move_block(self, block_id: str, new_start: datetime) -> MoveResult:
        """Move a block to ``new_start``, keeping its duration and pinning it.

        The block's new interval is checked against every other block and
        every event. On conflict nothing changes and the conflicting IDs are
        returned.

        Raises:
            MissingReferenceError: If no committed block has ``block_id``
        """
        current = self._snapshot.blocks
        conflicts = check_move(block_id, new_start, current, self._events.values())
        if conflicts:
            return MoveResult(ok=False, conflicts=conflicts)

        moved = self._require_block(block_id).moved_to(new_start)
        self._set_blocks(moved if b.id == block_id else b for b in current)
        logger.changes(f"Pinned {block_id} at {new_start:%Y-%m-%d %H:%M}")
        self._changed(f"block '{block_id}' moved")
        return MoveResult(ok=True, block=moved)

    def resize_block(self, block_id: str, new_end: datetime) -> MoveResult:
        """Change where a block ends, keeping its start and pinning it.

        Checked the same way as a move; on conflict nothing changes.

        Raises:
            MissingReferenceError: If no committed block has ``block_id``
            ValidationError: If ``new_end`` is not after the block's start
        """
        block = self._require_block(block_id)
        if new_end <= block.start:
            raise ValidationError(
                f"Time block '{block_id}' must end after it starts "
                f"({new_end} <= {block.start})"
            )

        current = self._snapshot.blocks
        conflicts = check_interval(
            block.start, new_end, current, self._events.values(), ignore=block_id
        )
        logger.checks(
            f"Resize of {block_id} to end {new_end:%Y-%m-%d %H:%M}: "
            f"{'conflicts with ' + ', '.join(conflicts) if conflicts else 'clear'}"
        )
        if conflicts:
            return MoveResult(ok=False, conflicts=conflicts)

        resized = block.resized_to(new_end)
        self._set_blocks(resized if b.id == block_id else b for b in current)
        logger.changes(f"Pinned {block_id} until {new_end:%Y-%m-%d %H:%M}")
        self._changed(f"block '{block_id}' resized")
        return MoveResult(ok=True, block=resized)

    def unpin_block(self, block_id: str) -> None:
        """Hand a manual block back to the allocator; the next pass may move it."""
        block = self._require_block(block_id)
        if not block.is_manual:
            return
        unpinned = replace(block, origin=BlockOrigin.AUTO)
        self._set_blocks(unpinned if b.id == block_id else b for b in self._snapshot.blocks)
        self._changed(f"block '{block_id}' unpinned")

    def remove_block(self, block_id: str) -> None:
        """Delete a block. Its task gets the time back on the next pass."""
        self._require_block(block_id)
        self._set_blocks(b for b in self._snapshot.blocks if b.id != block_id)
        self._changed(f"block '{block_id}' deleted")

    # Passes

    @contextmanager
    def batch(self) -> Iterator[None]:
        """Defer triggers from several commands into a single pass at exit."""
        self._batch_depth += 1
        try:
            yield
        finally:
            self._batch_depth -= 1
        if self._batch_depth == 0 and self._deferred:
            self._deferred = False
            self.trigger("batch finished")

    def reschedule(self) -> ScheduleSnapshot:
        """Run a pass now, regardless of the auto-reschedule setting."""
        self.trigger("reschedule requested")
        return self._snapshot

    def trigger(self, reason: str) -> None:
        """Request a pass; coalesced if one is already running."""
        if self._state == PassState.RUNNING:
            if not self._pending:
                logger.checks(f"Pass running; coalescing trigger: {reason}")
            self._pending = True
            return

        logger.checks(f"Pass triggered: {reason}")
        self._pending = True
        try:
            while self._pending:
                self._pending = False
                self._state = PassState.RUNNING
                self._run_pass()
        finally:
            self._state = PassState.IDLE
            self._pending = False

    def _run_pass(self) -> None:
        revision = self._revision
        fixed = [
            b
            for b in self._snapshot.blocks
            if b.is_manual or self._tasks[b.task_id].is_completed
        ]
        result = service.generate_schedule(
            list(self._tasks.values()),
            list(self._events.values()),
            self._preferences,
            self._horizon,
            pinned=fixed,
        )

        if self._revision != revision:
            logger.checks("Inputs changed during pass; discarding result and restarting")
            self._pending = True
            return

        snapshot = ScheduleSnapshot(
            blocks=_ordered(result.blocks), warnings=result.warnings, revision=revision
        )
        self._snapshot = snapshot
        self.passes_run += 1
        logger.changes(
            f"Committed {len(snapshot.blocks)} block(s), "
            f"{len(snapshot.warnings.unscheduled_task_ids)} warning(s)"
        )
        for listener in list(self._listeners):
            listener(snapshot)

    def _changed(self, reason: str) -> None:
        self._revision += 1
        if not self.auto_reschedule:
            return
        if self._batch_depth > 0:
            self._deferred = True
            return
        self.trigger(reason)

    def _require_task(self, task_id: str) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise MissingReferenceError(f"Unknown task '{task_id}'")
        return task

    def _require_block(self, block_id: str) -> TimeBlock:
        block = next((b for b in self._snapshot.blocks if b.id == block_id), None)
        if block is None:
            raise MissingReferenceError(f"Unknown time block '{block_id}'")
        return block

    def _set_blocks(self, blocks: Iterable[TimeBlock]) -> None:
        self._snapshot = replace(self._snapshot, blocks=_ordered(blocks))


def _ordered(blocks: Iterable[TimeBlock]) -> tuple[TimeBlock, ...]:
    return tuple(sorted(blocks, key=lambda b: (b.start, b.id)))
