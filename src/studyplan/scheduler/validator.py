"""Input validation for the allocation engine."""

from collections.abc import Iterable

from studyplan.exceptions import MissingReferenceError, ValidationError
from studyplan.logger import get_logger
from studyplan.models import MAX_COMPLEXITY, MIN_COMPLEXITY, Event, Task, TimeBlock

logger = get_logger()


class ScheduleInputValidator:
    """Rejects malformed tasks, events and pinned blocks before a pass runs.

    Validation failures are fatal for the call: nothing is mutated and the
    caller gets a ValidationError naming the offending record.
    """

    def check_task(self, task: Task) -> None:
        if task.estimated_hours <= 0:
            raise ValidationError(
                f"Task '{task.id}' must have positive estimated hours, got {task.estimated_hours}"
            )
        if not MIN_COMPLEXITY <= task.complexity <= MAX_COMPLEXITY:
            raise ValidationError(
                f"Task '{task.id}' complexity must be {MIN_COMPLEXITY}-{MAX_COMPLEXITY}, "
                f"got {task.complexity}"
            )
        if task.buffer_percentage < 0:
            raise ValidationError(
                f"Task '{task.id}' buffer percentage must not be negative, "
                f"got {task.buffer_percentage}"
            )

    def check_event(self, event: Event) -> None:
        if event.start >= event.end:
            raise ValidationError(
                f"Event '{event.id}' must start before it ends ({event.start} >= {event.end})"
            )

    def check_block(self, block: TimeBlock, task_ids: set[str]) -> None:
        if block.start >= block.end:
            raise ValidationError(
                f"Time block '{block.id}' must start before it ends ({block.start} >= {block.end})"
            )
        if block.task_id not in task_ids:
            raise MissingReferenceError(
                f"Time block '{block.id}' references unknown task '{block.task_id}'"
            )

    def validate(
        self,
        tasks: Iterable[Task],
        events: Iterable[Event],
        blocks: Iterable[TimeBlock] = (),
    ) -> None:
        """Validate a complete input set.

        Raises:
            ValidationError: On malformed records or duplicate IDs
            MissingReferenceError: If a block points at an unknown task
        """
        task_list = list(tasks)
        event_list = list(events)
        block_list = list(blocks)

        for kind, ids in (
            ("task", [t.id for t in task_list]),
            ("event", [e.id for e in event_list]),
            ("time block", [b.id for b in block_list]),
        ):
            seen: set[str] = set()
            for record_id in ids:
                if record_id in seen:
                    raise ValidationError(f"Duplicate {kind} id '{record_id}'")
                seen.add(record_id)

        for task in task_list:
            self.check_task(task)
        for event in event_list:
            self.check_event(event)

        task_ids = {t.id for t in task_list}
        for block in block_list:
            self.check_block(block, task_ids)

        logger.debug(
            f"Validated {len(task_list)} task(s), {len(event_list)} event(s), "
            f"{len(block_list)} pinned block(s)"
        )
