"""Flat calendar items for exporters and renderers.

Events, study blocks and open deadlines are flattened into one chronological
list so calendar writers (iCal, the CLI table) do not need to know the
engine's model types.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from .models import Event, Task, TimeBlock

STUDY_TYPE = "study"
DEADLINE_TYPE = "deadline"


@dataclass(frozen=True)
class CalendarItem:
    id: str
    title: str
    start: datetime
    end: datetime
    location: str | None
    type: str


def calendar_items(
    blocks: Iterable[TimeBlock],
    events: Iterable[Event],
    tasks: Iterable[Task],
    *,
    include_deadlines: bool = True,
) -> list[CalendarItem]:
    """Flatten blocks, events and deadlines into CalendarItems sorted by start.

    Study blocks take their task's title. Deadlines of completed tasks are
    left out, as are deadlines when ``include_deadlines`` is False.
    """
    task_list = list(tasks)
    titles = {t.id: t.title for t in task_list}
    items = [
        CalendarItem(
            id=e.id,
            title=e.title,
            start=e.start,
            end=e.end,
            location=e.location,
            type=e.type.value,
        )
        for e in events
    ]
    items.extend(
        CalendarItem(
            id=b.id,
            title=f"Study: {titles.get(b.task_id, b.task_id)}",
            start=b.start,
            end=b.end,
            location=None,
            type=STUDY_TYPE,
        )
        for b in blocks
    )
    if include_deadlines:
        items.extend(
            CalendarItem(
                id=f"task-{t.id}",
                title=f"DUE: {t.title}",
                start=t.due_date,
                end=t.due_date,
                location=None,
                type=DEADLINE_TYPE,
            )
            for t in task_list
            if not t.is_completed
        )
    return sorted(items, key=lambda item: (item.start, item.id))
