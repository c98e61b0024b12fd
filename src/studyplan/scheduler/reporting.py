"""Warning report for tasks that could not be fully scheduled."""

from datetime import timedelta

from .core import ScheduleWarnings, SessionChunk, WarningDetail, hours


def report(unplaced_by_task: dict[str, list[SessionChunk]]) -> ScheduleWarnings:
    """Summarize unplaced chunks per task."""
    details: list[WarningDetail] = []
    for task_id in sorted(unplaced_by_task):
        missing = sum((c.duration for c in unplaced_by_task[task_id]), timedelta(0))
        if missing > timedelta(0):
            details.append(WarningDetail(task_id=task_id, missing_hours=hours(missing)))

    count = len(details)
    if count == 0:
        message = ""
    elif count == 1:
        message = "1 task could not be fully scheduled before its due date"
    else:
        message = f"{count} tasks could not be fully scheduled before their due dates"

    return ScheduleWarnings(
        unscheduled_task_ids={d.task_id for d in details},
        message=message,
        details=details,
    )
