"""Task ordering and session chunking."""

from collections.abc import Iterable
from datetime import timedelta

from studyplan.models import Task

from .core import SessionChunk


def priority_key(task: Task) -> tuple[object, ...]:
    """Sort key: earliest due date, then harder, then longer, then by ID."""
    return (task.due_date, -task.complexity, -task.required_hours, task.id)


def prioritize(tasks: Iterable[Task]) -> list[Task]:
    """Order pending tasks for allocation.

    Completed tasks are dropped. Earliest deadlines claim scarce near-term
    time first; within one deadline, harder and longer tasks go first so many
    small tasks cannot starve them. Task ID breaks any remaining tie.
    """
    return sorted((task for task in tasks if not task.is_completed), key=priority_key)


def expand(
    task: Task,
    session: timedelta,
    *,
    already_scheduled: timedelta = timedelta(0),
) -> list[SessionChunk]:
    """Split a task's outstanding time into chunks of at most one session.

    Args:
        task: Task to expand
        session: Maximum chunk length (the session duration)
        already_scheduled: Time the task already holds in manual blocks

    Returns:
        Chunks in placement order; the last one takes the remainder
    """
    if session <= timedelta(0):
        raise ValueError(f"session duration must be positive, got {session}")

    outstanding = task.required_time - already_scheduled
    chunks: list[SessionChunk] = []
    while outstanding > timedelta(0):
        duration = min(session, outstanding)
        chunks.append(SessionChunk(task_id=task.id, index=len(chunks), duration=duration))
        outstanding -= duration
    return chunks
