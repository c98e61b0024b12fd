"""Overlap checks for generated schedules and manual moves."""

from collections.abc import Iterable, Sequence
from datetime import datetime

from studyplan.exceptions import MissingReferenceError
from studyplan.logger import get_logger
from studyplan.models import Event, TimeBlock, overlaps

from .core import Conflict

logger = get_logger()


def validate(blocks: Sequence[TimeBlock], events: Iterable[Event]) -> list[Conflict]:
    """Check that no two blocks overlap and no block overlaps an event.

    Uses a sweep over blocks sorted by start, so each block is only compared
    with the ones that began before it ended.

    Returns:
        Every conflicting pair, empty when the schedule is consistent
    """
    conflicts: list[Conflict] = []

    ordered = sorted(blocks, key=lambda b: (b.start, b.id))
    for i, block in enumerate(ordered):
        for other in ordered[i + 1 :]:
            if other.start >= block.end:
                break
            conflicts.append(Conflict(block_id=block.id, other_id=other.id))

    ordered_events = sorted(events, key=lambda e: (e.start, e.id))
    for block in ordered:
        for event in ordered_events:
            if event.start >= block.end:
                break
            if overlaps(block.start, block.end, event.start, event.end):
                conflicts.append(Conflict(block_id=block.id, other_id=event.id))

    if conflicts:
        logger.checks(f"Found {len(conflicts)} conflict(s) in schedule")
    return conflicts


def check_interval(
    start: datetime,
    end: datetime,
    blocks: Iterable[TimeBlock],
    events: Iterable[Event],
    *,
    ignore: str | None = None,
) -> list[str]:
    """IDs of the blocks and events that ``[start, end)`` would overlap.

    ``ignore`` names a block to leave out, normally the one being changed.
    """
    hits = {b.id for b in blocks if b.id != ignore and overlaps(start, end, b.start, b.end)}
    hits.update(e.id for e in events if overlaps(start, end, e.start, e.end))
    return sorted(hits)


def check_move(
    block_id: str,
    new_start: datetime,
    blocks: Sequence[TimeBlock],
    events: Iterable[Event],
) -> list[str]:
    """Check a single block's new position against everything else.

    The block keeps its duration. Nothing is mutated.

    Returns:
        Sorted IDs of the blocks and events the moved block would overlap

    Raises:
        MissingReferenceError: If no block has ``block_id``
    """
    moving = next((b for b in blocks if b.id == block_id), None)
    if moving is None:
        raise MissingReferenceError(f"Unknown time block '{block_id}'")

    hits = check_interval(
        new_start, new_start + moving.duration, blocks, events, ignore=block_id
    )
    logger.checks(
        f"Move of {block_id} to {new_start:%Y-%m-%d %H:%M}: "
        f"{'conflicts with ' + ', '.join(hits) if hits else 'clear'}"
    )
    return hits
