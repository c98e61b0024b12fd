"""Long-press drag-and-drop gesture for moving time blocks.

The gesture is a finite state machine with tagged state records and an
explicit transition table, so the timer and movement-threshold rules can be
driven and tested without a UI:

    idle -> pending (timer armed) -> dragging -> dropped_valid
                                              -> dropped_invalid
                                              -> cancelled

Pending is cancelled when the pointer moves further than the threshold
before the long-press timer fires (that is a scroll, not a drag). A drop
calls the mover (normally ``Rescheduler.move_block``); a rejected drop leaves
the schedule untouched.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import ClassVar

from .exceptions import InvalidTransitionError
from .logger import get_logger
from .models import TimeBlock
from .scheduler.core import MoveResult

logger = get_logger()

DEFAULT_LONG_PRESS_DELAY = 0.5  # seconds
DEFAULT_MOVE_THRESHOLD = 10.0  # pixels along either axis


class DragPhase(str, Enum):
    """Tag of each gesture state."""

    IDLE = "idle"
    PENDING = "pending"
    DRAGGING = "dragging"
    DROPPED_VALID = "dropped_valid"
    DROPPED_INVALID = "dropped_invalid"
    CANCELLED = "cancelled"


TERMINAL_PHASES = frozenset(
    {DragPhase.DROPPED_VALID, DragPhase.DROPPED_INVALID, DragPhase.CANCELLED}
)


@dataclass(frozen=True)
class Point:
    x: float
    y: float


# States


@dataclass(frozen=True)
class Idle:
    phase: ClassVar[DragPhase] = DragPhase.IDLE


@dataclass(frozen=True)
class Pending:
    phase: ClassVar[DragPhase] = DragPhase.PENDING

    block_id: str
    origin: Point
    pressed_at: float  # Monotonic seconds when the pointer went down

    def timer_due_at(self, delay: float) -> float:
        return self.pressed_at + delay


@dataclass(frozen=True)
class Dragging:
    phase: ClassVar[DragPhase] = DragPhase.DRAGGING

    block_id: str
    origin: Point
    position: Point


@dataclass(frozen=True)
class DroppedValid:
    phase: ClassVar[DragPhase] = DragPhase.DROPPED_VALID

    block_id: str
    block: TimeBlock  # The block at its new position


@dataclass(frozen=True)
class DroppedInvalid:
    phase: ClassVar[DragPhase] = DragPhase.DROPPED_INVALID

    block_id: str
    conflicts: tuple[str, ...]


@dataclass(frozen=True)
class Cancelled:
    phase: ClassVar[DragPhase] = DragPhase.CANCELLED

    block_id: str
    reason: str


DragState = Idle | Pending | Dragging | DroppedValid | DroppedInvalid | Cancelled


# Events


@dataclass(frozen=True)
class PointerDown:
    block_id: str
    point: Point
    at: float


@dataclass(frozen=True)
class PointerMove:
    point: Point


@dataclass(frozen=True)
class TimerFired:
    pass


@dataclass(frozen=True)
class Drop:
    new_start: datetime


@dataclass(frozen=True)
class PointerUp:
    pass


@dataclass(frozen=True)
class Cancel:
    pass


@dataclass(frozen=True)
class Reset:
    pass


DragEvent = PointerDown | PointerMove | TimerFired | Drop | PointerUp | Cancel | Reset

Mover = Callable[[str, datetime], MoveResult]


class DragGesture:
    """Drives one block drag at a time through the transition table."""

    def __init__(
        self,
        mover: Mover,
        *,
        long_press_delay: float = DEFAULT_LONG_PRESS_DELAY,
        move_threshold: float = DEFAULT_MOVE_THRESHOLD,
    ):
        """Initialize the gesture.

        Args:
            mover: Called with (block_id, new_start) on drop
            long_press_delay: Seconds the pointer must stay down before dragging
            move_threshold: Movement (px, per axis) that turns a press into a scroll
        """
        self.mover = mover
        self.long_press_delay = long_press_delay
        self.move_threshold = move_threshold
        self.state: DragState = Idle()

        self._table: dict[tuple[DragPhase, type], Callable[[DragState, DragEvent], DragState]] = {
            (DragPhase.IDLE, PointerDown): self._press,
            (DragPhase.PENDING, PointerMove): self._move_pending,
            (DragPhase.PENDING, TimerFired): self._start_drag,
            (DragPhase.PENDING, PointerUp): self._tap,
            (DragPhase.PENDING, Cancel): self._cancel,
            (DragPhase.DRAGGING, PointerMove): self._move_dragging,
            (DragPhase.DRAGGING, Drop): self._drop,
            (DragPhase.DRAGGING, PointerUp): self._release_without_target,
            (DragPhase.DRAGGING, Cancel): self._cancel,
        }
        for phase in TERMINAL_PHASES:
            self._table[(phase, Reset)] = self._reset
            self._table[(phase, PointerDown)] = self._press

    @property
    def phase(self) -> DragPhase:
        return self.state.phase

    def accepts(self, event: DragEvent) -> bool:
        return (self.state.phase, type(event)) in self._table

    def handle(self, event: DragEvent) -> DragState:
        """Apply one event and return the new state.

        Raises:
            InvalidTransitionError: If the current state does not accept the event
        """
        handler = self._table.get((self.state.phase, type(event)))
        if handler is None:
            raise InvalidTransitionError(
                f"{type(event).__name__} is not valid while {self.state.phase.value}"
            )
        previous = self.state.phase
        self.state = handler(self.state, event)
        if self.state.phase != previous:
            logger.debug(f"Drag gesture: {previous.value} -> {self.state.phase.value}")
        return self.state

    # Transition handlers

    def _press(self, state: DragState, event: DragEvent) -> DragState:
        assert isinstance(event, PointerDown)
        return Pending(block_id=event.block_id, origin=event.point, pressed_at=event.at)

    def _move_pending(self, state: DragState, event: DragEvent) -> DragState:
        assert isinstance(state, Pending) and isinstance(event, PointerMove)
        dx = abs(event.point.x - state.origin.x)
        dy = abs(event.point.y - state.origin.y)
        if dx > self.move_threshold or dy > self.move_threshold:
            return Cancelled(block_id=state.block_id, reason="moved before long press (scroll)")
        return state

    def _start_drag(self, state: DragState, event: DragEvent) -> DragState:
        assert isinstance(state, Pending)
        return Dragging(block_id=state.block_id, origin=state.origin, position=state.origin)

    def _tap(self, state: DragState, event: DragEvent) -> DragState:
        assert isinstance(state, Pending)
        return Cancelled(block_id=state.block_id, reason="released before long press")

    def _move_dragging(self, state: DragState, event: DragEvent) -> DragState:
        assert isinstance(state, Dragging) and isinstance(event, PointerMove)
        return Dragging(block_id=state.block_id, origin=state.origin, position=event.point)

    def _drop(self, state: DragState, event: DragEvent) -> DragState:
        assert isinstance(state, Dragging) and isinstance(event, Drop)
        result = self.mover(state.block_id, event.new_start)
        if result.ok and result.block is not None:
            return DroppedValid(block_id=state.block_id, block=result.block)
        return DroppedInvalid(block_id=state.block_id, conflicts=tuple(result.conflicts))

    def _release_without_target(self, state: DragState, event: DragEvent) -> DragState:
        assert isinstance(state, Dragging)
        return Cancelled(block_id=state.block_id, reason="released without a drop target")

    def _cancel(self, state: DragState, event: DragEvent) -> DragState:
        assert isinstance(state, Pending | Dragging)
        return Cancelled(block_id=state.block_id, reason="cancelled")

    def _reset(self, state: DragState, event: DragEvent) -> DragState:
        return Idle()
