"""Drag state-machine transitions defined as data."""

from enum import Enum

from .exceptions import InvalidDragError


class DragPhase(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


VALID_TRANSITIONS: frozenset[tuple[DragPhase, DragPhase]] = frozenset(
    {
        (DragPhase.IDLE, DragPhase.DRAGGING),   # lift
        (DragPhase.DRAGGING, DragPhase.IDLE),   # drop or cancel
    }
)


def validate_transition(from_phase: DragPhase, to_phase: DragPhase) -> None:
    """Raise InvalidDragError if the transition is not allowed."""
    if (from_phase, to_phase) not in VALID_TRANSITIONS:
        raise InvalidDragError(from_phase, to_phase)
