"""Turn drag gestures into a single store call."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from . import positions
from .exceptions import CrossBoardMoveError, SyncError, ValidationError
from .models import Card, EntityKind
from .store import EntityStore
from .transitions import DragPhase, validate_transition

logger = logging.getLogger(__name__)


class DropKind(Enum):
    CARD = "card"
    COLUMN = "column"
    COLUMN_CARDS = "column-cards"


@dataclass(frozen=True)
class DropTarget:
    kind: DropKind
    target_id: str


@dataclass
class DragOutcome:
    kind: EntityKind
    entity_id: str
    mutated: bool = False
    column_id: str | None = None
    order: float | None = None
    column_ids: list[str] = field(default_factory=list)
    error: SyncError | None = None


class DragController:
    """idle -> dragging(kind, id) -> idle.

    Drag-end always returns to idle, whether or not the drop did anything.
    A gateway failure is reported on the outcome (the store has already
    reverted); validation errors propagate to the caller.
    """

    def __init__(self, store: EntityStore):
        self.store = store
        self.phase = DragPhase.IDLE
        self.active: tuple[EntityKind, str] | None = None

    @property
    def is_dragging(self) -> bool:
        return self.phase is DragPhase.DRAGGING

    def drag_start(self, kind: EntityKind, entity_id: str) -> None:
        validate_transition(self.phase, DragPhase.DRAGGING)
        if kind is EntityKind.BOARD:
            raise ValidationError("Boards cannot be dragged")
        self.store.get(kind, entity_id)
        self.phase = DragPhase.DRAGGING
        self.active = (kind, entity_id)
        logger.debug("Lifted %s %s", kind.value, entity_id)

    def cancel(self) -> None:
        """Abandon the current drag without touching the store."""
        validate_transition(self.phase, DragPhase.IDLE)
        self.phase = DragPhase.IDLE
        self.active = None

    async def drag_end(
        self, kind: EntityKind, entity_id: str, drop_target: DropTarget | None
    ) -> DragOutcome:
        validate_transition(self.phase, DragPhase.IDLE)
        lifted = self.active
        self.phase = DragPhase.IDLE
        self.active = None
        if lifted != (kind, entity_id):
            raise ValidationError(
                f"Drag ended for {kind.value} {entity_id} but {lifted[0].value} {lifted[1]} was lifted"
            )

        outcome = DragOutcome(kind, entity_id)
        if drop_target is None:
            return outcome
        try:
            if kind is EntityKind.CARD:
                await self._drop_card(entity_id, drop_target, outcome)
            else:
                await self._drop_column(entity_id, drop_target, outcome)
        except SyncError as exc:
            logger.warning("Drop of %s %s was not saved: %s", kind.value, entity_id, exc)
            outcome.error = exc
        return outcome

    # -- Cards --

    async def _drop_card(self, card_id: str, target: DropTarget, outcome: DragOutcome) -> None:
        card = self.store.get_card(card_id)

        if target.kind is DropKind.CARD:
            if target.target_id == card_id:
                return
            over = self.store.get_card(target.target_id)
            column_id = over.column_id
            self._check_same_board(card, column_id)
            if self._sits_right_before(card, over):
                return
            prev_order, next_order = self._neighbours_before(card, over)
            column_orders = [c.order for c in self.store.get_siblings(column_id, EntityKind.CARD)]
            if not positions.has_room(prev_order, next_order) or positions.needs_renumber(column_orders):
                logger.info("Column %s ran out of order precision, renumbering", column_id)
                await self.store.renumber(column_id, EntityKind.CARD)
                prev_order, next_order = self._neighbours_before(card, over)
            order = positions.insert_between(prev_order, next_order)
        else:
            column_id = target.target_id
            self._check_same_board(card, column_id)
            siblings = self.store.get_siblings(column_id, EntityKind.CARD)
            if siblings and siblings[-1].id == card_id:
                return
            order = positions.append_order(c.order for c in siblings if c.id != card_id)

        await self.store.move_card(card_id, column_id, order)
        outcome.mutated = True
        outcome.column_id = column_id
        outcome.order = order

    def _check_same_board(self, card: Card, column_id: str) -> None:
        column = self.store.get_column(column_id)
        if column.board_id != card.board_id:
            raise CrossBoardMoveError(card.id, card.board_id, column.board_id)

    def _sits_right_before(self, card: Card, over: Card) -> bool:
        if card.column_id != over.column_id:
            return False
        ids = [c.id for c in self.store.get_siblings(over.column_id, EntityKind.CARD)]
        return ids.index(card.id) + 1 == ids.index(over.id)

    def _neighbours_before(self, card: Card, over: Card) -> tuple[float | None, float]:
        """Orders of the slot right before ``over`` once ``card`` is lifted out."""
        others = [
            c for c in self.store.get_siblings(over.column_id, EntityKind.CARD)
            if c.id != card.id
        ]
        index = next(i for i, c in enumerate(others) if c.id == over.id)
        prev_order = others[index - 1].order if index > 0 else None
        return prev_order, over.order

    # -- Columns --

    async def _drop_column(self, column_id: str, target: DropTarget, outcome: DragOutcome) -> None:
        column = self.store.get_column(column_id)
        if target.kind is DropKind.CARD:
            over_id = self.store.get_card(target.target_id).column_id
        else:
            over_id = target.target_id
        if over_id == column_id:
            return
        over = self.store.get_column(over_id)
        if over.board_id != column.board_id:
            logger.info("Ignoring drop of column %s onto board %s", column_id, over.board_id)
            return

        current = [c.id for c in self.store.get_siblings(column.board_id, EntityKind.COLUMN)]
        permutation = list(current)
        permutation.pop(current.index(column_id))
        permutation.insert(current.index(over_id), column_id)

        await self.store.reorder_columns(column.board_id, permutation)
        outcome.mutated = True
        outcome.column_ids = permutation
