"""In-memory board state with optimistic, gateway-mirrored mutations."""

from __future__ import annotations

import logging
import math
from datetime import date
from typing import Any, Iterable

from . import positions
from .commands import Mutation
from .exceptions import (
    CrossBoardMoveError,
    EntityNotFoundError,
    InvalidPermutationError,
    SyncError,
    ValidationError,
)
from .interface import SyncGateway
from .models import (
    PARENT_FIELD,
    Board,
    BoardState,
    Card,
    Column,
    Entity,
    EntityKind,
    sort_key,
)

logger = logging.getLogger(__name__)

CARD_EDITABLE_FIELDS = frozenset({"title", "description", "labels", "due_date", "is_archived"})


class EntityStore:
    """Authoritative in-memory boards, columns and cards for one owner.

    Reads are synchronous. Mutations validate, change memory before their first
    ``await`` and then mirror the change to the gateway; a ``SyncError`` from
    the gateway reverts the change and is re-raised. Creation waits for the
    gateway because the gateway assigns ids.
    """

    def __init__(self, gateway: SyncGateway, state: BoardState | None = None, owner_id: str = "local"):
        self.gateway = gateway
        self.state = state if state is not None else BoardState(owner_id=owner_id)

    @property
    def owner_id(self) -> str:
        return self.state.owner_id

    # -- Loading --

    async def load(self, owner_id: str | None = None) -> BoardState:
        """Replace memory with the gateway's boards, columns and cards."""
        owner = owner_id or self.state.owner_id
        boards = await self.gateway.list_children(owner, EntityKind.BOARD)
        columns: list[Column] = []
        cards: list[Card] = []
        for board in boards:
            board_columns = await self.gateway.list_children(board.id, EntityKind.COLUMN)
            columns.extend(board_columns)
            for column in board_columns:
                cards.extend(await self.gateway.list_children(column.id, EntityKind.CARD))

        self.state.owner_id = owner
        self.state.clear()
        self.state.boards.update((b.id, b) for b in boards)
        self.state.columns.update((c.id, c) for c in columns)
        self.state.cards.update((c.id, c) for c in cards)
        logger.info(
            "Loaded %d boards, %d columns, %d cards for %s",
            len(boards), len(columns), len(cards), owner,
        )
        return self.state

    async def refresh(self) -> BoardState:
        return await self.load(self.state.owner_id)

    # -- Queries --

    def get(self, kind: EntityKind, entity_id: str) -> Entity:
        entity = self.state.collection(kind).get(entity_id)
        if entity is None:
            raise EntityNotFoundError(kind, entity_id)
        return entity

    def get_board(self, board_id: str) -> Board:
        return self.get(EntityKind.BOARD, board_id)

    def get_column(self, column_id: str) -> Column:
        return self.get(EntityKind.COLUMN, column_id)

    def get_card(self, card_id: str) -> Card:
        return self.get(EntityKind.CARD, card_id)

    def get_siblings(self, parent_id: str, kind: EntityKind) -> list[Entity]:
        """Children of ``parent_id`` of the given kind, sorted by (order, id)."""
        parent_field = PARENT_FIELD[kind]
        children = [
            e for e in self.state.collection(kind).values()
            if getattr(e, parent_field) == parent_id
        ]
        return sorted(children, key=sort_key)

    def active_boards(self) -> list[Board]:
        return [b for b in self.get_siblings(self.state.owner_id, EntityKind.BOARD) if not b.is_archived]

    def visible_cards(self, column_id: str) -> list[Card]:
        return [c for c in self.get_siblings(column_id, EntityKind.CARD) if not c.is_archived]

    def _parent_kind(self, kind: EntityKind) -> EntityKind | None:
        if kind is EntityKind.COLUMN:
            return EntityKind.BOARD
        if kind is EntityKind.CARD:
            return EntityKind.COLUMN
        return None

    def _next_order(self, parent_id: str, kind: EntityKind) -> float:
        return positions.append_order(e.order for e in self.get_siblings(parent_id, kind))

    # -- Commit --

    async def _commit(self, mutation: Mutation, cascading: bool = False) -> None:
        """Sync a mutation; on failure the snapshot is restored and, when the
        gateway may hold part of the change, memory is refetched.

        A cascading delete is one remote call but several requests on a gateway
        that deletes children itself, so it is always treated as partial.
        """
        if mutation.is_empty:
            return
        try:
            await mutation.commit(self.gateway)
        except SyncError:
            if mutation.sent or cascading:
                # Part of the change may have reached the gateway; its state is the truth now.
                try:
                    await self.refresh()
                except SyncError as exc:
                    logger.warning("Refetch after partial sync failed: %s", exc)
            raise

    # -- Ordering --

    async def move_card(self, card_id: str, target_column_id: str, new_order: float) -> Card:
        """Put a card under ``target_column_id`` at ``new_order``.

        Only this card changes; siblings in both columns keep their orders.
        """
        card = self.get_card(card_id)
        column = self.get_column(target_column_id)
        if column.board_id != card.board_id:
            raise CrossBoardMoveError(card_id, card.board_id, column.board_id)
        if not math.isfinite(new_order):
            raise ValidationError(f"Order must be a finite number, got {new_order}")

        mutation = Mutation(f"Move card {card_id}", self.state)
        mutation.set_fields(card, {"column_id": target_column_id, "order": float(new_order)})
        logger.debug("Card %s -> column %s at %s", card_id, target_column_id, new_order)
        await self._commit(mutation)
        return card

    async def reorder_columns(self, board_id: str, ordered_column_ids: Iterable[str]) -> list[Column]:
        """Renumber a board's columns to follow ``ordered_column_ids`` exactly."""
        self.get_board(board_id)
        return await self._reorder(board_id, EntityKind.COLUMN, list(ordered_column_ids))

    async def renumber(self, parent_id: str, kind: EntityKind) -> list[Entity]:
        """Respace a sibling list to GAP, 2*GAP, ... keeping its current order."""
        parent_kind = self._parent_kind(kind)
        if parent_kind is not None:
            self.get(parent_kind, parent_id)
        current = [e.id for e in self.get_siblings(parent_id, kind)]
        return await self._reorder(parent_id, kind, current)

    async def _reorder(self, parent_id: str, kind: EntityKind, ordered_ids: list[str]) -> list[Entity]:
        siblings = {e.id: e for e in self.get_siblings(parent_id, kind)}
        missing = [i for i in siblings if i not in ordered_ids]
        unexpected = [i for i in ordered_ids if i not in siblings]
        if missing or unexpected or len(set(ordered_ids)) != len(ordered_ids):
            raise InvalidPermutationError(parent_id, missing, unexpected)

        mutation = Mutation(f"Reorder {kind.value}s of {parent_id}", self.state)
        for entity_id, order in zip(ordered_ids, positions.renumber(len(ordered_ids))):
            mutation.set_fields(siblings[entity_id], {"order": order})
        await self._commit(mutation)
        return self.get_siblings(parent_id, kind)

    # -- Boards --

    async def create_board(self, title: str) -> Board:
        title = _required_title(title, "Board")
        fields = {
            "title": title,
            "order": self._next_order(self.state.owner_id, EntityKind.BOARD),
            "is_archived": False,
        }
        board = await self.gateway.create_entity(EntityKind.BOARD, self.state.owner_id, fields)
        self.state.boards[board.id] = board
        logger.debug("Created board %s", board.id)
        return board

    async def rename_board(self, board_id: str, title: str) -> Board:
        return await self._update(self.get_board(board_id), {"title": _required_title(title, "Board")})

    async def set_board_archived(self, board_id: str, archived: bool = True) -> Board:
        return await self._update(self.get_board(board_id), {"is_archived": archived})

    async def delete_board(self, board_id: str) -> None:
        board = self.get_board(board_id)
        mutation = Mutation(f"Delete board {board_id}", self.state)
        for column in self.get_siblings(board_id, EntityKind.COLUMN):
            for card in self.get_siblings(column.id, EntityKind.CARD):
                mutation.remove(card, remote=False)
            mutation.remove(column, remote=False)
        mutation.remove(board)
        await self._commit(mutation, cascading=True)

    # -- Columns --

    async def create_column(self, board_id: str, title: str) -> Column:
        self.get_board(board_id)
        fields = {
            "title": _required_title(title, "Column"),
            "order": self._next_order(board_id, EntityKind.COLUMN),
        }
        column = await self.gateway.create_entity(EntityKind.COLUMN, board_id, fields)
        self.state.columns[column.id] = column
        logger.debug("Created column %s on board %s", column.id, board_id)
        return column

    async def rename_column(self, column_id: str, title: str) -> Column:
        return await self._update(self.get_column(column_id), {"title": _required_title(title, "Column")})

    async def delete_column(self, column_id: str) -> None:
        column = self.get_column(column_id)
        mutation = Mutation(f"Delete column {column_id}", self.state)
        for card in self.get_siblings(column_id, EntityKind.CARD):
            mutation.remove(card, remote=False)
        mutation.remove(column)
        await self._commit(mutation, cascading=True)

    # -- Cards --

    async def create_card(
        self,
        column_id: str,
        title: str,
        description: str | None = None,
        labels: Iterable[str] = (),
        due_date: date | None = None,
    ) -> Card:
        column = self.get_column(column_id)
        fields = {
            "board_id": column.board_id,
            "title": _required_title(title, "Card"),
            "description": description or None,
            "labels": _labels(labels),
            "due_date": due_date,
            "order": self._next_order(column_id, EntityKind.CARD),
            "is_archived": False,
        }
        card = await self.gateway.create_entity(EntityKind.CARD, column_id, fields)
        self.state.cards[card.id] = card
        logger.debug("Created card %s in column %s", card.id, column_id)
        return card

    async def update_card(self, card_id: str, **fields: Any) -> Card:
        card = self.get_card(card_id)
        for key in fields:
            if key not in CARD_EDITABLE_FIELDS:
                raise ValidationError(f"Unknown card field: {key}")
        if "title" in fields:
            fields["title"] = _required_title(fields["title"], "Card")
        if "labels" in fields:
            fields["labels"] = _labels(fields["labels"] or ())
        if "description" in fields:
            fields["description"] = fields["description"] or None
        return await self._update(card, fields)

    async def set_card_archived(self, card_id: str, archived: bool = True) -> Card:
        return await self._update(self.get_card(card_id), {"is_archived": archived})

    async def delete_card(self, card_id: str) -> None:
        card = self.get_card(card_id)
        mutation = Mutation(f"Delete card {card_id}", self.state)
        mutation.remove(card)
        await self._commit(mutation)

    async def _update(self, entity: Entity, changes: dict[str, Any]) -> Entity:
        mutation = Mutation(f"Update {type(entity).__name__.lower()} {entity.id}", self.state)
        mutation.set_fields(entity, changes)
        await self._commit(mutation)
        return entity


def _required_title(title: str | None, what: str) -> str:
    cleaned = (title or "").strip()
    if not cleaned:
        raise ValidationError(f"{what} title is required")
    return cleaned


def _labels(labels: Iterable[str]) -> frozenset[str]:
    if isinstance(labels, str):
        labels = labels.split(",")
    return frozenset(label.strip() for label in labels if label and label.strip())
