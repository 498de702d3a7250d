"""Domain models for boards, columns and cards."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum


class EntityKind(Enum):
    BOARD = "board"
    COLUMN = "column"
    CARD = "card"


# Attribute holding the id of an entity's parent, per kind.
PARENT_FIELD: dict[EntityKind, str] = {
    EntityKind.BOARD: "owner_id",
    EntityKind.COLUMN: "board_id",
    EntityKind.CARD: "column_id",
}


@dataclass
class Board:
    id: str
    title: str
    owner_id: str
    order: float = 0.0
    is_archived: bool = False


@dataclass
class Column:
    id: str
    board_id: str
    title: str
    order: float = 0.0


@dataclass
class Card:
    id: str
    board_id: str
    column_id: str
    title: str
    order: float = 0.0
    description: str | None = None
    labels: frozenset[str] = field(default_factory=frozenset)
    due_date: date | None = None
    is_archived: bool = False


Entity = Board | Column | Card

ENTITY_TYPES: dict[EntityKind, type] = {
    EntityKind.BOARD: Board,
    EntityKind.COLUMN: Column,
    EntityKind.CARD: Card,
}


def kind_of(entity: Entity) -> EntityKind:
    for kind, cls in ENTITY_TYPES.items():
        if isinstance(entity, cls):
            return kind
    raise TypeError(f"Not a board entity: {entity!r}")


def parent_id_of(entity: Entity) -> str:
    return getattr(entity, PARENT_FIELD[kind_of(entity)])


def sort_key(entity: Entity) -> tuple[float, str]:
    """Sibling ordering: by order, ties broken by id."""
    return (entity.order, entity.id)


@dataclass
class BoardState:
    """All boards, columns and cards the store currently holds, keyed by id."""

    owner_id: str
    boards: dict[str, Board] = field(default_factory=dict)
    columns: dict[str, Column] = field(default_factory=dict)
    cards: dict[str, Card] = field(default_factory=dict)

    def collection(self, kind: EntityKind) -> dict:
        if kind is EntityKind.BOARD:
            return self.boards
        if kind is EntityKind.COLUMN:
            return self.columns
        return self.cards

    def clear(self) -> None:
        self.boards.clear()
        self.columns.clear()
        self.cards.clear()
