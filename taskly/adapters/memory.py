"""In-memory sync gateway for testing."""

from __future__ import annotations

from dataclasses import fields as dataclass_fields, replace
from typing import Any, Iterable

from ..board.exceptions import SyncError
from ..board.models import ENTITY_TYPES, PARENT_FIELD, Entity, EntityKind

_ID_PREFIX = {
    EntityKind.BOARD: "b",
    EntityKind.COLUMN: "col",
    EntityKind.CARD: "card",
}


class InMemoryGateway:
    """SyncGateway backed by dicts. For tests and demos.

    ``calls`` records every request as ``(operation, kind, id)``; operations
    named in ``fail_on`` ("create", "update", "delete", "list") raise
    ``SyncError`` instead of running.
    """

    def __init__(self, fail_on: Iterable[str] = ()):
        self._entities: dict[EntityKind, dict[str, Entity]] = {kind: {} for kind in EntityKind}
        self._next_id = {kind: 1 for kind in EntityKind}
        self.fail_on: set[str] = set(fail_on)
        self.calls: list[tuple[str, EntityKind, str]] = []

    def _record(self, operation: str, kind: EntityKind, entity_id: str) -> None:
        self.calls.append((operation, kind, entity_id))
        if operation in self.fail_on:
            raise SyncError(operation, kind, entity_id, "request failed")

    def _require(self, operation: str, kind: EntityKind, entity_id: str) -> Entity:
        entity = self._entities[kind].get(entity_id)
        if entity is None:
            raise SyncError(operation, kind, entity_id, "not found")
        return entity

    def get(self, kind: EntityKind, entity_id: str) -> Entity | None:
        """Stored copy of an entity, bypassing call recording."""
        entity = self._entities[kind].get(entity_id)
        return replace(entity) if entity is not None else None

    async def create_entity(self, kind: EntityKind, parent_id: str, fields: dict[str, Any]) -> Entity:
        self._record("create", kind, parent_id)
        cls = ENTITY_TYPES[kind]
        known = {f.name for f in dataclass_fields(cls)}
        unknown = sorted(set(fields) - known)
        if unknown:
            raise SyncError("create", kind, None, f"unknown fields: {', '.join(unknown)}")

        entity_id = f"{_ID_PREFIX[kind]}-{self._next_id[kind]}"
        self._next_id[kind] += 1
        entity = cls(id=entity_id, **{**fields, PARENT_FIELD[kind]: parent_id})
        self._entities[kind][entity_id] = entity
        return replace(entity)

    async def update_entity(self, entity_id: str, kind: EntityKind, fields: dict[str, Any]) -> None:
        self._record("update", kind, entity_id)
        entity = self._require("update", kind, entity_id)
        for key in fields:
            if not hasattr(entity, key) or key == "id":
                raise SyncError("update", kind, entity_id, f"unknown field: {key}")
        for key, value in fields.items():
            setattr(entity, key, value)

    async def delete_entity(self, entity_id: str, kind: EntityKind) -> None:
        self._record("delete", kind, entity_id)
        self._require("delete", kind, entity_id)
        self._delete_tree(entity_id, kind)

    def _delete_tree(self, entity_id: str, kind: EntityKind) -> None:
        if kind is EntityKind.BOARD:
            for column in self._children(entity_id, EntityKind.COLUMN):
                self._delete_tree(column.id, EntityKind.COLUMN)
        elif kind is EntityKind.COLUMN:
            for card in self._children(entity_id, EntityKind.CARD):
                del self._entities[EntityKind.CARD][card.id]
        del self._entities[kind][entity_id]

    def _children(self, parent_id: str, kind: EntityKind) -> list[Entity]:
        parent_field = PARENT_FIELD[kind]
        return [e for e in self._entities[kind].values() if getattr(e, parent_field) == parent_id]

    async def list_children(self, parent_id: str, kind: EntityKind) -> list[Entity]:
        self._record("list", kind, parent_id)
        return [replace(e) for e in self._children(parent_id, kind)]
