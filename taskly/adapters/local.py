"""File-based sync gateway: one JSON document on local disk."""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from dataclasses import asdict, fields as dataclass_fields
from datetime import date
from pathlib import Path
from typing import Any

from ..board.exceptions import SyncError
from ..board.models import ENTITY_TYPES, PARENT_FIELD, Board, Card, Column, Entity, EntityKind, kind_of

logger = logging.getLogger(__name__)

_SECTIONS = {
    EntityKind.BOARD: "boards",
    EntityKind.COLUMN: "columns",
    EntityKind.CARD: "cards",
}


def _new_id() -> str:
    return uuid.uuid4().hex[:12]


def seed_entities(owner_id: str) -> list[Entity]:
    """Starter board written on first use."""
    board = Board(id=_new_id(), title="Personal Tasks", owner_id=owner_id, order=100)
    todo = Column(id=_new_id(), board_id=board.id, title="To Do", order=100)
    doing = Column(id=_new_id(), board_id=board.id, title="In Progress", order=200)
    done = Column(id=_new_id(), board_id=board.id, title="Done", order=300)

    def card(column: Column, title: str, order: float, **extra) -> Card:
        return Card(id=_new_id(), board_id=board.id, column_id=column.id, title=title, order=order, **extra)

    return [
        board, todo, doing, done,
        card(todo, "Buy groceries", 100, description="Get milk, bread, eggs, and vegetables"),
        card(todo, "Book dentist appointment", 200, description="Schedule routine cleaning for next month"),
        card(todo, "Call mom", 300),
        card(
            doing, "Write blog post", 100,
            description="Article about productivity tips and techniques",
            labels=frozenset({"writing", "blog"}),
        ),
        card(done, "Laundry", 100),
    ]


def entity_to_dict(entity: Entity) -> dict[str, Any]:
    data = asdict(entity)
    if isinstance(entity, Card):
        data["labels"] = sorted(entity.labels)
        data["due_date"] = entity.due_date.isoformat() if entity.due_date else None
    return data


def entity_from_dict(kind: EntityKind, data: dict[str, Any]) -> Entity:
    cls = ENTITY_TYPES[kind]
    known = {f.name for f in dataclass_fields(cls)}
    values = {k: v for k, v in data.items() if k in known}
    if kind is EntityKind.CARD:
        values["labels"] = frozenset(values.get("labels") or ())
        due = values.get("due_date")
        values["due_date"] = date.fromisoformat(due) if due else None
    return cls(**values)


class LocalFileGateway:
    """Implements SyncGateway on a JSON file.

    File layout::

        {"boards": [...], "columns": [...], "cards": [...]}

    A missing or unreadable file is replaced by the seed board.
    """

    def __init__(self, path: Path | str, owner_id: str = "local", seed: bool = True):
        self.path = Path(path).expanduser()
        self.owner_id = owner_id
        self.seed = seed
        self._data: dict[EntityKind, dict[str, Entity]] | None = None

    async def _load(self) -> dict[EntityKind, dict[str, Entity]]:
        if self._data is not None:
            return self._data

        def _read() -> dict[str, Any] | None:
            if not self.path.exists():
                return None
            return json.loads(self.path.read_text(encoding="utf-8"))

        try:
            raw = await asyncio.to_thread(_read)
        except (OSError, ValueError) as exc:
            logger.warning("Could not read %s, starting fresh: %s", self.path, exc)
            raw = None

        data: dict[EntityKind, dict[str, Entity]] = {kind: {} for kind in EntityKind}
        if isinstance(raw, dict) and all(isinstance(raw.get(s), list) for s in _SECTIONS.values()):
            try:
                for kind, section in _SECTIONS.items():
                    for item in raw[section]:
                        entity = entity_from_dict(kind, item)
                        data[kind][entity.id] = entity
            except (TypeError, ValueError) as exc:
                logger.warning("Malformed data in %s, starting fresh: %s", self.path, exc)
                data = {kind: {} for kind in EntityKind}
                raw = None
        else:
            raw = None

        self._data = data
        if raw is None:
            if self.seed:
                for entity in seed_entities(self.owner_id):
                    data[kind_of(entity)][entity.id] = entity
            await self._save("load", EntityKind.BOARD, None)
        return data

    async def _save(self, operation: str, kind: EntityKind, entity_id: str | None) -> None:
        payload = {
            section: [entity_to_dict(e) for e in self._data[kind].values()]
            for kind, section in _SECTIONS.items()
        }

        def _write() -> None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            tmp.replace(self.path)

        try:
            await asyncio.to_thread(_write)
        except OSError as exc:
            raise SyncError(operation, kind, entity_id, str(exc)) from exc

    async def create_entity(self, kind: EntityKind, parent_id: str, fields: dict[str, Any]) -> Entity:
        data = await self._load()
        values = {**fields, "id": _new_id(), PARENT_FIELD[kind]: parent_id}
        try:
            entity = ENTITY_TYPES[kind](**values)
        except TypeError as exc:
            raise SyncError("create", kind, None, str(exc)) from exc
        data[kind][entity.id] = entity
        try:
            await self._save("create", kind, entity.id)
        except SyncError:
            del data[kind][entity.id]
            raise
        return entity_from_dict(kind, entity_to_dict(entity))

    async def update_entity(self, entity_id: str, kind: EntityKind, fields: dict[str, Any]) -> None:
        data = await self._load()
        entity = data[kind].get(entity_id)
        if entity is None:
            raise SyncError("update", kind, entity_id, "not found")
        for key in fields:
            if not hasattr(entity, key) or key == "id":
                raise SyncError("update", kind, entity_id, f"unknown field: {key}")
        previous = entity_to_dict(entity)
        for key, value in fields.items():
            setattr(entity, key, value)
        try:
            await self._save("update", kind, entity_id)
        except SyncError:
            data[kind][entity_id] = entity_from_dict(kind, previous)
            raise

    async def delete_entity(self, entity_id: str, kind: EntityKind) -> None:
        data = await self._load()
        if entity_id not in data[kind]:
            raise SyncError("delete", kind, entity_id, "not found")
        doomed = [(kind, entity_id)]
        if kind is EntityKind.BOARD:
            column_ids = [c.id for c in data[EntityKind.COLUMN].values() if c.board_id == entity_id]
            doomed += [(EntityKind.COLUMN, cid) for cid in column_ids]
            doomed += [(EntityKind.CARD, c.id) for c in data[EntityKind.CARD].values() if c.column_id in column_ids]
        elif kind is EntityKind.COLUMN:
            doomed += [(EntityKind.CARD, c.id) for c in data[EntityKind.CARD].values() if c.column_id == entity_id]

        removed = [(k, data[k].pop(i)) for k, i in doomed]
        try:
            await self._save("delete", kind, entity_id)
        except SyncError:
            for k, entity in removed:
                data[k][entity.id] = entity
            raise

    async def list_children(self, parent_id: str, kind: EntityKind) -> list[Entity]:
        data = await self._load()
        parent_field = PARENT_FIELD[kind]
        return [
            entity_from_dict(kind, entity_to_dict(e))
            for e in data[kind].values()
            if getattr(e, parent_field) == parent_id
        ]

