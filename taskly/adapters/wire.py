"""Remote object representation used by the REST gateway.

Objects travel as ``{"id", "type", "title", "metadata": {...}}``. Metadata keys
are snake_case, the owner of a board is ``user_id``, labels are one
comma-joined string and an absent description or due date is ``""``.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from ..board.models import PARENT_FIELD, Board, Card, Column, Entity, EntityKind

OBJECT_TYPES: dict[EntityKind, str] = {
    EntityKind.BOARD: "boards",
    EntityKind.COLUMN: "columns",
    EntityKind.CARD: "cards",
}

_REMOTE_NAMES = {"owner_id": "user_id"}


def remote_name(field_name: str) -> str:
    return _REMOTE_NAMES.get(field_name, field_name)


def parent_key(kind: EntityKind) -> str:
    """Query parameter selecting children of a parent, e.g. ``metadata.column_id``."""
    return f"metadata.{remote_name(PARENT_FIELD[kind])}"


def encode_labels(labels) -> str:
    return ",".join(sorted(labels)) if labels else ""


def decode_labels(raw: str | None) -> frozenset[str]:
    if not raw:
        return frozenset()
    return frozenset(part.strip() for part in raw.split(",") if part.strip())


def _encode_value(name: str, value: Any) -> Any:
    if name == "labels":
        return encode_labels(value)
    if name == "due_date":
        return value.isoformat() if value else ""
    if name == "description":
        return value or ""
    return value


def encode_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Split model fields into the top-level title and the metadata dict."""
    body: dict[str, Any] = {}
    metadata: dict[str, Any] = {}
    for name, value in fields.items():
        if name == "title":
            body["title"] = value
        else:
            metadata[remote_name(name)] = _encode_value(name, value)
    if metadata:
        body["metadata"] = metadata
    return body


def encode_new(kind: EntityKind, parent_id: str, fields: dict[str, Any]) -> dict[str, Any]:
    body = encode_fields({**fields, PARENT_FIELD[kind]: parent_id})
    body["type"] = OBJECT_TYPES[kind]
    return body


def decode(kind: EntityKind, obj: dict[str, Any]) -> Entity:
    meta = obj.get("metadata") or {}
    if kind is EntityKind.BOARD:
        return Board(
            id=obj["id"],
            title=obj.get("title", ""),
            owner_id=meta.get("user_id", ""),
            order=float(meta.get("order") or 0),
            is_archived=bool(meta.get("is_archived", False)),
        )
    if kind is EntityKind.COLUMN:
        return Column(
            id=obj["id"],
            board_id=meta.get("board_id", ""),
            title=obj.get("title", ""),
            order=float(meta.get("order") or 0),
        )
    due = meta.get("due_date")
    return Card(
        id=obj["id"],
        board_id=meta.get("board_id", ""),
        column_id=meta.get("column_id", ""),
        title=obj.get("title", ""),
        order=float(meta.get("order") or 0),
        description=meta.get("description") or None,
        labels=decode_labels(meta.get("labels")),
        due_date=date.fromisoformat(due) if due else None,
        is_archived=bool(meta.get("is_archived", False)),
    )
