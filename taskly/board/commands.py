"""Optimistic mutations: apply locally, mirror remotely, restore on failure."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields, replace
from typing import Any

from .exceptions import SyncError
from .interface import SyncGateway
from .models import BoardState, Entity, EntityKind, kind_of

logger = logging.getLogger(__name__)


@dataclass
class RemoteCall:
    operation: str
    kind: EntityKind
    entity_id: str
    fields: dict[str, Any] = field(default_factory=dict)

    async def send(self, gateway: SyncGateway) -> None:
        if self.operation == "update":
            await gateway.update_entity(self.entity_id, self.kind, self.fields)
        elif self.operation == "delete":
            await gateway.delete_entity(self.entity_id, self.kind)
        else:
            raise ValueError(f"Unknown remote operation: {self.operation}")


@dataclass
class Mutation:
    """One user action against the board state.

    Every entity is copied into ``snapshot`` the first time the mutation
    touches it, so ``restore`` can put back exactly the pre-mutation values
    without disturbing entities that other actions changed meanwhile.
    """

    label: str
    state: BoardState
    snapshot: dict[tuple[EntityKind, str], Entity] = field(default_factory=dict)
    remote_calls: list[RemoteCall] = field(default_factory=list)
    sent: int = 0

    def _remember(self, kind: EntityKind, entity: Entity) -> None:
        key = (kind, entity.id)
        if key not in self.snapshot:
            self.snapshot[key] = replace(entity)

    def set_fields(self, entity: Entity, changes: dict[str, Any], *, remote: bool = True) -> bool:
        """Apply changed fields in place; returns False if nothing differed."""
        changed = {k: v for k, v in changes.items() if getattr(entity, k) != v}
        if not changed:
            return False
        kind = kind_of(entity)
        self._remember(kind, entity)
        for key, value in changed.items():
            setattr(entity, key, value)
        if remote:
            self.remote_calls.append(RemoteCall("update", kind, entity.id, changed))
        return True

    def remove(self, entity: Entity, *, remote: bool = True) -> None:
        kind = kind_of(entity)
        self._remember(kind, entity)
        self.state.collection(kind).pop(entity.id, None)
        if remote:
            self.remote_calls.append(RemoteCall("delete", kind, entity.id))

    @property
    def is_empty(self) -> bool:
        return not self.snapshot

    def restore(self) -> None:
        for (kind, entity_id), saved in self.snapshot.items():
            collection = self.state.collection(kind)
            live = collection.get(entity_id)
            if live is None:
                collection[entity_id] = replace(saved)
                continue
            for f in fields(saved):
                setattr(live, f.name, getattr(saved, f.name))

    async def commit(self, gateway: SyncGateway) -> None:
        """Send the remote calls in order; restore local state on the first failure."""
        for call in self.remote_calls:
            try:
                await call.send(gateway)
            except SyncError as exc:
                logger.warning("%s failed, reverting: %s", self.label, exc)
                self.restore()
                raise
            self.sent += 1
        logger.debug("%s synced (%d remote calls)", self.label, self.sent)
