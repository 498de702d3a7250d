"""Abstract sync gateway protocol."""

from typing import Any, Protocol

from .models import Entity, EntityKind


class SyncGateway(Protocol):
    """Interface that any persistence backend must implement.

    Field dicts use the model attribute names (``title``, ``order``,
    ``column_id``, ``labels``...). Every method raises ``SyncError`` on failure.
    """

    async def create_entity(
        self, kind: EntityKind, parent_id: str, fields: dict[str, Any]
    ) -> Entity: ...

    async def update_entity(
        self, entity_id: str, kind: EntityKind, fields: dict[str, Any]
    ) -> None: ...

    async def delete_entity(self, entity_id: str, kind: EntityKind) -> None: ...

    async def list_children(self, parent_id: str, kind: EntityKind) -> list[Entity]: ...
