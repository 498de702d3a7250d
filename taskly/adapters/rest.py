"""Sync gateway for a remote object store reached over REST."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import requests

from ..board.exceptions import SyncError
from ..board.models import Entity, EntityKind
from . import wire

logger = logging.getLogger(__name__)

_CHILD_KIND = {
    EntityKind.BOARD: EntityKind.COLUMN,
    EntityKind.COLUMN: EntityKind.CARD,
}


class RestGateway:
    """Implements SyncGateway against an object-store API.

    Endpoints::

        GET    {base_url}/objects?type=cards&metadata.column_id=<id>
        POST   {base_url}/objects
        PATCH  {base_url}/objects/<id>
        DELETE {base_url}/objects/<id>

    Every request carries ``Authorization: Bearer <token>``. ``requests`` is
    blocking, so calls run in a worker thread.
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
        }

    async def _request(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        kind: EntityKind,
        entity_id: str | None,
        allow_404: bool = False,
        **kwargs: Any,
    ) -> requests.Response | None:
        url = f"{self.base_url}{path}"

        def _send() -> requests.Response:
            return self.session.request(
                method, url, headers=self._headers(), timeout=self.timeout, **kwargs
            )

        try:
            response = await asyncio.to_thread(_send)
        except requests.RequestException as exc:
            raise SyncError(operation, kind, entity_id, str(exc)) from exc

        if allow_404 and response.status_code == 404:
            return None
        if not response.ok:
            raise SyncError(operation, kind, entity_id, _error_message(response))
        logger.debug("%s %s -> %s", method, url, response.status_code)
        return response

    async def create_entity(self, kind: EntityKind, parent_id: str, fields: dict[str, Any]) -> Entity:
        response = await self._request(
            "POST", "/objects",
            operation="create", kind=kind, entity_id=None,
            json=wire.encode_new(kind, parent_id, fields),
        )
        try:
            return wire.decode(kind, response.json()["object"])
        except (ValueError, KeyError, TypeError) as exc:
            raise SyncError("create", kind, None, f"unexpected response: {exc}") from exc

    async def update_entity(self, entity_id: str, kind: EntityKind, fields: dict[str, Any]) -> None:
        await self._request(
            "PATCH", f"/objects/{entity_id}",
            operation="update", kind=kind, entity_id=entity_id,
            json=wire.encode_fields(fields),
        )

    async def delete_entity(self, entity_id: str, kind: EntityKind) -> None:
        # The object store does not cascade; remove children first.
        child_kind = _CHILD_KIND.get(kind)
        if child_kind is not None:
            for child in await self.list_children(entity_id, child_kind):
                await self.delete_entity(child.id, child_kind)
        await self._request(
            "DELETE", f"/objects/{entity_id}",
            operation="delete", kind=kind, entity_id=entity_id,
            allow_404=True,
        )

    async def list_children(self, parent_id: str, kind: EntityKind) -> list[Entity]:
        response = await self._request(
            "GET", "/objects",
            operation="list", kind=kind, entity_id=parent_id,
            allow_404=True,
            params={"type": wire.OBJECT_TYPES[kind], wire.parent_key(kind): parent_id},
        )
        if response is None:
            return []
        try:
            objects = response.json().get("objects") or []
            return [wire.decode(kind, obj) for obj in objects]
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            raise SyncError("list", kind, parent_id, f"unexpected response: {exc}") from exc


def _error_message(response: requests.Response) -> str:
    try:
        detail = response.json().get("error")
    except (ValueError, AttributeError):
        detail = None
    return f"HTTP {response.status_code}: {detail or response.reason or 'request failed'}"
