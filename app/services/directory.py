"""Projects and team members fetched from Jibble, with a local fallback cache."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, List, Protocol

from app.clients.json_store import JsonStore
from app.core.errors import AuthError, UpstreamError

logger = logging.getLogger(__name__)


class DirectorySource(Protocol):
    async def list_projects(self) -> List[Dict[str, Any]]:
        ...

    async def list_people(self) -> List[Dict[str, Any]]:
        ...


class DirectoryService:
    """Serve project and member lists, refreshing the cache on every success."""

    def __init__(self, *, jibble: DirectorySource, store: JsonStore) -> None:
        self._jibble = jibble
        self._store = store

    async def _fetch(
        self,
        collection: str,
        fetch: Callable[[], Awaitable[List[Dict[str, Any]]]],
    ) -> Dict[str, Any]:
        try:
            items = await fetch()
        except (AuthError, UpstreamError) as exc:
            cached = self._store.list_items(collection)
            logger.warning(
                "Serving %d cached %s after Jibble failure: %s",
                len(cached),
                collection,
                exc.message,
            )
            return {
                "items": cached,
                "source": "cache",
                "note": f"Jibble unavailable ({exc.message}); showing cached {collection}.",
            }

        self._store.replace_items(collection, items)
        return {"items": items, "source": "jibble"}

    async def projects(self) -> Dict[str, Any]:
        return await self._fetch("projects", self._jibble.list_projects)

    async def team_members(self) -> Dict[str, Any]:
        return await self._fetch("teams", self._jibble.list_people)


__all__ = ["DirectoryService", "DirectorySource"]
