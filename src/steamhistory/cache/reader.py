"""Cache-aside readers for the serving layer.

Each read first asks the cache; on a miss the result is computed from the
stores, serialized to JSON and written back with a TTL. Cached results may
lag behind the stores for up to that TTL.
"""

import hashlib
import json
import logging
from typing import Any, Awaitable, Callable

from steamhistory.apps.service import AppService
from steamhistory.cache.backend import CacheBackend
from steamhistory.common.config import SteamHistorySettings
from steamhistory.common.database import DatabaseManager
from steamhistory.common.exceptions import CacheError
from steamhistory.history.service import HistoryService, to_utc

logger = logging.getLogger(__name__)

POPULAR_KEY = "top"


def history_key(app_id: int) -> str:
    return f"history_{app_id}"


def search_key(query: str) -> str:
    return "search_" + hashlib.md5(query.encode("utf-8")).hexdigest()


def _dump(value: Any) -> bytes:
    return json.dumps(value, separators=(",", ":")).encode("utf-8")


class CachedReader:
    """Read-through views over the catalog and history stores."""

    def __init__(
        self,
        settings: SteamHistorySettings,
        db: DatabaseManager,
        cache: CacheBackend,
        apps: AppService,
        history: HistoryService,
    ):
        self.settings = settings
        self.db = db
        self.cache = cache
        self.apps = apps
        self.history = history

    async def _read_through(
        self,
        key: str,
        ttl: int,
        compute: Callable[[], Awaitable[bytes]],
    ) -> bytes:
        try:
            cached = await self.cache.get(key)
        except CacheError:
            logger.warning("Cache read failed for %s", key, exc_info=True, extra={"cache_key": key})
            cached = None
        if cached is not None:
            return cached

        payload = await compute()
        try:
            await self.cache.set(key, payload, ttl)
        except CacheError:
            logger.warning("Cache write failed for %s", key, exc_info=True, extra={"cache_key": key})
        return payload

    async def history_view(self, app_id: int) -> bytes:
        """Name and full history of an app as ``[[unix_seconds, count], ...]``.

        Raises AppNotFoundError for unknown apps; nothing is cached then.
        """
        async def compute() -> bytes:
            async with self.db.get_session() as session:
                name = await self.apps.get_name(session, app_id)
                records = await self.history.read_all(session, app_id)
            points = [
                [int(to_utc(r.recorded_at).timestamp()), r.count]
                for r in records
            ]
            return _dump({"name": name, "history": points})

        return await self._read_through(
            history_key(app_id), self.settings.history_cache_ttl, compute,
        )

    async def popular_today(self) -> bytes:
        """Most played usable apps over the last day."""
        async def compute() -> bytes:
            async with self.db.get_session() as session:
                rows = await self.history.most_popular_today(
                    session, limit=self.settings.popular_limit,
                )
            return _dump(rows)

        return await self._read_through(
            POPULAR_KEY, self.settings.popular_cache_ttl, compute,
        )

    async def search(self, query: str) -> bytes:
        """Apps whose name contains ``query``."""
        async def compute() -> bytes:
            async with self.db.get_session() as session:
                apps = await self.apps.search(
                    session, query, limit=self.settings.search_limit,
                )
            return _dump([{"id": app.id, "name": app.name} for app in apps])

        return await self._read_through(
            search_key(query), self.settings.search_cache_ttl, compute,
        )
