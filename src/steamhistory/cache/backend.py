"""Key-value cache backends with per-key TTL.

Entries only ever leave the cache by expiring; nothing invalidates them.
"""

import time
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol

import redis.asyncio as redis

from steamhistory.common.exceptions import CacheError


class CacheBackend(Protocol):
    """Best-effort byte cache. Failures surface as :class:`CacheError`."""

    async def get(self, key: str) -> Optional[bytes]: ...

    async def set(self, key: str, payload: bytes, ttl: int) -> None: ...


@dataclass
class MemoryCache:
    """
    Process-local cache for development and tests.

    Parameters
    ----------
    clock : Callable
        Returns the current time in seconds (default time.monotonic)
    """

    clock: Callable[[], float] = time.monotonic
    _entries: dict[str, tuple[bytes, float]] = field(default_factory=dict)

    async def get(self, key: str) -> Optional[bytes]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        payload, expires_at = entry
        if self.clock() >= expires_at:
            del self._entries[key]
            return None
        return payload

    async def set(self, key: str, payload: bytes, ttl: int) -> None:
        self._entries[key] = (payload, self.clock() + ttl)

    def __len__(self) -> int:
        return len(self._entries)


class RedisCache:
    """Cache backed by a Redis server, shared by every API process."""

    def __init__(self, url: str = "redis://localhost:6379/0", key_prefix: str = "steamhistory:"):
        self.url = url
        self.key_prefix = key_prefix
        # Don't enable decode_responses; payloads are JSON bytes
        self._client = redis.Redis.from_url(
            url,
            socket_timeout=2.0,
            socket_connect_timeout=2.0,
            decode_responses=False,
        )

    def _key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    async def get(self, key: str) -> Optional[bytes]:
        try:
            return await self._client.get(self._key(key))
        except redis.RedisError as e:
            raise CacheError(f"Redis GET {key} failed: {e}") from e

    async def set(self, key: str, payload: bytes, ttl: int) -> None:
        try:
            await self._client.set(self._key(key), payload, ex=ttl)
        except redis.RedisError as e:
            raise CacheError(f"Redis SET {key} failed: {e}") from e

    async def close(self) -> None:
        await self._client.aclose()
