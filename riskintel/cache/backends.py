"""
Cache Backends

Storage engines behind the signal cache. Both speak fully-qualified
string keys and JSON-encoded string values; namespacing, encoding and
failure handling live in ``SignalCache``.

- RedisBackend: shared cache across API workers (SETEX for TTL)
- MemoryBackend: in-process fallback for development and tests
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional, Union

import redis.asyncio as redis


@dataclass
class CacheEntry:
    value: str
    expires_at: float
    created_at: float


class MemoryBackend:
    """
    In-process TTL map.

    Expired entries are dropped lazily on read and swept every
    ``cleanup_interval`` writes.
    """

    name = "memory"

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        cleanup_interval: int = 100,
    ):
        self._entries: dict[str, CacheEntry] = {}
        self._clock = clock
        self._cleanup_interval = cleanup_interval
        self._writes = 0

    async def get(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            self._entries.pop(key, None)
            return None
        return entry.value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        now = self._clock()
        self._entries[key] = CacheEntry(
            value=value,
            expires_at=now + ttl_seconds,
            created_at=now,
        )
        self._writes += 1
        if self._writes % self._cleanup_interval == 0:
            self._sweep()

    async def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    async def exists(self, key: str) -> bool:
        return await self.get(key) is not None

    async def clear(self, prefix: str) -> int:
        keys = [k for k in self._entries if k.startswith(prefix)]
        for key in keys:
            del self._entries[key]
        return len(keys)

    async def size(self) -> int:
        self._sweep()
        return len(self._entries)

    async def ping(self) -> bool:
        return True

    def _sweep(self) -> None:
        now = self._clock()
        expired = [k for k, e in self._entries.items() if now >= e.expires_at]
        for key in expired:
            del self._entries[key]


class RedisBackend:
    """Redis-backed storage using plain string keys with SETEX."""

    name = "redis"

    def __init__(self, redis_client: redis.Redis):
        """
        Initialize Redis backend.

        Args:
            redis_client: Async Redis client
        """
        self.redis = redis_client

    async def get(self, key: str) -> Optional[Union[str, bytes]]:
        return await self.redis.get(key)

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        await self.redis.setex(key, ttl_seconds, value)

    async def delete(self, key: str) -> bool:
        return bool(await self.redis.delete(key))

    async def exists(self, key: str) -> bool:
        return await self.redis.exists(key) == 1

    async def clear(self, prefix: str) -> int:
        removed = 0
        async for key in self.redis.scan_iter(match=f"{prefix}*", count=500):
            removed += await self.redis.delete(key)
        return removed

    async def size(self) -> int:
        return await self.redis.dbsize()

    async def ping(self) -> bool:
        return bool(await self.redis.ping())
