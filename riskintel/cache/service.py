"""
Signal Cache

Namespaced get/set/delete/exists/TTL store used by every component to
memoize expensive lookups (vendor calls, device history, verdicts).

Key format: {prefix}{namespace}:{key}
Example: riskintel:ip_reputation:9f86d081884c7d65...

Failure semantics: a cache outage must never fail a risk assessment.
Reads degrade to "absent", writes are logged and dropped.
"""

import hashlib
import json
import logging
from typing import Any, Awaitable, Callable, Optional, Union

import redis.asyncio as redis
from pydantic_core import to_jsonable_python

from ..metrics import metrics
from .backends import MemoryBackend, RedisBackend

logger = logging.getLogger("riskintel.cache")

DEFAULT_NAMESPACE = "default"

Backend = Union[MemoryBackend, RedisBackend]


def hash_key(raw: str) -> str:
    """
    Hash a raw identifier for use in a cache key.

    Keeps PII such as IP addresses and emails out of key names.
    """
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


class SignalCache:
    """
    Cache-aside store for risk signals.

    Uses Redis when a client is supplied, otherwise an in-process
    memory backend. Values must be JSON-serializable (pydantic models
    are converted with ``to_jsonable_python``).
    """

    DEFAULT_TTL = 3600  # 1 hour

    def __init__(
        self,
        redis_client: Optional[redis.Redis] = None,
        key_prefix: str = "riskintel:",
        default_ttl: int = DEFAULT_TTL,
        backend: Optional[Backend] = None,
    ):
        """
        Initialize signal cache.

        Args:
            redis_client: Async Redis client (optional)
            key_prefix: Prefix for every key
            default_ttl: TTL used when a caller passes none
            backend: Explicit backend (overrides redis_client)
        """
        if backend is not None:
            self.backend: Backend = backend
        elif redis_client is not None:
            self.backend = RedisBackend(redis_client)
        else:
            self.backend = MemoryBackend()
        self.prefix = key_prefix
        self.default_ttl = default_ttl

    @property
    def backend_name(self) -> str:
        return self.backend.name

    def make_key(self, key: str, namespace: Optional[str] = None) -> str:
        """Construct the fully-qualified key."""
        return f"{self.prefix}{namespace or DEFAULT_NAMESPACE}:{key}"

    # =========================================================================
    # Core Operations
    # =========================================================================

    async def get(self, key: str, namespace: Optional[str] = None) -> Optional[Any]:
        """
        Get a value.

        Returns:
            Decoded value, or None when absent, expired or unreadable
        """
        ns = namespace or DEFAULT_NAMESPACE
        cache_key = self.make_key(key, ns)
        try:
            raw = await self.backend.get(cache_key)
        except Exception as e:
            logger.warning("Cache get failed for %s: %s", cache_key, e)
            metrics.cache_operations.labels(namespace=ns, outcome="error").inc()
            return None

        if raw is None:
            metrics.cache_operations.labels(namespace=ns, outcome="miss").inc()
            return None

        try:
            value = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning("Discarding undecodable cache entry %s: %s", cache_key, e)
            metrics.cache_operations.labels(namespace=ns, outcome="error").inc()
            return None

        metrics.cache_operations.labels(namespace=ns, outcome="hit").inc()
        return value

    async def set(
        self,
        key: str,
        value: Any,
        ttl_seconds: Optional[int] = None,
        namespace: Optional[str] = None,
    ) -> bool:
        """
        Store a value with a TTL.

        Returns:
            True if stored, False if the backend rejected the write
        """
        ns = namespace or DEFAULT_NAMESPACE
        cache_key = self.make_key(key, ns)
        ttl = ttl_seconds or self.default_ttl
        try:
            payload = json.dumps(to_jsonable_python(value))
            await self.backend.set(cache_key, payload, ttl)
            return True
        except Exception as e:
            logger.warning("Cache set failed for %s: %s", cache_key, e)
            metrics.cache_operations.labels(namespace=ns, outcome="error").inc()
            return False

    async def delete(self, key: str, namespace: Optional[str] = None) -> bool:
        """Delete a value. Returns True if something was removed."""
        ns = namespace or DEFAULT_NAMESPACE
        cache_key = self.make_key(key, ns)
        try:
            return await self.backend.delete(cache_key)
        except Exception as e:
            logger.warning("Cache delete failed for %s: %s", cache_key, e)
            metrics.cache_operations.labels(namespace=ns, outcome="error").inc()
            return False

    async def exists(self, key: str, namespace: Optional[str] = None) -> bool:
        """Check whether an unexpired value is present."""
        cache_key = self.make_key(key, namespace)
        try:
            return await self.backend.exists(cache_key)
        except Exception as e:
            logger.warning("Cache exists failed for %s: %s", cache_key, e)
            return False

    async def get_or_set(
        self,
        key: str,
        fetcher: Callable[[], Awaitable[Any]],
        ttl_seconds: Optional[int] = None,
        namespace: Optional[str] = None,
    ) -> Any:
        """
        Cache-aside lookup.

        On a miss, awaits ``fetcher``, stores its result and returns it.
        A ``None`` result is returned but not stored. Concurrent misses
        for the same key may each invoke the fetcher.

        Errors raised by ``fetcher`` propagate to the caller.
        """
        cached = await self.get(key, namespace)
        if cached is not None:
            return cached

        value = await fetcher()
        if value is not None:
            await self.set(key, value, ttl_seconds, namespace)
        return value

    # =========================================================================
    # Maintenance
    # =========================================================================

    async def clear(self, namespace: Optional[str] = None) -> int:
        """
        Remove all entries in a namespace (or all prefixed entries).

        Returns:
            Number of keys removed (0 on failure)
        """
        prefix = f"{self.prefix}{namespace}:" if namespace else self.prefix
        try:
            return await self.backend.clear(prefix)
        except Exception as e:
            logger.warning("Cache clear failed for %s: %s", prefix, e)
            return 0

    async def stats(self) -> dict:
        """Return backend type and key count."""
        try:
            keys = await self.backend.size()
        except Exception as e:
            logger.warning("Cache stats failed: %s", e)
            keys = None
        return {"backend": self.backend_name, "keys": keys}

    async def ping(self) -> bool:
        """Check backend health."""
        try:
            return await self.backend.ping()
        except Exception:
            return False
