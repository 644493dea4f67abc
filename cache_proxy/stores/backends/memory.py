"""
Cache Proxy — Memory Store Backend

In-memory store with LRU eviction and millisecond TTL support.
Safe for concurrent coroutines within a single process.
"""

import asyncio
import logging
import time
from collections import OrderedDict
from typing import Any

from ..interface import MISSING, CacheStore

logger = logging.getLogger(__name__)


class MemoryStore(CacheStore):
    """
    In-memory store backend with LRU eviction.

    Features:
    - LRU eviction when max_size is reached
    - Per-key TTL in milliseconds
    - asyncio.Lock around every operation
    - O(1) get/set/delete operations

    Values are kept by reference, with no copy or serialization: mutating a
    value returned by get() changes the stored entry. RedisStore returns a
    fresh deserialized object instead.
    """

    def __init__(
        self,
        max_size: int = 1000,
        default_ttl: int | None = None,
        namespace: str = "cache",
    ):
        """
        Initialize memory store backend.

        Args:
            max_size: Maximum number of entries (LRU eviction when exceeded)
            default_ttl: TTL in milliseconds applied when set() gets ttl=None
                (None or 0 = no expiry)
            namespace: Key namespace/prefix
        """
        if max_size < 1:
            raise ValueError("max_size must be at least 1")

        self.max_size = max_size
        self.default_ttl = default_ttl
        self.namespace = namespace

        # key -> (value, monotonic expiry or None)
        self._cache: OrderedDict[str, tuple[Any, float | None]] = OrderedDict()

        self._hits = 0
        self._misses = 0
        self._sets = 0
        self._deletes = 0
        self._evictions = 0

        self._lock = asyncio.Lock()

    def _make_key(self, key: str) -> str:
        """Create namespaced key."""
        return f"{self.namespace}:{key}"

    def _expiry_for(self, ttl: int | None) -> float | None:
        """Convert a millisecond ttl into an absolute monotonic deadline."""
        if ttl is None:
            ttl = self.default_ttl
        if not ttl or ttl <= 0:
            return None
        return time.monotonic() + ttl / 1000

    @staticmethod
    def _is_expired(expiry: float | None) -> bool:
        if expiry is None:
            return False
        return time.monotonic() >= expiry

    def _store(self, cache_key: str, value: Any, expiry: float | None) -> None:
        """Insert an entry, evicting the least recently used one if full. Caller holds the lock."""
        if cache_key not in self._cache and len(self._cache) >= self.max_size:
            evicted_key, _ = self._cache.popitem(last=False)
            self._evictions += 1
            logger.debug("Evicted key from memory store: %s", evicted_key)

        self._cache[cache_key] = (value, expiry)
        self._cache.move_to_end(cache_key)
        self._sets += 1

    async def get(self, key: str) -> Any:
        """Retrieve value from the store, MISSING if absent or expired."""
        if not key:
            logger.warning("Attempted to get store value with empty key")
            return MISSING

        async with self._lock:
            cache_key = self._make_key(key)

            if cache_key not in self._cache:
                self._misses += 1
                return MISSING

            value, expiry = self._cache[cache_key]

            if self._is_expired(expiry):
                del self._cache[cache_key]
                self._misses += 1
                return MISSING

            # Mark as recently used
            self._cache.move_to_end(cache_key)
            self._hits += 1

            return value

    async def set(
        self,
        key: str,
        value: Any,
        ttl: int | None = None,
    ) -> bool:
        """Store value with an optional ttl in milliseconds."""
        if not key:
            logger.warning("Attempted to set store value with empty key")
            return False

        async with self._lock:
            self._store(self._make_key(key), value, self._expiry_for(ttl))
            return True

    async def delete(self, key: str) -> bool:
        """Delete key from the store."""
        if not key:
            return False

        async with self._lock:
            cache_key = self._make_key(key)

            if cache_key in self._cache:
                del self._cache[cache_key]
                self._deletes += 1
                return True

            return False

    async def exists(self, key: str) -> bool:
        """Check if key exists and is not expired."""
        if not key:
            return False

        async with self._lock:
            cache_key = self._make_key(key)

            if cache_key not in self._cache:
                return False

            _, expiry = self._cache[cache_key]

            if self._is_expired(expiry):
                del self._cache[cache_key]
                return False

            return True

    async def clear(self) -> bool:
        """Clear all entries."""
        async with self._lock:
            size = len(self._cache)
            self._cache.clear()
            logger.info(f"Cleared {size} entries from memory store namespace '{self.namespace}'")
            return True

    async def get_stats(self) -> dict[str, Any]:
        """Get store statistics."""
        async with self._lock:
            total_requests = self._hits + self._misses
            hit_rate = (self._hits / total_requests * 100) if total_requests > 0 else 0.0

            return {
                "backend": "memory",
                "size": len(self._cache),
                "max_size": self.max_size,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(hit_rate, 2),
                "sets": self._sets,
                "deletes": self._deletes,
                "evictions": self._evictions,
                "namespace": self.namespace,
            }

    async def close(self) -> None:
        """Close the store. Entries stay in memory until the object is dropped."""
        logger.debug(f"Memory store backend closed for namespace '{self.namespace}'")

    async def get_many(self, keys: list[str]) -> dict[str, Any]:
        """Retrieve multiple values under a single lock acquisition."""
        if not keys:
            return {}

        async with self._lock:
            result = {}

            for key in keys:
                if not key:
                    continue

                cache_key = self._make_key(key)

                if cache_key in self._cache:
                    value, expiry = self._cache[cache_key]

                    if not self._is_expired(expiry):
                        result[key] = value
                        self._cache.move_to_end(cache_key)
                        self._hits += 1
                    else:
                        del self._cache[cache_key]
                        self._misses += 1
                else:
                    self._misses += 1

            return result

    async def set_many(
        self,
        items: dict[str, Any],
        ttl: int | None = None,
    ) -> int:
        """Store multiple values sharing one ttl."""
        if not items:
            return 0

        async with self._lock:
            count = 0
            expiry = self._expiry_for(ttl)

            for key, value in items.items():
                if not key:
                    continue
                self._store(self._make_key(key), value, expiry)
                count += 1

            return count

    async def delete_many(self, keys: list[str]) -> int:
        """Delete multiple keys."""
        if not keys:
            return 0

        async with self._lock:
            count = 0

            for key in keys:
                if not key:
                    continue

                cache_key = self._make_key(key)

                if cache_key in self._cache:
                    del self._cache[cache_key]
                    self._deletes += 1
                    count += 1

            return count
