"""
Cache Proxy — Mapping Store

Adapts a plain MutableMapping (dict, WeakValueDictionary, shelve, ...) to the
store interface. Entries never expire; ttl values are accepted and ignored.
"""

import logging
from collections.abc import MutableMapping
from typing import Any

from .interface import MISSING, CacheStore

logger = logging.getLogger(__name__)


class MappingStore(CacheStore):
    """Store backed by a caller-owned mapping."""

    def __init__(self, mapping: MutableMapping[str, Any] | None = None):
        self.mapping: MutableMapping[str, Any] = {} if mapping is None else mapping
        self._hits = 0
        self._misses = 0
        self._sets = 0

    async def get(self, key: str) -> Any:
        value = self.mapping.get(key, MISSING)
        if value is MISSING:
            self._misses += 1
        else:
            self._hits += 1
        return value

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        if ttl:
            logger.debug("MappingStore ignores ttl=%sms for key %s", ttl, key)
        self.mapping[key] = value
        self._sets += 1
        return True

    async def delete(self, key: str) -> bool:
        if key in self.mapping:
            del self.mapping[key]
            return True
        return False

    async def exists(self, key: str) -> bool:
        return key in self.mapping

    async def clear(self) -> bool:
        self.mapping.clear()
        return True

    async def get_stats(self) -> dict[str, Any]:
        total_requests = self._hits + self._misses
        return {
            "backend": "mapping",
            "size": len(self.mapping),
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / total_requests * 100, 2) if total_requests else 0.0,
            "sets": self._sets,
        }

    async def close(self) -> None:
        # The mapping belongs to the caller
        pass
