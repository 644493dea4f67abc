"""
Cache Proxy — Redis Store Backend

Asynchronous Redis store implementation with:
- JSON serialization for values
- Per-key TTL in milliseconds (PX)
- Namespace prefixing for safe multi-tenant usage
- Batch operations using MGET, pipelines and chunked DEL

Requires: redis>=5.0 with asyncio support

Example:
    store = RedisStore(redis_url="redis://localhost:6379", namespace="api", default_ttl=600_000)
    await store.set("greeting", {"msg": "hello"}, ttl=60_000)
    val = await store.get("greeting")
"""

from __future__ import annotations

import json
import logging
from typing import Any

from ...errors import StoreConnectionError, StoreOperationError
from ..interface import MISSING, CacheStore

logger = logging.getLogger(__name__)

try:
    from redis.asyncio import Redis
    from redis.exceptions import ConnectionError as RedisConnectionError
except ImportError as e:  # pragma: no cover
    raise ImportError(
        "Redis async client is required but not installed. "
        "Install with: pip install 'redis>=5.0.0' or add 'redis' to your dependencies."
    ) from e


class RedisStore(CacheStore):
    """
    Redis store backend with JSON serialization and TTL.

    Notes:
    - Keys are prefixed with the configured namespace to avoid collisions.
    - Values are stored as UTF-8 JSON strings; only JSON-compatible values can be cached.
    - TTL is applied via Redis PX milliseconds (None -> default_ttl, 0 -> no expiry).
    - Connection failures raise StoreConnectionError, other failures StoreOperationError,
      both chained from the redis error.
    """

    def __init__(
        self,
        redis_url: str,
        namespace: str = "cache",
        default_ttl: int = 0,
        max_connections: int = 10,
        socket_timeout: int = 5,
    ) -> None:
        """
        Initialize Redis store backend.

        Args:
            redis_url: Connection URL, e.g., redis://localhost:6379/0 or rediss:// for TLS
            namespace: Prefix for all keys
            default_ttl: Default TTL in milliseconds (0 => no expiry)
            max_connections: Connection pool size
            socket_timeout: Socket timeout in seconds
        """
        if not redis_url:
            raise ValueError("redis_url is required")

        self.namespace = namespace.strip() or "cache"
        self.default_ttl = max(0, int(default_ttl))
        self._hits = 0
        self._misses = 0
        self._sets = 0
        self._deletes = 0

        # Lazy connection; connects on first command
        self._client = Redis.from_url(  # type: ignore[call-overload]
            url=redis_url,
            decode_responses=True,
            max_connections=max_connections,
            socket_timeout=socket_timeout,
        )

    # ------------ Helpers ------------

    def _make_key(self, key: str) -> str:
        """Create namespaced key."""
        return f"{self.namespace}:{key}"

    @staticmethod
    def _to_json(value: Any) -> str:
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))

    @staticmethod
    def _from_json(data: str | bytes) -> Any:
        """Deserialize a stored payload. Non-JSON payloads are returned raw."""
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        try:
            return json.loads(data)
        except ValueError as e:
            logger.warning(
                f"Failed to decode JSON from store, returning raw data: {e}",
                extra={"data_preview": data[:100], "error": str(e)},
            )
            return data

    def _ttl_millis(self, ttl: int | None) -> int | None:
        """
        Normalize TTL:
        - None -> default_ttl
        - 0 or negative -> no expiry (return None)
        - positive -> provided ttl
        """
        if ttl is None:
            ttl = self.default_ttl
        ttl = int(ttl)
        return ttl if ttl > 0 else None

    # ------------ Core Interface ------------

    async def get(self, key: str) -> Any:
        """Retrieve a value by key, MISSING if absent."""
        try:
            data = await self._client.get(self._make_key(key))
        except RedisConnectionError as e:
            raise StoreConnectionError("redis", details={"key": key, "namespace": self.namespace, "error": str(e)}) from e
        except Exception as e:
            logger.error(
                f"Failed to get key '{key}' from Redis: {e}",
                extra={"key": key, "namespace": self.namespace, "error": str(e)},
                exc_info=True,
            )
            raise StoreOperationError(
                f"Redis GET failed for key '{key}'",
                details={"key": key, "namespace": self.namespace, "error": str(e)},
            ) from e

        if data is None:
            self._misses += 1
            return MISSING

        self._hits += 1
        return self._from_json(data)

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """Store a value with optional TTL in milliseconds."""
        try:
            payload = self._to_json(value)
        except (TypeError, ValueError) as e:
            logger.error(
                f"Failed to serialize value for key '{key}': {e}",
                extra={"key": key, "value_type": type(value).__name__, "error": str(e)},
            )
            raise StoreOperationError(
                f"Value for key '{key}' is not JSON-serializable",
                details={"key": key, "value_type": type(value).__name__, "error": str(e)},
            ) from e

        try:
            res = await self._client.set(name=self._make_key(key), value=payload, px=self._ttl_millis(ttl))
        except RedisConnectionError as e:
            raise StoreConnectionError("redis", details={"key": key, "namespace": self.namespace, "error": str(e)}) from e
        except Exception as e:
            logger.error(
                f"Failed to set key '{key}' in Redis: {e}",
                extra={"key": key, "namespace": self.namespace, "ttl": ttl, "error": str(e)},
                exc_info=True,
            )
            raise StoreOperationError(
                f"Redis SET failed for key '{key}'",
                details={"key": key, "namespace": self.namespace, "ttl": ttl, "error": str(e)},
            ) from e

        # redis-py returns True or 'OK' depending on decode_responses
        success = bool(res)
        if success:
            self._sets += 1
        return success

    async def delete(self, key: str) -> bool:
        """Delete a single key."""
        try:
            deleted = await self._client.delete(self._make_key(key))
        except Exception as e:
            raise StoreOperationError(
                f"Redis DEL failed for key '{key}'",
                details={"key": key, "namespace": self.namespace, "error": str(e)},
            ) from e
        if deleted:
            self._deletes += 1
        return bool(deleted)

    async def exists(self, key: str) -> bool:
        """Check if a key exists."""
        try:
            return bool(await self._client.exists(self._make_key(key)))
        except Exception as e:
            raise StoreOperationError(
                f"Redis EXISTS failed for key '{key}'",
                details={"key": key, "namespace": self.namespace, "error": str(e)},
            ) from e

    async def clear(self) -> bool:
        """
        Clear all entries under the namespace.

        Implementation: SCAN match "<namespace>:*" and DEL in batches.
        """
        pattern = f"{self.namespace}:*"
        cursor = 0
        total_deleted = 0
        batch_size = 1000

        try:
            while True:
                cursor, keys = await self._client.scan(cursor=cursor, match=pattern, count=batch_size)
                if keys:
                    total_deleted += await self._client.delete(*keys)
                if cursor == 0:
                    break
        except Exception as e:
            logger.error(
                f"Failed to clear store for namespace '{self.namespace}': {e}",
                extra={"namespace": self.namespace, "error": str(e)},
                exc_info=True,
            )
            raise StoreOperationError(
                f"Redis clear failed for namespace '{self.namespace}'",
                details={"namespace": self.namespace, "error": str(e)},
            ) from e

        self._deletes += total_deleted
        logger.info(f"Cleared {total_deleted} keys from namespace '{self.namespace}'")
        return True

    async def get_stats(self) -> dict[str, Any]:
        """Return store statistics and basic Redis info."""
        total_requests = self._hits + self._misses
        stats: dict[str, Any] = {
            "backend": "redis",
            "namespace": self.namespace,
            "default_ttl": self.default_ttl,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round((self._hits / total_requests) * 100, 2) if total_requests else 0.0,
            "sets": self._sets,
            "deletes": self._deletes,
            "connected": False,
        }

        try:
            stats["connected"] = bool(await self._client.ping())
            info = await self._client.info(section="server")
            stats["redis_version"] = info.get("redis_version")
            stats["redis_mode"] = info.get("redis_mode")
        except Exception as e:
            # INFO may be restricted; stats stay minimal
            logger.warning(f"Failed to get Redis INFO (restricted or unavailable): {e}", extra={"error": str(e)})

        return stats

    async def close(self) -> None:
        """Close the Redis client and release resources."""
        try:
            await self._client.aclose()
            logger.info(f"Closed Redis store backend for namespace '{self.namespace}'")
        finally:
            await self._client.connection_pool.disconnect()

    # ------------ Batch operations ------------

    async def get_many(self, keys: list[str]) -> dict[str, Any]:
        """
        Retrieve multiple values in one round-trip using MGET.
        Missing keys are omitted from the result.
        """
        if not keys:
            return {}

        try:
            values = await self._client.mget([self._make_key(k) for k in keys])
        except Exception as e:
            raise StoreOperationError(
                "Redis MGET failed",
                details={"key_count": len(keys), "namespace": self.namespace, "error": str(e)},
            ) from e

        result: dict[str, Any] = {}
        for k, raw in zip(keys, values, strict=True):
            if raw is None:
                self._misses += 1
                continue
            self._hits += 1
            result[k] = self._from_json(raw)

        return result

    async def set_many(self, items: dict[str, Any], ttl: int | None = None) -> int:
        """
        Store multiple values using a pipeline. Applies the same TTL to all items.
        Returns number of items successfully stored.
        """
        if not items:
            return 0

        px = self._ttl_millis(ttl)
        try:
            pipe = self._client.pipeline(transaction=False)
            for key, value in items.items():
                pipe.set(self._make_key(key), self._to_json(value), px=px)
            results = await pipe.execute()
        except Exception as e:
            raise StoreOperationError(
                "Redis pipelined SET failed",
                details={"key_count": len(items), "namespace": self.namespace, "ttl": ttl, "error": str(e)},
            ) from e

        success_count = sum(1 for r in results if r in (True, "OK", b"OK"))
        self._sets += success_count
        return success_count

    async def delete_many(self, keys: list[str]) -> int:
        """
        Delete multiple keys in chunks of 1000.
        Returns number of keys successfully deleted.
        """
        if not keys:
            return 0

        ns_keys = [self._make_key(k) for k in keys]
        deleted_total = 0
        chunk_size = 1000

        try:
            for i in range(0, len(ns_keys), chunk_size):
                deleted_total += int(await self._client.delete(*ns_keys[i : i + chunk_size]))
        except Exception as e:
            raise StoreOperationError(
                "Redis DEL failed",
                details={"key_count": len(keys), "namespace": self.namespace, "error": str(e)},
            ) from e

        self._deletes += deleted_total
        return deleted_total
