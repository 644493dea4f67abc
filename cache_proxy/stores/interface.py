"""
Cache Proxy — Store Interface

Defines the store capability the proxy needs and the full interface the
bundled backends implement.

TTL values are expressed in milliseconds throughout.
"""

from abc import ABC, abstractmethod
from typing import Any, Final, Protocol, runtime_checkable


class _Missing:
    """Type of the MISSING sentinel."""

    _instance: "_Missing | None" = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "MISSING"


# Returned by a store's get() when no entry exists for the key.
# Any other value, None included, is a stored entry.
MISSING: Final = _Missing()


def is_missing(value: Any) -> bool:
    """Return True if value is the MISSING sentinel."""
    return value is MISSING


@runtime_checkable
class StoreCapability(Protocol):
    """
    Minimal store contract required by CacheProxy.

    get() returns MISSING for absent or expired keys. set() with ttl=None
    requests no expiry; the store's own default applies.
    """

    async def get(self, key: str) -> Any: ...

    async def set(self, key: str, value: Any, ttl: int | None = None) -> Any: ...


class CacheStore(ABC):
    """
    Abstract base class for store backends.

    All bundled backends implement this interface to ensure consistent
    behavior across different storage engines (memory, Redis, etc.).
    Errors are raised to the caller, not swallowed.
    """

    @abstractmethod
    async def get(self, key: str) -> Any:
        """
        Retrieve a value from the store.

        Args:
            key: Cache key

        Returns:
            Stored value if found and not expired, MISSING otherwise
        """
        pass

    @abstractmethod
    async def set(
        self,
        key: str,
        value: Any,
        ttl: int | None = None,
    ) -> bool:
        """
        Store a value.

        Args:
            key: Cache key
            value: Value to store
            ttl: Time-to-live in milliseconds (None = store default, 0 = no expiry)

        Returns:
            True if stored successfully
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """
        Delete a key from the store.

        Args:
            key: Cache key to delete

        Returns:
            True if key was deleted, False if key didn't exist
        """
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """
        Check if a key exists in the store.

        Args:
            key: Cache key to check

        Returns:
            True if key exists and is not expired, False otherwise
        """
        pass

    @abstractmethod
    async def clear(self) -> bool:
        """
        Clear all entries from the store.

        Returns:
            True if the store was cleared successfully
        """
        pass

    @abstractmethod
    async def get_stats(self) -> dict[str, Any]:
        """
        Get store statistics.

        Returns:
            Dictionary with statistics (hits, misses, size, etc.)
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """
        Close the backend and release resources.

        Should be called during graceful shutdown.
        """
        pass

    async def get_many(self, keys: list[str]) -> dict[str, Any]:
        """
        Retrieve multiple values from the store.

        Default implementation calls get() for each key.
        Backends can override for better performance.

        Args:
            keys: List of cache keys

        Returns:
            Dictionary mapping keys to values (missing keys are omitted)
        """
        result = {}
        for key in keys:
            value = await self.get(key)
            if value is not MISSING:
                result[key] = value
        return result

    async def set_many(
        self,
        items: dict[str, Any],
        ttl: int | None = None,
    ) -> int:
        """
        Store multiple values.

        Default implementation calls set() for each item.

        Args:
            items: Dictionary mapping keys to values
            ttl: Time-to-live in milliseconds (applies to all items)

        Returns:
            Number of items successfully stored
        """
        count = 0
        for key, value in items.items():
            if await self.set(key, value, ttl):
                count += 1
        return count

    async def delete_many(self, keys: list[str]) -> int:
        """
        Delete multiple keys from the store.

        Default implementation calls delete() for each key.

        Args:
            keys: List of cache keys to delete

        Returns:
            Number of keys successfully deleted
        """
        count = 0
        for key in keys:
            if await self.delete(key):
                count += 1
        return count
