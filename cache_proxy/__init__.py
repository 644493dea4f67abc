"""
Cache Proxy — Transparent Memoization for Object APIs

Wraps any object so its methods (and the methods of every nested object
reached through attribute access) are served from a pluggable async store.

    from cache_proxy import cache_proxy, MemoryStore

    api = cache_proxy(MemoryStore(), ttl=600_000, prefix="api.")(client)
    user = await api.users.get(42)
"""

__version__ = "1.0.0"

from .errors import (
    CacheProxyError,
    ConfigurationError,
    ErrorCode,
    InvalidHookOutcomeError,
    KeyDerivationError,
    StoreConnectionError,
    StoreError,
    StoreOperationError,
)
from .hooks import CachedOutcome, FetchedOutcome, OnCachedHook, OnFetchedHook, Pass, Persist, Serve, Skip
from .keys import derive_key
from .memo import ProcessMemo, default_memo, global_cached
from .observability import JSONFormatter, ProxyMetrics, configure_logging, configure_logging_from_settings
from .proxy import CacheProxy, cache_proxy, unwrap
from .stores import (
    MISSING,
    CacheStore,
    MappingStore,
    MemoryStore,
    StoreCapability,
    close_all_stores,
    create_store,
    get_store,
    is_missing,
)

__all__ = [
    # Interception
    "cache_proxy",
    "CacheProxy",
    "unwrap",
    "derive_key",
    # Hooks
    "Pass",
    "Skip",
    "Serve",
    "Persist",
    "CachedOutcome",
    "FetchedOutcome",
    "OnCachedHook",
    "OnFetchedHook",
    # Stores
    "MISSING",
    "is_missing",
    "StoreCapability",
    "CacheStore",
    "MemoryStore",
    "MappingStore",
    "create_store",
    "get_store",
    "close_all_stores",
    # Process memo
    "ProcessMemo",
    "default_memo",
    "global_cached",
    # Observability
    "JSONFormatter",
    "ProxyMetrics",
    "configure_logging",
    "configure_logging_from_settings",
    # Errors
    "ErrorCode",
    "CacheProxyError",
    "ConfigurationError",
    "InvalidHookOutcomeError",
    "KeyDerivationError",
    "StoreError",
    "StoreConnectionError",
    "StoreOperationError",
]
