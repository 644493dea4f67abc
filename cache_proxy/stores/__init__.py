"""
Cache Proxy — Stores

Provides the store capability the proxy talks to, plus pluggable backends.

- interface.py: StoreCapability protocol, CacheStore ABC and the MISSING sentinel
- mapping.py: adapter for plain mutable mappings
- backends/: store backend implementations (memory always, redis lazily)
- factory.py: named store creation from configuration

Usage:
    from cache_proxy.stores import create_store

    store = create_store()
    await store.set("key", "value", ttl=60_000)
    value = await store.get("key")
"""

from .backends.memory import MemoryStore
from .factory import (
    close_all_stores,
    create_store,
    get_store,
    list_store_instances,
    reset_store_factory,
)
from .interface import MISSING, CacheStore, StoreCapability, is_missing
from .mapping import MappingStore

__all__ = [
    # Factory functions
    "create_store",
    "get_store",
    "close_all_stores",
    "list_store_instances",
    "reset_store_factory",
    # Interface
    "CacheStore",
    "StoreCapability",
    "MISSING",
    "is_missing",
    # Implementations
    "MemoryStore",
    "MappingStore",
]
