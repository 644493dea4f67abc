"""
Cache Proxy — Store Factory Integration Tests

Tests named store creation, registry behaviour, configuration and lifecycle.
"""

import asyncio
import socket
from collections.abc import AsyncGenerator
from typing import Any

import pytest

from cache_proxy.config import StoreBackend, StoreConfig, reload_settings
from cache_proxy.errors import ConfigurationError
from cache_proxy.memo import ProcessMemo
from cache_proxy.stores import (
    MISSING,
    CacheStore,
    MemoryStore,
    close_all_stores,
    create_store,
    get_store,
    list_store_instances,
    reset_store_factory,
)

# Check if Redis is available
try:
    with socket.create_connection(("localhost", 6379), timeout=1):
        redis_available = True
except OSError:
    redis_available = False


class TestStoreFactory:
    """Test suite for store factory functionality."""

    @pytest.fixture(autouse=True)
    async def cleanup(self) -> AsyncGenerator[None, None]:
        """Close store instances after each test."""
        yield
        await close_all_stores()
        reset_store_factory()

    async def test_create_memory_store_default(self, mock_env_memory: None) -> None:
        """Default creation follows loaded settings."""
        reload_settings()
        store = create_store()

        assert isinstance(store, CacheStore)
        assert isinstance(store, MemoryStore)
        assert store.max_size == 100
        assert store.default_ttl == 60000

        await store.set("test_key", "test_value")
        assert await store.get("test_key") == "test_value"

    async def test_create_memory_store_explicit_config(self) -> None:
        config = StoreConfig(backend=StoreBackend.MEMORY, namespace="test_ns", max_size=50, default_ttl_ms=1_800_000)
        store = create_store(config=config, name="custom")

        await store.set("key1", "value1")
        assert await store.get("key1") == "value1"
        assert (await store.get_stats())["namespace"] == "test_ns"

    @pytest.mark.skipif(not redis_available, reason="Redis server not available")
    async def test_create_redis_store_with_config(self, test_redis_url: str) -> None:
        config = StoreConfig(backend=StoreBackend.REDIS, redis_url=test_redis_url, namespace="test_redis")
        store = create_store(config=config, name="redis_test")

        await store.set("key1", "value1", ttl=60_000)
        assert await store.get("key1") == "value1"
        await store.clear()

    async def test_same_name_same_instance(self) -> None:
        assert create_store(name="singleton_test") is create_store(name="singleton_test")

    async def test_existing_instance_ignores_new_config(self) -> None:
        first = create_store(StoreConfig(max_size=5), name="fixed")
        second = create_store(StoreConfig(max_size=50), name="fixed")

        assert second is first
        assert second.max_size == 5

    async def test_multiple_named_instances(self) -> None:
        store1 = create_store(name="store1")
        store2 = create_store(name="store2")
        assert store1 is not store2

        await store1.set("key", "value1")
        await store2.set("key", "value2")

        assert await store1.get("key") == "value1"
        assert await store2.get("key") == "value2"

    async def test_get_store_returns_existing(self) -> None:
        store1 = create_store(name="existing")
        await store1.set("key", "value")

        store2 = get_store("existing")
        assert store1 is store2
        assert await store2.get("key") == "value"

    async def test_default_store_name(self) -> None:
        assert create_store() is get_store()
        assert "default" in list_store_instances()

    async def test_list_store_instances(self) -> None:
        assert list_store_instances() == []

        create_store(name="store1")
        create_store(name="store2")
        create_store(name="store3")

        assert sorted(list_store_instances()) == ["store1", "store2", "store3"]

    async def test_close_all_stores(self) -> None:
        await create_store(name="store1").set("key", "value")
        await create_store(name="store2").set("key", "value")

        await close_all_stores()
        assert list_store_instances() == []

    async def test_close_errors_do_not_stop_others(self, memo: ProcessMemo) -> None:
        closed: list[str] = []

        class FailingStore(MemoryStore):
            async def close(self) -> None:
                raise RuntimeError("close failed")

        class TrackingStore(MemoryStore):
            async def close(self) -> None:
                closed.append(self.namespace)

        memo.get_or_compute("cache_proxy.store:bad", FailingStore)
        memo.get_or_compute("cache_proxy.store:good", lambda: TrackingStore(namespace="good"))

        await close_all_stores(memo)

        assert closed == ["good"]
        assert list_store_instances(memo) == []

    async def test_reset_store_factory(self) -> None:
        create_store(name="store1")
        create_store(name="store2")
        assert len(list_store_instances()) == 2

        reset_store_factory()
        assert list_store_instances() == []

    async def test_injected_memo_is_isolated(self, memo: ProcessMemo) -> None:
        mine = create_store(name="shared", memo=memo)
        default = create_store(name="shared")

        assert mine is not default
        assert list_store_instances(memo) == ["shared"]
        assert get_store("shared", memo=memo) is mine

    async def test_registry_leaves_other_memo_entries(self, memo: ProcessMemo) -> None:
        memo.get_or_compute("sdk-client", object)
        create_store(name="a", memo=memo)

        reset_store_factory(memo)
        assert "sdk-client" in memo
        assert list_store_instances(memo) == []

    async def test_redis_without_url_rejected(self) -> None:
        config = StoreConfig.model_construct(backend=StoreBackend.REDIS, redis_url=None)

        with pytest.raises(ConfigurationError):
            create_store(config=config, name="no_url")
        assert "no_url" not in list_store_instances()

    async def test_concurrent_factory_calls(self) -> None:
        async def create_and_use(name: str) -> Any:
            store = create_store(name=name)
            await store.set("key", name)
            return await store.get("key")

        results = await asyncio.gather(
            create_and_use("store1"),
            create_and_use("store2"),
            create_and_use("store3"),
            create_and_use("store1"),
        )

        assert results == ["store1", "store2", "store3", "store1"]
        assert len(list_store_instances()) == 3

    async def test_ttl_configuration(self) -> None:
        store = create_store(config=StoreConfig(default_ttl_ms=50), name="ttl_test")

        await store.set("key", "value", ttl=None)
        assert await store.get("key") == "value"

        await asyncio.sleep(0.1)
        assert await store.get("key") is MISSING

    async def test_max_size_configuration(self) -> None:
        store = create_store(config=StoreConfig(max_size=3), name="maxsize_test")

        for i in range(4):
            await store.set(f"key{i}", i)

        stats = await store.get_stats()
        assert stats["evictions"] == 1
        assert stats["size"] == 3
