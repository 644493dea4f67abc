"""
Cache Proxy — Test Configuration and Shared Fixtures

Provides pytest configuration and shared fixtures for unit and integration tests.
"""

import os
import socket
from collections.abc import Generator
from typing import Any

import pytest

from cache_proxy.memo import ProcessMemo
from cache_proxy.stores import MemoryStore, reset_store_factory

# Verbose package logging under test
os.environ["LOG_LEVEL"] = "DEBUG"


def is_redis_available() -> bool:
    """Check if a Redis server is listening for tests."""
    try:
        with socket.create_connection(("localhost", 6379), timeout=1):
            return True
    except OSError:
        return False


class CallCounter:
    """Callable that records how often it ran and with which arguments."""

    def __init__(self, func: Any = None):
        self.func = func or (lambda *args, **kwargs: None)
        self.calls: list[tuple[tuple[Any, ...], dict[str, Any]]] = []

    @property
    def count(self) -> int:
        return len(self.calls)

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        self.calls.append((args, kwargs))
        return self.func(*args, **kwargs)


@pytest.fixture
def make_counter() -> type[CallCounter]:
    """Factory for call-counting callables."""
    return CallCounter


@pytest.fixture
def test_redis_url() -> str:
    """Get Redis URL for testing (database 15 for isolation)."""
    return os.environ.get("TEST_REDIS_URL", "redis://localhost:6379/15")


@pytest.fixture
def store() -> MemoryStore:
    """Fresh in-memory store without default expiry."""
    return MemoryStore(max_size=1000, namespace="test")


@pytest.fixture
def memo() -> ProcessMemo:
    """Isolated process memo."""
    return ProcessMemo()


@pytest.fixture
def mock_env_memory(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set environment variables for the memory store backend."""
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.setenv("CACHE_BACKEND", "memory")
    monkeypatch.setenv("CACHE_MAX_SIZE", "100")
    monkeypatch.setenv("CACHE_TTL_MS", "60000")
    monkeypatch.setenv("CACHE_NAMESPACE", "test")


@pytest.fixture
def mock_env_redis(monkeypatch: pytest.MonkeyPatch, test_redis_url: str) -> None:
    """Set environment variables for the Redis store backend."""
    if not is_redis_available():
        pytest.skip("Redis not available")
    monkeypatch.setenv("CACHE_BACKEND", "redis")
    monkeypatch.setenv("REDIS_URL", test_redis_url)
    monkeypatch.setenv("REDIS_MAX_CONNECTIONS", "5")
    monkeypatch.setenv("REDIS_SOCKET_TIMEOUT", "2")
    monkeypatch.setenv("CACHE_TTL_MS", "60000")
    monkeypatch.setenv("CACHE_NAMESPACE", "test")


@pytest.fixture(autouse=True)
def reset_store_registry() -> Generator[None, None, None]:
    """Reset the store factory after each test to prevent state leakage."""
    yield
    reset_store_factory()
