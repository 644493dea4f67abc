"""
Cache Proxy — Store Factory

Creates store backends from configuration and keeps named instances in a
ProcessMemo so they are built once per process.

Key points:
- Select the backend with CACHE_BACKEND=memory|redis (memory by default)
- When redis is selected, redis must be installed and REDIS_URL must be set
- All configuration is typed and validated via Pydantic models

Examples:
    from cache_proxy.stores import create_store

    # Uses env-configured backend (memory by default)
    store = create_store()

    # Or explicitly supply a StoreConfig (e.g., for tests)
    from cache_proxy.config import StoreBackend, StoreConfig
    cfg = StoreConfig(backend=StoreBackend.MEMORY, default_ttl_ms=600_000)
    mem_store = create_store(cfg, name="test")
"""

from __future__ import annotations

import logging

from ..config.loader import get_settings
from ..config.schemas import StoreBackend, StoreConfig
from ..errors import ConfigurationError
from ..memo import ProcessMemo, default_memo
from .backends.memory import MemoryStore
from .interface import CacheStore

logger = logging.getLogger(__name__)

_NAME_PREFIX = "cache_proxy.store:"


def _memo_name(name: str) -> str:
    return f"{_NAME_PREFIX}{name}"


def _create_memory_store(config: StoreConfig) -> CacheStore:
    return MemoryStore(
        max_size=config.max_size,
        default_ttl=config.default_ttl_ms,
        namespace=config.namespace,
    )


def _create_redis_store(config: StoreConfig) -> CacheStore:
    """Construct a redis store backend, importing the client lazily."""
    if not config.redis_url:
        raise ConfigurationError(
            "REDIS_URL must be set when CACHE_BACKEND=redis",
            details={"env": "REDIS_URL", "backend": "redis"},
        )

    try:
        from .backends.redis import RedisStore
    except ImportError as e:
        logger.error(
            "Redis backend selected but redis client is not installed",
            extra={"package": "redis>=5.0.0", "error": str(e)},
        )
        raise ConfigurationError(
            "Redis backend selected but redis client is unavailable. "
            "Install with: pip install 'redis>=5.0.0' or add to dependencies.",
            details={"package": "redis>=5.0.0", "error": str(e), "backend": "redis"},
        ) from e

    return RedisStore(
        redis_url=config.redis_url,
        namespace=config.namespace,
        default_ttl=config.default_ttl_ms,
        max_connections=config.redis_max_connections,
        socket_timeout=config.redis_socket_timeout,
    )


def _build_store(config: StoreConfig, name: str) -> CacheStore:
    logger.info(
        "Creating store instance '%s' with backend: %s",
        name,
        config.backend.value,
        extra={"store_name": name, "backend": config.backend.value},
    )

    if config.backend == StoreBackend.MEMORY:
        store = _create_memory_store(config)
    elif config.backend == StoreBackend.REDIS:
        store = _create_redis_store(config)
    else:  # pragma: no cover
        raise ConfigurationError(
            f"Unknown store backend: {config.backend}",
            details={"backend": str(config.backend), "supported": [b.value for b in StoreBackend]},
        )

    logger.info(
        "Store instance '%s' created successfully",
        name,
        extra={"store_name": name, "backend": config.backend.value},
    )
    return store


def create_store(
    config: StoreConfig | None = None,
    name: str = "default",
    memo: ProcessMemo | None = None,
) -> CacheStore:
    """
    Create a store backend instance, or return the one already registered under name.

    Args:
        config: Store configuration (uses loaded settings if not provided)
        name: Instance name (for multiple stores)
        memo: Registry to keep instances in (defaults to the process-wide memo)

    Returns:
        Configured store backend instance

    Raises:
        ConfigurationError: If configuration is invalid or backend unavailable
    """
    if memo is None:
        memo = default_memo()

    key = _memo_name(name)
    if key in memo:
        logger.debug("Returning existing store instance: %s", name)
        return memo.get(key)  # type: ignore[no-any-return]

    resolved = config if config is not None else get_settings().store
    return memo.get_or_compute(key, lambda: _build_store(resolved, name))


def get_store(name: str = "default", memo: ProcessMemo | None = None) -> CacheStore:
    """
    Get a store instance by name, creating it from loaded settings if needed.
    """
    return create_store(name=name, memo=memo)


def list_store_instances(memo: ProcessMemo | None = None) -> list[str]:
    """List registered store instance names."""
    if memo is None:
        memo = default_memo()
    return [n[len(_NAME_PREFIX) :] for n in memo.names() if n.startswith(_NAME_PREFIX)]


async def close_all_stores(memo: ProcessMemo | None = None) -> None:
    """
    Close all registered store instances and drop them from the registry.

    Close failures are logged and do not stop the remaining stores from closing.
    """
    if memo is None:
        memo = default_memo()

    names = list_store_instances(memo)
    if not names:
        logger.debug("No store instances to close")
        return

    logger.info("Closing %d store instance(s)...", len(names))

    for name in names:
        store = memo.get(_memo_name(name))
        try:
            await store.close()
            logger.info("Closed store instance: %s", name)
        except Exception as e:
            logger.error(
                "Error closing store instance '%s': %s",
                name,
                e,
                extra={"store_name": name, "error": str(e)},
                exc_info=True,
            )
        finally:
            memo.forget(_memo_name(name))

    logger.info("All store instances closed")


def reset_store_factory(memo: ProcessMemo | None = None) -> None:
    """
    Drop all store instance references without closing them.

    Warning: Only use this in testing contexts.
    """
    if memo is None:
        memo = default_memo()

    names = list_store_instances(memo)
    for name in names:
        memo.forget(_memo_name(name))
    logger.debug("Reset store factory, cleared %d instance reference(s)", len(names))
