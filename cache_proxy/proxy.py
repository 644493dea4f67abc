"""
Cache Proxy — Interception Layer

Wraps an object so that every method reachable through attribute access is
memoized in a store:

    wrap = cache_proxy(store=MemoryStore(), ttl=600_000, prefix="github.")
    gh = wrap(client)

    await gh.repos.get(owner="octo", repo="hello")   # miss: calls client, stores result
    await gh.repos.get(owner="octo", repo="hello")   # hit: served from the store

Attribute access on a proxy resolves as follows:
- callables become coroutine functions that go through the cache
- nested objects become proxies with the prefix extended by "<name>."
- scalars, strings, containers and None are returned as-is

Every non-dunder name resolves on the target; the proxy has no public or
private attributes of its own that could hide one.

Nested proxies are built on every access and share the parent's store.
Concurrent calls with the same key are not coalesced: each may miss, call the
method and write its result.
"""

import datetime
import functools
import logging
import numbers
import uuid
from collections.abc import Callable, Mapping, MutableMapping
from enum import Enum
from pathlib import PurePath
from typing import Any

from pydantic import ValidationError

from .config.schemas import WrapConfig
from .errors import ConfigurationError
from .hooks import OnCachedHook, OnFetchedHook, apply_cached_outcome, apply_fetched_outcome, resolve
from .keys import derive_key
from .stores.interface import MISSING

logger = logging.getLogger(__name__)

# Attribute values of these types are data, not sub-APIs
_PASSTHROUGH_TYPES: tuple[type, ...] = (
    type(None),
    bool,
    numbers.Number,
    str,
    bytes,
    bytearray,
    memoryview,
    list,
    tuple,
    set,
    frozenset,
    Enum,
    datetime.date,
    datetime.time,
    datetime.timedelta,
    uuid.UUID,
    PurePath,
)


def _is_dunder(name: str) -> bool:
    return name.startswith("__") and name.endswith("__")


def _lookup(target: Any, name: str) -> Any:
    """Resolve name on target; mapping keys take precedence over attributes."""
    if isinstance(target, Mapping):
        try:
            return target[name]
        except KeyError:
            pass
    return getattr(target, name)


class CacheProxy:
    """
    Memoizing stand-in for an object.

    Exposes the same attribute names as the target. See the module docstring
    for how each attribute is exposed.
    """

    __slots__ = ("_proxy_target", "_proxy_config")

    _proxy_target: Any
    _proxy_config: WrapConfig

    def __init__(self, target: Any, config: WrapConfig):
        object.__setattr__(self, "_proxy_target", target)
        object.__setattr__(self, "_proxy_config", config)

    def __getattribute__(self, name: str) -> Any:
        target = _target_of(self)
        if _is_dunder(name):
            try:
                return object.__getattribute__(self, name)
            except AttributeError:
                return getattr(target, name)

        return _expose(_config_of(self), name, _lookup(target, name))

    def __setattr__(self, name: str, value: Any) -> None:
        target = _target_of(self)
        if isinstance(target, MutableMapping):
            target[name] = value
        else:
            setattr(target, name, value)

    def __delattr__(self, name: str) -> None:
        target = _target_of(self)
        if isinstance(target, MutableMapping) and name in target:
            del target[name]
        else:
            delattr(target, name)

    def __dir__(self) -> list[str]:
        target = _target_of(self)
        names = set(dir(target))
        if isinstance(target, Mapping):
            names.update(k for k in target if isinstance(k, str))
        return sorted(names)

    def __repr__(self) -> str:
        return f"<CacheProxy prefix={_config_of(self).prefix!r} target={_target_of(self)!r}>"


# Proxy state is read through object.__getattribute__ so that no attribute
# name of the target is shadowed by the proxy itself.


def _target_of(proxy: CacheProxy) -> Any:
    return object.__getattribute__(proxy, "_proxy_target")


def _config_of(proxy: CacheProxy) -> WrapConfig:
    return object.__getattribute__(proxy, "_proxy_config")  # type: ignore[no-any-return]


def _expose(config: WrapConfig, name: str, value: Any) -> Any:
    if callable(value):
        return _intercept(config, name, value)
    if isinstance(value, _PASSTHROUGH_TYPES):
        return value
    return CacheProxy(value, config.descend(name))


def _intercept(config: WrapConfig, name: str, method: Callable[..., Any]) -> Callable[..., Any]:
    """Build the caching coroutine function standing in for method."""
    store = config.store

    async def cached_call(*args: Any, **kwargs: Any) -> Any:
        key = derive_key(config.prefix, name, args, kwargs)

        cached = await resolve(store.get(key))

        if config.on_cached is not None:
            outcome = await resolve(config.on_cached(key, cached))
            decision = apply_cached_outcome(outcome, key, cached)
            if decision.serve:
                logger.debug("Serving %s from on_cached", key, extra={"cache_key": key})
                return decision.value
        elif cached is not MISSING:
            logger.debug("Cache hit: %s", key, extra={"cache_key": key})
            return cached

        logger.debug("Cache miss: %s", key, extra={"cache_key": key})
        fresh = await resolve(method(*args, **kwargs))

        value, ttl = fresh, config.ttl
        if config.on_fetched is not None:
            outcome = await resolve(config.on_fetched(key, fresh))
            fetched = apply_fetched_outcome(outcome, key, fresh, config.ttl)
            if not fetched.persist:
                logger.debug("Not storing %s (skipped by on_fetched)", key, extra={"cache_key": key})
                return fresh
            value, ttl = fetched.value, fetched.ttl

        await resolve(store.set(key, value, ttl))
        logger.debug("Stored %s", key, extra={"cache_key": key, "ttl_ms": ttl})
        return value

    functools.update_wrapper(cached_call, method, updated=())
    return cached_call


def unwrap(proxy: Any) -> Any:
    """Return the object a CacheProxy wraps (or the argument itself if it is not a proxy)."""
    if isinstance(proxy, CacheProxy):
        return _target_of(proxy)
    return proxy


def cache_proxy(
    store: Any,
    *,
    ttl: int | None = None,
    prefix: str = "",
    on_cached: OnCachedHook | None = None,
    on_fetched: OnFetchedHook | None = None,
) -> Callable[[Any], CacheProxy]:
    """
    Build a wrapping function bound to one store and hook configuration.

    Args:
        store: Object with async get(key) and set(key, value, ttl); a plain
            mutable mapping is adapted automatically
        ttl: Default time-to-live in milliseconds (None = no expiry requested)
        prefix: Prepended to every cache key
        on_cached: Hook run on every call after the lookup
        on_fetched: Hook run after each fresh computation

    Returns:
        Function that wraps any object in a CacheProxy

    Raises:
        ConfigurationError: If the configuration is invalid
    """
    try:
        config = WrapConfig(store=store, ttl=ttl, prefix=prefix, on_cached=on_cached, on_fetched=on_fetched)
    except ValidationError as e:
        raise ConfigurationError(
            "Invalid cache proxy configuration",
            details={"validation_errors": e.errors(include_url=False, include_context=False)},
        ) from e

    def wrap(target: Any) -> CacheProxy:
        return CacheProxy(target, config)

    return wrap
