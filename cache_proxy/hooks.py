"""
Cache Proxy — Hook Protocol

Two optional hooks let callers observe and steer each intercepted call:

on_cached(key, cached)
    Runs on every call, after the store lookup. ``cached`` is MISSING on a
    miss. Returns one of:
      None / Pass()   use the lookup result as-is
      Skip()          treat the call as a miss even if an entry exists
      Serve(data)     return data immediately; no method call, no store write

on_fetched(key, fresh)
    Runs only after the wrapped method produced a fresh result. Returns one of:
      None / Pass()            store fresh with the default ttl
      Skip()                   return fresh without storing it
      Persist(data=..., ttl=...)  store data (default: fresh) with ttl
                                  (default: the proxy's ttl)

Hooks may be plain functions or coroutine functions. Anything they raise
reaches the caller; nothing is written to the store in that case.
"""

import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeAlias

from .errors import InvalidHookOutcomeError
from .stores.interface import MISSING


@dataclass(frozen=True)
class Pass:
    """Keep the default behaviour."""


@dataclass(frozen=True)
class Skip:
    """Force a miss (on_cached) or skip the store write (on_fetched)."""


@dataclass(frozen=True)
class Serve:
    """Return data to the caller without touching the method or the store."""

    data: Any


@dataclass(frozen=True)
class Persist:
    """Override the value and/or ttl written to the store."""

    data: Any = MISSING
    ttl: int | None = None

    def __post_init__(self) -> None:
        if self.ttl is not None and self.ttl < 0:
            raise ValueError("ttl must be non-negative")


CachedOutcome: TypeAlias = Pass | Skip | Serve
FetchedOutcome: TypeAlias = Pass | Skip | Persist

OnCachedHook: TypeAlias = Callable[[str, Any], CachedOutcome | None | Awaitable[CachedOutcome | None]]
OnFetchedHook: TypeAlias = Callable[[str, Any], FetchedOutcome | None | Awaitable[FetchedOutcome | None]]


@dataclass(frozen=True)
class CachedDecision:
    """Result of applying an on_cached outcome to a lookup."""

    serve: bool
    value: Any


@dataclass(frozen=True)
class FetchedDecision:
    """Result of applying an on_fetched outcome to a fresh result."""

    persist: bool
    value: Any
    ttl: int | None


async def resolve(value: Any) -> Any:
    """Await value if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value


def apply_cached_outcome(outcome: Any, key: str, cached: Any) -> CachedDecision:
    """
    Combine an on_cached outcome with the store lookup result.

    Raises:
        InvalidHookOutcomeError: If outcome is not None, Pass, Skip or Serve
    """
    if outcome is None or isinstance(outcome, Pass):
        return CachedDecision(serve=cached is not MISSING, value=cached)
    if isinstance(outcome, Skip):
        return CachedDecision(serve=False, value=MISSING)
    if isinstance(outcome, Serve):
        return CachedDecision(serve=True, value=outcome.data)
    raise InvalidHookOutcomeError("on_cached", key, outcome, ("None", "Pass", "Skip", "Serve"))


def apply_fetched_outcome(outcome: Any, key: str, fresh: Any, default_ttl: int | None) -> FetchedDecision:
    """
    Combine an on_fetched outcome with a freshly computed result.

    Raises:
        InvalidHookOutcomeError: If outcome is not None, Pass, Skip or Persist
    """
    if outcome is None or isinstance(outcome, Pass):
        return FetchedDecision(persist=True, value=fresh, ttl=default_ttl)
    if isinstance(outcome, Skip):
        return FetchedDecision(persist=False, value=fresh, ttl=None)
    if isinstance(outcome, Persist):
        return FetchedDecision(
            persist=True,
            value=fresh if outcome.data is MISSING else outcome.data,
            ttl=default_ttl if outcome.ttl is None else outcome.ttl,
        )
    raise InvalidHookOutcomeError("on_fetched", key, outcome, ("None", "Pass", "Skip", "Persist"))
