"""
Cache Proxy — Process Memo

Compute-once storage for expensive objects (store clients, connection pools,
SDK instances) that should survive module reloads during development.

ProcessMemo is a plain object: create it at the composition root and pass it
where it is needed. default_memo() returns a lazily created instance for code
that has no composition root of its own.

Usage:
    from cache_proxy.memo import global_cached

    store = global_cached("store", lambda: MemoryStore(max_size=10_000))
"""

import logging
import threading
from collections.abc import Callable
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ProcessMemo:
    """
    Name-keyed map whose values are computed at most once.

    The producer is called with the memo's lock held, so two threads asking for
    the same name still produce a single value. Producers may call back into
    the same memo for other names.
    """

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}
        self._lock = threading.RLock()

    def get_or_compute(self, name: str, producer: Callable[[], T]) -> T:
        """
        Return the value stored under name, computing it with producer on first use.

        If producer raises, nothing is stored and the next call retries.
        """
        with self._lock:
            if name in self._values:
                return self._values[name]  # type: ignore[no-any-return]

            logger.debug("Computing memoized value '%s'", name)
            value = producer()
            self._values[name] = value
            return value

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._values

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)

    def get(self, name: str, default: Any = None) -> Any:
        """Return the stored value without computing it."""
        with self._lock:
            return self._values.get(name, default)

    def forget(self, name: str) -> bool:
        """Drop one value. Returns False if nothing was stored under name."""
        with self._lock:
            return self._values.pop(name, _ABSENT) is not _ABSENT

    def clear(self) -> None:
        """Drop every value."""
        with self._lock:
            count = len(self._values)
            self._values.clear()
        logger.debug("Cleared %d memoized value(s)", count)

    def names(self) -> list[str]:
        with self._lock:
            return list(self._values)


_ABSENT = object()

_default_memo: ProcessMemo | None = None
_default_lock = threading.Lock()


def default_memo() -> ProcessMemo:
    """Return the process-wide ProcessMemo, creating it empty on first use."""
    global _default_memo

    if _default_memo is None:
        with _default_lock:
            if _default_memo is None:
                _default_memo = ProcessMemo()
    return _default_memo


def global_cached(name: str, producer: Callable[[], T], memo: ProcessMemo | None = None) -> T:
    """
    Return producer()'s result, computing it at most once per name.

    Args:
        name: Identifier of the value
        producer: Zero-argument callable building the value
        memo: Memo to use (defaults to the process-wide instance)

    Returns:
        The memoized value; the same object on every call for a given name
    """
    if memo is None:
        memo = default_memo()
    return memo.get_or_compute(name, producer)
