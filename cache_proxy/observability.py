"""
Cache Proxy — Observability

Structured logging setup and a ready-made pair of metrics hooks.

Usage:
    from cache_proxy import cache_proxy, ProxyMetrics, configure_logging_from_settings

    configure_logging_from_settings()  # LOG_LEVEL / LOG_JSON
    metrics = ProxyMetrics()
    api = cache_proxy(store, on_cached=metrics.on_cached, on_fetched=metrics.on_fetched)(client)
    ...
    metrics.snapshot()  # {"calls": 10, "hits": 7, "misses": 3, ...}
"""

import json
import logging
import threading
from datetime import UTC, datetime
from typing import Any

from .config.loader import get_settings
from .config.schemas import CacheProxySettings
from .stores.interface import MISSING

PACKAGE_LOGGER = "cache_proxy"

_RESERVED_RECORD_KEYS = frozenset(
    (
        "args",
        "msg",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "name",
        "message",
    )
)


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        # Fields passed through extra={...}
        for key, value in record.__dict__.items():
            if key not in log_data and not key.startswith("_") and key not in _RESERVED_RECORD_KEYS:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def configure_logging(level: str | int = "INFO", json_format: bool = False) -> logging.Logger:
    """
    Attach a stream handler to the package logger.

    Calling it again replaces the previous handler.

    Args:
        level: Log level name or number
        json_format: Emit JSON lines instead of plain text

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.handlers.clear()

    handler = logging.StreamHandler()
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))

    logger.addHandler(handler)
    logger.setLevel(level)
    return logger


def configure_logging_from_settings(settings: CacheProxySettings | None = None) -> logging.Logger:
    """
    Configure the package logger from LOG_LEVEL / LOG_JSON.

    Args:
        settings: Settings to apply (uses the loaded settings if not provided)

    Returns:
        The configured package logger
    """
    if settings is None:
        settings = get_settings()
    return configure_logging(settings.log_level.value, json_format=settings.log_json)


class ProxyMetrics:
    """
    Counting hooks for a cache proxy.

    on_cached counts every call as a hit or a miss; on_fetched counts fresh
    computations. Both return None, so caching behaviour is unchanged.
    """

    def __init__(self, logger: logging.Logger | None = None):
        self._logger = logger or logging.getLogger(__name__)
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0
        self.fetches = 0

    def on_cached(self, key: str, value: Any) -> None:
        with self._lock:
            if value is MISSING:
                self.misses += 1
            else:
                self.hits += 1
        self._logger.debug("Cache %s: %s", "miss" if value is MISSING else "hit", key, extra={"cache_key": key})

    def on_fetched(self, key: str, value: Any) -> None:
        with self._lock:
            self.fetches += 1
        self._logger.debug("Fetched fresh: %s", key, extra={"cache_key": key})

    def snapshot(self) -> dict[str, Any]:
        """Return the counters and the hit rate as a percentage."""
        with self._lock:
            calls = self.hits + self.misses
            return {
                "calls": calls,
                "hits": self.hits,
                "misses": self.misses,
                "fetches": self.fetches,
                "hit_rate": round(self.hits / calls * 100, 2) if calls else 0.0,
            }

    def reset(self) -> None:
        with self._lock:
            self.hits = self.misses = self.fetches = 0
