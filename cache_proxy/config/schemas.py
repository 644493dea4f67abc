"""
Cache Proxy — Configuration Schemas

Defines typed configuration models using Pydantic for validation and type safety.

- WrapConfig: per-proxy settings (store, ttl, hooks, key prefix)
- StoreConfig / CacheProxySettings: environment-driven runtime settings
"""

from collections.abc import Callable, MutableMapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class StoreBackend(str, Enum):
    """Supported store backends."""

    MEMORY = "memory"
    REDIS = "redis"  # Requires redis package


class LogLevel(str, Enum):
    """Log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class WrapConfig(BaseModel):
    """
    Configuration shared by a proxy and every nested proxy derived from it.

    Frozen: nested proxies get a copy that differs only in prefix.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    store: Any = Field(..., description="Object with async get(key) and set(key, value, ttl)")
    ttl: int | None = Field(default=None, ge=0, description="Default TTL in milliseconds (None = no expiry)")
    prefix: str = Field(default="", description="Prepended to every cache key")
    on_cached: Callable[..., Any] | None = Field(default=None, description="Hook run before a cached value is used")
    on_fetched: Callable[..., Any] | None = Field(default=None, description="Hook run after a fresh computation")

    @field_validator("store", mode="before")
    @classmethod
    def validate_store(cls, v: Any) -> Any:
        """Accept store objects and adapt plain mutable mappings."""
        if v is None:
            raise ValueError("store is required")

        if isinstance(v, MutableMapping):
            # Imported here: the stores package imports this module
            from ..stores.mapping import MappingStore

            return MappingStore(v)

        if not (callable(getattr(v, "get", None)) and callable(getattr(v, "set", None))):
            raise ValueError(f"store must provide get() and set(), got {type(v).__name__}")
        return v

    def descend(self, name: str) -> "WrapConfig":
        """Return the configuration for the nested object reached through attribute name."""
        return self.model_copy(update={"prefix": f"{self.prefix}{name}."})


class StoreConfig(BaseModel):
    """Store backend configuration."""

    backend: StoreBackend = Field(default=StoreBackend.MEMORY, description="Store backend to use")
    default_ttl_ms: int = Field(default=0, ge=0, description="Default TTL in milliseconds (0 = no expiry)")
    max_size: int = Field(default=1000, ge=1, description="Max entries (memory backend)")
    namespace: str = Field(default="cache", description="Store key namespace/prefix")

    # Redis-specific settings (only used when backend=redis)
    redis_url: str | None = Field(default=None, validate_default=True, description="Redis connection URL")
    redis_max_connections: int = Field(default=10, ge=1, description="Redis connection pool size")
    redis_socket_timeout: int = Field(default=5, ge=1, description="Redis socket timeout in seconds")

    @field_validator("redis_url")
    @classmethod
    def validate_redis_url(cls, v: str | None, info: Any) -> str | None:
        """Ensure redis_url is provided when backend is redis."""
        backend = info.data.get("backend")
        if backend == StoreBackend.REDIS and not v:
            raise ValueError("redis_url is required when store backend is 'redis'")
        return v


class CacheProxySettings(BaseModel):
    """Root runtime settings."""

    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    log_json: bool = Field(default=False, description="Emit logs as JSON lines")

    store: StoreConfig = Field(default_factory=StoreConfig)

    model_config = ConfigDict(validate_assignment=True)
