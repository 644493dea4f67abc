"""
Cache Proxy — Settings Loader

Loads and validates runtime settings from environment variables and .env files.
Provides a singleton settings instance for the process.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

from ..errors import ConfigurationError
from .schemas import CacheProxySettings

logger = logging.getLogger(__name__)

_settings_instance: CacheProxySettings | None = None


def load_settings(
    env_file: str | None = None,
    reload: bool = False,
) -> CacheProxySettings:
    """
    Load settings from environment variables and .env file.

    Args:
        env_file: Path to .env file (default: .env in the working directory)
        reload: Force reload even if settings already loaded

    Returns:
        Validated CacheProxySettings instance

    Raises:
        ConfigurationError: If settings are invalid
    """
    global _settings_instance

    if _settings_instance is not None and not reload:
        return _settings_instance

    env_path = Path(env_file) if env_file else Path.cwd() / ".env"

    if env_path.exists():
        logger.info(f"Loading environment from {env_path}")
        try:
            load_dotenv(env_path, override=True)
        except Exception as e:
            logger.error(
                f"Failed to load .env file from {env_path}: {e}",
                extra={"path": str(env_path), "error": str(e)},
                exc_info=True,
            )
            raise ConfigurationError(
                f"Failed to load environment file: {e}",
                details={"path": str(env_path), "error": str(e)},
            ) from e
    else:
        logger.debug("No .env file found, using environment variables only")

    # Redis is selected automatically when REDIS_URL is set
    redis_url = os.getenv("REDIS_URL")
    store_backend = "redis" if redis_url else "memory"

    try:
        settings_dict = {
            "log_level": os.getenv("LOG_LEVEL", "INFO").upper(),
            "log_json": os.getenv("LOG_JSON", "false").lower() == "true",
            "store": {
                "backend": os.getenv("CACHE_BACKEND", store_backend),
                "default_ttl_ms": int(os.getenv("CACHE_TTL_MS", "0")),
                "max_size": int(os.getenv("CACHE_MAX_SIZE", "1000")),
                "namespace": os.getenv("CACHE_NAMESPACE", "cache"),
                "redis_url": redis_url,
                "redis_max_connections": int(os.getenv("REDIS_MAX_CONNECTIONS", "10")),
                "redis_socket_timeout": int(os.getenv("REDIS_SOCKET_TIMEOUT", "5")),
            },
        }
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid numeric environment variable: {e}",
            details={"error": str(e)},
        ) from e

    try:
        _settings_instance = CacheProxySettings(**settings_dict)  # type: ignore[arg-type]
    except ValidationError as e:
        logger.error(
            f"Settings validation failed: {e}",
            extra={"validation_errors": e.errors(), "settings_keys": list(settings_dict.keys())},
        )
        raise ConfigurationError(
            "Settings validation failed. Check your environment variables.",
            details={"validation_errors": e.errors()},
        ) from e

    logger.info(
        f"Settings loaded (store backend: {_settings_instance.store.backend.value})",
        extra={
            "log_level": _settings_instance.log_level.value,
            "store_backend": _settings_instance.store.backend.value,
        },
    )
    return _settings_instance


def get_settings() -> CacheProxySettings:
    """
    Get the current settings instance, loading it on first access.
    """
    if _settings_instance is None:
        return load_settings()

    return _settings_instance


def reload_settings(env_file: str | None = None) -> CacheProxySettings:
    """
    Force reload settings.

    Args:
        env_file: Optional path to .env file

    Returns:
        Reloaded CacheProxySettings instance
    """
    return load_settings(env_file=env_file, reload=True)
