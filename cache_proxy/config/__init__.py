"""
Cache Proxy — Configuration Module

Provides typed configuration loading and validation.
"""

from .loader import get_settings, load_settings, reload_settings
from .schemas import (
    CacheProxySettings,
    LogLevel,
    StoreBackend,
    StoreConfig,
    WrapConfig,
)

__all__ = [
    # Loader functions
    "load_settings",
    "get_settings",
    "reload_settings",
    # Root settings
    "CacheProxySettings",
    # Enums
    "StoreBackend",
    "LogLevel",
    # Sections
    "StoreConfig",
    "WrapConfig",
]
