"""
Cache Proxy — Error Types

Defines the exception hierarchy for the cache proxy package.
All exceptions raised by the package itself inherit from CacheProxyError.

Failures raised by wrapped methods, hooks and stores are NOT converted into
these types by the proxy; they reach the caller unchanged.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """
    Standard error codes for structured error reporting.
    """

    # Configuration errors
    INVALID_CONFIGURATION = "INVALID_CONFIGURATION"

    # Interception errors
    KEY_DERIVATION_FAILED = "KEY_DERIVATION_FAILED"
    INVALID_HOOK_OUTCOME = "INVALID_HOOK_OUTCOME"

    # Store errors
    STORE_FAILURE = "STORE_FAILURE"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"

    # Internal errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class CacheProxyError(Exception):
    """Base exception for all cache proxy errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for structured logs and responses."""
        return {
            "error": self.__class__.__name__,
            "code": extract_error_code(self).value,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(CacheProxyError):
    """Raised when configuration is invalid or a backend is unavailable."""


class KeyDerivationError(CacheProxyError):
    """Raised when a call argument cannot be serialized into a cache key."""

    def __init__(self, method: str, position: int | str, error: Exception):
        message = f"Cannot derive cache key for {method}(): argument {position} is not JSON-serializable"
        super().__init__(
            message,
            {"method": method, "argument": position, "error": str(error)},
        )


class InvalidHookOutcomeError(CacheProxyError):
    """Raised when a hook returns a value outside its outcome variants."""

    def __init__(self, hook: str, key: str, outcome: Any, allowed: tuple[str, ...]):
        message = f"{hook} hook returned unsupported outcome {type(outcome).__name__} for key {key!r}"
        super().__init__(
            message,
            {"hook": hook, "key": key, "outcome_type": type(outcome).__name__, "allowed": list(allowed)},
        )


class StoreError(CacheProxyError):
    """Base exception for store backend errors."""


class StoreConnectionError(StoreError):
    """Raised when a store backend connection fails."""

    def __init__(self, backend: str, details: dict[str, Any] | None = None):
        message = f"Failed to connect to store backend: {backend}"
        super().__init__(message, details)


class StoreOperationError(StoreError):
    """Raised when a store operation fails."""

    pass


def extract_error_code(error: Exception) -> ErrorCode:
    """
    Extract appropriate ErrorCode from an exception.

    Args:
        error: Exception to categorize

    Returns:
        Appropriate ErrorCode for the exception
    """
    if isinstance(error, StoreConnectionError):
        return ErrorCode.STORE_UNAVAILABLE

    if isinstance(error, StoreError):
        return ErrorCode.STORE_FAILURE

    if isinstance(error, KeyDerivationError):
        return ErrorCode.KEY_DERIVATION_FAILED

    if isinstance(error, InvalidHookOutcomeError):
        return ErrorCode.INVALID_HOOK_OUTCOME

    if isinstance(error, ConfigurationError):
        return ErrorCode.INVALID_CONFIGURATION

    return ErrorCode.INTERNAL_ERROR
