"""
Cache Proxy — Key Derivation

Builds the cache key for one intercepted call:

    prefix + method_name + "(" + comma-joined JSON arguments + ")"

Arguments are encoded compactly with insertion-ordered dict keys. Two calls
share a cache entry only if their keys are equal, so {"a": 1, "b": 2} and
{"b": 2, "a": 1} produce different keys.
"""

import json
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel

from .errors import KeyDerivationError


def _encode_default(value: Any) -> Any:
    """Fallback encoder for values the json module does not handle natively."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def serialize_argument(value: Any) -> str:
    """
    Serialize one call argument the way it appears in a cache key.

    Raises:
        TypeError: If the value cannot be encoded as JSON
    """
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=_encode_default)


def derive_key(
    prefix: str,
    name: str,
    args: Sequence[Any] = (),
    kwargs: Mapping[str, Any] | None = None,
) -> str:
    """
    Derive the cache key for a call.

    Keyword arguments follow the positional ones as ``name=<json>`` in the
    order they were passed.

    Args:
        prefix: Path prefix of the wrapper (e.g. "app:api.")
        name: Method name
        args: Positional arguments
        kwargs: Keyword arguments

    Returns:
        Cache key string

    Raises:
        KeyDerivationError: If an argument is not JSON-serializable
    """
    parts: list[str] = []

    for position, arg in enumerate(args):
        try:
            parts.append(serialize_argument(arg))
        except (TypeError, ValueError) as e:
            raise KeyDerivationError(f"{prefix}{name}", position, e) from e

    for kw, arg in (kwargs or {}).items():
        try:
            parts.append(f"{kw}={serialize_argument(arg)}")
        except (TypeError, ValueError) as e:
            raise KeyDerivationError(f"{prefix}{name}", kw, e) from e

    return f"{prefix}{name}({','.join(parts)})"
