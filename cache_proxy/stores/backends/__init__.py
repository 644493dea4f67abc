"""
Cache Proxy — Store Backends

Exports available store backend implementations.

Redis backend is lazy-loaded via factory.py to avoid a hard redis import.
"""

from .memory import MemoryStore

__all__ = [
    "MemoryStore",
]
