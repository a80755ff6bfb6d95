"""Pluggable user storage backends.

All backends implement :class:`UserBackend` with identical semantics:

- **MemoryBackend**: In-memory storage, the reference for behavior
- **ObjectStoreBackend**: Embedded document store, one JSON object per user
- **SQLiteBackend**: Single-file relational storage with schema migrations
"""

from .base import UserBackend
from .memory import MemoryBackend
from .objectstore import ObjectStoreBackend
from .sqlite import SQLiteBackend

__all__ = [
    "UserBackend",
    "MemoryBackend",
    "ObjectStoreBackend",
    "SQLiteBackend",
]
