"""User storage layer.

Provides one backend interface with interchangeable implementations:

- **Backends**: in-memory, embedded object store, SQLite
- **Factory**: backend construction from a configuration tag
- **Migrations**: one-shot copy of all users between backends
- **Schema**: ordered, run-once schema steps for SQLite

Every failure surfaces as a :class:`StorageError` subclass.
"""

from authstore.storage.backends import (
    MemoryBackend,
    ObjectStoreBackend,
    SQLiteBackend,
    UserBackend,
)
from authstore.storage.exceptions import (
    ConnectionFailedError,
    DeleteFailedError,
    DuplicateUserError,
    MigrationFailedError,
    QueryFailedError,
    SaveFailedError,
    StorageError,
    StorageErrorCode,
    UnknownStorageError,
    UserNotFoundError,
)
from authstore.storage.factory import (
    DEFAULT_BACKEND,
    BackendType,
    create_backend,
    create_default_backend,
)
from authstore.storage.migrations import (
    MigrationManager,
    MigrationReport,
    migrate_backend,
    migrate_users,
)
from authstore.storage.schema import SchemaMigrator

__all__ = [
    # Backends
    "UserBackend",
    "MemoryBackend",
    "ObjectStoreBackend",
    "SQLiteBackend",
    # Errors
    "StorageErrorCode",
    "StorageError",
    "ConnectionFailedError",
    "SaveFailedError",
    "DeleteFailedError",
    "QueryFailedError",
    "UserNotFoundError",
    "DuplicateUserError",
    "MigrationFailedError",
    "UnknownStorageError",
    # Factory
    "BackendType",
    "DEFAULT_BACKEND",
    "create_backend",
    "create_default_backend",
    # Migrations
    "MigrationReport",
    "MigrationManager",
    "migrate_users",
    "migrate_backend",
    "SchemaMigrator",
]
