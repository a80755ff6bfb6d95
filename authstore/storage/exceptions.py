"""Exception classes for storage backends.

Every backend raises only these types, so callers can handle failures the
same way whichever engine is active.
"""

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from authstore.storage.migrations import MigrationReport


class StorageErrorCode(str, Enum):
    """Closed set of storage failure conditions."""

    CONNECTION_FAILED = "connection_failed"
    SAVE_FAILED = "save_failed"
    DELETE_FAILED = "delete_failed"
    QUERY_FAILED = "query_failed"
    USER_NOT_FOUND = "user_not_found"
    DUPLICATE_USER = "duplicate_user"
    MIGRATION_FAILED = "migration_failed"
    UNKNOWN = "unknown"


class StorageError(Exception):
    """Base exception for storage-related errors."""

    code: StorageErrorCode = StorageErrorCode.UNKNOWN
    default_message = "An unknown database error occurred"

    def __init__(self, message: str | None = None):
        """Initialize with an optional detail message."""
        self.detail = message
        super().__init__(message or self.default_message)


class ConnectionFailedError(StorageError):
    """Raised when the backend cannot be opened or has been closed."""

    code = StorageErrorCode.CONNECTION_FAILED
    default_message = "Failed to connect to database"


class SaveFailedError(StorageError):
    """Raised when a record cannot be written."""

    code = StorageErrorCode.SAVE_FAILED
    default_message = "Failed to save user to database"


class DeleteFailedError(StorageError):
    """Raised when a record cannot be removed."""

    code = StorageErrorCode.DELETE_FAILED
    default_message = "Failed to delete user from database"


class QueryFailedError(StorageError):
    """Raised when a read fails."""

    code = StorageErrorCode.QUERY_FAILED
    default_message = "Failed to query database"


class UserNotFoundError(StorageError):
    """Raised when an update targets an id that is not stored."""

    code = StorageErrorCode.USER_NOT_FOUND
    default_message = "User not found in database"

    def __init__(self, user_id: str):
        """Initialize with the missing user id."""
        self.user_id = user_id
        super().__init__(f"User not found in database: {user_id}")


class DuplicateUserError(StorageError):
    """Raised when a save collides with an existing email."""

    code = StorageErrorCode.DUPLICATE_USER
    default_message = "User already exists in database"

    def __init__(self, email: str):
        """Initialize with the conflicting email."""
        self.email = email
        super().__init__(f"User already exists in database: {email}")


class MigrationFailedError(StorageError):
    """Raised when a schema step or a data migration fails."""

    code = StorageErrorCode.MIGRATION_FAILED
    default_message = "Database migration failed"

    def __init__(
        self, message: str | None = None, report: "MigrationReport | None" = None
    ):
        """Initialize with a message and the migration report, if any."""
        self.report = report
        super().__init__(message)


class UnknownStorageError(StorageError):
    """Raised for failures that fit no other category."""


__all__ = [
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
]
