"""SQLite storage backend."""

import logging
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any

from authstore.core.models import User
from authstore.storage.exceptions import (
    ConnectionFailedError,
    DeleteFailedError,
    DuplicateUserError,
    MigrationFailedError,
    QueryFailedError,
    SaveFailedError,
    StorageError,
    UserNotFoundError,
)
from authstore.storage.schema import SchemaMigrator, default_migrator

from .base import UserBackend, merge_update

logger = logging.getLogger(__name__)

MEMORY_PATH = ":memory:"

_COLUMNS = "id, username, email, password, createdAt"


def _row_to_user(row: sqlite3.Row) -> User:
    return User(
        id=row["id"],
        username=row["username"],
        email=row["email"],
        password=row["password"],
        created_at=datetime.fromisoformat(row["createdAt"]),
    )


class SQLiteBackend(UserBackend):
    """Single-file relational storage.

    The ``users.email`` unique constraint backs up the explicit duplicate
    check each save performs inside its transaction.
    """

    backend_type = "relational"

    def __init__(
        self, db_path: Path | str = MEMORY_PATH, migrator: SchemaMigrator | None = None
    ):
        self.db_path = str(db_path)
        self.migrator = migrator or default_migrator()
        self._lock = threading.RLock()
        self.conn: sqlite3.Connection | None = None

        try:
            if self.db_path != MEMORY_PATH:
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            self.conn = sqlite3.connect(
                self.db_path, isolation_level=None, check_same_thread=False
            )
            self.conn.row_factory = sqlite3.Row
            if self.db_path != MEMORY_PATH:
                self.conn.execute("PRAGMA journal_mode = WAL")
        except (OSError, sqlite3.Error) as e:
            self.close()
            raise ConnectionFailedError(
                f"Cannot open database {self.db_path}: {e}"
            ) from e

        try:
            with self._lock:
                ran = self.migrator.migrate(self.conn)
        except MigrationFailedError:
            self.close()
            raise
        if ran:
            logger.info("Applied schema steps to %s: %s", self.db_path, ", ".join(ran))

    @property
    def connection(self) -> sqlite3.Connection:
        """Get the connection, ensuring it is open."""
        if self.conn is None:
            raise ConnectionFailedError("Database connection is closed")
        return self.conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run a block in one write transaction, committing on success."""
        with self._lock:
            conn = self.connection
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
                conn.execute("COMMIT")
            except Exception:
                conn.execute("ROLLBACK")
                raise

    # User operations

    def save_user(self, user: User) -> User:
        """Insert a user, rejecting duplicate emails."""
        try:
            with self.transaction() as conn:
                cursor = conn.execute(
                    "SELECT 1 FROM users WHERE email = ? LIMIT 1", (user.email,)
                )
                if cursor.fetchone() is not None:
                    raise DuplicateUserError(user.email)

                conn.execute(
                    f"INSERT INTO users ({_COLUMNS}) VALUES (?, ?, ?, ?, ?)",
                    (
                        user.id,
                        user.username,
                        user.email,
                        user.password,
                        user.created_at.isoformat(),
                    ),
                )
        except StorageError:
            raise
        except sqlite3.IntegrityError as e:
            if "users.email" in str(e):
                raise DuplicateUserError(user.email) from e
            raise SaveFailedError(str(e)) from e
        except sqlite3.Error as e:
            logger.warning("Failed to save user %s: %s", user.id, e)
            raise SaveFailedError(str(e)) from e
        return user

    def find_user_by_email(self, email: str) -> User | None:
        """Find a user by email."""
        return self._fetch_one(f"SELECT {_COLUMNS} FROM users WHERE email = ?", email)

    def find_user_by_id(self, user_id: str) -> User | None:
        """Find a user by id."""
        return self._fetch_one(f"SELECT {_COLUMNS} FROM users WHERE id = ?", user_id)

    def get_all_users(self) -> list[User]:
        """Get all users."""
        with self._lock:
            conn = self.connection
            try:
                cursor = conn.execute(f"SELECT {_COLUMNS} FROM users")
                return [_row_to_user(row) for row in cursor]
            except (sqlite3.Error, ValueError) as e:
                raise QueryFailedError(str(e)) from e

    def update_user(self, user: User) -> User:
        """Update an existing user."""
        try:
            with self.transaction() as conn:
                cursor = conn.execute(
                    f"SELECT {_COLUMNS} FROM users WHERE id = ?", (user.id,)
                )
                row = cursor.fetchone()
                if row is None:
                    raise UserNotFoundError(user.id)

                cursor = conn.execute(
                    "SELECT 1 FROM users WHERE email = ? AND id != ? LIMIT 1",
                    (user.email, user.id),
                )
                if cursor.fetchone() is not None:
                    raise SaveFailedError(f"Email already in use: {user.email}")

                updated = merge_update(_row_to_user(row), user)
                conn.execute(
                    "UPDATE users SET username = ?, email = ?, password = ? WHERE id = ?",
                    (updated.username, updated.email, updated.password, updated.id),
                )
        except StorageError:
            raise
        except (sqlite3.Error, ValueError) as e:
            logger.warning("Failed to update user %s: %s", user.id, e)
            raise SaveFailedError(str(e)) from e
        return updated

    def delete_user(self, user_id: str) -> bool:
        """Delete a user by id."""
        try:
            with self.transaction() as conn:
                cursor = conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
                return cursor.rowcount > 0
        except StorageError:
            raise
        except sqlite3.Error as e:
            logger.warning("Failed to delete user %s: %s", user_id, e)
            raise DeleteFailedError(str(e)) from e

    def user_exists(self, email: str) -> bool:
        """Check if a user with this email exists."""
        with self._lock:
            conn = self.connection
            try:
                cursor = conn.execute(
                    "SELECT COUNT(*) FROM users WHERE email = ?", (email,)
                )
                return cursor.fetchone()[0] > 0
            except sqlite3.Error as e:
                raise QueryFailedError(str(e)) from e

    def user_count(self) -> int:
        """Count stored users."""
        with self._lock:
            conn = self.connection
            try:
                return conn.execute("SELECT COUNT(*) FROM users").fetchone()[0]
            except sqlite3.Error as e:
                raise QueryFailedError(str(e)) from e

    def close(self) -> None:
        """Close database connection."""
        with self._lock:
            if self.conn is not None:
                self.conn.close()
                self.conn = None
                logger.debug("Closed database %s", self.db_path)

    def applied_migrations(self) -> list[str]:
        """Schema steps applied to this database, in order."""
        with self._lock:
            return self.migrator.applied(self.connection)

    def get_stats(self) -> dict[str, Any]:
        """Report user count, location and schema state."""
        stats: dict[str, Any] = {
            "user_count": 0,
            "backend_type": self.backend_type,
            "db_path": self.db_path,
        }
        if self.conn is not None:
            stats["user_count"] = self.user_count()
            stats["schema_migrations"] = self.applied_migrations()
        return stats

    def _fetch_one(self, sql: str, value: str) -> User | None:
        with self._lock:
            conn = self.connection
            try:
                row = conn.execute(sql, (value,)).fetchone()
                return _row_to_user(row) if row is not None else None
            except (sqlite3.Error, ValueError) as e:
                raise QueryFailedError(str(e)) from e
