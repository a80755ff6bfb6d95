"""Ordered schema migrations for the relational backend.

Each step runs at most once per database file. Applied steps are recorded
in ``schema_migrations`` and steps run in registration order, each inside
its own transaction.
"""

import logging
import sqlite3
from collections.abc import Callable
from datetime import datetime, timezone

from authstore.storage.exceptions import MigrationFailedError

logger = logging.getLogger(__name__)

SchemaStep = Callable[[sqlite3.Connection], None]


class SchemaMigrator:
    """Registry of named schema steps."""

    TABLE = "schema_migrations"

    def __init__(self):
        self._steps: list[tuple[str, SchemaStep]] = []

    @property
    def identifiers(self) -> list[str]:
        return [identifier for identifier, _ in self._steps]

    def register(self, identifier: str, step: SchemaStep) -> None:
        """Append a step. Identifiers must be unique."""
        if identifier in self.identifiers:
            raise ValueError(f"Schema step already registered: {identifier}")
        self._steps.append((identifier, step))

    def applied(self, conn: sqlite3.Connection) -> list[str]:
        """Identifiers already applied to this database, oldest first."""
        self._ensure_table(conn)
        cursor = conn.execute(f"SELECT identifier FROM {self.TABLE} ORDER BY rowid")
        return [row[0] for row in cursor]

    def migrate(self, conn: sqlite3.Connection) -> list[str]:
        """Apply pending steps and return the identifiers that ran.

        The connection must be in autocommit mode.
        """
        try:
            done = set(self.applied(conn))
        except sqlite3.Error as e:
            raise MigrationFailedError(f"Cannot read schema state: {e}") from e
        ran = []

        for identifier, step in self._steps:
            if identifier in done:
                continue

            try:
                conn.execute("BEGIN IMMEDIATE")
            except sqlite3.Error as e:
                raise MigrationFailedError(
                    f"Schema step {identifier} failed: {e}"
                ) from e

            try:
                # Another connection may have applied it since the read above.
                if self._is_applied(conn, identifier):
                    conn.execute("COMMIT")
                    continue
                logger.debug("Applying schema step %s", identifier)
                step(conn)
                conn.execute(
                    f"INSERT INTO {self.TABLE} (identifier, applied_at) VALUES (?, ?)",
                    (identifier, datetime.now(timezone.utc).isoformat()),
                )
                conn.execute("COMMIT")
            except Exception as e:
                conn.execute("ROLLBACK")
                raise MigrationFailedError(
                    f"Schema step {identifier} failed: {e}"
                ) from e
            ran.append(identifier)

        return ran

    def _is_applied(self, conn: sqlite3.Connection, identifier: str) -> bool:
        row = conn.execute(
            f"SELECT 1 FROM {self.TABLE} WHERE identifier = ?", (identifier,)
        ).fetchone()
        return row is not None

    def _ensure_table(self, conn: sqlite3.Connection) -> None:
        conn.execute(f"""
            CREATE TABLE IF NOT EXISTS {self.TABLE} (
                identifier TEXT PRIMARY KEY,
                applied_at TEXT NOT NULL
            )
        """)


def _create_users(conn: sqlite3.Connection) -> None:
    conn.execute("""
        CREATE TABLE users (
            id TEXT PRIMARY KEY,
            email TEXT UNIQUE NOT NULL,
            username TEXT NOT NULL,
            password TEXT NOT NULL,
            createdAt DATETIME NOT NULL
        )
    """)


def default_migrator() -> SchemaMigrator:
    """Schema steps for the users database."""
    migrator = SchemaMigrator()
    migrator.register("createUsers", _create_users)
    return migrator
