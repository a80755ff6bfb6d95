"""Embedded object store backend.

Stores one JSON document per user in a collection directory, keyed by id.
Email lookups are a scan over the collection; the engine enforces no
uniqueness, so every mutation runs inside a write transaction that holds
both a process lock and an exclusive file lock while it checks and writes.
"""

import fcntl
import hashlib
import logging
import re
import tempfile
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import msgspec

from authstore.core.models import User
from authstore.storage.exceptions import (
    ConnectionFailedError,
    DeleteFailedError,
    DuplicateUserError,
    QueryFailedError,
    SaveFailedError,
    StorageError,
    UserNotFoundError,
)

from .base import UserBackend, merge_update

logger = logging.getLogger(__name__)

_SAFE_ID = re.compile(r"[A-Za-z0-9_-]+")


class WriteTransaction:
    """Changes staged inside a write transaction.

    Nothing touches disk until the enclosing block exits cleanly.
    """

    def __init__(self):
        self.puts: dict[str, User] = {}
        self.removals: set[str] = set()

    def put(self, user: User) -> None:
        self.removals.discard(user.id)
        self.puts[user.id] = user

    def remove(self, user_id: str) -> None:
        self.puts.pop(user_id, None)
        self.removals.add(user_id)


class ObjectStoreBackend(UserBackend):
    """Schema-less document storage in a local directory."""

    backend_type = "embeddedStore"
    collection = "users"

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.collection_dir = self.data_dir / self.collection
        self.lock_file = self.data_dir / ".lock"
        self._lock = threading.RLock()
        self._encoder = msgspec.json.Encoder()
        self._decoder = msgspec.json.Decoder(User)
        self._closed = False

        try:
            self.collection_dir.mkdir(parents=True, exist_ok=True)
            self.lock_file.touch(exist_ok=True)
        except OSError as e:
            raise ConnectionFailedError(
                f"Cannot open object store at {self.data_dir}: {e}"
            ) from e

        logger.debug("Opened object store at %s", self.data_dir)

    # Transactions

    @contextmanager
    def write_transaction(self) -> Iterator[WriteTransaction]:
        """Run a block as one atomic write.

        Staged changes are committed when the block exits normally and
        discarded when it raises.
        """
        self._ensure_open()
        with self._lock:
            with open(self.lock_file, "a") as lock:
                fcntl.flock(lock.fileno(), fcntl.LOCK_EX)
                try:
                    txn = WriteTransaction()
                    yield txn
                    self._commit(txn)
                finally:
                    fcntl.flock(lock.fileno(), fcntl.LOCK_UN)

    def _commit(self, txn: WriteTransaction) -> None:
        for user in txn.puts.values():
            self._write_document(user)
        for user_id in txn.removals:
            self._path_for(user_id).unlink(missing_ok=True)

    # User operations

    def save_user(self, user: User) -> User:
        """Save a user, rejecting duplicate emails."""
        try:
            with self.write_transaction() as txn:
                if self._find_by_email(user.email) is not None:
                    raise DuplicateUserError(user.email)
                if self._path_for(user.id).exists():
                    raise SaveFailedError(f"User id already stored: {user.id}")
                txn.put(user)
        except StorageError:
            raise
        except OSError as e:
            logger.warning("Failed to save user %s: %s", user.id, e)
            raise SaveFailedError(str(e)) from e
        return user

    def find_user_by_email(self, email: str) -> User | None:
        """Find a user by email."""
        self._ensure_open()
        return self._find_by_email(email)

    def find_user_by_id(self, user_id: str) -> User | None:
        """Find a user by id."""
        self._ensure_open()
        return self._read_document(self._path_for(user_id))

    def get_all_users(self) -> list[User]:
        """Get all users."""
        self._ensure_open()
        return list(self._iter_documents())

    def update_user(self, user: User) -> User:
        """Update an existing user."""
        try:
            with self.write_transaction() as txn:
                stored = self._read_document(self._path_for(user.id))
                if stored is None:
                    raise UserNotFoundError(user.id)

                holder = self._find_by_email(user.email)
                if holder is not None and holder.id != user.id:
                    raise SaveFailedError(f"Email already in use: {user.email}")

                updated = merge_update(stored, user)
                txn.put(updated)
        except StorageError:
            raise
        except OSError as e:
            logger.warning("Failed to update user %s: %s", user.id, e)
            raise SaveFailedError(str(e)) from e
        return updated

    def delete_user(self, user_id: str) -> bool:
        """Delete a user by id."""
        try:
            with self.write_transaction() as txn:
                if not self._path_for(user_id).exists():
                    return False
                txn.remove(user_id)
        except StorageError:
            raise
        except OSError as e:
            logger.warning("Failed to delete user %s: %s", user_id, e)
            raise DeleteFailedError(str(e)) from e
        return True

    def close(self) -> None:
        """Mark the store closed."""
        if not self._closed:
            logger.debug("Closed object store at %s", self.data_dir)
        self._closed = True

    def user_count(self) -> int:
        """Count stored documents."""
        self._ensure_open()
        return sum(1 for _ in self.collection_dir.glob("*.json"))

    def get_stats(self) -> dict[str, Any]:
        """Report user count and location."""
        return {
            "user_count": 0 if self._closed else self.user_count(),
            "backend_type": self.backend_type,
            "data_dir": str(self.data_dir),
        }

    # Documents

    def _ensure_open(self) -> None:
        if self._closed:
            raise ConnectionFailedError("Object store is closed")

    def _path_for(self, user_id: str) -> Path:
        """Map an id to a document path."""
        if _SAFE_ID.fullmatch(user_id):
            name = "u-" + user_id
        else:
            name = "h-" + hashlib.sha256(user_id.encode("utf-8")).hexdigest()
        return self.collection_dir / f"{name}.json"

    def _read_document(self, path: Path) -> User | None:
        try:
            return self._decoder.decode(path.read_bytes())
        except FileNotFoundError:
            return None
        except (OSError, msgspec.DecodeError) as e:
            raise QueryFailedError(f"Unreadable document {path.name}: {e}") from e

    def _iter_documents(self) -> Iterator[User]:
        for path in sorted(self.collection_dir.glob("*.json")):
            user = self._read_document(path)
            if user is not None:
                yield user

    def _find_by_email(self, email: str) -> User | None:
        for user in self._iter_documents():
            if user.email == email:
                return user
        return None

    def _write_document(self, user: User) -> None:
        """Write a document atomically."""
        path = self._path_for(user.id)
        temp_fd, temp_path = tempfile.mkstemp(dir=self.collection_dir, suffix=".tmp")
        try:
            with open(temp_fd, "wb") as f:
                f.write(self._encoder.encode(user))
            Path(temp_path).replace(path)
        except Exception:
            Path(temp_path).unlink(missing_ok=True)
            raise
