"""In-memory storage backend for testing."""

import threading
from typing import Any

from authstore.core.models import User
from authstore.storage.exceptions import (
    DuplicateUserError,
    SaveFailedError,
    UserNotFoundError,
)

from .base import UserBackend, merge_update


class MemoryBackend(UserBackend):
    """In-memory storage backend used as the reference implementation."""

    backend_type = "inMemory"

    def __init__(self):
        self._users: dict[str, User] = {}
        self._lock = threading.RLock()

    def save_user(self, user: User) -> User:
        """Save a user, rejecting duplicate emails."""
        with self._lock:
            if self._find_by_email(user.email) is not None:
                raise DuplicateUserError(user.email)
            if user.id in self._users:
                raise SaveFailedError(f"User id already stored: {user.id}")
            self._users[user.id] = user
            return user

    def find_user_by_email(self, email: str) -> User | None:
        """Find a user by email."""
        with self._lock:
            return self._find_by_email(email)

    def find_user_by_id(self, user_id: str) -> User | None:
        """Find a user by id."""
        with self._lock:
            return self._users.get(user_id)

    def get_all_users(self) -> list[User]:
        """Get all users."""
        with self._lock:
            return list(self._users.values())

    def update_user(self, user: User) -> User:
        """Update an existing user."""
        with self._lock:
            stored = self._users.get(user.id)
            if stored is None:
                raise UserNotFoundError(user.id)

            holder = self._find_by_email(user.email)
            if holder is not None and holder.id != user.id:
                raise SaveFailedError(f"Email already in use: {user.email}")

            updated = merge_update(stored, user)
            self._users[user.id] = updated
            return updated

    def delete_user(self, user_id: str) -> bool:
        """Delete a user by id."""
        with self._lock:
            return self._users.pop(user_id, None) is not None

    def close(self) -> None:
        """Drop all stored users."""
        with self._lock:
            self._users.clear()

    def user_count(self) -> int:
        """Number of stored users."""
        with self._lock:
            return len(self._users)

    def get_stats(self) -> dict[str, Any]:
        """Report user count and the stored ids."""
        with self._lock:
            return {
                "user_count": len(self._users),
                "backend_type": self.backend_type,
                "users": sorted(self._users),
            }

    def _find_by_email(self, email: str) -> User | None:
        for user in self._users.values():
            if user.email == email:
                return user
        return None
