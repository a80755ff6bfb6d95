"""Base storage backend interface."""

from abc import ABC, abstractmethod
from typing import Any

from authstore.core.models import User


class UserBackend(ABC):
    """Abstract base class for user storage backends.

    Every backend implements the same operations with the same error
    semantics. Lookups return ``None`` for absent records and
    ``delete_user`` returns ``False``; everything else fails with a
    :class:`~authstore.storage.exceptions.StorageError` subclass.
    """

    backend_type: str = "base"

    @abstractmethod
    def save_user(self, user: User) -> User:
        """Insert a new user; reject an email that is already stored."""
        pass

    @abstractmethod
    def find_user_by_email(self, email: str) -> User | None:
        """Find a user by exact, case-sensitive email."""
        pass

    @abstractmethod
    def find_user_by_id(self, user_id: str) -> User | None:
        """Find a user by id."""
        pass

    @abstractmethod
    def get_all_users(self) -> list[User]:
        """Snapshot of every stored user, in no particular order."""
        pass

    @abstractmethod
    def update_user(self, user: User) -> User:
        """Replace username, email and password of the user with ``user.id``."""
        pass

    @abstractmethod
    def delete_user(self, user_id: str) -> bool:
        """Delete by id; ``False`` if nothing was stored under it."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Release backend resources. Safe to call more than once."""
        pass

    def user_exists(self, email: str) -> bool:
        """Check if a user with this email is stored."""
        return self.find_user_by_email(email) is not None

    def user_count(self) -> int:
        """Number of stored users."""
        return len(self.get_all_users())

    def get_stats(self) -> dict[str, Any]:
        """Advisory self-report."""
        return {"user_count": self.user_count(), "backend_type": self.backend_type}

    def __enter__(self) -> "UserBackend":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def merge_update(stored: User, incoming: User) -> User:
    """Apply the mutable fields of ``incoming`` onto ``stored``."""
    return stored.with_changes(
        username=incoming.username,
        email=incoming.email,
        password=incoming.password,
    )
