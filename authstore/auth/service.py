"""Authentication service: registration, login and user management.

The service works against any :class:`UserBackend` it is given and never
builds one itself. Validation runs before any storage call; storage
failures come back as :class:`AuthError` subclasses.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from authstore.auth.exceptions import (
    AuthError,
    DatabaseError,
    InvalidCredentialsError,
    InvalidEmailError,
    InvalidUsernameError,
    UnknownAuthError,
    UserAlreadyExistsError,
    UserNotFoundError,
    WeakPasswordError,
)
from authstore.auth.passwords import (
    hash_password,
    is_strong_password,
    is_valid_email,
    verify_password,
)
from authstore.core.models import User
from authstore.storage.backends.base import UserBackend
from authstore.storage.exceptions import DuplicateUserError, StorageError

logger = logging.getLogger(__name__)


@contextmanager
def _storage_errors() -> Iterator[None]:
    """Translate storage failures into auth errors."""
    try:
        yield
    except AuthError:
        raise
    except StorageError as e:
        raise DatabaseError(e) from e
    except Exception as e:
        logger.exception("Unexpected error during storage call")
        raise UnknownAuthError(str(e)) from e


def _validate_email(email: str) -> None:
    if not is_valid_email(email):
        raise InvalidEmailError()


def _validate_password(password: str) -> None:
    if not is_strong_password(password):
        raise WeakPasswordError()


class AuthService:
    """Registration and login on top of an injected storage backend."""

    def __init__(self, database: UserBackend):
        self.database = database

    def register(self, username: str, email: str, password: str) -> User:
        """Register a new user.

        Returns the stored user, whose ``password`` is the digest.

        Raises:
            InvalidEmailError: email does not look like an address
            WeakPasswordError: password shorter than six characters
            InvalidUsernameError: username is blank
            UserAlreadyExistsError: email already registered
            DatabaseError: any other storage failure
        """
        _validate_email(email)
        _validate_password(password)
        if not username.strip():
            raise InvalidUsernameError()

        user = User.create(username=username, email=email, password=hash_password(password))

        with _storage_errors():
            try:
                saved = self.database.save_user(user)
            except DuplicateUserError as e:
                raise UserAlreadyExistsError() from e

        logger.info("Registered user %s", saved.id)
        return saved

    def login(self, email: str, password: str) -> User:
        """Authenticate by email and password.

        Raises:
            UserNotFoundError: no user with this email
            InvalidCredentialsError: password does not match
            DatabaseError: storage failure
        """
        with _storage_errors():
            user = self.database.find_user_by_email(email)

        if user is None:
            raise UserNotFoundError()
        if not verify_password(password, user.password):
            logger.info("Rejected login for user %s", user.id)
            raise InvalidCredentialsError()

        logger.debug("User %s logged in", user.id)
        return user

    def change_password(self, user_id: str, new_password: str) -> User:
        """Validate and store a new password for an existing user."""
        _validate_password(new_password)

        with _storage_errors():
            user = self.database.find_user_by_id(user_id)
            if user is None:
                raise UserNotFoundError()
            return self.database.update_user(
                user.with_changes(password=hash_password(new_password))
            )

    # User management

    def get_all_users(self) -> list[User]:
        with _storage_errors():
            return self.database.get_all_users()

    def delete_user(self, user_id: str) -> bool:
        with _storage_errors():
            return self.database.delete_user(user_id)

    def update_user(self, user: User) -> User:
        with _storage_errors():
            return self.database.update_user(user)

    def user_exists(self, email: str) -> bool:
        with _storage_errors():
            return self.database.user_exists(email)

    def get_stats(self) -> dict[str, Any]:
        return self.database.get_stats()

    def close(self) -> None:
        self.database.close()
