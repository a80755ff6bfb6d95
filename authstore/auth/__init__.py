"""Authentication on top of the storage layer."""

from authstore.auth.exceptions import (
    AuthError,
    AuthErrorCode,
    DatabaseError,
    InvalidCredentialsError,
    InvalidEmailError,
    InvalidUsernameError,
    UnknownAuthError,
    UserAlreadyExistsError,
    UserNotFoundError,
    WeakPasswordError,
)
from authstore.auth.passwords import hash_password, verify_password
from authstore.auth.service import AuthService

__all__ = [
    "AuthService",
    "hash_password",
    "verify_password",
    "AuthErrorCode",
    "AuthError",
    "UserAlreadyExistsError",
    "InvalidCredentialsError",
    "WeakPasswordError",
    "InvalidEmailError",
    "InvalidUsernameError",
    "UserNotFoundError",
    "DatabaseError",
    "UnknownAuthError",
]
