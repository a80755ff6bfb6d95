"""Exception classes for the authentication service."""

from enum import Enum

from authstore.storage.exceptions import StorageError


class AuthErrorCode(str, Enum):
    """Closed set of authentication failure conditions."""

    USER_ALREADY_EXISTS = "user_already_exists"
    INVALID_CREDENTIALS = "invalid_credentials"
    WEAK_PASSWORD = "weak_password"
    INVALID_EMAIL = "invalid_email"
    INVALID_USERNAME = "invalid_username"
    USER_NOT_FOUND = "user_not_found"
    DATABASE_ERROR = "database_error"
    UNKNOWN = "unknown"


class AuthError(Exception):
    """Base exception for authentication errors."""

    code: AuthErrorCode = AuthErrorCode.UNKNOWN
    default_message = "An unexpected error occurred"

    def __init__(self, message: str | None = None):
        """Initialize with an optional message."""
        super().__init__(message or self.default_message)


class UserAlreadyExistsError(AuthError):
    code = AuthErrorCode.USER_ALREADY_EXISTS
    default_message = "User with this email already exists"


class InvalidCredentialsError(AuthError):
    code = AuthErrorCode.INVALID_CREDENTIALS
    default_message = "Invalid email or password"


class WeakPasswordError(AuthError):
    code = AuthErrorCode.WEAK_PASSWORD
    default_message = "Password must be at least 6 characters long"


class InvalidEmailError(AuthError):
    code = AuthErrorCode.INVALID_EMAIL
    default_message = "Please enter a valid email address"


class InvalidUsernameError(AuthError):
    code = AuthErrorCode.INVALID_USERNAME
    default_message = "Username must not be empty"


class UserNotFoundError(AuthError):
    code = AuthErrorCode.USER_NOT_FOUND
    default_message = "User not found"


class DatabaseError(AuthError):
    """Wraps a storage failure unchanged."""

    code = AuthErrorCode.DATABASE_ERROR

    def __init__(self, inner: StorageError):
        """Initialize with the storage error being wrapped."""
        self.inner = inner
        super().__init__(f"Database error: {inner}")


class UnknownAuthError(AuthError):
    """Raised for unexpected failures outside the storage taxonomy."""


__all__ = [
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
