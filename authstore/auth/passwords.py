"""Password digests and credential validation rules.

Digests are unsalted SHA-256 over the UTF-8 bytes, hex-encoded lowercase.
Equal passwords always produce equal digests.
"""

import hashlib
import hmac
import re

MIN_PASSWORD_LENGTH = 6

EMAIL_PATTERN = re.compile(r"[A-Z0-9a-z._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,64}")


def hash_password(password: str) -> str:
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def verify_password(password: str, digest: str) -> bool:
    """Check a plaintext password against a stored digest."""
    return hmac.compare_digest(
        hash_password(password).encode("ascii"), digest.encode("utf-8")
    )


def is_valid_email(email: str) -> bool:
    return EMAIL_PATTERN.fullmatch(email) is not None


def is_strong_password(password: str) -> bool:
    return len(password) >= MIN_PASSWORD_LENGTH
