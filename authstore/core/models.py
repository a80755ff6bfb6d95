"""Core data model for stored users.

The User record is a plain value object: it carries no reference to the
backend it was read from and is copied freely between layers. Backends
persist its five fields and hand back new instances on every read.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

import msgspec


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(msgspec.Struct, frozen=True, kw_only=True):
    """Immutable user record.

    ``password`` holds the hex-encoded digest once the record has passed
    through the authentication service; storage never inspects it.
    ``id`` and ``created_at`` are generated when not supplied and are never
    changed by updates.
    """

    username: str
    email: str
    password: str
    id: str = msgspec.field(default_factory=_new_id)
    created_at: datetime = msgspec.field(default_factory=_utcnow)

    @classmethod
    def create(cls, username: str, email: str, password: str) -> "User":
        """Create a user with a fresh id and the current timestamp."""
        return cls(username=username, email=email, password=password)

    @property
    def is_valid(self) -> bool:
        """Whether all text fields are non-empty."""
        return bool(self.username and self.email and self.password)

    def with_changes(self, **changes: Any) -> "User":
        """Return a copy with username, email or password replaced."""
        forbidden = {"id", "created_at"} & changes.keys()
        if forbidden:
            raise ValueError(f"Cannot change immutable fields: {sorted(forbidden)}")
        return msgspec.structs.replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dictionary."""
        return msgspec.to_builtins(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "User":
        """Build a user from a dictionary produced by ``to_dict``."""
        return msgspec.convert(data, cls)
