"""Shared fixtures for storage tests."""

from datetime import datetime, timedelta, timezone

import pytest

from authstore.core.models import User

BASE_TIME = datetime(2024, 1, 15, 9, 30, 0, 123456, tzinfo=timezone.utc)


@pytest.fixture
def make_user():
    """Factory for users with predictable fields."""
    counter = iter(range(1000))

    def _make(username: str = "user", email: str | None = None, **overrides) -> User:
        n = next(counter)
        fields = {
            "username": username,
            "email": email or f"{username}{n}@example.com",
            "password": "0" * 64,
            "created_at": BASE_TIME + timedelta(minutes=n),
        }
        fields.update(overrides)
        return User(**fields)

    return _make


@pytest.fixture
def alice(make_user):
    return make_user("alice", "alice@example.com", id="alice-id")


@pytest.fixture
def bob(make_user):
    return make_user("bob", "bob@example.com", id="bob-id")


@pytest.fixture
def carol(make_user):
    return make_user("carol", "carol@example.com", id="carol-id")


@pytest.fixture
def memory_backend():
    from authstore.storage.backends import MemoryBackend

    backend = MemoryBackend()
    yield backend
    backend.close()


@pytest.fixture
def object_backend(tmp_path):
    from authstore.storage.backends import ObjectStoreBackend

    backend = ObjectStoreBackend(tmp_path / "objects")
    yield backend
    backend.close()


@pytest.fixture
def sqlite_backend():
    from authstore.storage.backends import SQLiteBackend

    backend = SQLiteBackend(":memory:")
    yield backend
    backend.close()
