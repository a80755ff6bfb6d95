"""Shared fixtures for authentication tests."""

import pytest

from authstore.auth.service import AuthService
from authstore.storage.backends import MemoryBackend, ObjectStoreBackend, SQLiteBackend


@pytest.fixture(params=["inMemory", "embeddedStore", "relational"])
def database(request, tmp_path):
    """Each storage backend in turn."""
    if request.param == "inMemory":
        backend = MemoryBackend()
    elif request.param == "embeddedStore":
        backend = ObjectStoreBackend(tmp_path / "objects")
    else:
        backend = SQLiteBackend(":memory:")
    yield backend
    backend.close()


@pytest.fixture
def service(database):
    return AuthService(database)


@pytest.fixture
def memory_service():
    return AuthService(MemoryBackend())
