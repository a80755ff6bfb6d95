"""Tests for backend construction."""

import pytest

from authstore.storage.backends import MemoryBackend, ObjectStoreBackend, SQLiteBackend
from authstore.storage.factory import (
    DEFAULT_BACKEND,
    BackendType,
    create_backend,
    create_default_backend,
    default_storage_path,
    parse_backend_type,
)


class TestBackendType:
    def test_tags(self):
        assert [t.value for t in BackendType] == ["inMemory", "embeddedStore", "relational"]

    def test_parse(self):
        assert parse_backend_type("embeddedStore") is BackendType.EMBEDDED_STORE
        assert parse_backend_type(BackendType.RELATIONAL) is BackendType.RELATIONAL

    def test_parse_unknown(self):
        with pytest.raises(ValueError, match="inMemory, embeddedStore, relational"):
            parse_backend_type("realm")


class TestCreateBackend:
    def test_in_memory(self):
        backend = create_backend("inMemory")
        assert isinstance(backend, MemoryBackend)

    def test_embedded_store(self, tmp_path):
        backend = create_backend(BackendType.EMBEDDED_STORE, data_dir=tmp_path / "objects")
        try:
            assert isinstance(backend, ObjectStoreBackend)
            assert (tmp_path / "objects" / "users").is_dir()
        finally:
            backend.close()

    def test_relational_in_memory(self):
        backend = create_backend("relational", db_path=":memory:")
        try:
            assert isinstance(backend, SQLiteBackend)
            assert backend.applied_migrations() == ["createUsers"]
        finally:
            backend.close()

    def test_relational_file(self, tmp_path):
        path = tmp_path / "users.sqlite"
        backend = create_backend("relational", db_path=path)
        backend.close()

        assert path.exists()

    def test_default_locations(self):
        """Unset paths fall under the XDG data directory."""
        backend = create_backend("relational")
        try:
            assert backend.db_path == str(default_storage_path() / "users.sqlite")
        finally:
            backend.close()

        store = create_backend("embeddedStore")
        try:
            assert store.data_dir == default_storage_path() / "objects"
        finally:
            store.close()

    def test_default_backend(self):
        backend = create_default_backend(db_path=":memory:")
        try:
            assert backend.backend_type == DEFAULT_BACKEND.value
        finally:
            backend.close()

    def test_unknown(self):
        with pytest.raises(ValueError):
            create_backend("mongo")
