"""Construct storage backends from a configuration tag.

``DEFAULT_BACKEND`` is the one place the production backend is chosen.
"""

import logging
import os
from enum import Enum
from pathlib import Path

from authstore.storage.backends.base import UserBackend
from authstore.storage.backends.memory import MemoryBackend
from authstore.storage.backends.objectstore import ObjectStoreBackend
from authstore.storage.backends.sqlite import SQLiteBackend

logger = logging.getLogger(__name__)


class BackendType(str, Enum):
    """Available storage backends."""

    IN_MEMORY = "inMemory"
    EMBEDDED_STORE = "embeddedStore"
    RELATIONAL = "relational"


DEFAULT_BACKEND = BackendType.RELATIONAL


def parse_backend_type(value: BackendType | str) -> BackendType:
    """Resolve a tag such as ``"relational"`` to a :class:`BackendType`."""
    if isinstance(value, BackendType):
        return value
    try:
        return BackendType(value)
    except ValueError:
        choices = ", ".join(t.value for t in BackendType)
        raise ValueError(f"Unknown backend '{value}'. Choose one of: {choices}")


def default_storage_path() -> Path:
    """Directory for persistent backends when no path is configured."""
    xdg_data_home = Path(
        os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share")
    )
    return xdg_data_home / "authstore"


def create_backend(
    backend_type: BackendType | str,
    *,
    db_path: Path | str | None = None,
    data_dir: Path | None = None,
) -> UserBackend:
    """Create a ready-to-use backend.

    Args:
        backend_type: Which backend to build.
        db_path: Database file for the relational backend, or ``":memory:"``.
        data_dir: Directory for the embedded object store.

    Raises:
        ValueError: unknown backend tag
        ConnectionFailedError: the backend could not be opened
        MigrationFailedError: relational schema setup failed
    """
    kind = parse_backend_type(backend_type)

    if kind is BackendType.IN_MEMORY:
        backend: UserBackend = MemoryBackend()
    elif kind is BackendType.EMBEDDED_STORE:
        backend = ObjectStoreBackend(data_dir or default_storage_path() / "objects")
    else:
        if db_path is None:
            db_path = default_storage_path() / "users.sqlite"
        backend = SQLiteBackend(db_path)

    logger.debug("Created %s backend", kind.value)
    return backend


def create_default_backend(
    *, db_path: Path | str | None = None, data_dir: Path | None = None
) -> UserBackend:
    """Create the backend selected by ``DEFAULT_BACKEND``."""
    return create_backend(DEFAULT_BACKEND, db_path=db_path, data_dir=data_dir)
