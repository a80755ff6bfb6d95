"""Pytest configuration and fixtures."""

import os

import pytest


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch, tmp_path):
    """Isolate environment variables for each test.

    Default storage and config locations point into a per-test directory
    so nothing touches the real home directory.
    """
    original_env = os.environ.copy()
    for name in ("AUTHSTORE_BACKEND", "AUTHSTORE_DB_PATH", "AUTHSTORE_DATA_DIR"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg-data"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg-config"))

    yield

    os.environ.clear()
    os.environ.update(original_env)
