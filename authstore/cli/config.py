"""Configuration management for the CLI."""

import os
from pathlib import Path
from typing import Any

import yaml

CONFIG_KEYS = ("backend", "db_path", "data_dir")


class Config:
    """Configuration management for the CLI application."""

    @staticmethod
    def from_file(path: Path) -> dict[str, Any]:
        """Load configuration from a YAML file."""
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in config file: {e}")
        except OSError as e:
            raise ValueError(f"Error reading config file: {e}")

        if not isinstance(data, dict):
            raise ValueError(f"Config file must contain a mapping: {path}")
        return {key: data[key] for key in CONFIG_KEYS if data.get(key) is not None}

    @staticmethod
    def get_config_paths() -> list[Path]:
        """Get the default configuration file paths to check."""
        xdg_config_home = Path(
            os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
        )
        return [
            xdg_config_home / "authstore" / "config.yaml",
            Path(".authstore.yaml"),
            Path("authstore.yaml"),
        ]


def load_config(extra_file: Path | None = None) -> dict[str, Any]:
    """Load configuration from files and environment variables.

    Later files override earlier ones; ``extra_file`` comes last, then the
    ``AUTHSTORE_*`` environment variables.
    """
    config: dict[str, Any] = {}

    for path in Config.get_config_paths():
        if path.exists():
            config.update(Config.from_file(path))

    if extra_file is not None:
        config.update(Config.from_file(extra_file))

    if backend := os.environ.get("AUTHSTORE_BACKEND"):
        config["backend"] = backend
    if db_path := os.environ.get("AUTHSTORE_DB_PATH"):
        config["db_path"] = db_path
    if data_dir := os.environ.get("AUTHSTORE_DATA_DIR"):
        config["data_dir"] = data_dir

    return config
