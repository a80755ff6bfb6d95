"""Tests for CLI configuration loading."""

import pytest

from authstore.cli.config import Config, load_config


class TestConfigFile:
    def test_from_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("backend: embeddedStore\ndata_dir: /tmp/objects\ntheme: dark\n")

        config = Config.from_file(path)

        assert config == {"backend": "embeddedStore", "data_dir": "/tmp/objects"}

    def test_empty_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")

        assert Config.from_file(path) == {}

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("backend: [unclosed\n")

        with pytest.raises(ValueError, match="Invalid YAML"):
            Config.from_file(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- relational\n")

        with pytest.raises(ValueError):
            Config.from_file(path)

    def test_config_paths_follow_xdg(self, tmp_path):
        paths = Config.get_config_paths()

        assert paths[0] == tmp_path / "xdg-config" / "authstore" / "config.yaml"


class TestLoadConfig:
    @pytest.fixture(autouse=True)
    def in_tmp_dir(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

    def test_defaults_to_empty(self):
        assert load_config() == {}

    def test_user_config(self, tmp_path):
        config_dir = tmp_path / "xdg-config" / "authstore"
        config_dir.mkdir(parents=True)
        (config_dir / "config.yaml").write_text("backend: inMemory\n")

        assert load_config() == {"backend": "inMemory"}

    def test_extra_file_overrides(self, tmp_path):
        config_dir = tmp_path / "xdg-config" / "authstore"
        config_dir.mkdir(parents=True)
        (config_dir / "config.yaml").write_text("backend: inMemory\ndb_path: a.db\n")
        extra = tmp_path / "extra.yaml"
        extra.write_text("backend: relational\n")

        assert load_config(extra) == {"backend": "relational", "db_path": "a.db"}

    def test_environment_overrides(self, tmp_path, monkeypatch):
        extra = tmp_path / "extra.yaml"
        extra.write_text("backend: relational\n")
        monkeypatch.setenv("AUTHSTORE_BACKEND", "embeddedStore")
        monkeypatch.setenv("AUTHSTORE_DATA_DIR", "/srv/objects")

        assert load_config(extra) == {
            "backend": "embeddedStore",
            "data_dir": "/srv/objects",
        }
