"""Tests for the command-line interface."""

import pytest
from click.testing import CliRunner

from authstore.cli.main import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def db_args(tmp_path):
    return ["--no-color", "--backend", "relational", "--db-path", str(tmp_path / "users.sqlite")]


def register(runner, args, username, email, password="secret1"):
    return runner.invoke(
        cli, [*args, "register", username, email, "--password", password]
    )


class TestMainCommand:
    def test_help(self, runner):
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "register" in result.output
        assert "migrate" in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "authstore version" in result.output

    def test_bad_config_file(self, runner, tmp_path):
        config = tmp_path / "bad.yaml"
        config.write_text("backend: [unclosed\n")

        result = runner.invoke(cli, ["--config", str(config), "users"])

        assert result.exit_code == 1
        assert "Invalid YAML" in result.output

    def test_backend_from_config(self, runner, tmp_path):
        config = tmp_path / "config.yaml"
        config.write_text(f"backend: embeddedStore\ndata_dir: {tmp_path / 'objects'}\n")

        result = runner.invoke(cli, ["--config", str(config), "stats"])

        assert result.exit_code == 0
        assert "embeddedStore" in result.output


class TestUserCommands:
    def test_register_and_list(self, runner, db_args):
        result = register(runner, db_args, "alice", "alice@example.com")
        assert result.exit_code == 0
        assert "Registered alice" in result.output

        result = runner.invoke(cli, [*db_args, "users"])
        assert result.exit_code == 0
        assert "alice@example.com" in result.output

    def test_register_prompts_for_password(self, runner, db_args):
        result = runner.invoke(
            cli,
            [*db_args, "register", "alice", "alice@example.com"],
            input="secret1\nsecret1\n",
        )

        assert result.exit_code == 0
        assert "Registered alice" in result.output

    def test_register_duplicate(self, runner, db_args):
        register(runner, db_args, "alice", "alice@example.com")

        result = register(runner, db_args, "again", "alice@example.com")

        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_register_invalid_email(self, runner, db_args):
        result = register(runner, db_args, "alice", "not-an-email")

        assert result.exit_code == 1
        assert "valid email" in result.output

    def test_login(self, runner, db_args):
        register(runner, db_args, "alice", "alice@example.com")

        ok = runner.invoke(cli, [*db_args, "login", "alice@example.com", "--password", "secret1"])
        bad = runner.invoke(cli, [*db_args, "login", "alice@example.com", "--password", "wrong12"])

        assert ok.exit_code == 0
        assert "Logged in as alice" in ok.output
        assert bad.exit_code == 1
        assert "Invalid email or password" in bad.output

    def test_users_empty(self, runner, db_args):
        result = runner.invoke(cli, [*db_args, "users"])

        assert result.exit_code == 0
        assert "No users" in result.output

    def test_delete(self, runner, db_args, tmp_path):
        from authstore.storage.backends import SQLiteBackend

        register(runner, db_args, "alice", "alice@example.com")
        backend = SQLiteBackend(tmp_path / "users.sqlite")
        user_id = backend.find_user_by_email("alice@example.com").id
        backend.close()

        first = runner.invoke(cli, [*db_args, "delete", user_id])
        second = runner.invoke(cli, [*db_args, "delete", user_id])

        assert "Deleted" in first.output
        assert "No user with id" in second.output

    def test_stats(self, runner, db_args):
        register(runner, db_args, "alice", "alice@example.com")

        result = runner.invoke(cli, [*db_args, "stats"])

        assert result.exit_code == 0
        assert "user_count: 1" in result.output
        assert "relational" in result.output


class TestMigrateCommand:
    def test_migrate_to_object_store(self, runner, db_args, tmp_path):
        register(runner, db_args, "alice", "alice@example.com")
        register(runner, db_args, "bob", "bob@example.com")
        objects = tmp_path / "objects"

        result = runner.invoke(
            cli, [*db_args, "migrate", "--to", "embeddedStore", "--to-data-dir", str(objects)]
        )

        assert result.exit_code == 0
        assert "Migrated 2 of 2 users" in result.output

        listed = runner.invoke(
            cli, ["--backend", "embeddedStore", "--data-dir", str(objects), "users"]
        )
        assert "alice@example.com" in listed.output
        assert "bob@example.com" in listed.output

    def test_migrate_twice_skips(self, runner, db_args, tmp_path):
        register(runner, db_args, "alice", "alice@example.com")
        args = [*db_args, "migrate", "--to", "embeddedStore", "--to-data-dir", str(tmp_path / "o")]

        runner.invoke(cli, args)
        result = runner.invoke(cli, args)

        assert result.exit_code == 0
        assert "Migrated 0 of 1 users" in result.output
        assert "Skipped" in result.output

    def test_migrate_requires_target(self, runner, db_args):
        result = runner.invoke(cli, [*db_args, "migrate"])

        assert result.exit_code == 2
