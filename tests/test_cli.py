"""Tests for the rod command line."""

import json

import pytest

from rod.cli import EXIT_ERROR, EXIT_MISSING, EXIT_OK, main


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "cli.db")


class TestCli:
    """Tests for rod.cli.main()."""

    def test_put_then_get(self, db_path, capsys):
        assert main([db_path, "put", "users.chilts", "email", "a@example.com"]) == EXIT_OK
        assert main([db_path, "get", "users.chilts", "email"]) == EXIT_OK
        assert capsys.readouterr().out == "a@example.com\n"

    def test_get_missing(self, db_path, capsys):
        main([db_path, "put", "users", "count", "1"])
        assert main([db_path, "get", "users", "nobody"]) == EXIT_MISSING
        assert main([db_path, "get", "nothing.here", "nobody"]) == EXIT_MISSING
        assert capsys.readouterr().out == ""

    def test_keys_and_dump(self, db_path, capsys):
        main([db_path, "put", "animal", "dog", "rover"])
        main([db_path, "put", "animal", "cat", "willow"])
        capsys.readouterr()

        assert main([db_path, "keys", "animal"]) == EXIT_OK
        assert capsys.readouterr().out == "cat\ndog\n"

        assert main([db_path, "dump", "animal"]) == EXIT_OK
        assert json.loads(capsys.readouterr().out) == {"cat": "willow", "dog": "rover"}

    def test_dump_missing(self, db_path):
        main([db_path, "put", "animal", "dog", "rover"])
        assert main([db_path, "dump", "plants"]) == EXIT_MISSING

    def test_delete(self, db_path, capsys):
        main([db_path, "put", "animal", "dog", "rover"])
        assert main([db_path, "del", "animal", "dog"]) == EXIT_OK
        assert main([db_path, "del", "animal", "dog"]) == EXIT_OK
        assert main([db_path, "get", "animal", "dog"]) == EXIT_MISSING

    def test_invalid_location(self, db_path, capsys):
        assert main([db_path, "put", "a..b", "k", "v"]) == EXIT_ERROR
        assert "invalid location bucket" in capsys.readouterr().err

    def test_missing_database(self, tmp_path, capsys):
        """Reads never create the database file."""
        missing = str(tmp_path / "missing.db")
        assert main([missing, "get", "a", "k"]) == EXIT_ERROR
        assert capsys.readouterr().err.startswith("error:")
        assert not (tmp_path / "missing.db").exists()

    def test_url_database(self, db_path, capsys):
        main([f"sqlite:///{db_path}", "put", "a", "k", "v"])
        assert main([f"sqlite:///{db_path}", "get", "a", "k"]) == EXIT_OK
        assert capsys.readouterr().out == "v\n"
