"""Command-line interface."""

import json

from typer.testing import CliRunner

from sqlite_gateway.cli import app
from sqlite_gateway.version import __version__
from tests.conftest import count_rows


runner = CliRunner()


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_query_csv(db_path):
    result = runner.invoke(app, ["query", db_path, "SELECT id, name FROM users ORDER BY id", "--format", "csv"])

    assert result.exit_code == 0
    assert 'id,name\n1,Alice\n2,Bob\n3,"Carol, PhD"\n' in result.stdout


def test_query_json(db_path):
    result = runner.invoke(app, ["query", db_path, "SELECT name FROM users WHERE id = 1", "-f", "json"])

    assert result.exit_code == 0
    assert json.loads(result.stdout) == [{"name": "Alice"}]


def test_query_table(db_path):
    result = runner.invoke(app, ["query", db_path, "SELECT name FROM users ORDER BY id"])

    assert result.exit_code == 0
    assert "Alice" in result.stdout


def test_query_read_only_violation(db_path):
    result = runner.invoke(app, ["query", db_path, "DELETE FROM users WHERE id = 1", "--read-only"])

    assert result.exit_code == 1
    assert count_rows(db_path, "users") == 3


def test_query_destructive_blocked(db_path):
    result = runner.invoke(app, ["query", db_path, "DROP TABLE users"])

    assert result.exit_code == 1
    assert count_rows(db_path, "users") == 3


def test_tables(db_path):
    result = runner.invoke(app, ["tables", db_path])

    assert result.exit_code == 0
    for name in ("users", "notes", "empty_table"):
        assert name in result.stdout
