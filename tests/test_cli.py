"""Tests for the schema-builder command line interface."""

import json
import sqlite3

import pytest
from typer.testing import CliRunner

from schema_builder.main import app

runner = CliRunner()


@pytest.fixture
def database(tmp_path):
    """URL of a SQLite file holding a users table and a view."""
    path = tmp_path / "app.db"
    raw = sqlite3.connect(str(path))
    raw.executescript(
        "create table users (id integer primary key autoincrement, email varchar not null, bio text);"
        "create unique index users_email_unique on users (email);"
        "create table posts (id integer primary key, user_id integer references users (id) on delete cascade);"
        "create view active_users as select id from users;"
    )
    raw.close()
    return f"sqlite:///{path}"


class TestInspectCommands:
    def test_tables(self, database):
        result = runner.invoke(app, ["tables", "--database", database, "--json"])

        assert result.exit_code == 0
        assert [row["name"] for row in json.loads(result.output)] == ["posts", "users"]

    def test_tables_table_output(self, database):
        result = runner.invoke(app, ["tables", "-d", database])

        assert result.exit_code == 0
        assert "users" in result.output

    def test_views(self, database):
        result = runner.invoke(app, ["views", "-d", database, "--json"])

        assert result.exit_code == 0
        assert "active_users" in result.output

    def test_columns(self, database):
        result = runner.invoke(app, ["columns", "users", "-d", database, "--json"])

        assert result.exit_code == 0
        assert [row["name"] for row in json.loads(result.output)] == ["id", "email", "bio"]

    def test_columns_of_missing_table(self, database):
        result = runner.invoke(app, ["columns", "missing", "-d", database])

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_indexes(self, database):
        result = runner.invoke(app, ["indexes", "users", "-d", database, "--json"])

        assert result.exit_code == 0
        names = {row["name"] for row in json.loads(result.output)}
        assert names == {"primary", "users_email_unique"}

    def test_foreign_keys(self, database):
        result = runner.invoke(app, ["foreign-keys", "posts", "-d", database, "--json"])

        assert result.exit_code == 0
        rows = json.loads(result.output)
        assert rows[0]["foreign_table"] == "users"
        assert rows[0]["on_delete"] == "CASCADE"

    def test_column_type(self, database):
        result = runner.invoke(app, ["column-type", "users", "email", "-d", database])

        assert result.exit_code == 0
        assert result.output.strip() == "varchar"

    def test_column_type_of_missing_column(self, database):
        result = runner.invoke(app, ["column-type", "users", "missing", "-d", database])

        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_unsupported_scheme(self):
        result = runner.invoke(app, ["tables", "-d", "oracle://localhost/db"])

        assert result.exit_code == 1
        assert "Unsupported database scheme" in result.output


class TestDropAll:
    def test_drop_all_with_force(self, database):
        result = runner.invoke(app, ["drop-all", "-d", database, "--views", "--force"])

        assert result.exit_code == 0
        assert "Dropped 2 table(s) and 1 view(s)" in result.output

        after = runner.invoke(app, ["tables", "-d", database, "--json"])
        assert json.loads(after.output) == []

    def test_drop_all_aborted(self, database):
        result = runner.invoke(app, ["drop-all", "-d", database], input="n\n")

        assert result.exit_code == 0
        assert "Aborted" in result.output

        after = runner.invoke(app, ["tables", "-d", database, "--json"])
        assert len(json.loads(after.output)) == 2

    def test_nothing_to_drop(self, tmp_path):
        result = runner.invoke(app, ["drop-all", "-d", f"sqlite:///{tmp_path / 'empty.db'}", "--force"])

        assert result.exit_code == 0
        assert "Nothing to drop" in result.output


class TestConfigCommand:
    def test_config(self):
        result = runner.invoke(app, ["config"])

        assert result.exit_code == 0
        assert "Database URL" in result.output
        assert "Default String Length" in result.output
