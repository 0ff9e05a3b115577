"""Shared pytest fixtures for schema-builder tests."""

import sqlite3

import pytest

from schema_builder.database import Connection, Dialect
from schema_builder.schema import CustomType, registry
from schema_builder.schema.grammars import MySqlGrammar, PostgresGrammar, SQLiteGrammar, SqlServerGrammar

from .fixtures import FakeConnection


class TinyInteger(CustomType):
    """Custom type mapping the ``tinyinteger`` identifier to TINYINT."""

    name = "tinyinteger"


@pytest.fixture(autouse=True)
def clean_registry():
    """Remove custom types registered by a test from the global registry."""
    before = set(registry.identifiers())
    yield registry
    for identifier in set(registry.identifiers()) - before:
        registry.unregister(identifier)


@pytest.fixture
def mysql_grammar():
    return MySqlGrammar()


@pytest.fixture
def postgres_grammar():
    return PostgresGrammar()


@pytest.fixture
def sqlite_grammar():
    return SQLiteGrammar()


@pytest.fixture
def sqlserver_grammar():
    return SqlServerGrammar()


@pytest.fixture
def fake_dbapi():
    """A fake DB-API connection recording every statement."""
    return FakeConnection()


@pytest.fixture
def mysql_connection(fake_dbapi):
    """MySQL connection backed by the fake driver."""
    return Connection(fake_dbapi, Dialect.MYSQL, database="app")


@pytest.fixture
def postgres_connection(fake_dbapi):
    """PostgreSQL connection backed by the fake driver."""
    return Connection(fake_dbapi, Dialect.PGSQL, database="app", schema="public")


@pytest.fixture
def sqlite_connection():
    """In-memory SQLite connection in autocommit mode."""
    raw = sqlite3.connect(":memory:", isolation_level=None)
    raw.execute("PRAGMA foreign_keys = ON")
    connection = Connection(raw, Dialect.SQLITE, database=":memory:")
    yield connection
    connection.close()


@pytest.fixture
def schema(sqlite_connection):
    """Schema builder over the in-memory SQLite connection."""
    return sqlite_connection.get_schema_builder()
