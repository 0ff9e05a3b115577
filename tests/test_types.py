"""Tests for the custom column type registry."""

import sqlite3

from schema_builder.database import Connection, Dialect
from schema_builder.schema import Blueprint, CustomType, CustomTypeRegistry, registry

from .conftest import TinyInteger


class Money(CustomType):
    """Stores amounts as integer cents."""

    name = "money"

    def to_database(self, value):
        return int(round(value * 100))

    def to_python(self, value):
        return value / 100


class TestCustomTypeRegistry:
    def test_register_and_lookup(self):
        types = CustomTypeRegistry()
        entry = types.register("Money", "integer", Money)

        assert entry.identifier == "money"
        assert entry.native_name == "INTEGER"
        assert isinstance(entry.handler, Money)
        assert types.has("MONEY")
        assert "money" in types

    def test_registration_is_idempotent(self):
        types = CustomTypeRegistry()
        first = types.register("tinyinteger", "tinyint", TinyInteger)
        second = types.register("tinyinteger", "smallint")

        assert second is first
        assert len(types) == 1
        assert types.get("tinyinteger").native_name == "TINYINT"

    def test_default_handler_passes_values_through(self):
        types = CustomTypeRegistry()
        entry = types.register("geometry", "geometry")

        assert entry.handler.to_database("POINT(1 2)") == "POINT(1 2)"

    def test_find_by_native_ignores_parameters(self):
        types = CustomTypeRegistry()
        types.register("tinyinteger", "tinyint")

        assert types.find_by_native("tinyint(4)").identifier == "tinyinteger"
        assert types.find_by_native("int") is None

    def test_unregister(self):
        types = CustomTypeRegistry()
        types.register("money", "integer")
        types.unregister("money")

        assert types.identifiers() == []


class TestCustomTypesInGrammars:
    def test_registered_type_overrides_builtin(self, mysql_grammar):
        registry.register("tinyinteger", "smallint", TinyInteger)
        blueprint = Blueprint("test", lambda table: table.tiny_integer("flag"))

        assert blueprint.to_sql(None, mysql_grammar) == ["ALTER TABLE test ADD flag SMALLINT NOT NULL"]

    def test_custom_column(self, postgres_grammar):
        registry.register("citext", "citext")
        blueprint = Blueprint("users", lambda table: table.custom("email", "citext"))
        blueprint.create()

        assert blueprint.to_sql(None, postgres_grammar) == ["CREATE TABLE users (email CITEXT NOT NULL)"]

    def test_handler_converts_defaults(self, sqlite_grammar):
        registry.register("money", "integer", Money)
        blueprint = Blueprint("orders", lambda table: table.add_column("money", "total").default(1.5))
        blueprint.create()

        assert blueprint.to_sql(None, sqlite_grammar) == ["CREATE TABLE orders (total INTEGER NOT NULL DEFAULT 150)"]

    def test_grammar_with_own_registry(self):
        from schema_builder.schema.grammars import MySqlGrammar

        types = CustomTypeRegistry()
        types.register("uuid", "binary(16)")
        grammar = MySqlGrammar(registry=types)
        blueprint = Blueprint("users", lambda table: table.uuid("token"))

        assert blueprint.to_sql(None, grammar) == ["ALTER TABLE users ADD token BINARY(16) NOT NULL"]


class TestConnectionRegistry:
    def test_type_registered_on_connection(self):
        raw = sqlite3.connect(":memory:", isolation_level=None)
        connection = Connection(raw, Dialect.SQLITE, registry=CustomTypeRegistry())
        connection.register_type("money", "integer", Money)
        schema = connection.get_schema_builder()

        schema.create("orders", lambda table: table.custom("total", "money").default(2.5))

        assert schema.get_column_type("orders", "total") == "money"
        assert schema.get_columns("orders")[0].default == "250"
        assert not registry.has("money")
        connection.close()
