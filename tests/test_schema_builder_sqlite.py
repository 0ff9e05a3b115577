"""Integration tests against an in-memory SQLite database."""

import pytest

from schema_builder.errors import ConnectionError, IntrospectionError, UnsupportedFeature
from schema_builder.schema import Blueprint, registry
from schema_builder.schema.grammars import SQLiteGrammar

from .conftest import TinyInteger


def create_users(schema):
    schema.create("users", lambda table: (
        table.id(),
        table.string("email").unique(),
        table.integer("votes").default(0),
    ))


class TestTables:
    def test_create_and_has_table(self, schema):
        create_users(schema)

        assert schema.has_table("users")
        assert schema.has_column("users", "EMAIL")
        assert schema.has_columns("users", ["id", "email", "votes"])
        assert not schema.has_columns("users", ["id", "missing"])

    def test_get_tables(self, schema):
        create_users(schema)
        schema.create("posts", lambda table: table.id())

        tables = schema.get_tables()

        assert [t.name for t in tables] == ["posts", "users"]
        assert all(t.schema == "main" and t.size is None for t in tables)
        assert schema.get_table_listing() == ["posts", "users"]

    def test_drop_all_tables_then_recreate(self, schema):
        schema.create("table", lambda table: table.string("name"))
        schema.create("other", lambda table: table.id())

        statements = schema.drop_all_tables()

        assert statements == ["DROP TABLE other", 'DROP TABLE "table"']
        assert schema.get_table_listing() == []

        schema.create("table", lambda table: table.string("name"))
        assert schema.has_table("table")

    def test_drop_all_tables_on_empty_database(self, schema):
        assert schema.drop_all_tables() == []

    def test_drop_all_tables_with_foreign_keys(self, schema, sqlite_connection):
        create_users(schema)
        schema.create("posts", lambda table: (
            table.id(),
            table.unsigned_big_integer("user_id"),
            table.foreign("user_id").references("id").on("users"),
        ))

        schema.drop_all_tables()

        assert schema.get_table_listing() == []
        assert sqlite_connection.select("PRAGMA foreign_keys")[0]["foreign_keys"] == 1

    def test_rename_and_drop(self, schema):
        create_users(schema)

        schema.rename("users", "people")
        assert schema.has_table("people")
        assert not schema.has_table("users")

        schema.drop("people")
        assert not schema.has_table("people")
        schema.drop_if_exists("people")

    def test_failed_statement_raises_connection_error(self, schema):
        with pytest.raises(ConnectionError) as exc_info:
            schema.drop("missing")

        assert exc_info.value.sql == "DROP TABLE missing"
        assert exc_info.value.__cause__ is not None


class TestViews:
    def test_drop_all_views_then_recreate(self, schema, sqlite_connection):
        sqlite_connection.statement("create view foo (id) as select 1")
        assert schema.has_view("foo")

        schema.drop_all_views()
        assert not schema.has_view("foo")

        sqlite_connection.statement("create view foo (id) as select 1")
        assert schema.has_view("foo")

    def test_get_views(self, schema, sqlite_connection):
        sqlite_connection.statement("create view foo (id) as select 1")

        views = schema.get_views()

        assert [v.name for v in views] == ["foo"]
        assert "select 1" in views[0].definition


class TestColumns:
    def test_get_columns(self, schema):
        create_users(schema)

        columns = {c.name: c for c in schema.get_columns("users")}

        assert list(columns) == ["id", "email", "votes"]
        assert columns["id"].auto_increment is True
        assert columns["email"].type_name == "varchar"
        assert columns["email"].nullable is False
        assert columns["votes"].default == "0"

    def test_get_column_type(self, schema):
        schema.create("items", lambda table: (
            table.decimal("price", 10, 2),
            table.string("name"),
        ))

        assert schema.get_column_type("items", "name") == "varchar"
        assert schema.get_column_type("items", "price", full_definition=True) == "numeric"

    def test_get_column_type_missing_column(self, schema):
        create_users(schema)

        with pytest.raises(IntrospectionError):
            schema.get_column_type("users", "missing")

    def test_rename_and_drop_column(self, schema):
        create_users(schema)

        schema.table("users", lambda table: table.rename_column("email", "address"))
        assert schema.get_column_listing("users") == ["id", "address", "votes"]

        schema.drop_columns("users", "votes")
        assert schema.get_column_listing("users") == ["id", "address"]

    def test_add_column(self, schema):
        create_users(schema)

        schema.table("users", lambda table: table.string("nickname").nullable())

        assert schema.has_column("users", "nickname")


class TestChangeColumn:
    def test_custom_type_change(self, sqlite_connection):
        sqlite_connection.register_type("tinyinteger", "tinyint", TinyInteger)
        sqlite_connection.register_type("tinyinteger", "tinyint", TinyInteger)
        schema = sqlite_connection.get_schema_builder()
        schema.create("test", lambda table: table.string("test_column"))

        Blueprint("test", lambda table: table.tiny_integer("test_column").change()).build(
            sqlite_connection, SQLiteGrammar(),
        )

        assert schema.get_column_type("test", "test_column") == "tinyinteger"
        assert registry.identifiers().count("tinyinteger") == 1

    def test_rebuild_preserves_rows_and_indexes(self, schema, sqlite_connection):
        create_users(schema)
        sqlite_connection.statement("insert into users (email, votes) values (?, ?)", ["a@example.com", 3])

        statements = schema.table("users", lambda table: table.big_integer("votes").nullable().change())

        assert statements[:4] == [
            "CREATE TABLE __temp__users (id INTEGER PRIMARY KEY AUTOINCREMENT NOT NULL, "
            "email VARCHAR NOT NULL, votes INTEGER DEFAULT 0)",
            "INSERT INTO __temp__users (id, email, votes) SELECT id, email, votes FROM users",
            "DROP TABLE users",
            "ALTER TABLE __temp__users RENAME TO users",
        ]
        assert statements[-1] == "CREATE UNIQUE INDEX users_email_unique ON users (email)"

        votes = {c.name: c for c in schema.get_columns("users")}["votes"]
        assert votes.nullable is True
        assert votes.default == "0"
        assert sqlite_connection.select("select email, votes from users") == [
            {"email": "a@example.com", "votes": 3}
        ]
        assert schema.has_index("users", "users_email_unique", "unique")
        assert schema.has_index("users", ["id"], "primary")
        assert not schema.has_table("__temp__users")

    def test_rebuild_keeps_foreign_keys(self, schema):
        create_users(schema)
        schema.create("posts", lambda table: (
            table.id(),
            table.unsigned_big_integer("user_id"),
            table.string("title"),
            table.foreign("user_id").references("id").on("users").on_delete("cascade"),
        ))

        schema.table("posts", lambda table: table.text("title").change())

        foreign_keys = schema.get_foreign_keys("posts")
        assert len(foreign_keys) == 1
        assert foreign_keys[0].on_delete == "CASCADE"

    def test_rebuild_keeps_rows_of_referencing_tables(self, schema, sqlite_connection):
        create_users(schema)
        schema.create("posts", lambda table: (
            table.id(),
            table.unsigned_big_integer("user_id"),
            table.foreign("user_id").references("id").on("users").on_delete("cascade"),
        ))
        sqlite_connection.statement("insert into users (email) values (?)", ["a@example.com"])
        sqlite_connection.statement("insert into posts (user_id) values (1)")

        schema.table("users", lambda table: table.text("email").nullable().change())

        assert sqlite_connection.select("select count(*) as n from posts") == [{"n": 1}]
        assert sqlite_connection.select("PRAGMA foreign_keys")[0]["foreign_keys"] == 1
        assert schema.get_foreign_keys("posts")[0].foreign_table == "users"

    def test_rebuild_keeps_enum_check(self, schema, sqlite_connection):
        schema.create("orders", lambda table: (
            table.enum("status", ["a", "b"]),
            table.string("name"),
        ))

        schema.table("orders", lambda table: table.text("name").change())

        sqlite_connection.statement("insert into orders (status, name) values ('a', 'x')")
        with pytest.raises(ConnectionError):
            sqlite_connection.statement("insert into orders (status, name) values ('zzz', 'y')")

    def test_rebuild_keeps_collation_and_table_constraints(self, schema, sqlite_connection):
        sqlite_connection.statement(
            'create table tags (name varchar collate nocase, "sort order" integer, label varchar, '
            'unique (name), check ("sort order" >= 0))'
        )
        sqlite_connection.statement("insert into tags (name, \"sort order\", label) values ('php', 1, 'x')")

        schema.table("tags", lambda table: table.text("label").nullable().change())

        assert sqlite_connection.select("select name from tags where name = 'PHP'") == [{"name": "php"}]
        assert schema.has_index("tags", ["name"], "unique")
        with pytest.raises(ConnectionError):
            sqlite_connection.statement("insert into tags (name, \"sort order\") values ('sql', -1)")
        with pytest.raises(ConnectionError):
            sqlite_connection.statement("insert into tags (name, \"sort order\") values ('PHP', 2)")

    def test_change_missing_table(self, schema):
        with pytest.raises(IntrospectionError):
            schema.table("missing", lambda table: table.text("title").change())


class TestIndexes:
    def test_fluent_index_name(self, schema):
        schema.create("foo", lambda table: table.string("bar").index("my_index"))

        indexes = schema.get_indexes("foo")

        assert len(indexes) == 1
        assert indexes[0].name == "my_index"
        assert indexes[0].columns == ["bar"]
        assert not indexes[0].unique
        assert not indexes[0].primary

    def test_unique_index_and_primary(self, schema):
        schema.create("foo", lambda table: (
            table.id(),
            table.string("bar"),
            table.string("baz"),
            table.unique(["baz", "bar"]),
        ))

        indexes = {index.name: index for index in schema.get_indexes("foo")}

        assert len(indexes) == 2
        assert indexes["primary"].primary
        assert indexes["primary"].columns == ["id"]
        assert indexes["foo_baz_bar_unique"].unique
        assert indexes["foo_baz_bar_unique"].columns == ["baz", "bar"]

    def test_composite_primary_key(self, schema):
        schema.create("foo", lambda table: (
            table.string("bar").unique(),
            table.string("baz"),
            table.unsigned_big_integer("key"),
            table.primary(["baz", "key"]),
        ))

        indexes = schema.get_indexes("foo")
        primary = [index for index in indexes if index.primary]

        assert len(indexes) == 2
        assert primary[0].columns == ["baz", "key"]
        assert schema.has_index("foo", "foo_bar_unique", "unique")

    def test_has_index(self, schema):
        schema.create("foo", lambda table: (
            table.string("bar"),
            table.string("baz"),
            table.index(["bar", "baz"]),
        ))

        assert schema.has_index("foo", "foo_bar_baz_index")
        assert schema.has_index("foo", ["bar", "baz"], "index")
        assert not schema.has_index("foo", ["bar", "baz"], "unique")
        assert not schema.has_index("foo", ["baz", "bar"])

    def test_fulltext_is_rejected_before_executing(self, schema):
        with pytest.raises(UnsupportedFeature):
            schema.create("foo", lambda table: (
                table.string("body"),
                table.fulltext("body"),
            ))

        assert not schema.has_table("foo")


class TestForeignKeys:
    def test_get_foreign_keys(self, schema):
        create_users(schema)
        schema.create("posts", lambda table: (
            table.id(),
            table.unsigned_big_integer("user_id"),
            table.foreign("user_id").references("id").on("users").on_delete("cascade"),
        ))

        foreign_keys = schema.get_foreign_keys("posts")

        assert len(foreign_keys) == 1
        assert foreign_keys[0].columns == ["user_id"]
        assert foreign_keys[0].foreign_table == "users"
        assert foreign_keys[0].foreign_columns == ["id"]
        assert foreign_keys[0].on_delete == "CASCADE"

    def test_without_foreign_key_constraints(self, schema, sqlite_connection):
        with schema.without_foreign_key_constraints():
            assert sqlite_connection.select("PRAGMA foreign_keys")[0]["foreign_keys"] == 0

        assert sqlite_connection.select("PRAGMA foreign_keys")[0]["foreign_keys"] == 1


class TestTablePrefix:
    def test_prefix_is_applied(self, sqlite_connection):
        sqlite_connection.prefix = "app_"
        schema = sqlite_connection.get_schema_builder()

        schema.create("users", lambda table: table.string("email").unique())

        assert sqlite_connection.select("select name from sqlite_master where type = 'table'") == [
            {"name": "app_users"}
        ]
        assert schema.has_table("users")
        assert schema.has_index("users", "app_users_email_unique")
