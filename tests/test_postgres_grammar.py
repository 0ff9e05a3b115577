"""Tests for PostgreSQL DDL generation."""

from unittest.mock import patch

from schema_builder.database import ColumnInfo, PostgresIntrospector
from schema_builder.schema import Blueprint


class TestCreateTable:
    def test_serial_primary_key(self, postgres_grammar):
        blueprint = Blueprint("users", lambda table: (
            table.id(),
            table.string("email").unique(),
            table.boolean("active").default(False),
        ))
        blueprint.create()

        assert blueprint.to_sql(None, postgres_grammar) == [
            "CREATE TABLE users (id BIGSERIAL NOT NULL PRIMARY KEY, email VARCHAR(255) NOT NULL, "
            "active BOOLEAN NOT NULL DEFAULT FALSE)",
            "ALTER TABLE users ADD CONSTRAINT users_email_unique UNIQUE (email)",
        ]

    def test_comments_are_separate_statements(self, postgres_grammar):
        blueprint = Blueprint("users", lambda table: (
            table.increments("id"),
            table.string("name").comment("Display name"),
            table.comment("Users"),
        ))
        blueprint.create()

        assert blueprint.to_sql(None, postgres_grammar) == [
            "CREATE TABLE users (id SERIAL NOT NULL PRIMARY KEY, name VARCHAR(255) NOT NULL)",
            "COMMENT ON COLUMN users.name IS 'Display name'",
            "COMMENT ON TABLE users IS 'Users'",
        ]

    def test_enum_uses_check_constraint(self, postgres_grammar):
        blueprint = Blueprint("posts", lambda table: table.enum("status", ["draft", "live"]).default("draft"))
        blueprint.create()

        assert blueprint.to_sql(None, postgres_grammar) == [
            "CREATE TABLE posts (status VARCHAR(255) CHECK (status IN ('draft', 'live')) NOT NULL DEFAULT 'draft')"
        ]

    def test_temporal_and_binary_types(self, postgres_grammar):
        blueprint = Blueprint("events", lambda table: (
            table.date("day"),
            table.date_time("starts_at", 6),
            table.timestamps(),
            table.binary("payload"),
            table.uuid("token"),
            table.json("meta").nullable(),
        ))
        blueprint.create()

        assert blueprint.to_sql(None, postgres_grammar) == [
            "CREATE TABLE events (day DATE NOT NULL, starts_at TIMESTAMP(6) WITHOUT TIME ZONE NOT NULL, "
            "created_at TIMESTAMP(0) WITHOUT TIME ZONE, updated_at TIMESTAMP(0) WITHOUT TIME ZONE, "
            "payload BYTEA NOT NULL, token UUID NOT NULL, meta JSON)"
        ]

    def test_prefix_applies_to_tables_and_index_names(self):
        from schema_builder.schema.grammars import PostgresGrammar

        grammar = PostgresGrammar(prefix="app_")
        blueprint = Blueprint("users", lambda table: table.string("email").index(), prefix="app_")

        assert blueprint.to_sql(None, grammar) == [
            "ALTER TABLE app_users ADD COLUMN email VARCHAR(255) NOT NULL",
            "CREATE INDEX app_users_email_index ON app_users (email)",
        ]


class TestIndexes:
    def test_fulltext_index(self, postgres_grammar):
        blueprint = Blueprint("articles", lambda table: table.fulltext(["body", "title"]))

        assert blueprint.to_sql(None, postgres_grammar) == [
            "CREATE INDEX articles_body_title_fulltext ON articles USING gin "
            "((to_tsvector('english', body) || to_tsvector('english', title)))"
        ]

    def test_fulltext_language(self, postgres_grammar):
        blueprint = Blueprint("articles", lambda table: table.fulltext("body", language="german"))

        assert blueprint.to_sql(None, postgres_grammar) == [
            "CREATE INDEX articles_body_fulltext ON articles USING gin ((to_tsvector('german', body)))"
        ]

    def test_spatial_index_uses_gist(self, postgres_grammar):
        blueprint = Blueprint("places", lambda table: table.spatial_index("location"))

        assert blueprint.to_sql(None, postgres_grammar) == [
            "CREATE INDEX places_location_spatialindex ON places USING gist (location)"
        ]

    def test_drop_indexes(self, postgres_grammar):
        blueprint = Blueprint("users", lambda table: (
            table.drop_primary(),
            table.drop_unique(["email"]),
            table.drop_index(["name"]),
            table.rename_index("a", "b"),
        ))

        assert blueprint.to_sql(None, postgres_grammar) == [
            "ALTER TABLE users DROP CONSTRAINT users_pkey",
            "ALTER TABLE users DROP CONSTRAINT users_email_unique",
            "DROP INDEX users_name_index",
            "ALTER INDEX a RENAME TO b",
        ]


class TestAlterTable:
    def test_change_without_connection(self, postgres_grammar):
        blueprint = Blueprint("users", lambda table: table.text("bio").change())

        assert blueprint.to_sql(None, postgres_grammar) == [
            "ALTER TABLE users ALTER COLUMN bio TYPE TEXT, ALTER COLUMN bio SET NOT NULL"
        ]

    def test_change_carries_live_attributes(self, postgres_connection):
        live = ColumnInfo(name="votes", type_name="int4", type="integer", nullable=True, default="0")
        blueprint = Blueprint("users", lambda table: table.big_integer("votes").change())

        with patch.multiple(
            PostgresIntrospector,
            get_columns=lambda self, table: [live],
            get_indexes=lambda self, table: [],
            get_foreign_keys=lambda self, table: [],
        ):
            queries = blueprint.to_sql(postgres_connection, postgres_connection.get_schema_grammar())

        assert queries == [
            "ALTER TABLE users ALTER COLUMN votes TYPE BIGINT, ALTER COLUMN votes DROP NOT NULL, "
            "ALTER COLUMN votes SET DEFAULT 0"
        ]

    def test_explicit_null_default(self, postgres_grammar):
        blueprint = Blueprint("users", lambda table: table.string("name").default(None).nullable().change())

        assert blueprint.to_sql(None, postgres_grammar) == [
            "ALTER TABLE users ALTER COLUMN name TYPE VARCHAR(255), ALTER COLUMN name DROP NOT NULL, "
            "ALTER COLUMN name SET DEFAULT NULL"
        ]

    def test_rename_and_drop_column(self, postgres_grammar):
        blueprint = Blueprint("users", lambda table: (
            table.rename_column("name", "full_name"),
            table.drop_column(["a", "b"]),
            table.rename("people"),
        ))

        assert blueprint.to_sql(None, postgres_grammar) == [
            "ALTER TABLE users RENAME COLUMN name TO full_name",
            "ALTER TABLE users DROP COLUMN a, DROP COLUMN b",
            "ALTER TABLE users RENAME TO people",
        ]

    def test_foreign_key_on_existing_table(self, postgres_grammar):
        blueprint = Blueprint("posts", lambda table: (
            table.foreign("user_id").references("id").on("users").on_update("cascade"),
        ))

        assert blueprint.to_sql(None, postgres_grammar) == [
            "ALTER TABLE posts ADD CONSTRAINT posts_user_id_foreign FOREIGN KEY (user_id) "
            "REFERENCES users (id) ON UPDATE CASCADE"
        ]


class TestBulkOperations:
    def test_drop_all_tables_cascades(self, postgres_grammar):
        assert postgres_grammar.compile_drop_all_tables(["a", "b"]) == ["DROP TABLE a, b CASCADE"]

    def test_drop_all_views_cascades(self, postgres_grammar):
        assert postgres_grammar.compile_drop_all_views(["v"]) == ["DROP VIEW v CASCADE"]

    def test_drop_all_does_not_toggle_constraints(self, postgres_grammar):
        assert postgres_grammar.DISABLE_CONSTRAINTS_FOR_DROP_ALL is False
