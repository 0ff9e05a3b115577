"""Tests for blueprint declaration, validation and lifecycle."""

import pytest

from schema_builder.errors import ConnectionError, InvalidDefinition
from schema_builder.schema import (
    Blueprint,
    BlueprintState,
    ColumnDefinition,
    ColumnType,
    CommandType,
    IndexKind,
)


class TestIndexNaming:
    """Generated index names follow {prefix}{table}_{columns}_{kind}."""

    def test_unique_index_name(self):
        blueprint = Blueprint("foo")
        index = blueprint.unique(["baz", "bar"])

        assert index.name == "foo_baz_bar_unique"

    def test_fulltext_index_name(self):
        blueprint = Blueprint("articles")
        index = blueprint.fulltext(["body", "title"])

        assert index.name == "articles_body_title_fulltext"

    def test_spatial_and_foreign_names(self):
        blueprint = Blueprint("places")

        assert blueprint.spatial_index("location").name == "places_location_spatialindex"
        assert blueprint.foreign("user_id").name == "places_user_id_foreign"

    def test_name_is_lowercased_and_normalized(self):
        blueprint = Blueprint("Users")
        index = blueprint.index(["Last-Name", "meta.key"])

        assert index.name == "users_last_name_meta_key_index"

    def test_prefix_is_included(self):
        blueprint = Blueprint("users", prefix="app_")

        assert blueprint.create_index_name("index", ["email"]) == "app_users_email_index"

    def test_explicit_name_is_kept(self):
        blueprint = Blueprint("foo")

        assert blueprint.index("bar", "my_index").name == "my_index"

    def test_fluent_index_becomes_command(self):
        blueprint = Blueprint("foo", lambda table: table.string("bar").index("my_index"))
        blueprint.add_implied_commands()

        indexes = [c.index for c in blueprint.commands if c.type == CommandType.INDEX]
        assert len(indexes) == 1
        assert indexes[0].name == "my_index"
        assert indexes[0].kind == IndexKind.INDEX
        assert indexes[0].columns == ["bar"]


class TestColumnValidation:
    """Invalid definitions are rejected while declaring."""

    def test_empty_column_name(self):
        with pytest.raises(InvalidDefinition):
            ColumnDefinition("", ColumnType.STRING)

    def test_length_on_integer(self):
        with pytest.raises(InvalidDefinition, match="length"):
            ColumnDefinition("votes", ColumnType.INTEGER, length=11)

    def test_non_positive_length(self):
        with pytest.raises(InvalidDefinition):
            Blueprint("users").string("name", 0)

    def test_precision_on_string(self):
        with pytest.raises(InvalidDefinition, match="precision"):
            ColumnDefinition("name", ColumnType.STRING, precision=2)

    def test_unsigned_on_string(self):
        with pytest.raises(InvalidDefinition, match="unsigned"):
            Blueprint("users").string("name").unsigned()

    def test_auto_increment_on_string(self):
        with pytest.raises(InvalidDefinition, match="auto increment"):
            Blueprint("users").string("name").auto_increment()

    def test_enum_without_values(self):
        with pytest.raises(InvalidDefinition, match="allowed values"):
            Blueprint("users").enum("status", [])

    def test_unregistered_custom_type(self, sqlite_grammar):
        blueprint = Blueprint("places", lambda table: table.custom("location", "geometry"))

        with pytest.raises(InvalidDefinition, match="unknown column type"):
            blueprint.to_sql(None, sqlite_grammar)

    def test_unknown_type_name_resolves_to_custom(self, sqlite_grammar):
        column = Blueprint("orders").add_column("money", "total")

        assert column.type == ColumnType.CUSTOM
        assert column.custom_type == "money"
        with pytest.raises(InvalidDefinition, match="money"):
            Blueprint("orders", lambda table: table.add_column("money", "total")).to_sql(None, sqlite_grammar)

    def test_index_without_columns(self):
        with pytest.raises(InvalidDefinition):
            Blueprint("users").index([])

    def test_explicit_modifiers_are_recorded(self):
        column = Blueprint("users").string("name").nullable().default("x")

        assert column.explicit == {"nullable", "default"}
        assert column.is_nullable is True
        assert column.default_value == "x"


class TestPrimaryKeys:
    """A blueprint can declare at most one primary key."""

    def test_second_explicit_primary(self):
        blueprint = Blueprint("users")
        blueprint.increments("id")

        with pytest.raises(InvalidDefinition, match="primary key"):
            blueprint.primary("id")

    def test_two_auto_increment_columns(self):
        blueprint = Blueprint("users")
        blueprint.create()
        blueprint.increments("id")
        blueprint.big_increments("other_id")

        with pytest.raises(InvalidDefinition, match="more than one primary key"):
            blueprint.validate()

    def test_fluent_primary_and_auto_increment(self):
        blueprint = Blueprint("users")
        blueprint.create()
        blueprint.increments("id")
        blueprint.string("code").primary()

        with pytest.raises(InvalidDefinition):
            blueprint.validate()

    def test_composite_primary(self):
        blueprint = Blueprint("foo")
        blueprint.unsigned_big_integer("key")
        index = blueprint.primary(["baz", "key"])

        assert index.columns == ["baz", "key"]
        assert index.name == "foo_baz_key_primary"


class TestBlueprintValidation:
    def test_duplicate_columns(self):
        blueprint = Blueprint("users")
        blueprint.create()
        blueprint.string("email")
        blueprint.string("EMAIL")

        with pytest.raises(InvalidDefinition, match="duplicate"):
            blueprint.validate()

    def test_create_without_columns(self):
        blueprint = Blueprint("users")
        blueprint.create()

        with pytest.raises(InvalidDefinition, match="at least one column"):
            blueprint.validate()

    def test_incomplete_foreign_key(self):
        blueprint = Blueprint("posts")
        blueprint.create()
        blueprint.unsigned_big_integer("user_id")
        blueprint.foreign("user_id").references("id")

        with pytest.raises(InvalidDefinition, match="referenced table"):
            blueprint.validate()

    def test_foreign_key_column_count_mismatch(self):
        blueprint = Blueprint("posts")
        blueprint.create()
        blueprint.integer("a")
        blueprint.foreign("a").references("id", "other").on("users")

        with pytest.raises(InvalidDefinition, match="column count"):
            blueprint.validate()

    def test_empty_table_name(self):
        with pytest.raises(InvalidDefinition):
            Blueprint("")


class TestImpliedCommands:
    def test_add_and_change_commands_come_first(self):
        blueprint = Blueprint("users", lambda table: (
            table.drop_column("legacy"),
            table.string("nickname").nullable(),
            table.text("bio").change(),
        ))
        blueprint.add_implied_commands()

        types = [command.type for command in blueprint.commands]
        assert types == [CommandType.ADD, CommandType.CHANGE, CommandType.DROP_COLUMN]

    def test_create_does_not_add_columns_separately(self):
        blueprint = Blueprint("users", lambda table: table.string("name"))
        blueprint.create()
        blueprint.add_implied_commands()

        assert [c.type for c in blueprint.commands] == [CommandType.CREATE]

    def test_timestamps_are_nullable(self):
        blueprint = Blueprint("users")
        blueprint.timestamps()

        assert [c.name for c in blueprint.columns] == ["created_at", "updated_at"]
        assert all(c.is_nullable for c in blueprint.columns)


class TestLifecycle:
    """declared -> compiled -> executed."""

    def test_to_sql_freezes_blueprint(self, mysql_grammar):
        blueprint = Blueprint("users", lambda table: table.string("name"))
        blueprint.create()

        first = blueprint.to_sql(None, mysql_grammar)

        assert blueprint.state == BlueprintState.COMPILED
        assert blueprint.to_sql(None, mysql_grammar) == first

    def test_modifying_compiled_blueprint(self, mysql_grammar):
        blueprint = Blueprint("users", lambda table: table.string("name"))
        blueprint.create()
        blueprint.to_sql(None, mysql_grammar)

        with pytest.raises(InvalidDefinition, match="already compiled"):
            blueprint.string("email")

    def test_build_twice(self, sqlite_connection, sqlite_grammar):
        blueprint = Blueprint("users", lambda table: table.string("name"))
        blueprint.create()
        blueprint.build(sqlite_connection, sqlite_grammar)

        assert blueprint.state == BlueprintState.EXECUTED
        with pytest.raises(InvalidDefinition, match="already executed"):
            blueprint.build(sqlite_connection, sqlite_grammar)

    def test_failed_build_is_not_replayed(self, mysql_connection, fake_dbapi):
        fake_dbapi.add_failure(r"ADD UNIQUE INDEX")
        blueprint = Blueprint("users", lambda table: table.string("email").unique())
        blueprint.create()

        with pytest.raises(ConnectionError):
            blueprint.build(mysql_connection, mysql_connection.get_schema_grammar())

        assert blueprint.state == BlueprintState.FAILED
        with pytest.raises(InvalidDefinition, match="already failed"):
            blueprint.build(mysql_connection, mysql_connection.get_schema_grammar())
        assert len(fake_dbapi.statements) == 2
