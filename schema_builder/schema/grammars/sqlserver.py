"""SQL Server grammar."""

from typing import Callable, List, Optional, Sequence

from ..columns import ColumnDefinition, IndexDefinition, IndexKind
from .base import Grammar

DROP_ALL_FOREIGN_KEYS = (
    "DECLARE @sql NVARCHAR(MAX) = N''; "
    "SELECT @sql += 'ALTER TABLE ' + QUOTENAME(OBJECT_SCHEMA_NAME(parent_object_id)) + '.' "
    "+ QUOTENAME(OBJECT_NAME(parent_object_id)) + ' DROP CONSTRAINT ' + QUOTENAME(name) + ';' "
    "FROM sys.foreign_keys; "
    "EXEC sp_executesql @sql"
)


class SqlServerGrammar(Grammar):
    NAME = "SQL Server"
    QUOTE_OPEN = "["
    QUOTE_CLOSE = "]"
    INDEX_KINDS = frozenset({IndexKind.PRIMARY, IndexKind.UNIQUE, IndexKind.INDEX, IndexKind.SPATIAL})

    def __init__(self, prefix: str = "", default_string_length: int = 255, registry=None, schema: str = "dbo"):
        super().__init__(prefix, default_string_length, registry)
        self.schema = schema

    def quote_string(self, value: str) -> str:
        return "N'" + str(value).replace("'", "''") + "'"

    def type_char(self, column):
        return f"NCHAR({self.length_of(column)})"

    def type_string(self, column):
        return f"NVARCHAR({self.length_of(column)})"

    def type_tiny_text(self, column):
        return "NVARCHAR(255)"

    def type_text(self, column):
        return "NVARCHAR(MAX)"

    def type_medium_text(self, column):
        return "NVARCHAR(MAX)"

    def type_long_text(self, column):
        return "NVARCHAR(MAX)"

    def type_integer(self, column):
        return "INT"

    def type_tiny_integer(self, column):
        return "TINYINT"

    def type_small_integer(self, column):
        return "SMALLINT"

    def type_medium_integer(self, column):
        return "INT"

    def type_big_integer(self, column):
        return "BIGINT"

    def type_boolean(self, column):
        return "BIT"

    def type_enum(self, column):
        if column.is_change:
            return "NVARCHAR(255)"
        return f"NVARCHAR(255) {self.enum_check(column)}"

    def type_json(self, column):
        return "NVARCHAR(MAX)"

    def type_datetime(self, column):
        return f"DATETIME2({column.precision})" if column.precision else "DATETIME"

    def type_time(self, column):
        return f"TIME({column.precision})" if column.precision else "TIME"

    def type_timestamp(self, column):
        return f"DATETIME2({column.precision})" if column.precision else "DATETIME"

    def type_binary(self, column):
        return f"VARBINARY({column.length})" if column.length else "VARBINARY(MAX)"

    def type_uuid(self, column):
        return "UNIQUEIDENTIFIER"

    def column_modifiers(self) -> List[Callable[[ColumnDefinition], str]]:
        return [self.modify_nullable, self.modify_default, self.modify_auto_increment]

    def modify_nullable(self, column):
        return " NULL" if column.is_nullable else " NOT NULL"

    def modify_auto_increment(self, column):
        # IDENTITY cannot be added by ALTER COLUMN
        if column.is_auto_increment and not column.is_change:
            return " IDENTITY PRIMARY KEY"
        return ""

    def _extended_property(self, comment: str, table: str, column: Optional[str] = None) -> str:
        """Create or replace an MS_Description property on a table or column."""
        target = f"'SCHEMA', {self.quote_string(self.schema)}, 'TABLE', {self.quote_string(table)}"
        lookup = f"OBJECT_ID({self.quote_string(self.schema + '.' + table)})"
        minor = "0"
        if column is not None:
            target += f", 'COLUMN', {self.quote_string(column)}"
            minor = f"COLUMNPROPERTY({lookup}, {self.quote_string(column)}, 'ColumnId')"
        value = self.quote_string(comment)
        return (
            "IF EXISTS (SELECT 1 FROM sys.extended_properties "
            f"WHERE name = N'MS_Description' AND major_id = {lookup} AND minor_id = {minor}) "
            f"EXEC sp_updateextendedproperty 'MS_Description', {value}, {target} "
            f"ELSE EXEC sp_addextendedproperty 'MS_Description', {value}, {target}"
        )

    def compile_column_comments(self, blueprint, columns):
        table = self.prefix + blueprint.table
        return [
            self._extended_property(column.comment_text, table, column.name)
            for column in columns
            if column.comment_text is not None
        ]

    def compile_create_table(self, blueprint):
        if blueprint.is_temporary:
            definitions = ", ".join(self.compile_columns(blueprint.get_added_columns()))
            return f"CREATE TABLE {self.wrap('#' + self.prefix + blueprint.table)} ({definitions})"
        return super().compile_create_table(blueprint)

    def compile_primary_clause(self, blueprint, index: IndexDefinition) -> str:
        return f"CONSTRAINT {self.wrap(index.name)} PRIMARY KEY ({self.columnize(index.columns)})"

    def compile_add(self, blueprint, command, state):
        additions = ", ".join(self.compile_columns(command.columns))
        statements = [f"ALTER TABLE {self.wrap_table(blueprint)} ADD {additions}"]
        statements.extend(self.compile_column_comments(blueprint, command.columns))
        return statements

    def compile_drop_default_constraints(self, blueprint, columns: Sequence[str]) -> str:
        table = f"{self.wrap(self.schema)}.{self.wrap_table(blueprint)}"
        names = ", ".join(self.quote_string(name) for name in columns)
        return (
            "DECLARE @sql NVARCHAR(MAX) = N''; "
            f"SELECT @sql += 'ALTER TABLE {table} DROP CONSTRAINT ' + OBJECT_NAME([default_object_id]) + ';' "
            f"FROM sys.columns WHERE [object_id] = OBJECT_ID({self.quote_string(table)}) "
            f"AND [name] IN ({names}) AND [default_object_id] <> 0; "
            "EXEC(@sql)"
        )

    def compile_change(self, blueprint, command, state):
        table = self.wrap_table(blueprint)
        statements = [self.compile_drop_default_constraints(blueprint, [c.name for c in command.columns])]
        for column in command.columns:
            name = self.wrap(column.name)
            statements.append(
                f"ALTER TABLE {table} ALTER COLUMN {name} "
                f"{self.compile_column_type(column)}{self.modify_nullable(column)}"
            )
            default = self.modify_default(column)
            if default:
                statements.append(f"ALTER TABLE {table} ADD{default} FOR {name}")
        statements.extend(self.compile_column_comments(
            blueprint, [c for c in command.columns if "comment" in c.explicit],
        ))
        return statements

    def compile_drop_if_exists(self, blueprint, command, state):
        table = self.prefix + blueprint.table
        return [
            f"IF OBJECT_ID({self.quote_string(table)}, 'U') IS NOT NULL "
            f"DROP TABLE {self.wrap_table(blueprint)}"
        ]

    def compile_rename(self, blueprint, command, state):
        source = self.quote_string(self.prefix + blueprint.table)
        return [f"EXEC sp_rename {source}, {self.quote_string(self.prefix + command.target)}"]

    def compile_drop_column(self, blueprint, command, state):
        return [
            self.compile_drop_default_constraints(blueprint, command.names),
            f"ALTER TABLE {self.wrap_table(blueprint)} DROP COLUMN {self.columnize(command.names)}",
        ]

    def compile_rename_column(self, blueprint, command, state):
        source = self.quote_string(f"{self.prefix}{blueprint.table}.{command.source}")
        return [f"EXEC sp_rename {source}, {self.quote_string(command.target)}, N'COLUMN'"]

    def compile_index(self, blueprint, index: IndexDefinition) -> str:
        self.assert_index_supported(index.kind)
        table = self.wrap_table(blueprint)
        if index.kind == IndexKind.PRIMARY:
            return (
                f"ALTER TABLE {table} ADD CONSTRAINT {self.wrap(index.name)} "
                f"PRIMARY KEY ({self.columnize(index.columns)})"
            )
        if index.kind == IndexKind.SPATIAL:
            return f"CREATE SPATIAL INDEX {self.wrap(index.name)} ON {table} ({self.columnize(index.columns)})"
        return super().compile_index(blueprint, index)

    def compile_drop_index(self, blueprint, command, state):
        table = self.wrap_table(blueprint)
        if command.kind == IndexKind.PRIMARY:
            return [f"ALTER TABLE {table} DROP CONSTRAINT {self.wrap(command.target)}"]
        return [f"DROP INDEX {self.wrap(command.target)} ON {table}"]

    def compile_rename_index(self, blueprint, command, state):
        source = self.quote_string(f"{self.prefix}{blueprint.table}.{command.source}")
        return [f"EXEC sp_rename {source}, {self.quote_string(command.target)}, N'INDEX'"]

    def compile_table_comment(self, blueprint, command, state):
        return [self._extended_property(command.comment, self.prefix + blueprint.table)]

    def compile_drop_all_tables(self, tables):
        return [DROP_ALL_FOREIGN_KEYS, *super().compile_drop_all_tables(tables)]

    def compile_enable_foreign_key_constraints(self) -> str:
        return "EXEC sp_msforeachtable 'ALTER TABLE ? WITH CHECK CHECK CONSTRAINT all'"

    def compile_disable_foreign_key_constraints(self) -> str:
        return "EXEC sp_msforeachtable 'ALTER TABLE ? NOCHECK CONSTRAINT all'"
