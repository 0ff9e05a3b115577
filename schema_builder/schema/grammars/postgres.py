"""PostgreSQL grammar."""

from typing import Callable, List

from ..columns import ColumnDefinition, IndexDefinition, IndexKind
from .base import Grammar


class PostgresGrammar(Grammar):
    NAME = "PostgreSQL"
    TRANSACTIONAL_DDL = True
    # DROP ... CASCADE removes dependent constraints
    DISABLE_CONSTRAINTS_FOR_DROP_ALL = False
    INDEX_KINDS = frozenset(IndexKind)

    def type_char(self, column):
        return f"CHAR({self.length_of(column)})"

    def type_string(self, column):
        return f"VARCHAR({self.length_of(column)})"

    def type_tiny_text(self, column):
        return "TEXT"

    def type_text(self, column):
        return "TEXT"

    def type_medium_text(self, column):
        return "TEXT"

    def type_long_text(self, column):
        return "TEXT"

    def _serial(self, column: ColumnDefinition, plain: str, serial: str) -> str:
        # Serial pseudo-types are only valid when the column is created
        if column.is_auto_increment and not column.is_change:
            return serial
        return plain

    def type_integer(self, column):
        return self._serial(column, "INTEGER", "SERIAL")

    def type_tiny_integer(self, column):
        return self._serial(column, "SMALLINT", "SMALLSERIAL")

    def type_small_integer(self, column):
        return self._serial(column, "SMALLINT", "SMALLSERIAL")

    def type_medium_integer(self, column):
        return self._serial(column, "INTEGER", "SERIAL")

    def type_big_integer(self, column):
        return self._serial(column, "BIGINT", "BIGSERIAL")

    def type_boolean(self, column):
        return "BOOLEAN"

    def type_enum(self, column):
        if column.is_change:
            return "VARCHAR(255)"
        return f"VARCHAR(255) {self.enum_check(column)}"

    def type_json(self, column):
        return "JSON"

    def type_datetime(self, column):
        return f"TIMESTAMP({column.precision or 0}) WITHOUT TIME ZONE"

    def type_time(self, column):
        return f"TIME({column.precision or 0}) WITHOUT TIME ZONE"

    def type_timestamp(self, column):
        return f"TIMESTAMP({column.precision or 0}) WITHOUT TIME ZONE"

    def type_binary(self, column):
        return "BYTEA"

    def type_uuid(self, column):
        return "UUID"

    def format_value(self, value):
        if isinstance(value, bool):
            return "TRUE" if value else "FALSE"
        return super().format_value(value)

    def column_modifiers(self) -> List[Callable[[ColumnDefinition], str]]:
        return [self.modify_nullable, self.modify_default, self.modify_auto_increment]

    def modify_auto_increment(self, column):
        if column.is_auto_increment and not column.is_change:
            return " PRIMARY KEY"
        return ""

    def compile_column_comments(self, blueprint, columns):
        table = self.wrap_table(blueprint)
        return [
            f"COMMENT ON COLUMN {table}.{self.wrap(column.name)} IS {self.quote_string(column.comment_text)}"
            for column in columns
            if column.comment_text is not None
        ]

    def compile_change(self, blueprint, command, state):
        clauses = []
        for column in command.columns:
            name = self.wrap(column.name)
            clauses.append(f"ALTER COLUMN {name} TYPE {self.compile_column_type(column)}")
            if column.is_nullable:
                clauses.append(f"ALTER COLUMN {name} DROP NOT NULL")
            else:
                clauses.append(f"ALTER COLUMN {name} SET NOT NULL")
            if column.has_default:
                clauses.append(f"ALTER COLUMN {name} SET DEFAULT {self.format_default(column)}")
            elif "default" in column.explicit:
                clauses.append(f"ALTER COLUMN {name} DROP DEFAULT")

        statements = [f"ALTER TABLE {self.wrap_table(blueprint)} {', '.join(clauses)}"]
        statements.extend(self.compile_column_comments(
            blueprint, [c for c in command.columns if "comment" in c.explicit],
        ))
        return statements

    def compile_index(self, blueprint, index: IndexDefinition) -> str:
        self.assert_index_supported(index.kind)
        table = self.wrap_table(blueprint)
        if index.kind == IndexKind.PRIMARY:
            return f"ALTER TABLE {table} ADD PRIMARY KEY ({self.columnize(index.columns)})"
        if index.kind == IndexKind.UNIQUE:
            return (
                f"ALTER TABLE {table} ADD CONSTRAINT {self.wrap(index.name)} "
                f"UNIQUE ({self.columnize(index.columns)})"
            )
        if index.kind == IndexKind.FULLTEXT:
            language = self.quote_string(index.language or "english")
            vectors = " || ".join(
                f"to_tsvector({language}, {self.wrap(column)})" for column in index.columns
            )
            return f"CREATE INDEX {self.wrap(index.name)} ON {table} USING gin (({vectors}))"

        algorithm = index.algorithm or ("gist" if index.kind == IndexKind.SPATIAL else None)
        using = f" USING {algorithm}" if algorithm else ""
        return f"CREATE INDEX {self.wrap(index.name)} ON {table}{using} ({self.columnize(index.columns)})"

    def compile_drop_index(self, blueprint, command, state):
        table = self.wrap_table(blueprint)
        if command.kind == IndexKind.PRIMARY:
            return [f"ALTER TABLE {table} DROP CONSTRAINT {self.wrap(self.prefix + blueprint.table + '_pkey')}"]
        if command.kind == IndexKind.UNIQUE:
            return [f"ALTER TABLE {table} DROP CONSTRAINT {self.wrap(command.target)}"]
        return [f"DROP INDEX {self.wrap(command.target)}"]

    def compile_rename_index(self, blueprint, command, state):
        return [f"ALTER INDEX {self.wrap(command.source)} RENAME TO {self.wrap(command.target)}"]

    def compile_table_comment(self, blueprint, command, state):
        return [f"COMMENT ON TABLE {self.wrap_table(blueprint)} IS {self.quote_string(command.comment)}"]

    def compile_drop_all_tables(self, tables):
        return [f"DROP TABLE {', '.join(self.wrap(table) for table in tables)} CASCADE"]

    def compile_drop_all_views(self, views):
        return [f"DROP VIEW {', '.join(self.wrap(view) for view in views)} CASCADE"]

    def compile_enable_foreign_key_constraints(self) -> str:
        return "SET CONSTRAINTS ALL IMMEDIATE"

    def compile_disable_foreign_key_constraints(self) -> str:
        return "SET CONSTRAINTS ALL DEFERRED"
