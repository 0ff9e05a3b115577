"""MySQL / MariaDB grammar."""

from typing import Callable, List, Optional

from ..columns import ColumnDefinition, ColumnType, CommandType, IndexDefinition, IndexKind, TEXT_TYPES
from .base import Grammar

_INDEX_KEYWORDS = {
    IndexKind.UNIQUE: "UNIQUE INDEX",
    IndexKind.INDEX: "INDEX",
    IndexKind.FULLTEXT: "FULLTEXT INDEX",
    IndexKind.SPATIAL: "SPATIAL INDEX",
}


class MySqlGrammar(Grammar):
    """Grammar for MySQL.

    Column changes rewrite the full definition with ``CHANGE``, so the
    compiler must supply the live column attributes being carried over.
    """

    NAME = "MySQL"
    QUOTE_OPEN = "`"
    QUOTE_CLOSE = "`"
    INDEX_KINDS = frozenset(IndexKind)
    INLINE_TABLE_COMMENT = True

    def __init__(
        self,
        prefix: str = "",
        default_string_length: int = 255,
        registry=None,
        engine: Optional[str] = None,
        charset: Optional[str] = None,
        collation: Optional[str] = None,
    ):
        super().__init__(prefix, default_string_length, registry)
        self.engine = engine
        self.charset = charset
        self.collation = collation

    # Types

    def type_char(self, column):
        return f"CHAR({self.length_of(column)})"

    def type_string(self, column):
        return f"VARCHAR({self.length_of(column)})"

    def type_tiny_text(self, column):
        return "TINYTEXT"

    def type_text(self, column):
        return "TEXT"

    def type_medium_text(self, column):
        return "MEDIUMTEXT"

    def type_long_text(self, column):
        return "LONGTEXT"

    def type_integer(self, column):
        return "INT"

    def type_tiny_integer(self, column):
        return "TINYINT"

    def type_small_integer(self, column):
        return "SMALLINT"

    def type_medium_integer(self, column):
        return "MEDIUMINT"

    def type_big_integer(self, column):
        return "BIGINT"

    def type_double(self, column):
        return "DOUBLE"

    def type_boolean(self, column):
        return "TINYINT(1)"

    def type_enum(self, column):
        allowed = ", ".join(self.quote_string(value) for value in column.allowed)
        return f"ENUM({allowed})"

    def type_json(self, column):
        return "JSON"

    def type_datetime(self, column):
        return f"DATETIME({column.precision})" if column.precision else "DATETIME"

    def type_time(self, column):
        return f"TIME({column.precision})" if column.precision else "TIME"

    def type_timestamp(self, column):
        return f"TIMESTAMP({column.precision})" if column.precision else "TIMESTAMP"

    def type_binary(self, column):
        return f"VARBINARY({column.length})" if column.length else "BLOB"

    def type_uuid(self, column):
        return "CHAR(36)"

    # Modifiers

    def column_modifiers(self) -> List[Callable[[ColumnDefinition], str]]:
        return [
            self.modify_unsigned,
            self.modify_nullable,
            self.modify_default,
            self.modify_auto_increment,
            self.modify_comment,
        ]

    def accepts_default(self, column):
        if self.registry.get(column.type_identifier) is not None:
            return True
        if column.type in TEXT_TYPES or column.type == ColumnType.JSON:
            return False
        return not (column.type == ColumnType.BINARY and not column.length)

    def modify_unsigned(self, column):
        return " UNSIGNED" if column.is_unsigned else ""

    def modify_auto_increment(self, column):
        if not column.is_auto_increment:
            return ""
        if column.is_change:
            return " AUTO_INCREMENT"
        return " AUTO_INCREMENT PRIMARY KEY"

    def modify_comment(self, column):
        if column.comment_text is None:
            return ""
        return f" COMMENT {self.quote_string(column.comment_text)}"

    # Tables

    def compile_table_options(self, blueprint):
        sql = ""
        charset = blueprint.charset or self.charset
        collation = blueprint.collation or self.collation
        engine = blueprint.engine or self.engine
        if charset:
            sql += f" DEFAULT CHARACTER SET {charset}"
        if collation:
            sql += f" COLLATE {self.quote_string(collation)}"
        if engine:
            sql += f" ENGINE = {engine}"
        for command in blueprint.commands:
            if command.type == CommandType.TABLE_COMMENT:
                sql += f" COMMENT = {self.quote_string(command.comment)}"
        return sql

    def compile_add(self, blueprint, command, state):
        additions = ", ".join(f"ADD {column}" for column in self.compile_columns(command.columns))
        return [f"ALTER TABLE {self.wrap_table(blueprint)} {additions}"]

    def compile_change(self, blueprint, command, state):
        changes = ", ".join(
            f"CHANGE {self.wrap(column.name)} {self.compile_column(column)}"
            for column in command.columns
        )
        return [f"ALTER TABLE {self.wrap_table(blueprint)} {changes}"]

    def compile_rename(self, blueprint, command, state):
        return [f"RENAME TABLE {self.wrap_table(blueprint)} TO {self.wrap_table(command.target)}"]

    def compile_drop_column(self, blueprint, command, state):
        drops = ", ".join(f"DROP {self.wrap(name)}" for name in command.names)
        return [f"ALTER TABLE {self.wrap_table(blueprint)} {drops}"]

    def compile_index(self, blueprint, index: IndexDefinition) -> str:
        self.assert_index_supported(index.kind)
        table = self.wrap_table(blueprint)
        algorithm = f" USING {index.algorithm.upper()}" if index.algorithm else ""
        if index.kind == IndexKind.PRIMARY:
            return f"ALTER TABLE {table} ADD PRIMARY KEY{algorithm} ({self.columnize(index.columns)})"
        return (
            f"ALTER TABLE {table} ADD {_INDEX_KEYWORDS[index.kind]} {self.wrap(index.name)}"
            f"{algorithm} ({self.columnize(index.columns)})"
        )

    def compile_drop_index(self, blueprint, command, state):
        table = self.wrap_table(blueprint)
        if command.kind == IndexKind.PRIMARY:
            return [f"ALTER TABLE {table} DROP PRIMARY KEY"]
        return [f"ALTER TABLE {table} DROP INDEX {self.wrap(command.target)}"]

    def compile_rename_index(self, blueprint, command, state):
        return [
            f"ALTER TABLE {self.wrap_table(blueprint)} "
            f"RENAME INDEX {self.wrap(command.source)} TO {self.wrap(command.target)}"
        ]

    def compile_drop_foreign(self, blueprint, command, state):
        return [f"ALTER TABLE {self.wrap_table(blueprint)} DROP FOREIGN KEY {self.wrap(command.target)}"]

    def compile_table_comment(self, blueprint, command, state):
        return [f"ALTER TABLE {self.wrap_table(blueprint)} COMMENT = {self.quote_string(command.comment)}"]

    def compile_enable_foreign_key_constraints(self) -> str:
        return "SET FOREIGN_KEY_CHECKS=1"

    def compile_disable_foreign_key_constraints(self) -> str:
        return "SET FOREIGN_KEY_CHECKS=0"
