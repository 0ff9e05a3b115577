"""Abstract base class for dialect grammars."""

import logging
import re
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, TYPE_CHECKING

from ...errors import InvalidDefinition, UnsupportedFeature
from ..columns import (
    ColumnDefinition,
    ColumnType,
    Command,
    CommandType,
    Expression,
    ForeignKeyDefinition,
    IndexDefinition,
    IndexKind,
)

if TYPE_CHECKING:
    from ...database.models import TableState
    from ..blueprint import Blueprint
    from ..types import CustomTypeRegistry

logger = logging.getLogger(__name__)

# Identifiers matching one of these words are always quoted
RESERVED_WORDS = frozenset({
    "ADD", "ALL", "ALTER", "AND", "ANY", "AS", "ASC", "BETWEEN", "BY", "CASE",
    "CHECK", "COLUMN", "CONSTRAINT", "CREATE", "CROSS", "CURRENT", "DATABASE",
    "DEFAULT", "DELETE", "DESC", "DISTINCT", "DROP", "ELSE", "END", "EXISTS",
    "FOREIGN", "FROM", "FULL", "FULLTEXT", "GRANT", "GROUP", "HAVING", "IN",
    "INDEX", "INNER", "INSERT", "INTERVAL", "INTO", "IS", "JOIN", "KEY", "KEYS",
    "LEFT", "LIKE", "LIMIT", "MATCH", "NOT", "NULL", "OF", "ON", "OR", "ORDER",
    "OUTER", "PRIMARY", "REFERENCES", "RENAME", "REPLACE", "RIGHT", "ROW",
    "ROWS", "SCHEMA", "SELECT", "SET", "SPATIAL", "TABLE", "THEN", "TO",
    "TRIGGER", "UNION", "UNIQUE", "UPDATE", "USER", "USING", "VALUES", "VIEW",
    "WHEN", "WHERE", "WITH",
})

_PLAIN_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class Grammar(ABC):
    """Compiles blueprints into DDL for one database engine.

    Grammars are stateless apart from their configuration. Column types
    and blueprint commands are compiled through fixed mappings built in
    ``__init__``; subclasses override the individual ``type_*`` and
    ``compile_*`` routines.
    """

    NAME = ""
    QUOTE_OPEN = '"'
    QUOTE_CLOSE = '"'
    # Whether DDL can run inside a transaction
    TRANSACTIONAL_DDL = False
    # Whether drop_all_tables must run with foreign key checks disabled
    DISABLE_CONSTRAINTS_FOR_DROP_ALL = True
    INDEX_KINDS = frozenset({IndexKind.PRIMARY, IndexKind.UNIQUE, IndexKind.INDEX})
    INLINE_TABLE_COMMENT = False

    def __init__(
        self,
        prefix: str = "",
        default_string_length: int = 255,
        registry: Optional["CustomTypeRegistry"] = None,
    ):
        from ..types import registry as default_registry

        self.prefix = prefix
        self.default_string_length = default_string_length
        self.registry = registry if registry is not None else default_registry

        self._type_compilers: Dict[ColumnType, Callable[[ColumnDefinition], str]] = {
            ColumnType.CHAR: self.type_char,
            ColumnType.STRING: self.type_string,
            ColumnType.TINY_TEXT: self.type_tiny_text,
            ColumnType.TEXT: self.type_text,
            ColumnType.MEDIUM_TEXT: self.type_medium_text,
            ColumnType.LONG_TEXT: self.type_long_text,
            ColumnType.INTEGER: self.type_integer,
            ColumnType.TINY_INTEGER: self.type_tiny_integer,
            ColumnType.SMALL_INTEGER: self.type_small_integer,
            ColumnType.MEDIUM_INTEGER: self.type_medium_integer,
            ColumnType.BIG_INTEGER: self.type_big_integer,
            ColumnType.FLOAT: self.type_float,
            ColumnType.DOUBLE: self.type_double,
            ColumnType.DECIMAL: self.type_decimal,
            ColumnType.BOOLEAN: self.type_boolean,
            ColumnType.ENUM: self.type_enum,
            ColumnType.JSON: self.type_json,
            ColumnType.DATE: self.type_date,
            ColumnType.DATETIME: self.type_datetime,
            ColumnType.TIME: self.type_time,
            ColumnType.TIMESTAMP: self.type_timestamp,
            ColumnType.BINARY: self.type_binary,
            ColumnType.UUID: self.type_uuid,
        }

        self._command_compilers: Dict[CommandType, Callable[..., List[str]]] = {
            CommandType.ADD: self.compile_add,
            CommandType.CHANGE: self.compile_change,
            CommandType.DROP: self.compile_drop,
            CommandType.DROP_IF_EXISTS: self.compile_drop_if_exists,
            CommandType.RENAME: self.compile_rename,
            CommandType.DROP_COLUMN: self.compile_drop_column,
            CommandType.RENAME_COLUMN: self.compile_rename_column,
            CommandType.INDEX: self.compile_index_command,
            CommandType.DROP_INDEX: self.compile_drop_index,
            CommandType.RENAME_INDEX: self.compile_rename_index,
            CommandType.FOREIGN: self.compile_foreign,
            CommandType.DROP_FOREIGN: self.compile_drop_foreign,
            CommandType.TABLE_COMMENT: self.compile_table_comment,
        }

    # Identifiers and literals

    def wrap(self, value) -> str:
        """Quote a possibly dotted identifier where quoting is required."""
        if isinstance(value, Expression):
            return value.value
        return ".".join(self.wrap_segment(segment) for segment in value.split("."))

    def wrap_segment(self, segment: str) -> str:
        if _PLAIN_IDENTIFIER.match(segment) and segment.upper() not in RESERVED_WORDS:
            return segment
        escaped = segment.replace(self.QUOTE_CLOSE, self.QUOTE_CLOSE * 2)
        return f"{self.QUOTE_OPEN}{escaped}{self.QUOTE_CLOSE}"

    def wrap_table(self, table) -> str:
        """Quote a table name (or a blueprint's table) with the configured prefix."""
        if hasattr(table, "table"):
            table = table.table
        if isinstance(table, Expression):
            return table.value
        return self.wrap(self.prefix + table)

    def columnize(self, columns: Sequence[str]) -> str:
        return ", ".join(self.wrap(column) for column in columns)

    def quote_string(self, value: str) -> str:
        return "'" + str(value).replace("'", "''") + "'"

    def format_value(self, value: Any) -> str:
        """Render a Python value as a SQL literal."""
        if isinstance(value, Expression):
            return value.value
        if value is None:
            return "NULL"
        if isinstance(value, bool):
            return "1" if value else "0"
        if isinstance(value, (int, float)):
            return str(value)
        if isinstance(value, Enum):
            value = value.value
        return self.quote_string(str(value))

    def format_default(self, column: ColumnDefinition) -> str:
        value = column.default_value
        custom = self.registry.get(column.type_identifier)
        if custom is not None and not isinstance(value, Expression):
            value = custom.handler.to_database(value)
        return self.format_value(value)

    # Columns

    def compile_column_type(self, column: ColumnDefinition) -> str:
        """Native type for a column, resolving registered custom types first."""
        custom = self.registry.get(column.type_identifier)
        if custom is not None:
            return custom.native_name
        if column.type == ColumnType.CUSTOM:
            raise InvalidDefinition(
                f"Column '{column.name}': unknown column type '{column.custom_type}'",
                details={"column": column.name, "type": column.custom_type},
            )
        return self._type_compilers[column.type](column)

    def column_modifiers(self) -> List[Callable[[ColumnDefinition], str]]:
        """Modifier routines appended after the type, in order."""
        return [self.modify_nullable, self.modify_default]

    def compile_column(self, column: ColumnDefinition) -> str:
        sql = f"{self.wrap(column.name)} {self.compile_column_type(column)}"
        for modifier in self.column_modifiers():
            sql += modifier(column)
        return sql

    def compile_columns(self, columns: Sequence[ColumnDefinition]) -> List[str]:
        return [self.compile_column(column) for column in columns]

    def accepts_default(self, column: ColumnDefinition) -> bool:
        """Whether a carried-over default can be kept for the column's type."""
        return True

    def modify_nullable(self, column: ColumnDefinition) -> str:
        return "" if column.is_nullable else " NOT NULL"

    def modify_default(self, column: ColumnDefinition) -> str:
        if not column.has_default:
            return ""
        if "default" not in column.explicit and not self.accepts_default(column):
            return ""
        return f" DEFAULT {self.format_default(column)}"

    def length_of(self, column: ColumnDefinition) -> int:
        return column.length or self.default_string_length

    def enum_check(self, column: ColumnDefinition) -> str:
        allowed = ", ".join(self.quote_string(value) for value in column.allowed)
        return f"CHECK ({self.wrap(column.name)} IN ({allowed}))"

    @abstractmethod
    def type_char(self, column: ColumnDefinition) -> str: ...

    @abstractmethod
    def type_string(self, column: ColumnDefinition) -> str: ...

    @abstractmethod
    def type_tiny_text(self, column: ColumnDefinition) -> str: ...

    @abstractmethod
    def type_text(self, column: ColumnDefinition) -> str: ...

    @abstractmethod
    def type_medium_text(self, column: ColumnDefinition) -> str: ...

    @abstractmethod
    def type_long_text(self, column: ColumnDefinition) -> str: ...

    @abstractmethod
    def type_integer(self, column: ColumnDefinition) -> str: ...

    @abstractmethod
    def type_tiny_integer(self, column: ColumnDefinition) -> str: ...

    @abstractmethod
    def type_small_integer(self, column: ColumnDefinition) -> str: ...

    @abstractmethod
    def type_medium_integer(self, column: ColumnDefinition) -> str: ...

    @abstractmethod
    def type_big_integer(self, column: ColumnDefinition) -> str: ...

    def type_float(self, column: ColumnDefinition) -> str:
        if column.precision:
            return f"FLOAT({column.precision})"
        return "FLOAT"

    def type_double(self, column: ColumnDefinition) -> str:
        return "DOUBLE PRECISION"

    def type_decimal(self, column: ColumnDefinition) -> str:
        return f"DECIMAL({column.precision or 8}, {column.scale if column.scale is not None else 2})"

    @abstractmethod
    def type_boolean(self, column: ColumnDefinition) -> str: ...

    @abstractmethod
    def type_enum(self, column: ColumnDefinition) -> str: ...

    @abstractmethod
    def type_json(self, column: ColumnDefinition) -> str: ...

    def type_date(self, column: ColumnDefinition) -> str:
        return "DATE"

    @abstractmethod
    def type_datetime(self, column: ColumnDefinition) -> str: ...

    @abstractmethod
    def type_time(self, column: ColumnDefinition) -> str: ...

    @abstractmethod
    def type_timestamp(self, column: ColumnDefinition) -> str: ...

    @abstractmethod
    def type_binary(self, column: ColumnDefinition) -> str: ...

    @abstractmethod
    def type_uuid(self, column: ColumnDefinition) -> str: ...

    # Blueprints

    def compile_create(self, blueprint: "Blueprint") -> List[str]:
        """CREATE TABLE followed by statements the dialect cannot inline."""
        statements = [self.compile_create_table(blueprint)]
        statements.extend(self.compile_column_comments(blueprint, blueprint.get_added_columns()))

        for command in blueprint.commands:
            if command.type == CommandType.CREATE or self.inlined_in_create(command):
                continue
            statements.extend(self.compile_command(blueprint, command, None))
        return statements

    def compile_alter(self, blueprint: "Blueprint", state: Optional["TableState"] = None) -> List[str]:
        """Statements for a blueprint over an existing table, in declared order."""
        statements: List[str] = []
        for command in blueprint.commands:
            statements.extend(self.compile_command(blueprint, command, state))
        return statements

    def compile_command(self, blueprint: "Blueprint", command: Command, state: Optional["TableState"]) -> List[str]:
        try:
            compiler = self._command_compilers[command.type]
        except KeyError:
            raise UnsupportedFeature(f"the '{command.type.value}' command here", self.NAME)
        return compiler(blueprint, command, state)

    def inlined_in_create(self, command: Command) -> bool:
        if command.type == CommandType.FOREIGN:
            return True
        if command.type == CommandType.INDEX and command.index.kind == IndexKind.PRIMARY:
            return True
        return command.type == CommandType.TABLE_COMMENT and self.INLINE_TABLE_COMMENT

    def compile_create_table(self, blueprint: "Blueprint") -> str:
        definitions = self.compile_columns(blueprint.get_added_columns())

        for command in blueprint.commands:
            if command.type == CommandType.INDEX and command.index.kind == IndexKind.PRIMARY:
                definitions.append(self.compile_primary_clause(blueprint, command.index))
            elif command.type == CommandType.FOREIGN:
                definitions.append(self.compile_foreign_clause(command.foreign))

        temporary = " TEMPORARY" if blueprint.is_temporary else ""
        sql = f"CREATE{temporary} TABLE {self.wrap_table(blueprint)} ({', '.join(definitions)})"
        return sql + self.compile_table_options(blueprint)

    def compile_table_options(self, blueprint: "Blueprint") -> str:
        return ""

    def compile_primary_clause(self, blueprint: "Blueprint", index: IndexDefinition) -> str:
        return f"PRIMARY KEY ({self.columnize(index.columns)})"

    def compile_foreign_clause(self, foreign: ForeignKeyDefinition) -> str:
        sql = (
            f"CONSTRAINT {self.wrap(foreign.name)} FOREIGN KEY ({self.columnize(foreign.columns)}) "
            f"REFERENCES {self.wrap_table(foreign.referenced_table)} ({self.columnize(foreign.referenced_columns)})"
        )
        if foreign.on_delete_action:
            sql += f" ON DELETE {foreign.on_delete_action}"
        if foreign.on_update_action:
            sql += f" ON UPDATE {foreign.on_update_action}"
        return sql

    def compile_column_comments(self, blueprint: "Blueprint", columns: Sequence[ColumnDefinition]) -> List[str]:
        """Separate statements for column comments; empty where comments are inline."""
        return []

    # Commands

    def compile_add(self, blueprint, command, state) -> List[str]:
        additions = ", ".join(f"ADD COLUMN {column}" for column in self.compile_columns(command.columns))
        statements = [f"ALTER TABLE {self.wrap_table(blueprint)} {additions}"]
        statements.extend(self.compile_column_comments(blueprint, command.columns))
        return statements

    @abstractmethod
    def compile_change(self, blueprint, command, state) -> List[str]: ...

    def compile_drop(self, blueprint, command, state) -> List[str]:
        return [f"DROP TABLE {self.wrap_table(blueprint)}"]

    def compile_drop_if_exists(self, blueprint, command, state) -> List[str]:
        return [f"DROP TABLE IF EXISTS {self.wrap_table(blueprint)}"]

    def compile_rename(self, blueprint, command, state) -> List[str]:
        return [f"ALTER TABLE {self.wrap_table(blueprint)} RENAME TO {self.wrap_table(command.target)}"]

    def compile_drop_column(self, blueprint, command, state) -> List[str]:
        drops = ", ".join(f"DROP COLUMN {self.wrap(name)}" for name in command.names)
        return [f"ALTER TABLE {self.wrap_table(blueprint)} {drops}"]

    def compile_rename_column(self, blueprint, command, state) -> List[str]:
        return [
            f"ALTER TABLE {self.wrap_table(blueprint)} "
            f"RENAME COLUMN {self.wrap(command.source)} TO {self.wrap(command.target)}"
        ]

    def compile_index_command(self, blueprint, command, state) -> List[str]:
        return [self.compile_index(blueprint, command.index)]

    def assert_index_supported(self, kind: IndexKind) -> None:
        if kind not in self.INDEX_KINDS:
            raise UnsupportedFeature(f"{kind.value} indexes", self.NAME, details={"kind": kind.value})

    def compile_index(self, blueprint: "Blueprint", index: IndexDefinition) -> str:
        """Statement creating one index on an existing table."""
        self.assert_index_supported(index.kind)
        if index.kind == IndexKind.PRIMARY:
            return f"ALTER TABLE {self.wrap_table(blueprint)} ADD PRIMARY KEY ({self.columnize(index.columns)})"
        unique = "UNIQUE " if index.kind == IndexKind.UNIQUE else ""
        return (
            f"CREATE {unique}INDEX {self.wrap(index.name)} "
            f"ON {self.wrap_table(blueprint)} ({self.columnize(index.columns)})"
        )

    def compile_drop_index(self, blueprint, command, state) -> List[str]:
        return [f"DROP INDEX {self.wrap(command.target)}"]

    def compile_rename_index(self, blueprint, command, state) -> List[str]:
        raise UnsupportedFeature("renaming indexes", self.NAME)

    def compile_foreign(self, blueprint, command, state) -> List[str]:
        return [f"ALTER TABLE {self.wrap_table(blueprint)} ADD {self.compile_foreign_clause(command.foreign)}"]

    def compile_drop_foreign(self, blueprint, command, state) -> List[str]:
        return [f"ALTER TABLE {self.wrap_table(blueprint)} DROP CONSTRAINT {self.wrap(command.target)}"]

    def compile_table_comment(self, blueprint, command, state) -> List[str]:
        logger.debug("%s does not store table comments; skipping comment on %s", self.NAME, blueprint.table)
        return []

    # Bulk operations

    def compile_drop_all_tables(self, tables: Sequence[str]) -> List[str]:
        """Drop the given tables; names come from introspection and are already prefixed."""
        return [f"DROP TABLE {', '.join(self.wrap(table) for table in tables)}"]

    def compile_drop_all_views(self, views: Sequence[str]) -> List[str]:
        return [f"DROP VIEW {', '.join(self.wrap(view) for view in views)}"]

    @abstractmethod
    def compile_enable_foreign_key_constraints(self) -> str: ...

    @abstractmethod
    def compile_disable_foreign_key_constraints(self) -> str: ...

    # Table rebuilds

    def rebuilds_table(self, blueprint) -> bool:
        """Whether the blueprint's statements drop and recreate the live table.

        Rebuilds run with foreign key enforcement off, so dropping the old
        table leaves the rows of referencing tables alone.
        """
        return False

    def compile_foreign_keys_enabled(self) -> Optional[str]:
        """Query reporting whether foreign keys are enforced, as a single 0/1 value."""
        return None

    def compile_foreign_key_check(self, blueprint) -> Optional[str]:
        """Query returning one row per foreign key violation in the table."""
        return None
