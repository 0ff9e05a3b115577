"""Declarative description of a table and the operations to apply to it."""

import logging
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence, Union, TYPE_CHECKING

from ..errors import InvalidDefinition
from .columns import (
    ColumnDefinition,
    ColumnType,
    Command,
    CommandType,
    ForeignKeyDefinition,
    IndexDefinition,
    IndexKind,
)

if TYPE_CHECKING:
    from ..database.connection import Connection
    from .grammars.base import Grammar

logger = logging.getLogger(__name__)

Columns = Union[str, Sequence[str]]


class BlueprintState(str, Enum):
    DECLARED = "declared"
    COMPILED = "compiled"
    EXECUTED = "executed"
    FAILED = "failed"


def _as_list(columns: Columns) -> List[str]:
    if isinstance(columns, str):
        return [columns]
    return list(columns)


class Blueprint:
    """Columns, indexes and commands for a single table.

    A blueprint is single-use: once compiled its statements are frozen,
    and once executed, or failed part way through, it cannot be built again.

    Example::

        blueprint = Blueprint("users", lambda table: (
            table.id(),
            table.string("email").unique(),
        ))
    """

    def __init__(self, table: str, callback: Optional[Callable[["Blueprint"], Any]] = None, prefix: str = ""):
        if not table:
            raise InvalidDefinition("Table name must not be empty")
        self.table = table
        self.prefix = prefix
        self.columns: List[ColumnDefinition] = []
        self.commands: List[Command] = []
        self.engine: Optional[str] = None
        self.charset: Optional[str] = None
        self.collation: Optional[str] = None
        self.is_temporary = False
        self.state = BlueprintState.DECLARED
        self.statements: Optional[List[str]] = None

        if callback is not None:
            callback(self)

    # State

    def _ensure_declared(self) -> None:
        if self.state != BlueprintState.DECLARED:
            raise InvalidDefinition(
                f"Blueprint for '{self.table}' is already {self.state.value}",
                details={"table": self.table, "state": self.state.value},
            )

    def creating(self) -> bool:
        return any(c.type == CommandType.CREATE for c in self.commands)

    def freeze(self, statements: List[str]) -> None:
        self.statements = list(statements)
        self.state = BlueprintState.COMPILED

    def mark_executed(self) -> None:
        self.state = BlueprintState.EXECUTED

    def mark_failed(self) -> None:
        self.state = BlueprintState.FAILED

    def to_sql(self, connection: Optional["Connection"], grammar: "Grammar") -> List[str]:
        """Compile the blueprint without touching the database."""
        from .compiler import BlueprintCompiler

        return BlueprintCompiler().to_sql(self, connection, grammar)

    def build(self, connection: "Connection", grammar: "Grammar") -> List[str]:
        """Compile the blueprint and execute it against the connection."""
        from .compiler import BlueprintCompiler

        return BlueprintCompiler().build(self, connection, grammar)

    # Commands

    def _add_command(self, command: Command) -> Command:
        self._ensure_declared()
        self.commands.append(command)
        return command

    def create(self) -> Command:
        return self._add_command(Command(CommandType.CREATE))

    def temporary(self) -> "Blueprint":
        self._ensure_declared()
        self.is_temporary = True
        return self

    def drop(self) -> Command:
        return self._add_command(Command(CommandType.DROP))

    def drop_if_exists(self) -> Command:
        return self._add_command(Command(CommandType.DROP_IF_EXISTS))

    def rename(self, to: str) -> Command:
        return self._add_command(Command(CommandType.RENAME, target=to))

    def comment(self, text: str) -> Command:
        """Set the table comment."""
        return self._add_command(Command(CommandType.TABLE_COMMENT, comment=text))

    def drop_column(self, *columns: Columns) -> Command:
        names: List[str] = []
        for column in columns:
            names.extend(_as_list(column))
        if not names:
            raise InvalidDefinition("drop_column needs at least one column")
        return self._add_command(Command(CommandType.DROP_COLUMN, names=names))

    def rename_column(self, source: str, target: str) -> Command:
        return self._add_command(Command(CommandType.RENAME_COLUMN, source=source, target=target))

    def primary(self, columns: Columns, name: Optional[str] = None, algorithm: Optional[str] = None) -> IndexDefinition:
        return self._index_command(IndexKind.PRIMARY, columns, name, algorithm)

    def unique(self, columns: Columns, name: Optional[str] = None, algorithm: Optional[str] = None) -> IndexDefinition:
        return self._index_command(IndexKind.UNIQUE, columns, name, algorithm)

    def index(self, columns: Columns, name: Optional[str] = None, algorithm: Optional[str] = None) -> IndexDefinition:
        return self._index_command(IndexKind.INDEX, columns, name, algorithm)

    def fulltext(self, columns: Columns, name: Optional[str] = None, language: Optional[str] = None) -> IndexDefinition:
        index = self._index_command(IndexKind.FULLTEXT, columns, name, None)
        index.language = language
        return index

    def spatial_index(self, columns: Columns, name: Optional[str] = None) -> IndexDefinition:
        return self._index_command(IndexKind.SPATIAL, columns, name, None)

    def drop_index(self, index: Columns) -> Command:
        return self._drop_index_command(IndexKind.INDEX, index)

    def drop_unique(self, index: Columns) -> Command:
        return self._drop_index_command(IndexKind.UNIQUE, index)

    def drop_primary(self, index: Optional[Columns] = None) -> Command:
        return self._drop_index_command(IndexKind.PRIMARY, index or [])

    def drop_fulltext(self, index: Columns) -> Command:
        return self._drop_index_command(IndexKind.FULLTEXT, index)

    def drop_spatial_index(self, index: Columns) -> Command:
        return self._drop_index_command(IndexKind.SPATIAL, index)

    def rename_index(self, source: str, target: str) -> Command:
        return self._add_command(Command(CommandType.RENAME_INDEX, source=source, target=target))

    def foreign(self, columns: Columns, name: Optional[str] = None) -> ForeignKeyDefinition:
        columns = _as_list(columns)
        foreign = ForeignKeyDefinition(
            columns=columns,
            name=name or self.create_index_name("foreign", columns),
        )
        self._add_command(Command(CommandType.FOREIGN, foreign=foreign))
        return foreign

    def drop_foreign(self, index: Columns) -> Command:
        if isinstance(index, str):
            name = index
        else:
            name = self.create_index_name("foreign", list(index))
        return self._add_command(Command(CommandType.DROP_FOREIGN, target=name))

    def _index_command(
        self,
        kind: IndexKind,
        columns: Columns,
        name: Optional[str],
        algorithm: Optional[str],
    ) -> IndexDefinition:
        self._ensure_declared()
        columns = _as_list(columns)
        if kind == IndexKind.PRIMARY and self.has_primary():
            raise InvalidDefinition(
                f"Table '{self.table}' already declares a primary key",
                details={"table": self.table, "columns": columns},
            )
        index = IndexDefinition(
            kind=kind,
            columns=columns,
            name=name or self.create_index_name(kind.value, columns),
            algorithm=algorithm,
        )
        self.commands.append(Command(CommandType.INDEX, index=index))
        return index

    def _drop_index_command(self, kind: IndexKind, index: Columns) -> Command:
        if isinstance(index, str):
            name = index
        else:
            name = self.create_index_name(kind.value, list(index))
        return self._add_command(Command(CommandType.DROP_INDEX, kind=kind, target=name))

    def create_index_name(self, kind: str, columns: Sequence[str]) -> str:
        """Generate ``{prefix}{table}_{columns}_{kind}`` in lowercase."""
        parts = [self.prefix + self.table, *columns, kind]
        name = "_".join(part for part in parts if part).lower()
        return name.replace("-", "_").replace(".", "_")

    def has_primary(self) -> bool:
        """Whether a primary key is declared explicitly or by an auto-increment column."""
        return self._primary_count() > 0

    def _primary_count(self) -> int:
        count = sum(
            1 for c in self.commands
            if c.type == CommandType.INDEX and c.index.kind == IndexKind.PRIMARY
        )
        for column in self.columns:
            if column.is_change:
                continue
            if IndexKind.PRIMARY in column.fluent_indexes or column.is_auto_increment:
                count += 1
        return count

    # Columns

    def add_column(self, type: Union[ColumnType, str], name: str, **parameters) -> ColumnDefinition:
        """Add a column of the given type; unknown type names resolve to custom types."""
        self._ensure_declared()
        try:
            column_type = ColumnType(type)
        except ValueError:
            parameters["custom_type"] = str(type)
            column_type = ColumnType.CUSTOM
        auto_increment = parameters.pop("auto_increment", False)
        unsigned = parameters.pop("unsigned", False)

        column = ColumnDefinition(name, column_type, **parameters)
        if unsigned:
            column.unsigned()
        if auto_increment:
            column.auto_increment()
        self.columns.append(column)
        return column

    def id(self, name: str = "id") -> ColumnDefinition:
        return self.big_increments(name)

    def increments(self, name: str) -> ColumnDefinition:
        return self.add_column(ColumnType.INTEGER, name, auto_increment=True, unsigned=True)

    def tiny_increments(self, name: str) -> ColumnDefinition:
        return self.add_column(ColumnType.TINY_INTEGER, name, auto_increment=True, unsigned=True)

    def small_increments(self, name: str) -> ColumnDefinition:
        return self.add_column(ColumnType.SMALL_INTEGER, name, auto_increment=True, unsigned=True)

    def medium_increments(self, name: str) -> ColumnDefinition:
        return self.add_column(ColumnType.MEDIUM_INTEGER, name, auto_increment=True, unsigned=True)

    def big_increments(self, name: str) -> ColumnDefinition:
        return self.add_column(ColumnType.BIG_INTEGER, name, auto_increment=True, unsigned=True)

    def char(self, name: str, length: Optional[int] = None) -> ColumnDefinition:
        return self.add_column(ColumnType.CHAR, name, length=length)

    def string(self, name: str, length: Optional[int] = None) -> ColumnDefinition:
        return self.add_column(ColumnType.STRING, name, length=length)

    def tiny_text(self, name: str) -> ColumnDefinition:
        return self.add_column(ColumnType.TINY_TEXT, name)

    def text(self, name: str) -> ColumnDefinition:
        return self.add_column(ColumnType.TEXT, name)

    def medium_text(self, name: str) -> ColumnDefinition:
        return self.add_column(ColumnType.MEDIUM_TEXT, name)

    def long_text(self, name: str) -> ColumnDefinition:
        return self.add_column(ColumnType.LONG_TEXT, name)

    def integer(self, name: str, auto_increment: bool = False, unsigned: bool = False) -> ColumnDefinition:
        return self.add_column(ColumnType.INTEGER, name, auto_increment=auto_increment, unsigned=unsigned)

    def tiny_integer(self, name: str, auto_increment: bool = False, unsigned: bool = False) -> ColumnDefinition:
        return self.add_column(ColumnType.TINY_INTEGER, name, auto_increment=auto_increment, unsigned=unsigned)

    def small_integer(self, name: str, auto_increment: bool = False, unsigned: bool = False) -> ColumnDefinition:
        return self.add_column(ColumnType.SMALL_INTEGER, name, auto_increment=auto_increment, unsigned=unsigned)

    def medium_integer(self, name: str, auto_increment: bool = False, unsigned: bool = False) -> ColumnDefinition:
        return self.add_column(ColumnType.MEDIUM_INTEGER, name, auto_increment=auto_increment, unsigned=unsigned)

    def big_integer(self, name: str, auto_increment: bool = False, unsigned: bool = False) -> ColumnDefinition:
        return self.add_column(ColumnType.BIG_INTEGER, name, auto_increment=auto_increment, unsigned=unsigned)

    def unsigned_integer(self, name: str) -> ColumnDefinition:
        return self.integer(name, unsigned=True)

    def unsigned_tiny_integer(self, name: str) -> ColumnDefinition:
        return self.tiny_integer(name, unsigned=True)

    def unsigned_small_integer(self, name: str) -> ColumnDefinition:
        return self.small_integer(name, unsigned=True)

    def unsigned_medium_integer(self, name: str) -> ColumnDefinition:
        return self.medium_integer(name, unsigned=True)

    def unsigned_big_integer(self, name: str) -> ColumnDefinition:
        return self.big_integer(name, unsigned=True)

    def float(self, name: str, precision: int = 53) -> ColumnDefinition:
        return self.add_column(ColumnType.FLOAT, name, precision=precision)

    def double(self, name: str) -> ColumnDefinition:
        return self.add_column(ColumnType.DOUBLE, name)

    def decimal(self, name: str, total: int = 8, places: int = 2) -> ColumnDefinition:
        return self.add_column(ColumnType.DECIMAL, name, precision=total, scale=places)

    def boolean(self, name: str) -> ColumnDefinition:
        return self.add_column(ColumnType.BOOLEAN, name)

    def enum(self, name: str, allowed: Sequence[str]) -> ColumnDefinition:
        return self.add_column(ColumnType.ENUM, name, allowed=list(allowed))

    def json(self, name: str) -> ColumnDefinition:
        return self.add_column(ColumnType.JSON, name)

    def date(self, name: str) -> ColumnDefinition:
        return self.add_column(ColumnType.DATE, name)

    def date_time(self, name: str, precision: int = 0) -> ColumnDefinition:
        return self.add_column(ColumnType.DATETIME, name, precision=precision)

    def time(self, name: str, precision: int = 0) -> ColumnDefinition:
        return self.add_column(ColumnType.TIME, name, precision=precision)

    def timestamp(self, name: str, precision: int = 0) -> ColumnDefinition:
        return self.add_column(ColumnType.TIMESTAMP, name, precision=precision)

    def timestamps(self, precision: int = 0) -> None:
        """Add nullable ``created_at`` and ``updated_at`` timestamps."""
        self.timestamp("created_at", precision).nullable()
        self.timestamp("updated_at", precision).nullable()

    def binary(self, name: str, length: Optional[int] = None) -> ColumnDefinition:
        return self.add_column(ColumnType.BINARY, name, length=length)

    def uuid(self, name: str = "uuid") -> ColumnDefinition:
        return self.add_column(ColumnType.UUID, name)

    def custom(self, name: str, type_identifier: str) -> ColumnDefinition:
        """Add a column of a type registered in the custom type registry."""
        return self.add_column(ColumnType.CUSTOM, name, custom_type=type_identifier)

    # Compilation support

    def get_added_columns(self) -> List[ColumnDefinition]:
        return [c for c in self.columns if not c.is_change]

    def get_changed_columns(self) -> List[ColumnDefinition]:
        return [c for c in self.columns if c.is_change]

    def add_implied_commands(self) -> None:
        """Turn fluent column indexes into commands and queue add/change commands.

        Runs once, when the blueprint is first compiled.
        """
        self._add_fluent_indexes()

        if not self.creating():
            implied = []
            if self.get_added_columns():
                implied.append(Command(CommandType.ADD, columns=self.get_added_columns()))
            if self.get_changed_columns():
                implied.append(Command(CommandType.CHANGE, columns=self.get_changed_columns()))
            self.commands[:0] = implied

    def _add_fluent_indexes(self) -> None:
        for column in self.columns:
            for kind, value in column.fluent_indexes.items():
                if value is False:
                    continue
                name = value if isinstance(value, str) else None
                index = IndexDefinition(
                    kind=kind,
                    columns=[column.name],
                    name=name or self.create_index_name(kind.value, [column.name]),
                )
                self.commands.append(Command(CommandType.INDEX, index=index))
            column.fluent_indexes = {}

    def validate(self) -> None:
        """Check blueprint-wide invariants before any SQL is emitted."""
        if self._primary_count() > 1:
            raise InvalidDefinition(
                f"Table '{self.table}' declares more than one primary key",
                details={"table": self.table},
            )
        names = [c.name.lower() for c in self.get_added_columns()]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise InvalidDefinition(
                f"Table '{self.table}' declares duplicate columns: {', '.join(duplicates)}",
                details={"table": self.table, "columns": duplicates},
            )
        for command in self.commands:
            if command.type == CommandType.FOREIGN:
                command.foreign.validate()
        if self.creating() and not self.get_added_columns():
            raise InvalidDefinition(
                f"Table '{self.table}' must have at least one column",
                details={"table": self.table},
            )

    def __repr__(self) -> str:
        return f"Blueprint(table={self.table!r}, state={self.state.value!r})"
