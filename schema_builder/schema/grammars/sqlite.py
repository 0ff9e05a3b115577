"""SQLite grammar."""

import logging
import re
from typing import Callable, Dict, List, Optional, Set, Tuple

from ...database.models import ColumnInfo, TableState
from ...errors import UnsupportedFeature
from ..columns import ColumnDefinition, CommandType, IndexKind
from .base import Grammar

logger = logging.getLogger(__name__)

_TABLE_CONSTRAINTS = frozenset({"constraint", "primary", "unique", "check", "foreign"})
_IDENTIFIER = re.compile(r'\s*("(?:[^"]|"")*"|`[^`]*`|\[[^\]]*\]|[^\s(,]+)')
_PRIMARY_KEY = re.compile(r"\bprimary\s+key\b", re.IGNORECASE)
_REFERENCES = re.compile(r"\breferences\b", re.IGNORECASE)
_UNIQUE = re.compile(r"\bunique\b", re.IGNORECASE)
_FOREIGN_KEY_COLUMNS = re.compile(r"\bforeign\s+key\s*\(([^)]*)\)", re.IGNORECASE)
_UNIQUE_COLUMNS = re.compile(r"\bunique\s*\(([^)]*)\)", re.IGNORECASE)


def _unquote(identifier: str) -> str:
    if identifier[:1] == '"':
        return identifier[1:-1].replace('""', '"')
    if identifier[:1] in ("`", "["):
        return identifier[1:-1]
    return identifier


def split_definitions(sql: str) -> List[str]:
    """Split the body of a CREATE TABLE statement on its top-level commas."""
    body = sql[sql.index("(") + 1:sql.rindex(")")]
    parts = []
    depth = 0
    quote = None
    start = 0
    for position, char in enumerate(body):
        if quote:
            if char == quote:
                quote = None
        elif char in ("'", '"', "`"):
            quote = char
        elif char == "[":
            quote = "]"
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        elif char == "," and depth == 0:
            parts.append(body[start:position].strip())
            start = position + 1
    parts.append(body[start:].strip())
    return [part for part in parts if part]


def parse_table_sql(sql: Optional[str]) -> Tuple[Dict[str, str], List[str]]:
    """Column definitions keyed by lowercase name, and table constraints, of a CREATE TABLE."""
    columns: Dict[str, str] = {}
    constraints: List[str] = []
    if not sql or "(" not in sql:
        return columns, constraints
    for part in split_definitions(sql):
        name = _IDENTIFIER.match(part).group(1)
        if name.lower() in _TABLE_CONSTRAINTS:
            constraints.append(part)
        else:
            columns[_unquote(name).lower()] = part
    return columns, constraints


def _constraint_columns(constraints: List[str], pattern: re.Pattern) -> Set[Tuple[str, ...]]:
    found = set()
    for constraint in constraints:
        match = pattern.search(constraint)
        if match:
            names = [_IDENTIFIER.match(name).group(1) for name in match.group(1).split(",") if name.strip()]
            found.add(tuple(_unquote(name).lower() for name in names))
    return found


class SQLiteGrammar(Grammar):
    """Grammar for SQLite.

    SQLite cannot alter a column in place, so column changes rebuild the
    table: create the new table under a temporary name, copy the rows,
    drop the old table, rename the new one and recreate the indexes.
    Columns that are not changed keep their definition from the stored
    CREATE TABLE statement.
    """

    NAME = "SQLite"
    TRANSACTIONAL_DDL = True

    def type_char(self, column):
        return "VARCHAR"

    def type_string(self, column):
        return "VARCHAR"

    def type_tiny_text(self, column):
        return "TEXT"

    def type_text(self, column):
        return "TEXT"

    def type_medium_text(self, column):
        return "TEXT"

    def type_long_text(self, column):
        return "TEXT"

    def type_integer(self, column):
        return "INTEGER"

    def type_tiny_integer(self, column):
        return "INTEGER"

    def type_small_integer(self, column):
        return "INTEGER"

    def type_medium_integer(self, column):
        return "INTEGER"

    def type_big_integer(self, column):
        return "INTEGER"

    def type_double(self, column):
        return "DOUBLE"

    def type_decimal(self, column):
        return "NUMERIC"

    def type_boolean(self, column):
        return "TINYINT(1)"

    def type_enum(self, column):
        return f"VARCHAR {self.enum_check(column)}"

    def type_json(self, column):
        return "TEXT"

    def type_datetime(self, column):
        return "DATETIME"

    def type_time(self, column):
        return "TIME"

    def type_timestamp(self, column):
        return "DATETIME"

    def type_binary(self, column):
        return "BLOB"

    def type_uuid(self, column):
        return "VARCHAR"

    def column_modifiers(self) -> List[Callable[[ColumnDefinition], str]]:
        return [self.modify_auto_increment, self.modify_nullable, self.modify_default]

    def modify_auto_increment(self, column):
        return " PRIMARY KEY AUTOINCREMENT" if column.is_auto_increment else ""

    def compile_add(self, blueprint, command, state):
        # Added columns are folded into the rebuild when the blueprint changes columns
        if any(c.type == CommandType.CHANGE for c in blueprint.commands):
            return []
        table = self.wrap_table(blueprint)
        return [f"ALTER TABLE {table} ADD COLUMN {column}" for column in self.compile_columns(command.columns)]

    def rebuilds_table(self, blueprint) -> bool:
        return not blueprint.creating() and any(c.type == CommandType.CHANGE for c in blueprint.commands)

    def compile_foreign_keys_enabled(self) -> str:
        return "PRAGMA foreign_keys"

    def compile_foreign_key_check(self, blueprint) -> str:
        return f"PRAGMA foreign_key_check({self.wrap_table(blueprint)})"

    def compile_change(self, blueprint, command, state: Optional[TableState]):
        if state is None:
            raise UnsupportedFeature("changing columns without a live connection", self.NAME)

        changed = {column.name.lower(): column for column in command.columns}
        added = blueprint.get_added_columns()
        primary = state.get_primary_key()
        primary_columns = primary.columns if primary else []
        live_columns, constraints = parse_table_sql(state.sql)

        # An auto-increment column declares the primary key inline
        if any(column.is_auto_increment for column in changed.values()):
            constraints = [c for c in constraints if not _PRIMARY_KEY.search(c)]
        declared_primary = any(_PRIMARY_KEY.search(c) for c in constraints)
        declared_foreign = _constraint_columns(constraints, _FOREIGN_KEY_COLUMNS)
        declared_unique = _constraint_columns(constraints, _UNIQUE_COLUMNS)

        definitions = []
        for info in state.columns:
            key = info.name.lower()
            column = changed.get(key)
            live = live_columns.get(key)
            if column is not None:
                definitions.append(self.compile_column(column))
                declared_primary = declared_primary or column.is_auto_increment
            elif live is not None:
                # Unchanged columns keep their CHECK, COLLATE and inline key clauses
                definitions.append(live)
                declared_primary = declared_primary or bool(_PRIMARY_KEY.search(live))
                if _REFERENCES.search(live):
                    declared_foreign.add((key,))
                if _UNIQUE.search(live):
                    declared_unique.add((key,))
            else:
                definitions.append(self._compile_live_column(info, primary_columns))
                declared_primary = declared_primary or (info.auto_increment and primary_columns == [info.name])
        definitions.extend(self.compile_columns(added))

        if primary_columns and not declared_primary:
            definitions.append(f"PRIMARY KEY ({self.columnize(primary_columns)})")
        definitions.extend(constraints)

        for foreign in state.foreign_keys:
            if tuple(column.lower() for column in foreign.columns) in declared_foreign:
                continue
            clause = (
                f"FOREIGN KEY ({self.columnize(foreign.columns)}) "
                f"REFERENCES {self.wrap(foreign.foreign_table)} ({self.columnize(foreign.foreign_columns)})"
            )
            if foreign.on_delete and foreign.on_delete != "NO ACTION":
                clause += f" ON DELETE {foreign.on_delete}"
            if foreign.on_update and foreign.on_update != "NO ACTION":
                clause += f" ON UPDATE {foreign.on_update}"
            definitions.append(clause)

        table = self.wrap_table(blueprint)
        temp = self.wrap("__temp__" + self.prefix + blueprint.table)
        copied = self.columnize([info.name for info in state.columns])

        statements = [
            f"CREATE TABLE {temp} ({', '.join(definitions)})",
            f"INSERT INTO {temp} ({copied}) SELECT {copied} FROM {table}",
            f"DROP TABLE {table}",
            f"ALTER TABLE {temp} RENAME TO {table}",
        ]

        for index in state.indexes:
            if index.primary:
                continue
            kind = IndexKind.UNIQUE if index.unique else IndexKind.INDEX
            name = index.name
            if name.startswith("sqlite_autoindex_"):
                # Recreated by the UNIQUE clause the new table keeps
                if tuple(column.lower() for column in index.columns) in declared_unique:
                    continue
                name = blueprint.create_index_name(kind.value, index.columns)
            unique = "UNIQUE " if index.unique else ""
            statements.append(
                f"CREATE {unique}INDEX {self.wrap(name)} ON {table} ({self.columnize(index.columns)})"
            )
        logger.debug("Rebuilding %s to change %s", blueprint.table, ", ".join(changed))
        return statements

    def _compile_live_column(self, info: ColumnInfo, primary_columns: List[str]) -> str:
        sql = self.wrap(info.name)
        if info.type:
            sql += f" {info.type.upper()}"
        if info.auto_increment and primary_columns == [info.name]:
            sql += " PRIMARY KEY AUTOINCREMENT"
        if not info.nullable:
            sql += " NOT NULL"
        if info.default is not None:
            sql += f" DEFAULT {info.default}"
        return sql

    def compile_drop_column(self, blueprint, command, state):
        table = self.wrap_table(blueprint)
        return [f"ALTER TABLE {table} DROP COLUMN {self.wrap(name)}" for name in command.names]

    def compile_index(self, blueprint, index):
        if index.kind == IndexKind.PRIMARY:
            raise UnsupportedFeature("adding a primary key to an existing table", self.NAME)
        return super().compile_index(blueprint, index)

    def compile_drop_index(self, blueprint, command, state):
        if command.kind == IndexKind.PRIMARY:
            raise UnsupportedFeature("dropping a primary key", self.NAME)
        return [f"DROP INDEX {self.wrap(command.target)}"]

    def compile_foreign(self, blueprint, command, state):
        raise UnsupportedFeature("adding foreign keys to an existing table", self.NAME)

    def compile_drop_foreign(self, blueprint, command, state):
        raise UnsupportedFeature("dropping foreign keys", self.NAME)

    def compile_drop_all_tables(self, tables):
        return [f"DROP TABLE {self.wrap(table)}" for table in tables]

    def compile_drop_all_views(self, views):
        return [f"DROP VIEW {self.wrap(view)}" for view in views]

    def compile_enable_foreign_key_constraints(self) -> str:
        return "PRAGMA foreign_keys = ON"

    def compile_disable_foreign_key_constraints(self) -> str:
        return "PRAGMA foreign_keys = OFF"
