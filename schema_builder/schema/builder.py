"""Schema builder facade bound to a connection."""

import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, List, Optional, Sequence, Union, TYPE_CHECKING

from .blueprint import Blueprint

if TYPE_CHECKING:
    from ..database.connection import Connection
    from ..database.models import ColumnInfo, ForeignKeyInfo, IndexInfo, TableInfo, ViewInfo
    from .grammars.base import Grammar
    from .types import CustomType

logger = logging.getLogger(__name__)

BlueprintCallback = Callable[[Blueprint], Any]


class SchemaBuilder:
    """Creates, alters and inspects tables through one connection.

    Example::

        schema = SchemaBuilder(connect("sqlite:///app.db"))
        schema.create("users", lambda table: (
            table.id(),
            table.string("email").unique(),
            table.timestamps(),
        ))
        schema.has_table("users")
    """

    def __init__(self, connection: "Connection", grammar: Optional["Grammar"] = None):
        self.connection = connection
        self.grammar = grammar or connection.get_schema_grammar()

    @property
    def introspector(self):
        return self.connection.get_introspector()

    def blueprint(self, table: str, callback: Optional[BlueprintCallback] = None) -> Blueprint:
        return Blueprint(table, callback, prefix=self.connection.prefix)

    def build(self, blueprint: Blueprint) -> List[str]:
        return blueprint.build(self.connection, self.grammar)

    # Tables

    def create(self, table: str, callback: BlueprintCallback) -> List[str]:
        """Create a table declared by ``callback``."""
        blueprint = self.blueprint(table)
        blueprint.create()
        callback(blueprint)
        return self.build(blueprint)

    def table(self, table: str, callback: BlueprintCallback) -> List[str]:
        """Modify an existing table."""
        return self.build(self.blueprint(table, callback))

    def drop(self, table: str) -> List[str]:
        blueprint = self.blueprint(table)
        blueprint.drop()
        return self.build(blueprint)

    def drop_if_exists(self, table: str) -> List[str]:
        blueprint = self.blueprint(table)
        blueprint.drop_if_exists()
        return self.build(blueprint)

    def rename(self, source: str, target: str) -> List[str]:
        blueprint = self.blueprint(source)
        blueprint.rename(target)
        return self.build(blueprint)

    def drop_columns(self, table: str, columns: Union[str, Sequence[str]]) -> List[str]:
        blueprint = self.blueprint(table)
        blueprint.drop_column(columns)
        return self.build(blueprint)

    def drop_all_tables(self) -> List[str]:
        """Drop every table in the database or schema.

        Foreign key checks are disabled for the duration where the dialect
        needs it, and restored even when a drop fails.
        """
        tables = self.get_table_listing()
        if not tables:
            return []
        statements = self.grammar.compile_drop_all_tables(tables)

        if self.grammar.DISABLE_CONSTRAINTS_FOR_DROP_ALL:
            with self.without_foreign_key_constraints():
                self._run(statements)
        else:
            self._run(statements)
        logger.info("Dropped %d table(s)", len(tables))
        return statements

    def drop_all_views(self) -> List[str]:
        views = [view.name for view in self.get_views()]
        if not views:
            return []
        statements = self.grammar.compile_drop_all_views(views)
        self._run(statements)
        logger.info("Dropped %d view(s)", len(views))
        return statements

    def _run(self, statements: Sequence[str]) -> None:
        for sql in statements:
            self.connection.statement(sql)

    # Foreign key constraints

    def enable_foreign_key_constraints(self) -> int:
        return self.connection.statement(self.grammar.compile_enable_foreign_key_constraints())

    def disable_foreign_key_constraints(self) -> int:
        return self.connection.statement(self.grammar.compile_disable_foreign_key_constraints())

    @contextmanager
    def without_foreign_key_constraints(self) -> Iterator["SchemaBuilder"]:
        """Disable foreign key checks for the enclosed block."""
        self.disable_foreign_key_constraints()
        try:
            yield self
        finally:
            self.enable_foreign_key_constraints()

    # Custom types

    def register_type(self, identifier: str, native_name: str, handler: Optional["CustomType"] = None) -> None:
        self.connection.register_type(identifier, native_name, handler)

    # Introspection

    def get_tables(self) -> List["TableInfo"]:
        return self.introspector.get_tables()

    def get_table_listing(self) -> List[str]:
        return self.introspector.get_table_listing()

    def get_views(self) -> List["ViewInfo"]:
        return self.introspector.get_views()

    def get_columns(self, table: str) -> List["ColumnInfo"]:
        return self.introspector.get_columns(table)

    def get_column_listing(self, table: str) -> List[str]:
        return self.introspector.get_column_listing(table)

    def get_indexes(self, table: str) -> List["IndexInfo"]:
        return self.introspector.get_indexes(table)

    def get_foreign_keys(self, table: str) -> List["ForeignKeyInfo"]:
        return self.introspector.get_foreign_keys(table)

    def get_column_type(self, table: str, column: str, full_definition: bool = False) -> str:
        return self.introspector.get_column_type(table, column, full_definition)

    def has_table(self, table: str) -> bool:
        return self.introspector.has_table(table)

    def has_view(self, view: str) -> bool:
        return self.introspector.has_view(view)

    def has_column(self, table: str, column: str) -> bool:
        return self.introspector.has_column(table, column)

    def has_columns(self, table: str, columns: Sequence[str]) -> bool:
        return self.introspector.has_columns(table, columns)

    def has_index(self, table: str, index: Union[str, Sequence[str]], kind: Optional[str] = None) -> bool:
        return self.introspector.has_index(table, index, kind)

    def describe(self, table: str):
        return self.introspector.describe(table)
