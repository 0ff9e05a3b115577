"""Abstract base class for schema introspection."""

import logging
import re
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Union, TYPE_CHECKING

from ..errors import IntrospectionError
from .models import ColumnInfo, ForeignKeyInfo, IndexInfo, TableInfo, TableState, ViewInfo

if TYPE_CHECKING:
    from .connection import Connection

logger = logging.getLogger(__name__)


def split_columns(value: Optional[str]) -> List[str]:
    """Split an aggregated, comma separated column list."""
    if not value:
        return []
    return [column for column in value.split(",") if column]


class SchemaIntrospector(ABC):
    """Reads live schema metadata through a connection.

    Subclasses implement the catalog queries for one dialect and normalize
    the results into :mod:`schema_builder.database.models`. Table names
    passed to the public methods are unprefixed; the connection's table
    prefix is applied here.
    """

    def __init__(self, connection: "Connection"):
        self.connection = connection

    @property
    def registry(self):
        return self.connection.registry

    def prefixed(self, table: str) -> str:
        return self.connection.prefix + table

    @abstractmethod
    def get_tables(self) -> List[TableInfo]:
        """Get all base tables in the current database or schema.

        Returns:
            List of TableInfo, ordered by name
        """
        pass

    @abstractmethod
    def get_views(self) -> List[ViewInfo]:
        """Get all views in the current database or schema.

        Returns:
            List of ViewInfo, ordered by name
        """
        pass

    @abstractmethod
    def get_columns(self, table: str) -> List[ColumnInfo]:
        """Get the columns of a table in ordinal order.

        Args:
            table: Unprefixed table name

        Returns:
            List of ColumnInfo (empty when the table does not exist)
        """
        pass

    @abstractmethod
    def get_indexes(self, table: str) -> List[IndexInfo]:
        """Get the indexes of a table.

        Args:
            table: Unprefixed table name

        Returns:
            List of IndexInfo with lowercase names and columns in key order
        """
        pass

    @abstractmethod
    def get_foreign_keys(self, table: str) -> List[ForeignKeyInfo]:
        """Get the foreign keys declared on a table.

        Args:
            table: Unprefixed table name

        Returns:
            List of ForeignKeyInfo
        """
        pass

    def get_table_listing(self) -> List[str]:
        return [table.name for table in self.get_tables()]

    def get_column_listing(self, table: str) -> List[str]:
        return [column.name for column in self.get_columns(table)]

    def has_table(self, table: str) -> bool:
        name = self.prefixed(table).lower()
        return any(t.name.lower() == name for t in self.get_tables())

    def has_view(self, view: str) -> bool:
        name = self.prefixed(view).lower()
        return any(v.name.lower() == name for v in self.get_views())

    def has_column(self, table: str, column: str) -> bool:
        return column.lower() in {name.lower() for name in self.get_column_listing(table)}

    def has_columns(self, table: str, columns: Sequence[str]) -> bool:
        existing = {name.lower() for name in self.get_column_listing(table)}
        return all(column.lower() in existing for column in columns)

    def has_index(self, table: str, index: Union[str, Sequence[str]], kind: Optional[str] = None) -> bool:
        """Check for an index by name or by its exact column list.

        Args:
            table: Unprefixed table name
            index: Index name, or the list of indexed columns
            kind: Optional ``primary``, ``unique`` or ``index`` filter
        """
        kind = kind.lower() if kind else None
        for info in self.get_indexes(table):
            if isinstance(index, str):
                matches = info.name == index.lower()
            else:
                matches = [c.lower() for c in info.columns] == [c.lower() for c in index]
            if not matches:
                continue
            if kind is None:
                return True
            if kind == "primary" and info.primary:
                return True
            if kind == "unique" and info.unique and not info.primary:
                return True
            if kind == "index" and not info.unique and not info.primary:
                return True
        return False

    def get_column_type(self, table: str, column: str, full_definition: bool = False) -> str:
        """Get the type of a live column.

        Columns whose native type is registered as a custom type report the
        custom identifier.

        Raises:
            IntrospectionError: If the table has no such column
        """
        for info in self.get_columns(table):
            if info.name.lower() != column.lower():
                continue
            custom = self.registry.find_by_native(info.type_name)
            if custom is not None:
                return custom.identifier
            return info.type if full_definition else info.type_name
        raise IntrospectionError(
            f"Column '{column}' does not exist on table '{table}'",
            details={"table": table, "column": column},
        )

    def describe(self, table: str) -> TableState:
        """Snapshot of a table's columns, indexes and foreign keys.

        Raises:
            IntrospectionError: If the table does not exist
        """
        columns = self.get_columns(table)
        if not columns:
            raise IntrospectionError(
                f"Table '{table}' does not exist",
                details={"table": table},
            )
        return TableState(
            name=self.prefixed(table),
            columns=columns,
            indexes=self.get_indexes(table),
            foreign_keys=self.get_foreign_keys(table),
        )

    @staticmethod
    def type_name_of(type_definition: str) -> str:
        """Strip parameters and modifiers: ``varchar(255)`` -> ``varchar``."""
        return re.sub(r"\(.*$", "", type_definition or "").strip().lower()

