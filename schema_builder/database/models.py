"""Normalized introspection results."""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, Optional


class Dialect(str, Enum):
    """Supported database engines."""
    MYSQL = "mysql"
    PGSQL = "pgsql"
    SQLITE = "sqlite"
    SQLSRV = "sqlsrv"

    @classmethod
    def from_scheme(cls, scheme: str) -> "Dialect":
        """Resolve a URL scheme such as ``postgresql`` or ``mssql``."""
        aliases = {
            "mysql": cls.MYSQL,
            "mariadb": cls.MYSQL,
            "pgsql": cls.PGSQL,
            "postgres": cls.PGSQL,
            "postgresql": cls.PGSQL,
            "sqlite": cls.SQLITE,
            "sqlsrv": cls.SQLSRV,
            "mssql": cls.SQLSRV,
        }
        try:
            return aliases[scheme.lower().split("+")[0]]
        except KeyError:
            raise ValueError(f"Unsupported database scheme: {scheme}")


@dataclass(frozen=True)
class TableInfo:
    """A base table as reported by the catalog."""
    name: str
    schema: Optional[str] = None
    size: Optional[int] = None
    comment: Optional[str] = None
    engine: Optional[str] = None
    collation: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ViewInfo:
    """A view and its definition."""
    name: str
    schema: Optional[str] = None
    definition: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ColumnInfo:
    """A live column.

    ``type_name`` is the lowercase native type without parameters,
    ``type`` the full lowercase definition (``varchar(255)``), and
    ``default`` the default as a SQL expression.
    """
    name: str
    type_name: str
    type: str
    nullable: bool = True
    default: Optional[str] = None
    auto_increment: bool = False
    unsigned: bool = False
    comment: Optional[str] = None
    collation: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class IndexInfo:
    """A live index with its columns in key order."""
    name: str
    columns: List[str]
    type: Optional[str] = None
    unique: bool = False
    primary: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ForeignKeyInfo:
    """A live foreign key constraint."""
    name: Optional[str]
    columns: List[str]
    foreign_table: str
    foreign_columns: List[str]
    foreign_schema: Optional[str] = None
    on_update: Optional[str] = None
    on_delete: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class TableState:
    """Everything the compiler needs to know about an existing table."""
    name: str
    columns: List[ColumnInfo] = field(default_factory=list)
    indexes: List[IndexInfo] = field(default_factory=list)
    foreign_keys: List[ForeignKeyInfo] = field(default_factory=list)
    # CREATE TABLE statement, where the catalog keeps it (SQLite)
    sql: Optional[str] = None

    def get_column(self, name: str) -> Optional[ColumnInfo]:
        """Find a column by name (case-insensitive)."""
        for column in self.columns:
            if column.name.lower() == name.lower():
                return column
        return None

    def get_primary_key(self) -> Optional[IndexInfo]:
        for index in self.indexes:
            if index.primary:
                return index
        return None
