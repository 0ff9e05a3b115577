"""Database connections and schema introspection.

This module provides the DB-API connection wrapper and one introspector
per supported dialect: MySQL, PostgreSQL, SQLite and SQL Server.
"""

from .models import (
    ColumnInfo,
    Dialect,
    ForeignKeyInfo,
    IndexInfo,
    TableInfo,
    TableState,
    ViewInfo,
)
from .base import SchemaIntrospector
from .mysql import MySqlIntrospector
from .postgres import PostgresIntrospector
from .sqlite import SQLiteIntrospector
from .sqlserver import SqlServerIntrospector
from .connection import Connection, connect

INTROSPECTORS = {
    Dialect.MYSQL: MySqlIntrospector,
    Dialect.PGSQL: PostgresIntrospector,
    Dialect.SQLITE: SQLiteIntrospector,
    Dialect.SQLSRV: SqlServerIntrospector,
}

__all__ = [
    # Data models
    "Dialect",
    "TableInfo",
    "ViewInfo",
    "ColumnInfo",
    "IndexInfo",
    "ForeignKeyInfo",
    "TableState",
    # Introspectors
    "SchemaIntrospector",
    "MySqlIntrospector",
    "PostgresIntrospector",
    "SQLiteIntrospector",
    "SqlServerIntrospector",
    "INTROSPECTORS",
    # Connections
    "Connection",
    "connect",
]
