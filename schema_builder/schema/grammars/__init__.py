"""Dialect grammars."""

from typing import Dict, Type

from ...database.models import Dialect
from .base import Grammar
from .mysql import MySqlGrammar
from .postgres import PostgresGrammar
from .sqlite import SQLiteGrammar
from .sqlserver import SqlServerGrammar

GRAMMARS: Dict[Dialect, Type[Grammar]] = {
    Dialect.MYSQL: MySqlGrammar,
    Dialect.PGSQL: PostgresGrammar,
    Dialect.SQLITE: SQLiteGrammar,
    Dialect.SQLSRV: SqlServerGrammar,
}


def get_grammar(dialect: Dialect, **config) -> Grammar:
    """Create the grammar for a dialect.

    Args:
        dialect: Target database engine
        **config: Grammar options such as ``prefix`` or ``engine``

    Returns:
        A configured grammar instance
    """
    return GRAMMARS[Dialect(dialect)](**config)


__all__ = [
    "Grammar",
    "MySqlGrammar",
    "PostgresGrammar",
    "SQLiteGrammar",
    "SqlServerGrammar",
    "GRAMMARS",
    "get_grammar",
]
