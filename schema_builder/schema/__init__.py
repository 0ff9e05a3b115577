"""Blueprints, grammars and the schema builder facade."""

from .columns import (
    ColumnDefinition,
    ColumnType,
    Command,
    CommandType,
    Expression,
    ForeignKeyDefinition,
    IndexDefinition,
    IndexKind,
)
from .types import CustomType, CustomTypeRegistry, RegisteredType, registry
from .blueprint import Blueprint, BlueprintState
from .compiler import BlueprintCompiler
from .grammars import (
    Grammar,
    MySqlGrammar,
    PostgresGrammar,
    SQLiteGrammar,
    SqlServerGrammar,
    get_grammar,
)
from .builder import SchemaBuilder

__all__ = [
    # Definitions
    "ColumnDefinition",
    "ColumnType",
    "Command",
    "CommandType",
    "Expression",
    "ForeignKeyDefinition",
    "IndexDefinition",
    "IndexKind",
    # Custom types
    "CustomType",
    "CustomTypeRegistry",
    "RegisteredType",
    "registry",
    # Compilation
    "Blueprint",
    "BlueprintState",
    "BlueprintCompiler",
    "Grammar",
    "MySqlGrammar",
    "PostgresGrammar",
    "SQLiteGrammar",
    "SqlServerGrammar",
    "get_grammar",
    # Facade
    "SchemaBuilder",
]
