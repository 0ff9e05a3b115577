"""Turns blueprints into statements and runs them."""

import copy
import logging
from typing import List, Optional, TYPE_CHECKING

from ..errors import IntrospectionError, InvalidDefinition
from .blueprint import Blueprint, BlueprintState
from .columns import INTEGER_TYPES, NUMERIC_TYPES, ColumnDefinition, CommandType, Expression

if TYPE_CHECKING:
    from ..database.connection import Connection
    from ..database.models import ColumnInfo, TableState
    from .grammars.base import Grammar

logger = logging.getLogger(__name__)


class BlueprintCompiler:
    """Compiles a blueprint with a grammar and executes the result.

    Column changes need the live table: each changed column inherits the
    attributes of the existing column that the caller did not set.
    """

    def to_sql(
        self,
        blueprint: Blueprint,
        connection: Optional["Connection"],
        grammar: "Grammar",
    ) -> List[str]:
        if blueprint.state != BlueprintState.DECLARED:
            return list(blueprint.statements or [])

        blueprint.add_implied_commands()
        blueprint.validate()

        state = None
        if connection is not None and self._has_changes(blueprint):
            state = connection.get_introspector().describe(blueprint.table)
            self._merge_live_columns(blueprint, state)

        if blueprint.creating():
            statements = grammar.compile_create(blueprint)
        else:
            statements = grammar.compile_alter(blueprint, state)

        blueprint.freeze(statements)
        logger.debug("Compiled %d statement(s) for %s", len(statements), blueprint.table)
        return list(statements)

    def build(self, blueprint: Blueprint, connection: "Connection", grammar: "Grammar") -> List[str]:
        if blueprint.state in (BlueprintState.EXECUTED, BlueprintState.FAILED):
            raise InvalidDefinition(
                f"Blueprint for '{blueprint.table}' is already {blueprint.state.value} and cannot be built again",
                details={"table": blueprint.table, "state": blueprint.state.value},
            )

        statements = self.to_sql(blueprint, connection, grammar)

        try:
            if grammar.rebuilds_table(blueprint):
                self._rebuild(blueprint, connection, grammar, statements)
            elif grammar.TRANSACTIONAL_DDL and len(statements) > 1:
                with connection.transaction():
                    self._run(connection, statements)
            else:
                self._run(connection, statements)
        except Exception:
            blueprint.mark_failed()
            raise

        blueprint.mark_executed()
        logger.info("Applied %d statement(s) to %s", len(statements), blueprint.table)
        return statements

    @staticmethod
    def _run(connection: "Connection", statements: List[str]) -> None:
        for sql in statements:
            connection.statement(sql)

    def _rebuild(
        self,
        blueprint: Blueprint,
        connection: "Connection",
        grammar: "Grammar",
        statements: List[str],
    ) -> None:
        # Foreign key pragmas are ignored inside a transaction, so toggle outside it
        rows = connection.select(grammar.compile_foreign_keys_enabled())
        enforced = bool(rows) and bool(next(iter(rows[0].values())))
        if enforced:
            connection.statement(grammar.compile_disable_foreign_key_constraints())
        try:
            with connection.transaction():
                self._run(connection, statements)
                if enforced:
                    violations = connection.select(grammar.compile_foreign_key_check(blueprint))
                    if violations:
                        raise InvalidDefinition(
                            f"Rebuilding '{blueprint.table}' violates {len(violations)} foreign key constraint(s)",
                            details={"table": blueprint.table, "violations": violations},
                        )
        finally:
            if enforced:
                connection.statement(grammar.compile_enable_foreign_key_constraints())

    @staticmethod
    def _has_changes(blueprint: Blueprint) -> bool:
        return any(command.type == CommandType.CHANGE for command in blueprint.commands)

    def _merge_live_columns(self, blueprint: Blueprint, state: "TableState") -> None:
        for command in blueprint.commands:
            if command.type != CommandType.CHANGE:
                continue
            merged = []
            for column in command.columns:
                info = state.get_column(column.name)
                if info is None:
                    raise IntrospectionError(
                        f"Column '{column.name}' does not exist on table '{blueprint.table}'",
                        details={"table": blueprint.table, "column": column.name},
                    )
                merged.append(self.merge_column(column, info))
            command.columns = merged

    @staticmethod
    def merge_column(column: ColumnDefinition, info: "ColumnInfo") -> ColumnDefinition:
        """Copy of ``column`` carrying over the live attributes it does not set."""
        merged = copy.copy(column)
        merged.explicit = set(column.explicit)
        merged.fluent_indexes = dict(column.fluent_indexes)

        if "nullable" not in column.explicit:
            merged.is_nullable = info.nullable
        if "default" not in column.explicit and info.default is not None:
            merged.default_value = Expression(info.default)
            merged.has_default = True
        if "comment" not in column.explicit and info.comment:
            merged.comment_text = info.comment
        if "auto_increment" not in column.explicit and info.auto_increment:
            merged.is_auto_increment = column.type in INTEGER_TYPES
        if "unsigned" not in column.explicit and info.unsigned:
            merged.is_unsigned = column.type in NUMERIC_TYPES
        return merged
