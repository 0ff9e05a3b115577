"""MySQL schema introspector."""

import logging
import re
from typing import List, Optional

from .base import SchemaIntrospector, split_columns
from .models import ColumnInfo, ForeignKeyInfo, IndexInfo, TableInfo, ViewInfo

logger = logging.getLogger(__name__)

_STRING_TYPES = {"char", "varchar", "tinytext", "text", "mediumtext", "longtext", "enum", "set"}


class MySqlIntrospector(SchemaIntrospector):
    """Reads the schema from ``information_schema`` for the current database."""

    def _database(self) -> Optional[str]:
        database = self.connection.get_database_name()
        if database:
            return database
        rows = self.connection.select("select database() as name")
        name = rows[0]["name"] if rows else None
        if name is None:
            logger.warning("No database selected; catalog queries will return nothing")
        return name

    def get_tables(self) -> List[TableInfo]:
        rows = self.connection.select(
            "select table_name as name, data_length + index_length as size, "
            "table_comment as comment, engine, table_collation as collation "
            "from information_schema.tables "
            "where table_schema = ? and table_type in ('BASE TABLE', 'SYSTEM VERSIONED') "
            "order by table_name",
            [self._database()],
        )
        return [
            TableInfo(
                name=row["name"],
                schema=self._database(),
                size=int(row["size"]) if row["size"] is not None else None,
                comment=row["comment"] or None,
                engine=row["engine"],
                collation=row["collation"],
            )
            for row in rows
        ]

    def get_views(self) -> List[ViewInfo]:
        rows = self.connection.select(
            "select table_name as name, view_definition as definition "
            "from information_schema.views where table_schema = ? order by table_name",
            [self._database()],
        )
        return [
            ViewInfo(name=row["name"], schema=self._database(), definition=row["definition"])
            for row in rows
        ]

    def get_columns(self, table: str) -> List[ColumnInfo]:
        rows = self.connection.select(
            "select column_name as name, data_type as type_name, column_type as type, "
            "collation_name as collation, is_nullable as nullable, "
            "column_default as `default`, column_comment as comment, extra "
            "from information_schema.columns where table_schema = ? and table_name = ? "
            "order by ordinal_position",
            [self._database(), self.prefixed(table)],
        )
        columns = []
        for row in rows:
            type_definition = (row["type"] or "").lower()
            extra = (row["extra"] or "").lower()
            columns.append(ColumnInfo(
                name=row["name"],
                type_name=(row["type_name"] or "").lower(),
                type=type_definition,
                nullable=row["nullable"] == "YES",
                default=self._normalize_default(row["default"], row["type_name"], extra),
                auto_increment="auto_increment" in extra,
                unsigned="unsigned" in type_definition,
                comment=row["comment"] or None,
                collation=row["collation"],
            ))
        return columns

    @staticmethod
    def _normalize_default(value: Optional[str], type_name: Optional[str], extra: str) -> Optional[str]:
        """Render a catalog default as a SQL expression.

        MariaDB already quotes string defaults; MySQL reports them raw and
        flags expression defaults with DEFAULT_GENERATED.
        """
        if value is None:
            return None
        if value.upper() == "NULL":
            return None
        if "default_generated" in extra:
            return value
        if re.match(r"^'.*'$", value, re.DOTALL) or re.match(r"^-?\d+(\.\d+)?$", value):
            return value
        if re.match(r"^current_timestamp(\(\d*\))?$", value, re.IGNORECASE):
            return value
        if (type_name or "").lower() in _STRING_TYPES or not re.match(r"^[\w.()]+$", value):
            return "'" + value.replace("'", "''") + "'"
        return value

    def get_indexes(self, table: str) -> List[IndexInfo]:
        rows = self.connection.select(
            "select index_name as name, "
            "group_concat(column_name order by seq_in_index) as columns, "
            "index_type as type, not non_unique as `unique` "
            "from information_schema.statistics where table_schema = ? and table_name = ? "
            "group by index_name, index_type, non_unique",
            [self._database(), self.prefixed(table)],
        )
        return [
            IndexInfo(
                name=row["name"].lower(),
                columns=split_columns(row["columns"]),
                type=(row["type"] or "").lower() or None,
                unique=bool(row["unique"]),
                primary=row["name"].lower() == "primary",
            )
            for row in rows
        ]

    def get_foreign_keys(self, table: str) -> List[ForeignKeyInfo]:
        rows = self.connection.select(
            "select kc.constraint_name as name, "
            "group_concat(kc.column_name order by kc.ordinal_position) as columns, "
            "kc.referenced_table_schema as foreign_schema, "
            "kc.referenced_table_name as foreign_table, "
            "group_concat(kc.referenced_column_name order by kc.ordinal_position) as foreign_columns, "
            "rc.update_rule as on_update, rc.delete_rule as on_delete "
            "from information_schema.key_column_usage kc "
            "join information_schema.referential_constraints rc "
            "on kc.constraint_schema = rc.constraint_schema and kc.constraint_name = rc.constraint_name "
            "where kc.table_schema = ? and kc.table_name = ? and kc.referenced_table_name is not null "
            "group by kc.constraint_name, kc.referenced_table_schema, kc.referenced_table_name, "
            "rc.update_rule, rc.delete_rule",
            [self._database(), self.prefixed(table)],
        )
        return [
            ForeignKeyInfo(
                name=row["name"],
                columns=split_columns(row["columns"]),
                foreign_schema=row["foreign_schema"],
                foreign_table=row["foreign_table"],
                foreign_columns=split_columns(row["foreign_columns"]),
                on_update=(row["on_update"] or "").upper() or None,
                on_delete=(row["on_delete"] or "").upper() or None,
            )
            for row in rows
        ]
