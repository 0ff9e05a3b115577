"""SQLite schema introspector."""

import logging
import re
from typing import Dict, List

from .base import SchemaIntrospector
from .models import ColumnInfo, ForeignKeyInfo, IndexInfo, TableInfo, TableState, ViewInfo

logger = logging.getLogger(__name__)


class SQLiteIntrospector(SchemaIntrospector):
    """Reads the schema from ``sqlite_master`` and the table pragmas.

    SQLite keeps no table comments or sizes, so those fields are None.
    """

    def get_tables(self) -> List[TableInfo]:
        rows = self.connection.select(
            "select name from sqlite_master "
            "where type = 'table' and name not like 'sqlite_%' order by name"
        )
        return [TableInfo(name=row["name"], schema="main") for row in rows]

    def get_views(self) -> List[ViewInfo]:
        rows = self.connection.select(
            "select name, sql from sqlite_master where type = 'view' order by name"
        )
        return [ViewInfo(name=row["name"], schema="main", definition=row["sql"]) for row in rows]

    def _table_sql(self, table: str) -> str:
        rows = self.connection.select(
            "select sql from sqlite_master where type = 'table' and name = ?",
            [table],
        )
        return (rows[0]["sql"] or "") if rows else ""

    def get_columns(self, table: str) -> List[ColumnInfo]:
        table = self.prefixed(table)
        rows = self.connection.select(
            "select name, type, \"notnull\", dflt_value, pk, hidden "
            "from pragma_table_xinfo(?) order by cid",
            [table],
        )
        # Hidden virtual table columns
        rows = [row for row in rows if row["hidden"] != 1]
        primary = [row for row in rows if row["pk"]]
        has_autoincrement = re.search(r"\bautoincrement\b", self._table_sql(table), re.IGNORECASE) is not None

        columns = []
        for row in rows:
            type_definition = (row["type"] or "").lower()
            type_name = self.type_name_of(type_definition)
            columns.append(ColumnInfo(
                name=row["name"],
                type_name=type_name,
                type=type_definition,
                nullable=not row["notnull"],
                default=row["dflt_value"],
                auto_increment=(
                    bool(row["pk"])
                    and len(primary) == 1
                    and type_name == "integer"
                    and has_autoincrement
                ),
            ))
        return columns

    def get_indexes(self, table: str) -> List[IndexInfo]:
        table = self.prefixed(table)
        index_rows = self.connection.select(
            "select name, \"unique\", origin from pragma_index_list(?) order by seq",
            [table],
        )

        indexes = []
        has_primary_index = False
        for row in index_rows:
            columns = [
                info["name"]
                for info in self.connection.select(
                    "select name from pragma_index_info(?) order by seqno", [row["name"]]
                )
            ]
            primary = row["origin"] == "pk"
            has_primary_index = has_primary_index or primary
            indexes.append(IndexInfo(
                name=row["name"].lower(),
                columns=columns,
                unique=bool(row["unique"]),
                primary=primary,
            ))

        if not has_primary_index:
            key = self.connection.select(
                "select name from pragma_table_info(?) where pk > 0 order by pk",
                [table],
            )
            if key:
                indexes.insert(0, IndexInfo(
                    name="primary",
                    columns=[row["name"] for row in key],
                    unique=True,
                    primary=True,
                ))
        return indexes

    def get_foreign_keys(self, table: str) -> List[ForeignKeyInfo]:
        rows = self.connection.select(
            "select id, \"table\", \"from\", \"to\", on_update, on_delete "
            "from pragma_foreign_key_list(?) order by id, seq",
            [self.prefixed(table)],
        )
        grouped: Dict[int, List[dict]] = {}
        for row in rows:
            grouped.setdefault(row["id"], []).append(row)

        foreign_keys = []
        for parts in grouped.values():
            first = parts[0]
            foreign_keys.append(ForeignKeyInfo(
                name=None,
                columns=[part["from"] for part in parts],
                foreign_table=first["table"],
                foreign_columns=[part["to"] for part in parts],
                on_update=(first["on_update"] or "").upper() or None,
                on_delete=(first["on_delete"] or "").upper() or None,
            ))
        return foreign_keys

    def describe(self, table: str) -> TableState:
        state = super().describe(table)
        state.sql = self._table_sql(state.name) or None
        return state
