"""SQL Server schema introspector."""

import logging
from typing import List, Optional

from .base import SchemaIntrospector, split_columns
from .models import ColumnInfo, ForeignKeyInfo, IndexInfo, TableInfo, ViewInfo

logger = logging.getLogger(__name__)

_SIZED_TYPES = {"char", "varchar", "nchar", "nvarchar", "binary", "varbinary"}


class SqlServerIntrospector(SchemaIntrospector):
    """Reads the schema from the ``sys`` catalog views."""

    @property
    def schema(self) -> str:
        return self.connection.schema or "dbo"

    def get_tables(self) -> List[TableInfo]:
        rows = self.connection.select(
            "select t.name as name, schema_name(t.schema_id) as [schema], "
            "sum(u.total_pages) * 8 * 1024 as size, "
            "cast(ep.value as nvarchar(max)) as comment "
            "from sys.tables t "
            "join sys.partitions p on p.object_id = t.object_id "
            "join sys.allocation_units u on u.container_id = p.hobt_id "
            "left join sys.extended_properties ep on ep.major_id = t.object_id "
            "and ep.minor_id = 0 and ep.name = 'MS_Description' "
            "where t.is_ms_shipped = 0 and t.name <> 'sysdiagrams' and schema_name(t.schema_id) = ? "
            "group by t.name, t.schema_id, cast(ep.value as nvarchar(max)) "
            "order by t.name",
            [self.schema],
        )
        return [
            TableInfo(
                name=row["name"],
                schema=row["schema"],
                size=int(row["size"]) if row["size"] is not None else None,
                comment=row["comment"],
            )
            for row in rows
        ]

    def get_views(self) -> List[ViewInfo]:
        rows = self.connection.select(
            "select v.name as name, schema_name(v.schema_id) as [schema], m.definition as definition "
            "from sys.views v join sys.sql_modules m on m.object_id = v.object_id "
            "where schema_name(v.schema_id) = ? order by v.name",
            [self.schema],
        )
        return [
            ViewInfo(name=row["name"], schema=row["schema"], definition=row["definition"])
            for row in rows
        ]

    def get_columns(self, table: str) -> List[ColumnInfo]:
        rows = self.connection.select(
            "select col.name as name, type.name as type_name, col.max_length as length, "
            "col.precision as precision, col.scale as scale, col.is_nullable as nullable, "
            "def.definition as [default], col.is_identity as autoincrement, "
            "col.collation_name as collation, cast(prop.value as nvarchar(max)) as comment "
            "from sys.columns as col "
            "join sys.types as type on col.user_type_id = type.user_type_id "
            "join sys.objects as obj on col.object_id = obj.object_id "
            "join sys.schemas as scm on obj.schema_id = scm.schema_id "
            "left join sys.default_constraints def on col.default_object_id = def.object_id "
            "and col.object_id = def.parent_object_id "
            "left join sys.extended_properties as prop on obj.object_id = prop.major_id "
            "and col.column_id = prop.minor_id and prop.name = 'MS_Description' "
            "where obj.type in ('U', 'V') and obj.name = ? and scm.name = ? "
            "order by col.column_id",
            [self.prefixed(table), self.schema],
        )
        return [
            ColumnInfo(
                name=row["name"],
                type_name=row["type_name"].lower(),
                type=self._format_type(row["type_name"].lower(), row["length"], row["precision"], row["scale"]),
                nullable=bool(row["nullable"]),
                default=self._strip_parentheses(row["default"]),
                auto_increment=bool(row["autoincrement"]),
                comment=row["comment"],
                collation=row["collation"],
            )
            for row in rows
        ]

    @staticmethod
    def _format_type(type_name: str, length: int, precision: int, scale: int) -> str:
        if type_name in _SIZED_TYPES:
            if length == -1:
                return f"{type_name}(max)"
            # max_length counts bytes; national types use two per character
            size = length // 2 if type_name.startswith("n") else length
            return f"{type_name}({size})"
        if type_name in ("decimal", "numeric"):
            return f"{type_name}({precision},{scale})"
        if type_name in ("datetime2", "time", "datetimeoffset") and scale:
            return f"{type_name}({scale})"
        return type_name

    @staticmethod
    def _strip_parentheses(default: Optional[str]) -> Optional[str]:
        """SQL Server stores defaults wrapped in parentheses: ``((0))``."""
        if default is None:
            return None
        while default.startswith("(") and default.endswith(")"):
            default = default[1:-1]
        return default

    def get_indexes(self, table: str) -> List[IndexInfo]:
        rows = self.connection.select(
            "select idx.name as name, "
            "string_agg(col.name, ',') within group (order by idxcol.key_ordinal) as columns, "
            "idx.type_desc as [type], idx.is_unique as [unique], idx.is_primary_key as [primary] "
            "from sys.indexes as idx "
            "join sys.tables as tbl on idx.object_id = tbl.object_id "
            "join sys.schemas as scm on tbl.schema_id = scm.schema_id "
            "join sys.index_columns as idxcol on idx.object_id = idxcol.object_id "
            "and idx.index_id = idxcol.index_id "
            "join sys.columns as col on idxcol.object_id = col.object_id "
            "and idxcol.column_id = col.column_id "
            "where tbl.name = ? and scm.name = ? "
            "group by idx.name, idx.type_desc, idx.is_unique, idx.is_primary_key",
            [self.prefixed(table), self.schema],
        )
        return [
            IndexInfo(
                name=row["name"].lower(),
                columns=split_columns(row["columns"]),
                type=row["type"].lower(),
                unique=bool(row["unique"]),
                primary=bool(row["primary"]),
            )
            for row in rows
        ]

    def get_foreign_keys(self, table: str) -> List[ForeignKeyInfo]:
        rows = self.connection.select(
            "select fk.name as name, "
            "string_agg(lc.name, ',') within group (order by fkc.constraint_column_id) as columns, "
            "fs.name as foreign_schema, ft.name as foreign_table, "
            "string_agg(fc.name, ',') within group (order by fkc.constraint_column_id) as foreign_columns, "
            "fk.update_referential_action_desc as on_update, "
            "fk.delete_referential_action_desc as on_delete "
            "from sys.foreign_keys as fk "
            "join sys.foreign_key_columns as fkc on fkc.constraint_object_id = fk.object_id "
            "join sys.tables as lt on lt.object_id = fk.parent_object_id "
            "join sys.schemas as ls on lt.schema_id = ls.schema_id "
            "join sys.columns as lc on fkc.parent_object_id = lc.object_id "
            "and fkc.parent_column_id = lc.column_id "
            "join sys.tables as ft on ft.object_id = fk.referenced_object_id "
            "join sys.schemas as fs on ft.schema_id = fs.schema_id "
            "join sys.columns as fc on fkc.referenced_object_id = fc.object_id "
            "and fkc.referenced_column_id = fc.column_id "
            "where lt.name = ? and ls.name = ? "
            "group by fk.name, fs.name, ft.name, "
            "fk.update_referential_action_desc, fk.delete_referential_action_desc",
            [self.prefixed(table), self.schema],
        )
        return [
            ForeignKeyInfo(
                name=row["name"],
                columns=split_columns(row["columns"]),
                foreign_schema=row["foreign_schema"],
                foreign_table=row["foreign_table"],
                foreign_columns=split_columns(row["foreign_columns"]),
                on_update=row["on_update"].replace("_", " ") if row["on_update"] else None,
                on_delete=row["on_delete"].replace("_", " ") if row["on_delete"] else None,
            )
            for row in rows
        ]
