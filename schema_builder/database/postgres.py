"""PostgreSQL schema introspector."""

import logging
import re
from typing import List, Optional

from .base import SchemaIntrospector, split_columns
from .models import ColumnInfo, ForeignKeyInfo, IndexInfo, TableInfo, ViewInfo

logger = logging.getLogger(__name__)

_ACTIONS = {
    "a": "NO ACTION",
    "r": "RESTRICT",
    "c": "CASCADE",
    "n": "SET NULL",
    "d": "SET DEFAULT",
}

# to_tsvector('english'::regconfig, (title)::text) in pg_get_indexdef output
_TSVECTOR_COLUMN = re.compile(
    r"to_tsvector\('[^']*'(?:::regconfig)?,\s*\(?(\"(?:[^\"]|\"\")*\"|\w+)\)?(?:::[\w ]+)?\)"
)


def tsvector_columns(definition: Optional[str]) -> List[str]:
    """Columns of a fulltext index, which PostgreSQL stores as expressions."""
    if not definition:
        return []
    columns = []
    for name in _TSVECTOR_COLUMN.findall(definition):
        if name.startswith('"'):
            name = name[1:-1].replace('""', '"')
        columns.append(name)
    return columns


class PostgresIntrospector(SchemaIntrospector):
    """Reads the schema from ``pg_catalog`` for the configured schema."""

    @property
    def schema(self) -> str:
        return self.connection.schema or "public"

    def get_tables(self) -> List[TableInfo]:
        rows = self.connection.select(
            "select c.relname as name, n.nspname as schema, "
            "pg_total_relation_size(c.oid) as size, "
            "obj_description(c.oid, 'pg_class') as comment "
            "from pg_class c join pg_namespace n on n.oid = c.relnamespace "
            "where c.relkind in ('r', 'p') and n.nspname = ? "
            "order by c.relname",
            [self.schema],
        )
        return [
            TableInfo(name=row["name"], schema=row["schema"], size=row["size"], comment=row["comment"])
            for row in rows
        ]

    def get_views(self) -> List[ViewInfo]:
        rows = self.connection.select(
            "select viewname as name, schemaname as schema, definition "
            "from pg_views where schemaname = ? order by viewname",
            [self.schema],
        )
        return [
            ViewInfo(name=row["name"], schema=row["schema"], definition=row["definition"])
            for row in rows
        ]

    def get_columns(self, table: str) -> List[ColumnInfo]:
        rows = self.connection.select(
            "select a.attname as name, t.typname as type_name, "
            "format_type(a.atttypid, a.atttypmod) as type, "
            "(select tc.collcollate from pg_catalog.pg_collation tc where tc.oid = a.attcollation) as collation, "
            "not a.attnotnull as nullable, "
            "(select pg_get_expr(adbin, adrelid) from pg_attrdef where c.oid = pg_attrdef.adrelid "
            "and pg_attrdef.adnum = a.attnum) as \"default\", "
            "col_description(c.oid, a.attnum) as comment "
            "from pg_attribute a, pg_class c, pg_type t, pg_namespace n "
            "where c.relname = ? and n.nspname = ? and a.attnum > 0 and a.attrelid = c.oid "
            "and a.atttypid = t.oid and n.oid = c.relnamespace and not a.attisdropped "
            "order by a.attnum",
            [self.prefixed(table), self.schema],
        )
        columns = []
        for row in rows:
            default = row["default"]
            auto_increment = default is not None and default.startswith("nextval(")
            columns.append(ColumnInfo(
                name=row["name"],
                type_name=(row["type_name"] or "").lower(),
                type=(row["type"] or "").lower(),
                nullable=bool(row["nullable"]),
                default=None if auto_increment else default,
                auto_increment=auto_increment,
                comment=row["comment"],
                collation=row["collation"],
            ))
        return columns

    def get_indexes(self, table: str) -> List[IndexInfo]:
        rows = self.connection.select(
            "select ic.relname as name, string_agg(a.attname, ',' order by indseq.ord) as columns, "
            "am.amname as type, i.indisunique as \"unique\", i.indisprimary as \"primary\", "
            "pg_get_indexdef(i.indexrelid) as definition "
            "from pg_index i "
            "join pg_class tc on tc.oid = i.indrelid "
            "join pg_namespace tn on tn.oid = tc.relnamespace "
            "join pg_class ic on ic.oid = i.indexrelid "
            "join pg_am am on am.oid = ic.relam "
            "join lateral unnest(i.indkey) with ordinality as indseq(num, ord) on true "
            "left join pg_attribute a on a.attrelid = i.indrelid and a.attnum = indseq.num "
            "where tc.relname = ? and tn.nspname = ? "
            "group by i.indexrelid, ic.relname, am.amname, i.indisunique, i.indisprimary",
            [self.prefixed(table), self.schema],
        )
        return [
            IndexInfo(
                name=row["name"].lower(),
                columns=split_columns(row["columns"]) or tsvector_columns(row["definition"]),
                type=row["type"],
                unique=bool(row["unique"]),
                primary=bool(row["primary"]),
            )
            for row in rows
        ]

    def get_foreign_keys(self, table: str) -> List[ForeignKeyInfo]:
        rows = self.connection.select(
            "select c.conname as name, "
            "string_agg(la.attname, ',' order by conseq.ord) as columns, "
            "fn.nspname as foreign_schema, fc.relname as foreign_table, "
            "string_agg(fa.attname, ',' order by conseq.ord) as foreign_columns, "
            "c.confupdtype as on_update, c.confdeltype as on_delete "
            "from pg_constraint c "
            "join pg_class tc on c.conrelid = tc.oid "
            "join pg_namespace tn on tn.oid = tc.relnamespace "
            "join pg_class fc on c.confrelid = fc.oid "
            "join pg_namespace fn on fn.oid = fc.relnamespace "
            "join lateral unnest(c.conkey) with ordinality as conseq(num, ord) on true "
            "join pg_attribute la on la.attrelid = c.conrelid and la.attnum = conseq.num "
            "join pg_attribute fa on fa.attrelid = c.confrelid and fa.attnum = c.confkey[conseq.ord] "
            "where c.contype = 'f' and tc.relname = ? and tn.nspname = ? "
            "group by c.conname, fn.nspname, fc.relname, c.confupdtype, c.confdeltype",
            [self.prefixed(table), self.schema],
        )
        return [
            ForeignKeyInfo(
                name=row["name"],
                columns=split_columns(row["columns"]),
                foreign_schema=row["foreign_schema"],
                foreign_table=row["foreign_table"],
                foreign_columns=split_columns(row["foreign_columns"]),
                on_update=_ACTIONS.get(row["on_update"]),
                on_delete=_ACTIONS.get(row["on_delete"]),
            )
            for row in rows
        ]
