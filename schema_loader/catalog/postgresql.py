"""
PostgreSQL catalog adapter.

Reads ``information_schema`` for tables and columns and ``pg_catalog``
for keys, so that multi-column foreign keys keep their column pairing and
enum types report their labels.
"""

import logging
from typing import List

from ..constants import CatalogDefaults
from ..domain.models import ColumnInfo, ForeignKeyRef, UniqueConstraint
from .base import DjangoCatalog


logger = logging.getLogger(__name__)


TABLES_SQL = """
    SELECT table_name
    FROM information_schema.tables
    WHERE table_schema = %s AND table_type = 'BASE TABLE'
    ORDER BY table_name
"""

COLUMNS_SQL = """
    SELECT column_name, data_type, udt_name, is_nullable,
           character_maximum_length, column_default
    FROM information_schema.columns
    WHERE table_schema = %s AND table_name = %s
    ORDER BY ordinal_position
"""

ENUM_LABELS_SQL = """
    SELECT e.enumlabel
    FROM pg_catalog.pg_enum e
    JOIN pg_catalog.pg_type t ON t.oid = e.enumtypid
    WHERE t.typname = %s
    ORDER BY e.enumsortorder
"""

KEY_CONSTRAINTS_SQL = """
    SELECT con.conname, con.contype, a.attname
    FROM pg_catalog.pg_constraint con
    JOIN pg_catalog.pg_class rel ON rel.oid = con.conrelid
    JOIN pg_catalog.pg_namespace nsp ON nsp.oid = rel.relnamespace
    CROSS JOIN LATERAL unnest(con.conkey) WITH ORDINALITY AS k(attnum, ord)
    JOIN pg_catalog.pg_attribute a ON a.attrelid = con.conrelid AND a.attnum = k.attnum
    WHERE nsp.nspname = %s AND rel.relname = %s AND con.contype IN ('p', 'u')
    ORDER BY con.conname, k.ord
"""

FOREIGN_KEYS_SQL = """
    SELECT con.conname, frel.relname, la.attname, ra.attname
    FROM pg_catalog.pg_constraint con
    JOIN pg_catalog.pg_class rel ON rel.oid = con.conrelid
    JOIN pg_catalog.pg_namespace nsp ON nsp.oid = rel.relnamespace
    JOIN pg_catalog.pg_class frel ON frel.oid = con.confrelid
    CROSS JOIN LATERAL unnest(con.conkey, con.confkey)
        WITH ORDINALITY AS k(local_attnum, remote_attnum, ord)
    JOIN pg_catalog.pg_attribute la ON la.attrelid = con.conrelid AND la.attnum = k.local_attnum
    JOIN pg_catalog.pg_attribute ra ON ra.attrelid = con.confrelid AND ra.attnum = k.remote_attnum
    WHERE con.contype = 'f' AND nsp.nspname = %s AND rel.relname = %s
    ORDER BY con.conname, k.ord
"""


class PostgreSQLCatalog(DjangoCatalog):
    """Catalog adapter for PostgreSQL."""

    def setup(self) -> None:
        self.db_schema = self.db_schema or CatalogDefaults.POSTGRESQL_SCHEMA

    def _fetch(self, sql: str, params) -> list:
        with self.connection.cursor() as cursor:
            cursor.execute(sql, params)
            return list(cursor.fetchall())

    def list_tables(self) -> List[str]:
        return [self.remember_table(name) for (name,) in self._fetch(TABLES_SQL, [self.db_schema])]

    def column_info(self, table: str) -> List[ColumnInfo]:
        rows = self._fetch(COLUMNS_SQL, [self.db_schema, self.catalog_name(table)])
        columns = []
        for name, data_type, udt_name, is_nullable, max_length, default in rows:
            column = ColumnInfo(
                name=self.normalize_identifier(name),
                data_type=data_type.lower() if data_type else None,
                nullable=is_nullable == 'YES',
                size=max_length,
                default=default,
            )
            if data_type == 'USER-DEFINED':
                labels = [label for (label,) in self._fetch(ENUM_LABELS_SQL, [udt_name])]
                if labels:
                    column.data_type = 'enum'
                    column.extra['list'] = labels
                    column.extra['custom_type_name'] = udt_name
                else:
                    column.data_type = udt_name
            columns.append(column)
        return columns

    def _key_constraints(self, table: str, contype: str) -> dict:
        keys: dict = {}
        for name, kind, column in self._fetch(KEY_CONSTRAINTS_SQL, [self.db_schema, self.catalog_name(table)]):
            if kind == contype:
                keys.setdefault(name, []).append(self.normalize_identifier(column))
        return keys

    def primary_key(self, table: str) -> List[str]:
        keys = self._key_constraints(table, 'p')
        return next(iter(keys.values()), [])

    def unique_constraints(self, table: str) -> List[UniqueConstraint]:
        return [
            UniqueConstraint(name=self.normalize_identifier(name), columns=tuple(columns))
            for name, columns in self._key_constraints(table, 'u').items()
        ]

    def foreign_keys(self, table: str) -> List[ForeignKeyRef]:
        rows = [
            (
                name,
                self.normalize_identifier(name),
                self.normalize_identifier(remote_table),
                self.normalize_identifier(local_col),
                self.normalize_identifier(remote_col),
            )
            for name, remote_table, local_col, remote_col
            in self._fetch(FOREIGN_KEYS_SQL, [self.db_schema, self.catalog_name(table)])
        ]
        return self.group_foreign_keys(table, rows)
