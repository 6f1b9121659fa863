"""
MySQL catalog adapter.

Column types come from ``information_schema.columns.column_type`` so that
``enum``/``set`` value lists and the ``unsigned`` flag survive
normalization.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from ..domain.models import ColumnInfo, ForeignKeyRef, UniqueConstraint
from .base import DjangoCatalog


logger = logging.getLogger(__name__)

# An unset db_schema means the connection's current database
_SCHEMA = "COALESCE(%s, DATABASE())"

TABLES_SQL = f"""
    SELECT table_name
    FROM information_schema.tables
    WHERE table_schema = {_SCHEMA} AND table_type = 'BASE TABLE'
    ORDER BY table_name
"""

COLUMNS_SQL = f"""
    SELECT column_name, data_type, column_type, is_nullable,
           character_maximum_length, column_default
    FROM information_schema.columns
    WHERE table_schema = {_SCHEMA} AND table_name = %s
    ORDER BY ordinal_position
"""

KEY_CONSTRAINTS_SQL = f"""
    SELECT tc.constraint_name, tc.constraint_type, kcu.column_name
    FROM information_schema.table_constraints tc
    JOIN information_schema.key_column_usage kcu
      ON kcu.constraint_schema = tc.constraint_schema
     AND kcu.constraint_name = tc.constraint_name
     AND kcu.table_name = tc.table_name
    WHERE tc.table_schema = {_SCHEMA} AND tc.table_name = %s
      AND tc.constraint_type IN ('PRIMARY KEY', 'UNIQUE')
    ORDER BY tc.constraint_name, kcu.ordinal_position
"""

FOREIGN_KEYS_SQL = f"""
    SELECT constraint_name, referenced_table_name, column_name, referenced_column_name
    FROM information_schema.key_column_usage
    WHERE table_schema = {_SCHEMA} AND table_name = %s
      AND referenced_table_name IS NOT NULL
    ORDER BY constraint_name, ordinal_position
"""

_LIST_TYPE = re.compile(r"^\s*(enum|set)\s*\((.*)\)\s*$", re.IGNORECASE | re.DOTALL)
_QUOTED_VALUE = re.compile(r"'((?:[^']|'')*)'")


def parse_column_type(column_type: Optional[str]) -> Dict[str, Any]:
    """
    Extract backend extras from a MySQL ``column_type`` string.

    Example:
        >>> parse_column_type("enum('foo','bar','baz')")
        {'list': ['foo', 'bar', 'baz']}
        >>> parse_column_type("int(10) unsigned")
        {'unsigned': True}
    """
    extra: Dict[str, Any] = {}
    if not column_type:
        return extra

    match = _LIST_TYPE.match(column_type)
    if match:
        extra['list'] = [value.replace("''", "'") for value in _QUOTED_VALUE.findall(match.group(2))]
    elif re.search(r"\bunsigned\b", column_type, re.IGNORECASE):
        extra['unsigned'] = True
    return extra


class MySQLCatalog(DjangoCatalog):
    """Catalog adapter for MySQL and MariaDB."""

    def _fetch(self, sql: str, *params) -> list:
        with self.connection.cursor() as cursor:
            cursor.execute(sql, [self.db_schema, *params])
            return list(cursor.fetchall())

    def list_tables(self) -> List[str]:
        return [self.remember_table(name) for (name,) in self._fetch(TABLES_SQL)]

    def column_info(self, table: str) -> List[ColumnInfo]:
        columns = []
        for name, data_type, column_type, is_nullable, max_length, default in self._fetch(
            COLUMNS_SQL, self.catalog_name(table)
        ):
            columns.append(ColumnInfo(
                name=self.normalize_identifier(name),
                data_type=data_type.lower() if data_type else None,
                nullable=is_nullable == 'YES',
                size=max_length,
                default=default,
                extra=parse_column_type(column_type),
            ))
        return columns

    def _key_constraints(self, table: str, constraint_type: str) -> dict:
        keys: dict = {}
        for name, kind, column in self._fetch(KEY_CONSTRAINTS_SQL, self.catalog_name(table)):
            if kind == constraint_type:
                keys.setdefault(name, []).append(self.normalize_identifier(column))
        return keys

    def primary_key(self, table: str) -> List[str]:
        keys = self._key_constraints(table, 'PRIMARY KEY')
        return next(iter(keys.values()), [])

    def unique_constraints(self, table: str) -> List[UniqueConstraint]:
        return [
            UniqueConstraint(name=self.normalize_identifier(name), columns=tuple(columns))
            for name, columns in self._key_constraints(table, 'UNIQUE').items()
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
            in self._fetch(FOREIGN_KEYS_SQL, self.catalog_name(table))
        ]
        return self.group_foreign_keys(table, rows)
