"""
SQLite catalog adapter.

SQLite exposes its catalog through PRAGMA statements. Foreign keys are
never named there, and a foreign key may omit its referenced columns, in
which case it references the parent table's primary key.
"""

import logging
import re
from typing import List, Optional, Tuple

from ..domain.models import ColumnInfo, ForeignKeyRef, UniqueConstraint
from .base import DjangoCatalog


logger = logging.getLogger(__name__)

_DECLARED_TYPE = re.compile(r"^\s*([^(]*?)\s*(?:\(\s*(\d+)\s*(?:,\s*\d+\s*)?\))?\s*$")


def split_declared_type(declared: Optional[str]) -> Tuple[Optional[str], Optional[int]]:
    """
    Split a declared column type into its name and size.

    Example:
        >>> split_declared_type("VARCHAR(100)")
        ('varchar', 100)
        >>> split_declared_type("integer")
        ('integer', None)
    """
    if not declared:
        return None, None
    match = _DECLARED_TYPE.match(declared)
    if not match:
        return declared.lower(), None
    name, size = match.groups()
    return name.lower() or None, int(size) if size else None


class SQLiteCatalog(DjangoCatalog):
    """Catalog adapter for SQLite."""

    def _pragma(self, pragma: str, name: str) -> list:
        with self.connection.cursor() as cursor:
            cursor.execute(f"PRAGMA {pragma}({self.quote_name(name)})")
            return list(cursor.fetchall())

    def column_info(self, table: str) -> List[ColumnInfo]:
        columns = []
        # (cid, name, type, notnull, dflt_value, pk)
        for _cid, name, declared, notnull, default, _pk in self._pragma('table_info', self.catalog_name(table)):
            data_type, size = split_declared_type(declared)
            columns.append(ColumnInfo(
                name=self.normalize_identifier(name),
                data_type=data_type,
                nullable=not notnull,
                size=size,
                default=default,
            ))
        return columns

    def primary_key(self, table: str) -> List[str]:
        rows = self._pragma('table_info', self.catalog_name(table))
        # pk holds the 1-based position within the primary key, 0 otherwise
        keyed = sorted((row[5], row[1]) for row in rows if row[5])
        return [self.normalize_identifier(name) for _pos, name in keyed]

    def unique_constraints(self, table: str) -> List[UniqueConstraint]:
        uniques: List[UniqueConstraint] = []
        seen_columns = set()

        # (seq, name, unique, origin, partial); origin 'pk' is the primary key
        for row in self._pragma('index_list', self.catalog_name(table)):
            index_name, unique = row[1], row[2]
            origin = row[3] if len(row) > 3 else None
            if not unique or origin == 'pk':
                continue

            info = sorted(self._pragma('index_info', index_name))
            columns = tuple(self.normalize_identifier(name) for _seqno, _cid, name in info if name)
            if not columns or columns in seen_columns:
                continue
            seen_columns.add(columns)

            name = self.normalize_identifier(index_name)
            # Inline UNIQUE constraints get generated index names
            if name.startswith('sqlite_autoindex_'):
                name = f"{table}_{'_'.join(columns)}"
            uniques.append(UniqueConstraint(name=name, columns=columns))

        return sorted(uniques, key=lambda uniq: uniq.name)

    def foreign_keys(self, table: str) -> List[ForeignKeyRef]:
        rows = []
        # (id, seq, table, from, to, on_update, on_delete, match)
        fk_rows = sorted(
            self._pragma('foreign_key_list', self.catalog_name(table)),
            key=lambda row: (row[0], row[1]),
        )
        for fk_id, _seq, remote_table, local_col, remote_col, *_rest in fk_rows:
            rows.append((
                fk_id,
                None,
                self.normalize_identifier(remote_table),
                self.normalize_identifier(local_col),
                self.normalize_identifier(remote_col),
            ))
        return self.group_foreign_keys(table, rows)
