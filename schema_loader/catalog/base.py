"""
Catalog adapters: the contract and the generic Django implementation.

Every adapter returns the same canonical records (see
``schema_loader.domain.models``) for whatever its backend's catalog
reports: identifiers lower-cased and stripped of quoting, foreign keys
grouped per constraint with positionally paired columns.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

from ..constants import CatalogDefaults
from ..domain.models import ColumnInfo, ForeignKeyRef, TableMetadata, UniqueConstraint
from ..exceptions import CatalogUnsupported


logger = logging.getLogger(__name__)


class CatalogAdapter(ABC):
    """
    Metadata-extraction contract implemented once per database vendor.

    Adapters receive an open Django connection; all queries run
    sequentially on it.
    """

    # Backends whose column introspection is known to be unreliable set
    # this to go straight to the zero-row select.
    column_info_broken: bool = False

    def __init__(
        self,
        connection,
        db_schema: Optional[str] = None,
        quote_char: Optional[str] = None,
        name_sep: Optional[str] = None,
    ):
        self.connection = connection
        self.db_schema = db_schema
        self.quote_char = quote_char or self._discover_quote_char()
        self.name_sep = name_sep or CatalogDefaults.NAME_SEPARATOR
        self._catalog_names: Dict[str, str] = {}
        self.setup()

    def setup(self) -> None:
        """Hook for vendor adapters to adjust settings after construction."""

    @property
    def vendor(self) -> str:
        return getattr(self.connection, 'vendor', 'unknown')

    # --- Contract ---

    @abstractmethod
    def list_tables(self) -> List[str]:
        """Return the normalized names of all tables (views excluded)."""

    @abstractmethod
    def columns(self, table: str) -> List[ColumnInfo]:
        """Return the columns of ``table`` in catalog order."""

    @abstractmethod
    def primary_key(self, table: str) -> List[str]:
        """Return the primary key columns of ``table`` in key order."""

    @abstractmethod
    def unique_constraints(self, table: str) -> List[UniqueConstraint]:
        """Return the unique constraints of ``table``."""

    @abstractmethod
    def foreign_keys(self, table: str) -> List[ForeignKeyRef]:
        """Return the foreign keys where ``table`` is the referencing side."""

    def table_metadata(self, table: str) -> TableMetadata:
        """Collect columns, primary key and unique constraints of ``table``."""
        metadata = TableMetadata(
            name=table,
            columns=self.columns(table),
            primary_key=self.primary_key(table),
        )
        for uniq in self.unique_constraints(table):
            metadata.add_unique_constraint(uniq)
        return metadata

    # --- Normalization helpers ---

    def normalize_identifier(self, name: Optional[str]) -> Optional[str]:
        """Strip quoting and any schema prefix from ``name`` and lower-case it."""
        if name is None:
            return None
        name = str(name)
        for char in set(self.quote_char):
            name = name.replace(char, '')
        if self.name_sep and self.name_sep in name:
            name = name.rsplit(self.name_sep, 1)[-1]
        return name.lower()

    def remember_table(self, raw_name: str) -> str:
        """Normalize a catalog table name, keeping the raw form for later queries."""
        normalized = self.normalize_identifier(raw_name)
        self._catalog_names[normalized] = raw_name
        return normalized

    def catalog_name(self, table: str) -> str:
        """The name under which the catalog knows ``table``."""
        return self._catalog_names.get(table, table)

    def quote_name(self, name: str) -> str:
        return self.connection.ops.quote_name(name)

    @staticmethod
    def group_foreign_keys(
        table: str,
        rows: List[Tuple[Any, Optional[str], str, str, Optional[str]]],
    ) -> List[ForeignKeyRef]:
        """
        Group per-column foreign key rows into one record per constraint.

        ``rows`` are ``(group_key, constraint_name, remote_table,
        local_column, remote_column)`` tuples in key order; rows sharing a
        group key belong to the same constraint. Constraints without a
        name receive a synthetic token (``__fk``, ``__fk_2``, ...) in
        first-seen order.
        """
        grouped: Dict[Any, ForeignKeyRef] = {}
        unnamed = 0

        for group_key, name, remote_table, local_col, remote_col in rows:
            fk = grouped.get(group_key)
            if fk is None:
                synthetic = not name
                if synthetic:
                    unnamed += 1
                    name = synthetic_fk_name(unnamed)
                fk = grouped[group_key] = ForeignKeyRef(
                    local_table=table,
                    local_columns=[],
                    remote_table=remote_table,
                    remote_columns=[],
                    name=name,
                    is_synthetic_name=synthetic,
                )
            fk.local_columns.append(local_col)
            if remote_col is not None:
                fk.remote_columns.append(remote_col)

        return list(grouped.values())

    def _discover_quote_char(self) -> str:
        try:
            quoted = self.connection.ops.quote_name('x')
        except Exception as e:
            logger.debug(f"Could not discover quote character: {e}")
            return CatalogDefaults.QUOTE_CHAR
        if isinstance(quoted, str) and len(quoted) >= 3 and quoted[1:-1] == 'x':
            return quoted[0] + quoted[-1] if quoted[0] != quoted[-1] else quoted[0]
        return CatalogDefaults.QUOTE_CHAR


def synthetic_fk_name(ordinal: int) -> str:
    """Internal token for the ``ordinal``-th unnamed foreign key of a table."""
    prefix = CatalogDefaults.SYNTHETIC_FK_PREFIX
    return prefix if ordinal == 1 else f"{prefix}_{ordinal}"


class DjangoCatalog(CatalogAdapter):
    """
    Generic adapter over Django's ``connection.introspection`` API.

    Used for any backend without a dedicated adapter. Vendor adapters
    subclass it and override the methods their catalog can answer better.
    """

    @property
    def introspection(self):
        return self.connection.introspection

    def list_tables(self) -> List[str]:
        with self.connection.cursor() as cursor:
            items = self.introspection.get_table_list(cursor)

        tables = []
        for item in items:
            table_name = getattr(item, 'name', None)
            item_type = getattr(item, 'type', CatalogDefaults.TABLE_TYPE)
            if not table_name:
                continue
            if item_type != CatalogDefaults.TABLE_TYPE:
                logger.debug(f"Skipping item '{table_name}' (type: {item_type}).")
                continue
            tables.append(self.remember_table(table_name))
        return tables

    def columns(self, table: str) -> List[ColumnInfo]:
        if not self.column_info_broken:
            try:
                return self.column_info(table)
            except (NotImplementedError, CatalogUnsupported) as e:
                logger.debug(f"Column introspection unavailable for '{table}': {e}")
            except Exception as e:
                logger.warning(f"Column introspection failed for '{table}': {e}. Probing with a query instead.")
        return self.columns_from_empty_select(table)

    def column_info(self, table: str) -> List[ColumnInfo]:
        """Columns as reported by the backend's catalog."""
        with self.connection.cursor() as cursor:
            description = self.introspection.get_table_description(
                cursor, self.catalog_name(table)
            )

        columns = []
        for desc in description:
            size = getattr(desc, 'internal_size', None) or getattr(desc, 'display_size', None)
            columns.append(ColumnInfo(
                name=self.normalize_identifier(desc.name),
                data_type=self._data_type_name(desc),
                nullable=bool(getattr(desc, 'null_ok', True)),
                size=size if isinstance(size, int) and size > 0 else None,
                default=getattr(desc, 'default', None),
            ))
        return columns

    def columns_from_empty_select(self, table: str) -> List[ColumnInfo]:
        """Read column names and types from an empty result set."""
        query = f"SELECT * FROM {self.quote_name(self.catalog_name(table))} WHERE 1=0"
        try:
            with self.connection.cursor() as cursor:
                cursor.execute(query)
                description = cursor.description or []
        except Exception as e:
            raise CatalogUnsupported(
                f"Could not read columns of '{table}': {e}",
                table=table,
                capability="column_info",
            ) from e

        columns = []
        for desc in description:
            name, type_code = desc[0], desc[1]
            precision = desc[4] if len(desc) > 4 else None
            null_ok = desc[6] if len(desc) > 6 else None
            columns.append(ColumnInfo(
                name=self.normalize_identifier(name),
                data_type=self._type_code_name(type_code),
                nullable=bool(null_ok) if null_ok is not None else True,
                size=precision if isinstance(precision, int) and precision > 0 else None,
            ))
        return columns

    def primary_key(self, table: str) -> List[str]:
        constraints = self._constraints(table)
        for info in constraints.values():
            if info.get('primary_key'):
                return [self.normalize_identifier(col) for col in info.get('columns') or []]
        return []

    def unique_constraints(self, table: str) -> List[UniqueConstraint]:
        uniques = []
        for name, info in sorted(self._constraints(table).items()):
            if info.get('unique') and not info.get('primary_key') and info.get('columns'):
                uniques.append(UniqueConstraint(
                    name=self.normalize_identifier(name),
                    columns=tuple(self.normalize_identifier(col) for col in info['columns']),
                ))
        return uniques

    def foreign_keys(self, table: str) -> List[ForeignKeyRef]:
        rows = []
        for name, info in self._constraints(table).items():
            target = info.get('foreign_key')
            if not target:
                continue
            remote_table, remote_col = target
            local_cols = info.get('columns') or []
            # Django only reports the first referenced column; multi-column
            # keys fall back to the remote primary key.
            for local_col in local_cols:
                rows.append((
                    name,
                    self.normalize_identifier(name),
                    self.normalize_identifier(remote_table),
                    self.normalize_identifier(local_col),
                    self.normalize_identifier(remote_col) if len(local_cols) == 1 else None,
                ))
        return self.group_foreign_keys(table, rows)

    def _constraints(self, table: str) -> Dict[str, Dict[str, Any]]:
        try:
            with self.connection.cursor() as cursor:
                return self.introspection.get_constraints(cursor, self.catalog_name(table))
        except NotImplementedError:
            logger.debug(f"Backend {self.vendor} does not support get_constraints.")
            return {}

    def _data_type_name(self, desc) -> Optional[str]:
        type_code = desc.type_code
        if isinstance(type_code, str):
            return type_code.lower()
        try:
            return self.introspection.get_field_type(type_code, desc)
        except KeyError:
            return self._type_code_name(type_code)

    def _type_code_name(self, type_code) -> Optional[str]:
        if type_code is None:
            return None
        if isinstance(type_code, str):
            return type_code.lower()
        data_types = getattr(self.introspection, 'data_types_reverse', {})
        try:
            return data_types.get(type_code, str(type_code))
        except TypeError:
            return str(type_code)
