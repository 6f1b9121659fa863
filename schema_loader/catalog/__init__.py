"""
Catalog adapters, one per database vendor.

Adapters are picked from :data:`ADAPTERS` by the Django connection's
``vendor``; vendors without an entry use the generic :class:`DjangoCatalog`.
"""

import logging
from typing import Dict, Optional, Type

from ..constants import Vendors
from .base import CatalogAdapter, DjangoCatalog, synthetic_fk_name
from .mysql import MySQLCatalog
from .postgresql import PostgreSQLCatalog
from .sqlite import SQLiteCatalog


logger = logging.getLogger(__name__)


ADAPTERS: Dict[str, Type[CatalogAdapter]] = {
    Vendors.POSTGRESQL: PostgreSQLCatalog,
    Vendors.MYSQL: MySQLCatalog,
    Vendors.SQLITE: SQLiteCatalog,
}


def get_catalog_adapter(connection, db_schema: Optional[str] = None, **kwargs) -> CatalogAdapter:
    """Construct the catalog adapter for ``connection``'s vendor."""
    vendor = getattr(connection, 'vendor', None)
    adapter_class = ADAPTERS.get(vendor, DjangoCatalog)
    logger.debug(f"Using {adapter_class.__name__} for vendor '{vendor}'")
    return adapter_class(connection, db_schema=db_schema, **kwargs)


__all__ = [
    'ADAPTERS',
    'CatalogAdapter',
    'DjangoCatalog',
    'MySQLCatalog',
    'PostgreSQLCatalog',
    'SQLiteCatalog',
    'get_catalog_adapter',
    'synthetic_fk_name',
]
