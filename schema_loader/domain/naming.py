"""
Naming convention utilities for schema_loader.

This module maps database table names to class monikers and derives
relationship accessor stems from column names.
"""

import re
from typing import Callable, Dict, Optional, Union


MonikerMap = Union[Dict[str, str], Callable[[str], Optional[str]], None]

_FRAGMENT_SEPARATOR = re.compile(r"[\W_]+")


def default_moniker(table_name: str) -> str:
    """
    Derive a class-name-like moniker from a table name.

    The name is lower-cased, split on runs of non-word characters or
    underscores and each fragment is capitalized.

    Example:
        >>> default_moniker("mysql_loader_test1")
        'MysqlLoaderTest1'
        >>> default_moniker("Order-Items")
        'OrderItems'
    """
    if not isinstance(table_name, str):
        raise TypeError(f"Expected string, got {type(table_name).__name__}")

    fragments = _FRAGMENT_SEPARATOR.split(table_name.lower())
    return "".join(fragment[:1].upper() + fragment[1:] for fragment in fragments if fragment)


def table_to_moniker(table_name: str, moniker_map: MonikerMap = None) -> str:
    """
    Map a table name to its moniker.

    An explicit ``moniker_map`` (mapping or function) is used verbatim when
    it resolves to a non-empty value for the table; otherwise the default
    derivation applies.
    """
    moniker = None
    if isinstance(moniker_map, dict):
        moniker = moniker_map.get(table_name)
    elif callable(moniker_map):
        moniker = moniker_map(table_name)

    return moniker or default_moniker(table_name)


def relationship_name_from_column(column_name: str) -> str:
    """
    Generate a relationship stem from a foreign key column name.

    Args:
        column_name: Database column name (e.g., 'author_id')

    Returns:
        Relationship stem (e.g., 'author')
    """
    # Remove common suffixes like '_id'
    if column_name.endswith('_id') and len(column_name) > 3:
        return column_name[:-3]
    return column_name
