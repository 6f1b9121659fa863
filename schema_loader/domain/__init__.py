"""
Domain module for schema_loader.

This module contains the catalog-independent records and the naming and
relationship inference logic built on top of them.
"""

from .models import (
    ColumnInfo,
    UniqueConstraint,
    TableMetadata,
    ForeignKeyRef,
    RelationshipKind,
    RelationshipBinding,
    RelationshipPair,
    ClassDefinition,
)

from .relationships import RelationshipBuilder

from .naming import (
    default_moniker,
    table_to_moniker,
    relationship_name_from_column,
)

__all__ = [
    # Core models
    'ColumnInfo',
    'UniqueConstraint',
    'TableMetadata',
    'ForeignKeyRef',
    'RelationshipKind',
    'RelationshipBinding',
    'RelationshipPair',
    'ClassDefinition',

    # Relationships
    'RelationshipBuilder',

    # Naming
    'default_moniker',
    'table_to_moniker',
    'relationship_name_from_column',
]
