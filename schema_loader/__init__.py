"""
schema_loader: build ORM classes from an existing database schema.

Typical use with a configured Django database::

    from schema_loader import LoaderConfig, load_schema

    loader = load_schema(LoaderConfig(exclude=r'^django_'))
    Artist = loader.registry.source('Artist')
"""

from .config import LoaderConfig
from .exceptions import (
    AllTablesExcluded,
    CatalogUnsupported,
    ConfigurationError,
    DatabaseConnectionError,
    ExternalClassLoadError,
    NoPrimaryKey,
    NoTablesFound,
    RelationshipApplyFailure,
    RelationshipNameCollision,
    SchemaInconsistency,
    SchemaLoaderError,
    SchemaLoaderWarning,
)
from .inflection import Inflector
from .loader import SchemaLoader, load_schema
from .runtime import ResultSource, Schema

__version__ = "0.1.0"

__all__ = [
    'LoaderConfig',
    'SchemaLoader',
    'load_schema',
    'Inflector',
    'ResultSource',
    'Schema',

    # Errors
    'SchemaLoaderError',
    'ConfigurationError',
    'SchemaInconsistency',
    'RelationshipNameCollision',
    'CatalogUnsupported',
    'RelationshipApplyFailure',
    'ExternalClassLoadError',
    'DatabaseConnectionError',

    # Warnings
    'SchemaLoaderWarning',
    'NoPrimaryKey',
    'NoTablesFound',
    'AllTablesExcluded',
]
