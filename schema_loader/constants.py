"""
Centralized constants for schema_loader.

Default configuration values, vendor names and naming tokens live here so
that adapters, the loader and the CLI agree on them.
"""


# =============================================================================
# CORE CONFIGURATION
# =============================================================================

class DefaultConfig:
    """Default configuration values."""

    DB_ALIAS = "default"
    OUTPUT_FORMAT = "yaml"
    RELATIONSHIPS = True
    BEST_EFFORT = False
    STRICT_RELATIONSHIP_NAMES = False
    DEBUG = False


class Vendors:
    """Django ``connection.vendor`` values with a dedicated catalog adapter."""

    POSTGRESQL = 'postgresql'
    SQLITE = 'sqlite'
    MYSQL = 'mysql'


# =============================================================================
# CATALOG NORMALIZATION
# =============================================================================

class CatalogDefaults:
    """Fallback quoting and naming tokens for catalog output."""

    QUOTE_CHAR = '"'
    NAME_SEPARATOR = '.'
    POSTGRESQL_SCHEMA = 'public'

    # Prefix of the internal token given to foreign keys without a name
    SYNTHETIC_FK_PREFIX = '__fk'

    # Django introspection reports tables as 't' and views as 'v'
    TABLE_TYPE = 't'
