"""
Exception hierarchy and warning categories for schema_loader.

Errors carry structured context and recovery suggestions so that both the
CLI and library callers can report what went wrong while loading a schema.
Non-fatal conditions (a table without a primary key, an empty catalog) are
reported through warning categories instead of exceptions.
"""

import logging
import warnings
from typing import Dict, Any, Optional, List, Type


logger = logging.getLogger(__name__)


class SchemaLoaderError(Exception):
    """
    Base exception for all schema_loader errors.

    Provides rich context and error recovery guidance.
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
        error_code: Optional[str] = None
    ):
        """
        Initialize the exception with context and recovery suggestions.

        Args:
            message: Human-readable error message
            context: Additional context about where/why the error occurred
            suggestions: List of potential solutions or next steps
            error_code: Unique error code for programmatic handling
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.suggestions = suggestions or []
        self.error_code = error_code

    def __str__(self) -> str:
        """Return formatted error message with context."""
        lines = [super().__str__()]

        if self.error_code:
            lines.append(f"Error Code: {self.error_code}")

        if self.context:
            lines.append("Context:")
            for key, value in self.context.items():
                lines.append(f"  {key}: {value}")

        if self.suggestions:
            lines.append("Suggestions:")
            for suggestion in self.suggestions:
                lines.append(f"  • {suggestion}")

        return "\n".join(lines)


class ConfigurationError(SchemaLoaderError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_file: str = None, **kwargs):
        context = kwargs.get('context', {})
        if config_file:
            context['config_file'] = config_file

        suggestions = kwargs.get('suggestions', [])
        if not suggestions:
            suggestions = [
                "Check the configuration file syntax",
                "Verify all required fields are present",
                "Check that constraint/exclude are valid regular expressions",
            ]

        super().__init__(
            message,
            context=context,
            suggestions=suggestions,
            error_code="CONFIG_ERROR"
        )


class SchemaInconsistency(SchemaLoaderError):
    """Raised when catalog metadata cannot be mapped unambiguously."""

    def __init__(
        self,
        message: str,
        source_table: str = None,
        target_table: str = None,
        error_code: str = "SCHEMA_INCONSISTENCY",
        **kwargs
    ):
        context = kwargs.get('context', {})
        if source_table:
            context['source_table'] = source_table
        if target_table:
            context['target_table'] = target_table

        suggestions = kwargs.get('suggestions', [])
        if not suggestions:
            suggestions = [
                "Check the foreign key constraints in the database",
                "Verify that both tables are included in the load",
            ]

        super().__init__(
            message,
            context=context,
            suggestions=suggestions,
            error_code=error_code
        )


class RelationshipNameCollision(SchemaInconsistency):
    """Raised in strict mode when two relationships on one class share an accessor."""

    def __init__(self, message: str, owner: str = None, accessor: str = None, **kwargs):
        context = kwargs.get('context', {})
        if owner:
            context['owner'] = owner
        if accessor:
            context['accessor'] = accessor

        suggestions = kwargs.get('suggestions', [])
        if not suggestions:
            suggestions = [
                "Override the inflection for one of the names via inflect_plural/inflect_singular",
                "Disable strict_relationship_names to let the last declaration win",
            ]

        super().__init__(
            message,
            context=context,
            suggestions=suggestions,
            error_code="RELATIONSHIP_NAME_COLLISION"
        )


class CatalogUnsupported(SchemaLoaderError):
    """Raised when a backend lacks an introspection capability and no fallback worked."""

    def __init__(self, message: str, table: str = None, capability: str = None, **kwargs):
        context = kwargs.get('context', {})
        if table:
            context['table'] = table
        if capability:
            context['capability'] = capability

        suggestions = kwargs.get('suggestions', [])
        if not suggestions:
            suggestions = [
                "Check database user permissions on the catalog tables",
                "Verify the table exists in the configured db_schema",
            ]

        super().__init__(
            message,
            context=context,
            suggestions=suggestions,
            error_code="CATALOG_UNSUPPORTED"
        )


class RelationshipApplyFailure(SchemaLoaderError):
    """Raised when a relationship binding cannot be applied to its class."""

    def __init__(self, message: str, owner: str = None, accessor: str = None, **kwargs):
        context = kwargs.get('context', {})
        if owner:
            context['owner'] = owner
        if accessor:
            context['accessor'] = accessor

        suggestions = kwargs.get('suggestions', [])
        if not suggestions:
            suggestions = [
                "Check that the target class was loaded",
                "Enable best_effort to skip relationships that fail to apply",
            ]

        super().__init__(
            message,
            context=context,
            suggestions=suggestions,
            error_code="RELATIONSHIP_APPLY_FAILURE"
        )


class ExternalClassLoadError(SchemaLoaderError):
    """Raised when an external class module exists but fails to import."""

    def __init__(self, message: str, module: str = None, **kwargs):
        context = kwargs.get('context', {})
        if module:
            context['module'] = module

        super().__init__(
            message,
            context=context,
            suggestions=kwargs.get('suggestions', ["Fix the import error in the external module"]),
            error_code="EXTERNAL_CLASS_LOAD_ERROR"
        )


class DatabaseConnectionError(SchemaLoaderError):
    """Raised when database connection fails."""

    def __init__(self, message: str, database_url: str = None, engine: str = None, **kwargs):
        context = kwargs.get('context', {})
        if database_url:
            # Mask sensitive parts of the URL
            context['database_url'] = self._mask_credentials(database_url)
        if engine:
            context['engine'] = engine

        suggestions = kwargs.get('suggestions', [])
        if not suggestions:
            suggestions = [
                "Check database server is running",
                "Verify connection credentials",
                "Ensure database driver is installed"
            ]

        super().__init__(
            message,
            context=context,
            suggestions=suggestions,
            error_code="DATABASE_CONNECTION_ERROR"
        )

    @staticmethod
    def _mask_credentials(url: str) -> str:
        """Mask sensitive credentials in database URL."""
        import re
        return re.sub(r'://([^:]+):([^@]+)@', r'://\1:***@', url)


# --- Warning categories ---

class SchemaLoaderWarning(UserWarning):
    """Base category for non-fatal loader conditions."""


class NoPrimaryKey(SchemaLoaderWarning):
    """A table has no discoverable primary key."""


class NoTablesFound(SchemaLoaderWarning):
    """The catalog returned no tables."""


class AllTablesExcluded(SchemaLoaderWarning):
    """Every table was filtered out by constraint/exclude."""


def warn(category: Type[SchemaLoaderWarning], message: str) -> None:
    """Log a warning-level condition and issue it as a Python warning."""
    logger.warning(message)
    warnings.warn(message, category, stacklevel=3)
