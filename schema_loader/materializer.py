"""
Class materialization for schema_loader.

Table metadata and relationship bindings are first turned into immutable
:class:`ClassDefinition` records. A single apply step then builds the
classes and publishes them to a registry, so nothing is registered until
every definition is complete.
"""

import importlib
import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from django.utils.module_loading import import_string

from .domain.models import (
    ClassDefinition,
    RelationshipBinding,
    RelationshipKind,
    TableMetadata,
)
from .exceptions import (
    ConfigurationError,
    ExternalClassLoadError,
    NoPrimaryKey,
    RelationshipApplyFailure,
    warn,
)
from .runtime import ClassRegistry, ResultSource


logger = logging.getLogger(__name__)


def resolve_class(path_or_class) -> type:
    """Resolve a dotted import path to a class; classes pass through."""
    if isinstance(path_or_class, type):
        return path_or_class
    try:
        return import_string(path_or_class)
    except ImportError as e:
        raise ConfigurationError(
            f"Could not import class '{path_or_class}': {e}",
            context={'class': path_or_class},
        ) from e


def resolve_bases(
    left_base_classes: Sequence = (),
    components: Sequence = (),
    additional_base_classes: Sequence = (),
    base_class: type = ResultSource,
) -> Tuple[type, ...]:
    """
    Build the ordered base tuple for generated classes.

    Left base classes come first, then components, then additional base
    classes, and finally the runtime base class.
    """
    bases: List[type] = []
    for path in [*left_base_classes, *components, *additional_base_classes]:
        cls = resolve_class(path)
        if cls not in bases:
            bases.append(cls)
    if base_class not in bases:
        bases.append(base_class)
    return tuple(bases)


def load_external_mixin(package: Optional[str], moniker: str) -> Optional[type]:
    """
    Look for a hand-written extension of a generated class.

    The module ``<package>.<moniker lower-cased>`` may define a class named
    after the moniker; it is mixed in as the leftmost base. A missing
    module is not an error. A module that exists but fails to import is.
    """
    if not package:
        return None

    module_name = f"{package}.{moniker.lower()}"
    try:
        module = importlib.import_module(module_name)
    except ModuleNotFoundError as e:
        if e.name is not None and (module_name == e.name or module_name.startswith(e.name + ".")):
            logger.debug(f"No external class module for {moniker} ({module_name})")
            return None
        raise ExternalClassLoadError(
            f"Failed to load external class definition for '{moniker}': {e}",
            module=module_name,
        ) from e
    except Exception as e:
        raise ExternalClassLoadError(
            f"Failed to load external class definition for '{moniker}': {e}",
            module=module_name,
        ) from e

    mixin = getattr(module, moniker, None)
    if mixin is None:
        logger.debug(f"External module {module_name} defines no class named {moniker}")
        return None
    logger.info(f"Loaded external class definition for '{moniker}' from {module_name}")
    return mixin


def build_class_definition(
    metadata: TableMetadata,
    moniker: str,
    bases: Tuple[type, ...],
    relationships: Iterable[RelationshipBinding] = (),
) -> ClassDefinition:
    """Create the immutable definition of one mapped class."""
    if not metadata.has_primary_key:
        warn(NoPrimaryKey, f"{metadata.name} has no primary key")

    return ClassDefinition(
        moniker=moniker,
        table=metadata.name,
        bases=tuple(bases),
        columns=tuple(metadata.columns),
        primary_key=tuple(metadata.primary_key),
        unique_constraints=tuple(metadata.unique_constraints),
        relationships=tuple(relationships),
    )


def construct_class(definition: ClassDefinition) -> type:
    """Build the class for a definition and declare its table structure."""
    cls = type(definition.moniker, definition.bases, {'__module__': __name__})

    logger.debug(f"{definition.moniker}.table('{definition.table}')")
    cls.table(definition.table)

    logger.debug(
        f"{definition.moniker}.add_columns("
        + ", ".join(f"'{col.name}'" for col in definition.columns) + ")"
    )
    cls.add_columns(*[(col.name, col) for col in definition.columns])

    if definition.primary_key:
        logger.debug(
            f"{definition.moniker}.set_primary_key("
            + ", ".join(f"'{col}'" for col in definition.primary_key) + ")"
        )
        cls.set_primary_key(*definition.primary_key)

    for uniq in definition.unique_constraints:
        cls.add_unique_constraint(uniq.name, list(uniq.columns))

    return cls


def apply_relationship(cls: type, binding: RelationshipBinding) -> None:
    logger.debug(binding.describe())
    declare = cls.belongs_to if binding.kind is RelationshipKind.BELONGS_TO else cls.has_many
    declare(binding.accessor_name, binding.target_entity, binding.condition_map)


def apply_definitions(
    definitions: Iterable[ClassDefinition],
    registry: ClassRegistry,
    best_effort: bool = False,
) -> Dict[str, type]:
    """
    Construct every class and register it with ``registry``.

    Relationship bindings are applied once all classes exist. A binding
    that fails to apply aborts the load, or is logged and skipped when
    ``best_effort`` is set. Registering a moniker again replaces its class.

    Returns:
        Mapping of moniker to the constructed class
    """
    definitions = list(definitions)
    classes: Dict[str, type] = {}

    for definition in definitions:
        classes[definition.moniker] = construct_class(definition)

    for definition in definitions:
        cls = classes[definition.moniker]
        for binding in definition.relationships:
            try:
                apply_relationship(cls, binding)
            except Exception as e:
                failure = RelationshipApplyFailure(
                    f"Failed to apply {binding.describe()}: {e}",
                    owner=definition.moniker,
                    accessor=binding.accessor_name,
                )
                if not best_effort:
                    raise failure from e
                logger.warning(f"Skipping relationship: {failure.message}")

    for moniker in sorted(classes):
        registry.register_class(moniker, classes[moniker])

    return classes
