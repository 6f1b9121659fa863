"""
Schema loading pipeline.

``SchemaLoader`` runs the whole pass: list and filter tables, map them to
monikers, normalize their metadata, infer relationships and publish one
class per table to a registry. Every pass starts from live catalog
queries; only the registered classes outlive it.
"""

import logging
from typing import Dict, List, Optional

from .catalog import CatalogAdapter, get_catalog_adapter
from .config import LoaderConfig
from .domain.models import ClassDefinition, ForeignKeyRef, RelationshipBinding, TableMetadata
from .domain.naming import table_to_moniker
from .domain.relationships import RelationshipBuilder
from .exceptions import AllTablesExcluded, CatalogUnsupported, NoTablesFound, warn
from .inflection import Inflector
from .materializer import (
    apply_definitions,
    build_class_definition,
    load_external_mixin,
    resolve_bases,
)
from .runtime import ClassRegistry, Schema


logger = logging.getLogger(__name__)


class SchemaLoader:
    """
    Builds and registers mapped classes for the tables of a database.

    Example:
        >>> loader = SchemaLoader(get_catalog_adapter(connection), LoaderConfig())
        >>> schema = loader.load()
        >>> schema.source(loader.monikers['artist']).relationships()
        ['cds']
    """

    def __init__(
        self,
        adapter: CatalogAdapter,
        config: Optional[LoaderConfig] = None,
        registry: Optional[ClassRegistry] = None,
    ):
        self.adapter = adapter
        self.config = config or LoaderConfig()
        self.registry = registry if registry is not None else Schema()
        self.inflector = Inflector(self.config.inflect_plural, self.config.inflect_singular)

        self._tables: List[str] = []
        self.monikers: Dict[str, str] = {}
        self.classes: Dict[str, type] = {}
        self.definitions: Dict[str, ClassDefinition] = {}
        self.relationship_bindings: Dict[str, List[RelationshipBinding]] = {}

        if self.config.debug:
            logging.getLogger("schema_loader").setLevel(logging.DEBUG)

    @property
    def tables(self) -> List[str]:
        """Sorted names of the loaded tables."""
        return list(self._tables)

    def load(self) -> ClassRegistry:
        """Run a full load and return the registry holding the classes."""
        logger.debug("### START schema_loader dump ###")
        tables = self._select_tables(self.adapter.list_tables())
        self._run(tables)
        logger.debug("### END schema_loader dump ###")
        return self.registry

    def rescan(self) -> List[str]:
        """
        Pick up tables created or dropped since the last load.

        The full pipeline runs again over the tables that are still in the
        catalog plus the new ones, replacing every class. Classes of tables
        that were dropped are unregistered and forgotten.

        Returns:
            Sorted names of the newly found tables
        """
        current = self._select_tables(self.adapter.list_tables(), report=False)
        new_tables = sorted(set(current) - set(self._tables))
        dropped = sorted(set(self._tables) - set(current))
        if new_tables:
            logger.info(f"Rescan found new tables: {', '.join(new_tables)}")
        else:
            logger.info("Rescan found no new tables")

        old_monikers = dict(self.monikers)
        self._run(current)

        for table in dropped:
            moniker = old_monikers[table]
            if moniker not in self.definitions:
                logger.info(f"Table {table} is gone, unregistering {moniker}")
                self.registry.unregister(moniker)
        return new_tables

    # --- Pipeline steps ---

    def _select_tables(self, tables: List[str], report: bool = True) -> List[str]:
        tables = sorted(tables)
        if not tables:
            if report:
                warn(NoTablesFound, "No tables found in database, nothing to load")
            return []

        constraint = self.config.constraint_re
        exclude = self.config.exclude_re
        if constraint:
            tables = [table for table in tables if constraint.search(table)]
        if exclude:
            tables = [table for table in tables if not exclude.search(table)]

        if not tables and report:
            warn(AllTablesExcluded, "All tables excluded by constraint/exclude, nothing to load")
        logger.debug(f"Selected tables: {', '.join(tables)}")
        return tables

    def _run(self, tables: List[str]) -> None:
        monikers = {table: table_to_moniker(table, self.config.moniker_map) for table in tables}
        metadata = self._gather_metadata(tables, monikers)

        bindings: Dict[str, List[RelationshipBinding]] = {}
        if self.config.relationships:
            fk_info = self._gather_foreign_keys(tables, monikers)
            builder = RelationshipBuilder(
                metadata,
                fk_info,
                inflector=self.inflector,
                strict=self.config.strict_relationship_names,
            )
            bindings = builder.generate()

        bases = resolve_bases(
            self.config.left_base_classes,
            self.config.components,
            self.config.additional_base_classes,
        )

        definitions = {}
        for table in tables:
            moniker = monikers[table]
            mixin = load_external_mixin(self.config.external_package, moniker)
            class_bases = ((mixin,) + bases) if mixin and mixin not in bases else bases
            definitions[moniker] = build_class_definition(
                metadata[moniker], moniker, class_bases, bindings.get(moniker, ()),
            )

        classes = apply_definitions(
            definitions.values(), self.registry, best_effort=self.config.best_effort,
        )

        self._tables = list(tables)
        self.monikers = monikers
        self.definitions = definitions
        self.relationship_bindings = bindings
        self.classes = {table: classes[moniker] for table, moniker in monikers.items()}
        logger.info(f"Loaded {len(classes)} classes")

    def _gather_metadata(self, tables: List[str], monikers: Dict[str, str]) -> Dict[str, TableMetadata]:
        metadata = {}
        for table in tables:
            logger.debug(f"Introspecting table: {table}")
            metadata[monikers[table]] = self.adapter.table_metadata(table)
        return metadata

    def _gather_foreign_keys(
        self, tables: List[str], monikers: Dict[str, str]
    ) -> Dict[str, List[ForeignKeyRef]]:
        fk_info: Dict[str, List[ForeignKeyRef]] = {}
        for table in tables:
            try:
                foreign_keys = self.adapter.foreign_keys(table)
            except (NotImplementedError, CatalogUnsupported) as e:
                logger.debug(f"Backend {self.adapter.vendor} does not report foreign keys for {table}: {e}")
                foreign_keys = []

            resolved = []
            for fk in foreign_keys:
                remote_moniker = monikers.get(fk.remote_table)
                if remote_moniker is None:
                    logger.warning(
                        f"Skipping foreign key {table}({', '.join(fk.local_columns)}) -> "
                        f"{fk.remote_table}: referenced table is not loaded"
                    )
                    continue
                resolved.append(ForeignKeyRef(
                    local_table=fk.local_table,
                    local_columns=list(fk.local_columns),
                    remote_table=remote_moniker,
                    remote_columns=list(fk.remote_columns or []),
                    name=fk.name,
                    is_synthetic_name=fk.is_synthetic_name,
                ))
            fk_info[monikers[table]] = resolved
        return fk_info


def load_schema(
    config: Optional[LoaderConfig] = None,
    db_alias: str = "default",
    registry: Optional[ClassRegistry] = None,
) -> SchemaLoader:
    """
    Load the schema of a configured Django database.

    Django settings must already be configured (see
    ``schema_loader.django_setup.setup_django``).

    Returns:
        The loader, with the classes registered in ``loader.registry``
    """
    from .django_setup import get_connection

    config = config or LoaderConfig()
    adapter = get_catalog_adapter(get_connection(db_alias), db_schema=config.db_schema)
    loader = SchemaLoader(adapter, config, registry)
    loader.load()
    return loader
