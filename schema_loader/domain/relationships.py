"""
Relationship inference for schema_loader.

This module turns normalized foreign key metadata into named,
bidirectional relationship bindings: every foreign key yields a
belongs-to binding on the referencing class and a has-many binding on the
referenced class.
"""

import logging
from collections import Counter, OrderedDict
from typing import Dict, List, Mapping, Optional

from ..exceptions import SchemaInconsistency, RelationshipNameCollision
from ..inflection import Inflector
from .models import (
    ForeignKeyRef,
    RelationshipBinding,
    RelationshipKind,
    RelationshipPair,
    TableMetadata,
)
from .naming import relationship_name_from_column


logger = logging.getLogger(__name__)


class RelationshipBuilder:
    """
    Builds relationship bindings from foreign key metadata.

    ``tables`` maps each moniker to the live metadata of its table, which
    is needed to resolve foreign keys that do not list their remote
    columns. ``fk_info`` maps each moniker to the foreign keys where it is
    the referencing side; their ``remote_table`` must already be resolved
    to the remote moniker.

    Naming rules:

    - has-many accessor on the referenced class: the plural of the
      referencing table name, or, when the referencing table has more than
      one foreign key to the same target, the plural of the table name
      joined with the local column names (``employee_dept_ids``).
    - belongs-to accessor on the referencing class: the singular of the
      local column (without a trailing ``_id``) for single-column keys, the
      singular of the referenced table name otherwise.

    Accessor names are not checked across different targets; when two
    bindings on one class share an accessor the later one wins on apply,
    unless ``strict`` is set.
    """

    def __init__(
        self,
        tables: Mapping[str, TableMetadata],
        fk_info: Mapping[str, List[ForeignKeyRef]],
        inflector: Optional[Inflector] = None,
        strict: bool = False,
    ):
        self.tables = tables
        self.fk_info = fk_info
        self.inflector = inflector or Inflector()
        self.strict = strict

    def build_pairs(self) -> List[RelationshipPair]:
        """Resolve every foreign key into a forward/reverse binding pair."""
        pairs: List[RelationshipPair] = []

        for local_moniker in sorted(self.fk_info):
            foreign_keys = self.fk_info[local_moniker]
            counters = Counter(fk.remote_table for fk in foreign_keys)

            for fk in foreign_keys:
                pairs.append(self._build_pair(local_moniker, fk, counters))

        return pairs

    def generate(self) -> Dict[str, List[RelationshipBinding]]:
        """
        Group bindings by the class they are declared on.

        Returns:
            Ordered mapping of moniker to the bindings to apply to it
        """
        bindings: Dict[str, List[RelationshipBinding]] = OrderedDict()

        for pair in self.build_pairs():
            for binding in (pair.forward, pair.reverse):
                bindings.setdefault(binding.owning_entity, []).append(binding)

        if self.strict:
            self._check_collisions(bindings)

        return bindings

    def _build_pair(
        self,
        local_moniker: str,
        fk: ForeignKeyRef,
        counters: Counter,
    ) -> RelationshipPair:
        remote_moniker = fk.remote_table
        local_table = self._table(local_moniker).name
        remote_meta = self._table(remote_moniker)

        local_cols = list(fk.local_columns)
        remote_cols = list(fk.remote_columns or remote_meta.primary_key)

        if len(local_cols) != len(remote_cols):
            raise SchemaInconsistency(
                f"Column count mismatch: {local_moniker} ({', '.join(local_cols)}) "
                f"{remote_moniker} ({', '.join(remote_cols)})",
                source_table=local_table,
                target_table=remote_meta.name,
            )

        cond = OrderedDict(zip(remote_cols, local_cols))

        # More than one FK between this pair of tables: name the reverse
        # side after the local columns instead of just the local table.
        if counters[remote_moniker] > 1:
            local_relname = self.inflector.pluralize(
                local_table.lower() + "_" + "_".join(local_cols)
            )
        else:
            local_relname = self.inflector.pluralize(local_table.lower())

        if len(cond) == 1:
            (local_col,) = cond.values()
            remote_relname = self.inflector.singularize(
                relationship_name_from_column(local_col)
            )
        else:
            remote_relname = self.inflector.singularize(remote_meta.name.lower())

        rev_cond = tuple(
            (f"foreign.{local_col}", f"self.{remote_col}")
            for remote_col, local_col in cond.items()
        )

        forward = RelationshipBinding(
            owning_entity=local_moniker,
            kind=RelationshipKind.BELONGS_TO,
            accessor_name=remote_relname,
            target_entity=remote_moniker,
            condition=tuple(cond.items()),
        )
        reverse = RelationshipBinding(
            owning_entity=remote_moniker,
            kind=RelationshipKind.HAS_MANY,
            accessor_name=local_relname,
            target_entity=local_moniker,
            condition=rev_cond,
        )
        logger.debug(f"Resolved {fk.name or 'foreign key'} on {local_table}: "
                     f"{forward.describe()} / {reverse.describe()}")

        return RelationshipPair(forward=forward, reverse=reverse)

    def _table(self, moniker: str) -> TableMetadata:
        try:
            return self.tables[moniker]
        except KeyError:
            raise SchemaInconsistency(
                f"No table metadata loaded for '{moniker}'",
                target_table=moniker,
            ) from None

    @staticmethod
    def _check_collisions(bindings: Mapping[str, List[RelationshipBinding]]) -> None:
        for owner, owned in bindings.items():
            seen: Dict[str, RelationshipBinding] = {}
            for binding in owned:
                previous = seen.get(binding.accessor_name)
                if previous is not None:
                    raise RelationshipNameCollision(
                        f"Accessor '{binding.accessor_name}' on {owner} is declared by both "
                        f"{previous.describe()} and {binding.describe()}",
                        owner=owner,
                        accessor=binding.accessor_name,
                    )
                seen[binding.accessor_name] = binding
