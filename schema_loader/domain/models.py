"""
Core domain models for schema_loader.

These records describe normalized catalog metadata and the relationship
and class definitions derived from it. They are independent of any
specific database backend and of the runtime the classes are registered
into.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Tuple
from enum import Enum

from ..exceptions import SchemaInconsistency


class RelationshipKind(Enum):
    """Direction of a relationship binding."""

    BELONGS_TO = "belongs_to"
    HAS_MANY = "has_many"


@dataclass
class ColumnInfo:
    """
    Represents a database column as reported by a catalog adapter.

    ``extra`` carries backend-specific details such as ``unsigned`` or the
    ``list`` of values of an enumerated type.
    """

    name: str
    data_type: Optional[str] = None
    nullable: bool = True
    size: Optional[int] = None
    default: Optional[Any] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def enum_values(self) -> Optional[List[str]]:
        """Values of an enumerated column, if the backend reported any."""
        return self.extra.get('list')

    @property
    def is_unsigned(self) -> bool:
        return bool(self.extra.get('unsigned'))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        data = {
            'data_type': self.data_type,
            'is_nullable': self.nullable,
        }
        if self.size is not None:
            data['size'] = self.size
        if self.default is not None:
            data['default_value'] = self.default
        data.update(self.extra)
        return data


@dataclass(frozen=True)
class UniqueConstraint:
    """A named unique constraint over an ordered list of columns."""

    name: str
    columns: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'columns': list(self.columns)}


@dataclass
class TableMetadata:
    """
    Canonical metadata for a single table.

    This is what every catalog adapter produces, whatever shape its
    backend's catalog API returns.
    """

    name: str
    columns: List[ColumnInfo] = field(default_factory=list)
    primary_key: List[str] = field(default_factory=list)
    unique_constraints: List[UniqueConstraint] = field(default_factory=list)

    def __post_init__(self):
        names = [uniq.name for uniq in self.unique_constraints]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise SchemaInconsistency(
                f"Duplicate unique constraint names on table '{self.name}': {', '.join(duplicates)}",
                source_table=self.name,
            )

    @property
    def column_names(self) -> List[str]:
        return [col.name for col in self.columns]

    @property
    def has_primary_key(self) -> bool:
        """Check if table has a primary key."""
        return bool(self.primary_key)

    def get_column(self, name: str) -> Optional[ColumnInfo]:
        """Get a column by name."""
        for col in self.columns:
            if col.name == name:
                return col
        return None

    def add_unique_constraint(self, constraint: UniqueConstraint) -> None:
        if any(uniq.name == constraint.name for uniq in self.unique_constraints):
            raise SchemaInconsistency(
                f"Unique constraint '{constraint.name}' already declared on table '{self.name}'",
                source_table=self.name,
            )
        self.unique_constraints.append(constraint)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            'name': self.name,
            'columns': {col.name: col.to_dict() for col in self.columns},
            'primary_key': list(self.primary_key),
            'unique_constraints': [uniq.to_dict() for uniq in self.unique_constraints],
        }


@dataclass
class ForeignKeyRef:
    """
    A foreign key where ``local_table`` is the referencing side.

    ``local_columns[i]`` references ``remote_columns[i]``. An empty
    ``remote_columns`` means the catalog did not say which columns are
    referenced, which by SQL rules is the remote primary key.
    """

    local_table: str
    local_columns: List[str]
    remote_table: str
    remote_columns: Optional[List[str]] = None
    name: Optional[str] = None
    is_synthetic_name: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'local_table': self.local_table,
            'local_columns': list(self.local_columns),
            'remote_table': self.remote_table,
            'remote_columns': list(self.remote_columns or []),
        }


@dataclass(frozen=True)
class RelationshipBinding:
    """
    One directional relationship declaration on ``owning_entity``.

    ``condition`` maps the join columns; for belongs-to it is
    ``{remote_column: local_column}``, for has-many
    ``{"foreign.<local_column>": "self.<remote_column>"}``.
    """

    owning_entity: str
    kind: RelationshipKind
    accessor_name: str
    target_entity: str
    condition: Tuple[Tuple[str, str], ...]

    @property
    def condition_map(self) -> Dict[str, str]:
        return dict(self.condition)

    def describe(self) -> str:
        """Render the binding the way it would be declared on the class."""
        cond = ", ".join(f"'{key}': '{value}'" for key, value in self.condition)
        return (
            f"{self.owning_entity}.{self.kind.value}("
            f"'{self.accessor_name}', '{self.target_entity}', {{{cond}}})"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.kind.value,
            'accessor': self.accessor_name,
            'target': self.target_entity,
            'condition': self.condition_map,
        }


@dataclass(frozen=True)
class RelationshipPair:
    """A foreign key resolved into its two directional bindings."""

    forward: RelationshipBinding
    reverse: RelationshipBinding


@dataclass(frozen=True)
class ClassDefinition:
    """
    Immutable description of one mapped class.

    Produced by the loader pipeline and consumed by the apply step, which
    turns it into a real class registered with the runtime.
    """

    moniker: str
    table: str
    bases: Tuple[type, ...]
    columns: Tuple[ColumnInfo, ...]
    primary_key: Tuple[str, ...]
    unique_constraints: Tuple[UniqueConstraint, ...]
    relationships: Tuple[RelationshipBinding, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            'table': self.table,
            'bases': [f"{base.__module__}.{base.__qualname__}" for base in self.bases],
            'columns': {col.name: col.to_dict() for col in self.columns},
            'primary_key': list(self.primary_key),
            'unique_constraints': [uniq.to_dict() for uniq in self.unique_constraints],
            'relationships': [rel.to_dict() for rel in self.relationships],
        }
