"""
In-memory ORM registration runtime.

The loader hands finished class definitions to a registry. Any object
satisfying :class:`ClassRegistry` can be used; :class:`Schema` and
:class:`ResultSource` are the default implementation, recording the
declarations on the classes so they can be inspected.
"""

import logging
from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Tuple, Union

from .domain.models import ColumnInfo, RelationshipKind


logger = logging.getLogger(__name__)


class MappedClass(Protocol):
    """Declaration interface the loader calls on every generated class."""

    @classmethod
    def table(cls, name: str) -> None:
        ...

    @classmethod
    def add_columns(cls, *columns: Any) -> None:
        ...

    @classmethod
    def set_primary_key(cls, *columns: str) -> None:
        ...

    @classmethod
    def add_unique_constraint(cls, name: str, columns: Iterable[str]) -> None:
        ...

    @classmethod
    def belongs_to(cls, accessor: str, target: str, condition: Mapping[str, str]) -> None:
        ...

    @classmethod
    def has_many(cls, accessor: str, target: str, condition: Mapping[str, str]) -> None:
        ...


class ClassRegistry(Protocol):
    """Registry the generated classes are published to."""

    def register_class(self, moniker: str, cls: type) -> None:
        ...

    def unregister(self, moniker: str) -> None:
        ...


class ResultSource:
    """
    Base class of every generated class.

    Declarations are stored per class; relationship declarations are keyed
    by accessor name, so a later declaration with the same accessor
    replaces the earlier one.
    """

    _table_name: Optional[str] = None
    _columns: Dict[str, ColumnInfo]
    _primary_key: Tuple[str, ...] = ()
    _unique_constraints: Dict[str, Tuple[str, ...]]
    _relationships: Dict[str, Dict[str, Any]]
    schema: Optional["Schema"] = None

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        # Each class gets its own declaration stores
        cls._columns = OrderedDict()
        cls._primary_key = ()
        cls._unique_constraints = OrderedDict()
        cls._relationships = OrderedDict()

    def __init__(self, **values: Any):
        unknown = sorted(set(values) - set(self._columns))
        if unknown:
            raise TypeError(
                f"{type(self).__name__} has no column(s): {', '.join(unknown)}"
            )
        for name in self._columns:
            setattr(self, name, values.get(name))

    def __repr__(self) -> str:
        pk = ", ".join(f"{col}={getattr(self, col, None)!r}" for col in self._primary_key)
        return f"<{type(self).__name__}({pk})>"

    # --- Declarations ---

    @classmethod
    def table(cls, name: str) -> None:
        cls._table_name = name

    @classmethod
    def add_columns(cls, *columns: Union[str, Tuple[str, ColumnInfo]]) -> None:
        for column in columns:
            if isinstance(column, tuple):
                name, info = column
            else:
                name, info = column, ColumnInfo(name=column)
            cls._columns[name] = info

    @classmethod
    def set_primary_key(cls, *columns: str) -> None:
        missing = [col for col in columns if col not in cls._columns]
        if missing:
            raise ValueError(
                f"Primary key column(s) {', '.join(missing)} not declared on {cls.__name__}"
            )
        cls._primary_key = tuple(columns)

    @classmethod
    def add_unique_constraint(cls, name: str, columns: Iterable[str]) -> None:
        cls._unique_constraints[name] = tuple(columns)

    @classmethod
    def belongs_to(cls, accessor: str, target: str, condition: Mapping[str, str]) -> None:
        cls._add_relationship(RelationshipKind.BELONGS_TO, accessor, target, condition)

    @classmethod
    def has_many(cls, accessor: str, target: str, condition: Mapping[str, str]) -> None:
        cls._add_relationship(RelationshipKind.HAS_MANY, accessor, target, condition)

    @classmethod
    def _add_relationship(
        cls,
        kind: RelationshipKind,
        accessor: str,
        target: str,
        condition: Mapping[str, str],
    ) -> None:
        if not accessor:
            raise ValueError(f"Empty relationship accessor on {cls.__name__}")
        if accessor in cls._relationships:
            logger.debug(f"{cls.__name__}.{accessor} redeclared, replacing previous relationship")
        cls._relationships[accessor] = {
            'kind': kind,
            'target': target,
            'condition': dict(condition),
        }

    # --- Introspection ---

    @classmethod
    def table_name(cls) -> Optional[str]:
        return cls._table_name

    @classmethod
    def columns(cls) -> List[str]:
        return list(cls._columns)

    @classmethod
    def column_info(cls, name: str) -> ColumnInfo:
        return cls._columns[name]

    @classmethod
    def primary_columns(cls) -> List[str]:
        return list(cls._primary_key)

    @classmethod
    def unique_constraints(cls) -> Dict[str, List[str]]:
        return {name: list(cols) for name, cols in cls._unique_constraints.items()}

    @classmethod
    def relationships(cls) -> List[str]:
        return list(cls._relationships)

    @classmethod
    def relationship_info(cls, accessor: str) -> Dict[str, Any]:
        return cls._relationships[accessor]


class Schema:
    """Default :class:`ClassRegistry`: monikers mapped to generated classes."""

    def __init__(self):
        self._sources: Dict[str, type] = OrderedDict()

    def register_class(self, moniker: str, cls: type) -> None:
        if moniker in self._sources:
            logger.debug(f"Replacing registered class for '{moniker}'")
        cls.schema = self
        self._sources[moniker] = cls

    def unregister(self, moniker: str) -> None:
        del self._sources[moniker]

    def source(self, moniker: str) -> type:
        try:
            return self._sources[moniker]
        except KeyError:
            raise KeyError(f"Can't find source for {moniker}") from None

    def sources(self) -> List[str]:
        return list(self._sources)

    @property
    def monikers(self) -> List[str]:
        return sorted(self._sources)

    def __contains__(self, moniker: object) -> bool:
        return moniker in self._sources

    def __len__(self) -> int:
        return len(self._sources)
