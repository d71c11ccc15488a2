"""
Storage - Query Conditions.

============================================================
PURPOSE
============================================================
A small typed predicate tree used by callers to scope
repository queries without depending on the query builder.

Callers compose conditions from Field constants:

    condition = (
        In(DecoratorField.LOGICAL_FLOW_ID, [1, 2, 3])
        & Eq(DecoratorField.RATING, AuthoritativenessRating.PRIMARY)
    )

Repositories turn a condition into a SQLAlchemy clause with
to_clause(). An optional alias map lets the same condition be
compiled against aliased tables.

============================================================
NODES
============================================================
- Eq / Ne: field compared to a value
- In: field within a value collection or an id selector
- IsNull / IsNotNull
- And / Or / Not: composition (also via & | ~)
- TrueCondition: matches every row

============================================================
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

from sqlalchemy import Select, and_, false, not_, or_, true
from sqlalchemy.sql.expression import ColumnElement, FromClause, Selectable

from data_flow_decorator.types import EntityLifecycleStatus
from storage.models.logical_flow import LogicalFlow, LogicalFlowDecorator


# Maps table name -> aliased FromClause
AliasMap = Optional[Dict[str, FromClause]]


def _db_value(value: Any) -> Any:
    """Enum members are compared by value (the catalog's enum values equal their names)."""
    if isinstance(value, Enum):
        return value.value
    return value


# ============================================================
# FIELDS
# ============================================================

@dataclass(frozen=True)
class Field:
    """A named column of a catalog table."""

    table: str
    column: str

    def resolve(self, aliases: AliasMap = None) -> ColumnElement:
        if aliases and self.table in aliases:
            return aliases[self.table].c[self.column]
        return _TABLES[self.table].c[self.column]

    def __str__(self) -> str:
        return f"{self.table}.{self.column}"


class LogicalFlowField:
    """Fields of the logical_flow table."""
    ID = Field("logical_flow", "id")
    SOURCE_ENTITY_KIND = Field("logical_flow", "source_entity_kind")
    SOURCE_ENTITY_ID = Field("logical_flow", "source_entity_id")
    TARGET_ENTITY_KIND = Field("logical_flow", "target_entity_kind")
    TARGET_ENTITY_ID = Field("logical_flow", "target_entity_id")
    ENTITY_LIFECYCLE_STATUS = Field("logical_flow", "entity_lifecycle_status")
    IS_REMOVED = Field("logical_flow", "is_removed")
    PROVENANCE = Field("logical_flow", "provenance")


class DecoratorField:
    """Fields of the logical_flow_decorator table."""
    LOGICAL_FLOW_ID = Field("logical_flow_decorator", "logical_flow_id")
    DECORATOR_ENTITY_KIND = Field("logical_flow_decorator", "decorator_entity_kind")
    DECORATOR_ENTITY_ID = Field("logical_flow_decorator", "decorator_entity_id")
    RATING = Field("logical_flow_decorator", "rating")
    PROVENANCE = Field("logical_flow_decorator", "provenance")
    LAST_UPDATED_BY = Field("logical_flow_decorator", "last_updated_by")


_TABLES: Dict[str, FromClause] = {
    LogicalFlow.__tablename__: LogicalFlow.__table__,
    LogicalFlowDecorator.__tablename__: LogicalFlowDecorator.__table__,
}


# ============================================================
# CONDITION NODES
# ============================================================

class Condition:
    """Base class of all predicate nodes."""

    def to_clause(self, aliases: AliasMap = None) -> ColumnElement:
        raise NotImplementedError

    def __and__(self, other: "Condition") -> "Condition":
        return And((self, other))

    def __or__(self, other: "Condition") -> "Condition":
        return Or((self, other))

    def __invert__(self) -> "Condition":
        return Not(self)


@dataclass(frozen=True)
class TrueCondition(Condition):
    """Matches every row."""

    def to_clause(self, aliases: AliasMap = None) -> ColumnElement:
        return true()


@dataclass(frozen=True)
class Eq(Condition):
    field: Field
    value: Any

    def to_clause(self, aliases: AliasMap = None) -> ColumnElement:
        return self.field.resolve(aliases) == _db_value(self.value)


@dataclass(frozen=True)
class Ne(Condition):
    field: Field
    value: Any

    def to_clause(self, aliases: AliasMap = None) -> ColumnElement:
        return self.field.resolve(aliases) != _db_value(self.value)


@dataclass(frozen=True, init=False)
class In(Condition):
    """
    Field membership.

    values is either an iterable of plain values or a selector
    (a single-column SQLAlchemy selectable). An empty value
    collection matches nothing.
    """

    field: Field
    values: Any

    def __init__(self, field: Field, values: Any) -> None:
        object.__setattr__(self, "field", field)
        if isinstance(values, Selectable):
            object.__setattr__(self, "values", values)
        else:
            object.__setattr__(self, "values", tuple(_db_value(v) for v in values))

    def to_clause(self, aliases: AliasMap = None) -> ColumnElement:
        if isinstance(self.values, tuple) and not self.values:
            return false()
        values = self.values
        # A selector stands alone; never correlate it to the enclosing query
        if isinstance(values, Select):
            values = values.correlate(None)
        return self.field.resolve(aliases).in_(values)


@dataclass(frozen=True)
class IsNull(Condition):
    field: Field

    def to_clause(self, aliases: AliasMap = None) -> ColumnElement:
        return self.field.resolve(aliases).is_(None)


@dataclass(frozen=True)
class IsNotNull(Condition):
    field: Field

    def to_clause(self, aliases: AliasMap = None) -> ColumnElement:
        return self.field.resolve(aliases).is_not(None)


@dataclass(frozen=True, init=False)
class And(Condition):
    """Conjunction; an empty And matches every row."""

    conditions: Tuple[Condition, ...]

    def __init__(self, conditions: Iterable[Condition]) -> None:
        object.__setattr__(self, "conditions", _flatten(And, conditions))

    def to_clause(self, aliases: AliasMap = None) -> ColumnElement:
        if not self.conditions:
            return true()
        return and_(*(c.to_clause(aliases) for c in self.conditions))


@dataclass(frozen=True, init=False)
class Or(Condition):
    """Disjunction; an empty Or matches nothing."""

    conditions: Tuple[Condition, ...]

    def __init__(self, conditions: Iterable[Condition]) -> None:
        object.__setattr__(self, "conditions", _flatten(Or, conditions))

    def to_clause(self, aliases: AliasMap = None) -> ColumnElement:
        if not self.conditions:
            return false()
        return or_(*(c.to_clause(aliases) for c in self.conditions))


@dataclass(frozen=True)
class Not(Condition):
    condition: Condition

    def to_clause(self, aliases: AliasMap = None) -> ColumnElement:
        return not_(self.condition.to_clause(aliases))


def _flatten(node_type: type, conditions: Iterable[Condition]) -> Tuple[Condition, ...]:
    flat = []
    for condition in conditions:
        if isinstance(condition, node_type):
            flat.extend(condition.conditions)
        else:
            flat.append(condition)
    return tuple(flat)


# ============================================================
# COMMON CONDITIONS
# ============================================================

LOGICAL_NOT_REMOVED: Condition = And((
    Ne(LogicalFlowField.ENTITY_LIFECYCLE_STATUS, EntityLifecycleStatus.REMOVED),
    Eq(LogicalFlowField.IS_REMOVED, False),
))
"""Flows that are neither lifecycle-REMOVED nor flagged as removed."""
