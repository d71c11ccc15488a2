"""
Data Flow Decorator - Type Definitions.

============================================================
PURPOSE
============================================================
Value types shared by the decorator repositories and their
callers: entity kinds, lifecycle and rating enums, entity
references and the derived read-only aggregates.

============================================================
DESIGN PRINCIPLES
============================================================
- Enum values equal the names stored in the database
- Immutable data structures (frozen dataclasses)
- No persistence logic here

============================================================
"""

from dataclasses import dataclass
from enum import Enum


# ============================================================
# ENUMS
# ============================================================


class EntityKind(str, Enum):
    """Kinds of catalog entity that flows and decorators refer to."""
    ACTOR = "ACTOR"
    APPLICATION = "APPLICATION"
    DATA_TYPE = "DATA_TYPE"
    END_USER_APPLICATION = "END_USER_APPLICATION"
    LOGICAL_DATA_FLOW = "LOGICAL_DATA_FLOW"
    MEASURABLE = "MEASURABLE"
    PHYSICAL_SPECIFICATION = "PHYSICAL_SPECIFICATION"


class EntityLifecycleStatus(str, Enum):
    """Lifecycle status of a logical flow."""
    ACTIVE = "ACTIVE"
    PENDING = "PENDING"
    REMOVED = "REMOVED"


class AuthoritativenessRating(str, Enum):
    """
    Authoritativeness of a decorator on a flow.

    PRIMARY and SECONDARY mean the source is a recognised
    provider of the data type, DISCOURAGED means it is a
    known non-authoritative source.
    """
    PRIMARY = "PRIMARY"
    SECONDARY = "SECONDARY"
    DISCOURAGED = "DISCOURAGED"
    NO_OPINION = "NO_OPINION"


class FlowDirection(str, Enum):
    """
    Direction of a flow relative to a set of selected entities.

    ============================================================
    CLASSIFICATION
    ============================================================
    - INTRA: source and target are both selected
    - OUTBOUND: only the source is selected
    - INBOUND: anything else (the target is selected)

    ============================================================
    """
    INBOUND = "INBOUND"
    OUTBOUND = "OUTBOUND"
    INTRA = "INTRA"


# ============================================================
# VALUE TYPES
# ============================================================


@dataclass(frozen=True)
class EntityReference:
    """Reference to a catalog entity by kind and id."""

    kind: EntityKind
    id: int

    @classmethod
    def mk_ref(cls, kind: EntityKind, entity_id: int) -> "EntityReference":
        return cls(kind=EntityKind(kind), id=int(entity_id))

    def __str__(self) -> str:
        return f"{self.kind.value}/{self.id}"


@dataclass(frozen=True)
class DecoratorRatingSummary:
    """
    Count of decorators sharing an entity and rating.

    Derived at query time over a filtered set of flows and
    never persisted.
    """

    decorator_entity_reference: EntityReference
    rating: AuthoritativenessRating
    count: int


@dataclass(frozen=True)
class DataTypeDirectionKey:
    """Grouping key of (data type id, flow direction)."""

    data_type_id: int
    flow_direction: FlowDirection

    @classmethod
    def mk_key(
        cls,
        data_type_id: int,
        flow_direction: FlowDirection
    ) -> "DataTypeDirectionKey":
        return cls(
            data_type_id=int(data_type_id),
            flow_direction=FlowDirection(flow_direction),
        )
