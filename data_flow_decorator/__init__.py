"""
Data Flow Decorator Module.

Value types for logical flow decorators: tags (usually data
types) attached to logical flows, each carrying an
authoritativeness rating.
"""

from .types import (
    AuthoritativenessRating,
    DataTypeDirectionKey,
    DecoratorRatingSummary,
    EntityKind,
    EntityLifecycleStatus,
    EntityReference,
    FlowDirection,
)


__all__ = [
    "AuthoritativenessRating",
    "DataTypeDirectionKey",
    "DecoratorRatingSummary",
    "EntityKind",
    "EntityLifecycleStatus",
    "EntityReference",
    "FlowDirection",
]
