"""
Storage Models Package.

ORM mirrors of the catalog tables queried by the
repositories. The schema is owned by the wider catalog
application.

============================================================
MODEL ORGANIZATION
============================================================

Logical Flows (logical_flow.py)
- LogicalFlow
- LogicalFlowDecorator

============================================================
DESIGN PRINCIPLES
============================================================

- All models use explicit column definitions
- Enum-valued columns store the enum name as a string
- No business logic in models

============================================================
"""

from storage.models.base import AuditMixin, Base

from storage.models.logical_flow import (
    LogicalFlow,
    LogicalFlowDecorator,
)


__all__ = [
    "AuditMixin",
    "Base",
    "LogicalFlow",
    "LogicalFlowDecorator",
]
