"""
Base ORM Model and Mixins.

============================================================
PURPOSE
============================================================
Provides the declarative base and common mixins used by the
ORM models mirroring the catalog schema.

============================================================
COMPONENTS
============================================================
- Base: SQLAlchemy declarative base for all models
- AuditMixin: Last-updated and provenance columns

============================================================
"""

from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """
    Declarative base for all ORM models.

    The schema itself is owned by the wider catalog
    application; these models only describe the tables so
    that queries can be composed against them.
    """

    type_annotation_map = {
        datetime: DateTime(timezone=True),
    }


class AuditMixin:
    """
    Mixin providing the catalog's standard audit columns.

    Usage:
        class MyModel(Base, AuditMixin):
            __tablename__ = "my_table"
            ...
    """

    last_updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        comment="Last update timestamp (UTC)"
    )

    last_updated_by: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="admin",
        comment="User id of the last writer"
    )

    provenance: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        default="waltz",
        comment="System the record originated from"
    )
