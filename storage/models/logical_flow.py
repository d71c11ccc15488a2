"""
Logical Flow ORM Models.

============================================================
PURPOSE
============================================================
Mirrors of the catalog's logical flow tables. A logical flow
is a directed relationship between two entities; decorators
tag a flow with the entities (usually data types) carried
over it.

============================================================
DATA LIFECYCLE ROLE
============================================================
- Owner: the wider catalog application
- Mutability: decorator ratings may be bulk-updated,
  decorators may be deleted
- Consumers: decorator summary repository

============================================================
MODELS
============================================================
- LogicalFlow: Source/target relationship with lifecycle
- LogicalFlowDecorator: Rated tag on a logical flow

============================================================
"""

from sqlalchemy import (
    BigInteger,
    Boolean,
    ForeignKey,
    Index,
    Integer,
    String,
    false,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from data_flow_decorator.types import (
    AuthoritativenessRating,
    EntityLifecycleStatus,
)
from storage.models.base import AuditMixin, Base


# SQLite only autoincrements INTEGER primary keys
ID_TYPE = BigInteger().with_variant(Integer(), "sqlite")


class LogicalFlow(Base, AuditMixin):
    """
    A directed data flow between a source and a target entity.

    ============================================================
    REMOVAL
    ============================================================
    A flow counts as removed when entity_lifecycle_status is
    REMOVED or when is_removed is set. Either marks the flow
    as gone for aggregation purposes.

    ============================================================
    """

    __tablename__ = "logical_flow"

    id: Mapped[int] = mapped_column(
        ID_TYPE,
        primary_key=True,
        autoincrement=True,
        comment="Logical flow identifier"
    )

    source_entity_kind: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="Kind of the source entity"
    )

    source_entity_id: Mapped[int] = mapped_column(
        ID_TYPE,
        nullable=False,
        comment="Id of the source entity"
    )

    target_entity_kind: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="Kind of the target entity"
    )

    target_entity_id: Mapped[int] = mapped_column(
        ID_TYPE,
        nullable=False,
        comment="Id of the target entity"
    )

    entity_lifecycle_status: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        default=EntityLifecycleStatus.ACTIVE.value,
        server_default=EntityLifecycleStatus.ACTIVE.value,
        comment="ACTIVE, PENDING or REMOVED"
    )

    is_removed: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
        comment="Soft delete flag"
    )

    decorators: Mapped[list["LogicalFlowDecorator"]] = relationship(
        back_populates="logical_flow",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("idx_logical_flow_source", "source_entity_id", "source_entity_kind"),
        Index("idx_logical_flow_target", "target_entity_id", "target_entity_kind"),
    )

    def __repr__(self) -> str:
        return (
            f"<LogicalFlow(id={self.id}, "
            f"{self.source_entity_kind}/{self.source_entity_id} -> "
            f"{self.target_entity_kind}/{self.target_entity_id})>"
        )


class LogicalFlowDecorator(Base, AuditMixin):
    """
    A rated tag attached to exactly one logical flow.

    The natural key is (logical_flow_id, decorator_entity_kind,
    decorator_entity_id); rating holds an
    AuthoritativenessRating name.
    """

    __tablename__ = "logical_flow_decorator"

    logical_flow_id: Mapped[int] = mapped_column(
        ID_TYPE,
        ForeignKey("logical_flow.id", ondelete="CASCADE"),
        primary_key=True,
        comment="Decorated logical flow"
    )

    decorator_entity_kind: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        comment="Kind of the decorating entity"
    )

    decorator_entity_id: Mapped[int] = mapped_column(
        ID_TYPE,
        primary_key=True,
        comment="Id of the decorating entity"
    )

    rating: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        default=AuthoritativenessRating.NO_OPINION.value,
        comment="Authoritativeness rating name"
    )

    logical_flow: Mapped[LogicalFlow] = relationship(back_populates="decorators")

    __table_args__ = (
        Index("idx_lfd_decorator", "decorator_entity_kind", "decorator_entity_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<LogicalFlowDecorator(flow={self.logical_flow_id}, "
            f"{self.decorator_entity_kind}/{self.decorator_entity_id}, "
            f"rating={self.rating})>"
        )
