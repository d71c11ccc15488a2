"""
Shared fixtures: an in-memory SQLite catalog and row builders.
"""

from typing import Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from data_flow_decorator.types import (
    AuthoritativenessRating,
    EntityKind,
    EntityLifecycleStatus,
)
from storage.database import create_all_tables
from storage.models.logical_flow import LogicalFlow, LogicalFlowDecorator


@pytest.fixture
def engine():
    """Fresh in-memory database with the catalog tables."""
    engine = create_engine("sqlite://")
    create_all_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    """Session bound to the in-memory database, rolled back afterwards."""
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    session = factory()
    yield session
    session.rollback()
    session.close()


class CatalogBuilder:
    """Adds flows and decorators to a session, flushing so ids are assigned."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def flow(
        self,
        source_id: int,
        target_id: int,
        status: EntityLifecycleStatus = EntityLifecycleStatus.ACTIVE,
        is_removed: bool = False,
        source_kind: EntityKind = EntityKind.APPLICATION,
        target_kind: EntityKind = EntityKind.APPLICATION,
        provenance: str = "waltz",
    ) -> LogicalFlow:
        flow = LogicalFlow(
            source_entity_kind=source_kind.value,
            source_entity_id=source_id,
            target_entity_kind=target_kind.value,
            target_entity_id=target_id,
            entity_lifecycle_status=status.value,
            is_removed=is_removed,
            provenance=provenance,
        )
        self.session.add(flow)
        self.session.flush()
        return flow

    def decorator(
        self,
        flow: LogicalFlow,
        entity_id: int,
        rating: AuthoritativenessRating = AuthoritativenessRating.PRIMARY,
        kind: EntityKind = EntityKind.DATA_TYPE,
        provenance: Optional[str] = None,
    ) -> LogicalFlowDecorator:
        decorator = LogicalFlowDecorator(
            logical_flow_id=flow.id,
            decorator_entity_kind=kind.value,
            decorator_entity_id=entity_id,
            rating=rating.value,
            provenance=provenance or "waltz",
        )
        self.session.add(decorator)
        self.session.flush()
        return decorator


@pytest.fixture
def catalog(session) -> CatalogBuilder:
    return CatalogBuilder(session)
