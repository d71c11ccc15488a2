"""
Tests for the Logical Flow Decorator Summary Repository.

Tests cover:
- Rating summaries (all / inbound / outbound / condition)
- Exclusion of removed flows
- Direction grouping of data type flows
- Bulk rating updates and decorator removal
- Error wrapping and argument checks
"""

import pytest
from unittest.mock import MagicMock
from sqlalchemy import select
from sqlalchemy.exc import OperationalError, ProgrammingError

from data_flow_decorator.types import (
    AuthoritativenessRating,
    DataTypeDirectionKey,
    DecoratorRatingSummary,
    EntityKind,
    EntityLifecycleStatus,
    EntityReference,
    FlowDirection,
)
from storage.conditions import (
    DecoratorField,
    Eq,
    In,
    LOGICAL_NOT_REMOVED,
    LogicalFlowField,
)
from storage.models.logical_flow import LogicalFlow, LogicalFlowDecorator
from storage.repositories import (
    ConnectionError,
    LogicalFlowDecoratorSummaryRepository,
    QueryError,
)
from storage.selectors import flow_endpoint_selector, mk_id_selector


PRIMARY = AuthoritativenessRating.PRIMARY
SECONDARY = AuthoritativenessRating.SECONDARY
DISCOURAGED = AuthoritativenessRating.DISCOURAGED


def summary(entity_id: int, rating: AuthoritativenessRating, count: int,
            kind: EntityKind = EntityKind.DATA_TYPE) -> DecoratorRatingSummary:
    return DecoratorRatingSummary(
        decorator_entity_reference=EntityReference(kind, entity_id),
        rating=rating,
        count=count,
    )


def ratings_by_flow(session):
    rows = session.execute(
        select(
            LogicalFlowDecorator.logical_flow_id,
            LogicalFlowDecorator.decorator_entity_id,
            LogicalFlowDecorator.rating,
        )
    ).all()
    return {(flow_id, entity_id): rating for flow_id, entity_id, rating in rows}


# =============================================================
# FIXTURES
# =============================================================

@pytest.fixture
def repository(session):
    return LogicalFlowDecoratorSummaryRepository(session)


# =============================================================
# TEST: Construction
# =============================================================

class TestConstruction:
    """Test repository construction."""

    def test_session_is_required(self):
        """A None session should be rejected."""
        with pytest.raises(ValueError):
            LogicalFlowDecoratorSummaryRepository(None)


# =============================================================
# TEST: Summaries
# =============================================================

class TestSummarizeForAll:
    """Test summarize_for_all."""

    def test_removed_flow_contributes_nothing(self, repository, catalog):
        """Only the live flow's decorator should be counted."""
        f1 = catalog.flow(1, 2)
        f2 = catalog.flow(1, 3, status=EntityLifecycleStatus.REMOVED)
        catalog.decorator(f1, 100, PRIMARY)
        catalog.decorator(f2, 100, PRIMARY)

        assert repository.summarize_for_all() == [summary(100, PRIMARY, 1)]

    def test_removal_flag_excludes_flow(self, repository, catalog):
        """is_removed alone should exclude an ACTIVE flow."""
        live = catalog.flow(1, 2)
        flagged = catalog.flow(1, 3, is_removed=True)
        catalog.decorator(live, 100, SECONDARY)
        catalog.decorator(flagged, 200, SECONDARY)

        assert repository.summarize_for_all() == [summary(100, SECONDARY, 1)]

    def test_pending_flows_are_counted(self, repository, catalog):
        """PENDING is not REMOVED."""
        pending = catalog.flow(1, 2, status=EntityLifecycleStatus.PENDING)
        catalog.decorator(pending, 100, PRIMARY)

        assert repository.summarize_for_all() == [summary(100, PRIMARY, 1)]

    def test_rows_differing_in_unrelated_fields_merge(self, repository, catalog):
        """Same kind, id and rating on different flows should merge."""
        f1 = catalog.flow(1, 2, provenance="import")
        f2 = catalog.flow(3, 4)
        catalog.decorator(f1, 100, PRIMARY, provenance="import")
        catalog.decorator(f2, 100, PRIMARY, provenance="waltz")

        assert repository.summarize_for_all() == [summary(100, PRIMARY, 2)]

    def test_groups_by_kind_id_and_rating(self, repository, catalog):
        """Each distinct (kind, id, rating) gets its own row."""
        f1 = catalog.flow(1, 2)
        f2 = catalog.flow(3, 4)
        f3 = catalog.flow(5, 6)
        catalog.decorator(f1, 100, PRIMARY)
        catalog.decorator(f2, 100, DISCOURAGED)
        catalog.decorator(f3, 100, PRIMARY)
        catalog.decorator(f3, 100, PRIMARY, kind=EntityKind.MEASURABLE)
        catalog.decorator(f1, 200, PRIMARY)

        result = repository.summarize_for_all()

        assert set(result) == {
            summary(100, PRIMARY, 2),
            summary(100, DISCOURAGED, 1),
            summary(100, PRIMARY, 1, kind=EntityKind.MEASURABLE),
            summary(200, PRIMARY, 1),
        }
        assert len(result) == 4

    def test_empty_catalog(self, repository):
        """No decorators means no summaries."""
        assert repository.summarize_for_all() == []


class TestSummarizeForSelector:
    """Test inbound and outbound selector summaries."""

    @pytest.fixture
    def flows(self, catalog):
        a_to_b = catalog.flow(1, 2)
        c_to_a = catalog.flow(3, 1)
        b_to_c = catalog.flow(2, 3)
        removed_c_to_a = catalog.flow(3, 1, is_removed=True)
        catalog.decorator(a_to_b, 100, PRIMARY)
        catalog.decorator(c_to_a, 200, SECONDARY)
        catalog.decorator(b_to_c, 300, DISCOURAGED)
        catalog.decorator(removed_c_to_a, 400, PRIMARY)
        return a_to_b, c_to_a, b_to_c

    def test_inbound_filters_on_target(self, repository, flows):
        """Only flows targeting a selected entity are counted."""
        result = repository.summarize_inbound_for_selector(mk_id_selector([1]))

        assert result == [summary(200, SECONDARY, 1)]

    def test_outbound_filters_on_source(self, repository, flows):
        """Only flows sourced from a selected entity are counted."""
        result = repository.summarize_outbound_for_selector(mk_id_selector([1, 2]))

        assert set(result) == {
            summary(100, PRIMARY, 1),
            summary(300, DISCOURAGED, 1),
        }

    def test_empty_selector(self, repository, flows):
        """An empty selector matches no flows."""
        assert repository.summarize_inbound_for_selector(mk_id_selector([])) == []
        assert repository.summarize_outbound_for_selector(mk_id_selector([])) == []

    def test_query_selector(self, repository, flows):
        """Selectors may be arbitrary sub-queries."""
        sources = flow_endpoint_selector(FlowDirection.OUTBOUND)

        result = repository.summarize_inbound_for_selector(sources)

        assert set(result) == {
            summary(100, PRIMARY, 1),
            summary(200, SECONDARY, 1),
            summary(300, DISCOURAGED, 1),
        }

    def test_large_selector(self, repository, flows):
        """Selectors over more ids than one compound select allows still work."""
        selector = mk_id_selector(range(1, 1001))

        assert len(repository.summarize_inbound_for_selector(selector)) == 3
        assert len(repository.summarize_outbound_for_selector(selector)) == 3


class TestSummarizeForCondition:
    """Test summarize_for_condition."""

    def test_condition_on_decorator_columns(self, repository, catalog):
        """Decorator columns can be used in the condition."""
        flow = catalog.flow(1, 2)
        catalog.decorator(flow, 100, PRIMARY)
        catalog.decorator(flow, 200, SECONDARY)

        condition = Eq(DecoratorField.RATING, SECONDARY) & LOGICAL_NOT_REMOVED

        assert repository.summarize_for_condition(condition) == [summary(200, SECONDARY, 1)]

    def test_condition_applied_as_given(self, repository, catalog):
        """Without LOGICAL_NOT_REMOVED removed flows are included."""
        removed = catalog.flow(1, 2, status=EntityLifecycleStatus.REMOVED)
        catalog.decorator(removed, 100, PRIMARY)

        condition = Eq(LogicalFlowField.SOURCE_ENTITY_ID, 1)

        assert repository.summarize_for_condition(condition) == [summary(100, PRIMARY, 1)]


# =============================================================
# TEST: Direction grouping
# =============================================================

class TestLogicalFlowIdsByTypeAndDirection:
    """Test logical_flow_ids_by_type_and_direction."""

    def test_direction_classification(self, repository, catalog):
        """Both ends selected is INTRA, only source OUTBOUND, only target INBOUND."""
        intra = catalog.flow(1, 2)
        outbound = catalog.flow(1, 5)
        inbound = catalog.flow(5, 2)
        unrelated = catalog.flow(5, 6)
        for flow in (intra, outbound, inbound, unrelated):
            catalog.decorator(flow, 100)

        result = repository.logical_flow_ids_by_type_and_direction(mk_id_selector([1, 2]))

        assert result == {
            DataTypeDirectionKey(100, FlowDirection.INTRA): [intra.id],
            DataTypeDirectionKey(100, FlowDirection.OUTBOUND): [outbound.id],
            DataTypeDirectionKey(100, FlowDirection.INBOUND): [inbound.id],
        }

    def test_groups_flow_ids_per_data_type(self, repository, catalog):
        """Flows sharing a data type and direction are listed together."""
        f1 = catalog.flow(1, 7)
        f2 = catalog.flow(2, 8)
        catalog.decorator(f1, 100)
        catalog.decorator(f2, 100)
        catalog.decorator(f2, 200)

        result = repository.logical_flow_ids_by_type_and_direction(mk_id_selector([1, 2]))

        assert sorted(result[DataTypeDirectionKey(100, FlowDirection.OUTBOUND)]) == sorted([f1.id, f2.id])
        assert result[DataTypeDirectionKey(200, FlowDirection.OUTBOUND)] == [f2.id]
        assert len(result) == 2

    def test_only_data_type_decorators(self, repository, catalog):
        """Non data type decorators are ignored."""
        flow = catalog.flow(1, 2)
        catalog.decorator(flow, 100, kind=EntityKind.MEASURABLE)

        assert repository.logical_flow_ids_by_type_and_direction(mk_id_selector([1])) == {}

    def test_removed_flows_excluded(self, repository, catalog):
        """Either removal marker excludes the flow."""
        by_status = catalog.flow(1, 2, status=EntityLifecycleStatus.REMOVED)
        by_flag = catalog.flow(1, 3, is_removed=True)
        catalog.decorator(by_status, 100)
        catalog.decorator(by_flag, 100)

        assert repository.logical_flow_ids_by_type_and_direction(mk_id_selector([1, 2, 3])) == {}

    def test_large_selector(self, repository, catalog):
        """Direction grouping works with selectors over many ids."""
        intra = catalog.flow(1, 1200)
        outbound = catalog.flow(700, 5000)
        catalog.decorator(intra, 100)
        catalog.decorator(outbound, 100)

        result = repository.logical_flow_ids_by_type_and_direction(mk_id_selector(range(1, 1201)))

        assert result == {
            DataTypeDirectionKey(100, FlowDirection.INTRA): [intra.id],
            DataTypeDirectionKey(100, FlowDirection.OUTBOUND): [outbound.id],
        }

    def test_selector_is_required(self, repository):
        """A None selector should be rejected."""
        with pytest.raises(ValueError):
            repository.logical_flow_ids_by_type_and_direction(None)


# =============================================================
# TEST: Mutations
# =============================================================

class TestUpdateRatingsByCondition:
    """Test update_ratings_by_condition."""

    def test_updates_only_matching_rows(self, repository, catalog, session):
        """Unmatched decorators keep their rating."""
        f1 = catalog.flow(1, 2)
        f2 = catalog.flow(3, 4)
        catalog.decorator(f1, 100, PRIMARY)
        catalog.decorator(f1, 200, SECONDARY)
        catalog.decorator(f2, 100, SECONDARY)

        updated = repository.update_ratings_by_condition(
            DISCOURAGED,
            Eq(DecoratorField.DECORATOR_ENTITY_ID, 100),
        )

        assert updated == 2
        assert ratings_by_flow(session) == {
            (f1.id, 100): "DISCOURAGED",
            (f1.id, 200): "SECONDARY",
            (f2.id, 100): "DISCOURAGED",
        }

    def test_condition_with_flow_selector(self, repository, catalog, session):
        """Flow attributes are reached through a flow id sub-query."""
        inbound = catalog.flow(1, 2)
        other = catalog.flow(1, 3)
        catalog.decorator(inbound, 100, PRIMARY)
        catalog.decorator(other, 100, PRIMARY)

        flows_into_2 = select(LogicalFlow.id).where(LogicalFlow.target_entity_id == 2)
        updated = repository.update_ratings_by_condition(
            SECONDARY,
            In(DecoratorField.LOGICAL_FLOW_ID, flows_into_2),
        )

        assert updated == 1
        assert ratings_by_flow(session) == {
            (inbound.id, 100): "SECONDARY",
            (other.id, 100): "PRIMARY",
        }

    def test_no_match_updates_nothing(self, repository, catalog, session):
        flow = catalog.flow(1, 2)
        catalog.decorator(flow, 100, PRIMARY)

        updated = repository.update_ratings_by_condition(
            DISCOURAGED,
            In(DecoratorField.LOGICAL_FLOW_ID, []),
        )

        assert updated == 0
        assert ratings_by_flow(session) == {(flow.id, 100): "PRIMARY"}

    def test_condition_on_flow_columns(self, repository, catalog, session):
        """A flow column only matches the decorators of that flow."""
        into_2 = catalog.flow(1, 2)
        into_3 = catalog.flow(1, 3)
        catalog.decorator(into_2, 100, PRIMARY)
        catalog.decorator(into_3, 100, PRIMARY)

        updated = repository.update_ratings_by_condition(
            DISCOURAGED,
            Eq(LogicalFlowField.TARGET_ENTITY_ID, 2),
        )

        assert updated == 1
        assert ratings_by_flow(session) == {
            (into_2.id, 100): "DISCOURAGED",
            (into_3.id, 100): "PRIMARY",
        }

    def test_not_removed_condition_skips_removed_flows(self, repository, catalog, session):
        """Decorators on removed flows keep their rating."""
        live = catalog.flow(1, 2)
        removed = catalog.flow(1, 3, status=EntityLifecycleStatus.REMOVED)
        flagged = catalog.flow(1, 4, is_removed=True)
        for flow in (live, removed, flagged):
            catalog.decorator(flow, 100, PRIMARY)

        updated = repository.update_ratings_by_condition(DISCOURAGED, LOGICAL_NOT_REMOVED)

        assert updated == 1
        assert ratings_by_flow(session) == {
            (live.id, 100): "DISCOURAGED",
            (removed.id, 100): "PRIMARY",
            (flagged.id, 100): "PRIMARY",
        }

    def test_condition_mixing_both_tables(self, repository, catalog, session):
        """Flow and decorator columns combine per decorator row."""
        f1 = catalog.flow(1, 2)
        f2 = catalog.flow(3, 2)
        catalog.decorator(f1, 100, PRIMARY)
        catalog.decorator(f1, 200, PRIMARY)
        catalog.decorator(f2, 100, PRIMARY)

        condition = (
            Eq(LogicalFlowField.SOURCE_ENTITY_ID, 1)
            & Eq(DecoratorField.DECORATOR_ENTITY_ID, 100)
        ) | Eq(LogicalFlowField.SOURCE_ENTITY_ID, 3)

        updated = repository.update_ratings_by_condition(SECONDARY, condition)

        assert updated == 2
        assert ratings_by_flow(session) == {
            (f1.id, 100): "SECONDARY",
            (f1.id, 200): "PRIMARY",
            (f2.id, 100): "SECONDARY",
        }

    def test_flow_selector_in_condition(self, repository, catalog, session):
        """A selector over logical_flow is not confused with the flow being tested."""
        a_to_b = catalog.flow(1, 2)
        b_to_c = catalog.flow(2, 3)
        catalog.decorator(a_to_b, 100, PRIMARY)
        catalog.decorator(b_to_c, 100, PRIMARY)

        # targets of live flows: {2, 3}
        targets = flow_endpoint_selector(FlowDirection.INBOUND)
        updated = repository.update_ratings_by_condition(
            DISCOURAGED,
            In(LogicalFlowField.SOURCE_ENTITY_ID, targets),
        )

        assert updated == 1
        assert ratings_by_flow(session) == {
            (a_to_b.id, 100): "PRIMARY",
            (b_to_c.id, 100): "DISCOURAGED",
        }


class TestRemoveDecorators:
    """Test decorator removal."""

    def test_remove_for_single_flow(self, repository, catalog, session):
        """Only the given flow loses its decorators."""
        f1 = catalog.flow(1, 2)
        f2 = catalog.flow(3, 4)
        catalog.decorator(f1, 100)
        catalog.decorator(f1, 200)
        catalog.decorator(f2, 100)

        assert repository.remove_decorators_for_flow(f1.id) == 2
        assert ratings_by_flow(session) == {(f2.id, 100): "PRIMARY"}

    def test_bulk_remove_is_deprecated(self, repository, catalog, session):
        """The bulk delete warns but keeps its unconditional semantics."""
        f1 = catalog.flow(1, 2)
        f2 = catalog.flow(3, 4, status=EntityLifecycleStatus.REMOVED)
        f3 = catalog.flow(5, 6)
        catalog.decorator(f1, 100)
        catalog.decorator(f2, 100)
        catalog.decorator(f3, 100)

        with pytest.deprecated_call():
            deleted = repository.remove_all_decorators_for_flow_ids([f1.id, f2.id])

        assert deleted == 2
        assert ratings_by_flow(session) == {(f3.id, 100): "PRIMARY"}

    def test_bulk_remove_accepts_iterators(self, repository, catalog, session):
        """Flow ids may be any iterable, consumed once."""
        f1 = catalog.flow(1, 2)
        f2 = catalog.flow(3, 4)
        catalog.decorator(f1, 100)
        catalog.decorator(f2, 100)

        with pytest.deprecated_call():
            deleted = repository.remove_all_decorators_for_flow_ids(iter([f1.id]))

        assert deleted == 1
        assert ratings_by_flow(session) == {(f2.id, 100): "PRIMARY"}


# =============================================================
# TEST: Error handling
# =============================================================

class TestErrorWrapping:
    """Database errors surface as repository exceptions."""

    def test_operational_error_becomes_connection_error(self):
        session = MagicMock()
        original = OperationalError("SELECT 1", {}, Exception("connection lost"))
        session.execute.side_effect = original
        repository = LogicalFlowDecoratorSummaryRepository(session)

        with pytest.raises(ConnectionError) as exc_info:
            repository.summarize_for_all()

        assert exc_info.value.__cause__ is original
        assert exc_info.value.operation == "summarize_for_condition"

    def test_other_errors_become_query_errors(self):
        session = MagicMock()
        session.execute.side_effect = ProgrammingError("UPDATE", {}, Exception("bad sql"))
        repository = LogicalFlowDecoratorSummaryRepository(session)

        with pytest.raises(QueryError):
            repository.update_ratings_by_condition(PRIMARY, Eq(DecoratorField.DECORATOR_ENTITY_ID, 1))
