"""
Logical Flow Decorator Summary Repository.

============================================================
PURPOSE
============================================================
Aggregates logical flow decorators into rating summaries and
groups flow ids by data type and direction. Also carries the
bulk decorator mutations used by rating recalculation.

============================================================
REMOVED FLOWS
============================================================
A flow whose lifecycle status is REMOVED, or whose is_removed
flag is set, never contributes to a summary or a grouping.

============================================================
TRANSACTIONS
============================================================
Mutations run in the injected session and are not committed.
Atomicity across calls is the caller's responsibility.

============================================================
"""

import warnings
from typing import Dict, List

from sqlalchemy import and_, case, delete, func, literal, or_, select, update
from sqlalchemy.orm import Session
from sqlalchemy.sql.expression import Selectable

from data_flow_decorator.types import (
    AuthoritativenessRating,
    DataTypeDirectionKey,
    DecoratorRatingSummary,
    EntityKind,
    EntityReference,
    FlowDirection,
)
from storage.conditions import (
    LOGICAL_NOT_REMOVED,
    Condition,
    In,
    LogicalFlowField,
)
from storage.models.logical_flow import LogicalFlow, LogicalFlowDecorator
from storage.repositories.base import BaseRepository


lf = LogicalFlow.__table__.alias("lf")
lfd = LogicalFlowDecorator.__table__.alias("lfd")


class LogicalFlowDecoratorSummaryRepository(BaseRepository):
    """
    Repository for decorator statistics.

    ============================================================
    OPERATIONS
    ============================================================
    - summarize_inbound_for_selector: by flow target
    - summarize_outbound_for_selector: by flow source
    - summarize_for_all: every live flow
    - summarize_for_condition: arbitrary flow/decorator condition
    - logical_flow_ids_by_type_and_direction
    - update_ratings_by_condition
    - remove_decorators_for_flow
    - remove_all_decorators_for_flow_ids (deprecated)

    ============================================================
    """

    def __init__(self, session: Session) -> None:
        super().__init__(session, "LogicalFlowDecoratorSummaryRepository")

    # =========================================================
    # STATS
    # =========================================================

    def summarize_inbound_for_selector(
        self,
        selector: Selectable
    ) -> List[DecoratorRatingSummary]:
        """Summarize decorators on live flows whose target is selected."""
        condition = In(LogicalFlowField.TARGET_ENTITY_ID, selector) & LOGICAL_NOT_REMOVED
        return self.summarize_for_condition(condition)

    def summarize_outbound_for_selector(
        self,
        selector: Selectable
    ) -> List[DecoratorRatingSummary]:
        """Summarize decorators on live flows whose source is selected."""
        condition = In(LogicalFlowField.SOURCE_ENTITY_ID, selector) & LOGICAL_NOT_REMOVED
        return self.summarize_for_condition(condition)

    def summarize_for_all(self) -> List[DecoratorRatingSummary]:
        """Summarize decorators across every live flow."""
        return self.summarize_for_condition(LOGICAL_NOT_REMOVED)

    def summarize_for_condition(self, condition: Condition) -> List[DecoratorRatingSummary]:
        """
        Count decorators per (kind, id, rating) over flows matching a condition.

        The condition may reference both the logical_flow and
        logical_flow_decorator tables. It is applied as given;
        callers wanting live flows only must include
        LOGICAL_NOT_REMOVED themselves.

        Args:
            condition: Filter over the joined tables

        Returns:
            One summary per distinct decorator entity and rating
        """
        decorator = LogicalFlowDecorator.__table__
        flow = LogicalFlow.__table__

        grouping_fields = [
            decorator.c.decorator_entity_kind,
            decorator.c.decorator_entity_id,
            decorator.c.rating,
        ]
        count_field = func.count(decorator.c.decorator_entity_id).label("count")

        stmt = (
            select(*grouping_fields, count_field)
            .select_from(decorator)
            .join(flow, flow.c.id == decorator.c.logical_flow_id)
            .where(condition.to_clause())
            .group_by(*grouping_fields)
        )

        rows = self._fetch_rows(stmt, "summarize_for_condition")

        return [
            DecoratorRatingSummary(
                decorator_entity_reference=EntityReference.mk_ref(
                    EntityKind(kind),
                    entity_id,
                ),
                rating=AuthoritativenessRating(rating),
                count=count,
            )
            for kind, entity_id, rating, count in rows
        ]

    def logical_flow_ids_by_type_and_direction(
        self,
        selector: Selectable
    ) -> Dict[DataTypeDirectionKey, List[int]]:
        """
        Group live flow ids by data type decorator and direction.

        Direction is judged against the selected ids: INTRA when
        both ends are selected, OUTBOUND when only the source is,
        INBOUND otherwise. Flows touching no selected id are
        excluded.

        Args:
            selector: Single-column selectable of entity ids

        Returns:
            Flow ids per (data type id, direction), in result order

        Raises:
            ValueError: If selector is None
        """
        if selector is None:
            raise ValueError("selector cannot be None")

        source_app = selector.subquery("source_app")
        target_app = selector.subquery("target_app")
        source_app_id = source_app.c[0]
        target_app_id = target_app.c[0]

        flow_type = case(
            (
                and_(source_app_id.is_not(None), target_app_id.is_not(None)),
                literal(FlowDirection.INTRA.value),
            ),
            (source_app_id.is_not(None), literal(FlowDirection.OUTBOUND.value)),
            else_=literal(FlowDirection.INBOUND.value),
        ).label("flow_type")

        condition = and_(
            or_(source_app_id.is_not(None), target_app_id.is_not(None)),
            LOGICAL_NOT_REMOVED.to_clause({LogicalFlow.__tablename__: lf}),
        )

        stmt = (
            select(lfd.c.decorator_entity_id, flow_type, lf.c.id)
            .select_from(lf)
            .join(
                lfd,
                and_(
                    lf.c.id == lfd.c.logical_flow_id,
                    lfd.c.decorator_entity_kind == EntityKind.DATA_TYPE.value,
                ),
            )
            .outerjoin(source_app, source_app_id == lf.c.source_entity_id)
            .outerjoin(target_app, target_app_id == lf.c.target_entity_id)
            .where(condition)
        )

        rows = self._fetch_rows(stmt, "logical_flow_ids_by_type_and_direction")

        grouped: Dict[DataTypeDirectionKey, List[int]] = {}
        for data_type_id, flow_type_name, flow_id in rows:
            key = DataTypeDirectionKey.mk_key(data_type_id, FlowDirection(flow_type_name))
            grouped.setdefault(key, []).append(flow_id)
        return grouped

    # =========================================================
    # MUTATIONS
    # =========================================================

    def update_ratings_by_condition(
        self,
        rating: AuthoritativenessRating,
        condition: Condition
    ) -> int:
        """
        Set the rating of every decorator matching a condition.

        The condition may reference both the logical_flow and
        logical_flow_decorator tables. Each decorator row is
        tested together with its own flow only.

        Args:
            rating: New rating
            condition: Filter over decorator rows and their flows

        Returns:
            Number of updated rows
        """
        decorator = LogicalFlowDecorator.__table__
        flow = LogicalFlow.__table__

        matching_flow = (
            select(flow.c.id)
            .where(flow.c.id == decorator.c.logical_flow_id)
            .where(condition.to_clause())
            .correlate(decorator)
            .exists()
        )

        stmt = (
            update(LogicalFlowDecorator)
            .where(matching_flow)
            .values(rating=AuthoritativenessRating(rating).value)
        )
        return self._execute_dml(
            stmt,
            "update_ratings_by_condition",
            {"rating": AuthoritativenessRating(rating).value},
        )

    def remove_decorators_for_flow(self, flow_id: int) -> int:
        """
        Delete every decorator of a single flow.

        Returns:
            Number of deleted rows
        """
        stmt = delete(LogicalFlowDecorator).where(
            LogicalFlowDecorator.logical_flow_id == flow_id
        )
        return self._execute_dml(stmt, "remove_decorators_for_flow", {"flow_id": flow_id})

    def remove_all_decorators_for_flow_ids(self, flow_ids: List[int]) -> int:
        """
        Delete every decorator of the given flows, unconditionally.

        Deprecated: use remove_decorators_for_flow. The bulk
        semantics are kept unchanged for existing callers.

        Returns:
            Number of deleted rows
        """
        warnings.warn(
            "remove_all_decorators_for_flow_ids is deprecated, "
            "use remove_decorators_for_flow",
            DeprecationWarning,
            stacklevel=2,
        )
        flow_ids = list(flow_ids)
        stmt = delete(LogicalFlowDecorator).where(
            LogicalFlowDecorator.logical_flow_id.in_(flow_ids)
        )
        return self._execute_dml(
            stmt,
            "remove_all_decorators_for_flow_ids",
            {"flow_count": len(flow_ids)},
        )
