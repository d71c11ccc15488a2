"""
Storage - Id Selectors.

A selector is a single-column sub-query yielding entity ids.
Repository methods accept any such selectable; the helpers
here build the common ones.
"""

from typing import Iterable, List

from sqlalchemy import BigInteger, Integer, false, literal, select, union
from sqlalchemy.sql.expression import Selectable

from data_flow_decorator.types import FlowDirection
from storage.conditions import LOGICAL_NOT_REMOVED, Condition
from storage.models.logical_flow import LogicalFlow


ID_COLUMN = "id"

# SQLite refuses compound selects of more than 500 terms
MAX_COMPOUND_TERMS = 500


def mk_id_selector(ids: Iterable[int]) -> Selectable:
    """
    Selector over a literal set of ids.

    Duplicates are dropped. An empty id set yields a selector
    returning no rows.
    """
    unique_ids = sorted({int(i) for i in ids})
    id_type = BigInteger().with_variant(Integer(), "sqlite")

    if not unique_ids:
        return select(literal(0, id_type).label(ID_COLUMN)).where(false())

    # Ids are rendered inline, keeping large selectors clear of bind parameter limits
    selects = [
        select(literal(i, id_type, literal_execute=True).label(ID_COLUMN))
        for i in unique_ids
    ]
    return _union_in_chunks(selects)


def _union_in_chunks(selects: List[Selectable]) -> Selectable:
    """Union selects, nesting so that no single compound select grows too large."""
    if len(selects) == 1:
        return selects[0]
    if len(selects) <= MAX_COMPOUND_TERMS:
        return union(*selects)

    chunks = [
        _union_in_chunks(selects[start:start + MAX_COMPOUND_TERMS])
        for start in range(0, len(selects), MAX_COMPOUND_TERMS)
    ]
    return _union_in_chunks([
        select(chunk.subquery().c[ID_COLUMN]) for chunk in chunks
    ])


def flow_endpoint_selector(
    direction: FlowDirection,
    condition: Condition = LOGICAL_NOT_REMOVED
) -> Selectable:
    """
    Selector over flow endpoints.

    OUTBOUND selects the source ids of flows matching the
    condition, INBOUND their target ids.
    """
    if direction == FlowDirection.OUTBOUND:
        column = LogicalFlow.source_entity_id
    elif direction == FlowDirection.INBOUND:
        column = LogicalFlow.target_entity_id
    else:
        raise ValueError(f"Endpoint selector needs INBOUND or OUTBOUND, got {direction}")

    return (
        select(column.label(ID_COLUMN))
        .where(condition.to_clause())
        .distinct()
    )
