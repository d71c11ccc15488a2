"""
Repository Layer Package.

============================================================
PURPOSE
============================================================
The Repository Layer is the ONLY gateway to the catalog
tables. All database access goes through repository classes.

============================================================
ARCHITECTURE PRINCIPLES
============================================================
1. DAO Pattern: One repository per domain
2. Session Injection: Sessions are injected, not created internally
3. No Commits: Transaction boundaries belong to the caller
4. Exception Handling: All DB errors wrapped in repository exceptions

============================================================
USAGE
============================================================

    from storage.database import get_db_session
    from storage.repositories import LogicalFlowDecoratorSummaryRepository
    from storage.selectors import mk_id_selector

    with get_db_session() as session:
        repo = LogicalFlowDecoratorSummaryRepository(session)
        summaries = repo.summarize_inbound_for_selector(mk_id_selector([12, 34]))

============================================================
"""

# =============================================================
# EXCEPTIONS
# =============================================================
from storage.repositories.exceptions import (
    RepositoryException,
    DuplicateRecordError,
    IntegrityError,
    ConnectionError,
    QueryError,
)

# =============================================================
# BASE REPOSITORY
# =============================================================
from storage.repositories.base import BaseRepository

# =============================================================
# LOGICAL FLOW DECORATOR REPOSITORIES
# =============================================================
from storage.repositories.logical_flow_decorator_summary import (
    LogicalFlowDecoratorSummaryRepository,
)

# =============================================================
# PUBLIC API
# =============================================================
__all__ = [
    # Exceptions
    "RepositoryException",
    "DuplicateRecordError",
    "IntegrityError",
    "ConnectionError",
    "QueryError",

    # Base
    "BaseRepository",

    # Logical flow decorators
    "LogicalFlowDecoratorSummaryRepository",
]
