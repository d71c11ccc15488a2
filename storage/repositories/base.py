"""
Base Repository Class.

============================================================
PURPOSE
============================================================
Provides common functionality for all repositories including:
- Session injection
- Error wrapping
- Statement execution helpers
- Logging setup

============================================================
USAGE
============================================================
Domain repositories inherit from BaseRepository. The session
is injected via the constructor; repositories never commit,
transaction boundaries belong to the caller.

============================================================
"""

import logging
from abc import ABC
from typing import Any, NoReturn, Optional, Sequence

from sqlalchemy import Row
from sqlalchemy.exc import (
    IntegrityError as SQLAlchemyIntegrityError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.orm import Session

from storage.repositories.exceptions import (
    ConnectionError,
    DuplicateRecordError,
    IntegrityError,
    QueryError,
)


class BaseRepository(ABC):
    """
    Abstract base class for all repositories.

    ============================================================
    RESPONSIBILITIES
    ============================================================
    - Holds the injected session
    - Wraps database errors in repository exceptions
    - Manages logging for all operations

    ============================================================
    USAGE
    ============================================================
    class MyRepository(BaseRepository):
        def __init__(self, session: Session):
            super().__init__(session, "MyRepository")

    ============================================================
    """

    def __init__(self, session: Session, repository_name: str) -> None:
        """
        Initialize the repository.

        Args:
            session: SQLAlchemy session (injected)
            repository_name: Name for logging and error messages

        Raises:
            ValueError: If session is None
        """
        if session is None:
            raise ValueError("session cannot be None")

        self._session = session
        self._repository_name = repository_name
        self._logger = logging.getLogger(f"repository.{repository_name}")

    @property
    def session(self) -> Session:
        """Get the current session."""
        return self._session

    @property
    def repository_name(self) -> str:
        """Get the repository name."""
        return self._repository_name

    # =========================================================
    # PROTECTED HELPER METHODS
    # =========================================================

    def _handle_db_error(
        self,
        error: SQLAlchemyError,
        operation: str,
        context: Optional[dict] = None
    ) -> NoReturn:
        """
        Log a database error and re-raise it as a repository exception.

        Args:
            error: The original exception
            operation: Name of the operation that failed
            context: Additional context for logging

        Raises:
            RepositoryException: Always, chained to the original error
        """
        context = context or {}
        self._logger.error(
            f"Database error in {operation}: {error}",
            extra={"context": context},
            exc_info=True
        )

        if isinstance(error, OperationalError):
            raise ConnectionError(
                repository_name=self._repository_name,
                operation=operation,
                original_error=str(error)
            ) from error

        if isinstance(error, SQLAlchemyIntegrityError):
            error_str = str(error).lower()
            if "duplicate" in error_str or "unique" in error_str:
                raise DuplicateRecordError(
                    repository_name=self._repository_name,
                    operation=operation,
                    original_error=str(error)
                ) from error

            raise IntegrityError(
                repository_name=self._repository_name,
                operation=operation,
                original_error=str(error)
            ) from error

        raise QueryError(
            repository_name=self._repository_name,
            operation=operation,
            original_error=str(error)
        ) from error

    def _fetch_rows(self, stmt: Any, operation: str) -> Sequence[Row]:
        """
        Execute a select statement and return all result rows.

        Args:
            stmt: SQLAlchemy select statement
            operation: Operation name for logging and errors

        Returns:
            Result rows
        """
        try:
            return self._session.execute(stmt).all()
        except SQLAlchemyError as e:
            self._handle_db_error(e, operation)

    def _execute_dml(self, stmt: Any, operation: str, context: Optional[dict] = None) -> int:
        """
        Execute an update or delete statement.

        The session is neither flushed beforehand nor committed
        afterwards.

        Args:
            stmt: SQLAlchemy update/delete statement
            operation: Operation name for logging and errors
            context: Additional context for logging

        Returns:
            Number of affected rows
        """
        try:
            result = self._session.execute(
                stmt,
                execution_options={"synchronize_session": False},
            )
        except SQLAlchemyError as e:
            self._handle_db_error(e, operation, context)

        affected = result.rowcount
        self._logger.info(
            f"{operation}: {affected} row(s) affected",
            extra={"context": context or {}}
        )
        return affected
