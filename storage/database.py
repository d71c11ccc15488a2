"""
Storage - Database.

============================================================
RESPONSIBILITY
============================================================
Manages the engine, connection pool and sessions used by the
repositories.

- Reads the database URL from the environment
- Provides connection pooling
- Provides session context managers

============================================================
CONFIGURATION
============================================================
- DATABASE_URL: SQLAlchemy URL (default: local SQLite file)
- DB_POOL_SIZE / DB_MAX_OVERFLOW / DB_POOL_TIMEOUT /
  DB_POOL_RECYCLE: pool sizing (ignored for SQLite)
- DB_ECHO: log SQL statements

============================================================
"""

import os
import logging
from contextlib import contextmanager
from typing import Generator, Optional

from dotenv import load_dotenv
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from storage.models.base import Base

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///flow_catalog.db"


# =============================================================
# DATABASE ENGINE
# =============================================================

_engine: Optional[Engine] = None
_SessionFactory: Optional[sessionmaker] = None


def get_database_url() -> str:
    """Get database URL from environment."""
    url = os.getenv("DATABASE_URL")

    if not url:
        url = DEFAULT_DATABASE_URL
        logger.warning(f"DATABASE_URL not set, using default: {url}")

    return url


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


def create_database_engine(url: Optional[str] = None) -> Engine:
    """
    Create SQLAlchemy engine with connection pooling.

    Args:
        url: Database URL, defaults to get_database_url()

    Returns:
        SQLAlchemy Engine
    """
    database_url = url or get_database_url()

    logger.info(f"Creating database engine for: {database_url.split('@')[-1]}")

    options = {"echo": _env_flag("DB_ECHO")}
    if not database_url.startswith("sqlite"):
        options.update(
            pool_size=int(os.getenv("DB_POOL_SIZE", "10")),
            max_overflow=int(os.getenv("DB_MAX_OVERFLOW", "20")),
            pool_timeout=int(os.getenv("DB_POOL_TIMEOUT", "30")),
            pool_recycle=int(os.getenv("DB_POOL_RECYCLE", "1800")),
            pool_pre_ping=True,
        )

    engine = create_engine(database_url, **options)

    @event.listens_for(engine, "checkout")
    def on_checkout(dbapi_conn, connection_record, connection_proxy):
        logger.debug("Database connection checked out from pool")

    return engine


def get_engine() -> Engine:
    """Get the process-wide engine, creating it if necessary."""
    global _engine
    if _engine is None:
        _engine = create_database_engine()
    return _engine


def get_session_factory() -> sessionmaker:
    """Get session factory, creating if necessary."""
    global _SessionFactory

    if _SessionFactory is None:
        _SessionFactory = sessionmaker(
            bind=get_engine(),
            autoflush=False,
            expire_on_commit=False,
        )

    return _SessionFactory


def reset_engine() -> None:
    """Dispose the process-wide engine; the next call recreates it."""
    global _engine, _SessionFactory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None


# =============================================================
# SESSION MANAGEMENT
# =============================================================


def get_session() -> Session:
    """
    Get a new database session.

    IMPORTANT: Caller is responsible for committing/closing.
    Prefer using get_db_session() context manager instead.
    """
    return get_session_factory()()


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """
    Context manager for database sessions with automatic cleanup.

    Usage:
        with get_db_session() as session:
            repository = LogicalFlowDecoratorSummaryRepository(session)
            repository.update_ratings_by_condition(rating, condition)
            session.commit()

    On exception the session is rolled back and the exception
    re-raised.
    """
    session = get_session()
    try:
        yield session
    except SQLAlchemyError as e:
        logger.error(f"Database error, rolling back: {e}")
        session.rollback()
        raise
    except Exception as e:
        logger.error(f"Unexpected error, rolling back: {e}")
        session.rollback()
        raise
    finally:
        session.close()


def create_all_tables(engine: Optional[Engine] = None) -> None:
    """
    Create the mirrored tables if they do not exist.

    Only meant for local and test databases; production schema
    is owned by the catalog application.
    """
    # Registers the models with Base.metadata
    from storage.models import logical_flow  # noqa: F401

    target = engine or get_engine()
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=target)
    logger.info("Database tables created successfully")
