"""
Database Connection Management

Synchronous SQLAlchemy 2.0 engine and session handling for reading the
order snapshot. Reports run as a single batch, so one engine per process
is enough.
"""

from contextlib import contextmanager
from typing import Generator, Optional

import structlog
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from src.config import get_settings
from src.database.models import Base

logger = structlog.get_logger(__name__)

# Global engine and session factory
_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def init_database(url: Optional[str] = None, create_tables: bool = False) -> Engine:
    """
    Initialize the database engine.

    Args:
        url: SQLAlchemy URL; defaults to the configured sync URL
        create_tables: Create the snapshot tables if they do not exist

    Returns:
        Engine: The initialized database engine
    """
    global _engine, _session_factory

    if _engine is not None:
        logger.warning("Database already initialized")
        return _engine

    settings = get_settings()
    database_url = url or settings.database.sync_url

    _engine = create_engine(
        database_url,
        echo=settings.database.echo,
        pool_pre_ping=True,
    )
    _session_factory = sessionmaker(bind=_engine, expire_on_commit=False, autoflush=False)

    # Verify connection
    try:
        with _engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("Database connection established", dialect=_engine.dialect.name)
    except Exception as e:
        logger.error("Failed to connect to database", error=str(e))
        _engine.dispose()
        _engine = None
        _session_factory = None
        raise

    if create_tables:
        Base.metadata.create_all(_engine)
        logger.info("Snapshot tables ensured", tables=sorted(Base.metadata.tables))

    return _engine


def close_database() -> None:
    """Dispose of the engine and its pooled connections."""
    global _engine, _session_factory

    if _engine is not None:
        _engine.dispose()
        _engine = None
        _session_factory = None
        logger.info("Database connection pool closed")


def get_engine() -> Engine:
    """
    Get the database engine.

    Raises:
        RuntimeError: If database is not initialized
    """
    if _engine is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")
    return _engine


@contextmanager
def get_db(engine: Optional[Engine] = None) -> Generator[Session, None, None]:
    """
    Get a database session.

    Commits on success, rolls back on error and always closes.

    Args:
        engine: Bind to this engine instead of the initialized global one

    Example:
        with get_db() as db:
            rows = db.execute(query).all()
    """
    if engine is not None:
        session = Session(engine, expire_on_commit=False, autoflush=False)
    elif _session_factory is None:
        logger.error("Database not initialized when get_db() called")
        raise RuntimeError("Database not initialized. Call init_database() first.")
    else:
        session = _session_factory()

    try:
        yield session
        session.commit()
    except Exception as e:
        logger.error("Database session error, rolling back", error=str(e), error_type=type(e).__name__)
        session.rollback()
        raise
    finally:
        session.close()

