"""
Database configuration with lazy initialization.

The engine is created on first access so the app can start (and answer
/health) before the database is reachable.
"""
import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import QueuePool

from .core.config import settings

logger = logging.getLogger(__name__)

_engine = None
_SessionLocal = None

Base = declarative_base()


def get_engine():
    """Get or create the database engine."""
    global _engine
    if _engine is None:
        db_url = settings.database_url
        db_url_safe = db_url.split("@")[-1] if "@" in db_url else db_url
        logger.info(f"[DB] Creating database engine for: {db_url_safe}")

        if db_url.startswith("sqlite"):
            # SQLite serializes writers; wait on the lock instead of failing fast
            _engine = create_engine(
                db_url,
                poolclass=QueuePool,
                pool_size=5,
                max_overflow=5,
                connect_args={"check_same_thread": False, "timeout": 30},
            )
        else:
            _engine = create_engine(
                db_url,
                poolclass=QueuePool,
                pool_size=20,
                max_overflow=10,
                pool_pre_ping=True,
                pool_recycle=3600,
            )
    return _engine


def get_session_local():
    """Get or create the SessionLocal class."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())
    return _SessionLocal


def get_db():
    """
    Dependency that provides a database session.
    Used by FastAPI's dependency injection.
    """
    session_class = get_session_local()
    db = session_class()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create all tables (local/dev/test only; production uses Alembic)."""
    from . import models  # noqa: F401  register mappers

    Base.metadata.create_all(bind=get_engine())
