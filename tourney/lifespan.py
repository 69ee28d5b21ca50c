"""
Application lifespan management for startup and shutdown events
"""
import logging
from contextlib import asynccontextmanager

from sqlalchemy import text

from .core.config import settings, validate_config
from .core.env import is_local_env, is_production_env
from .db import get_engine, init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    logger.info(f"Starting tournament backend v{settings.APP_VERSION} (ENV={settings.ENV})")

    validate_config()

    engine = get_engine()
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("Database connection verified")
    except Exception as e:
        if is_local_env():
            logger.warning(f"Database connection failed in local/dev environment: {e}")
        else:
            logger.error(f"Database connection failed: {e}")
            raise

    if is_production_env():
        # Schema is owned by Alembic outside local/dev
        from .run_migrations import run_migrations
        run_migrations()
    else:
        init_db()
        logger.info("Database tables ensured")

    yield

    logger.info("Shutting down tournament backend")
    engine.dispose()
