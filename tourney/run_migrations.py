"""
Run Alembic migrations programmatically.

Safe to call on every start; Alembic is a no-op when already at head.
"""
from pathlib import Path
import logging

from alembic import command
from alembic.config import Config

from .core.config import settings

logger = logging.getLogger(__name__)


def run_migrations() -> None:
    """Upgrade the schema at settings.database_url to head."""
    # alembic.ini lives at the project root, one level above this package
    project_root = Path(__file__).resolve().parents[1]
    alembic_ini = project_root / "alembic.ini"

    if not alembic_ini.exists():
        logger.error(f"Alembic config not found at {alembic_ini}")
        raise FileNotFoundError(f"Alembic config not found at {alembic_ini}")

    cfg = Config(str(alembic_ini))
    cfg.set_main_option("script_location", str(project_root / "alembic"))
    database_url = settings.database_url
    cfg.set_main_option("sqlalchemy.url", database_url)

    logger.info(f"Running Alembic migrations to head on {database_url.split('@')[-1] if '@' in database_url else database_url}")
    try:
        command.upgrade(cfg, "head")
    except Exception as e:
        logger.error(f"Migration failed: {e}", exc_info=True)
        raise
    logger.info("Alembic migrations complete.")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    run_migrations()
