"""
Alembic helpers shared by application startup and the maintenance CLI.
"""
import logging
from pathlib import Path

from alembic import command
from alembic.config import Config

from app.core.config import get_settings

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def get_alembic_config() -> Config:
    """Alembic config pointing at this project's migrations and database."""
    settings = get_settings()
    alembic_cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", settings.sqlalchemy_database_uri)
    # Startup already configured logging; env.py must not replace it
    alembic_cfg.attributes["configure_logger"] = False
    return alembic_cfg


def run_migrations(revision: str = "head") -> None:
    """Upgrade the database schema to the given revision."""
    logger.info(f"[MIGRATION] Applying Alembic migrations up to {revision}...")
    command.upgrade(get_alembic_config(), revision)
    logger.info("[MIGRATION] Alembic migrations completed (or already up-to-date)")
