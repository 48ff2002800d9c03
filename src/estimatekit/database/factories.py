"""Builders for the SQLite-backed database."""

from typing import Optional

import structlog

from estimatekit.config import Settings, default_database_path
from estimatekit.database.sqlalchemy_db import SQLAlchemyDatabase

logger = structlog.get_logger(__name__)


def create_sqlite_database(
    database_path: Optional[str] = None, settings: Optional[Settings] = None
) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    The path is taken from ``database_path``, then from the settings
    (``ESTIMATEKIT_DB_PATH``), then ``~/.estimatekit/estimatekit.db``.

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        settings = settings or Settings.from_env()
        database_path = settings.database_path or default_database_path()

    logger.debug("database_opened", path=database_path)
    return SQLAlchemyDatabase(f"sqlite:///{database_path}")
