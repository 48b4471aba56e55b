"""Database factory functions for creating database instances."""

import logging
import os
from pathlib import Path
from typing import Optional

from rentdesk.database.sqlalchemy_db import SQLAlchemyDatabase

logger = logging.getLogger(__name__)

DB_PATH_ENV_VAR = "RENTDESK_DB_PATH"


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, checks RENTDESK_DB_PATH
            environment variable, then defaults to ~/.rentdesk/rentdesk.db

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        database_path = os.environ.get(DB_PATH_ENV_VAR)

    if database_path is None:
        db_dir = Path.home() / ".rentdesk"
        db_dir.mkdir(exist_ok=True)
        database_path = str(db_dir / "rentdesk.db")

    logger.debug("Opening SQLite database at %s", database_path)
    return SQLAlchemyDatabase(f"sqlite:///{database_path}")
