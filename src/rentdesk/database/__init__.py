"""Database layer for rentdesk application."""

from rentdesk.database.base import Database
from rentdesk.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
