"""Database layer for estimatekit application."""

from estimatekit.database.base import Database
from estimatekit.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
