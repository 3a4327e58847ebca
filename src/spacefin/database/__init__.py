"""Database layer for spacefin application."""

from spacefin.database.base import Database
from spacefin.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
