"""Shared CLI context helpers."""

import click

from spacefin.database.base import Database
from spacefin.database.factories import create_sqlite_database


def get_database(ctx: click.Context) -> Database:
    """Return the invoice store, connecting on first use.

    Commands that never touch the store (such as reports read from a JSON
    export) leave the database file alone.
    """
    root = ctx.find_root()
    db = root.obj.get("db")
    if db is None:
        db = create_sqlite_database(database_path=root.obj.get("db_path"))
        db.connect()
        db.initialize_schema()
        root.obj["db"] = db
        root.call_on_close(db.disconnect)
    return db
