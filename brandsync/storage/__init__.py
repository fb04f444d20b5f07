# brandsync/storage/__init__.py

"""Storage module initialization.

This module owns the SQLite connection and schema used by the reference
token store.
"""

from .sqlite_base import (
    get_sqlite_db_connection,
    init_sqlite_db,
    close_sqlite_db_connection,
    open_sqlite_connection,
)

__all__ = [
    "get_sqlite_db_connection",
    "init_sqlite_db",
    "close_sqlite_db_connection",
    "open_sqlite_connection",
]
