# brandsync/storage/sqlite_base.py
import sqlite3
import logging
from pathlib import Path
from typing import Optional, Union

from ..settings import settings

logger = logging.getLogger(__name__)

# Global connection instance to ensure single connection per application lifecycle
_db_connection: Optional[sqlite3.Connection] = None


def open_sqlite_connection(db_path: Union[str, Path]) -> sqlite3.Connection:
    """
    Open a SQLite connection configured the way every store expects.

    The parent directory is created when missing. Rows are returned as
    ``sqlite3.Row`` so columns can be read by name.
    """
    resolved_path = Path(db_path).resolve()
    resolved_path.parent.mkdir(parents=True, exist_ok=True)
    logger.info(f"Attempting to connect to SQLite DB at: {resolved_path}")
    # Enable access from the event loop's worker threads
    conn = sqlite3.connect(str(resolved_path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    logger.info(f"Successfully connected to SQLite DB: {resolved_path}")
    return conn


async def get_sqlite_db_connection() -> sqlite3.Connection:
    """
    Get or create the process-wide SQLite connection.

    The schema is initialized on first connection.

    Returns:
        sqlite3.Connection: The database connection instance

    Raises:
        sqlite3.Error: If database connection fails
    """
    global _db_connection
    if _db_connection is None:
        try:
            _db_connection = open_sqlite_connection(settings.sqlite_db_path)
            await init_sqlite_db(_db_connection)
        except sqlite3.Error as e:
            logger.error(
                f"Error connecting to SQLite database at {settings.sqlite_db_path}: {e}",
                exc_info=True
            )
            _db_connection = None
            raise
    return _db_connection


async def init_sqlite_db(conn: Optional[sqlite3.Connection] = None):
    """
    Create the token document and legacy field tables.

    Uses IF NOT EXISTS so repeated initialization is harmless.

    Args:
        conn: Optional database connection. If None, uses the global connection.
    """
    db_conn = conn or await get_sqlite_db_connection()
    cursor = db_conn.cursor()

    # Versioned design token documents; at most one active row per tenant
    cursor.execute('''
    CREATE TABLE IF NOT EXISTS design_tokens (
        tenant_id TEXT NOT NULL,
        version INTEGER NOT NULL,
        tokens_json TEXT NOT NULL,
        is_active INTEGER NOT NULL DEFAULT 0,
        updated_at TEXT NOT NULL,
        PRIMARY KEY (tenant_id, version)
    )
    ''')
    cursor.execute('''
    CREATE INDEX IF NOT EXISTS idx_design_tokens_active
    ON design_tokens (tenant_id, is_active)
    ''')
    logger.info("Ensured 'design_tokens' table exists.")

    # Flat per-tenant settings predating token documents
    cursor.execute('''
    CREATE TABLE IF NOT EXISTS legacy_tenant_fields (
        tenant_id TEXT PRIMARY KEY,
        fields_json TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    ''')
    logger.info("Ensured 'legacy_tenant_fields' table exists.")

    db_conn.commit()
    logger.info("SQLite database schema initialized/verified.")


async def close_sqlite_db_connection():
    """Close the global SQLite connection, if one is open."""
    global _db_connection
    if _db_connection is not None:
        logger.info("Closing SQLite DB connection.")
        _db_connection.close()
        _db_connection = None
        logger.info("SQLite DB connection closed.")
