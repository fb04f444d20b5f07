# brandsync/store/sqlite_token_store.py
import sqlite3
import logging
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from datetime import datetime, timezone

from .storage_interfaces import AbstractTokenStore
from .models import LegacyFields, TokenDocument
from ..errors import TransientStoreError
from ..storage.sqlite_base import get_sqlite_db_connection, init_sqlite_db, open_sqlite_connection

logger = logging.getLogger(__name__)


class SQLiteTokenStore(AbstractTokenStore):
    """
    SQLite implementation of the token store.

    Uses the process-wide connection unless ``db_path`` is given, in which
    case the store owns a private connection to that file.
    """

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        self._db_path = db_path
        self._own_connection: Optional[sqlite3.Connection] = None

    async def initialize(self) -> None:
        """Ensure the database and tables exist."""
        try:
            if self._db_path is not None:
                if self._own_connection is None:
                    self._own_connection = open_sqlite_connection(self._db_path)
                await init_sqlite_db(self._own_connection)
            else:
                await get_sqlite_db_connection()
        except sqlite3.Error as e:
            raise TransientStoreError(f"Could not open token store: {e}") from e
        logger.info("SQLiteTokenStore initialized.")

    async def teardown(self) -> None:
        """Close a private connection. The global connection is managed elsewhere."""
        if self._own_connection is not None:
            self._own_connection.close()
            self._own_connection = None
            logger.info("SQLiteTokenStore private connection closed.")
        else:
            logger.info("SQLiteTokenStore teardown (connection managed globally).")

    async def _get_connection(self) -> sqlite3.Connection:
        if self._db_path is not None:
            if self._own_connection is None:
                await self.initialize()
            return self._own_connection
        return await get_sqlite_db_connection()

    async def _execute_query(self, query: str, params: tuple = (), commit: bool = True) -> sqlite3.Cursor:
        """
        Execute a SQL query, translating backend failures into ``TransientStoreError``.

        Args:
            query: SQL query string
            params: Query parameters tuple
            commit: Whether to commit the transaction

        Returns:
            sqlite3.Cursor: The cursor after query execution
        """
        try:
            conn = await self._get_connection()
            cursor = conn.cursor()
            cursor.execute(query, params)
            if commit:
                conn.commit()
        except sqlite3.Error as e:
            logger.error(f"SQLite error executing query '{query}': {e}", exc_info=True)
            if commit and self._connection_is_open():
                (await self._get_connection()).rollback()
            raise TransientStoreError(f"Token store query failed: {e}") from e
        return cursor

    def _connection_is_open(self) -> bool:
        return self._db_path is None or self._own_connection is not None

    async def _fetchone(self, query: str, params: tuple = ()) -> Optional[sqlite3.Row]:
        cursor = await self._execute_query(query, params, commit=False)
        return cursor.fetchone()

    async def _fetchall(self, query: str, params: tuple = ()) -> List[sqlite3.Row]:
        cursor = await self._execute_query(query, params, commit=False)
        return cursor.fetchall()

    def _row_to_token_document(self, row: sqlite3.Row) -> TokenDocument:
        """
        Convert a ``design_tokens`` row into a TokenDocument.

        A row whose JSON does not decode to a mapping yields an empty token
        blob; the resolver then falls back to legacy fields and defaults.
        """
        updated_at = row["updated_at"]
        if isinstance(updated_at, str):
            updated_at = datetime.fromisoformat(updated_at.replace("Z", "+00:00"))

        try:
            tokens = json.loads(row["tokens_json"]) if row["tokens_json"] else {}
        except json.JSONDecodeError:
            logger.warning(
                f"Undecodable tokens_json for tenant '{row['tenant_id']}' version {row['version']}; "
                f"treating it as empty."
            )
            tokens = {}
        if not isinstance(tokens, dict):
            tokens = {}

        return TokenDocument(
            tenant_id=row["tenant_id"],
            version=row["version"],
            tokens=tokens,
            is_active=bool(row["is_active"]),
            updated_at=updated_at,
        )

    async def fetch_active_token_document(self, tenant_id: str) -> Optional[TokenDocument]:
        """Return the tenant's active document, preferring the newest if several are active."""
        query = """
            SELECT tenant_id, version, tokens_json, is_active, updated_at
            FROM design_tokens
            WHERE tenant_id = ? AND is_active = 1
            ORDER BY version DESC
        """
        rows = await self._fetchall(query, (tenant_id,))
        if not rows:
            logger.debug(f"No active token document for tenant '{tenant_id}'.")
            return None
        if len(rows) > 1:
            logger.warning(
                f"Tenant '{tenant_id}' has {len(rows)} active token documents; "
                f"using version {rows[0]['version']}."
            )
        return self._row_to_token_document(rows[0])

    async def write_token_document(self, tenant_id: str, tokens: Dict[str, Any]) -> TokenDocument:
        """
        Insert ``tokens`` as the next version and deactivate every older version.

        Both statements run in one transaction, so readers never observe zero
        or two active documents.
        """
        updated_at_dt = datetime.now(timezone.utc)
        tokens_str = json.dumps(tokens)

        try:
            conn = await self._get_connection()
            cursor = conn.cursor()
            cursor.execute(
                "SELECT COALESCE(MAX(version), 0) AS max_version FROM design_tokens WHERE tenant_id = ?",
                (tenant_id,),
            )
            next_version = cursor.fetchone()["max_version"] + 1
            cursor.execute(
                "UPDATE design_tokens SET is_active = 0 WHERE tenant_id = ? AND is_active = 1",
                (tenant_id,),
            )
            cursor.execute(
                """
                INSERT INTO design_tokens (tenant_id, version, tokens_json, is_active, updated_at)
                VALUES (?, ?, ?, 1, ?)
                """,
                (tenant_id, next_version, tokens_str, updated_at_dt.isoformat()),
            )
            conn.commit()
        except sqlite3.Error as e:
            logger.error(f"SQLite error writing token document for tenant '{tenant_id}': {e}", exc_info=True)
            if self._connection_is_open():
                (await self._get_connection()).rollback()
            raise TransientStoreError(f"Could not write token document: {e}", tenant_id=tenant_id) from e

        logger.info(f"Stored token document version {next_version} for tenant '{tenant_id}'.")
        return TokenDocument(
            tenant_id=tenant_id,
            version=next_version,
            tokens=json.loads(tokens_str),
            is_active=True,
            updated_at=updated_at_dt,
        )

    async def list_token_documents(self, tenant_id: str) -> List[TokenDocument]:
        """All stored versions of a tenant, newest first."""
        query = """
            SELECT tenant_id, version, tokens_json, is_active, updated_at
            FROM design_tokens
            WHERE tenant_id = ?
            ORDER BY version DESC
        """
        rows = await self._fetchall(query, (tenant_id,))
        return [self._row_to_token_document(row) for row in rows]

    async def fetch_legacy_fields(self, tenant_id: str) -> LegacyFields:
        query = "SELECT fields_json FROM legacy_tenant_fields WHERE tenant_id = ?"
        row = await self._fetchone(query, (tenant_id,))
        if not row:
            return LegacyFields(tenant_id=tenant_id)
        try:
            fields = json.loads(row["fields_json"]) if row["fields_json"] else {}
        except json.JSONDecodeError:
            logger.warning(f"Undecodable legacy fields for tenant '{tenant_id}'; treating them as empty.")
            fields = {}
        if not isinstance(fields, dict):
            fields = {}
        return LegacyFields(tenant_id=tenant_id, fields=fields)

    async def upsert_legacy_fields(self, tenant_id: str, fields: Dict[str, Any]) -> LegacyFields:
        query = """
            INSERT INTO legacy_tenant_fields (tenant_id, fields_json, updated_at)
            VALUES (?, ?, ?)
            ON CONFLICT(tenant_id) DO UPDATE SET
                fields_json = excluded.fields_json,
                updated_at = excluded.updated_at
        """
        params = (tenant_id, json.dumps(fields), datetime.now(timezone.utc).isoformat())
        await self._execute_query(query, params)
        logger.info(f"Stored {len(fields)} legacy field(s) for tenant '{tenant_id}'.")
        return LegacyFields(tenant_id=tenant_id, fields=fields)


# Singleton instance management
_sqlite_token_store_instance: Optional[SQLiteTokenStore] = None


async def get_sqlite_token_store() -> SQLiteTokenStore:
    """Get or create the singleton SQLiteTokenStore bound to the global connection."""
    global _sqlite_token_store_instance
    if _sqlite_token_store_instance is None:
        _sqlite_token_store_instance = SQLiteTokenStore()
        await _sqlite_token_store_instance.initialize()
    return _sqlite_token_store_instance
