# brandsync/store/memory_token_store.py
import asyncio
import copy
import logging
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone

from .storage_interfaces import AbstractTokenStore
from .models import LegacyFields, TokenDocument

logger = logging.getLogger(__name__)


class InMemoryTokenStore(AbstractTokenStore):
    """
    Process-local token store with the same versioning rules as the SQLite store.

    Documents are deep-copied on the way in and out so callers can never
    mutate stored state.
    """

    def __init__(self):
        self._documents: Dict[str, List[TokenDocument]] = {}
        self._legacy: Dict[str, Dict[str, Any]] = {}
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        logger.info("InMemoryTokenStore initialized.")

    async def teardown(self) -> None:
        logger.info("InMemoryTokenStore teardown.")

    async def fetch_active_token_document(self, tenant_id: str) -> Optional[TokenDocument]:
        async with self._lock:
            active = [doc for doc in self._documents.get(tenant_id, []) if doc.is_active]
        if not active:
            return None
        newest = max(active, key=lambda doc: doc.version)
        return newest.model_copy(update={"tokens": copy.deepcopy(newest.tokens)})

    async def write_token_document(self, tenant_id: str, tokens: Dict[str, Any]) -> TokenDocument:
        async with self._lock:
            history = self._documents.setdefault(tenant_id, [])
            next_version = max((doc.version for doc in history), default=0) + 1
            history[:] = [
                doc.model_copy(update={"is_active": False}) if doc.is_active else doc
                for doc in history
            ]
            document = TokenDocument(
                tenant_id=tenant_id,
                version=next_version,
                tokens=copy.deepcopy(tokens),
                is_active=True,
                updated_at=datetime.now(timezone.utc),
            )
            history.append(document)
        logger.debug(f"Stored in-memory token document version {next_version} for tenant '{tenant_id}'.")
        return document.model_copy(update={"tokens": copy.deepcopy(document.tokens)})

    async def fetch_legacy_fields(self, tenant_id: str) -> LegacyFields:
        async with self._lock:
            fields = copy.deepcopy(self._legacy.get(tenant_id, {}))
        return LegacyFields(tenant_id=tenant_id, fields=fields)

    async def upsert_legacy_fields(self, tenant_id: str, fields: Dict[str, Any]) -> LegacyFields:
        async with self._lock:
            self._legacy[tenant_id] = copy.deepcopy(fields)
        return LegacyFields(tenant_id=tenant_id, fields=copy.deepcopy(fields))
