# brandsync/store/client.py
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, TypeVar

from ..errors import ChangeTransportError, TransientStoreError
from ..notifications.notifier import ChangeNotifier
from ..settings import settings
from .models import LegacyFields, TokenDocument
from .storage_interfaces import AbstractTokenStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TokenStoreClient:
    """
    Thin client over the token store that knows nothing about merge semantics.

    Reads are retried with exponential backoff on ``TransientStoreError``.
    Writes are attempted once; after a successful write the tenant's change
    channel is signalled.
    """

    def __init__(
        self,
        store: AbstractTokenStore,
        notifier: ChangeNotifier,
        retry_attempts: Optional[int] = None,
        retry_backoff_seconds: Optional[float] = None,
    ):
        self.store = store
        self.notifier = notifier
        self.retry_attempts = max(1, retry_attempts if retry_attempts is not None else settings.fetch_retry_attempts)
        self.retry_backoff_seconds = (
            retry_backoff_seconds if retry_backoff_seconds is not None else settings.fetch_retry_backoff_seconds
        )

    async def _with_retry(self, operation: Callable[[], Awaitable[T]], description: str) -> T:
        delay = self.retry_backoff_seconds
        for attempt in range(1, self.retry_attempts + 1):
            try:
                return await operation()
            except TransientStoreError as e:
                if attempt == self.retry_attempts:
                    logger.warning(f"{description} failed after {attempt} attempt(s): {e.detail}")
                    raise
                logger.info(f"{description} failed (attempt {attempt}/{self.retry_attempts}); retrying in {delay}s.")
                await asyncio.sleep(delay)
                delay *= 2
        raise TransientStoreError(f"{description} was not attempted.")

    async def fetch_active_document(self, tenant_id: str) -> Optional[TokenDocument]:
        return await self._with_retry(
            lambda: self.store.fetch_active_token_document(tenant_id),
            f"Fetching active token document for tenant '{tenant_id}'",
        )

    async def fetch_legacy_fields(self, tenant_id: str) -> LegacyFields:
        return await self._with_retry(
            lambda: self.store.fetch_legacy_fields(tenant_id),
            f"Fetching legacy fields for tenant '{tenant_id}'",
        )

    async def fetch_resolution_inputs(self, tenant_id: str) -> Tuple[LegacyFields, Optional[TokenDocument]]:
        """Fetch both inputs a surface needs to resolve a theme."""
        legacy = await self.fetch_legacy_fields(tenant_id)
        document = await self.fetch_active_document(tenant_id)
        return legacy, document

    async def write_document(self, tenant_id: str, tokens: Dict[str, Any]) -> TokenDocument:
        """
        Store ``tokens`` as the tenant's new active document, then signal subscribers.

        Raises:
            TransientStoreError: If the store rejects the write. No signal is sent.
        """
        document = await self.store.write_token_document(tenant_id, tokens)
        try:
            await self.notifier.publish(tenant_id)
        except ChangeTransportError as e:
            # The write stands; surfaces catch up on the next signal
            logger.error(
                f"Stored version {document.version} for tenant '{tenant_id}' but could not signal it: {e.detail}"
            )
        return document
