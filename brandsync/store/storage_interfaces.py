# brandsync/store/storage_interfaces.py
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from .models import LegacyFields, TokenDocument


class AbstractTokenStore(ABC):
    """
    Abstract base class defining the persistence collaborator for token documents.

    Implementations raise ``TransientStoreError`` for recoverable backend
    failures. "Not found" is never an exception: fetches return ``None`` or an
    empty ``LegacyFields``.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the storage backend and prepare it for operations."""
        pass

    @abstractmethod
    async def teardown(self) -> None:
        """Clean up resources and properly close the storage backend."""
        pass

    @abstractmethod
    async def fetch_active_token_document(self, tenant_id: str) -> Optional[TokenDocument]:
        """
        Retrieve the single active token document of a tenant.

        Args:
            tenant_id: The tenant identifier

        Returns:
            The active document, or None if the tenant has none
        """
        pass

    @abstractmethod
    async def write_token_document(self, tenant_id: str, tokens: Dict[str, Any]) -> TokenDocument:
        """
        Persist ``tokens`` as a new version and make it the tenant's only active document.

        Args:
            tenant_id: The tenant identifier
            tokens: Full raw token payload

        Returns:
            The stored document with its assigned version
        """
        pass

    @abstractmethod
    async def fetch_legacy_fields(self, tenant_id: str) -> LegacyFields:
        """Retrieve the tenant's legacy flat fields (empty when none are stored)."""
        pass

    @abstractmethod
    async def upsert_legacy_fields(self, tenant_id: str, fields: Dict[str, Any]) -> LegacyFields:
        """Replace the tenant's legacy flat fields. Administrative seeding only."""
        pass
