# tests/conftest.py
import asyncio
import logging
from typing import Any, Dict, List, Optional

import pytest

from brandsync.errors import TransientStoreError
from brandsync.notifications import ChangeNotifier, InMemoryChangeTransport
from brandsync.store import InMemoryTokenStore, TokenDocument, TokenStoreClient

logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s - %(name)s - [%(levelname)s] - %(message)s",
)

TENANT = "tenant-a"


class FlakyTokenStore(InMemoryTokenStore):
    """
    In-memory store with failure injection for tests.

    ``fail_fetches`` / ``fail_writes`` count down the number of upcoming calls
    that raise ``TransientStoreError``. ``write_gate``, when set, holds every
    write until the event is set, so a test can observe an in-flight write;
    ``fetch_gate`` does the same for document fetches.
    """

    def __init__(self):
        super().__init__()
        self.fail_fetches = 0
        self.fail_writes = 0
        self.fetch_calls = 0
        self.write_calls: List[Dict[str, Any]] = []
        self.write_gate: Optional[asyncio.Event] = None
        self.fetch_gate: Optional[asyncio.Event] = None
        self.write_started: Optional[asyncio.Event] = None

    async def fetch_active_token_document(self, tenant_id: str) -> Optional[TokenDocument]:
        self.fetch_calls += 1
        if self.fetch_gate is not None:
            await self.fetch_gate.wait()
        if self.fail_fetches > 0:
            self.fail_fetches -= 1
            raise TransientStoreError("injected fetch failure", tenant_id=tenant_id)
        return await super().fetch_active_token_document(tenant_id)

    async def write_token_document(self, tenant_id: str, tokens: Dict[str, Any]) -> TokenDocument:
        self.write_calls.append(tokens)
        if self.write_started is not None:
            self.write_started.set()
        if self.write_gate is not None:
            await self.write_gate.wait()
        if self.fail_writes > 0:
            self.fail_writes -= 1
            raise TransientStoreError("injected write failure", tenant_id=tenant_id)
        return await super().write_token_document(tenant_id, tokens)


@pytest.fixture
def store() -> FlakyTokenStore:
    return FlakyTokenStore()


@pytest.fixture
def transport() -> InMemoryChangeTransport:
    return InMemoryChangeTransport()


@pytest.fixture
def notifier(transport) -> ChangeNotifier:
    return ChangeNotifier(transport, channel_prefix="test:tokens")


@pytest.fixture
def client(store, notifier) -> TokenStoreClient:
    return TokenStoreClient(store, notifier, retry_attempts=2, retry_backoff_seconds=0)


async def settle(rounds: int = 5) -> None:
    """Let scheduled tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)
