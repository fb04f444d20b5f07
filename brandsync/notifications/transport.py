# brandsync/notifications/transport.py
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Dict, List

logger = logging.getLogger(__name__)

ChangeHandler = Callable[[], Awaitable[None]]
Unsubscribe = Callable[[], None]


class AbstractChangeTransport(ABC):
    """
    Interface for the realtime channel that carries content-free change signals.

    Delivery is at-least-once with no ordering guarantee. Handlers are async
    zero-argument callables.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Connect to the backend, if any."""
        pass

    @abstractmethod
    async def teardown(self) -> None:
        """Stop listening and release backend resources."""
        pass

    @abstractmethod
    def subscribe(self, channel: str, handler: ChangeHandler) -> Unsubscribe:
        """
        Register ``handler`` for ``channel``.

        Returns:
            A zero-argument function removing exactly this registration
        """
        pass

    @abstractmethod
    async def publish(self, channel: str) -> None:
        """Signal every handler registered for ``channel``, in this or another process."""
        pass

    async def wait_subscribed(self) -> None:
        """Wait until registrations made so far are live on the backend."""
        return None

    def handler_count(self, channel: str) -> int:
        return 0


class InMemoryChangeTransport(AbstractChangeTransport):
    """Single-process transport; publishing awaits every registered handler."""

    def __init__(self):
        self._handlers: Dict[str, List[ChangeHandler]] = {}

    async def initialize(self) -> None:
        logger.info("InMemoryChangeTransport initialized.")

    async def teardown(self) -> None:
        self._handlers.clear()
        logger.info("InMemoryChangeTransport teardown.")

    def subscribe(self, channel: str, handler: ChangeHandler) -> Unsubscribe:
        self._handlers.setdefault(channel, []).append(handler)

        def unsubscribe() -> None:
            handlers = self._handlers.get(channel, [])
            for index, registered in enumerate(handlers):
                if registered is handler:
                    del handlers[index]
                    break
            if not handlers:
                self._handlers.pop(channel, None)

        return unsubscribe

    async def publish(self, channel: str) -> None:
        handlers = list(self._handlers.get(channel, []))
        logger.debug(f"Publishing change on '{channel}' to {len(handlers)} handler(s).")
        results = await asyncio.gather(*(handler() for handler in handlers), return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                logger.error(f"Change handler on '{channel}' failed: {result}", exc_info=result)

    def handler_count(self, channel: str) -> int:
        return len(self._handlers.get(channel, []))
