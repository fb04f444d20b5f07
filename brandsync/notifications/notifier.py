# brandsync/notifications/notifier.py
import logging
from typing import Optional

from ..settings import settings
from .transport import AbstractChangeTransport, ChangeHandler, Unsubscribe

logger = logging.getLogger(__name__)


class ChangeNotifier:
    """
    Per-tenant "something changed" signal on top of a change transport.

    Events carry no payload. A subscriber's failure is logged and never
    reaches the publisher or other subscribers.
    """

    def __init__(self, transport: AbstractChangeTransport, channel_prefix: Optional[str] = None):
        self._transport = transport
        self._channel_prefix = channel_prefix or settings.redis_channel_prefix

    @property
    def transport(self) -> AbstractChangeTransport:
        return self._transport

    def channel_for(self, tenant_id: str) -> str:
        if not tenant_id:
            raise ValueError("tenant_id is required to build a change channel.")
        return f"{self._channel_prefix}:{tenant_id}"

    def subscribe(self, tenant_id: str, on_change: ChangeHandler) -> Unsubscribe:
        """
        Register ``on_change`` for the tenant's channel.

        Returns:
            An idempotent function that removes this subscription
        """
        channel = self.channel_for(tenant_id)

        async def guarded() -> None:
            try:
                await on_change()
            except Exception as e:
                logger.error(f"Change subscriber for tenant '{tenant_id}' failed: {e}", exc_info=True)

        remove = self._transport.subscribe(channel, guarded)
        active = True

        def unsubscribe() -> None:
            nonlocal active
            if not active:
                return
            active = False
            remove()
            logger.debug(f"Unsubscribed a change handler from tenant '{tenant_id}'.")

        logger.debug(f"Subscribed a change handler to tenant '{tenant_id}'.")
        return unsubscribe

    async def publish(self, tenant_id: str) -> None:
        """Signal every subscriber of the tenant."""
        await self._transport.publish(self.channel_for(tenant_id))

    async def wait_subscribed(self) -> None:
        await self._transport.wait_subscribed()

    def subscriber_count(self, tenant_id: str) -> int:
        return self._transport.handler_count(self.channel_for(tenant_id))
