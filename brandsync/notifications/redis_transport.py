# brandsync/notifications/redis_transport.py
import asyncio
import logging
from typing import Any, Coroutine, Dict, List, Optional, Set

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from ..errors import ChangeTransportError
from ..settings import settings
from .transport import AbstractChangeTransport, ChangeHandler, Unsubscribe

logger = logging.getLogger(__name__)


class RedisChangeTransport(AbstractChangeTransport):
    """
    Cross-process change transport over Redis pub/sub.

    One pub/sub connection and one listener task serve every channel this
    process subscribes to. Messages carry a fixed marker; receivers re-fetch
    state, they never read it from the message.
    """

    CHANGE_MARKER: bytes = b"changed"

    def __init__(self, redis_client: Optional[aioredis.Redis] = None):
        self._redis_client = redis_client
        self._owns_client = redis_client is None
        self._pubsub: Optional[aioredis.client.PubSub] = None
        self._handlers: Dict[str, List[ChangeHandler]] = {}
        self._listener_task: Optional[asyncio.Task] = None
        self._pending: Set[asyncio.Task] = set()
        self._dispatching: Set[asyncio.Task] = set()

    async def initialize(self) -> None:
        """Connect to Redis using global settings unless a client was injected."""
        if self._pubsub is not None:
            logger.warning("RedisChangeTransport already initialized. Skipping re-initialization.")
            return

        if self._redis_client is None:
            connection_params = {
                "host": settings.redis_host,
                "port": settings.redis_port,
                "db": settings.redis_db,
                "decode_responses": False,
            }
            if settings.redis_password:
                connection_params["password"] = settings.redis_password
            logger.info(
                f"Connecting change transport to Redis at {connection_params['host']}:"
                f"{connection_params['port']}, DB: {connection_params['db']}"
            )
            self._redis_client = aioredis.Redis(**connection_params)

        try:
            await self._redis_client.ping()
        except RedisError as e:
            logger.error(f"Failed to connect to Redis: {e}", exc_info=True)
            if self._owns_client:
                self._redis_client = None
            raise ChangeTransportError(f"Redis is unreachable: {e}") from e

        self._pubsub = self._redis_client.pubsub(ignore_subscribe_messages=True)
        logger.info("RedisChangeTransport connected and pinged.")

    async def teardown(self) -> None:
        if self._listener_task is not None:
            self._listener_task.cancel()
            try:
                await self._listener_task
            except asyncio.CancelledError:
                pass
            self._listener_task = None
        for task in list(self._pending | self._dispatching):
            task.cancel()
        self._handlers.clear()
        if self._pubsub is not None:
            await self._pubsub.aclose()
            self._pubsub = None
        if self._redis_client is not None and self._owns_client:
            await self._redis_client.aclose()
            self._redis_client = None
        logger.info("RedisChangeTransport closed.")

    def _require_pubsub(self) -> aioredis.client.PubSub:
        if self._pubsub is None:
            raise ChangeTransportError("RedisChangeTransport not initialized. Call initialize() first.")
        return self._pubsub

    def _spawn(self, coro: Coroutine[Any, Any, None], bucket: Set[asyncio.Task]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        bucket.add(task)
        task.add_done_callback(bucket.discard)

    def subscribe(self, channel: str, handler: ChangeHandler) -> Unsubscribe:
        self._require_pubsub()
        handlers = self._handlers.setdefault(channel, [])
        handlers.append(handler)
        if len(handlers) == 1:
            self._spawn(self._backend_subscribe(channel), self._pending)

        def unsubscribe() -> None:
            registered = self._handlers.get(channel, [])
            for index, candidate in enumerate(registered):
                if candidate is handler:
                    del registered[index]
                    break
            if not registered and channel in self._handlers:
                del self._handlers[channel]
                self._spawn(self._backend_unsubscribe(channel), self._pending)

        return unsubscribe

    async def _backend_subscribe(self, channel: str) -> None:
        pubsub = self._require_pubsub()
        try:
            await pubsub.subscribe(channel)
        except RedisError as e:
            logger.error(f"Redis subscribe to '{channel}' failed: {e}", exc_info=True)
            return
        logger.debug(f"Subscribed to Redis channel '{channel}'.")
        if self._listener_task is None or self._listener_task.done():
            self._listener_task = asyncio.get_running_loop().create_task(self._listen())

    async def _backend_unsubscribe(self, channel: str) -> None:
        if self._pubsub is None or channel in self._handlers:
            return
        try:
            await self._pubsub.unsubscribe(channel)
        except RedisError as e:
            logger.warning(f"Redis unsubscribe from '{channel}' failed: {e}")

    async def _listen(self) -> None:
        """Dispatch every incoming message to the channel's handlers until no channel is left."""
        pubsub = self._require_pubsub()
        try:
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                channel = message["channel"]
                if isinstance(channel, bytes):
                    channel = channel.decode("utf-8")
                for handler in list(self._handlers.get(channel, [])):
                    self._spawn(self._run_handler(channel, handler), self._dispatching)
        except RedisError as e:
            logger.error(f"Redis change listener stopped: {e}", exc_info=True)

    async def _run_handler(self, channel: str, handler: ChangeHandler) -> None:
        try:
            await handler()
        except Exception as e:
            logger.error(f"Change handler on '{channel}' failed: {e}", exc_info=True)

    async def wait_subscribed(self) -> None:
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def publish(self, channel: str) -> None:
        if self._redis_client is None:
            raise ChangeTransportError("RedisChangeTransport not initialized. Call initialize() first.")
        try:
            receivers = await self._redis_client.publish(channel, self.CHANGE_MARKER)
        except RedisError as e:
            logger.error(f"Redis publish on '{channel}' failed: {e}", exc_info=True)
            raise ChangeTransportError(f"Could not publish change on '{channel}': {e}") from e
        logger.debug(f"Published change on '{channel}' to {receivers} receiver(s).")

    def handler_count(self, channel: str) -> int:
        return len(self._handlers.get(channel, []))
