# brandsync/notifications/__init__.py
"""
Change notification module.

Carries content-free per-tenant change signals from the writer of a token
document to every subscribed rendering surface.
"""

from typing import Optional

from ..settings import settings
from .transport import AbstractChangeTransport, InMemoryChangeTransport
from .redis_transport import RedisChangeTransport
from .notifier import ChangeNotifier

_change_transport_instance: Optional[AbstractChangeTransport] = None


async def get_change_transport() -> AbstractChangeTransport:
    """Get or create the process-wide transport selected by ``settings.notifier_backend``."""
    global _change_transport_instance
    if _change_transport_instance is None:
        backend = settings.notifier_backend.lower()
        if backend == "redis":
            transport: AbstractChangeTransport = RedisChangeTransport()
        elif backend == "memory":
            transport = InMemoryChangeTransport()
        else:
            raise ValueError(f"Unknown notifier backend '{settings.notifier_backend}'.")
        await transport.initialize()
        _change_transport_instance = transport
    return _change_transport_instance


async def close_change_transport() -> None:
    """Tear down the process-wide transport. The next ``get_change_transport`` builds a fresh one."""
    global _change_transport_instance
    transport, _change_transport_instance = _change_transport_instance, None
    if transport is not None:
        await transport.teardown()


__all__ = [
    "AbstractChangeTransport",
    "InMemoryChangeTransport",
    "RedisChangeTransport",
    "ChangeNotifier",
    "get_change_transport",
    "close_change_transport",
]
