# brandsync/surfaces/subscription.py
"""
Per-surface live view of a tenant's resolved theme.

A ``SurfaceSubscription`` belongs to exactly one rendering surface instance
(a mobile screen, the builder preview pane, a storefront page). It fetches
the tenant's legacy fields and active token document, resolves them for its
surface key, and re-does both whenever the tenant's change channel fires.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Callable, List, Optional

from ..errors import TransientStoreError
from ..notifications.notifier import ChangeNotifier
from ..store.client import TokenStoreClient
from ..theme.defaults import DEFAULT_THEME
from ..theme.models import ResolvedTheme
from ..theme.resolver import ThemeMemo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ThemeState:
    """What a renderer reads. Replaced as a whole, never mutated."""
    theme: Optional[ResolvedTheme]
    is_loading: bool
    error: Optional[Exception] = None


StateListener = Callable[[ThemeState], None]


class SurfaceSubscription:
    """
    Owns one surface's cached theme and keeps it in step with published changes.

    At most one fetch runs at a time. Signals that arrive while a fetch is in
    flight collapse into a single trailing fetch, so the last signal is always
    followed by a fetch that observes its write.
    """

    def __init__(
        self,
        tenant_id: str,
        surface: Optional[str],
        token_client: TokenStoreClient,
        notifier: ChangeNotifier,
        defaults: ResolvedTheme = DEFAULT_THEME,
    ):
        self.tenant_id = tenant_id
        self.surface = surface
        self._token_client = token_client
        self._notifier = notifier
        self._defaults = defaults
        self._memo = ThemeMemo()
        self._state = ThemeState(theme=None, is_loading=True)
        self._listeners: List[StateListener] = []
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._refresh_task: Optional[asyncio.Task] = None
        self._refresh_requested = False
        self._closed = False
        self.document_version: Optional[int] = None

    @property
    def state(self) -> ThemeState:
        return self._state

    @property
    def theme(self) -> Optional[ResolvedTheme]:
        return self._state.theme

    @property
    def closed(self) -> bool:
        return self._closed

    async def start(self) -> "SurfaceSubscription":
        """Subscribe to the tenant's channel and complete the initial fetch and resolve."""
        if self._closed:
            raise RuntimeError("Cannot start a closed surface subscription.")
        if self._unsubscribe is None:
            self._unsubscribe = self._notifier.subscribe(self.tenant_id, self._on_change)
            await self._notifier.wait_subscribed()
        self.request_refresh()
        await self.wait_idle()
        return self

    async def _on_change(self) -> None:
        self.request_refresh()

    def request_refresh(self) -> None:
        """Schedule a fetch, or mark one trailing fetch if one is already running."""
        if self._closed:
            return
        if self._refresh_task is not None and not self._refresh_task.done():
            self._refresh_requested = True
            return
        self._refresh_requested = False
        self._refresh_task = asyncio.get_running_loop().create_task(self._refresh_loop())

    async def _refresh_loop(self) -> None:
        while True:
            await self._refresh_once()
            if self._closed or not self._refresh_requested:
                return
            self._refresh_requested = False

    async def _refresh_once(self) -> None:
        previous = self._state
        if not previous.is_loading:
            self._replace_state(ThemeState(theme=previous.theme, is_loading=True, error=previous.error))

        try:
            legacy, document = await self._token_client.fetch_resolution_inputs(self.tenant_id)
        except TransientStoreError as e:
            logger.warning(f"Theme fetch for tenant '{self.tenant_id}' ({self.surface}) failed: {e.detail}")
            self._record_failure(e)
            return
        except Exception as e:
            logger.error(
                f"Unexpected error fetching theme for tenant '{self.tenant_id}' ({self.surface}): {e}",
                exc_info=True
            )
            self._record_failure(e)
            return

        theme = self._memo.resolve(self._defaults, legacy, document, self.surface)
        self.document_version = document.version if document is not None else None
        if self._closed:
            return
        self._replace_state(ThemeState(theme=theme, is_loading=False, error=None))

    def _record_failure(self, error: Exception) -> None:
        if self._closed:
            return
        theme = self._state.theme
        if theme is None:
            # Nothing rendered yet: show defaults for this surface alongside the error
            theme = self._memo.resolve(self._defaults, None, None, self.surface)
        self._replace_state(ThemeState(theme=theme, is_loading=False, error=error))

    def _replace_state(self, new_state: ThemeState) -> None:
        self._state = new_state
        for listener in list(self._listeners):
            try:
                listener(new_state)
            except Exception as e:
                logger.error(f"Theme state listener failed for tenant '{self.tenant_id}': {e}", exc_info=True)

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        """Call ``listener`` with every new state. Returns a remover."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    async def wait_idle(self) -> None:
        """Wait until no fetch is running or queued."""
        while self._refresh_task is not None and not self._refresh_task.done():
            try:
                await asyncio.shield(self._refresh_task)
            except asyncio.CancelledError:
                if self._closed:
                    return
                raise

    async def close(self) -> None:
        """Unsubscribe and cancel any in-flight fetch. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        task = self._refresh_task
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._refresh_task = None
        self._listeners.clear()
        logger.debug(f"Closed {self.surface} surface subscription for tenant '{self.tenant_id}'.")


@asynccontextmanager
async def use_resolved_theme(
    tenant_id: str,
    surface: Optional[str],
    token_client: TokenStoreClient,
    notifier: ChangeNotifier,
    defaults: ResolvedTheme = DEFAULT_THEME,
) -> AsyncIterator[SurfaceSubscription]:
    """
    Open a started ``SurfaceSubscription`` for the duration of a block.

    Usage:
        async with use_resolved_theme("tenant-1", "mobile", client, notifier) as sub:
            render(sub.state.theme)
    """
    subscription = SurfaceSubscription(tenant_id, surface, token_client, notifier, defaults)
    try:
        await subscription.start()
        yield subscription
    finally:
        await subscription.close()
