# brandsync/builder/controller.py
"""
The operator's working copy of a tenant's branding.

``BuilderDraftController`` owns one draft per editing session. Edits are
validated and applied locally, then written through the token store client
after a debounce. The controller never signals surfaces itself: a successful
write is what triggers the change notification.
"""

import asyncio
import copy
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import BaseModel, ValidationError

from ..errors import InvalidDraftEditError, InvalidTransitionError, TransientStoreError
from ..notifications.notifier import ChangeNotifier
from ..settings import settings
from ..store.client import TokenStoreClient
from ..surfaces.subscription import SurfaceSubscription
from ..theme.defaults import DEFAULT_THEME
from ..theme.merge import MISSING, get_path, set_path
from ..theme.models import ResolvedTheme
from ..theme.resolver import resolve_theme
from ..utils.access_codes import AccessCodeGeneratorProtocol, DefaultAccessCodeGenerator
from .models import (
    BACKGROUND_KEY_MODES,
    BuilderStatus,
    BuilderStep,
    Draft,
    DraftContent,
    PublishState,
)
from .templates import BuilderTemplate, get_template

logger = logging.getLogger(__name__)

BACKGROUND_SURFACES = ("app", "web")

# Fields that must be filled in before leaving a step
REQUIRED_FIELDS: Dict[BuilderStep, Sequence[str]] = {
    BuilderStep.OVERVIEW: ("overview.name",),
    BuilderStep.BRANDING: ("design.tokens.colors.primary",),
    BuilderStep.LAYOUT: ("navigation",),
    BuilderStep.PUBLISH: (),
}

# Always written by publish, in addition to what the operator edited
PUBLISH_FIELDS = ("overview.name", "publish")


class BuilderDraftController:
    """
    Draft lifecycle for one editing session.

    Writes are serialized: at most one write is in flight, and a save
    requested meanwhile is queued as a single follow-up save. A write that
    has been sent is never cancelled, not even by ``close()``.
    """

    def __init__(
        self,
        draft: Draft,
        token_client: TokenStoreClient,
        notifier: Optional[ChangeNotifier] = None,
        access_codes: Optional[AccessCodeGeneratorProtocol] = None,
        autosave_debounce_seconds: Optional[float] = None,
    ):
        self._draft = draft
        self._client = token_client
        self._notifier = notifier or token_client.notifier
        self._access_codes = access_codes or DefaultAccessCodeGenerator()
        self._debounce_seconds = (
            autosave_debounce_seconds if autosave_debounce_seconds is not None
            else settings.autosave_debounce_seconds
        )
        self._write_lock = asyncio.Lock()
        self._pending_autosave: Optional[asyncio.Task] = None
        self._save_task: Optional[asyncio.Task] = None
        self._save_again = False
        self._edit_generation = 0
        self._previews: List[SurfaceSubscription] = []
        self._closed = False

    @classmethod
    async def open(
        cls,
        tenant_id: str,
        token_client: TokenStoreClient,
        access_codes: Optional[AccessCodeGeneratorProtocol] = None,
        defaults: ResolvedTheme = DEFAULT_THEME,
        autosave_debounce_seconds: Optional[float] = None,
    ) -> "BuilderDraftController":
        """
        Fork a draft from the tenant's active document.

        Without an active document the draft starts from the defaults seeded
        with the tenant's legacy fields.

        Raises:
            TransientStoreError: If the inputs cannot be fetched after retries
        """
        legacy, document = await token_client.fetch_resolution_inputs(tenant_id)
        seeded = DraftContent.from_theme(resolve_theme(defaults, legacy, document), legacy.fields)
        if document is not None:
            content = DraftContent.from_tokens(document.tokens, seeded)
            base_version: Optional[int] = document.version
        else:
            content = seeded
            base_version = None

        draft = Draft(
            tenant_id=tenant_id,
            base_version=base_version,
            base_tokens=copy.deepcopy(document.tokens) if document is not None else {},
            content=content,
        )
        logger.info(f"Opened builder draft for tenant '{tenant_id}' (base version {base_version}).")
        return cls(draft, token_client, access_codes=access_codes,
                   autosave_debounce_seconds=autosave_debounce_seconds)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def tenant_id(self) -> str:
        return self._draft.tenant_id

    @property
    def content(self) -> DraftContent:
        return self._draft.content

    @property
    def step(self) -> BuilderStep:
        return self._draft.step

    @property
    def status(self) -> BuilderStatus:
        return self._draft.status

    @property
    def is_dirty(self) -> bool:
        return self._draft.is_dirty

    @property
    def is_saving(self) -> bool:
        return self._write_lock.locked()

    @property
    def last_saved_at(self) -> Optional[datetime]:
        return self._draft.last_saved_at

    @property
    def save_error(self) -> Optional[str]:
        return self._draft.save_error

    @property
    def is_published(self) -> bool:
        return self._draft.content.publish.is_published

    @property
    def has_pending_autosave(self) -> bool:
        return self._pending_autosave is not None and not self._pending_autosave.done()

    def snapshot(self) -> Draft:
        """Deep copy of the draft; changing it has no effect on the session."""
        return self._draft.model_copy(deep=True)

    def _update_draft(self, **changes: Any) -> None:
        self._draft = self._draft.model_copy(update=changes)

    def _ensure_open(self) -> None:
        if self._closed:
            raise InvalidTransitionError("This builder session is closed.")

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def edit(self, field: str, value: Any) -> None:
        """
        Set one draft field by dotted camelCase path, e.g. ``design.tokens.colors.primary``.

        Writing a single background key (``app.background.imageUrl``)
        switches that surface to the key's background mode and clears the
        other modes.

        Raises:
            InvalidDraftEditError: If the path is unknown or the value does
                not validate. The draft is left unchanged.
        """
        self._ensure_open()
        data = self._draft.content.model_dump(by_alias=True, mode="json")
        segments = field.split(".")
        authored = field
        if len(segments) >= 3 and segments[0] in BACKGROUND_SURFACES and segments[1] == "background":
            data = self._with_background_key(data, field, segments, value)
            authored = f"{segments[0]}.background"
        else:
            data = set_path(data, field, self._plain(value))

        content = self._validate_content(field, data)
        if get_path(content.model_dump(by_alias=True, mode="json"), field) is MISSING:
            raise InvalidDraftEditError(field, f"Unknown draft field '{field}'.")
        self._commit(content, [authored])

    def _with_background_key(
        self, data: Dict[str, Any], field: str, segments: List[str], value: Any
    ) -> Dict[str, Any]:
        if len(segments) != 3:
            raise InvalidDraftEditError(field, f"Unknown background field '{field}'.")
        surface, key = segments[0], segments[2]
        current = get_path(data, f"{surface}.background")
        if key == "mode":
            background: Dict[str, Any] = {"mode": value}
        else:
            mode = BACKGROUND_KEY_MODES.get(key)
            if mode is None:
                raise InvalidDraftEditError(field, f"Unknown background field '{key}'.")
            if isinstance(current, dict) and current.get("mode") == mode:
                background = dict(current)
            else:
                background = {"mode": mode}
            background[key] = value
        return set_path(data, f"{surface}.background", background)

    @staticmethod
    def _plain(value: Any) -> Any:
        if isinstance(value, BaseModel):
            return value.model_dump(by_alias=True, mode="json")
        if isinstance(value, (list, tuple)):
            return [BuilderDraftController._plain(item) for item in value]
        return value

    @staticmethod
    def _validate_content(field: str, data: Dict[str, Any]) -> DraftContent:
        try:
            return DraftContent.model_validate(data)
        except ValidationError as e:
            raise InvalidDraftEditError(field, f"Invalid value for '{field}': {e.errors()[0]['msg']}") from e

    def _commit(self, content: DraftContent, fields: List[str]) -> None:
        """Apply validated content; ``fields`` are the content paths the operator set."""
        self._edit_generation += 1
        changes: Dict[str, Any] = {
            "content": content,
            "authored_paths": self._draft.with_authored(fields),
            "is_dirty": True,
        }
        if not self.is_saving:
            changes["status"] = BuilderStatus.EDITING
        self._update_draft(**changes)
        self._schedule_autosave()

    def set_background(self, surface: str, background: Union[BaseModel, Dict[str, Any]]) -> None:
        """Replace a surface's whole background with one variant."""
        if surface not in BACKGROUND_SURFACES:
            raise InvalidDraftEditError(f"{surface}.background", f"Unknown background surface '{surface}'.")
        self.edit(f"{surface}.background", background)

    def toggle_module(self, module_id: str) -> None:
        """Flip ``enabled`` on one navigation module."""
        navigation = [module.model_dump(by_alias=True) for module in self._draft.content.navigation]
        for module in navigation:
            if module["id"] == module_id:
                module["enabled"] = not module["enabled"]
                break
        else:
            raise InvalidDraftEditError("navigation", f"Unknown navigation module '{module_id}'.")
        self.edit("navigation", navigation)

    def reorder_modules(self, module_ids: Sequence[str]) -> None:
        """Reorder navigation modules; ``module_ids`` must list every module exactly once."""
        modules = {module.id: module for module in self._draft.content.navigation}
        if sorted(module_ids) != sorted(modules):
            raise InvalidDraftEditError("navigation", "Reorder must list every navigation module exactly once.")
        reordered = [
            modules[module_id].model_copy(update={"order": index})
            for index, module_id in enumerate(module_ids)
        ]
        self.edit("navigation", reordered)

    def update_sections(self, sections: Sequence[Any]) -> None:
        self.edit("sections", list(sections))

    def apply_template(self, template: Union[BuilderTemplate, str]) -> None:
        """
        Overwrite colors, heading/body fonts, gradients, card style, hero
        settings and sections with a preset. Goes through the autosave path
        like any other edit.
        """
        self._ensure_open()
        if isinstance(template, str):
            template = get_template(template)

        data = self._draft.content.model_dump(by_alias=True, mode="json")
        brand = data["design"]["tokens"]
        colors = template.colors.model_dump(by_alias=True)
        fonts = template.fonts.model_dump()
        brand["colors"].update(colors)
        brand["typography"]["fontFamily"].update(fonts)
        data["design"]["gradients"] = template.gradients.model_dump()
        data["design"]["cardStyle"] = template.card_style.model_dump(by_alias=True)
        hero = {
            "heroStyle": template.hero.style,
            "heroHeight": template.hero.height,
            "heroOverlayOpacity": template.hero.overlay_opacity,
        }
        data["web"].update(hero)
        data["sections"] = [section.model_dump(by_alias=True) for section in template.sections]

        fields = [
            *(f"design.tokens.colors.{key}" for key in colors),
            *(f"design.tokens.typography.fontFamily.{key}" for key in fonts),
            "design.gradients",
            "design.cardStyle",
            *(f"web.{key}" for key in hero),
            "sections",
        ]
        self._commit(self._validate_content(f"template:{template.id}", data), fields)
        logger.info(f"Applied template '{template.id}' to draft for tenant '{self.tenant_id}'.")

    # ------------------------------------------------------------------
    # Step navigation
    # ------------------------------------------------------------------

    def missing_fields(self, step: Optional[BuilderStep] = None) -> List[str]:
        """Required paths of ``step`` (default: the current step) that are not filled in."""
        step = self._draft.step if step is None else step
        data = self._draft.content.model_dump(by_alias=True, mode="json")
        missing = []
        for path in REQUIRED_FIELDS[step]:
            if path == "navigation":
                if not any(module.enabled for module in self._draft.content.navigation):
                    missing.append(path)
                continue
            value = get_path(data, path)
            if value is MISSING or value is None or (isinstance(value, str) and not value.strip()):
                missing.append(path)
        return missing

    @property
    def can_go_next(self) -> bool:
        return self._draft.step < BuilderStep.PUBLISH and not self.missing_fields()

    @property
    def can_go_prev(self) -> bool:
        return self._draft.step > BuilderStep.OVERVIEW

    @property
    def forward_action(self) -> str:
        return "publish" if self._draft.step == BuilderStep.PUBLISH else "next"

    def next_step(self) -> BuilderStep:
        self._ensure_open()
        if self._draft.step == BuilderStep.PUBLISH:
            raise InvalidTransitionError("Already on the last step; publish instead.")
        missing = self.missing_fields()
        if missing:
            raise InvalidTransitionError(f"Complete the required fields first: {', '.join(missing)}.")
        self._update_draft(step=BuilderStep(self._draft.step + 1))
        return self._draft.step

    def prev_step(self) -> BuilderStep:
        self._ensure_open()
        if self._draft.step == BuilderStep.OVERVIEW:
            raise InvalidTransitionError("Already on the first step.")
        self._update_draft(step=BuilderStep(self._draft.step - 1))
        return self._draft.step

    def go_to_step(self, step: BuilderStep) -> BuilderStep:
        """Jump to ``step``. Moving forward requires every step in between to be complete."""
        self._ensure_open()
        step = BuilderStep(step)
        for earlier in range(self._draft.step, step):
            missing = self.missing_fields(BuilderStep(earlier))
            if missing:
                raise InvalidTransitionError(f"Complete the required fields first: {', '.join(missing)}.")
        self._update_draft(step=step)
        return step

    # ------------------------------------------------------------------
    # Saving
    # ------------------------------------------------------------------

    def _schedule_autosave(self) -> None:
        self._cancel_pending_autosave()
        self._pending_autosave = asyncio.get_running_loop().create_task(self._autosave_after_quiet_period())

    def _cancel_pending_autosave(self) -> None:
        if self._pending_autosave is not None and not self._pending_autosave.done():
            self._pending_autosave.cancel()
        self._pending_autosave = None

    async def _autosave_after_quiet_period(self) -> None:
        await asyncio.sleep(self._debounce_seconds)
        # From here on the save counts as sent and is no longer cancellable
        self._pending_autosave = None
        try:
            await self._request_save()
        except Exception as e:
            logger.error(f"Autosave for tenant '{self.tenant_id}' failed unexpectedly: {e}", exc_info=True)

    async def save(self) -> None:
        """
        Write the draft now. A clean draft is not written.

        Failures are recorded in ``save_error`` and never raised; the draft is
        kept and nothing is retried automatically.
        """
        self._ensure_open()
        self._cancel_pending_autosave()
        await self._request_save()

    async def _request_save(self) -> None:
        if self._save_task is not None and not self._save_task.done():
            self._save_again = True
            task = self._save_task
        else:
            if not self._draft.is_dirty:
                return
            self._save_again = False
            task = self._save_task = asyncio.get_running_loop().create_task(self._save_loop())
        await asyncio.shield(task)

    async def _save_loop(self) -> None:
        while True:
            self._save_again = False
            if self._draft.is_dirty and not await self._write_draft():
                return
            if not self._save_again:
                return

    async def _write_draft(self) -> bool:
        async with self._write_lock:
            if not self._draft.is_dirty:
                return True
            generation = self._edit_generation
            tokens = self._draft.document_tokens()
            self._update_draft(status=BuilderStatus.SAVING)
            try:
                document = await self._client.write_document(self.tenant_id, tokens)
            except TransientStoreError as e:
                logger.warning(f"Autosave for tenant '{self.tenant_id}' failed: {e.detail}")
                self._update_draft(save_error=e.detail, status=BuilderStatus.SAVE_ERRORED)
                return False
            except Exception as e:
                logger.error(f"Unexpected error saving draft for tenant '{self.tenant_id}': {e}", exc_info=True)
                self._update_draft(save_error=str(e), status=BuilderStatus.SAVE_ERRORED)
                return False

            unchanged = generation == self._edit_generation
            self._update_draft(
                base_version=document.version,
                last_saved_at=datetime.now(timezone.utc),
                save_error=None,
                is_dirty=not unchanged,
                status=BuilderStatus.SAVED if unchanged else BuilderStatus.EDITING,
            )
            logger.debug(f"Saved draft for tenant '{self.tenant_id}' as version {document.version}.")
            return True

    async def wait_for_autosave(self) -> None:
        """Wait for a pending autosave and any write it started."""
        while self._pending_autosave is not None and not self._pending_autosave.done():
            pending = self._pending_autosave
            try:
                await asyncio.shield(pending)
            except asyncio.CancelledError:
                # Superseded by a newer edit; wait for its replacement instead
                if not pending.cancelled():
                    raise
        if self._save_task is not None and not self._save_task.done():
            await asyncio.shield(self._save_task)

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------

    async def publish(self) -> str:
        """
        Write the full draft as the tenant's published, active document.

        An existing access code is reused; otherwise one is generated. Does
        not depend on an earlier autosave having succeeded.

        Returns:
            The public access code

        Raises:
            InvalidTransitionError: If not on the last step or required fields are missing
            TransientStoreError: If the write fails; it is also recorded in ``save_error``
        """
        self._ensure_open()
        if self._draft.step != BuilderStep.PUBLISH:
            raise InvalidTransitionError("Publishing is only possible from the last step.")
        missing = [path for step in BuilderStep for path in self.missing_fields(step)]
        if missing:
            raise InvalidTransitionError(f"Complete the required fields first: {', '.join(missing)}.")

        self._cancel_pending_autosave()
        async with self._write_lock:
            current = self._draft.content.publish
            access_code = current.access_code or self._access_codes.generate_access_code(self.tenant_id)
            publish_state = PublishState(
                access_code=access_code,
                public_url=current.public_url or self._access_codes.public_url(self.tenant_id),
                is_published=True,
            )
            generation = self._edit_generation
            published = self._draft.model_copy(update={
                "content": self._draft.content.model_copy(update={"publish": publish_state}),
                "authored_paths": self._draft.with_authored(list(PUBLISH_FIELDS)),
            })
            tokens = published.document_tokens()
            self._update_draft(status=BuilderStatus.SAVING)
            try:
                document = await self._client.write_document(self.tenant_id, tokens)
            except TransientStoreError as e:
                logger.warning(f"Publish for tenant '{self.tenant_id}' failed: {e.detail}")
                self._update_draft(save_error=e.detail, status=BuilderStatus.SAVE_ERRORED)
                raise

            unchanged = generation == self._edit_generation
            self._update_draft(
                content=self._draft.content.model_copy(update={"publish": publish_state}),
                authored_paths=self._draft.with_authored(list(PUBLISH_FIELDS)),
                base_version=document.version,
                last_saved_at=datetime.now(timezone.utc),
                save_error=None,
                is_dirty=not unchanged,
                status=BuilderStatus.PUBLISHED,
            )
        logger.info(f"Published tenant '{self.tenant_id}' as version {document.version}.")
        return access_code

    # ------------------------------------------------------------------
    # Preview and lifecycle
    # ------------------------------------------------------------------

    async def open_preview(self) -> SurfaceSubscription:
        """Open the builder's preview surface; it is closed with the controller."""
        self._ensure_open()
        preview = SurfaceSubscription(self.tenant_id, "preview", self._client, self._notifier)
        await preview.start()
        self._previews.append(preview)
        return preview

    async def close(self) -> None:
        """
        End the session. A pending autosave that has not been sent is dropped;
        a write already in flight is awaited, never cancelled.
        """
        if self._closed:
            return
        self._closed = True
        self._cancel_pending_autosave()
        if self._save_task is not None and not self._save_task.done():
            await asyncio.shield(self._save_task)
        async with self._write_lock:
            pass
        for preview in self._previews:
            await preview.close()
        self._previews.clear()
        logger.info(f"Closed builder session for tenant '{self.tenant_id}'.")
