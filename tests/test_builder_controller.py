# tests/test_builder_controller.py
import asyncio

import pytest

from brandsync.builder import (
    BuilderDraftController,
    BuilderStatus,
    BuilderStep,
    GradientBackground,
    ImageBackground,
    PatternBackground,
)
from brandsync.errors import (
    InvalidDraftEditError,
    InvalidTransitionError,
    TransientStoreError,
    UnknownTemplateError,
)
from brandsync.utils.access_codes import AccessCodeGeneratorProtocol, DefaultAccessCodeGenerator

from conftest import TENANT


class SequentialAccessCodes(AccessCodeGeneratorProtocol):
    def __init__(self):
        self.issued = []

    def generate_access_code(self, tenant_id: str) -> str:
        code = f"CODE{len(self.issued) + 1:02d}"
        self.issued.append(code)
        return code


async def open_controller(client, debounce=60.0, access_codes=None):
    return await BuilderDraftController.open(
        TENANT,
        client,
        access_codes=access_codes or SequentialAccessCodes(),
        autosave_debounce_seconds=debounce,
    )


def test_open_without_document_seeds_from_legacy_fields(store, client):
    async def scenario():
        await store.upsert_legacy_fields(TENANT, {"name": "Corner Bakery", "primary_color": "#333333"})
        controller = await open_controller(client)
        draft = controller.snapshot()
        await controller.close()
        return draft

    draft = asyncio.run(scenario())

    assert draft.base_version is None
    assert draft.content.overview.name == "Corner Bakery"
    assert draft.content.design.tokens.colors["primary"] == "#333333"
    assert draft.is_dirty is False
    assert draft.step == BuilderStep.OVERVIEW


def test_open_forks_from_active_document(store, client):
    async def scenario():
        await store.write_token_document(TENANT, {
            "colors": {"primary": "#123456"},
            "overview": {"name": "Stored Shop"},
            "web": {"heroStyle": "image"},
        })
        controller = await open_controller(client)
        draft = controller.snapshot()
        await controller.close()
        return draft

    draft = asyncio.run(scenario())

    assert draft.base_version == 1
    assert draft.content.design.tokens.colors["primary"] == "#123456"
    assert draft.content.overview.name == "Stored Shop"
    assert draft.content.web.hero_style == "image"


def test_invalid_edit_leaves_draft_unchanged(client):
    async def scenario():
        controller = await open_controller(client)
        before = controller.snapshot()
        with pytest.raises(InvalidDraftEditError):
            controller.edit("design.tokens.colors.primary", "definitely not a color!!")
        with pytest.raises(InvalidDraftEditError):
            controller.edit("overview.nmae", "Typo")
        after = controller.snapshot()
        await controller.close()
        return before, after

    before, after = asyncio.run(scenario())

    assert after == before
    assert after.is_dirty is False


def test_edit_marks_dirty_and_debounced_autosave_writes_once(store, client):
    async def scenario():
        controller = await open_controller(client, debounce=0.01)
        controller.edit("overview.name", "Corner Bakery")
        controller.edit("design.tokens.colors.primary", "#aa0000")
        controller.edit("design.tokens.colors.primary", "#bb0000")
        assert controller.is_dirty
        assert controller.has_pending_autosave
        await controller.wait_for_autosave()
        draft = controller.snapshot()
        document = await store.fetch_active_token_document(TENANT)
        await controller.close()
        return draft, document

    draft, document = asyncio.run(scenario())

    assert len(store.write_calls) == 1
    assert document.tokens["colors"]["primary"] == "#bb0000"
    assert document.tokens["overview"]["name"] == "Corner Bakery"
    assert draft.is_dirty is False
    assert draft.status == BuilderStatus.SAVED
    assert draft.last_saved_at is not None
    assert draft.base_version == document.version


def test_save_on_clean_draft_is_a_no_op(store, client):
    async def scenario():
        controller = await open_controller(client)
        await controller.save()
        await controller.close()

    asyncio.run(scenario())

    assert store.write_calls == []


def test_failed_save_keeps_draft_and_records_error(store, client):
    async def scenario():
        controller = await open_controller(client)
        controller.edit("design.tokens.colors.primary", "#aa0000")
        store.fail_writes = 1
        await controller.save()
        failed = controller.snapshot()
        stored_after_failure = await store.fetch_active_token_document(TENANT)

        await controller.save()
        recovered = controller.snapshot()
        await controller.close()
        return failed, stored_after_failure, recovered

    failed, stored_after_failure, recovered = asyncio.run(scenario())

    assert failed.status == BuilderStatus.SAVE_ERRORED
    assert failed.save_error == "injected write failure"
    assert failed.is_dirty is True
    assert failed.content.design.tokens.colors["primary"] == "#aa0000"
    assert stored_after_failure is None
    assert recovered.save_error is None
    assert recovered.is_dirty is False
    assert len(store.write_calls) == 2


def test_edits_during_in_flight_write_keep_draft_dirty(store, client):
    async def scenario():
        controller = await open_controller(client)
        controller.edit("design.tokens.colors.primary", "#aa0000")
        store.write_gate = asyncio.Event()
        store.write_started = asyncio.Event()

        save_task = asyncio.create_task(controller.save())
        await store.write_started.wait()
        assert controller.is_saving
        assert controller.status == BuilderStatus.SAVING
        controller.edit("design.tokens.colors.primary", "#bb0000")

        store.write_gate.set()
        await save_task
        draft = controller.snapshot()
        await controller.close()
        return draft

    draft = asyncio.run(scenario())

    assert draft.is_dirty is True
    assert draft.status == BuilderStatus.EDITING
    assert draft.content.design.tokens.colors["primary"] == "#bb0000"
    assert store.write_calls[0]["colors"]["primary"] == "#aa0000"


def test_saves_requested_during_a_write_queue_a_single_follow_up(store, client):
    async def scenario():
        controller = await open_controller(client)
        controller.edit("design.tokens.colors.primary", "#aa0000")
        store.write_gate = asyncio.Event()
        store.write_started = asyncio.Event()

        first = asyncio.create_task(controller.save())
        await store.write_started.wait()
        controller.edit("design.tokens.colors.primary", "#bb0000")
        second = asyncio.create_task(controller.save())
        third = asyncio.create_task(controller.save())
        await asyncio.sleep(0)

        store.write_gate.set()
        await asyncio.gather(first, second, third)
        draft = controller.snapshot()
        await controller.close()
        return draft

    draft = asyncio.run(scenario())

    assert [call["colors"]["primary"] for call in store.write_calls] == ["#aa0000", "#bb0000"]
    assert draft.is_dirty is False


def test_background_edits_are_mutually_exclusive(client):
    async def scenario():
        controller = await open_controller(client)
        controller.edit("app.background.gradientStart", "#ffffff")
        controller.edit("app.background.gradientEnd", "#000000")
        gradient = controller.content.app.background
        controller.edit("app.background.imageUrl", "https://cdn.example.com/bg.png")
        image = controller.content.app.background
        controller.set_background("web", PatternBackground(pattern="dots"))
        web = controller.content.web.background
        tokens = controller.content.to_tokens()
        with pytest.raises(InvalidDraftEditError):
            controller.edit("app.background.sparkles", True)
        with pytest.raises(InvalidDraftEditError):
            controller.set_background("mobile", GradientBackground())
        await controller.close()
        return gradient, image, web, tokens

    gradient, image, web, tokens = asyncio.run(scenario())

    assert isinstance(gradient, GradientBackground)
    assert (gradient.gradient_start, gradient.gradient_end) == ("#ffffff", "#000000")
    assert isinstance(image, ImageBackground)
    assert image.image_url == "https://cdn.example.com/bg.png"
    assert tokens["app"]["background"] == {
        "mode": "image",
        "imageUrl": "https://cdn.example.com/bg.png",
        "imageOverlay": 0.5,
    }
    assert isinstance(web, PatternBackground)
    assert tokens["web"]["background"]["mode"] == "pattern"


def test_step_navigation_enforces_required_fields(client):
    async def scenario():
        controller = await open_controller(client)
        observed = {"missing_overview": controller.missing_fields(), "can_go_next": controller.can_go_next}
        with pytest.raises(InvalidTransitionError):
            controller.next_step()
        with pytest.raises(InvalidTransitionError):
            controller.prev_step()

        controller.edit("overview.name", "Corner Bakery")
        controller.next_step()
        controller.next_step()
        assert controller.step == BuilderStep.LAYOUT

        for module in controller.content.navigation:
            controller.toggle_module(module.id)
        observed["missing_layout"] = controller.missing_fields()
        with pytest.raises(InvalidTransitionError):
            controller.next_step()

        controller.toggle_module("home")
        observed["forward_before"] = controller.forward_action
        controller.next_step()
        observed["forward_last"] = controller.forward_action
        with pytest.raises(InvalidTransitionError):
            controller.next_step()
        observed["can_go_prev"] = controller.can_go_prev
        await controller.close()
        return observed

    observed = asyncio.run(scenario())

    assert observed["missing_overview"] == ["overview.name"]
    assert observed["can_go_next"] is False
    assert observed["missing_layout"] == ["navigation"]
    assert observed["forward_before"] == "next"
    assert observed["forward_last"] == "publish"
    assert observed["can_go_prev"] is True


def test_publish_requires_last_step(client):
    async def scenario():
        controller = await open_controller(client)
        controller.edit("overview.name", "Corner Bakery")
        with pytest.raises(InvalidTransitionError):
            await controller.publish()
        await controller.close()

    asyncio.run(scenario())


def test_publish_writes_full_draft_and_reuses_access_code(store, client):
    async def scenario():
        codes = SequentialAccessCodes()
        controller = await open_controller(client, access_codes=codes)
        controller.edit("overview.name", "Corner Bakery")
        controller.edit("design.tokens.colors.primary", "#aa0000")
        controller.go_to_step(BuilderStep.PUBLISH)

        first_code = await controller.publish()
        document = await store.fetch_active_token_document(TENANT)
        draft = controller.snapshot()
        second_code = await controller.publish()
        await controller.close()
        return first_code, second_code, codes.issued, document, draft

    first_code, second_code, issued, document, draft = asyncio.run(scenario())

    assert first_code == second_code == "CODE01"
    assert issued == ["CODE01"]
    assert document.is_active
    assert document.tokens["publish"]["isPublished"] is True
    assert document.tokens["publish"]["accessCode"] == "CODE01"
    assert document.tokens["publish"]["publicUrl"].endswith(f"/shop/{TENANT}")
    assert document.tokens["colors"]["primary"] == "#aa0000"
    assert draft.status == BuilderStatus.PUBLISHED
    assert draft.is_dirty is False


def test_publish_after_failed_autosave_succeeds(store, client):
    async def scenario():
        controller = await open_controller(client)
        controller.edit("overview.name", "Corner Bakery")
        store.fail_writes = 1
        await controller.save()
        assert controller.status == BuilderStatus.SAVE_ERRORED
        controller.go_to_step(BuilderStep.PUBLISH)
        code = await controller.publish()
        document = await store.fetch_active_token_document(TENANT)
        await controller.close()
        return code, document

    code, document = asyncio.run(scenario())

    assert document.tokens["publish"]["accessCode"] == code
    assert document.tokens["overview"]["name"] == "Corner Bakery"


def test_publish_failure_is_recorded_and_raised(store, client):
    async def scenario():
        controller = await open_controller(client)
        controller.edit("overview.name", "Corner Bakery")
        controller.go_to_step(BuilderStep.PUBLISH)
        store.fail_writes = 1
        with pytest.raises(TransientStoreError):
            await controller.publish()
        draft = controller.snapshot()
        await controller.close()
        return draft

    draft = asyncio.run(scenario())

    assert draft.status == BuilderStatus.SAVE_ERRORED
    assert draft.save_error == "injected write failure"
    assert draft.content.publish.is_published is False
    assert draft.is_dirty is True


def test_apply_template_overwrites_brand_and_layout(client):
    async def scenario():
        controller = await open_controller(client)
        controller.apply_template("classic-bakery")
        content = controller.content
        dirty = controller.is_dirty
        pending = controller.has_pending_autosave
        with pytest.raises(UnknownTemplateError):
            controller.apply_template("no-such-template")
        await controller.close()
        return content, dirty, pending

    content, dirty, pending = asyncio.run(scenario())

    assert dirty and pending
    assert content.design.tokens.colors["primary"] == "#8B5E3C"
    assert content.design.tokens.colors["textMuted"] == "#8B7355"
    assert content.design.tokens.typography.font_family.heading == "Playfair Display"
    assert content.design.tokens.typography.font_family.body == "Lora"
    assert content.design.gradients.hero == "linear-gradient(135deg, #8B5E3C 0%, #D4A574 100%)"
    assert content.design.card_style.variant == "white"
    assert content.web.hero_style == "image"
    assert content.web.hero_overlay_opacity == 0.3
    assert [section.id for section in content.sections][:2] == ["tpl-hero", "tpl-featured"]


def test_reorder_modules_assigns_new_order(client):
    async def scenario():
        controller = await open_controller(client)
        ids = [module.id for module in controller.content.navigation]
        controller.reorder_modules(list(reversed(ids)))
        reordered = controller.content.navigation
        with pytest.raises(InvalidDraftEditError):
            controller.reorder_modules(ids[:2])
        await controller.close()
        return ids, reordered

    ids, reordered = asyncio.run(scenario())

    assert [module.id for module in reordered] == list(reversed(ids))
    assert [module.order for module in reordered] == list(range(len(ids)))


def test_close_drops_pending_autosave(store, client):
    async def scenario():
        controller = await open_controller(client, debounce=60.0)
        controller.edit("overview.name", "Corner Bakery")
        await controller.close()
        with pytest.raises(InvalidTransitionError):
            controller.edit("overview.name", "Too late")

    asyncio.run(scenario())

    assert store.write_calls == []


def test_close_waits_for_in_flight_write(store, client):
    async def scenario():
        controller = await open_controller(client)
        controller.edit("overview.name", "Corner Bakery")
        store.write_gate = asyncio.Event()
        store.write_started = asyncio.Event()
        save_task = asyncio.create_task(controller.save())
        await store.write_started.wait()

        close_task = asyncio.create_task(controller.close())
        await asyncio.sleep(0.01)
        closed_early = close_task.done()

        store.write_gate.set()
        await asyncio.gather(save_task, close_task)
        document = await store.fetch_active_token_document(TENANT)
        return closed_early, document

    closed_early, document = asyncio.run(scenario())

    assert closed_early is False
    assert document.tokens["overview"]["name"] == "Corner Bakery"


def test_snapshot_is_a_deep_copy(client):
    async def scenario():
        controller = await open_controller(client)
        snapshot = controller.snapshot()
        snapshot.content.design.tokens.colors["primary"] = "#000000"
        primary = controller.content.design.tokens.colors["primary"]
        await controller.close()
        return primary

    assert asyncio.run(scenario()) != "#000000"


def test_stale_draft_overwrites_newer_document(store, client):
    async def scenario():
        first = await open_controller(client)
        second = await open_controller(client)
        first.edit("design.tokens.colors.primary", "#ff0000")
        await first.save()
        second.edit("design.tokens.colors.secondary", "#00ff00")
        await second.save()
        document = await store.fetch_active_token_document(TENANT)
        await first.close()
        await second.close()
        return document

    document = asyncio.run(scenario())

    assert document.version == 2
    assert document.tokens["colors"] == {"secondary": "#00ff00"}


def test_save_writes_only_operator_edits_on_top_of_forked_document(store, client):
    async def scenario():
        await store.upsert_legacy_fields(TENANT, {"primary_color": "#111111", "button_color": "#00ff00"})
        await store.write_token_document(TENANT, {
            "colors": {"accent": "#abcdef"},
            "mobile": {"colors": {"primary": "#222222"}},
        })
        controller = await open_controller(client)
        controller.edit("overview.name", "Corner Bakery")
        controller.set_background("app", GradientBackground(gradient_start="#ffffff", gradient_end="#000000"))
        await controller.save()
        document = await store.fetch_active_token_document(TENANT)
        await controller.close()
        return document

    document = asyncio.run(scenario())

    assert document.tokens == {
        "colors": {"accent": "#abcdef"},
        "mobile": {"colors": {"primary": "#222222"}},
        "overview": {"name": "Corner Bakery"},
        "app": {"background": {"mode": "gradient", "gradientStart": "#ffffff", "gradientEnd": "#000000"}},
    }


def test_template_writes_the_portions_it_sets(store, client):
    async def scenario():
        controller = await open_controller(client)
        controller.apply_template("classic-bakery")
        await controller.save()
        document = await store.fetch_active_token_document(TENANT)
        await controller.close()
        return document

    tokens = asyncio.run(scenario()).tokens

    assert tokens["colors"]["primary"] == "#8B5E3C"
    assert "textInverse" not in tokens["colors"]
    assert tokens["typography"] == {"fontFamily": {"heading": "Playfair Display", "body": "Lora"}}
    assert tokens["web"] == {"heroStyle": "image", "heroHeight": "medium", "heroOverlayOpacity": 0.3}
    assert tokens["layout"]["sections"][0]["id"] == "tpl-hero"
    assert "navigation" not in tokens["layout"]
    assert "overview" not in tokens


def test_default_access_codes_are_uppercase_alphanumeric():
    code = DefaultAccessCodeGenerator(length=6).generate_access_code(TENANT)

    assert len(code) == 6
    assert code.isalnum()
    assert code == code.upper()
