# tests/test_resolver.py
from datetime import datetime, timezone

import pytest

from brandsync.store.models import LegacyFields, TokenDocument
from brandsync.theme import DEFAULT_THEME, ThemeMemo, resolve_theme


def make_document(tokens, version=1):
    return TokenDocument(
        tenant_id="tenant-a",
        version=version,
        tokens=tokens,
        is_active=True,
        updated_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )


def make_legacy(**fields):
    return LegacyFields(tenant_id="tenant-a", fields=fields)


def test_no_inputs_resolves_to_defaults():
    assert resolve_theme(DEFAULT_THEME, None, None) == DEFAULT_THEME
    assert resolve_theme(DEFAULT_THEME, make_legacy(), make_document({}), "mobile") == DEFAULT_THEME


def test_resolution_is_deterministic():
    legacy = make_legacy(primary_color="#333333", feature_chat=False)
    document = make_document({"colors": {"accent": "#00ff00"}, "mobile": {"tabBarBlur": False}})

    first = resolve_theme(DEFAULT_THEME, legacy, document, "mobile")
    second = resolve_theme(DEFAULT_THEME, legacy, document, "mobile")

    assert first == second
    assert first.model_dump() == second.model_dump()


@pytest.mark.parametrize(
    "legacy, tokens, surface, expected",
    [
        ({"primary_color": "#333333"}, {"colors": {"primary": "#222222"}, "mobile": {"colors": {"primary": "#111111"}}}, "mobile", "#111111"),
        ({"primary_color": "#333333"}, {"colors": {"primary": "#222222"}, "mobile": {"colors": {"primary": "#111111"}}}, "web", "#222222"),
        ({"primary_color": "#333333"}, None, "mobile", "#333333"),
        ({}, None, None, "#2563eb"),
    ],
)
def test_primary_color_follows_four_tier_precedence(legacy, tokens, surface, expected):
    document = make_document(tokens) if tokens is not None else None

    theme = resolve_theme(DEFAULT_THEME, make_legacy(**legacy), document, surface)

    assert theme.primary_color == expected


def test_each_field_falls_through_independently():
    legacy = make_legacy(secondary_color="#444444")
    document = make_document({"colors": {"primary": "#222222"}})

    theme = resolve_theme(DEFAULT_THEME, legacy, document)

    assert theme.primary_color == "#222222"
    assert theme.secondary_color == "#444444"
    assert theme.accent_color == DEFAULT_THEME.accent_color


def test_malformed_values_degrade_per_field():
    legacy = make_legacy(primary_color="#333333")
    document = make_document({
        "colors": {"primary": "not a color!!", "secondary": "#444444"},
        "typography": {"fontWeight": {"bold": "heavy", "black": 900}},
        "layout": {"heroHeight": "enormous", "hero": {"height": "enormous"}},
    })

    theme = resolve_theme(DEFAULT_THEME, legacy, document)

    assert theme.primary_color == "#333333"
    assert theme.secondary_color == "#444444"
    assert theme.font_weights["bold"] == 700
    assert theme.font_weights["black"] == 900
    assert theme.hero_height == DEFAULT_THEME.hero_height


def test_non_mapping_sections_are_ignored():
    theme = resolve_theme(DEFAULT_THEME, {"primary_color": "#333333"}, {"colors": "oops", "mobile": 7}, "mobile")

    assert theme.primary_color == "#333333"
    assert theme.background_mode == "solid"


def test_empty_strings_count_as_absent():
    legacy = make_legacy(primary_color="#333333")
    document = make_document({"colors": {"primary": "  "}})

    assert resolve_theme(DEFAULT_THEME, legacy, document).primary_color == "#333333"


def test_surface_specific_override_keys():
    document = make_document({
        "web": {"navBackgroundColor": "#abcdef", "heroStyle": "video"},
        "mobile": {"splashBackgroundColor": "#fedcba", "statusBarStyle": "dark"},
    })

    web = resolve_theme(DEFAULT_THEME, None, document, "web")
    mobile = resolve_theme(DEFAULT_THEME, None, document, "mobile")

    assert web.nav_background_color == "#abcdef"
    assert web.hero_style == "video"
    assert web.splash_color == DEFAULT_THEME.splash_color
    assert mobile.nav_background_color == DEFAULT_THEME.nav_background_color
    assert mobile.splash_color == "#fedcba"
    assert mobile.status_bar_style == "dark"


def test_mobile_surface_falls_back_to_app_section():
    document = make_document({"app": {"iconTheme": "glass"}, "mobile": {}})

    assert resolve_theme(DEFAULT_THEME, None, document, "mobile").icon_theme == "glass"
    assert resolve_theme(DEFAULT_THEME, None, document, "preview").icon_theme == "glass"
    assert resolve_theme(DEFAULT_THEME, None, document, "web").icon_theme == DEFAULT_THEME.icon_theme


class TestBackground:
    def test_first_complete_mode_wins_inside_a_tier(self):
        legacy = make_legacy(
            background_gradient_start="#ffffff",
            background_gradient_end="#000000",
            background_pattern="dots",
        )

        theme = resolve_theme(DEFAULT_THEME, legacy, None)

        assert theme.background_mode == "gradient"
        assert theme.background_gradient_start == "#ffffff"
        assert theme.background_gradient_end == "#000000"
        assert theme.background_pattern is None
        assert theme.background_pattern_color is None
        assert theme.background_image_url is None

    def test_higher_tier_replaces_lower_tier_mode(self):
        legacy = make_legacy(background_image_url="https://cdn.example.com/legacy.png")
        document = make_document({"background": {"mode": "pattern", "pattern": "dots"}})

        theme = resolve_theme(DEFAULT_THEME, legacy, document)

        assert theme.background_mode == "pattern"
        assert theme.background_pattern == "dots"
        assert theme.background_pattern_color == "#00000010"
        assert theme.background_image_url is None
        assert theme.background_image_overlay is None

    def test_incomplete_gradient_resolves_to_solid(self):
        legacy = make_legacy(background_image_url="https://cdn.example.com/legacy.png")
        document = make_document({"background": {"gradientStart": "#ffffff"}})

        theme = resolve_theme(DEFAULT_THEME, legacy, document)

        assert theme.background_mode == "solid"
        assert theme.background_gradient_start is None
        assert theme.background_image_url is None

    def test_surface_override_background(self):
        document = make_document({
            "background": {"gradientStart": "#ffffff", "gradientEnd": "#eeeeee"},
            "app": {"background": {"mode": "image", "imageUrl": "https://cdn.example.com/app.png"}},
        })

        preview = resolve_theme(DEFAULT_THEME, None, document, "preview")
        general = resolve_theme(DEFAULT_THEME, None, document)

        assert preview.background_mode == "image"
        assert preview.background_image_url == "https://cdn.example.com/app.png"
        assert preview.background_image_overlay == 0.5
        assert preview.background_gradient_start is None
        assert general.background_mode == "gradient"
        assert general.background_image_url is None

    def test_none_pattern_is_absent(self):
        theme = resolve_theme(DEFAULT_THEME, make_legacy(background_pattern="none"), None)

        assert theme.background_mode == "solid"
        assert theme.background_pattern is None

    def test_explicit_solid_mode_ignores_other_keys(self):
        document = make_document({
            "background": {"mode": "solid", "color": "#fafafa", "imageUrl": "https://cdn.example.com/x.png"},
        })

        theme = resolve_theme(DEFAULT_THEME, None, document)

        assert theme.background_mode == "solid"
        assert theme.background_color == "#fafafa"
        assert theme.background_image_url is None

    def test_exactly_one_mode_is_populated(self):
        legacy = make_legacy(
            background_image_url="https://cdn.example.com/bg.png",
            background_image_overlay=0.2,
            background_gradient_start="#ffffff",
            background_gradient_end="#000000",
            background_pattern="grid",
        )

        theme = resolve_theme(DEFAULT_THEME, legacy, None)

        assert theme.background_mode == "image"
        assert theme.background_image_overlay == 0.2
        populated = [
            name for name in (
                "background_gradient_start", "background_gradient_end",
                "background_pattern", "background_pattern_color",
            )
            if getattr(theme, name) is not None
        ]
        assert populated == []


def test_nested_groups_deep_merge_across_tiers():
    legacy = make_legacy(feature_chat=False, feature_live_stream=None)
    document = make_document({
        "features": {"live_stream": True},
        "spacing": {"md": "2rem"},
        "mobile": {"spacing": {"sm": "1px"}},
        "app": {"features": {"chat": True}},
    })

    general = resolve_theme(DEFAULT_THEME, legacy, document)
    mobile = resolve_theme(DEFAULT_THEME, legacy, document, "mobile")

    assert general.features["chat"] is False
    assert general.features["live_stream"] is True
    assert general.features["networking"] is True
    assert general.spacing["md"] == "2rem"
    assert general.spacing["sm"] == DEFAULT_THEME.spacing["sm"]
    assert mobile.features["chat"] is True
    assert mobile.spacing["sm"] == "1px"
    assert mobile.spacing["md"] == "2rem"
    assert mobile.spacing["lg"] == DEFAULT_THEME.spacing["lg"]


def test_card_style_merges_by_key_and_drops_invalid_leaves():
    document = make_document({
        "layout": {"cardStyle": {"border": "accent", "variant": "neon"}},
        "app": {"cardStyle": {"variant": "glass"}},
    })

    preview = resolve_theme(DEFAULT_THEME, None, document, "preview")
    general = resolve_theme(DEFAULT_THEME, None, document)

    assert preview.card_style.variant == "glass"
    assert preview.card_style.border == "accent"
    assert general.card_style.variant == DEFAULT_THEME.card_style.variant
    assert general.card_style.border == "accent"


def test_arrays_are_replaced_wholesale():
    document = make_document({
        "layout": {"navigation": [{"id": "home", "name": "Home", "icon": "Home", "order": 0}]},
        "mobile": {"layout": {"navigation": [{"id": "broken"}]}},
    })

    theme = resolve_theme(DEFAULT_THEME, None, document, "mobile")

    assert [module.id for module in theme.navigation] == ["home"]


def test_empty_array_falls_through_to_default():
    document = make_document({"layout": {"sections": []}})

    assert resolve_theme(DEFAULT_THEME, None, document).sections == DEFAULT_THEME.sections


def test_theme_memo_returns_identical_object_for_equal_inputs():
    memo = ThemeMemo()
    legacy = make_legacy(primary_color="#333333")
    document = make_document({"colors": {"accent": "#00ff00"}})

    first = memo.resolve(DEFAULT_THEME, legacy, document, "web")
    again = memo.resolve(DEFAULT_THEME, make_legacy(primary_color="#333333"), make_document({"colors": {"accent": "#00ff00"}}), "web")
    other_surface = memo.resolve(DEFAULT_THEME, legacy, document, "mobile")

    assert again is first
    assert other_surface is not first
    assert other_surface == first
