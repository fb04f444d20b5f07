# brandsync/theme/fields.py
"""
Where each resolved theme property is read from.

A ``FieldRule`` lists, per precedence tier, the paths consulted for one
``ResolvedTheme`` field. Paths inside a tier are tried in order. Surface
override paths are relative to the surface section (``mobile``, ``app``,
``web``); every general token path is also looked up inside the active
surface sections, so ``mobile.colors.primary`` shadows ``colors.primary`` for
the mobile surface.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

# Surface key -> override sections, highest precedence first
SURFACE_SECTIONS: Dict[str, Tuple[str, ...]] = {
    "mobile": ("mobile", "app"),
    "preview": ("app",),
    "web": ("web",),
}

# Legacy flat columns that describe the background, by background key
LEGACY_BACKGROUND_COLUMNS: Dict[str, str] = {
    "imageUrl": "background_image_url",
    "imageOverlay": "background_image_overlay",
    "gradientStart": "background_gradient_start",
    "gradientEnd": "background_gradient_end",
    "pattern": "background_pattern",
    "patternColor": "background_pattern_color",
}


def surface_sections(surface: Optional[str]) -> Tuple[str, ...]:
    if surface is None:
        return ()
    return SURFACE_SECTIONS.get(surface, ())


@dataclass(frozen=True)
class FieldRule:
    """Sources for a scalar (or wholesale-replaced list) theme field."""
    name: str
    tokens: Tuple[str, ...] = ()
    legacy: Tuple[str, ...] = ()
    overrides: Dict[str, Tuple[str, ...]] = field(default_factory=dict)


@dataclass(frozen=True)
class GroupRule:
    """Sources for a nested group that is deep-merged across tiers."""
    name: str
    token_path: str
    legacy_prefix: Optional[str] = None
    overrides: Dict[str, Tuple[str, ...]] = field(default_factory=dict)


FIELD_RULES: Tuple[FieldRule, ...] = (
    # Colors
    FieldRule("primary_color", ("colors.primary",), ("primary_color",)),
    FieldRule("secondary_color", ("colors.secondary",), ("secondary_color",)),
    FieldRule("accent_color", ("colors.accent",), ("accent_color",)),
    FieldRule("background_color", ("background.color", "colors.background"), ("background_color",)),
    FieldRule("surface_color", ("colors.surface",), ("surface_color",)),
    FieldRule("text_color", ("colors.text",), ("text_color",)),
    FieldRule("text_muted_color", ("colors.textMuted",), ("text_muted_color",)),
    FieldRule("heading_color", ("colors.heading", "colors.text"), ("heading_color",)),
    FieldRule("border_color", ("colors.border",), ("border_color",)),
    FieldRule("nav_background_color", ("colors.surface",), ("nav_background_color",),
              {"web": ("navBackgroundColor",)}),
    FieldRule("nav_text_color", ("colors.textMuted",), ("nav_text_color",),
              {"web": ("navTextColor",)}),
    FieldRule("button_color", ("colors.primary",), ("button_color", "primary_color")),
    FieldRule("button_text_color", ("colors.textInverse",), ("button_text_color",)),

    # Mobile-specific
    FieldRule("splash_color", ("colors.primary",), ("mobile_splash_color", "primary_color"),
              {"mobile": ("splashBackgroundColor",)}),
    FieldRule("icon_background_color", ("colors.primary",),
              ("mobile_icon_background_color", "primary_color")),
    FieldRule("status_bar_style", (), ("mobile_status_bar_style",),
              {"mobile": ("statusBarStyle",)}),
    FieldRule("tab_bar_color", ("colors.background",), ("mobile_tab_bar_color",)),
    FieldRule("tab_bar_active_color", ("colors.primary",),
              ("mobile_tab_bar_active_color", "primary_color")),
    FieldRule("tab_bar_blur", (), ("mobile_tab_bar_blur",), {"mobile": ("tabBarBlur",)}),

    # Gradients
    FieldRule("gradient_hero", ("gradients.hero",), ("gradient_hero",),
              {"mobile": ("gradientHero",)}),
    FieldRule("gradient_accent", ("gradients.accent",), ("gradient_accent",)),
    FieldRule("gradient_card", ("gradients.card",), ("gradient_card",)),

    # Typography
    FieldRule("font_heading", ("typography.fontFamily.heading",), ("font_heading",)),
    FieldRule("font_body", ("typography.fontFamily.body",), ("font_body",)),
    FieldRule("font_mono", ("typography.fontFamily.mono",), ("font_mono",)),

    # Media
    FieldRule("logo_url", ("overview.logoUrl",), ("logo_url",)),
    FieldRule("banner_url", ("overview.bannerUrl",), ("banner_url",)),

    # Layout
    FieldRule("icon_theme", ("layout.iconTheme",), ("icon_theme",), {"app": ("iconTheme",)}),
    FieldRule("hero_style", ("layout.hero.style",), ("hero_style",), {"web": ("heroStyle",)}),
    FieldRule("hero_height", ("layout.hero.height",), ("hero_height",), {"web": ("heroHeight",)}),
    FieldRule("hero_background_url", ("layout.hero.backgroundUrl",), ("hero_background_url",),
              {"web": ("heroBackgroundUrl",)}),
    FieldRule("hero_video_url", ("layout.hero.videoUrl",), ("hero_video_url",),
              {"web": ("heroVideoUrl",)}),
    FieldRule("hero_overlay_opacity", ("layout.hero.overlayOpacity",), ("hero_overlay_opacity",),
              {"web": ("heroOverlayOpacity",)}),
    FieldRule("sections", ("layout.sections",)),
    FieldRule("navigation", ("layout.navigation",)),
)

GROUP_RULES: Tuple[GroupRule, ...] = (
    GroupRule("font_sizes", "typography.fontSize"),
    GroupRule("font_weights", "typography.fontWeight"),
    GroupRule("line_heights", "typography.lineHeight"),
    GroupRule("spacing", "spacing"),
    GroupRule("border_radius", "borderRadius"),
    GroupRule("shadows", "shadows"),
    GroupRule("animation_durations", "animation.duration"),
    GroupRule("animation_easings", "animation.easing"),
    GroupRule("card_style", "layout.cardStyle", overrides={"app": ("cardStyle",)}),
    GroupRule("features", "features", legacy_prefix="feature_"),
)


def override_paths(rule: FieldRule, sections: Tuple[str, ...]) -> Tuple[str, ...]:
    """Absolute document paths consulted for ``rule`` in the override tier."""
    paths = []
    for section in sections:
        paths.extend(f"{section}.{path}" for path in rule.overrides.get(section, ()))
        paths.extend(f"{section}.{path}" for path in rule.tokens)
    return tuple(paths)


def group_override_paths(rule: GroupRule, sections: Tuple[str, ...]) -> Tuple[str, ...]:
    paths = []
    for section in sections:
        paths.extend(f"{section}.{path}" for path in rule.overrides.get(section, ()))
        paths.append(f"{section}.{rule.token_path}")
    return tuple(paths)
