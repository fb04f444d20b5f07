# brandsync/builder/models.py
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel
from typing import Any, Dict, List, Literal, Mapping, Optional, Union
from typing_extensions import Annotated
from datetime import datetime
from enum import Enum
import copy
import logging

from ..theme.defaults import DEFAULT_IMAGE_OVERLAY, DEFAULT_PATTERN_COLOR
from ..theme.merge import MISSING, deep_merge, delete_path, get_path, set_path
from ..theme.models import (
    CardStyle,
    ColorValue,
    HeroHeight,
    HeroStyle,
    IconTheme,
    NavigationModule,
    NonEmptyStr,
    Opacity,
    ResolvedTheme,
    StatusBarStyle,
    StorefrontSection,
)

logger = logging.getLogger(__name__)


class BuilderStep(int, Enum):
    OVERVIEW = 0
    BRANDING = 1
    LAYOUT = 2
    PUBLISH = 3


class BuilderStatus(str, Enum):
    EDITING = "editing"
    SAVING = "saving"
    SAVED = "saved"
    SAVE_ERRORED = "save_errored"
    PUBLISHED = "published"


class DraftModel(BaseModel):
    """Base for draft content: camelCase on the wire, unknown keys dropped."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Overview(DraftModel):
    name: str = ""
    tagline: str = ""
    description: str = ""
    start_date: str = ""
    end_date: str = ""
    venue_name: str = ""
    venue_address: str = ""
    logo_url: Optional[NonEmptyStr] = None
    banner_url: Optional[NonEmptyStr] = None


class FontFamily(DraftModel):
    heading: NonEmptyStr
    body: NonEmptyStr
    mono: NonEmptyStr


class Typography(DraftModel):
    font_family: FontFamily
    font_size: Dict[str, NonEmptyStr] = Field(default_factory=dict)
    font_weight: Dict[str, int] = Field(default_factory=dict)
    line_height: Dict[str, float] = Field(default_factory=dict)


class Animation(DraftModel):
    duration: Dict[str, NonEmptyStr] = Field(default_factory=dict)
    easing: Dict[str, NonEmptyStr] = Field(default_factory=dict)


class BrandTokens(DraftModel):
    """General design tokens, written at the top level of the token document."""
    colors: Dict[str, ColorValue] = Field(default_factory=dict)
    typography: Typography
    spacing: Dict[str, NonEmptyStr] = Field(default_factory=dict)
    border_radius: Dict[str, NonEmptyStr] = Field(default_factory=dict)
    shadows: Dict[str, NonEmptyStr] = Field(default_factory=dict)
    animation: Animation = Field(default_factory=Animation)


class Gradients(DraftModel):
    hero: Optional[NonEmptyStr] = None
    accent: Optional[NonEmptyStr] = None
    card: Optional[NonEmptyStr] = None


class Design(DraftModel):
    tokens: BrandTokens
    gradients: Gradients = Field(default_factory=Gradients)
    card_style: CardStyle = Field(default_factory=CardStyle)
    icon_theme: IconTheme = "solid"


# Background variants. Exactly one is held per surface; the ``mode`` tag
# selects it. Fields may be unset while an operator is still filling them in;
# the resolver treats an incomplete variant as solid.

class ImageBackground(DraftModel):
    mode: Literal["image"] = "image"
    image_url: Optional[NonEmptyStr] = None
    image_overlay: Opacity = DEFAULT_IMAGE_OVERLAY


class GradientBackground(DraftModel):
    mode: Literal["gradient"] = "gradient"
    gradient_start: Optional[ColorValue] = None
    gradient_end: Optional[ColorValue] = None


class PatternBackground(DraftModel):
    mode: Literal["pattern"] = "pattern"
    pattern: Optional[NonEmptyStr] = None
    pattern_color: ColorValue = DEFAULT_PATTERN_COLOR


class SolidBackground(DraftModel):
    mode: Literal["solid"] = "solid"
    color: Optional[ColorValue] = None


Background = Annotated[
    Union[ImageBackground, GradientBackground, PatternBackground, SolidBackground],
    Field(discriminator="mode"),
]

BACKGROUND_VARIANTS = {
    "image": ImageBackground,
    "gradient": GradientBackground,
    "pattern": PatternBackground,
    "solid": SolidBackground,
}

# Background key (camelCase) -> the mode it belongs to
BACKGROUND_KEY_MODES = {
    "imageUrl": "image",
    "imageOverlay": "image",
    "gradientStart": "gradient",
    "gradientEnd": "gradient",
    "pattern": "pattern",
    "patternColor": "pattern",
    "color": "solid",
}


class AppSettings(DraftModel):
    """Attendee app (and builder preview) overrides."""
    background: Background = Field(default_factory=SolidBackground)


class WebSettings(DraftModel):
    """Public storefront page overrides."""
    nav_background_color: ColorValue = "#ffffff"
    nav_text_color: ColorValue = "#374151"
    hero_style: HeroStyle = "gradient"
    hero_height: HeroHeight = "medium"
    hero_background_url: Optional[NonEmptyStr] = None
    hero_video_url: Optional[NonEmptyStr] = None
    hero_overlay_opacity: Opacity = 0.3
    background: Background = Field(default_factory=SolidBackground)


class MobileSettings(DraftModel):
    """Native mobile shell overrides; unset values fall through to app and general tokens."""
    splash_background_color: Optional[ColorValue] = None
    status_bar_style: Optional[StatusBarStyle] = None
    tab_bar_blur: Optional[bool] = None


class PublishState(DraftModel):
    access_code: str = ""
    public_url: str = ""
    is_published: bool = False


class DraftContent(DraftModel):
    """Everything the operator edits. Serialized into a token document on save."""

    overview: Overview = Field(default_factory=Overview)
    design: Design
    app: AppSettings = Field(default_factory=AppSettings)
    web: WebSettings = Field(default_factory=WebSettings)
    mobile: MobileSettings = Field(default_factory=MobileSettings)
    sections: List[StorefrontSection] = Field(default_factory=list)
    navigation: List[NavigationModule] = Field(default_factory=list)
    features: Dict[str, bool] = Field(default_factory=dict)
    publish: PublishState = Field(default_factory=PublishState)

    def to_tokens(self) -> Dict[str, Any]:
        """Full token document payload for this draft."""
        data = self.model_dump(by_alias=True, mode="json")
        design = data["design"]
        tokens: Dict[str, Any] = dict(design["tokens"])
        tokens["gradients"] = {k: v for k, v in design["gradients"].items() if v is not None}
        tokens["layout"] = {
            "sections": data["sections"],
            "navigation": data["navigation"],
            "cardStyle": design["cardStyle"],
            "iconTheme": design["iconTheme"],
        }
        tokens["features"] = data["features"]
        tokens["overview"] = data["overview"]
        tokens["publish"] = data["publish"]
        tokens["app"] = {"background": _background_payload(self.app.background)}
        web = data["web"]
        web["background"] = _background_payload(self.web.background)
        tokens["web"] = web
        tokens["mobile"] = {k: v for k, v in data["mobile"].items() if v is not None}
        return tokens

    @classmethod
    def from_theme(cls, theme: ResolvedTheme, legacy: Optional[Mapping[str, Any]] = None) -> "DraftContent":
        """Seed a draft from a resolved theme, e.g. defaults merged with legacy fields."""
        legacy = legacy or {}
        background = _background_from_theme(theme)
        return cls(
            overview=Overview(
                name=str(legacy.get("name") or ""),
                tagline=str(legacy.get("tagline") or ""),
                description=str(legacy.get("description") or ""),
                venue_name=str(legacy.get("location_name") or legacy.get("venue_name") or ""),
                venue_address=str(legacy.get("location_address") or legacy.get("venue_address") or ""),
                logo_url=theme.logo_url,
                banner_url=theme.banner_url,
            ),
            design=Design(
                tokens=BrandTokens(
                    colors={
                        "primary": theme.primary_color,
                        "secondary": theme.secondary_color,
                        "accent": theme.accent_color,
                        "background": theme.background_color,
                        "surface": theme.surface_color,
                        "text": theme.text_color,
                        "textMuted": theme.text_muted_color,
                        "heading": theme.heading_color,
                        "border": theme.border_color,
                        "textInverse": theme.button_text_color,
                    },
                    typography=Typography(
                        font_family=FontFamily(
                            heading=theme.font_heading, body=theme.font_body, mono=theme.font_mono
                        ),
                        font_size=theme.font_sizes,
                        font_weight=theme.font_weights,
                        line_height=theme.line_heights,
                    ),
                    spacing=theme.spacing,
                    border_radius=theme.border_radius,
                    shadows=theme.shadows,
                    animation=Animation(duration=theme.animation_durations, easing=theme.animation_easings),
                ),
                gradients=Gradients(
                    hero=theme.gradient_hero, accent=theme.gradient_accent, card=theme.gradient_card
                ),
                card_style=theme.card_style,
                icon_theme=theme.icon_theme,
            ),
            app=AppSettings(background=background),
            web=WebSettings(
                nav_background_color=theme.nav_background_color,
                nav_text_color=theme.nav_text_color,
                hero_style=theme.hero_style,
                hero_height=theme.hero_height,
                hero_background_url=theme.hero_background_url,
                hero_video_url=theme.hero_video_url,
                hero_overlay_opacity=theme.hero_overlay_opacity,
                background=background,
            ),
            sections=list(theme.sections),
            navigation=list(theme.navigation),
            features=dict(theme.features),
        )

    @classmethod
    def from_tokens(cls, tokens: Mapping[str, Any], base: "DraftContent") -> "DraftContent":
        """
        Rebuild draft content from a stored token payload on top of ``base``.

        Each portion is validated on its own; a portion that does not validate
        keeps the value from ``base``.
        """
        current = base.model_dump(by_alias=True, mode="json")
        design = current["design"]

        brand = {key: tokens[key] for key in _BRAND_TOKEN_KEYS if isinstance(tokens.get(key), Mapping)}
        layout = tokens.get("layout") if isinstance(tokens.get("layout"), Mapping) else {}

        candidates = [
            ("design.tokens", lambda d: d["design"].update(tokens=deep_merge(design["tokens"], brand))),
            ("design.gradients", lambda d: d["design"].update(gradients=tokens["gradients"])),
            ("design.cardStyle", lambda d: d["design"].update(cardStyle=layout["cardStyle"])),
            ("design.iconTheme", lambda d: d["design"].update(iconTheme=layout["iconTheme"])),
            ("sections", lambda d: d.update(sections=layout["sections"])),
            ("navigation", lambda d: d.update(navigation=layout["navigation"])),
            ("features", lambda d: d.update(features=deep_merge(d["features"], tokens["features"]))),
            ("overview", lambda d: d.update(overview=tokens["overview"])),
            ("publish", lambda d: d.update(publish=tokens["publish"])),
            ("app", lambda d: d.update(app=tokens["app"])),
            ("web", lambda d: d.update(web=deep_merge(d["web"], tokens["web"]))),
            ("mobile", lambda d: d.update(mobile=tokens["mobile"])),
        ]

        content = base
        for portion, apply in candidates:
            candidate = content.model_dump(by_alias=True, mode="json")
            try:
                apply(candidate)
                content = cls.model_validate(candidate)
            except (KeyError, TypeError, ValueError, AttributeError, ValidationError):
                logger.debug(f"Keeping default draft '{portion}'; stored value is absent or invalid.")
        return content


_BRAND_TOKEN_KEYS = ("colors", "typography", "spacing", "borderRadius", "shadows", "animation")

# Draft content prefix (camelCase) -> where it lives in the token document
_CONTENT_TOKEN_PREFIXES = (
    ("design.tokens", ""),
    ("design.gradients", "gradients"),
    ("design.cardStyle", "layout.cardStyle"),
    ("design.iconTheme", "layout.iconTheme"),
    ("sections", "layout.sections"),
    ("navigation", "layout.navigation"),
)


def token_paths_for(field: str) -> List[str]:
    """Token document paths written by the draft content path ``field``."""
    if field == "design":
        return [*_BRAND_TOKEN_KEYS, "gradients", "layout.cardStyle", "layout.iconTheme"]
    if field == "design.tokens":
        return list(_BRAND_TOKEN_KEYS)
    for prefix, target in _CONTENT_TOKEN_PREFIXES:
        if field == prefix or field.startswith(prefix + "."):
            rest = field[len(prefix) + 1:]
            return [".".join(part for part in (target, rest) if part)]
    return [field]


def _background_payload(background: BaseModel) -> Dict[str, Any]:
    return background.model_dump(by_alias=True, mode="json", exclude_none=True)


def _background_from_theme(theme: ResolvedTheme) -> BaseModel:
    if theme.background_mode == "image":
        return ImageBackground(
            image_url=theme.background_image_url,
            image_overlay=theme.background_image_overlay if theme.background_image_overlay is not None
            else DEFAULT_IMAGE_OVERLAY,
        )
    if theme.background_mode == "gradient":
        return GradientBackground(
            gradient_start=theme.background_gradient_start, gradient_end=theme.background_gradient_end
        )
    if theme.background_mode == "pattern":
        return PatternBackground(
            pattern=theme.background_pattern,
            pattern_color=theme.background_pattern_color or DEFAULT_PATTERN_COLOR,
        )
    return SolidBackground(color=theme.background_color)


class Draft(BaseModel):
    """
    An operator's working copy plus its save bookkeeping.

    ``content`` shows every value, including those seeded from legacy fields
    and defaults. Only ``authored_paths`` are written on top of
    ``base_tokens`` (the forked document), so seed values never shadow the
    tenant's legacy fields in the stored document.
    """

    tenant_id: str
    base_version: Optional[int] = None
    base_tokens: Dict[str, Any] = Field(default_factory=dict)
    authored_paths: List[str] = Field(default_factory=list)
    content: DraftContent
    step: BuilderStep = BuilderStep.OVERVIEW
    status: BuilderStatus = BuilderStatus.EDITING
    is_dirty: bool = False
    last_saved_at: Optional[datetime] = None
    save_error: Optional[str] = None

    def with_authored(self, fields: List[str]) -> List[str]:
        """``authored_paths`` extended with the token paths of draft content ``fields``."""
        paths = list(self.authored_paths)
        for field in fields:
            for path in token_paths_for(field):
                if path not in paths:
                    paths.append(path)
        return paths

    def document_tokens(self) -> Dict[str, Any]:
        """
        Token payload for a save: the forked document with every authored
        path replaced by the draft's value. An authored path the draft no
        longer holds is removed.
        """
        full = self.content.to_tokens()
        tokens = copy.deepcopy(self.base_tokens)
        for path in self.authored_paths:
            value = get_path(full, path)
            if value is MISSING:
                tokens = delete_path(tokens, path)
            else:
                tokens = set_path(tokens, path, value)
        return tokens
