# brandsync/theme/models.py
from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel
from typing import Any, Dict, List, Literal, Optional
from typing_extensions import Annotated

# CSS color literal: hex (#rgb .. #rrggbbaa), functional notation or a named color
ColorValue = Annotated[
    str,
    StringConstraints(
        strip_whitespace=True,
        min_length=1,
        max_length=64,
        pattern=r"^(#[0-9a-fA-F]{3,8}|(rgb|rgba|hsl|hsla)\([^)]*\)|[a-zA-Z]+)$",
    ),
]
NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
Opacity = Annotated[float, Field(ge=0, le=1)]

BackgroundMode = Literal["image", "gradient", "pattern", "solid"]
StatusBarStyle = Literal["light", "dark", "auto"]
HeroStyle = Literal["image", "video", "gradient"]
HeroHeight = Literal["small", "medium", "large", "full"]
IconTheme = Literal["solid", "outline", "duotone", "glass"]
CardVariant = Literal["white", "tinted", "glass"]

SectionType = Literal[
    "hero",
    "featured_products",
    "product_categories",
    "all_products",
    "about_me",
    "reviews",
    "pickup_details",
    "shop_hours",
    "faq",
    "instagram_feed",
    "newsletter_signup",
    "custom_text",
    "divider",
    "spacer",
]


class CamelModel(BaseModel):
    """Frozen model serialized with camelCase keys, as stored in token documents."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class StorefrontSection(CamelModel):
    """One block of the public storefront page."""
    id: NonEmptyStr
    section_type: SectionType
    config: Dict[str, Any] = Field(default_factory=dict)
    is_visible: bool = True


class NavigationModule(CamelModel):
    """One entry of the attendee app's tab/navigation bar."""
    id: NonEmptyStr
    name: NonEmptyStr
    icon: NonEmptyStr
    enabled: bool = True
    order: int = 0


class CardStyle(CamelModel):
    variant: CardVariant = "white"
    border: NonEmptyStr = "none"
    icon_style: NonEmptyStr = "solid"


class ResolvedTheme(BaseModel):
    """
    Flat, total theme produced by precedence resolution.

    Every field is always present. Background fields that do not belong to the
    selected ``background_mode`` are explicitly ``None``. Instances are frozen:
    renderers must treat a theme as immutable for the duration of a render.
    """

    model_config = ConfigDict(frozen=True)

    # Colors
    primary_color: ColorValue
    secondary_color: ColorValue
    accent_color: ColorValue
    background_color: ColorValue
    surface_color: ColorValue
    text_color: ColorValue
    text_muted_color: ColorValue
    heading_color: ColorValue
    border_color: ColorValue
    nav_background_color: ColorValue
    nav_text_color: ColorValue
    button_color: ColorValue
    button_text_color: ColorValue

    # Mobile-specific
    splash_color: ColorValue
    icon_background_color: ColorValue
    status_bar_style: StatusBarStyle
    tab_bar_color: ColorValue
    tab_bar_active_color: ColorValue
    tab_bar_blur: bool

    # Background (exactly one mode populated)
    background_mode: BackgroundMode
    background_image_url: Optional[NonEmptyStr] = None
    background_image_overlay: Optional[Opacity] = None
    background_gradient_start: Optional[ColorValue] = None
    background_gradient_end: Optional[ColorValue] = None
    background_pattern: Optional[NonEmptyStr] = None
    background_pattern_color: Optional[ColorValue] = None

    # Gradients
    gradient_hero: Optional[NonEmptyStr] = None
    gradient_accent: Optional[NonEmptyStr] = None
    gradient_card: Optional[NonEmptyStr] = None

    # Typography
    font_heading: NonEmptyStr
    font_body: NonEmptyStr
    font_mono: NonEmptyStr
    font_sizes: Dict[str, NonEmptyStr]
    font_weights: Dict[str, int]
    line_heights: Dict[str, float]

    # Spacing and shape
    spacing: Dict[str, NonEmptyStr]
    border_radius: Dict[str, NonEmptyStr]
    shadows: Dict[str, NonEmptyStr]
    animation_durations: Dict[str, NonEmptyStr]
    animation_easings: Dict[str, NonEmptyStr]

    # Media
    logo_url: Optional[NonEmptyStr] = None
    banner_url: Optional[NonEmptyStr] = None

    # Layout
    card_style: CardStyle
    icon_theme: IconTheme
    hero_style: HeroStyle
    hero_height: HeroHeight
    hero_background_url: Optional[NonEmptyStr] = None
    hero_video_url: Optional[NonEmptyStr] = None
    hero_overlay_opacity: Opacity
    sections: List[StorefrontSection]
    navigation: List[NavigationModule]

    # Feature flags
    features: Dict[str, bool]

    def feature_enabled(self, name: str) -> bool:
        return self.features.get(name, False)

    @property
    def enabled_navigation(self) -> List[NavigationModule]:
        return sorted((m for m in self.navigation if m.enabled), key=lambda m: m.order)

    @property
    def visible_sections(self) -> List[StorefrontSection]:
        return [s for s in self.sections if s.is_visible]
