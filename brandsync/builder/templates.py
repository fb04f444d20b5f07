# brandsync/builder/templates.py
"""Curated starting points an operator can apply to a draft in one step."""

from typing import Dict, List, Literal

from pydantic import BaseModel, Field

from ..errors import UnknownTemplateError
from ..theme.models import CardStyle, ColorValue, HeroHeight, NonEmptyStr, Opacity, StorefrontSection


class TemplateColors(BaseModel):
    primary: ColorValue
    secondary: ColorValue
    accent: ColorValue
    background: ColorValue
    surface: ColorValue
    text: ColorValue
    text_muted: ColorValue = Field(alias="textMuted")
    heading: ColorValue
    border: ColorValue


class TemplateFonts(BaseModel):
    heading: NonEmptyStr
    body: NonEmptyStr


class TemplateHero(BaseModel):
    style: Literal["image", "gradient"]
    height: HeroHeight
    overlay_opacity: Opacity


class TemplateGradients(BaseModel):
    hero: NonEmptyStr
    accent: NonEmptyStr
    card: NonEmptyStr


class BuilderTemplate(BaseModel):
    id: str
    name: str
    description: str
    vibe: str
    colors: TemplateColors
    fonts: TemplateFonts
    card_style: CardStyle
    hero: TemplateHero
    gradients: TemplateGradients
    sections: List[StorefrontSection]


_SECTION_SLUGS = {
    "featured_products": "featured",
    "all_products": "products",
    "product_categories": "categories",
    "about_me": "about",
    "pickup_details": "pickup",
    "shop_hours": "hours",
    "newsletter_signup": "newsletter",
}


def _section(section_type: str, **config) -> StorefrontSection:
    slug = _SECTION_SLUGS.get(section_type, section_type)
    return StorefrontSection(id=f"tpl-{slug}", section_type=section_type, config=config)


_PICKUP = ("pickup_details", {"showMap": False})
_REVIEWS = ("reviews", {"count": 3, "style": "carousel"})
_ALL_PRODUCTS = ("all_products", {"layout": "grid", "showFilters": True})
_ABOUT = ("about_me", {"style": "card"})


def _sections(*specs) -> List[StorefrontSection]:
    return [_section(section_type, **config) for section_type, config in specs]


BUILDER_TEMPLATES: List[BuilderTemplate] = [
    BuilderTemplate(
        id="classic-bakery",
        name="Classic Bakery",
        description="Warm, traditional, timeless",
        vibe="Like a cozy neighborhood bakery",
        colors=TemplateColors(
            primary="#8B5E3C", secondary="#D4A574", accent="#C67B3C", background="#FFF8F0",
            surface="#FFFFFF", text="#3D2B1F", textMuted="#8B7355", heading="#5C3D2E", border="#E8D5C4",
        ),
        fonts=TemplateFonts(heading="Playfair Display", body="Lora"),
        card_style=CardStyle(variant="white", border="none", icon_style="solid"),
        hero=TemplateHero(style="image", height="medium", overlay_opacity=0.3),
        gradients=TemplateGradients(
            hero="linear-gradient(135deg, #8B5E3C 0%, #D4A574 100%)",
            accent="linear-gradient(135deg, #C67B3C 0%, #D4A574 100%)",
            card="linear-gradient(135deg, #FFF8F0 0%, #F5E6D3 100%)",
        ),
        sections=_sections(
            ("hero", {"height": "large", "showTagline": True, "showCTA": True}),
            ("featured_products", {"count": 3, "style": "card"}),
            _ABOUT,
            _ALL_PRODUCTS,
            _REVIEWS,
            _PICKUP,
            ("shop_hours", {}),
        ),
    ),
    BuilderTemplate(
        id="modern-minimal",
        name="Modern Minimal",
        description="Clean, sharp, contemporary",
        vibe="Sleek and sophisticated",
        colors=TemplateColors(
            primary="#1A1A1A", secondary="#555555", accent="#FF6B35", background="#FFFFFF",
            surface="#FAFAFA", text="#1A1A1A", textMuted="#888888", heading="#000000", border="#EEEEEE",
        ),
        fonts=TemplateFonts(heading="Inter", body="Inter"),
        card_style=CardStyle(variant="white", border="primary", icon_style="outline"),
        hero=TemplateHero(style="gradient", height="small", overlay_opacity=0),
        gradients=TemplateGradients(
            hero="linear-gradient(135deg, #1A1A1A 0%, #333333 100%)",
            accent="linear-gradient(135deg, #FF6B35 0%, #FF8F65 100%)",
            card="linear-gradient(135deg, #FAFAFA 0%, #F5F5F5 100%)",
        ),
        sections=_sections(
            ("hero", {"height": "small", "showTagline": True, "showCTA": True}),
            _ALL_PRODUCTS,
            _ABOUT,
            _PICKUP,
        ),
    ),
    BuilderTemplate(
        id="rustic-farmhouse",
        name="Rustic Farmhouse",
        description="Earthy, warm, handcrafted",
        vibe="Fresh from the farm stand",
        colors=TemplateColors(
            primary="#4E6E52", secondary="#8B7355", accent="#C4823D", background="#F5F0E8",
            surface="#FFFDF8", text="#2D3B2E", textMuted="#6B7C6D", heading="#3A4F3C", border="#D4CCBA",
        ),
        fonts=TemplateFonts(heading="Merriweather", body="Source Sans 3"),
        card_style=CardStyle(variant="tinted", border="secondary", icon_style="solid"),
        hero=TemplateHero(style="image", height="large", overlay_opacity=0.25),
        gradients=TemplateGradients(
            hero="linear-gradient(135deg, #4E6E52 0%, #7A9B7E 100%)",
            accent="linear-gradient(135deg, #C4823D 0%, #D4A574 100%)",
            card="linear-gradient(135deg, #F5F0E8 0%, #EDE5D8 100%)",
        ),
        sections=_sections(
            ("hero", {"height": "large", "showTagline": True, "showCTA": True}),
            ("featured_products", {"count": 4, "style": "card"}),
            _ABOUT,
            ("product_categories", {"showCounts": True}),
            _ALL_PRODUCTS,
            _REVIEWS,
            _PICKUP,
            ("shop_hours", {}),
            ("faq", {"items": []}),
        ),
    ),
    BuilderTemplate(
        id="bold-colorful",
        name="Bold & Colorful",
        description="Vibrant, energetic, fun",
        vibe="Bursting with personality",
        colors=TemplateColors(
            primary="#E63946", secondary="#457B9D", accent="#F4A261", background="#FFFFFF",
            surface="#F8F9FA", text="#1D3557", textMuted="#6C8EAD", heading="#1D3557", border="#DEE2E6",
        ),
        fonts=TemplateFonts(heading="Poppins", body="Nunito"),
        card_style=CardStyle(variant="white", border="accent", icon_style="pill"),
        hero=TemplateHero(style="gradient", height="medium", overlay_opacity=0),
        gradients=TemplateGradients(
            hero="linear-gradient(135deg, #E63946 0%, #F4A261 100%)",
            accent="linear-gradient(135deg, #457B9D 0%, #6BAED6 100%)",
            card="linear-gradient(135deg, #FFF5EE 0%, #FFF0E6 100%)",
        ),
        sections=_sections(
            ("hero", {"height": "medium", "showTagline": True, "showCTA": True}),
            ("featured_products", {"count": 4, "style": "card"}),
            ("product_categories", {"showCounts": True}),
            _ALL_PRODUCTS,
            ("newsletter_signup", {
                "headline": "Never miss a drop!",
                "description": "Be the first to know about new treats",
                "buttonText": "Count me in!",
            }),
            _REVIEWS,
            _PICKUP,
        ),
    ),
    BuilderTemplate(
        id="elegant",
        name="Elegant",
        description="Refined, luxurious, premium",
        vibe="For the discerning palate",
        colors=TemplateColors(
            primary="#2C3E50", secondary="#8E7C68", accent="#C9A96E", background="#FAF9F7",
            surface="#FFFFFF", text="#2C3E50", textMuted="#7F8C8D", heading="#1A252F", border="#E0DCD4",
        ),
        fonts=TemplateFonts(heading="Cormorant Garamond", body="Raleway"),
        card_style=CardStyle(variant="white", border="none", icon_style="outline"),
        hero=TemplateHero(style="image", height="large", overlay_opacity=0.4),
        gradients=TemplateGradients(
            hero="linear-gradient(135deg, #2C3E50 0%, #4A6274 100%)",
            accent="linear-gradient(135deg, #C9A96E 0%, #D4BC8E 100%)",
            card="linear-gradient(135deg, #FAF9F7 0%, #F2EFEA 100%)",
        ),
        sections=_sections(
            ("hero", {"height": "large", "showTagline": True, "showCTA": True}),
            _ABOUT,
            ("featured_products", {"count": 3, "style": "card"}),
            ("divider", {"style": "line"}),
            _ALL_PRODUCTS,
            _REVIEWS,
            _PICKUP,
            ("shop_hours", {}),
        ),
    ),
    BuilderTemplate(
        id="fun-playful",
        name="Fun & Playful",
        description="Bright, cheerful, friendly",
        vibe="Sweet treats, good vibes",
        colors=TemplateColors(
            primary="#FF69B4", secondary="#9B59B6", accent="#FFD93D", background="#FFFBF5",
            surface="#FFFFFF", text="#4A3548", textMuted="#9B8A99", heading="#C2185B", border="#F0E0F0",
        ),
        fonts=TemplateFonts(heading="Quicksand", body="Nunito"),
        card_style=CardStyle(variant="glass", border="accent", icon_style="pill"),
        hero=TemplateHero(style="gradient", height="medium", overlay_opacity=0),
        gradients=TemplateGradients(
            hero="linear-gradient(135deg, #FF69B4 0%, #FFD93D 100%)",
            accent="linear-gradient(135deg, #9B59B6 0%, #C39BD3 100%)",
            card="linear-gradient(135deg, #FFF0F5 0%, #FFF5EE 100%)",
        ),
        sections=_sections(
            ("hero", {"height": "medium", "showTagline": True, "showCTA": True}),
            ("featured_products", {"count": 4, "style": "card"}),
            _ALL_PRODUCTS,
            ("newsletter_signup", {
                "headline": "Join the sweet life!",
                "description": "Get updates on new treats and special orders",
                "buttonText": "Yes please!",
            }),
            _REVIEWS,
            _ABOUT,
            _PICKUP,
            ("faq", {"items": []}),
        ),
    ),
]

_TEMPLATES_BY_ID: Dict[str, BuilderTemplate] = {template.id: template for template in BUILDER_TEMPLATES}


def get_template(template_id: str) -> BuilderTemplate:
    """Look up a preset by id. Raises ``UnknownTemplateError`` when absent."""
    try:
        return _TEMPLATES_BY_ID[template_id]
    except KeyError:
        raise UnknownTemplateError(template_id) from None
