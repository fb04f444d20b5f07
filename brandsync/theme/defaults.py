# brandsync/theme/defaults.py
"""
Compiled-in resolution floor.

``DEFAULT_THEME`` is total: every property a surface can render has a value
here, so resolution always has something to fall back to.
"""

from .models import CardStyle, NavigationModule, ResolvedTheme, StorefrontSection

DEFAULT_SECTIONS = [
    StorefrontSection(id="default-hero", section_type="hero",
                      config={"height": "medium", "showTagline": True, "showCTA": True}),
    StorefrontSection(id="default-featured", section_type="featured_products",
                      config={"count": 3, "style": "card"}),
    StorefrontSection(id="default-products", section_type="all_products",
                      config={"layout": "grid", "showFilters": True}),
    StorefrontSection(id="default-about", section_type="about_me", config={"style": "card"}),
    StorefrontSection(id="default-pickup", section_type="pickup_details", config={"showMap": False}),
    StorefrontSection(id="default-hours", section_type="shop_hours", config={}),
]

DEFAULT_NAVIGATION = [
    NavigationModule(id="home", name="Home", icon="Home", order=0),
    NavigationModule(id="catalog", name="Catalog", icon="ShoppingBag", order=1),
    NavigationModule(id="orders", name="Orders", icon="ClipboardList", order=2),
    NavigationModule(id="pickup", name="Pickup", icon="MapPin", order=3),
    NavigationModule(id="reviews", name="Reviews", icon="Star", order=4),
    NavigationModule(id="messages", name="Messages", icon="MessageCircle", order=5),
    NavigationModule(id="account", name="Account", icon="User", order=6),
]

# Keys match the legacy ``feature_<name>`` columns
DEFAULT_FEATURES = {
    "networking": True,
    "attendee_directory": True,
    "session_qa": True,
    "live_polls": True,
    "chat": True,
    "session_ratings": True,
    "virtual_badges": True,
    "meeting_requests": True,
    "sponsor_booths": True,
    "live_stream": False,
    "recordings": True,
    "certificates": False,
}

DEFAULT_PATTERN_COLOR = "#00000010"
DEFAULT_IMAGE_OVERLAY = 0.5

DEFAULT_THEME = ResolvedTheme(
    primary_color="#2563eb",
    secondary_color="#1e40af",
    accent_color="#f59e0b",
    background_color="#ffffff",
    surface_color="#ffffff",
    text_color="#1f2937",
    text_muted_color="#6b7280",
    heading_color="#111827",
    border_color="#e5e7eb",
    nav_background_color="#ffffff",
    nav_text_color="#374151",
    button_color="#2563eb",
    button_text_color="#ffffff",
    splash_color="#2563eb",
    icon_background_color="#2563eb",
    status_bar_style="light",
    tab_bar_color="#ffffff",
    tab_bar_active_color="#2563eb",
    tab_bar_blur=True,
    background_mode="solid",
    gradient_hero="linear-gradient(135deg, #2563eb 0%, #1d4ed8 100%)",
    font_heading="Inter",
    font_body="Inter",
    font_mono="JetBrains Mono",
    font_sizes={
        "xs": "0.75rem",
        "sm": "0.875rem",
        "base": "1rem",
        "lg": "1.125rem",
        "xl": "1.25rem",
        "2xl": "1.5rem",
        "3xl": "1.875rem",
        "4xl": "2.25rem",
        "5xl": "3rem",
    },
    font_weights={"normal": 400, "medium": 500, "semibold": 600, "bold": 700},
    line_heights={"tight": 1.25, "normal": 1.5, "relaxed": 1.75},
    spacing={
        "xs": "0.25rem",
        "sm": "0.5rem",
        "md": "1rem",
        "lg": "1.5rem",
        "xl": "2rem",
        "2xl": "3rem",
        "3xl": "4rem",
    },
    border_radius={
        "none": "0",
        "sm": "0.25rem",
        "md": "0.5rem",
        "lg": "0.75rem",
        "xl": "1rem",
        "2xl": "1.5rem",
        "full": "9999px",
    },
    shadows={
        "none": "none",
        "sm": "0 1px 2px rgba(0,0,0,0.05)",
        "md": "0 4px 6px rgba(0,0,0,0.07)",
        "lg": "0 10px 15px rgba(0,0,0,0.1)",
        "xl": "0 20px 25px rgba(0,0,0,0.15)",
    },
    animation_durations={"fast": "150ms", "normal": "300ms", "slow": "500ms"},
    animation_easings={
        "default": "cubic-bezier(0.4, 0, 0.2, 1)",
        "in": "cubic-bezier(0.4, 0, 1, 1)",
        "out": "cubic-bezier(0, 0, 0.2, 1)",
        "bounce": "cubic-bezier(0.68, -0.55, 0.265, 1.55)",
    },
    card_style=CardStyle(variant="white", border="none", icon_style="solid"),
    icon_theme="solid",
    hero_style="gradient",
    hero_height="medium",
    hero_overlay_opacity=0.3,
    sections=DEFAULT_SECTIONS,
    navigation=DEFAULT_NAVIGATION,
    features=DEFAULT_FEATURES,
)
