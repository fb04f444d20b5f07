# brandsync/theme/__init__.py
"""
Theme resolution package.

Holds the resolved theme model, the compiled defaults and the pure
precedence resolver that merges defaults, legacy fields and token documents.
"""

from .models import (
    CardStyle,
    NavigationModule,
    ResolvedTheme,
    StorefrontSection,
)
from .defaults import DEFAULT_THEME, DEFAULT_FEATURES, DEFAULT_NAVIGATION, DEFAULT_SECTIONS
from .resolver import ThemeMemo, resolve_theme

__all__ = [
    # Models
    "CardStyle",
    "NavigationModule",
    "ResolvedTheme",
    "StorefrontSection",
    # Defaults
    "DEFAULT_THEME",
    "DEFAULT_FEATURES",
    "DEFAULT_NAVIGATION",
    "DEFAULT_SECTIONS",
    # Resolution
    "ThemeMemo",
    "resolve_theme",
]
