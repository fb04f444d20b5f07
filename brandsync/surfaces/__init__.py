# brandsync/surfaces/__init__.py
from .subscription import SurfaceSubscription, ThemeState, use_resolved_theme

__all__ = ["SurfaceSubscription", "ThemeState", "use_resolved_theme"]
