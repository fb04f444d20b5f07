# brandsync/__init__.py
"""
BrandSync: tenant branding resolution and propagation.

Resolves a tenant's theme from defaults, legacy fields and token documents,
keeps every rendering surface in step with published changes, and manages
the builder's draft lifecycle.
"""

__version__ = "0.1.0"
