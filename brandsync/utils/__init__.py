# brandsync/utils/__init__.py

"""
Utility module initialization file.

Exposes the access-code collaborator used when a tenant publishes.
"""

from .access_codes import AccessCodeGeneratorProtocol, DefaultAccessCodeGenerator

__all__ = ["AccessCodeGeneratorProtocol", "DefaultAccessCodeGenerator"]
