# brandsync/errors.py
from typing import Optional


class BrandSyncError(Exception):
    """Base class for every error raised by the brandsync core."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)


class TokenStoreError(BrandSyncError):
    """Raised when the token store collaborator cannot complete an operation."""

    def __init__(self, detail: str = "Token store operation failed.", tenant_id: Optional[str] = None):
        self.tenant_id = tenant_id
        super().__init__(detail)


class TransientStoreError(TokenStoreError):
    """Raised for recoverable backend failures during a fetch or a write.

    Callers may retry. Local state (a surface's last good theme, an operator's
    draft) must be left untouched when this is raised.
    """

    def __init__(self, detail: str = "Token store is temporarily unavailable.", tenant_id: Optional[str] = None):
        super().__init__(detail, tenant_id=tenant_id)


class ChangeTransportError(BrandSyncError):
    """Raised when the realtime change transport cannot deliver or subscribe."""

    def __init__(self, detail: str = "Change transport is unavailable."):
        super().__init__(detail)


class BuilderError(BrandSyncError):
    """Base class for builder draft controller misuse."""


class InvalidTransitionError(BuilderError):
    """Raised when a step change or publish is requested from a state that forbids it."""

    def __init__(self, detail: str = "This builder transition is not allowed right now."):
        super().__init__(detail)


class InvalidDraftEditError(BuilderError):
    """Raised when an edit does not validate against the draft model.

    The draft is left exactly as it was before the edit.
    """

    def __init__(self, field: str, detail: Optional[str] = None):
        self.field = field
        super().__init__(detail or f"Invalid value for draft field '{field}'.")


class UnknownTemplateError(BuilderError):
    """Raised when a template id does not match any known preset."""

    def __init__(self, template_id: str):
        self.template_id = template_id
        super().__init__(f"Unknown builder template '{template_id}'.")
