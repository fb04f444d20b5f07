# brandsync/store/models.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict
from datetime import datetime, timezone


class TokenDocument(BaseModel):
    """
    One versioned design token document for a tenant.

    ``tokens`` is kept as a raw nested mapping. The resolver validates it per
    field, so one malformed value never invalidates the whole document.
    """

    model_config = ConfigDict(frozen=True)

    tenant_id: str
    version: int = Field(ge=1, description="Monotonic per tenant, assigned by the store.")
    tokens: Dict[str, Any] = Field(default_factory=dict)
    is_active: bool = True
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class LegacyFields(BaseModel):
    """Flat snake_case settings row that predates token documents. Read-only for the core."""

    model_config = ConfigDict(frozen=True)

    tenant_id: str
    fields: Dict[str, Any] = Field(default_factory=dict)
