# brandsync/utils/access_codes.py
import secrets
import string
from abc import ABC, abstractmethod
from typing import Optional

from ..settings import settings

ACCESS_CODE_ALPHABET = string.ascii_uppercase + string.digits


class AccessCodeGeneratorProtocol(ABC):
    """Protocol for producing the public access code shown to attendees after publish."""

    @abstractmethod
    def generate_access_code(self, tenant_id: str) -> str:
        """Generate a new access code for ``tenant_id``."""
        pass

    def public_url(self, tenant_id: str) -> str:
        """Public storefront URL for the tenant."""
        return f"{settings.public_base_url.rstrip('/')}/shop/{tenant_id}"


class DefaultAccessCodeGenerator(AccessCodeGeneratorProtocol):
    """Uppercase alphanumeric codes drawn from ``secrets``."""

    def __init__(self, length: Optional[int] = None):
        self.length = length or settings.access_code_length

    def generate_access_code(self, tenant_id: str) -> str:
        return "".join(secrets.choice(ACCESS_CODE_ALPHABET) for _ in range(self.length))
