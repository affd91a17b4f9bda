from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

PREMIUM_COOKIE_NAME = "__Secure-sku#brave-leo-premium"


@dataclass(frozen=True, slots=True)
class CredentialCacheEntry:
    """Opaque premium-tier token owned by the credential manager."""

    credential: str
    expires_at: datetime | None = None

    def to_cookie(self) -> str:
        return f"{PREMIUM_COOKIE_NAME}={self.credential}"


class CredentialManager(Protocol):
    """Supplies premium credentials and takes back the ones that stayed valid."""

    async def fetch_premium_credential(self) -> CredentialCacheEntry | None: ...

    def put_credential_in_cache(self, credential: CredentialCacheEntry) -> None: ...
