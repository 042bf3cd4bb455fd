"""
Credential models mirrored to durable storage.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


class TokenInfo(BaseModel):
    """A single token together with its expiry timestamp."""

    token: str
    expires: datetime


class TokenPair(BaseModel):
    """Access/refresh credential pair as issued by the remote service."""

    access: TokenInfo
    refresh: TokenInfo

    @property
    def access_token(self) -> str:
        return self.access.token

    @property
    def access_expiry(self) -> datetime:
        return self.access.expires

    @property
    def refresh_token(self) -> str:
        return self.refresh.token

    @property
    def refresh_expiry(self) -> datetime:
        return self.refresh.expires

    def is_access_expired(self, now: Optional[datetime] = None) -> bool:
        """Return True when the access token's expiry has already passed."""
        current = now or datetime.now(timezone.utc)
        expires = self.access.expires
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)
        return expires <= current


class Session(BaseModel):
    """Derived view of the signed-in user and their credentials."""

    user_id: str = Field(..., description="Identifier used to re-fetch the profile.")
    tokens: TokenPair


__all__ = ["Session", "TokenInfo", "TokenPair"]
