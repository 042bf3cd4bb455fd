"""Schemas for the authentication endpoints of the remote service."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from resilient_client.models import TokenPair


class LoginPayload(BaseModel):
    email: str
    password: str


class RegisterPayload(BaseModel):
    name: str
    email: str
    password: str


class RefreshTokensPayload(BaseModel):
    """Body of ``POST /auth/refresh-tokens``."""

    model_config = ConfigDict(populate_by_name=True)

    refresh_token: str = Field(..., alias="refreshToken")


class LogoutPayload(RefreshTokensPayload):
    """Body of ``POST /auth/logout``."""


class UserSummary(BaseModel):
    """Subset of the user profile returned alongside fresh tokens."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    name: str | None = None
    email: str | None = None
    role: str | None = None
    is_email_verified: bool = Field(False, alias="isEmailVerified")


class AuthResponse(BaseModel):
    """Payload returned by login and registration."""

    user: UserSummary
    tokens: TokenPair


__all__ = [
    "AuthResponse",
    "LoginPayload",
    "LogoutPayload",
    "RefreshTokensPayload",
    "RegisterPayload",
    "UserSummary",
]
