"""Pydantic schemas for request and response payloads."""

from .auth import (
    AuthResponse,
    LoginPayload,
    LogoutPayload,
    RefreshTokensPayload,
    RegisterPayload,
    UserSummary,
)
from .jobs import JobStatusResponse

__all__ = [
    "AuthResponse",
    "JobStatusResponse",
    "LoginPayload",
    "LogoutPayload",
    "RefreshTokensPayload",
    "RegisterPayload",
    "UserSummary",
]
