"""
Login, registration and logout flows.

These are the only writers of the token store besides the gateway's refresh.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from resilient_client.core.errors import GatewayError
from resilient_client.schemas import (
    AuthResponse,
    LoginPayload,
    LogoutPayload,
    RegisterPayload,
)
from resilient_client.services.gateway import Gateway, GatewayResult
from resilient_client.services.token_store import TokenStore

logger = logging.getLogger(__name__)


class AuthService:
    """Establish and tear down the signed-in session."""

    def __init__(self, gateway: Gateway, token_store: TokenStore) -> None:
        self._gateway = gateway
        self._tokens = token_store

    async def login(self, *, email: str, password: str) -> GatewayResult:
        payload = LoginPayload(email=email, password=password)
        return await self._authenticate("/auth/login", payload.model_dump())

    async def register(self, *, name: str, email: str, password: str) -> GatewayResult:
        payload = RegisterPayload(name=name, email=email, password=password)
        return await self._authenticate("/auth/register", payload.model_dump())

    async def logout(self) -> None:
        """Best-effort server logout followed by an unconditional local one."""
        refresh_token = self._tokens.refresh_token
        if refresh_token:
            body = LogoutPayload(refresh_token=refresh_token).model_dump(by_alias=True)
            result = await self._gateway.post("/auth/logout", json=body, authenticated=False)
            if not result.ok:
                logger.warning(
                    "Server logout failed; clearing local session anyway",
                    extra={"status_code": result.status_code},
                )
        self._gateway.end_session("User logged out")

    async def _authenticate(self, path: str, body: dict) -> GatewayResult:
        result = await self._gateway.post(path, json=body, authenticated=False)
        if not result.ok:
            return result
        try:
            auth = AuthResponse.model_validate(result.data)
        except ValidationError:
            logger.error("Unexpected authentication payload", extra={"path": path})
            error = GatewayError(
                "Malformed authentication response", status_code=result.status_code
            )
            return GatewayResult(status_code=result.status_code, error=error)

        self._tokens.set(auth.tokens, auth.user.id)
        logger.info("Signed in", extra={"user_id": auth.user.id})
        return GatewayResult(status_code=result.status_code, data=auth)


__all__ = ["AuthService"]
