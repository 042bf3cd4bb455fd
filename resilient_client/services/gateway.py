"""
Authenticated request gateway.

Every outbound call goes through ``Gateway.execute``: credentials are attached,
transient failures are retried, and a 401 triggers a single shared token
refresh after which the original request is replayed once.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional

import httpx
from pydantic import ValidationError

from resilient_client.core.config import GatewaySettings
from resilient_client.core.errors import (
    ClientRequestError,
    GatewayError,
    RequestCancelledError,
    SessionInvalidError,
    TransientError,
    UnauthorizedError,
)
from resilient_client.models import TokenPair
from resilient_client.schemas import RefreshTokensPayload
from resilient_client.services.token_store import TokenStore
from resilient_client.utils.http import RetryConfig, request_with_retry

logger = logging.getLogger(__name__)

REFRESH_PATH = "/auth/refresh-tokens"
CONTENT_TYPE = "application/json"

SessionListener = Callable[[SessionInvalidError], None]


@dataclass(slots=True)
class ApiRequest:
    """Description of one call to the remote service."""

    method: str
    url: str
    json: Any = None
    params: Optional[Mapping[str, Any]] = None
    headers: Dict[str, str] = field(default_factory=dict)
    authenticated: bool = True
    cancel_event: Optional[asyncio.Event] = None

    @property
    def description(self) -> str:
        return f"{self.method.upper()} {self.url}"

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()


@dataclass(slots=True)
class GatewayResult:
    """Either a success payload or a classified error, never both."""

    status_code: Optional[int] = None
    data: Any = None
    error: Optional[GatewayError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> Any:
        if self.error is not None:
            raise self.error
        return self.data


class Gateway:
    """Wraps an ``httpx.AsyncClient`` with auth, retry and refresh handling."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        token_store: TokenStore,
        settings: GatewaySettings,
    ) -> None:
        self._client = client
        self._tokens = token_store
        self._settings = settings
        self._retry = RetryConfig(
            attempts=settings.max_attempts,
            backoff_seconds=settings.backoff_seconds,
            multiplier=settings.backoff_multiplier,
        )
        self._refresh_task: asyncio.Task[TokenPair] | None = None
        self._listeners: list[SessionListener] = []

    def add_session_listener(self, listener: SessionListener) -> None:
        """Register a callback fired once whenever the session is torn down."""
        self._listeners.append(listener)

    @property
    def refresh_in_progress(self) -> bool:
        return self._refresh_task is not None and not self._refresh_task.done()

    async def request(self, method: str, url: str, **kwargs: Any) -> GatewayResult:
        return await self.execute(ApiRequest(method=method, url=url, **kwargs))

    async def get(self, url: str, **kwargs: Any) -> GatewayResult:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> GatewayResult:
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs: Any) -> GatewayResult:
        return await self.request("PUT", url, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> GatewayResult:
        return await self.request("DELETE", url, **kwargs)

    async def execute(self, request: ApiRequest) -> GatewayResult:
        """Send ``request`` and classify the outcome."""
        try:
            response, used_token = await self._dispatch(request)
            if response.status_code == 401 and request.authenticated:
                response = await self._refresh_and_replay(request, used_token)
        except GatewayError as exc:
            return GatewayResult(status_code=exc.status_code, error=exc)
        except httpx.HTTPError as exc:
            logger.warning(
                "Unclassified HTTP failure", extra={"request": request.description}
            )
            error = TransientError(f"{request.description} failed ({type(exc).__name__}: {exc})")
            return GatewayResult(error=error)
        return self._to_result(request, response)

    async def refresh_session(self) -> TokenPair:
        """Refresh the token pair, joining a refresh that is already running.

        Only one refresh call reaches the remote service at a time. The shared
        task is shielded so a caller being cancelled does not abort it for the
        other waiters.
        """
        task = self._refresh_task
        if task is None:
            task = asyncio.create_task(self._run_refresh())
            self._refresh_task = task
            task.add_done_callback(self._refresh_finished)
        return await asyncio.shield(task)

    def end_session(self, reason: str) -> SessionInvalidError:
        """Clear credentials and notify listeners; returns the error to surface."""
        self._tokens.clear()
        error = SessionInvalidError(reason, redirect_to=self._settings.login_path)
        logger.info("Session cleared", extra={"reason": reason})
        for listener in list(self._listeners):
            try:
                listener(error)
            except Exception:
                logger.exception("Session listener failed")
        return error

    async def _dispatch(self, request: ApiRequest) -> tuple[httpx.Response, Optional[str]]:
        token = self._tokens.access_token if request.authenticated else None
        headers = {**request.headers, "Content-Type": CONTENT_TYPE}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        async def send() -> httpx.Response:
            return await self._client.request(
                request.method,
                request.url,
                json=request.json,
                params=request.params,
                headers=headers,
                timeout=self._settings.timeout_seconds,
            )

        response = await request_with_retry(
            send,
            retry_config=self._retry,
            cancel_event=request.cancel_event,
            description=request.description,
        )
        return response, token

    async def _refresh_and_replay(
        self, request: ApiRequest, used_token: Optional[str]
    ) -> httpx.Response:
        current = self._tokens.access_token
        if self.refresh_in_progress or current == used_token:
            await self.refresh_session()
        elif current is None:
            # The session ended while this request was in flight; it was
            # already cleared and announced once.
            raise SessionInvalidError(
                "Session already ended", redirect_to=self._settings.login_path
            )
        else:
            # Another request already refreshed; just retry with the new token.
            logger.debug("Retrying with already refreshed token", extra={"request": request.description})

        if request.cancelled:
            raise RequestCancelledError(f"{request.description} cancelled")
        response, _ = await self._dispatch(request)
        return response

    async def _run_refresh(self) -> TokenPair:
        refresh_token = self._tokens.refresh_token
        if not refresh_token:
            raise self.end_session("No refresh token available")

        logger.info("Refreshing access token")
        try:
            response = await request_with_retry(
                lambda: self._client.post(
                    REFRESH_PATH,
                    json=RefreshTokensPayload(refresh_token=refresh_token).model_dump(
                        by_alias=True
                    ),
                    headers={"Content-Type": CONTENT_TYPE},
                    timeout=self._settings.timeout_seconds,
                ),
                retry_config=self._retry,
                description=f"POST {REFRESH_PATH}",
            )
        except GatewayError as exc:
            raise self.end_session(f"Token refresh failed: {exc.message}") from exc

        if not response.is_success:
            raise self.end_session(
                f"Token refresh rejected with status {response.status_code}"
            )
        try:
            tokens = TokenPair.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise self.end_session("Token refresh returned an invalid payload") from exc

        self._tokens.set(tokens, self._tokens.user_id)
        logger.info("Access token refreshed")
        return tokens

    def _refresh_finished(self, task: asyncio.Task[TokenPair]) -> None:
        if self._refresh_task is task:
            self._refresh_task = None
        if not task.cancelled():
            # Mark the outcome as retrieved even if every waiter went away.
            task.exception()

    def _to_result(self, request: ApiRequest, response: httpx.Response) -> GatewayResult:
        payload = _decode_body(response)
        status_code = response.status_code
        if status_code < 400:
            return GatewayResult(status_code=status_code, data=payload)

        message = _error_message(payload) or response.reason_phrase or "Request failed"
        if status_code == 401:
            error: GatewayError = UnauthorizedError(message, status_code=status_code)
        else:
            error = ClientRequestError(message, status_code=status_code, payload=payload)
        logger.info(
            "Request rejected",
            extra={"request": request.description, "status_code": status_code},
        )
        return GatewayResult(status_code=status_code, error=error)


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def _error_message(payload: Any) -> Optional[str]:
    if isinstance(payload, dict):
        message = payload.get("message") or payload.get("error")
        return str(message) if message else None
    if isinstance(payload, str) and payload:
        return payload
    return None


__all__ = ["ApiRequest", "Gateway", "GatewayResult", "SessionListener"]
