"""
Error taxonomy shared by the gateway, the authentication flows and the job tracker.
"""

from __future__ import annotations

from typing import Any


class GatewayError(Exception):
    """Base class for every classified request failure."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class TransientError(GatewayError):
    """Network failure, timeout or 5xx response that survived every retry."""


class UnauthorizedError(GatewayError):
    """The remote service answered 401 for the presented credential."""


class SessionInvalidError(GatewayError):
    """The session could not be refreshed; the user has to sign in again."""

    def __init__(self, message: str, *, redirect_to: str = "/login") -> None:
        super().__init__(message, status_code=401)
        self.redirect_to = redirect_to


class ClientRequestError(GatewayError):
    """A 4xx response other than 401, surfaced to the caller verbatim."""

    def __init__(self, message: str, *, status_code: int, payload: Any = None) -> None:
        super().__init__(message, status_code=status_code)
        self.payload = payload


class RequestCancelledError(GatewayError):
    """The caller cancelled the request before it could complete."""


class SecretFormatError(ValueError):
    """The encrypted secret is not four colon-separated hex fields."""


class JobAlreadyActiveError(Exception):
    """Raised when a job is started while another one is still running."""

    def __init__(self, job_id: str) -> None:
        super().__init__(f"Job {job_id} is still in progress.")
        self.job_id = job_id


__all__ = [
    "ClientRequestError",
    "GatewayError",
    "JobAlreadyActiveError",
    "RequestCancelledError",
    "SecretFormatError",
    "SessionInvalidError",
    "TransientError",
    "UnauthorizedError",
]
