"""HTTP utilities providing retry/backoff semantics."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

import httpx

from resilient_client.core.errors import RequestCancelledError, TransientError

logger = logging.getLogger(__name__)


class RetryConfig:
    def __init__(
        self,
        *,
        attempts: int = 3,
        backoff_seconds: float = 0.5,
        multiplier: float = 2.0,
    ) -> None:
        if attempts < 1:
            raise ValueError("attempts must be at least 1")
        if multiplier <= 1:
            raise ValueError("multiplier must be greater than 1")
        self.attempts = attempts
        self.backoff_seconds = backoff_seconds
        self.multiplier = multiplier

    def delay_for(self, attempt: int) -> float:
        """Delay to wait after the given (1-based) failed attempt."""
        return self.backoff_seconds * (self.multiplier ** (attempt - 1))


def is_transient_status(status_code: int) -> bool:
    return status_code >= 500


async def _sleep_or_cancel(delay: float, cancel_event: Optional[asyncio.Event]) -> bool:
    """Sleep for ``delay`` seconds; return True if cancelled meanwhile."""
    if cancel_event is None:
        await asyncio.sleep(delay)
        return False
    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=delay)
    except asyncio.TimeoutError:
        return False
    return True


async def request_with_retry(
    send: Callable[[], Awaitable[httpx.Response]],
    *,
    retry_config: RetryConfig | None = None,
    cancel_event: Optional[asyncio.Event] = None,
    description: str = "request",
) -> httpx.Response:
    """Call ``send`` until it yields a non-transient response.

    Network failures, timeouts and 5xx responses are retried with exponential
    backoff. Any other response (including 4xx) is returned untouched. Raises
    ``TransientError`` once every attempt is spent and
    ``RequestCancelledError`` if ``cancel_event`` fires.
    """
    config = retry_config or RetryConfig()
    attempt = 0
    last_error: str = "no attempt made"
    last_status: int | None = None

    while attempt < config.attempts:
        if cancel_event is not None and cancel_event.is_set():
            raise RequestCancelledError(f"{description} cancelled")
        attempt += 1
        try:
            response = await send()
        except httpx.RequestError as exc:
            last_error = f"{type(exc).__name__}: {exc}"
            last_status = None
        else:
            if not is_transient_status(response.status_code):
                return response
            last_error = f"server responded {response.status_code}"
            last_status = response.status_code

        if attempt >= config.attempts:
            break
        delay = config.delay_for(attempt)
        logger.warning(
            "Transient failure, retrying",
            extra={"request": description, "attempt": attempt, "delay": delay},
        )
        if await _sleep_or_cancel(delay, cancel_event):
            raise RequestCancelledError(f"{description} cancelled")

    raise TransientError(
        f"{description} failed after {attempt} attempts ({last_error})",
        status_code=last_status,
    )


__all__ = ["RetryConfig", "is_transient_status", "request_with_retry"]
