"""
Entrypoint that assembles the client runtime on application start.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from resilient_client.core.config import AppSettings
from resilient_client.core.logging import configure_logging
from resilient_client.dependencies import (
    get_app_settings,
    get_auth_service,
    get_gateway,
    get_http_client,
    get_job_tracker,
    get_secret_codec,
    get_token_store,
)
from resilient_client.services import (
    AuthService,
    Gateway,
    JobTracker,
    SecretCodec,
    TokenStore,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ClientRuntime:
    """The services a UI layer talks to."""

    settings: AppSettings
    http_client: httpx.AsyncClient
    tokens: TokenStore
    gateway: Gateway
    auth: AuthService
    jobs: JobTracker
    secrets: SecretCodec

    async def aclose(self) -> None:
        """Stop polling (keeping the job for recovery) and close connections."""
        await self.jobs.stop()
        await self.http_client.aclose()


async def start_client() -> ClientRuntime:
    """Configure logging, restore the session and resume any tracked job."""
    settings = get_app_settings()
    configure_logging(settings.log_level)

    runtime = ClientRuntime(
        settings=settings,
        http_client=get_http_client(),
        tokens=get_token_store(),
        gateway=get_gateway(),
        auth=get_auth_service(),
        jobs=get_job_tracker(),
        secrets=get_secret_codec(),
    )
    runtime.tokens.load()
    recovered = await runtime.jobs.recover()
    if recovered is not None:
        logger.info("Recovered tracked job", extra={"job_id": recovered.job_id})
    return runtime


__all__ = ["ClientRuntime", "start_client"]
