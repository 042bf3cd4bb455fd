"""
Factory functions providing the shared clients and services of one process.
"""

from functools import lru_cache

import httpx

from resilient_client.clients import SQLiteStorage
from resilient_client.services import (
    AuthService,
    Gateway,
    JobTracker,
    SecretCodec,
    TokenStore,
)

from .config import get_app_settings


@lru_cache()
def get_storage() -> SQLiteStorage:
    """Provide the durable key-value store."""
    settings = get_app_settings()
    return SQLiteStorage(settings.storage.db_path)


@lru_cache()
def get_token_store() -> TokenStore:
    """Provide the token store; call ``load()`` once before first use."""
    return TokenStore(get_storage())


@lru_cache()
def get_http_client() -> httpx.AsyncClient:
    """Provide the pooled HTTP client bound to the remote service."""
    settings = get_app_settings()
    return httpx.AsyncClient(
        base_url=settings.gateway.base_url,
        timeout=settings.gateway.timeout_seconds,
    )


@lru_cache()
def get_gateway() -> Gateway:
    """Provide the authenticated request gateway."""
    settings = get_app_settings()
    return Gateway(get_http_client(), get_token_store(), settings.gateway)


@lru_cache()
def get_auth_service() -> AuthService:
    """Provide login, registration and logout flows."""
    return AuthService(get_gateway(), get_token_store())


@lru_cache()
def get_job_tracker() -> JobTracker:
    """Provide the single-job tracker."""
    settings = get_app_settings()
    return JobTracker(get_gateway(), get_storage(), settings.jobs)


@lru_cache()
def get_secret_codec() -> SecretCodec:
    """Provide the password-based secret codec."""
    return SecretCodec()


__all__ = [
    "get_auth_service",
    "get_gateway",
    "get_http_client",
    "get_job_tracker",
    "get_secret_codec",
    "get_storage",
    "get_token_store",
]
