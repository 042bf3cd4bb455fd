"""Expose cached factories for the shared client services."""

from .clients import (
    get_auth_service,
    get_gateway,
    get_http_client,
    get_job_tracker,
    get_secret_codec,
    get_storage,
    get_token_store,
)
from .config import get_app_settings

__all__ = [
    "get_app_settings",
    "get_auth_service",
    "get_gateway",
    "get_http_client",
    "get_job_tracker",
    "get_secret_codec",
    "get_storage",
    "get_token_store",
]
