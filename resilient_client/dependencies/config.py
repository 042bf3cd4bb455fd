"""
Dependency utilities for injecting configuration into shared clients.
"""

from resilient_client.core.config import AppSettings, get_settings


def get_app_settings() -> AppSettings:
    """Return the process-wide application settings (cached by ``get_settings``)."""
    return get_settings()


__all__ = ["get_app_settings"]
