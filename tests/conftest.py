"""Pytest configuration shared across the suite."""

from __future__ import annotations

from typing import Callable, Optional

import pytest

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from resilient_client.models import TokenPair


class MemoryStorage:
    """Dict-backed stand-in for the durable SQLite storage."""

    def __init__(self) -> None:
        self.items: dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


def token_payload(access: str, refresh: str = "refresh-1") -> dict:
    return {
        "access": {"token": access, "expires": "2030-01-01T00:00:00+00:00"},
        "refresh": {"token": refresh, "expires": "2030-02-01T00:00:00+00:00"},
    }


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def make_tokens() -> Callable[..., TokenPair]:
    def _make(access: str = "access-1", refresh: str = "refresh-1") -> TokenPair:
        return TokenPair.model_validate(token_payload(access, refresh))

    return _make


@pytest.fixture
def token_json() -> Callable[..., dict]:
    """Wire-format token pair as the remote service returns it."""
    return token_payload
