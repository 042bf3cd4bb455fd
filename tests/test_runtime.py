try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import asyncio
import json

import httpx
import pytest

from resilient_client import dependencies, main
from resilient_client.clients.storage import SQLiteStorage
from resilient_client.core.config import get_settings
from resilient_client.dependencies import clients, config
from resilient_client.models import JobEvent
from resilient_client.services.job_tracker import ACTIVE_JOB_KEY

_CACHED_FACTORIES = (
    get_settings,
    clients.get_storage,
    clients.get_token_store,
    clients.get_http_client,
    clients.get_gateway,
    clients.get_auth_service,
    clients.get_job_tracker,
    clients.get_secret_codec,
)


@pytest.fixture
def isolated_runtime(tmp_path, monkeypatch):
    db_path = tmp_path / "client.db"
    monkeypatch.setenv("STORAGE_DB_PATH", str(db_path))
    for factory in _CACHED_FACTORIES:
        factory.cache_clear()
    yield db_path
    for factory in _CACHED_FACTORIES:
        factory.cache_clear()


@pytest.mark.asyncio
async def test_start_client_restores_session_and_resumes_job(
    isolated_runtime, monkeypatch, token_json
) -> None:
    storage = SQLiteStorage(str(isolated_runtime))
    storage.set_item("tokens", json.dumps(token_json("persisted-access")))
    storage.set_item("userId", "user-3")
    storage.set_item(ACTIVE_JOB_KEY, json.dumps({"jobId": "abc", "status": "processing"}))

    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"status": "completed", "id": "blog-1"})

    settings = get_settings()
    mock_client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler), base_url=settings.gateway.base_url
    )
    monkeypatch.setattr(clients, "get_http_client", lambda: mock_client)
    monkeypatch.setattr(main, "get_http_client", lambda: mock_client)

    runtime = await main.start_client()
    events: list[JobEvent] = []
    runtime.jobs.subscribe(events.append)
    await asyncio.wait_for(runtime.jobs.join(), timeout=1)
    await runtime.aclose()

    assert runtime.tokens.user_id == "user-3"
    assert seen[0].url.path.endswith("/blogs/abc/status")
    assert seen[0].headers["Authorization"] == "Bearer persisted-access"
    assert [event.record.job_id for event in events] == ["abc"]
    assert storage.get_item(ACTIVE_JOB_KEY) is None
    assert dependencies.get_secret_codec() is runtime.secrets


def test_app_settings_follow_settings_cache(isolated_runtime, monkeypatch):
    first = config.get_app_settings()
    assert first is get_settings()

    monkeypatch.setenv("STORAGE_DB_PATH", str(isolated_runtime.with_name("other.db")))
    get_settings.cache_clear()

    second = config.get_app_settings()
    assert second is not first
    assert second.storage.db_path == str(isolated_runtime.with_name("other.db"))
