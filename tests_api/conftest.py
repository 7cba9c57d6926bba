# tests_api/conftest.py
import datetime as dt

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from asgi_lifespan import LifespanManager

# --- app and its deps ---
from api.fastapi_app.app import app
from api.fastapi_app import deps as api_deps

TASKS_URL = "/api/tasks"


def future_iso(days: int = 1) -> str:
    return (dt.datetime.now(dt.timezone.utc) + dt.timedelta(days=days)).isoformat()


@pytest.fixture
def tasks_url() -> str:
    return TASKS_URL


@pytest.fixture
def task_payload() -> dict:
    return {
        "title": "Test Task",
        "description": "Test Description",
        "status": "pending",
        "dueDate": future_iso(),
    }


@pytest_asyncio.fixture
async def client(tmp_path) -> AsyncClient:
    """
    httpx client on a fresh SQLite file per test, with the app lifespan
    (store creation, schema, dispose) running around it.
    """
    api_deps.settings.database_url = f"sqlite+aiosqlite:///{tmp_path / 'test_api.db'}"
    api_deps.settings.create_schema = True

    async with LifespanManager(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def create_task(client):
    """Factory posting a task and returning the ``data`` object."""

    async def _create(**fields):
        payload = {"title": "Seed Task", "dueDate": future_iso()}
        payload.update(fields)
        r = await client.post(TASKS_URL, json=payload)
        assert r.status_code == 201, r.text
        return r.json()["data"]

    return _create
