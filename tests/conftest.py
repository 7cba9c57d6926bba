import datetime as dt

import pytest
import pytest_asyncio

from core.storage.task_store import TaskStore


@pytest_asyncio.fixture
async def store(tmp_path):
    """TaskStore on a fresh SQLite file, schema created."""
    s = TaskStore(f"sqlite+aiosqlite:///{tmp_path / 'tasks.db'}")
    await s.create_all()
    try:
        yield s
    finally:
        await s.dispose()


@pytest.fixture
def tomorrow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc) + dt.timedelta(days=1)
