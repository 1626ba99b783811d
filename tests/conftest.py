from __future__ import annotations

import os
import tempfile
from collections.abc import AsyncIterator

_TEST_DIR = tempfile.mkdtemp(prefix="usage-monitor-tests-")
os.environ["USAGE_MONITOR_DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/store.db"
os.environ["USAGE_MONITOR_SCHEDULER_ENABLED"] = "false"
os.environ["USAGE_MONITOR_ACCOUNT_COUNT"] = "3"

import pytest_asyncio  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from usage_monitor.db.models import Base  # noqa: E402
from usage_monitor.db.session import close_db, engine, init_db  # noqa: E402
from usage_monitor.main import create_app  # noqa: E402
from usage_monitor.modules.monitor.scheduler import get_monitor_scheduler  # noqa: E402

TEST_EMAIL = "user@example.com"
TEST_PASSWORD = "correct-horse"


@pytest_asyncio.fixture
async def app_instance() -> AsyncIterator[FastAPI]:
    app = create_app()
    await init_db()
    try:
        yield app
    finally:
        await get_monitor_scheduler().stop()
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await close_db()


@pytest_asyncio.fixture
async def async_client(app_instance: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app_instance)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest_asyncio.fixture
async def signed_in_client(async_client: AsyncClient) -> AsyncClient:
    response = await async_client.post("/api/auth/signup", json={"email": TEST_EMAIL, "password": TEST_PASSWORD})
    assert response.status_code == 200
    return async_client
