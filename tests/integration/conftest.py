"""
Shared fixtures for rigwatch integration tests.

Each test gets a DashboardServer on in-memory SQLite with the background
loops disabled, a FastAPI TestClient bound to its app, and two
registered users.
"""

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from rigwatch.server import DashboardServer

ADMIN_KEY = "integration-admin-key"
JWT_SECRET = "integration-secret"


@pytest_asyncio.fixture
async def server():
    srv = DashboardServer(
        db_path=":memory:",
        jwt_secret=JWT_SECRET,
        admin_key=ADMIN_KEY,
        enable_background=False,
    )
    await srv.initialize()
    yield srv
    await srv.stop()


@pytest.fixture
def client(server):
    return TestClient(server.app)


@pytest_asyncio.fixture
async def alice(server):
    user = await server.auth.register("alice", email="alice@example.com")
    return {"X-API-Key": user["api_key"]}


@pytest_asyncio.fixture
async def bob(server):
    user = await server.auth.register("bob")
    return {"X-API-Key": user["api_key"]}


@pytest.fixture
def admin_headers():
    return {"X-API-Key": ADMIN_KEY}
