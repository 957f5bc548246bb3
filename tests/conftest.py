"""Pytest configuration and shared fixtures for clientbook tests.

Settings are read at import time, so the environment is prepared here before
any clientbook module is imported. Every test gets freshly created tables in a
temporary SQLite file.
"""
import os
import tempfile
import uuid
from datetime import datetime
from pathlib import Path

_TEST_DB = Path(tempfile.mkdtemp(prefix="clientbook-tests-")) / "test.sqlite"
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DB}"
os.environ["RATE_LIMIT"] = "10000/minute"
os.environ["APP_ENV"] = "testing"

import httpx  # noqa: E402
import pytest  # noqa: E402

from clientbook.db.engine import create_db_and_tables, drop_db_and_tables, engine  # noqa: E402
from clientbook.models.client import Client  # noqa: E402
from clientbook.services import cycle  # noqa: E402

TEST_PASSWORD = "secret123"


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
async def db():
    """Fresh tables for one test; pooled connections are released afterwards."""
    await drop_db_and_tables()
    await create_db_and_tables()
    yield engine
    await engine.dispose()


@pytest.fixture
async def client(db):
    """HTTP client talking to the ASGI app in-process."""
    from clientbook.main import app

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
        yield http


# =============================================================================
# Auth Helpers
# =============================================================================


async def register_and_login(http: httpx.AsyncClient, email: str, password: str = TEST_PASSWORD) -> dict:
    response = await http.post("/auth/register", json={"email": email, "password": password})
    assert response.status_code == 201, response.text
    response = await http.post("/auth/jwt/login", data={"username": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
async def auth_headers(client):
    return await register_and_login(client, "owner@example.com")


@pytest.fixture
async def other_headers(client):
    return await register_and_login(client, "intruder@example.com")


# =============================================================================
# Data Factories
# =============================================================================


def make_client(**overrides) -> Client:
    """In-memory Client with derived fields already consistent."""
    data = {
        "user_id": uuid.uuid4(),
        "name": "Asha Traders",
        "work_description": "Monthly pump service",
        "work_date": datetime(2026, 3, 1),
        "total_amount": 1000.0,
        "received_amount": 0.0,
    }
    data.update(overrides)
    return cycle.recalculate(Client(**data))
