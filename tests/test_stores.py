import json
import uuid
from datetime import datetime

import httpx
import pytest

from clientbook.core.exceptions import ClientNotFound, StoreUnavailable
from clientbook.reminders.store import ApiClientStore

BASE_URL = "http://api.test"
CLIENT_ID = str(uuid.uuid4())


def client_json(**overrides):
    data = {
        "id": CLIENT_ID,
        "user_id": str(uuid.uuid4()),
        "name": "Meena",
        "work_description": "Garden",
        "next_work_date": "2026-03-10T00:00:00",
        "reminder_time": "09:00",
        "repeat_after_days": 7,
        "total_amount": 800,
        "remaining_amount": 800,
        "status": "Pending",
        "is_active": True,
    }
    data.update(overrides)
    return data


def make_transport(seen):
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path == "/auth/jwt/login":
            form = dict(pair.split("=") for pair in request.content.decode().split("&"))
            if form.get("password") == "secret123":
                return httpx.Response(200, json={"access_token": "tok", "token_type": "bearer"})
            return httpx.Response(400, json={"detail": "LOGIN_BAD_CREDENTIALS"})
        if request.url.path == "/api/clients" and request.method == "GET":
            return httpx.Response(200, json=[client_json()])
        if request.url.path == "/api/clients/reminders/upcoming":
            return httpx.Response(200, json=[client_json()])
        if request.url.path == f"/api/clients/{CLIENT_ID}" and request.method == "GET":
            return httpx.Response(200, json=client_json())
        if request.url.path == f"/api/clients/{CLIENT_ID}" and request.method == "PUT":
            body = json.loads(request.content)
            return httpx.Response(200, json=client_json(next_work_date=body["next_work_date"]))
        if request.url.path.startswith("/api/clients/"):
            return httpx.Response(404, json={"detail": "Client not found"})
        return httpx.Response(500, json={"detail": "boom"})

    return httpx.MockTransport(handler)


@pytest.fixture
def seen():
    return []


@pytest.fixture
async def store(seen):
    api_store = ApiClientStore(BASE_URL, transport=make_transport(seen))
    await api_store.open("tok")
    yield api_store
    await api_store.close()


async def test_login_returns_token(seen):
    token = await ApiClientStore.login(BASE_URL, " User@Example.com ", "secret123", transport=make_transport(seen))
    assert token == "tok"
    assert b"username=user%40example.com" in seen[0].content


async def test_login_with_bad_credentials(seen):
    with pytest.raises(PermissionError):
        await ApiClientStore.login(BASE_URL, "user@example.com", "wrong", transport=make_transport(seen))


async def test_open_requires_token():
    with pytest.raises(StoreUnavailable):
        await ApiClientStore(BASE_URL).open()


async def test_list_clients_sends_bearer_token(store, seen):
    clients = await store.list_clients()
    assert [c.name for c in clients] == ["Meena"]
    assert clients[0].next_work_date == datetime(2026, 3, 10)
    assert seen[0].headers["Authorization"] == "Bearer tok"


async def test_get_client(store):
    client = await store.get_client(uuid.UUID(CLIENT_ID))
    assert client.name == "Meena"
    with pytest.raises(ClientNotFound):
        await store.get_client(uuid.uuid4())


async def test_list_upcoming(store):
    assert len(await store.list_upcoming()) == 1


async def test_update_next_work_date(store, seen):
    updated = await store.update_next_work_date(uuid.UUID(CLIENT_ID), datetime(2026, 3, 17))
    assert updated.next_work_date == datetime(2026, 3, 17)
    assert json.loads(seen[0].content) == {"next_work_date": "2026-03-17T00:00:00"}


async def test_missing_client_raises_client_not_found(store):
    with pytest.raises(ClientNotFound):
        await store.update_next_work_date(uuid.uuid4(), datetime(2026, 3, 17))


async def test_server_error_raises_store_unavailable(seen):
    def failing(request):
        return httpx.Response(503, json={"detail": "maintenance"})

    api_store = ApiClientStore(BASE_URL, transport=httpx.MockTransport(failing))
    await api_store.open("tok")
    with pytest.raises(StoreUnavailable):
        await api_store.list_clients()
    await api_store.close()


async def test_connection_error_raises_store_unavailable():
    def unreachable(request):
        raise httpx.ConnectError("refused", request=request)

    api_store = ApiClientStore(BASE_URL, transport=httpx.MockTransport(unreachable))
    await api_store.open("tok")
    with pytest.raises(StoreUnavailable):
        await api_store.list_clients()
    await api_store.close()


async def test_calls_after_close_fail(store):
    await store.close()
    with pytest.raises(StoreUnavailable):
        await store.list_clients()
