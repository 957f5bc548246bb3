import pytest
from starlette.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from conftest import TEST_PASSWORD, register_and_login


async def test_health(client):
    for path in ("/health", "/api/health"):
        response = await client.get(path)
        assert response.status_code == 200
        assert response.json()["status"] == "OK"
        assert response.headers["X-Frame-Options"] == "DENY"


async def test_register_defaults_name_and_lowercases_email(client):
    response = await client.post(
        "/auth/register", json={"email": "Owner@Example.COM", "password": TEST_PASSWORD}
    )
    assert response.status_code == 201
    body = response.json()
    assert body["email"] == "owner@example.com"
    assert body["name"] == "Chachu"
    assert "hashed_password" not in body


async def test_short_password_is_rejected(client):
    response = await client.post("/auth/register", json={"email": "a@example.com", "password": "12345"})
    assert response.status_code == 400


async def test_duplicate_email_is_rejected(client):
    await register_and_login(client, "dup@example.com")
    response = await client.post("/auth/register", json={"email": "dup@example.com", "password": TEST_PASSWORD})
    assert response.status_code == 400


async def test_login_and_me(client):
    headers = await register_and_login(client, "me@example.com")
    response = await client.get("/users/me", headers=headers)
    assert response.status_code == 200
    assert response.json()["email"] == "me@example.com"


async def test_bad_credentials(client):
    await register_and_login(client, "me@example.com")
    response = await client.post("/auth/jwt/login", data={"username": "me@example.com", "password": "wrong-pass"})
    assert response.status_code == 400


async def test_api_requires_token(client):
    response = await client.get("/api/clients")
    assert response.status_code == 401
    response = await client.get("/api/clients", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_reminder_socket_rejects_missing_token():
    from clientbook.main import app

    with pytest.raises(WebSocketDisconnect):
        with TestClient(app).websocket_connect("/ws/reminders") as ws:
            ws.receive_json()
