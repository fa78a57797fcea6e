"""End-to-end tests of the assistant chat endpoint."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from schemabuilder.ai.prompts import ERROR_REPLY

pytestmark = pytest.mark.integration


@pytest.fixture
def headers(client, container):
    client.post("/api/v1/auth/register", json={
        "email": "chat@example.com",
        "password": "P@ss1234",
        "first_name": "Chat",
        "last_name": "User",
        "username": "chatter",
    })
    user = asyncio.run(container.database.users.get_by_email("chat@example.com"))
    client.post("/api/v1/auth/verify", json={"email": "chat@example.com", "code": user.verification_code})
    token = client.post(
        "/api/v1/auth/login", json={"email": "chat@example.com", "password": "P@ss1234"}
    ).json()["data"]["token"]
    return {"Authorization": f"Bearer {token}"}


def test_chat_returns_schema_action(client, headers):
    response = client.post(
        "/api/v1/ai/chat", json={"message": "a table for inventory items", "session_id": "s-1"}, headers=headers
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["session_id"] == "s-1"
    assert "<SCHEMA_JSON>" not in data["message"]
    assert data["schema_action"]["type"] == "create_schema"
    assert data["schema_action"]["tables"][0]["name"] == "items"


def test_chat_generates_session_id(client, headers):
    response = client.post("/api/v1/ai/chat", json={"message": "hello"}, headers=headers)
    assert response.json()["data"]["session_id"]


def test_chat_requires_auth(client):
    assert client.post("/api/v1/ai/chat", json={"message": "hello"}).status_code == 401


@pytest.mark.parametrize("message", ["", "x" * 2001])
def test_chat_message_bounds(client, headers, message):
    response = client.post("/api/v1/ai/chat", json={"message": message}, headers=headers)

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


def test_provider_failure_returns_apology(client, container, headers):
    container.chat.provider.complete = AsyncMock(side_effect=TimeoutError("upstream timed out"))

    response = client.post("/api/v1/ai/chat", json={"message": "hello", "session_id": "s-9"}, headers=headers)

    assert response.status_code == 200
    assert response.json()["data"]["message"] == ERROR_REPLY
    assert response.json()["data"]["schema_action"] is None
