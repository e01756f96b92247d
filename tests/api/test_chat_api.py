"""HTTP tests for the chat routes (FastAPI TestClient)."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from novachat.app import app
from novachat.core.errors import UpstreamError
from novachat.core.llm import get_model_client
from novachat.core.service.deps import get_chat_service
from novachat.infra.concurrency import SessionBusy
from novachat.infra.redis import build_redis


async def _no_redis():
    yield None


@pytest.fixture
def model() -> MagicMock:
    fake = MagicMock()
    fake.generate = AsyncMock(return_value="Hello from Nova")
    return fake


@pytest.fixture
def client(model):
    app.dependency_overrides[build_redis] = _no_redis
    app.dependency_overrides[get_model_client] = lambda: model
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _chat(client: TestClient, session_id: str, text: str):
    return client.post("/api/chat", json={"sessionId": session_id, "userMessage": text})


# =========================================================================
# Happy paths
# =========================================================================


class TestChatRoutes:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_chat_returns_reply(self, client):
        response = _chat(client, "session_1", "hello")
        assert response.status_code == 200
        assert response.json() == {"success": True, "reply": "Hello from Nova"}

    def test_messages_after_chat(self, client):
        _chat(client, "session_1", "hello")
        body = client.get("/api/messages/session_1").json()

        assert body["success"] is True
        assert [(m["role"], m["content"]) for m in body["messages"]] == [
            ("user", "hello"),
            ("assistant", "Hello from Nova"),
        ]
        assert all("timestamp" in m for m in body["messages"])

    def test_unknown_session_has_no_messages(self, client):
        assert client.get("/api/messages/nobody").json() == {
            "success": True,
            "messages": [],
        }

    def test_sessions_listing(self, client):
        _chat(client, "session_a", "first")
        _chat(client, "session_b", "second")

        body = client.get("/api/sessions").json()
        assert body["success"] is True
        ids = [s["_id"] for s in body["sessions"]]
        assert set(ids) == {"session_a", "session_b"}
        entry = body["sessions"][0]
        assert set(entry) == {"_id", "lastMessage", "lastTime", "messageCount"}
        assert entry["messageCount"] == 2
        assert entry["lastMessage"] == "Hello from Nova"

    def test_clear_session(self, client):
        _chat(client, "session_1", "hello")
        response = client.delete("/api/messages/session_1")

        assert response.json() == {
            "success": True,
            "message": "Session cleared",
            "deletedCount": 2,
        }
        assert client.get("/api/messages/session_1").json()["messages"] == []

    def test_cors_header(self, client):
        response = client.get("/health", headers={"Origin": "http://localhost:3000"})
        assert response.headers["access-control-allow-origin"] == "*"

    def test_metrics_exposed(self, client):
        _chat(client, "session_1", "hello")
        text = client.get("/metrics").text
        assert "novachat_chat_requests_total" in text


# =========================================================================
# Errors
# =========================================================================


class TestChatErrors:
    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"sessionId": "s1"},
            {"userMessage": "hi"},
            {"sessionId": "", "userMessage": "hi"},
        ],
    )
    def test_missing_fields_400(self, client, model, payload):
        response = client.post("/api/chat", json=payload)
        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": "sessionId and userMessage are required",
        }
        model.generate.assert_not_awaited()

    def test_upstream_failure_502_and_rollback(self, client, model):
        _chat(client, "session_1", "hello")
        model.generate.side_effect = UpstreamError("Model returned HTTP 500")

        response = _chat(client, "session_1", "again")

        assert response.status_code == 502
        assert response.json() == {
            "success": False,
            "error": "Failed to get AI response",
        }
        messages = client.get("/api/messages/session_1").json()["messages"]
        assert [m["content"] for m in messages] == ["hello", "Hello from Nova"]

    def test_session_busy_503(self, client):
        busy = MagicMock()
        busy.send = AsyncMock(side_effect=SessionBusy("still processing"))
        app.dependency_overrides[get_chat_service] = lambda: busy

        response = _chat(client, "session_1", "hello")

        assert response.status_code == 503
        assert response.headers["retry-after"] == "2"
        assert response.json()["success"] is False
