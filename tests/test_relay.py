"""Relay service tests."""
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from elsquiz.api.relay import get_telegram_client
from elsquiz.core.config import Settings, get_settings
from elsquiz.main import create_app


@pytest.fixture
def telegram():
    """Fake Telegram API: records requests and answers with `reply`."""
    state = {"requests": [], "reply": {"ok": True, "result": {}}}

    def handler(request):
        state["requests"].append(request)
        return httpx.Response(200, json=state["reply"])

    state["transport"] = httpx.MockTransport(handler)
    return state


@pytest.fixture
def make_client(telegram):
    def _make(bot_token="123:abc", chat_id="-100200"):
        app = create_app()

        async def fake_client():
            async with httpx.AsyncClient(
                base_url="https://api.telegram.org", transport=telegram["transport"]
            ) as client:
                yield client

        app.dependency_overrides[get_settings] = lambda: Settings(BOT_TOKEN=bot_token, CHAT_ID=chat_id)
        app.dependency_overrides[get_telegram_client] = fake_client
        return TestClient(app)
    return _make


class TestSendResult:
    def test_forwards_message(self, make_client, telegram):
        response = make_client().post("/api/send-result", json={"message": "*Student:* Aziza", "score": 80})

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Result sent to Telegram successfully"}

        [sent] = telegram["requests"]
        assert sent.url.path == "/bot123:abc/sendMessage"
        body = json.loads(sent.content)
        assert body == {
            "chat_id": "-100200",
            "text": "ELS Test Result\n\n*Student:* Aziza",
            "parse_mode": "Markdown",
        }

    def test_missing_credentials(self, make_client, telegram):
        response = make_client(bot_token=None).post("/api/send-result", json={"message": "hi"})

        assert response.status_code == 500
        assert response.json() == {"error": "Server configuration error", "success": False}
        assert telegram["requests"] == []

    def test_telegram_rejects(self, make_client, telegram):
        telegram["reply"] = {"ok": False, "description": "Bad Request: chat not found"}

        response = make_client().post("/api/send-result", json={"message": "hi"})

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "error": "Failed to send to Telegram",
            "details": "Bad Request: chat not found",
        }

    def test_missing_message_is_rejected(self, make_client):
        response = make_client().post("/api/send-result", json={"score": 10})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "E2000_VALIDATION_GENERIC"

    def test_only_post_is_allowed(self, make_client):
        assert make_client().get("/api/send-result").status_code == 405

    def test_correlation_id_is_echoed(self, make_client):
        response = make_client().post(
            "/api/send-result", json={"message": "hi"}, headers={"X-Correlation-ID": "abc123"}
        )
        assert response.headers["X-Correlation-ID"] == "abc123"


class TestHealth:
    def test_health(self, make_client):
        response = make_client().get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
