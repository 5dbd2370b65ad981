"""
Tests for the content filter middleware.
"""

from unittest.mock import patch

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from wordguard_gateway.config import Settings
from wordguard_gateway.errors import StoreUnavailableError
from wordguard_gateway.main import create_app
from wordguard_gateway.middleware import BLOCKED_MESSAGE, extract_text_from_request


def with_relay(app: FastAPI) -> FastAPI:
    """Add a relay route and the API key auth that normally runs upstream."""

    @app.post("/v1/messages")
    def relay():
        return {"relayed": True}

    @app.middleware("http")
    async def attach_api_key(request: Request, call_next):
        key_id = request.headers.get("x-test-api-key")
        if key_id:
            request.state.api_key = {"id": key_id, "name": f"name-{key_id}"}
        return await call_next(request)

    return app


@pytest.fixture
def relay_app(app):
    app.state.word_store.create({"word": "spam", "category": "nsfw"})
    return with_relay(app)


@pytest.fixture
def client(relay_app):
    return TestClient(relay_app)


CHAT_BODY = {
    "model": "test-model",
    "messages": [
        {"role": "user", "content": "hello"},
        {"role": "user", "content": [{"type": "text", "text": "buy SPAM now"}]},
    ],
}


class TestExtractText:
    def test_chat_messages_and_system(self):
        body = {
            "system": [{"type": "text", "text": "be nice"}],
            "messages": [
                {"role": "user", "content": "first"},
                {"role": "user", "content": [{"type": "image"}, {"type": "text", "text": "second"}]},
            ],
        }
        assert extract_text_from_request(body) == "first\nsecond\nbe nice"

    def test_prompt(self):
        assert extract_text_from_request({"prompt": "complete me"}) == "complete me"

    def test_gemini_contents(self):
        body = {"contents": [{"parts": [{"text": "one"}, {"inline_data": {}}]}, {"parts": [{"text": "two"}]}]}
        assert extract_text_from_request(body) == "one\ntwo"

    @pytest.mark.parametrize("body", [None, [], "text", {"messages": "nope"}])
    def test_unrecognised_bodies(self, body):
        assert extract_text_from_request(body) == ""


class TestContentFilterMiddleware:
    def test_violation_blocked_and_recorded(self, relay_app, client):
        response = client.post(
            "/v1/messages",
            json=CHAT_BODY,
            headers={"x-test-api-key": "key-1", "x-request-id": "req-42", "user-agent": "pytest-agent"},
        )

        assert response.status_code == 403
        body = response.json()
        assert body["error"] == {"type": "content_violation", "message": BLOCKED_MESSAGE}
        assert body["matched_categories"] == ["nsfw"]
        assert "timestamp" in body

        page = relay_app.state.violation_store.get_violations_by_api_key("key-1")
        assert page.total == 1
        log = page.logs[0]
        assert log.api_key_name == "name-key-1"
        assert log.request_path == "/v1/messages"
        assert log.request_id == "req-42"
        assert log.user_agent == "pytest-agent"
        assert log.content_sample == "hello\nbuy SPAM now"
        assert [m.word for m in log.matched_words] == ["spam"]
        assert log.details == {"method": "POST", "model": "test-model", "message_count": 2}

    def test_clean_request_passes(self, client):
        response = client.post(
            "/v1/messages",
            json={"messages": [{"role": "user", "content": "hello"}]},
            headers={"x-test-api-key": "key-1"},
        )
        assert response.json() == {"relayed": True}

    def test_requests_without_identity_pass(self, relay_app, client):
        response = client.post("/v1/messages", json=CHAT_BODY)
        assert response.status_code == 200
        assert relay_app.state.violation_store.get_all_violations().total == 0

    def test_non_json_body_passes(self, client):
        response = client.post(
            "/v1/messages", content=b"spam spam", headers={"x-test-api-key": "key-1"}
        )
        assert response.status_code == 200

    def test_filter_failure_fails_open(self, relay_app, client):
        word_store = relay_app.state.word_store
        with patch.object(word_store, "list", side_effect=StoreUnavailableError("down")):
            response = client.post(
                "/v1/messages", json=CHAT_BODY, headers={"x-test-api-key": "key-1"}
            )
        assert response.status_code == 200

    def test_disabled_filter(self, redis_client):
        app = create_app(
            Settings(filter_enabled=False, cleanup_interval_hours=0), redis_client=redis_client
        )
        app.state.word_store.create({"word": "spam"})
        client = TestClient(with_relay(app))

        response = client.post("/v1/messages", json=CHAT_BODY, headers={"x-test-api-key": "key-1"})
        assert response.status_code == 200
