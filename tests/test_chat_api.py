"""Tests for the support chat endpoint.

Covers POST /v1/chat via FastAPI TestClient with mocked Supabase reads and a
mocked AI gateway relay.
"""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from app.chains.support_chat import finalize_completion
from app.core.chat_errors import ConfigurationError, QuotaExhaustedError, RateLimitedError, UpstreamError
from app.core.grounding_prompt import SWITCH_PRODUCT_MARKER
from app.core.reference_context import TurnContext
from app.core.schemas_chat import ListedVideo, ProductSummary, ReferenceListing
from app.main import app


def _completion(content: str) -> dict:
    return {
        "id": "chatcmpl-1",
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}, "finish_reason": "stop"}],
    }


@pytest.fixture
def client():
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def store():
    """Product P1 with one video, V1 "Account Setup"."""
    with (
        patch("app.core.reference_context.get_product", return_value={"id": "P1", "name": "Thomas PPA"}),
        patch("app.core.reference_context.list_product_documents", return_value=[]),
        patch("app.core.reference_context.list_product_resources", return_value=[]),
        patch(
            "app.core.reference_context.list_product_videos",
            return_value=[{"id": "V1", "title": "Account Setup", "caption": None}],
        ) as videos,
        patch("app.core.reference_context.get_chatbot_name", return_value="Zenithr Assistant"),
        patch("app.core.reference_context.list_other_products", return_value=[]),
    ):
        yield videos


@pytest.fixture
def relay():
    with patch("app.chains.support_chat.relay_completion", new_callable=AsyncMock) as mock_relay:
        yield mock_relay


def _chat(client, product_id="P1", content="How do I set up my account?"):
    body = {"messages": [{"role": "user", "content": content}]}
    if product_id is not None:
        body["product_id"] = product_id
    return client.post("/v1/chat", json=body)


class TestChatEndpoint:
    """POST /v1/chat"""

    def test_directive_grounds_reply(self, client, store, relay):
        relay.return_value = _completion("Watch the [Account Setup](video:P1:V1) video.")

        response = _chat(client)

        assert response.status_code == 200
        messages = relay.call_args[0][0]
        assert messages[0]["role"] == "system"
        assert '- TITLE: "Account Setup" | VIDEO_ID: V1' in messages[0]["content"]
        assert messages[1] == {"role": "user", "content": "How do I set up my account?"}

        data = response.json()
        assert data["choices"][0]["message"]["content"] == "Watch the [Account Setup](video:P1:V1) video."
        assert data["needs_product_selection"] is False
        assert data["needs_product_switch"] is False
        [reference] = data["references"]
        assert reference["valid"] is True
        assert reference["title"] == "Account Setup"

    def test_hallucinated_reference_flagged_not_rewritten(self, client, store, relay):
        relay.return_value = _completion("See [video:P1:V404].")

        data = _chat(client).json()

        assert data["choices"][0]["message"]["content"] == "See [video:P1:V404]."
        assert data["references"][0]["valid"] is False

    def test_missing_product_asks_for_one(self, client, store, relay):
        relay.return_value = _completion("Which product do you need help with?")

        response = _chat(client, product_id=None)

        assert response.status_code == 200
        store.assert_not_called()
        directive = relay.call_args[0][0][0]["content"]
        assert "Ask the user which product they need help with" in directive
        assert response.json()["needs_product_selection"] is True

    def test_tags_invalid_without_product(self, client, store, relay):
        relay.return_value = _completion("Try [video:P1:V1].")

        data = _chat(client, product_id=None).json()

        assert data["references"][0]["valid"] is False

    def test_switch_marker_stripped(self, client, store, relay):
        relay.return_value = _completion(f"Would you like to switch to Elevate? {SWITCH_PRODUCT_MARKER}")

        data = _chat(client).json()

        assert data["needs_product_switch"] is True
        assert data["choices"][0]["message"]["content"] == "Would you like to switch to Elevate?"

    def test_empty_messages_rejected(self, client, relay):
        response = client.post("/v1/chat", json={"messages": [], "product_id": "P1"})

        assert response.status_code == 422
        relay.assert_not_called()


class TestChatErrors:
    @pytest.mark.parametrize(
        "error, status, kind",
        [
            (ConfigurationError("missing key"), 500, "configuration_error"),
            (RateLimitedError(), 429, "rate_limited"),
            (QuotaExhaustedError(), 402, "quota_exhausted"),
            (UpstreamError("status 503"), 500, "upstream_error"),
        ],
    )
    def test_typed_errors_surface(self, client, store, relay, error, status, kind):
        relay.side_effect = error

        response = _chat(client)

        assert response.status_code == status
        detail = response.json()["detail"]
        assert detail["kind"] == kind
        assert detail["message"] == type(error).message

    def test_rate_limit_message_distinct_from_generic(self, client, store, relay):
        relay.side_effect = RateLimitedError()

        detail = _chat(client).json()["detail"]

        assert detail["message"] == "Rate limit exceeded. Please try again later."
        assert detail["message"] != UpstreamError.message

    def test_context_failure_aborts_before_relay(self, client, store, relay):
        store.side_effect = RuntimeError("supabase timeout")

        response = _chat(client)

        assert response.status_code == 500
        assert response.json()["detail"]["kind"] == "context_unavailable"
        relay.assert_not_called()


class TestFinalizeCompletion:
    def _context(self):
        listing = ReferenceListing(
            product=ProductSummary(id="P1", name="Thomas PPA"),
            videos=[ListedVideo(id="V1", title="Account Setup")],
        )
        return TurnContext(chatbot_name="Zenithr Assistant", listing=listing)

    def test_no_choices_tolerated(self):
        data = finalize_completion({"id": "x", "choices": []}, self._context())

        assert data["references"] == []
        assert data["needs_product_switch"] is False

    def test_null_content_tolerated(self):
        data = finalize_completion(
            {"choices": [{"message": {"role": "assistant", "content": None}}]}, self._context()
        )

        assert data["references"] == []
