"""Tests for the completion relay and its error taxonomy."""

import json

import httpx
import pytest

from app.core.chat_errors import (
    ConfigurationError,
    QuotaExhaustedError,
    RateLimitedError,
    UpstreamError,
)
from app.core.completion_relay import relay_completion
from app.core.config import Settings

MESSAGES = [{"role": "system", "content": "DIRECTIVE"}, {"role": "user", "content": "Hi"}]

COMPLETION = {
    "id": "chatcmpl-1",
    "object": "chat.completion",
    "created": 1760000000,
    "model": "google/gemini-2.5-flash",
    "choices": [
        {
            "index": 0,
            "message": {"role": "assistant", "content": "Here is [video:P1:V1]."},
            "finish_reason": "stop",
        }
    ],
}


def _settings(**overrides) -> Settings:
    values = {
        "SUPABASE_URL": "https://test.supabase.co",
        "SUPABASE_SERVICE_ROLE_KEY": "test-key",
        "AI_GATEWAY_API_KEY": "test-gateway-key",
        "AI_GATEWAY_BASE_URL": "https://gateway.test/v1",
    }
    values.update(overrides)
    return Settings(**values)


class _Gateway:
    """httpx transport that answers every request with one canned response."""

    def __init__(self, status_code: int, body: dict | str):
        self.status_code = status_code
        self.body = body
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if isinstance(self.body, str):
            return httpx.Response(self.status_code, text=self.body)
        return httpx.Response(self.status_code, json=self.body)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


class TestRelaySuccess:
    @pytest.mark.asyncio
    async def test_returns_raw_body(self):
        gateway = _Gateway(200, COMPLETION)

        data = await relay_completion(MESSAGES, settings=_settings(), http_client=gateway.client())

        assert data == COMPLETION

    @pytest.mark.asyncio
    async def test_injected_transport_reusable_across_turns(self):
        gateway = _Gateway(200, COMPLETION)
        client = gateway.client()

        await relay_completion(MESSAGES, settings=_settings(), http_client=client)
        await relay_completion(MESSAGES, settings=_settings(), http_client=client)

        assert client.is_closed is False
        assert len(gateway.requests) == 2
        await client.aclose()

    @pytest.mark.asyncio
    async def test_request_shape(self):
        gateway = _Gateway(200, COMPLETION)

        await relay_completion(
            MESSAGES, settings=_settings(CHAT_MODEL="test-model"), http_client=gateway.client()
        )

        [request] = gateway.requests
        assert request.method == "POST"
        assert str(request.url) == "https://gateway.test/v1/chat/completions"
        assert request.headers["authorization"] == "Bearer test-gateway-key"
        payload = json.loads(request.content)
        assert payload["model"] == "test-model"
        assert payload["messages"] == MESSAGES


class TestRelayErrors:
    @pytest.mark.asyncio
    async def test_missing_key_is_configuration_error_without_request(self):
        gateway = _Gateway(200, COMPLETION)

        with pytest.raises(ConfigurationError) as exc_info:
            await relay_completion(
                MESSAGES, settings=_settings(AI_GATEWAY_API_KEY=None), http_client=gateway.client()
            )

        assert gateway.requests == []
        assert exc_info.value.status_code == 500
        assert "AI_GATEWAY_API_KEY" not in exc_info.value.message

    @pytest.mark.asyncio
    async def test_rejected_key_is_configuration_error(self):
        gateway = _Gateway(401, {"error": {"message": "invalid key"}})

        with pytest.raises(ConfigurationError):
            await relay_completion(MESSAGES, settings=_settings(), http_client=gateway.client())

    @pytest.mark.asyncio
    async def test_429_is_rate_limited_single_attempt(self):
        gateway = _Gateway(429, {"error": {"message": "slow down"}})

        with pytest.raises(RateLimitedError) as exc_info:
            await relay_completion(MESSAGES, settings=_settings(), http_client=gateway.client())

        assert len(gateway.requests) == 1
        assert exc_info.value.status_code == 429
        assert exc_info.value.message == "Rate limit exceeded. Please try again later."
        assert exc_info.value.message != UpstreamError.message

    @pytest.mark.asyncio
    async def test_402_is_quota_exhausted(self):
        gateway = _Gateway(402, {"error": {"message": "no credits"}})

        with pytest.raises(QuotaExhaustedError) as exc_info:
            await relay_completion(MESSAGES, settings=_settings(), http_client=gateway.client())

        assert exc_info.value.status_code == 402
        assert "add credits" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_other_status_collapses_to_generic(self):
        gateway = _Gateway(503, "upstream exploded: secret internals")

        with pytest.raises(UpstreamError) as exc_info:
            await relay_completion(MESSAGES, settings=_settings(), http_client=gateway.client())

        assert len(gateway.requests) == 1
        assert exc_info.value.to_detail() == {"kind": "upstream_error", "message": "AI service error"}

    @pytest.mark.asyncio
    async def test_connection_failure_is_upstream_error(self):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(refuse))

        with pytest.raises(UpstreamError):
            await relay_completion(MESSAGES, settings=_settings(), http_client=client)

    @pytest.mark.asyncio
    async def test_non_json_success_body_is_upstream_error(self):
        gateway = _Gateway(200, "<html>gateway page</html>")

        with pytest.raises(UpstreamError):
            await relay_completion(MESSAGES, settings=_settings(), http_client=gateway.client())
