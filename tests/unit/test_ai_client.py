"""
Unit tests for api/services/ai_client.py

The Gemini endpoint is replaced with httpx.MockTransport; retry backoff is
zero so the rate-limit retry runs instantly.
"""

import httpx
import pytest

from api.services.ai_client import (
    GeminiClient,
    GenerationError,
    QuotaExhaustedError,
    RateLimitedError,
)


def _ok(text: str) -> httpx.Response:
    return httpx.Response(
        200, json={"candidates": [{"content": {"parts": [{"text": text}]}}]}
    )


def _client(handler, **kwargs) -> GeminiClient:
    return GeminiClient(
        api_key="test-key",
        model="gemini-test",
        api_url="https://gemini.test/v1beta",
        retry_backoff=0,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_generate_success():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return _ok("Grey phase is on track.")

    client = _client(handler)
    assert await client.generate("How is Grey?") == "Grey phase is on track."
    await client.aclose()

    assert len(requests) == 1
    assert requests[0].url.path == "/v1beta/models/gemini-test:generateContent"
    assert requests[0].url.params["key"] == "test-key"
    assert b"How is Grey?" in requests[0].content


@pytest.mark.asyncio
async def test_rate_limited_then_success_retries_once():
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(429, text="Too many requests")
        return _ok("second time lucky")

    assert await _client(handler).generate("q") == "second time lucky"
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_rate_limited_twice_gives_up():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(429, text="Too many requests")

    with pytest.raises(RateLimitedError):
        await _client(handler).generate("q")
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_quota_exhausted_is_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(429, text="Quota exceeded for metric ... limit: 0")

    with pytest.raises(QuotaExhaustedError):
        await _client(handler).generate("q")
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_server_error_is_generation_error():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(500, text="internal")

    with pytest.raises(GenerationError) as exc_info:
        await _client(handler).generate("q")
    assert not isinstance(exc_info.value, RateLimitedError)
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_network_error_is_generation_error():
    def handler(request):
        raise httpx.ConnectError("connection refused")

    with pytest.raises(GenerationError):
        await _client(handler).generate("q")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"candidates": []},
        {"candidates": [{"content": {"parts": [{"text": "   "}]}}]},
        {"unexpected": True},
    ],
)
async def test_malformed_or_empty_response(body):
    with pytest.raises(GenerationError):
        await _client(lambda request: httpx.Response(200, json=body)).generate("q")


@pytest.mark.asyncio
async def test_missing_api_key():
    client = GeminiClient(api_key="", transport=httpx.MockTransport(lambda r: _ok("x")))
    assert client.is_configured is False
    with pytest.raises(GenerationError):
        await client.generate("q")
