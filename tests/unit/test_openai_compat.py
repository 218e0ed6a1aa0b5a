"""Tests for gateway/openai_compat.py: OpenAICompatGenerator."""
from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest

from launch_forge.core.exceptions import (
    APIConnectionError,
    APITimeoutError,
    AuthenticationError,
    RateLimitError,
    TransportError,
)
from launch_forge.gateway.openai_compat import OpenAICompatGenerator


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_generator(
    base_url: str = "http://localhost:8080/v1",
    api_key: str | None = None,
) -> OpenAICompatGenerator:
    return OpenAICompatGenerator(base_url=base_url, api_key=api_key, timeout=5.0)


def _completion(content: Any) -> dict[str, Any]:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def _install(
    gen: OpenAICompatGenerator, handler: Callable[[httpx.Request], httpx.Response]
) -> list[httpx.Request]:
    """Point *gen* at an httpx.MockTransport; returns the list of seen requests."""
    seen: list[httpx.Request] = []

    def _record(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    gen._client = httpx.AsyncClient(
        transport=httpx.MockTransport(_record), base_url=gen._base_url
    )
    return seen


# ---------------------------------------------------------------------------
# Constructor / lifecycle
# ---------------------------------------------------------------------------


def test_base_url_strips_trailing_slash() -> None:
    gen = _make_generator(base_url="http://localhost:8080/v1/")
    assert gen._base_url == "http://localhost:8080/v1"
    assert "localhost:8080" in repr(gen)


def test_client_starts_none() -> None:
    assert _make_generator()._client is None


async def test_connect_sets_auth_headers() -> None:
    gen = _make_generator(api_key="sk-test")
    await gen.connect()
    try:
        assert gen._client is not None
        assert gen._client.headers["Authorization"] == "Bearer sk-test"
        assert gen._client.headers["X-Title"] == "launch-forge"
    finally:
        await gen.close()
    assert gen._client is None


async def test_connect_without_key_omits_authorization() -> None:
    gen = OpenAICompatGenerator("http://x", app_name=None)
    await gen.connect()
    try:
        assert "Authorization" not in gen._client.headers
        assert "X-Title" not in gen._client.headers
    finally:
        await gen.close()


async def test_close_is_idempotent() -> None:
    gen = _make_generator()
    await gen.close()
    await gen.close()


# ---------------------------------------------------------------------------
# generate()
# ---------------------------------------------------------------------------


async def test_generate_posts_single_user_message() -> None:
    gen = _make_generator()
    seen = _install(gen, lambda req: httpx.Response(200, json=_completion('{"ok": true}')))
    text = await gen.generate("Describe dogs", "anthropic/claude-sonnet-4", 1234)
    assert text == '{"ok": true}'
    assert seen[0].url.path == "/v1/chat/completions"
    body = json.loads(seen[0].content)
    assert body == {
        "model": "anthropic/claude-sonnet-4",
        "max_tokens": 1234,
        "messages": [{"role": "user", "content": "Describe dogs"}],
    }


@pytest.mark.parametrize("status", [401, 403])
async def test_auth_status_maps_to_authentication_error(status: int) -> None:
    gen = _make_generator()
    _install(gen, lambda req: httpx.Response(status, json={"error": "nope"}))
    with pytest.raises(AuthenticationError) as exc_info:
        await gen.generate("p", "m", 10)
    assert exc_info.value.status_code == status
    assert exc_info.value.is_retryable is False
    assert exc_info.value.details == {"error": "nope"}


async def test_rate_limit_reads_retry_after() -> None:
    gen = _make_generator()
    _install(gen, lambda req: httpx.Response(429, headers={"Retry-After": "7"}, text="busy"))
    with pytest.raises(RateLimitError) as exc_info:
        await gen.generate("p", "m", 10)
    assert exc_info.value.retry_after == 7.0
    assert exc_info.value.is_retryable is True
    assert exc_info.value.details == {"raw": "busy"}


async def test_rate_limit_bad_retry_after_ignored() -> None:
    gen = _make_generator()
    _install(gen, lambda req: httpx.Response(429, headers={"Retry-After": "soon"}))
    with pytest.raises(RateLimitError) as exc_info:
        await gen.generate("p", "m", 10)
    assert exc_info.value.retry_after is None


async def test_server_error_maps_to_transport_error() -> None:
    gen = _make_generator()
    _install(gen, lambda req: httpx.Response(502, json={"error": "bad gateway"}))
    with pytest.raises(TransportError) as exc_info:
        await gen.generate("p", "m", 10)
    assert type(exc_info.value) is TransportError
    assert exc_info.value.code == "502"


@pytest.mark.parametrize(
    "payload",
    [{}, {"choices": []}, {"choices": [{"message": {}}]}],
)
async def test_unusable_body_raises_transport_error(payload: dict) -> None:
    gen = _make_generator()
    _install(gen, lambda req: httpx.Response(200, json=payload))
    with pytest.raises(TransportError, match="Unusable completion"):
        await gen.generate("p", "m", 10)


async def test_non_text_content_raises_transport_error() -> None:
    gen = _make_generator()
    _install(gen, lambda req: httpx.Response(200, json=_completion(None)))
    with pytest.raises(TransportError, match="no text content"):
        await gen.generate("p", "m", 10)


async def test_timeout_maps_to_api_timeout_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("read timed out", request=request)

    gen = _make_generator()
    _install(gen, handler)
    with pytest.raises(APITimeoutError):
        await gen.generate("p", "m", 10)


async def test_connection_failure_maps_to_api_connection_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    gen = _make_generator()
    _install(gen, handler)
    with pytest.raises(APIConnectionError):
        await gen.generate("p", "m", 10)
