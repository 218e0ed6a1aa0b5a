from __future__ import annotations

from typing import Any

import httpx

from launch_forge.core.exceptions import (
    APIConnectionError,
    APITimeoutError,
    AuthenticationError,
    RateLimitError,
    TransportError,
)
from launch_forge.gateway.base import TextGenerator


class OpenAICompatGenerator(TextGenerator):
    """Text generator for OpenAI-compatible ``/chat/completions`` endpoints.

    Works against OpenRouter (the default in :class:`ForgeConfig`), OpenAI and
    local servers that speak the same protocol. Each prompt is sent as a
    single user message.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        *,
        timeout: float = 120.0,
        app_name: str | None = "launch-forge",
    ) -> None:
        """Create an OpenAICompatGenerator.

        Args:
            base_url: Base URL of the API, e.g. ``"https://openrouter.ai/api/v1"``.
            api_key: Bearer token sent as ``Authorization: Bearer <api_key>``.
            timeout: HTTP timeout in seconds for each request.
            app_name: Sent as ``X-Title`` (OpenRouter attribution); ``None``
                to omit.
        """
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._app_name = app_name
        self._client: httpx.AsyncClient | None = None

    def __repr__(self) -> str:
        return f"OpenAICompatGenerator(base_url={self._base_url!r})"

    # ------------------------------------------------------------------ #
    # Connection lifecycle
    # ------------------------------------------------------------------ #

    async def connect(self) -> None:
        """Create the underlying :class:`httpx.AsyncClient`."""
        if self._client is not None:
            return
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        if self._app_name:
            headers["X-Title"] = self._app_name

        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=headers,
            timeout=self._timeout,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------ #
    # Generation
    # ------------------------------------------------------------------ #

    async def generate(self, prompt: str, model_id: str, max_tokens: int) -> str:
        """POST one chat completion and return the first choice's text.

        Raises:
            AuthenticationError: HTTP 401/403.
            RateLimitError: HTTP 429 (``retry_after`` from the header when present).
            APITimeoutError: The request timed out.
            APIConnectionError: The service could not be reached.
            TransportError: Any other HTTP error or an unusable response body.
        """
        if self._client is None:
            await self.connect()
        assert self._client is not None  # for mypy

        body = {
            "model": model_id,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }

        try:
            resp = await self._client.post("/chat/completions", json=body)
        except httpx.TimeoutException as exc:
            raise APITimeoutError(f"Request to {model_id} timed out: {exc}") from exc
        except httpx.RequestError as exc:
            raise APIConnectionError(f"Request to {model_id} failed: {exc}") from exc

        if resp.status_code >= 400:
            raise _error_for_status(resp, model_id)

        try:
            payload: dict[str, Any] = resp.json()
            content = payload["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise TransportError(
                f"Unusable completion from {model_id}: {resp.text[:200]}"
            ) from exc

        if not isinstance(content, str):
            raise TransportError(f"Completion from {model_id} has no text content")
        return content


def _error_for_status(resp: httpx.Response, model_id: str) -> TransportError:
    try:
        details: dict[str, Any] = resp.json()
    except Exception:  # noqa: BLE001
        details = {"raw": resp.text[:500]}
    message = f"Service returned HTTP {resp.status_code} for {model_id}"
    status = resp.status_code

    if status in (401, 403):
        return AuthenticationError(message, code=str(status), details=details, status_code=status)
    if status == 429:
        retry_after: float | None = None
        header = resp.headers.get("retry-after")
        if header:
            try:
                retry_after = float(header)
            except ValueError:
                retry_after = None
        return RateLimitError(
            message, code=str(status), details=details,
            status_code=status, retry_after=retry_after,
        )
    return TransportError(message, code=str(status), details=details, status_code=status)
