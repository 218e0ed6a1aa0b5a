from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Union

from launch_forge.core.exceptions import TransportError
from launch_forge.gateway.base import TextGenerator

# A scripted reply: raw text, a dict (serialized to JSON), an exception to
# raise, or a callable computing one of those from the prompt.
Reply = Union[str, dict[str, Any], BaseException, Callable[[str], Any]]


@dataclass
class GenerateCall:
    prompt: str
    model_id: str
    max_tokens: int


class MockTextGenerator(TextGenerator):
    """In-memory text generator for tests.

    Replies are registered against a substring of the prompt. A list of
    replies is consumed one per call; the last entry repeats once the list
    runs out.

    Usage::

        gen = MockTextGenerator()
        gen.register("Market Intelligence", {"market_overview": {"tam": "$1B"}})
        gen.register("Schema Designer", TransportError("down"))
        gen.register("Quality Auditor", ["not json", {"overall_score": 82}])

        text = await gen.generate(prompt, "some-model", 1000)
    """

    def __init__(self, default: Reply | None = None) -> None:
        self._routes: list[tuple[str, list[Reply]]] = []
        self._cursor: dict[str, int] = {}
        self._default = default
        self.calls: list[GenerateCall] = []

    def register(self, marker: str, replies: Reply | list[Reply]) -> None:
        """Answer prompts containing *marker* with *replies*.

        Registering the same marker again replaces its replies. Markers are
        matched in registration order.
        """
        script = list(replies) if isinstance(replies, list) else [replies]
        self._routes = [(m, r) for m, r in self._routes if m != marker]
        self._routes.append((marker, script))
        self._cursor[marker] = 0

    def calls_matching(self, marker: str) -> list[GenerateCall]:
        return [c for c in self.calls if marker in c.prompt]

    async def generate(self, prompt: str, model_id: str, max_tokens: int) -> str:
        self.calls.append(GenerateCall(prompt=prompt, model_id=model_id, max_tokens=max_tokens))
        reply = self._next_reply(prompt)
        if callable(reply) and not isinstance(reply, BaseException):
            reply = reply(prompt)
        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, dict):
            return json.dumps(reply)
        return str(reply)

    def _next_reply(self, prompt: str) -> Reply:
        for marker, script in self._routes:
            if marker in prompt:
                index = self._cursor[marker]
                self._cursor[marker] = index + 1
                return script[min(index, len(script) - 1)]
        if self._default is not None:
            return self._default
        raise TransportError(
            f"MockTextGenerator: no reply registered for prompt {prompt[:80]!r}"
        )
