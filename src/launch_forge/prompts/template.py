"""Prompt templates with placeholder substitution and JSON embedding."""

from __future__ import annotations

import json
import re
from typing import Any


class PromptTemplate:
    """A reusable prompt with ``{variable}`` placeholders.

    Only ``{word}`` placeholders are substituted, so JSON examples written
    inside a template (``{"key": "value"}``) survive rendering untouched.

    Example::

        t = PromptTemplate("You are the {role}.\\nIdea: {idea}")
        prompt = t.render(role="Pricing Strategist", idea="dog walking")
    """

    _VAR_PATTERN = re.compile(r"\{(\w+)\}")

    def __init__(self, template: str, **defaults: str) -> None:
        self._template = template
        self._defaults: dict[str, str] = dict(defaults)

    def __repr__(self) -> str:
        return f"PromptTemplate({self._template[:40]!r})"

    @property
    def template(self) -> str:
        return self._template

    @property
    def variables(self) -> set[str]:
        return set(self._VAR_PATTERN.findall(self._template))

    def render(self, **kwargs: Any) -> str:
        """Substitute placeholders; non-string values are converted with ``str``.

        Raises:
            KeyError: If a placeholder has neither a value nor a default.
        """
        merged = {**self._defaults, **kwargs}

        def _replace(match: re.Match[str]) -> str:
            key = match.group(1)
            if key not in merged:
                raise KeyError(key)
            return str(merged[key])

        return self._VAR_PATTERN.sub(_replace, self._template)

    def partial(self, **kwargs: str) -> PromptTemplate:
        return PromptTemplate(self._template, **{**self._defaults, **kwargs})


def embed_json(value: Any, limit: int = 1500) -> str:
    """Serialize upstream data for a prompt, truncated to *limit* characters."""
    if hasattr(value, "model_dump"):
        value = value.model_dump(mode="json", exclude={"provenance"})
    text = json.dumps(value, ensure_ascii=False, default=str)
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def bullet_list(items: list[str], empty: str = "None") -> str:
    cleaned = [item for item in items if item]
    if not cleaned:
        return empty
    return "\n".join(f"- {item}" for item in cleaned)
