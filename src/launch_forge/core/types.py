from __future__ import annotations

import re
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from launch_forge.core.constants import Tier


class BuildRequest(BaseModel):
    """A product idea submitted for a build.

    Immutable once accepted. ``target_country`` is optional; prompts fall
    back to ``"Global"`` when it is absent.
    """

    model_config = ConfigDict(frozen=True)

    idea: str = Field(..., min_length=1)
    target_market: str = "General"
    tier: Tier = Tier.FREE
    target_country: str | None = None
    project_name: str | None = None
    framework: str = "react"
    database: str = "postgresql"
    features: tuple[str, ...] = ()

    @field_validator("idea")
    @classmethod
    def _strip_idea(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("idea must not be blank")
        return stripped

    @property
    def display_name(self) -> str:
        """``project_name`` or a title derived from the first words of the idea."""
        if self.project_name:
            return self.project_name
        words = re.findall(r"[A-Za-z0-9]+", self.idea)[:4]
        return " ".join(w.capitalize() for w in words) or "My App"

    @property
    def country(self) -> str:
        return self.target_country or "Global"


class BuildHandle(BaseModel):
    """Opaque reference returned by ``start_build``."""

    model_config = ConfigDict(frozen=True)

    build_id: str


class AgentInvocation(BaseModel):
    """One logical call to the text-generation service.

    ``attempt`` counts the calls made so far and never exceeds
    ``max_retries``.
    """

    model_config = ConfigDict(frozen=True)

    label: str
    model_id: str
    prompt: str
    max_tokens: int = Field(default=4000, ge=1)
    attempt: int = Field(default=0, ge=0)
    max_retries: int = Field(default=3, ge=1)

    @property
    def exhausted(self) -> bool:
        return self.attempt >= self.max_retries

    def next_attempt(self) -> AgentInvocation:
        if self.exhausted:
            raise ValueError(
                f"Invocation {self.label!r} already used {self.attempt} of "
                f"{self.max_retries} attempts"
            )
        return self.model_copy(update={"attempt": self.attempt + 1})


class GeneratedFile(BaseModel):
    path: str
    content: str
    origin: Literal["frontend", "backend", "database", "docs"] = "backend"

    @property
    def size_bytes(self) -> int:
        return len(self.content.encode("utf-8"))

    @property
    def line_count(self) -> int:
        return len(self.content.splitlines())
