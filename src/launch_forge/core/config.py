from __future__ import annotations

import os
from typing import Any, Callable, Literal

from pydantic import BaseModel, Field

from launch_forge.core.constants import Tier
from launch_forge.core.exceptions import ConfigurationError
from launch_forge.resilience.retry import RetryPolicy

DEFAULT_MODEL = "anthropic/claude-sonnet-4"
SCHEMA_MODEL = "deepseek/deepseek-chat-v3.1:free"


class TierLimits(BaseModel):
    """How much upstream data a tier may feed into the agents."""

    competitor_urls: int = Field(default=3, ge=0, le=20)
    review_analysis: bool = False
    files_for_audit: int = Field(default=12, ge=1, le=100)


def _default_tier_limits() -> dict[Tier, TierLimits]:
    return {
        Tier.FREE: TierLimits(competitor_urls=3, review_analysis=False, files_for_audit=8),
        Tier.STARTER: TierLimits(competitor_urls=5, review_analysis=True, files_for_audit=12),
        Tier.PREMIUM: TierLimits(competitor_urls=5, review_analysis=True, files_for_audit=20),
    }


class AgentSettings(BaseModel):
    """Per-agent model selection and token budget."""

    model_id: str | None = None
    """Model override; ``None`` means :attr:`ForgeConfig.default_model`."""
    max_tokens: int = Field(default=4000, ge=16, le=64000)


def _default_agent_settings() -> dict[str, AgentSettings]:
    return {
        "market_intelligence": AgentSettings(max_tokens=4000),
        "competitor_analysis": AgentSettings(max_tokens=4000),
        "review_analysis": AgentSettings(max_tokens=3000),
        "starving_market": AgentSettings(max_tokens=1000),
        "uniqueness": AgentSettings(max_tokens=1000),
        "pricing_strategy": AgentSettings(max_tokens=1500),
        "schema_designer": AgentSettings(model_id=SCHEMA_MODEL, max_tokens=4000),
        "backend_generator": AgentSettings(max_tokens=8000),
        "frontend_generator": AgentSettings(max_tokens=8000),
        "quality_auditor": AgentSettings(max_tokens=3000),
    }


class ForgeConfig(BaseModel):
    """Read-only configuration shared by every build.

    Per-build state never lives here; concurrent builds may share one
    instance safely.
    """

    base_url: str = "https://openrouter.ai/api/v1"
    api_key: str | None = None
    default_model: str = DEFAULT_MODEL
    request_timeout: float = Field(default=120.0, gt=0, le=3600)
    """Timeout in seconds for each individual remote call."""
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    agents: dict[str, AgentSettings] = Field(default_factory=_default_agent_settings)
    tier_limits: dict[Tier, TierLimits] = Field(default_factory=_default_tier_limits)
    deployment_threshold: int = Field(default=70, ge=0, le=100)
    min_idea_length: int = Field(default=20, ge=1)
    parallel_codegen: bool = True
    result_ttl_seconds: float = Field(default=24 * 60 * 60, gt=0)
    """How long a finished build stays pollable."""
    max_stored_builds: int = Field(default=1000, ge=1)
    status_log_limit: int = Field(default=20, ge=1)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_json: bool = True

    def model_for(self, agent: str) -> str:
        settings = self.agents.get(agent)
        if settings is not None and settings.model_id:
            return settings.model_id
        return self.default_model

    def max_tokens_for(self, agent: str) -> int:
        settings = self.agents.get(agent)
        return settings.max_tokens if settings is not None else 4000

    def limits_for(self, tier: Tier) -> TierLimits:
        return self.tier_limits.get(tier, TierLimits())

    @classmethod
    def from_env(cls) -> ForgeConfig:
        """Create a :class:`ForgeConfig` from ``LAUNCHFORGE_*`` environment variables.

        Reads the following env vars (all optional):

        * ``LAUNCHFORGE_BASE_URL`` → ``base_url``
        * ``LAUNCHFORGE_API_KEY`` (or ``OPENROUTER_API_KEY``) → ``api_key``
        * ``LAUNCHFORGE_MODEL`` → ``default_model``
        * ``LAUNCHFORGE_TIMEOUT`` → ``request_timeout`` (seconds)
        * ``LAUNCHFORGE_MAX_RETRIES`` / ``LAUNCHFORGE_RETRY_DELAY`` → ``retry``
        * ``LAUNCHFORGE_PARALLEL_CODEGEN`` → ``parallel_codegen`` (``0``/``1``)
        * ``LAUNCHFORGE_LOG_LEVEL`` → ``log_level``
        * ``LAUNCHFORGE_LOG_JSON`` → ``log_json`` (``0``/``1``)

        Any variable that is not set or is empty is left at its default value.

        Raises:
            ConfigurationError: A numeric variable cannot be parsed.
        """
        kwargs: dict[str, Any] = {}

        base_url = os.environ.get("LAUNCHFORGE_BASE_URL")
        if base_url:
            kwargs["base_url"] = base_url

        api_key = os.environ.get("LAUNCHFORGE_API_KEY") or os.environ.get(
            "OPENROUTER_API_KEY"
        )
        if api_key:
            kwargs["api_key"] = api_key

        model = os.environ.get("LAUNCHFORGE_MODEL")
        if model:
            kwargs["default_model"] = model

        timeout_str = os.environ.get("LAUNCHFORGE_TIMEOUT")
        if timeout_str:
            kwargs["request_timeout"] = _parse("LAUNCHFORGE_TIMEOUT", timeout_str, float)

        retry_kwargs: dict[str, Any] = {}
        max_retries = os.environ.get("LAUNCHFORGE_MAX_RETRIES")
        if max_retries:
            retry_kwargs["max_retries"] = _parse("LAUNCHFORGE_MAX_RETRIES", max_retries, int)
        delay = os.environ.get("LAUNCHFORGE_RETRY_DELAY")
        if delay:
            retry_kwargs["delay"] = _parse("LAUNCHFORGE_RETRY_DELAY", delay, float)
        if retry_kwargs:
            kwargs["retry"] = RetryPolicy(**retry_kwargs)

        parallel = os.environ.get("LAUNCHFORGE_PARALLEL_CODEGEN")
        if parallel:
            kwargs["parallel_codegen"] = _as_bool(parallel)

        log_level = os.environ.get("LAUNCHFORGE_LOG_LEVEL")
        if log_level:
            kwargs["log_level"] = log_level.upper()

        log_json = os.environ.get("LAUNCHFORGE_LOG_JSON")
        if log_json:
            kwargs["log_json"] = _as_bool(log_json)

        return cls(**kwargs)


def _as_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse(name: str, value: str, cast: Callable[[str], Any]) -> Any:
    try:
        return cast(value)
    except ValueError as exc:
        raise ConfigurationError(
            f"{name} must be a number, got {value!r}", details={"variable": name}
        ) from exc
