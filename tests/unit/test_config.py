"""Tests for core/config.py: ForgeConfig and tier limits."""
from __future__ import annotations

import pytest
from pydantic import ValidationError

from launch_forge.core.config import (
    DEFAULT_MODEL,
    SCHEMA_MODEL,
    ForgeConfig,
    TierLimits,
)
from launch_forge.core.constants import Tier
from launch_forge.core.exceptions import ConfigurationError

_ENV_VARS = [
    "LAUNCHFORGE_BASE_URL",
    "LAUNCHFORGE_API_KEY",
    "OPENROUTER_API_KEY",
    "LAUNCHFORGE_MODEL",
    "LAUNCHFORGE_TIMEOUT",
    "LAUNCHFORGE_MAX_RETRIES",
    "LAUNCHFORGE_RETRY_DELAY",
    "LAUNCHFORGE_PARALLEL_CODEGEN",
    "LAUNCHFORGE_LOG_LEVEL",
    "LAUNCHFORGE_LOG_JSON",
]


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------


def test_defaults() -> None:
    config = ForgeConfig()
    assert config.base_url == "https://openrouter.ai/api/v1"
    assert config.api_key is None
    assert config.request_timeout == 120.0
    assert config.retry.max_retries == 3
    assert config.retry.delay == 2.0
    assert config.deployment_threshold == 70
    assert config.min_idea_length == 20
    assert config.parallel_codegen is True


def test_schema_designer_uses_its_own_model() -> None:
    config = ForgeConfig()
    assert config.model_for("schema_designer") == SCHEMA_MODEL
    assert config.model_for("market_intelligence") == DEFAULT_MODEL
    assert config.model_for("unknown_agent") == DEFAULT_MODEL


def test_token_budgets() -> None:
    config = ForgeConfig()
    assert config.max_tokens_for("backend_generator") == 8000
    assert config.max_tokens_for("starving_market") == 1000
    assert config.max_tokens_for("unknown_agent") == 4000


def test_tier_limits() -> None:
    config = ForgeConfig()
    free = config.limits_for(Tier.FREE)
    assert free.competitor_urls == 3
    assert free.review_analysis is False
    assert config.limits_for(Tier.STARTER).review_analysis is True
    assert config.limits_for(Tier.PREMIUM).files_for_audit == 20


def test_missing_tier_falls_back_to_default_limits() -> None:
    config = ForgeConfig(tier_limits={})
    assert config.limits_for(Tier.PREMIUM) == TierLimits()


@pytest.mark.parametrize(
    "bad",
    [{"request_timeout": 0}, {"deployment_threshold": 101}, {"log_level": "TRACE"}],
)
def test_invalid_values_rejected(bad: dict) -> None:
    with pytest.raises(ValidationError):
        ForgeConfig(**bad)


# ---------------------------------------------------------------------------
# from_env()
# ---------------------------------------------------------------------------


def test_from_env_empty_gives_defaults(clean_env) -> None:
    assert ForgeConfig.from_env() == ForgeConfig()


def test_from_env_reads_all_variables(clean_env) -> None:
    clean_env.setenv("LAUNCHFORGE_BASE_URL", "http://localhost:1234/v1")
    clean_env.setenv("LAUNCHFORGE_API_KEY", "sk-forge")
    clean_env.setenv("LAUNCHFORGE_MODEL", "openai/gpt-4o")
    clean_env.setenv("LAUNCHFORGE_TIMEOUT", "30")
    clean_env.setenv("LAUNCHFORGE_MAX_RETRIES", "5")
    clean_env.setenv("LAUNCHFORGE_RETRY_DELAY", "0.5")
    clean_env.setenv("LAUNCHFORGE_PARALLEL_CODEGEN", "0")
    clean_env.setenv("LAUNCHFORGE_LOG_LEVEL", "debug")
    clean_env.setenv("LAUNCHFORGE_LOG_JSON", "false")

    config = ForgeConfig.from_env()
    assert config.base_url == "http://localhost:1234/v1"
    assert config.api_key == "sk-forge"
    assert config.default_model == "openai/gpt-4o"
    assert config.request_timeout == 30.0
    assert config.retry.max_retries == 5
    assert config.retry.delay == 0.5
    assert config.parallel_codegen is False
    assert config.log_level == "DEBUG"
    assert config.log_json is False


def test_from_env_openrouter_key_fallback(clean_env) -> None:
    clean_env.setenv("OPENROUTER_API_KEY", "sk-or")
    assert ForgeConfig.from_env().api_key == "sk-or"


def test_from_env_forge_key_wins(clean_env) -> None:
    clean_env.setenv("OPENROUTER_API_KEY", "sk-or")
    clean_env.setenv("LAUNCHFORGE_API_KEY", "sk-forge")
    assert ForgeConfig.from_env().api_key == "sk-forge"


def test_from_env_only_delay_keeps_default_attempts(clean_env) -> None:
    clean_env.setenv("LAUNCHFORGE_RETRY_DELAY", "1")
    retry = ForgeConfig.from_env().retry
    assert retry.max_retries == 3
    assert retry.delay == 1.0


@pytest.mark.parametrize(
    "name,value",
    [
        ("LAUNCHFORGE_TIMEOUT", "soon"),
        ("LAUNCHFORGE_MAX_RETRIES", "three"),
        ("LAUNCHFORGE_RETRY_DELAY", "2s"),
    ],
)
def test_from_env_bad_number_raises(clean_env, name: str, value: str) -> None:
    clean_env.setenv(name, value)
    with pytest.raises(ConfigurationError) as exc_info:
        ForgeConfig.from_env()
    assert exc_info.value.details == {"variable": name}
