"""Retry-then-fallback wrapper around one text-generation call."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, TypeVar

import structlog
from pydantic import ValidationError

from launch_forge.core.config import ForgeConfig
from launch_forge.core.constants import Provenance
from launch_forge.core.exceptions import (
    APITimeoutError,
    ExtractionError,
    InvocationExhaustedError,
    SchemaValidationError,
    TransportError,
)
from launch_forge.core.types import AgentInvocation
from launch_forge.gateway.base import TextGenerator
from launch_forge.output.extractor import Failed, extract
from launch_forge.resilience.cancellation import CancellationToken
from launch_forge.resilience.retry import RetryPolicy, SleepFn

logger = structlog.get_logger(__name__)

T = TypeVar("T")

Validator = Callable[[dict[str, Any]], T]


@dataclass
class Invocation(Generic[T]):
    """Outcome of :meth:`ResilientInvoker.invoke`.

    Attributes:
        value: The validated value, or the fallback when every attempt failed.
        provenance: ``generated`` or ``fallback``.
        attempts: Number of remote calls made.
        errors: One line per failed attempt.
    """

    value: T
    provenance: Provenance
    attempts: int
    errors: list[str] = field(default_factory=list)

    @property
    def retry_count(self) -> int:
        return self.attempts

    @property
    def is_fallback(self) -> bool:
        return self.provenance is Provenance.FALLBACK


class ResilientInvoker:
    """Bounded retry with a constant delay, then a deterministic fallback.

    Each attempt calls the generator under the per-call timeout, extracts a
    JSON record from the reply and passes it to the caller's validator. A
    transport error, an extraction failure or a validator rejection counts as
    a failed attempt. One structured log line is emitted per attempt.

    Args:
        generator: The remote text-generation service.
        config: Shared configuration (model ids, token budgets, timeout, retry).
        sleep: Awaitable sleep used between attempts; inject a fake in tests.
        cancel_token: When set, checked before every attempt and during the
            delay between attempts.
    """

    def __init__(
        self,
        generator: TextGenerator,
        config: ForgeConfig | None = None,
        *,
        sleep: SleepFn = asyncio.sleep,
        cancel_token: CancellationToken | None = None,
    ) -> None:
        self._generator = generator
        self._config = config or ForgeConfig()
        self._sleep = sleep
        self._cancel_token = cancel_token

    def __repr__(self) -> str:
        return f"ResilientInvoker(generator={self._generator!r})"

    @property
    def config(self) -> ForgeConfig:
        return self._config

    async def invoke(
        self,
        prompt: str,
        *,
        validator: Validator[T],
        fallback: T | Callable[[], T] | None = None,
        label: str = "invocation",
        model_id: str | None = None,
        max_tokens: int | None = None,
        max_retries: int | None = None,
    ) -> Invocation[T]:
        """Call the service until *validator* accepts a record or attempts run out.

        Args:
            prompt: Prompt text sent verbatim.
            validator: Receives the parsed record; returns the typed value or
                raises :class:`SchemaValidationError` / pydantic
                ``ValidationError``.
            fallback: Value (or zero-argument factory) returned once all
                attempts fail. ``None`` means the call is mandatory.
            label: Agent name, used for model/token lookup and logging.
            model_id: Override of the configured model.
            max_tokens: Override of the configured token budget.
            max_retries: Override of ``config.retry.max_retries``.

        Raises:
            InvocationExhaustedError: All attempts failed and no fallback exists.
            BuildCancelledError: The build was cancelled.
        """
        policy = self._config.retry
        if max_retries is not None:
            policy = RetryPolicy(max_retries=max_retries, delay=policy.delay)

        invocation = AgentInvocation(
            label=label,
            model_id=model_id or self._config.model_for(label),
            prompt=prompt,
            max_tokens=max_tokens or self._config.max_tokens_for(label),
            max_retries=policy.max_retries,
        )
        errors: list[str] = []

        while not invocation.exhausted:
            if self._cancel_token is not None:
                self._cancel_token.raise_if_cancelled()
            invocation = invocation.next_attempt()

            try:
                value = await self._attempt(invocation, validator)
            except (TransportError, ExtractionError) as exc:
                errors.append(f"attempt {invocation.attempt}: {exc}")
                logger.warning(
                    "invocation_attempt",
                    label=label,
                    attempt=invocation.attempt,
                    max_retries=invocation.max_retries,
                    outcome=_outcome_name(exc),
                    error=str(exc),
                )
                if not policy.should_retry(exc, invocation.attempt):
                    break
                await policy.pause(self._sleep, self._cancel_token)
                continue

            logger.info(
                "invocation_attempt",
                label=label,
                attempt=invocation.attempt,
                max_retries=invocation.max_retries,
                outcome="success",
            )
            return Invocation(
                value=value,
                provenance=Provenance.GENERATED,
                attempts=invocation.attempt,
                errors=errors,
            )

        if fallback is None:
            raise InvocationExhaustedError(
                f"{label} failed after {invocation.attempt} attempt(s)",
                attempts=invocation.attempt,
                errors=errors,
            )

        logger.warning(
            "invocation_fallback",
            label=label,
            attempts=invocation.attempt,
        )
        fallback_value = fallback() if callable(fallback) else fallback
        return Invocation(
            value=fallback_value,
            provenance=Provenance.FALLBACK,
            attempts=invocation.attempt,
            errors=errors,
        )

    async def _attempt(self, invocation: AgentInvocation, validator: Validator[T]) -> T:
        try:
            raw = await asyncio.wait_for(
                self._generator.generate(
                    invocation.prompt, invocation.model_id, invocation.max_tokens
                ),
                timeout=self._config.request_timeout,
            )
        except asyncio.TimeoutError as exc:
            raise APITimeoutError(
                f"{invocation.label} timed out after {self._config.request_timeout}s"
            ) from exc

        result = extract(raw)
        if isinstance(result, Failed):
            raise ExtractionError(result.detail or str(result.reason), reason=result.reason)

        try:
            return validator(result.record)
        except ValidationError as exc:
            raise SchemaValidationError(
                f"{invocation.label} record rejected: {exc.error_count()} error(s)",
                details={"errors": exc.errors(include_url=False)},
            ) from exc


def _outcome_name(exc: Exception) -> str:
    if isinstance(exc, SchemaValidationError):
        return "schema_invalid"
    if isinstance(exc, ExtractionError):
        return "extraction_failed"
    return "transport_error"
