from __future__ import annotations

from typing import Any

from launch_forge.core.constants import ExtractionFailureReason, Phase


class ForgeError(Exception):
    """Base exception for all launch-forge errors.

    Attributes:
        code: Optional machine-readable error code (e.g. ``"PhaseFatal"``).
        details: Arbitrary key/value context about the error.
        status_code: HTTP status code when the error originates from the
            text-generation service (``None`` when not applicable).
        retry_after: Suggested delay in seconds before retrying, when the
            remote service supplied one.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
        *,
        status_code: int | None = None,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = details or {}
        self.status_code = status_code
        self.retry_after = retry_after

    @property
    def is_retryable(self) -> bool:
        """Whether the operation that raised this error can be retried."""
        return False


class ConfigurationError(ForgeError): ...


class InvalidBuildRequestError(ForgeError): ...


class BuildNotFoundError(ForgeError): ...


# ---------------------------------------------------------------------------
# Transport errors (remote text-generation call failed to complete)
# ---------------------------------------------------------------------------


class TransportError(ForgeError):
    """The remote text-generation call failed to complete.

    Retryable unless a subclass says otherwise.
    """

    @property
    def is_retryable(self) -> bool:  # noqa: D102
        return True


class RateLimitError(TransportError):
    """The service answered HTTP 429. ``retry_after`` is set when known."""


class AuthenticationError(TransportError):
    """HTTP 401/403. Never retryable; credentials must be fixed first."""

    @property
    def is_retryable(self) -> bool:  # noqa: D102
        return False


class APITimeoutError(TransportError):
    """The service did not answer within the per-call timeout."""


class APIConnectionError(TransportError):
    """DNS, TCP or TLS failure reaching the service."""


# ---------------------------------------------------------------------------
# Output errors
# ---------------------------------------------------------------------------


class ExtractionError(ForgeError):
    """Response text could not be turned into a JSON record."""

    def __init__(
        self,
        message: str,
        reason: ExtractionFailureReason = ExtractionFailureReason.SYNTAX_INVALID,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, code=str(reason), **kwargs)
        self.reason = reason

    @property
    def is_retryable(self) -> bool:  # noqa: D102
        return True


class SchemaValidationError(ExtractionError):
    """A record parsed but is missing required fields or has the wrong shape."""

    def __init__(
        self, message: str, missing: list[str] | None = None, **kwargs: Any
    ) -> None:
        super().__init__(
            message, reason=ExtractionFailureReason.SCHEMA_INVALID, **kwargs
        )
        self.missing = missing or []


# ---------------------------------------------------------------------------
# Orchestration errors
# ---------------------------------------------------------------------------


class InvocationExhaustedError(ForgeError):
    """Every attempt of an invocation failed and no fallback was defined."""

    def __init__(
        self, message: str, attempts: int, errors: list[str] | None = None
    ) -> None:
        super().__init__(message, code="InvocationExhausted")
        self.attempts = attempts
        self.errors = errors or []


class PhaseFatalError(ForgeError):
    """A mandatory step of a phase exhausted its retries."""

    def __init__(self, phase: Phase, message: str) -> None:
        super().__init__(message, code="PhaseFatal", details={"phase": str(phase)})
        self.phase = phase


class BuildCancelledError(ForgeError):
    """The build was cancelled by its caller."""

    def __init__(self, message: str = "Build cancelled") -> None:
        super().__init__(message, code="Cancelled")
