"""launch-forge: turn a product idea into researched, generated app artifacts."""

from launch_forge.__version__ import __version__
from launch_forge.cache.base import BuildStore, InMemoryBuildStore
from launch_forge.callbacks.handler import (
    BuildCallbackHandler,
    CompositeCallbackHandler,
    LoggingCallbackHandler,
)
from launch_forge.core.config import AgentSettings, ForgeConfig, TierLimits
from launch_forge.core.constants import (
    BuildStage,
    BuildState,
    ExtractionFailureReason,
    Phase,
    Provenance,
    Tier,
)
from launch_forge.core.exceptions import (
    APIConnectionError,
    APITimeoutError,
    AuthenticationError,
    BuildCancelledError,
    BuildNotFoundError,
    ConfigurationError,
    ExtractionError,
    ForgeError,
    InvalidBuildRequestError,
    InvocationExhaustedError,
    PhaseFatalError,
    RateLimitError,
    SchemaValidationError,
    TransportError,
)
from launch_forge.core.service import BuildService
from launch_forge.core.types import BuildHandle, BuildRequest, GeneratedFile
from launch_forge.gateway.base import TextGenerator
from launch_forge.gateway.mock import MockTextGenerator
from launch_forge.gateway.openai_compat import OpenAICompatGenerator
from launch_forge.output.extractor import Failed, Parsed, extract
from launch_forge.pipeline.models import (
    AggregateBuildResult,
    BuildCancelled,
    BuildDone,
    BuildFailed,
    BuildStatus,
    PhaseState,
)
from launch_forge.pipeline.sequencer import BuildOrchestrator
from launch_forge.resilience.cancellation import CancellationToken
from launch_forge.resilience.invoker import Invocation, ResilientInvoker
from launch_forge.resilience.retry import RetryPolicy
from launch_forge.utils.logging import configure_logging

__all__ = [
    "APIConnectionError",
    "APITimeoutError",
    "AgentSettings",
    "AggregateBuildResult",
    "AuthenticationError",
    "BuildCallbackHandler",
    "BuildCancelled",
    "BuildCancelledError",
    "BuildDone",
    "BuildFailed",
    "BuildHandle",
    "BuildNotFoundError",
    "BuildOrchestrator",
    "BuildRequest",
    "BuildService",
    "BuildStage",
    "BuildState",
    "BuildStatus",
    "BuildStore",
    "CancellationToken",
    "CompositeCallbackHandler",
    "ConfigurationError",
    "ExtractionError",
    "ExtractionFailureReason",
    "Failed",
    "ForgeConfig",
    "ForgeError",
    "GeneratedFile",
    "InMemoryBuildStore",
    "InvalidBuildRequestError",
    "Invocation",
    "InvocationExhaustedError",
    "LoggingCallbackHandler",
    "MockTextGenerator",
    "OpenAICompatGenerator",
    "Parsed",
    "Phase",
    "PhaseFatalError",
    "PhaseState",
    "Provenance",
    "RateLimitError",
    "ResilientInvoker",
    "RetryPolicy",
    "SchemaValidationError",
    "TextGenerator",
    "Tier",
    "TierLimits",
    "TransportError",
    "configure_logging",
    "extract",
    "__version__",
]
