from __future__ import annotations

import asyncio
import time
import uuid
from typing import Any, Callable, Mapping

import structlog
from pydantic import ValidationError

from launch_forge.cache.base import BuildStore, InMemoryBuildStore
from launch_forge.callbacks.handler import (
    BuildCallbackHandler,
    CompositeCallbackHandler,
    LoggingCallbackHandler,
)
from launch_forge.core.config import ForgeConfig
from launch_forge.core.constants import BuildStage, BuildState, StepStatus
from launch_forge.core.exceptions import BuildNotFoundError, InvalidBuildRequestError
from launch_forge.core.types import BuildHandle, BuildRequest, GeneratedFile
from launch_forge.gateway.base import TextGenerator
from launch_forge.gateway.openai_compat import OpenAICompatGenerator
from launch_forge.pipeline.models import (
    BuildError,
    BuildOutcome,
    BuildRecord,
    BuildStatus,
    StepRecord,
)
from launch_forge.pipeline.progress import STAGE_MESSAGES, percent_complete
from launch_forge.pipeline.sequencer import BuildOrchestrator
from launch_forge.resilience.cancellation import CancellationToken
from launch_forge.resilience.retry import SleepFn

logger = structlog.get_logger(__name__)


class _StatusRecorder(BuildCallbackHandler):
    """Mirrors orchestrator events into the build's stored record."""

    def __init__(self, store: BuildStore) -> None:
        self._store = store

    async def on_stage_change(
        self, build_id: str, stage: BuildStage, percent: int, message: str
    ) -> None:
        if stage is BuildStage.DONE:
            # on_build_end stores the result together with the final state.
            return
        record = await self._store.get(build_id)
        if record is None:
            return
        record.state = BuildState.RUNNING
        record.stage = stage
        record.percent_complete = percent
        record.message = message
        record.log(message)
        await self._store.put(record)

    async def on_progress(self, build_id: str, stage: BuildStage, percent: int) -> None:
        record = await self._store.get(build_id)
        if record is None or record.finished:
            return
        record.percent_complete = percent
        await self._store.put(record)

    async def on_step_end(self, build_id: str, step: StepRecord) -> None:
        record = await self._store.get(build_id)
        if record is None:
            return
        if step.status is StepStatus.SKIPPED:
            record.log(f"{step.name} skipped: {step.reason}")
        else:
            level = "warning" if step.provenance == "fallback" else "info"
            record.log(
                f"{step.name} {step.provenance} after {step.attempts} attempt(s)",
                level=level,
            )
        await self._store.put(record)

    async def on_file_generated(self, build_id: str, file: GeneratedFile) -> None:
        record = await self._store.get(build_id)
        if record is None:
            return
        record.partial_files.append(file)
        await self._store.put(record)

    async def on_build_end(self, build_id: str, outcome: BuildOutcome) -> None:
        record = await self._store.get(build_id)
        if record is None:
            return
        if outcome.kind == "done":
            record.state, record.stage = BuildState.COMPLETED, BuildStage.DONE
            record.result = outcome.result
            record.partial_files = list(outcome.result.files)
            record.log("Build complete")
        elif outcome.kind == "failed":
            record.state, record.stage = BuildState.FAILED, BuildStage.FAILED
            record.error = BuildError(
                phase=outcome.phase, cause=outcome.cause, message=outcome.message
            )
            record.log(f"Build failed in {outcome.phase}: {outcome.message}", level="error")
        else:
            _mark_cancelled(record, outcome.message)
        record.percent_complete = percent_complete(record.stage)
        record.message = STAGE_MESSAGES[record.stage]
        record.finished_at = time.time()
        await self._store.put(record)


def _mark_cancelled(record: BuildRecord, message: str) -> None:
    record.state, record.stage = BuildState.CANCELLED, BuildStage.CANCELLED
    record.error = BuildError(phase=None, cause="Cancelled", message=message)
    record.log(message, level="warning")


def new_build_id() -> str:
    return f"build_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"


class BuildService:
    """Starts builds in the background and answers status polls.

    Usage::

        async with BuildService.from_config(ForgeConfig.from_env()) as service:
            handle = await service.start_build({"idea": "Dog walking marketplace ..."})
            status = await service.wait(handle)
            print(status.result.summary)

    Args:
        generator: Text-generation service used by every build.
        config: Shared configuration.
        store: Where build records live; defaults to an in-memory store using
            ``config.result_ttl_seconds`` and ``config.max_stored_builds``.
        callbacks: Extra observers, called after the built-in status recorder
            and logger.
        sleep: Awaitable sleep used between retry attempts.
        clock: Monotonic clock for timings.
    """

    def __init__(
        self,
        generator: TextGenerator,
        config: ForgeConfig | None = None,
        *,
        store: BuildStore | None = None,
        callbacks: list[BuildCallbackHandler] | None = None,
        sleep: SleepFn = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config or ForgeConfig()
        self._generator = generator
        self._owns_generator = False
        self._store = (
            store
            if store is not None
            else InMemoryBuildStore(
                ttl_seconds=self._config.result_ttl_seconds,
                max_size=self._config.max_stored_builds,
            )
        )
        handlers: list[BuildCallbackHandler] = [
            _StatusRecorder(self._store),
            LoggingCallbackHandler(),
            *(callbacks or []),
        ]
        self._orchestrator = BuildOrchestrator(
            generator,
            self._config,
            callbacks=CompositeCallbackHandler(handlers),
            sleep=sleep,
            clock=clock,
        )
        self._tasks: dict[str, asyncio.Task[None]] = {}
        self._tokens: dict[str, CancellationToken] = {}

    @classmethod
    def from_config(cls, config: ForgeConfig) -> BuildService:
        """Create a service talking to ``config.base_url`` over HTTP.

        The service owns the generator and closes it in :meth:`aclose`.
        """
        generator = OpenAICompatGenerator(
            config.base_url,
            api_key=config.api_key,
            timeout=config.request_timeout,
        )
        service = cls(generator, config)
        service._owns_generator = True
        return service

    def __repr__(self) -> str:
        return f"BuildService(active={len(self._tasks)})"

    async def __aenter__(self) -> BuildService:
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.aclose()

    @property
    def config(self) -> ForgeConfig:
        return self._config

    @property
    def active_builds(self) -> list[str]:
        return list(self._tasks)

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    async def start_build(self, request: BuildRequest | Mapping[str, Any]) -> BuildHandle:
        """Validate *request*, record it as queued and start the build.

        Returns as soon as the build is scheduled; poll :meth:`get_status`
        or await :meth:`wait` for progress.

        Raises:
            InvalidBuildRequestError: The request is malformed or the idea is
                shorter than ``config.min_idea_length``.
        """
        build_request = self._validate(request)
        await self._store.purge_expired()

        build_id = new_build_id()
        record = BuildRecord(build_id=build_id, request=build_request)
        record.log("Build queued")
        await self._store.put(record)

        token = CancellationToken()
        self._tokens[build_id] = token
        task = asyncio.create_task(
            self._run_build(build_id, build_request, token), name=build_id
        )
        self._tasks[build_id] = task
        logger.info("build_queued", build_id=build_id, tier=str(build_request.tier))
        return BuildHandle(build_id=build_id)

    async def get_status(self, handle: BuildHandle | str) -> BuildStatus:
        """Return a snapshot of the build's progress.

        Raises:
            BuildNotFoundError: The build id is unknown or has expired.
        """
        record = await self._require(handle)
        return BuildStatus.from_record(record, log_limit=self._config.status_log_limit)

    async def cancel_build(self, handle: BuildHandle | str) -> bool:
        """Request cancellation. Returns ``False`` when the build already finished.

        Cancellation is cooperative: the build stops at the next phase
        boundary or retry attempt; a remote call already in flight finishes
        under its own timeout.

        Raises:
            BuildNotFoundError: The build id is unknown or has expired.
        """
        record = await self._require(handle)
        token = self._tokens.get(record.build_id)
        if record.finished or token is None:
            return False
        token.cancel("Build cancelled by caller")
        record.log("Cancellation requested", level="warning")
        await self._store.put(record)
        return True

    async def wait(self, handle: BuildHandle | str, timeout: float | None = None) -> BuildStatus:
        """Wait until the build finishes or *timeout* seconds pass, then report status."""
        build_id = _build_id(handle)
        task = self._tasks.get(build_id)
        if task is not None:
            await asyncio.wait({task}, timeout=timeout)
        return await self.get_status(build_id)

    async def aclose(self) -> None:
        """Cancel running builds, wait for them to stop and release the generator."""
        for token in self._tokens.values():
            token.cancel("Service shutting down")
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        if self._owns_generator:
            await self._generator.close()

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _validate(self, request: BuildRequest | Mapping[str, Any]) -> BuildRequest:
        if isinstance(request, BuildRequest):
            build_request = request
        else:
            try:
                build_request = BuildRequest.model_validate(dict(request))
            except ValidationError as exc:
                raise InvalidBuildRequestError(
                    "Invalid build request",
                    code="InvalidRequest",
                    details={"errors": exc.errors(include_url=False, include_context=False)},
                    status_code=400,
                ) from exc

        if len(build_request.idea) < self._config.min_idea_length:
            raise InvalidBuildRequestError(
                f"Idea must be at least {self._config.min_idea_length} characters",
                code="IdeaTooShort",
                details={"length": len(build_request.idea)},
                status_code=400,
            )
        return build_request

    async def _require(self, handle: BuildHandle | str) -> BuildRecord:
        build_id = _build_id(handle)
        record = await self._store.get(build_id)
        if record is None:
            raise BuildNotFoundError(
                f"Build {build_id} not found", code="NotFound", status_code=404
            )
        return record

    async def _run_build(
        self, build_id: str, request: BuildRequest, token: CancellationToken
    ) -> None:
        try:
            await self._orchestrator.run(build_id, request, token)
        except asyncio.CancelledError:
            record = await self._store.get(build_id)
            if record is not None and not record.finished:
                _mark_cancelled(record, token.reason)
                record.percent_complete = 0
                record.message = STAGE_MESSAGES[BuildStage.CANCELLED]
                record.finished_at = time.time()
                await self._store.put(record)
            raise
        finally:
            self._tasks.pop(build_id, None)
            self._tokens.pop(build_id, None)


def _build_id(handle: BuildHandle | str) -> str:
    return handle.build_id if isinstance(handle, BuildHandle) else handle
