from __future__ import annotations

from abc import ABC
from typing import TYPE_CHECKING, Any

import structlog

from launch_forge.core.constants import BuildStage
from launch_forge.core.types import BuildRequest, GeneratedFile

if TYPE_CHECKING:
    from launch_forge.pipeline.models import BuildOutcome, StepRecord

logger = structlog.get_logger(__name__)


class BuildCallbackHandler(ABC):
    """Override any methods to observe a build. All default to no-ops."""

    async def on_build_start(self, build_id: str, request: BuildRequest) -> None:
        pass

    async def on_stage_change(
        self, build_id: str, stage: BuildStage, percent: int, message: str
    ) -> None:
        pass

    async def on_progress(self, build_id: str, stage: BuildStage, percent: int) -> None:
        """Called after each step with the updated percentage of the active stage."""

    async def on_step_end(self, build_id: str, step: StepRecord) -> None:
        pass

    async def on_file_generated(self, build_id: str, file: GeneratedFile) -> None:
        pass

    async def on_build_end(self, build_id: str, outcome: BuildOutcome) -> None:
        pass


class LoggingCallbackHandler(BuildCallbackHandler):
    """Logs every build event via structlog."""

    async def on_build_start(self, build_id: str, request: BuildRequest) -> None:
        logger.info(
            "build_start",
            build_id=build_id,
            tier=str(request.tier),
            idea_len=len(request.idea),
        )

    async def on_stage_change(
        self, build_id: str, stage: BuildStage, percent: int, message: str
    ) -> None:
        logger.info("build_stage", build_id=build_id, stage=str(stage), percent=percent)

    async def on_progress(self, build_id: str, stage: BuildStage, percent: int) -> None:
        logger.debug("build_progress", build_id=build_id, stage=str(stage), percent=percent)

    async def on_step_end(self, build_id: str, step: StepRecord) -> None:
        logger.info(
            "build_step",
            build_id=build_id,
            step=step.name,
            status=str(step.status),
            provenance=str(step.provenance) if step.provenance else None,
            attempts=step.attempts,
        )

    async def on_file_generated(self, build_id: str, file: GeneratedFile) -> None:
        logger.debug(
            "file_generated",
            build_id=build_id,
            path=file.path,
            size_bytes=file.size_bytes,
        )

    async def on_build_end(self, build_id: str, outcome: BuildOutcome) -> None:
        if outcome.kind == "failed":
            logger.error(
                "build_end",
                build_id=build_id,
                outcome=outcome.kind,
                phase=str(outcome.phase),
                cause=outcome.cause,
                error=outcome.message,
            )
        else:
            logger.info("build_end", build_id=build_id, outcome=outcome.kind)


class CompositeCallbackHandler(BuildCallbackHandler):
    """Fans out every event to several handlers, in order.

    An exception from one handler is logged and does not stop the others.
    """

    def __init__(self, handlers: list[BuildCallbackHandler]) -> None:
        self._handlers = list(handlers)

    async def _fan_out(self, event: str, *args: Any) -> None:
        for handler in self._handlers:
            try:
                await getattr(handler, event)(*args)
            except Exception as exc:  # noqa: BLE001
                logger.warning(
                    "callback_handler_error",
                    callback_event=event,
                    handler=type(handler).__name__,
                    error=str(exc),
                )

    async def on_build_start(self, build_id: str, request: BuildRequest) -> None:
        await self._fan_out("on_build_start", build_id, request)

    async def on_stage_change(
        self, build_id: str, stage: BuildStage, percent: int, message: str
    ) -> None:
        await self._fan_out("on_stage_change", build_id, stage, percent, message)

    async def on_progress(self, build_id: str, stage: BuildStage, percent: int) -> None:
        await self._fan_out("on_progress", build_id, stage, percent)

    async def on_step_end(self, build_id: str, step: StepRecord) -> None:
        await self._fan_out("on_step_end", build_id, step)

    async def on_file_generated(self, build_id: str, file: GeneratedFile) -> None:
        await self._fan_out("on_file_generated", build_id, file)

    async def on_build_end(self, build_id: str, outcome: BuildOutcome) -> None:
        await self._fan_out("on_build_end", build_id, outcome)
