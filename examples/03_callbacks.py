# RUN: python examples/03_callbacks.py
"""Callbacks: watch a build with a custom handler, and cancel it midway."""

import asyncio
from dataclasses import dataclass
from typing import Any

from launch_forge import (
    BuildCallbackHandler,
    BuildService,
    ForgeConfig,
    MockTextGenerator,
    RetryPolicy,
)
from launch_forge.core.constants import BuildStage
from launch_forge.core.types import BuildRequest, GeneratedFile
from launch_forge.pipeline.models import BuildOutcome, StepRecord

IDEA = "A meal planning app that turns a weekly grocery budget into recipes"


# ---------------------------------------------------------------------------
# Custom audit callback
# ---------------------------------------------------------------------------

@dataclass
class AuditEvent:
    event: str
    detail: Any = None


class AuditCallbackHandler(BuildCallbackHandler):
    """Records every callback event to an in-memory audit log."""

    def __init__(self) -> None:
        self.log: list[AuditEvent] = []

    async def on_build_start(self, build_id: str, request: BuildRequest) -> None:
        self.log.append(AuditEvent("build_start", {"tier": str(request.tier)}))

    async def on_stage_change(
        self, build_id: str, stage: BuildStage, percent: int, message: str
    ) -> None:
        self.log.append(AuditEvent("stage", f"{percent:3d}% {stage}"))

    async def on_progress(self, build_id: str, stage: BuildStage, percent: int) -> None:
        self.log.append(AuditEvent("progress", f"{percent:3d}%"))

    async def on_step_end(self, build_id: str, step: StepRecord) -> None:
        self.log.append(AuditEvent("step", f"{step.name}: {step.status} {step.provenance or ''}"))

    async def on_file_generated(self, build_id: str, file: GeneratedFile) -> None:
        self.log.append(AuditEvent("file", file.path))

    async def on_build_end(self, build_id: str, outcome: BuildOutcome) -> None:
        self.log.append(AuditEvent("build_end", outcome.kind))


class CancelAtCodegen(BuildCallbackHandler):
    """Cancels the build as soon as code generation starts."""

    def __init__(self) -> None:
        self.service: BuildService | None = None

    async def on_stage_change(
        self, build_id: str, stage: BuildStage, percent: int, message: str
    ) -> None:
        if stage is BuildStage.CODE_GENERATION and self.service is not None:
            await self.service.cancel_build(build_id)


async def main() -> None:
    gen = MockTextGenerator(default="{}")
    gen.register("Market Intelligence Analyst", {
        "market_overview": {"tam": "$2B"},
        "market_gaps": ["Budget-aware recipes"],
    })
    config = ForgeConfig(retry=RetryPolicy(max_retries=1, delay=0.0))

    audit = AuditCallbackHandler()
    service = BuildService(gen, config, callbacks=[audit])
    async with service:
        status = await service.wait(await service.start_build({"idea": IDEA}))
        print(f"Full build: {status.state}\n")
        for i, entry in enumerate(audit.log, 1):
            print(f"  {i:2}. [{entry.event:11s}] {entry.detail}")

    audit = AuditCallbackHandler()
    canceller = CancelAtCodegen()
    service = BuildService(gen, config, callbacks=[audit, canceller])
    canceller.service = service
    async with service:
        status = await service.wait(await service.start_build({"idea": IDEA}))
        print(f"\nCancelled build: {status.state} ({status.error.message if status.error else ''})")
        print(f"Last event: {audit.log[-1].event} -> {audit.log[-1].detail}")


if __name__ == "__main__":
    asyncio.run(main())
