"""Tests for callbacks/handler.py."""
from __future__ import annotations

import pytest
from structlog.testing import capture_logs

from launch_forge.callbacks.handler import (
    BuildCallbackHandler,
    CompositeCallbackHandler,
    LoggingCallbackHandler,
)
from launch_forge.core.constants import BuildStage, FailureCause, Phase, Provenance, StepStatus
from launch_forge.core.types import BuildRequest, GeneratedFile
from launch_forge.pipeline.models import BuildCancelled, BuildFailed, StepRecord


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_request() -> BuildRequest:
    return BuildRequest(idea="A marketplace for dog walkers and owners")


def _make_step() -> StepRecord:
    return StepRecord(
        name="pricing_strategy",
        phase=Phase.PLANNING,
        status=StepStatus.RAN,
        provenance=Provenance.FALLBACK,
        attempts=3,
    )


def _make_file() -> GeneratedFile:
    return GeneratedFile(path="backend/src/server.js", content="app.listen()", origin="backend")


class RecordingHandler(BuildCallbackHandler):
    def __init__(self) -> None:
        self.events: list[tuple] = []

    async def on_build_start(self, build_id, request) -> None:
        self.events.append(("start", build_id))

    async def on_stage_change(self, build_id, stage, percent, message) -> None:
        self.events.append(("stage", stage, percent))

    async def on_progress(self, build_id, stage, percent) -> None:
        self.events.append(("progress", stage, percent))

    async def on_step_end(self, build_id, step) -> None:
        self.events.append(("step", step.name))

    async def on_file_generated(self, build_id, file) -> None:
        self.events.append(("file", file.path))

    async def on_build_end(self, build_id, outcome) -> None:
        self.events.append(("end", outcome.kind))


class ExplodingHandler(BuildCallbackHandler):
    async def on_stage_change(self, build_id, stage, percent, message) -> None:
        raise RuntimeError("boom")


# ---------------------------------------------------------------------------
# BuildCallbackHandler: default no-ops
# ---------------------------------------------------------------------------


async def test_default_handler_is_noop() -> None:
    h = BuildCallbackHandler()
    await h.on_build_start("b1", _make_request())
    await h.on_stage_change("b1", BuildStage.RESEARCH, 0, "go")
    await h.on_progress("b1", BuildStage.RESEARCH, 12)
    await h.on_step_end("b1", _make_step())
    await h.on_file_generated("b1", _make_file())
    await h.on_build_end("b1", BuildCancelled())


# ---------------------------------------------------------------------------
# LoggingCallbackHandler
# ---------------------------------------------------------------------------


async def test_logging_handler_events() -> None:
    h = LoggingCallbackHandler()
    with capture_logs() as logs:
        await h.on_build_start("b1", _make_request())
        await h.on_stage_change("b1", BuildStage.PLANNING, 30, "Planning")
        await h.on_progress("b1", BuildStage.PLANNING, 50)
        await h.on_step_end("b1", _make_step())
        await h.on_file_generated("b1", _make_file())
    events = [entry["event"] for entry in logs]
    assert events == ["build_start", "build_stage", "build_progress", "build_step", "file_generated"]
    assert logs[1]["stage"] == "planning"
    assert logs[1]["percent"] == 30
    assert (logs[2]["percent"], logs[2]["log_level"]) == (50, "debug")
    assert logs[3]["provenance"] == "fallback"
    assert logs[4]["log_level"] == "debug"


async def test_logging_handler_failed_build_logs_error() -> None:
    outcome = BuildFailed(phase=Phase.RESEARCH, cause=FailureCause.PHASE_FATAL, message="no market")
    with capture_logs() as logs:
        await LoggingCallbackHandler().on_build_end("b1", outcome)
    assert logs[0]["log_level"] == "error"
    assert logs[0]["phase"] == "research"
    assert logs[0]["error"] == "no market"


async def test_logging_handler_cancelled_build_logs_info() -> None:
    with capture_logs() as logs:
        await LoggingCallbackHandler().on_build_end("b1", BuildCancelled())
    assert logs[0]["log_level"] == "info"
    assert logs[0]["outcome"] == "cancelled"


# ---------------------------------------------------------------------------
# CompositeCallbackHandler
# ---------------------------------------------------------------------------


async def test_composite_fans_out_in_order() -> None:
    first, second = RecordingHandler(), RecordingHandler()
    composite = CompositeCallbackHandler([first, second])
    await composite.on_build_start("b1", _make_request())
    await composite.on_stage_change("b1", BuildStage.RESEARCH, 0, "go")
    await composite.on_progress("b1", BuildStage.RESEARCH, 6)
    await composite.on_step_end("b1", _make_step())
    await composite.on_file_generated("b1", _make_file())
    await composite.on_build_end("b1", BuildCancelled())
    expected = [
        ("start", "b1"),
        ("stage", BuildStage.RESEARCH, 0),
        ("progress", BuildStage.RESEARCH, 6),
        ("step", "pricing_strategy"),
        ("file", "backend/src/server.js"),
        ("end", "cancelled"),
    ]
    assert first.events == expected
    assert second.events == expected


async def test_composite_isolates_handler_errors() -> None:
    recorder = RecordingHandler()
    composite = CompositeCallbackHandler([ExplodingHandler(), recorder])
    with capture_logs() as logs:
        await composite.on_stage_change("b1", BuildStage.RESEARCH, 0, "go")
    assert recorder.events == [("stage", BuildStage.RESEARCH, 0)]
    assert logs[0]["event"] == "callback_handler_error"
    assert logs[0]["handler"] == "ExplodingHandler"
    assert logs[0]["error"] == "boom"


@pytest.mark.parametrize("handlers", [[], [BuildCallbackHandler()]])
async def test_composite_with_trivial_handlers(handlers) -> None:
    await CompositeCallbackHandler(handlers).on_build_end("b1", BuildCancelled())
