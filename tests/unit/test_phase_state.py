"""Tests for pipeline/models.py: PhaseState, results and status snapshots."""
from __future__ import annotations

import pytest

from launch_forge.agents import fallbacks
from launch_forge.agents.models import CodeBundle, QualityReport
from launch_forge.core.constants import BuildStage, BuildState, FailureCause, Phase, Provenance
from launch_forge.core.types import BuildRequest, GeneratedFile
from launch_forge.pipeline.models import (
    Artifacts,
    BuildFailed,
    BuildRecord,
    BuildStatus,
    PhaseState,
    QualitySection,
    ResearchApplied,
    ResearchReport,
    ResearchVerification,
    StrategyPlan,
)
from launch_forge.pipeline.strategy import ux_strategy


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_research(market) -> ResearchReport:
    return ResearchReport(
        market=market,
        starving_market=fallbacks.starving_market(),
        uniqueness=fallbacks.uniqueness(),
    )


def _make_strategy() -> StrategyPlan:
    return StrategyPlan(
        competitive_advantages=[],
        features_prioritized=[],
        ux_strategy=ux_strategy(),
        pricing_strategy=fallbacks.pricing_strategy(),
    )


def _make_artifacts() -> Artifacts:
    return Artifacts(
        database=fallbacks.database_schema(),
        backend=CodeBundle(files={"package.json": "{}", "src/server.js": "server"}),
        frontend=CodeBundle(files={"package.json": "{\"ui\": true}", "src/App.js": "app"}),
        research_applied=ResearchApplied(competitive_advantages=0, ux_principles=3),
    )


def _make_quality() -> QualitySection:
    return QualitySection(
        qa_results=QualityReport(overall_score=90),
        research_verification=ResearchVerification(
            score=0, implemented=0, total=0, features_from_research=[]
        ),
        deployment_ready=True,
    )


# ---------------------------------------------------------------------------
# PhaseState
# ---------------------------------------------------------------------------


def test_empty_state() -> None:
    state = PhaseState()
    assert state.completed_phases == []
    assert state.complete is False
    assert state.get(Phase.RESEARCH) is None


def test_records_in_order(market) -> None:
    state = PhaseState()
    state.record(Phase.RESEARCH, _make_research(market))
    state.record(Phase.PLANNING, _make_strategy())
    state.record(Phase.CODE_GENERATION, _make_artifacts())
    state.record(Phase.QUALITY_ASSURANCE, _make_quality())
    assert state.completed_phases == [
        Phase.RESEARCH,
        Phase.PLANNING,
        Phase.CODE_GENERATION,
        Phase.QUALITY_ASSURANCE,
    ]
    assert state.complete is True


def test_cannot_skip_a_phase() -> None:
    state = PhaseState()
    with pytest.raises(ValueError, match="before research"):
        state.record(Phase.PLANNING, _make_strategy())
    assert state.strategy is None


def test_cannot_overwrite_a_section(market) -> None:
    state = PhaseState()
    first = _make_research(market)
    state.record(Phase.RESEARCH, first)
    with pytest.raises(ValueError, match="already recorded"):
        state.record(Phase.RESEARCH, _make_research(market))
    assert state.research is first


def test_wrong_section_type_rejected() -> None:
    with pytest.raises(TypeError, match="ResearchReport"):
        PhaseState().record(Phase.RESEARCH, _make_strategy())


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


def test_all_code_files_backend_wins() -> None:
    files = _make_artifacts().all_code_files()
    assert files["package.json"] == "{}"
    assert set(files) == {"package.json", "src/server.js", "src/App.js"}


def test_build_failed_phase_fatal_flag() -> None:
    failed = BuildFailed(phase=Phase.RESEARCH, cause=FailureCause.PHASE_FATAL, message="x")
    assert failed.phase_fatal is True
    assert failed.state.research is None
    other = BuildFailed(phase=Phase.PLANNING, cause="KeyError", message="y")
    assert other.phase_fatal is False


# ---------------------------------------------------------------------------
# BuildRecord / BuildStatus
# ---------------------------------------------------------------------------


def _make_record() -> BuildRecord:
    return BuildRecord(build_id="build_1", request=BuildRequest(idea="x" * 30))


def test_record_defaults() -> None:
    record = _make_record()
    assert record.state is BuildState.QUEUED
    assert record.stage is BuildStage.QUEUED
    assert record.percent_complete == 0
    assert record.finished is False


def test_record_log_levels() -> None:
    record = _make_record()
    record.log("started")
    record.log("fallback used", level="warning")
    assert [(e.message, e.level) for e in record.logs] == [
        ("started", "info"),
        ("fallback used", "warning"),
    ]


@pytest.mark.parametrize(
    "state,finished",
    [
        (BuildState.RUNNING, False),
        (BuildState.COMPLETED, True),
        (BuildState.FAILED, True),
        (BuildState.CANCELLED, True),
    ],
)
def test_record_finished(state: BuildState, finished: bool) -> None:
    record = _make_record()
    record.state = state
    assert record.finished is finished


def test_status_snapshot_limits_logs_and_maps_phase() -> None:
    record = _make_record()
    record.stage = BuildStage.CODE_GENERATION
    record.state = BuildState.RUNNING
    for i in range(30):
        record.log(f"line {i}")
    record.partial_files.append(GeneratedFile(path="a.js", content="x"))

    status = BuildStatus.from_record(record, log_limit=5)
    assert status.phase is Phase.CODE_GENERATION
    assert [e.message for e in status.logs] == [f"line {i}" for i in range(25, 30)]
    assert len(status.partial_files) == 1

    record.partial_files.append(GeneratedFile(path="b.js", content="y"))
    assert len(status.partial_files) == 1


@pytest.mark.parametrize("stage", [BuildStage.QUEUED, BuildStage.PACKAGING, BuildStage.DONE])
def test_status_phase_none_outside_phases(stage: BuildStage) -> None:
    record = _make_record()
    record.stage = stage
    assert BuildStatus.from_record(record).phase is None


def test_provenance_value_strings() -> None:
    assert str(Provenance.FALLBACK) == "fallback"
    assert str(FailureCause.PHASE_FATAL) == "PhaseFatal"
