"""Build sections, the phase-state accumulator and build outcomes."""

from __future__ import annotations

import time
from typing import Literal, Union

from pydantic import BaseModel, Field, computed_field

from launch_forge.agents.models import (
    CodeBundle,
    CompetitorReport,
    DatabaseSchema,
    MarketAnalysis,
    PricingStrategy,
    QualityReport,
    ReviewReport,
    StarvingMarketScore,
    UniquenessScore,
)
from launch_forge.core.constants import (
    PHASE_ORDER,
    TERMINAL_STATES,
    BuildStage,
    BuildState,
    FailureCause,
    Phase,
    Provenance,
    StepStatus,
)
from launch_forge.core.types import BuildRequest, GeneratedFile

# ------------------------------------------------------------------ #
# Sections
# ------------------------------------------------------------------ #


class ResearchReport(BaseModel):
    market: MarketAnalysis
    competitors: CompetitorReport | None = None
    reviews: ReviewReport | None = None
    starving_market: StarvingMarketScore
    uniqueness: UniquenessScore


class CompetitiveAdvantage(BaseModel):
    feature: str
    source: str
    type: Literal["market_gap", "pain_point"]
    priority: Literal["critical", "high", "medium"]
    implementation: str


class PrioritizedFeature(CompetitiveAdvantage):
    score: int


class UxPrinciple(BaseModel):
    principle: str
    where: str
    implementation: str
    copy_example: str


class UxStrategy(BaseModel):
    principles: list[UxPrinciple]
    color_psychology: dict[str, str]


class StrategyPlan(BaseModel):
    competitive_advantages: list[CompetitiveAdvantage]
    features_prioritized: list[PrioritizedFeature]
    ux_strategy: UxStrategy
    pricing_strategy: PricingStrategy

    @property
    def feature_names(self) -> list[str]:
        return [a.feature for a in self.competitive_advantages]


class ResearchApplied(BaseModel):
    competitive_advantages: int
    ux_principles: int


class Artifacts(BaseModel):
    database: DatabaseSchema
    backend: CodeBundle
    frontend: CodeBundle
    research_applied: ResearchApplied

    def all_code_files(self) -> dict[str, str]:
        """Frontend and backend files together; backend wins on path clashes."""
        return {**self.frontend.files, **self.backend.files}


class ResearchVerification(BaseModel):
    score: int = Field(ge=0, le=100)
    implemented: int
    total: int
    features_from_research: list[str]


class QualitySection(BaseModel):
    qa_results: QualityReport
    research_verification: ResearchVerification
    deployment_ready: bool


Section = Union[ResearchReport, StrategyPlan, Artifacts, QualitySection]

_SECTION_TYPES: dict[Phase, type[BaseModel]] = {
    Phase.RESEARCH: ResearchReport,
    Phase.PLANNING: StrategyPlan,
    Phase.CODE_GENERATION: Artifacts,
    Phase.QUALITY_ASSURANCE: QualitySection,
}

_FIELD_FOR: dict[Phase, str] = {
    Phase.RESEARCH: "research",
    Phase.PLANNING: "strategy",
    Phase.CODE_GENERATION: "artifacts",
    Phase.QUALITY_ASSURANCE: "quality",
}


# ------------------------------------------------------------------ #
# Phase state
# ------------------------------------------------------------------ #


class PhaseState(BaseModel):
    """Per-build accumulator of completed sections.

    Created empty and filled strictly in phase order through :meth:`record`.
    A recorded section is never replaced.
    """

    research: ResearchReport | None = None
    strategy: StrategyPlan | None = None
    artifacts: Artifacts | None = None
    quality: QualitySection | None = None

    def get(self, phase: Phase) -> Section | None:
        return getattr(self, _FIELD_FOR[phase])

    def record(self, phase: Phase, section: Section) -> None:
        """Store *section* as the output of *phase*.

        Raises:
            TypeError: *section* is not the section type of *phase*.
            ValueError: The phase already has a section, or an earlier phase
                has none yet.
        """
        expected = _SECTION_TYPES[phase]
        if not isinstance(section, expected):
            raise TypeError(
                f"{phase} expects {expected.__name__}, got {type(section).__name__}"
            )
        if self.get(phase) is not None:
            raise ValueError(f"Phase {phase} already recorded")
        for earlier in PHASE_ORDER[: PHASE_ORDER.index(phase)]:
            if self.get(earlier) is None:
                raise ValueError(f"Cannot record {phase} before {earlier}")
        setattr(self, _FIELD_FOR[phase], section)

    @property
    def completed_phases(self) -> list[Phase]:
        return [p for p in PHASE_ORDER if self.get(p) is not None]

    @property
    def complete(self) -> bool:
        return len(self.completed_phases) == len(PHASE_ORDER)


# ------------------------------------------------------------------ #
# Aggregate result
# ------------------------------------------------------------------ #


class StepRecord(BaseModel):
    """What happened to one agent step during a build."""

    name: str
    phase: Phase
    status: StepStatus
    provenance: Provenance | None = None
    attempts: int = 0
    elapsed_seconds: float = 0.0
    reason: str | None = None


class BuildSummary(BaseModel):
    files_generated: int
    lines_of_code: int
    qa_score: int
    research_score: int
    deployment_ready: bool
    competitive_advantages: int
    time_taken: str


class AggregateBuildResult(BaseModel):
    """Final document of a completed build."""

    build_id: str
    request: BuildRequest
    research: ResearchReport
    strategy: StrategyPlan
    artifacts: Artifacts
    quality: QualitySection
    provenance: dict[str, Provenance]
    steps: list[StepRecord] = Field(default_factory=list)
    phase_timings: dict[Phase, float] = Field(default_factory=dict)
    total_elapsed_seconds: float = 0.0
    files: list[GeneratedFile] = Field(default_factory=list)
    summary: BuildSummary
    completed_at: float = Field(default_factory=time.time)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def fallback_sections(self) -> list[str]:
        return sorted(k for k, v in self.provenance.items() if v is Provenance.FALLBACK)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def used_fallback(self) -> bool:
        return bool(self.fallback_sections)

    def step(self, name: str) -> StepRecord | None:
        return next((s for s in self.steps if s.name == name), None)


# ------------------------------------------------------------------ #
# Outcomes
# ------------------------------------------------------------------ #


class BuildDone(BaseModel):
    kind: Literal["done"] = "done"
    result: AggregateBuildResult


class BuildFailed(BaseModel):
    kind: Literal["failed"] = "failed"
    phase: Phase
    cause: str
    message: str
    state: PhaseState = Field(default_factory=PhaseState)

    @property
    def phase_fatal(self) -> bool:
        return self.cause == FailureCause.PHASE_FATAL


class BuildCancelled(BaseModel):
    kind: Literal["cancelled"] = "cancelled"
    phase: Phase | None = None
    message: str = "Build cancelled"


BuildOutcome = Union[BuildDone, BuildFailed, BuildCancelled]


# ------------------------------------------------------------------ #
# Status tracking
# ------------------------------------------------------------------ #


class BuildLogEntry(BaseModel):
    timestamp: float = Field(default_factory=time.time)
    message: str
    level: Literal["info", "warning", "error"] = "info"


class BuildError(BaseModel):
    phase: Phase | None = None
    cause: str
    message: str


class BuildRecord(BaseModel):
    """Everything the service tracks about one build while it is pollable."""

    build_id: str
    request: BuildRequest
    state: BuildState = BuildState.QUEUED
    stage: BuildStage = BuildStage.QUEUED
    percent_complete: int = 0
    message: str = "Build queued"
    logs: list[BuildLogEntry] = Field(default_factory=list)
    partial_files: list[GeneratedFile] = Field(default_factory=list)
    result: AggregateBuildResult | None = None
    error: BuildError | None = None
    started_at: float = Field(default_factory=time.time)
    finished_at: float | None = None

    @property
    def finished(self) -> bool:
        return self.state in TERMINAL_STATES

    def log(self, message: str, level: Literal["info", "warning", "error"] = "info") -> None:
        self.logs.append(BuildLogEntry(message=message, level=level))


class BuildStatus(BaseModel):
    """Snapshot returned to polling clients."""

    build_id: str
    state: BuildState
    stage: BuildStage
    phase: Phase | None = None
    percent_complete: int
    message: str
    partial_files: list[GeneratedFile] = Field(default_factory=list)
    result: AggregateBuildResult | None = None
    error: BuildError | None = None
    logs: list[BuildLogEntry] = Field(default_factory=list)
    started_at: float
    finished_at: float | None = None

    @classmethod
    def from_record(cls, record: BuildRecord, log_limit: int = 20) -> BuildStatus:
        return cls(
            build_id=record.build_id,
            state=record.state,
            stage=record.stage,
            phase=_STAGE_PHASES.get(record.stage),
            percent_complete=record.percent_complete,
            message=record.message,
            partial_files=list(record.partial_files),
            result=record.result,
            error=record.error,
            logs=record.logs[-log_limit:],
            started_at=record.started_at,
            finished_at=record.finished_at,
        )


_STAGE_PHASES: dict[BuildStage, Phase] = {
    BuildStage.RESEARCH: Phase.RESEARCH,
    BuildStage.PLANNING: Phase.PLANNING,
    BuildStage.CODE_GENERATION: Phase.CODE_GENERATION,
    BuildStage.QUALITY_ASSURANCE: Phase.QUALITY_ASSURANCE,
}
