from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, TypeVar

import structlog

from launch_forge.agents import (
    BackendGeneratorAgent,
    CompetitorAnalysisAgent,
    FrontendGeneratorAgent,
    MarketIntelligenceAgent,
    PricingStrategistAgent,
    QualityAuditorAgent,
    ReviewAnalysisAgent,
    SchemaDesignerAgent,
    StarvingMarketAgent,
    UniquenessAgent,
)
from launch_forge.agents.models import CodeBundle, CompetitorReport, ReviewReport
from launch_forge.callbacks.handler import BuildCallbackHandler
from launch_forge.core.config import ForgeConfig
from launch_forge.core.constants import (
    BuildStage,
    FailureCause,
    Phase,
    Provenance,
    StepStatus,
)
from launch_forge.core.exceptions import (
    BuildCancelledError,
    InvocationExhaustedError,
    PhaseFatalError,
)
from launch_forge.core.types import BuildRequest, GeneratedFile
from launch_forge.gateway.base import TextGenerator
from launch_forge.output.bundle import collect_files, render_readme, render_research_report
from launch_forge.pipeline.models import (
    AggregateBuildResult,
    Artifacts,
    BuildCancelled,
    BuildDone,
    BuildFailed,
    BuildOutcome,
    BuildSummary,
    PhaseState,
    QualitySection,
    ResearchApplied,
    ResearchReport,
    StepRecord,
    StrategyPlan,
)
from launch_forge.pipeline.progress import STAGE_MESSAGES, percent_complete
from launch_forge.pipeline.strategy import (
    identify_competitive_advantages,
    prioritize_features,
    ux_strategy,
    verify_research,
)
from launch_forge.resilience.cancellation import CancellationToken
from launch_forge.resilience.invoker import Invocation, ResilientInvoker
from launch_forge.resilience.retry import SleepFn
from launch_forge.utils.logging import build_context

logger = structlog.get_logger(__name__)

T = TypeVar("T")

_PHASE_STAGES: dict[Phase, BuildStage] = {
    Phase.RESEARCH: BuildStage.RESEARCH,
    Phase.PLANNING: BuildStage.PLANNING,
    Phase.CODE_GENERATION: BuildStage.CODE_GENERATION,
    Phase.QUALITY_ASSURANCE: BuildStage.QUALITY_ASSURANCE,
}

#: Steps each phase records, ran or skipped; progress within a phase is
#: steps done over this count.
_PHASE_STEPS: dict[Phase, int] = {
    Phase.RESEARCH: 5,
    Phase.PLANNING: 1,
    Phase.CODE_GENERATION: 3,
    Phase.QUALITY_ASSURANCE: 1,
}


@dataclass
class _BuildRun:
    """Mutable bookkeeping for one build; never shared between builds."""

    build_id: str
    request: BuildRequest
    token: CancellationToken
    invoker: ResilientInvoker
    started: float
    state: PhaseState = field(default_factory=PhaseState)
    steps: list[StepRecord] = field(default_factory=list)
    provenance: dict[str, Provenance] = field(default_factory=dict)
    timings: dict[Phase, float] = field(default_factory=dict)
    phase: Phase | None = None
    phase_steps_done: int = 0


class BuildOrchestrator:
    """Runs the four build phases in order and assembles the final result.

    ``Research -> Planning -> CodeGeneration -> QualityAssurance`` run
    strictly in sequence; a phase starts only after the previous one has
    recorded its section. Packaging follows the last phase. Optional agents
    fall back to static documents when they exhaust their retries; only
    Market Intelligence is mandatory.

    One orchestrator may run many builds concurrently: all per-build state
    lives in a private run object created by :meth:`run`.

    Args:
        generator: Remote text-generation service shared by all agents.
        config: Shared read-only configuration.
        callbacks: Receives stage, step, file and outcome events.
        sleep: Awaitable sleep used between retry attempts.
        clock: Monotonic clock used for step and phase timings.
    """

    def __init__(
        self,
        generator: TextGenerator,
        config: ForgeConfig | None = None,
        *,
        callbacks: BuildCallbackHandler | None = None,
        sleep: SleepFn = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._generator = generator
        self._config = config or ForgeConfig()
        self._callbacks = callbacks or BuildCallbackHandler()
        self._sleep = sleep
        self._clock = clock

    def __repr__(self) -> str:
        return f"BuildOrchestrator(generator={self._generator!r})"

    @property
    def config(self) -> ForgeConfig:
        return self._config

    # ------------------------------------------------------------------ #
    # Entry point
    # ------------------------------------------------------------------ #

    async def run(
        self,
        build_id: str,
        request: BuildRequest,
        cancel_token: CancellationToken | None = None,
    ) -> BuildOutcome:
        """Execute a build to completion and return its outcome.

        Never raises for build-level failures: mandatory-step exhaustion,
        unexpected errors and cancellation are all reported as outcomes.
        """
        token = cancel_token or CancellationToken()
        run = _BuildRun(
            build_id=build_id,
            request=request,
            token=token,
            invoker=ResilientInvoker(
                self._generator, self._config, sleep=self._sleep, cancel_token=token
            ),
            started=self._clock(),
        )

        with build_context(build_id, tier=str(request.tier)):
            await self._callbacks.on_build_start(build_id, request)
            outcome = await self._execute(run)
            await self._callbacks.on_build_end(build_id, outcome)
        return outcome

    async def _execute(self, run: _BuildRun) -> BuildOutcome:
        phases: list[tuple[Phase, Callable[[_BuildRun], Awaitable[Any]]]] = [
            (Phase.RESEARCH, self._research),
            (Phase.PLANNING, self._planning),
            (Phase.CODE_GENERATION, self._code_generation),
            (Phase.QUALITY_ASSURANCE, self._quality_assurance),
        ]
        try:
            for phase, handler in phases:
                run.token.raise_if_cancelled()
                run.phase = phase
                run.phase_steps_done = 0
                await self._enter_stage(run, _PHASE_STAGES[phase])
                phase_started = self._clock()
                section = await handler(run)
                run.timings[phase] = self._clock() - phase_started
                run.state.record(phase, section)
                logger.info("phase_complete", phase=str(phase), elapsed=run.timings[phase])

            run.token.raise_if_cancelled()
            await self._enter_stage(run, BuildStage.PACKAGING)
            result = await self._package(run)
            await self._enter_stage(run, BuildStage.DONE)
            return BuildDone(result=result)

        except BuildCancelledError as exc:
            logger.info("build_cancelled", phase=str(run.phase) if run.phase else None)
            return BuildCancelled(phase=run.phase, message=str(exc))
        except PhaseFatalError as exc:
            logger.error("phase_fatal", phase=str(exc.phase), error=str(exc))
            return BuildFailed(
                phase=exc.phase,
                cause=FailureCause.PHASE_FATAL,
                message=str(exc),
                state=run.state,
            )
        except Exception as exc:  # noqa: BLE001
            logger.exception("phase_error", phase=str(run.phase), error=str(exc))
            return BuildFailed(
                phase=run.phase or Phase.RESEARCH,
                cause=type(exc).__name__,
                message=str(exc),
                state=run.state,
            )

    # ------------------------------------------------------------------ #
    # Phases
    # ------------------------------------------------------------------ #

    async def _research(self, run: _BuildRun) -> ResearchReport:
        request = run.request
        limits = self._config.limits_for(request.tier)

        try:
            market = await self._step(
                run, "market_intelligence", "research.market",
                MarketIntelligenceAgent(run.invoker).run(request),
            )
        except InvocationExhaustedError as exc:
            raise PhaseFatalError(
                Phase.RESEARCH, f"Market intelligence unavailable: {exc}"
            ) from exc

        competitors: CompetitorReport | None = None
        urls = market.data_sources[: limits.competitor_urls]
        if urls:
            competitors = await self._step(
                run, "competitor_analysis", "research.competitors",
                CompetitorAnalysisAgent(run.invoker).run(request, urls),
            )
        else:
            await self._skip(run, "competitor_analysis", "no data sources")

        reviews: ReviewReport | None = None
        if not limits.review_analysis:
            await self._skip(run, "review_analysis", f"not included in {request.tier} tier")
        elif competitors is None or not competitors.individual_analyses:
            await self._skip(run, "review_analysis", "no competitors analyzed")
        else:
            top = competitors.individual_analyses[0].name
            reviews = await self._step(
                run, "review_analysis", "research.reviews",
                ReviewAnalysisAgent(run.invoker).run(request, top),
            )

        run.token.raise_if_cancelled()
        starving = await self._step(
            run, "starving_market", "research.starving_market",
            StarvingMarketAgent(run.invoker).run(market, competitors, reviews),
        )
        uniqueness = await self._step(
            run, "uniqueness", "research.uniqueness",
            UniquenessAgent(run.invoker).run(request, competitors),
        )
        return ResearchReport(
            market=market,
            competitors=competitors,
            reviews=reviews,
            starving_market=starving,
            uniqueness=uniqueness,
        )

    async def _planning(self, run: _BuildRun) -> StrategyPlan:
        research = run.state.research
        assert research is not None

        advantages = identify_competitive_advantages(research.market, research.reviews)
        features = prioritize_features(advantages)
        ux = ux_strategy()
        pricing = await self._step(
            run, "pricing_strategy", "strategy.pricing_strategy",
            PricingStrategistAgent(run.invoker).run(
                run.request, research.market, research.competitors,
                [adv.feature for adv in advantages],
            ),
        )
        return StrategyPlan(
            competitive_advantages=advantages,
            features_prioritized=features,
            ux_strategy=ux,
            pricing_strategy=pricing,
        )

    async def _code_generation(self, run: _BuildRun) -> Artifacts:
        strategy = run.state.strategy
        assert strategy is not None
        request = run.request
        features = [f.feature for f in strategy.features_prioritized]
        principles = [p.principle for p in strategy.ux_strategy.principles]

        database = await self._step(
            run, "schema_designer", "artifacts.database",
            SchemaDesignerAgent(run.invoker).run(request, features),
        )
        run.token.raise_if_cancelled()

        def backend_call() -> Awaitable[CodeBundle]:
            return self._step(
                run, "backend_generator", "artifacts.backend",
                BackendGeneratorAgent(run.invoker).run(request, database, features),
            )

        def frontend_call() -> Awaitable[CodeBundle]:
            return self._step(
                run, "frontend_generator", "artifacts.frontend",
                FrontendGeneratorAgent(run.invoker).run(request, features, principles),
            )

        if self._config.parallel_codegen:
            results = await asyncio.gather(
                backend_call(), frontend_call(), return_exceptions=True
            )
            for outcome in results:
                if isinstance(outcome, BaseException):
                    raise outcome
            backend, frontend = results
        else:
            backend = await backend_call()
            frontend = await frontend_call()

        artifacts = Artifacts(
            database=database,
            backend=backend,
            frontend=frontend,
            research_applied=ResearchApplied(
                competitive_advantages=len(strategy.competitive_advantages),
                ux_principles=len(principles),
            ),
        )
        for file in collect_files(artifacts):
            await self._callbacks.on_file_generated(run.build_id, file)
        return artifacts

    async def _quality_assurance(self, run: _BuildRun) -> QualitySection:
        strategy, artifacts = run.state.strategy, run.state.artifacts
        assert strategy is not None and artifacts is not None
        limits = self._config.limits_for(run.request.tier)

        qa = await self._step(
            run, "quality_auditor", "quality.qa_results",
            QualityAuditorAgent(run.invoker).run(
                run.request.display_name,
                artifacts.all_code_files(),
                strategy.feature_names,
                max_files=limits.files_for_audit,
            ),
        )
        return QualitySection(
            qa_results=qa,
            research_verification=verify_research(strategy.competitive_advantages, qa),
            deployment_ready=qa.overall_score >= self._config.deployment_threshold,
        )

    async def _package(self, run: _BuildRun) -> AggregateBuildResult:
        state = run.state
        assert state.research and state.strategy and state.artifacts and state.quality

        files = collect_files(state.artifacts)
        docs = [
            GeneratedFile(
                path="README.md",
                content=render_readme(run.request, state.strategy, state.artifacts, state.quality),
                origin="docs",
            ),
            GeneratedFile(
                path="RESEARCH_REPORT.md",
                content=render_research_report(state.research),
                origin="docs",
            ),
        ]
        for doc in docs:
            await self._callbacks.on_file_generated(run.build_id, doc)
        files.extend(docs)

        total = self._clock() - run.started
        frontend, backend = state.artifacts.frontend.stats, state.artifacts.backend.stats
        summary = BuildSummary(
            files_generated=len(files),
            lines_of_code=frontend.total_lines + backend.total_lines,
            qa_score=state.quality.qa_results.overall_score,
            research_score=state.quality.research_verification.score,
            deployment_ready=state.quality.deployment_ready,
            competitive_advantages=len(state.strategy.competitive_advantages),
            time_taken=f"{total:.1f}s",
        )
        return AggregateBuildResult(
            build_id=run.build_id,
            request=run.request,
            research=state.research,
            strategy=state.strategy,
            artifacts=state.artifacts,
            quality=state.quality,
            provenance=dict(run.provenance),
            steps=list(run.steps),
            phase_timings=dict(run.timings),
            total_elapsed_seconds=total,
            files=files,
            summary=summary,
        )

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    async def _enter_stage(self, run: _BuildRun, stage: BuildStage) -> None:
        await self._callbacks.on_stage_change(
            run.build_id, stage, percent_complete(stage), STAGE_MESSAGES[stage]
        )

    async def _step(
        self,
        run: _BuildRun,
        name: str,
        section_path: str,
        call: Awaitable[Invocation[T]],
    ) -> T:
        started = self._clock()
        result = await call
        step = StepRecord(
            name=name,
            phase=run.phase or Phase.RESEARCH,
            status=StepStatus.RAN,
            provenance=result.provenance,
            attempts=result.attempts,
            elapsed_seconds=self._clock() - started,
        )
        run.steps.append(step)
        run.provenance[section_path] = result.provenance
        await self._callbacks.on_step_end(run.build_id, step)
        await self._advance(run)
        return result.value

    async def _skip(self, run: _BuildRun, name: str, reason: str) -> None:
        run.steps.append(
            StepRecord(
                name=name,
                phase=run.phase or Phase.RESEARCH,
                status=StepStatus.SKIPPED,
                reason=reason,
            )
        )
        logger.info("step_skipped", step=name, reason=reason)
        await self._advance(run)

    async def _advance(self, run: _BuildRun) -> None:
        if run.phase is None:
            return
        run.phase_steps_done += 1
        stage = _PHASE_STAGES[run.phase]
        fraction = run.phase_steps_done / _PHASE_STEPS[run.phase]
        await self._callbacks.on_progress(
            run.build_id, stage, percent_complete(stage, fraction)
        )
