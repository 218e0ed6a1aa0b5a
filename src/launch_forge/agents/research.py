"""Research-phase agents: market, competitors, reviews and the two scores."""

from __future__ import annotations

from typing import Any

from launch_forge.agents import fallbacks
from launch_forge.agents.base import BaseAgent
from launch_forge.agents.models import (
    CompetitorReport,
    MarketAnalysis,
    ReviewReport,
    StarvingMarketScore,
    UniquenessScore,
)
from launch_forge.core.types import BuildRequest
from launch_forge.prompts import library
from launch_forge.prompts.template import bullet_list
from launch_forge.resilience.invoker import Invocation


class MarketIntelligenceAgent(BaseAgent[MarketAnalysis]):
    """Market size, competitors and gaps. Mandatory: there is no fallback."""

    name = "market_intelligence"
    role = "Market Intelligence Analyst"
    template = library.MARKET_INTELLIGENCE
    output_model = MarketAnalysis
    required_fields = ("market_overview",)

    async def run(self, request: BuildRequest) -> Invocation[MarketAnalysis]:
        prompt = self.build_prompt(
            idea=request.idea,
            target_market=request.target_market,
            country=request.country,
        )
        return await self._call(prompt, fallback=None)


class CompetitorAnalysisAgent(BaseAgent[CompetitorReport]):
    name = "competitor_analysis"
    role = "Competitor Analyst"
    template = library.COMPETITOR_ANALYSIS
    output_model = CompetitorReport
    required_fields = ("individual_analyses",)

    async def run(self, request: BuildRequest, urls: list[str]) -> Invocation[CompetitorReport]:
        prompt = self.build_prompt(idea=request.idea, urls=bullet_list(urls))
        return await self._call(prompt, fallback=fallbacks.competitor_report)


class ReviewAnalysisAgent(BaseAgent[ReviewReport]):
    name = "review_analysis"
    role = "Review Analyst"
    template = library.REVIEW_ANALYSIS
    output_model = ReviewReport
    required_fields = ("insights",)

    async def run(self, request: BuildRequest, competitor: str) -> Invocation[ReviewReport]:
        prompt = self.build_prompt(idea=request.idea, competitor=competitor)
        result = await self._call(prompt, fallback=lambda: fallbacks.review_report(competitor))
        if not result.value.competitor:
            result.value.competitor = competitor
        return result

    def shape(self, record: dict[str, Any]) -> ReviewReport:
        record.setdefault("competitor", "")
        return super().shape(record)


class StarvingMarketAgent(BaseAgent[StarvingMarketScore]):
    """Scores demand against how well the market is served (0-100)."""

    name = "starving_market"
    role = "Starving Market Analyst"
    template = library.STARVING_MARKET
    output_model = StarvingMarketScore
    required_fields = ("score",)

    async def run(
        self,
        market: MarketAnalysis,
        competitors: CompetitorReport | None,
        reviews: ReviewReport | None,
    ) -> Invocation[StarvingMarketScore]:
        prompt = self.build_prompt(
            tam=market.market_overview.tam or "Unknown",
            growth_rate=market.market_overview.growth_rate or "Unknown",
            competition_level=market.competition_level or "Unknown",
            competitors=competitors.total_analyzed if competitors else 0,
            complaints=len(reviews.insights.top_complaints) if reviews else 0,
        )
        return await self._call(prompt, fallback=fallbacks.starving_market)


class UniquenessAgent(BaseAgent[UniquenessScore]):
    name = "uniqueness"
    role = "Uniqueness Assessor"
    template = library.UNIQUENESS
    output_model = UniquenessScore
    required_fields = ("uniqueness_score",)

    async def run(
        self, request: BuildRequest, competitors: CompetitorReport | None
    ) -> Invocation[UniquenessScore]:
        features = "None"
        if competitors and competitors.individual_analyses:
            features = "; ".join(
                ", ".join(c.unique_selling_points) for c in competitors.individual_analyses
            )
        prompt = self.build_prompt(idea=request.idea, competitor_features=features)
        return await self._call(prompt, fallback=fallbacks.uniqueness)
