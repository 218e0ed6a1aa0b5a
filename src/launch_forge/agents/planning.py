from __future__ import annotations

from launch_forge.agents import fallbacks
from launch_forge.agents.base import BaseAgent
from launch_forge.agents.models import CompetitorReport, MarketAnalysis, PricingStrategy
from launch_forge.core.types import BuildRequest
from launch_forge.prompts import library
from launch_forge.prompts.template import bullet_list, embed_json
from launch_forge.resilience.invoker import Invocation


class PricingStrategistAgent(BaseAgent[PricingStrategy]):
    """Proposes pricing tiers; the only AI call of the planning phase."""

    name = "pricing_strategy"
    role = "Pricing Strategist"
    template = library.PRICING_STRATEGY
    output_model = PricingStrategy
    required_fields = ("strategy", "recommended_tiers")

    async def run(
        self,
        request: BuildRequest,
        market: MarketAnalysis,
        competitors: CompetitorReport | None,
        advantages: list[str],
    ) -> Invocation[PricingStrategy]:
        pricing_lines = []
        if competitors is not None:
            pricing_lines = [
                f"{c.name}: {c.pricing}" for c in competitors.individual_analyses if c.pricing
            ]
        prompt = self.build_prompt(
            idea=request.idea,
            target_market=request.target_market,
            market=embed_json(market.market_overview, limit=600),
            competitor_pricing=bullet_list(pricing_lines, empty="Unknown"),
            advantages=bullet_list(advantages),
        )
        return await self._call(prompt, fallback=fallbacks.pricing_strategy)
