"""Specialized agents that turn upstream build state into typed outputs."""

from launch_forge.agents.base import BaseAgent
from launch_forge.agents.codegen import (
    BackendGeneratorAgent,
    FrontendGeneratorAgent,
    SchemaDesignerAgent,
)
from launch_forge.agents.planning import PricingStrategistAgent
from launch_forge.agents.quality import QualityAuditorAgent
from launch_forge.agents.research import (
    CompetitorAnalysisAgent,
    MarketIntelligenceAgent,
    ReviewAnalysisAgent,
    StarvingMarketAgent,
    UniquenessAgent,
)

__all__ = [
    "BackendGeneratorAgent",
    "BaseAgent",
    "CompetitorAnalysisAgent",
    "FrontendGeneratorAgent",
    "MarketIntelligenceAgent",
    "PricingStrategistAgent",
    "QualityAuditorAgent",
    "ReviewAnalysisAgent",
    "SchemaDesignerAgent",
    "StarvingMarketAgent",
    "UniquenessAgent",
]
