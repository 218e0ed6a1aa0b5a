"""Typed outputs of every agent.

Each record carries a ``provenance`` field so the final result can report
which sections were generated by the model and which are static fallbacks.
Fields the model may omit default to empty values; derived fields are
computed properties and are included in ``model_dump()``.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from launch_forge.core.constants import Provenance


class _AgentOutput(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    provenance: Provenance = Provenance.GENERATED


# ------------------------------------------------------------------ #
# Research
# ------------------------------------------------------------------ #


class MarketOverview(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    tam: str | None = None
    sam: str | None = None
    growth_rate: str | None = None
    summary: str | None = None


class Competitor(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    name: str
    url: str | None = None
    description: str | None = None


class MarketGap(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    gap: str
    severity: str | None = None


class MarketAnalysis(_AgentOutput):
    market_overview: MarketOverview = Field(default_factory=MarketOverview)
    competition_level: str = "unknown"
    key_competitors: list[Competitor] = Field(default_factory=list)
    market_gaps: list[MarketGap] = Field(default_factory=list)
    target_audience: list[str] = Field(default_factory=list)
    data_sources: list[str] = Field(default_factory=list)

    @field_validator("market_gaps", mode="before")
    @classmethod
    def _gaps_from_strings(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [{"gap": item} if isinstance(item, str) else item for item in value]
        return value

    @field_validator("key_competitors", mode="before")
    @classmethod
    def _competitors_from_strings(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [{"name": item} if isinstance(item, str) else item for item in value]
        return value

    @field_validator("data_sources", mode="before")
    @classmethod
    def _source_urls(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        urls = []
        for item in value:
            if isinstance(item, dict):
                item = item.get("url") or item.get("name")
            if item:
                urls.append(item)
        return urls


class CompetitorAnalysis(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    name: str
    url: str | None = None
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    unique_selling_points: list[str] = Field(default_factory=list)
    pricing: str | None = None


class CompetitorReport(_AgentOutput):
    individual_analyses: list[CompetitorAnalysis] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_analyzed(self) -> int:
        return len(self.individual_analyses)


class Complaint(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    complaint: str
    severity: str = "medium"
    frequency: str | None = None


class ReviewInsights(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    top_complaints: list[Complaint] = Field(default_factory=list)
    top_praises: list[str] = Field(default_factory=list)
    feature_requests: list[str] = Field(default_factory=list)


class ReviewReport(_AgentOutput):
    competitor: str
    total_reviews: int = Field(default=0, ge=0)
    insights: ReviewInsights = Field(default_factory=ReviewInsights)


class StarvingMarketScore(_AgentOutput):
    score: int = Field(..., ge=0, le=100)
    reasoning: str = ""

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_starving_market(self) -> bool:
        return self.score >= 70


class UniquenessScore(_AgentOutput):
    uniqueness_score: int = Field(..., ge=0, le=100)
    truly_unique_aspects: list[str] = Field(default_factory=list)
    differentiation_strategy: str = ""


class PricingTier(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    name: str
    price_monthly: str
    target: str = ""
    margin: str = "N/A"


class PricingStrategy(_AgentOutput):
    strategy: str
    positioning: str = ""
    recommended_tiers: list[PricingTier] = Field(default_factory=list)


# ------------------------------------------------------------------ #
# Code generation
# ------------------------------------------------------------------ #


class SchemaStats(BaseModel):
    total_tables: int = Field(default=1, ge=0)
    total_relations: int = Field(default=0, ge=0)
    total_indexes: int = Field(default=1, ge=0)


class Migration(BaseModel):
    name: str
    sql: str


class DatabaseSchema(_AgentOutput):
    prisma_schema: str = Field(..., min_length=1)
    sql_migrations: list[str] = Field(default_factory=list)
    seed_data: list[Any] = Field(default_factory=list)
    stats: SchemaStats = Field(default_factory=SchemaStats)
    migrations: list[Migration] = Field(default_factory=list)

    def model_post_init(self, __context: Any) -> None:
        if not self.migrations and self.sql_migrations:
            self.migrations = [
                Migration(name=f"migration_{i:03d}", sql=sql)
                for i, sql in enumerate(self.sql_migrations, start=1)
            ]


class CodeStats(BaseModel):
    total_files: int
    total_lines: int


class CodeBundle(_AgentOutput):
    files: dict[str, str] = Field(..., min_length=1)
    notes: str | None = None

    @field_validator("files", mode="before")
    @classmethod
    def _stringify_contents(cls, value: Any) -> Any:
        # Models sometimes return package.json as an object instead of text.
        if isinstance(value, dict):
            return {
                str(path): content if isinstance(content, str) else json.dumps(content, indent=2)
                for path, content in value.items()
            }
        return value

    @computed_field  # type: ignore[prop-decorator]
    @property
    def stats(self) -> CodeStats:
        return CodeStats(
            total_files=len(self.files),
            total_lines=sum(len(content.splitlines()) for content in self.files.values()),
        )


# ------------------------------------------------------------------ #
# Quality assurance
# ------------------------------------------------------------------ #


class QualityIssue(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    file: str | None = None
    severity: str = "medium"
    message: str


class QualityReport(_AgentOutput):
    overall_score: int = Field(..., ge=0, le=100)
    issues: list[QualityIssue] = Field(default_factory=list)
    passed_checks: list[str] = Field(default_factory=list)
    verified_features: list[str] = Field(default_factory=list)
    summary: str | None = None
