"""Shared test fixtures."""
from __future__ import annotations

import copy
from typing import Any

import pytest

from launch_forge.agents.models import CompetitorReport, MarketAnalysis
from launch_forge.core.config import ForgeConfig
from launch_forge.core.constants import Tier
from launch_forge.core.types import BuildRequest
from launch_forge.gateway.mock import MockTextGenerator
from launch_forge.resilience.retry import RetryPolicy

DOG_WALKING_IDEA = (
    "A marketplace app that connects busy dog owners with vetted local dog walkers"
)

MARKET_REPLY: dict[str, Any] = {
    "market_overview": {
        "tam": "$1.2B",
        "sam": "$300M",
        "growth_rate": "8% yearly",
        "summary": "Urban pet owners increasingly outsource daily walks.",
    },
    "competition_level": "medium",
    "key_competitors": [
        {"name": "Rover", "url": "https://rover.com"},
        {"name": "Wag", "url": "https://wagwalking.com"},
    ],
    "market_gaps": [
        {"gap": "Real-time GPS walk tracking", "severity": "high"},
        "Same-day booking",
        {"gap": "Transparent pricing"},
        {"gap": "Walker background checks"},
    ],
    "target_audience": ["Busy professionals", "Elderly dog owners"],
    "data_sources": [
        "https://rover.com",
        "https://wagwalking.com",
        "https://petbacker.com",
        "https://fetchpetcare.com",
        "https://swifto.com",
        "https://barkly.com",
    ],
}

COMPETITOR_REPLY: dict[str, Any] = {
    "individual_analyses": [
        {
            "name": "Rover",
            "url": "https://rover.com",
            "strengths": ["Brand recognition"],
            "weaknesses": ["High service fees"],
            "unique_selling_points": ["Large sitter network"],
            "pricing": "$20 per walk",
        },
        {
            "name": "Wag",
            "url": "https://wagwalking.com",
            "strengths": ["On-demand walks"],
            "weaknesses": ["Inconsistent walkers"],
            "unique_selling_points": ["Live walk map"],
            "pricing": "$25 per walk",
        },
    ]
}

REVIEW_REPLY: dict[str, Any] = {
    "competitor": "Rover",
    "total_reviews": 120,
    "insights": {
        "top_complaints": [
            {"complaint": "Walkers cancel last minute", "severity": "high"},
            {"complaint": "Hidden booking fees", "severity": "medium"},
        ],
        "top_praises": ["Easy to book"],
        "feature_requests": ["Recurring walks"],
    },
}

SCHEMA_REPLY: dict[str, Any] = {
    "prisma_schema": "model Walk {\n  id String @id\n  dogName String\n}",
    "sql_migrations": [
        "CREATE TABLE walks (id TEXT PRIMARY KEY, dog_name TEXT);",
        "CREATE INDEX walks_dog ON walks(dog_name);",
    ],
    "seed_data": [],
    "stats": {"total_tables": 1, "total_relations": 0, "total_indexes": 1},
}

BACKEND_REPLY: dict[str, Any] = {
    "files": {
        "package.json": '{"name": "walkies-backend"}',
        "src/server.js": "const express = require('express');\nconst app = express();\napp.listen(5000);\n",
    }
}

FRONTEND_REPLY: dict[str, Any] = {
    "files": {
        "package.json": '{"name": "walkies-frontend"}',
        "src/App.js": "export default function App() {\n  return null;\n}\n",
    }
}

QA_REPLY: dict[str, Any] = {
    "overall_score": 82,
    "issues": [{"file": "src/server.js", "severity": "low", "message": "No rate limiting"}],
    "passed_checks": ["Server starts"],
    "verified_features": ["Real-time GPS walk tracking"],
    "summary": "Solid starting point.",
}

HAPPY_REPLIES: dict[str, Any] = {
    "Market Intelligence Analyst": MARKET_REPLY,
    "Competitor Analyst": COMPETITOR_REPLY,
    "Review Analyst": REVIEW_REPLY,
    "Starving Market Analyst": {"score": 78, "reasoning": "Strong demand, fragmented supply."},
    "Uniqueness Assessor": {
        "uniqueness_score": 72,
        "truly_unique_aspects": ["Vetted walkers"],
        "differentiation_strategy": "Trust first",
    },
    "Pricing Strategist": {
        "strategy": "Per-walk pricing with subscription discounts",
        "positioning": "Cheaper than Rover",
        "recommended_tiers": [
            {"name": "Pay as you go", "price_monthly": "$0", "target": "Occasional users"},
            {"name": "Daily Walks", "price_monthly": "$199/mo", "target": "Commuters", "margin": "35%"},
        ],
    },
    "Database Schema Designer": SCHEMA_REPLY,
    "Backend Generator": BACKEND_REPLY,
    "Frontend Generator": FRONTEND_REPLY,
    "Quality Auditor": QA_REPLY,
}


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def fake_sleep(sleeps: list[float]):
    """Records requested delays instead of sleeping."""

    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return _sleep


@pytest.fixture
def config() -> ForgeConfig:
    return ForgeConfig(retry=RetryPolicy(max_retries=3, delay=2.0))


@pytest.fixture
def happy_generator() -> MockTextGenerator:
    """A generator that answers every agent with a valid record."""
    gen = MockTextGenerator()
    for marker, reply in HAPPY_REPLIES.items():
        gen.register(marker, reply)
    return gen


@pytest.fixture
def replies() -> dict[str, Any]:
    return copy.deepcopy(HAPPY_REPLIES)


@pytest.fixture
def dog_request() -> BuildRequest:
    return BuildRequest(idea=DOG_WALKING_IDEA, tier=Tier.FREE)


@pytest.fixture
def market() -> MarketAnalysis:
    return MarketAnalysis.model_validate(copy.deepcopy(MARKET_REPLY))


@pytest.fixture
def competitors() -> CompetitorReport:
    return CompetitorReport.model_validate(copy.deepcopy(COMPETITOR_REPLY))
