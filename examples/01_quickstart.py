# RUN: python examples/01_quickstart.py
"""Quickstart: run one build end to end against MockTextGenerator.

Demonstrates: registering canned agent replies, BuildService.start_build(),
service.wait(), and reading the aggregate result and generated files.
"""

import asyncio

from launch_forge import BuildService, ForgeConfig, MockTextGenerator, RetryPolicy
from launch_forge.utils.logging import configure_logging

IDEA = "A marketplace app that connects busy dog owners with vetted local dog walkers"


def make_generator() -> MockTextGenerator:
    gen = MockTextGenerator()
    gen.register("Market Intelligence Analyst", {
        "market_overview": {"tam": "$1.2B", "sam": "$300M", "growth_rate": "8% yearly"},
        "competition_level": "medium",
        "key_competitors": [{"name": "Rover", "url": "https://rover.com"}],
        "market_gaps": [{"gap": "Real-time GPS walk tracking", "severity": "high"}],
        "target_audience": ["Busy professionals"],
        "data_sources": ["https://rover.com"],
    })
    gen.register("Competitor Analyst", {
        "individual_analyses": [
            {"name": "Rover", "strengths": ["Brand"], "weaknesses": ["High fees"]},
        ]
    })
    gen.register("Starving Market Analyst", {"score": 78, "reasoning": "Fragmented supply."})
    gen.register("Uniqueness Assessor", {"uniqueness_score": 72})
    gen.register("Pricing Strategist", {
        "strategy": "Per-walk pricing",
        "recommended_tiers": [{"name": "Pay as you go", "price_monthly": "$0"}],
    })
    gen.register("Database Schema Designer", {
        "prisma_schema": "model Walk {\n  id String @id\n}",
        "sql_migrations": ["CREATE TABLE walks (id TEXT PRIMARY KEY);"],
    })
    gen.register("Backend Generator", {"files": {"src/server.js": "require('express')().listen(5000);\n"}})
    gen.register("Frontend Generator", {"files": {"src/App.js": "export default () => null;\n"}})
    gen.register("Quality Auditor", {"overall_score": 82, "summary": "Solid start."})
    return gen


async def main() -> None:
    configure_logging(level="WARNING", json=False)

    # 1. Zero delay between retries so the demo finishes instantly
    config = ForgeConfig(retry=RetryPolicy(max_retries=2, delay=0.0))

    async with BuildService(make_generator(), config) as service:
        # 2. Start the build; it runs in the background
        handle = await service.start_build({"idea": IDEA, "project_name": "Walkies"})
        print(f"Build id : {handle.build_id}")

        # 3. Wait for it and read the result
        status = await service.wait(handle)
        print(f"State    : {status.state} ({status.percent_complete}%)")

        result = status.result
        if result is None:
            print(f"Error    : {status.error}")
            return

        summary = result.summary
        print(f"QA score : {summary.qa_score}  deployment ready: {summary.deployment_ready}")
        print(f"Research : {summary.research_score}  advantages: {summary.competitive_advantages}")
        print(f"Fallbacks: {result.fallback_sections or 'none'}")
        print("\nFiles:")
        for f in result.files:
            print(f"  {f.path:45s} {f.size_bytes:6d} bytes")


if __name__ == "__main__":
    asyncio.run(main())
