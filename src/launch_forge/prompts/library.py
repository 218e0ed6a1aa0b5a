"""Prompt texts for every agent.

Each prompt opens with ``You are the <role>.`` so that transports and test
doubles can tell the agents apart by their role line.
"""

from __future__ import annotations

from launch_forge.prompts.template import PromptTemplate

_JSON_ONLY = "Return ONLY the JSON object. No markdown, no explanations."

MARKET_INTELLIGENCE = PromptTemplate(
    """You are the {role}.

Analyze the market for this product idea.

Idea: {idea}
Target market: {target_market}
Country: {country}

Respond with JSON in exactly this structure:
{
  "market_overview": {"tam": "...", "sam": "...", "growth_rate": "...", "summary": "..."},
  "competition_level": "low|medium|high",
  "key_competitors": [{"name": "...", "url": "https://...", "description": "..."}],
  "market_gaps": [{"gap": "...", "severity": "low|medium|high"}],
  "target_audience": ["..."],
  "data_sources": ["https://competitor-or-source-url"]
}

{json_only}"""
)

COMPETITOR_ANALYSIS = PromptTemplate(
    """You are the {role}.

Analyze these competitors of the product idea below.

Idea: {idea}
Competitor URLs:
{urls}

Respond with JSON:
{
  "individual_analyses": [
    {
      "name": "...",
      "url": "...",
      "strengths": ["..."],
      "weaknesses": ["..."],
      "unique_selling_points": ["..."],
      "pricing": "..."
    }
  ]
}

{json_only}"""
)

REVIEW_ANALYSIS = PromptTemplate(
    """You are the {role}.

Summarize what users say in public reviews of {competitor}, a competitor of:
{idea}

Respond with JSON:
{
  "competitor": "{competitor}",
  "total_reviews": 0,
  "insights": {
    "top_complaints": [{"complaint": "...", "severity": "low|medium|high", "frequency": "..."}],
    "top_praises": ["..."],
    "feature_requests": ["..."]
  }
}

{json_only}"""
)

STARVING_MARKET = PromptTemplate(
    """You are the {role}.

Decide whether this is a starving market (strong demand, poorly served).

Market size: {tam}
Growth rate: {growth_rate}
Competition: {competition_level}
Competitors analyzed: {competitors}
User complaints found: {complaints}

Respond with JSON:
{"score": 0, "reasoning": "..."}
where score is 0-100.

{json_only}"""
)

UNIQUENESS = PromptTemplate(
    """You are the {role}.

Compare this app idea with its competitors.

Our idea: {idea}
Competitor features: {competitor_features}

Respond with JSON:
{"uniqueness_score": 0, "truly_unique_aspects": ["..."], "differentiation_strategy": "..."}
where uniqueness_score is 0-100.

{json_only}"""
)

PRICING_STRATEGY = PromptTemplate(
    """You are the {role}.

Propose a pricing strategy for this product.

Idea: {idea}
Target market: {target_market}
Market overview: {market}
Competitor pricing:
{competitor_pricing}
Competitive advantages:
{advantages}

Respond with JSON:
{
  "strategy": "...",
  "positioning": "...",
  "recommended_tiers": [
    {"name": "...", "price_monthly": "$0", "target": "...", "margin": "..."}
  ]
}

{json_only}"""
)

SCHEMA_DESIGNER = PromptTemplate(
    """You are the {role}.

Generate a {database} database schema. {json_only}

Required JSON structure:
{
  "prisma_schema": "datasource db {\\n  provider = \\"postgresql\\"\\n  url = env(\\"DATABASE_URL\\")\\n}\\n\\nmodel User {\\n  id String @id @default(uuid())\\n  email String @unique\\n  name String\\n}",
  "sql_migrations": ["CREATE TABLE users (id UUID PRIMARY KEY, email TEXT UNIQUE, name TEXT);"],
  "seed_data": [],
  "stats": {"total_tables": 1, "total_relations": 0, "total_indexes": 1}
}

Project: {requirements}"""
)

BACKEND_GENERATOR = PromptTemplate(
    """You are the {role}.

Generate a Node.js (Express + Prisma) backend for this project.

Project: {requirements}
Database schema (Prisma):
{schema}

Respond with JSON mapping file paths to full file contents:
{
  "files": {"package.json": "...", "src/server.js": "..."},
  "notes": "..."
}

{json_only}"""
)

FRONTEND_GENERATOR = PromptTemplate(
    """You are the {role}.

Generate a {framework} frontend for this project.

Project: {requirements}
UX principles:
{principles}

Respond with JSON mapping file paths to full file contents:
{
  "files": {"package.json": "...", "src/App.js": "..."},
  "notes": "..."
}

{json_only}"""
)

QUALITY_AUDITOR = PromptTemplate(
    """You are the {role}.

Review the generated code of "{project_name}" for bugs, security problems and
missing pieces. Check whether these researched features are implemented:
{advantages}

Files:
{files}

Respond with JSON:
{
  "overall_score": 0,
  "issues": [{"file": "...", "severity": "low|medium|high", "message": "..."}],
  "passed_checks": ["..."],
  "verified_features": ["..."],
  "summary": "..."
}
where overall_score is 0-100.

{json_only}"""
)


def with_defaults(template: PromptTemplate, role: str) -> PromptTemplate:
    return template.partial(role=role, json_only=_JSON_ONLY)
