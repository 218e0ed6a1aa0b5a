"""Static, schema-valid substitutes returned when an agent exhausts its retries.

Every factory returns a fresh object tagged ``provenance="fallback"`` so
callers may mutate what they get without affecting later builds.
"""

from __future__ import annotations

import json

from launch_forge.agents.models import (
    CodeBundle,
    CompetitorReport,
    DatabaseSchema,
    Migration,
    PricingStrategy,
    PricingTier,
    QualityReport,
    ReviewReport,
    SchemaStats,
    StarvingMarketScore,
    UniquenessScore,
)
from launch_forge.core.constants import Provenance

_FALLBACK = Provenance.FALLBACK

DEFAULT_PRISMA_SCHEMA = """generator client {
  provider = "prisma-client-js"
}

datasource db {
  provider = "postgresql"
  url      = env("DATABASE_URL")
}

model User {
  id        String   @id @default(uuid())
  email     String   @unique
  name      String
  password  String?
  createdAt DateTime @default(now())
  updatedAt DateTime @updatedAt

  @@index([email])
}

model Session {
  id        String   @id @default(uuid())
  userId    String
  token     String   @unique
  expiresAt DateTime
  createdAt DateTime @default(now())

  @@index([userId])
  @@index([token])
}
"""

_CREATE_USER = (
    'CREATE TABLE "User" (id TEXT PRIMARY KEY, email TEXT UNIQUE NOT NULL, '
    'name TEXT NOT NULL, password TEXT, "createdAt" TIMESTAMP DEFAULT '
    'CURRENT_TIMESTAMP, "updatedAt" TIMESTAMP);'
)
_CREATE_SESSION = (
    'CREATE TABLE "Session" (id TEXT PRIMARY KEY, "userId" TEXT, token TEXT '
    'UNIQUE, "expiresAt" TIMESTAMP, "createdAt" TIMESTAMP DEFAULT '
    "CURRENT_TIMESTAMP);"
)


def database_schema() -> DatabaseSchema:
    """The two-table User/Session schema used when schema design fails."""
    return DatabaseSchema(
        prisma_schema=DEFAULT_PRISMA_SCHEMA,
        sql_migrations=[
            _CREATE_USER,
            _CREATE_SESSION,
            'CREATE INDEX "User_email" ON "User"(email);',
            'CREATE INDEX "Session_userId" ON "Session"("userId");',
            'CREATE INDEX "Session_token" ON "Session"(token);',
        ],
        seed_data=[],
        stats=SchemaStats(total_tables=2, total_relations=1, total_indexes=3),
        migrations=[
            Migration(name="migration_001_initial_schema", sql=_CREATE_USER),
            Migration(name="migration_002_add_sessions", sql=_CREATE_SESSION),
        ],
        provenance=_FALLBACK,
    )


def competitor_report() -> CompetitorReport:
    return CompetitorReport(individual_analyses=[], provenance=_FALLBACK)


def review_report(competitor: str) -> ReviewReport:
    return ReviewReport(competitor=competitor, total_reviews=0, provenance=_FALLBACK)


def starving_market() -> StarvingMarketScore:
    return StarvingMarketScore(score=50, reasoning="Analysis failed", provenance=_FALLBACK)


def uniqueness() -> UniquenessScore:
    return UniquenessScore(
        uniqueness_score=60,
        truly_unique_aspects=[],
        differentiation_strategy="Standard approach",
        provenance=_FALLBACK,
    )


def pricing_strategy() -> PricingStrategy:
    return PricingStrategy(
        strategy="Freemium with premium tiers",
        positioning="Competitive pricing below market leaders",
        recommended_tiers=[
            PricingTier(name="Free", price_monthly="$0", target="Individual users testing", margin="N/A"),
            PricingTier(name="Starter", price_monthly="$29/mo", target="Small teams", margin="70%"),
            PricingTier(name="Pro", price_monthly="$99/mo", target="Growing businesses", margin="80%"),
        ],
        provenance=_FALLBACK,
    )


def backend_bundle(project_name: str) -> CodeBundle:
    package = {
        "name": _slug(project_name) + "-backend",
        "version": "1.0.0",
        "main": "src/server.js",
        "scripts": {"start": "node src/server.js"},
        "dependencies": {"express": "^4.18.2", "@prisma/client": "^5.0.0", "cors": "^2.8.5"},
    }
    server = """const express = require('express');
const cors = require('cors');

const app = express();
app.use(cors());
app.use(express.json());

app.get('/api/health', (req, res) => {
  res.json({ status: 'ok' });
});

const PORT = process.env.PORT || 5000;
app.listen(PORT, () => console.log(`Server running on port ${PORT}`));
"""
    return CodeBundle(
        files={"package.json": json.dumps(package, indent=2), "src/server.js": server},
        notes="Minimal Express server; code generation was unavailable.",
        provenance=_FALLBACK,
    )


def frontend_bundle(project_name: str) -> CodeBundle:
    package = {
        "name": _slug(project_name) + "-frontend",
        "version": "1.0.0",
        "private": True,
        "scripts": {"start": "react-scripts start", "build": "react-scripts build"},
        "dependencies": {"react": "^18.2.0", "react-dom": "^18.2.0", "react-scripts": "5.0.1"},
    }
    app = f"""import React from 'react';

export default function App() {{
  return (
    <main style={{{{ fontFamily: 'sans-serif', padding: 32 }}}}>
      <h1>{project_name}</h1>
      <p>Your app is ready to be customized.</p>
    </main>
  );
}}
"""
    index = """import React from 'react';
import { createRoot } from 'react-dom/client';
import App from './App';

createRoot(document.getElementById('root')).render(<App />);
"""
    return CodeBundle(
        files={"package.json": json.dumps(package, indent=2), "src/App.js": app, "src/index.js": index},
        notes="Minimal React shell; code generation was unavailable.",
        provenance=_FALLBACK,
    )


def quality_report() -> QualityReport:
    return QualityReport(
        overall_score=0,
        issues=[],
        passed_checks=[],
        verified_features=[],
        summary="Automated review unavailable; manual review required.",
        provenance=_FALLBACK,
    )


def _slug(name: str) -> str:
    slug = "".join(ch if ch.isalnum() else "-" for ch in name.lower()).strip("-")
    while "--" in slug:
        slug = slug.replace("--", "-")
    return slug or "app"
