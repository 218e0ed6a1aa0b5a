"""Turn build sections into the downloadable file set.

Layout of a bundle::

    frontend/<path>
    backend/<path>
    backend/prisma/schema.prisma
    database/migrations/001_migration.sql
    README.md
    RESEARCH_REPORT.md
"""

from __future__ import annotations

import io
import json
import zipfile
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import IO

import structlog

from launch_forge.core.types import BuildRequest, GeneratedFile
from launch_forge.pipeline.models import (
    Artifacts,
    QualitySection,
    ResearchReport,
    StrategyPlan,
)

logger = structlog.get_logger(__name__)


def safe_path(path: str) -> str | None:
    """Normalize a model-supplied relative path, or ``None`` if it escapes its root."""
    parts = [p for p in PurePosixPath(path.replace("\\", "/")).parts if p != "."]
    if not parts or parts[0] == "/" or ".." in parts:
        return None
    return "/".join(parts)


def collect_files(artifacts: Artifacts) -> list[GeneratedFile]:
    """Generated code, schema and migrations with their bundle paths.

    Code files whose path is absolute or climbs out with ``..`` are dropped.
    """
    files: list[GeneratedFile] = []
    for origin, bundle in (("frontend", artifacts.frontend), ("backend", artifacts.backend)):
        for path, content in sorted(bundle.files.items()):
            relative = safe_path(path)
            if relative is None:
                logger.warning("unsafe_file_path_dropped", origin=origin, path=path)
                continue
            files.append(GeneratedFile(path=f"{origin}/{relative}", content=content, origin=origin))

    database = artifacts.database
    for index, migration in enumerate(database.migrations, start=1):
        files.append(
            GeneratedFile(
                path=f"database/migrations/{index:03d}_migration.sql",
                content=migration.sql,
                origin="database",
            )
        )
    files.append(
        GeneratedFile(
            path="backend/prisma/schema.prisma",
            content=database.prisma_schema,
            origin="database",
        )
    )
    return files


def render_readme(
    request: BuildRequest,
    strategy: StrategyPlan,
    artifacts: Artifacts,
    quality: QualitySection,
    generated_at: datetime | None = None,
) -> str:
    generated_at = generated_at or datetime.now(timezone.utc)
    frontend, backend = artifacts.frontend.stats, artifacts.backend.stats
    ready = "YES" if quality.deployment_ready else "Needs fixes"
    advantages = "\n".join(
        f"{i}. **{adv.feature}** - {adv.source}"
        for i, adv in enumerate(strategy.competitive_advantages, start=1)
    ) or "Based on market research"

    return f"""# {request.display_name}

Generated: {generated_at.isoformat()}

## Build Stats

- **Files**: {frontend.total_files} + {backend.total_files}
- **Lines of Code**: {frontend.total_lines + backend.total_lines}
- **QA Score**: {quality.qa_results.overall_score}/100
- **Deployment Ready**: {ready}

## Competitive Advantages

{advantages}

## Quick Start

### Frontend
```bash
cd frontend
npm install
npm start
```

### Backend
```bash
cd backend
npm install
cp .env.example .env
npm run dev
```

See RESEARCH_REPORT.md for market insights.
"""


def render_research_report(
    research: ResearchReport, generated_at: datetime | None = None
) -> str:
    generated_at = generated_at or datetime.now(timezone.utc)
    competitors = research.competitors.total_analyzed if research.competitors else 0
    reviews = research.reviews.total_reviews if research.reviews else 0
    detail = json.dumps(research.model_dump(mode="json"), indent=2)

    return f"""# Market Research Report

Generated: {generated_at.isoformat()}

## Executive Summary

- **Competitors Analyzed**: {competitors}
- **Reviews Analyzed**: {reviews}
- **Market Size**: {research.market.market_overview.tam or "N/A"}
- **Competition Level**: {research.market.competition_level or "Unknown"}
- **Starving Market Score**: {research.starving_market.score}/100
- **Uniqueness Score**: {research.uniqueness.uniqueness_score}/100

## Detailed Analysis

```json
{detail}
```
"""


def write_zip(files: list[GeneratedFile], target: str | Path | IO[bytes] | None = None) -> bytes:
    """Write *files* into a deflated ZIP archive.

    Args:
        files: Files to store, keyed by their bundle path.
        target: Optional path or binary stream that also receives the archive.

    Returns:
        The archive bytes.
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for file in files:
            archive.writestr(file.path, file.content)
    data = buffer.getvalue()

    if isinstance(target, (str, Path)):
        Path(target).write_bytes(data)
    elif target is not None:
        target.write(data)
    return data
