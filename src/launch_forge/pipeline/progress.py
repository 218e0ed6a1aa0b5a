"""Percent-complete breakpoints reported to polling clients."""

from __future__ import annotations

from launch_forge.core.constants import BuildStage

#: (start, end) percentage band of each stage. A stage reports its start
#: value when entered and moves toward its end value as its steps finish.
STAGE_BANDS: dict[BuildStage, tuple[int, int]] = {
    BuildStage.QUEUED: (0, 0),
    BuildStage.RESEARCH: (0, 30),
    BuildStage.PLANNING: (30, 50),
    BuildStage.CODE_GENERATION: (50, 85),
    BuildStage.QUALITY_ASSURANCE: (85, 95),
    BuildStage.PACKAGING: (95, 100),
    BuildStage.DONE: (100, 100),
    BuildStage.FAILED: (0, 0),
    BuildStage.CANCELLED: (0, 0),
}

STAGE_MESSAGES: dict[BuildStage, str] = {
    BuildStage.QUEUED: "Build queued",
    BuildStage.RESEARCH: "Analyzing market and competitors",
    BuildStage.PLANNING: "Planning strategy and features",
    BuildStage.CODE_GENERATION: "Generating database, backend and frontend",
    BuildStage.QUALITY_ASSURANCE: "Reviewing generated code",
    BuildStage.PACKAGING: "Packaging files",
    BuildStage.DONE: "Build complete",
    BuildStage.FAILED: "Build failed",
    BuildStage.CANCELLED: "Build cancelled",
}


def percent_complete(stage: BuildStage, fraction: float = 0.0) -> int:
    """Progress for *stage* with *fraction* (0.0-1.0) of it done.

    Failed and cancelled builds report 0.
    """
    start, end = STAGE_BANDS[stage]
    fraction = min(max(fraction, 0.0), 1.0)
    return int(round(start + (end - start) * fraction))
