from __future__ import annotations

from enum import StrEnum


class Tier(StrEnum):
    FREE = "free"
    STARTER = "starter"
    PREMIUM = "premium"


class Phase(StrEnum):
    """The four ordered phases of a build."""

    RESEARCH = "research"
    PLANNING = "planning"
    CODE_GENERATION = "code_generation"
    QUALITY_ASSURANCE = "quality_assurance"


PHASE_ORDER: tuple[Phase, ...] = (
    Phase.RESEARCH,
    Phase.PLANNING,
    Phase.CODE_GENERATION,
    Phase.QUALITY_ASSURANCE,
)


class BuildStage(StrEnum):
    """What a polling client sees as the build's current position."""

    QUEUED = "queued"
    RESEARCH = "research"
    PLANNING = "planning"
    CODE_GENERATION = "code_generation"
    QUALITY_ASSURANCE = "quality_assurance"
    PACKAGING = "packaging"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


class BuildState(StrEnum):
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_STATES = frozenset(
    {BuildState.COMPLETED, BuildState.FAILED, BuildState.CANCELLED}
)


class Provenance(StrEnum):
    GENERATED = "generated"
    FALLBACK = "fallback"


class ExtractionFailureReason(StrEnum):
    NO_JSON_FOUND = "NoJsonFound"
    SYNTAX_INVALID = "SyntaxInvalid"
    SCHEMA_INVALID = "SchemaInvalid"


class StepStatus(StrEnum):
    """Whether an agent step ran in a given build."""

    RAN = "ran"
    SKIPPED = "skipped"


class FailureCause(StrEnum):
    PHASE_FATAL = "PhaseFatal"
