"""Deterministic planning and verification rules.

Nothing here calls the text-generation service: the same research always
yields the same advantages, priorities and UX strategy.
"""

from __future__ import annotations

from launch_forge.agents.models import MarketAnalysis, QualityReport, ReviewReport
from launch_forge.pipeline.models import (
    CompetitiveAdvantage,
    PrioritizedFeature,
    ResearchVerification,
    UxPrinciple,
    UxStrategy,
)

MAX_GAP_ADVANTAGES = 3
MAX_COMPLAINT_ADVANTAGES = 3

PRIORITY_SCORES = {"critical": 100, "high": 80}
DEFAULT_PRIORITY_SCORE = 60


def identify_competitive_advantages(
    market: MarketAnalysis, reviews: ReviewReport | None
) -> list[CompetitiveAdvantage]:
    """Top market gaps first, then top review complaints.

    A complaint of ``high`` severity becomes a ``critical`` advantage.
    """
    advantages: list[CompetitiveAdvantage] = []
    for gap in market.market_gaps[:MAX_GAP_ADVANTAGES]:
        advantages.append(
            CompetitiveAdvantage(
                feature=gap.gap,
                source="Market Gap",
                type="market_gap",
                priority="high",
                implementation=f"Build feature to address: {gap.gap}",
            )
        )

    complaints = reviews.insights.top_complaints if reviews is not None else []
    for complaint in complaints[:MAX_COMPLAINT_ADVANTAGES]:
        advantages.append(
            CompetitiveAdvantage(
                feature=f"Solution to: {complaint.complaint}",
                source="User Pain Point",
                type="pain_point",
                priority="critical" if complaint.severity.lower() == "high" else "high",
                implementation=f"Address complaint: {complaint.complaint}",
            )
        )
    return advantages


def prioritize_features(advantages: list[CompetitiveAdvantage]) -> list[PrioritizedFeature]:
    """Score each advantage and sort by score, highest first (stable)."""
    features = [
        PrioritizedFeature(
            **adv.model_dump(),
            score=PRIORITY_SCORES.get(adv.priority, DEFAULT_PRIORITY_SCORE),
        )
        for adv in advantages
    ]
    return sorted(features, key=lambda f: f.score, reverse=True)


def ux_strategy() -> UxStrategy:
    return UxStrategy(
        principles=[
            UxPrinciple(
                principle="Social Proof",
                where="Homepage, testimonials",
                implementation="Show user count and success stories",
                copy_example='"Join 10,000+ users already solving [problem]"',
            ),
            UxPrinciple(
                principle="Scarcity",
                where="Pricing page",
                implementation="Limited time offers",
                copy_example='"Only 50 spots left at this price"',
            ),
            UxPrinciple(
                principle="Authority",
                where="About page",
                implementation="Show expertise and credentials",
                copy_example='"Built by industry experts with 10+ years experience"',
            ),
        ],
        color_psychology={"primary": "#6366F1", "cta": "#10B981"},
    )


def verify_research(
    advantages: list[CompetitiveAdvantage], qa: QualityReport
) -> ResearchVerification:
    """Count how many researched features the auditor confirmed.

    A feature counts as implemented when it and one of the auditor's
    ``verified_features`` contain each other, ignoring case.
    """
    verified = [v.lower() for v in qa.verified_features if v]
    features = [adv.feature for adv in advantages]
    implemented = sum(
        1
        for feature in features
        if any(feature.lower() in v or v in feature.lower() for v in verified)
    )
    score = round(100 * implemented / len(features)) if features else 0
    return ResearchVerification(
        score=score,
        implemented=implemented,
        total=len(features),
        features_from_research=features,
    )
