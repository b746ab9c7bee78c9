"""
Compliance Evaluator

Applies the fixed rule set to a campaign and its derived metrics. Any
critical violation halts the campaign; warnings alone flag it for review.
"""

from typing import List, Tuple

from .models import (
    Campaign,
    CampaignStatus,
    ComplianceResult,
    ComplianceStatus,
    ComplianceViolation,
    DerivedMetrics,
    ViolationSeverity,
)
from .scoring import calculate_performance_score

MIN_HEADLINE_LENGTH = 12
MAX_HEADLINE_LENGTH = 160
OVERSPEND_TOLERANCE = 1.15
ZERO_CONVERSION_CLICK_THRESHOLD = 200

PROHIBITED_KEYWORDS: Tuple[str, ...] = ("clickbait", "scam", "spam", "crypto giveaway")

RISK_SCORE_MIN = 5
RISK_SCORE_MAX = 95
CRITICAL_PENALTY = 25
WARNING_PENALTY = 10


def contains_prohibited_keyword(text: str) -> bool:
    if not text:
        return False
    haystack = str(text).lower()
    return any(keyword in haystack for keyword in PROHIBITED_KEYWORDS)


def _critical(code: str, message: str) -> ComplianceViolation:
    return ComplianceViolation(code=code, severity=ViolationSeverity.CRITICAL, message=message)


def _warning(code: str, message: str) -> ComplianceViolation:
    return ComplianceViolation(code=code, severity=ViolationSeverity.WARNING, message=message)


def evaluate_compliance(campaign: Campaign, derived: DerivedMetrics) -> ComplianceResult:
    """Evaluate all rules; criticals are listed before warnings"""
    criticals: List[ComplianceViolation] = []
    warnings: List[ComplianceViolation] = []

    headline = campaign.creative.headline
    if not headline or len(headline.strip()) < MIN_HEADLINE_LENGTH:
        criticals.append(_critical(
            "creative_headline_short",
            "Creative headline is too short. Provide at least 12 characters so ads are reviewable.",
        ))

    if headline and len(headline) > MAX_HEADLINE_LENGTH:
        warnings.append(_warning(
            "creative_headline_length",
            "Creative headline exceeds 160 characters and may be truncated in placements.",
        ))

    if not campaign.creative.url:
        criticals.append(_critical(
            "missing_landing_page",
            "A landing page URL is required before the campaign can run.",
        ))

    copy = f"{headline or ''} {campaign.creative.description or ''}"
    if contains_prohibited_keyword(copy):
        criticals.append(_critical(
            "prohibited_keywords",
            "Creative text includes prohibited copy. Remove spam or deceptive keywords.",
        ))

    if not campaign.targeting.keywords:
        warnings.append(_warning(
            "missing_keywords",
            "Add at least one targeting keyword to improve delivery.",
        ))

    allowable_spend = campaign.budget.daily_cents * derived.days_active
    if allowable_spend > 0 and derived.lifetime.spend_cents > allowable_spend * OVERSPEND_TOLERANCE:
        criticals.append(_critical(
            "overspend_detected",
            "Lifetime spend exceeded the scheduled budget by more than 15%. "
            "Campaign paused until reviewed.",
        ))

    if (
        campaign.status == CampaignStatus.ACTIVE
        and derived.trailing.conversions == 0
        and derived.trailing.clicks >= ZERO_CONVERSION_CLICK_THRESHOLD
    ):
        warnings.append(_warning(
            "zero_conversion",
            "No conversions recorded in the last 7 days. "
            "Optimise creative or targeting to improve ROAS.",
        ))

    if criticals:
        status = ComplianceStatus.HALTED
    elif warnings:
        status = ComplianceStatus.NEEDS_REVIEW
    else:
        status = ComplianceStatus.PASS

    risk_score = 100 - CRITICAL_PENALTY * len(criticals) - WARNING_PENALTY * len(warnings)
    risk_score = max(RISK_SCORE_MIN, min(RISK_SCORE_MAX, risk_score))

    return ComplianceResult(
        status=status,
        risk_score=risk_score,
        violations=criticals + warnings,
        performance_score=calculate_performance_score(derived, status),
    )


__all__ = [
    "PROHIBITED_KEYWORDS",
    "MIN_HEADLINE_LENGTH",
    "MAX_HEADLINE_LENGTH",
    "OVERSPEND_TOLERANCE",
    "contains_prohibited_keyword",
    "evaluate_compliance",
]
