"""
Performance Scorer

Single 0-100 composite score from derived metrics, modulated by the
compliance status of the campaign.
"""

import math
from typing import Union

from .derived_metrics import round_int
from .models import ComplianceStatus, DerivedMetrics

HALTED_MULTIPLIER = 0.25
HALTED_FLOOR = 5
NEEDS_REVIEW_MULTIPLIER = 0.75


def base_performance_score(derived: DerivedMetrics) -> int:
    ctr_score = min(30, round_int(derived.averages.ctr * 1000))
    conversion_score = min(30, round_int(derived.averages.conversion_rate * 1000))
    roas_score = min(20, round_int((derived.averages.roas or 0) * 10))
    stability_score = min(10, 10 if derived.forecast.expected_daily_spend_cents > 0 else 4)
    volume_score = min(10, round_int(math.log10(derived.lifetime.impressions + 1) * 4))
    return ctr_score + conversion_score + roas_score + stability_score + volume_score


def calculate_performance_score(
    derived: DerivedMetrics,
    compliance_status: Union[ComplianceStatus, str] = ComplianceStatus.PASS,
) -> int:
    """Composite score; halted campaigns keep a floor of 5"""
    base = base_performance_score(derived)
    status = ComplianceStatus(compliance_status)
    if status == ComplianceStatus.HALTED:
        return max(HALTED_FLOOR, round_int(base * HALTED_MULTIPLIER))
    if status == ComplianceStatus.NEEDS_REVIEW:
        return round_int(base * NEEDS_REVIEW_MULTIPLIER)
    return min(100, max(0, base))


__all__ = ["base_performance_score", "calculate_performance_score"]
