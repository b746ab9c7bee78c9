"""
Insight / Trend Engine

Pure computations over an ascending daily metric series: per-day rates,
window-over-window trends, pacing against the daily budget and the
recommendations derived from them.
"""

import math
from datetime import datetime
from typing import Any, List, Optional, Sequence

from .derived_metrics import cents_per_unit, rate, round_half_up, round_int
from .models import (
    DailyInsight,
    DailyMetric,
    InsightHighlights,
    InsightHistoryEntry,
    InsightPacing,
    InsightTrends,
    PacingStatus,
    RateSnapshot,
    Recommendation,
    RecommendationSeverity,
    RecommendationType,
    to_iso,
)

TREND_WINDOW_DAYS = 7
PACING_OVER_RATIO = 1.1
PACING_UNDER_RATIO = 0.6
CTR_DROP_THRESHOLD = -0.10
CONVERSION_DROP_THRESHOLD = -0.15
TRACKING_CLICK_THRESHOLD = 100
FUNNEL_CLICK_THRESHOLD = 150
FUNNEL_CONVERSION_RATE = 0.02
DELIVERY_MIN_DAYS = 3
MAX_RECOMMENDATIONS = 10
MAX_HISTORY_ENTRIES = 20


def daily_insight(metric: DailyMetric) -> DailyInsight:
    return DailyInsight(
        date=to_iso(metric.metric_date),
        impressions=metric.impressions,
        clicks=metric.clicks,
        conversions=metric.conversions,
        spend_cents=metric.spend_cents,
        revenue_cents=metric.revenue_cents,
        ctr=rate(metric.clicks, metric.impressions),
        conversion_rate=rate(metric.conversions, metric.clicks),
        cpc_cents=cents_per_unit(metric.spend_cents, metric.clicks),
        cpa_cents=cents_per_unit(metric.spend_cents, metric.conversions),
    )


def summarise_series(daily: Sequence[DailyInsight]) -> RateSnapshot:
    impressions = sum(day.impressions for day in daily)
    clicks = sum(day.clicks for day in daily)
    conversions = sum(day.conversions for day in daily)
    spend_cents = sum(day.spend_cents for day in daily)
    revenue_cents = sum(day.revenue_cents for day in daily)
    return RateSnapshot(
        impressions=impressions,
        clicks=clicks,
        conversions=conversions,
        spend_cents=spend_cents,
        revenue_cents=revenue_cents,
        ctr=rate(clicks, impressions),
        conversion_rate=rate(conversions, clicks),
        cpc_cents=cents_per_unit(spend_cents, clicks),
        cpa_cents=cents_per_unit(spend_cents, conversions),
    )


def percentage_change(current: Optional[float], previous: Optional[float]) -> Optional[float]:
    """(current - previous) / |previous| to 4 decimals, None when undefined"""
    if current is None or previous is None:
        return None
    if not math.isfinite(current) or not math.isfinite(previous) or previous == 0:
        return None
    return round_half_up((current - previous) / abs(previous), 4)


def _average(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def compute_trends(daily: Sequence[DailyInsight]) -> InsightTrends:
    window = min(len(daily), TREND_WINDOW_DAYS)
    if window == 0:
        return InsightTrends(sample_days=0)

    recent = daily[-window:]
    previous = daily[max(0, len(daily) - 2 * window):len(daily) - window]

    def change(attr: str) -> Optional[float]:
        return percentage_change(
            _average([getattr(day, attr) for day in recent]),
            _average([getattr(day, attr) for day in previous]),
        )

    return InsightTrends(
        ctr_change=change("ctr"),
        conversion_rate_change=change("conversion_rate"),
        spend_change=change("spend_cents"),
        sample_days=window,
    )


def compute_pacing(daily: Sequence[DailyInsight], budget_daily_cents: int) -> InsightPacing:
    days_observed = len(daily)
    total_spend = sum(day.spend_cents for day in daily)
    avg_daily_spend = round_int(total_spend / days_observed) if days_observed else 0

    if not budget_daily_cents or budget_daily_cents <= 0:
        status = PacingStatus.UNBOUNDED
    elif avg_daily_spend > budget_daily_cents * PACING_OVER_RATIO:
        status = PacingStatus.OVER
    elif avg_daily_spend < budget_daily_cents * PACING_UNDER_RATIO:
        status = PacingStatus.UNDER
    else:
        status = PacingStatus.ON_TRACK

    return InsightPacing(
        status=status,
        avg_daily_spend_cents=avg_daily_spend,
        budget_daily_cents=budget_daily_cents or 0,
        days_observed=days_observed,
    )


def compute_highlights(daily: Sequence[DailyInsight]) -> InsightHighlights:
    if not daily:
        return InsightHighlights()
    top_ctr = max(daily, key=lambda day: day.ctr)
    top_conversion = max(daily, key=lambda day: day.conversions)
    return InsightHighlights(
        top_ctr_day=top_ctr,
        top_conversion_day=top_conversion if top_conversion.conversions > 0 else None,
    )


def build_recommendations(
    summary: RateSnapshot, trends: InsightTrends, pacing: InsightPacing
) -> List[Recommendation]:
    recommendations: List[Recommendation] = []

    if trends.ctr_change is not None and trends.ctr_change <= CTR_DROP_THRESHOLD:
        recommendations.append(Recommendation(
            type=RecommendationType.CREATIVE,
            severity=RecommendationSeverity.MEDIUM,
            message="Click-through rate dropped week over week.",
            action="Refresh the creative headline or asset to recover engagement.",
        ))

    if (
        trends.conversion_rate_change is not None
        and trends.conversion_rate_change <= CONVERSION_DROP_THRESHOLD
    ):
        recommendations.append(Recommendation(
            type=RecommendationType.CONVERSION,
            severity=RecommendationSeverity.MEDIUM,
            message="Conversion rate fell compared with the previous window.",
            action="Review the landing page experience and offer alignment.",
        ))

    if summary.conversions == 0 and summary.clicks >= TRACKING_CLICK_THRESHOLD:
        recommendations.append(Recommendation(
            type=RecommendationType.CONVERSION_TRACKING,
            severity=RecommendationSeverity.HIGH,
            message="Clicks are arriving but no conversions have been recorded.",
            action="Verify the conversion tracking setup on the landing page.",
        ))

    if (
        summary.conversion_rate < FUNNEL_CONVERSION_RATE
        and summary.clicks >= FUNNEL_CLICK_THRESHOLD
    ):
        recommendations.append(Recommendation(
            type=RecommendationType.FUNNEL,
            severity=RecommendationSeverity.HIGH,
            message="Conversion rate is below 2% despite healthy click volume.",
            action="Simplify the signup funnel and tighten audience targeting.",
        ))

    if pacing.status == PacingStatus.OVER:
        recommendations.append(Recommendation(
            type=RecommendationType.BUDGET,
            severity=RecommendationSeverity.HIGH,
            message="Average daily spend is running above the daily budget.",
            action="Lower bids or raise the daily budget to match delivery.",
        ))
    elif pacing.status == PacingStatus.UNDER and pacing.days_observed >= DELIVERY_MIN_DAYS:
        recommendations.append(Recommendation(
            type=RecommendationType.DELIVERY,
            severity=RecommendationSeverity.LOW,
            message="Campaign is under-delivering against its daily budget.",
            action="Broaden targeting keywords or placements to increase reach.",
        ))

    return recommendations[:MAX_RECOMMENDATIONS]


def sanitize(value: Any) -> Any:
    """Replace non-finite floats with None so snapshots stay JSON-safe"""
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, dict):
        return {key: sanitize(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [sanitize(item) for item in value]
    return value


def build_history_entry(
    generated_at: datetime,
    actor_id: Optional[str],
    window_days: int,
    summary: RateSnapshot,
    trends: InsightTrends,
    pacing: InsightPacing,
    recommendations: Sequence[Recommendation],
) -> InsightHistoryEntry:
    return InsightHistoryEntry(
        generated_at=generated_at,
        actor_id=actor_id,
        window_days=window_days,
        summary=sanitize(summary.model_dump(mode="json")),
        trends=sanitize(trends.model_dump(mode="json")),
        pacing=sanitize(pacing.model_dump(mode="json")),
        recommendations=list(recommendations)[:MAX_RECOMMENDATIONS],
    )


def append_history(
    history: Sequence[InsightHistoryEntry],
    entry: InsightHistoryEntry,
    limit: int = MAX_HISTORY_ENTRIES,
) -> List[InsightHistoryEntry]:
    """Append and evict the oldest entries beyond limit"""
    combined = list(history) + [entry]
    return combined[-limit:]


__all__ = [
    "MAX_HISTORY_ENTRIES",
    "MAX_RECOMMENDATIONS",
    "daily_insight",
    "summarise_series",
    "percentage_change",
    "compute_trends",
    "compute_pacing",
    "compute_highlights",
    "build_recommendations",
    "sanitize",
    "build_history_entry",
    "append_history",
]
