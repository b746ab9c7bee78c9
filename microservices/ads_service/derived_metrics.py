"""
Derived Metrics Calculator

Turns raw lifetime and trailing metric sums into rates, averages and
forecasts. All divisions are guarded against zero denominators.
"""

import math
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from .models import (
    AverageMetrics,
    Campaign,
    DerivedMetrics,
    Forecast,
    LifetimeMetrics,
    MetricSummary,
    RateSnapshot,
    ensure_utc,
    to_iso,
)

SECONDS_PER_DAY = 60 * 60 * 24


def round_half_up(value: float, places: int = 0) -> float:
    """Round halves away from zero, matching how the dashboards display figures"""
    if not math.isfinite(value):
        return value
    exponent = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(exponent, rounding=ROUND_HALF_UP))


def round_int(value: float) -> int:
    return int(round_half_up(value))


def rate(numerator: float, denominator: float) -> float:
    """numerator / denominator to 4 decimals; 0 when the denominator is not positive"""
    if not denominator or denominator <= 0:
        return 0.0
    return round_half_up(numerator / denominator, 4)


def cents_per_unit(cents: float, units: float) -> int:
    """Integer cents per unit; 0 when there are no units"""
    if not units or units <= 0:
        return 0
    return round_int(cents / units)


def ratio(numerator: float, denominator: float, places: int = 2) -> Optional[float]:
    if denominator <= 0:
        return None
    return round_half_up(numerator / denominator, places)


def calculate_active_days(campaign: Campaign, now: datetime) -> int:
    """
    Number of days the campaign has been able to deliver, at least 1.

    The window starts at start_at (or now when unset or in the future) and
    ends at end_at when that is already past, otherwise at now.
    """
    now = ensure_utc(now)
    start_at = campaign.schedule.start_at or now
    end_at = campaign.schedule.end_at
    start = start_at if start_at <= now else now
    end = end_at if end_at and end_at < now else now
    if end < start:
        return 1
    diff_seconds = abs((end - start).total_seconds())
    return max(1, math.floor(diff_seconds / SECONDS_PER_DAY) + 1)


def rate_snapshot(summary: MetricSummary) -> RateSnapshot:
    return RateSnapshot(
        impressions=summary.impressions,
        clicks=summary.clicks,
        conversions=summary.conversions,
        spend_cents=summary.spend_cents,
        revenue_cents=summary.revenue_cents,
        ctr=rate(summary.clicks, summary.impressions),
        conversion_rate=rate(summary.conversions, summary.clicks),
        cpc_cents=cents_per_unit(summary.spend_cents, summary.clicks),
        cpa_cents=cents_per_unit(summary.spend_cents, summary.conversions),
    )


def compute_derived_metrics(
    campaign: Campaign,
    lifetime_summary: Optional[MetricSummary],
    trailing_summary: Optional[MetricSummary],
    now: datetime,
) -> DerivedMetrics:
    """Build the per-read derived snapshot for a campaign"""
    lifetime_summary = lifetime_summary or MetricSummary()
    trailing_summary = trailing_summary or MetricSummary()

    lifetime = LifetimeMetrics(
        impressions=lifetime_summary.impressions,
        clicks=lifetime_summary.clicks,
        conversions=lifetime_summary.conversions,
        spend_cents=lifetime_summary.spend_cents,
        revenue_cents=lifetime_summary.revenue_cents,
        last_recorded_at=to_iso(lifetime_summary.last_metric_date),
    )
    trailing = rate_snapshot(trailing_summary)

    averages = AverageMetrics(
        ctr=rate(lifetime.clicks, lifetime.impressions),
        conversion_rate=rate(lifetime.conversions, lifetime.clicks),
        cpc_cents=cents_per_unit(lifetime.spend_cents, lifetime.clicks),
        cpa_cents=cents_per_unit(lifetime.spend_cents, lifetime.conversions),
        roas=ratio(lifetime.revenue_cents, lifetime.spend_cents),
    )

    days_active = calculate_active_days(campaign, now)
    forecast = Forecast(
        expected_daily_spend_cents=round_int(lifetime.spend_cents / days_active),
        expected_daily_conversions=round_half_up(lifetime.conversions / days_active, 2),
        projected_roas=ratio(trailing.revenue_cents, trailing.spend_cents),
    )

    return DerivedMetrics(
        lifetime=lifetime,
        trailing=trailing,
        averages=averages,
        forecast=forecast,
        days_active=days_active,
    )


__all__ = [
    "round_half_up",
    "round_int",
    "rate",
    "cents_per_unit",
    "ratio",
    "calculate_active_days",
    "rate_snapshot",
    "compute_derived_metrics",
]
