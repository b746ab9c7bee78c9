"""
Unit Tests for the Derived Metrics Calculator

Rates, cents-per-unit guards, active-day counting and forecasts.
"""

import pytest
from datetime import datetime, timedelta, timezone

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from microservices.ads_service.derived_metrics import (
    calculate_active_days,
    cents_per_unit,
    compute_derived_metrics,
    rate,
    round_half_up,
)
from tests.contracts.ads.data_contract import FIXED_NOW, AdsTestDataFactory


class TestRateGuards:
    """rate() and cents_per_unit() never divide by zero"""

    @pytest.mark.parametrize("numerator", [0, 1, 250, 10_000_000])
    def test_rate_zero_denominator(self, numerator):
        assert rate(numerator, 0) == 0

    @pytest.mark.parametrize("cents", [0, 1, 999, 5_000_000])
    def test_cents_per_unit_zero_units(self, cents):
        assert cents_per_unit(cents, 0) == 0

    def test_negative_denominator_is_guarded(self):
        assert rate(5, -1) == 0
        assert cents_per_unit(500, -3) == 0

    def test_rate_rounds_to_four_decimals(self):
        assert rate(1, 3) == 0.3333
        assert rate(2, 3) == 0.6667
        assert rate(250, 10_000) == 0.025

    def test_cents_per_unit_rounds_half_up(self):
        assert cents_per_unit(1000, 3) == 333
        assert cents_per_unit(5, 2) == 3
        assert cents_per_unit(50_000, 250) == 200


class TestRoundHalfUp:
    """Halves round away from zero like the dashboards expect"""

    def test_integer_halves(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4

    def test_decimal_places(self):
        assert round_half_up(0.125, 2) == 0.13
        assert round_half_up(1.23456, 4) == 1.2346


class TestActiveDays:
    """Active day counting from schedule and now"""

    def test_no_schedule_counts_one_day(self, factory):
        campaign = factory.make_campaign()
        assert calculate_active_days(campaign, FIXED_NOW) == 1

    def test_started_nine_days_ago(self, factory):
        campaign = factory.make_campaign(start_at=FIXED_NOW - timedelta(days=9))
        assert calculate_active_days(campaign, FIXED_NOW) == 10

    def test_future_start_counts_one_day(self, factory):
        campaign = factory.make_campaign(start_at=FIXED_NOW + timedelta(days=3))
        assert calculate_active_days(campaign, FIXED_NOW) == 1

    def test_past_end_caps_the_window(self, factory):
        campaign = factory.make_campaign(
            start_at=datetime(2024, 12, 1, tzinfo=timezone.utc),
            end_at=datetime(2024, 12, 5, tzinfo=timezone.utc),
        )
        assert calculate_active_days(campaign, FIXED_NOW) == 5

    def test_partial_day_rounds_down_then_adds_one(self, factory):
        campaign = factory.make_campaign(start_at=FIXED_NOW - timedelta(hours=36))
        assert calculate_active_days(campaign, FIXED_NOW) == 2


class TestComputeDerivedMetrics:
    """Lifetime, trailing, averages and forecast"""

    @pytest.fixture
    def derived(self, factory):
        campaign = factory.make_campaign(start_at=FIXED_NOW - timedelta(days=9))
        lifetime = factory.make_summary(
            impressions=10_000,
            clicks=250,
            conversions=10,
            spend_cents=50_000,
            revenue_cents=150_000,
            last_metric_date=datetime(2024, 12, 9, tzinfo=timezone.utc),
        )
        trailing = factory.make_summary(
            impressions=4000, clicks=100, conversions=5, spend_cents=20_000, revenue_cents=30_000
        )
        return compute_derived_metrics(campaign, lifetime, trailing, FIXED_NOW)

    def test_lifetime_echoes_sums(self, derived):
        assert derived.lifetime.impressions == 10_000
        assert derived.lifetime.spend_cents == 50_000
        assert derived.lifetime.last_recorded_at == "2024-12-09T00:00:00.000Z"

    def test_averages(self, derived):
        assert derived.averages.ctr == 0.025
        assert derived.averages.conversion_rate == 0.04
        assert derived.averages.cpc_cents == 200
        assert derived.averages.cpa_cents == 5000
        assert derived.averages.roas == 3.0

    def test_trailing_rates(self, derived):
        assert derived.trailing.ctr == 0.025
        assert derived.trailing.conversion_rate == 0.05
        assert derived.trailing.cpc_cents == 200
        assert derived.trailing.cpa_cents == 4000

    def test_forecast(self, derived):
        assert derived.days_active == 10
        assert derived.forecast.expected_daily_spend_cents == 5000
        assert derived.forecast.expected_daily_conversions == 1.0
        assert derived.forecast.projected_roas == 1.5

    def test_no_spend_leaves_roas_undefined(self, factory):
        campaign = factory.make_campaign()
        derived = compute_derived_metrics(
            campaign, factory.make_summary(), factory.make_summary(), FIXED_NOW
        )
        assert derived.averages.roas is None
        assert derived.forecast.projected_roas is None
        assert derived.averages.ctr == 0
        assert derived.lifetime.last_recorded_at is None

    def test_missing_summaries_default_to_zero(self, factory):
        campaign = factory.make_campaign()
        derived = compute_derived_metrics(campaign, None, None, FIXED_NOW)
        assert derived.lifetime.impressions == 0
        assert derived.trailing.clicks == 0
