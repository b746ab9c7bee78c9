"""
Unit Tests for Ads Models

Request validation rules and normalisation performed by the pydantic models.
"""

import pytest
from datetime import date, datetime, timedelta, timezone
from pydantic import ValidationError

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from microservices.ads_service.models import (
    BrandSafety,
    BrandSafetyCategory,
    CampaignCreateRequest,
    CampaignMetadata,
    CampaignUpdateRequest,
    DailyMetric,
    PlacementContext,
    PlacementSlot,
    Schedule,
    Targeting,
    to_iso,
)
from tests.contracts.ads.data_contract import FIXED_NOW, AdsTestDataFactory


class TestCreateRequest:
    """Campaign creation rules"""

    def test_valid_payload(self):
        request = CampaignCreateRequest.model_validate(AdsTestDataFactory.make_create_payload())

        assert request.budget.currency == "USD"
        assert request.placements == [PlacementSlot(context=PlacementContext.GLOBAL_FEED)]
        assert request.brand_safety.categories == [BrandSafetyCategory.STANDARD]

    def test_search_placement_requires_keywords(self):
        payload = AdsTestDataFactory.make_create_payload(
            placements=["search"], targeting={"keywords": []}
        )
        with pytest.raises(ValidationError, match="Search placements require"):
            CampaignCreateRequest.model_validate(payload)

    def test_search_placement_with_keywords(self):
        payload = AdsTestDataFactory.make_create_payload(placements=["search", "global_feed"])
        request = CampaignCreateRequest.model_validate(payload)
        assert [p.context for p in request.placements] == [
            PlacementContext.SEARCH, PlacementContext.GLOBAL_FEED,
        ]

    def test_duplicate_contexts_rejected(self):
        payload = AdsTestDataFactory.make_create_payload(
            placements=["global_feed", {"context": "global_feed", "slot": "hero"}]
        )
        with pytest.raises(ValidationError, match="unique"):
            CampaignCreateRequest.model_validate(payload)

    @pytest.mark.parametrize("status", ["completed", "archived"])
    def test_terminal_initial_status_rejected(self, status):
        with pytest.raises(ValidationError):
            CampaignCreateRequest.model_validate(AdsTestDataFactory.make_create_payload(status=status))

    def test_budget_minimum(self):
        payload = AdsTestDataFactory.make_create_payload(budget={"currency": "USD", "daily_cents": 999})
        with pytest.raises(ValidationError):
            CampaignCreateRequest.model_validate(payload)

    def test_short_headline_rejected(self):
        payload = AdsTestDataFactory.make_create_payload(
            creative={"headline": "  Hi   ", "url": "https://example.com"}
        )
        with pytest.raises(ValidationError):
            CampaignCreateRequest.model_validate(payload)

    def test_relative_url_rejected(self):
        payload = AdsTestDataFactory.make_create_payload(
            creative={"headline": "Learn Python fast", "url": "/landing"}
        )
        with pytest.raises(ValidationError, match="absolute"):
            CampaignCreateRequest.model_validate(payload)


class TestUpdateRequest:
    """Partial updates only carry supplied fields"""

    def test_fields_set(self):
        request = CampaignUpdateRequest.model_validate({"name": "Renamed"})
        assert request.model_fields_set == {"name"}
        assert request.placements is None

    def test_duplicate_contexts_rejected(self):
        with pytest.raises(ValidationError):
            CampaignUpdateRequest.model_validate({"placements": ["search", "search"]})


class TestSchedule:
    """End must not precede start"""

    def test_end_before_start(self):
        with pytest.raises(ValidationError, match="End date must be after the start date"):
            Schedule(start_at=FIXED_NOW, end_at=FIXED_NOW - timedelta(days=1))

    def test_naive_datetimes_become_utc(self):
        schedule = Schedule(start_at=datetime(2024, 12, 1))
        assert schedule.start_at.tzinfo == timezone.utc

    def test_open_ended(self):
        assert Schedule(start_at=FIXED_NOW).end_at is None


class TestTargeting:
    """Set-like targeting lists"""

    def test_dedupe_keeps_first_seen(self):
        targeting = Targeting(keywords=["Python", " python ", "", "Data"])
        assert targeting.keywords == ["Python", "Data"]

    def test_default_language(self):
        assert Targeting().languages == ["en"]
        assert Targeting(languages=[]).languages == ["en"]
        assert Targeting(languages=["EN", "fr", "en"]).languages == ["en", "fr"]


class TestMetadata:
    """Typed metadata defaults"""

    def test_brand_safety_default(self):
        assert BrandSafety(categories=[]).categories == [BrandSafetyCategory.STANDARD]

    def test_unique_placement_contexts(self):
        with pytest.raises(ValidationError):
            CampaignMetadata(placements=[
                PlacementSlot(context=PlacementContext.SEARCH),
                PlacementSlot(context=PlacementContext.SEARCH, slot="top"),
            ])


class TestDailyMetric:
    """Metric rows are keyed by UTC day"""

    def test_truncated_to_day(self):
        metric = DailyMetric(campaign_id=1, metric_date=FIXED_NOW)
        assert metric.metric_date == datetime(2024, 12, 10, tzinfo=timezone.utc)

    def test_accepts_date_and_iso_string(self):
        assert DailyMetric(campaign_id=1, metric_date=date(2024, 12, 1)).metric_date.day == 1
        parsed = DailyMetric(campaign_id=1, metric_date="2024-12-01T18:30:00Z")
        assert parsed.metric_date == datetime(2024, 12, 1, tzinfo=timezone.utc)

    def test_negative_counters_rejected(self):
        with pytest.raises(ValidationError):
            DailyMetric(campaign_id=1, metric_date=FIXED_NOW, clicks=-1)


class TestIsoFormatting:
    """Millisecond precision, Z suffix"""

    def test_to_iso(self):
        value = datetime(2024, 12, 1, 8, 5, 3, 123456, tzinfo=timezone.utc)
        assert to_iso(value) == "2024-12-01T08:05:03.123Z"
        assert to_iso(date(2024, 12, 1)) == "2024-12-01T00:00:00.000Z"
        assert to_iso(None) is None
