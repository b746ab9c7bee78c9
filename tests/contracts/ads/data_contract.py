"""
Ads Service Data Contract

Test data factories for the Ads Service. The pydantic models themselves
live in microservices.ads_service.models and are re-exported here so tests
import everything from one place.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from microservices.ads_service.models import (
    Actor,
    ActorRole,
    AverageMetrics,
    Budget,
    Campaign,
    CampaignCreateRequest,
    CampaignMetadata,
    CampaignObjective,
    CampaignStatus,
    ComplianceStatus,
    Creative,
    DailyInsight,
    DailyMetric,
    DerivedMetrics,
    Forecast,
    LifetimeMetrics,
    MetricSummary,
    PacingStatus,
    PlacementContext,
    PlacementSlot,
    RateSnapshot,
    Schedule,
    Spend,
    Targeting,
)


FIXED_NOW = datetime(2024, 12, 10, 12, 0, 0, tzinfo=timezone.utc)


class FixedClock:
    """Deterministic clock; call it to read the current instant"""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class AdsTestDataFactory:
    """Factory for generating test data for ads service tests

    Usage:
        factory = AdsTestDataFactory()
        campaign = factory.make_campaign(status=CampaignStatus.ACTIVE)
        payload = factory.make_create_payload()
        series = factory.make_metric_series(campaign_id=1, days=14)
    """

    @staticmethod
    def make_user_id() -> str:
        """Generate user ID"""
        return f"usr_{uuid4().hex[:16]}"

    @staticmethod
    def make_public_id() -> str:
        return str(uuid4())

    @classmethod
    def make_actor(cls, user_id: Optional[str] = None, role: ActorRole = ActorRole.INSTRUCTOR) -> Actor:
        return Actor(id=user_id or cls.make_user_id(), role=role)

    @classmethod
    def make_admin(cls) -> Actor:
        return Actor(id=cls.make_user_id(), role=ActorRole.ADMIN)

    @staticmethod
    def make_creative(
        headline: Optional[str] = "Master data science in 30 days",
        description: Optional[str] = "Live cohort with weekly mentoring sessions.",
        url: Optional[str] = "https://example.com/cohort",
    ) -> Creative:
        return Creative(headline=headline, description=description, url=url)

    @classmethod
    def make_campaign_record(
        cls,
        created_by: Optional[str] = None,
        name: str = "Winter Data Science Cohort",
        objective: CampaignObjective = CampaignObjective.CONVERSIONS,
        status: CampaignStatus = CampaignStatus.ACTIVE,
        daily_cents: int = 50_000,
        keywords: Optional[List[str]] = None,
        creative: Optional[Creative] = None,
        start_at: Optional[datetime] = None,
        end_at: Optional[datetime] = None,
        placements: Optional[List[PlacementSlot]] = None,
        performance_score: int = 0,
        ctr: float = 0.0,
        public_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Store-ready campaign dict, without an internal ID"""
        record = {
            "created_by": created_by or cls.make_user_id(),
            "name": name,
            "objective": objective,
            "status": status,
            "budget": Budget(currency="USD", daily_cents=daily_cents),
            "spend": Spend(currency="USD", total_cents=0),
            "performance_score": performance_score,
            "ctr": ctr,
            "targeting": Targeting(keywords=["data science"] if keywords is None else keywords),
            "creative": creative or cls.make_creative(),
            "schedule": Schedule(start_at=start_at, end_at=end_at),
            "metadata": CampaignMetadata(placements=placements or []),
        }
        if public_id:
            record["public_id"] = public_id
        return record

    @classmethod
    def make_campaign(cls, campaign_id: int = 1, **overrides) -> Campaign:
        record = cls.make_campaign_record(**overrides)
        record["id"] = campaign_id
        return Campaign.model_validate(
            {k: v.model_dump() if hasattr(v, "model_dump") else v for k, v in record.items()}
        )

    @staticmethod
    def make_create_payload(**overrides) -> Dict[str, Any]:
        """Raw create payload as a caller would send it"""
        payload: Dict[str, Any] = {
            "name": "Winter Data Science Cohort",
            "objective": "conversions",
            "status": "draft",
            "budget": {"currency": "usd", "daily_cents": 50_000},
            "targeting": {"keywords": ["data science", "python"]},
            "creative": {
                "headline": "Master data science in 30 days",
                "description": "Live cohort with weekly mentoring sessions.",
                "url": "https://example.com/cohort",
            },
            "placements": ["global_feed"],
        }
        payload.update(overrides)
        return payload

    @staticmethod
    def make_summary(
        impressions: int = 0,
        clicks: int = 0,
        conversions: int = 0,
        spend_cents: int = 0,
        revenue_cents: int = 0,
        last_metric_date: Optional[datetime] = None,
    ) -> MetricSummary:
        return MetricSummary(
            impressions=impressions,
            clicks=clicks,
            conversions=conversions,
            spend_cents=spend_cents,
            revenue_cents=revenue_cents,
            last_metric_date=last_metric_date,
        )

    @staticmethod
    def make_derived(
        ctr: float = 0.0,
        conversion_rate: float = 0.0,
        roas: Optional[float] = None,
        expected_daily_spend_cents: int = 0,
        impressions: int = 0,
        spend_cents: int = 0,
        trailing_clicks: int = 0,
        trailing_conversions: int = 0,
        days_active: int = 1,
    ) -> DerivedMetrics:
        """Hand-built derived metrics for scorer and compliance tests"""
        return DerivedMetrics(
            lifetime=LifetimeMetrics(impressions=impressions, spend_cents=spend_cents),
            trailing=RateSnapshot(clicks=trailing_clicks, conversions=trailing_conversions),
            averages=AverageMetrics(ctr=ctr, conversion_rate=conversion_rate, roas=roas),
            forecast=Forecast(expected_daily_spend_cents=expected_daily_spend_cents),
            days_active=days_active,
        )

    @staticmethod
    def make_daily_metric(
        campaign_id: int = 1,
        metric_date: datetime = FIXED_NOW,
        impressions: int = 1000,
        clicks: int = 50,
        conversions: int = 5,
        spend_cents: int = 10_000,
        revenue_cents: int = 20_000,
    ) -> DailyMetric:
        return DailyMetric(
            campaign_id=campaign_id,
            metric_date=metric_date,
            impressions=impressions,
            clicks=clicks,
            conversions=conversions,
            spend_cents=spend_cents,
            revenue_cents=revenue_cents,
        )

    @classmethod
    def make_metric_series(
        cls,
        campaign_id: int = 1,
        days: int = 14,
        end: datetime = FIXED_NOW,
        **metrics,
    ) -> List[DailyMetric]:
        """Ascending series of identical days ending at end"""
        return [
            cls.make_daily_metric(
                campaign_id=campaign_id,
                metric_date=end - timedelta(days=days - 1 - offset),
                **metrics,
            )
            for offset in range(days)
        ]

    @staticmethod
    def make_trend_series(campaign_id: int = 1) -> List[DailyMetric]:
        """Two-day series with known totals: 90750 impressions, 3828 clicks, 77700 spend"""
        return [
            DailyMetric(
                campaign_id=campaign_id,
                metric_date=datetime(2024, 12, 1, tzinfo=timezone.utc),
                impressions=42000,
                clicks=1764,
                conversions=88,
                spend_cents=36000,
                revenue_cents=90000,
            ),
            DailyMetric(
                campaign_id=campaign_id,
                metric_date=datetime(2024, 12, 2, tzinfo=timezone.utc),
                impressions=48750,
                clicks=2064,
                conversions=96,
                spend_cents=41700,
                revenue_cents=100000,
            ),
        ]

    @staticmethod
    def make_posts(count: int) -> List[Dict[str, Any]]:
        return [{"id": f"post_{index}", "title": f"Post {index}"} for index in range(count)]


__all__ = [
    "FIXED_NOW",
    "FixedClock",
    "AdsTestDataFactory",
    # Re-exported models
    "Actor",
    "ActorRole",
    "Campaign",
    "CampaignCreateRequest",
    "CampaignObjective",
    "CampaignStatus",
    "ComplianceStatus",
    "Creative",
    "DailyInsight",
    "DailyMetric",
    "DerivedMetrics",
    "MetricSummary",
    "PacingStatus",
    "PlacementContext",
    "PlacementSlot",
]
