"""
Ads Service Data Models

Pydantic models for campaigns, daily metrics, derived performance data,
compliance results, placements and insight history.

The campaign metadata bag is modelled as an explicit struct and is
normalised when payloads enter the service, not deep in business logic.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator, model_validator


# =============================================================================
# ENUMS
# =============================================================================


class CampaignStatus(str, Enum):
    """Campaign lifecycle status"""
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class CampaignObjective(str, Enum):
    """Campaign objective"""
    AWARENESS = "awareness"
    TRAFFIC = "traffic"
    LEADS = "leads"
    CONVERSIONS = "conversions"


class PlacementContext(str, Enum):
    """Display surface an ad can be placed in"""
    GLOBAL_FEED = "global_feed"
    COMMUNITY_FEED = "community_feed"
    SEARCH = "search"
    COURSE_LIVE = "course_live"


class ComplianceStatus(str, Enum):
    """Outcome of the compliance rule set"""
    PASS = "pass"
    NEEDS_REVIEW = "needs_review"
    HALTED = "halted"


class ViolationSeverity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"


class PacingStatus(str, Enum):
    """Observed spend versus daily budget"""
    UNBOUNDED = "unbounded"
    OVER = "over"
    UNDER = "under"
    ON_TRACK = "on_track"


class RecommendationType(str, Enum):
    CREATIVE = "creative"
    CONVERSION = "conversion"
    CONVERSION_TRACKING = "conversion_tracking"
    FUNNEL = "funnel"
    BUDGET = "budget"
    DELIVERY = "delivery"


class RecommendationSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class BrandSafetyCategory(str, Enum):
    STANDARD = "standard"
    EDUCATION = "education"
    FINANCIAL = "financial"
    YOUTH = "youth"
    SENSITIVE = "sensitive"


class PreviewTheme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


class PreviewAccent(str, Enum):
    PRIMARY = "primary"
    INDIGO = "indigo"
    EMERALD = "emerald"
    AMBER = "amber"


class ActorRole(str, Enum):
    ADMIN = "admin"
    INSTRUCTOR = "instructor"
    USER = "user"


# =============================================================================
# HELPERS
# =============================================================================


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC and convert aware ones to UTC"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_iso(value: Optional[Union[datetime, date]]) -> Optional[str]:
    """Format as ISO-8601 UTC with millisecond precision, e.g. 2024-12-01T00:00:00.000Z"""
    if value is None:
        return None
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    value = ensure_utc(value)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def unique_strings(values: Optional[List[str]], lower: bool = False) -> List[str]:
    """Strip, drop blanks and de-duplicate while keeping first-seen order"""
    result: List[str] = []
    seen = set()
    for raw in values or []:
        if raw is None:
            continue
        item = str(raw).strip()
        if lower:
            item = item.lower()
        if not item:
            continue
        key = item.lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(item)
    return result


# =============================================================================
# BASE MODELS
# =============================================================================


class BaseContract(BaseModel):
    """Base model for all contracts"""

    model_config = {
        "from_attributes": True,
    }


# =============================================================================
# METRIC MODELS
# =============================================================================


class MetricSummary(BaseContract):
    """Summed metric counters over a set of daily rows"""
    impressions: int = 0
    clicks: int = 0
    conversions: int = 0
    spend_cents: int = 0
    revenue_cents: int = 0
    last_metric_date: Optional[datetime] = None


class DailyMetric(BaseContract):
    """One metric row per campaign per UTC day"""
    campaign_id: int
    metric_date: datetime
    impressions: int = Field(default=0, ge=0)
    clicks: int = Field(default=0, ge=0)
    conversions: int = Field(default=0, ge=0)
    spend_cents: int = Field(default=0, ge=0)
    revenue_cents: int = Field(default=0, ge=0)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("metric_date", mode="before")
    @classmethod
    def truncate_to_day(cls, v):
        if isinstance(v, str):
            v = datetime.fromisoformat(v.replace("Z", "+00:00"))
        if isinstance(v, date) and not isinstance(v, datetime):
            v = datetime(v.year, v.month, v.day)
        v = ensure_utc(v)
        return v.replace(hour=0, minute=0, second=0, microsecond=0)


class RateSnapshot(BaseContract):
    """Counters plus the rates derived from them"""
    impressions: int = 0
    clicks: int = 0
    conversions: int = 0
    spend_cents: int = 0
    revenue_cents: int = 0
    ctr: float = 0.0
    conversion_rate: float = 0.0
    cpc_cents: int = 0
    cpa_cents: int = 0


class LifetimeMetrics(BaseContract):
    impressions: int = 0
    clicks: int = 0
    conversions: int = 0
    spend_cents: int = 0
    revenue_cents: int = 0
    last_recorded_at: Optional[str] = None


class AverageMetrics(BaseContract):
    ctr: float = 0.0
    conversion_rate: float = 0.0
    cpc_cents: int = 0
    cpa_cents: int = 0
    roas: Optional[float] = None


class Forecast(BaseContract):
    expected_daily_spend_cents: int = 0
    expected_daily_conversions: float = 0.0
    projected_roas: Optional[float] = None


class DerivedMetrics(BaseContract):
    """Ephemeral metrics recomputed on every read"""
    lifetime: LifetimeMetrics
    trailing: RateSnapshot
    averages: AverageMetrics
    forecast: Forecast
    days_active: int = Field(default=1, ge=1)
    performance_score: int = 0


# =============================================================================
# COMPLIANCE MODELS
# =============================================================================


class ComplianceViolation(BaseContract):
    code: str
    severity: ViolationSeverity
    message: str


class ComplianceResult(BaseContract):
    """Compliance status, risk score and ordered violations (criticals first)"""
    status: ComplianceStatus
    risk_score: int = Field(..., ge=5, le=95)
    violations: List[ComplianceViolation] = Field(default_factory=list)
    performance_score: int = 0


# =============================================================================
# CAMPAIGN MODELS
# =============================================================================


class Budget(BaseContract):
    currency: str = Field(default="USD", min_length=3, max_length=3)
    daily_cents: int = Field(default=0, ge=0)

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()


class Spend(BaseContract):
    currency: str = Field(default="USD", min_length=3, max_length=3)
    total_cents: int = Field(default=0, ge=0)


class Targeting(BaseContract):
    """Set-like ordered targeting lists"""
    keywords: List[str] = Field(default_factory=list)
    audiences: List[str] = Field(default_factory=list)
    locations: List[str] = Field(default_factory=list)
    languages: List[str] = Field(default_factory=lambda: ["en"])

    @field_validator("keywords", "audiences", "locations")
    @classmethod
    def dedupe(cls, v: List[str]) -> List[str]:
        return unique_strings(v)

    @field_validator("languages")
    @classmethod
    def normalise_languages(cls, v: List[str]) -> List[str]:
        languages = unique_strings(v, lower=True)
        return languages or ["en"]


class Creative(BaseContract):
    headline: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    asset: Optional[Dict[str, Any]] = None


class Schedule(BaseContract):
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None

    @field_validator("start_at", "end_at")
    @classmethod
    def normalise_dt(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    @model_validator(mode="after")
    def validate_order(self):
        if self.start_at and self.end_at and self.end_at < self.start_at:
            raise ValueError("End date must be after the start date")
        return self


class PlacementSlot(BaseContract):
    """Campaign-configured placement for one context"""
    context: PlacementContext
    slot: Optional[str] = Field(None, max_length=120)
    surface: Optional[str] = Field(None, max_length=120)
    label: Optional[str] = Field(None, max_length=160)


class BrandSafety(BaseContract):
    categories: List[BrandSafetyCategory] = Field(
        default_factory=lambda: [BrandSafetyCategory.STANDARD]
    )
    excluded_topics: List[str] = Field(default_factory=list)
    review_notes: Optional[str] = Field(None, max_length=500)

    @field_validator("categories")
    @classmethod
    def non_empty_categories(cls, v: List[BrandSafetyCategory]) -> List[BrandSafetyCategory]:
        unique = list(dict.fromkeys(v))
        return unique or [BrandSafetyCategory.STANDARD]

    @field_validator("excluded_topics")
    @classmethod
    def dedupe_topics(cls, v: List[str]) -> List[str]:
        return unique_strings(v)


class PreviewSettings(BaseContract):
    theme: PreviewTheme = PreviewTheme.LIGHT
    accent: PreviewAccent = PreviewAccent.PRIMARY


class Recommendation(BaseContract):
    id: str = Field(default_factory=lambda: f"rec_{uuid4().hex[:16]}")
    type: RecommendationType
    severity: RecommendationSeverity
    message: str
    action: str


class InsightTrends(BaseContract):
    ctr_change: Optional[float] = None
    conversion_rate_change: Optional[float] = None
    spend_change: Optional[float] = None
    sample_days: int = 0


class InsightPacing(BaseContract):
    status: PacingStatus
    avg_daily_spend_cents: int = 0
    budget_daily_cents: int = 0
    days_observed: int = 0


class InsightHistoryEntry(BaseContract):
    """Append-only audit record of one insight generation"""
    id: str = Field(default_factory=lambda: f"ins_{uuid4().hex[:16]}")
    generated_at: datetime
    actor_id: Optional[str] = None
    window_days: int
    summary: Dict[str, Any] = Field(default_factory=dict)
    trends: Dict[str, Any] = Field(default_factory=dict)
    pacing: Dict[str, Any] = Field(default_factory=dict)
    recommendations: List[Recommendation] = Field(default_factory=list, max_length=10)


class CampaignMetadata(BaseContract):
    """Typed replacement for the free-form campaign metadata blob"""
    placements: List[PlacementSlot] = Field(default_factory=list)
    brand_safety: BrandSafety = Field(default_factory=BrandSafety)
    preview: PreviewSettings = Field(default_factory=PreviewSettings)
    insights_history: List[InsightHistoryEntry] = Field(default_factory=list)
    last_compliance_status: Optional[ComplianceStatus] = None
    compliance_risk_score: Optional[int] = None
    compliance_violations: List[ComplianceViolation] = Field(default_factory=list)
    review_checklist: List[str] = Field(default_factory=list)
    landing_page: Optional[str] = None
    last_manual_action: Optional[str] = None
    last_manual_action_at: Optional[datetime] = None

    @field_validator("placements")
    @classmethod
    def unique_contexts(cls, v: List[PlacementSlot]) -> List[PlacementSlot]:
        return ensure_unique_contexts(v)


class Campaign(BaseContract):
    """Core ad campaign model"""
    id: int
    public_id: str = Field(default_factory=lambda: str(uuid4()))
    created_by: str
    name: str = Field(..., min_length=1, max_length=200)
    objective: CampaignObjective
    status: CampaignStatus = Field(default=CampaignStatus.DRAFT)

    budget: Budget = Field(default_factory=Budget)
    spend: Spend = Field(default_factory=Spend)

    # Stored performance snapshot, synced on hydration
    performance_score: int = 0
    ctr: float = 0.0
    cpc_cents: int = 0
    cpa_cents: int = 0

    targeting: Targeting = Field(default_factory=Targeting)
    creative: Creative = Field(default_factory=Creative)
    schedule: Schedule = Field(default_factory=Schedule)
    metadata: CampaignMetadata = Field(default_factory=CampaignMetadata)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def placement_for(self, context: PlacementContext) -> Optional[PlacementSlot]:
        for placement in self.metadata.placements:
            if placement.context == context:
                return placement
        return None


# =============================================================================
# PLACEMENT MODELS
# =============================================================================


class PlacementTracking(BaseContract):
    impression_key: str
    request_id: str


class PlacementMetrics(BaseContract):
    performance_score: int = 0
    ctr: float = 0.0
    cpc_cents: int = 0
    cpa_cents: int = 0
    spend_cents: int = 0
    score: float = 0.0


class Placement(BaseContract):
    """A single ad slot instance for a context and position"""
    placement_id: str
    campaign_id: str
    context: PlacementContext
    slot: str
    surface: Optional[str] = None
    label: Optional[str] = None
    position: int = Field(..., ge=1)
    headline: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    asset: Optional[Dict[str, Any]] = None
    objective: CampaignObjective
    metrics: PlacementMetrics
    tracking: PlacementTracking
    targeting: Targeting


class FeedEntry(BaseContract):
    kind: str
    post: Optional[Dict[str, Any]] = None
    ad: Optional[Placement] = None


class ServedPlacement(BaseContract):
    placement_id: str
    campaign_id: str
    slot: str
    position: int
    headline: Optional[str] = None
    context: PlacementContext
    tracking: PlacementTracking


class AdsSummary(BaseContract):
    count: int = 0
    placements: List[ServedPlacement] = Field(default_factory=list)


class DecoratedFeed(BaseContract):
    items: List[FeedEntry] = Field(default_factory=list)
    ads: AdsSummary = Field(default_factory=AdsSummary)


class CampaignSpotlight(BaseContract):
    id: str
    name: str
    status: CampaignStatus
    objective: CampaignObjective
    metrics: Dict[str, Any] = Field(default_factory=dict)
    targeting: Targeting
    schedule: Dict[str, Optional[str]] = Field(default_factory=dict)
    timestamp: str


class SpotlightResult(BaseContract):
    """Best-effort lookup outcome; degraded means the store call failed"""
    items: List[CampaignSpotlight] = Field(default_factory=list)
    degraded: bool = False


# =============================================================================
# ACTOR / REQUEST MODELS
# =============================================================================


class Actor(BaseContract):
    id: str = Field(..., min_length=1)
    role: ActorRole = ActorRole.USER

    @property
    def is_admin(self) -> bool:
        return self.role == ActorRole.ADMIN


def coerce_placement_entries(values: Optional[List[Any]]) -> List[Any]:
    """Turn bare context strings into slot payloads; objects pass through"""
    if values is None:
        return []
    if not isinstance(values, list):
        raise ValueError("Placements must be a list")
    entries: List[Any] = []
    for value in values:
        if isinstance(value, (str, PlacementContext)):
            entries.append({"context": value})
        elif isinstance(value, (dict, PlacementSlot)):
            entries.append(value)
        else:
            raise ValueError(f"Unsupported placement entry: {value!r}")
    return entries


def ensure_unique_contexts(placements: List[PlacementSlot]) -> List[PlacementSlot]:
    contexts = [slot.context for slot in placements]
    if len(contexts) != len(set(contexts)):
        raise ValueError("Placement contexts must be unique")
    return placements


def require_search_keywords(placements: List[PlacementSlot], keywords: List[str]) -> None:
    if any(p.context == PlacementContext.SEARCH for p in placements) and not keywords:
        raise ValueError("Search placements require at least one targeting keyword")


class CreativeInput(BaseContract):
    headline: str = Field(..., min_length=6, max_length=160)
    description: Optional[str] = Field(None, max_length=500)
    url: str = Field(..., min_length=1)
    asset: Optional[Dict[str, Any]] = None

    @field_validator("headline")
    @classmethod
    def strip_headline(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 6:
            raise ValueError("Headline must be at least 6 characters")
        return v

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("Creative URL must be an absolute http(s) URL")
        return v


class BudgetInput(Budget):
    daily_cents: int = Field(..., ge=1000, le=20_000_000)


class CampaignCreateRequest(BaseContract):
    """Campaign creation request"""
    name: str = Field(..., min_length=1, max_length=200)
    objective: CampaignObjective
    status: CampaignStatus = CampaignStatus.DRAFT
    budget: BudgetInput
    targeting: Targeting = Field(default_factory=Targeting)
    creative: CreativeInput
    schedule: Schedule = Field(default_factory=Schedule)
    placements: List[PlacementSlot] = Field(default_factory=list)
    brand_safety: BrandSafety = Field(default_factory=BrandSafety)
    preview: PreviewSettings = Field(default_factory=PreviewSettings)
    review_checklist: List[str] = Field(default_factory=list)

    @field_validator("placements", mode="before")
    @classmethod
    def parse_placements(cls, v):
        return coerce_placement_entries(v)

    @field_validator("placements")
    @classmethod
    def unique_placements(cls, v: List[PlacementSlot]) -> List[PlacementSlot]:
        return ensure_unique_contexts(v)

    @field_validator("status")
    @classmethod
    def initial_status(cls, v: CampaignStatus) -> CampaignStatus:
        if v in (CampaignStatus.COMPLETED, CampaignStatus.ARCHIVED):
            raise ValueError("Campaigns cannot be created as completed or archived")
        return v

    @model_validator(mode="after")
    def validate_placement_targeting(self):
        require_search_keywords(self.placements, self.targeting.keywords)
        return self


class CampaignUpdateRequest(BaseContract):
    """Partial campaign update; omitted fields are left unchanged"""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    objective: Optional[CampaignObjective] = None
    status: Optional[CampaignStatus] = None
    budget: Optional[BudgetInput] = None
    targeting: Optional[Targeting] = None
    creative: Optional[CreativeInput] = None
    schedule: Optional[Schedule] = None
    placements: Optional[List[PlacementSlot]] = None
    brand_safety: Optional[BrandSafety] = None
    preview: Optional[PreviewSettings] = None
    review_checklist: Optional[List[str]] = None

    @field_validator("placements", mode="before")
    @classmethod
    def parse_placements(cls, v):
        if v is None:
            return None
        return coerce_placement_entries(v)

    @field_validator("placements")
    @classmethod
    def unique_placements(cls, v: Optional[List[PlacementSlot]]) -> Optional[List[PlacementSlot]]:
        if v is None:
            return None
        return ensure_unique_contexts(v)


class MetricRecordRequest(BaseContract):
    metric_date: Optional[datetime] = None
    impressions: int = Field(..., ge=0)
    clicks: int = Field(..., ge=0)
    conversions: int = Field(..., ge=0)
    spend_cents: int = Field(..., ge=0)
    revenue_cents: Optional[int] = Field(None, ge=0)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class FeedMetadata(BaseContract):
    keywords: List[str] = Field(default_factory=list)
    blocked_placement_ids: List[str] = Field(default_factory=list)


class DecorateFeedRequest(BaseContract):
    """Page of posts to interleave with placements"""

    posts: List[Dict[str, Any]] = Field(default_factory=list)
    context: PlacementContext = PlacementContext.GLOBAL_FEED
    page: int = Field(1, ge=1)
    per_page: Optional[int] = Field(None, ge=1)
    metadata: FeedMetadata = Field(default_factory=FeedMetadata)


class CampaignFilters(BaseContract):
    status: Optional[List[CampaignStatus]] = None
    search: Optional[str] = Field(None, max_length=120)
    created_by: Optional[str] = None


class Pagination(BaseContract):
    page: int = 1
    limit: int = 20
    total: int = 0
    total_pages: int = 0


# =============================================================================
# RESPONSE MODELS
# =============================================================================


class CampaignMetricsView(BaseContract):
    lifetime: Dict[str, Any]
    trailing_7_days: RateSnapshot
    forecast: Forecast


class CampaignView(BaseContract):
    """Hydrated campaign returned to callers"""
    id: str
    internal_id: int
    name: str
    objective: CampaignObjective
    status: CampaignStatus
    performance_score: int
    budget: Budget
    spend: Spend
    metrics: CampaignMetricsView
    targeting: Targeting
    creative: Creative
    schedule: Dict[str, Optional[str]]
    compliance: ComplianceResult
    placements: List[PlacementSlot] = Field(default_factory=list)
    brand_safety: BrandSafety
    preview: PreviewSettings
    created_by: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class CampaignListResult(BaseContract):
    data: List[CampaignView] = Field(default_factory=list)
    pagination: Pagination


class DailyInsight(BaseContract):
    date: str
    impressions: int
    clicks: int
    conversions: int
    spend_cents: int
    revenue_cents: int
    ctr: float
    conversion_rate: float
    cpc_cents: int
    cpa_cents: int


class InsightHighlights(BaseContract):
    top_ctr_day: Optional[DailyInsight] = None
    top_conversion_day: Optional[DailyInsight] = None


class InsightsPayload(BaseContract):
    summary: RateSnapshot
    daily: List[DailyInsight] = Field(default_factory=list)
    trends: InsightTrends
    pacing: InsightPacing
    highlights: InsightHighlights
    recommendations: List[Recommendation] = Field(default_factory=list)
    history: List[InsightHistoryEntry] = Field(default_factory=list)


__all__ = [
    # Enums
    "CampaignStatus",
    "CampaignObjective",
    "PlacementContext",
    "ComplianceStatus",
    "ViolationSeverity",
    "PacingStatus",
    "RecommendationType",
    "RecommendationSeverity",
    "BrandSafetyCategory",
    "PreviewTheme",
    "PreviewAccent",
    "ActorRole",
    # Helpers
    "utc_now",
    "ensure_utc",
    "to_iso",
    "unique_strings",
    "coerce_placement_entries",
    "ensure_unique_contexts",
    "require_search_keywords",
    # Metrics
    "MetricSummary",
    "DailyMetric",
    "RateSnapshot",
    "LifetimeMetrics",
    "AverageMetrics",
    "Forecast",
    "DerivedMetrics",
    # Compliance
    "ComplianceViolation",
    "ComplianceResult",
    # Campaign
    "Budget",
    "Spend",
    "Targeting",
    "Creative",
    "Schedule",
    "PlacementSlot",
    "BrandSafety",
    "PreviewSettings",
    "CampaignMetadata",
    "Campaign",
    # Placement
    "PlacementTracking",
    "PlacementMetrics",
    "Placement",
    "FeedEntry",
    "ServedPlacement",
    "AdsSummary",
    "DecoratedFeed",
    "CampaignSpotlight",
    "SpotlightResult",
    # Insights
    "Recommendation",
    "InsightTrends",
    "InsightPacing",
    "InsightHistoryEntry",
    "DailyInsight",
    "InsightHighlights",
    "InsightsPayload",
    # Requests
    "Actor",
    "CreativeInput",
    "BudgetInput",
    "CampaignCreateRequest",
    "CampaignUpdateRequest",
    "MetricRecordRequest",
    "FeedMetadata",
    "DecorateFeedRequest",
    "CampaignFilters",
    "Pagination",
    # Responses
    "CampaignMetricsView",
    "CampaignView",
    "CampaignListResult",
]
