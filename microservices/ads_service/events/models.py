"""
Ads Event Data Models

Event type definitions and data structures for ads service events.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field


ADS_CAMPAIGN_ENTITY = "ads_campaign"


# =============================================================================
# Event Type Definitions
# =============================================================================


class AdsEventType(str, Enum):
    """
    Events recorded by ads_service.

    These are the authoritative event types for this service.
    Other services should reference these when subscribing.
    """
    # Mutations
    CREATED = "ads.campaign.created"
    UPDATED = "ads.campaign.updated"
    PAUSED = "ads.campaign.paused"
    RESUMED = "ads.campaign.resumed"
    METRICS_RECORDED = "ads.campaign.metrics_recorded"

    # Lifecycle transitions
    ACTIVATED = "ads.campaign.activated"
    COMPLETED = "ads.campaign.completed"
    AUTO_PAUSED = "ads.campaign.auto-paused"


# =============================================================================
# Event Records
# =============================================================================


class DomainEventRecord(BaseModel):
    """Audit log entry for one domain event"""
    id: str = Field(default_factory=lambda: f"evt_{uuid4().hex[:16]}")
    entity_type: str
    entity_id: str
    event_type: str
    payload: Dict[str, Any] = Field(default_factory=dict)
    performed_by: Optional[str] = None
    source: str = "ads_service"
    timestamp: datetime


class CampaignUpdatedEventData(BaseModel):
    changed_fields: List[str] = Field(default_factory=list)


class CampaignPausedEventData(BaseModel):
    reason: str = "manual_pause"


class MetricsRecordedEventData(BaseModel):
    metric_date: str
    impressions: int
    clicks: int
    conversions: int
    spend_cents: int


class LifecycleEventData(BaseModel):
    """Payload for time- or compliance-driven transitions"""
    reason: str


__all__ = [
    "ADS_CAMPAIGN_ENTITY",
    "AdsEventType",
    "DomainEventRecord",
    "CampaignUpdatedEventData",
    "CampaignPausedEventData",
    "MetricsRecordedEventData",
    "LifecycleEventData",
]
