"""
Ads Service Events

Event models and publisher for ads service.
"""

from .models import (
    ADS_CAMPAIGN_ENTITY,
    AdsEventType,
    DomainEventRecord,
    CampaignUpdatedEventData,
    CampaignPausedEventData,
    MetricsRecordedEventData,
    LifecycleEventData,
)
from .publishers import AdsEventPublisher

__all__ = [
    # Event Types
    "ADS_CAMPAIGN_ENTITY",
    "AdsEventType",
    # Event Data Models
    "DomainEventRecord",
    "CampaignUpdatedEventData",
    "CampaignPausedEventData",
    "MetricsRecordedEventData",
    "LifecycleEventData",
    # Publisher
    "AdsEventPublisher",
]
