"""
Ads Service Protocols

Defines collaborator interfaces for dependency injection and testing,
plus the error hierarchy raised by the ads core.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Protocol

from .models import (
    Campaign,
    CampaignStatus,
    DailyMetric,
    MetricSummary,
)


Clock = Callable[[], datetime]


# ====================
# Store Protocols
# ====================


class CampaignStoreProtocol(Protocol):
    """Protocol for campaign persistence"""

    async def list_campaigns(
        self,
        status: Optional[List[CampaignStatus]] = None,
        created_by: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
        order_by: str = "updated_at",
        descending: bool = True,
    ) -> List[Campaign]:
        """List campaigns matching filters"""
        ...

    async def count_campaigns(
        self,
        status: Optional[List[CampaignStatus]] = None,
        created_by: Optional[str] = None,
        search: Optional[str] = None,
    ) -> int:
        """Count campaigns matching filters"""
        ...

    async def get_campaign_by_public_id(self, public_id: str) -> Optional[Campaign]:
        """Get campaign by public ID"""
        ...

    async def create_campaign(self, campaign: Dict[str, Any]) -> Campaign:
        """Insert a campaign and return it with its assigned internal ID"""
        ...

    async def update_campaign(self, campaign_id: int, updates: Dict[str, Any]) -> Campaign:
        """Atomic field-level partial update"""
        ...


class MetricStoreProtocol(Protocol):
    """Protocol for daily metric aggregation"""

    async def upsert_daily(
        self, campaign_id: int, metric_date: datetime, metrics: Dict[str, Any]
    ) -> DailyMetric:
        """Insert or merge the row keyed by (campaign_id, metric_date)"""
        ...

    async def list_by_campaign(self, campaign_id: int, limit: int = 14) -> List[DailyMetric]:
        """Most recent rows for a campaign, newest first"""
        ...

    async def summarise_by_campaign_ids(
        self,
        campaign_ids: List[int],
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Dict[int, MetricSummary]:
        """SUM of metrics per campaign, optionally date-bounded"""
        ...

    async def summarise_window(
        self, campaign_id: int, window_days: int, now: datetime
    ) -> MetricSummary:
        """SUM of the most recent window_days days ending at now"""
        ...


# ====================
# Event Protocols
# ====================


class EventRecorderProtocol(Protocol):
    """Fire-and-forget audit log"""

    async def record(
        self,
        entity_type: str,
        entity_id: str,
        event_type: str,
        payload: Dict[str, Any],
        performed_by: Optional[str] = None,
    ) -> bool:
        """Append a domain event"""
        ...


class EventBusProtocol(Protocol):
    """Protocol for event bus operations"""

    async def publish_event(self, event: Any) -> bool:
        """Publish an event to the event bus"""
        ...

    async def close(self) -> None:
        """Close event bus connection"""
        ...


# ====================
# Custom Exceptions
# ====================


class ErrorKind(str, Enum):
    """Failure kinds the transport layer maps onto its own status codes"""
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    VALIDATION_FAILED = "validation_failed"


class AdsServiceError(Exception):
    """Base exception for ads service errors"""

    kind: ErrorKind = ErrorKind.VALIDATION_FAILED

    def __init__(self, message: str, kind: Optional[ErrorKind] = None):
        super().__init__(message)
        if kind is not None:
            self.kind = kind


class UnauthenticatedError(AdsServiceError):
    """Raised when no actor identity is supplied"""

    kind = ErrorKind.UNAUTHENTICATED


class ForbiddenError(AdsServiceError):
    """Raised when the actor may not manage the campaign"""

    kind = ErrorKind.FORBIDDEN


class CampaignNotFoundError(AdsServiceError):
    """Raised when campaign is not found"""

    kind = ErrorKind.NOT_FOUND


class CampaignValidationError(AdsServiceError):
    """Raised when campaign validation fails"""

    kind = ErrorKind.VALIDATION_FAILED

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


__all__ = [
    "Clock",
    "CampaignStoreProtocol",
    "MetricStoreProtocol",
    "EventRecorderProtocol",
    "EventBusProtocol",
    "ErrorKind",
    "AdsServiceError",
    "UnauthenticatedError",
    "ForbiddenError",
    "CampaignNotFoundError",
    "CampaignValidationError",
]
