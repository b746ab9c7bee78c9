"""
Ads Service Data Repository

In-memory campaign and metric stores. They satisfy the store protocols and
back the default factory wiring and the test suites; a database-backed
store plugs in through the same interfaces.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from itertools import count
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel

from .models import (
    Campaign,
    CampaignStatus,
    DailyMetric,
    MetricSummary,
    ensure_utc,
    utc_now,
)

logger = logging.getLogger(__name__)

ORDERABLE_FIELDS = ("updated_at", "created_at", "performance_score", "name", "id")


def _dump(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump()
    if isinstance(value, list):
        return [_dump(item) for item in value]
    return value


class InMemoryCampaignRepository:
    """Campaign store keyed by internal ID"""

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self.clock = clock or utc_now
        self._campaigns: Dict[int, Campaign] = {}
        self._ids = count(1)
        self._lock = asyncio.Lock()
        self.calls: List[Tuple[str, Any]] = []

    def _matches(
        self,
        campaign: Campaign,
        status: Optional[List[CampaignStatus]],
        created_by: Optional[str],
        search: Optional[str],
    ) -> bool:
        if status and campaign.status not in status:
            return False
        if created_by and campaign.created_by != created_by:
            return False
        if search:
            needle = search.lower()
            haystacks = [campaign.name, campaign.creative.headline or ""]
            if not any(needle in text.lower() for text in haystacks):
                return False
        return True

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
        self.calls.append(("list_campaigns", {"status": status, "order_by": order_by}))
        if order_by not in ORDERABLE_FIELDS:
            raise ValueError(f"Cannot order campaigns by {order_by}")
        rows = [
            campaign for campaign in self._campaigns.values()
            if self._matches(campaign, status, created_by, search)
        ]
        rows.sort(key=lambda c: getattr(c, order_by), reverse=descending)
        return [row.model_copy(deep=True) for row in rows[offset:offset + limit]]

    async def count_campaigns(
        self,
        status: Optional[List[CampaignStatus]] = None,
        created_by: Optional[str] = None,
        search: Optional[str] = None,
    ) -> int:
        return sum(
            1 for campaign in self._campaigns.values()
            if self._matches(campaign, status, created_by, search)
        )

    async def get_campaign_by_public_id(self, public_id: str) -> Optional[Campaign]:
        for campaign in self._campaigns.values():
            if campaign.public_id == public_id:
                return campaign.model_copy(deep=True)
        return None

    async def create_campaign(self, campaign: Dict[str, Any]) -> Campaign:
        self.calls.append(("create_campaign", campaign.get("name")))
        async with self._lock:
            now = self.clock()
            data = {key: _dump(value) for key, value in campaign.items()}
            data["id"] = next(self._ids)
            data.setdefault("created_at", now)
            data.setdefault("updated_at", now)
            created = Campaign.model_validate(data)
            self._campaigns[created.id] = created
        logger.debug(f"Stored campaign {created.public_id} as {created.id}")
        return created.model_copy(deep=True)

    async def update_campaign(self, campaign_id: int, updates: Dict[str, Any]) -> Campaign:
        self.calls.append(("update_campaign", {"id": campaign_id, "fields": sorted(updates)}))
        async with self._lock:
            current = self._campaigns.get(campaign_id)
            if current is None:
                raise KeyError(f"Campaign {campaign_id} does not exist")
            data = current.model_dump()
            for key, value in updates.items():
                data[key] = _dump(value)
            data["updated_at"] = self.clock()
            updated = Campaign.model_validate(data)
            self._campaigns[campaign_id] = updated
        return updated.model_copy(deep=True)


class InMemoryMetricRepository:
    """Daily metric rows keyed by (campaign_id, UTC day)"""

    def __init__(self):
        self._rows: Dict[Tuple[int, datetime], DailyMetric] = {}
        self._lock = asyncio.Lock()

    async def upsert_daily(
        self, campaign_id: int, metric_date: datetime, metrics: Dict[str, Any]
    ) -> DailyMetric:
        """Insert or merge; counters supplied by the caller replace the stored ones"""
        row = DailyMetric(campaign_id=campaign_id, metric_date=metric_date)
        key = (campaign_id, row.metric_date)
        async with self._lock:
            existing = self._rows.get(key)
            data = existing.model_dump() if existing else row.model_dump()
            for field in ("impressions", "clicks", "conversions", "spend_cents", "revenue_cents"):
                value = metrics.get(field)
                if value is not None:
                    data[field] = value
            data["metadata"] = {**data.get("metadata", {}), **(metrics.get("metadata") or {})}
            stored = DailyMetric.model_validate(data)
            self._rows[key] = stored
        return stored

    async def list_by_campaign(self, campaign_id: int, limit: int = 14) -> List[DailyMetric]:
        rows = [row for (cid, _), row in self._rows.items() if cid == campaign_id]
        rows.sort(key=lambda r: r.metric_date, reverse=True)
        return rows[:limit]

    def _summarise(self, rows: List[DailyMetric]) -> MetricSummary:
        summary = MetricSummary()
        for row in rows:
            summary.impressions += row.impressions
            summary.clicks += row.clicks
            summary.conversions += row.conversions
            summary.spend_cents += row.spend_cents
            summary.revenue_cents += row.revenue_cents
            if summary.last_metric_date is None or row.metric_date > summary.last_metric_date:
                summary.last_metric_date = row.metric_date
        return summary

    async def summarise_by_campaign_ids(
        self,
        campaign_ids: List[int],
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Dict[int, MetricSummary]:
        start = ensure_utc(start)
        end = ensure_utc(end)
        grouped: Dict[int, List[DailyMetric]] = {cid: [] for cid in campaign_ids}
        for (cid, day), row in self._rows.items():
            if cid not in grouped:
                continue
            if start and day < start:
                continue
            if end and day > end:
                continue
            grouped[cid].append(row)
        return {cid: self._summarise(rows) for cid, rows in grouped.items()}

    async def summarise_window(
        self, campaign_id: int, window_days: int, now: datetime
    ) -> MetricSummary:
        now = ensure_utc(now)
        today = now.replace(hour=0, minute=0, second=0, microsecond=0)
        start = today - timedelta(days=max(1, window_days) - 1)
        summaries = await self.summarise_by_campaign_ids([campaign_id], start=start, end=now)
        return summaries[campaign_id]


__all__ = ["InMemoryCampaignRepository", "InMemoryMetricRepository"]
