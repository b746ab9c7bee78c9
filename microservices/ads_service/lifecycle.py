"""
Lifecycle Transitioner

Advances campaigns through time-driven states and applies the
compliance-driven auto-pause. Every transition is idempotent: running it
again on an already-transitioned campaign changes nothing.
"""

import logging
from typing import Any, Dict, Optional

from .events.models import ADS_CAMPAIGN_ENTITY, AdsEventType, LifecycleEventData
from .models import Campaign, CampaignStatus, ComplianceResult, ComplianceStatus, utc_now
from .protocols import CampaignStoreProtocol, Clock, EventRecorderProtocol

logger = logging.getLogger(__name__)


class LifecycleTransitioner:
    """Applies status transitions during campaign hydration"""

    def __init__(
        self,
        repository: CampaignStoreProtocol,
        event_recorder: Optional[EventRecorderProtocol] = None,
        clock: Optional[Clock] = None,
    ):
        self.repository = repository
        self.event_recorder = event_recorder
        self.clock = clock or utc_now

    async def apply_schedule_transitions(self, campaign: Campaign) -> Campaign:
        """active -> completed once end_at has passed; scheduled -> active once start_at arrives"""
        now = self.clock()
        end_at = campaign.schedule.end_at
        start_at = campaign.schedule.start_at

        if campaign.status == CampaignStatus.ACTIVE and end_at and end_at < now:
            campaign = await self.repository.update_campaign(
                campaign.id, {"status": CampaignStatus.COMPLETED}
            )
            await self._record(campaign, AdsEventType.COMPLETED, "schedule_complete")
            logger.info(f"Campaign completed on schedule: {campaign.public_id}")

        if campaign.status == CampaignStatus.SCHEDULED and start_at and start_at <= now:
            campaign = await self.repository.update_campaign(
                campaign.id, {"status": CampaignStatus.ACTIVE}
            )
            await self._record(campaign, AdsEventType.ACTIVATED, "schedule_start")
            logger.info(f"Campaign activated on schedule: {campaign.public_id}")

        return campaign

    async def apply_compliance_pause(
        self,
        campaign: Campaign,
        compliance: ComplianceResult,
        updates: Optional[Dict[str, Any]] = None,
    ) -> Campaign:
        """
        Persist pending updates, pausing the campaign when compliance halted it.

        Args:
            campaign: Campaign being hydrated
            compliance: Fresh compliance result
            updates: Other field updates to write in the same call

        Returns:
            The campaign as stored after the update
        """
        updates = dict(updates or {})

        if compliance.status == ComplianceStatus.HALTED and campaign.status == CampaignStatus.ACTIVE:
            updates["status"] = CampaignStatus.PAUSED
            logger.warning(
                f"Auto-pausing campaign after compliance failure: {campaign.public_id}"
            )
            await self._record(campaign, AdsEventType.AUTO_PAUSED, "compliance_violation")

        if not updates:
            logger.debug(f"No lifecycle changes for campaign {campaign.public_id}")
            return campaign

        return await self.repository.update_campaign(campaign.id, updates)

    async def _record(self, campaign: Campaign, event_type: AdsEventType, reason: str) -> None:
        if not self.event_recorder:
            return
        try:
            await self.event_recorder.record(
                entity_type=ADS_CAMPAIGN_ENTITY,
                entity_id=str(campaign.id),
                event_type=event_type.value,
                payload=LifecycleEventData(reason=reason).model_dump(),
                performed_by=None,
            )
        except Exception as e:
            logger.error(f"Failed to record {event_type.value}: {e}")


__all__ = ["LifecycleTransitioner"]
