"""
Ads Service Business Logic

Implements campaign management, hydration (derived metrics, compliance,
scoring and lifecycle transitions), daily metric ingestion and insights.
"""

import logging
import math
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from .compliance import evaluate_compliance
from .derived_metrics import compute_derived_metrics
from .events.models import (
    ADS_CAMPAIGN_ENTITY,
    AdsEventType,
    CampaignPausedEventData,
    CampaignUpdatedEventData,
    MetricsRecordedEventData,
)
from .insights import (
    append_history,
    build_history_entry,
    build_recommendations,
    compute_highlights,
    compute_pacing,
    compute_trends,
    daily_insight,
    summarise_series,
)
from .lifecycle import LifecycleTransitioner
from .models import (
    Actor,
    Budget,
    Campaign,
    CampaignCreateRequest,
    CampaignFilters,
    CampaignListResult,
    CampaignMetadata,
    CampaignMetricsView,
    CampaignStatus,
    CampaignUpdateRequest,
    CampaignView,
    ComplianceResult,
    Creative,
    DerivedMetrics,
    InsightsPayload,
    MetricRecordRequest,
    MetricSummary,
    Pagination,
    Schedule,
    Spend,
    require_search_keywords,
    to_iso,
    utc_now,
)
from .protocols import (
    CampaignNotFoundError,
    CampaignStoreProtocol,
    CampaignValidationError,
    Clock,
    EventRecorderProtocol,
    ForbiddenError,
    MetricStoreProtocol,
    UnauthenticatedError,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_payload(model: Type[ModelT], payload: Union[ModelT, Dict[str, Any]]) -> ModelT:
    """Validate a caller payload, converting pydantic errors to CampaignValidationError"""
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload or {})
    except ValidationError as e:
        error = e.errors()[0]
        message = str(error.get("msg", "Invalid payload")).replace("Value error, ", "")
        field = ".".join(str(part) for part in error.get("loc", ())) or None
        raise CampaignValidationError(message, field) from e


class AdsService:
    """Ads service business logic layer"""

    MAX_PAGE_SIZE = 50
    DEFAULT_PAGE_SIZE = 20
    TRAILING_WINDOW_DAYS = 7
    MIN_INSIGHT_WINDOW_DAYS = 1
    MAX_INSIGHT_WINDOW_DAYS = 60
    CTR_TOLERANCE = 0.0001

    def __init__(
        self,
        repository: CampaignStoreProtocol,
        metric_repository: MetricStoreProtocol,
        event_recorder: Optional[EventRecorderProtocol] = None,
        clock: Optional[Clock] = None,
        lifecycle: Optional[LifecycleTransitioner] = None,
        default_insight_window_days: int = 14,
    ):
        self.repository = repository
        self.metric_repository = metric_repository
        self.event_recorder = event_recorder
        self.clock = clock or utc_now
        self.lifecycle = lifecycle or LifecycleTransitioner(repository, event_recorder, self.clock)
        self.default_insight_window_days = default_insight_window_days

    # ====================
    # Access Control
    # ====================

    @staticmethod
    def _require_actor(actor: Union[Actor, Dict[str, Any], None]) -> Actor:
        if actor is None:
            raise UnauthenticatedError("Authentication required")
        if isinstance(actor, Actor):
            return actor
        if not actor.get("id"):
            raise UnauthenticatedError("Authentication required")
        try:
            return Actor.model_validate(actor)
        except ValidationError as e:
            raise UnauthenticatedError("Invalid actor identity") from e

    async def _get_owned_campaign(self, public_id: str, actor: Actor) -> Campaign:
        campaign = await self.repository.get_campaign_by_public_id(public_id)
        if not campaign:
            raise CampaignNotFoundError("Campaign not found")
        if not actor.is_admin and campaign.created_by != actor.id:
            raise ForbiddenError("You do not have permission to manage this campaign")
        return campaign

    # ====================
    # Campaign CRUD
    # ====================

    async def list_campaigns(
        self,
        actor: Union[Actor, Dict[str, Any]],
        filters: Optional[Union[CampaignFilters, Dict[str, Any]]] = None,
        pagination: Optional[Dict[str, Any]] = None,
    ) -> CampaignListResult:
        """List and hydrate campaigns; non-admins only see their own"""
        actor = self._require_actor(actor)
        filters = parse_payload(CampaignFilters, filters or {})
        pagination = pagination or {}

        try:
            page = max(1, int(pagination.get("page") or 1))
            limit = min(self.MAX_PAGE_SIZE, max(1, int(pagination.get("limit") or self.DEFAULT_PAGE_SIZE)))
        except (TypeError, ValueError) as e:
            raise CampaignValidationError("Pagination values must be integers", "pagination") from e
        offset = (page - 1) * limit

        created_by = filters.created_by if actor.is_admin else actor.id
        campaigns = await self.repository.list_campaigns(
            status=filters.status,
            created_by=created_by,
            search=filters.search,
            limit=limit,
            offset=offset,
            order_by="updated_at",
        )
        total = await self.repository.count_campaigns(
            status=filters.status, created_by=created_by, search=filters.search
        )

        return CampaignListResult(
            data=await self.hydrate_campaigns(campaigns),
            pagination=Pagination(
                page=page, limit=limit, total=total, total_pages=math.ceil(total / limit)
            ),
        )

    async def get_campaign(self, public_id: str, actor: Union[Actor, Dict[str, Any]]) -> CampaignView:
        actor = self._require_actor(actor)
        campaign = await self._get_owned_campaign(public_id, actor)
        [hydrated] = await self.hydrate_campaigns([campaign])
        return hydrated

    async def create_campaign(
        self,
        actor: Union[Actor, Dict[str, Any]],
        payload: Union[CampaignCreateRequest, Dict[str, Any]],
    ) -> CampaignView:
        """
        Create a campaign.

        The payload is fully validated before anything is stored.
        """
        actor = self._require_actor(actor)
        request = parse_payload(CampaignCreateRequest, payload)

        record = {
            "created_by": actor.id,
            "name": request.name,
            "objective": request.objective,
            "status": request.status,
            "budget": Budget(currency=request.budget.currency, daily_cents=request.budget.daily_cents),
            "spend": Spend(currency=request.budget.currency, total_cents=0),
            "targeting": request.targeting,
            "creative": Creative(**request.creative.model_dump()),
            "schedule": request.schedule,
            "metadata": CampaignMetadata(
                placements=request.placements,
                brand_safety=request.brand_safety,
                preview=request.preview,
                review_checklist=request.review_checklist,
                landing_page=request.creative.url,
            ),
        }
        campaign = await self.repository.create_campaign(record)

        await self._record_event(
            campaign,
            AdsEventType.CREATED,
            {
                "created_by": actor.id,
                "objective": campaign.objective.value,
                "status": campaign.status.value,
            },
            performed_by=actor.id,
        )
        logger.info(f"Ads campaign created: {campaign.public_id}")

        [hydrated] = await self.hydrate_campaigns([campaign])
        return hydrated

    async def update_campaign(
        self,
        public_id: str,
        actor: Union[Actor, Dict[str, Any]],
        payload: Union[CampaignUpdateRequest, Dict[str, Any]],
    ) -> CampaignView:
        """Partial update; the merged campaign is re-validated before storing"""
        actor = self._require_actor(actor)
        request = parse_payload(CampaignUpdateRequest, payload)
        campaign = await self._get_owned_campaign(public_id, actor)

        updates = self._build_updates(campaign, request)
        if not updates:
            [hydrated] = await self.hydrate_campaigns([campaign])
            return hydrated

        updated = await self.repository.update_campaign(campaign.id, updates)
        await self._record_event(
            updated,
            AdsEventType.UPDATED,
            CampaignUpdatedEventData(changed_fields=sorted(updates)).model_dump(),
            performed_by=actor.id,
        )
        logger.info(f"Ads campaign updated: {public_id}")

        [hydrated] = await self.hydrate_campaigns([updated])
        return hydrated

    def _build_updates(self, campaign: Campaign, request: CampaignUpdateRequest) -> Dict[str, Any]:
        provided = request.model_fields_set
        updates: Dict[str, Any] = {}

        for field in ("name", "objective", "status"):
            value = getattr(request, field)
            if field in provided and value is not None:
                updates[field] = value

        if "budget" in provided and request.budget is not None:
            updates["budget"] = Budget(
                currency=request.budget.currency, daily_cents=request.budget.daily_cents
            )

        targeting = campaign.targeting
        if "targeting" in provided and request.targeting is not None:
            changes = {k: getattr(request.targeting, k) for k in request.targeting.model_fields_set}
            targeting = campaign.targeting.model_copy(update=changes)
            updates["targeting"] = targeting

        metadata_changes: Dict[str, Any] = {}
        if "creative" in provided and request.creative is not None:
            changes = {k: getattr(request.creative, k) for k in request.creative.model_fields_set}
            updates["creative"] = campaign.creative.model_copy(update=changes)
            metadata_changes["landing_page"] = updates["creative"].url

        if "schedule" in provided and request.schedule is not None:
            merged = campaign.schedule.model_dump()
            merged.update({k: getattr(request.schedule, k) for k in request.schedule.model_fields_set})
            try:
                updates["schedule"] = Schedule.model_validate(merged)
            except ValidationError as e:
                raise CampaignValidationError("End date must be after the start date", "schedule") from e

        placements = campaign.metadata.placements
        if "placements" in provided and request.placements is not None:
            placements = request.placements
            metadata_changes["placements"] = placements
        for field in ("brand_safety", "preview", "review_checklist"):
            value = getattr(request, field)
            if field in provided and value is not None:
                metadata_changes[field] = value

        try:
            require_search_keywords(placements, targeting.keywords)
        except ValueError as e:
            raise CampaignValidationError(str(e), "placements") from e

        if metadata_changes:
            updates["metadata"] = campaign.metadata.model_copy(update=metadata_changes)

        return updates

    async def pause_campaign(
        self,
        public_id: str,
        actor: Union[Actor, Dict[str, Any]],
        reason: str = "manual_pause",
    ) -> CampaignView:
        actor = self._require_actor(actor)
        campaign = await self._get_owned_campaign(public_id, actor)
        if campaign.status == CampaignStatus.PAUSED:
            return await self.get_campaign(public_id, actor)

        metadata = campaign.metadata.model_copy(
            update={"last_manual_action": reason, "last_manual_action_at": self.clock()}
        )
        updated = await self.repository.update_campaign(
            campaign.id, {"status": CampaignStatus.PAUSED, "metadata": metadata}
        )
        await self._record_event(
            updated,
            AdsEventType.PAUSED,
            CampaignPausedEventData(reason=reason).model_dump(),
            performed_by=actor.id,
        )
        logger.info(f"Ads campaign paused: {public_id} ({reason})")
        return await self.get_campaign(public_id, actor)

    async def resume_campaign(self, public_id: str, actor: Union[Actor, Dict[str, Any]]) -> CampaignView:
        actor = self._require_actor(actor)
        campaign = await self._get_owned_campaign(public_id, actor)

        now = self.clock()
        if campaign.schedule.end_at and campaign.schedule.end_at < now:
            raise CampaignValidationError(
                "Campaign schedule has finished. Extend the schedule before resuming.",
                "schedule.end_at",
            )

        metadata = campaign.metadata.model_copy(
            update={"last_manual_action": "resume", "last_manual_action_at": now}
        )
        updated = await self.repository.update_campaign(
            campaign.id, {"status": CampaignStatus.ACTIVE, "metadata": metadata}
        )
        await self._record_event(updated, AdsEventType.RESUMED, {}, performed_by=actor.id)
        logger.info(f"Ads campaign resumed: {public_id}")
        return await self.get_campaign(public_id, actor)

    # ====================
    # Metrics & Insights
    # ====================

    async def record_daily_metrics(
        self,
        public_id: str,
        actor: Union[Actor, Dict[str, Any]],
        payload: Union[MetricRecordRequest, Dict[str, Any]],
    ) -> CampaignView:
        """Upsert one UTC day of metrics and return the re-hydrated campaign"""
        actor = self._require_actor(actor)
        request = parse_payload(MetricRecordRequest, payload)
        campaign = await self._get_owned_campaign(public_id, actor)

        row = await self.metric_repository.upsert_daily(
            campaign.id,
            request.metric_date or self.clock(),
            {
                "impressions": request.impressions,
                "clicks": request.clicks,
                "conversions": request.conversions,
                "spend_cents": request.spend_cents,
                "revenue_cents": request.revenue_cents,
                "metadata": request.metadata,
            },
        )

        [hydrated] = await self.hydrate_campaigns([campaign])

        await self._record_event(
            campaign,
            AdsEventType.METRICS_RECORDED,
            MetricsRecordedEventData(
                metric_date=to_iso(row.metric_date),
                impressions=request.impressions,
                clicks=request.clicks,
                conversions=request.conversions,
                spend_cents=request.spend_cents,
            ).model_dump(),
            performed_by=actor.id,
        )
        logger.info(f"Metrics recorded for ads campaign {public_id} on {to_iso(row.metric_date)}")
        return hydrated

    async def get_insights(
        self,
        public_id: str,
        actor: Union[Actor, Dict[str, Any]],
        window_days: Optional[int] = None,
    ) -> InsightsPayload:
        """Trend insights over the most recent window_days of metrics"""
        actor = self._require_actor(actor)
        if window_days is None:
            window_days = self.default_insight_window_days
        if not self.MIN_INSIGHT_WINDOW_DAYS <= window_days <= self.MAX_INSIGHT_WINDOW_DAYS:
            raise CampaignValidationError(
                f"window_days must be between {self.MIN_INSIGHT_WINDOW_DAYS} "
                f"and {self.MAX_INSIGHT_WINDOW_DAYS}",
                "window_days",
            )
        campaign = await self._get_owned_campaign(public_id, actor)

        metrics = await self.metric_repository.list_by_campaign(campaign.id, limit=window_days)
        ordered = sorted(metrics, key=lambda m: m.metric_date)
        daily = [daily_insight(metric) for metric in ordered]

        summary = summarise_series(daily)
        trends = compute_trends(daily)
        pacing = compute_pacing(daily, campaign.budget.daily_cents)
        recommendations = build_recommendations(summary, trends, pacing)

        entry = build_history_entry(
            generated_at=self.clock(),
            actor_id=actor.id,
            window_days=window_days,
            summary=summary,
            trends=trends,
            pacing=pacing,
            recommendations=recommendations,
        )
        history = append_history(campaign.metadata.insights_history, entry)
        metadata = campaign.metadata.model_copy(update={"insights_history": history})
        updated = await self.repository.update_campaign(campaign.id, {"metadata": metadata})

        logger.info(
            f"Insights generated for ads campaign {public_id}: "
            f"{len(daily)} days, {len(recommendations)} recommendations"
        )
        return InsightsPayload(
            summary=summary,
            daily=daily,
            trends=trends,
            pacing=pacing,
            highlights=compute_highlights(daily),
            recommendations=recommendations,
            history=updated.metadata.insights_history,
        )

    # ====================
    # Hydration
    # ====================

    async def hydrate_campaigns(self, campaigns: List[Campaign]) -> List[CampaignView]:
        """Apply transitions, derive metrics and compliance, sync snapshots and format"""
        if not campaigns:
            return []

        ids = [campaign.id for campaign in campaigns]
        lifetime_map = await self.metric_repository.summarise_by_campaign_ids(ids)

        results = []
        for campaign in campaigns:
            now = self.clock()
            lifetime = lifetime_map.get(campaign.id) or MetricSummary()
            trailing = await self.metric_repository.summarise_window(
                campaign.id, self.TRAILING_WINDOW_DAYS, now
            )

            campaign = await self.lifecycle.apply_schedule_transitions(campaign)

            derived = compute_derived_metrics(campaign, lifetime, trailing, now)
            compliance = evaluate_compliance(campaign, derived)
            derived.performance_score = compliance.performance_score

            campaign = await self._sync_performance_snapshot(campaign, derived, lifetime)
            campaign = await self._sync_compliance_state(campaign, compliance)

            results.append(self.format_campaign(campaign, derived, compliance))
        return results

    async def _sync_performance_snapshot(
        self, campaign: Campaign, derived: DerivedMetrics, lifetime: MetricSummary
    ) -> Campaign:
        updates: Dict[str, Any] = {}
        if campaign.spend.total_cents != lifetime.spend_cents:
            updates["spend"] = campaign.spend.model_copy(update={"total_cents": lifetime.spend_cents})
        if abs((campaign.ctr or 0) - derived.averages.ctr) > self.CTR_TOLERANCE:
            updates["ctr"] = derived.averages.ctr
        if campaign.cpc_cents != derived.averages.cpc_cents:
            updates["cpc_cents"] = derived.averages.cpc_cents
        if campaign.cpa_cents != derived.averages.cpa_cents:
            updates["cpa_cents"] = derived.averages.cpa_cents
        if campaign.performance_score != derived.performance_score:
            updates["performance_score"] = derived.performance_score

        if not updates:
            return campaign
        return await self.repository.update_campaign(campaign.id, updates)

    async def _sync_compliance_state(self, campaign: Campaign, compliance: ComplianceResult) -> Campaign:
        metadata = campaign.metadata
        previous = [violation.model_dump() for violation in metadata.compliance_violations]
        current = [violation.model_dump() for violation in compliance.violations]

        updates: Dict[str, Any] = {}
        if metadata.last_compliance_status != compliance.status or previous != current:
            updates["metadata"] = metadata.model_copy(
                update={
                    "last_compliance_status": compliance.status,
                    "compliance_risk_score": compliance.risk_score,
                    "compliance_violations": list(compliance.violations),
                }
            )

        return await self.lifecycle.apply_compliance_pause(campaign, compliance, updates)

    @staticmethod
    def format_campaign(
        campaign: Campaign, derived: DerivedMetrics, compliance: ComplianceResult
    ) -> CampaignView:
        lifetime = derived.lifetime.model_dump()
        lifetime.update(
            ctr=derived.averages.ctr,
            conversion_rate=derived.averages.conversion_rate,
            cpc_cents=derived.averages.cpc_cents,
            cpa_cents=derived.averages.cpa_cents,
            roas=derived.averages.roas,
        )

        return CampaignView(
            id=campaign.public_id,
            internal_id=campaign.id,
            name=campaign.name,
            objective=campaign.objective,
            status=campaign.status,
            performance_score=derived.performance_score,
            budget=campaign.budget,
            spend=Spend(currency=campaign.spend.currency, total_cents=derived.lifetime.spend_cents),
            metrics=CampaignMetricsView(
                lifetime=lifetime,
                trailing_7_days=derived.trailing,
                forecast=derived.forecast,
            ),
            targeting=campaign.targeting,
            creative=campaign.creative,
            schedule={
                "start_at": to_iso(campaign.schedule.start_at),
                "end_at": to_iso(campaign.schedule.end_at),
            },
            compliance=compliance,
            placements=campaign.metadata.placements,
            brand_safety=campaign.metadata.brand_safety,
            preview=campaign.metadata.preview,
            created_by=campaign.created_by,
            created_at=to_iso(campaign.created_at),
            updated_at=to_iso(campaign.updated_at),
        )

    # ====================
    # Events
    # ====================

    async def _record_event(
        self,
        campaign: Campaign,
        event_type: AdsEventType,
        payload: Dict[str, Any],
        performed_by: Optional[str] = None,
    ) -> None:
        """Append a domain event; failures are logged and never raised"""
        if not self.event_recorder:
            logger.debug(f"Event recorder not configured, skipping event: {event_type.value}")
            return

        try:
            await self.event_recorder.record(
                entity_type=ADS_CAMPAIGN_ENTITY,
                entity_id=str(campaign.id),
                event_type=event_type.value,
                payload=payload,
                performed_by=performed_by,
            )
        except Exception as e:
            logger.error(f"Failed to record event {event_type.value}: {e}")


__all__ = ["AdsService", "parse_payload"]
