"""
Ads Placement Service

Ranks eligible campaigns for a display context, builds trackable
placements and interleaves them into content feeds.
"""

import hashlib
import logging
import math
import re
import uuid
from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .derived_metrics import round_half_up, round_int
from .models import (
    AdsSummary,
    Campaign,
    CampaignSpotlight,
    CampaignStatus,
    DecoratedFeed,
    FeedEntry,
    Placement,
    PlacementContext,
    PlacementMetrics,
    PlacementTracking,
    ServedPlacement,
    SpotlightResult,
    to_iso,
    utc_now,
)
from .protocols import CampaignStoreProtocol, Clock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContextDefaults:
    """Per-context insertion defaults; interval None means a single block"""
    interval: Optional[int]
    max_per_page: int
    slot: str


CONTEXT_DEFAULTS: Mapping[PlacementContext, ContextDefaults] = MappingProxyType({
    PlacementContext.GLOBAL_FEED: ContextDefaults(interval=5, max_per_page=3, slot="feed-inline"),
    PlacementContext.COMMUNITY_FEED: ContextDefaults(interval=6, max_per_page=3, slot="feed-community"),
    PlacementContext.SEARCH: ContextDefaults(interval=None, max_per_page=4, slot="search-top"),
    PlacementContext.COURSE_LIVE: ContextDefaults(interval=3, max_per_page=2, slot="course-live"),
})

CONTEXT_BOOST: Mapping[PlacementContext, int] = MappingProxyType({
    PlacementContext.SEARCH: 8,
    PlacementContext.COURSE_LIVE: 6,
})
DEFAULT_CONTEXT_BOOST = 4

CANDIDATE_STATUSES = [CampaignStatus.ACTIVE, CampaignStatus.SCHEDULED]
CANDIDATE_LIMIT = 100
DEFAULT_PER_PAGE = 20
MIN_SEARCH_TOKEN_LENGTH = 3

_TOKEN_PATTERN = re.compile(r"[a-z0-9]+")


# ====================
# Ranking
# ====================


def is_eligible(campaign: Campaign, now: datetime) -> bool:
    start_at = campaign.schedule.start_at
    end_at = campaign.schedule.end_at
    return (start_at is None or start_at <= now) and (end_at is None or end_at >= now)


def score_candidate(campaign: Campaign, context: PlacementContext) -> float:
    boost = CONTEXT_BOOST.get(context, DEFAULT_CONTEXT_BOOST)
    return (
        campaign.performance_score * 2
        + campaign.ctr * 100
        + math.log10(campaign.budget.daily_cents + 1) * 5
        + boost
    )


def prioritise_by_keywords(
    ranked: Sequence[Tuple[Campaign, float]], keywords: Iterable[str]
) -> List[Tuple[Campaign, float]]:
    """Stable reorder: campaigns targeting any keyword move ahead of the rest"""
    wanted = {keyword.lower() for keyword in keywords if keyword}
    if not wanted:
        return list(ranked)
    matching = []
    others = []
    for campaign, score in ranked:
        targeted = {keyword.lower() for keyword in campaign.targeting.keywords}
        (matching if targeted & wanted else others).append((campaign, score))
    return matching + others


def impression_key(public_id: str, context: PlacementContext, position: int) -> str:
    """Deterministic SHA1 fingerprint of (campaign, context, position)"""
    raw = f"{public_id}:{PlacementContext(context).value}:{position}"
    return hashlib.sha1(raw.encode("utf-8")).hexdigest()


def build_placement(
    campaign: Campaign, context: PlacementContext, position: int, score: float
) -> Placement:
    defaults = CONTEXT_DEFAULTS[context]
    configured = campaign.placement_for(context)
    slot = (configured.slot if configured else None) or defaults.slot

    return Placement(
        placement_id=f"{context.value}-{position}-{campaign.public_id}",
        campaign_id=campaign.public_id,
        context=context,
        slot=slot,
        surface=configured.surface if configured else None,
        label=configured.label if configured else None,
        position=position,
        headline=campaign.creative.headline,
        description=campaign.creative.description,
        url=campaign.creative.url,
        asset=campaign.creative.asset,
        objective=campaign.objective,
        metrics=PlacementMetrics(
            performance_score=campaign.performance_score,
            ctr=campaign.ctr,
            cpc_cents=campaign.cpc_cents,
            cpa_cents=campaign.cpa_cents,
            spend_cents=campaign.spend.total_cents,
            score=round_half_up(score, 4),
        ),
        tracking=PlacementTracking(
            impression_key=impression_key(campaign.public_id, context, position),
            request_id=str(uuid.uuid4()),
        ),
        targeting=campaign.targeting,
    )


def rank_placements(
    candidates: Sequence[Campaign],
    context: PlacementContext,
    limit: int,
    now: datetime,
    keywords: Optional[Iterable[str]] = None,
) -> List[Placement]:
    """Score, sort and select up to limit placements with 1-based positions"""
    eligible = [
        campaign for campaign in candidates
        if campaign.status in CANDIDATE_STATUSES and is_eligible(campaign, now)
    ]
    scored = [(campaign, score_candidate(campaign, context)) for campaign in eligible]
    scored.sort(key=lambda item: item[1], reverse=True)
    scored = prioritise_by_keywords(scored, keywords or [])
    return [
        build_placement(campaign, context, position, score)
        for position, (campaign, score) in enumerate(scored[:max(0, limit)], start=1)
    ]


# ====================
# Interleaving
# ====================


def max_placements_for(context: PlacementContext, post_count: int, per_page: int) -> int:
    defaults = CONTEXT_DEFAULTS[context]
    if not defaults.interval:
        return defaults.max_per_page
    basis = post_count or per_page
    return min(defaults.max_per_page, max(1, round_int(basis / defaults.interval)))


def interleave(
    posts: Sequence[Dict[str, Any]],
    placements: Sequence[Placement],
    interval: Optional[int],
    page: int = 1,
) -> List[FeedEntry]:
    """
    Merge placements into posts.

    A placement follows every interval-th post; on the first page the last
    post is always followed by one. Unused placements are appended in order.
    Without an interval every placement is inserted ahead of the posts.
    """
    if not placements:
        return [FeedEntry(kind="post", post=post) for post in posts]

    if not interval:
        head = [FeedEntry(kind="ad", ad=placement) for placement in placements]
        return head + [FeedEntry(kind="post", post=post) for post in posts]

    entries: List[FeedEntry] = []
    queue = list(placements)
    last_index = len(posts) - 1
    for index, post in enumerate(posts):
        entries.append(FeedEntry(kind="post", post=post))
        if not queue:
            continue
        if (index + 1) % interval == 0 or (index == last_index and page == 1):
            entries.append(FeedEntry(kind="ad", ad=queue.pop(0)))

    entries.extend(FeedEntry(kind="ad", ad=placement) for placement in queue)
    return entries


def summarise_ads(entries: Sequence[FeedEntry]) -> AdsSummary:
    served = [
        ServedPlacement(
            placement_id=entry.ad.placement_id,
            campaign_id=entry.ad.campaign_id,
            slot=entry.ad.slot,
            position=entry.ad.position,
            headline=entry.ad.headline,
            context=entry.ad.context,
            tracking=entry.ad.tracking,
        )
        for entry in entries
        if entry.kind == "ad" and entry.ad is not None
    ]
    return AdsSummary(count=len(served), placements=served)


def tokenise_query(query: Optional[str]) -> List[str]:
    """Lowercase word tokens of at least three characters, first-seen order"""
    if not query:
        return []
    tokens = _TOKEN_PATTERN.findall(query.lower())
    return list(dict.fromkeys(t for t in tokens if len(t) >= MIN_SEARCH_TOKEN_LENGTH))


# ====================
# Service
# ====================


class AdsPlacementService:
    """Serves ranked ad placements for feeds and search"""

    def __init__(self, repository: CampaignStoreProtocol, clock: Optional[Clock] = None):
        self.repository = repository
        self.clock = clock or utc_now

    async def _load_candidates(self) -> List[Campaign]:
        return await self.repository.list_campaigns(
            status=CANDIDATE_STATUSES,
            limit=CANDIDATE_LIMIT,
            order_by="performance_score",
            descending=True,
        )

    async def list_placements(
        self,
        context: PlacementContext,
        limit: Optional[int] = None,
        keywords: Optional[Iterable[str]] = None,
        exclude_campaign_ids: Optional[Iterable[str]] = None,
    ) -> List[Placement]:
        """
        Rank eligible campaigns for a context.

        Args:
            context: Display context
            limit: Maximum placements, defaults to the context page maximum
            keywords: Lowercase keywords used for affinity reordering
            exclude_campaign_ids: Campaign public IDs that must not be served

        Returns:
            Placements ordered by position
        """
        context = PlacementContext(context)
        if limit is None:
            limit = CONTEXT_DEFAULTS[context].max_per_page

        candidates = await self._load_candidates()
        blocked = set(exclude_campaign_ids or [])
        if blocked:
            candidates = [c for c in candidates if c.public_id not in blocked]

        placements = rank_placements(candidates, context, limit, self.clock(), keywords)
        logger.debug(
            f"Selected {len(placements)} of {len(candidates)} candidates for {context.value}"
        )
        return placements

    async def decorate_feed(
        self,
        posts: Sequence[Dict[str, Any]],
        context: PlacementContext = PlacementContext.GLOBAL_FEED,
        page: int = 1,
        per_page: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> DecoratedFeed:
        """Interleave ranked placements into a page of posts"""
        context = PlacementContext(context)
        metadata = metadata or {}
        per_page = per_page or DEFAULT_PER_PAGE

        limit = max_placements_for(context, len(posts), per_page)
        placements = await self.list_placements(
            context,
            limit=limit,
            keywords=[str(k).lower() for k in metadata.get("keywords") or []],
            exclude_campaign_ids=metadata.get("blocked_placement_ids") or [],
        )

        entries = interleave(posts, placements, CONTEXT_DEFAULTS[context].interval, page)
        return DecoratedFeed(items=entries, ads=summarise_ads(entries))

    async def placements_for_search(
        self, query: Optional[str], limit: Optional[int] = None
    ) -> List[Placement]:
        keywords = tokenise_query(query)
        return await self.list_placements(PlacementContext.SEARCH, limit=limit, keywords=keywords)

    async def fetch_campaign_spotlights(self, limit: int = 3) -> SpotlightResult:
        """Best-effort highlight list; store failures degrade to an empty result"""
        try:
            campaigns = await self.repository.list_campaigns(
                status=CANDIDATE_STATUSES,
                limit=limit,
                order_by="performance_score",
                descending=True,
            )
        except Exception as e:
            logger.warning(f"Failed to fetch campaign spotlights: {e}")
            return SpotlightResult(items=[], degraded=True)

        now = self.clock()
        items = [
            CampaignSpotlight(
                id=campaign.public_id,
                name=campaign.name,
                status=campaign.status,
                objective=campaign.objective,
                metrics={
                    "performance_score": campaign.performance_score,
                    "ctr": campaign.ctr,
                    "cpc_cents": campaign.cpc_cents,
                    "cpa_cents": campaign.cpa_cents,
                    "spend_cents": campaign.spend.total_cents,
                },
                targeting=campaign.targeting,
                schedule={
                    "start_at": to_iso(campaign.schedule.start_at),
                    "end_at": to_iso(campaign.schedule.end_at),
                },
                timestamp=to_iso(campaign.updated_at or now),
            )
            for campaign in campaigns
        ]
        return SpotlightResult(items=items, degraded=False)


__all__ = [
    "ContextDefaults",
    "CONTEXT_DEFAULTS",
    "CONTEXT_BOOST",
    "CANDIDATE_LIMIT",
    "is_eligible",
    "score_candidate",
    "prioritise_by_keywords",
    "impression_key",
    "build_placement",
    "rank_placements",
    "max_placements_for",
    "interleave",
    "summarise_ads",
    "tokenise_query",
    "AdsPlacementService",
]
