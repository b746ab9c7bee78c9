"""
Ads Service Main Application

FastAPI application for ad campaigns and placements.
Port: 8260
"""

import os
import sys
import time
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import Body, Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse

# Add project root to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from core.config import get_settings
from core.logger import setup_service_logger

from .factory import AdsServiceFactory
from .models import (
    CampaignListResult,
    CampaignView,
    DecoratedFeed,
    DecorateFeedRequest,
    InsightsPayload,
    Placement,
    PlacementContext,
    SpotlightResult,
)
from .protocols import AdsServiceError, ErrorKind

settings = get_settings()
logger = setup_service_logger(settings.service_name, settings.logging)

# Service configuration
SERVICE_NAME = settings.service_name
SERVICE_PORT = settings.service_port
SERVICE_VERSION = "1.0.0"

ERROR_STATUS_CODES: Dict[ErrorKind, int] = {
    ErrorKind.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.VALIDATION_FAILED: status.HTTP_422_UNPROCESSABLE_ENTITY,
}

# Track startup time for uptime calculation
startup_time = time.time()

# Global factory instance
factory: Optional[AdsServiceFactory] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    global factory

    logger.info(f"Starting {SERVICE_NAME} on port {SERVICE_PORT}")

    factory = AdsServiceFactory(settings)
    await factory.initialize()

    yield

    logger.info(f"Shutting down {SERVICE_NAME}")
    await factory.close()


# Create FastAPI application
app = FastAPI(
    title="Ads Service",
    description="Ad campaign management, compliance, placements and insights",
    version=SERVICE_VERSION,
    lifespan=lifespan,
)


# ====================
# Exception Handlers
# ====================


@app.exception_handler(AdsServiceError)
async def ads_error_handler(request: Request, exc: AdsServiceError):
    content = {"detail": str(exc), "kind": exc.kind.value}
    field = getattr(exc, "field", None)
    if field:
        content["field"] = field
    return JSONResponse(
        status_code=ERROR_STATUS_CODES.get(exc.kind, status.HTTP_400_BAD_REQUEST),
        content=content,
    )


# ====================
# Dependencies
# ====================


def get_factory_instance() -> AdsServiceFactory:
    if not factory:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not initialized",
        )
    return factory


def get_service(current: AdsServiceFactory = Depends(get_factory_instance)):
    """Get ads service from factory"""
    return current.service


def get_placement_service(current: AdsServiceFactory = Depends(get_factory_instance)):
    """Get placement service from factory"""
    return current.placement_service


def get_actor(request: Request) -> Optional[dict]:
    """Extract actor from request headers; None when unauthenticated"""
    user_id = request.headers.get("X-User-ID")
    if not user_id:
        return None
    return {"id": user_id, "role": request.headers.get("X-User-Role", "user")}


def _split(value: Optional[str]) -> Optional[List[str]]:
    if not value:
        return None
    return [item.strip() for item in value.split(",") if item.strip()]


# ====================
# Health Endpoints
# ====================


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy" if factory else "starting",
        "service": SERVICE_NAME,
        "port": SERVICE_PORT,
        "version": SERVICE_VERSION,
        "uptime_seconds": time.time() - startup_time,
    }


# ====================
# Campaign Endpoints
# ====================


@app.get("/api/v1/ads/campaigns", response_model=CampaignListResult, tags=["Campaigns"])
async def list_campaigns(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    status_filter: Optional[str] = Query(None, alias="status", description="Comma-separated statuses"),
    search: Optional[str] = Query(None, max_length=120),
    service=Depends(get_service),
    actor: Optional[dict] = Depends(get_actor),
):
    """List campaigns visible to the actor"""
    return await service.list_campaigns(
        actor,
        filters={"status": _split(status_filter), "search": search},
        pagination={"page": page, "limit": limit},
    )


@app.post(
    "/api/v1/ads/campaigns",
    response_model=CampaignView,
    status_code=status.HTTP_201_CREATED,
    tags=["Campaigns"],
)
async def create_campaign(
    payload: Dict[str, Any] = Body(...),
    service=Depends(get_service),
    actor: Optional[dict] = Depends(get_actor),
):
    return await service.create_campaign(actor, payload)


@app.get("/api/v1/ads/campaigns/{campaign_id}", response_model=CampaignView, tags=["Campaigns"])
async def get_campaign(
    campaign_id: str,
    service=Depends(get_service),
    actor: Optional[dict] = Depends(get_actor),
):
    return await service.get_campaign(campaign_id, actor)


@app.patch("/api/v1/ads/campaigns/{campaign_id}", response_model=CampaignView, tags=["Campaigns"])
async def update_campaign(
    campaign_id: str,
    payload: Dict[str, Any] = Body(...),
    service=Depends(get_service),
    actor: Optional[dict] = Depends(get_actor),
):
    return await service.update_campaign(campaign_id, actor, payload)


@app.post("/api/v1/ads/campaigns/{campaign_id}/pause", response_model=CampaignView, tags=["Campaigns"])
async def pause_campaign(
    campaign_id: str,
    payload: Optional[Dict[str, Any]] = Body(None),
    service=Depends(get_service),
    actor: Optional[dict] = Depends(get_actor),
):
    reason = (payload or {}).get("reason") or "manual_pause"
    return await service.pause_campaign(campaign_id, actor, reason=reason)


@app.post("/api/v1/ads/campaigns/{campaign_id}/resume", response_model=CampaignView, tags=["Campaigns"])
async def resume_campaign(
    campaign_id: str,
    service=Depends(get_service),
    actor: Optional[dict] = Depends(get_actor),
):
    return await service.resume_campaign(campaign_id, actor)


@app.post("/api/v1/ads/campaigns/{campaign_id}/metrics", response_model=CampaignView, tags=["Metrics"])
async def record_metrics(
    campaign_id: str,
    payload: Dict[str, Any] = Body(...),
    service=Depends(get_service),
    actor: Optional[dict] = Depends(get_actor),
):
    return await service.record_daily_metrics(campaign_id, actor, payload)


@app.get("/api/v1/ads/campaigns/{campaign_id}/insights", response_model=InsightsPayload, tags=["Metrics"])
async def get_insights(
    campaign_id: str,
    window_days: Optional[int] = Query(None),
    service=Depends(get_service),
    actor: Optional[dict] = Depends(get_actor),
):
    return await service.get_insights(campaign_id, actor, window_days=window_days)


# ====================
# Placement Endpoints
# ====================


@app.get("/api/v1/ads/placements", response_model=List[Placement], tags=["Placements"])
async def list_placements(
    context: PlacementContext = Query(PlacementContext.GLOBAL_FEED),
    limit: Optional[int] = Query(None, ge=1, le=20),
    keywords: Optional[str] = Query(None, description="Comma-separated keywords"),
    placement_service=Depends(get_placement_service),
):
    return await placement_service.list_placements(
        context, limit=limit, keywords=[k.lower() for k in _split(keywords) or []]
    )


@app.get("/api/v1/ads/placements/search", response_model=List[Placement], tags=["Placements"])
async def search_placements(
    q: str = Query("", max_length=200),
    limit: Optional[int] = Query(None, ge=1, le=20),
    placement_service=Depends(get_placement_service),
):
    return await placement_service.placements_for_search(q, limit=limit)


@app.post("/api/v1/ads/feed/decorate", response_model=DecoratedFeed, tags=["Placements"])
async def decorate_feed(
    request: DecorateFeedRequest,
    placement_service=Depends(get_placement_service),
):
    """Interleave placements into a page of posts"""
    return await placement_service.decorate_feed(
        request.posts,
        context=request.context,
        page=request.page,
        per_page=request.per_page,
        metadata=request.metadata.model_dump(),
    )


@app.get("/api/v1/ads/spotlights", response_model=SpotlightResult, tags=["Placements"])
async def campaign_spotlights(
    limit: Optional[int] = Query(None, ge=1, le=20),
    placement_service=Depends(get_placement_service),
):
    return await placement_service.fetch_campaign_spotlights(limit or settings.spotlight_limit)


# ====================
# Main Entry Point
# ====================


def main():
    """Run the service"""
    import uvicorn

    uvicorn.run(
        "microservices.ads_service.main:app",
        host="0.0.0.0",
        port=SERVICE_PORT,
        reload=True,
        log_level="info",
    )


if __name__ == "__main__":
    main()
