"""
Ads Service Client

Client for feed, search and live-course services to call ads_service.
"""

import logging
import os
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)


class AdsClient:
    """Client for ads_service"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if base_url is None:
            host = os.getenv("ADS_SERVICE_HOST", "localhost")
            port = os.getenv("ADS_SERVICE_PORT", "8260")
            base_url = f"http://{host}:{port}"
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self._transport
        )

    @staticmethod
    def _actor_headers(user_id: str, role: Optional[str] = None) -> Dict[str, str]:
        headers = {"X-User-ID": user_id}
        if role:
            headers["X-User-Role"] = role
        return headers

    async def get_campaign(
        self, campaign_id: str, user_id: str, role: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        """
        Get a hydrated campaign.

        Args:
            campaign_id: Campaign public ID
            user_id: Acting user ID
            role: Acting user role

        Returns:
            Campaign data or None if not found
        """
        try:
            async with self._client() as client:
                response = await client.get(
                    f"/api/v1/ads/campaigns/{campaign_id}",
                    headers=self._actor_headers(user_id, role),
                )

                if response.status_code == 404:
                    return None

                response.raise_for_status()
                return response.json()

        except httpx.HTTPStatusError as e:
            logger.error(f"Error getting campaign: {e.response.text}")
            raise

    async def create_campaign(
        self, payload: Dict[str, Any], user_id: str, role: Optional[str] = None
    ) -> Dict[str, Any]:
        try:
            async with self._client() as client:
                response = await client.post(
                    "/api/v1/ads/campaigns",
                    json=payload,
                    headers=self._actor_headers(user_id, role),
                )
                response.raise_for_status()
                return response.json()

        except httpx.HTTPStatusError as e:
            logger.error(f"Error creating campaign: {e.response.text}")
            raise

    async def record_metrics(
        self, campaign_id: str, metrics: Dict[str, Any], user_id: str, role: Optional[str] = None
    ) -> Dict[str, Any]:
        try:
            async with self._client() as client:
                response = await client.post(
                    f"/api/v1/ads/campaigns/{campaign_id}/metrics",
                    json=metrics,
                    headers=self._actor_headers(user_id, role),
                )
                response.raise_for_status()
                return response.json()

        except httpx.HTTPStatusError as e:
            logger.error(f"Error recording metrics for {campaign_id}: {e.response.text}")
            raise

    # Placement calls are best-effort: callers render content without ads on failure

    async def list_placements(
        self,
        context: str = "global_feed",
        limit: Optional[int] = None,
        keywords: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        """
        List ranked placements for a context.

        Returns:
            {"items": [...], "degraded": bool}; degraded is True when the
            service could not be reached and items is empty
        """
        params: Dict[str, Any] = {"context": context}
        if limit:
            params["limit"] = limit
        if keywords:
            params["keywords"] = ",".join(keywords)

        try:
            async with self._client() as client:
                response = await client.get("/api/v1/ads/placements", params=params)
                response.raise_for_status()
                return {"items": response.json(), "degraded": False}

        except Exception as e:
            logger.warning(f"Error listing placements for {context}: {e}")
            return {"items": [], "degraded": True}

    async def decorate_feed(
        self,
        posts: List[Dict[str, Any]],
        context: str = "global_feed",
        page: int = 1,
        per_page: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Interleave ads into a page of posts.

        Returns:
            Decorated feed with a degraded flag; on failure the posts come
            back undecorated and degraded is True
        """
        request_data: Dict[str, Any] = {
            "posts": posts,
            "context": context,
            "page": page,
            "metadata": metadata or {},
        }
        if per_page:
            request_data["per_page"] = per_page

        try:
            async with self._client() as client:
                response = await client.post("/api/v1/ads/feed/decorate", json=request_data)
                response.raise_for_status()
                data = response.json()
                data.setdefault("degraded", False)
                return data

        except Exception as e:
            logger.warning(f"Error decorating feed for {context}: {e}")
            return {
                "items": [{"kind": "post", "post": post} for post in posts],
                "ads": {"count": 0, "placements": []},
                "degraded": True,
            }

    async def get_spotlights(self, limit: Optional[int] = None) -> Dict[str, Any]:
        params = {"limit": limit} if limit else None
        try:
            async with self._client() as client:
                response = await client.get("/api/v1/ads/spotlights", params=params)
                response.raise_for_status()
                return response.json()

        except Exception as e:
            logger.warning(f"Error fetching spotlights: {e}")
            return {"items": [], "degraded": True}


__all__ = ["AdsClient"]
