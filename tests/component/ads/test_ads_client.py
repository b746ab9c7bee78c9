"""
Component Tests for AdsClient

Runs the client against the FastAPI app in-process through httpx's ASGI
transport, and against an unreachable host for the best-effort fallbacks.
"""

import httpx
import pytest
import pytest_asyncio

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from microservices.ads_service import main as ads_main
from microservices.ads_service.client import AdsClient
from tests.contracts.ads.data_contract import AdsTestDataFactory

pytestmark = [pytest.mark.component, pytest.mark.asyncio]

USER_ID = "usr_client_owner"


@pytest_asyncio.fixture
async def ads_client():
    """Client bound to a running app instance"""
    async with ads_main.lifespan(ads_main.app):
        transport = httpx.ASGITransport(app=ads_main.app)
        yield AdsClient(base_url="http://ads.test", transport=transport)


def _refused(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


@pytest.fixture
def offline_client():
    return AdsClient(base_url="http://ads.test", transport=httpx.MockTransport(_refused))


class TestCampaignCalls:
    """Authenticated campaign calls"""

    async def test_create_and_get(self, ads_client):
        created = await ads_client.create_campaign(
            AdsTestDataFactory.make_create_payload(status="active"), USER_ID
        )

        fetched = await ads_client.get_campaign(created["id"], USER_ID)

        assert fetched["id"] == created["id"]
        assert fetched["created_by"] == USER_ID

    async def test_get_missing_returns_none(self, ads_client):
        assert await ads_client.get_campaign("missing", USER_ID) is None

    async def test_forbidden_raises(self, ads_client):
        created = await ads_client.create_campaign(AdsTestDataFactory.make_create_payload(), USER_ID)

        with pytest.raises(httpx.HTTPStatusError) as exc_info:
            await ads_client.get_campaign(created["id"], "usr_someone_else")
        assert exc_info.value.response.status_code == 403

    async def test_record_metrics(self, ads_client):
        created = await ads_client.create_campaign(
            AdsTestDataFactory.make_create_payload(status="active"), USER_ID
        )

        view = await ads_client.record_metrics(
            created["id"],
            {"impressions": 1000, "clicks": 40, "conversions": 4, "spend_cents": 8_000},
            USER_ID,
        )

        assert view["metrics"]["lifetime"]["clicks"] == 40


class TestPlacementCalls:
    """Best-effort placement calls"""

    async def test_decorate_feed(self, ads_client):
        await ads_client.create_campaign(
            AdsTestDataFactory.make_create_payload(status="active"), USER_ID
        )

        feed = await ads_client.decorate_feed(AdsTestDataFactory.make_posts(5))

        assert feed["ads"]["count"] == 1
        assert feed["items"][-1]["kind"] == "ad"
        assert feed["degraded"] is False

    async def test_list_placements(self, ads_client):
        await ads_client.create_campaign(
            AdsTestDataFactory.make_create_payload(status="active"), USER_ID
        )

        placements = await ads_client.list_placements("search", keywords=["python"])

        assert placements["degraded"] is False
        assert placements["items"][0]["context"] == "search"

    async def test_offline_fallbacks(self, offline_client):
        posts = AdsTestDataFactory.make_posts(2)

        # Given: a client whose transport refuses every connection
        # When: each best-effort call is made
        placements = await offline_client.list_placements()
        feed = await offline_client.decorate_feed(posts)

        # Then: callers get empty or undecorated results flagged as degraded
        assert placements == {"items": [], "degraded": True}
        assert [item["post"] for item in feed["items"]] == posts
        assert feed["ads"]["count"] == 0
        assert feed["degraded"] is True
        assert (await offline_client.get_spotlights())["degraded"] is True
