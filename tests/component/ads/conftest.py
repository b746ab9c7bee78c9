"""
Ads Service Component Fixtures

Real AdsService and AdsPlacementService over in-memory stores, frozen at
FIXED_NOW.
"""

import pytest

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from microservices.ads_service.ads_repository import (
    InMemoryCampaignRepository,
    InMemoryMetricRepository,
)
from microservices.ads_service.ads_service import AdsService
from microservices.ads_service.events import AdsEventPublisher
from microservices.ads_service.placement_service import AdsPlacementService
from tests.contracts.ads.data_contract import AdsTestDataFactory, FixedClock


@pytest.fixture
def campaign_repository(clock: FixedClock) -> InMemoryCampaignRepository:
    return InMemoryCampaignRepository(clock)


@pytest.fixture
def metric_repository() -> InMemoryMetricRepository:
    return InMemoryMetricRepository()


@pytest.fixture
def event_publisher(mock_event_bus, clock: FixedClock) -> AdsEventPublisher:
    return AdsEventPublisher(event_bus=mock_event_bus, clock=clock)


@pytest.fixture
def ads_service(campaign_repository, metric_repository, event_publisher, clock) -> AdsService:
    """AdsService wired the way the factory wires it"""
    return AdsService(
        repository=campaign_repository,
        metric_repository=metric_repository,
        event_recorder=event_publisher,
        clock=clock,
    )


@pytest.fixture
def placement_service(campaign_repository, clock) -> AdsPlacementService:
    return AdsPlacementService(campaign_repository, clock)


@pytest.fixture
def owner():
    return AdsTestDataFactory.make_actor()


@pytest.fixture
def other_user():
    return AdsTestDataFactory.make_actor()


@pytest.fixture
def admin():
    return AdsTestDataFactory.make_admin()


@pytest.fixture
def seed_campaign(campaign_repository):
    """Store a campaign record directly, bypassing request validation"""

    async def _seed(**overrides):
        record = AdsTestDataFactory.make_campaign_record(**overrides)
        return await campaign_repository.create_campaign(record)

    return _seed
