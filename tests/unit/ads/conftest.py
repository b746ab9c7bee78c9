"""
Unit Test Fixtures for Ads Service

Pure-function tests share the root factory and clock fixtures; this module
adds campaign builders that pin schedules relative to the fixed clock.
"""

import pytest
from datetime import timedelta

import sys
import os

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from tests.contracts.ads.data_contract import (
    FIXED_NOW,
    AdsTestDataFactory,
    CampaignStatus,
)


@pytest.fixture
def active_campaign(factory: AdsTestDataFactory):
    """Active campaign that started 9 days before FIXED_NOW (10 active days)"""
    return factory.make_campaign(
        status=CampaignStatus.ACTIVE,
        start_at=FIXED_NOW - timedelta(days=9),
    )


@pytest.fixture
def make_campaign(factory: AdsTestDataFactory):
    """Campaign builder with a 10-day schedule by default"""

    def _make(**overrides):
        overrides.setdefault("status", CampaignStatus.ACTIVE)
        overrides.setdefault("start_at", FIXED_NOW - timedelta(days=9))
        return factory.make_campaign(**overrides)

    return _make
