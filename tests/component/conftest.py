"""
Component Test Layer Configuration

Component tests wire the real service classes to the in-memory stores,
a fixed clock and a mock event bus.

Usage:
    pytest tests/component -v
    pytest tests/component/ads -v
"""
import os
import sys

import pytest

# Set testing environment BEFORE any imports
os.environ["ENV"] = "testing"
os.environ["ENVIRONMENT"] = "testing"

# Add project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from tests.component.mocks import FailingCampaignRepository, MockEventBus


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure custom markers"""
    config.addinivalue_line(
        "markers", "component: marks tests as component tests"
    )


# =============================================================================
# Event Bus Mocks
# =============================================================================

@pytest.fixture
def mock_event_bus() -> MockEventBus:
    """Mock event bus"""
    return MockEventBus()


@pytest.fixture
def failing_repository() -> FailingCampaignRepository:
    """Campaign store that raises on every read"""
    return FailingCampaignRepository()
