"""
Component Test Mocks

Shared mock implementations for component testing.
These mocks replace the event bus and simulate store failures.
"""

from .event_bus_mock import MockEventBus
from .store_mock import FailingCampaignRepository

__all__ = [
    'MockEventBus',
    'FailingCampaignRepository',
]
