"""
Root conftest.py - Global fixtures and configuration for all test layers.

Test Layers:
    - component/  : Component tests (in-memory stores, fixed clock)
    - unit/       : Unit tests (pure functions, no I/O)
"""
import os
import sys

import pytest

# Add project root to path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

os.environ.setdefault("ENV", "test")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from tests.contracts.ads.data_contract import FIXED_NOW, AdsTestDataFactory, FixedClock


# =============================================================================
# Test Configuration
# =============================================================================

class TestConfig:
    """Centralized test configuration"""

    SERVICES = {
        "ads_service": 8260,
    }

    @classmethod
    def get_service_url(cls, service_name: str) -> str:
        port = cls.SERVICES.get(service_name)
        if not port:
            raise ValueError(f"Unknown service: {service_name}")
        return f"http://localhost:{port}"


@pytest.fixture(scope="session")
def test_config() -> TestConfig:
    """Provide test configuration"""
    return TestConfig()


# =============================================================================
# Shared Fixtures
# =============================================================================

@pytest.fixture
def factory() -> AdsTestDataFactory:
    """Provide test data factory"""
    return AdsTestDataFactory()


@pytest.fixture
def clock() -> FixedClock:
    """Clock frozen at FIXED_NOW"""
    return FixedClock(FIXED_NOW)


@pytest.fixture
def now(clock: FixedClock):
    return clock()
