"""
Ads Service Factory

Factory for creating ads service instances with proper dependency injection.
"""

import logging
from typing import Optional

from core.config import AdsConfig, get_settings

from .ads_repository import InMemoryCampaignRepository, InMemoryMetricRepository
from .ads_service import AdsService
from .events.publishers import AdsEventPublisher
from .lifecycle import LifecycleTransitioner
from .models import utc_now
from .placement_service import AdsPlacementService
from .protocols import CampaignStoreProtocol, Clock, EventBusProtocol, MetricStoreProtocol

logger = logging.getLogger(__name__)


class AdsServiceFactory:
    """Factory for creating ads service components"""

    def __init__(
        self,
        config: Optional[AdsConfig] = None,
        repository: Optional[CampaignStoreProtocol] = None,
        metric_repository: Optional[MetricStoreProtocol] = None,
        event_bus: Optional[EventBusProtocol] = None,
        clock: Optional[Clock] = None,
    ):
        self.config = config or get_settings()
        self.clock = clock or utc_now
        self._event_bus = event_bus
        self._repository = repository
        self._metric_repository = metric_repository
        self._event_publisher: Optional[AdsEventPublisher] = None
        self._service: Optional[AdsService] = None
        self._placement_service: Optional[AdsPlacementService] = None
        self._initialized = False

    async def initialize(self) -> None:
        """Initialize all components"""
        logger.info("Initializing Ads Service components...")

        if self._repository is None:
            self._repository = InMemoryCampaignRepository(clock=self.clock)
        if self._metric_repository is None:
            self._metric_repository = InMemoryMetricRepository()

        self._event_publisher = AdsEventPublisher(self._event_bus, clock=self.clock)
        if not self._event_bus:
            logger.info("Event bus not configured, domain events stay in the local audit log")

        lifecycle = LifecycleTransitioner(self._repository, self._event_publisher, self.clock)
        self._service = AdsService(
            repository=self._repository,
            metric_repository=self._metric_repository,
            event_recorder=self._event_publisher,
            clock=self.clock,
            lifecycle=lifecycle,
            default_insight_window_days=self.config.default_insight_window_days,
        )
        self._placement_service = AdsPlacementService(self._repository, clock=self.clock)
        self._initialized = True

        logger.info("Ads Service components initialized")

    async def close(self) -> None:
        """Close all components"""
        logger.info("Closing Ads Service components...")

        if self._event_bus:
            try:
                await self._event_bus.close()
            except Exception as e:
                logger.warning(f"Event bus close failed: {e}")

        self._initialized = False
        logger.info("Ads Service components closed")

    @property
    def repository(self) -> CampaignStoreProtocol:
        """Get campaign repository"""
        if not self._initialized:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._repository

    @property
    def metric_repository(self) -> MetricStoreProtocol:
        """Get metric repository"""
        if not self._initialized:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._metric_repository

    @property
    def service(self) -> AdsService:
        """Get ads service"""
        if not self._service:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._service

    @property
    def placement_service(self) -> AdsPlacementService:
        """Get placement service"""
        if not self._placement_service:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._placement_service

    @property
    def event_publisher(self) -> Optional[AdsEventPublisher]:
        """Get event publisher"""
        return self._event_publisher


# Global factory instance
_factory: Optional[AdsServiceFactory] = None


async def get_factory() -> AdsServiceFactory:
    """Get or create factory instance"""
    global _factory
    if _factory is None:
        _factory = AdsServiceFactory()
        await _factory.initialize()
    return _factory


async def close_factory() -> None:
    """Close factory instance"""
    global _factory
    if _factory:
        await _factory.close()
        _factory = None


__all__ = [
    "AdsServiceFactory",
    "get_factory",
    "close_factory",
]
