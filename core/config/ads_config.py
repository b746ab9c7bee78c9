#!/usr/bin/env python3
"""Ads service settings"""
import os
from dataclasses import dataclass, field

from .logging_config import LoggingConfig

def _int(val: str, default: int) -> int:
    try:
        return int(val) if val else default
    except ValueError:
        return default

def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


@dataclass
class AdsConfig:
    """Ads service configuration"""
    service_name: str = "ads_service"
    service_port: int = 8260
    environment: str = "development"

    # Insight window used when callers omit window_days
    default_insight_window_days: int = 14
    # Campaign spotlights attached to live feeds
    spotlight_limit: int = 3

    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls) -> 'AdsConfig':
        """Load ads config from environment variables"""
        env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
        return cls(
            service_name=os.getenv("SERVICE_NAME", "ads_service"),
            service_port=_int(os.getenv("SERVICE_PORT", "8260"), 8260),
            environment=env,
            default_insight_window_days=_clamp(
                _int(os.getenv("ADS_INSIGHT_WINDOW_DAYS", "14"), 14), 1, 60
            ),
            spotlight_limit=max(1, _int(os.getenv("ADS_SPOTLIGHT_LIMIT", "3"), 3)),
            logging=LoggingConfig.from_env(),
        )
