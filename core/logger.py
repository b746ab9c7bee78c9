#!/usr/bin/env python3
"""Service logger setup shared by the microservice entry points"""
import logging
from typing import Optional

from .config import LoggingConfig, setup_logging


def setup_service_logger(service_name: str, config: Optional[LoggingConfig] = None) -> logging.Logger:
    """Configure root logging once and return the service's named logger"""
    config = config or LoggingConfig.from_env()
    config.service_name = service_name
    setup_logging(config)
    return logging.getLogger(service_name)


__all__ = ["setup_service_logger"]
