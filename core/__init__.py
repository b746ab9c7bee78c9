#!/usr/bin/env python3
"""
Core Module for Microservices Architecture

Shared components used by the microservices in this repository.

COMPONENTS:
    - config/: dataclass settings loaded from the environment (python-dotenv)
    - logger.py: service logger setup

USAGE:
    from core.config import get_settings
    from core.logger import setup_service_logger

    settings = get_settings()
    logger = setup_service_logger(settings.service_name)
"""

__version__ = "2.0.0"
