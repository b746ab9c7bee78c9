#!/usr/bin/env python3
"""Configuration for the ads service

Configuration hierarchy:
- ads_config: Service identity, port and ads defaults
- logging_config: Logging configuration
"""
import os
from dotenv import load_dotenv
from .logging_config import LoggingConfig, setup_logging
from .ads_config import AdsConfig

# Load environment file based on ENV
env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
env_files = {
    "development": "deployment/environments/dev.env",
    "dev": "deployment/environments/dev.env",
    "testing": "deployment/environments/test.env",
    "test": "deployment/environments/test.env",
    "staging": "deployment/environments/staging.env",
    "production": "deployment/environments/production.env",
}
env_file = env_files.get(env, "deployment/environments/dev.env")
load_dotenv(env_file, override=False)

# Create global settings instance
settings = AdsConfig.from_env()

def get_settings() -> AdsConfig:
    """Get global settings instance"""
    return settings

def reload_settings() -> AdsConfig:
    """Reload settings from environment"""
    global settings
    settings = AdsConfig.from_env()
    return settings

__all__ = [
    # Main config
    'AdsConfig',
    'get_settings',
    'reload_settings',
    'settings',
    # Sub-configs
    'LoggingConfig',
    'setup_logging',
]
