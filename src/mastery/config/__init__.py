"""Configuration package for the mastery log."""

from mastery.config.app_config import (
    AppConfig,
    BatchingConfig,
    DatabaseConfig,
    MasteryConfig,
    clear_config_cache,
    load_app_config,
)

__all__ = [
    "AppConfig",
    "BatchingConfig",
    "DatabaseConfig",
    "MasteryConfig",
    "clear_config_cache",
    "load_app_config",
]
