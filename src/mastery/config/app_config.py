"""Application configuration loader.

Loads centralized configuration from data/config/app_config_v1.yaml
with fallback to built-in defaults.

Usage:
    from mastery.config.app_config import load_app_config

    config = load_app_config()
    db_path = config.database.path
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/app_config_v1.yaml")

# Environment override for the database location
DB_PATH_ENV = "MASTERY_DB_PATH"


@dataclass
class DatabaseConfig:
    """Configuration for the SQLite store."""

    path: Path = Path("db/mastery.db")
    lock_timeout_seconds: float = 10.0


@dataclass
class BatchingConfig:
    """Configuration for batch lifecycle."""

    idle_timeout_hours: float = 2.0


@dataclass
class MasteryConfig:
    """Configuration for mastery detection."""

    streak_length: int = 5


@dataclass
class AppConfig:
    """Application-wide configuration."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    batching: BatchingConfig = field(default_factory=BatchingConfig)
    mastery: MasteryConfig = field(default_factory=MasteryConfig)


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "database": {
            "path": "db/mastery.db",
            "lock_timeout_seconds": 10.0,
        },
        "batching": {
            "idle_timeout_hours": 2.0,
        },
        "mastery": {
            "streak_length": 5,
        },
    }


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    defaults = _get_defaults()

    db_data = {**defaults["database"], **(data.get("database") or {})}
    batching_data = {**defaults["batching"], **(data.get("batching") or {})}
    mastery_data = {**defaults["mastery"], **(data.get("mastery") or {})}

    db_path = os.environ.get(DB_PATH_ENV) or db_data["path"]

    return AppConfig(
        database=DatabaseConfig(
            path=Path(db_path),
            lock_timeout_seconds=float(db_data["lock_timeout_seconds"]),
        ),
        batching=BatchingConfig(
            idle_timeout_hours=float(batching_data["idle_timeout_hours"]),
        ),
        mastery=MasteryConfig(
            streak_length=int(mastery_data["streak_length"]),
        ),
    )


def load_app_config(
    force_reload: bool = False,
    config_path: Path | None = None,
) -> AppConfig:
    """Load application config with fallback to defaults.

    Args:
        force_reload: If True, ignore cached config and reload from file.
        config_path: Alternative YAML file. Defaults to CONFIG_FILE.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload and config_path is None:
        return _cached_config

    source = config_path or CONFIG_FILE
    data: dict[str, Any]

    if source.exists():
        logger.debug("loading_app_config", source=str(source))
        data = yaml.safe_load(source.read_text(encoding="utf-8")) or {}
    else:
        logger.info("using_default_config")
        data = _get_defaults()

    config = _parse_config(data)
    if config_path is None:
        _cached_config = config
    return config


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
