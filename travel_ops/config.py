"""Centralized configuration using Pydantic Settings.

This module provides a single source of truth for all configuration:
where snapshots are stored, operational defaults, and logging.

Configuration can be overridden via environment variables:
- TRAVELOPS_STORE_BACKEND=memory
- TRAVELOPS_STORE_DATA_DIR=/var/lib/travel-ops
- TRAVELOPS_STORE_AUTOSAVE=false
- TRAVELOPS_LOG_LEVEL=DEBUG
- etc.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PersistenceConfig(BaseSettings):
    """Snapshot storage configuration.

    Environment variables prefixed with TRAVELOPS_STORE_.
    """

    model_config = SettingsConfigDict(env_prefix="TRAVELOPS_STORE_")

    backend: Literal["json", "memory"] = "json"
    data_dir: Path = Field(default_factory=lambda: Path.cwd() / "data")
    snapshot_file: str = "travel_ops_state.json"
    autosave: bool = True

    @property
    def snapshot_path(self) -> Path:
        """Full path to the JSON snapshot file."""
        return self.data_dir / self.snapshot_file


class OpsConfig(BaseSettings):
    """Departure operations defaults.

    Environment variables prefixed with TRAVELOPS_OPS_.
    """

    model_config = SettingsConfigDict(env_prefix="TRAVELOPS_OPS_")

    created_timeline_title: str = "Groupe créé"


class ObservabilityConfig(BaseSettings):
    """Logging configuration.

    Environment variables prefixed with TRAVELOPS_LOG_.
    """

    model_config = SettingsConfigDict(env_prefix="TRAVELOPS_LOG_")

    level: str = "INFO"
    format: str = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"


class AppConfig(BaseSettings):
    """Main application configuration aggregating all sub-configs.

    Sub-configurations can be accessed via attributes:

        config = get_config()
        print(config.persistence.snapshot_path)
        print(config.observability.level)

    Environment variables prefixed with TRAVELOPS_.
    """

    model_config = SettingsConfigDict(env_prefix="TRAVELOPS_")

    persistence: PersistenceConfig = Field(default_factory=PersistenceConfig)
    ops: OpsConfig = Field(default_factory=OpsConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Get the singleton application configuration.

    Configuration is loaded once and cached. To reload configuration
    (e.g., in tests), use reset_config() first.

    Returns:
        The application configuration instance.
    """
    return AppConfig()


def reset_config() -> None:
    """Reset the configuration cache.

    Call this in tests to ensure a fresh configuration is loaded.
    """
    get_config.cache_clear()
