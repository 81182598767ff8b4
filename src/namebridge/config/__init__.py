"""Application configuration helpers."""

from __future__ import annotations

from .backfill import BackfillConfig, get_backfill_config
from .env import optional_env, positive_int_env, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .storage import (
    ProgressDatabaseConfig,
    StorageConfig,
    get_progress_database_config,
    get_storage_config,
)
from .store import StoreConfig, get_store_config

__all__ = [
    "BackfillConfig",
    "ConfigurationError",
    "MissingConfigurationError",
    "ProgressDatabaseConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "StoreConfig",
    "get_backfill_config",
    "get_progress_database_config",
    "get_storage_config",
    "get_store_config",
    "optional_env",
    "positive_int_env",
    "require_env_vars",
]
