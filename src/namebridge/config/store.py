"""Remote object store configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from namebridge.domain.consistency import StoreLayout

from .env import optional_env, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

REQUIRED_STORE_VARS = (
    "NAMEBRIDGE_STORE_URL",
    "NAMEBRIDGE_STORE_TOKEN",
    "NAMEBRIDGE_SNAPSHOT_ID",
    "NAMEBRIDGE_INDEX_ID",
    "NAMEBRIDGE_OBJECTS_FOLDER",
)


@dataclass(frozen=True, slots=True)
class StoreConfig:
    layout: StoreLayout
    resilience: ResilienceConfig


def get_store_config() -> StoreConfig:
    values = require_env_vars(REQUIRED_STORE_VARS)
    layout = StoreLayout(
        snapshot_location=values["NAMEBRIDGE_SNAPSHOT_ID"],
        index_location=values["NAMEBRIDGE_INDEX_ID"],
        objects_folder=values["NAMEBRIDGE_OBJECTS_FOLDER"],
        backup_location=optional_env("NAMEBRIDGE_BACKUP_ID"),
    )
    resilience = ResilienceConfig(
        name="object-store",
        base_url=values["NAMEBRIDGE_STORE_URL"].rstrip("/"),
        ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
        retry=RetryPolicy(total=5),
        default_headers={
            "Authorization": f"Bearer {values['NAMEBRIDGE_STORE_TOKEN']}",
            "Accept": "application/json",
        },
    )
    return StoreConfig(layout=layout, resilience=resilience)
