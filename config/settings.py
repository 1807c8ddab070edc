from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv


def _load_env() -> None:
    # Centralized dotenv loading; safe if .env missing
    load_dotenv()


def _as_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    # Core/runtime
    db_path: str
    run_env: str
    log_level: str

    # Acting principal for CLI-driven runs (library callers inject their own provider)
    etl_principal: str | None

    # Asset hashing
    asset_fetch_enabled: bool
    asset_hash_fallback: bool
    http_timeout_seconds: int
    max_retries: int

    # Runs left in 'running' longer than this are reported as stale
    stale_run_minutes: int

    # Validation
    required_fields: list[str]
    max_name_length: int = 200
    max_headline_length: int = 220
    max_location_length: int = 200
    max_summary_length: int = 2600
    max_connections: int = 30000


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    _load_env()
    return Settings(
        db_path=os.getenv("DB_PATH", "profiles.db"),
        run_env=os.getenv("RUN_ENV", "local"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        etl_principal=os.getenv("ETL_PRINCIPAL") or None,
        asset_fetch_enabled=_as_bool(os.getenv("ASSET_FETCH_ENABLED"), default=False),
        asset_hash_fallback=_as_bool(os.getenv("ASSET_HASH_FALLBACK"), default=False),
        http_timeout_seconds=int(os.getenv("HTTP_TIMEOUT_SECONDS", "20")),
        max_retries=int(os.getenv("MAX_RETRIES", "3")),
        stale_run_minutes=int(os.getenv("STALE_RUN_MINUTES", "60")),
        required_fields=["linkedin_id", "full_name", "profile_url"],
        max_name_length=int(os.getenv("MAX_NAME_LENGTH", "200")),
        max_headline_length=int(os.getenv("MAX_HEADLINE_LENGTH", "220")),
        max_location_length=int(os.getenv("MAX_LOCATION_LENGTH", "200")),
        max_summary_length=int(os.getenv("MAX_SUMMARY_LENGTH", "2600")),
        max_connections=int(os.getenv("MAX_CONNECTIONS", "30000")),
    )
