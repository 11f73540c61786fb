"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="ECOPICKUP_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "EcoPickup Logistics API"
    api_prefix: str = "/api"
    log_level: str = Field(default="INFO", description="Root logger level applied by create_app().")
    data_root: Path = Field(default=Path("data"), description="Root directory for persisted device data.")
    cache_dirname: str = Field(default="cache", description="Sub-directory of data_root holding cache entries.")

    # Cache policy defaults
    default_cache_max_age_minutes: int = Field(default=60, ge=0)
    default_cache_auto_refresh: bool = True
    default_cache_fallback_to_cache: bool = True
    cache_cleanup_max_age_minutes: int = Field(
        default=24 * 60,
        ge=0,
        description="Entries older than this are evicted by cleanup, independent of refresh policy.",
    )
    cache_fetch_timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="Optional upper bound applied to every fetch made by the cache manager.",
    )

    # Route estimation
    average_speed_kmh: float = Field(default=30.0, gt=0)
    per_stop_overhead_minutes: float = Field(default=15.0, ge=0)
    nearby_radius_km: float = Field(default=5.0, ge=0)

    # Backend used for fetches and offline replay
    backend_base_url: Optional[str] = Field(
        default=None,
        description="Base URL of the authoritative pickup backend (e.g., https://api.example.com).",
    )
    backend_timeout_seconds: float = Field(default=15.0, gt=0)
    backend_max_retries: int = Field(default=3, ge=0)
    backend_backoff_seconds: float = Field(default=1.0, ge=0.0)

    # Offline replay
    sync_max_attempts: int = Field(default=5, ge=1)
    sync_backoff_seconds: float = Field(default=2.0, ge=0.0)
    sync_max_backoff_seconds: float = Field(default=60.0, ge=0.0)

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:8081",
            "http://127.0.0.1:8081",
            "http://localhost:19006",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("data_root", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()

    @property
    def cache_root(self) -> Path:
        return self.data_root / self.cache_dirname


settings = Settings()
