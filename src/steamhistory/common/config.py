"""SteamHistory configuration via pydantic-settings."""

import warnings
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

_CACHE_BACKENDS = ("memory", "redis")


class SteamHistorySettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="STEAMHISTORY_")

    environment: str = "development"
    log_level: str = "INFO"

    # Database
    db_url: str = "sqlite+aiosqlite:///./data/steamhistory.db"

    # Steam Web API
    steam_api_url: str = "https://api.steampowered.com"
    steam_api_key: str = ""
    request_timeout: float = 10.0  # seconds

    # Batch operations
    worker_count: int = 200

    # Cache
    cache_backend: str = "memory"
    cache_url: str = "redis://localhost:6379/0"
    history_cache_ttl: int = 1800  # 30 min
    popular_cache_ttl: int = 1800  # 30 min
    search_cache_ttl: int = 43200  # 12 hours

    # Read views
    search_limit: int = 10
    popular_limit: int = 10

    # API
    api_title: str = "SteamHistory"
    api_version: str = "0.1.0"
    host: str = "127.0.0.1"
    port: int = 8080
    api_prefix: str = "/api"

    def validate_for_production(self) -> None:
        """Raise on settings that only make sense for local development."""
        if self.cache_backend not in _CACHE_BACKENDS:
            raise ValueError(
                f"STEAMHISTORY_CACHE_BACKEND must be one of {', '.join(_CACHE_BACKENDS)}, "
                f"got: {self.cache_backend!r}"
            )
        if self.worker_count < 1:
            raise ValueError(
                f"STEAMHISTORY_WORKER_COUNT must be positive, got: {self.worker_count}"
            )

        if self.environment != "development" and self.cache_backend == "memory":
            raise RuntimeError(
                f"In-memory cache is not shared between processes; set "
                f"STEAMHISTORY_CACHE_BACKEND=redis for the '{self.environment}' environment."
            )

        if not self.steam_api_key:
            warnings.warn(
                "STEAMHISTORY_STEAM_API_KEY is not set; Steam may throttle anonymous requests",
                UserWarning,
                stacklevel=2,
            )


@lru_cache
def get_settings() -> SteamHistorySettings:
    settings = SteamHistorySettings()
    settings.validate_for_production()
    return settings
