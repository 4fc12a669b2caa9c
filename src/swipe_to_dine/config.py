"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")
_STRICT_ENVIRONMENTS = {"local", "test", "development"}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    admin_token: str
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    google_places_api_key: str | None = None
    google_places_base_url: str = "https://places.googleapis.com/v1"
    default_latitude: float | None = None
    default_longitude: float | None = None
    catalogue_path: str | None = None
    restaurants_per_batch: int = 10
    single_device_simulates_all_remote: bool = True
    party_ttl_seconds: int = 7 * 24 * 3600
    party_cache_size: int = 1024
    candidate_ttl_seconds: int = 86400
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def strict_voting(self) -> bool:
        """Reject unknown voters loudly outside production."""
        return self.environment in _STRICT_ENVIRONMENTS

    @property
    def uses_supabase(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_key)


def parse_location(
    latitude: float | None, longitude: float | None
) -> tuple[float, float] | None:
    """Combine optional coordinates into a search origin."""
    if latitude is None or longitude is None:
        return None
    return (latitude, longitude)
