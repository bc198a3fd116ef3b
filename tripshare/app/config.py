"""Typed settings configuration - single source of truth."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./tripshare.db"

    # Public base URL used to build share links
    app_url: str = "http://localhost:3000"

    # Trip defaults
    default_departure_city: str = "Buenos Aires"
    default_trip_title: str = "Mi Viaje"
    appended_destination_city: str = "Nueva Ciudad"

    # Share links
    share_token_length: int = 12
    share_token_max_attempts: int = 3

    # Import limits
    max_imported_destinations: int = 200

    # Locales
    default_locale: str = "es"
    supported_locales: tuple[str, ...] = ("es", "en")

    # Logging
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
