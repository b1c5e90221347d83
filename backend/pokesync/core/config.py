"""
Application configuration using Pydantic Settings.
Loads environment variables from .env file.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# HubSpot caps every batch endpoint at 100 inputs per request
HUBSPOT_MAX_BATCH_SIZE = 100


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # -------------------------------------------------------------------------
    # Application
    # -------------------------------------------------------------------------
    app_env: str = Field(default="development", alias="APP_ENV")
    app_debug: bool = Field(default=False, alias="APP_DEBUG")
    app_host: str = Field(default="0.0.0.0", alias="APP_HOST")
    app_port: int = Field(default=8000, alias="APP_PORT")

    cors_origins: str = Field(
        default="http://localhost:5173,http://localhost:3000",
        alias="CORS_ORIGINS",
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    # -------------------------------------------------------------------------
    # PostgreSQL (local store holding creatures, moves, areas and link tables)
    # -------------------------------------------------------------------------
    postgres_host: str = Field(default="localhost", alias="POSTGRES_HOST")
    postgres_port: int = Field(default=5432, alias="POSTGRES_PORT")
    postgres_db: str = Field(default="pokesync", alias="POSTGRES_DB")
    postgres_user: str = Field(default="postgres", alias="POSTGRES_USER")
    postgres_password: str = Field(default="postgres", alias="POSTGRES_PASSWORD")
    database_url: Optional[str] = Field(default=None, alias="DATABASE_URL")

    @property
    def async_database_url(self) -> str:
        """Build async database URL for SQLAlchemy."""
        if self.database_url:
            # Ensure we use the async driver
            url = self.database_url
            if url.startswith("postgresql://"):
                url = url.replace("postgresql://", "postgresql+psycopg://", 1)
            return url
        return (
            f"postgresql+psycopg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # -------------------------------------------------------------------------
    # HubSpot API
    # The bearer token is issued outside this service (private app token).
    # -------------------------------------------------------------------------
    hubspot_token: str = Field(default="", alias="HUBSPOT_TOKEN")
    hubspot_api_base_url: str = Field(
        default="https://api.hubapi.com",
        alias="HUBSPOT_API_BASE_URL",
    )
    hubspot_timeout: float = Field(
        default=30.0,
        alias="HUBSPOT_TIMEOUT",
        description="Per-request HTTP timeout in seconds",
    )
    hubspot_max_retries: int = Field(
        default=2,
        ge=0,
        alias="HUBSPOT_MAX_RETRIES",
        description="Retries for 429/5xx responses and network errors",
    )
    hubspot_retry_backoff: float = Field(
        default=2.0,
        alias="HUBSPOT_RETRY_BACKOFF",
        description="Exponential backoff base in seconds (base ** attempt)",
    )
    hubspot_batch_size: int = Field(
        default=HUBSPOT_MAX_BATCH_SIZE,
        ge=1,
        le=HUBSPOT_MAX_BATCH_SIZE,
        alias="HUBSPOT_BATCH_SIZE",
    )

    # -------------------------------------------------------------------------
    # Sync limits
    # -------------------------------------------------------------------------
    sync_pending_limit: int = Field(
        default=5000,
        alias="SYNC_PENDING_LIMIT",
        description="Default number of pending rows read per sync invocation",
    )
    association_pair_limit: int = Field(
        default=5000,
        alias="ASSOCIATION_PAIR_LIMIT",
        description="Maximum link rows read per association direction",
    )
    hubspot_creature_upload_limit: Optional[int] = Field(
        default=None,
        alias="HUBSPOT_CREATURE_UPLOAD_LIMIT",
    )
    hubspot_move_upload_limit: Optional[int] = Field(
        default=100,
        alias="HUBSPOT_MOVE_UPLOAD_LIMIT",
    )
    hubspot_area_upload_limit: Optional[int] = Field(
        default=None,
        alias="HUBSPOT_AREA_UPLOAD_LIMIT",
    )

    # -------------------------------------------------------------------------
    # Custom object + association labels
    # -------------------------------------------------------------------------
    hubspot_move_object: str = Field(
        default="",
        alias="HUBSPOT_MOVE_OBJECT",
        description="Custom object type for moves, e.g. '2-1234567' or 'p1234_move'",
    )
    hubspot_assoc_label: str = Field(default="Move Relation", alias="HUBSPOT_ASSOC_LABEL")
    hubspot_assoc_name: str = Field(default="move_relation", alias="HUBSPOT_ASSOC_NAME")
    hubspot_assoc_inverse_label: Optional[str] = Field(
        default=None,
        alias="HUBSPOT_ASSOC_INVERSE_LABEL",
        description="Label of the move -> creature direction; defaults to the forward label",
    )
    hubspot_area_assoc_label: str = Field(
        default="Area Relation",
        alias="HUBSPOT_AREA_ASSOC_LABEL",
    )
    hubspot_area_assoc_name: str = Field(
        default="area_relation",
        alias="HUBSPOT_AREA_ASSOC_NAME",
    )
    hubspot_area_assoc_inverse_label: Optional[str] = Field(
        default=None,
        alias="HUBSPOT_AREA_ASSOC_INVERSE_LABEL",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Note: Settings are cached! If you change .env, restart the server.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache. Call this if you need to reload settings."""
    get_settings.cache_clear()
