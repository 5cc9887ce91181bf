# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# This module loads configuration from environment variables using pydantic-settings.
# It provides a single Settings class with all configuration values.
#
# Usage:
#   from app.config import settings
#   print(settings.SUPABASE_URL)
#
# Environment variables are loaded from:
# 1. System environment variables
# 2. .env file in project root (if exists)
# =============================================================================

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings are accessed via the global `settings` instance. Code below
    the routers never reads it directly: coordinators receive a
    CoordinatorConfig built from these values.
    """

    # -------------------------------------------------------------------------
    # Supabase Configuration
    # -------------------------------------------------------------------------
    # These are required - app won't start without them

    SUPABASE_URL: str = Field(
        ...,
        description="Supabase project URL (e.g., https://xxx.supabase.co)"
    )

    SUPABASE_ANON_KEY: str = Field(
        ...,
        description="Supabase anon/public API key"
    )

    SUPABASE_SERVICE_KEY: str = Field(
        ...,
        description="Supabase service_role key (bypasses RLS)"
    )

    SUPABASE_JWT_SECRET: str = Field(
        default="",
        description="Legacy HS256 secret used to verify Supabase access tokens"
    )

    # -------------------------------------------------------------------------
    # Asset Storage
    # -------------------------------------------------------------------------

    USER_ASSET_BASE_URL: str = Field(
        default="http://localhost:8787/assets",
        description="Public base URL that storage keys are appended to"
    )

    USER_ASSET_MAX_SIZE: int = Field(
        default=50 * 1024 * 1024,
        ge=1,
        description="Maximum user asset size in bytes"
    )

    POSTER_ASSET_MAX_SIZE: int = Field(
        default=5 * 1024 * 1024,
        ge=1,
        description="Maximum poster/avatar image size in bytes"
    )

    OBJECT_STORE_BACKEND: Literal["s3", "supabase"] = Field(
        default="supabase",
        description="Which object store holds asset bytes"
    )

    STORAGE_BUCKET: str = Field(
        default="user-assets",
        description="Bucket name (S3/R2 bucket or Supabase Storage bucket)"
    )

    ASSET_CACHE_CONTROL: str = Field(
        default="public, max-age=604800, s-maxage=3600, immutable",
        description="Cache-Control stored with every object (keys are never reused)"
    )

    # S3-compatible settings (only used when OBJECT_STORE_BACKEND=s3).
    # Leave S3_ENDPOINT_URL empty for AWS; set it for R2/MinIO.

    S3_ENDPOINT_URL: str = Field(default="", description="S3-compatible endpoint URL")
    S3_ACCESS_KEY_ID: str = Field(default="", description="S3 access key id")
    S3_SECRET_ACCESS_KEY: str = Field(default="", description="S3 secret access key")
    S3_REGION_NAME: str = Field(default="auto", description="S3 region (R2 uses 'auto')")
    S3_CONNECT_TIMEOUT_SECONDS: float = Field(default=3.0, gt=0)
    S3_READ_TIMEOUT_SECONDS: float = Field(default=60.0, gt=0)
    S3_MAX_ATTEMPTS: int = Field(default=3, ge=1)

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Current environment"
    )

    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode (verbose logging, auto-reload)"
    )

    API_HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the API server to"
    )

    API_PORT: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port for the API server"
    )

    # CORS origins (comma-separated string that gets parsed)
    CORS_ORIGINS: str = Field(
        default="http://localhost:3000",
        description="Allowed CORS origins (comma-separated)"
    )

    PROXY_TIMEOUT_SECONDS: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for requests proxied to Supabase"
    )

    # -------------------------------------------------------------------------
    # Pydantic Settings Configuration
    # -------------------------------------------------------------------------

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
    )

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def cors_origins_list(self) -> list[str]:
        """
        Parse CORS_ORIGINS string into a list.

        Example: "http://localhost:3000, https://myapp.com" -> ["http://localhost:3000", "https://myapp.com"]
        """
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached Settings instance.

    Using lru_cache ensures we only parse .env and validate once,
    not on every access.
    """
    return Settings()


# Global settings instance for easy importing
# Usage: from app.config import settings
settings = get_settings()
