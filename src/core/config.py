"""Application configuration management using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Supabase credentials are only required when the Supabase store backend
    is selected.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="caregiver-profile-backend", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/staging/production)")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, description="Server port")

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins",
    )

    # Supabase
    supabase_url: str = Field(default="", description="Supabase project URL")
    supabase_secret_key: str = Field(default="", description="Supabase secret key for backend operations")

    # Caregiver store
    caregiver_store_backend: Literal["memory", "supabase"] = Field(
        default="memory",
        description="Where caregiver profiles are persisted",
    )
    caregivers_table: str = Field(default="caregivers", description="Supabase table holding caregiver rows")
    caregiver_update_max_attempts: int = Field(
        default=5,
        ge=1,
        description="Attempts for a caregiver update that loses a concurrent write race",
    )

    @model_validator(mode="after")
    def check_supabase_credentials(self) -> "Settings":
        """Require Supabase credentials when the Supabase backend is selected."""
        if self.caregiver_store_backend == "supabase" and not (
            self.supabase_url and self.supabase_secret_key
        ):
            raise ValueError(
                "SUPABASE_URL and SUPABASE_SECRET_KEY are required "
                "when CAREGIVER_STORE_BACKEND=supabase"
            )
        return self

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton.

    Returns:
        Settings: Application settings instance.

    Note:
        Settings are cached using lru_cache for performance.
        Call get_settings.cache_clear() to reload settings.
    """
    return Settings()
