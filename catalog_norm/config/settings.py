"""
Application Settings.

Centralized configuration using Pydantic Settings with environment variable loading.
All settings are validated at startup - invalid values will raise an error.

Production Mode:
    When app_env="production", additional validations apply:
    - supabase_url and supabase_key must be set
    - log_format must be "json"
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Hard per-batch write limit of the document store.
MAX_BATCH_SIZE = 500


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Supabase (Document Store)
    # -------------------------------------------------------------------------
    supabase_url: str | None = Field(default=None, description="Supabase project URL")
    supabase_key: SecretStr | None = Field(
        default=None, description="Supabase service role key"
    )
    catalog_table: str = Field(
        default="apps",
        description="Table holding catalog documents (id TEXT, data JSONB)",
    )
    page_size: int = Field(
        default=1000,
        ge=1,
        description="Rows fetched per page while enumerating the catalog",
    )

    # -------------------------------------------------------------------------
    # Batching
    # -------------------------------------------------------------------------
    batch_size: int = Field(
        default=MAX_BATCH_SIZE,
        ge=1,
        le=MAX_BATCH_SIZE,
        description="Field updates per atomic batch",
    )
    commit_concurrency: int = Field(
        default=8,
        ge=1,
        description="Maximum number of batch commits in flight",
    )
    commit_max_attempts: int = Field(
        default=3,
        ge=1,
        description="Attempts per batch commit on transient store errors",
    )

    # -------------------------------------------------------------------------
    # Normalization
    # -------------------------------------------------------------------------
    name_locale: str = Field(
        default="en",
        description="Preferred locale key when a record name is a mapping",
    )
    ngram_lengths: list[int] = Field(
        default=[2, 3],
        description="Token lengths derived from the canonical name",
    )
    name_norm_field: str = Field(default="name_norm")
    ngrams_field: str = Field(default="name_norm_ngrams")
    aliases_norm_field: str = Field(default="aliases_norm")

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------
    app_env: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: Literal["json", "console"] = Field(
        default="json",
        description="structlog renderer",
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.app_env == "development"

    @property
    def has_supabase_credentials(self) -> bool:
        return bool(self.supabase_url) and self.supabase_key is not None

    @field_validator("ngram_lengths")
    @classmethod
    def validate_ngram_lengths(cls, value: list[int]) -> list[int]:
        """Require at least one positive token length."""
        if not value or any(length < 1 for length in value):
            raise ValueError("ngram_lengths must contain positive integers")
        return value

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Validate that production settings are complete."""
        if self.app_env == "production":
            errors = []

            if not self.has_supabase_credentials:
                errors.append("supabase_url and supabase_key must be set in production")

            if self.log_format != "json":
                errors.append("log_format must be 'json' in production")

            if errors:
                raise ValueError(
                    f"Production configuration errors: {'; '.join(errors)}"
                )

        return self


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload settings if needed.
    """
    return Settings()
