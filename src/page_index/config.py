"""Centralized configuration for page-index using Pydantic Settings."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strictly typed configuration loaded from environment variables.

    All environment variables are validated at startup with proper types.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",  # Ignore extra env vars not defined in model
    )

    # Storage
    database_path: str = Field(default="page_index.sqlite", min_length=1, description="SQLite index database file")
    busy_timeout_ms: int = Field(default=30000, ge=0, description="How long writers wait on a locked database")

    # Indexing
    freshness_days: int = Field(default=7, ge=1, description="Days before an indexed page is due for re-crawl")
    max_word_length: int = Field(default=50, ge=1, le=50, description="Longest token kept by the normalizer")
    normalizer: str = Field(default="default", description="Normalizer pipeline name")
    reindex_policy: Literal["append", "replace"] = Field(
        default="append",
        description="append: re-indexing adds occurrence rows; replace: old rows for the page are deleted first",
    )

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit structured JSON logs")

    # Tracing
    trace_console: bool = Field(default=False, description="Print finished OpenTelemetry spans to stderr")

    @property
    def freshness_policy_minutes(self) -> int:
        """Freshness threshold expressed in minutes."""
        return self.freshness_days * 24 * 60

    def replaces_on_reindex(self) -> bool:
        return self.reindex_policy == "replace"
