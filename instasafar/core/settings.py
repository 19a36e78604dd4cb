"""InstaSafar application settings loaded from environment and ``.env`` files.

Uses :mod:`pydantic_settings` to parse environment variables (and optionally
an ``.env`` file) into a validated settings object.  The field name is the
**lowercase** version of the env-var name (e.g. ``API_BASE_URL`` →
``api_base_url``).

Typical usage::

    from instasafar.core.settings import Settings

    settings = Settings()
    if settings.api_configured:
        ...
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ["Settings"]

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Central application configuration.

    Values are loaded in priority order:

    1. Actual environment variables (highest priority).
    2. ``.env`` file in the working directory.
    3. Field defaults (lowest priority).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # REST API (edge functions in front of the managed database)
    # ------------------------------------------------------------------
    api_base_url: str = Field(
        default="",
        description="Base URL of the CRUD functions, e.g. https://<project>.supabase.co/functions/v1.",
    )
    api_key: str = Field(
        default="",
        description="Anon / service key sent as 'apikey' and bearer token.",
    )
    api_max_attempts: int = Field(
        default=3,
        ge=1,
        description="Total attempts per API request, including the first.",
    )
    api_timeout: float = Field(
        default=15.0,
        gt=0.0,
        description="Read timeout for API requests in seconds.",
    )

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------
    database_path: str = Field(
        default="data/instasafar.db",
        description="Path to the SQLite file backing wishlist / notifications.",
    )

    # ------------------------------------------------------------------
    # Search pipeline
    # ------------------------------------------------------------------
    comparison_capacity: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Maximum number of listings held for side-by-side comparison.",
    )
    default_currency: str = Field(
        default="SAR",
        min_length=3,
        max_length=3,
        description="ISO currency code used when rendering prices.",
    )

    # ------------------------------------------------------------------
    # Runtime flags
    # ------------------------------------------------------------------
    log_level: str = Field(default="INFO", description="Logging level.")
    log_format: str = Field(default="text", description="Log format: 'text' or 'json'.")

    # ------------------------------------------------------------------
    # Field validators
    # ------------------------------------------------------------------

    @field_validator("api_base_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.strip().rstrip("/")

    @field_validator("default_currency")
    @classmethod
    def _upper_currency(cls, v: str) -> str:
        return v.upper()

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR"}
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"log_level must be one of {allowed}, got {v!r}")
        return v_upper

    @field_validator("log_format")
    @classmethod
    def _validate_log_format(cls, v: str) -> str:
        allowed = {"text", "json"}
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"log_format must be one of {allowed}, got {v!r}")
        return v_lower

    # ------------------------------------------------------------------
    # Derived helpers
    # ------------------------------------------------------------------

    @property
    def api_configured(self) -> bool:
        """``True`` if a base URL for the REST functions is set."""
        return bool(self.api_base_url)

    @property
    def database_path_resolved(self) -> Path:
        """Return the database path as a resolved :class:`~pathlib.Path`."""
        return Path(self.database_path).resolve()
