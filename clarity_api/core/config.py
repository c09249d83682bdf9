"""
Central configuration loaded from environment variables.
All settings have sensible defaults so the service works out of the box
with no manual configuration.
"""

from __future__ import annotations

import math
from functools import lru_cache
from typing import Annotated, Literal

from fastapi import Depends, Request
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from clarity_api.services.block_variance import DEFAULT_BLOCK_SIZE
from clarity_api.services.score_normalizer import (
    DEFAULT_BLUR_THRESHOLD,
    LOGISTIC_MIDPOINT,
    LOGISTIC_STEEPNESS,
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ------------------------------------------------------------------ #
    # Service identity
    # ------------------------------------------------------------------ #
    app_name: str = "clarity-api"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False

    # ------------------------------------------------------------------ #
    # API authentication
    # Set API_KEY to a non-empty string to enable authentication.
    # Leave blank (default) to run in open / unauthenticated mode.
    # ------------------------------------------------------------------ #
    api_key: str = ""

    # ------------------------------------------------------------------ #
    # Rate limiting  (requires slowapi, enabled by default)
    # Set RATE_LIMIT_ENABLED=false to disable entirely.
    # ------------------------------------------------------------------ #
    rate_limit_enabled: bool = True
    rate_limit_per_minute: int = 120       # requests per client IP per minute

    # ------------------------------------------------------------------ #
    # Request limits
    # ------------------------------------------------------------------ #
    max_pixel_buffer_bytes: int = 64 * 1024 * 1024   # 4096 x 4096 RGBA
    max_batch_size: int = 20

    # ------------------------------------------------------------------ #
    # Scoring parameters
    # BLOCK_SIZE / BLUR_THRESHOLD are defaults; requests may override them.
    # TILE_WEIGHTING=clipped opts into clipped tile centres and weights
    # clamped to [0, 1] instead of the reference weighting.
    # ------------------------------------------------------------------ #
    default_block_size: int = DEFAULT_BLOCK_SIZE
    default_blur_threshold: float = DEFAULT_BLUR_THRESHOLD
    logistic_steepness: float = LOGISTIC_STEEPNESS
    logistic_midpoint: float = LOGISTIC_MIDPOINT
    tile_weighting: Literal["reference", "clipped"] = "reference"

    # ------------------------------------------------------------------ #
    # Logging
    # ------------------------------------------------------------------ #
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_json: bool = True          # structured JSON logs in production

    # ------------------------------------------------------------------ #
    # Validators and derived helpers
    # ------------------------------------------------------------------ #
    @field_validator("api_key", mode="before")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        return v.strip() if v else ""

    @field_validator("default_block_size", "max_batch_size", "max_pixel_buffer_bytes")
    @classmethod
    def must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be a positive integer")
        return v

    @field_validator("default_blur_threshold")
    @classmethod
    def threshold_in_unit_range(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("must lie in [0, 1]")
        return v

    @field_validator("logistic_steepness", "logistic_midpoint")
    @classmethod
    def must_be_finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("must be a finite number")
        return v

    @property
    def auth_enabled(self) -> bool:
        return bool(self.api_key)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Return a cached Settings singleton.
    The cache is reset between tests via `get_settings.cache_clear()`.
    """
    return Settings()


def settings_from_request(request: Request) -> Settings:
    """Settings bound to the running app, falling back to the cached singleton."""
    settings = getattr(request.app.state, "settings", None)
    return settings if settings is not None else get_settings()


# Convenience alias used as a FastAPI dependency.
SettingsDep = Annotated[Settings, Depends(settings_from_request)]
