"""
Health check response schemas.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class ScoringParameters(BaseModel):
    default_block_size: int = Field(description="Block size used when a request omits it.")
    default_blur_threshold: float = Field(
        description="Blur threshold used when a request omits it."
    )
    logistic_steepness: float = Field(description="Logistic curve steepness k.")
    logistic_midpoint: float = Field(description="Raw variance mapped to a score of 0.5.")
    tile_weighting: Literal["reference", "clipped"] = Field(
        description="Tile centre / weight mode for block aggregation."
    )


class HealthResponse(BaseModel):
    """Response body for GET /health and GET /v1/health"""

    status: Literal["ok"] = Field(
        description="Always `ok` while the process is serving requests. "
                    "The pipeline has no models or external dependencies."
    )
    version: str = Field(description="Service version string.", examples=["1.0.0"])
    environment: str = Field(examples=["production"])
    uptime_seconds: float = Field(description="Seconds since the process started.")
    scoring: ScoringParameters
