"""
Result schemas plus request / response bodies for the clarity endpoints.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, Field

from clarity_api.schemas.common import PixelBufferInput, ScoringOptions


# --------------------------------------------------------------------------- #
# Core pipeline result
# --------------------------------------------------------------------------- #

class ClarityResult(BaseModel):
    clarity_score: float = Field(
        ge=0.0,
        le=1.0,
        description="Normalised clarity score in [0, 1]. Higher = sharper. "
                    "A raw variance of 100 maps to 0.5.",
        examples=[0.87],
    )
    is_blurred: bool = Field(
        description="True when `clarity_score` is below the blur threshold.",
        examples=[False],
    )
    raw_clarity_score: float = Field(
        description="Centre-weighted mean of per-block Laplacian variances, "
                    "before normalisation. Unbounded, typically >= 0.",
        examples=[195.3],
    )


# --------------------------------------------------------------------------- #
# Per-image API result
# --------------------------------------------------------------------------- #

class ImageClarityResult(BaseModel):
    image_id: str | None = Field(
        default=None,
        description="Echoed back from the request `image_id` field.",
        examples=["photo_001"],
    )
    width_px: int | None = Field(default=None, description="Image width in pixels.")
    height_px: int | None = Field(default=None, description="Image height in pixels.")
    clarity_score: float | None = Field(
        default=None,
        description="Normalised clarity score in [0, 1]. Null on failure.",
    )
    is_blurred: bool | None = Field(
        default=None,
        description="Blur verdict. Null on failure.",
    )
    raw_clarity_score: float | None = Field(
        default=None,
        description="Raw weighted block variance. Null on failure.",
    )
    block_size: int = Field(description="Tile edge length used for this image.")
    blur_threshold: float = Field(description="Threshold used for `is_blurred`.")
    processing_time_ms: float = Field(
        description="Wall-clock time in milliseconds to score this image.",
        examples=[4.2],
    )
    error: str | None = Field(
        default=None,
        description="Non-null only when this image failed to process. "
                    "Other images in the batch are unaffected.",
        examples=["invalid_input: Pixel buffer holds 15 bytes; expected 16."],
    )


# --------------------------------------------------------------------------- #
# Single-image endpoint
# --------------------------------------------------------------------------- #

class ClarityRequest(ScoringOptions, BaseModel):
    """Request body for POST /v1/clarity"""

    image: PixelBufferInput

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "image": {
                        "data": "<base64-encoded-rgba>",
                        "width": 640,
                        "height": 480,
                        "image_id": "photo_001",
                    },
                    "block_size": 32,
                    "blur_threshold": 0.5,
                }
            ]
        }
    }


class ClarityResponse(BaseModel):
    """Response body for POST /v1/clarity"""

    api_version: str = Field(default="1.0", description="API version string.")
    result: ImageClarityResult


# --------------------------------------------------------------------------- #
# Batch endpoint
# --------------------------------------------------------------------------- #

class BatchClarityRequest(ScoringOptions, BaseModel):
    """Request body for POST /v1/clarity/batch"""

    images: Annotated[
        list[PixelBufferInput],
        Field(
            min_length=1,
            description="Pixel buffers to score. Maximum 20 per request "
                        "(configurable via MAX_BATCH_SIZE env var).",
        ),
    ]


class BatchClarityResponse(BaseModel):
    """Response body for POST /v1/clarity/batch"""

    api_version: str = Field(default="1.0")
    total: int = Field(description="Total number of images submitted.")
    succeeded: int = Field(description="Number of images successfully scored.")
    failed: int = Field(description="Number of images that failed.")
    results: list[ImageClarityResult]
    total_processing_time_ms: float = Field(
        description="Total wall-clock time for the entire batch."
    )
