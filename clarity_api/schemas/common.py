"""
Shared schema primitives reused across endpoints.
"""

from __future__ import annotations

from pydantic import Base64Bytes, BaseModel, Field


# --------------------------------------------------------------------------- #
# Image source: a decoded RGBA pixel buffer
# --------------------------------------------------------------------------- #

class PixelBufferInput(BaseModel):
    """
    A single decoded image to be scored.

    `data` is the raw RGBA pixel buffer (row-major, 4 bytes per pixel)
    encoded as standard base64. Its decoded length must equal
    `width * height * 4`; the length is checked by the scoring pipeline so
    mismatches surface as `invalid_input` errors.
    """

    data: Base64Bytes = Field(
        description="RGBA pixel bytes encoded as standard base64 (RFC 4648).",
        examples=["/wAA//8AAP//AAD//wAA/w=="],
    )
    width: int = Field(gt=0, description="Image width in pixels.", examples=[640])
    height: int = Field(gt=0, description="Image height in pixels.", examples=[480])
    image_id: str | None = Field(
        default=None,
        description="Caller-supplied identifier echoed back in the response. "
                    "Useful for correlating batch results. Max 128 chars.",
        max_length=128,
        examples=["photo_abc123"],
    )


# --------------------------------------------------------------------------- #
# Scoring options: caller may override the configured defaults
# --------------------------------------------------------------------------- #

class ScoringOptions(BaseModel):
    """
    Optional per-request overrides. Omitted fields fall back to the
    service configuration (DEFAULT_BLOCK_SIZE / DEFAULT_BLUR_THRESHOLD).
    """

    block_size: int | None = Field(
        default=None,
        gt=0,
        description="Tile edge length in pixels for block variance.",
    )
    blur_threshold: float | None = Field(
        default=None,
        ge=0.0,
        le=1.0,
        description="Clarity scores below this value are classified as blurred.",
    )
