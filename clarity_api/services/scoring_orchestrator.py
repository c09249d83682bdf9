"""
Scoring orchestrator: runs the clarity pipeline for one API image input.

Responsibilities:
  1. Enforce the configured pixel buffer size limit.
  2. Resolve per-request overrides against the configured defaults.
  3. Run `detect_blur` in a worker thread so the event loop stays free.
  4. Optionally capture per-image errors so a batch can continue.
"""

from __future__ import annotations

import asyncio
import logging
import time

from clarity_api.core.config import Settings
from clarity_api.core.errors import ClarityAPIError
from clarity_api.schemas.clarity import ImageClarityResult
from clarity_api.schemas.common import PixelBufferInput, ScoringOptions
from clarity_api.services.clarity_service import detect_blur
from clarity_api.utils.pixel_buffer import check_buffer_size

logger = logging.getLogger(__name__)


def resolve_options(options: ScoringOptions, settings: Settings) -> tuple[int, float]:
    block_size = (
        options.block_size if options.block_size is not None else settings.default_block_size
    )
    blur_threshold = (
        options.blur_threshold
        if options.blur_threshold is not None
        else settings.default_blur_threshold
    )
    return block_size, blur_threshold


async def score_single_image(
    image_input: PixelBufferInput,
    options: ScoringOptions,
    settings: Settings,
    *,
    isolate_errors: bool = False,
) -> ImageClarityResult:
    """
    Score one pixel buffer.

    With `isolate_errors=False` domain errors propagate to the caller (and
    from there to the exception handlers). With `isolate_errors=True` the
    error is logged and returned in the result's `error` field instead.
    """
    t0 = time.perf_counter()
    block_size, blur_threshold = resolve_options(options, settings)

    try:
        check_buffer_size(len(image_input.data), settings.max_pixel_buffer_bytes)
        result = await asyncio.to_thread(
            detect_blur,
            image_input.data,
            image_input.width,
            image_input.height,
            block_size,
            blur_threshold,
            steepness=settings.logistic_steepness,
            midpoint=settings.logistic_midpoint,
            weighting=settings.tile_weighting,
        )
    except ClarityAPIError as exc:
        if not isolate_errors:
            raise
        elapsed = (time.perf_counter() - t0) * 1000
        logger.warning(
            "Scoring failed for id=%s: [%s] %s",
            image_input.image_id,
            exc.code,
            exc.message,
        )
        return ImageClarityResult(
            image_id=image_input.image_id,
            width_px=image_input.width,
            height_px=image_input.height,
            block_size=block_size,
            blur_threshold=blur_threshold,
            processing_time_ms=round(elapsed, 2),
            error=f"{exc.code}: {exc.message}",
        )

    elapsed = (time.perf_counter() - t0) * 1000
    logger.debug(
        "Scored image id=%s",
        image_input.image_id,
        extra={
            "clarity_score": result.clarity_score,
            "raw_clarity_score": result.raw_clarity_score,
            "is_blurred": result.is_blurred,
            "elapsed_ms": round(elapsed, 2),
        },
    )

    return ImageClarityResult(
        image_id=image_input.image_id,
        width_px=image_input.width,
        height_px=image_input.height,
        clarity_score=result.clarity_score,
        is_blurred=result.is_blurred,
        raw_clarity_score=result.raw_clarity_score,
        block_size=block_size,
        blur_threshold=blur_threshold,
        processing_time_ms=round(elapsed, 2),
    )
