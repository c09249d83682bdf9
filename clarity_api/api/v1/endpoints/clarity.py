"""
Single-image and batch clarity endpoints.

POST /v1/clarity        — score one pixel buffer
POST /v1/clarity/batch  — score up to MAX_BATCH_SIZE pixel buffers concurrently
"""

from __future__ import annotations

import asyncio
import logging
import time

from fastapi import APIRouter

from clarity_api.core.config import SettingsDep
from clarity_api.core.errors import BatchTooLargeError
from clarity_api.core.security import AuthDep
from clarity_api.schemas.clarity import (
    BatchClarityRequest,
    BatchClarityResponse,
    ClarityRequest,
    ClarityResponse,
)
from clarity_api.schemas.common import ScoringOptions
from clarity_api.services.scoring_orchestrator import score_single_image

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clarity", tags=["Clarity"])


@router.post(
    "",
    response_model=ClarityResponse,
    summary="Score a single image",
    description=(
        "Submit one decoded RGBA pixel buffer (base64) with its dimensions and "
        "receive a clarity score in [0, 1], the raw weighted block variance and "
        "a blurred / sharp verdict."
    ),
    responses={
        401: {"description": "Missing or invalid X-Api-Key header."},
        413: {"description": "Pixel buffer exceeds the maximum allowed size."},
        422: {"description": "Validation error or malformed pixel buffer."},
        500: {"description": "A pipeline stage failed for this input."},
    },
)
async def score_single(
    body: ClarityRequest,
    settings: SettingsDep,
    _auth: AuthDep,
) -> ClarityResponse:
    options = ScoringOptions(block_size=body.block_size, blur_threshold=body.blur_threshold)
    result = await score_single_image(body.image, options, settings)
    logger.info(
        "Scored image id=%s: clarity=%.4f blurred=%s",
        result.image_id,
        result.clarity_score,
        result.is_blurred,
    )
    return ClarityResponse(result=result)


@router.post(
    "/batch",
    response_model=BatchClarityResponse,
    summary="Score multiple images in one request",
    description=(
        "Submit a list of RGBA pixel buffers. All images are scored concurrently. "
        "Per-image failures are isolated: a single bad buffer does not fail the "
        "entire batch. Maximum batch size is configurable via the MAX_BATCH_SIZE "
        "environment variable (default: 20)."
    ),
    responses={
        401: {"description": "Missing or invalid X-Api-Key header."},
        422: {"description": "Validation error or batch exceeds size limit."},
    },
)
async def score_batch(
    body: BatchClarityRequest,
    settings: SettingsDep,
    _auth: AuthDep,
) -> BatchClarityResponse:
    if len(body.images) > settings.max_batch_size:
        raise BatchTooLargeError(len(body.images), settings.max_batch_size)

    options = ScoringOptions(block_size=body.block_size, blur_threshold=body.blur_threshold)

    t0 = time.perf_counter()

    # Per-image errors are captured in each result's `error` field.
    tasks = [
        score_single_image(image_input, options, settings, isolate_errors=True)
        for image_input in body.images
    ]
    results = await asyncio.gather(*tasks)

    elapsed = (time.perf_counter() - t0) * 1000
    succeeded = sum(1 for r in results if r.error is None)
    logger.info(
        "Scored batch of %d images (%d failed) in %.1f ms",
        len(results),
        len(results) - succeeded,
        elapsed,
    )

    return BatchClarityResponse(
        total=len(results),
        succeeded=succeeded,
        failed=len(results) - succeeded,
        results=list(results),
        total_processing_time_ms=round(elapsed, 2),
    )
