"""
Blur detection by centre-weighted Laplacian block variance.

Pipeline (each stage is a pure function, data flows strictly forward):

  1. grayscale         RGBA buffer   -> uint8 luminance
  2. edge_filter       luminance     -> float64 Laplacian response
  3. block_variance    edge response -> raw clarity score
  4. score_normalizer  raw score     -> clarity score in [0, 1] + verdict

`detect_blur` holds no state between calls, so it is safe to run from
several threads at once. Arguments are validated before any stage runs;
an unexpected failure inside a stage is re-raised as
ComputationFailureError naming that stage.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from clarity_api.core.errors import ClarityAPIError, ComputationFailureError, InvalidInputError
from clarity_api.schemas.clarity import ClarityResult
from clarity_api.services.block_variance import (
    DEFAULT_BLOCK_SIZE,
    TileWeighting,
    validate_block_size,
    validate_weighting,
    weighted_block_variance,
)
from clarity_api.services.edge_filter import laplacian_edge_map
from clarity_api.services.grayscale import to_grayscale
from clarity_api.services.score_normalizer import (
    DEFAULT_BLUR_THRESHOLD,
    LOGISTIC_MIDPOINT,
    LOGISTIC_STEEPNESS,
    is_blurred,
    normalize_score,
)
from clarity_api.utils.pixel_buffer import (
    PixelData,
    expected_buffer_length,
    validate_dimensions,
)


@contextmanager
def _stage(name: str) -> Iterator[None]:
    try:
        yield
    except ClarityAPIError:
        raise
    except Exception as exc:
        raise ComputationFailureError(name, f"{type(exc).__name__}: {exc}") from exc


def _validate_arguments(
    pixels: PixelData,
    width: int,
    height: int,
    block_size: int,
    blur_threshold: float,
    weighting: str,
) -> None:
    validate_dimensions(width, height)
    validate_block_size(block_size)
    validate_weighting(weighting)

    if isinstance(blur_threshold, bool) or not isinstance(blur_threshold, (int, float)):
        raise InvalidInputError(
            f"blur_threshold must be a number, got {type(blur_threshold).__name__}."
        )
    if not 0.0 <= blur_threshold <= 1.0:
        raise InvalidInputError(f"blur_threshold must lie in [0, 1], got {blur_threshold}.")

    expected = expected_buffer_length(width, height)
    try:
        actual = len(pixels) if not hasattr(pixels, "nbytes") else pixels.nbytes
    except TypeError as exc:
        raise InvalidInputError(f"Pixel buffer has no length: {exc}") from exc
    if actual != expected:
        raise InvalidInputError(
            f"Pixel buffer holds {actual:,} bytes; expected {expected:,} "
            f"for a {width}x{height} RGBA image."
        )


def detect_blur(
    pixels: PixelData,
    width: int,
    height: int,
    block_size: int = DEFAULT_BLOCK_SIZE,
    blur_threshold: float = DEFAULT_BLUR_THRESHOLD,
    *,
    steepness: float = LOGISTIC_STEEPNESS,
    midpoint: float = LOGISTIC_MIDPOINT,
    weighting: TileWeighting = "reference",
) -> ClarityResult:
    """
    Score the sharpness of an RGBA image.

    Raises InvalidInputError for malformed arguments and
    ComputationFailureError when a stage fails (e.g. weights of several
    tiles that sum to zero).
    """
    _validate_arguments(pixels, width, height, block_size, blur_threshold, weighting)

    with _stage("grayscale"):
        gray = to_grayscale(pixels, width, height)

    with _stage("edge_filter"):
        edges = laplacian_edge_map(gray)

    with _stage("block_variance"):
        raw = weighted_block_variance(edges, block_size, weighting)

    with _stage("score_normalizer"):
        score = normalize_score(raw, steepness, midpoint)

    return ClarityResult(
        clarity_score=score,
        is_blurred=is_blurred(score, blur_threshold),
        raw_clarity_score=raw,
    )
