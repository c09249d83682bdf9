"""
Pixel buffer utilities.

The service never decodes image files: callers send an already decoded
RGBA buffer (row-major, 4 interleaved uint8 channels per pixel) together
with its width and height. These helpers validate that contract and expose
the buffer as a read-only (H, W, 4) numpy view without copying.
"""

from __future__ import annotations

from typing import Union

import numpy as np

from clarity_api.core.errors import InvalidInputError, PixelBufferTooLargeError

RGBA_CHANNELS = 4

PixelData = Union[bytes, bytearray, memoryview, np.ndarray]


def validate_dimensions(width: int, height: int) -> None:
    for name, value in (("width", width), ("height", height)):
        if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
            raise InvalidInputError(f"{name} must be an integer, got {type(value).__name__}.")
        if value <= 0:
            raise InvalidInputError(f"{name} must be positive, got {value}.")


def expected_buffer_length(width: int, height: int) -> int:
    return int(width) * int(height) * RGBA_CHANNELS


def as_rgba_array(pixels: PixelData, width: int, height: int) -> np.ndarray:
    """
    Return `pixels` as a (height, width, 4) uint8 array.

    Raises InvalidInputError when the dimensions are not positive or the
    buffer length differs from width * height * 4. A length mismatch is
    never padded or truncated.
    """
    validate_dimensions(width, height)

    if isinstance(pixels, np.ndarray):
        if pixels.dtype != np.uint8:
            raise InvalidInputError(
                f"Pixel array must have dtype uint8, got {pixels.dtype}."
            )
        flat = pixels.reshape(-1)
    else:
        try:
            flat = np.frombuffer(pixels, dtype=np.uint8)
        except (TypeError, ValueError) as exc:
            raise InvalidInputError(f"Pixel buffer is not a bytes-like object: {exc}") from exc

    expected = expected_buffer_length(width, height)
    if flat.size != expected:
        raise InvalidInputError(
            f"Pixel buffer holds {flat.size:,} bytes; expected {expected:,} "
            f"({width}x{height} pixels x {RGBA_CHANNELS} channels)."
        )

    return flat.reshape(int(height), int(width), RGBA_CHANNELS)


def check_buffer_size(size_bytes: int, max_bytes: int) -> None:
    if size_bytes > max_bytes:
        raise PixelBufferTooLargeError(size_bytes, max_bytes)
