"""
RGBA to luminance conversion using the ITU-R BT.601 luma weights.

Alpha is ignored. The weighted sum is truncated (not rounded) to uint8.
"""

from __future__ import annotations

import numpy as np

from clarity_api.utils.pixel_buffer import PixelData, as_rgba_array

LUMA_WEIGHTS = (0.299, 0.587, 0.114)


def to_grayscale(pixels: PixelData, width: int, height: int) -> np.ndarray:
    """Return a (height, width) uint8 luminance array; the input is not modified."""
    rgba = as_rgba_array(pixels, width, height)

    r_weight, g_weight, b_weight = LUMA_WEIGHTS
    luma = (
        r_weight * rgba[:, :, 0].astype(np.float64)
        + g_weight * rgba[:, :, 1].astype(np.float64)
        + b_weight * rgba[:, :, 2].astype(np.float64)
    )
    return np.floor(luma).astype(np.uint8)
