"""
Edge response via a fixed 3x3 discrete Laplacian.

The Laplacian approximates the second derivative of the image. Sharp
edges and texture produce large positive and negative responses; flat or
blurred regions produce responses near zero.

Border pixels (first/last row and column) are overwritten with 0 after
filtering rather than keeping OpenCV's reflected-border response, so
sharpness close to the image border is systematically underestimated.
"""

from __future__ import annotations

import cv2
import numpy as np

from clarity_api.core.errors import InvalidInputError

LAPLACIAN_KERNEL = np.array(
    [
        [0, 1, 0],
        [1, -4, 1],
        [0, 1, 0],
    ],
    dtype=np.float64,
)


def laplacian_edge_map(gray: np.ndarray) -> np.ndarray:
    """
    Convolve `gray` with LAPLACIAN_KERNEL and return a float64 map of the
    same shape. Images smaller than 3x3 have no interior and yield zeros.
    """
    if gray.ndim != 2:
        raise InvalidInputError(f"Expected a 2-D grayscale array, got shape {gray.shape}.")

    height, width = gray.shape
    if height < 3 or width < 3:
        return np.zeros((height, width), dtype=np.float64)

    # The kernel is symmetric, so filter2D's correlation equals convolution.
    edges = cv2.filter2D(gray, cv2.CV_64F, LAPLACIAN_KERNEL)
    edges[0, :] = 0
    edges[-1, :] = 0
    edges[:, 0] = 0
    edges[:, -1] = 0
    return edges
