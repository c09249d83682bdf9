"""
Logistic mapping from raw block variance to a [0, 1] clarity score.

A raw variance equal to LOGISTIC_MIDPOINT maps to 0.5; LOGISTIC_STEEPNESS
sets how quickly the score saturates on either side.
"""

from __future__ import annotations

import math

LOGISTIC_STEEPNESS = 0.02
LOGISTIC_MIDPOINT = 100.0
DEFAULT_BLUR_THRESHOLD = 0.5


def normalize_score(
    raw: float,
    steepness: float = LOGISTIC_STEEPNESS,
    midpoint: float = LOGISTIC_MIDPOINT,
) -> float:
    try:
        return 1.0 / (1.0 + math.exp(-steepness * (raw - midpoint)))
    except OverflowError:
        # The denominator is effectively infinite.
        return 0.0


def is_blurred(clarity_score: float, blur_threshold: float = DEFAULT_BLUR_THRESHOLD) -> bool:
    return clarity_score < blur_threshold
