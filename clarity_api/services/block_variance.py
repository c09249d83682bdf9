"""
Centre-weighted block variance of an edge map.

The edge map is cut into non-overlapping `block_size` x `block_size` tiles
starting at (0, 0); tiles on the right and bottom edges are clipped to the
image. Each tile contributes its population variance, weighted by how close
its centre lies to the image centre:

    weight = 1 - distance(tile_centre, image_centre) / half_diagonal

and the tiles are combined as sum(variance * weight) / sum(weight).

Two weighting modes are supported:

  - "reference": the tile centre is the nominal centre
    (x + block_size / 2, y + block_size / 2) even when the tile is clipped,
    and weights are not clamped. Corner tiles of non-square images can get
    a small negative weight. This reproduces the historical scores.
  - "clipped": the tile centre is the centre of the clipped tile and
    weights are clamped to [0, 1].
"""

from __future__ import annotations

import math
from typing import Iterator, Literal, NamedTuple

import numpy as np

from clarity_api.core.errors import ComputationFailureError, InvalidInputError

DEFAULT_BLOCK_SIZE = 32

TileWeighting = Literal["reference", "clipped"]
TILE_WEIGHTINGS: tuple[str, ...] = ("reference", "clipped")


class Block(NamedTuple):
    x: int                  # column of the top-left sample
    y: int                  # row of the top-left sample
    width: int              # in-bounds width (may be < block_size)
    height: int             # in-bounds height (may be < block_size)
    center_x: float
    center_y: float
    variance: float


def population_variance(samples: np.ndarray) -> float:
    """mean(x^2) - mean(x)^2 from a running sum and sum of squares."""
    count = samples.size
    total = float(samples.sum())
    total_sq = float(np.square(samples).sum())
    mean = total / count
    return total_sq / count - mean * mean


def validate_block_size(block_size: int) -> None:
    if isinstance(block_size, bool) or not isinstance(block_size, (int, np.integer)):
        raise InvalidInputError(
            f"block_size must be an integer, got {type(block_size).__name__}."
        )
    if block_size <= 0:
        raise InvalidInputError(f"block_size must be positive, got {block_size}.")


def validate_weighting(weighting: str) -> None:
    if weighting not in TILE_WEIGHTINGS:
        raise InvalidInputError(
            f"Unknown tile weighting '{weighting}'. Expected one of {TILE_WEIGHTINGS}."
        )


def iter_blocks(
    edge_map: np.ndarray,
    block_size: int,
    weighting: TileWeighting = "reference",
) -> Iterator[Block]:
    """Yield every tile of `edge_map` in row-major order."""
    height, width = edge_map.shape
    for y in range(0, height, block_size):
        for x in range(0, width, block_size):
            tile = edge_map[y:y + block_size, x:x + block_size]
            tile_height, tile_width = tile.shape
            if weighting == "clipped":
                center_x = x + tile_width / 2
                center_y = y + tile_height / 2
            else:
                center_x = x + block_size / 2
                center_y = y + block_size / 2
            yield Block(
                x=x,
                y=y,
                width=tile_width,
                height=tile_height,
                center_x=center_x,
                center_y=center_y,
                variance=population_variance(tile),
            )


def block_weight(
    block: Block,
    width: int,
    height: int,
    weighting: TileWeighting = "reference",
) -> float:
    half_w = width / 2
    half_h = height / 2
    max_distance = math.sqrt(half_w ** 2 + half_h ** 2)

    dx = block.center_x - half_w
    dy = block.center_y - half_h
    distance = math.sqrt(dx ** 2 + dy ** 2)

    weight = 1 - distance / max_distance
    if weighting == "clipped":
        weight = min(max(weight, 0.0), 1.0)
    return weight


def weighted_block_variance(
    edge_map: np.ndarray,
    block_size: int = DEFAULT_BLOCK_SIZE,
    weighting: TileWeighting = "reference",
) -> float:
    """
    Return the centre-weighted mean of per-tile variances (the raw clarity
    score). A single tile scores its own variance whatever its weight.
    Raises ComputationFailureError when the weights of several tiles sum to
    zero or the result is not finite.
    """
    validate_block_size(block_size)
    validate_weighting(weighting)
    if edge_map.ndim != 2:
        raise InvalidInputError(f"Expected a 2-D edge map, got shape {edge_map.shape}.")

    height, width = edge_map.shape
    blocks = list(iter_blocks(edge_map, block_size, weighting))
    if len(blocks) == 1:
        return blocks[0].variance

    weighted_sum = 0.0
    total_weight = 0.0
    for block in blocks:
        weight = block_weight(block, width, height, weighting)
        weighted_sum += block.variance * weight
        total_weight += weight

    if total_weight == 0:
        raise ComputationFailureError(
            "block_variance",
            f"tile weights sum to zero for a {width}x{height} image "
            f"with block_size={block_size}.",
        )

    raw = weighted_sum / total_weight
    if not math.isfinite(raw):
        raise ComputationFailureError("block_variance", f"non-finite raw score {raw!r}.")
    return raw
