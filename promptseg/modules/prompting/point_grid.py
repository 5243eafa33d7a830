# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PromptSeg: Point-Grid Generator
Evenly spaced, cell-centred lattice in network-input space for
automatic mask generation. Row-major order is kept all the way through
batching so every result traces back to its grid point.
"""

from __future__ import annotations

from typing import Iterator, Sequence, TypeVar

T = TypeVar("T")


def generate_point_grid(
    width: int, height: int, points_per_side: int
) -> list[tuple[float, float]]:
    """
    points_per_side² points, row-major:
      x = (j + 0.5) * width / n,  y = (i + 0.5) * height / n
    Returns [] when points_per_side <= 0.
    """
    if points_per_side <= 0:
        return []
    step_x = width / float(points_per_side)
    step_y = height / float(points_per_side)
    return [
        ((j + 0.5) * step_x, (i + 0.5) * step_y)
        for i in range(points_per_side)
        for j in range(points_per_side)
    ]


def batch_iterator(items: Sequence[T], batch_size: int) -> Iterator[tuple[int, Sequence[T]]]:
    """Yield (start_index, batch) slices of at most batch_size items, in order."""
    if batch_size <= 0:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    for start in range(0, len(items), batch_size):
        yield start, items[start:start + batch_size]
