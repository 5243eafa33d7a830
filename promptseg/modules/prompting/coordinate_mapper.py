# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PromptSeg: Coordinate Mapper
Per-axis scaling between original-image space and network space.
Sizes are (height, width). No clamping: out-of-range prompts map to
out-of-range coordinates.
"""

from __future__ import annotations

import numpy as np


def to_network_space(
    pt: tuple[float, float],
    orig_size: tuple[int, int],
    net_size: tuple[int, int],
) -> tuple[float, float]:
    """x' = x / origW * netW, y' = y / origH * netH."""
    x, y = pt
    orig_h, orig_w = orig_size
    net_h, net_w = net_size
    return x / orig_w * net_w, y / orig_h * net_h


def to_original_space(
    pt: tuple[float, float],
    orig_size: tuple[int, int],
    net_size: tuple[int, int],
) -> tuple[float, float]:
    """Inverse of to_network_space."""
    x, y = pt
    sx, sy = scale_to_original(orig_size, net_size)
    return x * sx, y * sy


def scale_to_original(
    orig_size: tuple[int, int],
    output_size: tuple[int, int],
) -> tuple[float, float]:
    """(scaleX, scaleY) = (origW / outW, origH / outH)."""
    orig_h, orig_w = orig_size
    out_h, out_w = output_size
    return orig_w / float(out_w), orig_h / float(out_h)


def coords_to_network_array(
    coords: list[tuple[float, float]],
    orig_size: tuple[int, int],
    net_size: tuple[int, int],
) -> np.ndarray:
    """Map a list of points to an (N, 2) float32 array in network space."""
    if not coords:
        return np.zeros((0, 2), dtype=np.float32)
    mapped = [to_network_space(pt, orig_size, net_size) for pt in coords]
    return np.asarray(mapped, dtype=np.float32)
