# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PromptSeg: Geometry Utilities
Bounding box, box-IoU and letterbox helpers shared by post-processing,
deduplication and rendering.

All boxes are (x, y, w, h): top-left corner + dimensions.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


# ─── Bounding Box ────────────────────────────────────────────────────────────

def mask_to_bbox(mask: np.ndarray) -> tuple[int, int, int, int]:
    """
    Compute tight bounding box of a binary mask.
    Returns (x, y, w, h) with w/h inclusive of the max cell.
    Raises ValueError if mask is entirely zero.
    """
    rows = np.any(mask, axis=1)
    cols = np.any(mask, axis=0)
    if not rows.any():
        raise ValueError("mask_to_bbox: mask is entirely zero.")
    y_min, y_max = np.where(rows)[0][[0, -1]]
    x_min, x_max = np.where(cols)[0][[0, -1]]
    return int(x_min), int(y_min), int(x_max - x_min + 1), int(y_max - y_min + 1)


def rescale_bbox(
    bbox: tuple[int, int, int, int],
    scale_x: float,
    scale_y: float,
) -> tuple[int, int, int, int]:
    """Scale a (x, y, w, h) bbox per axis, truncating to integer pixels."""
    x, y, w, h = bbox
    return (
        int(x * scale_x),
        int(y * scale_y),
        int(w * scale_x),
        int(h * scale_y),
    )


def bbox_area(bbox: tuple[int, int, int, int]) -> int:
    """Return pixel area of a (x, y, w, h) bounding box."""
    return bbox[2] * bbox[3]


def box_iou(
    box_a: tuple[int, int, int, int],
    box_b: tuple[int, int, int, int],
) -> float:
    """
    Intersection-over-union of two axis-aligned (x, y, w, h) boxes.
    Returns 0.0 when the boxes do not overlap.
    """
    ax, ay, aw, ah = box_a
    bx, by, bw, bh = box_b
    ix = max(0, min(ax + aw, bx + bw) - max(ax, bx))
    iy = max(0, min(ay + ah, by + bh) - max(ay, by))
    intersection = ix * iy
    if intersection == 0:
        return 0.0
    union = bbox_area(box_a) + bbox_area(box_b) - intersection
    return intersection / union


# ─── Letterbox ───────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class LetterboxGeometry:
    """
    Placement of an aspect-preserved image inside a square canvas.
    scale maps original pixels to canvas pixels; pad_x/pad_y are the
    left/top offsets of the resized image on the canvas.
    """
    scale: float
    pad_x: int
    pad_y: int
    resized_size: tuple[int, int]  # (height, width)

    def to_original_point(self, x: float, y: float) -> tuple[float, float]:
        """Map a canvas-space point back into original-image space."""
        return (x - self.pad_x) / self.scale, (y - self.pad_y) / self.scale

    def to_original_box(
        self, bbox: tuple[float, float, float, float]
    ) -> tuple[int, int, int, int]:
        """Map a canvas-space (x, y, w, h) box back into original-image space."""
        x, y, w, h = bbox
        ox, oy = self.to_original_point(x, y)
        return int(ox), int(oy), int(w / self.scale), int(h / self.scale)


def letterbox_geometry(
    orig_size: tuple[int, int], target_length: int
) -> LetterboxGeometry:
    """
    Compute centred letterbox placement of an (H, W) image in a
    target_length × target_length canvas.
    """
    orig_h, orig_w = orig_size
    scale = target_length / float(max(orig_h, orig_w))
    new_w = int(orig_w * scale)
    new_h = int(orig_h * scale)
    return LetterboxGeometry(
        scale=scale,
        pad_x=(target_length - new_w) // 2,
        pad_y=(target_length - new_h) // 2,
        resized_size=(new_h, new_w),
    )
