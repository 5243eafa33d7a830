# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PromptSeg: Mask Overlay Renderer
Draws automatic-mode results over the original image:
  - Red bounding box per result
  - Mask resized (nearest) into its box and blended in translucent green

Colours are BGR (OpenCV convention).
"""

from __future__ import annotations

import cv2
import numpy as np

from promptseg.models.segmentation import SegmentationResult
from promptseg.utils.logger import get_logger

log = get_logger(__name__)

_BOX_COLOUR = (0, 0, 255)      # red
_MASK_COLOUR = (0, 255, 0)     # green
_MASK_ALPHA = 0.5


def _crop_mask_to_bbox(mask: np.ndarray) -> np.ndarray:
    """Cut the mask down to its own tight extent."""
    rows = np.any(mask, axis=1)
    cols = np.any(mask, axis=0)
    y0, y1 = np.where(rows)[0][[0, -1]]
    x0, x1 = np.where(cols)[0][[0, -1]]
    return mask[y0:y1 + 1, x0:x1 + 1]


def render_overlay(
    image_bgr: np.ndarray,
    results: list[SegmentationResult],
    alpha: float = _MASK_ALPHA,
) -> np.ndarray:
    """
    Return a copy of image_bgr with every result drawn on it.
    Boxes are clipped to the image; results with an empty box are skipped.
    """
    overlay = image_bgr.copy()
    ih, iw = overlay.shape[:2]
    thickness = max(2, int(iw / 200))

    for result in results:
        x, y, bw, bh = result.bbox
        x0, y0 = max(0, x), max(0, y)
        x1, y1 = min(iw, x + bw), min(ih, y + bh)
        if x1 <= x0 or y1 <= y0 or result.area == 0:
            continue

        # Mask region stretched over the box, then clipped with it
        local = _crop_mask_to_bbox(result.mask).astype(np.uint8) * 255
        resized = cv2.resize(local, (bw, bh), interpolation=cv2.INTER_NEAREST)
        resized = resized[y0 - y:y1 - y, x0 - x:x1 - x]

        region = overlay[y0:y1, x0:x1]
        tint = np.empty_like(region)
        tint[:] = _MASK_COLOUR
        blended = cv2.addWeighted(region, 1.0 - alpha, tint, alpha, 0.0)
        sel = resized > 0
        region[sel] = blended[sel]

        cv2.rectangle(overlay, (x0, y0), (x1 - 1, y1 - 1), _BOX_COLOUR, thickness)

    log.debug("overlay_rendered", result_count=len(results))
    return overlay
