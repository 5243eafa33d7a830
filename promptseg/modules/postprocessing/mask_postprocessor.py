# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PromptSeg: Mask Post-Processor
Turns raw decoder logits into binary masks and candidate results.

Steps per candidate:
  1. Binarise: foreground iff logit > threshold
  2. Area = count of foreground cells
  3. Tight bbox at mask resolution (no foreground → candidate dropped)
  4. Rescale bbox per axis to original-image space

The bbox rescale uses plain origW/maskW and origH/maskH ratios. It does
not undo letterbox padding; EmbeddingBundle.letterbox carries what a
caller needs for that.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from promptseg.models.segmentation import SegmentationResult
from promptseg.modules.prompting.coordinate_mapper import scale_to_original
from promptseg.utils.geometry_utils import mask_to_bbox, rescale_bbox
from promptseg.utils.logger import get_logger

log = get_logger(__name__)


def binarize(raw: np.ndarray, threshold: float = 0.0) -> np.ndarray:
    """Boolean mask, True where raw > threshold."""
    return raw > threshold


def mask_area(mask: np.ndarray) -> int:
    return int(np.count_nonzero(mask))


def stability_score(raw: np.ndarray, threshold: float, offset: float) -> float:
    """
    IoU between the masks binarised at threshold + offset and
    threshold - offset. The strict mask is always inside the loose one.
    """
    strict = np.count_nonzero(raw > (threshold + offset))
    loose = np.count_nonzero(raw > (threshold - offset))
    if loose == 0:
        return 0.0
    return strict / float(loose)


def bbox_to_original(
    bbox: tuple[int, int, int, int],
    mask_size: tuple[int, int],
    orig_size: tuple[int, int],
) -> tuple[int, int, int, int]:
    """Rescale a mask-resolution (x, y, w, h) box to original-image pixels."""
    scale_x, scale_y = scale_to_original(orig_size, mask_size)
    return rescale_bbox(bbox, scale_x, scale_y)


def to_label_mask(raw: np.ndarray, threshold: float = 0.0) -> np.ndarray:
    """uint8 mask (0 or 255) at decoder output resolution."""
    return np.where(binarize(raw, threshold), 255, 0).astype(np.uint8)


def empty_label_mask(orig_size: tuple[int, int]) -> np.ndarray:
    """All-background uint8 mask at original-image size."""
    return np.zeros(orig_size, dtype=np.uint8)


def build_result(
    raw: np.ndarray,
    predicted_iou: float,
    orig_size: tuple[int, int],
    *,
    threshold: float = 0.0,
    stability_offset: float = 1.0,
    point_coords: Optional[list[tuple[float, float]]] = None,
    point_index: int = -1,
    mask_index: int = 0,
) -> Optional[SegmentationResult]:
    """
    Post-process one raw mask into a SegmentationResult.
    Returns None when binarisation leaves no foreground cell.
    """
    mask = binarize(raw, threshold)
    try:
        bbox = mask_to_bbox(mask)
    except ValueError:
        return None

    return SegmentationResult(
        mask=mask,
        predicted_iou=float(predicted_iou),
        stability_score=stability_score(raw, threshold, stability_offset),
        bbox=bbox_to_original(bbox, mask.shape[:2], orig_size),
        point_coords=list(point_coords or []),
        point_index=point_index,
        mask_index=mask_index,
    )
