# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PromptSeg: Deduplicator
Greedy box-level NMS over automatic-mode candidates.

Candidates are ranked by (predicted_iou, area), both descending, with a
stable sort so equal keys keep their grid order. A candidate is kept if
its bbox IoU against every already-kept candidate is <= the threshold.

Overlap is measured on bounding boxes, not mask pixels.
"""

from __future__ import annotations

from promptseg.models.segmentation import SegmentationResult
from promptseg.utils.geometry_utils import box_iou
from promptseg.utils.logger import get_logger

log = get_logger(__name__)


def rank_candidates(masks: list[SegmentationResult]) -> list[SegmentationResult]:
    """Sort by predicted IoU, then area, both descending."""
    return sorted(masks, key=lambda m: (m.predicted_iou, m.area), reverse=True)


def deduplicate(
    masks: list[SegmentationResult],
    overlap_threshold: float = 0.7,
) -> list[SegmentationResult]:
    """
    Return the surviving candidates in rank order.
    O(n²) in the number of survivors at worst.
    """
    if not masks:
        return []

    kept: list[SegmentationResult] = []
    for candidate in rank_candidates(masks):
        if all(
            box_iou(candidate.bbox, accepted.bbox) <= overlap_threshold
            for accepted in kept
        ):
            kept.append(candidate)

    log.debug(
        "deduplicate_complete",
        before=len(masks),
        after=len(kept),
        threshold=overlap_threshold,
    )
    return kept
