# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PromptSeg: Post-processing Module
Public API for binarisation, candidate building and deduplication.
"""

from promptseg.modules.postprocessing.deduplicator import deduplicate, rank_candidates
from promptseg.modules.postprocessing.mask_postprocessor import (
    bbox_to_original,
    binarize,
    build_result,
    empty_label_mask,
    mask_area,
    stability_score,
    to_label_mask,
)

__all__ = [
    # Mask post-processor
    "binarize",
    "mask_area",
    "stability_score",
    "bbox_to_original",
    "build_result",
    "to_label_mask",
    "empty_label_mask",
    # Deduplicator
    "deduplicate",
    "rank_candidates",
]
