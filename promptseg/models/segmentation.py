# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PromptSeg: Segmentation Result Models
SegmentationResult is produced by automatic mask generation and consumed
by the deduplicator. The response models are the JSON shapes returned
by the HTTP API.
"""

from __future__ import annotations

from typing import Any

import numpy as np
from pydantic import BaseModel, ConfigDict, Field


class SegmentationResult(BaseModel):
    """
    One candidate mask from automatic mode. Immutable once produced.
    The mask stays at decoder output resolution; bbox and point_coords
    are in original-image pixel space.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    mask: Any = Field(..., description="np.ndarray bool (H_out, W_out)")
    predicted_iou: float
    stability_score: float = 0.0
    bbox: tuple[int, int, int, int] = Field(..., description="(x, y, w, h) original-image space")
    point_coords: list[tuple[float, float]] = Field(default_factory=list)
    # Position of the originating point in the submitted point sequence
    point_index: int = -1
    # Which of the decoder's per-point mask outputs this came from
    mask_index: int = 0

    @property
    def area(self) -> int:
        """Count of foreground cells at mask resolution."""
        return int(np.count_nonzero(self.mask))

    def to_summary(self) -> "SegmentationSummary":
        return SegmentationSummary(
            bbox=self.bbox,
            predicted_iou=self.predicted_iou,
            stability_score=self.stability_score,
            area=self.area,
            point_coords=self.point_coords,
            point_index=self.point_index,
            mask_index=self.mask_index,
        )


# ─── API Response Models ─────────────────────────────────────────────────────

class SegmentationSummary(BaseModel):
    """JSON view of a SegmentationResult (mask omitted)."""
    bbox: tuple[int, int, int, int]
    predicted_iou: float
    stability_score: float
    area: int
    point_coords: list[tuple[float, float]]
    point_index: int
    mask_index: int


class AutomaticResponse(BaseModel):
    mask_size: tuple[int, int] | None = Field(
        None, description="(height, width) of every returned mask"
    )
    results: list[SegmentationSummary] = Field(default_factory=list)


class SessionCreatedResponse(BaseModel):
    session_id: str
    height: int
    width: int


class LabelMaskSummary(BaseModel):
    label_id: int
    mask_size: tuple[int, int]
    area: int
    scores: list[float] = Field(default_factory=list)


class MaskMapResponse(BaseModel):
    session_id: str
    labels: list[LabelMaskSummary] = Field(default_factory=list)


# ─── API Request Models ──────────────────────────────────────────────────────

class PointRequest(BaseModel):
    x: float
    y: float
    positive: bool = True


class BoxRequest(BaseModel):
    x1: float
    y1: float
    x2: float
    y2: float
