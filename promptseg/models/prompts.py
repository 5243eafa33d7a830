# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PromptSeg: Prompt Data Models
Point and box prompts in original-image pixel space, plus the per-label
state owned by an interactive session.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class PromptLabel(IntEnum):
    """
    Decoder point-label values. Box corners use reserved values 2/3 so
    they can never collide with point signs 0/1.
    """
    NEGATIVE = 0
    POSITIVE = 1
    BOX_TOP_LEFT = 2
    BOX_BOTTOM_RIGHT = 3


class PointPrompt(BaseModel):
    """A single click in original-image pixel space."""
    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    positive: bool = True

    @property
    def label(self) -> PromptLabel:
        return PromptLabel.POSITIVE if self.positive else PromptLabel.NEGATIVE


class BoxPrompt(BaseModel):
    """Two box corners in original-image pixel space, kept in caller order."""
    model_config = ConfigDict(frozen=True)

    corner1: tuple[float, float]
    corner2: tuple[float, float]


class LabelState(BaseModel):
    """
    Everything the interactive session keeps for one object label.
    Created on the first prompt for the label and destroyed wholesale
    by reset_points() / set_image().
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    label_id: int
    accumulator: Any = Field(..., description="PromptAccumulator for this label")
    # Created lazily on the first decode
    decoder: Any = Field(None, description="MaskDecoder bound to this label")
    mask: Any = Field(None, description="np.ndarray uint8 mask (0 or 255)")
    scores: Any = Field(None, description="np.ndarray IoU scores of the last decode")
