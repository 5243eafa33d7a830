# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PromptSeg: Tensor Records
Typed containers for the tensors that cross the inference boundary.
The encoder produces one EmbeddingBundle per image; every decode call
reads it and none mutates it.
"""

from __future__ import annotations

from typing import Any, Optional

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from promptseg.utils.geometry_utils import LetterboxGeometry


class EmbeddingBundle(BaseModel):
    """
    Encoder outputs for one image: the low-resolution global embedding
    plus 0–2 high-resolution feature maps.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    image_embed: Any = Field(..., description="np.ndarray float32 (1, C, h, w)")
    high_res_feats: tuple[Any, ...] = Field(
        default=(),
        description="np.ndarray feature maps, finest first",
    )
    original_size: tuple[int, int] = Field(..., description="(height, width) of the source image")
    network_size: tuple[int, int] = Field(..., description="(height, width) of the encoder input")
    # Set only when the encoder input was letterboxed
    letterbox: Optional[LetterboxGeometry] = None

    @property
    def num_high_res(self) -> int:
        return len(self.high_res_feats)


class DecoderOutput(BaseModel):
    """Raw decoder outputs for one decode call."""
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    masks: Any = Field(..., description="np.ndarray float32 logits (B, M, H, W)")
    scores: Any = Field(..., description="np.ndarray float32 predicted IoU (B, M)")

    @property
    def batch_size(self) -> int:
        return int(self.masks.shape[0])

    @property
    def masks_per_prompt(self) -> int:
        return int(min(self.masks.shape[1], self.scores.shape[1]))

    def mask(self, batch_idx: int = 0, mask_idx: int = 0) -> np.ndarray:
        return self.masks[batch_idx, mask_idx]

    def score(self, batch_idx: int = 0, mask_idx: int = 0) -> float:
        return float(self.scores[batch_idx, mask_idx])
