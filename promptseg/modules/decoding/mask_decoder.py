# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PromptSeg: Mask Decoder Adapter
Wraps one decoder call: embeddings + merged prompts in, raw mask logits
and IoU scores out.

Every decode is prompt-only. The mask-hint tensor is all zeros at
(netH / 4, netW / 4) and the has-mask flag is 0; no previous mask is
ever fed back.

Two prompt layouts are supported:
  decode()        one object, N prompts      coords (1, N, 2)
  decode_points() B objects, 1 point each    coords (B, 1, 2)
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from promptseg.models.prompts import PromptLabel
from promptseg.models.tensors import DecoderOutput, EmbeddingBundle
from promptseg.modules.inference.engine import InferenceEngine
from promptseg.modules.inference.tensor_io import DecoderSignature
from promptseg.modules.prompting.coordinate_mapper import coords_to_network_array
from promptseg.utils.logger import get_logger

log = get_logger(__name__)


class MaskDecoder:
    """Stateless between calls; safe to share across labels."""

    def __init__(
        self,
        engine: InferenceEngine,
        signature: DecoderSignature,
        mask_hint_scale: int = 4,
    ) -> None:
        self._engine = engine
        self.signature = signature
        self._hint_scale = mask_hint_scale

    def _build_feeds(
        self,
        bundle: EmbeddingBundle,
        coords: np.ndarray,
        labels: np.ndarray,
    ) -> dict[str, np.ndarray]:
        sig = self.signature
        batch = coords.shape[0]
        net_h, net_w = bundle.network_size

        feeds: dict[str, np.ndarray] = {
            sig.image_embed: bundle.image_embed,
            sig.point_coords: coords.astype(np.float32),
            sig.point_labels: labels.astype(np.float32),
            sig.mask_input: np.zeros(
                (batch, 1, net_h // self._hint_scale, net_w // self._hint_scale),
                dtype=np.float32,
            ),
            sig.has_mask_input: np.zeros((batch,), dtype=np.float32),
        }
        for name, feat in zip(sig.high_res_feats, bundle.high_res_feats):
            feeds[name] = feat
        if sig.orig_im_size is not None:
            feeds[sig.orig_im_size] = np.array(bundle.original_size, dtype=np.float32)
        return feeds

    def _run(self, feeds: dict[str, np.ndarray], batch: int) -> DecoderOutput:
        outputs = self._engine.run(feeds)
        masks = np.asarray(outputs[self.signature.masks], dtype=np.float32)
        scores = np.asarray(outputs[self.signature.scores], dtype=np.float32)

        # Normalise to (B, M, H, W) / (B, M). Single-mask exports drop the
        # M axis, so a leading dim equal to the batch size is B, not M.
        if masks.ndim == 3 and masks.shape[0] == batch:
            masks = masks[:, np.newaxis]
        while masks.ndim < 4:
            masks = masks[np.newaxis]
        if scores.ndim == 1:
            scores = scores[:, np.newaxis] if scores.shape[0] == batch else scores[np.newaxis]
        return DecoderOutput(masks=masks, scores=scores)

    def decode(
        self,
        bundle: EmbeddingBundle,
        coords: Sequence[tuple[float, float]],
        labels: Sequence[int],
    ) -> DecoderOutput:
        """
        Decode one object from merged prompts given in original-image space.
        Coordinates are mapped into network space here.
        """
        if len(coords) != len(labels):
            raise ValueError(
                f"coords/labels length mismatch: {len(coords)} vs {len(labels)}"
            )
        net_coords = coords_to_network_array(
            list(coords), bundle.original_size, bundle.network_size
        )[np.newaxis]
        label_arr = np.asarray(labels, dtype=np.float32)[np.newaxis]

        out = self._run(self._build_feeds(bundle, net_coords, label_arr), batch=1)
        log.debug(
            "decode_complete",
            num_prompts=len(coords),
            mask_shape=tuple(out.masks.shape),
        )
        return out

    def decode_points(
        self,
        bundle: EmbeddingBundle,
        net_points: Sequence[tuple[float, float]],
    ) -> DecoderOutput:
        """
        Decode one positive point per batch element. Points are already
        in network-input space.
        """
        batch = len(net_points)
        coords = np.asarray(net_points, dtype=np.float32).reshape(batch, 1, 2)
        labels = np.full((batch, 1), int(PromptLabel.POSITIVE), dtype=np.float32)

        out = self._run(self._build_feeds(bundle, coords, labels), batch)
        log.debug(
            "decode_batch_complete",
            batch_size=batch,
            mask_shape=tuple(out.masks.shape),
        )
        return out
