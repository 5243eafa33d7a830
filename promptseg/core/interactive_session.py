# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PromptSeg: Interactive Session
One image embedding, many object labels, prompts added and removed one
at a time.

Lifecycle per label:
  (no state) → first add_point / set_box → prompts mutated → ...
Labels only return to "no state" through reset_points() or set_image().

Every mutation synchronously re-decodes that one label via recompute().
Decoder output is never cached between mutations.
"""

from __future__ import annotations

import threading

import numpy as np

from promptseg.api.middleware.error_handler import ImageNotSetError
from promptseg.config import Settings, get_settings
from promptseg.models.prompts import LabelState
from promptseg.models.tensors import EmbeddingBundle
from promptseg.modules.decoding.mask_decoder import MaskDecoder
from promptseg.modules.inference.engine import InferenceEngine
from promptseg.modules.inference.image_encoder import ImageEncoder
from promptseg.modules.inference.tensor_io import DecoderSignature, check_compatible
from promptseg.modules.postprocessing.mask_postprocessor import (
    empty_label_mask,
    to_label_mask,
)
from promptseg.modules.prompting.prompt_accumulator import PromptAccumulator
from promptseg.utils.logger import get_logger

log = get_logger(__name__)

Point = tuple[float, float]


class InteractiveSession:
    """
    Owns the EmbeddingBundle and all LabelStates for one image.
    All public methods hold the session lock, so a label's prompts are
    never mutated while that label is being decoded.
    """

    def __init__(
        self,
        encoder: ImageEncoder,
        decoder_engine: InferenceEngine,
        settings: Settings | None = None,
    ) -> None:
        settings = settings or get_settings()
        self._encoder = encoder
        self._decoder_engine = decoder_engine
        self._decoder_signature = DecoderSignature.from_engine(decoder_engine)
        check_compatible(encoder.signature, self._decoder_signature)

        self._mask_threshold = settings.mask_threshold
        self._hint_scale = settings.mask_hint_scale

        self._lock = threading.RLock()
        self._bundle: EmbeddingBundle | None = None
        self._labels: dict[int, LabelState] = {}

    # ── Image ────────────────────────────────────────────────────────────────

    def set_image(self, image_bgr: np.ndarray) -> None:
        """
        Discard every label and the old embedding, then encode the new image.
        If encoding fails the session is left with no image at all.
        """
        with self._lock:
            self._bundle = None
            self._labels.clear()
            self._bundle = self._encoder.encode(image_bgr)
            log.info("session_image_set", original_size=self._bundle.original_size)

    @property
    def has_image(self) -> bool:
        return self._bundle is not None

    @property
    def original_size(self) -> tuple[int, int]:
        return self._require_bundle().original_size

    @property
    def bundle(self) -> EmbeddingBundle:
        return self._require_bundle()

    def reset_points(self) -> None:
        """Drop every label's prompts, decoder and mask. The embedding is kept."""
        with self._lock:
            self._labels.clear()
            log.info("session_points_reset")

    # ── Prompt mutation ──────────────────────────────────────────────────────

    def add_point(
        self, pt: Point, positive: bool, label_id: int
    ) -> dict[int, np.ndarray]:
        with self._lock:
            state = self._get_or_create(label_id)
            state.accumulator.add_point(pt, positive)
            log.debug("point_added", label_id=label_id, point=pt, positive=positive)
            return self.recompute(label_id)

    def remove_point(self, pt: Point, label_id: int) -> dict[int, np.ndarray]:
        """Remove the first exact match. Unknown points/labels are a no-op."""
        with self._lock:
            self._require_bundle()
            state = self._labels.get(label_id)
            if state is None:
                return self.get_masks()
            removed = state.accumulator.remove_point(pt)
            log.debug("point_removed", label_id=label_id, point=pt, found=removed)
            return self.recompute(label_id)

    def set_box(
        self, corner1: Point, corner2: Point, label_id: int
    ) -> dict[int, np.ndarray]:
        with self._lock:
            state = self._get_or_create(label_id)
            state.accumulator.set_box(corner1, corner2)
            log.debug("box_set", label_id=label_id, corner1=corner1, corner2=corner2)
            return self.recompute(label_id)

    def remove_box(self, label_id: int) -> dict[int, np.ndarray]:
        with self._lock:
            self._require_bundle()
            state = self._labels.get(label_id)
            if state is None:
                return self.get_masks()
            state.accumulator.remove_box()
            log.debug("box_removed", label_id=label_id)
            return self.recompute(label_id)

    # ── Decode ───────────────────────────────────────────────────────────────

    def recompute(self, label_id: int) -> dict[int, np.ndarray]:
        """
        Full re-decode of one label from its current prompts.
        With no prompts the mask becomes all-background at original-image
        size and the decoder is not called.
        """
        with self._lock:
            bundle = self._require_bundle()
            state = self._labels[label_id]
            coords, labels = state.accumulator.merge()

            if not coords:
                state.mask = empty_label_mask(bundle.original_size)
                state.scores = np.zeros((0,), dtype=np.float32)
                log.debug("decode_skipped_empty", label_id=label_id)
                return self.get_masks()

            if state.decoder is None:
                state.decoder = MaskDecoder(
                    self._decoder_engine,
                    self._decoder_signature,
                    mask_hint_scale=self._hint_scale,
                )
            out = state.decoder.decode(bundle, coords, labels)
            state.mask = to_label_mask(out.mask(0, 0), self._mask_threshold)
            state.scores = np.asarray(out.scores[0], dtype=np.float32)
            log.info(
                "label_decoded",
                label_id=label_id,
                num_prompts=len(coords),
                area=int(np.count_nonzero(state.mask)),
                top_score=float(state.scores[0]) if state.scores.size else None,
            )
            return self.get_masks()

    # ── Accessors ────────────────────────────────────────────────────────────

    def get_masks(self) -> dict[int, np.ndarray]:
        """Snapshot of label_id → uint8 mask (0 or 255)."""
        with self._lock:
            return {
                lid: state.mask
                for lid, state in self._labels.items()
                if state.mask is not None
            }

    def get_scores(self, label_id: int) -> np.ndarray:
        with self._lock:
            state = self._labels.get(label_id)
            if state is None or state.scores is None:
                return np.zeros((0,), dtype=np.float32)
            return state.scores

    @property
    def labels(self) -> list[int]:
        with self._lock:
            return list(self._labels)

    # ── Internals ────────────────────────────────────────────────────────────

    def _require_bundle(self) -> EmbeddingBundle:
        if self._bundle is None:
            raise ImageNotSetError("No image set. Call set_image() before prompting.")
        return self._bundle

    def _get_or_create(self, label_id: int) -> LabelState:
        self._require_bundle()
        state = self._labels.get(label_id)
        if state is None:
            state = LabelState(label_id=label_id, accumulator=PromptAccumulator())
            self._labels[label_id] = state
            log.debug("label_created", label_id=label_id)
        return state
