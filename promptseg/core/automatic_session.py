# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PromptSeg: Automatic Session
Segment everything from a point grid with a single image embedding.

Execution order:
  1. Encode the image once
  2. Build the point list (grid in network space, or caller points
     mapped from original-image space)
  3. Decode in fixed-size batches, one positive point per batch element
  4. Per candidate mask: IoU filter → binarise → area filter → stability filter
  5. Deduplicate across the whole result set, not per batch

Point order is preserved through batching; each result records the
index of its originating point.
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from promptseg.config import Settings, get_settings
from promptseg.models.segmentation import SegmentationResult
from promptseg.models.tensors import DecoderOutput, EmbeddingBundle
from promptseg.modules.decoding.mask_decoder import MaskDecoder
from promptseg.modules.inference.engine import InferenceEngine
from promptseg.modules.inference.image_encoder import ImageEncoder
from promptseg.modules.inference.tensor_io import DecoderSignature, check_compatible
from promptseg.modules.postprocessing.deduplicator import deduplicate
from promptseg.modules.postprocessing.mask_postprocessor import build_result
from promptseg.modules.prompting.coordinate_mapper import (
    to_network_space,
    to_original_space,
)
from promptseg.modules.prompting.point_grid import batch_iterator, generate_point_grid
from promptseg.utils.logger import get_logger

log = get_logger(__name__)

Point = tuple[float, float]


class AutomaticSession:
    """Grid-driven mask generation. Thresholds default to Settings values."""

    def __init__(
        self,
        encoder: ImageEncoder,
        decoder_engine: InferenceEngine,
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._encoder = encoder
        signature = DecoderSignature.from_engine(decoder_engine)
        check_compatible(encoder.signature, signature)
        self._decoder = MaskDecoder(
            decoder_engine, signature, mask_hint_scale=self._settings.mask_hint_scale
        )

    def generate(
        self,
        image_bgr: np.ndarray,
        points_per_side: Optional[int] = None,
        points: Optional[Sequence[Point]] = None,
        **overrides,
    ) -> list[SegmentationResult]:
        """Encode image_bgr, then run generate_from_bundle()."""
        bundle = self._encoder.encode(image_bgr)
        return self.generate_from_bundle(
            bundle, points_per_side=points_per_side, points=points, **overrides
        )

    def generate_from_bundle(
        self,
        bundle: EmbeddingBundle,
        points_per_side: Optional[int] = None,
        points: Optional[Sequence[Point]] = None,
        *,
        points_per_batch: Optional[int] = None,
        pred_iou_thresh: Optional[float] = None,
        stability_score_thresh: Optional[float] = None,
        min_mask_region_area: Optional[int] = None,
        box_nms_thresh: Optional[float] = None,
    ) -> list[SegmentationResult]:
        """
        Run the batched decode + filter + dedup pipeline on an existing bundle.
        Explicit points are in original-image space and take precedence
        over points_per_side.
        """
        s = self._settings
        batch_size = s.points_per_batch if points_per_batch is None else points_per_batch
        iou_thresh = s.pred_iou_thresh if pred_iou_thresh is None else pred_iou_thresh
        stab_thresh = (
            s.stability_score_thresh
            if stability_score_thresh is None else stability_score_thresh
        )
        min_area = s.min_mask_region_area if min_mask_region_area is None else min_mask_region_area
        nms_thresh = s.box_nms_thresh if box_nms_thresh is None else box_nms_thresh

        net_points = self._build_points(bundle, points_per_side, points)

        log.info(
            "automatic_generation_start",
            num_points=len(net_points),
            points_per_batch=batch_size,
            pred_iou_thresh=iou_thresh,
            min_mask_region_area=min_area,
        )

        candidates: list[SegmentationResult] = []
        for start, batch in batch_iterator(net_points, batch_size):
            out = self._decoder.decode_points(bundle, batch)
            candidates.extend(
                self._process_batch(
                    out, batch, start, bundle,
                    iou_thresh=iou_thresh,
                    stab_thresh=stab_thresh,
                    min_area=min_area,
                )
            )

        kept = deduplicate(candidates, nms_thresh)
        log.info(
            "automatic_generation_complete",
            candidates=len(candidates),
            kept=len(kept),
            box_nms_thresh=nms_thresh,
        )
        return kept

    # ── Internals ────────────────────────────────────────────────────────────

    def _build_points(
        self,
        bundle: EmbeddingBundle,
        points_per_side: Optional[int],
        points: Optional[Sequence[Point]],
    ) -> list[Point]:
        if points is not None:
            return [
                to_network_space(tuple(p), bundle.original_size, bundle.network_size)
                for p in points
            ]
        n = self._settings.points_per_side if points_per_side is None else points_per_side
        net_h, net_w = bundle.network_size
        return generate_point_grid(net_w, net_h, n)

    def _process_batch(
        self,
        out: DecoderOutput,
        batch: Sequence[Point],
        start: int,
        bundle: EmbeddingBundle,
        *,
        iou_thresh: float,
        stab_thresh: float,
        min_area: int,
    ) -> list[SegmentationResult]:
        results: list[SegmentationResult] = []
        dropped = {"iou": 0, "empty": 0, "area": 0, "stability": 0}

        for i in range(min(out.batch_size, len(batch))):
            origin = to_original_space(batch[i], bundle.original_size, bundle.network_size)
            for j in range(out.masks_per_prompt):
                score = out.score(i, j)
                if score < iou_thresh:
                    dropped["iou"] += 1
                    continue

                result = build_result(
                    out.mask(i, j),
                    score,
                    bundle.original_size,
                    threshold=self._settings.mask_threshold,
                    stability_offset=self._settings.stability_score_offset,
                    point_coords=[origin],
                    point_index=start + i,
                    mask_index=j,
                )
                if result is None:
                    dropped["empty"] += 1
                    continue
                if result.area < min_area:
                    dropped["area"] += 1
                    continue
                if stab_thresh > 0.0 and result.stability_score < stab_thresh:
                    dropped["stability"] += 1
                    continue
                results.append(result)

        log.debug("batch_processed", start=start, kept=len(results), dropped=dropped)
        return results
