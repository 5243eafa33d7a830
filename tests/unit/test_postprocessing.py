# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Post-processing tests.
Binarisation, area, stability score, candidate results and greedy
box-IoU deduplication. Pure numpy, no engines.
"""

import numpy as np
import pytest


# ─── Helpers ─────────────────────────────────────────────────────────────────

def _result(iou: float, bbox, area: int, point_index: int = 0):
    """SegmentationResult whose mask has exactly `area` true cells."""
    from promptseg.models.segmentation import SegmentationResult
    mask = np.zeros(area, dtype=bool)
    mask[:] = True
    return SegmentationResult(
        mask=mask.reshape(1, area),
        predicted_iou=iou,
        bbox=bbox,
        point_index=point_index,
    )


# ─── Mask Post-processor ─────────────────────────────────────────────────────

def test_binarize_is_strictly_greater():
    from promptseg.modules.postprocessing.mask_postprocessor import binarize
    raw = np.array([[-1.0, 0.0, 0.001, 5.0]])
    assert binarize(raw).tolist() == [[False, False, True, True]]
    assert binarize(raw, threshold=1.0).tolist() == [[False, False, False, True]]


def test_mask_area_counts_true_cells():
    from promptseg.modules.postprocessing.mask_postprocessor import mask_area
    mask = np.zeros((20, 20), dtype=bool)
    mask[3:7, 2:9] = True
    assert mask_area(mask) == 28


def test_stability_score():
    from promptseg.modules.postprocessing.mask_postprocessor import stability_score
    raw = np.array([[2.0, 2.0, 0.5, 0.5, -3.0]])
    # strict (> 1): 2 cells, loose (> -1): 4 cells
    assert stability_score(raw, 0.0, 1.0) == pytest.approx(0.5)
    assert stability_score(np.full((3, 3), -5.0), 0.0, 1.0) == 0.0


def test_label_masks():
    from promptseg.modules.postprocessing.mask_postprocessor import (
        empty_label_mask,
        to_label_mask,
    )
    lm = to_label_mask(np.array([[-1.0, 1.0]]))
    assert lm.dtype == np.uint8
    assert lm.tolist() == [[0, 255]]
    empty = empty_label_mask((96, 128))
    assert empty.shape == (96, 128)
    assert not empty.any()


def test_build_result_rescales_bbox():
    from promptseg.modules.postprocessing.mask_postprocessor import build_result
    raw = np.full((16, 16), -10.0, dtype=np.float32)
    raw[2:7, 2:7] = 10.0
    result = build_result(
        raw, 0.93, (96, 128), point_coords=[(32.0, 24.0)], point_index=5, mask_index=1
    )
    assert result is not None
    assert result.area == 25
    # mask box (2, 2, 5, 5) scaled by (128/16, 96/16) = (8, 6)
    assert result.bbox == (16, 12, 40, 30)
    assert result.predicted_iou == pytest.approx(0.93)
    assert result.stability_score == pytest.approx(1.0)
    assert result.point_coords == [(32.0, 24.0)]
    assert (result.point_index, result.mask_index) == (5, 1)
    assert result.mask.shape == (16, 16)


def test_build_result_empty_mask_is_discarded():
    from promptseg.modules.postprocessing.mask_postprocessor import build_result
    assert build_result(np.full((8, 8), -1.0), 0.99, (64, 64)) is None


def test_bbox_to_original_truncates():
    from promptseg.modules.postprocessing.mask_postprocessor import bbox_to_original
    # scale (100/64, 50/64)
    assert bbox_to_original((10, 10, 3, 3), (64, 64), (50, 100)) == (15, 7, 4, 2)


# ─── Deduplicator ────────────────────────────────────────────────────────────

def test_rank_candidates_iou_then_area():
    from promptseg.modules.postprocessing.deduplicator import rank_candidates
    a = _result(0.9, (0, 0, 1, 1), 10)
    b = _result(0.9, (0, 0, 1, 1), 30)
    c = _result(0.95, (0, 0, 1, 1), 5)
    assert rank_candidates([a, b, c]) == [c, b, a]


def test_deduplicate_keeps_c_then_a():
    from promptseg.modules.postprocessing.deduplicator import deduplicate
    from promptseg.utils.geometry_utils import box_iou

    a = _result(0.90, (0, 0, 10, 10), 100)
    # 8×10 box inside A's → IoU 0.8
    b = _result(0.85, (0, 0, 8, 10), 200)
    c = _result(0.95, (100, 100, 5, 10), 50)
    assert box_iou(a.bbox, b.bbox) == pytest.approx(0.8)

    kept = deduplicate([a, b, c], overlap_threshold=0.7)
    assert kept == [c, a]
    # Order of the input does not matter
    assert deduplicate([b, c, a], 0.7) == [c, a]


def test_deduplicate_threshold_is_inclusive():
    from promptseg.modules.postprocessing.deduplicator import deduplicate
    a = _result(0.9, (0, 0, 10, 10), 100)
    b = _result(0.8, (0, 0, 7, 10), 70)   # IoU exactly 0.7
    assert deduplicate([a, b], 0.7) == [a, b]


def test_deduplicate_equal_keys_keep_input_order():
    from promptseg.modules.postprocessing.deduplicator import deduplicate
    first = _result(0.9, (0, 0, 5, 5), 25, point_index=0)
    second = _result(0.9, (50, 50, 5, 5), 25, point_index=1)
    assert [r.point_index for r in deduplicate([first, second])] == [0, 1]


def test_deduplicate_empty():
    from promptseg.modules.postprocessing.deduplicator import deduplicate
    assert deduplicate([]) == []
