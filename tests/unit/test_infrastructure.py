# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Infrastructure smoke tests.
Tests config loading, the error taxonomy, geometry helpers and
image conversion utilities.
No models, no GPU required.
"""

import numpy as np
import pytest

# ─── Config ──────────────────────────────────────────────────────────────────

def test_settings_load_defaults():
    from promptseg.config import Settings
    s = Settings(_env_file=None, log_level="INFO")
    assert s.engine_backend == "onnx"
    assert s.network_input_size == 1024
    assert s.normalization_preset is None
    assert s.resize_mode == "stretch"
    assert s.mask_threshold == 0.0
    assert s.points_per_side == 32
    assert s.points_per_batch == 8
    assert s.pred_iou_thresh == 0.88
    assert s.box_nms_thresh == 0.7
    assert s.min_mask_region_area == 0


def test_settings_env_override(monkeypatch):
    from promptseg.config import Settings
    monkeypatch.setenv("POINTS_PER_SIDE", "16")
    monkeypatch.setenv("NORMALIZATION_PRESET", "pixel")
    s = Settings(_env_file=None)
    assert s.points_per_side == 16
    assert s.normalization_preset == "pixel"


def test_settings_upload_max_bytes():
    from promptseg.config import Settings
    s = Settings(_env_file=None, upload_max_mb=10)
    assert s.upload_max_bytes == 10 * 1024 * 1024


def test_normalization_presets():
    from promptseg.config import Settings
    unit = Settings(_env_file=None, normalization_preset="unit").normalization
    pixel = Settings(_env_file=None, normalization_preset="pixel").normalization
    assert unit[0] == (0.485, 0.456, 0.406)
    assert pixel[1] == (58.395, 57.12, 57.375)


def test_normalization_unset_raises():
    from promptseg.api.middleware.error_handler import ConfigurationError
    from promptseg.config import Settings
    s = Settings(_env_file=None, normalization_preset=None)
    with pytest.raises(ConfigurationError, match="NORMALIZATION_PRESET"):
        _ = s.normalization


# ─── Error Taxonomy ──────────────────────────────────────────────────────────

def test_error_classes_keep_builtin_bases():
    from promptseg.api.middleware.error_handler import (
        ConfigurationError,
        ImageNotSetError,
        ImageValidationError,
        InferenceError,
        PromptValidationError,
        SessionNotFoundError,
    )
    assert issubclass(ConfigurationError, RuntimeError)
    assert issubclass(InferenceError, RuntimeError)
    assert issubclass(ImageNotSetError, RuntimeError)
    assert issubclass(SessionNotFoundError, KeyError)
    assert issubclass(ImageValidationError, ValueError)
    assert issubclass(PromptValidationError, ValueError)


# ─── Logging ─────────────────────────────────────────────────────────────────

def test_logging_json_output_and_level(monkeypatch, capsys):
    import json
    import structlog
    from promptseg.config import get_settings
    from promptseg.utils.logger import configure_logging, get_logger

    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    get_settings.cache_clear()
    try:
        configure_logging()
        log = get_logger("test")
        with structlog.contextvars.bound_contextvars(session_id="abc"):
            log.info("hidden_event")
            log.warning(
                "visible_event",
                label_id=3,
                score=np.float32(0.5),
                mask=np.zeros((2, 3), dtype=bool),
            )
    finally:
        get_settings.cache_clear()

    lines = [line for line in capsys.readouterr().out.splitlines() if line.strip()]
    assert len(lines) == 1
    entry = json.loads(lines[0])
    assert entry["event"] == "visible_event"
    assert entry["level"] == "warning"
    assert entry["app"] == "promptseg"
    assert entry["session_id"] == "abc"
    assert entry["label_id"] == 3
    assert entry["score"] == 0.5
    assert entry["mask"] == {"shape": [2, 3], "dtype": "bool"}


# ─── Bounding Box / IoU ──────────────────────────────────────────────────────

def test_mask_to_bbox_inclusive():
    from promptseg.utils.geometry_utils import mask_to_bbox
    mask = np.zeros((10, 10), dtype=bool)
    mask[2:5, 3:8] = True
    assert mask_to_bbox(mask) == (3, 2, 5, 3)


def test_mask_to_bbox_empty_raises():
    from promptseg.utils.geometry_utils import mask_to_bbox
    with pytest.raises(ValueError):
        mask_to_bbox(np.zeros((4, 4), dtype=bool))


def test_rescale_bbox_truncates():
    from promptseg.utils.geometry_utils import rescale_bbox
    assert rescale_bbox((3, 2, 5, 3), 2.5, 1.5) == (7, 3, 12, 4)


def test_box_iou_partial_overlap():
    from promptseg.utils.geometry_utils import box_iou
    iou = box_iou((0, 0, 10, 10), (5, 5, 10, 10))
    assert iou == pytest.approx(25 / 175)


def test_box_iou_disjoint_is_zero():
    from promptseg.utils.geometry_utils import box_iou
    assert box_iou((0, 0, 10, 10), (20, 20, 5, 5)) == 0.0
    # Touching edges share no area
    assert box_iou((0, 0, 10, 10), (10, 0, 10, 10)) == 0.0


def test_box_iou_identical_is_one():
    from promptseg.utils.geometry_utils import box_iou
    assert box_iou((4, 4, 6, 6), (4, 4, 6, 6)) == pytest.approx(1.0)


# ─── Letterbox ───────────────────────────────────────────────────────────────

def test_letterbox_geometry_centres_wide_image():
    from promptseg.utils.geometry_utils import letterbox_geometry
    geom = letterbox_geometry((50, 100), 200)
    assert geom.scale == pytest.approx(2.0)
    assert geom.resized_size == (100, 200)
    assert geom.pad_x == 0
    assert geom.pad_y == 50


def test_letterbox_geometry_inverts_points_and_boxes():
    from promptseg.utils.geometry_utils import letterbox_geometry
    geom = letterbox_geometry((50, 100), 200)
    assert geom.to_original_point(20.0, 70.0) == pytest.approx((10.0, 10.0))
    assert geom.to_original_box((20, 70, 40, 20)) == (10, 10, 20, 10)


# ─── Image Utils ─────────────────────────────────────────────────────────────

def test_png_roundtrip_and_validation():
    from promptseg.utils.image_utils import (
        bgr_to_png_bytes,
        bytes_to_bgr,
        is_valid_image_bytes,
    )
    img = np.zeros((12, 20, 3), dtype=np.uint8)
    img[:, :10] = (255, 0, 0)
    data = bgr_to_png_bytes(img)
    assert is_valid_image_bytes(data)
    assert np.array_equal(bytes_to_bgr(data), img)
    assert not is_valid_image_bytes(b"definitely not an image")


def test_resize_letterbox_pads_black():
    from promptseg.utils.image_utils import resize_letterbox
    img = np.full((32, 64, 3), 255, dtype=np.uint8)
    canvas, geom = resize_letterbox(img, 64)
    assert canvas.shape == (64, 64, 3)
    assert geom.pad_y == 16
    assert canvas[:16].max() == 0
    assert canvas[48:].max() == 0
    assert canvas[16:48].min() == 255


def test_resize_stretch_ignores_aspect():
    from promptseg.utils.image_utils import resize_stretch
    out = resize_stretch(np.zeros((10, 40, 3), dtype=np.uint8), 32, 16)
    assert out.shape == (32, 16, 3)
