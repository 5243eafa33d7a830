# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PromptSeg: Image Conversion Utilities
All internal processing uses BGR numpy arrays (OpenCV convention).
Conversion to RGB happens only at the encoder boundary.
"""

import cv2
import numpy as np

from promptseg.utils.geometry_utils import LetterboxGeometry, letterbox_geometry


# ─── Decode / Encode ─────────────────────────────────────────────────────────

def bytes_to_bgr(data: bytes) -> np.ndarray:
    """Decode raw image bytes (from upload) to BGR numpy array."""
    arr = np.frombuffer(data, dtype=np.uint8)
    img = cv2.imdecode(arr, cv2.IMREAD_COLOR)
    if img is None:
        raise ValueError("Could not decode uploaded image bytes.")
    return img


def bgr_to_png_bytes(img: np.ndarray) -> bytes:
    """Encode a BGR numpy array to PNG bytes (lossless)."""
    success, buf = cv2.imencode(".png", img)
    if not success:
        raise RuntimeError("Failed to encode image to PNG bytes.")
    return buf.tobytes()


# ─── Color Space ─────────────────────────────────────────────────────────────

def bgr_to_rgb(img: np.ndarray) -> np.ndarray:
    return cv2.cvtColor(img, cv2.COLOR_BGR2RGB)


# ─── Resize ──────────────────────────────────────────────────────────────────

def resize_stretch(img: np.ndarray, height: int, width: int) -> np.ndarray:
    """Resize to exactly height×width, ignoring aspect ratio."""
    return cv2.resize(img, (width, height), interpolation=cv2.INTER_LINEAR)


def resize_letterbox(
    img: np.ndarray, target_length: int
) -> tuple[np.ndarray, LetterboxGeometry]:
    """
    Resize preserving aspect ratio and centre on a black square canvas.
    Returns (canvas, geometry) so callers can invert the placement.
    """
    geom = letterbox_geometry(img.shape[:2], target_length)
    new_h, new_w = geom.resized_size
    resized = cv2.resize(img, (new_w, new_h), interpolation=cv2.INTER_NEAREST)
    canvas = np.zeros((target_length, target_length, img.shape[2]), dtype=img.dtype)
    canvas[geom.pad_y:geom.pad_y + new_h, geom.pad_x:geom.pad_x + new_w] = resized
    return canvas, geom


# ─── Validation ──────────────────────────────────────────────────────────────

def is_valid_image_bytes(data: bytes) -> bool:
    """Return True if bytes can be decoded as a valid BGR image."""
    try:
        img = bytes_to_bgr(data)
    except ValueError:
        return False
    return img.ndim == 3 and img.shape[2] == 3
