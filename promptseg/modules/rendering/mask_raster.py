# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PromptSeg: Mask Raster Export
Binary masks leave the engine as 8-bit indexed rasters with a grayscale
palette (index v → RGB (v, v, v)); foreground is 255, background 0.
PIL owns row stride, so rows are written without padding artefacts.
"""

from __future__ import annotations

import io

import numpy as np
from PIL import Image

# v → (v, v, v) for all 256 indices
GRAYSCALE_PALETTE: list[int] = [v for i in range(256) for v in (i, i, i)]


def mask_to_raster(mask: np.ndarray) -> Image.Image:
    """
    Convert a bool or uint8 mask to a mode "P" image.
    Any non-zero cell becomes index 255.
    """
    values = np.where(mask.astype(bool), 255, 0).astype(np.uint8)
    raster = Image.fromarray(values)
    # putpalette turns an "L" image into "P" and keeps the cell values as indices
    raster.putpalette(GRAYSCALE_PALETTE)
    return raster


def raster_to_png_bytes(raster: Image.Image) -> bytes:
    buf = io.BytesIO()
    raster.save(buf, format="PNG")
    return buf.getvalue()


def mask_to_png_bytes(mask: np.ndarray) -> bytes:
    """Shortcut: mask → indexed raster → PNG bytes."""
    return raster_to_png_bytes(mask_to_raster(mask))
