# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PromptSeg: Rendering Module
Public API for mask rasters and overlays.
"""

from promptseg.modules.rendering.mask_overlay import render_overlay
from promptseg.modules.rendering.mask_raster import (
    GRAYSCALE_PALETTE,
    mask_to_png_bytes,
    mask_to_raster,
    raster_to_png_bytes,
)

__all__ = [
    "mask_to_raster",
    "raster_to_png_bytes",
    "mask_to_png_bytes",
    "GRAYSCALE_PALETTE",
    "render_overlay",
]
