# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PromptSeg: POST /automatic + POST /automatic/overlay
Segment-everything over a point grid. The image is encoded once per
request; nothing is kept afterwards.
"""

from __future__ import annotations

import json
from typing import Annotated, Optional

from fastapi import APIRouter, Form, Response, UploadFile
from starlette.concurrency import run_in_threadpool

from promptseg.api.middleware.error_handler import PromptValidationError
from promptseg.api.routes.sessions import read_upload_image
from promptseg.dependencies import AutomaticSessionDep
from promptseg.models.segmentation import AutomaticResponse, SegmentationResult
from promptseg.modules.rendering.mask_overlay import render_overlay
from promptseg.utils.image_utils import bgr_to_png_bytes
from promptseg.utils.logger import get_logger

router = APIRouter(prefix="/automatic", tags=["automatic"])
log = get_logger(__name__)


def _parse_points(raw: Optional[str]) -> Optional[list[tuple[float, float]]]:
    """Form field 'points' is a JSON list of [x, y] pairs in image pixels."""
    if raw is None or not raw.strip():
        return None
    try:
        parsed = json.loads(raw)
        return [(float(p[0]), float(p[1])) for p in parsed]
    except (ValueError, TypeError, IndexError) as exc:
        raise PromptValidationError(
            "Field 'points' must be a JSON list of [x, y] pairs."
        ) from exc


async def _run_generation(
    image: UploadFile,
    generator: AutomaticSessionDep,
    points_per_side: Optional[int],
    points: Optional[str],
    pred_iou_thresh: Optional[float],
    min_mask_region_area: Optional[int],
):
    image_bgr = read_upload_image(image)
    results: list[SegmentationResult] = await run_in_threadpool(
        generator.generate,
        image_bgr,
        points_per_side,
        _parse_points(points),
        pred_iou_thresh=pred_iou_thresh,
        min_mask_region_area=min_mask_region_area,
    )
    log.info("automatic_request_complete", result_count=len(results))
    return image_bgr, results


@router.post(
    "",
    response_model=AutomaticResponse,
    summary="Generate masks for everything in the image",
    description=(
        "Decodes a points_per_side × points_per_side grid (or the explicit "
        "'points' list), filters by predicted IoU and area, and removes "
        "overlapping duplicates."
    ),
)
async def generate_masks(
    image: UploadFile,
    generator: AutomaticSessionDep,
    points_per_side: Annotated[Optional[int], Form()] = None,
    points: Annotated[Optional[str], Form()] = None,
    pred_iou_thresh: Annotated[Optional[float], Form()] = None,
    min_mask_region_area: Annotated[Optional[int], Form()] = None,
) -> AutomaticResponse:
    _, results = await _run_generation(
        image, generator, points_per_side, points, pred_iou_thresh, min_mask_region_area
    )
    return AutomaticResponse(
        mask_size=results[0].mask.shape[:2] if results else None,
        results=[r.to_summary() for r in results],
    )


@router.post(
    "/overlay",
    summary="Render generated masks over the image as PNG",
    response_class=Response,
)
async def generate_overlay(
    image: UploadFile,
    generator: AutomaticSessionDep,
    points_per_side: Annotated[Optional[int], Form()] = None,
    points: Annotated[Optional[str], Form()] = None,
    pred_iou_thresh: Annotated[Optional[float], Form()] = None,
    min_mask_region_area: Annotated[Optional[int], Form()] = None,
) -> Response:
    image_bgr, results = await _run_generation(
        image, generator, points_per_side, points, pred_iou_thresh, min_mask_region_area
    )
    overlay = render_overlay(image_bgr, results)
    return Response(content=bgr_to_png_bytes(overlay), media_type="image/png")
