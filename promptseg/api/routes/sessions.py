# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PromptSeg: Interactive Session Routes
  POST   /sessions                                  upload image, encode once
  DELETE /sessions/{session_id}
  POST   /sessions/{session_id}/labels/{label_id}/points
  DELETE /sessions/{session_id}/labels/{label_id}/points?x=&y=
  PUT    /sessions/{session_id}/labels/{label_id}/box
  DELETE /sessions/{session_id}/labels/{label_id}/box
  POST   /sessions/{session_id}/reset
  GET    /sessions/{session_id}/labels/{label_id}/mask.png

Encoding and decoding are blocking, so they run in the threadpool.
"""

from __future__ import annotations

import numpy as np
import structlog
from fastapi import APIRouter, Response, UploadFile, status
from starlette.concurrency import run_in_threadpool

from promptseg.api.middleware.error_handler import ImageValidationError
from promptseg.config import get_settings
from promptseg.core.interactive_session import InteractiveSession
from promptseg.dependencies import DecoderEngineDep, EncoderDep, SessionStoreDep
from promptseg.models.segmentation import (
    BoxRequest,
    LabelMaskSummary,
    MaskMapResponse,
    PointRequest,
    SessionCreatedResponse,
)
from promptseg.modules.postprocessing.mask_postprocessor import empty_label_mask
from promptseg.modules.rendering.mask_raster import mask_to_png_bytes
from promptseg.utils.image_utils import bytes_to_bgr, is_valid_image_bytes
from promptseg.utils.logger import get_logger

router = APIRouter(prefix="/sessions", tags=["sessions"])
log = get_logger(__name__)

ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/png", "image/webp", "image/bmp"}


def read_upload_image(upload: UploadFile) -> np.ndarray:
    """
    Read, validate, and decode an uploaded image file to BGR.
    Raises ImageValidationError on format/size/content failures.
    """
    settings = get_settings()

    if upload.content_type not in ALLOWED_CONTENT_TYPES:
        raise ImageValidationError(
            f"Unsupported file type '{upload.content_type}'. "
            f"Allowed: {', '.join(sorted(ALLOWED_CONTENT_TYPES))}"
        )

    data = upload.file.read()

    if len(data) > settings.upload_max_bytes:
        raise ImageValidationError(
            f"File '{upload.filename}' exceeds maximum size "
            f"of {settings.upload_max_mb} MB."
        )

    if not is_valid_image_bytes(data):
        raise ImageValidationError(
            f"File '{upload.filename}' could not be decoded as a valid image."
        )

    log.debug("upload_read", filename=upload.filename, size_bytes=len(data))
    return bytes_to_bgr(data)


def _mask_map_response(
    session_id: str, session: InteractiveSession, masks: dict[int, np.ndarray]
) -> MaskMapResponse:
    return MaskMapResponse(
        session_id=session_id,
        labels=[
            LabelMaskSummary(
                label_id=label_id,
                mask_size=mask.shape[:2],
                area=int(np.count_nonzero(mask)),
                scores=[float(s) for s in session.get_scores(label_id)],
            )
            for label_id, mask in sorted(masks.items())
        ],
    )


@router.post(
    "",
    response_model=SessionCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an interactive session from an image",
)
async def create_session(
    image: UploadFile,
    store: SessionStoreDep,
    encoder: EncoderDep,
    decoder_engine: DecoderEngineDep,
) -> SessionCreatedResponse:
    image_bgr = read_upload_image(image)
    session = InteractiveSession(encoder, decoder_engine)
    await run_in_threadpool(session.set_image, image_bgr)

    session_id = store.add(session)
    height, width = session.original_size
    return SessionCreatedResponse(session_id=session_id, height=height, width=width)


@router.delete(
    "/{session_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Discard a session and its embedding",
)
async def delete_session(session_id: str, store: SessionStoreDep) -> Response:
    store.delete(session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{session_id}/labels/{label_id}/points",
    response_model=MaskMapResponse,
    summary="Add a positive or negative point to a label",
)
async def add_point(
    session_id: str, label_id: int, point: PointRequest, store: SessionStoreDep
) -> MaskMapResponse:
    session = store.get(session_id)
    with structlog.contextvars.bound_contextvars(session_id=session_id):
        masks = await run_in_threadpool(
            session.add_point, (point.x, point.y), point.positive, label_id
        )
    return await run_in_threadpool(_mask_map_response, session_id, session, masks)


@router.delete(
    "/{session_id}/labels/{label_id}/points",
    response_model=MaskMapResponse,
    summary="Remove the first point at exactly (x, y) from a label",
)
async def remove_point(
    session_id: str, label_id: int, x: float, y: float, store: SessionStoreDep
) -> MaskMapResponse:
    session = store.get(session_id)
    with structlog.contextvars.bound_contextvars(session_id=session_id):
        masks = await run_in_threadpool(session.remove_point, (x, y), label_id)
    return await run_in_threadpool(_mask_map_response, session_id, session, masks)


@router.put(
    "/{session_id}/labels/{label_id}/box",
    response_model=MaskMapResponse,
    summary="Set (or replace) the box prompt of a label",
)
async def set_box(
    session_id: str, label_id: int, box: BoxRequest, store: SessionStoreDep
) -> MaskMapResponse:
    session = store.get(session_id)
    with structlog.contextvars.bound_contextvars(session_id=session_id):
        masks = await run_in_threadpool(
            session.set_box, (box.x1, box.y1), (box.x2, box.y2), label_id
        )
    return await run_in_threadpool(_mask_map_response, session_id, session, masks)


@router.delete(
    "/{session_id}/labels/{label_id}/box",
    response_model=MaskMapResponse,
    summary="Remove the box prompt of a label",
)
async def remove_box(
    session_id: str, label_id: int, store: SessionStoreDep
) -> MaskMapResponse:
    session = store.get(session_id)
    with structlog.contextvars.bound_contextvars(session_id=session_id):
        masks = await run_in_threadpool(session.remove_box, label_id)
    return await run_in_threadpool(_mask_map_response, session_id, session, masks)


@router.post(
    "/{session_id}/reset",
    response_model=MaskMapResponse,
    summary="Drop every label's prompts and masks, keep the embedding",
)
async def reset_points(session_id: str, store: SessionStoreDep) -> MaskMapResponse:
    session = store.get(session_id)
    with structlog.contextvars.bound_contextvars(session_id=session_id):
        await run_in_threadpool(session.reset_points)
    masks = await run_in_threadpool(session.get_masks)
    return await run_in_threadpool(_mask_map_response, session_id, session, masks)


@router.get(
    "/{session_id}/labels/{label_id}/mask.png",
    summary="Download a label mask as an 8-bit grayscale PNG",
    response_class=Response,
)
async def get_mask_png(session_id: str, label_id: int, store: SessionStoreDep) -> Response:
    session = store.get(session_id)
    masks = await run_in_threadpool(session.get_masks)
    mask = masks.get(label_id)
    if mask is None:
        mask = empty_label_mask(session.original_size)
    return Response(content=mask_to_png_bytes(mask), media_type="image/png")
