# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PromptSeg: Error Taxonomy + Global Error Handler
Only configuration and inference-engine failures cross the engine
boundary. Missing prompts, empty masks and no-op removals are handled
where they occur and never raise.

The handlers convert exceptions into structured JSON error responses.
Registered on the FastAPI app in main.py.
"""

from __future__ import annotations

import traceback

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from promptseg.utils.logger import get_logger

log = get_logger(__name__)


class ConfigurationError(RuntimeError):
    """Raised when model metadata or settings cannot satisfy the tensor contract."""


class InferenceError(RuntimeError):
    """Raised when the external inference engine fails. Never retried."""


class ImageNotSetError(RuntimeError):
    """Raised when a prompt operation runs before an image has been encoded."""


class SessionNotFoundError(KeyError):
    """Raised when a session_id does not exist in the registry."""


class ImageValidationError(ValueError):
    """Raised when an uploaded image fails format or size validation."""


class PromptValidationError(ValueError):
    """Raised when prompt form fields (e.g. the automatic 'points' list) are malformed."""


def _error_body(code: str, message: str, detail: str | None = None) -> dict:
    body = {"error": {"code": code, "message": message}}
    if detail:
        body["error"]["detail"] = detail
    return body


def register_error_handlers(app: FastAPI) -> None:
    """
    Register all global exception handlers on the FastAPI application.
    Call this in main.py after creating the app instance.
    """

    @app.exception_handler(ImageValidationError)
    async def image_validation_handler(
        req: Request, exc: ImageValidationError
    ) -> JSONResponse:
        log.warning("image_validation_error", path=str(req.url), error=str(exc))
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=_error_body(
                code="IMAGE_VALIDATION_ERROR",
                message=str(exc),
            ),
        )

    @app.exception_handler(PromptValidationError)
    async def prompt_validation_handler(
        req: Request, exc: PromptValidationError
    ) -> JSONResponse:
        log.warning("prompt_validation_error", path=str(req.url), error=str(exc))
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=_error_body(
                code="PROMPT_VALIDATION_ERROR",
                message=str(exc),
            ),
        )

    @app.exception_handler(SessionNotFoundError)
    async def session_not_found_handler(
        req: Request, exc: SessionNotFoundError
    ) -> JSONResponse:
        log.warning("session_not_found", path=str(req.url), error=str(exc))
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=_error_body(
                code="SESSION_NOT_FOUND",
                message=f"Session not found: {exc}",
            ),
        )

    @app.exception_handler(ImageNotSetError)
    async def image_not_set_handler(
        req: Request, exc: ImageNotSetError
    ) -> JSONResponse:
        log.warning("image_not_set", path=str(req.url), error=str(exc))
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=_error_body(
                code="IMAGE_NOT_SET",
                message=str(exc),
            ),
        )

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(
        req: Request, exc: ConfigurationError
    ) -> JSONResponse:
        log.error("configuration_error", path=str(req.url), error=str(exc))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body(
                code="CONFIGURATION_ERROR",
                message=str(exc),
            ),
        )

    @app.exception_handler(InferenceError)
    async def inference_error_handler(
        req: Request, exc: InferenceError
    ) -> JSONResponse:
        log.error("inference_error", path=str(req.url), error=str(exc))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body(
                code="INFERENCE_ERROR",
                message="The inference engine failed.",
                detail=str(exc),
            ),
        )

    @app.exception_handler(Exception)
    async def generic_handler(req: Request, exc: Exception) -> JSONResponse:
        tb = traceback.format_exc()
        log.error(
            "unhandled_exception",
            path=str(req.url),
            error=str(exc),
            exc_type=type(exc).__name__,
            traceback=tb,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body(
                code="INTERNAL_SERVER_ERROR",
                message="An unexpected error occurred.",
            ),
        )
