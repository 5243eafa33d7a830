# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PromptSeg: FastAPI Application Entry Point
Creates the app, registers lifespan events, CORS, routers,
and global error handlers.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from promptseg import __version__
from promptseg.api.middleware.error_handler import ConfigurationError, register_error_handlers
from promptseg.api.routes import automatic, sessions
from promptseg.config import get_settings
from promptseg.dependencies import engines_ready, init_engines, init_session_store
from promptseg.utils.logger import configure_logging, get_logger

log = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Startup: configure logging, initialise the SessionStore, load models.
    Shutdown: clean up resources.
    """
    # ── Startup ──────────────────────────────────────────────────────────────
    configure_logging()
    settings = get_settings()

    log.info(
        "promptseg_startup",
        version=__version__,
        engine_backend=settings.engine_backend,
        device=settings.execution_device,
        normalization_preset=settings.normalization_preset,
        resize_mode=settings.resize_mode,
        max_sessions=settings.max_sessions,
    )

    init_session_store()

    # A missing model leaves the service up; inference routes answer 500
    try:
        init_engines()
        log.info("engine_warmup_complete")
    except ConfigurationError as e:
        log.warning(
            "engine_config_invalid",
            error=str(e),
            advice="Run python scripts/export_check.py against your model files.",
        )
    except Exception as e:
        log.warning("engine_warmup_failed", error=str(e))

    log.info("promptseg_ready")
    yield

    # ── Shutdown ─────────────────────────────────────────────────────────────
    log.info("promptseg_shutdown")


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="PromptSeg",
        summary="Prompt-driven SAM2 mask segmentation over ONNX Runtime or TorchScript.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # ── CORS ─────────────────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:5173",   # Vite dev server
            "http://localhost:3000",   # Alternative dev port
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Error Handlers ───────────────────────────────────────────────────────
    register_error_handlers(app)

    # ── Routers ──────────────────────────────────────────────────────────────
    app.include_router(sessions.router)
    app.include_router(automatic.router)

    # ── Health Check ─────────────────────────────────────────────────────────
    @app.get("/health", tags=["health"], summary="Health check")
    async def health() -> dict:
        return {
            "status": "ok",
            "service": "promptseg",
            "version": __version__,
            "engine_backend": settings.engine_backend,
            "models_loaded": engines_ready(),
        }

    return app


# Module-level app instance for uvicorn
app = create_app()
