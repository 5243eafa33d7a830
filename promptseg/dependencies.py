# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PromptSeg: FastAPI Dependencies
Singleton providers for the SessionStore and the two inference engines.
All heavy objects are instantiated once at startup via the lifespan
event in main.py and stored here as module-level singletons.
Route handlers access them via FastAPI's Depends() injection.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from promptseg.api.middleware.error_handler import ConfigurationError
from promptseg.config import get_settings
from promptseg.core.automatic_session import AutomaticSession
from promptseg.core.session_store import SessionStore
from promptseg.modules.inference.engine import InferenceEngine, load_engine
from promptseg.modules.inference.image_encoder import ImageEncoder
from promptseg.modules.inference.tensor_io import (
    DEFAULT_DECODER_OUTPUTS,
    DEFAULT_ENCODER_OUTPUTS,
)
from promptseg.utils.logger import get_logger

log = get_logger(__name__)

# ─── SessionStore Singleton ──────────────────────────────────────────────────

_session_store: SessionStore | None = None


def init_session_store() -> None:
    """Called once during application lifespan startup."""
    global _session_store
    settings = get_settings()
    log.info("init_session_store", max_sessions=settings.max_sessions)
    _session_store = SessionStore(max_sessions=settings.max_sessions)


def get_session_store() -> SessionStore:
    """
    FastAPI dependency: inject the SessionStore singleton into route handlers.

    Usage in a route:
        @router.delete("/sessions/{session_id}")
        async def delete_session(session_id: str, store: SessionStoreDep):
            store.delete(session_id)
    """
    if _session_store is None:
        raise RuntimeError(
            "SessionStore has not been initialised. "
            "Ensure init_session_store() is called during app lifespan startup."
        )
    return _session_store


SessionStoreDep = Annotated[SessionStore, Depends(get_session_store)]


# ─── Inference Engine Singletons ─────────────────────────────────────────────

_encoder: ImageEncoder | None = None
_decoder_engine: InferenceEngine | None = None


def init_engines() -> None:
    """
    Load encoder and decoder models and build the ImageEncoder.
    Raises ConfigurationError on a missing file, missing tensor names
    or an unset normalization preset.
    """
    global _encoder, _decoder_engine
    settings = get_settings()

    encoder_engine = load_engine(
        settings.encoder_model_path, "encoder", DEFAULT_ENCODER_OUTPUTS, settings
    )
    decoder_engine = load_engine(
        settings.decoder_model_path, "decoder", DEFAULT_DECODER_OUTPUTS, settings
    )
    _encoder = ImageEncoder(encoder_engine, settings)
    _decoder_engine = decoder_engine
    log.info(
        "engines_loaded",
        backend=settings.engine_backend,
        network_size=_encoder.network_size,
    )


def get_encoder() -> ImageEncoder:
    if _encoder is None:
        raise ConfigurationError(
            "Encoder model is not loaded. Check ENCODER_MODEL_PATH and "
            "NORMALIZATION_PRESET, then restart."
        )
    return _encoder


def get_decoder_engine() -> InferenceEngine:
    if _decoder_engine is None:
        raise ConfigurationError(
            "Decoder model is not loaded. Check DECODER_MODEL_PATH, then restart."
        )
    return _decoder_engine


def engines_ready() -> bool:
    return _encoder is not None and _decoder_engine is not None


EncoderDep = Annotated[ImageEncoder, Depends(get_encoder)]
DecoderEngineDep = Annotated[InferenceEngine, Depends(get_decoder_engine)]


def get_automatic_session(
    encoder: EncoderDep, decoder_engine: DecoderEngineDep
) -> AutomaticSession:
    """Stateless between requests, so a fresh orchestrator per call is fine."""
    return AutomaticSession(encoder, decoder_engine)


AutomaticSessionDep = Annotated[AutomaticSession, Depends(get_automatic_session)]
