# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PromptSeg: Structured Logging
Each entry is one event name plus key/value fields. Inference code logs
mask shapes, scores and timings; the API layer binds session_id through
structlog contextvars so every line of a request can be correlated.
"""

import logging
import sys
from typing import Any

import numpy as np
import structlog
from structlog.types import EventDict, Processor

from promptseg.config import get_settings

APP_NAME = "promptseg"


def _tag_app(logger: Any, method: str, event_dict: EventDict) -> EventDict:
    event_dict["app"] = APP_NAME
    return event_dict


def _plain_numpy_values(
    logger: Any, method: str, event_dict: EventDict
) -> EventDict:
    """
    Numpy scalars become Python numbers; arrays are summarised by shape
    and dtype so a stray mask never dumps megabytes into a log line.
    """
    for key, value in event_dict.items():
        if isinstance(value, np.generic):
            event_dict[key] = value.item()
        elif isinstance(value, np.ndarray):
            event_dict[key] = {"shape": list(value.shape), "dtype": str(value.dtype)}
    return event_dict


def _strip_uvicorn_color(
    logger: Any, method: str, event_dict: EventDict
) -> EventDict:
    event_dict.pop("color_message", None)
    return event_dict


def _renderers(level_name: str) -> list[Processor]:
    if level_name == "DEBUG":
        return [structlog.dev.ConsoleRenderer(colors=True)]
    return [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]


def configure_logging() -> None:
    """
    Install the structlog pipeline for the configured LOG_LEVEL.
    DEBUG renders coloured console lines; every other level emits one JSON
    object per line on stdout. Run once from the app lifespan.
    """
    level_name = get_settings().log_level.upper()
    level = getattr(logging, level_name, logging.INFO)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        _tag_app,
        _plain_numpy_values,
        _strip_uvicorn_color,
    ]
    processors += _renderers(level_name)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(sys.stdout),
        cache_logger_on_first_use=True,
    )

    # uvicorn and onnxruntime still log through the stdlib root logger
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)


def get_logger(name: str = APP_NAME) -> structlog.BoundLogger:
    """
    Module-level logger factory.

        log = get_logger(__name__)
        log.info("label_decoded", label_id=2, area=1834, elapsed_ms=9.7)

    Request handlers scope the session id with
    ``structlog.contextvars.bound_contextvars(session_id=...)``.
    """
    return structlog.get_logger(name)
