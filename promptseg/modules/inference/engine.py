# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PromptSeg: Inference Engines
Clean interface over the opaque model runtime: named numpy tensors in,
named numpy tensors out. Swap OnnxInferenceEngine for TorchScriptEngine
with zero session changes.

OnnxInferenceEngine  ONNX Runtime session (CPU / CUDA providers)
TorchScriptEngine    torch.jit scripted export, device auto-detected

Every call is blocking and timed. Any runtime failure is re-raised as
InferenceError and is never retried: the models are deterministic, so
repeating the same call cannot change the outcome.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Sequence

import numpy as np
import onnxruntime as ort
import torch

from promptseg.api.middleware.error_handler import ConfigurationError, InferenceError
from promptseg.config import Settings, get_settings
from promptseg.utils.logger import get_logger

log = get_logger(__name__)


# ─── Abstract Interface ──────────────────────────────────────────────────────

class InferenceEngine(ABC):
    """
    Abstract base class for all model runtimes.
    Subclasses expose I/O metadata and implement _run(); timing and
    error wrapping live here.
    """

    def __init__(self, role: str) -> None:
        self.role = role

    @property
    @abstractmethod
    def input_names(self) -> list[str]:
        """Declared input tensor names, in model order."""

    @property
    @abstractmethod
    def output_names(self) -> list[str]:
        """Declared output tensor names, in model order."""

    @abstractmethod
    def input_shape(self, name: str) -> Optional[tuple]:
        """Declared shape of an input, or None when the runtime cannot tell."""

    @abstractmethod
    def _run(self, feeds: dict[str, np.ndarray]) -> dict[str, np.ndarray]:
        """Run the model once. Returns outputs keyed by output name."""

    def run(self, feeds: dict[str, np.ndarray]) -> dict[str, np.ndarray]:
        start = time.perf_counter()
        try:
            outputs = self._run(feeds)
        except Exception as exc:
            log.error("infer_failed", role=self.role, error=str(exc))
            raise InferenceError(
                f"{self.role} inference failed: {type(exc).__name__}: {exc}"
            ) from exc
        elapsed_ms = (time.perf_counter() - start) * 1000.0
        log.info("infer_complete", role=self.role, elapsed_ms=round(elapsed_ms, 2))
        return outputs


# ─── Device Selection ────────────────────────────────────────────────────────

def _get_torch_device(requested: str) -> str:
    """Resolve 'auto' to the best available torch device."""
    if requested != "auto":
        return requested
    if torch.cuda.is_available():
        device = "cuda"
    else:
        device = "cpu"
    log.info("device_selected", backend="torchscript", device=device)
    return device


def _get_onnx_providers(requested: str) -> list[str]:
    """Map the device setting onto ONNX Runtime execution providers."""
    available = ort.get_available_providers()
    if requested in ("auto", "cuda") and "CUDAExecutionProvider" in available:
        providers = ["CUDAExecutionProvider", "CPUExecutionProvider"]
    else:
        if requested == "cuda":
            log.warning("cuda_provider_unavailable", available=available)
        providers = ["CPUExecutionProvider"]
    log.info("device_selected", backend="onnx", providers=providers)
    return providers


# ─── ONNX Runtime ────────────────────────────────────────────────────────────

class OnnxInferenceEngine(InferenceEngine):
    """ONNX Runtime-backed engine. Metadata is read once from the session."""

    def __init__(self, path: Path, role: str, device: str = "auto") -> None:
        super().__init__(role)
        self._session = ort.InferenceSession(
            str(path), providers=_get_onnx_providers(device)
        )
        self._inputs = {i.name: tuple(i.shape) for i in self._session.get_inputs()}
        self._outputs = [o.name for o in self._session.get_outputs()]
        log.info(
            "onnx_engine_loaded",
            role=role,
            path=str(path),
            inputs=list(self._inputs),
            outputs=self._outputs,
        )

    @property
    def input_names(self) -> list[str]:
        return list(self._inputs)

    @property
    def output_names(self) -> list[str]:
        return list(self._outputs)

    def input_shape(self, name: str) -> Optional[tuple]:
        return self._inputs.get(name)

    def _run(self, feeds: dict[str, np.ndarray]) -> dict[str, np.ndarray]:
        values = self._session.run(self._outputs, feeds)
        return dict(zip(self._outputs, values))


# ─── TorchScript ─────────────────────────────────────────────────────────────

class TorchScriptEngine(InferenceEngine):
    """
    torch.jit scripted export. Input names come from the scripted
    forward() schema; scripted modules return bare tuples, so output
    names are declared by the caller and matched by position.
    """

    def __init__(
        self,
        path: Path,
        role: str,
        output_names: Sequence[str],
        device: str = "auto",
    ) -> None:
        super().__init__(role)
        self._device = _get_torch_device(device)
        self._module = torch.jit.load(str(path), map_location=self._device)
        self._module.eval()
        schema = self._module.forward.schema
        self._inputs = [a.name for a in schema.arguments if a.name != "self"]
        self._outputs = list(output_names)
        log.info(
            "torchscript_engine_loaded",
            role=role,
            path=str(path),
            device=self._device,
            inputs=self._inputs,
            outputs=self._outputs,
        )

    @property
    def input_names(self) -> list[str]:
        return list(self._inputs)

    @property
    def output_names(self) -> list[str]:
        return list(self._outputs)

    def input_shape(self, name: str) -> Optional[tuple]:
        return None

    @torch.no_grad()
    def _run(self, feeds: dict[str, np.ndarray]) -> dict[str, np.ndarray]:
        args = [
            torch.from_numpy(np.ascontiguousarray(feeds[name])).to(self._device)
            for name in self._inputs
        ]
        result = self._module(*args)
        if isinstance(result, dict):
            return {k: v.detach().cpu().numpy() for k, v in result.items()}
        if isinstance(result, torch.Tensor):
            result = (result,)
        if len(result) > len(self._outputs):
            raise ValueError(
                f"model returned {len(result)} outputs but only "
                f"{len(self._outputs)} names are declared"
            )
        return {
            name: tensor.detach().cpu().numpy()
            for name, tensor in zip(self._outputs, result)
        }


# ─── Factory ─────────────────────────────────────────────────────────────────

def load_engine(
    path: Path,
    role: str,
    output_names: Sequence[str],
    settings: Settings | None = None,
) -> InferenceEngine:
    """
    Build the engine selected by ENGINE_BACKEND.
    output_names is only consulted by backends without output metadata.
    Raises ConfigurationError if the model file does not exist.
    """
    settings = settings or get_settings()
    if not path.exists():
        raise ConfigurationError(
            f"{role} model not found at {path}. "
            "Set ENCODER_MODEL_PATH / DECODER_MODEL_PATH."
        )
    if settings.engine_backend == "torchscript":
        return TorchScriptEngine(
            path, role, output_names=output_names, device=settings.execution_device
        )
    return OnnxInferenceEngine(path, role, device=settings.execution_device)
