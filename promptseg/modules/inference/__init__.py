# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PromptSeg: Inference Module
Public API for the model runtime boundary.
"""

from promptseg.modules.inference.engine import (
    InferenceEngine,
    OnnxInferenceEngine,
    TorchScriptEngine,
    load_engine,
)
from promptseg.modules.inference.image_encoder import ImageEncoder
from promptseg.modules.inference.tensor_io import (
    DEFAULT_DECODER_OUTPUTS,
    DEFAULT_ENCODER_OUTPUTS,
    DecoderSignature,
    EncoderSignature,
    check_compatible,
)

__all__ = [
    # Engines
    "InferenceEngine",
    "OnnxInferenceEngine",
    "TorchScriptEngine",
    "load_engine",
    # Tensor contract
    "EncoderSignature",
    "DecoderSignature",
    "check_compatible",
    "DEFAULT_ENCODER_OUTPUTS",
    "DEFAULT_DECODER_OUTPUTS",
    # Encoder
    "ImageEncoder",
]
