"""
PromptSeg: Model Export Check
Prints the input/output signature of the encoder and decoder ONNX files
and checks them against the tensor names the engine expects.
Run before first launch: python scripts/export_check.py [encoder.onnx decoder.onnx]
Without arguments the paths come from ENCODER_MODEL_PATH / DECODER_MODEL_PATH.
"""

import sys
from pathlib import Path

import onnxruntime as ort

from promptseg.api.middleware.error_handler import ConfigurationError
from promptseg.config import get_settings
from promptseg.modules.inference.engine import OnnxInferenceEngine
from promptseg.modules.inference.tensor_io import (
    DecoderSignature,
    EncoderSignature,
    check_compatible,
)


def print_io(path: Path) -> None:
    session = ort.InferenceSession(str(path), providers=["CPUExecutionProvider"])
    print(f"\n  {path}")
    for i in session.get_inputs():
        print(f"    in   {i.name:<20} {i.type:<16} {i.shape}")
    for o in session.get_outputs():
        print(f"    out  {o.name:<20} {o.type:<16} {o.shape}")


def main() -> None:
    settings = get_settings()
    if len(sys.argv) == 3:
        encoder_path, decoder_path = Path(sys.argv[1]), Path(sys.argv[2])
    else:
        encoder_path, decoder_path = settings.encoder_model_path, settings.decoder_model_path

    print("=" * 60)
    print("  PromptSeg: Model Export Check")
    print("=" * 60)

    for path in (encoder_path, decoder_path):
        if not path.exists():
            print(f"\n  ✗ {path} not found.")
            sys.exit(1)
        print_io(path)

    print("\n[Tensor contract]")
    try:
        encoder = EncoderSignature.from_engine(OnnxInferenceEngine(encoder_path, "encoder", "cpu"))
        decoder = DecoderSignature.from_engine(OnnxInferenceEngine(decoder_path, "decoder", "cpu"))
        check_compatible(encoder, decoder)
    except ConfigurationError as e:
        print(f"  ✗ {e}")
        sys.exit(1)

    print(f"  ✓ encoder input   {encoder.input_name}  {encoder.input_hw or 'dynamic'}")
    print(f"  ✓ image embed     {encoder.image_embed}")
    print(f"  ✓ high-res maps   {list(encoder.high_res_feats)}")
    print(f"  ✓ decoder masks   {decoder.masks}")
    print(f"  ✓ decoder scores  {decoder.scores}")
    print("\n  Set NORMALIZATION_PRESET to 'unit' or 'pixel' to match the export.")
    print("=" * 60)


if __name__ == "__main__":
    main()
