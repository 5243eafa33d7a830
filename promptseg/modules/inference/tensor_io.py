# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PromptSeg: Tensor I/O Contract
Resolves the logical encoder/decoder tensors against an engine's
declared names once, at construction, and fails fast when a required
tensor is absent.

Each logical tensor has a short list of documented alternate names
covering the common SAM2 exports. Nothing outside these lists is
guessed, with one exception: decoder outputs that match no known name
fall back to their position (0 = masks, 1 = IoU scores), and the
fallback is logged.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from promptseg.api.middleware.error_handler import ConfigurationError
from promptseg.modules.inference.engine import InferenceEngine
from promptseg.utils.logger import get_logger

log = get_logger(__name__)

# ─── Documented names ────────────────────────────────────────────────────────

ENCODER_IMAGE_INPUT = ("image", "images", "input_image", "pixel_values")
IMAGE_EMBED = ("image_embed", "image_embeddings", "image_embeds")
HIGH_RES_FEATS = (
    ("high_res_feats_0", "hidden_states_0"),
    ("high_res_feats_1", "hidden_states_1"),
)
POINT_COORDS = ("point_coords",)
POINT_LABELS = ("point_labels",)
MASK_INPUT = ("mask_input",)
HAS_MASK_INPUT = ("has_mask_input",)
ORIG_IM_SIZE = ("orig_im_size",)
MASKS_OUTPUT = ("masks",)
SCORES_OUTPUT = ("iou_predictions", "scores", "iou_scores")

# Output order used when a runtime cannot report output names
DEFAULT_ENCODER_OUTPUTS = ("high_res_feats_0", "high_res_feats_1", "image_embed")
DEFAULT_DECODER_OUTPUTS = ("masks", "iou_predictions")


def _resolve(available: Sequence[str], alternates: Sequence[str]) -> Optional[str]:
    """Return the first alternate present in available, else None."""
    for name in alternates:
        if name in available:
            return name
    return None


def _static_hw(shape: Optional[tuple]) -> Optional[tuple[int, int]]:
    """(H, W) from an NCHW shape when both dims are concrete ints."""
    if not shape or len(shape) != 4:
        return None
    h, w = shape[2], shape[3]
    if isinstance(h, int) and isinstance(w, int) and h > 0 and w > 0:
        return h, w
    return None


# ─── Encoder ─────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class EncoderSignature:
    input_name: str
    image_embed: str
    high_res_feats: tuple[str, ...]
    # None when the export has dynamic spatial dims
    input_hw: Optional[tuple[int, int]]

    @classmethod
    def from_engine(cls, engine: InferenceEngine) -> "EncoderSignature":
        inputs = engine.input_names
        outputs = engine.output_names

        input_name = _resolve(inputs, ENCODER_IMAGE_INPUT)
        if input_name is None and len(inputs) == 1:
            input_name = inputs[0]
        if input_name is None:
            raise ConfigurationError(
                f"Encoder input not found. Expected one of {ENCODER_IMAGE_INPUT} "
                f"or a single-input model, got {inputs}."
            )

        image_embed = _resolve(outputs, IMAGE_EMBED)
        if image_embed is None:
            raise ConfigurationError(
                f"Encoder output not found. Expected one of {IMAGE_EMBED}, got {outputs}."
            )

        high_res: list[str] = []
        for alternates in HIGH_RES_FEATS:
            name = _resolve(outputs, alternates)
            if name is None:
                log.warning("encoder_high_res_missing", expected=list(alternates))
                break
            high_res.append(name)

        sig = cls(
            input_name=input_name,
            image_embed=image_embed,
            high_res_feats=tuple(high_res),
            input_hw=_static_hw(engine.input_shape(input_name)),
        )
        log.debug("encoder_signature_resolved", signature=repr(sig))
        return sig


# ─── Decoder ─────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class DecoderSignature:
    image_embed: str
    high_res_feats: tuple[str, ...]
    point_coords: str
    point_labels: str
    mask_input: str
    has_mask_input: str
    # Only some exports take the original size
    orig_im_size: Optional[str]
    masks: str
    scores: str

    @classmethod
    def from_engine(cls, engine: InferenceEngine) -> "DecoderSignature":
        inputs = engine.input_names
        outputs = engine.output_names

        def required(alternates: Sequence[str]) -> str:
            name = _resolve(inputs, alternates)
            if name is None:
                raise ConfigurationError(
                    f"Decoder input not found. Expected one of {tuple(alternates)}, "
                    f"got {inputs}."
                )
            return name

        high_res: list[str] = []
        for alternates in HIGH_RES_FEATS:
            name = _resolve(inputs, alternates)
            if name is None:
                break
            high_res.append(name)

        image_embed = required(IMAGE_EMBED)
        point_coords = required(POINT_COORDS)
        point_labels = required(POINT_LABELS)
        mask_input = required(MASK_INPUT)
        has_mask_input = required(HAS_MASK_INPUT)
        orig_im_size = _resolve(inputs, ORIG_IM_SIZE)

        known = {
            image_embed, point_coords, point_labels,
            mask_input, has_mask_input, *high_res,
        }
        if orig_im_size is not None:
            known.add(orig_im_size)
        unknown = [n for n in inputs if n not in known]
        if unknown:
            raise ConfigurationError(f"Decoder declares unsupported inputs: {unknown}")

        masks = _resolve(outputs, MASKS_OUTPUT)
        scores = _resolve(outputs, SCORES_OUTPUT)
        if masks is None or scores is None:
            if len(outputs) < 2:
                raise ConfigurationError(
                    f"Decoder must expose mask and score outputs, got {outputs}."
                )
            log.warning(
                "decoder_outputs_positional",
                outputs=outputs,
                masks=outputs[0],
                scores=outputs[1],
            )
            masks = masks or outputs[0]
            scores = scores or outputs[1]
            if masks == scores:
                raise ConfigurationError(
                    f"Cannot tell decoder mask and score outputs apart: {outputs}."
                )

        sig = cls(
            image_embed=image_embed,
            high_res_feats=tuple(high_res),
            point_coords=point_coords,
            point_labels=point_labels,
            mask_input=mask_input,
            has_mask_input=has_mask_input,
            orig_im_size=orig_im_size,
            masks=masks,
            scores=scores,
        )
        log.debug("decoder_signature_resolved", signature=repr(sig))
        return sig


def check_compatible(encoder: EncoderSignature, decoder: DecoderSignature) -> None:
    """The decoder may only ask for high-res maps the encoder produces."""
    if len(decoder.high_res_feats) > len(encoder.high_res_feats):
        raise ConfigurationError(
            f"Decoder expects {len(decoder.high_res_feats)} high-res feature maps "
            f"but the encoder provides {len(encoder.high_res_feats)}."
        )
