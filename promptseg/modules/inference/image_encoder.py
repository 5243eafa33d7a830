# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PromptSeg: Image Encoder
One-shot encoder call per image:
  1. BGR → RGB
  2. Resize to the network input (stretch, or letterbox onto black)
  3. Normalise with the configured mean/std preset
  4. HWC → NCHW float32
  5. Run the encoder and collect the EmbeddingBundle

The resulting bundle is read-only and may be shared by any number of
decode calls.
"""

from __future__ import annotations

import cv2
import numpy as np

from promptseg.config import Settings, get_settings
from promptseg.models.tensors import EmbeddingBundle
from promptseg.modules.inference.engine import InferenceEngine
from promptseg.modules.inference.tensor_io import EncoderSignature
from promptseg.utils.geometry_utils import LetterboxGeometry
from promptseg.utils.image_utils import bgr_to_rgb, resize_letterbox, resize_stretch
from promptseg.utils.logger import get_logger

log = get_logger(__name__)


class ImageEncoder:
    """Wraps the encoder engine with its preprocessing."""

    def __init__(self, engine: InferenceEngine, settings: Settings | None = None) -> None:
        settings = settings or get_settings()
        self._engine = engine
        self.signature = EncoderSignature.from_engine(engine)

        # Raises ConfigurationError when no preset was chosen
        mean, std = settings.normalization
        self._mean = np.array(mean, dtype=np.float32)
        self._std = np.array(std, dtype=np.float32)
        self._unit_scale = settings.normalization_preset == "unit"
        self._resize_mode = settings.resize_mode

        self.network_size: tuple[int, int] = self.signature.input_hw or (
            settings.network_input_size,
            settings.network_input_size,
        )
        log.info(
            "image_encoder_ready",
            network_size=self.network_size,
            preset=settings.normalization_preset,
            resize_mode=self._resize_mode,
            high_res_maps=len(self.signature.high_res_feats),
        )

    def preprocess(
        self, image_bgr: np.ndarray
    ) -> tuple[np.ndarray, LetterboxGeometry | None]:
        """
        Build the (1, 3, H, W) float32 encoder input.
        Returns (tensor, letterbox geometry or None).
        """
        if image_bgr.ndim == 2:
            image_bgr = cv2.cvtColor(image_bgr, cv2.COLOR_GRAY2BGR)
        rgb = bgr_to_rgb(image_bgr)

        net_h, net_w = self.network_size
        geom: LetterboxGeometry | None = None
        if self._resize_mode == "letterbox":
            resized, geom = resize_letterbox(rgb, max(net_h, net_w))
            if resized.shape[:2] != (net_h, net_w):
                resized = resize_stretch(resized, net_h, net_w)
        else:
            resized = resize_stretch(rgb, net_h, net_w)

        x = resized.astype(np.float32)
        if self._unit_scale:
            x /= 255.0
        x = (x - self._mean) / self._std
        tensor = np.ascontiguousarray(x.transpose(2, 0, 1)[np.newaxis], dtype=np.float32)
        return tensor, geom

    def encode(self, image_bgr: np.ndarray) -> EmbeddingBundle:
        """Encode one BGR uint8 image into an EmbeddingBundle."""
        orig_h, orig_w = image_bgr.shape[:2]
        tensor, geom = self.preprocess(image_bgr)

        outputs = self._engine.run({self.signature.input_name: tensor})

        bundle = EmbeddingBundle(
            image_embed=outputs[self.signature.image_embed],
            high_res_feats=tuple(outputs[n] for n in self.signature.high_res_feats),
            original_size=(orig_h, orig_w),
            network_size=self.network_size,
            letterbox=geom,
        )
        log.info(
            "image_encoded",
            original_size=(orig_h, orig_w),
            embed_shape=tuple(bundle.image_embed.shape),
            high_res_maps=bundle.num_high_res,
        )
        return bundle
