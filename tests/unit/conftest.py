# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Shared fixtures: fake inference engines that return deterministic
tensors, so no model files, GPU or network are needed.

Fake decoder behaviour: for every batch element, each of the 3 output
masks is a 5×5 square of +10 logits centred on the first prompt
coordinate (network space / 4), -10 elsewhere. Scores are
[0.95, 0.5, 0.3] per element.
"""

from typing import Callable, Optional

import numpy as np
import pytest

NET = 64                 # fake encoder input side
MASK_SIDE = NET // 4     # fake decoder output side
FAKE_SCORES = (0.95, 0.5, 0.3)

ENCODER_OUTPUTS = {
    "high_res_feats_0": (1, 8, 16, 16),
    "high_res_feats_1": (1, 16, 8, 8),
    "image_embed": (1, 32, 4, 4),
}

DECODER_INPUTS = [
    "image_embed",
    "high_res_feats_0",
    "high_res_feats_1",
    "point_coords",
    "point_labels",
    "mask_input",
    "has_mask_input",
]


def _make_fake_engine_cls():
    from promptseg.modules.inference.engine import InferenceEngine

    class FakeEngine(InferenceEngine):
        """Records every feed dict and answers with fn(feeds)."""

        def __init__(
            self,
            role: str,
            inputs: dict[str, Optional[tuple]],
            outputs: list[str],
            fn: Callable[[dict], dict],
        ) -> None:
            super().__init__(role)
            self._inputs = inputs
            self._outputs = outputs
            self._fn = fn
            self.calls: list[dict] = []

        @property
        def input_names(self) -> list[str]:
            return list(self._inputs)

        @property
        def output_names(self) -> list[str]:
            return list(self._outputs)

        def input_shape(self, name: str):
            return self._inputs.get(name)

        def _run(self, feeds):
            self.calls.append(feeds)
            return self._fn(feeds)

    return FakeEngine


def square_masks(feeds: dict) -> dict:
    coords = feeds["point_coords"]
    batch = coords.shape[0]
    side = feeds["mask_input"].shape[-1]
    ys, xs = np.mgrid[0:side, 0:side]
    masks = np.full((batch, 3, side, side), -10.0, dtype=np.float32)
    for i in range(batch):
        cx, cy = coords[i, 0] / 4.0
        inside = (np.abs(xs - cx) <= 2) & (np.abs(ys - cy) <= 2)
        masks[i][:, inside] = 10.0
    scores = np.tile(np.array(FAKE_SCORES, dtype=np.float32), (batch, 1))
    return {"masks": masks, "iou_predictions": scores}


def encoder_outputs(feeds: dict) -> dict:
    return {
        name: np.full(shape, 0.5, dtype=np.float32)
        for name, shape in ENCODER_OUTPUTS.items()
    }


@pytest.fixture
def fake_engine_cls():
    return _make_fake_engine_cls()


@pytest.fixture
def make_encoder_engine(fake_engine_cls):
    def _make(input_shape=(1, 3, NET, NET), outputs=None, input_name="image"):
        return fake_engine_cls(
            "encoder",
            {input_name: input_shape},
            list(outputs or ENCODER_OUTPUTS),
            encoder_outputs,
        )
    return _make


@pytest.fixture
def make_decoder_engine(fake_engine_cls):
    def _make(inputs=None, outputs=("masks", "iou_predictions"), fn=square_masks):
        return fake_engine_cls(
            "decoder",
            {name: None for name in (inputs or DECODER_INPUTS)},
            list(outputs),
            fn,
        )
    return _make


@pytest.fixture
def settings():
    from promptseg.config import Settings
    return Settings(_env_file=None, normalization_preset="unit", log_level="INFO")


@pytest.fixture
def encoder(make_encoder_engine, settings):
    from promptseg.modules.inference.image_encoder import ImageEncoder
    return ImageEncoder(make_encoder_engine(), settings)


@pytest.fixture
def decoder_engine(make_decoder_engine):
    return make_decoder_engine()


@pytest.fixture
def image():
    """96 × 128 BGR test image."""
    img = np.zeros((96, 128, 3), dtype=np.uint8)
    img[20:60, 30:90] = (40, 120, 200)
    return img
