# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PromptSeg: Application Configuration
All settings are loaded from environment variables with SAM2-style
defaults. Override via .env or environment.

The image normalization preset has no default. Two presets exist for
what may be the same encoder export, so the caller must choose one.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

# Channel mean/std per normalization convention (R, G, B order)
NORMALIZATION_PRESETS: dict[str, tuple[tuple[float, float, float], tuple[float, float, float]]] = {
    # Pixels scaled to 0–1 before normalising
    "unit": ((0.485, 0.456, 0.406), (0.229, 0.224, 0.225)),
    # Pixels kept in 0–255
    "pixel": ((123.675, 116.28, 103.53), (58.395, 57.12, 57.375)),
}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ─── Inference Engine ────────────────────────────────────────────────────
    engine_backend: Literal["onnx", "torchscript"] = "onnx"
    encoder_model_path: Path = Path("./models/sam2.encoder.onnx")
    decoder_model_path: Path = Path("./models/sam2.decoder.onnx")
    execution_device: Literal["auto", "cpu", "cuda"] = "auto"
    # Used only when the encoder declares dynamic spatial dims
    network_input_size: int = 1024

    # ─── Encoder Preprocessing ───────────────────────────────────────────────
    normalization_preset: Literal["unit", "pixel"] | None = None
    resize_mode: Literal["stretch", "letterbox"] = "stretch"

    # ─── Decoder / Post-processing ───────────────────────────────────────────
    mask_threshold: float = 0.0
    mask_hint_scale: int = 4

    # ─── Automatic Mask Generation ───────────────────────────────────────────
    points_per_side: int = 32
    points_per_batch: int = 8
    pred_iou_thresh: float = 0.88
    # 0.0 disables the stability filter
    stability_score_thresh: float = 0.0
    stability_score_offset: float = 1.0
    min_mask_region_area: int = 0
    box_nms_thresh: float = 0.7

    # ─── Interactive Sessions ────────────────────────────────────────────────
    max_sessions: int = 16
    upload_max_mb: int = 20

    # ─── Logging ─────────────────────────────────────────────────────────────
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # ─── Server ──────────────────────────────────────────────────────────────
    host: str = "0.0.0.0"
    port: int = 8000

    # ─── Derived helpers ─────────────────────────────────────────────────────
    @property
    def upload_max_bytes(self) -> int:
        return self.upload_max_mb * 1024 * 1024

    @property
    def normalization(self) -> tuple[tuple[float, float, float], tuple[float, float, float]]:
        """
        Return (mean, std) for the configured preset.
        Raises ConfigurationError when no preset has been chosen.
        """
        if self.normalization_preset is None:
            from promptseg.api.middleware.error_handler import ConfigurationError

            raise ConfigurationError(
                "NORMALIZATION_PRESET is not set. Choose 'unit' (0-1 ImageNet "
                "mean/std) or 'pixel' (0-255 mean/std) to match the encoder export."
            )
        return NORMALIZATION_PRESETS[self.normalization_preset]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached singleton Settings instance."""
    return Settings()
