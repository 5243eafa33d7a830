# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PromptSeg: Decoding Module
Public API for the mask decoder adapter.
"""

from promptseg.modules.decoding.mask_decoder import MaskDecoder

__all__ = ["MaskDecoder"]
