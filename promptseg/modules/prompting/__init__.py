# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PromptSeg: Prompting Module
Public API for coordinate mapping, grid generation and prompt merging.
"""

from promptseg.modules.prompting.coordinate_mapper import (
    coords_to_network_array,
    scale_to_original,
    to_network_space,
    to_original_space,
)
from promptseg.modules.prompting.point_grid import batch_iterator, generate_point_grid
from promptseg.modules.prompting.prompt_accumulator import PromptAccumulator

__all__ = [
    # Coordinate mapper
    "to_network_space",
    "to_original_space",
    "scale_to_original",
    "coords_to_network_array",
    # Point grid
    "generate_point_grid",
    "batch_iterator",
    # Prompt accumulator
    "PromptAccumulator",
]
