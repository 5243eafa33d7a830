# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PromptSeg: prompt-to-mask orchestration for two-stage segmentation models.
"""

__version__ = "1.0.0"
