# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PromptSeg: Engine Modules

inference       model runtimes, tensor contract, image encoder
prompting       coordinate mapping, point grid, prompt accumulation
decoding        mask decoder adapter
postprocessing  binarisation, candidate results, deduplication
rendering       mask rasters and overlays
"""
