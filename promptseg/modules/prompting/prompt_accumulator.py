# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PromptSeg: Prompt Accumulator
Holds the point and box prompts for one label and merges them into the
decoder's coordinate/label sequences.

Merge order is fixed: points in insertion order, then the two box
corners tagged 2 and 3.
"""

from __future__ import annotations

from promptseg.models.prompts import BoxPrompt, PointPrompt, PromptLabel


class PromptAccumulator:
    """Per-label prompt state. Coordinates are in original-image space."""

    def __init__(self) -> None:
        self._points: list[PointPrompt] = []
        self._box: BoxPrompt | None = None

    # ── Mutation ─────────────────────────────────────────────────────────────

    def add_point(self, pt: tuple[float, float], positive: bool = True) -> None:
        self._points.append(PointPrompt(x=pt[0], y=pt[1], positive=positive))

    def remove_point(self, pt: tuple[float, float]) -> bool:
        """
        Remove the first point with exactly these coordinates.
        Returns False (and changes nothing) when no point matches.
        """
        for idx, p in enumerate(self._points):
            if p.x == pt[0] and p.y == pt[1]:
                del self._points[idx]
                return True
        return False

    def set_box(
        self, corner1: tuple[float, float], corner2: tuple[float, float]
    ) -> None:
        """Replace any existing box."""
        self._box = BoxPrompt(corner1=tuple(corner1), corner2=tuple(corner2))

    def remove_box(self) -> bool:
        had_box = self._box is not None
        self._box = None
        return had_box

    # ── Accessors ────────────────────────────────────────────────────────────

    @property
    def points(self) -> list[PointPrompt]:
        return list(self._points)

    @property
    def box(self) -> BoxPrompt | None:
        return self._box

    def is_empty(self) -> bool:
        return not self._points and self._box is None

    def merge(self) -> tuple[list[tuple[float, float]], list[int]]:
        """
        Return (coords, labels): points first (1 positive, 0 negative),
        then, if a box is set, its two corners labelled 2 and 3.
        Both lists are empty when there is nothing to decode.
        """
        coords: list[tuple[float, float]] = [(p.x, p.y) for p in self._points]
        labels: list[int] = [int(p.label) for p in self._points]
        if self._box is not None:
            coords.extend([self._box.corner1, self._box.corner2])
            labels.extend([
                int(PromptLabel.BOX_TOP_LEFT),
                int(PromptLabel.BOX_BOTTOM_RIGHT),
            ])
        return coords, labels
