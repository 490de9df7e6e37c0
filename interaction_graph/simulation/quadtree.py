"""
Barnes-Hut Quadtree

Spatial index used to approximate the many-body charge force in
O(N log N). Each cell aggregates the total charge of the bodies below it
and their charge-weighted centroid; distant cells act as a single body.
"""

from __future__ import annotations
from typing import List, Optional, Sequence

import numpy as np


MAX_DEPTH = 32


class QuadCell:
    """One square cell; a leaf holds indices of bodies sharing it."""

    __slots__ = ("x0", "y0", "x1", "y1", "children", "indices", "value", "cx", "cy")

    def __init__(self, x0: float, y0: float, x1: float, y1: float):
        self.x0 = x0
        self.y0 = y0
        self.x1 = x1
        self.y1 = y1
        self.children: Optional[List[QuadCell]] = None
        self.indices: List[int] = []
        self.value = 0.0
        self.cx = 0.0
        self.cy = 0.0

    @property
    def is_leaf(self) -> bool:
        return self.children is None

    @property
    def width(self) -> float:
        return self.x1 - self.x0


class QuadTree:
    """
    Quadtree over a fixed set of 2D points, built once per tick.

    Every body carries the same charge strength, so the aggregate centroid
    is the plain mean of the positions below a cell.
    """

    def __init__(self, positions: np.ndarray, strength: float):
        self.positions = positions
        self.strength = strength
        self.root = self._build_root()

    def _build_root(self) -> Optional[QuadCell]:
        if len(self.positions) == 0:
            return None

        x0, y0 = self.positions.min(axis=0)
        x1, y1 = self.positions.max(axis=0)
        # Square extent so children stay square
        size = max(x1 - x0, y1 - y0, 1.0)
        root = QuadCell(float(x0), float(y0), float(x0 + size), float(y0 + size))
        self._build(root, list(range(len(self.positions))), 0)
        return root

    def _build(self, cell: QuadCell, indices: Sequence[int], depth: int) -> None:
        points = self.positions[list(indices)]
        cell.value = self.strength * len(indices)
        cell.cx = float(points[:, 0].mean())
        cell.cy = float(points[:, 1].mean())

        coincident = bool(np.all(points == points[0]))
        if len(indices) == 1 or coincident or depth >= MAX_DEPTH:
            cell.indices = list(indices)
            return

        xm = (cell.x0 + cell.x1) / 2.0
        ym = (cell.y0 + cell.y1) / 2.0
        buckets: List[List[int]] = [[], [], [], []]
        for index in indices:
            px, py = self.positions[index]
            quadrant = (1 if px >= xm else 0) | (2 if py >= ym else 0)
            buckets[quadrant].append(index)

        cell.children = []
        bounds = (
            (cell.x0, cell.y0, xm, ym),
            (xm, cell.y0, cell.x1, ym),
            (cell.x0, ym, xm, cell.y1),
            (xm, ym, cell.x1, cell.y1),
        )
        for bucket, (bx0, by0, bx1, by1) in zip(buckets, bounds):
            if bucket:
                child = QuadCell(bx0, by0, bx1, by1)
                self._build(child, bucket, depth + 1)
                cell.children.append(child)
