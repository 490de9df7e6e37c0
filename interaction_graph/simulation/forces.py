"""
Force Models

Charge (many-body repulsion), link (spring) and centering forces. Each
force reads positions and adds alpha-scaled contributions to velocities;
integration happens in the engine once every force has been applied.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple
import math

import numpy as np

from ..contracts.graph import Edge
from .config import SimulationConfig
from .quadtree import QuadCell, QuadTree


@dataclass
class Bodies:
    """
    Private mutable state of the nodes in one run.

    Row i of every array belongs to node_ids[i].
    """
    node_ids: Tuple[int, ...]
    positions: np.ndarray
    velocities: np.ndarray
    pinned: np.ndarray  # bool mask
    pins: np.ndarray

    @property
    def count(self) -> int:
        return len(self.node_ids)

    def index(self) -> Dict[int, int]:
        return {node_id: i for i, node_id in enumerate(self.node_ids)}


def jiggle(rng: np.random.Generator, scale: float, size=None):
    """Tiny deterministic displacement for zero-distance geometry."""
    return (rng.random(size) - 0.5) * scale


class Force:
    """Base force: adds alpha-scaled velocity contributions."""

    def apply(self, bodies: Bodies, alpha: float, rng: np.random.Generator) -> None:
        raise NotImplementedError


# =============================================================================
# CHARGE
# =============================================================================

class ChargeForce(Force):
    """
    Many-body force. Each pair contributes strength * alpha * d / |d|^2,
    with squared distances below distance_min^2 softened to avoid the
    singularity at zero.
    """

    def __init__(self, config: SimulationConfig):
        self._strength = config.charge_strength
        self._distance_min2 = config.distance_min ** 2
        self._distance_max2 = config.distance_max ** 2
        self._theta2 = config.theta ** 2
        self._jitter = config.jitter
        self._config = config

    def apply(self, bodies: Bodies, alpha: float, rng: np.random.Generator) -> None:
        if bodies.count < 2 or self._strength == 0:
            return
        if self._config.use_barnes_hut(bodies.count):
            self._apply_barnes_hut(bodies, alpha, rng)
        else:
            self._apply_exact(bodies, alpha, rng)

    def _apply_exact(self, bodies: Bodies, alpha: float, rng: np.random.Generator) -> None:
        pos = bodies.positions
        n = bodies.count

        # dx[i, j] points from body i to body j
        dx = pos[None, :, 0] - pos[:, None, 0]
        dy = pos[None, :, 1] - pos[:, None, 1]
        off_diagonal = ~np.eye(n, dtype=bool)

        coincident = off_diagonal & (dx == 0) & (dy == 0)
        if coincident.any():
            count = int(coincident.sum())
            dx[coincident] = jiggle(rng, self._jitter, count)
            dy[coincident] = jiggle(rng, self._jitter, count)

        l2 = dx * dx + dy * dy
        soft = l2 < self._distance_min2
        l2 = np.where(soft, np.sqrt(self._distance_min2 * l2), l2)

        active = off_diagonal & (l2 < self._distance_max2)
        with np.errstate(divide='ignore', invalid='ignore'):
            weight = np.where(active, self._strength * alpha / l2, 0.0)

        bodies.velocities[:, 0] += (dx * weight).sum(axis=1)
        bodies.velocities[:, 1] += (dy * weight).sum(axis=1)

    def _apply_barnes_hut(self, bodies: Bodies, alpha: float, rng: np.random.Generator) -> None:
        tree = QuadTree(bodies.positions, self._strength)
        if tree.root is None:
            return
        for i in range(bodies.count):
            vx, vy = self._accumulate(tree, i, alpha, rng)
            bodies.velocities[i, 0] += vx
            bodies.velocities[i, 1] += vy

    def _accumulate(self, tree: QuadTree, i: int, alpha: float, rng: np.random.Generator) -> Tuple[float, float]:
        px, py = tree.positions[i]
        vx = vy = 0.0
        stack: List[QuadCell] = [tree.root]

        while stack:
            cell = stack.pop()
            x = cell.cx - px
            y = cell.cy - py
            w = cell.width
            l2 = x * x + y * y

            # Far enough: treat the whole cell as one body
            far = self._theta2 > 0 and w * w < self._theta2 * l2
            if far and not cell.is_leaf:
                if l2 < self._distance_max2:
                    if l2 < self._distance_min2:
                        l2 = math.sqrt(self._distance_min2 * l2)
                    vx += x * cell.value * alpha / l2
                    vy += y * cell.value * alpha / l2
                continue

            if not cell.is_leaf:
                stack.extend(cell.children)
                continue

            for j in cell.indices:
                if j == i:
                    continue
                qx, qy = tree.positions[j]
                x = qx - px
                y = qy - py
                if x == 0:
                    x = float(jiggle(rng, self._jitter))
                if y == 0:
                    y = float(jiggle(rng, self._jitter))
                l2 = x * x + y * y
                if l2 >= self._distance_max2:
                    continue
                if l2 < self._distance_min2:
                    l2 = math.sqrt(self._distance_min2 * l2)
                vx += x * self._strength * alpha / l2
                vy += y * self._strength * alpha / l2

        return vx, vy


# =============================================================================
# LINKS
# =============================================================================

class LinkForce(Force):
    """
    Spring force toward link_distance along every active edge.

    Strength defaults to 1 / min(degree_a, degree_b). The correction is
    split by bias = degree_a / (degree_a + degree_b): endpoint B moves by
    bias, endpoint A by 1 - bias, so the better-connected end moves less.
    Uses predicted positions (x + v) and updates velocities edge by edge.
    """

    def __init__(self, config: SimulationConfig, node_ids: Sequence[int], edges: Sequence[Edge]):
        self._distance = config.link_distance
        self._iterations = config.link_iterations
        self._jitter = config.jitter

        index = {node_id: i for i, node_id in enumerate(node_ids)}
        degree = [0] * len(node_ids)
        for edge in edges:
            degree[index[edge.endpoint_a]] += 1
            degree[index[edge.endpoint_b]] += 1
        self.degree: Tuple[int, ...] = tuple(degree)

        self._links: List[Tuple[int, int, float, float]] = []
        for edge in edges:
            if edge.is_self_loop:
                continue
            a = index[edge.endpoint_a]
            b = index[edge.endpoint_b]
            if config.link_strength is None:
                strength = 1.0 / min(degree[a], degree[b])
            else:
                strength = config.link_strength
            bias = degree[a] / (degree[a] + degree[b])
            self._links.append((a, b, strength, bias))

    @property
    def link_count(self) -> int:
        return len(self._links)

    def apply(self, bodies: Bodies, alpha: float, rng: np.random.Generator) -> None:
        pos = bodies.positions
        vel = bodies.velocities

        for _ in range(self._iterations):
            for a, b, strength, bias in self._links:
                x = pos[b, 0] + vel[b, 0] - pos[a, 0] - vel[a, 0]
                y = pos[b, 1] + vel[b, 1] - pos[a, 1] - vel[a, 1]
                if x == 0:
                    x = float(jiggle(rng, self._jitter))
                if y == 0:
                    y = float(jiggle(rng, self._jitter))
                length = math.sqrt(x * x + y * y)
                scale = (length - self._distance) / length * alpha * strength
                x *= scale
                y *= scale
                vel[b, 0] -= x * bias
                vel[b, 1] -= y * bias
                vel[a, 0] += x * (1.0 - bias)
                vel[a, 1] += y * (1.0 - bias)


# =============================================================================
# CENTERING
# =============================================================================

class CenterForce(Force):
    """Independent x and y pulls toward the configured center."""

    def __init__(self, config: SimulationConfig):
        self._cx = config.center_x
        self._cy = config.center_y
        self._strength = config.center_strength

    def apply(self, bodies: Bodies, alpha: float, rng: np.random.Generator) -> None:
        if self._strength == 0:
            return
        pos = bodies.positions
        bodies.velocities[:, 0] += (self._cx - pos[:, 0]) * self._strength * alpha
        bodies.velocities[:, 1] += (self._cy - pos[:, 1]) * self._strength * alpha
