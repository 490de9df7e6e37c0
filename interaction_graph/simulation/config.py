"""
Simulation Configuration

Every force constant and cooling parameter of the layout engine. Defaults
reproduce the classic d3-force behaviour the layouts were tuned against.
"""

from __future__ import annotations
from dataclasses import dataclass, fields
from typing import Optional
import math

from ..contracts.base import DataIntegrityError, ErrorCode


CHARGE_EXACT = "exact"
CHARGE_BARNES_HUT = "barnes_hut"
CHARGE_AUTO = "auto"


@dataclass
class SimulationConfig:
    """Configuration for the force simulation engine."""
    # Cooling schedule
    alpha_min: float = 0.001
    alpha_decay: Optional[float] = None  # None -> reach alpha_min in alpha_decay_ticks
    alpha_decay_ticks: int = 300
    reheat_alpha_target: float = 0.3

    # Integration; fraction of velocity removed per tick
    velocity_decay: float = 0.4

    # Charge (negative = repulsion)
    charge_strength: float = -30.0
    distance_min: float = 1.0
    distance_max: float = math.inf
    charge_approximation: str = CHARGE_AUTO
    barnes_hut_threshold: int = 500
    theta: float = 0.9

    # Links; None -> 1 / min(degree_a, degree_b)
    link_distance: float = 30.0
    link_strength: Optional[float] = None
    link_iterations: int = 1

    # Centering
    center_x: float = 0.0
    center_y: float = 0.0
    center_strength: float = 0.1

    # Seeding
    initial_radius: float = 10.0
    jitter: float = 1e-6
    seed: Optional[int] = None
    preserve_positions_on_reseed: bool = True

    def __post_init__(self):
        if self.alpha_decay is None and 0.0 < self.alpha_min < 1.0 and self.alpha_decay_ticks > 0:
            self.alpha_decay = 1.0 - self.alpha_min ** (1.0 / self.alpha_decay_ticks)

    def validate(self) -> None:
        """Reject negative or non-finite dimensions."""
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, float) and math.isnan(value):
                self._reject(f.name, value, "must not be NaN")

        if not 0.0 < self.alpha_min < 1.0:
            self._reject("alpha_min", self.alpha_min, "must be in (0, 1)")
        if self.alpha_decay is None or not 0.0 <= self.alpha_decay <= 1.0:
            self._reject("alpha_decay", self.alpha_decay, "must be in [0, 1]")
        if not 0.0 <= self.reheat_alpha_target <= 1.0:
            self._reject("reheat_alpha_target", self.reheat_alpha_target, "must be in [0, 1]")
        if not 0.0 <= self.velocity_decay <= 1.0:
            self._reject("velocity_decay", self.velocity_decay, "must be in [0, 1]")
        if not math.isfinite(self.charge_strength):
            self._reject("charge_strength", self.charge_strength, "must be finite")
        if self.distance_min < 0 or not math.isfinite(self.distance_min):
            self._reject("distance_min", self.distance_min, "must be a finite non-negative number")
        if self.distance_max <= 0:
            self._reject("distance_max", self.distance_max, "must be positive")
        if self.charge_approximation not in (CHARGE_AUTO, CHARGE_EXACT, CHARGE_BARNES_HUT):
            self._reject("charge_approximation", self.charge_approximation, "unknown mode")
        if self.barnes_hut_threshold < 0:
            self._reject("barnes_hut_threshold", self.barnes_hut_threshold, "must be non-negative")
        if self.theta < 0 or not math.isfinite(self.theta):
            self._reject("theta", self.theta, "must be a finite non-negative number")
        if self.link_distance < 0 or not math.isfinite(self.link_distance):
            self._reject("link_distance", self.link_distance, "must be a finite non-negative number")
        if self.link_strength is not None and (self.link_strength < 0 or not math.isfinite(self.link_strength)):
            self._reject("link_strength", self.link_strength, "must be a finite non-negative number")
        if self.link_iterations < 1:
            self._reject("link_iterations", self.link_iterations, "must be at least 1")
        if not (math.isfinite(self.center_x) and math.isfinite(self.center_y)):
            self._reject("center", (self.center_x, self.center_y), "must be finite")
        if self.center_strength < 0 or not math.isfinite(self.center_strength):
            self._reject("center_strength", self.center_strength, "must be a finite non-negative number")
        if self.initial_radius < 0 or not math.isfinite(self.initial_radius):
            self._reject("initial_radius", self.initial_radius, "must be a finite non-negative number")
        if self.jitter <= 0 or not math.isfinite(self.jitter):
            self._reject("jitter", self.jitter, "must be a finite positive number")

    def use_barnes_hut(self, node_count: int) -> bool:
        if self.charge_approximation == CHARGE_BARNES_HUT:
            return True
        if self.charge_approximation == CHARGE_EXACT:
            return False
        return node_count > self.barnes_hut_threshold

    @staticmethod
    def _reject(name: str, value: object, reason: str) -> None:
        raise DataIntegrityError.build(
            ErrorCode.INVALID_DIMENSION,
            f"Invalid simulation setting {name}={value!r}: {reason}",
            record=value,
            setting=name
        )
