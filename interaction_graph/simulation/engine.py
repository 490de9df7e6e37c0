"""
Force Simulation Engine
=======================

Iterative force-directed layout over a fixed set of active nodes and edges.

STATE MACHINE:
==============
IDLE --start()--> RUNNING --alpha < alpha_min--> COOLED --stop()--> IDLE
                     ^                              |
                     +-------- drag_start() --------+

GUARANTEES:
===========
1. Caller data is never mutated; the engine works on private arrays
2. start() replaces SimulationState wholesale; positions from one active
   set are never mixed with forces of another
3. Given identical inputs and seed, the tick sequence is reproducible
4. Misuse raises PreconditionViolation, never corrupts state
"""

from __future__ import annotations
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple
import hashlib
import math

import numpy as np

from ..contracts.base import (
    DataIntegrityError, ErrorCode, PreconditionViolation, Timestamp, Vector
)
from ..contracts.events import (
    AuditEventType, AuditLogEntry, SimulationEvent, SimulationEventType,
    SimulationState, SimulationStatus
)
from ..contracts.graph import Edge, Node
from .config import SimulationConfig
from .forces import Bodies, CenterForce, ChargeForce, Force, LinkForce, jiggle


SimulationListener = Callable[[SimulationEvent], None]

# Golden angle for the phyllotaxis seed spiral
INITIAL_ANGLE = math.pi * (3.0 - math.sqrt(5.0))


def phyllotaxis(index: int, radius: float) -> Vector:
    """Deterministic spiral placement; no two indices coincide."""
    r = radius * math.sqrt(0.5 + index)
    angle = index * INITIAL_ANGLE
    return (r * math.cos(angle), r * math.sin(angle))


class ForceSimulation:
    """
    Force-directed layout engine.

    Scheduling is up to the caller: drive tick() from an animation loop, or
    call run_to_convergence() for a final static layout. Both leave the
    engine in a consistent state between calls.
    """

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        listeners: Iterable[SimulationListener] = ()
    ):
        self._config = config or SimulationConfig()
        self._config.validate()

        self._listeners: List[SimulationListener] = list(listeners)
        self._status = SimulationStatus.IDLE
        self._state: Optional[SimulationState] = None
        self._run_counter = 0
        self._run_seed: Optional[int] = None

        self._nodes: Dict[int, Node] = {}
        self._bodies: Optional[Bodies] = None
        self._index: Dict[int, int] = {}
        self._forces: List[Force] = []
        self._rng = np.random.default_rng(self._config.seed)
        self._active_drags: Set[int] = set()
        self._last_positions: Dict[int, Vector] = {}

        self._audit_log: List[AuditLogEntry] = []

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(self, nodes: Sequence[Node], edges: Sequence[Edge]) -> SimulationState:
        """
        Begin a new run over nodes and edges.

        Nodes carrying a position keep it; the rest are seeded on a spiral.
        Any current run is replaced.
        """
        if not nodes:
            raise PreconditionViolation.build(
                ErrorCode.EMPTY_NODE_SET,
                "Cannot start a simulation run without nodes"
            )

        node_ids = tuple(node.node_id for node in nodes)
        if len(set(node_ids)) != len(node_ids):
            duplicate = next(i for i in node_ids if node_ids.count(i) > 1)
            raise DataIntegrityError.build(
                ErrorCode.DUPLICATE_NODE,
                f"Duplicate node id {duplicate} in simulation input",
                record=duplicate,
                node_id=duplicate
            )
        known = set(node_ids)
        for edge in edges:
            for endpoint in edge.endpoints:
                if endpoint not in known:
                    raise DataIntegrityError.build(
                        ErrorCode.UNKNOWN_NODE,
                        f"Edge references node id {endpoint} outside the active set",
                        record=edge,
                        node_id=endpoint
                    )

        self._run_counter += 1
        self._run_seed = self._derive_seed(self._run_counter)
        self._rng = np.random.default_rng(self._run_seed)

        self._nodes = {node.node_id: node for node in nodes}
        self._index = {node_id: i for i, node_id in enumerate(node_ids)}
        self._bodies = self._seed_bodies(nodes)
        self._active_drags = set()

        # Applied in this order every tick
        self._forces = [
            LinkForce(self._config, node_ids, edges),
            ChargeForce(self._config),
            CenterForce(self._config),
        ]

        self._state = SimulationState(
            run_id=self._run_counter,
            alpha=1.0,
            alpha_target=0.0,
            tick_count=0
        )
        self._status = SimulationStatus.RUNNING

        self._log_audit(
            action="run_started",
            entity_id=str(self._run_counter),
            metadata=(
                ("nodes", str(len(node_ids))),
                ("edges", str(len(edges))),
                ("seed", str(self._run_seed)),
                ("charge", "barnes_hut" if self._config.use_barnes_hut(len(node_ids)) else "exact"),
            )
        )
        self._publish(SimulationEventType.STARTED)
        return self._state

    def stop(self) -> None:
        """Discard the current run immediately; last positions stay readable."""
        if self._status == SimulationStatus.IDLE:
            return

        self._last_positions = self.positions()
        run_id = self._state.run_id if self._state else None
        self._state = None
        self._bodies = None
        self._forces = []
        self._active_drags = set()
        self._status = SimulationStatus.IDLE

        self._log_audit(action="run_stopped", entity_id=str(run_id))
        self._publish(SimulationEventType.STOPPED)

    reset = stop

    def tick(self) -> SimulationState:
        """
        Advance one step: cool, apply forces, integrate.

        A COOLED engine returns its state unchanged.
        """
        if self._status == SimulationStatus.IDLE:
            raise PreconditionViolation.build(
                ErrorCode.ENGINE_IDLE,
                "Cannot tick: no simulation run is active"
            )
        if self._status == SimulationStatus.COOLED:
            return self._state

        state = self._state
        bodies = self._bodies
        alpha = state.alpha + (state.alpha_target - state.alpha) * self._config.alpha_decay

        for force in self._forces:
            force.apply(bodies, alpha, self._rng)
        self._integrate(bodies)

        self._state = SimulationState(
            run_id=state.run_id,
            alpha=alpha,
            alpha_target=state.alpha_target,
            tick_count=state.tick_count + 1
        )

        if alpha < self._config.alpha_min and state.alpha_target == 0:
            self._status = SimulationStatus.COOLED
            self._log_audit(
                action="run_cooled",
                entity_id=str(state.run_id),
                metadata=(("ticks", str(self._state.tick_count)),)
            )
            self._publish(SimulationEventType.COOLED)
        else:
            self._publish(SimulationEventType.TICKED)

        return self._state

    def run_to_convergence(self, max_ticks: Optional[int] = None) -> SimulationState:
        """
        Tick until COOLED, or until max_ticks ticks have run.

        Hitting max_ticks is an external cancellation, not a failure: the
        run stays RUNNING and can be resumed.
        """
        if self._status == SimulationStatus.IDLE:
            raise PreconditionViolation.build(
                ErrorCode.ENGINE_IDLE,
                "Cannot run to convergence: no simulation run is active"
            )
        if max_ticks is None and self._state.alpha_target >= self._config.alpha_min:
            raise PreconditionViolation.build(
                ErrorCode.DRAG_IN_PROGRESS,
                "alpha_target keeps the run warm; pass max_ticks or end the drag first",
                alpha_target=self._state.alpha_target
            )

        ticks = 0
        while self._status == SimulationStatus.RUNNING:
            if max_ticks is not None and ticks >= max_ticks:
                break
            self.tick()
            ticks += 1
        return self._state

    # =========================================================================
    # DRAG INTERACTION
    # =========================================================================

    def drag_start(self, node_id: int) -> None:
        """Pin node at its current position and reheat the run."""
        i = self._require_node(node_id, "drag_start")

        if not self._active_drags:
            self._set_alpha_target(self._config.reheat_alpha_target)
            if self._status == SimulationStatus.COOLED:
                self._status = SimulationStatus.RUNNING
                self._log_audit(action="run_reheated", entity_id=str(self._state.run_id))

        self._active_drags.add(node_id)
        bodies = self._bodies
        bodies.pinned[i] = True
        bodies.pins[i] = bodies.positions[i]

    def drag_move(self, node_id: int, x: float, y: float) -> None:
        """Move the pin of a node being dragged."""
        i = self._require_dragging(node_id, "drag_move")
        if not (math.isfinite(x) and math.isfinite(y)):
            raise DataIntegrityError.build(
                ErrorCode.INVALID_DIMENSION,
                f"Drag target ({x}, {y}) is not finite",
                record=(x, y),
                node_id=node_id
            )
        self._bodies.pins[i] = (x, y)

    def drag_end(self, node_id: int) -> None:
        """Release the pin; cooling resumes once the last drag ends."""
        i = self._require_dragging(node_id, "drag_end")
        self._active_drags.discard(node_id)
        self._bodies.pinned[i] = False
        if not self._active_drags:
            self._set_alpha_target(0.0)

    # =========================================================================
    # READ-ONLY OUTPUTS
    # =========================================================================

    @property
    def status(self) -> SimulationStatus:
        return self._status

    @property
    def state(self) -> Optional[SimulationState]:
        return self._state

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def run_seed(self) -> Optional[int]:
        """Seed of the current (or last) run; reproduces its jitter."""
        return self._run_seed

    @property
    def active_drags(self) -> Tuple[int, ...]:
        return tuple(sorted(self._active_drags))

    def positions(self) -> Dict[int, Vector]:
        """Snapshot of node positions; last known positions when IDLE."""
        if self._bodies is None:
            return dict(self._last_positions)
        pos = self._bodies.positions
        return {
            node_id: (float(pos[i, 0]), float(pos[i, 1]))
            for i, node_id in enumerate(self._bodies.node_ids)
        }

    def nodes(self) -> Tuple[Node, ...]:
        """Immutable node snapshots carrying position, velocity and pin."""
        if self._bodies is None:
            return tuple(
                node.with_position(self._last_positions.get(node.node_id))
                for node in self._nodes.values()
            )
        bodies = self._bodies
        snapshots = []
        for i, node_id in enumerate(bodies.node_ids):
            pinned = (float(bodies.pins[i, 0]), float(bodies.pins[i, 1])) if bodies.pinned[i] else None
            snapshots.append(Node(
                node_id=node_id,
                display_name=self._nodes[node_id].display_name,
                group=self._nodes[node_id].group,
                position=(float(bodies.positions[i, 0]), float(bodies.positions[i, 1])),
                velocity=(float(bodies.velocities[i, 0]), float(bodies.velocities[i, 1])),
                pinned=pinned
            ))
        return tuple(snapshots)

    def degree(self) -> Dict[int, int]:
        """Link degree used for strength and bias in the current run."""
        for force in self._forces:
            if isinstance(force, LinkForce):
                return dict(zip(self._bodies.node_ids, force.degree))
        return {node_id: 0 for node_id in self._index}

    def kinetic_energy(self) -> float:
        """Sum of squared velocities over all bodies."""
        if self._bodies is None:
            return 0.0
        return float(np.sum(self._bodies.velocities ** 2))

    # =========================================================================
    # LISTENERS
    # =========================================================================

    def subscribe(self, listener: SimulationListener) -> Callable[[], None]:
        """Register a listener; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, event_type: SimulationEventType) -> None:
        if not self._listeners:
            return
        event = SimulationEvent(
            event_type=event_type,
            status=self._status,
            state=self._state,
            positions=self.positions()
        )
        for listener in list(self._listeners):
            listener(event)

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _derive_seed(self, run_id: int) -> int:
        if self._config.seed is None:
            return int(np.random.SeedSequence().entropy % (2 ** 32))
        return (self._config.seed + run_id - 1) % (2 ** 32)

    def _seed_bodies(self, nodes: Sequence[Node]) -> Bodies:
        n = len(nodes)
        positions = np.zeros((n, 2), dtype=float)
        velocities = np.zeros((n, 2), dtype=float)
        pinned = np.zeros(n, dtype=bool)
        pins = np.zeros((n, 2), dtype=float)

        for i, node in enumerate(nodes):
            if node.position is not None:
                positions[i] = node.position
                velocities[i] = node.velocity
            else:
                positions[i] = phyllotaxis(i, self._config.initial_radius)
            if node.pinned is not None:
                pinned[i] = True
                pins[i] = node.pinned
                positions[i] = node.pinned

        if not np.all(np.isfinite(positions)) or not np.all(np.isfinite(velocities)):
            bad = next(
                node for i, node in enumerate(nodes)
                if not (np.all(np.isfinite(positions[i])) and np.all(np.isfinite(velocities[i])))
            )
            raise DataIntegrityError.build(
                ErrorCode.INVALID_DIMENSION,
                f"Node {bad.node_id} has a non-finite position or velocity",
                record=bad,
                node_id=bad.node_id
            )

        self._separate_coincident(positions, pinned)

        return Bodies(
            node_ids=tuple(node.node_id for node in nodes),
            positions=positions,
            velocities=velocities,
            pinned=pinned,
            pins=pins
        )

    def _separate_coincident(self, positions: np.ndarray, pinned: np.ndarray) -> None:
        """Nudge every exact duplicate after the first by a minimal jitter."""
        seen: Set[Tuple[float, float]] = set()
        for i in range(len(positions)):
            key = (float(positions[i, 0]), float(positions[i, 1]))
            while key in seen and not pinned[i]:
                positions[i] += jiggle(self._rng, self._config.jitter, 2)
                key = (float(positions[i, 0]), float(positions[i, 1]))
            seen.add(key)

    def _integrate(self, bodies: Bodies) -> None:
        free = ~bodies.pinned
        bodies.velocities[free] *= (1.0 - self._config.velocity_decay)
        bodies.positions[free] += bodies.velocities[free]

        fixed = bodies.pinned
        bodies.positions[fixed] = bodies.pins[fixed]
        bodies.velocities[fixed] = 0.0

    def _set_alpha_target(self, alpha_target: float) -> None:
        state = self._state
        self._state = SimulationState(
            run_id=state.run_id,
            alpha=state.alpha,
            alpha_target=alpha_target,
            tick_count=state.tick_count
        )

    def _require_node(self, node_id: int, operation: str) -> int:
        if self._status == SimulationStatus.IDLE:
            raise PreconditionViolation.build(
                ErrorCode.ENGINE_IDLE,
                f"Cannot {operation}: no simulation run is active",
                node_id=node_id
            )
        if node_id not in self._index:
            raise PreconditionViolation.build(
                ErrorCode.UNKNOWN_DRAG_TARGET,
                f"Cannot {operation}: node {node_id} is not in the active run",
                node_id=node_id
            )
        return self._index[node_id]

    def _require_dragging(self, node_id: int, operation: str) -> int:
        i = self._require_node(node_id, operation)
        if node_id not in self._active_drags:
            raise PreconditionViolation.build(
                ErrorCode.DRAG_NOT_STARTED,
                f"Cannot {operation}: drag_start was not called for node {node_id}",
                node_id=node_id
            )
        return i

    def _log_audit(
        self,
        action: str,
        entity_id: Optional[str] = None,
        metadata: tuple = ()
    ):
        """Add entry to internal audit log."""
        entry_id = hashlib.sha256(
            f"simulation_{action}|{Timestamp.now().value.timestamp()}|{len(self._audit_log)}".encode()
        ).hexdigest()[:16]

        entry = AuditLogEntry(
            entry_id=f"audit_{entry_id}",
            event_type=AuditEventType.SIMULATION,
            timestamp=Timestamp.now(),
            layer="simulation",
            action=action,
            entity_id=entity_id,
            entity_type="run",
            metadata=metadata
        )
        self._audit_log.append(entry)

    def get_audit_log(self) -> List[AuditLogEntry]:
        """Return copy of audit log entries."""
        return list(self._audit_log)
