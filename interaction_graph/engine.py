"""
Engine Orchestration Module

This module provides the unified interface for coordinating the
interaction-graph layers while maintaining strict boundary separation.

DESIGN PRINCIPLES:
==================
1. Layers communicate ONLY through contracts
2. Engine orchestrates flow without creating coupling
3. All operations are traceable through observability
4. The filter layer stays pure; this class owns the current selection
"""

from __future__ import annotations
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple, Union
import time

from .contracts.base import InteractionGraphError, Vector
from .contracts.events import (
    AuditEventType, AuditLogEntry, SimulationState, SimulationStatus
)
from .contracts.graph import GraphModel, Node
from .contracts.views import ALL, DerivedView, FilterSelection
from .core import TopologyEngine, derive_view, toggle
from .core.filtering import ToggleKey
from .ingestion import IngestionEngine, IngestionConfig
from .simulation import ForceSimulation, SimulationConfig, SimulationListener
from .observability import MetricsCollector, ObservabilityEngine, ObservabilityConfig


@dataclass
class EngineConfig:
    """Unified configuration for the whole engine."""
    ingestion: IngestionConfig = None
    simulation: SimulationConfig = None
    observability: ObservabilityConfig = None

    def __post_init__(self):
        self.ingestion = self.ingestion or IngestionConfig()
        self.simulation = self.simulation or SimulationConfig()
        self.observability = self.observability or ObservabilityConfig()


class InteractionGraphEngine:
    """
    Unified engine for the interaction graph.

    LAYER FLOW:
    ===========
    1. Ingestion: payload -> GraphModel (groups backfilled)
    2. Filter: GraphModel + FilterSelection -> DerivedView
    3. Topology: active subgraph -> GraphMetrics (attached to the view)
    4. Simulation: all nodes + active edges -> positions
    5. Observability: records all layer activity

    A filter change that alters the active edge set while a run is live
    re-seeds the simulation, carrying the current positions over. Drags in
    progress survive the re-seed with their pins.
    """

    def __init__(
        self,
        model: GraphModel,
        config: Optional[EngineConfig] = None,
        listeners: Tuple[SimulationListener, ...] = ()
    ):
        self._config = config or EngineConfig()
        self._model = model

        # Initialize layers (each is independent)
        self._observability = ObservabilityEngine(self._config.observability)
        self._topology = TopologyEngine()
        self._simulation = ForceSimulation(self._config.simulation, listeners)
        self._simulation_audit_seen = 0

        self._view = self._recompute(ALL)

    # =========================================================================
    # CONSTRUCTION
    # =========================================================================

    @classmethod
    def from_payload(
        cls,
        payload: Mapping[str, Any],
        config: Optional[EngineConfig] = None,
        listeners: Tuple[SimulationListener, ...] = ()
    ) -> InteractionGraphEngine:
        """Ingest a payload dict and build an engine over it."""
        config = config or EngineConfig()
        ingestion = IngestionEngine(config.ingestion)
        model = ingestion.load_payload(payload)
        engine = cls(model, config, listeners)
        engine._collect_audit(ingestion.get_audit_log())
        return engine

    @classmethod
    def from_json_file(
        cls,
        path: Union[str, Path],
        config: Optional[EngineConfig] = None,
        listeners: Tuple[SimulationListener, ...] = ()
    ) -> InteractionGraphEngine:
        """Ingest a JSON payload file and build an engine over it."""
        config = config or EngineConfig()
        ingestion = IngestionEngine(config.ingestion)
        model = ingestion.load_json_file(path)
        engine = cls(model, config, listeners)
        engine._collect_audit(ingestion.get_audit_log())
        return engine

    # =========================================================================
    # FILTER INTERFACE
    # =========================================================================

    @property
    def model(self) -> GraphModel:
        return self._model

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def view(self) -> DerivedView:
        """Current derived view (immutable)."""
        return self._view

    @property
    def selection(self) -> FilterSelection:
        return self._view.selection

    def set_filter_selection(self, selection: FilterSelection) -> DerivedView:
        """
        Replace the selection and recompute the view.

        Unknown ids are dropped with UnknownAssignmentWarning and audited.
        """
        if not selection.is_all:
            for assignment_id in sorted(selection.assignment_ids - self._model.assignment_ids):
                self._reject_assignment(assignment_id)
        return self._apply_selection(selection)

    def toggle_assignment(self, key: ToggleKey) -> DerivedView:
        """
        Apply one checkbox toggle (ALL or an assignment id).

        Unknown ids leave the view unchanged, emit UnknownAssignmentWarning
        and are audited as errors.
        """
        if not isinstance(key, FilterSelection) and key not in self._model.assignment_ids:
            self._reject_assignment(key)
            toggle(self._view.selection, key, self._model.assignment_ids)
            return self._view

        result = toggle(self._view.selection, key, self._model.assignment_ids)
        return self._apply_selection(result)

    def _apply_selection(self, selection: FilterSelection) -> DerivedView:
        previous = self._view
        self._view = self._recompute(selection)

        self._observability.log_audit(
            action="selection_changed",
            details=repr(self._view.selection),
            layer="filter",
            event_type=AuditEventType.FILTER
        )

        if previous.active_edges != self._view.active_edges and \
                self._simulation.status != SimulationStatus.IDLE:
            self._reseed()
        return self._view

    def _recompute(self, selection: FilterSelection) -> DerivedView:
        started = time.perf_counter()
        view = derive_view(self._model, selection)

        self._topology.build_graph(self._model.node_ids, view.active_edges)
        view = view.with_metrics(self._topology.compute_metrics())

        elapsed_ms = (time.perf_counter() - started) * 1000.0
        self._observability.collect_metric("filter_recompute_ms", elapsed_ms)
        self._observability.collect_metric("active_edges", float(view.active_edge_count))
        self._observability.collect_metric("isolated_nodes", float(len(view.isolated_nodes)))
        return view

    def _reject_assignment(self, assignment_id: Any):
        self._observability.log_audit(
            action="unknown_assignment",
            entity_id=str(assignment_id),
            outcome="rejected",
            details="assignment id is not in the universe; selection unchanged",
            layer="filter",
            event_type=AuditEventType.ERROR
        )
        self._observability.collect_metric("toggle_rejections_total", 1.0)

    # =========================================================================
    # SIMULATION INTERFACE
    # =========================================================================

    def start(self) -> SimulationState:
        """Start a fresh run over every node and the active edges."""
        with self._recording_errors():
            state = self._simulation.start(self._model.nodes, self._view.active_edges)
        self._observability.collect_metric("simulation_runs_total", 1.0, {"reason": "start"})
        self._collect_simulation_audit()
        return state

    def tick(self) -> SimulationState:
        with self._recording_errors():
            before = self._simulation.state.tick_count if self._simulation.state else 0
            state = self._simulation.tick()
        self._record_tick_metrics(state.tick_count - before)
        return state

    def run_to_convergence(self, max_ticks: Optional[int] = None) -> SimulationState:
        with self._recording_errors():
            before = self._simulation.state.tick_count if self._simulation.state else 0
            state = self._simulation.run_to_convergence(max_ticks)
        self._record_tick_metrics(state.tick_count - before)
        return state

    def stop(self) -> None:
        self._simulation.stop()
        self._collect_simulation_audit()

    def drag_start(self, node_id: int) -> None:
        with self._recording_errors():
            self._simulation.drag_start(node_id)
        self._collect_simulation_audit()

    def drag_move(self, node_id: int, x: float, y: float) -> None:
        with self._recording_errors():
            self._simulation.drag_move(node_id, x, y)

    def drag_end(self, node_id: int) -> None:
        with self._recording_errors():
            self._simulation.drag_end(node_id)

    def subscribe(self, listener: SimulationListener) -> Callable[[], None]:
        """Register a simulation event listener; returns its unsubscribe callable."""
        return self._simulation.subscribe(listener)

    def positions(self) -> Dict[int, Vector]:
        return self._simulation.positions()

    def nodes(self) -> Tuple[Node, ...]:
        return self._simulation.nodes()

    @property
    def simulation(self) -> ForceSimulation:
        """Simulation layer (read-only use)."""
        return self._simulation

    @property
    def simulation_status(self) -> SimulationStatus:
        return self._simulation.status

    @property
    def simulation_state(self) -> Optional[SimulationState]:
        return self._simulation.state

    def _reseed(self):
        """Start a new run over the new active edges from the current layout."""
        carried = self._simulation.positions()
        pins = {node.node_id: node.pinned for node in self._simulation.nodes() if node.pinned is not None}
        dragging = self._simulation.active_drags
        nodes = self._model.nodes
        if self._config.simulation.preserve_positions_on_reseed:
            nodes = tuple(node.with_position(carried.get(node.node_id)) for node in nodes)

        self._simulation.start(nodes, self._view.active_edges)
        for node_id in dragging:
            self._simulation.drag_start(node_id)
            self._simulation.drag_move(node_id, *pins[node_id])
        self._observability.collect_metric("simulation_runs_total", 1.0, {"reason": "reseed"})
        self._collect_simulation_audit()

    def _record_tick_metrics(self, ticks: int):
        self._collect_simulation_audit()
        if ticks <= 0:
            return
        self._observability.collect_metric("simulation_ticks_total", float(ticks))

        interval = self._observability.config.tick_metrics_interval
        state = self._simulation.state
        if interval and state is not None and (state.tick_count % interval == 0 or ticks > 1):
            self._observability.collect_metric("simulation_alpha", state.alpha)
            self._observability.collect_metric(
                "simulation_kinetic_energy", self._simulation.kinetic_energy()
            )

    @contextmanager
    def _recording_errors(self) -> Iterator[None]:
        """Audit typed errors, then let them propagate."""
        try:
            yield
        except InteractionGraphError as exc:
            self._observability.log_error(exc.error, layer="simulation")
            raise

    # =========================================================================
    # OBSERVABILITY INTERFACE
    # =========================================================================

    def _collect_audit(self, entries: List[AuditLogEntry]):
        for entry in entries:
            self._observability.collect_audit(entry)

    def _collect_simulation_audit(self):
        entries = self._simulation.get_audit_log()
        self._collect_audit(entries[self._simulation_audit_seen:])
        self._simulation_audit_seen = len(entries)

    def get_audit_report(self) -> Dict:
        """Aggregate audit report across all layers."""
        return self._observability.generate_audit_report()

    def get_unified_log(self, layers: Optional[List[str]] = None) -> List[AuditLogEntry]:
        return self._observability.get_unified_log(layers=layers)

    def get_metrics(self) -> Optional[MetricsCollector]:
        return self._observability.get_metrics()
