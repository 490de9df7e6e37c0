"""
Render Adapter

Bridges the engine and a renderer. Executes interaction intents against the
engine and re-maps the view after every change or simulation event.

FAILURE POLICY:
===============
A core error never reaches the renderer as a broken view: the adapter keeps
the last-known-good view, marks it STALE and records the error message.
The next successful update restores PRESENT.
"""

from __future__ import annotations
from dataclasses import replace
from typing import Callable, List, Optional
import warnings

from interaction_graph.contracts import (
    ALL, FilterSelection, InteractionGraphError, SimulationEvent,
    UnknownAssignmentWarning,
)
from interaction_graph.engine import InteractionGraphEngine
from interaction_view.dtos import AvailabilityState
from interaction_view.interaction import ActionType, InteractionRequest
from interaction_view.mapper import ViewMapper
from interaction_view.visualization import NetworkGraphView


ViewListener = Callable[[NetworkGraphView], None]


class RenderAdapter:
    """
    Keeps one NetworkGraphView in sync with an InteractionGraphEngine.

    Subscribes to simulation events on construction; call close() to detach.
    """

    def __init__(
        self,
        engine: InteractionGraphEngine,
        mapper: Optional[ViewMapper] = None
    ):
        self._engine = engine
        self._mapper = mapper or ViewMapper()
        self._listeners: List[ViewListener] = []
        self._warnings: List[str] = []
        self._last_error: Optional[InteractionGraphError] = None
        self._last_good: Optional[NetworkGraphView] = None
        self._current: Optional[NetworkGraphView] = None

        self._refresh()
        self._unsubscribe = engine.subscribe(self._on_simulation_event)

    # =========================================================================
    # READ-ONLY STATE
    # =========================================================================

    @property
    def current_view(self) -> NetworkGraphView:
        return self._current

    @property
    def last_good_view(self) -> Optional[NetworkGraphView]:
        return self._last_good

    @property
    def last_error(self) -> Optional[InteractionGraphError]:
        return self._last_error

    @property
    def warnings(self) -> List[str]:
        """Warnings from the most recent dispatch."""
        return list(self._warnings)

    def add_listener(self, listener: ViewListener):
        self._listeners.append(listener)

    def close(self):
        self._unsubscribe()

    # =========================================================================
    # INTENT EXECUTION
    # =========================================================================

    def dispatch(self, request: InteractionRequest) -> NetworkGraphView:
        """Execute one intent and return the view to render."""
        payload = request.payload
        self._warnings = []

        try:
            with warnings.catch_warnings(record=True) as caught:
                warnings.simplefilter("always", UnknownAssignmentWarning)
                self._execute(request.action, payload)
            self._warnings = [
                str(w.message) for w in caught
                if issubclass(w.category, UnknownAssignmentWarning)
            ]
        except InteractionGraphError as exc:
            self._mark_stale(exc)
            return self._current

        return self._refresh()

    def _execute(self, action: ActionType, payload):
        engine = self._engine
        if action == ActionType.TOGGLE_ASSIGNMENT:
            key = payload.get("assignment_id")
            engine.toggle_assignment(ALL if key is None or key == "all" else key)
        elif action == ActionType.SET_SELECTION:
            ids = payload.get("assignment_ids")
            engine.set_filter_selection(ALL if ids is None else FilterSelection.of(ids))
        elif action == ActionType.DRAG_START:
            engine.drag_start(payload["node_id"])
        elif action == ActionType.DRAG_MOVE:
            engine.drag_move(payload["node_id"], payload["x"], payload["y"])
        elif action == ActionType.DRAG_END:
            engine.drag_end(payload["node_id"])
        elif action == ActionType.START_LAYOUT:
            engine.start()
        elif action == ActionType.STEP_FRAME:
            for _ in range(int(payload.get("ticks", 1))):
                engine.tick()
        elif action == ActionType.RUN_TO_CONVERGENCE:
            engine.run_to_convergence(payload.get("max_ticks"))
        elif action == ActionType.STOP_LAYOUT:
            engine.stop()
        else:
            raise ValueError(f"Unsupported action {action!r}")

    # =========================================================================
    # VIEW MAINTENANCE
    # =========================================================================

    def _on_simulation_event(self, event: SimulationEvent):
        self._refresh()

    def _refresh(self) -> NetworkGraphView:
        engine = self._engine
        try:
            snapshots = {node.node_id: node for node in engine.nodes()}
            view = self._mapper.map_graph(
                engine.model,
                engine.view,
                snapshots,
                engine.simulation_status,
                engine.simulation_state
            )
        except InteractionGraphError as exc:
            self._mark_stale(exc)
            return self._current

        self._last_error = None
        self._last_good = view
        self._publish(view)
        return view

    def _mark_stale(self, exc: InteractionGraphError):
        self._last_error = exc
        if self._last_good is None:
            return
        self._publish(replace(
            self._last_good,
            availability=AvailabilityState.STALE,
            error=f"{exc.code.name}: {exc}"
        ))

    def _publish(self, view: NetworkGraphView):
        self._current = view
        for listener in list(self._listeners):
            listener(view)
