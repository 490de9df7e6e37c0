"""
API Mapper
==========

Transforms internal contracts (DerivedView, SimulationState, audit entries)
into JSON-ready dicts. No computation beyond reshaping.
"""
from dataclasses import asdict
from typing import Any, Dict, List, Mapping, Optional

from ..contracts.base import InteractionGraphError, Vector
from ..contracts.events import AuditLogEntry, SimulationState, SimulationStatus
from ..contracts.graph import Edge
from ..contracts.views import DerivedView, FilterSelection


def map_selection(selection: FilterSelection) -> Any:
    """ALL maps to the string "all", explicit sets to a sorted id list."""
    if selection.is_all:
        return "all"
    return sorted(selection.assignment_ids)


def map_edge(edge: Edge) -> Dict[str, Any]:
    return {
        "user1": edge.endpoint_a,
        "user2": edge.endpoint_b,
        "assignmentId": edge.assignment_id,
        "value": edge.weight,
    }


def map_view_to_dto(view: DerivedView) -> Dict[str, Any]:
    """Map DerivedView to the view DTO."""
    return {
        "selection": map_selection(view.selection),
        "active_edges": [map_edge(e) for e in view.active_edges],
        # JSON object keys are strings
        "interaction_counts": {str(k): v for k, v in view.interaction_counts.items()},
        "isolated_nodes": sorted(view.isolated_nodes),
        "metrics": asdict(view.metrics) if view.metrics else None,
    }


def map_state(state: Optional[SimulationState]) -> Optional[Dict[str, Any]]:
    if state is None:
        return None
    return {
        "run_id": state.run_id,
        "alpha": state.alpha,
        "alpha_target": state.alpha_target,
        "tick_count": state.tick_count,
    }


def map_simulation_to_dto(
    status: SimulationStatus,
    state: Optional[SimulationState],
    positions: Mapping[int, Vector]
) -> Dict[str, Any]:
    """Map simulation status, state and positions to the positions DTO."""
    return {
        "status": status.value,
        "state": map_state(state),
        "positions": {str(k): {"x": x, "y": y} for k, (x, y) in positions.items()},
    }


def map_audit_entry(entry: AuditLogEntry) -> Dict[str, Any]:
    return {
        "entry_id": entry.entry_id,
        "event_type": entry.event_type.value,
        "timestamp": entry.timestamp.to_iso(),
        "layer": entry.layer,
        "action": entry.action,
        "entity_id": entry.entity_id,
        "metadata": dict(entry.metadata),
    }


def map_error(exc: InteractionGraphError) -> Dict[str, Any]:
    """Map a typed error to the error body."""
    error = exc.error
    return {
        "code": error.code.name,
        "message": error.message,
        "timestamp": error.timestamp.isoformat(),
        "context": dict(error.context),
    }


def map_audit_log(entries: List[AuditLogEntry]) -> List[Dict[str, Any]]:
    return [map_audit_entry(e) for e in entries]
