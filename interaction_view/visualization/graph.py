"""
Graph Visualization Contracts

Responsibility:
Deterministic transformation of engine output into renderable graph views.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Tuple

from interaction_view.dtos import AvailabilityState, DTOVersion


@dataclass(frozen=True)
class GraphNode:
    """Renderable graph node. x/y are None until a layout run exists."""
    node_id: int
    x: Optional[float]
    y: Optional[float]
    radius: float
    color: str
    label: str
    tooltip: str
    group: int
    interaction_count: int
    is_isolated: bool
    is_pinned: bool


@dataclass(frozen=True)
class GraphEdge:
    """Renderable graph edge."""
    edge_id: str
    source_id: int
    target_id: int
    assignment_id: int
    thickness: float
    label: Optional[str]


@dataclass(frozen=True)
class NetworkGraphView:
    """
    Layouted network graph for one selection and one tick.

    selection is "all" or a sorted tuple of assignment ids.
    """
    view_id: str
    dto_version: DTOVersion
    generated_at: datetime
    nodes: Tuple[GraphNode, ...]
    edges: Tuple[GraphEdge, ...]
    selection: Any
    simulation_status: str
    tick_count: Optional[int]
    availability: AvailabilityState
    error: Optional[str] = None
