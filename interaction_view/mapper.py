"""
Engine to View Mapper

Converts engine output (graph model, derived view, node snapshots) into
renderable NetworkGraphView objects.

MAPPING BOUNDARY:
=================
This is the ONLY place where engine contracts become render DTOs.

MAPPING RULES:
==============
1. Never expose internal engine structure
2. Always include explicit availability
3. Positions absent from the engine stay None, never guessed
4. Preserve engine ordering (model node order, active edge order)
"""

from __future__ import annotations
from datetime import datetime, timezone
from typing import Mapping, Optional
import hashlib
import math

from interaction_graph.contracts import (
    DerivedView, Edge, GraphModel, Node, SimulationState, SimulationStatus,
)
from interaction_view.dtos import AvailabilityState, DTOVersion
from interaction_view.visualization import GraphEdge, GraphNode, NetworkGraphView


# Ten-colour categorical palette (d3 schemeCategory10)
CATEGORY10 = (
    "#1f77b4", "#ff7f0e", "#2ca02c", "#d62728", "#9467bd",
    "#8c564b", "#e377c2", "#7f7f7f", "#bcbd22", "#17becf",
)

NODE_RADIUS = 5.0


class ViewMapper:
    """
    Maps engine state to render DTOs.

    SINGLE POINT OF CONVERSION:
    ===========================
    All engine -> renderer conversion goes through this class.
    """

    def __init__(self, palette=CATEGORY10, node_radius: float = NODE_RADIUS):
        self._palette = tuple(palette)
        self._node_radius = node_radius

    # =========================================================================
    # ELEMENT MAPPING
    # =========================================================================

    def color_for_group(self, group: int) -> str:
        """Groups are 1-based; colours cycle through the palette."""
        return self._palette[(group - 1) % len(self._palette)]

    @staticmethod
    def edge_thickness(edge: Edge) -> float:
        """sqrt of numeric weights; text weights render at 1."""
        weight = edge.weight
        if isinstance(weight, bool) or not isinstance(weight, (int, float)):
            return 1.0
        if weight <= 0 or not math.isfinite(weight):
            return 1.0
        return math.sqrt(weight)

    @staticmethod
    def tooltip(node: Node) -> str:
        return f"ID: {node.node_id}\nName: {node.display_name}"

    def map_node(
        self,
        node: Node,
        snapshot: Optional[Node],
        view: DerivedView
    ) -> GraphNode:
        position = snapshot.position if snapshot is not None else None
        return GraphNode(
            node_id=node.node_id,
            x=position[0] if position is not None else None,
            y=position[1] if position is not None else None,
            radius=self._node_radius,
            color=self.color_for_group(node.group),
            label=node.display_name,
            tooltip=self.tooltip(node),
            group=node.group,
            interaction_count=view.interaction_counts.get(node.node_id, 0),
            is_isolated=node.node_id in view.isolated_nodes,
            is_pinned=snapshot is not None and snapshot.pinned is not None
        )

    def map_edge(self, index: int, edge: Edge, titles: Mapping[int, str]) -> GraphEdge:
        return GraphEdge(
            edge_id=f"e{index}_{edge.endpoint_a}_{edge.endpoint_b}_{edge.assignment_id}",
            source_id=edge.endpoint_a,
            target_id=edge.endpoint_b,
            assignment_id=edge.assignment_id,
            thickness=self.edge_thickness(edge),
            label=titles.get(edge.assignment_id)
        )

    # =========================================================================
    # VIEW MAPPING
    # =========================================================================

    def map_graph(
        self,
        model: GraphModel,
        view: DerivedView,
        snapshots: Mapping[int, Node],
        status: SimulationStatus,
        state: Optional[SimulationState]
    ) -> NetworkGraphView:
        """Map one consistent engine snapshot to a NetworkGraphView."""
        titles = model.assignment_titles()
        nodes = tuple(
            self.map_node(node, snapshots.get(node.node_id), view)
            for node in model.nodes
        )
        edges = tuple(
            self.map_edge(i, edge, titles)
            for i, edge in enumerate(view.active_edges)
        )

        selection = "all" if view.selection.is_all else tuple(sorted(view.selection.assignment_ids))
        tick_count = state.tick_count if state is not None else None
        run_id = state.run_id if state is not None else 0

        view_id = hashlib.sha256(
            f"{selection}|{run_id}|{tick_count}|{status.value}".encode()
        ).hexdigest()[:16]

        has_layout = bool(snapshots) and all(n.x is not None for n in nodes)
        return NetworkGraphView(
            view_id=f"view_{view_id}",
            dto_version=DTOVersion.current(),
            generated_at=datetime.now(timezone.utc),
            nodes=nodes,
            edges=edges,
            selection=selection,
            simulation_status=status.value,
            tick_count=tick_count,
            availability=AvailabilityState.PRESENT if has_layout else AvailabilityState.MISSING
        )
