"""
Topology Engine
===============

Structural analysis of the active interaction subgraph.

This engine computes TOPOLOGY (geometry), not IMPORTANCE (judgment).

ALLOWED:
- Connected components (clustering)
- Structural metrics (density, connectedness, isolation)

FORBIDDEN:
- Centrality measures - interaction counts are the only per-node figure,
  and they come from the filter layer
"""

from __future__ import annotations
from typing import Iterable, List, Set
import networkx as nx

from ..contracts.graph import Edge
from ..contracts.views import GraphMetrics


class TopologyEngine:
    """
    Wraps NetworkX for component and metric queries.

    Used to attach GraphMetrics to each derived view and as an
    independent reference for the union-find grouper.
    """

    def __init__(self):
        # Multigraph: two assignments between the same pair are two edges
        self._graph = nx.MultiGraph()

    def build_graph(self, node_ids: Iterable[int], edges: Iterable[Edge]) -> None:
        """
        Build graph from node ids and edges.

        Replaces internal graph state.
        """
        self._graph = nx.MultiGraph()
        self._graph.add_nodes_from(node_ids)
        for edge in edges:
            self._graph.add_edge(
                edge.endpoint_a,
                edge.endpoint_b,
                assignment_id=edge.assignment_id
            )

    def get_connected_components(self) -> List[Set[int]]:
        """
        Identify disjoint subgraphs (structural clusters).

        Returned in arbitrary order.
        """
        if not self._graph:
            return []
        return [set(c) for c in nx.connected_components(self._graph)]

    def compute_metrics(self) -> GraphMetrics:
        """Compute purely structural metrics."""
        if not self._graph:
            return GraphMetrics(0, 0, 0.0, False, 0, 0)

        # Density over distinct pairs, ignoring parallel edges and loops
        simple = nx.Graph(self._graph)
        simple.remove_edges_from(nx.selfloop_edges(simple))

        return GraphMetrics(
            node_count=self._graph.number_of_nodes(),
            edge_count=self._graph.number_of_edges(),
            density=nx.density(simple),
            is_connected=nx.is_connected(self._graph),
            connected_components_count=nx.number_connected_components(self._graph),
            isolated_count=sum(1 for _ in nx.isolates(self._graph))
        )

    def clear(self):
        self._graph.clear()
