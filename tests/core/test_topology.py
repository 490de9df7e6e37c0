"""
Topology Engine Tests
=====================

Tests for the graph topology engine.

VERIFICATION:
=============
These tests verify that the topology engine:
1. Correctly builds multigraphs from node ids and active edges
2. Identifies connected components (structural clustering)
3. Computes only structural metrics (density, connectedness, isolation)
4. Does NOT expose any ranking or centrality metrics
"""

import pytest

from interaction_graph.contracts import Edge, FilterSelection
from interaction_graph.core import TopologyEngine, apply_filter, assign_groups, derive_counts
from tests.fixtures import pentagon_model


class TestTopologyEngine:

    def test_build_graph_correctness(self):
        """Graph should accurately reflect nodes and edges."""
        engine = TopologyEngine()
        engine.build_graph([1, 2, 3], [Edge(1, 2, 1), Edge(2, 3, 1)])

        metrics = engine.compute_metrics()
        assert metrics.node_count == 3
        assert metrics.edge_count == 2
        assert metrics.is_connected is True
        assert metrics.isolated_count == 0

    def test_parallel_edges_are_kept(self):
        """Two assignments between the same pair are two edges."""
        engine = TopologyEngine()
        engine.build_graph([1, 2], [Edge(1, 2, 1), Edge(2, 1, 2)])

        metrics = engine.compute_metrics()
        assert metrics.edge_count == 2
        assert metrics.density == 1.0

    def test_connected_components(self):
        """Disjoint subgraphs should be identified as separate components."""
        engine = TopologyEngine()
        engine.build_graph([1, 2, 3, 4], [Edge(1, 2, 1), Edge(3, 4, 1)])

        components = engine.get_connected_components()
        assert len(components) == 2

        flat_components = sorted(sorted(c) for c in components)
        assert flat_components == [[1, 2], [3, 4]]

    def test_metrics_calculation(self):
        """Triangle is fully dense and connected."""
        engine = TopologyEngine()
        engine.build_graph([1, 2, 3], [Edge(1, 2, 1), Edge(2, 3, 1), Edge(3, 1, 1)])

        metrics = engine.compute_metrics()
        assert metrics.node_count == 3
        assert metrics.edge_count == 3
        assert metrics.density == 1.0
        assert metrics.connected_components_count == 1

    def test_isolated_count_matches_filter_layer(self):
        model = pentagon_model()
        active = apply_filter(FilterSelection.of({2}), model.edges)
        _, isolated = derive_counts(active, model.node_ids)

        engine = TopologyEngine()
        engine.build_graph(model.node_ids, active)
        metrics = engine.compute_metrics()

        assert metrics.isolated_count == len(isolated) == 2
        assert metrics.is_connected is False
        assert metrics.connected_components_count == 3

    def test_self_loop_node_is_not_isolated(self):
        engine = TopologyEngine()
        engine.build_graph([1, 2], [Edge(1, 1, 1)])
        metrics = engine.compute_metrics()
        assert metrics.isolated_count == 1
        assert metrics.density == 0.0

    def test_components_agree_with_grouper(self):
        model = pentagon_model()
        edges = apply_filter(FilterSelection.of({1}), model.edges)

        engine = TopologyEngine()
        engine.build_graph(model.node_ids, edges)
        groups = assign_groups(model.node_ids, edges)

        for component in engine.get_connected_components():
            assert len({groups[n] for n in component}) == 1
        assert len(engine.get_connected_components()) == len(set(groups.values()))

    def test_empty_graph(self):
        engine = TopologyEngine()
        engine.build_graph([], [])
        metrics = engine.compute_metrics()
        assert metrics.node_count == 0
        assert engine.get_connected_components() == []

    def test_no_ranking(self):
        """
        The API must not expose centrality or ranking.
        Interaction counts come from the filter layer only.
        """
        engine = TopologyEngine()
        engine.build_graph([1, 2, 3, 4], [Edge(1, 2, 1), Edge(1, 3, 1), Edge(1, 4, 1)])

        metrics = engine.compute_metrics()
        assert not hasattr(metrics, "centrality")
        assert not hasattr(metrics, "pagerank")

        components = engine.get_connected_components()
        assert isinstance(components[0], set)

    def test_clear(self):
        engine = TopologyEngine()
        engine.build_graph([1, 2], [Edge(1, 2, 1)])
        engine.clear()
        assert engine.compute_metrics().node_count == 0
