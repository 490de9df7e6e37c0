"""
Force Model Tests
=================

Charge, link and centering contributions on hand-placed bodies.
"""

import numpy as np
import pytest

from interaction_graph.contracts import Edge
from interaction_graph.simulation import (
    Bodies, CenterForce, ChargeForce, LinkForce, QuadTree, SimulationConfig,
)


def make_bodies(points):
    positions = np.array(points, dtype=float)
    n = len(points)
    return Bodies(
        node_ids=tuple(range(1, n + 1)),
        positions=positions,
        velocities=np.zeros((n, 2)),
        pinned=np.zeros(n, dtype=bool),
        pins=np.zeros((n, 2)),
    )


def rng():
    return np.random.default_rng(0)


class TestChargeForce:

    def test_two_bodies_repel(self):
        bodies = make_bodies([(0.0, 0.0), (10.0, 0.0)])
        ChargeForce(SimulationConfig(charge_approximation="exact")).apply(bodies, 1.0, rng())

        # strength -30, distance^2 = 100 -> |dv| = 30 * 10 / 100
        assert bodies.velocities[0, 0] == pytest.approx(-3.0)
        assert bodies.velocities[1, 0] == pytest.approx(3.0)
        assert bodies.velocities[:, 1] == pytest.approx([0.0, 0.0])

    def test_scales_with_alpha(self):
        bodies = make_bodies([(0.0, 0.0), (10.0, 0.0)])
        ChargeForce(SimulationConfig(charge_approximation="exact")).apply(bodies, 0.5, rng())
        assert bodies.velocities[1, 0] == pytest.approx(1.5)

    def test_short_distance_is_softened(self):
        bodies = make_bodies([(0.0, 0.0), (0.5, 0.0)])
        ChargeForce(SimulationConfig(charge_approximation="exact")).apply(bodies, 1.0, rng())

        # l^2 = 0.25 < distance_min^2 = 1 -> l^2 := sqrt(1 * 0.25) = 0.5
        assert bodies.velocities[1, 0] == pytest.approx(30 * 0.5 / 0.5)
        assert np.all(np.isfinite(bodies.velocities))

    def test_coincident_bodies_get_jitter_not_nan(self):
        bodies = make_bodies([(1.0, 1.0), (1.0, 1.0)])
        ChargeForce(SimulationConfig(charge_approximation="exact")).apply(bodies, 1.0, rng())
        assert np.all(np.isfinite(bodies.velocities))
        assert np.any(bodies.velocities != 0.0)

    def test_barnes_hut_with_zero_theta_is_exact(self):
        points = np.random.default_rng(3).uniform(-200, 200, size=(60, 2))
        exact = make_bodies(points)
        approx = make_bodies(points)

        ChargeForce(SimulationConfig(charge_approximation="exact")).apply(exact, 1.0, rng())
        ChargeForce(SimulationConfig(charge_approximation="barnes_hut", theta=0.0)).apply(approx, 1.0, rng())

        np.testing.assert_allclose(approx.velocities, exact.velocities, rtol=1e-9, atol=1e-12)

    def test_barnes_hut_approximates_exact(self):
        points = np.random.default_rng(5).uniform(-300, 300, size=(400, 2))
        exact = make_bodies(points)
        approx = make_bodies(points)

        ChargeForce(SimulationConfig(charge_approximation="exact")).apply(exact, 1.0, rng())
        ChargeForce(SimulationConfig(charge_approximation="barnes_hut")).apply(approx, 1.0, rng())

        error = np.linalg.norm(approx.velocities - exact.velocities)
        assert error / np.linalg.norm(exact.velocities) < 0.2

    def test_auto_mode_switches_on_threshold(self):
        config = SimulationConfig(barnes_hut_threshold=10)
        assert config.use_barnes_hut(11)
        assert not config.use_barnes_hut(10)


class TestQuadTree:

    def test_root_aggregates_all_bodies(self):
        points = np.array([(0.0, 0.0), (4.0, 0.0), (0.0, 4.0), (4.0, 4.0)])
        tree = QuadTree(points, -30.0)
        assert tree.root.value == pytest.approx(-120.0)
        assert (tree.root.cx, tree.root.cy) == pytest.approx((2.0, 2.0))
        assert not tree.root.is_leaf

    def test_coincident_points_share_a_leaf(self):
        points = np.array([(1.0, 1.0), (1.0, 1.0), (1.0, 1.0)])
        tree = QuadTree(points, -30.0)
        assert tree.root.is_leaf
        assert sorted(tree.root.indices) == [0, 1, 2]

    def test_empty(self):
        assert QuadTree(np.zeros((0, 2)), -30.0).root is None


class TestLinkForce:

    def test_stretched_link_pulls_together(self):
        config = SimulationConfig()
        bodies = make_bodies([(0.0, 0.0), (60.0, 0.0)])
        LinkForce(config, bodies.node_ids, [Edge(1, 2, 1)]).apply(bodies, 1.0, rng())

        # (60 - 30) / 60 * alpha * strength(1) = 0.5 -> x = 30, split by bias 0.5
        assert bodies.velocities[0, 0] == pytest.approx(15.0)
        assert bodies.velocities[1, 0] == pytest.approx(-15.0)

    def test_compressed_link_pushes_apart(self):
        bodies = make_bodies([(0.0, 0.0), (10.0, 0.0)])
        LinkForce(SimulationConfig(), bodies.node_ids, [Edge(1, 2, 1)]).apply(bodies, 1.0, rng())
        assert bodies.velocities[0, 0] < 0
        assert bodies.velocities[1, 0] > 0

    def test_bias_moves_low_degree_end_more(self):
        # Node 1 is a hub (degree 3); its partners have degree 1
        bodies = make_bodies([(0.0, 0.0), (60.0, 0.0), (0.0, 500.0), (-500.0, 0.0)])
        edges = [Edge(1, 2, 1), Edge(1, 3, 1), Edge(1, 4, 1)]
        force = LinkForce(SimulationConfig(), bodies.node_ids, edges)
        assert force.degree == (3, 1, 1, 1)

        force.apply(bodies, 1.0, rng())
        # strength = 1/min(3,1) = 1, bias = 3/4: endpoint 2 takes 3/4 of x = 30
        assert bodies.velocities[1, 0] == pytest.approx(-22.5)

    def test_self_loop_counts_toward_degree_only(self):
        bodies = make_bodies([(0.0, 0.0), (60.0, 0.0)])
        force = LinkForce(SimulationConfig(), bodies.node_ids, [Edge(1, 1, 1), Edge(1, 2, 1)])
        assert force.degree == (3, 1)
        assert force.link_count == 1

    def test_zero_length_link_is_jittered(self):
        bodies = make_bodies([(5.0, 5.0), (5.0, 5.0)])
        LinkForce(SimulationConfig(), bodies.node_ids, [Edge(1, 2, 1)]).apply(bodies, 1.0, rng())
        assert np.all(np.isfinite(bodies.velocities))

    def test_fixed_strength_overrides_degree(self):
        bodies = make_bodies([(0.0, 0.0), (60.0, 0.0)])
        config = SimulationConfig(link_strength=0.5)
        LinkForce(config, bodies.node_ids, [Edge(1, 2, 1)]).apply(bodies, 1.0, rng())
        assert bodies.velocities[1, 0] == pytest.approx(-7.5)


class TestCenterForce:

    def test_pulls_toward_center(self):
        bodies = make_bodies([(10.0, -20.0)])
        CenterForce(SimulationConfig(center_x=0.0, center_y=0.0)).apply(bodies, 1.0, rng())
        assert bodies.velocities[0] == pytest.approx([-1.0, 2.0])

    def test_zero_strength_is_noop(self):
        bodies = make_bodies([(10.0, -20.0)])
        CenterForce(SimulationConfig(center_strength=0.0)).apply(bodies, 1.0, rng())
        assert bodies.velocities[0] == pytest.approx([0.0, 0.0])
