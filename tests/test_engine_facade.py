"""
Engine Orchestration Tests
==========================

Filter, simulation and observability flowing through one engine.
"""

import json

import pytest

from interaction_graph import (
    ALL, EngineConfig, FilterSelection, InteractionGraphEngine,
    PreconditionViolation, SimulationStatus, UnknownAssignmentWarning,
)
from interaction_graph.contracts import AuditEventType, SimulationEventType
from interaction_graph.simulation import SimulationConfig
from tests.fixtures import SIM_SEED, pentagon_payload


def make_engine(**simulation):
    simulation.setdefault("seed", SIM_SEED)
    config = EngineConfig(simulation=SimulationConfig(**simulation))
    return InteractionGraphEngine.from_payload(pentagon_payload(), config)


class TestFilterFlow:

    def test_initial_view_is_all_with_metrics(self):
        engine = make_engine()
        assert engine.selection.is_all
        assert engine.view.active_edge_count == 6
        assert engine.view.metrics.is_connected is True
        assert engine.view.metrics.edge_count == 6

    def test_toggle_walkthrough(self):
        engine = make_engine()
        assert engine.toggle_assignment(2).selection == FilterSelection.of({1, 3})
        assert engine.toggle_assignment(1).selection == FilterSelection.of({3})
        view = engine.toggle_assignment(3)
        assert view.selection.is_empty
        assert view.isolated_nodes == frozenset({1, 2, 3, 4, 5})
        assert view.metrics.isolated_count == 5

        assert engine.toggle_assignment(ALL).selection.is_all

    def test_unknown_toggle_is_noop_warned_and_audited(self):
        engine = make_engine()
        before = engine.view
        with pytest.warns(UnknownAssignmentWarning):
            after = engine.toggle_assignment(77)
        assert after is before

        errors = [e for e in engine.get_unified_log(["filter"]) if e.event_type == AuditEventType.ERROR]
        assert errors[0].entity_id == "77"
        assert engine.get_metrics().compute_aggregates("toggle_rejections_total")["count"] == 1

    def test_set_filter_selection_drops_unknown_ids(self):
        engine = make_engine()
        with pytest.warns(UnknownAssignmentWarning):
            view = engine.set_filter_selection(FilterSelection.of({1, 9}))
        assert view.selection == FilterSelection.of({1})

    def test_view_metrics_recorded(self):
        engine = make_engine()
        engine.set_filter_selection(FilterSelection.of({2}))
        metrics = engine.get_metrics()
        assert metrics.get_latest("active_edges").value == 2.0
        assert metrics.get_latest("isolated_nodes").value == 2.0
        assert metrics.get_latest("filter_recompute_ms").value >= 0.0


class TestSimulationFlow:

    def test_start_uses_all_nodes_and_active_edges(self):
        engine = make_engine()
        engine.set_filter_selection(FilterSelection.of({1}))
        engine.start()
        assert set(engine.positions()) == {1, 2, 3, 4, 5}
        assert engine.simulation.degree() == {1: 1, 2: 2, 3: 1, 4: 0, 5: 0}

    def test_run_records_metrics_and_audit(self):
        engine = make_engine()
        engine.start()
        state = engine.run_to_convergence()
        assert engine.simulation_status == SimulationStatus.COOLED

        metrics = engine.get_metrics()
        assert metrics.compute_aggregates("simulation_ticks_total")["sum"] == state.tick_count
        assert metrics.get_latest("simulation_alpha").value == state.alpha

        actions = [e.action for e in engine.get_unified_log(["simulation"])]
        assert actions[:2] == ["run_started", "run_cooled"]

    def test_filter_change_reseeds_live_run_from_current_positions(self):
        engine = make_engine()
        events = []
        engine.subscribe(events.append)
        engine.start()
        engine.run_to_convergence(max_ticks=40)
        before = engine.positions()
        first_run = engine.simulation_state.run_id

        engine.toggle_assignment(2)

        state = engine.simulation_state
        assert state.run_id == first_run + 1
        assert state.tick_count == 0
        assert state.alpha == 1.0
        assert engine.positions() == before
        assert events[-1].event_type == SimulationEventType.STARTED

        reasons = [dict(p.labels)["reason"] for p in engine.get_metrics().get_metric("simulation_runs_total")]
        assert reasons == ["start", "reseed"]

    def test_filter_change_without_edge_change_keeps_run(self):
        engine = make_engine()
        engine.start()
        engine.tick()
        run_id = engine.simulation_state.run_id
        engine.set_filter_selection(FilterSelection.of({1, 2, 3}))
        assert engine.simulation_state.run_id == run_id

    def test_filter_change_while_idle_does_not_start(self):
        engine = make_engine()
        engine.toggle_assignment(1)
        assert engine.simulation_status == SimulationStatus.IDLE

    def test_precondition_errors_are_audited_and_raised(self):
        engine = make_engine()
        with pytest.raises(PreconditionViolation):
            engine.tick()
        errors = [e for e in engine.get_unified_log(["simulation"]) if e.event_type == AuditEventType.ERROR]
        assert errors[0].action == "engine_idle"

    def test_drag_round_trip(self):
        engine = make_engine()
        engine.start()
        engine.drag_start(3)
        engine.drag_move(3, 50.0, 50.0)
        engine.tick()
        assert engine.positions()[3] == (50.0, 50.0)
        engine.drag_end(3)
        assert engine.simulation_state.alpha_target == 0.0

    def test_drag_survives_filter_reseed(self):
        engine = make_engine()
        engine.start()
        engine.drag_start(3)
        engine.drag_move(3, 50.0, 50.0)
        engine.tick()
        run_id = engine.simulation_state.run_id

        engine.toggle_assignment(2)

        assert engine.simulation_state.run_id == run_id + 1
        assert engine.simulation.active_drags == (3,)
        assert engine.simulation_state.alpha_target == pytest.approx(0.3)
        engine.tick()
        assert engine.positions()[3] == (50.0, 50.0)

        engine.drag_move(3, 60.0, 40.0)
        engine.tick()
        assert engine.positions()[3] == (60.0, 40.0)
        engine.drag_end(3)
        assert engine.simulation_state.alpha_target == 0.0

    def test_stop_keeps_last_positions(self):
        engine = make_engine()
        engine.start()
        engine.run_to_convergence(max_ticks=10)
        last = engine.positions()
        engine.stop()
        assert engine.simulation_status == SimulationStatus.IDLE
        assert engine.positions() == last

    def test_from_json_file(self, tmp_path):
        path = tmp_path / "graph.json"
        path.write_text(json.dumps(pentagon_payload()), encoding="utf-8")
        engine = InteractionGraphEngine.from_json_file(path)
        assert len(engine.model.nodes) == 5
        ingestion = engine.get_unified_log(["ingestion"])
        assert ingestion[0].action == "payload_loaded"

    def test_audit_report_covers_layers(self):
        engine = make_engine()
        engine.toggle_assignment(1)
        engine.start()
        report = engine.get_audit_report()
        assert {"ingestion", "grouping", "filter", "simulation"} <= set(report["by_layer"])
