"""
Observability Layer Tests
=========================

Collectors are append-only and report by layer and event type.
"""

from interaction_graph.contracts import AuditEventType, Error, ErrorCode
from interaction_graph.observability import (
    LAYERS, MetricType, ObservabilityConfig, ObservabilityEngine,
)


class TestObservabilityEngine:

    def test_collectors_exist_for_every_layer(self):
        engine = ObservabilityEngine()
        for layer in LAYERS:
            engine.log_audit(action="ping", layer=layer)
        assert engine.generate_audit_report()["by_layer"] == {layer: 1 for layer in LAYERS}

    def test_unknown_layer_is_ignored(self):
        engine = ObservabilityEngine()
        engine.log_audit(action="ping", layer="renderer")
        assert engine.get_unified_log() == []

    def test_error_entries(self):
        engine = ObservabilityEngine()
        engine.log_error(Error.create(ErrorCode.ENGINE_IDLE, "not running"), layer="simulation")

        entries = engine.get_layer_log("simulation", event_type=AuditEventType.ERROR)
        assert len(entries) == 1
        assert entries[0].action == "engine_idle"
        assert dict(entries[0].metadata)["outcome"] == "rejected"

    def test_report_aggregates_by_event_type(self):
        engine = ObservabilityEngine()
        engine.log_audit(action="a", layer="filter", event_type=AuditEventType.FILTER)
        engine.log_audit(action="b", layer="filter", event_type=AuditEventType.ERROR)
        report = engine.generate_audit_report()
        assert report["total_entries"] == 2
        assert report["by_event_type"] == {"filter": 1, "error": 1}
        assert report["time_range"]["start"] is not None

    def test_default_metrics_registered(self):
        metrics = ObservabilityEngine().get_metrics()
        assert metrics.get_definition("simulation_alpha").metric_type == MetricType.GAUGE
        assert metrics.get_definition("filter_recompute_ms").metric_type == MetricType.TIMING
        assert metrics.get_definition("toggle_rejections_total").metric_type == MetricType.COUNTER

    def test_metric_aggregates(self):
        engine = ObservabilityEngine()
        for value in (1.0, 2.0, 6.0):
            engine.collect_metric("active_edges", value)
        aggregates = engine.get_metrics().compute_aggregates("active_edges")
        assert aggregates == {"count": 3, "sum": 9.0, "min": 1.0, "max": 6.0, "avg": 3.0}
        assert engine.get_metrics().get_latest("active_edges").value == 6.0
        assert len(engine.get_metrics().get_all_metrics()["active_edges"]) == 3

    def test_metric_labels_sorted(self):
        engine = ObservabilityEngine()
        engine.collect_metric("simulation_runs_total", 1.0, {"reason": "start"})
        point = engine.get_metrics().get_latest("simulation_runs_total")
        assert point.labels == (("reason", "start"),)

    def test_metrics_can_be_disabled(self):
        engine = ObservabilityEngine(ObservabilityConfig(enable_metrics=False))
        engine.collect_metric("active_edges", 1.0)
        assert engine.get_metrics() is None

    def test_metric_series_are_capped(self):
        engine = ObservabilityEngine(ObservabilityConfig(max_metric_points=3))
        for value in range(5):
            engine.collect_metric("simulation_alpha", float(value))
        points = engine.get_metrics().get_metric("simulation_alpha")
        assert [p.value for p in points] == [2.0, 3.0, 4.0]
