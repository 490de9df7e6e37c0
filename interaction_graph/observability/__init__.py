"""
Observability & Audit Layer

RESPONSIBILITY: Audit logging and metrics for every other layer
ALLOWED INPUTS: AuditLogEntry copies, metric values
OUTPUTS: unified audit log, metric series, audit report

WHAT THIS LAYER MUST NOT DO:
============================
- Modify system behavior
- Filter or interpret events (only record them)
- Make decisions based on logged data
- Block or delay other layer operations

BOUNDARY ENFORCEMENT:
=====================
- Receives immutable entries (never references to mutable state)
- NEVER modifies entries or system state
- Provides read-only access to logs and metrics
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Optional, Tuple
from enum import Enum
import hashlib

# ONLY import from contracts - never from other layers' implementations
from ..contracts.base import Timestamp, TimeRange, Error
from ..contracts.events import AuditLogEntry, AuditEventType, MetricPoint


LAYERS = ('ingestion', 'grouping', 'filter', 'simulation', 'engine')


# =============================================================================
# LOG COLLECTORS (One per layer)
# =============================================================================

class LogCollector:
    """
    Append-only collector for one layer's audit entries.
    """

    def __init__(self, layer_name: str):
        self._layer_name = layer_name
        self._entries: List[AuditLogEntry] = []

    def collect(self, entry: AuditLogEntry):
        """Collect an audit entry (append-only)."""
        self._entries.append(entry)

    def get_entries(
        self,
        time_range: Optional[TimeRange] = None,
        event_type: Optional[AuditEventType] = None
    ) -> List[AuditLogEntry]:
        """Get entries, optionally filtered."""
        entries = self._entries

        if time_range:
            entries = [
                e for e in entries
                if time_range.contains(e.timestamp)
            ]

        if event_type:
            entries = [e for e in entries if e.event_type == event_type]

        return list(entries)

    @property
    def layer_name(self) -> str:
        return self._layer_name

    @property
    def entry_count(self) -> int:
        return len(self._entries)


# =============================================================================
# METRICS COLLECTOR
# =============================================================================

class MetricType(Enum):
    """Types of metrics collected."""
    COUNTER = "counter"
    GAUGE = "gauge"
    HISTOGRAM = "histogram"
    TIMING = "timing"


@dataclass
class MetricDefinition:
    """Definition of a metric to collect."""
    name: str
    metric_type: MetricType
    description: str
    labels: Tuple[str, ...] = field(default_factory=tuple)


class MetricsCollector:
    """
    Collect and aggregate metrics from all layers.

    Metrics are append-only time series data points. Each series keeps at
    most max_points, oldest dropped first.
    """

    def __init__(self, max_points: Optional[int] = None):
        self._max_points = max_points
        self._metrics: Dict[str, Deque[MetricPoint]] = {}
        self._definitions: Dict[str, MetricDefinition] = {}
        self._register_default_metrics()

    def _register_default_metrics(self):
        """Register standard metrics."""
        defaults = [
            MetricDefinition(
                name="simulation_runs_total",
                metric_type=MetricType.COUNTER,
                description="Simulation runs started (including re-seeds)",
                labels=("reason",)
            ),
            MetricDefinition(
                name="simulation_ticks_total",
                metric_type=MetricType.COUNTER,
                description="Simulation ticks executed"
            ),
            MetricDefinition(
                name="simulation_alpha",
                metric_type=MetricType.GAUGE,
                description="Current cooling parameter"
            ),
            MetricDefinition(
                name="simulation_kinetic_energy",
                metric_type=MetricType.GAUGE,
                description="Sum of squared node velocities"
            ),
            MetricDefinition(
                name="filter_recompute_ms",
                metric_type=MetricType.TIMING,
                description="Time to recompute the derived view in milliseconds"
            ),
            MetricDefinition(
                name="active_edges",
                metric_type=MetricType.GAUGE,
                description="Edges passing the current filter selection"
            ),
            MetricDefinition(
                name="isolated_nodes",
                metric_type=MetricType.GAUGE,
                description="Nodes with no active edge"
            ),
            MetricDefinition(
                name="toggle_rejections_total",
                metric_type=MetricType.COUNTER,
                description="Toggles of unknown assignment ids"
            ),
        ]

        for definition in defaults:
            self.register_metric(definition)

    def register_metric(self, definition: MetricDefinition):
        """Register a new metric definition."""
        self._definitions[definition.name] = definition
        if definition.name not in self._metrics:
            self._metrics[definition.name] = deque(maxlen=self._max_points)

    def get_definition(self, metric_name: str) -> Optional[MetricDefinition]:
        return self._definitions.get(metric_name)

    def record(
        self,
        metric_name: str,
        value: float,
        labels: Optional[Dict[str, str]] = None
    ):
        """Record a metric data point."""
        if metric_name not in self._metrics:
            self._metrics[metric_name] = deque(maxlen=self._max_points)

        label_tuple = tuple(sorted(labels.items())) if labels else ()

        point = MetricPoint(
            metric_name=metric_name,
            value=value,
            timestamp=Timestamp.now(),
            labels=label_tuple
        )
        self._metrics[metric_name].append(point)

    def get_metric(
        self,
        metric_name: str,
        time_range: Optional[TimeRange] = None
    ) -> List[MetricPoint]:
        """Get metric data points, optionally filtered by time range."""
        points = self._metrics.get(metric_name, [])

        if time_range:
            points = [
                p for p in points
                if time_range.contains(p.timestamp)
            ]

        return list(points)

    def get_latest(self, metric_name: str) -> Optional[MetricPoint]:
        """Get the latest value for a metric."""
        points = self._metrics.get(metric_name, [])
        return points[-1] if points else None

    def get_all_metrics(self) -> Dict[str, List[MetricPoint]]:
        """Get all metrics (copy)."""
        return {k: list(v) for k, v in self._metrics.items()}

    def compute_aggregates(
        self,
        metric_name: str,
        time_range: Optional[TimeRange] = None
    ) -> Dict[str, float]:
        """Compute aggregate statistics for a metric."""
        points = self.get_metric(metric_name, time_range)

        if not points:
            return {}

        values = [p.value for p in points]

        return {
            'count': len(values),
            'sum': sum(values),
            'min': min(values),
            'max': max(values),
            'avg': sum(values) / len(values),
        }


# =============================================================================
# OBSERVABILITY ENGINE (Orchestrates all observability)
# =============================================================================

@dataclass
class ObservabilityConfig:
    """Configuration for observability engine."""
    enable_metrics: bool = True
    # Record a gauge point every N ticks; 0 disables per-tick gauges
    tick_metrics_interval: int = 1
    # Points kept per metric series; None keeps everything
    max_metric_points: Optional[int] = 10_000


class ObservabilityEngine:
    """
    Central Observability Engine.

    BOUNDARY ENFORCEMENT:
    - ONLY observes, never modifies
    - Provides read-only access to collected data
    """

    def __init__(self, config: Optional[ObservabilityConfig] = None):
        self._config = config or ObservabilityConfig()

        # Log collectors per layer
        self._collectors: Dict[str, LogCollector] = {
            layer: LogCollector(layer) for layer in LAYERS
        }

        # Metrics collector
        self._metrics = MetricsCollector(self._config.max_metric_points) if self._config.enable_metrics else None

    @property
    def config(self) -> ObservabilityConfig:
        return self._config

    def collect_audit(self, entry: AuditLogEntry):
        """Collect an audit log entry from any layer."""
        collector = self._collectors.get(entry.layer)
        if collector:
            collector.collect(entry)

    def log_audit(
        self,
        action: str,
        entity_id: Optional[str] = None,
        outcome: str = "success",
        details: str = "",
        layer: str = "engine",
        event_type: AuditEventType = AuditEventType.SYSTEM
    ):
        """Helper to log audit entry directly."""
        entry_id = hashlib.sha256(
            f"{layer}_{action}|{Timestamp.now().value.timestamp()}".encode()
        ).hexdigest()[:16]

        entry = AuditLogEntry(
            entry_id=f"audit_{entry_id}",
            event_type=event_type,
            timestamp=Timestamp.now(),
            layer=layer,
            action=action,
            entity_id=entity_id,
            metadata=(
                ("outcome", outcome),
                ("details", details)
            )
        )
        self.collect_audit(entry)

    def log_error(self, error: Error, layer: str = "engine"):
        """Record a typed error as an ERROR audit entry."""
        self.log_audit(
            action=error.code.name.lower(),
            outcome="rejected",
            details=error.message,
            layer=layer,
            event_type=AuditEventType.ERROR
        )

    def collect_metric(
        self,
        metric_name: str,
        value: float,
        labels: Optional[Dict[str, str]] = None
    ):
        """Collect a metric data point."""
        if self._metrics:
            self._metrics.record(metric_name, value, labels)

    def get_unified_log(
        self,
        time_range: Optional[TimeRange] = None,
        layers: Optional[List[str]] = None
    ) -> List[AuditLogEntry]:
        """Get unified log from all or specified layers."""
        target_layers = layers or list(self._collectors.keys())

        all_entries = []
        for layer_name in target_layers:
            collector = self._collectors.get(layer_name)
            if collector:
                entries = collector.get_entries(time_range=time_range)
                all_entries.extend(entries)

        # Stable sort keeps per-layer order for equal timestamps
        all_entries.sort(key=lambda e: e.timestamp.value)

        return all_entries

    def get_layer_log(
        self,
        layer_name: str,
        time_range: Optional[TimeRange] = None,
        event_type: Optional[AuditEventType] = None
    ) -> List[AuditLogEntry]:
        """Get log for a specific layer."""
        collector = self._collectors.get(layer_name)
        if not collector:
            return []
        return collector.get_entries(time_range=time_range, event_type=event_type)

    def get_metrics(self) -> Optional[MetricsCollector]:
        """Get metrics collector (read-only access)."""
        return self._metrics

    def generate_audit_report(
        self,
        time_range: Optional[TimeRange] = None
    ) -> Dict:
        """Generate comprehensive audit report."""
        entries = self.get_unified_log(time_range=time_range)

        # Aggregate by layer and event type
        by_layer = {}
        by_type = {}

        for entry in entries:
            by_layer[entry.layer] = by_layer.get(entry.layer, 0) + 1
            by_type[entry.event_type.value] = by_type.get(entry.event_type.value, 0) + 1

        return {
            'total_entries': len(entries),
            'by_layer': by_layer,
            'by_event_type': by_type,
            'time_range': {
                'start': entries[0].timestamp.to_iso() if entries else None,
                'end': entries[-1].timestamp.to_iso() if entries else None,
            },
            'generated_at': Timestamp.now().to_iso()
        }


__all__ = [
    'LAYERS',
    'LogCollector',
    'MetricType',
    'MetricDefinition',
    'MetricsCollector',
    'ObservabilityConfig',
    'ObservabilityEngine',
]
