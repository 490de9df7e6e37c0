"""
Event Contracts

Immutable records exchanged between layers: simulation lifecycle events,
audit log entries and metric points.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from .base import Timestamp, Vector


# =============================================================================
# SIMULATION LIFECYCLE
# =============================================================================

class SimulationStatus(Enum):
    """Simulation state machine: IDLE -> RUNNING -> COOLED -> IDLE."""
    IDLE = "idle"
    RUNNING = "running"
    COOLED = "cooled"


@dataclass(frozen=True)
class SimulationState:
    """
    Process-local state of one simulation run.

    Replaced wholesale when the active node/edge set changes.
    """
    run_id: int
    alpha: float
    alpha_target: float
    tick_count: int


class SimulationEventType(Enum):
    """Lifecycle notifications published to listeners."""
    STARTED = "started"
    TICKED = "ticked"
    COOLED = "cooled"
    STOPPED = "stopped"


@dataclass(frozen=True)
class SimulationEvent:
    """
    One lifecycle notification.

    positions is a read-only snapshot (node id -> (x, y)) taken when the
    event was published; later ticks never change it.
    """
    event_type: SimulationEventType
    status: SimulationStatus
    state: Optional[SimulationState]
    positions: Mapping[int, Vector] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'positions', MappingProxyType(dict(self.positions)))


# =============================================================================
# AUDIT AND METRICS
# =============================================================================

class AuditEventType(Enum):
    """Explicit audit event types."""
    INGESTION = "ingestion"
    GROUPING = "grouping"
    FILTER = "filter"
    SIMULATION = "simulation"
    ERROR = "error"
    SYSTEM = "system"


@dataclass(frozen=True)
class AuditLogEntry:
    """Immutable audit log entry."""
    entry_id: str
    event_type: AuditEventType
    timestamp: Timestamp
    layer: str  # Which layer generated this
    action: str
    entity_id: Optional[str] = None
    entity_type: Optional[str] = None
    metadata: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class MetricPoint:
    """Immutable metric data point."""
    metric_name: str
    value: float
    timestamp: Timestamp
    labels: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)
