"""
Contracts Module

Explicit interfaces and data transfer objects that form the contracts
between layers. All inter-layer communication uses these types.

DESIGN PRINCIPLES:
==================
1. All contract types are immutable (frozen dataclasses)
2. All failures surface as typed errors carrying an Error record
3. No layer imports implementation details from another layer
"""

from .base import (
    ErrorCode, Error, InteractionGraphError, DataIntegrityError,
    PreconditionViolation, UnknownAssignmentWarning, Timestamp, TimeRange, Vector,
)
from .graph import Node, Edge, Assignment, GraphModel, EdgeWeight, DEFAULT_EDGE_WEIGHT
from .views import ALL, FilterSelection, DerivedView, GraphMetrics
from .events import (
    SimulationStatus, SimulationState, SimulationEventType, SimulationEvent,
    AuditEventType, AuditLogEntry, MetricPoint,
)

__all__ = [
    'ErrorCode', 'Error', 'InteractionGraphError', 'DataIntegrityError',
    'PreconditionViolation', 'UnknownAssignmentWarning', 'Timestamp', 'TimeRange', 'Vector',
    'Node', 'Edge', 'Assignment', 'GraphModel', 'EdgeWeight', 'DEFAULT_EDGE_WEIGHT',
    'ALL', 'FilterSelection', 'DerivedView', 'GraphMetrics',
    'SimulationStatus', 'SimulationState', 'SimulationEventType', 'SimulationEvent',
    'AuditEventType', 'AuditLogEntry', 'MetricPoint',
]
