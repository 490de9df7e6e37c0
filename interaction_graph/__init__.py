"""
Interaction Graph Engine

This package implements a layered engine for exploring a social-interaction
graph: users connected by interactions, each tagged with the assignment it
happened under. Each layer communicates only through explicit contracts,
never through shared mutable state.

LAYER STRUCTURE:
================

1. INGESTION LAYER (ingestion/)
   - Responsibility: Parse and validate the graph payload, backfill groups
   - Allowed inputs: payload dict, JSON file
   - Outputs: GraphModel (immutable)
   - MUST NOT: Filter, position, or repair malformed records

2. CORE GRAPH LAYER (core/)
   - Responsibility: Union-find grouping, filter selection, interaction
     counts, isolated nodes, topology metrics
   - Allowed inputs: GraphModel, FilterSelection
   - Outputs: DerivedView (immutable, recreated on every change)
   - MUST NOT: Keep state, own positions

3. SIMULATION LAYER (simulation/)
   - Responsibility: Force-directed layout with cooling and drag pinning
   - Allowed inputs: Node and Edge contracts, SimulationConfig
   - Outputs: position snapshots, SimulationState, SimulationEvent
   - MUST NOT: Decide which edges are active, mutate caller data

4. OBSERVABILITY & AUDIT LAYER (observability/)
   - Responsibility: Audit logging and metrics
   - Allowed inputs: AuditLogEntry, metric values
   - Outputs: unified log, metric series, audit report
   - MUST NOT: Modify system behavior

5. API (api/)
   - Responsibility: HTTP surface over one engine instance

CONSTRAINTS ENFORCED:
=====================
- Immutability-first: contracts are frozen dataclasses
- Deterministic: identical inputs and seed give identical layouts
- Explicit errors: DataIntegrityError / PreconditionViolation, never silent
"""

from .contracts import (
    ALL, FilterSelection, DerivedView, GraphModel, Node, Edge, Assignment,
    InteractionGraphError, DataIntegrityError, PreconditionViolation,
    UnknownAssignmentWarning, SimulationStatus, SimulationEventType,
)
from .engine import InteractionGraphEngine, EngineConfig

__all__ = [
    'ALL',
    'FilterSelection',
    'DerivedView',
    'GraphModel',
    'Node',
    'Edge',
    'Assignment',
    'InteractionGraphError',
    'DataIntegrityError',
    'PreconditionViolation',
    'UnknownAssignmentWarning',
    'SimulationStatus',
    'SimulationEventType',
    'InteractionGraphEngine',
    'EngineConfig',
]
