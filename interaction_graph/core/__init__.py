"""
Core Graph Layer

RESPONSIBILITY: Grouping, filtering and aggregation over the graph model
ALLOWED INPUTS: GraphModel, FilterSelection
OUTPUTS: group labels, DerivedView, GraphMetrics (all immutable)

WHAT THIS LAYER MUST NOT DO:
============================
- Own node positions (simulation layer's job)
- Keep state between calls
- Drop or invent data to recover from integrity errors

Modules:
- grouping: union-find connected components, group backfill
- filtering: selection transitions, edge filter, interaction counts
- topology: networkx structural metrics
"""

from .grouping import DisjointSet, assign_groups
from .filtering import (
    ToggleKey, normalize, toggle, toggle_sequence,
    apply_filter, derive_counts, derive_view,
)
from .topology import TopologyEngine

__all__ = [
    'DisjointSet',
    'assign_groups',
    'ToggleKey',
    'normalize',
    'toggle',
    'toggle_sequence',
    'apply_filter',
    'derive_counts',
    'derive_view',
    'TopologyEngine',
]
