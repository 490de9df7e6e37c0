"""
Derived View Contracts

Selection state and the views derived from it. Every filter change produces
a NEW DerivedView; nothing here is mutated in place.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import FrozenSet, Iterable, Mapping, Optional, Tuple

from .graph import Edge


@dataclass(frozen=True)
class FilterSelection:
    """
    Either ALL or an explicit set of assignment ids, never both.

    assignment_ids is None for ALL. An explicit set may be empty (every
    edge inactive). Normalisation against the universe happens in the
    filter layer, which never stores an explicit set equal to the universe.
    """
    assignment_ids: Optional[FrozenSet[int]] = None

    def __post_init__(self):
        if self.assignment_ids is not None:
            object.__setattr__(self, 'assignment_ids', frozenset(self.assignment_ids))

    @staticmethod
    def all() -> FilterSelection:
        return FilterSelection(assignment_ids=None)

    @staticmethod
    def of(assignment_ids: Iterable[int]) -> FilterSelection:
        return FilterSelection(assignment_ids=frozenset(assignment_ids))

    @property
    def is_all(self) -> bool:
        return self.assignment_ids is None

    @property
    def is_empty(self) -> bool:
        return self.assignment_ids is not None and not self.assignment_ids

    def includes(self, assignment_id: int) -> bool:
        return self.assignment_ids is None or assignment_id in self.assignment_ids

    def __repr__(self) -> str:
        if self.is_all:
            return "FilterSelection(ALL)"
        return f"FilterSelection({sorted(self.assignment_ids)})"


ALL = FilterSelection.all()


@dataclass(frozen=True)
class GraphMetrics:
    """Immutable structural metrics for the active subgraph."""
    node_count: int
    edge_count: int
    density: float
    is_connected: bool
    connected_components_count: int
    isolated_count: int


@dataclass(frozen=True)
class DerivedView:
    """
    View of the graph under one selection.

    INVARIANTS:
    ===========
    - sum(interaction_counts.values()) == 2 * len(active_edges)
    - isolated_nodes == {id : interaction_counts[id] == 0}
    """
    selection: FilterSelection
    active_edges: Tuple[Edge, ...]
    interaction_counts: Mapping[int, int]
    isolated_nodes: FrozenSet[int]
    metrics: Optional[GraphMetrics] = field(default=None, compare=False)

    def __post_init__(self):
        object.__setattr__(self, 'active_edges', tuple(self.active_edges))
        object.__setattr__(self, 'interaction_counts', MappingProxyType(dict(self.interaction_counts)))
        object.__setattr__(self, 'isolated_nodes', frozenset(self.isolated_nodes))

    @property
    def active_edge_count(self) -> int:
        return len(self.active_edges)

    def with_metrics(self, metrics: GraphMetrics) -> DerivedView:
        return DerivedView(
            selection=self.selection,
            active_edges=self.active_edges,
            interaction_counts=self.interaction_counts,
            isolated_nodes=self.isolated_nodes,
            metrics=metrics
        )
