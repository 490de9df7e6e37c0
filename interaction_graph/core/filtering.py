"""
Filter & Aggregation Layer
==========================

Pure functions of (graph, selection) -> derived view.

INVARIANTS:
===========
- apply_filter(ALL, edges) is edges (identity)
- A stored explicit selection never equals the full universe (normalised to ALL)
- sum(counts) == 2 * len(active_edges); isolated == {id : count == 0}

Everything here is stateless; concurrent calls with different selections
on the same edge tuple need no coordination.
"""

from __future__ import annotations
from typing import Dict, FrozenSet, Iterable, Sequence, Set, Tuple, Union
import warnings

from ..contracts.base import DataIntegrityError, ErrorCode, UnknownAssignmentWarning
from ..contracts.graph import Edge, GraphModel
from ..contracts.views import ALL, DerivedView, FilterSelection


ToggleKey = Union[FilterSelection, int]


# =============================================================================
# SELECTION TRANSITIONS
# =============================================================================

def normalize(selection: FilterSelection, universe: Iterable[int]) -> FilterSelection:
    """Collapse an explicit set equal to the universe into ALL."""
    if selection.is_all:
        return selection
    if selection.assignment_ids == frozenset(universe):
        return ALL
    return selection


def toggle(
    current: FilterSelection,
    key: ToggleKey,
    universe: Iterable[int]
) -> FilterSelection:
    """
    Apply one checkbox toggle to the current selection.

    key is either ALL (the "all assignments" entry) or an assignment id.
    Toggling an id while ALL is active expands ALL to the full explicit set
    and then removes that id. Unknown ids leave the selection unchanged and
    emit UnknownAssignmentWarning.
    """
    universe_set = frozenset(universe)

    if isinstance(key, FilterSelection):
        if not key.is_all:
            raise TypeError("Only the ALL selection can be toggled as a key")
        result = FilterSelection.of(()) if current.is_all else ALL
        return normalize(result, universe_set)

    if key not in universe_set:
        warnings.warn(UnknownAssignmentWarning(key), stacklevel=2)
        return current

    selected = universe_set if current.is_all else current.assignment_ids
    if key in selected:
        result = FilterSelection.of(selected - {key})
    else:
        result = FilterSelection.of(selected | {key})

    return normalize(result, universe_set)


def toggle_sequence(
    current: FilterSelection,
    keys: Iterable[ToggleKey],
    universe: Iterable[int]
) -> FilterSelection:
    """Fold toggle() over keys."""
    universe_set = frozenset(universe)
    for key in keys:
        current = toggle(current, key, universe_set)
    return current


# =============================================================================
# FILTERING AND AGGREGATION
# =============================================================================

def apply_filter(selection: FilterSelection, edges: Sequence[Edge]) -> Sequence[Edge]:
    """Active edges for a selection, order preserved."""
    if selection.is_all:
        return edges
    return tuple(e for e in edges if e.assignment_id in selection.assignment_ids)


def derive_counts(
    active_edges: Iterable[Edge],
    all_node_ids: Iterable[int]
) -> Tuple[Dict[int, int], FrozenSet[int]]:
    """
    Per-node interaction counts and the isolated-node set.

    A self-loop counts twice, once per endpoint role.
    """
    counts: Dict[int, int] = {node_id: 0 for node_id in all_node_ids}

    for edge in active_edges:
        for endpoint in edge.endpoints:
            if endpoint not in counts:
                raise DataIntegrityError.build(
                    ErrorCode.UNKNOWN_NODE,
                    f"Active edge references unknown node id {endpoint}",
                    record=edge,
                    node_id=endpoint
                )
            counts[endpoint] += 1

    isolated: Set[int] = {node_id for node_id, count in counts.items() if count == 0}
    return counts, frozenset(isolated)


def derive_view(model: GraphModel, selection: FilterSelection) -> DerivedView:
    """Recompute the full derived view from scratch."""
    selection = normalize(selection, model.assignment_ids)
    if not selection.is_all:
        unknown = selection.assignment_ids - model.assignment_ids
        for assignment_id in sorted(unknown):
            warnings.warn(UnknownAssignmentWarning(assignment_id), stacklevel=2)
        selection = normalize(FilterSelection.of(selection.assignment_ids - unknown), model.assignment_ids)

    active_edges = apply_filter(selection, model.edges)
    counts, isolated = derive_counts(active_edges, model.node_ids)

    return DerivedView(
        selection=selection,
        active_edges=active_edges,
        interaction_counts=counts,
        isolated_nodes=isolated
    )
