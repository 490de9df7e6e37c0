"""
Graph Model Contracts

Immutable description of the interaction graph: users (nodes), interactions
(edges) and assignments. No behaviour beyond integrity validation.

OWNERSHIP:
==========
Upstream layers treat every Node as immutable data. Position, velocity and
pin fields are only meaningful as a warm-start hint going into the
simulation or as a snapshot coming out of it; the simulation works on
private copies and never mutates these objects.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Dict, FrozenSet, Optional, Tuple, Union

from .base import DataIntegrityError, ErrorCode, Vector


EdgeWeight = Union[float, int, str]

DEFAULT_EDGE_WEIGHT: EdgeWeight = 1


@dataclass(frozen=True)
class Node:
    """
    A user in the interaction graph.

    group is a 1-based cluster label; 0 means "not supplied" and is
    backfilled by the grouper during ingestion.
    """
    node_id: int
    display_name: str
    group: int = 0
    position: Optional[Vector] = None
    velocity: Vector = (0.0, 0.0)
    pinned: Optional[Vector] = None

    @property
    def has_group(self) -> bool:
        return self.group > 0

    def with_group(self, group: int) -> Node:
        return replace(self, group=group)

    def with_position(self, position: Optional[Vector], velocity: Vector = (0.0, 0.0)) -> Node:
        return replace(self, position=position, velocity=velocity)


@dataclass(frozen=True)
class Edge:
    """
    Undirected interaction between two users under one assignment.

    (A, B) and (B, A) are equivalent but never deduplicated here; the data
    source owns uniqueness.
    """
    endpoint_a: int
    endpoint_b: int
    assignment_id: int
    weight: EdgeWeight = DEFAULT_EDGE_WEIGHT

    @property
    def endpoints(self) -> Tuple[int, int]:
        return (self.endpoint_a, self.endpoint_b)

    @property
    def is_self_loop(self) -> bool:
        return self.endpoint_a == self.endpoint_b

    def touches(self, node_id: int) -> bool:
        return node_id == self.endpoint_a or node_id == self.endpoint_b


@dataclass(frozen=True)
class Assignment:
    """Purely descriptive filter dimension."""
    assignment_id: int
    title: str


@dataclass(frozen=True)
class GraphModel:
    """
    Complete immutable graph for one session.

    Construction validates integrity: unique node ids, unique assignment
    ids, and every edge endpoint referencing a known node.
    """
    nodes: Tuple[Node, ...]
    edges: Tuple[Edge, ...] = field(default_factory=tuple)
    assignments: Tuple[Assignment, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, 'nodes', tuple(self.nodes))
        object.__setattr__(self, 'edges', tuple(self.edges))
        object.__setattr__(self, 'assignments', tuple(self.assignments))
        self.validate()

    def validate(self) -> None:
        seen_nodes = set()
        for node in self.nodes:
            if node.node_id in seen_nodes:
                raise DataIntegrityError.build(
                    ErrorCode.DUPLICATE_NODE,
                    f"Duplicate node id {node.node_id}",
                    record=node,
                    node_id=node.node_id
                )
            seen_nodes.add(node.node_id)

        seen_assignments = set()
        for assignment in self.assignments:
            if assignment.assignment_id in seen_assignments:
                raise DataIntegrityError.build(
                    ErrorCode.DUPLICATE_ASSIGNMENT,
                    f"Duplicate assignment id {assignment.assignment_id}",
                    record=assignment,
                    assignment_id=assignment.assignment_id
                )
            seen_assignments.add(assignment.assignment_id)

        for index, edge in enumerate(self.edges):
            for endpoint in edge.endpoints:
                if endpoint not in seen_nodes:
                    raise DataIntegrityError.build(
                        ErrorCode.UNKNOWN_NODE,
                        f"Edge #{index} references unknown node id {endpoint}",
                        record=edge,
                        edge_index=index,
                        node_id=endpoint
                    )

    @property
    def node_ids(self) -> Tuple[int, ...]:
        return tuple(node.node_id for node in self.nodes)

    @property
    def assignment_ids(self) -> FrozenSet[int]:
        return frozenset(a.assignment_id for a in self.assignments)

    def node_index(self) -> Dict[int, Node]:
        return {node.node_id: node for node in self.nodes}

    def assignment_titles(self) -> Dict[int, str]:
        return {a.assignment_id: a.title for a in self.assignments}

    def with_nodes(self, nodes: Tuple[Node, ...]) -> GraphModel:
        return GraphModel(nodes=nodes, edges=self.edges, assignments=self.assignments)
