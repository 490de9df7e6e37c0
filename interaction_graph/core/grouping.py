"""
Disjoint-Set Grouper
====================

Connected components over a node/edge set, used once at data-preparation
time to backfill missing group labels.

GUARANTEES:
===========
- find() applies full path compression
- union() applies union by rank (ties: second root under first, first rank + 1)
- Group numbers are dense, 1-based, in order of first encounter
"""

from __future__ import annotations
from typing import Dict, Hashable, Iterable, List, Set

from ..contracts.base import DataIntegrityError, ErrorCode
from ..contracts.graph import Edge


class DisjointSet:
    """Union-find with path compression and union by rank."""

    __slots__ = ("_parent", "_rank")

    def __init__(self, ids: Iterable[Hashable] = ()):
        self._parent: Dict[Hashable, Hashable] = {}
        self._rank: Dict[Hashable, int] = {}
        self.make_set(ids)

    def make_set(self, ids: Iterable[Hashable]) -> None:
        """Create one singleton set per id (existing ids are left alone)."""
        for item in ids:
            if item not in self._parent:
                self._parent[item] = item
                self._rank[item] = 0

    def __contains__(self, item: Hashable) -> bool:
        return item in self._parent

    def __len__(self) -> int:
        return len(self._parent)

    def find(self, item: Hashable) -> Hashable:
        """Return the representative of item's set."""
        if item not in self._parent:
            raise DataIntegrityError.build(
                ErrorCode.UNKNOWN_NODE,
                f"Unknown id {item!r} in disjoint set",
                record=item,
                node_id=item
            )

        root = item
        while self._parent[root] != root:
            root = self._parent[root]

        # Second pass: re-parent every visited id directly to the root
        while self._parent[item] != root:
            self._parent[item], item = root, self._parent[item]

        return root

    def union(self, a: Hashable, b: Hashable) -> Hashable:
        """Merge the sets containing a and b; return the new representative."""
        root_a = self.find(a)
        root_b = self.find(b)
        if root_a == root_b:
            return root_a

        if self._rank[root_a] < self._rank[root_b]:
            self._parent[root_a] = root_b
            return root_b
        if self._rank[root_a] > self._rank[root_b]:
            self._parent[root_b] = root_a
            return root_a

        self._parent[root_b] = root_a
        self._rank[root_a] += 1
        return root_a

    def rank(self, item: Hashable) -> int:
        return self._rank[self.find(item)]

    def connected(self, a: Hashable, b: Hashable) -> bool:
        return self.find(a) == self.find(b)

    def groups(self) -> List[Set[Hashable]]:
        """Sets in order of first encounter of their members."""
        by_root: Dict[Hashable, Set[Hashable]] = {}
        for item in self._parent:
            by_root.setdefault(self.find(item), set()).add(item)
        return list(by_root.values())


def assign_groups(node_ids: Iterable[int], edges: Iterable[Edge]) -> Dict[int, int]:
    """
    Map every node id to a dense 1-based component number.

    Numbers follow the order in which node_ids first reach each
    representative, so the first node always lands in group 1.
    """
    ordered = list(node_ids)
    components = DisjointSet(ordered)
    for edge in edges:
        components.union(edge.endpoint_a, edge.endpoint_b)

    numbering: Dict[Hashable, int] = {}
    groups: Dict[int, int] = {}
    for node_id in ordered:
        root = components.find(node_id)
        if root not in numbering:
            numbering[root] = len(numbering) + 1
        groups[node_id] = numbering[root]
    return groups
