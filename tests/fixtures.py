"""
Shared Test Fixtures

Small, explicit graphs for deterministic testing.
All fixtures are explicit - no random generation.
"""

from typing import Any, Dict

from interaction_graph.contracts import Assignment, Edge, GraphModel, Node


# =============================================================================
# PENTAGON GRAPH (5 nodes, 6 edges, 3 assignments, one component)
# =============================================================================
#
#   1 --a1-- 2 --a1-- 3 --a2-- 4 --a2-- 5
#   |                 |                 |
#   +-------a3--------+                 |
#   +----------------a3-----------------+

PENTAGON_NAMES = {
    1: "Alex Smith",
    2: "Sam Johnson",
    3: "Jordan Lee",
    4: "Taylor Brown",
    5: "Morgan Jones",
}

PENTAGON_LINKS = (
    (1, 2, 1),
    (2, 3, 1),
    (3, 4, 2),
    (4, 5, 2),
    (5, 1, 3),
    (1, 3, 3),
)

SIM_SEED = 20240601


def pentagon_payload(with_groups: bool = False) -> Dict[str, Any]:
    """Payload dict in the external format."""
    users = []
    for node_id, name in PENTAGON_NAMES.items():
        user = {"id": node_id, "name": name}
        if with_groups:
            user["group"] = 1
        users.append(user)
    return {
        "users": users,
        "links": [
            {"user1": a, "user2": b, "assignmentId": k, "value": "Text Placeholder"}
            for a, b, k in PENTAGON_LINKS
        ],
        "assignments": [
            {"assignmentId": k, "title": f"Assignment {k}"} for k in (1, 2, 3)
        ],
    }


def pentagon_model() -> GraphModel:
    """Same graph as pentagon_payload, built directly from contracts."""
    return GraphModel(
        nodes=tuple(
            Node(node_id=node_id, display_name=name, group=1)
            for node_id, name in PENTAGON_NAMES.items()
        ),
        edges=tuple(Edge(a, b, k) for a, b, k in PENTAGON_LINKS),
        assignments=tuple(Assignment(k, f"Assignment {k}") for k in (1, 2, 3)),
    )


# =============================================================================
# TWO ISLANDS (components {1,2,3} and {4,5}, node 6 alone)
# =============================================================================

def islands_payload() -> Dict[str, Any]:
    """Ungrouped payload with two components and one lone node."""
    return {
        "users": [{"id": i, "name": f"User {i}"} for i in range(1, 7)],
        "links": [
            {"user1": 1, "user2": 2, "assignmentId": 1},
            {"user1": 2, "user2": 3, "assignmentId": 2},
            {"user1": 4, "user2": 5, "assignmentId": 1, "value": 4},
        ],
        "assignments": [
            {"assignmentId": 1, "title": "Assignment 1"},
            {"assignmentId": 2, "title": "Assignment 2"},
        ],
    }
