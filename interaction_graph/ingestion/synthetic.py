"""
Synthetic Interaction Dataset

Random class-interaction payloads for demos and load tests. Output uses the
same payload format the ingestion layer reads.
"""

from __future__ import annotations
from itertools import combinations
from typing import Any, Dict, List, Optional

import numpy as np

from ..contracts.base import DataIntegrityError, ErrorCode


FIRST_NAMES = ('Alex', 'Sam', 'Jordan', 'Taylor', 'Morgan', 'Casey', 'Riley', 'Jamie', 'Avery', 'Drew')
LAST_NAMES = ('Smith', 'Johnson', 'Lee', 'Brown', 'Jones', 'Garcia', 'Miller', 'Davis', 'Martinez', 'Clark')
NAME_TABLE = tuple(f"{first} {last}" for first in FIRST_NAMES for last in LAST_NAMES)

DEFAULT_PEOPLE = 150
DEFAULT_INTERACTIONS = 300
DEFAULT_ASSIGNMENTS = 5
PLACEHOLDER_VALUE = "Text Placeholder"


def generate_payload(
    num_people: int = DEFAULT_PEOPLE,
    total_interactions: int = DEFAULT_INTERACTIONS,
    num_assignments: int = DEFAULT_ASSIGNMENTS,
    seed: Optional[int] = None
) -> Dict[str, List[Dict[str, Any]]]:
    """
    Build a payload of users, unique undirected interactions and assignments.

    Names are drawn with replacement from a fixed 10x10 table, so they may
    repeat. Interactions are distinct unordered pairs; assignment ids cycle
    round-robin over the selected pairs.
    """
    max_pairs = num_people * (num_people - 1) // 2
    if num_people < 0 or num_assignments < 1 or not 0 <= total_interactions <= max_pairs:
        raise DataIntegrityError.build(
            ErrorCode.INVALID_DIMENSION,
            f"Cannot draw {total_interactions} unique interactions among {num_people} people "
            f"over {num_assignments} assignments",
            record=(num_people, total_interactions, num_assignments)
        )

    rng = np.random.default_rng(seed)

    name_picks = rng.integers(0, len(NAME_TABLE), size=num_people)
    users = [
        {"id": i + 1, "name": NAME_TABLE[int(pick)]}
        for i, pick in enumerate(name_picks)
    ]

    pairs = list(combinations(range(1, num_people + 1), 2))
    order = rng.permutation(len(pairs))[:total_interactions]
    links = [
        {
            "user1": pairs[int(k)][0],
            "user2": pairs[int(k)][1],
            "assignmentId": (index % num_assignments) + 1,
            "value": PLACEHOLDER_VALUE,
        }
        for index, k in enumerate(order)
    ]

    assignments = [
        {"assignmentId": i + 1, "title": f"Assignment {i + 1}"}
        for i in range(num_assignments)
    ]

    return {"users": users, "links": links, "assignments": assignments}
