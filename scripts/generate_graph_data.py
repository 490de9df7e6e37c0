#!/usr/bin/env python3
"""
Synthetic Interaction Dataset Generator
=======================================

Writes a payload of users, unique random interactions and round-robin
assignments in the format the ingestion layer reads.

USAGE:
    python scripts/generate_graph_data.py --output data/data.json --seed 7
"""
import argparse
import json
import os
import sys
from pathlib import Path

# Ensure project root in path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from interaction_graph.ingestion.synthetic import (
    DEFAULT_ASSIGNMENTS, DEFAULT_INTERACTIONS, DEFAULT_PEOPLE, generate_payload
)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Generate a synthetic class-interaction graph payload",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/generate_graph_data.py                      # 150 users, 300 links
  python scripts/generate_graph_data.py --people 40 -n 60    # Smaller graph
  python scripts/generate_graph_data.py --seed 7 -o out.json # Reproducible output
        """
    )
    parser.add_argument('--output', '-o', default='data/data.json', help='Output JSON path')
    parser.add_argument('--people', '-p', type=int, default=DEFAULT_PEOPLE, help='Number of users')
    parser.add_argument(
        '--interactions', '-n', type=int, default=DEFAULT_INTERACTIONS,
        help='Number of unique interactions'
    )
    parser.add_argument(
        '--assignments', '-a', type=int, default=DEFAULT_ASSIGNMENTS,
        help='Number of assignments'
    )
    parser.add_argument('--seed', '-s', type=int, default=None, help='Random seed')
    args = parser.parse_args(argv)

    payload = generate_payload(
        num_people=args.people,
        total_interactions=args.interactions,
        num_assignments=args.assignments,
        seed=args.seed
    )

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    with open(output, 'w', encoding='utf-8') as f:
        json.dump(payload, f, indent=2)

    in_links = {link["user1"] for link in payload["links"]} | {link["user2"] for link in payload["links"]}
    print(
        f"[*] Generated {output} with {len(payload['users'])} users, "
        f"{len(payload['links'])} links, and {len(payload['assignments'])} assignments."
    )
    print(
        f"[*] Users in interactions: {len(in_links)}, "
        f"Users not in interactions: {len(payload['users']) - len(in_links)}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
