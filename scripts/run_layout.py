#!/usr/bin/env python3
"""
Static Layout Runner
====================

Loads a payload, applies an assignment selection, runs the force layout to
convergence and writes positions plus a view summary as JSON.

USAGE:
    python scripts/run_layout.py data/data.json --assignments 1 3 --seed 7
"""
import argparse
import json
import os
import sys
from dataclasses import asdict
from pathlib import Path

# Ensure project root in path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from interaction_graph import ALL, EngineConfig, FilterSelection, InteractionGraphEngine
from interaction_graph.contracts import InteractionGraphError
from interaction_graph.simulation import SimulationConfig


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Run the force layout to convergence and dump positions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/run_layout.py data.json                    # All assignments
  python scripts/run_layout.py data.json -a 2 4             # Assignments 2 and 4
  python scripts/run_layout.py data.json --max-ticks 100    # Cap the run
        """
    )
    parser.add_argument('payload', help='Payload JSON path')
    parser.add_argument(
        '--assignments', '-a', type=int, nargs='*', default=None,
        help='Assignment ids to include (default: all)'
    )
    parser.add_argument('--seed', '-s', type=int, default=None, help='Simulation seed')
    parser.add_argument('--max-ticks', '-t', type=int, default=None, help='Tick cap')
    parser.add_argument('--output', '-o', default=None, help='Output JSON path (default: stdout)')
    args = parser.parse_args(argv)

    config = EngineConfig(simulation=SimulationConfig(seed=args.seed))
    try:
        engine = InteractionGraphEngine.from_json_file(args.payload, config)
        selection = ALL if args.assignments is None else FilterSelection.of(args.assignments)
        view = engine.set_filter_selection(selection)
        engine.start()
        state = engine.run_to_convergence(args.max_ticks)
    except InteractionGraphError as e:
        print(f"[!] {e.code.name}: {e}", file=sys.stderr)
        return 1

    result = {
        "selection": "all" if view.selection.is_all else sorted(view.selection.assignment_ids),
        "status": engine.simulation_status.value,
        "ticks": state.tick_count,
        "alpha": state.alpha,
        "active_edges": view.active_edge_count,
        "isolated_nodes": sorted(view.isolated_nodes),
        "metrics": asdict(view.metrics) if view.metrics else None,
        "positions": {str(k): [x, y] for k, (x, y) in engine.positions().items()},
    }

    text = json.dumps(result, indent=2)
    if args.output:
        Path(args.output).write_text(text, encoding='utf-8')
        print(f"[*] Layout written to {args.output} ({state.tick_count} ticks, {result['status']})")
    else:
        print(text)
    return 0


if __name__ == "__main__":
    sys.exit(main())
