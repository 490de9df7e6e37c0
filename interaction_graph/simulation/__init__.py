"""
Simulation Layer

RESPONSIBILITY: Force-directed layout of the active node/edge set
ALLOWED INPUTS: Node and Edge contracts, SimulationConfig
OUTPUTS: position snapshots, SimulationState, SimulationEvent

WHAT THIS LAYER MUST NOT DO:
============================
- Filter edges or decide which nodes are active (core layer's job)
- Mutate caller-owned Node or Edge instances
- Schedule itself; ticks are driven by the caller
"""

from .config import SimulationConfig, CHARGE_AUTO, CHARGE_EXACT, CHARGE_BARNES_HUT
from .engine import ForceSimulation, SimulationListener, phyllotaxis
from .forces import Bodies, ChargeForce, LinkForce, CenterForce
from .quadtree import QuadTree

__all__ = [
    'SimulationConfig',
    'CHARGE_AUTO',
    'CHARGE_EXACT',
    'CHARGE_BARNES_HUT',
    'ForceSimulation',
    'SimulationListener',
    'phyllotaxis',
    'Bodies',
    'ChargeForce',
    'LinkForce',
    'CenterForce',
    'QuadTree',
]
