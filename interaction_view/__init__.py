"""
Interaction View Layer

Responsibility:
Turn engine output into renderable graph views and user gestures into
engine calls. No layout or filtering logic lives here.

PRINCIPLES:
1. Immutable DTOs (frozen)
2. Explicit availability; the last-known-good view survives core errors
3. One mapper, one adapter
"""

from .dtos import AvailabilityState, DTOVersion
from .visualization import GraphNode, GraphEdge, NetworkGraphView
from .interaction import ActionType, InteractionRequest
from .mapper import ViewMapper, CATEGORY10
from .adapter import RenderAdapter

__all__ = [
    'AvailabilityState', 'DTOVersion',
    'GraphNode', 'GraphEdge', 'NetworkGraphView',
    'ActionType', 'InteractionRequest',
    'ViewMapper', 'CATEGORY10',
    'RenderAdapter',
]
