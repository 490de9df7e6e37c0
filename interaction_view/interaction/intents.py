"""
Interaction Contracts

Responsibility:
Define valid user actions and their intent.
No execution logic - just pure intent modeling.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping
import uuid


class ActionType(Enum):
    """Types of user interaction."""
    # Filter
    TOGGLE_ASSIGNMENT = "toggle_assignment"
    SET_SELECTION = "set_selection"

    # Drag
    DRAG_START = "drag_start"
    DRAG_MOVE = "drag_move"
    DRAG_END = "drag_end"

    # Layout control
    START_LAYOUT = "start_layout"
    STEP_FRAME = "step_frame"
    RUN_TO_CONVERGENCE = "run_to_convergence"
    STOP_LAYOUT = "stop_layout"


@dataclass(frozen=True)
class InteractionRequest:
    """A specific user intent."""
    request_id: str
    action: ActionType
    payload: Mapping[str, Any]
    timestamp: datetime
    source_component: str = "graph"

    def __post_init__(self):
        object.__setattr__(self, 'payload', MappingProxyType(dict(self.payload)))

    @staticmethod
    def create(action: ActionType, source_component: str = "graph", **payload: Any) -> InteractionRequest:
        return InteractionRequest(
            request_id=str(uuid.uuid4()),
            action=action,
            payload=payload,
            timestamp=datetime.now(timezone.utc),
            source_component=source_component
        )
