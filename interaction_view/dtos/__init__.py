"""
Render DTOs

Read-only types handed to the renderer.

PRINCIPLES:
1. Immutable (Frozen)
2. No Business Logic
3. No Rendering Logic
"""

from .core import DTOVersion, AvailabilityState, CURRENT_DTO_VERSION

__all__ = ['DTOVersion', 'AvailabilityState', 'CURRENT_DTO_VERSION']
