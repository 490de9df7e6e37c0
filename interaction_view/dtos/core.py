"""
Core DTO Types

Foundational enums and version types for render DTOs.

VERSIONING REQUIREMENT:
=======================
Every rendered view carries a version field.
Renderers MUST fail fast on unknown versions.
"""

from __future__ import annotations
from enum import Enum
from typing import Final


# =============================================================================
# VERSION CONSTANTS
# =============================================================================

class DTOVersion(Enum):
    """
    DTO schema versions.

    Renderers MUST reject unknown versions.
    """
    V1 = "v1"

    @classmethod
    def current(cls) -> 'DTOVersion':
        return cls.V1


# Current version for type checking
CURRENT_DTO_VERSION: Final[DTOVersion] = DTOVersion.V1


# =============================================================================
# AVAILABILITY STATES (Explicit Absence)
# =============================================================================

class AvailabilityState(Enum):
    """
    Availability of a rendered view or value.

    EXPLICIT ABSENCE:
    =================
    Missing data MUST be flagged, never guessed.
    """
    PRESENT = "present"   # Current and consistent with the engine
    STALE = "stale"       # Last-known-good; the latest update failed
    MISSING = "missing"   # Expected but not produced yet (e.g. no layout run)
    UNKNOWN = "unknown"   # System cannot determine state
