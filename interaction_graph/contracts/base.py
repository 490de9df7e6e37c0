"""
Base Contracts and Shared Types

These are the foundational types used across all layers.
All types here are IMMUTABLE and represent pure data.

BOUNDARY ENFORCEMENT:
=====================
- This module is READ-ONLY from all layers
- Layers may import types but MUST NOT modify this module
- Errors are data first (Error), raised as typed exceptions second
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Tuple
from enum import Enum, auto


# =============================================================================
# ERROR STATES (Explicit, never silent)
# =============================================================================

class ErrorCode(Enum):
    """
    Explicit error codes for deterministic error handling.
    No silent fallbacks - every error state is enumerated.
    """
    # Data integrity errors
    UNKNOWN_NODE = auto()
    DUPLICATE_NODE = auto()
    DUPLICATE_ASSIGNMENT = auto()
    MALFORMED_RECORD = auto()
    INVALID_DIMENSION = auto()

    # Filter errors
    UNKNOWN_ASSIGNMENT = auto()

    # Engine misuse
    ENGINE_IDLE = auto()
    EMPTY_NODE_SET = auto()
    DRAG_NOT_STARTED = auto()
    UNKNOWN_DRAG_TARGET = auto()
    DRAG_IN_PROGRESS = auto()


@dataclass(frozen=True)
class Error:
    """
    Immutable error representation with full context.
    Errors are data - they can be stored, audited and re-raised.
    """
    code: ErrorCode
    message: str
    timestamp: datetime
    context: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    @staticmethod
    def create(code: ErrorCode, message: str, **context: Any) -> Error:
        return Error(
            code=code,
            message=message,
            timestamp=Timestamp.now().value,
            context=tuple((k, str(v)) for k, v in sorted(context.items()))
        )


# =============================================================================
# TYPED EXCEPTIONS
# =============================================================================

class InteractionGraphError(Exception):
    """Base class for every error surfaced by the core."""

    def __init__(self, error: Error):
        super().__init__(error.message)
        self.error = error

    @property
    def code(self) -> ErrorCode:
        return self.error.code


class DataIntegrityError(InteractionGraphError):
    """
    Malformed input: unknown node reference, duplicate id, bad dimension.

    The offending record is kept on the exception; the core never drops
    or invents data to recover.
    """

    def __init__(self, error: Error, record: Any = None):
        super().__init__(error)
        self.record = record

    @classmethod
    def build(cls, code: ErrorCode, message: str, record: Any = None, **context: Any) -> DataIntegrityError:
        return cls(Error.create(code, message, **context), record=record)


class PreconditionViolation(InteractionGraphError):
    """Engine misuse: drag without drag_start, ticking an idle engine."""

    @classmethod
    def build(cls, code: ErrorCode, message: str, **context: Any) -> PreconditionViolation:
        return cls(Error.create(code, message, **context))


class UnknownAssignmentWarning(UserWarning):
    """Toggle of an assignment id outside the known universe (no-op)."""

    def __init__(self, assignment_id: Any):
        super().__init__(f"Unknown assignment id {assignment_id!r}; selection unchanged")
        self.assignment_id = assignment_id


# =============================================================================
# TEMPORAL TYPES
# =============================================================================

@dataclass(frozen=True)
class Timestamp:
    """
    Immutable timestamp with explicit semantics.
    All timestamps are UTC, never local time.
    """
    value: datetime

    def __post_init__(self):
        if self.value.tzinfo is None:
            object.__setattr__(self, 'value', self.value.replace(tzinfo=timezone.utc))

    @staticmethod
    def now() -> Timestamp:
        return Timestamp(value=datetime.now(timezone.utc))

    def to_iso(self) -> str:
        return self.value.isoformat()


@dataclass(frozen=True)
class TimeRange:
    """Immutable time range for audit queries."""
    start: Timestamp
    end: Timestamp

    def __post_init__(self):
        if self.start.value > self.end.value:
            raise ValueError("TimeRange start must be before or equal to end")

    def contains(self, timestamp: Timestamp) -> bool:
        return self.start.value <= timestamp.value <= self.end.value


Vector = Tuple[float, float]
