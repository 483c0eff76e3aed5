"""Exception hierarchy for the governance engine.

Structural problems found in a snapshot are returned as report data, not
raised. Exceptions are reserved for unreadable input and caller misuse.
"""

from __future__ import annotations


class CMAError(Exception):
    """Base class for all cma_core errors."""


class SnapshotError(CMAError):
    """A snapshot document could not be read or does not match the entity model."""


class UnknownEntityError(CMAError, KeyError):
    """An entity id was requested that is not part of the snapshot."""

    def __init__(self, entity_id: str) -> None:
        super().__init__(entity_id)
        self.entity_id = entity_id

    def __str__(self) -> str:
        return f"Unknown entity: {self.entity_id}"


class ExpressionError(CMAError):
    """Base class for constraint expression failures."""


class ExpressionSyntaxError(ExpressionError):
    """The expression text does not match the constraint grammar."""

    def __init__(self, message: str, expression: str, position: int) -> None:
        super().__init__(f"{message} at position {position} in {expression!r}")
        self.expression = expression
        self.position = position


class ExpressionEvaluationError(ExpressionError):
    """The expression parsed but could not be evaluated (type mismatch, absent operand)."""
