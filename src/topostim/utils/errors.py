# src/topostim/utils/errors.py
"""
Exception hierarchy shared by every topostim module.

All expected domain failures raise a subclass of :class:`TopologicalError`,
so callers can catch the whole family at once or branch on the concrete kind:

- :class:`ValidationError` -- malformed or out-of-range input
- :class:`OperationError` -- a well-formed request that cannot be carried out
- :class:`NotImplementedTheoryError` -- a theory or conversion path that is
  intentionally unsupported
- :class:`LogicError` -- an internal pipeline inconsistency
- :class:`ComputationError` -- a numerical procedure failed its own checks
"""
from __future__ import annotations

from typing import Optional


class TopologicalError(Exception):
    """Base class for all topostim errors."""


class ValidationError(TopologicalError, ValueError):
    """Invalid input: bad index, mismatched counts, particle outside theory."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"{field}: {reason}")


class OperationError(TopologicalError):
    """The operation is well-formed but cannot be performed."""

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation}: {reason}")


class NotImplementedTheoryError(TopologicalError, NotImplementedError):
    """A theory or conversion path that is deliberately not implemented."""

    def __init__(self, feature: str, hint: Optional[str] = None):
        self.feature = feature
        self.hint = hint
        message = f"{feature} is not implemented"
        if hint:
            message = f"{message} ({hint})"
        super().__init__(message)


class LogicError(TopologicalError):
    """Raised when a compilation pipeline reaches a state it should not."""

    def __init__(self, context: str, reason: str):
        self.context = context
        self.reason = reason
        super().__init__(f"{context}: {reason}")


class ComputationError(TopologicalError):
    """A numerical computation did not meet its own tolerance."""

    def __init__(self, context: str, reason: str):
        self.context = context
        self.reason = reason
        super().__init__(f"{context}: {reason}")
