# src/topostim/utils/__init__.py
"""
Utility modules for topostim.

Provides shared functionality used across the codebase:
- errors: the TopologicalError exception hierarchy
- numerics: tolerances, the golden ratio, quantum integers
"""

from topostim.utils.errors import (
    TopologicalError,
    ValidationError,
    OperationError,
    NotImplementedTheoryError,
    LogicError,
    ComputationError,
)
from topostim.utils.numerics import (
    EXACT_TOLERANCE,
    NORMALIZATION_TOLERANCE,
    PHI,
    phase,
    is_close,
    q_number,
    q_factorial,
    is_unitary,
)

__all__ = [
    "TopologicalError",
    "ValidationError",
    "OperationError",
    "NotImplementedTheoryError",
    "LogicError",
    "ComputationError",
    "EXACT_TOLERANCE",
    "NORMALIZATION_TOLERANCE",
    "PHI",
    "phase",
    "is_close",
    "q_number",
    "q_factorial",
    "is_unitary",
]
