# src/topostim/utils/numerics.py
"""Numeric constants and small helpers shared by the anyon algebra."""
from __future__ import annotations

import cmath
import math

import numpy as np

# Tolerance for identities that hold exactly in the theory (pentagon,
# hexagon, unitarity, normalisation).
EXACT_TOLERANCE = 1e-9
NORMALIZATION_TOLERANCE = 1e-9

PHI = (1.0 + math.sqrt(5.0)) / 2.0


def phase(angle: float) -> complex:
    """Unit complex number ``exp(i * angle)``."""
    return cmath.exp(1j * angle)


def is_close(a: complex, b: complex, tol: float = EXACT_TOLERANCE) -> bool:
    return abs(a - b) <= tol


def q_number(n: int, level: int) -> float:
    """Quantum integer [n]_q at q = exp(2*pi*i / (level + 2)).

    [n] = sin(pi * n / (k + 2)) / sin(pi / (k + 2)). Values that are zero
    up to rounding are snapped to exactly zero.
    """
    denom = math.sin(math.pi / (level + 2))
    value = math.sin(math.pi * n / (level + 2)) / denom
    if abs(value) < 1e-12:
        return 0.0
    return value


def q_factorial(n: int, level: int) -> float:
    result = 1.0
    for i in range(1, n + 1):
        result *= q_number(i, level)
    return result


def is_unitary(matrix: np.ndarray, tol: float = EXACT_TOLERANCE) -> bool:
    """Check ``M @ M^dagger == I`` element-wise within ``tol``."""
    m = np.asarray(matrix, dtype=complex)
    if m.ndim != 2 or m.shape[0] != m.shape[1]:
        return False
    product = m @ m.conj().T
    return bool(np.max(np.abs(product - np.eye(m.shape[0]))) <= tol)
