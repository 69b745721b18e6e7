# src/topostim/anyons/fmatrix.py
"""
F-symbols (associativity basis changes) and the pentagon equation.

Index convention: ``F[a, b, c, d; e, f]`` is the matrix element
``[F^{abc}_d]_{ef}`` that maps the left-associated basis state
``((a b)_e c)_d`` to the right-associated state ``(a (b c)_f)_d``::

    ((a b)_e c)_d = sum_f F[a,b,c,d;e,f] (a (b c)_f)_d

so ``e`` is a channel of ``a × b``, ``f`` a channel of ``b × c`` and ``d``
the total charge.

Ising and Fibonacci use the standard literature tables. SU(2)_k (k >= 3) is
built from the q-deformed Racah formula for 6j-symbols::

    F[j1,j2,j3,j;j12,j23] = (-1)^(j1+j2+j3+j) sqrt([2j12+1][2j23+1])
                            {j1 j2 j12; j3 j j23}_q

Only entries different from 1 are stored. Tables are built once per
:class:`AnyonType` and cached; the cache is read-only.
"""
from __future__ import annotations

import itertools
import logging
import math
from dataclasses import dataclass, replace
from functools import lru_cache
from types import MappingProxyType
from typing import Dict, List, Mapping, Tuple

import numpy as np

from topostim.anyons.particles import (
    PSI,
    SIGMA,
    TAU,
    VACUUM,
    AnyonFamily,
    AnyonType,
    Particle,
    canonical,
    fusion_channels,
    particles,
    validate_anyon_type,
)
from topostim.utils.errors import ComputationError, NotImplementedTheoryError, ValidationError
from topostim.utils.numerics import EXACT_TOLERANCE, PHI, q_factorial, q_number

logger = logging.getLogger(__name__)

FKey = Tuple[Particle, Particle, Particle, Particle, Particle, Particle]

# Largest SU(2)_k level whose symbol tables are built.
MAX_SU2_LEVEL = 8


@dataclass(frozen=True)
class FMatrixData:
    """F-symbol table of one theory.

    Attributes
    ----------
    anyon_type : AnyonType
        Theory the symbols belong to.
    symbols : Mapping[FKey, complex]
        Non-trivial entries; absent valid entries equal 1.
    is_validated : bool
        True once :func:`validate_f_matrix` has checked pentagon and
        unitarity.
    """
    anyon_type: AnyonType
    symbols: Mapping[FKey, complex]
    is_validated: bool = False

    def __len__(self) -> int:
        return len(self.symbols)


# =============================================================================
# Literature tables
# =============================================================================

def _ising_symbols() -> Dict[FKey, complex]:
    s = 1.0 / math.sqrt(2.0)
    return {
        (SIGMA, SIGMA, SIGMA, SIGMA, VACUUM, VACUUM): s,
        (SIGMA, SIGMA, SIGMA, SIGMA, VACUUM, PSI): s,
        (SIGMA, SIGMA, SIGMA, SIGMA, PSI, VACUUM): s,
        (SIGMA, SIGMA, SIGMA, SIGMA, PSI, PSI): -s,
        (SIGMA, PSI, SIGMA, PSI, SIGMA, SIGMA): -1.0,
        (PSI, SIGMA, PSI, SIGMA, SIGMA, SIGMA): -1.0,
    }


def _fibonacci_symbols() -> Dict[FKey, complex]:
    inv_phi = 1.0 / PHI
    inv_sqrt_phi = 1.0 / math.sqrt(PHI)
    return {
        (TAU, TAU, TAU, VACUUM, TAU, TAU): 1.0,
        (TAU, TAU, TAU, TAU, VACUUM, VACUUM): inv_phi,
        (TAU, TAU, TAU, TAU, VACUUM, TAU): inv_sqrt_phi,
        (TAU, TAU, TAU, TAU, TAU, VACUUM): inv_sqrt_phi,
        (TAU, TAU, TAU, TAU, TAU, TAU): -inv_phi,
    }


# =============================================================================
# q-deformed Racah formula
# =============================================================================

def _delta(a: int, b: int, c: int, level: int) -> float:
    """Triangle coefficient with doubled spins."""
    num = (
        q_factorial((a + b - c) // 2, level)
        * q_factorial((a - b + c) // 2, level)
        * q_factorial((-a + b + c) // 2, level)
    )
    den = q_factorial((a + b + c) // 2 + 1, level)
    return math.sqrt(num / den)


def racah_6j(j1: int, j2: int, j12: int, j3: int, j: int, j23: int, level: int) -> float:
    """q-deformed 6j-symbol {j1 j2 j12; j3 j j23} with doubled spins."""
    triads = (
        (j1 + j2 + j12) // 2,
        (j12 + j3 + j) // 2,
        (j2 + j3 + j23) // 2,
        (j1 + j23 + j) // 2,
    )
    quads = (
        (j1 + j2 + j3 + j) // 2,
        (j1 + j12 + j3 + j23) // 2,
        (j2 + j12 + j + j23) // 2,
    )
    total = 0.0
    for z in range(max(triads), min(quads) + 1):
        den = 1.0
        for t in triads:
            den *= q_factorial(z - t, level)
        for q in quads:
            den *= q_factorial(q - z, level)
        total += (-1) ** z * q_factorial(z + 1, level) / den
    return (
        _delta(j1, j2, j12, level)
        * _delta(j12, j3, j, level)
        * _delta(j2, j3, j23, level)
        * _delta(j1, j23, j, level)
        * total
    )


def _su2_symbols(level: int) -> Dict[FKey, complex]:
    anyon_type = AnyonType.su2(level)
    table: Dict[FKey, complex] = {}
    ps = particles(anyon_type)
    for a, b, c in itertools.product(ps, repeat=3):
        for e in fusion_channels(a, b, anyon_type):
            for d in fusion_channels(e, c, anyon_type):
                for f in fusion_channels(b, c, anyon_type):
                    if d not in fusion_channels(a, f, anyon_type):
                        continue
                    sign = (-1) ** ((a.twice_j + b.twice_j + c.twice_j + d.twice_j) // 2)
                    norm = math.sqrt(
                        q_number(e.twice_j + 1, level) * q_number(f.twice_j + 1, level)
                    )
                    value = sign * norm * racah_6j(
                        a.twice_j, b.twice_j, e.twice_j,
                        c.twice_j, d.twice_j, f.twice_j, level,
                    )
                    if abs(value - 1.0) > EXACT_TOLERANCE:
                        table[(a, b, c, d, e, f)] = value
    return table


# =============================================================================
# Construction and lookup
# =============================================================================

@lru_cache(maxsize=None)
def _cached_symbols(anyon_type: AnyonType) -> Mapping[FKey, complex]:
    logger.debug("Building F-symbol table for %s", anyon_type)
    if anyon_type.is_ising_like:
        table = _ising_symbols()
    elif anyon_type.family == AnyonFamily.FIBONACCI:
        table = _fibonacci_symbols()
    else:
        table = _su2_symbols(anyon_type.level)
    logger.debug("F-symbol table for %s has %d entries", anyon_type, len(table))
    return MappingProxyType(table)


def check_su2_supported(anyon_type: AnyonType, what: str) -> None:
    validate_anyon_type(anyon_type)
    if anyon_type.family != AnyonFamily.SU2 or anyon_type.is_ising_like:
        return
    if anyon_type.level > MAX_SU2_LEVEL:
        raise NotImplementedTheoryError(
            f"{what} for {anyon_type}",
            f"supported SU(2)_k levels are 1..{MAX_SU2_LEVEL}",
        )


def compute_f_matrix(anyon_type: AnyonType) -> FMatrixData:
    """Build the F-symbol table for ``anyon_type``.

    SU(2)_2 intentionally reuses the Ising table (the theories share fusion
    rules and the Ising gauge is used for both).

    Raises
    ------
    NotImplementedTheoryError
        For SU(2)_k levels above ``MAX_SU2_LEVEL``.
    """
    check_su2_supported(anyon_type, "F-matrix")
    return FMatrixData(anyon_type, _cached_symbols(anyon_type))


def is_valid_f_index(
    a: Particle, b: Particle, c: Particle, d: Particle, e: Particle, f: Particle,
    anyon_type: AnyonType,
) -> bool:
    """True when every vertex of both trees obeys the fusion rules."""
    return (
        e in fusion_channels(a, b, anyon_type)
        and d in fusion_channels(e, c, anyon_type)
        and f in fusion_channels(b, c, anyon_type)
        and d in fusion_channels(a, f, anyon_type)
    )


@lru_cache(maxsize=None)
def _resolve_key(key: tuple, anyon_type: AnyonType) -> Tuple[FKey, bool]:
    """Canonical form of ``key`` and whether it obeys the fusion rules."""
    canonical_key = tuple(canonical(p, anyon_type) for p in key)
    return canonical_key, is_valid_f_index(*canonical_key, anyon_type)  # type: ignore[return-value]


def f_value(
    data: FMatrixData,
    a: Particle, b: Particle, c: Particle, d: Particle, e: Particle, f: Particle,
) -> complex:
    """F-symbol, or 0 when the index violates the fusion rules."""
    key, valid = _resolve_key((a, b, c, d, e, f), data.anyon_type)
    if not valid:
        return 0.0
    return data.symbols.get(key, 1.0)


def get_f_symbol(
    data: FMatrixData,
    a: Particle, b: Particle, c: Particle, d: Particle, e: Particle, f: Particle,
) -> complex:
    """Look up ``F[a,b,c,d;e,f]``.

    Returns the stored value, or 1.0 for a valid but unstored entry.

    Raises
    ------
    ValidationError
        If the index violates the fusion rules or contains foreign particles.
    """
    key, valid = _resolve_key((a, b, c, d, e, f), data.anyon_type)
    if not valid:
        raise ValidationError(
            "f_symbol",
            "F[{}] violates the {} fusion rules".format(
                ",".join(str(p) for p in key), data.anyon_type
            ),
        )
    return data.symbols.get(key, 1.0)


def f_block(
    data: FMatrixData, a: Particle, b: Particle, c: Particle, d: Particle,
) -> Tuple[np.ndarray, List[Particle], List[Particle]]:
    """The F-matrix ``F^{abc}_d`` with its row (e) and column (f) labels."""
    anyon_type = data.anyon_type
    a, b, c, d = (canonical(p, anyon_type) for p in (a, b, c, d))
    rows = [e for e in fusion_channels(a, b, anyon_type)
            if d in fusion_channels(e, c, anyon_type)]
    cols = [f for f in fusion_channels(b, c, anyon_type)
            if d in fusion_channels(a, f, anyon_type)]
    block = np.zeros((len(rows), len(cols)), dtype=complex)
    for i, e in enumerate(rows):
        for j, f in enumerate(cols):
            block[i, j] = data.symbols.get((a, b, c, d, e, f), 1.0)
    return block, rows, cols


def verify_f_matrix_unitarity(
    data: FMatrixData, a: Particle, b: Particle, c: Particle, d: Particle,
    tol: float = EXACT_TOLERANCE,
) -> bool:
    """Check ``F F^dagger = I`` for the block ``F^{abc}_d``.

    An empty block (no valid channels) is trivially unitary.
    """
    block, rows, cols = f_block(data, a, b, c, d)
    if len(rows) != len(cols):
        return False
    if not rows:
        return True
    return bool(np.max(np.abs(block @ block.conj().T - np.eye(len(rows)))) <= tol)


# =============================================================================
# Pentagon equation
# =============================================================================

def pentagon_deviation(
    data: FMatrixData, a: Particle, b: Particle, c: Particle, d: Particle, e: Particle,
) -> float:
    """Largest violation of the pentagon equation for external labels a,b,c,d -> e.

    For every f in a×b, g in f×c (left basis) and l in c×d, k in b×l (right
    basis)::

        F[f,c,d,e;g,l] F[a,b,l,e;f,k]
            = sum_h F[a,b,c,g;f,h] F[a,h,d,e;g,k] F[b,c,d,k;h,l]
    """
    anyon_type = data.anyon_type
    worst = 0.0
    for f in fusion_channels(a, b, anyon_type):
        for g in fusion_channels(f, c, anyon_type):
            if e not in fusion_channels(g, d, anyon_type):
                continue
            for l in fusion_channels(c, d, anyon_type):
                for k in fusion_channels(b, l, anyon_type):
                    if e not in fusion_channels(a, k, anyon_type):
                        continue
                    lhs = f_value(data, f, c, d, e, g, l) * f_value(data, a, b, l, e, f, k)
                    rhs = sum(
                        f_value(data, a, b, c, g, f, h)
                        * f_value(data, a, h, d, e, g, k)
                        * f_value(data, b, c, d, k, h, l)
                        for h in fusion_channels(b, c, anyon_type)
                    )
                    worst = max(worst, abs(lhs - rhs))
    return worst


def verify_pentagon(data: FMatrixData, tol: float = EXACT_TOLERANCE) -> float:
    """Maximum pentagon deviation over all particle 5-tuples."""
    ps = particles(data.anyon_type)
    worst = 0.0
    for a, b, c, d, e in itertools.product(ps, repeat=5):
        worst = max(worst, pentagon_deviation(data, a, b, c, d, e))
    logger.debug("Pentagon check for %s: max deviation %.3e", data.anyon_type, worst)
    return worst


def validate_f_matrix(data: FMatrixData, tol: float = EXACT_TOLERANCE) -> FMatrixData:
    """Check the pentagon equation and unitarity of every F-block.

    Returns
    -------
    FMatrixData
        A copy of ``data`` with ``is_validated=True``.

    Raises
    ------
    ComputationError
        If either check deviates by more than ``tol``.
    """
    worst = verify_pentagon(data, tol)
    if worst > tol:
        logger.warning("Pentagon equation fails for %s (deviation %.3e)", data.anyon_type, worst)
        raise ComputationError(
            "validate_f_matrix",
            f"pentagon equation violated for {data.anyon_type}: max deviation {worst:.3e}",
        )
    ps = particles(data.anyon_type)
    for a, b, c, d in itertools.product(ps, repeat=4):
        if not verify_f_matrix_unitarity(data, a, b, c, d, tol):
            logger.warning("F-block F^{%s%s%s}_%s of %s is not unitary", a, b, c, d, data.anyon_type)
            raise ComputationError(
                "validate_f_matrix",
                f"F^{{{a}{b}{c}}}_{d} is not unitary for {data.anyon_type}",
            )
    return replace(data, is_validated=True)
