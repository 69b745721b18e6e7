# src/topostim/anyons/rmatrix.py
"""
R-symbols (braiding phases) and the hexagon equation.

``R[a, b; c]`` is the phase picked up when anyons ``a`` and ``b`` fused to
channel ``c`` are exchanged counter-clockwise in the fusion-tree picture,
i.e. by the braid generator we call *clockwise* (the convention that makes
one clockwise σσ exchange in the vacuum channel equal ``exp(-iπ/8)``).
The inverse generator picks up the complex conjugate.

Values:

- Ising (Kitaev gauge): R[σσ;1] = e^{-iπ/8}, R[σσ;ψ] = e^{3iπ/8},
  R[σψ;σ] = R[ψσ;σ] = -i, R[ψψ;1] = -1
- Fibonacci: R[ττ;1] = e^{-4πi/5}, R[ττ;τ] = e^{3πi/5}
- SU(2)_k: R[j1 j2; j] = (-1)^{j-j1-j2} exp(iπ (h_j - h_j1 - h_j2))

These satisfy the hexagon equation with the F-symbols of ``fmatrix`` and the
ribbon relation R[ab;c] R[ba;c] = θ_c / (θ_a θ_b).
"""
from __future__ import annotations

import itertools
import logging
import math
from dataclasses import dataclass, replace
from functools import lru_cache
from types import MappingProxyType
from typing import Dict, Mapping, Tuple

from topostim.anyons.fmatrix import FMatrixData, check_su2_supported, compute_f_matrix, f_value
from topostim.anyons.particles import (
    PSI,
    SIGMA,
    TAU,
    VACUUM,
    AnyonFamily,
    AnyonType,
    Particle,
    canonical,
    conformal_weight,
    fusion_channels,
    particles,
    topological_spin,
)
from topostim.utils.errors import ComputationError, ValidationError
from topostim.utils.numerics import EXACT_TOLERANCE, phase

logger = logging.getLogger(__name__)

RKey = Tuple[Particle, Particle, Particle]


@dataclass(frozen=True)
class RMatrixData:
    """R-symbol table of one theory.

    Attributes
    ----------
    anyon_type : AnyonType
        Theory the symbols belong to.
    symbols : Mapping[RKey, complex]
        Stored entries; valid entries that are absent are computed from the
        theory's closed-form expression.
    is_validated : bool
        True once :func:`validate_r_matrix` has checked the hexagon equation.
    """
    anyon_type: AnyonType
    symbols: Mapping[RKey, complex]
    is_validated: bool = False

    def __len__(self) -> int:
        return len(self.symbols)


def _ising_symbols() -> Dict[RKey, complex]:
    return {
        (SIGMA, SIGMA, VACUUM): phase(-math.pi / 8.0),
        (SIGMA, SIGMA, PSI): phase(3.0 * math.pi / 8.0),
        (SIGMA, PSI, SIGMA): -1j,
        (PSI, SIGMA, SIGMA): -1j,
        (PSI, PSI, VACUUM): -1.0,
    }


def _fibonacci_symbols() -> Dict[RKey, complex]:
    return {
        (TAU, TAU, VACUUM): phase(-4.0 * math.pi / 5.0),
        (TAU, TAU, TAU): phase(3.0 * math.pi / 5.0),
    }


def _su2_value(a: Particle, b: Particle, c: Particle, anyon_type: AnyonType) -> complex:
    sign = (-1) ** ((c.twice_j - a.twice_j - b.twice_j) // 2)
    h = (
        conformal_weight(c, anyon_type)
        - conformal_weight(a, anyon_type)
        - conformal_weight(b, anyon_type)
    )
    return sign * phase(math.pi * h)


def _su2_symbols(level: int) -> Dict[RKey, complex]:
    anyon_type = AnyonType.su2(level)
    table: Dict[RKey, complex] = {}
    for a, b in itertools.product(particles(anyon_type), repeat=2):
        for c in fusion_channels(a, b, anyon_type):
            table[(a, b, c)] = _su2_value(a, b, c, anyon_type)
    return table


@lru_cache(maxsize=None)
def _cached_symbols(anyon_type: AnyonType) -> Mapping[RKey, complex]:
    logger.debug("Building R-symbol table for %s", anyon_type)
    if anyon_type.is_ising_like:
        table = _ising_symbols()
    elif anyon_type.family == AnyonFamily.FIBONACCI:
        table = _fibonacci_symbols()
    else:
        table = _su2_symbols(anyon_type.level)
    return MappingProxyType(table)


def compute_r_matrix(anyon_type: AnyonType) -> RMatrixData:
    """Build the R-symbol table for ``anyon_type`` (SU(2)_2 reuses Ising).

    Raises
    ------
    NotImplementedTheoryError
        For SU(2)_k levels above the supported maximum.
    """
    check_su2_supported(anyon_type, "R-matrix")
    return RMatrixData(anyon_type, _cached_symbols(anyon_type))


def _default_value(a: Particle, b: Particle, c: Particle, anyon_type: AnyonType) -> complex:
    if anyon_type.family == AnyonFamily.SU2 and not anyon_type.is_ising_like:
        return _su2_value(a, b, c, anyon_type)
    return 1.0


def get_r_symbol(data: RMatrixData, a: Particle, b: Particle, c: Particle) -> complex:
    """Look up ``R[a,b;c]``.

    Raises
    ------
    ValidationError
        If ``c`` is not a fusion channel of ``a × b``.
    """
    anyon_type = data.anyon_type
    a, b, c = (canonical(p, anyon_type) for p in (a, b, c))
    if c not in fusion_channels(a, b, anyon_type):
        raise ValidationError(
            "r_symbol", f"R[{a},{b};{c}] violates the {anyon_type} fusion rules"
        )
    stored = data.symbols.get((a, b, c))
    if stored is not None:
        return stored
    return _default_value(a, b, c, anyon_type)


def r_value(data: RMatrixData, a: Particle, b: Particle, c: Particle) -> complex:
    """R-symbol, or 0 when ``c`` is not in ``a × b``."""
    try:
        return get_r_symbol(data, a, b, c)
    except ValidationError:
        return 0.0


def braid_phase(data: RMatrixData, a: Particle, b: Particle, c: Particle, clockwise: bool = True) -> complex:
    """Phase of exchanging the ordered pair (a, b) fused to ``c``.

    A clockwise exchange gives R[a,b;c]. A counter-clockwise exchange undoes
    a clockwise one of (b, a) and gives conj(R[b,a;c]).
    """
    if clockwise:
        return get_r_symbol(data, a, b, c)
    return get_r_symbol(data, b, a, c).conjugate()


# =============================================================================
# Consistency
# =============================================================================

def verify_r_unitarity(data: RMatrixData, tol: float = EXACT_TOLERANCE) -> bool:
    """Every valid R-symbol has unit modulus."""
    ps = particles(data.anyon_type)
    for a, b in itertools.product(ps, repeat=2):
        for c in fusion_channels(a, b, data.anyon_type):
            if abs(abs(get_r_symbol(data, a, b, c)) - 1.0) > tol:
                return False
    return True


def verify_ribbon(data: RMatrixData, a: Particle, b: Particle, c: Particle, tol: float = EXACT_TOLERANCE) -> bool:
    """Check R[a,b;c] R[b,a;c] = θ_c / (θ_a θ_b)."""
    anyon_type = data.anyon_type
    lhs = get_r_symbol(data, a, b, c) * get_r_symbol(data, b, a, c)
    rhs = topological_spin(c, anyon_type) / (
        topological_spin(a, anyon_type) * topological_spin(b, anyon_type)
    )
    return abs(lhs - rhs) <= tol


def hexagon_deviation(
    r_data: RMatrixData, f_data: FMatrixData,
    a: Particle, b: Particle, c: Particle, d: Particle,
) -> float:
    """Largest violation of the hexagon equation for external labels a,b,c -> d::

        R[c,a;e] F[a,c,b,d;e,g] R[c,b;g]
            = sum_f F[c,a,b,d;e,f] R[c,f;d] F[a,b,c,d;f,g]
    """
    anyon_type = r_data.anyon_type
    worst = 0.0
    for e in fusion_channels(c, a, anyon_type):
        for g in fusion_channels(c, b, anyon_type):
            lhs = (
                r_value(r_data, c, a, e)
                * f_value(f_data, a, c, b, d, e, g)
                * r_value(r_data, c, b, g)
            )
            rhs = sum(
                f_value(f_data, c, a, b, d, e, f)
                * r_value(r_data, c, f, d)
                * f_value(f_data, a, b, c, d, f, g)
                for f in fusion_channels(a, b, anyon_type)
            )
            worst = max(worst, abs(lhs - rhs))
    return worst


def verify_hexagon(r_data: RMatrixData, f_data: FMatrixData) -> float:
    """Maximum hexagon deviation over all particle 4-tuples."""
    worst = 0.0
    for a, b, c, d in itertools.product(particles(r_data.anyon_type), repeat=4):
        worst = max(worst, hexagon_deviation(r_data, f_data, a, b, c, d))
    logger.debug("Hexagon check for %s: max deviation %.3e", r_data.anyon_type, worst)
    return worst


def validate_r_matrix(
    data: RMatrixData, f_data: FMatrixData = None, tol: float = EXACT_TOLERANCE,
) -> RMatrixData:
    """Check unit modulus and the hexagon equation against ``f_data``.

    ``f_data`` defaults to the theory's own F-symbols.

    Raises
    ------
    ValidationError
        If ``f_data`` belongs to another theory.
    ComputationError
        If a check deviates by more than ``tol``.
    """
    if f_data is None:
        f_data = compute_f_matrix(data.anyon_type)
    if f_data.anyon_type != data.anyon_type:
        raise ValidationError(
            "f_data",
            f"F-symbols are for {f_data.anyon_type}, R-symbols for {data.anyon_type}",
        )
    if not verify_r_unitarity(data, tol):
        raise ComputationError(
            "validate_r_matrix", f"R-symbols of {data.anyon_type} are not unit phases"
        )
    worst = verify_hexagon(data, f_data)
    if worst > tol:
        logger.warning("Hexagon equation fails for %s (deviation %.3e)", data.anyon_type, worst)
        raise ComputationError(
            "validate_r_matrix",
            f"hexagon equation violated for {data.anyon_type}: max deviation {worst:.3e}",
        )
    return replace(data, is_validated=True)
