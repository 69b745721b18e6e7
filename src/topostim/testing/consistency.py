# src/topostim/testing/consistency.py
"""
Pentagon and hexagon consistency checks reported equation by equation.

``fmatrix.verify_pentagon`` and ``rmatrix.verify_hexagon`` return only the
worst deviation. The functions here keep every individual equation (its
external and internal labels, both sides and the deviation) so a failing
theory can be diagnosed, and roll them up into a
:class:`ConsistencySummary`.

Usage
-----
>>> from topostim.anyons import FIBONACCI
>>> from topostim.testing import verify_consistency, format_consistency_summary
>>> summary = verify_consistency(FIBONACCI)
>>> summary.all_satisfied
True
>>> print(format_consistency_summary(summary))
"""
from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import List, Tuple

from topostim.anyons.fmatrix import FMatrixData, compute_f_matrix, f_value
from topostim.anyons.particles import AnyonType, Particle, canonical, fusion_channels, particles
from topostim.anyons.rmatrix import RMatrixData, compute_r_matrix, r_value
from topostim.utils.numerics import EXACT_TOLERANCE

logger = logging.getLogger(__name__)

# =============================================================================
# Status Indicators
# =============================================================================

STATUS_OK = "✓"
STATUS_FAIL = "✗"


@dataclass(frozen=True)
class ConsistencyCheckResult:
    """One instance of the pentagon or hexagon equation.

    Attributes
    ----------
    equation : str
        ``"pentagon"`` or ``"hexagon"``.
    indices : tuple of Particle
        External labels followed by the internal labels of this instance.
    lhs, rhs : complex
        The two sides of the equation.
    deviation : float
        ``|lhs - rhs|``.
    passed : bool
        ``deviation <= tol``.
    """
    equation: str
    indices: Tuple[Particle, ...]
    lhs: complex
    rhs: complex
    deviation: float
    passed: bool


@dataclass
class ConsistencySummary:
    anyon_type: AnyonType
    pentagon_results: List[ConsistencyCheckResult] = field(default_factory=list)
    hexagon_results: List[ConsistencyCheckResult] = field(default_factory=list)
    all_satisfied: bool = True
    max_deviation: float = 0.0

    @property
    def failures(self) -> List[ConsistencyCheckResult]:
        return [r for r in self.pentagon_results + self.hexagon_results if not r.passed]


def _result(equation: str, indices, lhs: complex, rhs: complex, tol: float) -> ConsistencyCheckResult:
    deviation = abs(lhs - rhs)
    return ConsistencyCheckResult(equation, tuple(indices), complex(lhs), complex(rhs), deviation, deviation <= tol)


# =============================================================================
# Pentagon
# =============================================================================

def _pentagon(
    data: FMatrixData, a: Particle, b: Particle, c: Particle, d: Particle, e: Particle, tol: float,
) -> List[ConsistencyCheckResult]:
    t = data.anyon_type
    results = []
    for f in fusion_channels(a, b, t):
        for g in fusion_channels(f, c, t):
            if e not in fusion_channels(g, d, t):
                continue
            for l in fusion_channels(c, d, t):
                for k in fusion_channels(b, l, t):
                    if e not in fusion_channels(a, k, t):
                        continue
                    lhs = f_value(data, f, c, d, e, g, l) * f_value(data, a, b, l, e, f, k)
                    rhs = sum(
                        f_value(data, a, b, c, g, f, h)
                        * f_value(data, a, h, d, e, g, k)
                        * f_value(data, b, c, d, k, h, l)
                        for h in fusion_channels(b, c, t)
                    )
                    results.append(_result("pentagon", (a, b, c, d, e, f, g, l, k), lhs, rhs, tol))
    return results


def verify_pentagon_for_particles(
    a: Particle, b: Particle, c: Particle, d: Particle, e: Particle,
    anyon_type: AnyonType, tol: float = EXACT_TOLERANCE,
) -> List[ConsistencyCheckResult]:
    """Every pentagon instance with external labels a, b, c, d fusing to e.

    Raises
    ------
    ValidationError
        If a label is foreign to ``anyon_type``.
    NotImplementedTheoryError
        For SU(2)_k levels without symbol tables.
    """
    a, b, c, d, e = (canonical(p, anyon_type) for p in (a, b, c, d, e))
    return _pentagon(compute_f_matrix(anyon_type), a, b, c, d, e, tol)


def verify_all_pentagons(anyon_type: AnyonType, tol: float = EXACT_TOLERANCE) -> List[ConsistencyCheckResult]:
    data = compute_f_matrix(anyon_type)
    results: List[ConsistencyCheckResult] = []
    for labels in itertools.product(particles(anyon_type), repeat=5):
        results.extend(_pentagon(data, *labels, tol))
    logger.debug("Checked %d pentagon equations for %s", len(results), anyon_type)
    return results


# =============================================================================
# Hexagon
# =============================================================================

def _hexagon(
    r_data: RMatrixData, f_data: FMatrixData, a: Particle, b: Particle, c: Particle, d: Particle,
    tol: float,
) -> List[ConsistencyCheckResult]:
    t = r_data.anyon_type
    results = []
    for e in fusion_channels(c, a, t):
        if d not in fusion_channels(e, b, t):
            continue
        for g in fusion_channels(c, b, t):
            if d not in fusion_channels(a, g, t):
                continue
            lhs = r_value(r_data, c, a, e) * f_value(f_data, a, c, b, d, e, g) * r_value(r_data, c, b, g)
            rhs = sum(
                f_value(f_data, c, a, b, d, e, f)
                * r_value(r_data, c, f, d)
                * f_value(f_data, a, b, c, d, f, g)
                for f in fusion_channels(a, b, t)
            )
            results.append(_result("hexagon", (a, b, c, d, e, g), lhs, rhs, tol))
    return results


def verify_hexagon_for_particles(
    a: Particle, b: Particle, c: Particle, d: Particle,
    anyon_type: AnyonType, tol: float = EXACT_TOLERANCE,
) -> List[ConsistencyCheckResult]:
    """Every hexagon instance with external labels a, b, c fusing to d."""
    a, b, c, d = (canonical(p, anyon_type) for p in (a, b, c, d))
    return _hexagon(compute_r_matrix(anyon_type), compute_f_matrix(anyon_type), a, b, c, d, tol)


def verify_all_hexagons(anyon_type: AnyonType, tol: float = EXACT_TOLERANCE) -> List[ConsistencyCheckResult]:
    r_data = compute_r_matrix(anyon_type)
    f_data = compute_f_matrix(anyon_type)
    results: List[ConsistencyCheckResult] = []
    for labels in itertools.product(particles(anyon_type), repeat=4):
        results.extend(_hexagon(r_data, f_data, *labels, tol))
    logger.debug("Checked %d hexagon equations for %s", len(results), anyon_type)
    return results


# =============================================================================
# Summary
# =============================================================================

def verify_consistency(anyon_type: AnyonType, tol: float = EXACT_TOLERANCE) -> ConsistencySummary:
    """Run every pentagon and hexagon equation of ``anyon_type``."""
    pentagons = verify_all_pentagons(anyon_type, tol)
    hexagons = verify_all_hexagons(anyon_type, tol)
    everything = pentagons + hexagons
    summary = ConsistencySummary(
        anyon_type=anyon_type,
        pentagon_results=pentagons,
        hexagon_results=hexagons,
        all_satisfied=all(r.passed for r in everything),
        max_deviation=max((r.deviation for r in everything), default=0.0),
    )
    if not summary.all_satisfied:
        logger.warning(
            "%s violates %d consistency equation(s), max deviation %.3e",
            anyon_type, len(summary.failures), summary.max_deviation,
        )
    return summary


def _format_labels(indices) -> str:
    return ",".join(str(p) for p in indices)


def format_consistency_summary(summary: ConsistencySummary, max_failures: int = 5) -> str:
    def line(name: str, results: List[ConsistencyCheckResult]) -> str:
        passed = sum(1 for r in results if r.passed)
        status = STATUS_OK if passed == len(results) else STATUS_FAIL
        return f"  {status} {name}: {passed}/{len(results)} satisfied"

    lines = [
        f"Consistency check: {summary.anyon_type}",
        "=" * 40,
        line("Pentagon", summary.pentagon_results),
        line("Hexagon", summary.hexagon_results),
        f"  Max deviation: {summary.max_deviation:.3e}",
        f"  Overall: {'PASS' if summary.all_satisfied else 'FAIL'}",
    ]
    failures = summary.failures
    if failures:
        lines.append("  Failures:")
        for r in failures[:max_failures]:
            lines.append(f"    {r.equation}[{_format_labels(r.indices)}]: |Δ| = {r.deviation:.3e}")
        if len(failures) > max_failures:
            lines.append(f"    ... and {len(failures) - max_failures} more")
    return "\n".join(lines)
