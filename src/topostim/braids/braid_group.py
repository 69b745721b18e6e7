# src/topostim/braids/braid_group.py
"""
Braid words over N strands and their action on rows of anyons.

A braid is an ordered tuple of generators σ_i (clockwise) or σ_i⁻¹
(counter-clockwise) acting on strands i and i+1. Words are immutable:
composition concatenates, inversion reverses and flips every generator.

:func:`apply_braid` evaluates a word on a row of anyons whose neighbouring
pairs are fused to a fixed local channel. Each generator contributes the
R-symbol of the pair it exchanges in that channel and the two anyons swap
places, so the accumulated phase of ``B · B⁻¹`` is exactly 1.

Braid group relations
---------------------
- far commutativity: σ_i σ_j = σ_j σ_i for |i - j| >= 2
- Yang-Baxter: σ_i σ_{i+1} σ_i = σ_{i+1} σ_i σ_{i+1}
"""
from __future__ import annotations

import cmath
import logging
import math
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from topostim.anyons.particles import AnyonType, Particle, canonical, fusion_channels
from topostim.anyons.rmatrix import braid_phase, compute_r_matrix
from topostim.utils.errors import ValidationError
from topostim.utils.numerics import EXACT_TOLERANCE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BraidGenerator:
    """σ_index (clockwise) or σ_index⁻¹."""
    index: int
    clockwise: bool = True

    @property
    def inverse(self) -> "BraidGenerator":
        return BraidGenerator(self.index, not self.clockwise)

    def __str__(self) -> str:
        return f"σ_{self.index}" if self.clockwise else f"σ_{self.index}⁻¹"


@dataclass(frozen=True)
class Braid:
    """A braid word.

    Attributes
    ----------
    strand_count : int
        Number of strands N.
    generators : tuple of BraidGenerator
        Word read left to right; the empty word is the identity.
    """
    strand_count: int
    generators: Tuple[BraidGenerator, ...] = ()

    def __len__(self) -> int:
        return len(self.generators)

    def __str__(self) -> str:
        return to_str(self)


@dataclass(frozen=True)
class BraidStep:
    """Record of one generator applied by :func:`apply_braid`."""
    generator: BraidGenerator
    left: Particle
    right: Particle
    phase: complex

    def __str__(self) -> str:
        angle = math.degrees(cmath.phase(self.phase))
        return f"{self.generator}: {self.left}{self.right} phase × {abs(self.phase):.3f}∠{angle:.1f}°"


@dataclass(frozen=True)
class BraidResult:
    braid: Braid
    phase: complex
    steps: Tuple[BraidStep, ...] = field(default_factory=tuple)


# =============================================================================
# Construction
# =============================================================================

def sigma(index: int) -> BraidGenerator:
    return BraidGenerator(index, True)


def sigma_inv(index: int) -> BraidGenerator:
    return BraidGenerator(index, False)


def _check_strands(n: int, what: str) -> None:
    if n < 2:
        raise ValidationError("strand_count", f"{what} requires at least 2 strands, got {n}")


def identity(n: int) -> Braid:
    _check_strands(n, "identity braid")
    return Braid(n, ())


def from_generators(n: int, generators: Sequence[BraidGenerator]) -> Braid:
    """Build a braid word, checking every generator index lies in [0, n-2].

    Raises
    ------
    ValidationError
        If ``n < 2`` or a generator acts outside the strands.
    """
    _check_strands(n, "a braid")
    for g in generators:
        if not 0 <= g.index <= n - 2:
            raise ValidationError(
                "generators",
                f"generator index {g.index} out of range [0, {n - 2}] for {n} strands",
            )
    return Braid(n, tuple(generators))


def compose(first: Braid, second: Braid) -> Braid:
    """``first`` followed by ``second``.

    Raises
    ------
    ValidationError
        If the strand counts differ.
    """
    if first.strand_count != second.strand_count:
        raise ValidationError(
            "strand_count",
            f"cannot compose braids on {first.strand_count} and {second.strand_count} strands",
        )
    return Braid(first.strand_count, first.generators + second.generators)


def inverse(braid: Braid) -> Braid:
    return Braid(braid.strand_count, tuple(g.inverse for g in reversed(braid.generators)))


def length(braid: Braid) -> int:
    return len(braid.generators)


def exchange(index: int, n: int) -> Braid:
    """The single exchange σ_index on ``n`` strands."""
    return from_generators(n, [sigma(index)])


def full_twist(n: int) -> Braid:
    """Δ² = (σ_0 σ_1 ... σ_{n-2})^n, the generator of the centre of B_n."""
    _check_strands(n, "full twist")
    row = [sigma(i) for i in range(n - 1)]
    return Braid(n, tuple(row * n))


def cyclic_permutation(n: int) -> Braid:
    """σ_0 σ_1 ... σ_{n-2}: carries strand 0 to position n-1."""
    _check_strands(n, "cyclic permutation")
    return Braid(n, tuple(sigma(i) for i in range(n - 1)))


# =============================================================================
# Relations
# =============================================================================

def simplify(braid: Braid) -> Braid:
    """Cancel adjacent σ_i σ_i⁻¹ pairs until none remain.

    Uses a stack so cancellations exposed by earlier ones (σ_1 σ_2 σ_2⁻¹ σ_1⁻¹)
    are also removed. Far commutativity is not applied.
    """
    stack: List[BraidGenerator] = []
    for g in braid.generators:
        if stack and stack[-1].index == g.index and stack[-1].clockwise != g.clockwise:
            stack.pop()
        else:
            stack.append(g)
    return Braid(braid.strand_count, tuple(stack))


def do_commute(g1: BraidGenerator, g2: BraidGenerator) -> bool:
    """Far commutativity: σ_i and σ_j commute when |i - j| >= 2."""
    return abs(g1.index - g2.index) >= 2


def is_yang_baxter_triple(g1: BraidGenerator, g2: BraidGenerator, g3: BraidGenerator) -> bool:
    """True for σ_i σ_{i±1} σ_i with all three generators in one direction."""
    if not (g1.clockwise == g2.clockwise == g3.clockwise):
        return False
    return g1.index == g3.index and abs(g2.index - g1.index) == 1


# =============================================================================
# Application to anyons
# =============================================================================

def apply_braid(
    braid: Braid,
    anyons: Sequence[Particle],
    final_channel: Particle,
    anyon_type: AnyonType,
) -> BraidResult:
    """Accumulate the phase of ``braid`` acting on ``anyons``.

    Every exchanged pair is taken to fuse to ``final_channel``; generator
    σ_i contributes R[a_i, a_{i+1}; c] (conjugated and with the pair
    reversed for σ_i⁻¹) and then swaps the two anyons.

    Parameters
    ----------
    braid : Braid
        Word to apply.
    anyons : sequence of Particle
        One anyon per strand.
    final_channel : Particle
        Local fusion channel c of each exchanged pair.
    anyon_type : AnyonType
        Theory supplying the R-symbols.

    Returns
    -------
    BraidResult
        Total phase and one :class:`BraidStep` per generator.

    Raises
    ------
    ValidationError
        If the anyon count differs from the strand count, or ``final_channel``
        is not a fusion channel of some exchanged pair. Nothing is returned
        for a partially applied braid.
    """
    if len(anyons) != braid.strand_count:
        raise ValidationError(
            "anyons",
            f"braid has {braid.strand_count} strands but {len(anyons)} anyons were provided",
        )
    row = [canonical(p, anyon_type) for p in anyons]
    channel = canonical(final_channel, anyon_type)
    r_data = compute_r_matrix(anyon_type)

    total = 1.0 + 0j
    steps: List[BraidStep] = []
    for g in braid.generators:
        a, b = row[g.index], row[g.index + 1]
        if channel not in fusion_channels(a, b, anyon_type):
            raise ValidationError(
                "final_channel",
                f"{channel} is not a fusion channel of {a} × {b} in {anyon_type}",
            )
        ph = braid_phase(r_data, a, b, channel, g.clockwise)
        total *= ph
        steps.append(BraidStep(g, a, b, ph))
        row[g.index], row[g.index + 1] = b, a

    logger.debug("Applied %d generator(s) on %d strands, phase %s", len(steps), braid.strand_count, total)
    return BraidResult(braid, total, tuple(steps))


# =============================================================================
# Verification
# =============================================================================

def verify_inverse(
    braid: Braid, anyons: Sequence[Particle], channel: Particle, anyon_type: AnyonType,
    tol: float = EXACT_TOLERANCE,
) -> bool:
    """``braid · braid⁻¹`` applied to ``anyons`` has phase 1."""
    result = apply_braid(compose(braid, inverse(braid)), anyons, channel, anyon_type)
    return abs(result.phase - 1.0) < tol


def _check_yang_baxter_index(i: int, n: int) -> None:
    if not 0 <= i < n - 2:
        raise ValidationError("index", f"Yang-Baxter check requires 0 <= i < {n - 2}, got {i}")


def verify_yang_baxter(
    i: int, n: int, anyons: Sequence[Particle], channel: Particle, anyon_type: AnyonType,
    tol: float = EXACT_TOLERANCE,
) -> bool:
    """Compare the phases of σ_i σ_{i+1} σ_i and σ_{i+1} σ_i σ_{i+1}.

    Raises
    ------
    ValidationError
        If ``i`` is not in [0, n-3], or from :func:`apply_braid`.
    """
    _check_yang_baxter_index(i, n)
    left = from_generators(n, [sigma(i), sigma(i + 1), sigma(i)])
    right = from_generators(n, [sigma(i + 1), sigma(i), sigma(i + 1)])
    lhs = apply_braid(left, anyons, channel, anyon_type).phase
    rhs = apply_braid(right, anyons, channel, anyon_type).phase
    return abs(lhs - rhs) < tol


def verify_yang_baxter_all_channels(
    i: int, n: int, anyons: Sequence[Particle], anyon_type: AnyonType,
    tol: float = EXACT_TOLERANCE,
) -> bool:
    """:func:`verify_yang_baxter` for every channel of ``anyons[i] × anyons[i+1]``."""
    _check_yang_baxter_index(i, n)
    return all(
        verify_yang_baxter(i, n, anyons, c, anyon_type, tol)
        for c in fusion_channels(anyons[i], anyons[i + 1], anyon_type)
    )


# =============================================================================
# Display
# =============================================================================

def to_str(braid: Braid) -> str:
    if not braid.generators:
        return f"Identity ({braid.strand_count} strands)"
    word = " ".join(str(g) for g in braid.generators)
    return f"{word} ({braid.strand_count} strands)"


def format_braid_result(result: BraidResult) -> str:
    angle = math.degrees(cmath.phase(result.phase))
    lines = [
        f"Braid: {to_str(result.braid)}",
        f"Final Phase: {abs(result.phase):.6f}∠{angle:.2f}°",
    ]
    if result.steps:
        lines.append("Steps:")
        lines.extend(f"  {step}" for step in result.steps)
    return "\n".join(lines)
