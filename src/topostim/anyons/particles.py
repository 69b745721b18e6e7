# src/topostim/anyons/particles.py
"""
Particle content and fusion rules of the supported anyon theories.

Three families are modelled:

- Ising: {1, σ, ψ} with σ×σ = 1+ψ, σ×ψ = σ, ψ×ψ = 1
- Fibonacci: {1, τ} with τ×τ = 1+τ
- SU(2)_k: spins j = 0, 1/2, ..., k/2 with the truncated Clebsch-Gordan rule
  |j1-j2| <= j3 <= min(j1+j2, k-j1-j2)

Spins are stored doubled (``twice_j``) so that every label is an integer.
``VACUUM`` is accepted by every theory; inside SU(2)_k it is the same charge
as ``spin_j(0, k)``. SU(2)_2 is delegated to Ising: its labels j = 0, 1/2, 1
are identified with 1, σ, ψ and every derived quantity (fusion, F, R, spins)
is the Ising one.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import List, Tuple

from topostim.utils.errors import ValidationError
from topostim.utils.numerics import PHI, phase, q_number


class AnyonFamily(Enum):
    """Anyon theory families."""
    ISING = "ising"
    FIBONACCI = "fibonacci"
    SU2 = "su2"


@dataclass(frozen=True)
class AnyonType:
    """Selects the active theory.

    Attributes
    ----------
    family : AnyonFamily
        Which family of theories.
    level : int
        Level k for SU(2)_k, ignored otherwise.
    """
    family: AnyonFamily
    level: int = 0

    @classmethod
    def su2(cls, level: int) -> "AnyonType":
        return cls(AnyonFamily.SU2, level)

    @property
    def is_ising_like(self) -> bool:
        """True for Ising and for SU(2)_2, which delegates to Ising."""
        return self.family == AnyonFamily.ISING or (
            self.family == AnyonFamily.SU2 and self.level == 2
        )

    def __str__(self) -> str:
        if self.family == AnyonFamily.ISING:
            return "Ising"
        if self.family == AnyonFamily.FIBONACCI:
            return "Fibonacci"
        return f"SU(2)_{self.level}"


ISING = AnyonType(AnyonFamily.ISING)
FIBONACCI = AnyonType(AnyonFamily.FIBONACCI)


def su2_level(level: int) -> AnyonType:
    """Shorthand for ``AnyonType.su2(level)``."""
    return AnyonType.su2(level)


class ParticleKind(Enum):
    VACUUM = "1"
    SIGMA = "σ"
    PSI = "ψ"
    TAU = "τ"
    SPIN_J = "j"


@dataclass(frozen=True)
class Particle:
    """An anyon label. Only meaningful together with an :class:`AnyonType`.

    Attributes
    ----------
    kind : ParticleKind
        The label family.
    twice_j : int
        Doubled spin for ``SPIN_J`` particles.
    level : int
        SU(2)_k level the spin belongs to.
    """
    kind: ParticleKind
    twice_j: int = 0
    level: int = 0

    def __str__(self) -> str:
        if self.kind != ParticleKind.SPIN_J:
            return self.kind.value
        if self.twice_j % 2 == 0:
            return f"j={self.twice_j // 2}"
        return f"j={self.twice_j}/2"

    def __repr__(self) -> str:
        if self.kind == ParticleKind.SPIN_J:
            return f"spin_j({self.twice_j}, {self.level})"
        return self.kind.name


VACUUM = Particle(ParticleKind.VACUUM)
SIGMA = Particle(ParticleKind.SIGMA)
PSI = Particle(ParticleKind.PSI)
TAU = Particle(ParticleKind.TAU)

_ISING_BY_SPIN = (VACUUM, SIGMA, PSI)


def spin_j(twice_j: int, level: int) -> Particle:
    """SU(2)_k particle with spin ``twice_j / 2``."""
    return Particle(ParticleKind.SPIN_J, twice_j, level)


@dataclass(frozen=True)
class FusionOutcome:
    """One channel of a fusion product, with its multiplicity N^c_ab."""
    result: Particle
    multiplicity: int = 1


# =============================================================================
# Theory validation
# =============================================================================

def validate_anyon_type(anyon_type: AnyonType) -> None:
    if not isinstance(anyon_type, AnyonType):
        raise ValidationError("anyon_type", f"expected AnyonType, got {anyon_type!r}")
    if anyon_type.family == AnyonFamily.SU2 and anyon_type.level < 1:
        raise ValidationError(
            "anyon_type", f"SU(2)_k requires level k >= 1, got {anyon_type.level}"
        )


@lru_cache(maxsize=None)
def particles(anyon_type: AnyonType) -> Tuple[Particle, ...]:
    """All particle types of the theory, vacuum first, in canonical order."""
    validate_anyon_type(anyon_type)
    if anyon_type.is_ising_like:
        return (VACUUM, SIGMA, PSI)
    if anyon_type.family == AnyonFamily.FIBONACCI:
        return (VACUUM, TAU)
    k = anyon_type.level
    return tuple(spin_j(j, k) for j in range(k + 1))


def vacuum(anyon_type: AnyonType) -> Particle:
    """Canonical vacuum label of the theory."""
    return particles(anyon_type)[0]


def canonical(particle: Particle, anyon_type: AnyonType) -> Particle:
    """Map ``particle`` to the canonical label used by ``anyon_type``.

    Raises
    ------
    ValidationError
        If the particle does not belong to the theory.
    """
    validate_anyon_type(anyon_type)
    if not isinstance(particle, Particle):
        raise ValidationError("particle", f"expected Particle, got {particle!r}")
    kind = particle.kind

    if anyon_type.family == AnyonFamily.ISING:
        if kind in (ParticleKind.VACUUM, ParticleKind.SIGMA, ParticleKind.PSI):
            return particle
        raise ValidationError(
            "particle", f"{particle!r} is not a valid particle for Ising anyons"
        )

    if anyon_type.family == AnyonFamily.FIBONACCI:
        if kind in (ParticleKind.VACUUM, ParticleKind.TAU):
            return particle
        raise ValidationError(
            "particle", f"{particle!r} is not a valid particle for Fibonacci anyons"
        )

    k = anyon_type.level
    if kind == ParticleKind.VACUUM:
        return particles(anyon_type)[0]
    if kind == ParticleKind.SPIN_J:
        if particle.level != k:
            raise ValidationError(
                "particle",
                f"{particle!r} belongs to SU(2)_{particle.level}, not SU(2)_{k}",
            )
        if not 0 <= particle.twice_j <= k:
            raise ValidationError(
                "particle", f"spin 2j={particle.twice_j} out of range [0, {k}]"
            )
        if k == 2:
            return _ISING_BY_SPIN[particle.twice_j]
        return particle
    if k == 2 and kind in (ParticleKind.SIGMA, ParticleKind.PSI):
        return particle
    raise ValidationError(
        "particle", f"{particle!r} cannot be mixed with SU(2)_{k} particles"
    )


def is_valid_particle(particle: Particle, anyon_type: AnyonType) -> bool:
    try:
        canonical(particle, anyon_type)
    except ValidationError:
        return False
    return True


# =============================================================================
# Fusion rules
# =============================================================================

@lru_cache(maxsize=None)
def _fuse_canonical(a: Particle, b: Particle, anyon_type: AnyonType) -> Tuple[FusionOutcome, ...]:
    if a == VACUUM or (a.kind == ParticleKind.SPIN_J and a.twice_j == 0):
        return (FusionOutcome(b),)
    if b == VACUUM or (b.kind == ParticleKind.SPIN_J and b.twice_j == 0):
        return (FusionOutcome(a),)

    if anyon_type.is_ising_like:
        if a == SIGMA and b == SIGMA:
            return (FusionOutcome(VACUUM), FusionOutcome(PSI))
        if a == PSI and b == PSI:
            return (FusionOutcome(VACUUM),)
        # σ×ψ = ψ×σ = σ
        return (FusionOutcome(SIGMA),)

    if anyon_type.family == AnyonFamily.FIBONACCI:
        return (FusionOutcome(VACUUM), FusionOutcome(TAU))

    k = anyon_type.level
    j1, j2 = a.twice_j, b.twice_j
    low = abs(j1 - j2)
    high = min(j1 + j2, 2 * k - j1 - j2)
    return tuple(FusionOutcome(spin_j(j3, k)) for j3 in range(low, high + 1, 2))


def fuse(a: Particle, b: Particle, anyon_type: AnyonType) -> List[FusionOutcome]:
    """Fusion outcomes of ``a × b`` in canonical order.

    Raises
    ------
    ValidationError
        If either particle does not belong to ``anyon_type``.
    """
    a = canonical(a, anyon_type)
    b = canonical(b, anyon_type)
    return list(_fuse_canonical(a, b, anyon_type))


def fusion_channels(a: Particle, b: Particle, anyon_type: AnyonType) -> List[Particle]:
    """Particles appearing in ``a × b``."""
    return [outcome.result for outcome in fuse(a, b, anyon_type)]


def multiplicity(a: Particle, b: Particle, c: Particle, anyon_type: AnyonType) -> int:
    """Fusion multiplicity N^c_ab."""
    c = canonical(c, anyon_type)
    return sum(o.multiplicity for o in fuse(a, b, anyon_type) if o.result == c)


def is_possible(a: Particle, b: Particle, c: Particle, anyon_type: AnyonType) -> bool:
    return multiplicity(a, b, c, anyon_type) > 0


def same_charge(a: Particle, b: Particle, anyon_type: AnyonType) -> bool:
    """Label equality up to the theory's identifications (e.g. 1 == j=0)."""
    return canonical(a, anyon_type) == canonical(b, anyon_type)


# =============================================================================
# Quantum dimensions, spins, duality
# =============================================================================

def quantum_dimension(particle: Particle, anyon_type: AnyonType) -> float:
    """Quantum dimension d_a (√2 for σ, φ for τ, [2j+1]_q for SU(2)_k)."""
    p = canonical(particle, anyon_type)
    if anyon_type.is_ising_like:
        return math.sqrt(2.0) if p == SIGMA else 1.0
    if anyon_type.family == AnyonFamily.FIBONACCI:
        return PHI if p == TAU else 1.0
    return q_number(p.twice_j + 1, anyon_type.level)


def total_quantum_dimension(anyon_type: AnyonType) -> float:
    """D = sqrt(sum_a d_a^2)."""
    return math.sqrt(sum(quantum_dimension(p, anyon_type) ** 2 for p in particles(anyon_type)))


def conformal_weight(particle: Particle, anyon_type: AnyonType) -> float:
    """Topological spin exponent h_a, with θ_a = exp(2πi h_a)."""
    p = canonical(particle, anyon_type)
    if anyon_type.is_ising_like:
        return {VACUUM: 0.0, SIGMA: 1.0 / 16.0, PSI: 0.5}[p]
    if anyon_type.family == AnyonFamily.FIBONACCI:
        return 0.4 if p == TAU else 0.0
    k = anyon_type.level
    return p.twice_j * (p.twice_j + 2) / (4.0 * (k + 2))


def topological_spin(particle: Particle, anyon_type: AnyonType) -> complex:
    """Twist eigenvalue θ_a."""
    return phase(2.0 * math.pi * conformal_weight(particle, anyon_type))


def antiparticle(particle: Particle, anyon_type: AnyonType) -> Particle:
    """Dual particle. Every supported theory is self-dual."""
    return canonical(particle, anyon_type)


def frobenius_schur_indicator(particle: Particle, anyon_type: AnyonType) -> int:
    """Frobenius-Schur indicator κ_a of a self-dual particle.

    Equals ``d_a * F[a,a,a,a;1,1]`` in the gauge used by ``fmatrix``:
    +1 for every Ising and Fibonacci particle, (-1)^{2j} for SU(2)_k.
    """
    p = canonical(particle, anyon_type)
    if anyon_type.family == AnyonFamily.SU2 and not anyon_type.is_ising_like:
        return -1 if p.twice_j % 2 else 1
    return 1
