# src/topostim/anyons/modular.py
"""
Modular data (S and T matrices) and the invariants derived from it.

S is computed from fusion rules, quantum dimensions and twists::

    S_ab = (1/D) sum_c N^c_{a b} (θ_c / (θ_a θ_b)) d_c

(all supported theories are self-dual), and T = diag(θ_a). For a modular
theory S is symmetric and unitary and (ST)^3 is proportional to S^2.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from topostim.anyons.particles import (
    AnyonFamily,
    AnyonType,
    Particle,
    multiplicity,
    particles,
    quantum_dimension,
    topological_spin,
    total_quantum_dimension,
)
from topostim.utils.errors import ValidationError
from topostim.utils.numerics import EXACT_TOLERANCE


@dataclass(frozen=True)
class ModularData:
    """S/T matrices, central charge and the particle order indexing them."""
    s_matrix: np.ndarray
    t_matrix: np.ndarray
    central_charge: float
    particles: Tuple[Particle, ...]


def compute_s_matrix(anyon_type: AnyonType) -> np.ndarray:
    ps = particles(anyon_type)
    total = total_quantum_dimension(anyon_type)
    n = len(ps)
    s = np.zeros((n, n), dtype=complex)
    for i, a in enumerate(ps):
        for j, b in enumerate(ps):
            theta_ab = topological_spin(a, anyon_type) * topological_spin(b, anyon_type)
            s[i, j] = sum(
                multiplicity(a, b, c, anyon_type)
                * topological_spin(c, anyon_type) / theta_ab
                * quantum_dimension(c, anyon_type)
                for c in ps
            ) / total
    return s


def compute_t_matrix(anyon_type: AnyonType) -> np.ndarray:
    return np.diag([topological_spin(p, anyon_type) for p in particles(anyon_type)])


def central_charge(anyon_type: AnyonType) -> float:
    """Chiral central charge: 1/2 (Ising), 14/5 (Fibonacci), 3k/(k+2)."""
    if anyon_type.is_ising_like:
        return 0.5
    if anyon_type.family == AnyonFamily.FIBONACCI:
        return 2.8
    k = anyon_type.level
    return 3.0 * k / (k + 2)


def compute_modular_data(anyon_type: AnyonType) -> ModularData:
    return ModularData(
        s_matrix=compute_s_matrix(anyon_type),
        t_matrix=compute_t_matrix(anyon_type),
        central_charge=central_charge(anyon_type),
        particles=particles(anyon_type),
    )


def verify_s_matrix_unitary(s: np.ndarray, tol: float = EXACT_TOLERANCE) -> bool:
    return bool(np.allclose(s @ s.conj().T, np.eye(s.shape[0]), atol=tol, rtol=0.0))


def verify_t_matrix_diagonal(t: np.ndarray, tol: float = EXACT_TOLERANCE) -> bool:
    off_diagonal = t - np.diag(np.diag(t))
    if np.max(np.abs(off_diagonal)) > tol:
        return False
    return bool(np.allclose(np.abs(np.diag(t)), 1.0, atol=tol, rtol=0.0))


def verify_modular_st_relation(s: np.ndarray, t: np.ndarray, tol: float = EXACT_TOLERANCE) -> bool:
    """Check (ST)^3 = e^{iφ} S^2 for a single global phase e^{iφ}."""
    st = s @ t
    st3 = st @ st @ st
    s2 = s @ s
    idx = np.argwhere(np.abs(s2) > tol)
    if len(idx) == 0:
        return False
    i, j = idx[0]
    global_phase = st3[i, j] / s2[i, j]
    return bool(np.allclose(st3, global_phase * s2, atol=tol, rtol=0.0))


def verify_modular_data(data: ModularData) -> bool:
    return (
        verify_s_matrix_unitary(data.s_matrix)
        and verify_t_matrix_diagonal(data.t_matrix)
        and verify_modular_st_relation(data.s_matrix, data.t_matrix)
    )


def ground_state_degeneracy(anyon_type: AnyonType, genus: int) -> int:
    """Dimension of the ground space on a closed genus-g surface.

    ``sum_a S_0a^(2 - 2g)``: 1 on the sphere, the number of particle types
    on the torus.

    Raises
    ------
    ValidationError
        If ``genus`` is negative.
    """
    if genus < 0:
        raise ValidationError("genus", f"genus must be non-negative, got {genus}")
    s = compute_s_matrix(anyon_type)
    power = 2 - 2 * genus
    total = sum((s[0, a].real) ** power for a in range(s.shape[0]))
    return int(round(total))


def topological_entropy(anyon_type: AnyonType) -> float:
    """Topological entanglement entropy γ = ln D."""
    return math.log(total_quantum_dimension(anyon_type))
