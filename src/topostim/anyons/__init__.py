# src/topostim/anyons/__init__.py
"""
Anyon models: particle content, fusion rules and the F/R-symbols.

This package provides the algebraic data every other topostim module is
built on.

Usage
-----
>>> from topostim.anyons import ISING, SIGMA, VACUUM, compute_f_matrix, get_f_symbol
>>> data = compute_f_matrix(ISING)
>>> get_f_symbol(data, SIGMA, SIGMA, SIGMA, SIGMA, VACUUM, VACUUM)
0.7071067811865475

Available Theories
------------------
- ISING: {1, σ, ψ}
- FIBONACCI: {1, τ}
- AnyonType.su2(k): spins 0..k/2 (SU(2)_2 delegates to Ising)
"""

from topostim.anyons.particles import (
    AnyonFamily,
    AnyonType,
    ISING,
    FIBONACCI,
    su2_level,
    ParticleKind,
    Particle,
    VACUUM,
    SIGMA,
    PSI,
    TAU,
    spin_j,
    FusionOutcome,
    validate_anyon_type,
    particles,
    vacuum,
    canonical,
    is_valid_particle,
    fuse,
    fusion_channels,
    multiplicity,
    is_possible,
    same_charge,
    quantum_dimension,
    total_quantum_dimension,
    conformal_weight,
    topological_spin,
    antiparticle,
    frobenius_schur_indicator,
)
from topostim.anyons.fmatrix import (
    FMatrixData,
    MAX_SU2_LEVEL,
    compute_f_matrix,
    get_f_symbol,
    f_value,
    f_block,
    is_valid_f_index,
    racah_6j,
    verify_f_matrix_unitarity,
    pentagon_deviation,
    verify_pentagon,
    validate_f_matrix,
)
from topostim.anyons.rmatrix import (
    RMatrixData,
    compute_r_matrix,
    get_r_symbol,
    r_value,
    braid_phase,
    verify_r_unitarity,
    verify_ribbon,
    hexagon_deviation,
    verify_hexagon,
    validate_r_matrix,
)
from topostim.anyons.modular import (
    ModularData,
    compute_s_matrix,
    compute_t_matrix,
    central_charge,
    compute_modular_data,
    verify_s_matrix_unitary,
    verify_t_matrix_diagonal,
    verify_modular_st_relation,
    verify_modular_data,
    ground_state_degeneracy,
    topological_entropy,
)

__all__ = [
    # Theories and particles
    "AnyonFamily",
    "AnyonType",
    "ISING",
    "FIBONACCI",
    "su2_level",
    "ParticleKind",
    "Particle",
    "VACUUM",
    "SIGMA",
    "PSI",
    "TAU",
    "spin_j",
    "FusionOutcome",
    "validate_anyon_type",
    "particles",
    "vacuum",
    "canonical",
    "is_valid_particle",
    "fuse",
    "fusion_channels",
    "multiplicity",
    "is_possible",
    "same_charge",
    "quantum_dimension",
    "total_quantum_dimension",
    "conformal_weight",
    "topological_spin",
    "antiparticle",
    "frobenius_schur_indicator",
    # F-symbols
    "FMatrixData",
    "MAX_SU2_LEVEL",
    "compute_f_matrix",
    "get_f_symbol",
    "f_value",
    "f_block",
    "is_valid_f_index",
    "racah_6j",
    "verify_f_matrix_unitarity",
    "pentagon_deviation",
    "verify_pentagon",
    "validate_f_matrix",
    # R-symbols
    "RMatrixData",
    "compute_r_matrix",
    "get_r_symbol",
    "r_value",
    "braid_phase",
    "verify_r_unitarity",
    "verify_ribbon",
    "hexagon_deviation",
    "verify_hexagon",
    "validate_r_matrix",
    # Modular data
    "ModularData",
    "compute_s_matrix",
    "compute_t_matrix",
    "central_charge",
    "compute_modular_data",
    "verify_s_matrix_unitary",
    "verify_t_matrix_diagonal",
    "verify_modular_st_relation",
    "verify_modular_data",
    "ground_state_degeneracy",
    "topological_entropy",
]
