# src/topostim/compile/__init__.py
"""
Compilation between qubit gate sequences and anyon braids.

Modules
-------
- gates: Gate / GateSequence model with stim conversion
- solovay_kitaev: approximation of single-qubit unitaries over a finite alphabet
- gate_to_braid: gate sequences -> braid words per anyon theory
- braid_to_gate: braid words -> gate sequences, optimisation passes
- error_budget: error accumulation models, budgets and reports
- magic_state: 15-to-1 distillation and resource estimates for injected T gates

Usage
-----
>>> import stim
>>> from topostim.anyons import FIBONACCI
>>> from topostim.compile import GateSequence, compile_gate_sequence
>>> seq = GateSequence.from_stim_circuit(stim.Circuit("H 0\\nCX 0 1"))
>>> result = compile_gate_sequence(seq, precision=1e-2, anyon_type=FIBONACCI)
>>> result.flatten().strand_count
6
"""

from topostim.compile.gates import (
    SINGLE_QUBIT_CLIFFORDS,
    SINGLE_QUBIT_ROTATIONS,
    SINGLE_QUBIT_GATES,
    TWO_QUBIT_GATES,
    NON_UNITARY,
    Gate,
    GateSequence,
    gate_matrix,
    named_unitary,
    u3_matrix,
    make_sequence,
    calculate_depth,
    count_t_gates,
    is_clifford,
)
from topostim.compile.solovay_kitaev import (
    SolovayKitaevConfig,
    Alphabet,
    ApproximationResult,
    BaseSet,
    operator_distance,
    word_matrix,
    build_base_set,
    find_closest_in_base_set,
    find_commutator_factorization,
    balanced_commutator,
    approximate_gate,
    approximate_with_config,
    clifford_t_alphabet,
)
from topostim.compile.gate_to_braid import (
    CompilationOptions,
    GateDecomposition,
    GateSequenceCompilation,
    strand_count,
    generator_images,
    braid_alphabet,
    word_to_braid,
    entangling_braid,
    compile_gate,
    compile_gate_sequence,
    format_gate_decomposition,
    format_compilation_summary,
)
from topostim.compile.braid_to_gate import (
    compile_to_gates,
    matrix_to_gate,
    u3_parameters,
    cancel_inverses,
    merge_rotations,
    fuse_phase_gates,
    optimize_gates,
)
from topostim.compile.error_budget import (
    ErrorModel,
    GateError,
    ErrorAccumulation,
    ErrorBudget,
    QualityAssessment,
    DEFAULT_BUDGET,
    STRICT_BUDGET,
    RELAXED_BUDGET,
    calculate_total_error,
    track_errors,
    assess_quality,
    suggest_optimizations,
    format_accumulation,
    format_quality_assessment,
    generate_report,
)
from topostim.compile.magic_state import (
    MagicState,
    DistillationResult,
    ResourceEstimate,
    MagicStateRequirement,
    prepare_noisy_magic_state,
    distilled_fidelity,
    distill_15_to_1,
    distill_iterative,
    estimate_resources,
    estimate_compilation_resources,
    format_magic_state,
    format_distillation_result,
    format_resource_estimate,
)

__all__ = [
    # Gates
    "SINGLE_QUBIT_CLIFFORDS",
    "SINGLE_QUBIT_ROTATIONS",
    "SINGLE_QUBIT_GATES",
    "TWO_QUBIT_GATES",
    "NON_UNITARY",
    "Gate",
    "GateSequence",
    "gate_matrix",
    "named_unitary",
    "u3_matrix",
    "make_sequence",
    "calculate_depth",
    "count_t_gates",
    "is_clifford",
    # Solovay-Kitaev
    "SolovayKitaevConfig",
    "Alphabet",
    "ApproximationResult",
    "BaseSet",
    "operator_distance",
    "word_matrix",
    "build_base_set",
    "find_closest_in_base_set",
    "find_commutator_factorization",
    "balanced_commutator",
    "approximate_gate",
    "approximate_with_config",
    "clifford_t_alphabet",
    # Gate -> braid
    "CompilationOptions",
    "GateDecomposition",
    "GateSequenceCompilation",
    "strand_count",
    "generator_images",
    "braid_alphabet",
    "word_to_braid",
    "entangling_braid",
    "compile_gate",
    "compile_gate_sequence",
    "format_gate_decomposition",
    "format_compilation_summary",
    # Braid -> gate
    "compile_to_gates",
    "matrix_to_gate",
    "u3_parameters",
    "cancel_inverses",
    "merge_rotations",
    "fuse_phase_gates",
    "optimize_gates",
    # Error budget
    "ErrorModel",
    "GateError",
    "ErrorAccumulation",
    "ErrorBudget",
    "QualityAssessment",
    "DEFAULT_BUDGET",
    "STRICT_BUDGET",
    "RELAXED_BUDGET",
    "calculate_total_error",
    "track_errors",
    "assess_quality",
    "suggest_optimizations",
    "format_accumulation",
    "format_quality_assessment",
    "generate_report",
    # Magic states
    "MagicState",
    "DistillationResult",
    "ResourceEstimate",
    "MagicStateRequirement",
    "prepare_noisy_magic_state",
    "distilled_fidelity",
    "distill_15_to_1",
    "distill_iterative",
    "estimate_resources",
    "estimate_compilation_resources",
    "format_magic_state",
    "format_distillation_result",
    "format_resource_estimate",
]
