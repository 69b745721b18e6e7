# src/topostim/compile/gate_to_braid.py
"""
Compile qubit gate sequences into braid words.

Layout
------
Qubit q is carried by strands 2q and 2q+1 (a pair of qubit anyons fused to
the vacuum for |0⟩ and to the next channel for |1⟩); a sequence over n
qubits is compiled onto 2n + 2 strands, the last pair holding the Ising
parity / Fibonacci ancilla charge.

Single-qubit alphabet
---------------------
Two braid generators act non-trivially on qubit q:

- σ_{2q} (intra-pair) is diagonal: diag(R[l,l;c0], R[l,l;c1])
- σ_{2q+1} (inter-pair) is its F-conjugate: (F^T)^-1 diag(R) F^T with
  F = F^{l l l}_l

Their inverses complete a four-letter alphabet searched by Solovay-Kitaev.

Per theory
----------
- Ising (and SU(2)_2): S, S†, Z are one or two σ_{2q} exchanges. T and T†
  are not braid-realisable and are intercepted (no braids, one magic state
  each). Every other gate is searched; Cliffords come out exact.
- Fibonacci and SU(2)_k, k >= 3: every single-qubit gate is searched.
  SU(2)_4 braiding is not universal and a warning is recorded.
- SU(2)_1 has a single fusion channel per pair and cannot encode a qubit.

Two-qubit gates are rewritten into single-qubit gates around one entangling
braid: CZ = S·S · E · S†·S†, CNOT = H(t) CZ H(t), SWAP = three CNOTs.
Measurement and barriers produce no braids; reset is rejected.
"""
from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional, Tuple

import numpy as np

from topostim.anyons.fmatrix import compute_f_matrix, f_block
from topostim.anyons.particles import AnyonFamily, AnyonType, ISING
from topostim.anyons.rmatrix import compute_r_matrix, get_r_symbol
from topostim.braids.braid_group import Braid, BraidGenerator, compose, identity, sigma, sigma_inv
from topostim.compile.gates import Gate, GateSequence, gate_matrix
from topostim.compile.solovay_kitaev import Alphabet, approximate_gate
from topostim.fusion.tree import qubit_channels, qubit_leaf
from topostim.utils.errors import LogicError, NotImplementedTheoryError, ValidationError

logger = logging.getLogger(__name__)

EXACT_THRESHOLD = 1e-10


@dataclass(frozen=True)
class CompilationOptions:
    """Knobs shared by the gate-to-braid and braid-to-gate compilers.

    Attributes
    ----------
    precision : float
        Target phase-invariant distance per approximated gate.
    optimization_level : int
        Optimisation passes applied by the braid-to-gate direction: 0 none,
        1 inverse cancellation and rotation merging, 2 also phase-gate
        fusion.
    sk_base_length : int
        Longest braid word enumerated into the Solovay-Kitaev base set.
    sk_max_depth : int
        Solovay-Kitaev recursion limit.
    """
    precision: float = 1e-3
    optimization_level: int = 1
    sk_base_length: int = 4
    sk_max_depth: int = 3

    def __post_init__(self):
        if self.precision <= 0:
            raise ValidationError("precision", f"must be positive, got {self.precision}")
        if self.optimization_level not in (0, 1, 2):
            raise ValidationError(
                "optimization_level", f"must be 0, 1 or 2, got {self.optimization_level}"
            )


@dataclass
class GateDecomposition:
    """Braids realising one input gate.

    Attributes
    ----------
    gate : Gate
        The compiled gate.
    braids : list of Braid
        Braid words in application order; empty for intercepted gates,
        measurement and barriers.
    error : float
        Approximation error (0 for exact decompositions).
    method : str
        ``"exact"``, ``"solovay-kitaev"``, ``"intercepted"`` or ``"none"``.
    magic_states : int
        Magic states consumed in place of braiding.
    note : str, optional
        Caveat reported in the compilation warnings.
    """
    gate: Gate
    braids: List[Braid] = field(default_factory=list)
    error: float = 0.0
    method: str = "exact"
    magic_states: int = 0
    note: Optional[str] = None

    @property
    def is_exact(self) -> bool:
        return self.error < EXACT_THRESHOLD

    @property
    def generator_count(self) -> int:
        return sum(len(b) for b in self.braids)


@dataclass
class GateSequenceCompilation:
    """Result of :func:`compile_gate_sequence`."""
    original_gate_count: int
    decompositions: List[GateDecomposition]
    braids: List[Braid]
    total_error: float
    is_exact: bool
    anyon_type: AnyonType
    strand_count: int
    warnings: List[str] = field(default_factory=list)
    magic_state_count: int = 0

    @property
    def generator_count(self) -> int:
        return sum(len(b) for b in self.braids)

    def flatten(self) -> Braid:
        """All braids composed into one word."""
        result = identity(self.strand_count)
        for b in self.braids:
            result = compose(result, b)
        return result


# =============================================================================
# Layout and alphabets
# =============================================================================

def strand_count(num_qubits: int) -> int:
    """Strands needed for ``num_qubits`` qubits: two per qubit plus one ancilla pair."""
    if num_qubits < 1:
        raise ValidationError("num_qubits", f"need at least one qubit, got {num_qubits}")
    return 2 * num_qubits + 2


def _check_compilable(anyon_type: AnyonType) -> None:
    if anyon_type.family == AnyonFamily.SU2 and anyon_type.level == 1:
        raise NotImplementedTheoryError(
            f"gate compilation for {anyon_type}",
            "SU(2)_1 pairs have a single fusion channel and cannot encode a qubit",
        )
    # Raises NotImplementedTheoryError for levels without symbol tables.
    compute_f_matrix(anyon_type)


def generator_images(anyon_type: AnyonType) -> Tuple[np.ndarray, np.ndarray]:
    """2x2 images of the intra-pair and inter-pair generators on one qubit."""
    _check_compilable(anyon_type)
    leaf = qubit_leaf(anyon_type)
    zero, one = qubit_channels(anyon_type)
    r_data = compute_r_matrix(anyon_type)
    intra = np.diag([get_r_symbol(r_data, leaf, leaf, zero), get_r_symbol(r_data, leaf, leaf, one)])

    block, rows, cols = f_block(compute_f_matrix(anyon_type), leaf, leaf, leaf, leaf)
    order = [rows.index(zero), rows.index(one)]
    f = block[np.ix_(order, order)]
    f_t = f.T
    inter = np.linalg.inv(f_t) @ intra @ f_t
    return intra.astype(complex), inter.astype(complex)


@lru_cache(maxsize=None)
def braid_alphabet(anyon_type: AnyonType) -> Alphabet:
    """Four-letter alphabet {σ_a, σ_a⁻¹, σ_b, σ_b⁻¹} for one qubit."""
    intra, inter = generator_images(anyon_type)
    return Alphabet(
        f"{anyon_type} braids",
        ("σa", "σa⁻¹", "σb", "σb⁻¹"),
        (intra, intra.conj().T, inter, inter.conj().T),
        (1, 0, 3, 2),
    )


def _symbol_generator(symbol: int, qubit: int) -> BraidGenerator:
    index = 2 * qubit + (symbol // 2)
    return sigma(index) if symbol % 2 == 0 else sigma_inv(index)


def word_to_braid(word, qubit: int, num_qubits: int) -> Braid:
    """Map an alphabet word onto the strands of ``qubit``."""
    return Braid(strand_count(num_qubits), tuple(_symbol_generator(s, qubit) for s in word))


# =============================================================================
# Single-qubit gates
# =============================================================================

def _exact_ising(name: str, qubit: int, n: int) -> Optional[Braid]:
    strands = strand_count(n)
    g = 2 * qubit
    if name == "I":
        return Braid(strands, ())
    if name == "S":
        return Braid(strands, (sigma(g),))
    if name == "S_DAG":
        return Braid(strands, (sigma_inv(g),))
    if name == "Z":
        return Braid(strands, (sigma(g), sigma(g)))
    return None


@lru_cache(maxsize=256)
def _search(
    anyon_type: AnyonType, name: str, params: Tuple[float, ...], precision: float,
    base_length: int, max_depth: int,
) -> Tuple[Tuple[int, ...], float]:
    target = gate_matrix(Gate(name, (0,), params))
    result = approximate_gate(
        target, precision, base_length, max_depth, alphabet=braid_alphabet(anyon_type),
    )
    logger.debug(
        "%s on %s: %d generators, error %.3e, depth %d",
        name, anyon_type, result.gate_count, result.error, result.depth,
    )
    return result.word, result.error


def compile_single_qubit_gate(
    gate: Gate, num_qubits: int, anyon_type: AnyonType,
    options: Optional[CompilationOptions] = None,
) -> GateDecomposition:
    """Braids for a single-qubit gate on the layout of ``num_qubits`` qubits.

    With Ising anyons S, S† and Z are single-pair words, and T and T† are
    handed to magic-state injection. Every other gate goes through the
    Solovay-Kitaev search over the generator images. For Ising those images
    are S and √X, which generate the single-qubit Clifford group, so H, X
    and Y are found exactly (error 0, method ``"exact"``) rather than with a
    residual. Non-Clifford rotations still carry a non-zero error.
    """
    options = options or CompilationOptions()
    q = gate.qubits[0]
    if anyon_type.is_ising_like:
        if gate.name in ("T", "T_DAG"):
            return GateDecomposition(
                gate, [], 0.0, "intercepted", magic_states=1,
                note=f"{gate.name} on qubit {q} is not braid-realisable with Ising anyons; "
                     "applied by magic-state injection",
            )
        exact = _exact_ising(gate.name, q, num_qubits)
        if exact is not None:
            return GateDecomposition(gate, [exact], 0.0, "exact")

    word, error = _search(
        anyon_type, gate.name, gate.params, options.precision,
        options.sk_base_length, options.sk_max_depth,
    )
    if error < EXACT_THRESHOLD:
        error = 0.0
    method = "exact" if error == 0.0 else "solovay-kitaev"
    return GateDecomposition(gate, [word_to_braid(word, q, num_qubits)], error, method)


# =============================================================================
# Two-qubit gates
# =============================================================================

def entangling_braid(a: int, b: int, num_qubits: int) -> Braid:
    """Generators σ_{2lo+1} ... σ_{2hi-1} linking the pairs of qubits a and b."""
    lo, hi = min(a, b), max(a, b)
    return Braid(strand_count(num_qubits), tuple(sigma(i) for i in range(2 * lo + 1, 2 * hi)))


def _merge(gate: Gate, parts: List[GateDecomposition]) -> GateDecomposition:
    braids = [b for p in parts for b in p.braids]
    error = sum(p.error for p in parts)
    method = "exact" if error < EXACT_THRESHOLD else "solovay-kitaev"
    notes = [p.note for p in parts if p.note]
    return GateDecomposition(
        gate, braids, error, method,
        magic_states=sum(p.magic_states for p in parts),
        note="; ".join(notes) if notes else None,
    )


def _cz(gate: Gate, a: int, b: int, n: int, anyon_type: AnyonType, options: CompilationOptions) -> GateDecomposition:
    single = lambda name, q: compile_single_qubit_gate(Gate(name, (q,)), n, anyon_type, options)
    parts = [
        single("S", a),
        single("S", b),
        GateDecomposition(Gate("I", (a,)), [entangling_braid(a, b, n)]),
        single("S_DAG", a),
        single("S_DAG", b),
    ]
    return _merge(gate, parts)


def _cnot(gate: Gate, c: int, t: int, n: int, anyon_type: AnyonType, options: CompilationOptions) -> GateDecomposition:
    h = compile_single_qubit_gate(Gate("H", (t,)), n, anyon_type, options)
    cz = _cz(Gate("CZ", (c, t)), c, t, n, anyon_type, options)
    return _merge(gate, [h, cz, h])


def compile_two_qubit_gate(
    gate: Gate, num_qubits: int, anyon_type: AnyonType,
    options: Optional[CompilationOptions] = None,
) -> GateDecomposition:
    options = options or CompilationOptions()
    a, b = gate.qubits
    if gate.name == "CZ":
        return _cz(gate, a, b, num_qubits, anyon_type, options)
    if gate.name == "CNOT":
        return _cnot(gate, a, b, num_qubits, anyon_type, options)
    if gate.name == "SWAP":
        parts = [
            _cnot(Gate("CNOT", (a, b)), a, b, num_qubits, anyon_type, options),
            _cnot(Gate("CNOT", (b, a)), b, a, num_qubits, anyon_type, options),
            _cnot(Gate("CNOT", (a, b)), a, b, num_qubits, anyon_type, options),
        ]
        return _merge(gate, parts)
    raise LogicError(
        f"{gate.name} gate compilation",
        f"{gate.name} should have been decomposed before braid emission",
    )


# =============================================================================
# Sequences
# =============================================================================

def compile_gate(
    gate: Gate, num_qubits: int, anyon_type: AnyonType,
    options: Optional[CompilationOptions] = None,
) -> GateDecomposition:
    """Compile one gate.

    Raises
    ------
    LogicError
        For reset, which braiding cannot implement in any theory.
    NotImplementedTheoryError
        For theories that cannot encode a qubit or lack symbol tables.
    """
    _check_compilable(anyon_type)
    for q in gate.qubits:
        if not 0 <= q < num_qubits:
            raise ValidationError("qubits", f"Qubit {q} out of range [0, {num_qubits})")
    if gate.name == "R":
        raise LogicError(
            "Reset gate compilation",
            "reset is not supported in topological quantum computing; it needs measurement "
            "and conditional feedback incompatible with braiding",
        )
    if gate.name == "M":
        return GateDecomposition(
            gate, [], 0.0, "none",
            note=f"measurement of qubit {gate.qubits[0]} is a fusion measurement, not a braid",
        )
    if gate.name == "BARRIER":
        return GateDecomposition(gate, [], 0.0, "none")
    if gate.is_two_qubit:
        return compile_two_qubit_gate(gate, num_qubits, anyon_type, options)
    return compile_single_qubit_gate(gate, num_qubits, anyon_type, options)


def _warn(message: str, collected: List[str]) -> None:
    collected.append(message)
    warnings.warn(message, stacklevel=3)


def compile_gate_sequence(
    sequence: GateSequence,
    precision: float = 1e-3,
    anyon_type: AnyonType = ISING,
    options: Optional[CompilationOptions] = None,
) -> GateSequenceCompilation:
    """Compile every gate of ``sequence`` into one flat list of braids.

    Parameters
    ----------
    sequence : GateSequence
        Gates to compile.
    precision : float
        Target error per approximated gate; overrides ``options.precision``.
    anyon_type : AnyonType
        Theory whose braiding realises the gates.
    options : CompilationOptions, optional
        Search parameters.

    Returns
    -------
    GateSequenceCompilation
        Braids in application order with accumulated error, warnings and the
        number of magic states consumed by intercepted gates.

    Raises
    ------
    LogicError
        On the first reset gate; nothing partial is returned.
    NotImplementedTheoryError
        If ``anyon_type`` cannot compile gates.
    """
    base = options or CompilationOptions()
    options = CompilationOptions(precision, base.optimization_level, base.sk_base_length, base.sk_max_depth)
    _check_compilable(anyon_type)

    collected: List[str] = []
    if anyon_type.family == AnyonFamily.SU2 and anyon_type.level == 4:
        _warn(
            "SU(2)_4 braiding is not universal: the braid group image is finite, so "
            "approximations do not converge to arbitrary precision",
            collected,
        )

    decompositions: List[GateDecomposition] = []
    for gate in sequence.gates:
        decomposition = compile_gate(gate, sequence.num_qubits, anyon_type, options)
        decompositions.append(decomposition)
        if decomposition.note:
            collected.append(decomposition.note)
        if decomposition.error > precision:
            _warn(
                f"{gate} approximated with error {decomposition.error:.3e} above the "
                f"requested precision {precision:.1e}",
                collected,
            )

    braids = [b for d in decompositions for b in d.braids if len(b) > 0]
    total_error = sum(d.error for d in decompositions)
    logger.debug(
        "Compiled %d gate(s) for %s into %d braid(s), total error %.3e",
        len(sequence.gates), anyon_type, len(braids), total_error,
    )
    return GateSequenceCompilation(
        original_gate_count=len(sequence.gates),
        decompositions=decompositions,
        braids=braids,
        total_error=total_error,
        is_exact=total_error < EXACT_THRESHOLD,
        anyon_type=anyon_type,
        strand_count=strand_count(sequence.num_qubits),
        warnings=collected,
        magic_state_count=sum(d.magic_states for d in decompositions),
    )


# =============================================================================
# Display
# =============================================================================

def format_gate_decomposition(decomposition: GateDecomposition) -> str:
    accuracy = "EXACT" if decomposition.is_exact else f"error {decomposition.error:.6e}"
    lines = [
        f"{decomposition.gate} -> {decomposition.method}",
        f"  accuracy: {accuracy}",
        f"  braids: {len(decomposition.braids)} ({decomposition.generator_count} generators)",
    ]
    if decomposition.magic_states:
        lines.append(f"  magic states: {decomposition.magic_states}")
    if decomposition.note:
        lines.append(f"  note: {decomposition.note}")
    return "\n".join(lines)


def format_compilation_summary(compilation: GateSequenceCompilation) -> str:
    accuracy = "EXACT" if compilation.is_exact else f"error {compilation.total_error:.6e}"
    lines = [
        "Gate sequence compilation",
        f"  anyon type: {compilation.anyon_type}",
        f"  original gates: {compilation.original_gate_count}",
        f"  braids: {len(compilation.braids)} on {compilation.strand_count} strands",
        f"  generators: {compilation.generator_count}",
        f"  magic states: {compilation.magic_state_count}",
        f"  accuracy: {accuracy}",
    ]
    if compilation.warnings:
        lines.append("  warnings:")
        lines.extend(f"    {i + 1}. {w}" for i, w in enumerate(compilation.warnings))
    return "\n".join(lines)
