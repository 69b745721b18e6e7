# src/topostim/compile/braid_to_gate.py
"""
Translate braid words back into qubit gate sequences.

Each generator acts on the qubit owning its strands (σ_{2q} and σ_{2q+1}
both map to qubit q; generators on the ancilla pair map to the last qubit)
through the same two-dimensional images used by the gate-to-braid alphabet.
A generator whose image equals a named Clifford or T gate up to phase is
emitted as that gate; anything else becomes a ``U3``. The phases stripped
off along the way are collected in ``GateSequence.total_phase``, so the
product of the gate unitaries times ``total_phase`` equals the braid's
representation.

Ising braids therefore come out as S / S† and √X / √X† gates, while
Fibonacci braids produce ``U3`` rotations.
"""
from __future__ import annotations

import cmath
import logging
import math
from typing import List, Optional, Tuple

import numpy as np

from topostim.anyons.particles import AnyonType
from topostim.braids.braid_group import Braid, BraidGenerator
from topostim.compile.gate_to_braid import CompilationOptions, generator_images
from topostim.compile.gates import (
    INVERSES,
    Gate,
    GateSequence,
    calculate_depth,
    count_t_gates,
    is_clifford,
    named_unitary,
)

logger = logging.getLogger(__name__)

__all__ = [
    "compile_to_gates",
    "matrix_to_gate",
    "u3_parameters",
    "cancel_inverses",
    "merge_rotations",
    "fuse_phase_gates",
    "optimize_gates",
    "calculate_depth",
    "count_t_gates",
    "is_clifford",
]

# Checked in order; the first match wins.
_RECOGNISED = ("I", "Z", "S", "S_DAG", "T", "T_DAG", "X", "Y", "H", "SQRT_X", "SQRT_X_DAG")
_MATCH_TOLERANCE = 1e-9
_ROTATIONS = ("RX", "RY", "RZ")
_ZERO_ANGLE = 1e-12


# =============================================================================
# Matrix recognition
# =============================================================================

def u3_parameters(u: np.ndarray) -> Tuple[float, float, float, complex]:
    """Decompose a 2x2 unitary as ``phase * u3_matrix(theta, phi, lam)``.

    Returns
    -------
    tuple
        ``(theta, phi, lam, phase)`` with theta in [0, π].
    """
    u = np.asarray(u, dtype=complex)
    if abs(u[0, 0]) > 1e-12:
        g = u[0, 0] / abs(u[0, 0])
    else:
        g = u[1, 0] / abs(u[1, 0])
    v = u / g
    theta = 2.0 * math.atan2(abs(v[1, 0]), abs(v[0, 0]))
    if abs(v[1, 0]) > 1e-12:
        phi = cmath.phase(v[1, 0])
        lam = cmath.phase(-v[0, 1])
    else:
        phi = 0.0
        lam = cmath.phase(v[1, 1])
    return theta, phi, lam, complex(g)


def matrix_to_gate(u: np.ndarray, qubit: int, tol: float = _MATCH_TOLERANCE) -> Tuple[Gate, complex]:
    """Named gate (or ``U3``) equal to ``u`` up to the returned phase."""
    for name in _RECOGNISED:
        overlap = np.trace(named_unitary(name).conj().T @ u) / 2.0
        if abs(abs(overlap) - 1.0) < tol:
            return Gate(name, (qubit,)), complex(overlap)
    theta, phi, lam, g = u3_parameters(u)
    return Gate("U3", (qubit,), (theta, phi, lam)), g


def _generator_matrix(g: BraidGenerator, images: Tuple[np.ndarray, np.ndarray]) -> np.ndarray:
    m = images[g.index % 2]
    return m if g.clockwise else m.conj().T


# =============================================================================
# Compilation
# =============================================================================

def compile_to_gates(
    braid: Braid, anyon_type: AnyonType, options: Optional[CompilationOptions] = None,
) -> GateSequence:
    """Gate sequence realising ``braid`` in the qubit encoding of ``anyon_type``.

    Parameters
    ----------
    braid : Braid
        Word on 2n + 2 strands (any strand count of at least 2 is accepted;
        fewer than four strands is treated as a single qubit).
    anyon_type : AnyonType
        Theory whose generator images are used.
    options : CompilationOptions, optional
        ``optimization_level`` selects the passes of :func:`optimize_gates`.

    Returns
    -------
    GateSequence
        Gates with the accumulated global phase in ``total_phase``.

    Raises
    ------
    NotImplementedTheoryError
        For theories that cannot encode a qubit.
    """
    options = options or CompilationOptions()
    images = generator_images(anyon_type)
    num_qubits = max(1, (braid.strand_count - 2) // 2)

    gates: List[Gate] = []
    total_phase = 1.0 + 0j
    for g in braid.generators:
        qubit = min(g.index // 2, num_qubits - 1)
        gate, ph = matrix_to_gate(_generator_matrix(g, images), qubit)
        total_phase *= ph
        if gate.name != "I":
            gates.append(gate)

    optimised = optimize_gates(gates, options.optimization_level)
    logger.debug(
        "Braid of %d generator(s) on %s -> %d gate(s) (%d before optimisation)",
        len(braid), anyon_type, len(optimised), len(gates),
    )
    return GateSequence(optimised, num_qubits, total_phase)


# =============================================================================
# Optimisation passes
# =============================================================================

def _cancels(g1: Gate, g2: Gate) -> bool:
    if g1.qubits != g2.qubits:
        return False
    if g1.name in INVERSES:
        return INVERSES[g1.name] == g2.name
    return False


def cancel_inverses(gates: List[Gate]) -> List[Gate]:
    """Remove adjacent gate/inverse pairs (S S†, H H, CNOT CNOT ...) until none remain."""
    stack: List[Gate] = []
    for g in gates:
        if stack and _cancels(stack[-1], g):
            stack.pop()
        else:
            stack.append(g)
    return stack


def merge_rotations(gates: List[Gate]) -> List[Gate]:
    """Sum the angles of adjacent same-axis rotations on one qubit.

    A merged rotation with a vanishing angle is dropped.
    """
    out: List[Gate] = []
    for g in gates:
        prev = out[-1] if out else None
        if prev is not None and g.name in _ROTATIONS and prev.name == g.name and prev.qubits == g.qubits:
            angle = prev.params[0] + g.params[0]
            out.pop()
            if abs(angle) > _ZERO_ANGLE:
                out.append(Gate(g.name, g.qubits, (angle,)))
        else:
            out.append(g)
    return out


_PHASE_PAIRS = {("T", "T"): "S", ("T_DAG", "T_DAG"): "S_DAG", ("S", "S"): "Z", ("S_DAG", "S_DAG"): "Z"}


def fuse_phase_gates(gates: List[Gate]) -> List[Gate]:
    """Replace adjacent T T by S, S S by Z (and the dagger forms)."""
    out: List[Gate] = []
    for g in gates:
        prev = out[-1] if out else None
        fused = _PHASE_PAIRS.get((prev.name, g.name)) if prev is not None and prev.qubits == g.qubits else None
        if fused:
            out.pop()
            out.append(Gate(fused, g.qubits))
        else:
            out.append(g)
    return out


def optimize_gates(gates: List[Gate], level: int = 1) -> List[Gate]:
    """Run the optimisation passes for ``level``.

    - 0: unchanged
    - 1: cancel inverses, merge rotations, cancel again
    - 2: level 1 plus phase-gate fusion, repeated until nothing changes
    """
    if level <= 0:
        return list(gates)
    result = cancel_inverses(merge_rotations(cancel_inverses(list(gates))))
    if level == 1:
        return result
    while True:
        nxt = cancel_inverses(merge_rotations(fuse_phase_gates(result)))
        if nxt == result:
            return result
        result = nxt
