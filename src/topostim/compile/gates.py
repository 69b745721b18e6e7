# src/topostim/compile/gates.py
"""
Qubit gates and gate sequences consumed and produced by the braid compilers.

Gate names follow stim's conventions (``H``, ``S``, ``S_DAG``, ``SQRT_X``,
``CX`` ...), extended with the non-Clifford gates stim does not model
(``T``, ``T_DAG``, ``RX``, ``RY``, ``RZ``, ``U3``). Clifford unitaries are
taken from stim's tableaux so the two libraries always agree on phases.

Usage
-----
>>> import stim
>>> from topostim.compile.gates import GateSequence
>>> seq = GateSequence.from_stim_circuit(stim.Circuit("H 0\\nCX 0 1\\nM 0 1"))
>>> [g.name for g in seq.gates]
['H', 'CNOT', 'M', 'M']
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import stim

from topostim.utils.errors import OperationError, ValidationError


SINGLE_QUBIT_CLIFFORDS = frozenset({
    "I", "H", "X", "Y", "Z", "S", "S_DAG", "SQRT_X", "SQRT_X_DAG",
})
SINGLE_QUBIT_ROTATIONS = frozenset({"T", "T_DAG", "RX", "RY", "RZ", "U3"})
SINGLE_QUBIT_GATES = SINGLE_QUBIT_CLIFFORDS | SINGLE_QUBIT_ROTATIONS
TWO_QUBIT_GATES = frozenset({"CNOT", "CZ", "SWAP"})
NON_UNITARY = frozenset({"M", "R", "BARRIER"})

# stim names for gates whose unitary comes from a tableau.
_STIM_NAMES = {
    "I": "I", "H": "H", "X": "X", "Y": "Y", "Z": "Z",
    "S": "S", "S_DAG": "S_DAG", "SQRT_X": "SQRT_X", "SQRT_X_DAG": "SQRT_X_DAG",
    "CNOT": "CX", "CZ": "CZ", "SWAP": "SWAP",
}

# Inverse name of every self-describing gate.
INVERSES = {
    "I": "I", "H": "H", "X": "X", "Y": "Y", "Z": "Z",
    "S": "S_DAG", "S_DAG": "S", "T": "T_DAG", "T_DAG": "T",
    "SQRT_X": "SQRT_X_DAG", "SQRT_X_DAG": "SQRT_X",
    "CNOT": "CNOT", "CZ": "CZ", "SWAP": "SWAP",
}

_ALIASES = {
    "CX": "CNOT", "ZCX": "CNOT", "ZCZ": "CZ",
    "TICK": "BARRIER",
    "SDG": "S_DAG", "TDG": "T_DAG", "MEASURE": "M", "RESET": "R",
}

# stim spells measurement and reset with basis suffixes; RZ there is a reset.
_STIM_ALIASES = {"MZ": "M", "RZ": "R", "CX": "CNOT", "ZCX": "CNOT", "ZCZ": "CZ", "TICK": "BARRIER"}

_PARAM_COUNT = {"RX": 1, "RY": 1, "RZ": 1, "U3": 3}

# stim instructions that carry no gate semantics.
_STIM_ANNOTATIONS = frozenset({
    "DETECTOR", "OBSERVABLE_INCLUDE", "QUBIT_COORDS", "SHIFT_COORDS", "MPAD",
})


@dataclass(frozen=True)
class Gate:
    """A named gate on one or more qubits.

    Attributes
    ----------
    name : str
        Upper-case gate name; aliases (``CX``, ``TICK``, ``SDG`` ...) are
        normalised on construction.
    qubits : tuple of int
        Target qubits; for CNOT the order is (control, target).
    params : tuple of float
        Rotation angles for ``RX``/``RY``/``RZ`` (one) and ``U3`` (θ, φ, λ).
    """
    name: str
    qubits: Tuple[int, ...]
    params: Tuple[float, ...] = ()

    def __post_init__(self):
        name = _ALIASES.get(self.name.upper(), self.name.upper())
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "qubits", tuple(int(q) for q in self.qubits))
        object.__setattr__(self, "params", tuple(float(p) for p in self.params))

        if name in SINGLE_QUBIT_GATES and len(self.qubits) != 1:
            raise ValidationError("qubits", f"{name} acts on 1 qubit, got {len(self.qubits)}")
        if name in TWO_QUBIT_GATES:
            if len(self.qubits) != 2:
                raise ValidationError("qubits", f"{name} acts on 2 qubits, got {len(self.qubits)}")
            if self.qubits[0] == self.qubits[1]:
                raise ValidationError("qubits", f"{name} needs two distinct qubits, got {self.qubits}")
        if name in ("M", "R") and len(self.qubits) != 1:
            raise ValidationError("qubits", f"{name} acts on 1 qubit, got {len(self.qubits)}")
        if name not in SINGLE_QUBIT_GATES | TWO_QUBIT_GATES | NON_UNITARY:
            raise ValidationError("name", f"unknown gate {name!r}")
        expected = _PARAM_COUNT.get(name, 0)
        if len(self.params) != expected:
            raise ValidationError(
                "params", f"{name} takes {expected} parameter(s), got {len(self.params)}"
            )

    @property
    def is_single_qubit(self) -> bool:
        return self.name in SINGLE_QUBIT_GATES

    @property
    def is_two_qubit(self) -> bool:
        return self.name in TWO_QUBIT_GATES

    @property
    def is_clifford(self) -> bool:
        return self.name in SINGLE_QUBIT_CLIFFORDS or self.name in TWO_QUBIT_GATES

    def inverse(self) -> "Gate":
        if self.name in INVERSES:
            return Gate(INVERSES[self.name], self.qubits)
        if self.name in ("RX", "RY", "RZ"):
            return Gate(self.name, self.qubits, (-self.params[0],))
        if self.name == "U3":
            theta, phi, lam = self.params
            return Gate("U3", self.qubits, (-theta, -lam, -phi))
        raise OperationError(self.name, "gate has no inverse")

    def __str__(self) -> str:
        args = ",".join(f"{p:.4g}" for p in self.params)
        head = f"{self.name}({args})" if args else self.name
        return f"{head} " + " ".join(str(q) for q in self.qubits)


# =============================================================================
# Unitaries
# =============================================================================

def _rx(theta: float) -> np.ndarray:
    c, s = math.cos(theta / 2), math.sin(theta / 2)
    return np.array([[c, -1j * s], [-1j * s, c]], dtype=complex)


def _ry(theta: float) -> np.ndarray:
    c, s = math.cos(theta / 2), math.sin(theta / 2)
    return np.array([[c, -s], [s, c]], dtype=complex)


def _rz(theta: float) -> np.ndarray:
    return np.diag([np.exp(-0.5j * theta), np.exp(0.5j * theta)])


def u3_matrix(theta: float, phi: float, lam: float) -> np.ndarray:
    c, s = math.cos(theta / 2), math.sin(theta / 2)
    return np.array(
        [
            [c, -np.exp(1j * lam) * s],
            [np.exp(1j * phi) * s, np.exp(1j * (phi + lam)) * c],
        ],
        dtype=complex,
    )


def named_unitary(name: str) -> np.ndarray:
    """Unitary of a parameter-free gate.

    Clifford gates come from ``stim.Tableau.from_named_gate`` in little-endian
    order (qubit 0 is the least significant bit; for CNOT qubit 0 is the
    control).
    """
    name = _ALIASES.get(name.upper(), name.upper())
    if name == "T":
        return np.diag([1.0, np.exp(0.25j * math.pi)])
    if name == "T_DAG":
        return np.diag([1.0, np.exp(-0.25j * math.pi)])
    if name not in _STIM_NAMES:
        raise ValidationError("name", f"{name!r} has no fixed unitary")
    tableau = stim.Tableau.from_named_gate(_STIM_NAMES[name])
    return _snap(np.asarray(tableau.to_unitary_matrix(endian="little"), dtype=complex))


_EXACT_PARTS = np.array([0.0, 0.5, -0.5, 1.0, -1.0, 1 / math.sqrt(2), -1 / math.sqrt(2)])


def _snap(m: np.ndarray) -> np.ndarray:
    """Round single-precision Clifford entries to their exact values."""
    def snap_part(x: np.ndarray) -> np.ndarray:
        idx = np.argmin(np.abs(x[..., None] - _EXACT_PARTS), axis=-1)
        exact = _EXACT_PARTS[idx]
        return np.where(np.abs(x - exact) < 1e-5, exact, x)
    return snap_part(m.real) + 1j * snap_part(m.imag)


def gate_matrix(gate: Gate) -> np.ndarray:
    """Unitary of ``gate`` (2x2 or 4x4).

    Raises
    ------
    ValidationError
        For measurement, reset and barrier.
    """
    if gate.name in NON_UNITARY:
        raise ValidationError("gate", f"{gate.name} is not a unitary gate")
    if gate.name == "RX":
        return _rx(gate.params[0])
    if gate.name == "RY":
        return _ry(gate.params[0])
    if gate.name == "RZ":
        return _rz(gate.params[0])
    if gate.name == "U3":
        return u3_matrix(*gate.params)
    return named_unitary(gate.name)


# =============================================================================
# Sequences
# =============================================================================

@dataclass
class GateSequence:
    """An ordered list of gates over ``num_qubits`` qubits.

    ``total_phase`` is the global phase a braid-derived sequence carries on
    top of its gates (1 for hand-written sequences).
    """
    gates: List[Gate] = field(default_factory=list)
    num_qubits: int = 1
    total_phase: complex = 1.0 + 0j

    def __post_init__(self):
        if self.num_qubits < 1:
            raise ValidationError("num_qubits", f"need at least one qubit, got {self.num_qubits}")
        for gate in self.gates:
            for q in gate.qubits:
                if not 0 <= q < self.num_qubits:
                    raise ValidationError("qubits", f"Qubit {q} out of range [0, {self.num_qubits})")

    def __len__(self) -> int:
        return len(self.gates)

    def __iter__(self):
        return iter(self.gates)

    @property
    def depth(self) -> int:
        return calculate_depth(self)

    @property
    def t_count(self) -> int:
        return count_t_gates(self)

    def count_ops(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for g in self.gates:
            counts[g.name] = counts.get(g.name, 0) + 1
        return counts

    @classmethod
    def from_stim_circuit(cls, circuit: stim.Circuit) -> "GateSequence":
        """Lower a stim circuit into a gate sequence.

        REPEAT blocks are unrolled, ``TICK`` becomes a barrier and annotation
        instructions (detectors, observables, coordinates) are dropped.

        Raises
        ------
        OperationError
            For instructions with no gate counterpart (noise channels,
            classically controlled gates, MPP ...).
        """
        gates = _lower_stim(circuit)
        return cls(gates, max(circuit.num_qubits, 1))

    def to_stim_circuit(self) -> stim.Circuit:
        """Emit the sequence as a stim circuit.

        Raises
        ------
        OperationError
            If the sequence holds a non-Clifford gate.
        """
        circuit = stim.Circuit()
        for g in self.gates:
            if g.name == "BARRIER":
                circuit.append("TICK")
            elif g.name in ("M", "R"):
                circuit.append(g.name, list(g.qubits))
            elif g.name in _STIM_NAMES:
                circuit.append(_STIM_NAMES[g.name], list(g.qubits))
            else:
                raise OperationError(g.name, "non-Clifford gates cannot be emitted to stim")
        return circuit


def _lower_stim(circuit: stim.Circuit) -> List[Gate]:
    gates: List[Gate] = []
    for inst in circuit:
        if isinstance(inst, stim.CircuitRepeatBlock):
            body = _lower_stim(inst.body_copy())
            for _ in range(inst.repeat_count):
                gates.extend(body)
            continue

        raw = inst.name.upper()
        if raw in _STIM_ANNOTATIONS:
            continue
        name = _STIM_ALIASES.get(raw, raw)
        qubit_targets = [t.value for t in inst.targets_copy() if t.is_qubit_target]
        if len(qubit_targets) != len(inst.targets_copy()):
            raise OperationError(inst.name, "only plain qubit targets are supported")

        if name == "BARRIER":
            gates.append(Gate("BARRIER", ()))
        elif name in SINGLE_QUBIT_CLIFFORDS or name in ("M", "R"):
            gates.extend(Gate(name, (q,)) for q in qubit_targets)
        elif name in TWO_QUBIT_GATES:
            if len(qubit_targets) % 2 != 0:
                raise ValidationError(
                    "targets", f"Gate {name} has odd number of qubit targets: {qubit_targets}"
                )
            for a, b in zip(qubit_targets[::2], qubit_targets[1::2]):
                gates.append(Gate(name, (a, b)))
        else:
            raise OperationError(inst.name, "stim instruction has no gate counterpart")
    return gates


def make_sequence(specs: Sequence[Tuple], num_qubits: Optional[int] = None) -> GateSequence:
    """Build a sequence from ``(name, qubits[, params])`` tuples.

    ``num_qubits`` defaults to one more than the largest qubit index used.
    """
    gates = []
    for spec in specs:
        name, qubits = spec[0], spec[1]
        if isinstance(qubits, int):
            qubits = (qubits,)
        params = tuple(spec[2]) if len(spec) > 2 else ()
        gates.append(Gate(name, tuple(qubits), params))
    if num_qubits is None:
        num_qubits = 1 + max((q for g in gates for q in g.qubits), default=0)
    return GateSequence(gates, num_qubits)


# =============================================================================
# Metrics
# =============================================================================

def calculate_depth(sequence: GateSequence) -> int:
    """Circuit depth: the longest chain of gates sharing a qubit.

    Barriers align every qubit to the current maximum and add no layer.
    """
    level = [0] * sequence.num_qubits
    for g in sequence.gates:
        if g.name == "BARRIER":
            top = max(level, default=0)
            level = [top] * sequence.num_qubits
            continue
        layer = 1 + max(level[q] for q in g.qubits)
        for q in g.qubits:
            level[q] = layer
    return max(level, default=0)


def count_t_gates(sequence: GateSequence) -> int:
    return sum(1 for g in sequence.gates if g.name in ("T", "T_DAG"))


def is_clifford(sequence: GateSequence) -> bool:
    """True when every unitary gate is Clifford (measurement and barriers allowed)."""
    return all(g.is_clifford or g.name in NON_UNITARY for g in sequence.gates)
