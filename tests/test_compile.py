"""
Tests for gate-to-braid and braid-to-gate compilation.
"""
import math

import numpy as np
import pytest
import stim

from topostim.anyons import FIBONACCI, ISING, su2_level
from topostim.braids import Braid, sigma, sigma_inv
from topostim.compile import (
    CompilationOptions,
    Gate,
    GateSequence,
    braid_alphabet,
    cancel_inverses,
    compile_gate,
    compile_gate_sequence,
    compile_to_gates,
    entangling_braid,
    format_compilation_summary,
    format_gate_decomposition,
    fuse_phase_gates,
    gate_matrix,
    generator_images,
    make_sequence,
    matrix_to_gate,
    merge_rotations,
    named_unitary,
    operator_distance,
    optimize_gates,
    strand_count,
    u3_matrix,
    u3_parameters,
)
from topostim.utils.errors import LogicError, NotImplementedTheoryError, ValidationError


def sequence_unitary(seq):
    """Single-qubit product of ``seq`` including its global phase."""
    m = np.eye(2, dtype=complex)
    for g in seq.gates:
        m = gate_matrix(g) @ m
    return seq.total_phase * m


# ============================================================================
# Layout and generator images
# ============================================================================

class TestLayout:
    """Strand counts and generator images."""

    def test_strand_count(self):
        assert strand_count(1) == 4
        assert strand_count(3) == 8
        with pytest.raises(ValidationError):
            strand_count(0)

    def test_ising_intra_is_s(self):
        intra, _ = generator_images(ISING)
        assert operator_distance(intra, named_unitary("S")) == 0.0

    def test_ising_inter_is_sqrt_x(self):
        _, inter = generator_images(ISING)
        assert operator_distance(inter, named_unitary("SQRT_X")) == 0.0

    @pytest.mark.parametrize("anyon_type", [ISING, FIBONACCI, su2_level(3)])
    def test_images_unitary(self, anyon_type):
        for m in generator_images(anyon_type):
            assert np.allclose(m @ m.conj().T, np.eye(2))

    def test_alphabet_symbols(self):
        assert braid_alphabet(FIBONACCI).labels == ("σa", "σa⁻¹", "σb", "σb⁻¹")

    def test_entangling_braid(self):
        assert entangling_braid(0, 2, 3).generators == (sigma(1), sigma(2), sigma(3))
        assert entangling_braid(2, 1, 3).generators == (sigma(3),)

    def test_options_validation(self):
        with pytest.raises(ValidationError):
            CompilationOptions(precision=0.0)
        with pytest.raises(ValidationError):
            CompilationOptions(optimization_level=3)


# ============================================================================
# Gate -> braid
# ============================================================================

class TestIsingGates:
    """Exact and intercepted Ising compilation."""

    def test_s_is_one_exchange(self):
        d = compile_gate(Gate("S", (0,)), 1, ISING)
        assert d.method == "exact"
        assert d.braids == [Braid(4, (sigma(0),))]

    def test_s_dag_and_z(self):
        assert compile_gate(Gate("S_DAG", (1,)), 2, ISING).braids[0].generators == (sigma_inv(2),)
        assert compile_gate(Gate("Z", (0,)), 1, ISING).generator_count == 2

    def test_t_intercepted(self):
        d = compile_gate(Gate("T", (0,)), 1, ISING)
        assert d.method == "intercepted"
        assert d.braids == []
        assert d.magic_states == 1
        assert d.note

    def test_hadamard_exact(self):
        d = compile_gate(Gate("H", (0,)), 1, ISING)
        assert d.is_exact
        assert d.method == "exact"
        assert d.generator_count <= 4

    @pytest.mark.parametrize("name", ["H", "X", "Y"])
    def test_cliffords_found_without_residual(self, name):
        d = compile_gate(Gate(name, (0,)), 1, ISING)
        assert d.error == 0.0
        assert d.method == "exact"
        assert d.magic_states == 0

    def test_rotation_keeps_residual(self):
        d = compile_gate(Gate("RZ", (0,), (0.3,)), 1, ISING, CompilationOptions(precision=1e-3))
        assert d.error > 0.0
        assert d.method == "solovay-kitaev"

    def test_hadamard_round_trip(self):
        d = compile_gate(Gate("H", (0,)), 1, ISING)
        seq = compile_to_gates(d.braids[0], ISING, CompilationOptions(optimization_level=0))
        assert operator_distance(sequence_unitary(seq), named_unitary("H")) == 0.0

    def test_rotation_warns(self):
        seq = make_sequence([("RX", 0, (0.3,))])
        with pytest.warns(UserWarning, match="above the requested precision"):
            result = compile_gate_sequence(seq, precision=1e-3, anyon_type=ISING)
        assert not result.is_exact
        assert any("RX" in w for w in result.warnings)

    @pytest.mark.parametrize("anyon_type", [ISING, FIBONACCI, su2_level(3)])
    def test_reset_rejected(self, anyon_type):
        with pytest.raises(LogicError, match="[Rr]eset"):
            compile_gate_sequence(make_sequence([("M", 0), ("R", 0)]), anyon_type=anyon_type)

    def test_qubit_out_of_range(self):
        with pytest.raises(ValidationError, match="out of range"):
            compile_gate(Gate("H", (3,)), 2, ISING)

    def test_measurement_and_barrier(self):
        assert compile_gate(Gate("M", (0,)), 1, ISING).method == "none"
        assert compile_gate(Gate("BARRIER", ()), 1, ISING).braids == []


class TestSequences:
    """Whole-sequence compilation."""

    def test_ising_sequence(self):
        seq = make_sequence([("H", 0), ("CNOT", (0, 1)), ("T", 1), ("M", 0)])
        result = compile_gate_sequence(seq, anyon_type=ISING)
        assert result.original_gate_count == 4
        assert result.strand_count == 6
        assert result.is_exact
        assert result.total_error == 0.0
        assert result.magic_state_count == 1
        assert len(result.warnings) == 2
        assert all(len(b) > 0 for b in result.braids)
        assert len(result.flatten()) == result.generator_count

    def test_cz_structure(self):
        d = compile_gate(Gate("CZ", (0, 1)), 2, ISING)
        assert [b.generators for b in d.braids] == [
            (sigma(0),), (sigma(2),), (sigma(1),), (sigma_inv(0),), (sigma_inv(2),),
        ]

    def test_swap_is_three_cnots(self):
        cnot = compile_gate(Gate("CNOT", (0, 1)), 2, ISING)
        swap = compile_gate(Gate("SWAP", (0, 1)), 2, ISING)
        assert len(swap.braids) == 3 * len(cnot.braids)

    def test_from_stim(self):
        seq = GateSequence.from_stim_circuit(stim.Circuit("H 0\nCX 0 1"))
        assert compile_gate_sequence(seq, anyon_type=ISING).flatten().strand_count == 6

    @pytest.mark.filterwarnings("ignore::UserWarning")
    def test_fibonacci_searches(self):
        result = compile_gate_sequence(make_sequence([("H", 0)]), precision=1e-2, anyon_type=FIBONACCI)
        d = result.decompositions[0]
        assert d.method in ("exact", "solovay-kitaev")
        assert result.total_error == pytest.approx(d.error)
        assert result.magic_state_count == 0

    def test_su2_level_four_warns(self):
        with pytest.warns(UserWarning, match="SU\\(2\\)_4"):
            result = compile_gate_sequence(GateSequence([], 1), anyon_type=su2_level(4))
        assert result.braids == []

    def test_su2_level_one_rejected(self):
        with pytest.raises(NotImplementedTheoryError):
            compile_gate_sequence(make_sequence([("H", 0)]), anyon_type=su2_level(1))

    def test_formatting(self):
        result = compile_gate_sequence(make_sequence([("S", 0), ("T", 0)]), anyon_type=ISING)
        assert "magic states: 1" in format_gate_decomposition(result.decompositions[1])
        summary = format_compilation_summary(result)
        assert "accuracy: EXACT" in summary
        assert "warnings:" in summary


# ============================================================================
# Braid -> gate
# ============================================================================

class TestBraidToGate:
    """Recognition of generator images and optimisation passes."""

    def test_ising_generators(self):
        opts = CompilationOptions(optimization_level=0)
        names = lambda gens: [g.name for g in compile_to_gates(Braid(4, gens), ISING, opts).gates]
        assert names((sigma(0),)) == ["S"]
        assert names((sigma_inv(0),)) == ["S_DAG"]
        assert names((sigma(1),)) == ["SQRT_X"]

    def test_generators_map_to_owning_qubit(self):
        seq = compile_to_gates(Braid(6, (sigma(2), sigma(4))), ISING)
        assert seq.num_qubits == 2
        assert [g.qubits for g in seq.gates] == [(1,), (1,)]

    def test_inverse_pair_cancels(self):
        seq = compile_to_gates(Braid(4, (sigma(0), sigma_inv(0))), ISING)
        assert seq.gates == []

    def test_level_two_fuses(self):
        seq = compile_to_gates(Braid(4, (sigma(0), sigma(0))), ISING, CompilationOptions(optimization_level=2))
        assert [g.name for g in seq.gates] == ["Z"]

    def test_fibonacci_gives_u3(self):
        seq = compile_to_gates(Braid(4, (sigma(0),)), FIBONACCI)
        assert [g.name for g in seq.gates] == ["U3"]
        intra, _ = generator_images(FIBONACCI)
        assert np.allclose(sequence_unitary(seq), intra)

    def test_u3_parameters(self):
        u = np.exp(0.4j) * u3_matrix(1.0, 0.3, -0.7)
        theta, phi, lam, phase = u3_parameters(u)
        assert np.allclose(phase * u3_matrix(theta, phi, lam), u)

    def test_matrix_to_gate_recognises_t(self):
        gate, phase = matrix_to_gate(1j * named_unitary("T"), 0)
        assert gate.name == "T"
        assert phase == pytest.approx(1j)

    def test_cancel_inverses_nested(self):
        gates = [Gate("H", (0,)), Gate("S", (0,)), Gate("S_DAG", (0,)), Gate("H", (0,))]
        assert cancel_inverses(gates) == []

    def test_cancel_requires_same_qubit(self):
        gates = [Gate("S", (0,)), Gate("S_DAG", (1,))]
        assert cancel_inverses(gates) == gates

    def test_merge_rotations(self):
        merged = merge_rotations([Gate("RZ", (0,), (0.2,)), Gate("RZ", (0,), (0.3,))])
        assert merged == [Gate("RZ", (0,), (0.5,))]
        assert merge_rotations([Gate("RX", (0,), (0.2,)), Gate("RX", (0,), (-0.2,))]) == []

    def test_fuse_phase_gates(self):
        fused = fuse_phase_gates([Gate("T", (0,)), Gate("T", (0,))])
        assert fused == [Gate("S", (0,))]

    def test_optimize_levels(self):
        gates = [Gate("T", (0,)), Gate("T", (0,)), Gate("S_DAG", (0,))]
        assert optimize_gates(gates, 0) == gates
        assert optimize_gates(gates, 1) == gates
        assert optimize_gates(gates, 2) == []

    def test_total_phase_tracks_representation(self):
        braid = Braid(4, (sigma(0), sigma(1), sigma_inv(0)))
        intra, inter = generator_images(ISING)
        expected = intra.conj().T @ inter @ intra
        seq = compile_to_gates(braid, ISING, CompilationOptions(optimization_level=0))
        assert np.allclose(sequence_unitary(seq), expected)
        assert abs(seq.total_phase) == pytest.approx(1.0)
        assert math.isfinite(seq.total_phase.real)
