"""
Tests for F-symbols, R-symbols and their consistency equations.
"""
import cmath
import math

import numpy as np
import pytest

from topostim.anyons import (
    FIBONACCI,
    ISING,
    MAX_SU2_LEVEL,
    PSI,
    SIGMA,
    TAU,
    VACUUM,
    braid_phase,
    compute_f_matrix,
    compute_r_matrix,
    f_block,
    f_value,
    fusion_channels,
    get_f_symbol,
    get_r_symbol,
    is_valid_f_index,
    particles,
    r_value,
    spin_j,
    su2_level,
    validate_f_matrix,
    validate_r_matrix,
    verify_f_matrix_unitarity,
    verify_hexagon,
    verify_pentagon,
    verify_r_unitarity,
    verify_ribbon,
)
from topostim.utils.errors import NotImplementedTheoryError, ValidationError
from topostim.utils.numerics import PHI

S = 1 / math.sqrt(2)


# ============================================================================
# F-symbols
# ============================================================================

class TestIsingF:
    """Ising F-symbols in the standard gauge."""

    def test_sigma_block_is_hadamard(self):
        data = compute_f_matrix(ISING)
        assert get_f_symbol(data, SIGMA, SIGMA, SIGMA, SIGMA, VACUUM, VACUUM) == pytest.approx(S)
        assert get_f_symbol(data, SIGMA, SIGMA, SIGMA, SIGMA, PSI, PSI) == pytest.approx(-S)

    def test_block_with_labels(self):
        block, rows, cols = f_block(compute_f_matrix(ISING), SIGMA, SIGMA, SIGMA, SIGMA)
        assert rows == [VACUUM, PSI]
        assert cols == [VACUUM, PSI]
        assert np.allclose(block, np.array([[S, S], [S, -S]]))

    def test_sign_entries(self):
        data = compute_f_matrix(ISING)
        assert get_f_symbol(data, SIGMA, PSI, SIGMA, PSI, SIGMA, SIGMA) == -1.0

    def test_trivial_entry_defaults_to_one(self):
        data = compute_f_matrix(ISING)
        assert get_f_symbol(data, PSI, PSI, PSI, PSI, VACUUM, VACUUM) == 1.0

    def test_invalid_index_raises(self):
        data = compute_f_matrix(ISING)
        with pytest.raises(ValidationError):
            get_f_symbol(data, SIGMA, SIGMA, SIGMA, SIGMA, SIGMA, VACUUM)

    def test_f_value_is_zero_off_rules(self):
        data = compute_f_matrix(ISING)
        assert f_value(data, SIGMA, SIGMA, SIGMA, SIGMA, SIGMA, VACUUM) == 0.0
        assert not is_valid_f_index(SIGMA, SIGMA, SIGMA, SIGMA, SIGMA, VACUUM, ISING)


class TestFibonacciF:
    """Fibonacci F-matrix F^{τττ}_τ."""

    def test_tau_block(self):
        block, rows, _ = f_block(compute_f_matrix(FIBONACCI), TAU, TAU, TAU, TAU)
        assert rows == [VACUUM, TAU]
        expected = np.array([[1 / PHI, 1 / math.sqrt(PHI)], [1 / math.sqrt(PHI), -1 / PHI]])
        assert np.allclose(block, expected)

    def test_block_is_unitary(self):
        assert verify_f_matrix_unitarity(compute_f_matrix(FIBONACCI), TAU, TAU, TAU, TAU)

    def test_vacuum_total_charge_block(self):
        block, rows, cols = f_block(compute_f_matrix(FIBONACCI), TAU, TAU, TAU, VACUUM)
        assert rows == [TAU] and cols == [TAU]
        assert block[0, 0] == pytest.approx(1.0)


class TestPentagon:
    """The pentagon equation holds for every supported theory."""

    @pytest.mark.parametrize("anyon_type", [ISING, FIBONACCI, su2_level(3), su2_level(4)])
    def test_pentagon(self, anyon_type):
        assert verify_pentagon(compute_f_matrix(anyon_type)) < 1e-9

    def test_pentagon_level_five(self):
        assert verify_pentagon(compute_f_matrix(su2_level(5))) < 1e-9

    def test_lookup_identifies_vacuum_labels(self):
        data = compute_f_matrix(su2_level(3))
        j = spin_j(1, 3)
        assert f_value(data, j, j, VACUUM, VACUUM, spin_j(0, 3), j) == pytest.approx(
            f_value(data, j, j, spin_j(0, 3), spin_j(0, 3), VACUUM, j)
        )
        assert f_value(data, j, j, VACUUM, VACUUM, VACUUM, j) != 0.0

    def test_foreign_labels_raise_on_every_lookup(self):
        data = compute_f_matrix(ISING)
        for _ in range(2):
            with pytest.raises(ValidationError):
                f_value(data, TAU, TAU, TAU, TAU, VACUUM, VACUUM)

    def test_validate_marks_data(self):
        data = compute_f_matrix(FIBONACCI)
        assert not data.is_validated
        assert validate_f_matrix(data).is_validated

    def test_su2_level_two_uses_ising_table(self):
        k2 = compute_f_matrix(su2_level(2))
        value = get_f_symbol(k2, spin_j(1, 2), spin_j(1, 2), spin_j(1, 2), spin_j(1, 2), VACUUM, VACUUM)
        assert value == pytest.approx(S)

    def test_level_above_maximum_not_implemented(self):
        with pytest.raises(NotImplementedTheoryError, match="SU\\(2\\)_10"):
            compute_f_matrix(su2_level(10))
        assert MAX_SU2_LEVEL == 8


# ============================================================================
# R-symbols
# ============================================================================

class TestRSymbols:
    """Braiding phases."""

    def test_ising_values(self):
        data = compute_r_matrix(ISING)
        assert get_r_symbol(data, SIGMA, SIGMA, VACUUM) == pytest.approx(cmath.exp(-1j * math.pi / 8))
        assert get_r_symbol(data, SIGMA, SIGMA, PSI) == pytest.approx(cmath.exp(3j * math.pi / 8))
        assert get_r_symbol(data, PSI, PSI, VACUUM) == pytest.approx(-1.0)

    def test_fibonacci_values(self):
        data = compute_r_matrix(FIBONACCI)
        assert get_r_symbol(data, TAU, TAU, VACUUM) == pytest.approx(cmath.exp(-4j * math.pi / 5))
        assert get_r_symbol(data, TAU, TAU, TAU) == pytest.approx(cmath.exp(3j * math.pi / 5))

    def test_vacuum_channel_trivial(self):
        assert get_r_symbol(compute_r_matrix(FIBONACCI), VACUUM, TAU, TAU) == 1.0

    def test_invalid_channel_raises(self):
        with pytest.raises(ValidationError):
            get_r_symbol(compute_r_matrix(ISING), SIGMA, SIGMA, SIGMA)
        assert r_value(compute_r_matrix(ISING), SIGMA, SIGMA, SIGMA) == 0.0

    def test_counter_clockwise_undoes_clockwise(self):
        data = compute_r_matrix(ISING)
        for c in (VACUUM, PSI):
            cw = braid_phase(data, SIGMA, SIGMA, c, clockwise=True)
            ccw = braid_phase(data, SIGMA, SIGMA, c, clockwise=False)
            assert cw * ccw == pytest.approx(1.0)

    def test_mixed_pair_inverse(self):
        """σψ exchanged then ψσ exchanged back gives phase 1."""
        data = compute_r_matrix(ISING)
        there = braid_phase(data, SIGMA, PSI, SIGMA, clockwise=True)
        back = braid_phase(data, PSI, SIGMA, SIGMA, clockwise=False)
        assert there * back == pytest.approx(1.0)

    @pytest.mark.parametrize("anyon_type", [ISING, FIBONACCI, su2_level(3)])
    def test_unit_modulus(self, anyon_type):
        assert verify_r_unitarity(compute_r_matrix(anyon_type))

    @pytest.mark.parametrize("anyon_type", [ISING, FIBONACCI, su2_level(3)])
    def test_ribbon(self, anyon_type):
        data = compute_r_matrix(anyon_type)
        ps = particles(anyon_type)
        for a in ps:
            for b in ps:
                for c in fusion_channels(a, b, anyon_type):
                    assert verify_ribbon(data, a, b, c)

    def test_r_table_not_implemented_above_maximum(self):
        with pytest.raises(NotImplementedTheoryError):
            compute_r_matrix(su2_level(10))


class TestHexagon:
    """R- and F-symbols satisfy the hexagon equation."""

    @pytest.mark.parametrize("anyon_type", [ISING, FIBONACCI, su2_level(3)])
    def test_hexagon(self, anyon_type):
        deviation = verify_hexagon(compute_r_matrix(anyon_type), compute_f_matrix(anyon_type))
        assert deviation < 1e-9

    def test_validate_r_matrix(self):
        assert validate_r_matrix(compute_r_matrix(ISING)).is_validated

    def test_validate_rejects_foreign_f_data(self):
        with pytest.raises(ValidationError):
            validate_r_matrix(compute_r_matrix(ISING), compute_f_matrix(FIBONACCI))
