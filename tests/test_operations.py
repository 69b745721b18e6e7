"""
Tests for superpositions, F-moves, braiding and fusion measurement.
"""
import cmath
import dataclasses
import math

import pytest

from topostim.anyons import FIBONACCI, ISING, PSI, SIGMA, TAU, VACUUM, spin_j, su2_level
from topostim.fusion import (
    FMoveDirection,
    Fusion,
    FusionTreeState,
    Leaf,
    Superposition,
    amplitude_of,
    braid_adjacent_anyons,
    braid_superposition,
    combine_like_terms,
    f_move,
    inner_product,
    is_normalized,
    measure_fusion,
    normalize,
    pure_state,
    uniform,
)
from topostim.utils.errors import ValidationError

S = 1 / math.sqrt(2)


def pair(p, channel):
    return Fusion(Leaf(p), Leaf(p), channel)


def three_sigmas(inner=VACUUM):
    """((σ σ)_inner σ)_σ"""
    return Fusion(pair(SIGMA, inner), Leaf(SIGMA), SIGMA)


def ising(tree):
    return FusionTreeState(tree, ISING)


# ============================================================================
# Superpositions
# ============================================================================

class TestSuperposition:
    """Normalisation and inner products."""

    def test_normalize_merges_like_terms(self):
        state = ising(pair(SIGMA, VACUUM))
        sup = normalize(Superposition([(1.0, state), (1.0, state)], ISING))
        assert len(sup) == 1
        assert abs(sup.terms[0][0]) == pytest.approx(1.0)

    def test_terms_are_immutable(self):
        terms = [(1.0, ising(pair(SIGMA, VACUUM)))]
        sup = Superposition(terms, ISING)
        terms.append((1.0, ising(pair(SIGMA, PSI))))
        assert isinstance(sup.terms, tuple)
        assert len(sup) == 1
        with pytest.raises(dataclasses.FrozenInstanceError):
            sup.terms = ()

    def test_equivalent_labels_merge(self):
        k3 = su2_level(3)
        half = spin_j(1, 3)
        a = FusionTreeState(pair(half, VACUUM), k3)
        b = FusionTreeState(pair(half, spin_j(0, 3)), k3)
        merged = combine_like_terms(Superposition([(0.5, a), (0.5, b)], k3))
        assert len(merged) == 1
        assert merged.terms[0][0] == pytest.approx(1.0)
        assert amplitude_of(merged, pair(half, VACUUM)) == pytest.approx(1.0)
        assert amplitude_of(merged, pair(half, spin_j(0, 3))) == pytest.approx(1.0)

    def test_cancelling_terms_dropped(self):
        a, b = ising(pair(SIGMA, VACUUM)), ising(pair(SIGMA, PSI))
        sup = combine_like_terms(Superposition([(1.0, a), (1.0, b), (-1.0, a)], ISING))
        assert [s for _, s in sup.terms] == [b]

    def test_uniform_is_normalized(self):
        states = [ising(pair(SIGMA, VACUUM)), ising(pair(SIGMA, PSI))]
        sup = uniform(states, ISING)
        assert is_normalized(sup)
        assert inner_product(sup, sup) == pytest.approx(1.0)

    def test_mixed_theories_rejected(self):
        with pytest.raises(ValidationError):
            Superposition([(1.0, FusionTreeState(pair(TAU, VACUUM), FIBONACCI))], ISING)


# ============================================================================
# F-moves
# ============================================================================

class TestFMove:
    """Associativity changes of basis."""

    def test_sigma_f_move_splits(self):
        result = f_move(FMoveDirection.LEFT_TO_RIGHT, 0, ising(three_sigmas()))
        assert len(result) == 2
        for f in (VACUUM, PSI):
            target = Fusion(Leaf(SIGMA), pair(SIGMA, f), SIGMA)
            assert amplitude_of(result, target) == pytest.approx(S)

    def test_round_trip(self):
        tree = three_sigmas(PSI)
        there = f_move(FMoveDirection.LEFT_TO_RIGHT, 0, ising(tree))
        back = f_move(FMoveDirection.RIGHT_TO_LEFT, 0, there)
        assert len(back) == 1
        assert amplitude_of(back, tree) == pytest.approx(1.0)

    def test_no_matching_node_is_identity(self):
        tree = pair(SIGMA, VACUUM)
        result = f_move(FMoveDirection.LEFT_TO_RIGHT, 0, ising(tree))
        assert amplitude_of(result, tree) == pytest.approx(1.0)

    def test_negative_depth_rejected(self):
        with pytest.raises(ValidationError):
            f_move(FMoveDirection.LEFT_TO_RIGHT, -1, ising(three_sigmas()))


# ============================================================================
# Braiding
# ============================================================================

class TestBraiding:
    """Adjacent exchanges."""

    def test_sibling_pair_picks_up_r_phase(self):
        tree = pair(SIGMA, VACUUM)
        result = braid_adjacent_anyons(0, ising(tree))
        assert amplitude_of(result, tree) == pytest.approx(cmath.exp(-1j * math.pi / 8))

    def test_fibonacci_phase(self):
        tree = pair(TAU, TAU)
        result = braid_adjacent_anyons(0, FusionTreeState(tree, FIBONACCI))
        assert amplitude_of(result, tree) == pytest.approx(cmath.exp(3j * math.pi / 5))

    def test_non_sibling_pair_mixes_channels(self):
        result = braid_adjacent_anyons(1, ising(three_sigmas()))
        assert len(result) == 2
        assert is_normalized(result)
        for inner in (VACUUM, PSI):
            assert abs(amplitude_of(result, three_sigmas(inner))) ** 2 == pytest.approx(0.5)

    def test_clockwise_then_counter_clockwise(self):
        start = pure_state(ising(three_sigmas()))
        there = braid_superposition(1, start, clockwise=True)
        back = braid_superposition(1, there, clockwise=False)
        assert abs(inner_product(start, back)) == pytest.approx(1.0)

    def test_index_out_of_range(self):
        with pytest.raises(ValidationError):
            braid_adjacent_anyons(2, ising(three_sigmas()))
        with pytest.raises(ValidationError):
            braid_adjacent_anyons(-1, ising(three_sigmas()))

    def test_invalid_tree_rejected(self):
        bad = Fusion(Leaf(SIGMA), Leaf(SIGMA), SIGMA)
        with pytest.raises(ValidationError):
            braid_adjacent_anyons(0, ising(bad))


# ============================================================================
# Fusion measurement
# ============================================================================

class TestMeasureFusion:
    """Born-rule outcomes of pair-charge measurement."""

    def test_definite_outcome(self):
        outcomes = measure_fusion(0, ising(three_sigmas()))
        assert len(outcomes) == 1
        p, outcome = outcomes[0]
        assert p == pytest.approx(1.0)
        assert outcome.channel == VACUUM

    def test_uniform_outcomes(self):
        outcomes = measure_fusion(1, ising(three_sigmas()))
        assert [o.channel for _, o in outcomes] == [VACUUM, PSI]
        assert sum(p for p, _ in outcomes) == pytest.approx(1.0)
        for p, outcome in outcomes:
            assert p == pytest.approx(0.5)
            assert is_normalized(outcome.state)

    def test_post_measurement_state_collapses_pair(self):
        _, outcome = measure_fusion(1, ising(three_sigmas()))[1]
        expected = Fusion(Leaf(SIGMA), Leaf(PSI), SIGMA)
        assert amplitude_of(outcome.state, expected) == pytest.approx(1.0)

    def test_index_out_of_range(self):
        with pytest.raises(ValidationError):
            measure_fusion(5, ising(three_sigmas()))
