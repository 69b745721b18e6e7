"""
Tests for fusion trees: structure, validity, enumeration and the
computational-basis encoding.
"""
import pytest

from topostim.anyons import FIBONACCI, ISING, PSI, SIGMA, TAU, VACUUM, spin_j, su2_level
from topostim.fusion import (
    Fusion,
    Leaf,
    all_trees,
    canonical_tree,
    create,
    depth,
    equals,
    flip,
    from_computational_basis,
    fusion_space_dimension,
    is_valid,
    leaves,
    qubit_channels,
    size,
    to_computational_basis,
    total_charge,
)
from topostim.utils.errors import OperationError, ValidationError


def sigma_pair(channel):
    return Fusion(Leaf(SIGMA), Leaf(SIGMA), channel)


# ============================================================================
# Structure
# ============================================================================

class TestStructure:
    """Size, depth, leaves, flip."""

    def test_leaf(self):
        t = Leaf(TAU)
        assert size(t) == 1
        assert depth(t) == 0
        assert total_charge(t) == TAU

    def test_nested(self):
        t = Fusion(sigma_pair(VACUUM), Leaf(SIGMA), SIGMA)
        assert size(t) == 3
        assert depth(t) == 2
        assert leaves(t) == [SIGMA, SIGMA, SIGMA]
        assert total_charge(t) == SIGMA

    def test_flip_mirrors(self):
        t = Fusion(Leaf(SIGMA), Leaf(PSI), SIGMA)
        flipped = flip(t)
        assert flipped == Fusion(Leaf(PSI), Leaf(SIGMA), SIGMA)
        assert equals(flip(flipped), t)

    def test_canonical_tree_identifies_vacuum(self):
        half = spin_j(1, 3)
        a = Fusion(Leaf(half), Leaf(half), VACUUM)
        b = Fusion(Leaf(half), Leaf(half), spin_j(0, 3))
        assert a != b
        assert canonical_tree(a, su2_level(3)) == canonical_tree(b, su2_level(3)) == b

    def test_create_rejects_foreign_labels(self):
        with pytest.raises(ValidationError):
            create(Fusion(Leaf(TAU), Leaf(TAU), VACUUM), ISING)


class TestValidity:
    """Fusion-rule checks on every node."""

    def test_valid_pair(self):
        assert is_valid(sigma_pair(PSI), ISING)

    def test_invalid_root(self):
        assert not is_valid(Fusion(Leaf(SIGMA), Leaf(PSI), VACUUM), ISING)

    def test_invalid_inner_node(self):
        inner = Fusion(Leaf(SIGMA), Leaf(SIGMA), SIGMA)
        assert not is_valid(Fusion(inner, Leaf(SIGMA), SIGMA), ISING)

    def test_foreign_label_raises(self):
        with pytest.raises(ValidationError):
            is_valid(Leaf(TAU), ISING)


# ============================================================================
# Enumeration
# ============================================================================

class TestEnumeration:
    """Dimension counting and tree enumeration agree."""

    def test_four_sigmas_to_vacuum(self):
        assert fusion_space_dimension([SIGMA] * 4, VACUUM, ISING) == 2

    def test_four_taus_to_vacuum(self):
        assert fusion_space_dimension([TAU] * 4, VACUUM, FIBONACCI) == 6

    def test_pair(self):
        assert fusion_space_dimension([SIGMA, SIGMA], PSI, ISING) == 1
        assert fusion_space_dimension([SIGMA, PSI], VACUUM, ISING) == 0

    def test_empty_and_single(self):
        assert fusion_space_dimension([], VACUUM, ISING) == 0
        assert fusion_space_dimension([TAU], TAU, FIBONACCI) == 1

    @pytest.mark.parametrize("anyons,target,anyon_type", [
        ([SIGMA] * 4, VACUUM, ISING),
        ([TAU] * 4, VACUUM, FIBONACCI),
        ([TAU] * 3, TAU, FIBONACCI),
    ])
    def test_all_trees_matches_dimension(self, anyons, target, anyon_type):
        trees = all_trees(anyons, target, anyon_type)
        assert len(trees) == fusion_space_dimension(anyons, target, anyon_type)
        for t in trees:
            assert is_valid(t, anyon_type)
            assert total_charge(t) == target

    def test_foreign_target_rejected(self):
        with pytest.raises(ValidationError):
            fusion_space_dimension([SIGMA, SIGMA], TAU, ISING)


# ============================================================================
# Computational basis
# ============================================================================

class TestComputationalBasis:
    """Bit strings encoded as chains of leaf pairs."""

    @pytest.mark.parametrize("bits", [[0], [1], [1, 0], [0, 1, 1]])
    def test_ising_round_trip(self, bits):
        tree = from_computational_basis(bits, ISING)
        assert is_valid(tree, ISING)
        assert total_charge(tree) == VACUUM
        assert to_computational_basis(tree, ISING) == bits

    def test_ising_adds_parity_pair(self):
        tree = from_computational_basis([1], ISING)
        assert tree == Fusion(sigma_pair(PSI), sigma_pair(PSI), VACUUM)

    def test_fibonacci_round_trip(self):
        tree = from_computational_basis([1, 1], FIBONACCI)
        assert size(tree) == 4
        assert is_valid(tree, FIBONACCI)
        assert to_computational_basis(tree, FIBONACCI) == [1, 1]

    def test_invalid_bits(self):
        with pytest.raises(ValidationError):
            from_computational_basis([], ISING)
        with pytest.raises(ValidationError):
            from_computational_basis([2], ISING)

    def test_single_channel_theory(self):
        with pytest.raises(OperationError):
            qubit_channels(su2_level(1))

    def test_decode_rejects_other_shapes(self):
        with pytest.raises(ValidationError):
            to_computational_basis(Leaf(SIGMA), ISING)
