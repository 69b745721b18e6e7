# src/topostim/fusion/tree.py
"""
Fusion trees: binary trees recording how a row of anyons is fused.

A tree is either a :class:`Leaf` holding one particle or a :class:`Fusion`
node holding an ordered (left, right) pair of subtrees and the channel they
fuse to. Trees are immutable values; every transformation returns a new
tree.

Construction never validates channels. Deliberately inconsistent trees are
needed to model charge errors, so consistency is checked explicitly with
:func:`is_valid` (or ``topostim.decoders.detect_charge_violations``).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Union

from topostim.anyons.particles import (
    SIGMA,
    TAU,
    AnyonFamily,
    AnyonType,
    Particle,
    canonical,
    fusion_channels,
    multiplicity,
    particles,
    spin_j,
)
from topostim.utils.errors import OperationError, ValidationError


@dataclass(frozen=True)
class Leaf:
    """A single anyon."""
    particle: Particle

    def __str__(self) -> str:
        return str(self.particle)


@dataclass(frozen=True)
class Fusion:
    """Two subtrees fused to ``channel``."""
    left: "FusionTree"
    right: "FusionTree"
    channel: Particle

    def __str__(self) -> str:
        return f"({self.left} × {self.right} → {self.channel})"


FusionTree = Union[Leaf, Fusion]


@dataclass(frozen=True)
class FusionTreeState:
    """A fusion tree together with the theory it is expressed in."""
    tree: FusionTree
    anyon_type: AnyonType

    def __str__(self) -> str:
        return f"{self.tree} [{self.anyon_type}]"


# =============================================================================
# Construction
# =============================================================================

def leaf(particle: Particle) -> Leaf:
    return Leaf(particle)


def fuse(left: FusionTree, right: FusionTree, channel: Particle) -> Fusion:
    """Join two subtrees under ``channel`` without checking the fusion rules."""
    return Fusion(left, right, channel)


def create(tree: FusionTree, anyon_type: AnyonType) -> FusionTreeState:
    """Pair ``tree`` with ``anyon_type``.

    Raises
    ------
    ValidationError
        If any label in the tree is foreign to ``anyon_type``.
    """
    _check_labels(tree, anyon_type)
    return FusionTreeState(tree, anyon_type)


def _check_labels(tree: FusionTree, anyon_type: AnyonType) -> None:
    if isinstance(tree, Leaf):
        canonical(tree.particle, anyon_type)
        return
    canonical(tree.channel, anyon_type)
    _check_labels(tree.left, anyon_type)
    _check_labels(tree.right, anyon_type)


def canonical_tree(tree: FusionTree, anyon_type: AnyonType) -> FusionTree:
    """Copy of ``tree`` with every label replaced by its canonical form.

    Trees that differ only in equivalent labels (e.g. 1 and j=0 in SU(2)_k)
    map to the same value.

    Raises
    ------
    ValidationError
        If any label is foreign to ``anyon_type``.
    """
    if isinstance(tree, Leaf):
        return Leaf(canonical(tree.particle, anyon_type))
    return Fusion(
        canonical_tree(tree.left, anyon_type),
        canonical_tree(tree.right, anyon_type),
        canonical(tree.channel, anyon_type),
    )


# =============================================================================
# Structural queries
# =============================================================================

def total_charge(tree: FusionTree) -> Particle:
    """Charge of the whole tree: the leaf particle or the root channel."""
    if isinstance(tree, Leaf):
        return tree.particle
    return tree.channel


def size(tree: FusionTree) -> int:
    """Number of leaves."""
    if isinstance(tree, Leaf):
        return 1
    return size(tree.left) + size(tree.right)


def depth(tree: FusionTree) -> int:
    """Nesting level; a single leaf has depth 0."""
    if isinstance(tree, Leaf):
        return 0
    return 1 + max(depth(tree.left), depth(tree.right))


def leaves(tree: FusionTree) -> List[Particle]:
    """Leaf particles in left-to-right order."""
    if isinstance(tree, Leaf):
        return [tree.particle]
    return leaves(tree.left) + leaves(tree.right)


def equals(a: FusionTree, b: FusionTree) -> bool:
    """Structural equality: shape, leaves and every channel."""
    return a == b


def flip(tree: FusionTree) -> FusionTree:
    """Mirror image of ``tree`` (children swapped at every node)."""
    if isinstance(tree, Leaf):
        return tree
    return Fusion(flip(tree.right), flip(tree.left), tree.channel)


def is_valid(tree: FusionTree, anyon_type: AnyonType) -> bool:
    """True when every Fusion node's channel is allowed by its children.

    Raises
    ------
    ValidationError
        If the tree contains particles of another theory.
    """
    if isinstance(tree, Leaf):
        canonical(tree.particle, anyon_type)
        return True
    channel = canonical(tree.channel, anyon_type)
    left_ok = is_valid(tree.left, anyon_type)
    right_ok = is_valid(tree.right, anyon_type)
    allowed = fusion_channels(total_charge(tree.left), total_charge(tree.right), anyon_type)
    return left_ok and right_ok and channel in allowed


# =============================================================================
# Enumeration
# =============================================================================

def fusion_space_dimension(
    anyons: Sequence[Particle], target: Particle, anyon_type: AnyonType,
) -> int:
    """Number of fusion trees of ``anyons`` with total charge ``target``.

    Counts exactly the trees produced by :func:`all_trees`: two anyons
    contribute N^target_ab; longer rows are split at every position and the
    two halves fused through a shared intermediate charge x with
    N^target_xx > 0. An empty row has dimension 0.

    Raises
    ------
    ValidationError
        If a particle or the target is foreign to ``anyon_type``.
    """
    anyons = [canonical(p, anyon_type) for p in anyons]
    target = canonical(target, anyon_type)
    return _dimension(tuple(anyons), target, anyon_type)


def _dimension(anyons: tuple, target: Particle, anyon_type: AnyonType) -> int:
    n = len(anyons)
    if n == 0:
        return 0
    if n == 1:
        return 1 if anyons[0] == target else 0
    if n == 2:
        return multiplicity(anyons[0], anyons[1], target, anyon_type)
    total = 0
    for split in range(1, n):
        left, right = anyons[:split], anyons[split:]
        for x in particles(anyon_type):
            n_xx = multiplicity(x, x, target, anyon_type)
            if n_xx == 0:
                continue
            total += _dimension(left, x, anyon_type) * _dimension(right, x, anyon_type) * n_xx
    return total


def all_trees(
    anyons: Sequence[Particle], target: Particle, anyon_type: AnyonType,
) -> List[FusionTree]:
    """Enumerate every tree counted by :func:`fusion_space_dimension`."""
    anyons = [canonical(p, anyon_type) for p in anyons]
    target = canonical(target, anyon_type)
    return _enumerate(tuple(anyons), target, anyon_type)


def _enumerate(anyons: tuple, target: Particle, anyon_type: AnyonType) -> List[FusionTree]:
    n = len(anyons)
    if n == 0:
        return []
    if n == 1:
        return [Leaf(anyons[0])] if anyons[0] == target else []
    if n == 2:
        count = multiplicity(anyons[0], anyons[1], target, anyon_type)
        return [Fusion(Leaf(anyons[0]), Leaf(anyons[1]), target)] * count
    trees: List[FusionTree] = []
    for split in range(1, n):
        left, right = anyons[:split], anyons[split:]
        for x in particles(anyon_type):
            n_xx = multiplicity(x, x, target, anyon_type)
            if n_xx == 0:
                continue
            left_trees = _enumerate(left, x, anyon_type)
            if not left_trees:
                continue
            right_trees = _enumerate(right, x, anyon_type)
            for lt in left_trees:
                for rt in right_trees:
                    trees.extend([Fusion(lt, rt, target)] * n_xx)
    return trees


# =============================================================================
# Computational basis encoding
# =============================================================================

def qubit_leaf(anyon_type: AnyonType) -> Particle:
    """The spin-1/2-like anyon used to build encoded qubits."""
    if anyon_type.is_ising_like:
        return SIGMA
    if anyon_type.family == AnyonFamily.FIBONACCI:
        return TAU
    return spin_j(1, anyon_type.level)


def qubit_channels(anyon_type: AnyonType) -> tuple:
    """(channel for bit 0, channel for bit 1) of one leaf pair.

    Raises
    ------
    OperationError
        If the pair has fewer than two fusion channels (e.g. SU(2)_1).
    """
    leaf_particle = qubit_leaf(anyon_type)
    allowed = fusion_channels(leaf_particle, leaf_particle, anyon_type)
    if len(allowed) < 2:
        raise OperationError(
            "computational basis",
            f"{leaf_particle} × {leaf_particle} in {anyon_type} has a single channel; "
            "bit values 0 and 1 cannot be distinguished",
        )
    return allowed[0], allowed[1]


def from_computational_basis(bits: Sequence[int], anyon_type: AnyonType) -> FusionTree:
    """Encode ``bits`` as a left-associated chain of leaf pairs.

    Bit 0 fuses a pair to the vacuum, bit 1 to the next channel (ψ, τ or
    j=1). Ising states get one extra pair carrying the parity so the total
    charge is the vacuum.

    Raises
    ------
    ValidationError
        If ``bits`` is empty or holds values other than 0/1.
    OperationError
        If the theory cannot distinguish the two bit values.
    """
    if len(bits) == 0:
        raise ValidationError("bits", "at least one bit is required")
    for i, b in enumerate(bits):
        if b not in (0, 1):
            raise ValidationError("bits", f"bit {i} must be 0 or 1, got {b!r}")
    zero, one = qubit_channels(anyon_type)
    channels = [one if b else zero for b in bits]
    if anyon_type.is_ising_like:
        channels.append(one if sum(bits) % 2 else zero)

    p = qubit_leaf(anyon_type)
    tree: FusionTree = Fusion(Leaf(p), Leaf(p), channels[0])
    running = channels[0]
    for ch in channels[1:]:
        running = fusion_channels(running, ch, anyon_type)[0]
        tree = Fusion(tree, Fusion(Leaf(p), Leaf(p), ch), running)
    return tree


def to_computational_basis(tree: FusionTree, anyon_type: AnyonType) -> List[int]:
    """Decode a tree produced by :func:`from_computational_basis`.

    Raises
    ------
    ValidationError
        If the tree is not a chain of qubit pairs in a basis channel.
    """
    zero, one = qubit_channels(anyon_type)
    p = qubit_leaf(anyon_type)
    channels = _pair_channels(tree, p, anyon_type)
    bits = []
    for ch in channels:
        if ch == zero:
            bits.append(0)
        elif ch == one:
            bits.append(1)
        else:
            raise ValidationError("tree", f"pair channel {ch} is not a computational basis channel")
    if anyon_type.is_ising_like:
        if len(bits) < 2:
            raise ValidationError("tree", "Ising encoding requires a parity pair")
        bits = bits[:-1]
    return bits


def _pair_channels(tree: FusionTree, p: Particle, anyon_type: AnyonType) -> List[Particle]:
    if _is_pair(tree, p, anyon_type):
        return [canonical(tree.channel, anyon_type)]
    if isinstance(tree, Fusion) and _is_pair(tree.right, p, anyon_type):
        return _pair_channels(tree.left, p, anyon_type) + [canonical(tree.right.channel, anyon_type)]
    raise ValidationError("tree", "not a left-associated chain of qubit pairs")


def _is_pair(tree: FusionTree, p: Particle, anyon_type: AnyonType) -> bool:
    return (
        isinstance(tree, Fusion)
        and isinstance(tree.left, Leaf)
        and isinstance(tree.right, Leaf)
        and canonical(tree.left.particle, anyon_type) == p
        and canonical(tree.right.particle, anyon_type) == p
    )


def to_str(tree: FusionTree) -> str:
    return str(tree)
