# src/topostim/fusion/operations.py
"""
Quantum states over the fusion-tree basis and the operations acting on them.

A :class:`Superposition` is an immutable ordered tuple of
(amplitude, FusionTreeState) terms in one theory. Three kinds of operation
act on it:

- F-moves: associativity rewrites ``((A B)_e C)_d <-> (A (B C)_f)_d`` that
  change basis without changing the state
- braiding: exchange of two neighbouring anyons. The pair is first brought
  under a common fusion node with F-moves, the R-symbol phase of that node is
  applied, the leaves are swapped and the F-moves are undone. One input term
  can therefore become several output terms.
- fusion measurement: the pair is brought under a common node, the channel
  of that node is measured with Born-rule probabilities and replaced by a
  single leaf carrying the observed charge (irreversible)

Every operation returns new values; inputs are never modified.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Sequence, Tuple, Union

from topostim.anyons.fmatrix import compute_f_matrix, f_value
from topostim.anyons.particles import AnyonType, Particle, canonical, fusion_channels, particles
from topostim.anyons.rmatrix import braid_phase, compute_r_matrix
from topostim.fusion.tree import (
    Fusion,
    FusionTree,
    FusionTreeState,
    Leaf,
    canonical_tree,
    is_valid,
    size,
    total_charge,
)
from topostim.utils.errors import ValidationError
from topostim.utils.numerics import NORMALIZATION_TOLERANCE

logger = logging.getLogger(__name__)

# Terms whose amplitude falls below this after merging are dropped.
_ZERO_AMPLITUDE = 1e-14

Term = Tuple[complex, FusionTreeState]


@dataclass(frozen=True)
class Superposition:
    """Linear combination of fusion-tree basis states of one theory.

    Instances are immutable; every operation builds a new one.

    Attributes
    ----------
    terms : tuple of (complex, FusionTreeState)
        Amplitudes and basis states. Any sequence is accepted and stored as a
        tuple. The same tree may appear more than once until
        :func:`combine_like_terms` is applied.
    anyon_type : AnyonType
        Theory shared by every term.
    """
    terms: Tuple[Term, ...] = field(default_factory=tuple)
    anyon_type: AnyonType = None

    def __post_init__(self):
        object.__setattr__(self, "terms", tuple(self.terms))
        for _, state in self.terms:
            if state.anyon_type != self.anyon_type:
                raise ValidationError(
                    "terms",
                    f"term in {state.anyon_type} mixed into a {self.anyon_type} superposition",
                )

    def __len__(self) -> int:
        return len(self.terms)

    def __str__(self) -> str:
        if not self.terms:
            return "0"
        return " + ".join(f"({amp:.4g})|{state.tree}⟩" for amp, state in self.terms)


@dataclass(frozen=True)
class MeasurementOutcome:
    """One branch of a fusion measurement."""
    channel: Particle
    probability: float
    state: Superposition


class FMoveDirection(Enum):
    LEFT_TO_RIGHT = "left_to_right"  # ((a b) c) -> (a (b c))
    RIGHT_TO_LEFT = "right_to_left"  # (a (b c)) -> ((a b) c)

    @property
    def inverse(self) -> "FMoveDirection":
        if self is FMoveDirection.LEFT_TO_RIGHT:
            return FMoveDirection.RIGHT_TO_LEFT
        return FMoveDirection.LEFT_TO_RIGHT


# =============================================================================
# Superposition basics
# =============================================================================

def pure_state(state: FusionTreeState) -> Superposition:
    return Superposition([(1.0 + 0j, state)], state.anyon_type)


def uniform(states: Sequence[FusionTreeState], anyon_type: AnyonType) -> Superposition:
    """Equal-amplitude normalised superposition of ``states``."""
    if not states:
        raise ValidationError("states", "at least one basis state is required")
    amp = complex(1.0 / math.sqrt(len(states)))
    return Superposition([(amp, s) for s in states], anyon_type)


def probability(amplitude: complex) -> float:
    """Born-rule weight |amplitude|^2."""
    return abs(amplitude) ** 2


def norm(superposition: Superposition) -> float:
    return math.sqrt(sum(probability(a) for a, _ in combine_like_terms(superposition).terms))


def combine_like_terms(superposition: Superposition) -> Superposition:
    """Sum the amplitudes of repeated trees, keeping first-occurrence order.

    Trees are compared after canonicalising their labels, so equivalent
    labels of one charge merge into a single term. Terms that cancel to
    (numerically) zero are dropped unless every term cancels.
    """
    merged: Dict[FusionTree, complex] = {}
    states: Dict[FusionTree, FusionTreeState] = {}
    for amp, state in superposition.terms:
        key = canonical_tree(state.tree, superposition.anyon_type)
        if key in merged:
            merged[key] += amp
        else:
            merged[key] = amp
            states[key] = state
    terms = [(amp, states[tree]) for tree, amp in merged.items()]
    nonzero = [(amp, s) for amp, s in terms if abs(amp) > _ZERO_AMPLITUDE]
    return Superposition(nonzero if nonzero else terms, superposition.anyon_type)


def normalize(superposition: Superposition) -> Superposition:
    """Merge like terms and rescale to unit norm.

    A superposition with total weight exactly zero (including the empty one)
    is returned unchanged.
    """
    total = sum(probability(a) for a, _ in superposition.terms)
    if total == 0.0:
        return superposition
    combined = combine_like_terms(superposition)
    total = sum(probability(a) for a, _ in combined.terms)
    if total == 0.0:
        return combined
    scale = 1.0 / math.sqrt(total)
    return Superposition([(a * scale, s) for a, s in combined.terms], combined.anyon_type)


def is_normalized(superposition: Superposition, tol: float = NORMALIZATION_TOLERANCE) -> bool:
    total = sum(probability(a) for a, _ in combine_like_terms(superposition).terms)
    return abs(total - 1.0) <= tol


def amplitude_of(superposition: Superposition, tree: FusionTree) -> complex:
    """Total amplitude of ``tree`` (0 when absent), up to equivalent labels."""
    anyon_type = superposition.anyon_type
    target = canonical_tree(tree, anyon_type)
    return sum(
        (a for a, s in superposition.terms if canonical_tree(s.tree, anyon_type) == target), 0j
    )


def inner_product(bra: Superposition, ket: Superposition) -> complex:
    """<bra|ket> in the orthonormal fusion-tree basis."""
    left = combine_like_terms(bra)
    right = combine_like_terms(ket)
    return sum(
        (a.conjugate() * amplitude_of(right, s.tree) for a, s in left.terms), 0j
    )


def _as_superposition(state: Union[FusionTreeState, Superposition]) -> Superposition:
    if isinstance(state, Superposition):
        return state
    return pure_state(state)


# =============================================================================
# Tree paths
# =============================================================================

LEFT, RIGHT = 0, 1
Path = Tuple[int, ...]


def _subtree(tree: FusionTree, path: Path) -> FusionTree:
    for step in path:
        tree = tree.left if step == LEFT else tree.right
    return tree


def _replace(tree: FusionTree, path: Path, replacement: FusionTree) -> FusionTree:
    if not path:
        return replacement
    if path[0] == LEFT:
        return Fusion(_replace(tree.left, path[1:], replacement), tree.right, tree.channel)
    return Fusion(tree.left, _replace(tree.right, path[1:], replacement), tree.channel)


def _nodes_at_depth(tree: FusionTree, target: int, path: Path = ()) -> List[Path]:
    if len(path) == target:
        return [path] if isinstance(tree, Fusion) else []
    if isinstance(tree, Leaf):
        return []
    return (
        _nodes_at_depth(tree.left, target, path + (LEFT,))
        + _nodes_at_depth(tree.right, target, path + (RIGHT,))
    )


def _common_ancestor(tree: FusionTree, index: int) -> Path:
    """Path to the lowest node containing leaves ``index`` and ``index + 1``."""
    path: Path = ()
    node = tree
    while True:
        left_size = size(node.left)
        if index + 1 < left_size:
            node, path = node.left, path + (LEFT,)
        elif index >= left_size:
            index -= left_size
            node, path = node.right, path + (RIGHT,)
        else:
            return path


# =============================================================================
# F-moves
# =============================================================================

def _local_f_move(
    tree: FusionTree, path: Path, direction: FMoveDirection, anyon_type: AnyonType,
) -> List[Tuple[complex, FusionTree]]:
    """Rewrite the node at ``path``; identity if it is not an associator."""
    node = _subtree(tree, path)
    f_data = compute_f_matrix(anyon_type)

    if direction is FMoveDirection.LEFT_TO_RIGHT:
        # ((x y)_e z)_d -> sum_f F[a,b,c,d;e,f] (x (y z)_f)_d
        if not (isinstance(node, Fusion) and isinstance(node.left, Fusion)):
            return [(1.0, tree)]
        x, y, z = node.left.left, node.left.right, node.right
        a, b, c, d, e = _charges(anyon_type, x, y, z, node.channel, node.left.channel)
        if e not in fusion_channels(a, b, anyon_type) or d not in fusion_channels(e, c, anyon_type):
            return [(1.0, tree)]
        result = []
        for f in fusion_channels(b, c, anyon_type):
            coeff = f_value(f_data, a, b, c, d, e, f)
            if coeff != 0:
                result.append((coeff, _replace(tree, path, Fusion(x, Fusion(y, z, f), d))))
        return result

    # (x (y z)_f)_d -> sum_e conj(F[a,b,c,d;e,f]) ((x y)_e z)_d
    if not (isinstance(node, Fusion) and isinstance(node.right, Fusion)):
        return [(1.0, tree)]
    x, y, z = node.left, node.right.left, node.right.right
    a, b, c, d, f = _charges(anyon_type, x, y, z, node.channel, node.right.channel)
    if f not in fusion_channels(b, c, anyon_type) or d not in fusion_channels(a, f, anyon_type):
        return [(1.0, tree)]
    result = []
    for e in fusion_channels(a, b, anyon_type):
        coeff = f_value(f_data, a, b, c, d, e, f)
        if coeff != 0:
            result.append((coeff.conjugate(), _replace(tree, path, Fusion(Fusion(x, y, e), z, d))))
    return result


def _charges(anyon_type: AnyonType, x, y, z, d: Particle, inner: Particle) -> Tuple[Particle, ...]:
    return tuple(
        canonical(p, anyon_type)
        for p in (total_charge(x), total_charge(y), total_charge(z), d, inner)
    )


def _apply_local(
    terms: List[Tuple[complex, FusionTree]], path: Path, direction: FMoveDirection,
    anyon_type: AnyonType,
) -> List[Tuple[complex, FusionTree]]:
    out = []
    for amp, tree in terms:
        for coeff, new_tree in _local_f_move(tree, path, direction, anyon_type):
            out.append((amp * coeff, new_tree))
    return out


def _to_superposition(terms: List[Tuple[complex, FusionTree]], anyon_type: AnyonType) -> Superposition:
    return Superposition(
        [(complex(amp), FusionTreeState(tree, anyon_type)) for amp, tree in terms], anyon_type
    )


def f_move(
    direction: FMoveDirection,
    depth: int,
    state: Union[FusionTreeState, Superposition],
) -> Superposition:
    """Apply an F-move at every fusion node ``depth`` levels below the root.

    Nodes at that depth that do not have the required shape (a Fusion child
    on the side being re-associated) or whose channels violate the fusion
    rules are left alone. If no node is found the input is returned as a
    normalised superposition.

    Parameters
    ----------
    direction : FMoveDirection
        ``LEFT_TO_RIGHT`` rewrites ((a b) c) into (a (b c)); ``RIGHT_TO_LEFT``
        applies the inverse (conjugate-transposed) move.
    depth : int
        Node depth; 0 is the root.
    state : FusionTreeState or Superposition
        The input state.

    Raises
    ------
    ValidationError
        If ``depth`` is negative.
    """
    if depth < 0:
        raise ValidationError("depth", f"depth must be non-negative, got {depth}")
    sup = _as_superposition(state)
    out: List[Term] = []
    for amp, basis in sup.terms:
        terms = [(amp, basis.tree)]
        for path in _nodes_at_depth(basis.tree, depth):
            terms = _apply_local(terms, path, direction, sup.anyon_type)
        out.extend((a, FusionTreeState(t, sup.anyon_type)) for a, t in terms)
    return normalize(Superposition(out, sup.anyon_type))


# =============================================================================
# Braiding
# =============================================================================

Move = Tuple[Path, FMoveDirection]


def _make_siblings(
    tree: FusionTree, index: int, anyon_type: AnyonType,
) -> Tuple[List[Tuple[complex, FusionTree]], List[Move], Path]:
    """F-move leaves ``index`` and ``index + 1`` under a common node.

    Returns the expanded terms (all sharing one shape), the moves applied in
    order and the path to the node whose children are the two leaves.
    """
    terms: List[Tuple[complex, FusionTree]] = [(1.0, tree)]
    moves: List[Move] = []
    path = _common_ancestor(tree, index)

    node = _subtree(terms[0][1], path)
    while isinstance(node.left, Fusion):
        terms = _apply_local(terms, path, FMoveDirection.LEFT_TO_RIGHT, anyon_type)
        moves.append((path, FMoveDirection.LEFT_TO_RIGHT))
        path = path + (RIGHT,)
        node = _subtree(terms[0][1], path)

    while isinstance(node.right, Fusion):
        terms = _apply_local(terms, path, FMoveDirection.RIGHT_TO_LEFT, anyon_type)
        moves.append((path, FMoveDirection.RIGHT_TO_LEFT))
        path = path + (LEFT,)
        node = _subtree(terms[0][1], path)

    return terms, moves, path


def _check_braid_input(index: int, state: FusionTreeState) -> None:
    n = size(state.tree)
    if not 0 <= index < n - 1:
        raise ValidationError(
            "index", f"index {index} out of range for {n} anyons (valid: 0..{n - 2})"
        )
    if not is_valid(state.tree, state.anyon_type):
        raise ValidationError("state", f"tree {state.tree} violates the fusion rules")


def braid_adjacent_anyons(
    index: int, state: FusionTreeState, clockwise: bool = True,
) -> Superposition:
    """Exchange anyons ``index`` and ``index + 1`` of a basis state.

    The pair is moved under a common node by F-moves, the node's R-symbol
    (conjugated for a counter-clockwise exchange) is applied, the two leaves
    are swapped and the F-moves are undone in reverse order. The result is
    expressed in the original tree shape with the two leaves exchanged.

    Raises
    ------
    ValidationError
        If ``index`` is not in ``[0, size - 2]`` or the tree violates the
        fusion rules.
    """
    _check_braid_input(index, state)
    anyon_type = state.anyon_type
    r_data = compute_r_matrix(anyon_type)
    terms, moves, path = _make_siblings(state.tree, index, anyon_type)

    exchanged = []
    for amp, tree in terms:
        node = _subtree(tree, path)
        a, b = node.left.particle, node.right.particle
        ph = braid_phase(r_data, a, b, node.channel, clockwise)
        exchanged.append((amp * ph, _replace(tree, path, Fusion(node.right, node.left, node.channel))))

    for move_path, direction in reversed(moves):
        exchanged = _apply_local(exchanged, move_path, direction.inverse, anyon_type)

    logger.debug(
        "Braided anyons %d,%d (%s): %d term(s)",
        index, index + 1, "cw" if clockwise else "ccw", len(exchanged),
    )
    return normalize(_to_superposition(exchanged, anyon_type))


def braid_superposition(
    index: int, superposition: Superposition, clockwise: bool = True,
) -> Superposition:
    """Braid every term of ``superposition`` and recombine linearly."""
    out: List[Term] = []
    for amp, state in superposition.terms:
        for coeff, basis in braid_adjacent_anyons(index, state, clockwise).terms:
            out.append((amp * coeff, basis))
    return normalize(Superposition(out, superposition.anyon_type))


# =============================================================================
# Fusion measurement
# =============================================================================

def measure_fusion(
    index: int, state: Union[FusionTreeState, Superposition],
) -> List[Tuple[float, MeasurementOutcome]]:
    """Measure the total charge of anyons ``index`` and ``index + 1``.

    Each term is rewritten by F-moves so the pair shares a node; terms are
    then grouped by that node's channel. Outcome ``c`` has Born probability
    ``sum |amp|^2`` over its group (normalised by the total weight) and
    post-measurement state equal to the group with the pair replaced by a
    single leaf of charge ``c``.

    Returns
    -------
    list of (float, MeasurementOutcome)
        Outcomes with non-zero probability in canonical channel order.

    Raises
    ------
    ValidationError
        If ``index`` is out of range or a term violates the fusion rules.
    """
    sup = _as_superposition(state)
    anyon_type = sup.anyon_type
    groups: Dict[Particle, List[Term]] = {}
    for amp, basis in sup.terms:
        _check_braid_input(index, basis)
        terms, _, path = _make_siblings(basis.tree, index, anyon_type)
        for coeff, tree in terms:
            node = _subtree(tree, path)
            channel = canonical(node.channel, anyon_type)
            collapsed = _replace(tree, path, Leaf(channel))
            groups.setdefault(channel, []).append(
                (amp * coeff, FusionTreeState(collapsed, anyon_type))
            )

    weights = {
        ch: sum(probability(a) for a, _ in combine_like_terms(Superposition(ts, anyon_type)).terms)
        for ch, ts in groups.items()
    }
    total = sum(weights.values())
    outcomes = []
    for ch in particles(anyon_type):
        if ch not in groups or total == 0.0:
            continue
        p = weights[ch] / total
        if p <= _ZERO_AMPLITUDE:
            continue
        post = normalize(Superposition(groups[ch], anyon_type))
        outcomes.append((p, MeasurementOutcome(ch, p, post)))
    logger.debug("Fusion measurement of anyons %d,%d: %d outcome(s)", index, index + 1, len(outcomes))
    return outcomes
