# src/topostim/decoders/charge_correction.py
"""
Charge-violation detection and correction on fusion trees.

Lattice codes correct Pauli errors on qubits; here the protected
information is the fusion-channel structure itself. The dominant error is a
charge flip: a Fusion node whose channel is no longer an allowed outcome of
its children's charges.

Pipeline
--------
1. :func:`detect_charge_violations` / :func:`extract_syndrome` walk the tree
   (children before parents) and report every inconsistent node with its
   path from the root.
2. :class:`GreedyChargeDecoder` repairs the tree bottom-up: children are
   corrected first and each node is then checked against its corrected
   children, so a repair propagates to the ancestors that depend on it.
3. :func:`project_to_code_space` keeps only the superposition terms with the
   protected total charge and renormalises.

:func:`full_correction` chains 2 and 3 term-wise across a superposition.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from topostim.anyons.particles import AnyonType, Particle, canonical, fusion_channels, vacuum
from topostim.decoders.base import AnyonicDecoder
from topostim.fusion.operations import Superposition, normalize
from topostim.fusion.tree import Fusion, FusionTree, FusionTreeState, Leaf, total_charge
from topostim.utils.errors import ValidationError

logger = logging.getLogger(__name__)


class PathDirection(Enum):
    LEFT = "L"
    RIGHT = "R"


Path = Tuple[PathDirection, ...]


@dataclass(frozen=True)
class ChargeViolation:
    """A Fusion node whose channel its children cannot produce.

    Attributes
    ----------
    path : tuple of PathDirection
        Route from the root to the node (empty for the root).
    actual_channel : Particle
        The channel stored at the node.
    expected_channels : tuple of Particle
        Channels the children's charges allow, in canonical order.
    left_charge, right_charge : Particle
        Total charges of the two children.
    """
    path: Path
    actual_channel: Particle
    expected_channels: Tuple[Particle, ...]
    left_charge: Particle
    right_charge: Particle


@dataclass(frozen=True)
class Syndrome:
    violations: Tuple[ChargeViolation, ...]
    anyon_type: AnyonType

    @property
    def is_clean(self) -> bool:
        return not self.violations

    @property
    def violation_count(self) -> int:
        return len(self.violations)


@dataclass(frozen=True)
class CorrectionResult:
    tree: FusionTree
    anyon_type: AnyonType
    corrections_applied: int = 0


# =============================================================================
# Detection
# =============================================================================

def _allowed(left: FusionTree, right: FusionTree, anyon_type: AnyonType) -> List[Particle]:
    return fusion_channels(total_charge(left), total_charge(right), anyon_type)


def detect_charge_violations(tree: FusionTree, anyon_type: AnyonType) -> List[ChargeViolation]:
    """All inconsistent Fusion nodes, children reported before their parent.

    Raises
    ------
    ValidationError
        If the tree holds particles of another theory.
    """
    violations: List[ChargeViolation] = []

    def walk(node: FusionTree, path: Path) -> None:
        if isinstance(node, Leaf):
            canonical(node.particle, anyon_type)
            return
        walk(node.left, path + (PathDirection.LEFT,))
        walk(node.right, path + (PathDirection.RIGHT,))
        allowed = _allowed(node.left, node.right, anyon_type)
        channel = canonical(node.channel, anyon_type)
        if channel not in allowed:
            violations.append(ChargeViolation(
                path=path,
                actual_channel=node.channel,
                expected_channels=tuple(allowed),
                left_charge=canonical(total_charge(node.left), anyon_type),
                right_charge=canonical(total_charge(node.right), anyon_type),
            ))

    walk(tree, ())
    return violations


def extract_syndrome(state: FusionTreeState) -> Syndrome:
    violations = detect_charge_violations(state.tree, state.anyon_type)
    if violations:
        logger.debug("Syndrome for %s: %d violation(s)", state.anyon_type, len(violations))
    return Syndrome(tuple(violations), state.anyon_type)


# =============================================================================
# Error injection
# =============================================================================

def inject_charge_flip(tree: FusionTree, path: Sequence[PathDirection], anyon_type: AnyonType) -> FusionTree:
    """Replace the channel at ``path`` with a different allowed channel.

    The first allowed channel (canonical order) other than the current one is
    used. A node with a single allowed channel is returned unchanged.

    Raises
    ------
    ValidationError
        If ``path`` ends on a leaf or runs past one.
    """
    def inject(node: FusionTree, remaining: Sequence[PathDirection]) -> FusionTree:
        if isinstance(node, Leaf):
            if remaining:
                raise ValidationError("path", "path extends beyond tree structure (reached leaf)")
            raise ValidationError("path", "cannot inject charge flip on a leaf node (no fusion channel)")
        if not remaining:
            current = canonical(node.channel, anyon_type)
            others = [c for c in _allowed(node.left, node.right, anyon_type) if c != current]
            if not others:
                return node
            return Fusion(node.left, node.right, others[0])
        step, rest = remaining[0], remaining[1:]
        if step == PathDirection.LEFT:
            return Fusion(inject(node.left, rest), node.right, node.channel)
        return Fusion(node.left, inject(node.right, rest), node.channel)

    return inject(tree, tuple(path))


# =============================================================================
# Correction
# =============================================================================

class GreedyChargeDecoder(AnyonicDecoder):
    """Bottom-up repair choosing the vacuum when allowed, else the first allowed channel."""

    def decode(self, state: FusionTreeState) -> CorrectionResult:
        anyon_type = state.anyon_type
        one = vacuum(anyon_type)

        def correct(node: FusionTree) -> Tuple[FusionTree, int]:
            if isinstance(node, Leaf):
                return node, 0
            left, left_fixes = correct(node.left)
            right, right_fixes = correct(node.right)
            allowed = _allowed(left, right, anyon_type)
            fixes = left_fixes + right_fixes
            if canonical(node.channel, anyon_type) in allowed:
                return Fusion(left, right, node.channel), fixes
            chosen = one if one in allowed else allowed[0]
            return Fusion(left, right, chosen), fixes + 1

        tree, fixes = correct(state.tree)
        if fixes:
            logger.debug("Greedy decoder applied %d correction(s) in %s", fixes, anyon_type)
        return CorrectionResult(tree, anyon_type, fixes)


def correct_charge_violations(
    state: FusionTreeState, decoder: Optional[AnyonicDecoder] = None,
) -> CorrectionResult:
    """Repair every violation of ``state``; valid trees come back with 0 corrections."""
    decoder = decoder or GreedyChargeDecoder()
    return decoder.decode(state)


# =============================================================================
# Code-space projection
# =============================================================================

def project_to_code_space(superposition: Superposition, target_charge: Particle) -> Superposition:
    """Keep the terms whose total charge is ``target_charge`` and renormalise.

    An empty result is returned as an empty superposition, not an error.
    """
    anyon_type = superposition.anyon_type
    target = canonical(target_charge, anyon_type)
    kept = [
        (amp, state) for amp, state in superposition.terms
        if canonical(total_charge(state.tree), anyon_type) == target
    ]
    projected = Superposition(kept, anyon_type)
    if not kept:
        return projected
    return normalize(projected)


def full_correction(
    superposition: Superposition, target_charge: Particle,
    decoder: Optional[AnyonicDecoder] = None,
) -> Superposition:
    """Correct every term's tree, then project onto ``target_charge``."""
    decoder = decoder or GreedyChargeDecoder()
    terms = []
    for amp, state in superposition.terms:
        result = decoder.decode(state)
        terms.append((amp, FusionTreeState(result.tree, result.anyon_type)))
    return project_to_code_space(Superposition(terms, superposition.anyon_type), target_charge)


# =============================================================================
# Display
# =============================================================================

def format_path(path: Sequence[PathDirection]) -> str:
    if not path:
        return "root"
    return "".join(step.value for step in path)


def format_syndrome(syndrome: Syndrome) -> str:
    if syndrome.is_clean:
        return f"Syndrome: Clean (no charge violations detected)\nTheory: {syndrome.anyon_type}"
    lines = [
        f"Syndrome: {syndrome.violation_count} charge violation(s) detected",
        f"Theory: {syndrome.anyon_type}",
    ]
    for i, v in enumerate(syndrome.violations):
        expected = ", ".join(str(p) for p in v.expected_channels)
        lines.append(
            f"  Violation {i + 1}: path={format_path(v.path)}, actual={v.actual_channel}, "
            f"expected=[{expected}]"
        )
    return "\n".join(lines)
