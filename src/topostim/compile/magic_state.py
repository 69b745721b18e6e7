# src/topostim/compile/magic_state.py
"""
Magic-state supply for the T gates that Ising braiding cannot perform.

Ising braids only reach the Clifford group, so the compiler hands every T and
T† to magic-state injection and counts the states it needs
(``GateSequenceCompilation.magic_state_count``). This module models where
those states come from:

- noisy preparation of |T⟩ = (|0⟩ + e^{iπ/4}|1⟩)/√2 on one topological qubit
- the 15-to-1 protocol (Bravyi-Kitaev), which suppresses the input error
  p to roughly 35 p³ per round at the cost of 15 inputs per output
- iterated rounds and a resource estimate for a target fidelity

Usage
-----
>>> from topostim.compile import compile_gate_sequence, make_sequence
>>> from topostim.compile.magic_state import estimate_compilation_resources
>>> compilation = compile_gate_sequence(make_sequence([("T", 0), ("H", 0), ("T", 0)]))
>>> requirement = estimate_compilation_resources(compilation, target_fidelity=0.9999)
>>> requirement.total_noisy_states
30
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from topostim.anyons.particles import ISING, AnyonType
from topostim.compile.gate_to_braid import GateSequenceCompilation
from topostim.fusion.tree import FusionTreeState, from_computational_basis
from topostim.utils.errors import ValidationError

logger = logging.getLogger(__name__)

BATCH_SIZE = 15
SUPPRESSION_FACTOR = 35.0
MAX_ROUNDS = 5
SYNDROME_BITS = 14

RULE = "━" * 39


@dataclass(frozen=True)
class MagicState:
    """A |T⟩ state held on one topological qubit.

    Attributes
    ----------
    carrier : FusionTreeState
        Qubit register (four σ anyons) the state is stored in.
    fidelity : float
        Overlap with the ideal |T⟩, between 0 and 1.
    """
    carrier: FusionTreeState
    fidelity: float

    @property
    def error_rate(self) -> float:
        return 1.0 - self.fidelity


@dataclass(frozen=True)
class DistillationResult:
    """Outcome of one 15-to-1 round.

    ``accepted`` is False when any syndrome bit fired; the purified state is
    still reported so that the caller can decide whether to discard it.
    """
    purified: MagicState
    acceptance_probability: float
    inputs_consumed: int
    syndromes: Tuple[bool, ...]

    @property
    def accepted(self) -> bool:
        return not any(self.syndromes)


@dataclass(frozen=True)
class ResourceEstimate:
    target_fidelity: float
    rounds: int
    noisy_states_required: int
    output_fidelity: float

    @property
    def meets_target(self) -> bool:
        return self.output_fidelity >= self.target_fidelity

    @property
    def overhead_factor(self) -> int:
        """Noisy states consumed per distilled state."""
        return self.noisy_states_required


@dataclass(frozen=True)
class MagicStateRequirement:
    """Distillation cost of every magic state a compiled circuit consumes."""
    magic_states: int
    per_state: ResourceEstimate

    @property
    def total_noisy_states(self) -> int:
        return self.magic_states * self.per_state.noisy_states_required


def _check_fidelity(name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise ValidationError(name, f"must be in [0, 1], got {value}")


def _check_ising(anyon_type: AnyonType) -> None:
    if not anyon_type.is_ising_like:
        raise ValidationError(
            "anyon_type",
            f"magic states are only needed for Ising anyons, got {anyon_type}",
        )


# =============================================================================
# Preparation and fidelity
# =============================================================================

def prepare_noisy_magic_state(error_rate: float, anyon_type: AnyonType = ISING) -> MagicState:
    """A |T⟩ state with fidelity ``1 - error_rate`` on a fresh Ising qubit.

    Raises
    ------
    ValidationError
        If ``error_rate`` is outside [0, 1] or the theory is not Ising.
    """
    _check_fidelity("error_rate", error_rate)
    _check_ising(anyon_type)
    carrier = FusionTreeState(from_computational_basis([0], anyon_type), anyon_type)
    return MagicState(carrier, 1.0 - error_rate)


def distilled_fidelity(input_fidelity: float) -> float:
    """Output fidelity of one 15-to-1 round: 1 - 35 p³ with p = 1 - F, clamped at 0."""
    _check_fidelity("input_fidelity", input_fidelity)
    p = 1.0 - input_fidelity
    return max(0.0, 1.0 - SUPPRESSION_FACTOR * p ** 3)


# =============================================================================
# Distillation
# =============================================================================

def distill_15_to_1(
    states: Sequence[MagicState], rng: Optional[np.random.Generator] = None,
) -> DistillationResult:
    """Run one 15-to-1 round on exactly fifteen noisy states.

    The output fidelity follows from the mean input fidelity. Each of the
    fourteen syndrome bits fires with probability equal to the mean input
    error rate.

    Parameters
    ----------
    states : sequence of MagicState
        Exactly ``BATCH_SIZE`` Ising magic states.
    rng : numpy.random.Generator, optional
        Source of syndrome outcomes; a fresh default generator if omitted.

    Raises
    ------
    ValidationError
        On a wrong number of inputs or a non-Ising input.
    """
    if len(states) != BATCH_SIZE:
        raise ValidationError(
            "states", f"15-to-1 distillation needs exactly {BATCH_SIZE} states, got {len(states)}"
        )
    for s in states:
        _check_ising(s.carrier.anyon_type)
    rng = rng if rng is not None else np.random.default_rng()

    mean_fidelity = float(np.mean([s.fidelity for s in states]))
    p = 1.0 - mean_fidelity
    syndromes = tuple(bool(x) for x in rng.random(SYNDROME_BITS) < p)
    acceptance = min(1.0, max(0.0, 1.0 - SUPPRESSION_FACTOR * p))
    purified = MagicState(states[0].carrier, distilled_fidelity(mean_fidelity))
    logger.debug(
        "15-to-1 round: fidelity %.6f -> %.6f, %d syndrome bit(s) fired",
        mean_fidelity, purified.fidelity, sum(syndromes),
    )
    return DistillationResult(purified, acceptance, BATCH_SIZE, syndromes)


def distill_iterative(
    rounds: int, states: Sequence[MagicState], rng: Optional[np.random.Generator] = None,
) -> MagicState:
    """Apply ``rounds`` levels of 15-to-1 distillation.

    Level r groups the outputs of level r-1 into batches of fifteen, so the
    first ``15**rounds`` states are consumed and the rest are left unused.

    Raises
    ------
    ValidationError
        If ``rounds`` is outside [1, MAX_ROUNDS] or too few states are given.
    """
    if not 1 <= rounds <= MAX_ROUNDS:
        raise ValidationError("rounds", f"must be in [1, {MAX_ROUNDS}], got {rounds}")
    required = BATCH_SIZE ** rounds
    if len(states) < required:
        raise ValidationError(
            "states", f"{rounds} round(s) need {required} states, got {len(states)}"
        )
    rng = rng if rng is not None else np.random.default_rng()

    level = list(states[:required])
    for _ in range(rounds):
        level = [
            distill_15_to_1(level[i:i + BATCH_SIZE], rng).purified
            for i in range(0, len(level), BATCH_SIZE)
        ]
    return level[0]


# =============================================================================
# Resource estimation
# =============================================================================

def estimate_resources(
    target_fidelity: float, noisy_fidelity: float, max_rounds: int = MAX_ROUNDS,
) -> ResourceEstimate:
    """Fewest rounds that lift ``noisy_fidelity`` to ``target_fidelity``.

    Stops at ``max_rounds``, or earlier once a round no longer improves the
    fidelity (input error above the distillation threshold). Check
    :attr:`ResourceEstimate.meets_target` for the outcome.
    """
    _check_fidelity("target_fidelity", target_fidelity)
    _check_fidelity("noisy_fidelity", noisy_fidelity)
    rounds, fidelity = 0, noisy_fidelity
    while fidelity < target_fidelity and rounds < max_rounds:
        improved = distilled_fidelity(fidelity)
        if improved <= fidelity:
            break
        rounds, fidelity = rounds + 1, improved
    estimate = ResourceEstimate(target_fidelity, rounds, BATCH_SIZE ** rounds, fidelity)
    if not estimate.meets_target:
        logger.warning(
            "Noisy fidelity %.6f cannot reach %.6f within %d round(s)",
            noisy_fidelity, target_fidelity, rounds,
        )
    return estimate


def estimate_compilation_resources(
    compilation: GateSequenceCompilation,
    target_fidelity: float = 0.9999,
    noisy_fidelity: float = 0.99,
) -> MagicStateRequirement:
    """Distillation cost of the magic states consumed by ``compilation``."""
    per_state = estimate_resources(target_fidelity, noisy_fidelity)
    return MagicStateRequirement(compilation.magic_state_count, per_state)


# =============================================================================
# Display
# =============================================================================

def format_magic_state(state: MagicState) -> str:
    return f"Magic State: Fidelity = {state.fidelity * 100:.2f}%, Error Rate = {state.error_rate:.6f}"


def format_distillation_result(result: DistillationResult) -> str:
    syndromes = "".join("1" if s else "0" for s in result.syndromes)
    return "\n".join([
        format_magic_state(result.purified),
        f"Acceptance Probability: {result.acceptance_probability:.4f}",
        f"Input States Consumed: {result.inputs_consumed}",
        f"Syndromes: {syndromes} ({'accepted' if result.accepted else 'rejected'})",
    ])


def format_resource_estimate(estimate: ResourceEstimate) -> str:
    return "\n".join([
        f"Resource Estimate for {estimate.target_fidelity * 100:.2f}% fidelity",
        RULE,
        f"  Distillation Rounds: {estimate.rounds}",
        f"  Noisy States Required: {estimate.noisy_states_required:,}",
        f"  Output Fidelity: {estimate.output_fidelity * 100:.4f}%",
        f"  Overhead Factor: {estimate.overhead_factor}x",
    ])
