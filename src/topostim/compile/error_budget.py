# src/topostim/compile/error_budget.py
"""
Error propagation and budgeting for compiled braid circuits.

Every compiled gate carries an approximation error (0 for exact braids and
intercepted gates). The errors are combined under one of three models:

- ADDITIVE: ε = Σ εᵢ
- QUADRATIC: ε = √(Σ εᵢ²), the typical accumulation of independent errors
- DIAMOND_NORM: ε = Σ εᵢ, the worst-case bound

and compared against an :class:`ErrorBudget` to grade the circuit.

Usage
-----
>>> from topostim.compile import compile_gate_sequence, make_sequence
>>> from topostim.compile.error_budget import DEFAULT_BUDGET, generate_report
>>> compilation = compile_gate_sequence(make_sequence([("H", 0), ("S", 0)]))
>>> print(generate_report(compilation, DEFAULT_BUDGET))
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence

from topostim.compile.gate_to_braid import GateSequenceCompilation
from topostim.compile.gates import Gate
from topostim.utils.errors import ValidationError

RULE = "━" * 39


class ErrorModel(Enum):
    ADDITIVE = "additive"
    QUADRATIC = "quadratic"
    DIAMOND_NORM = "diamond_norm"


_MODEL_NAMES = {
    ErrorModel.ADDITIVE: "Additive (Σεᵢ)",
    ErrorModel.QUADRATIC: "Quadratic (√Σεᵢ²)",
    ErrorModel.DIAMOND_NORM: "Diamond Norm (worst case)",
}


@dataclass(frozen=True)
class GateError:
    """Error contributed by the gate at ``position`` of a compiled sequence."""
    gate: Gate
    position: int
    error: float
    source: str


@dataclass
class ErrorAccumulation:
    gate_errors: List[GateError]
    total_error: float
    model: ErrorModel
    exact_gate_count: int
    approximate_gate_count: int
    max_single_error: float

    @property
    def gate_count(self) -> int:
        return self.exact_gate_count + self.approximate_gate_count


@dataclass(frozen=True)
class ErrorBudget:
    """Allowed error for a whole circuit and for any single gate.

    Attributes
    ----------
    max_total_error : float
        Upper bound on the accumulated error.
    max_single_gate_error : float
        Upper bound on any one gate's error.
    model : ErrorModel
        How gate errors are combined.
    """
    max_total_error: float
    max_single_gate_error: float
    model: ErrorModel = ErrorModel.QUADRATIC

    def __post_init__(self):
        if self.max_total_error < 0:
            raise ValidationError("max_total_error", f"must be non-negative, got {self.max_total_error}")
        if self.max_single_gate_error < 0:
            raise ValidationError(
                "max_single_gate_error", f"must be non-negative, got {self.max_single_gate_error}"
            )


DEFAULT_BUDGET = ErrorBudget(1e-3, 1e-5, ErrorModel.QUADRATIC)
STRICT_BUDGET = ErrorBudget(1e-6, 1e-8, ErrorModel.DIAMOND_NORM)
RELAXED_BUDGET = ErrorBudget(1e-2, 1e-4, ErrorModel.ADDITIVE)


@dataclass(frozen=True)
class QualityAssessment:
    meets_budget: bool
    current_error: float
    allowed_error: float
    error_margin: float
    budget_utilization: float
    grade: str


# =============================================================================
# Accumulation
# =============================================================================

def calculate_total_error(errors: Sequence[float], model: ErrorModel) -> float:
    if model == ErrorModel.QUADRATIC:
        return math.sqrt(sum(e * e for e in errors))
    return float(sum(errors))


def _source(method: str, magic_states: int) -> str:
    if method == "intercepted":
        return f"Exact (magic-state injection, {magic_states} state(s))"
    if method == "none":
        return "Exact (no braiding)"
    if method == "exact":
        return "Exact (braid word)"
    return "Approximated via Solovay-Kitaev"


def track_errors(
    compilation: GateSequenceCompilation, model: ErrorModel = ErrorModel.QUADRATIC,
) -> ErrorAccumulation:
    """Collect the per-gate errors of ``compilation`` and combine them under ``model``."""
    gate_errors = [
        GateError(d.gate, i, d.error, _source(d.method, d.magic_states))
        for i, d in enumerate(compilation.decompositions)
    ]
    values = [ge.error for ge in gate_errors]
    exact = sum(1 for ge in gate_errors if ge.error == 0.0)
    return ErrorAccumulation(
        gate_errors=gate_errors,
        total_error=calculate_total_error(values, model),
        model=model,
        exact_gate_count=exact,
        approximate_gate_count=len(gate_errors) - exact,
        max_single_error=max(values, default=0.0),
    )


# =============================================================================
# Budget assessment
# =============================================================================

def _grade(utilization: float) -> str:
    for limit, grade in ((10.0, "A+"), (25.0, "A"), (50.0, "B"), (75.0, "C"), (100.0, "D")):
        if utilization < limit:
            return grade
    return "F"


def assess_quality(accumulation: ErrorAccumulation, budget: ErrorBudget) -> QualityAssessment:
    """Compare ``accumulation`` against ``budget``.

    Utilisation is the percentage of ``max_total_error`` consumed; a zero
    budget reports 0% utilisation.
    """
    meets = (
        accumulation.total_error <= budget.max_total_error
        and accumulation.max_single_error <= budget.max_single_gate_error
    )
    utilization = (
        100.0 * accumulation.total_error / budget.max_total_error
        if budget.max_total_error > 0 else 0.0
    )
    return QualityAssessment(
        meets_budget=meets,
        current_error=accumulation.total_error,
        allowed_error=budget.max_total_error,
        error_margin=budget.max_total_error - accumulation.total_error,
        budget_utilization=utilization,
        grade=_grade(utilization),
    )


def suggest_optimizations(accumulation: ErrorAccumulation, budget: ErrorBudget) -> List[str]:
    suggestions: List[str] = []
    if accumulation.total_error > budget.max_total_error:
        suggestions.append("⚠️ Circuit exceeds error budget")
        if accumulation.approximate_gate_count > 0:
            suggestions.append("• Increase Solovay-Kitaev precision (smaller ε)")
            suggestions.append("• Use a larger base set (sk_base_length=5 instead of 4)")
    if accumulation.max_single_error > budget.max_single_gate_error:
        suggestions.append("⚠️ Individual gate(s) exceed single-gate error budget")
        suggestions.append("• Tighten approximation tolerance for the approximated gates")
    if accumulation.approximate_gate_count > 10:
        suggestions.append("• Apply circuit optimization to reduce gate count")
        suggestions.append("• Merge adjacent rotations before compilation")
    if budget.model == ErrorModel.DIAMOND_NORM:
        suggestions.append("ℹ️ Using conservative diamond norm model")
        suggestions.append("• Consider quadratic model for tighter error bounds")
    if not suggestions:
        suggestions.append("✅ Circuit meets error budget with room to spare")
    return suggestions


# =============================================================================
# Display
# =============================================================================

def format_accumulation(accumulation: ErrorAccumulation) -> str:
    top = sorted((ge for ge in accumulation.gate_errors if ge.error > 0), key=lambda ge: -ge.error)[:5]
    contributors = [
        f"    Gate {ge.position}: {ge.gate} (ε = {ge.error:.6e}) - {ge.source}" for ge in top
    ] or ["    (No approximate gates - all exact!)"]
    lines = [
        "Error Propagation Analysis",
        RULE,
        f"Model: {_MODEL_NAMES[accumulation.model]}",
        f"Total Error: {accumulation.total_error:.6e}",
        f"Max Single Error: {accumulation.max_single_error:.6e}",
        "",
        "Gate Breakdown:",
        f"  Exact gates: {accumulation.exact_gate_count}",
        f"  Approximate gates: {accumulation.approximate_gate_count}",
        f"  Total gates: {accumulation.gate_count}",
        "",
        "Top Error Contributors:",
        *contributors,
    ]
    return "\n".join(lines)


def format_quality_assessment(assessment: QualityAssessment) -> str:
    status = "✅ PASS" if assessment.meets_budget else "❌ FAIL"
    sign = "+" if assessment.error_margin >= 0 else ""
    lines = [
        "Circuit Quality Assessment",
        RULE,
        f"Status: {status}",
        f"Grade: {assessment.grade}",
        "",
        "Error Budget:",
        f"  Current: {assessment.current_error:.6e}",
        f"  Allowed: {assessment.allowed_error:.6e}",
        f"  Margin: {sign}{assessment.error_margin:.6e}",
        "",
        f"Budget Utilization: {assessment.budget_utilization:.1f}%",
    ]
    return "\n".join(lines)


def generate_report(compilation: GateSequenceCompilation, budget: ErrorBudget = DEFAULT_BUDGET) -> str:
    """Accumulation, assessment and recommendations in one text block."""
    accumulation = track_errors(compilation, budget.model)
    assessment = assess_quality(accumulation, budget)
    suggestions = suggest_optimizations(accumulation, budget)
    return "\n".join([
        format_accumulation(accumulation),
        "",
        format_quality_assessment(assessment),
        "",
        "Recommendations:",
        *(f"  {s}" for s in suggestions),
        RULE,
    ])
