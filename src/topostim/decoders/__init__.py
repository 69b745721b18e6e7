# src/topostim/decoders/__init__.py
"""
Charge-violation decoders for fusion-tree states.

Available decoders:
- GreedyChargeDecoder: bottom-up repair, vacuum-first channel choice
"""

from topostim.decoders.base import AnyonicDecoder
from topostim.decoders.charge_correction import (
    PathDirection,
    ChargeViolation,
    Syndrome,
    CorrectionResult,
    GreedyChargeDecoder,
    detect_charge_violations,
    extract_syndrome,
    inject_charge_flip,
    correct_charge_violations,
    project_to_code_space,
    full_correction,
    format_path,
    format_syndrome,
)

__all__ = [
    "AnyonicDecoder",
    "PathDirection",
    "ChargeViolation",
    "Syndrome",
    "CorrectionResult",
    "GreedyChargeDecoder",
    "detect_charge_violations",
    "extract_syndrome",
    "inject_charge_flip",
    "correct_charge_violations",
    "project_to_code_space",
    "full_correction",
    "format_path",
    "format_syndrome",
]
