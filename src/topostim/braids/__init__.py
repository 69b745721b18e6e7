# src/topostim/braids/__init__.py
"""
Braid group algebra and its action on anyons.

Usage
-----
>>> from topostim.anyons import ISING, SIGMA, VACUUM
>>> from topostim.braids import from_generators, sigma, apply_braid
>>> braid = from_generators(2, [sigma(0)])
>>> apply_braid(braid, [SIGMA, SIGMA], VACUUM, ISING).phase  # exp(-iπ/8)
"""

from topostim.braids.braid_group import (
    BraidGenerator,
    Braid,
    BraidStep,
    BraidResult,
    sigma,
    sigma_inv,
    identity,
    from_generators,
    compose,
    inverse,
    length,
    exchange,
    full_twist,
    cyclic_permutation,
    simplify,
    do_commute,
    is_yang_baxter_triple,
    apply_braid,
    verify_inverse,
    verify_yang_baxter,
    verify_yang_baxter_all_channels,
    to_str,
    format_braid_result,
)

__all__ = [
    "BraidGenerator",
    "Braid",
    "BraidStep",
    "BraidResult",
    "sigma",
    "sigma_inv",
    "identity",
    "from_generators",
    "compose",
    "inverse",
    "length",
    "exchange",
    "full_twist",
    "cyclic_permutation",
    "simplify",
    "do_commute",
    "is_yang_baxter_triple",
    "apply_braid",
    "verify_inverse",
    "verify_yang_baxter",
    "verify_yang_baxter_all_channels",
    "to_str",
    "format_braid_result",
]
