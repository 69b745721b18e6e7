# src/topostim/fusion/__init__.py
"""
Fusion-tree basis states and the operations acting on them.

Modules
-------
- tree: Leaf/Fusion trees, enumeration, computational-basis encoding
- operations: superpositions, F-moves, braiding, fusion measurement
"""

from topostim.fusion.tree import (
    Leaf,
    Fusion,
    FusionTree,
    FusionTreeState,
    leaf,
    fuse,
    create,
    canonical_tree,
    total_charge,
    size,
    depth,
    leaves,
    equals,
    flip,
    is_valid,
    fusion_space_dimension,
    all_trees,
    qubit_leaf,
    qubit_channels,
    from_computational_basis,
    to_computational_basis,
    to_str,
)
from topostim.fusion.operations import (
    Superposition,
    MeasurementOutcome,
    FMoveDirection,
    pure_state,
    uniform,
    probability,
    norm,
    combine_like_terms,
    normalize,
    is_normalized,
    amplitude_of,
    inner_product,
    f_move,
    braid_adjacent_anyons,
    braid_superposition,
    measure_fusion,
)

__all__ = [
    # Trees
    "Leaf",
    "Fusion",
    "FusionTree",
    "FusionTreeState",
    "leaf",
    "fuse",
    "create",
    "canonical_tree",
    "total_charge",
    "size",
    "depth",
    "leaves",
    "equals",
    "flip",
    "is_valid",
    "fusion_space_dimension",
    "all_trees",
    "qubit_leaf",
    "qubit_channels",
    "from_computational_basis",
    "to_computational_basis",
    "to_str",
    # States and operations
    "Superposition",
    "MeasurementOutcome",
    "FMoveDirection",
    "pure_state",
    "uniform",
    "probability",
    "norm",
    "combine_like_terms",
    "normalize",
    "is_normalized",
    "amplitude_of",
    "inner_product",
    "f_move",
    "braid_adjacent_anyons",
    "braid_superposition",
    "measure_fusion",
]
