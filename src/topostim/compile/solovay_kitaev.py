# src/topostim/compile/solovay_kitaev.py
"""
Solovay-Kitaev approximation of single-qubit unitaries over a finite alphabet.

Any finite set of SU(2) elements generating a dense subgroup can approximate
every single-qubit gate. This module implements the Dawson-Nielsen
recursion::

    approximate(U, 0) = closest word of the base set
    approximate(U, n) = V_{n-1} W_{n-1} V_{n-1}† W_{n-1}† U_{n-1}

where U_{n-1} = approximate(U, n-1), and V, W are a balanced group
commutator factorisation of the residual U U_{n-1}†, each approximated one
level down.

Alphabets are generic: the braid compilers feed the two-dimensional images
of braid generators, while :func:`clifford_t_alphabet` gives the textbook
{H, S, T, ...} set. Distances are insensitive to global phase::

    d(U, V) = sqrt(max(0, 4 - 2 |tr(U† V)|))

Results are deterministic and the recursion never exceeds ``max_depth``;
a refinement level is kept only when it lowers the error.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional, Sequence, Tuple

import numpy as np

from topostim.compile.gates import named_unitary
from topostim.utils.errors import ValidationError

logger = logging.getLogger(__name__)

Word = Tuple[int, ...]

_PAULI_X = np.array([[0, 1], [1, 0]], dtype=complex)
_PAULI_Y = np.array([[0, -1j], [1j, 0]], dtype=complex)
_PAULI_Z = np.array([[1, 0], [0, -1]], dtype=complex)
_IDENTITY = np.eye(2, dtype=complex)

# Rounding used to identify base-set words with the same matrix up to phase.
_DEDUP_DECIMALS = 9

# Squared distances below this are rounding noise from exact products.
_GAP_FLOOR = 1e-13


@dataclass(frozen=True)
class SolovayKitaevConfig:
    """Search parameters.

    Attributes
    ----------
    base_length : int
        Longest word enumerated into the base set.
    max_depth : int
        Recursion depth limit.
    precision : float
        Stop refining once the phase-invariant distance drops below this.
    commutator_search : bool
        Factor residuals by searching the base set instead of the analytic
        balanced commutator.
    """
    base_length: int = 3
    max_depth: int = 3
    precision: float = 1e-3
    commutator_search: bool = False

    def __post_init__(self):
        if self.base_length < 1:
            raise ValidationError("base_length", f"must be at least 1, got {self.base_length}")
        if self.max_depth < 0:
            raise ValidationError("max_depth", f"must be non-negative, got {self.max_depth}")
        if self.precision <= 0:
            raise ValidationError("precision", f"must be positive, got {self.precision}")


@dataclass(frozen=True, eq=False)
class Alphabet:
    """Finite generating set of 2x2 unitaries.

    Attributes
    ----------
    name : str
        Label used in logs.
    labels : tuple of str
        One label per symbol.
    matrices : tuple of np.ndarray
        2x2 unitary for each symbol.
    inverses : tuple of int
        Index of the inverse symbol of each symbol.
    """
    name: str
    labels: Tuple[str, ...]
    matrices: Tuple[np.ndarray, ...]
    inverses: Tuple[int, ...]

    def __post_init__(self):
        if not self.labels:
            raise ValidationError("alphabet", "an alphabet needs at least one symbol")
        if not (len(self.labels) == len(self.matrices) == len(self.inverses)):
            raise ValidationError("alphabet", "labels, matrices and inverses must have equal length")
        for i, j in enumerate(self.inverses):
            product = self.matrices[i] @ self.matrices[j]
            if operator_distance(product, _IDENTITY) > 1e-9:
                raise ValidationError(
                    "alphabet", f"{self.labels[j]} is not the inverse of {self.labels[i]}"
                )

    def __len__(self) -> int:
        return len(self.labels)


@dataclass(frozen=True)
class ApproximationResult:
    """Outcome of :func:`approximate_gate`.

    ``word`` indexes the alphabet; ``matrix`` is its product (first symbol
    applied first, i.e. leftmost factor last).
    """
    word: Word
    matrix: np.ndarray
    error: float
    depth: int
    alphabet: Alphabet

    @property
    def gate_count(self) -> int:
        return len(self.word)

    @property
    def labels(self) -> List[str]:
        return [self.alphabet.labels[s] for s in self.word]


@dataclass(frozen=True)
class BaseSet:
    words: Tuple[Word, ...]
    matrices: np.ndarray  # shape (n, 2, 2)

    def __len__(self) -> int:
        return len(self.words)


# =============================================================================
# SU(2) helpers
# =============================================================================

def dagger(u: np.ndarray) -> np.ndarray:
    return u.conj().T


def commutator(v: np.ndarray, w: np.ndarray) -> np.ndarray:
    """Group commutator V W V† W†."""
    return v @ w @ dagger(v) @ dagger(w)


def operator_distance(u: np.ndarray, v: np.ndarray) -> float:
    """Global-phase-invariant distance between two 2x2 unitaries."""
    gap = 4.0 - 2.0 * abs(np.trace(dagger(u) @ v))
    return math.sqrt(gap) if gap > _GAP_FLOOR else 0.0


def to_su2(u: np.ndarray) -> np.ndarray:
    """Rescale a 2x2 unitary to determinant 1."""
    det = np.linalg.det(u)
    return u / np.sqrt(det)


def rotation(axis: Sequence[float], angle: float) -> np.ndarray:
    """exp(-i angle/2 n·σ)."""
    nx, ny, nz = axis
    generator = nx * _PAULI_X + ny * _PAULI_Y + nz * _PAULI_Z
    return math.cos(angle / 2) * _IDENTITY - 1j * math.sin(angle / 2) * generator


def axis_angle(u: np.ndarray) -> Tuple[np.ndarray, float]:
    """Rotation axis and angle in [0, π] of ``u`` viewed as an SO(3) rotation."""
    su = to_su2(u)
    if np.trace(su).real < 0:
        su = -su
    cos_half = min(1.0, max(-1.0, np.trace(su).real / 2))
    angle = 2 * math.acos(cos_half)
    vec = np.array([
        -np.imag(su[0, 1] + su[1, 0]) / 2,
        np.real(su[1, 0] - su[0, 1]) / 2,
        -np.imag(su[0, 0] - su[1, 1]) / 2,
    ])
    norm = np.linalg.norm(vec)
    if norm < 1e-15:
        return np.array([0.0, 0.0, 1.0]), 0.0
    return vec / norm, angle


def _rotation_between(m: np.ndarray, n: np.ndarray) -> np.ndarray:
    """SU(2) element rotating unit vector ``m`` onto ``n``."""
    cross = np.cross(m, n)
    dot = float(np.clip(np.dot(m, n), -1.0, 1.0))
    if np.linalg.norm(cross) < 1e-12:
        if dot > 0:
            return _IDENTITY.copy()
        # Antiparallel: half-turn about any perpendicular axis.
        perp = np.cross(m, [1.0, 0.0, 0.0])
        if np.linalg.norm(perp) < 1e-6:
            perp = np.cross(m, [0.0, 1.0, 0.0])
        return rotation(perp / np.linalg.norm(perp), math.pi)
    return rotation(cross / np.linalg.norm(cross), math.acos(dot))


def balanced_commutator(delta: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """V, W with V W V† W† = ``delta`` (up to phase), each close to identity.

    For a rotation by θ, V and W are rotations by φ about orthogonal axes with
    sin(θ/2) = 2 sin²(φ/2) sqrt(1 - sin⁴(φ/2)), conjugated so the commutator
    axis matches the axis of ``delta``.
    """
    axis, theta = axis_angle(delta)
    if theta < 1e-15:
        return _IDENTITY.copy(), _IDENTITY.copy()
    sin_sq = math.sqrt((1.0 - math.cos(theta / 2)) / 2.0)
    phi = 2 * math.asin(math.sqrt(sin_sq))
    v = rotation((1.0, 0.0, 0.0), phi)
    w = rotation((0.0, 1.0, 0.0), phi)
    comm_axis, _ = axis_angle(commutator(v, w))
    s = _rotation_between(comm_axis, axis)
    return s @ v @ dagger(s), s @ w @ dagger(s)


# =============================================================================
# Alphabets and base sets
# =============================================================================

def word_matrix(word: Word, alphabet: Alphabet) -> np.ndarray:
    """Unitary of ``word``: symbols act left to right, so later symbols multiply on the left."""
    m = _IDENTITY.copy()
    for s in word:
        m = alphabet.matrices[s] @ m
    return m


def inverse_word(word: Word, alphabet: Alphabet) -> Word:
    return tuple(alphabet.inverses[s] for s in reversed(word))


def reduce_word(word: Word, alphabet: Alphabet) -> Word:
    """Cancel adjacent symbol/inverse pairs."""
    stack: List[int] = []
    for s in word:
        if stack and alphabet.inverses[stack[-1]] == s:
            stack.pop()
        else:
            stack.append(s)
    return tuple(stack)


def _phase_key(m: np.ndarray) -> tuple:
    flat = m.reshape(-1)
    pivot = flat[np.argmax(np.abs(flat) > 1e-6)]
    normalised = flat * (abs(pivot) / pivot)
    return tuple(np.round(normalised.real, _DEDUP_DECIMALS) + 0.0) + tuple(
        np.round(normalised.imag, _DEDUP_DECIMALS) + 0.0
    )


@lru_cache(maxsize=32)
def build_base_set(alphabet: Alphabet, base_length: int) -> BaseSet:
    """All distinct (up to phase) words of length <= ``base_length``.

    Words are enumerated breadth-first so each matrix keeps its shortest
    word; the empty word (identity) is included.
    """
    seen = {_phase_key(_IDENTITY): ()}
    words: List[Word] = [()]
    mats: List[np.ndarray] = [_IDENTITY.copy()]
    frontier: List[Tuple[Word, np.ndarray]] = [((), _IDENTITY.copy())]
    for _ in range(base_length):
        nxt = []
        for word, m in frontier:
            for s in range(len(alphabet)):
                if word and alphabet.inverses[word[-1]] == s:
                    continue
                new_word = word + (s,)
                new_m = alphabet.matrices[s] @ m
                key = _phase_key(new_m)
                if key in seen:
                    continue
                seen[key] = new_word
                words.append(new_word)
                mats.append(new_m)
                nxt.append((new_word, new_m))
        frontier = nxt
    logger.debug(
        "Base set for %s (length %d): %d distinct elements", alphabet.name, base_length, len(words)
    )
    return BaseSet(tuple(words), np.array(mats))


def _distances(target: np.ndarray, mats: np.ndarray) -> np.ndarray:
    overlaps = np.abs(np.einsum("ij,kij->k", target.conj(), mats))
    gap = 4.0 - 2.0 * overlaps
    return np.sqrt(np.where(gap > _GAP_FLOOR, gap, 0.0))


def find_closest_in_base_set(target: np.ndarray, base_set: BaseSet) -> Tuple[Word, np.ndarray, float]:
    """Nearest base-set element; ties go to the earliest (shortest) word."""
    dist = _distances(target, base_set.matrices)
    i = int(np.argmin(dist))
    return base_set.words[i], base_set.matrices[i], float(dist[i])


def find_commutator_factorization(
    target: np.ndarray, base_set: BaseSet,
) -> Optional[Tuple[Word, np.ndarray, Word, np.ndarray, float]]:
    """Brute-force search for base-set V, W with [V, W] closest to ``target``.

    Returns ``(v_word, v, w_word, w, distance)`` or None for an empty base set.
    """
    n = len(base_set)
    if n == 0:
        return None
    mats = base_set.matrices
    daggers = np.conj(np.transpose(mats, (0, 2, 1)))
    best = None
    for i in range(n):
        # [V_i, W] for every W at once.
        comms = np.einsum("ij,kjl,lm,kmn->kin", mats[i], mats, daggers[i], daggers)
        dist = _distances(target, comms)
        j = int(np.argmin(dist))
        if best is None or dist[j] < best[4] - 1e-15:
            best = (base_set.words[i], mats[i], base_set.words[j], mats[j], float(dist[j]))
    return best


# =============================================================================
# Recursion
# =============================================================================

def _approximate(
    target: np.ndarray, level: int, base_set: BaseSet, alphabet: Alphabet,
    config: SolovayKitaevConfig,
) -> Tuple[Word, np.ndarray, float, int]:
    word, matrix, error = find_closest_in_base_set(target, base_set)
    if level == 0 or error < config.precision:
        return word, matrix, error, 0

    u_word, u_mat, u_err, u_depth = _approximate(target, level - 1, base_set, alphabet, config)
    if u_err < config.precision:
        return u_word, u_mat, u_err, u_depth

    delta = target @ dagger(u_mat)
    if config.commutator_search:
        found = find_commutator_factorization(delta, base_set)
        if found is None:
            return u_word, u_mat, u_err, u_depth
        v_target, w_target = found[1], found[3]
    else:
        v_target, w_target = balanced_commutator(delta)

    v_word, v_mat, _, _ = _approximate(v_target, level - 1, base_set, alphabet, config)
    w_word, w_mat, _, _ = _approximate(w_target, level - 1, base_set, alphabet, config)

    # V W V† W† U as a word: U acts first.
    new_word = reduce_word(
        u_word + inverse_word(w_word, alphabet) + inverse_word(v_word, alphabet) + w_word + v_word,
        alphabet,
    )
    new_mat = commutator(v_mat, w_mat) @ u_mat
    new_err = operator_distance(target, new_mat)
    logger.debug("SK level %d: error %.3e -> %.3e", level, u_err, new_err)
    if new_err < u_err:
        return new_word, new_mat, new_err, u_depth + 1
    return u_word, u_mat, u_err, u_depth


def approximate_gate(
    target: np.ndarray,
    precision: float = 1e-3,
    base_length: int = 3,
    max_depth: int = 3,
    alphabet: Optional[Alphabet] = None,
    commutator_search: bool = False,
) -> ApproximationResult:
    """Approximate a 2x2 unitary by a word over ``alphabet``.

    Parameters
    ----------
    target : np.ndarray
        2x2 unitary (any global phase).
    precision : float
        Refinement stops once the phase-invariant distance is below this.
    base_length : int
        Longest word in the base set.
    max_depth : int
        Maximum recursion depth.
    alphabet : Alphabet, optional
        Generating set; defaults to :func:`clifford_t_alphabet`.
    commutator_search : bool
        Use :func:`find_commutator_factorization` instead of the analytic
        balanced commutator.

    Returns
    -------
    ApproximationResult
        Word, its matrix, the achieved error and the recursion depth used.

    Raises
    ------
    ValidationError
        If ``target`` is not a 2x2 unitary or a parameter is out of range.
    """
    target = np.asarray(target, dtype=complex)
    if target.shape != (2, 2):
        raise ValidationError("target", f"expected a 2x2 matrix, got shape {target.shape}")
    if not np.allclose(target @ dagger(target), _IDENTITY, atol=1e-6):
        raise ValidationError("target", "matrix is not unitary")
    config = SolovayKitaevConfig(base_length, max_depth, precision, commutator_search)
    if alphabet is None:
        alphabet = clifford_t_alphabet()
    base_set = build_base_set(alphabet, config.base_length)
    word, matrix, error, depth = _approximate(target, config.max_depth, base_set, alphabet, config)
    return ApproximationResult(word, matrix, error, depth, alphabet)


def approximate_with_config(
    target: np.ndarray, config: SolovayKitaevConfig, alphabet: Optional[Alphabet] = None,
) -> ApproximationResult:
    return approximate_gate(
        target, config.precision, config.base_length, config.max_depth, alphabet,
        config.commutator_search,
    )


@lru_cache(maxsize=None)
def clifford_t_alphabet() -> Alphabet:
    """{T, T†, H, S, S†, X, Y, Z} with stim's Clifford unitaries."""
    labels = ("T", "T_DAG", "H", "S", "S_DAG", "X", "Y", "Z")
    inverses = (1, 0, 2, 4, 3, 5, 6, 7)
    return Alphabet(
        "clifford+T", labels, tuple(named_unitary(name) for name in labels), inverses,
    )
