"""
Spinor and Operator Algebra for QuarkLogic Engine.

2-component spinors, 2x2 and 4x4 complex matrices, all as numpy complex128
arrays. Belief states live here; every gate is built from these pieces.

Conventions:
    Spinor  — shape (2,), [amplitude_true, amplitude_false]
    Mat2    — shape (2, 2)
    Vec4    — shape (4,), basis order |00⟩, |01⟩, |10⟩, |11⟩
              (first qubit major, second qubit minor)
    Mat4    — shape (4, 4)

The two-body factorization at the bottom of this module is an
approximation that is exact only for product states. It is kept behind
factorize_vec4() / partial_trace_first() so a density-matrix reduction can
replace it without touching callers.
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np


# =============================================================================
# CONFIGURATION CONSTANTS
# =============================================================================

# Projection results below this norm are treated as annihilated
ANNIHILATION_TOLERANCE = 1e-10

DTYPE = np.complex128


# =============================================================================
# SPINOR OPERATIONS
# =============================================================================

def as_spinor(values: Sequence[complex]) -> np.ndarray:
    """Coerce any 2-sequence of numbers into a fresh spinor array."""
    arr = np.array(values, dtype=DTYPE).reshape(-1)
    if arr.shape != (2,):
        raise ValueError(f"spinor must have exactly 2 components, got shape {arr.shape}")
    return arr


def frozen(arr: np.ndarray) -> np.ndarray:
    """Return a read-only copy of an array."""
    out = np.array(arr, dtype=DTYPE, copy=True)
    out.setflags(write=False)
    return out


def spinor_up() -> np.ndarray:
    return np.array([1, 0], dtype=DTYPE)


def spinor_down() -> np.ndarray:
    return np.array([0, 1], dtype=DTYPE)


def spinor_norm(s: np.ndarray) -> float:
    return float(np.sqrt(np.sum(np.abs(s) ** 2)))


def normalize_spinor(s: np.ndarray) -> np.ndarray:
    """Scale to unit norm. A zero vector stays zero."""
    n = spinor_norm(s)
    if n == 0:
        return np.zeros(2, dtype=DTYPE)
    return np.asarray(s, dtype=DTYPE) / n


def spinor_inner_product(a: np.ndarray, b: np.ndarray) -> complex:
    """⟨a|b⟩ with the first argument conjugated."""
    return complex(np.vdot(a, b))


def spinor_distance(a: np.ndarray, b: np.ndarray) -> float:
    """Euclidean distance between two spinors."""
    return float(np.sqrt(np.sum(np.abs(np.asarray(a) - np.asarray(b)) ** 2)))


def prob_up(s: np.ndarray) -> float:
    return float(abs(s[0]) ** 2)


def prob_down(s: np.ndarray) -> float:
    return float(abs(s[1]) ** 2)


def relative_phase(s: np.ndarray) -> float:
    """arg(a_false) - arg(a_true)."""
    return math.atan2(s[1].imag, s[1].real) - math.atan2(s[0].imag, s[0].real)


# =============================================================================
# PAULI MATRICES
# =============================================================================

PAULI_I = np.eye(2, dtype=DTYPE)
PAULI_X = np.array([[0, 1], [1, 0]], dtype=DTYPE)
PAULI_Y = np.array([[0, -1j], [1j, 0]], dtype=DTYPE)
PAULI_Z = np.array([[1, 0], [0, -1]], dtype=DTYPE)

for _m in (PAULI_I, PAULI_X, PAULI_Y, PAULI_Z):
    _m.setflags(write=False)


# =============================================================================
# 2x2 MATRIX OPERATIONS
# =============================================================================

def identity2() -> np.ndarray:
    return np.eye(2, dtype=DTYPE)


def mat_add(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    return np.asarray(a, dtype=DTYPE) + np.asarray(b, dtype=DTYPE)


def mat_scale(m: np.ndarray, c: complex) -> np.ndarray:
    return np.asarray(m, dtype=DTYPE) * c


def mat_mul(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    return np.asarray(a, dtype=DTYPE) @ np.asarray(b, dtype=DTYPE)


def mat_vec(m: np.ndarray, v: np.ndarray) -> np.ndarray:
    return np.asarray(m, dtype=DTYPE) @ np.asarray(v, dtype=DTYPE)


def mat_adjoint(m: np.ndarray) -> np.ndarray:
    return np.conj(np.asarray(m, dtype=DTYPE)).T


def mat_trace(m: np.ndarray) -> complex:
    return complex(np.trace(m))


def mat_det(m: np.ndarray) -> complex:
    return complex(m[0, 0] * m[1, 1] - m[0, 1] * m[1, 0])


# =============================================================================
# SU(2) ROTATIONS
# =============================================================================

def rx(theta: float) -> np.ndarray:
    """R_x(θ) = cos(θ/2)I - i·sin(θ/2)X"""
    c = math.cos(theta / 2)
    s = math.sin(theta / 2)
    return np.array([[c, -1j * s], [-1j * s, c]], dtype=DTYPE)


def ry(theta: float) -> np.ndarray:
    """R_y(θ) = cos(θ/2)I - i·sin(θ/2)Y"""
    c = math.cos(theta / 2)
    s = math.sin(theta / 2)
    return np.array([[c, -s], [s, c]], dtype=DTYPE)


def rz(theta: float) -> np.ndarray:
    """R_z(θ) = cos(θ/2)I - i·sin(θ/2)Z"""
    c = math.cos(theta / 2)
    s = math.sin(theta / 2)
    return np.array([[c - 1j * s, 0], [0, c + 1j * s]], dtype=DTYPE)


def rn(nx: float, ny: float, nz: float, theta: float) -> np.ndarray:
    """
    General rotation about axis n = (nx, ny, nz).

    The axis is normalized internally; a zero-length axis yields identity.
    """
    length = math.sqrt(nx * nx + ny * ny + nz * nz)
    if length == 0:
        return identity2()
    nx, ny, nz = nx / length, ny / length, nz / length

    c = math.cos(theta / 2)
    s = math.sin(theta / 2)
    return np.array(
        [
            [complex(c, -s * nz), complex(-s * ny, -s * nx)],
            [complex(s * ny, -s * nx), complex(c, s * nz)],
        ],
        dtype=DTYPE,
    )


# =============================================================================
# PROJECTORS
# =============================================================================

PROJ_UP = np.array([[1, 0], [0, 0]], dtype=DTYPE)
PROJ_DOWN = np.array([[0, 0], [0, 1]], dtype=DTYPE)
PROJ_UP.setflags(write=False)
PROJ_DOWN.setflags(write=False)


def projector(s: Sequence[complex]) -> np.ndarray:
    """|ψ⟩⟨ψ| for the normalized version of s."""
    ns = normalize_spinor(as_spinor(s))
    return np.outer(ns, np.conj(ns))


def is_annihilated(v: np.ndarray, tolerance: float = ANNIHILATION_TOLERANCE) -> bool:
    """True when a projected vector has effectively zero norm."""
    return spinor_norm(v) < tolerance


def apply_projector(p: np.ndarray, s: np.ndarray) -> np.ndarray:
    """
    Project and renormalize.

    If the projected vector's norm is below ANNIHILATION_TOLERANCE the
    un-normalized result is returned as-is; callers detect this with
    is_annihilated(). No division by a near-zero norm ever happens.
    """
    projected = mat_vec(p, s)
    if is_annihilated(projected):
        return projected
    return normalize_spinor(projected)


# =============================================================================
# TWO-BODY OPERATIONS
# =============================================================================

def tensor2(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """|a⟩ ⊗ |b⟩ in basis order |00⟩, |01⟩, |10⟩, |11⟩."""
    return np.kron(np.asarray(a, dtype=DTYPE), np.asarray(b, dtype=DTYPE))


def tensor_mat(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """A ⊗ B as a 4x4 matrix, result[2i+k][2j+l] = a[i][j]·b[k][l]."""
    return np.kron(np.asarray(a, dtype=DTYPE), np.asarray(b, dtype=DTYPE))


def identity4() -> np.ndarray:
    return np.eye(4, dtype=DTYPE)


def mat4_vec(m: np.ndarray, v: np.ndarray) -> np.ndarray:
    return np.asarray(m, dtype=DTYPE) @ np.asarray(v, dtype=DTYPE)


def controlled_unitary(u: np.ndarray) -> np.ndarray:
    """
    Controlled-U on the second qubit.

    Identity on the block where the first qubit is in its first basis
    component (rows/cols 0-1) and U on the block where it is in its second
    basis component (rows/cols 2-3). With UP = TRUE, the rotation fires when
    the condition is FALSE.
    """
    m = identity4()
    m[2:4, 2:4] = np.asarray(u, dtype=DTYPE)
    return m


def partial_trace_first(v: np.ndarray) -> np.ndarray:
    """
    Approximate reduced spinor of the second qubit.

    Not a true partial trace: picks the dominant branch of the first qubit
    (ties go to the first branch) and returns the second qubit's conditional
    state, renormalized. Exact only for product states.
    """
    prob0 = float(abs(v[0]) ** 2 + abs(v[1]) ** 2)
    prob1 = float(abs(v[2]) ** 2 + abs(v[3]) ** 2)

    if prob0 >= prob1:
        n = math.sqrt(prob0)
        if n == 0:
            return np.zeros(2, dtype=DTYPE)
        return normalize_spinor(np.array([v[0], v[1]], dtype=DTYPE) / n)

    n = math.sqrt(prob1)
    return normalize_spinor(np.array([v[2], v[3]], dtype=DTYPE) / n)


def factorize_vec4(v: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """
    Approximately factorize |ψ⟩ ≈ |a⟩ ⊗ |b⟩.

    The first spinor comes from the marginal probabilities of the first
    qubit with zero phase; the second from partial_trace_first(). Lossy for
    entangled inputs: relative phase of the first qubit and all
    correlations are discarded.
    """
    a0_sq = float(abs(v[0]) ** 2 + abs(v[1]) ** 2)
    a1_sq = float(abs(v[2]) ** 2 + abs(v[3]) ** 2)
    spinor_a = normalize_spinor(np.array([math.sqrt(a0_sq), math.sqrt(a1_sq)], dtype=DTYPE))
    spinor_b = partial_trace_first(v)
    return spinor_a, spinor_b
