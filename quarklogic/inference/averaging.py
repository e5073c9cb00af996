"""
Cross-Chain Gap Inference for QuarkLogic Engine.

A missing gate is reconstructed from sibling chains that have a known gate
on the same target at the same step.

Pipeline:
    1. Collect each sibling gate's 2x2 unitary
    2. Weight it by glimpse similarity exp(-mean |Δ P(true)|)
    3. Weighted linear average of the matrix entries
    4. Project back: column normalization + Gram-Schmidt along Re(u0)
    5. Extract axis and angle (trace → half-angle, imaginary parts → axis)
    6. Quantize the angle to a multiple of π/4
    7. Emit a ROTATE gate restricted to the first supplied flavor pattern

Steps 3-4 are a linear approximation to averaging on the group, not
Lie-algebra averaging. It is exact only for nearby rotations. Step 5 reads
x rotations back with axis (1, 1, 0)/√2 and y rotations with the z axis;
see extract_rotation_params.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np

from ..domain import FlavorPattern, all_flavors_pattern
from ..gates.tokens import GateToken, compute_spin_rotation, rotate_gate
from ..spinor import DTYPE, identity2
from ..world import Glimpse
from .chains import ReasoningChain

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION CONSTANTS
# =============================================================================

ANGLE_QUANTUM = math.pi / 4
UNITARY_TOLERANCE = 1e-10
DEFAULT_AXIS = (0.0, 0.0, 1.0)


# =============================================================================
# UNITARY AVERAGING
# =============================================================================

def normalize_to_unitary(m: np.ndarray) -> np.ndarray:
    """
    Approximate unitary by Gram-Schmidt on the columns.

    The projection of the second column onto the first is subtracted along
    Re(u0) only, so the result is exactly unitary when the first column is
    real or the columns are already orthogonal, but not in general. A
    vanishing first column gives the identity. A second column parallel to
    the first is replaced by (-conj(u0[1]), conj(u0[0])).
    """
    m = np.asarray(m, dtype=DTYPE)
    c0 = m[:, 0]
    c1 = m[:, 1]

    n0 = float(np.linalg.norm(c0))
    if n0 < UNITARY_TOLERANCE:
        return identity2()
    u0 = c0 / n0

    dot = np.vdot(u0, c1)
    c1_orth = c1 - dot * u0.real
    n1 = float(np.linalg.norm(c1_orth))
    if n1 < UNITARY_TOLERANCE:
        u1 = np.array(
            [complex(-u0[1].real, u0[1].imag), complex(u0[0].real, -u0[0].imag)],
            dtype=DTYPE,
        )
    else:
        u1 = c1_orth / n1

    return np.column_stack([u0, u1])



def average_unitaries(
    matrices: Sequence[np.ndarray],
    weights: Optional[Sequence[float]] = None,
) -> np.ndarray:
    """
    Weighted average of 2x2 unitaries, re-projected onto the unitary group.

    Weights are normalized to sum to 1. All-zero weights fall back to a
    uniform average.
    """
    if len(matrices) == 0:
        return identity2()
    if len(matrices) == 1:
        return np.array(matrices[0], dtype=DTYPE)

    w = np.ones(len(matrices)) if weights is None else np.asarray(weights, dtype=float)
    total = float(w.sum())
    if total <= 0:
        w = np.ones(len(matrices))
        total = float(len(matrices))
    w = w / total

    acc = np.zeros((2, 2), dtype=DTYPE)
    for wi, m in zip(w, matrices):
        acc = acc + wi * np.asarray(m, dtype=DTYPE)

    return normalize_to_unitary(acc)


# =============================================================================
# ROTATION PARAMETERS
# =============================================================================

def extract_rotation_params(u: np.ndarray) -> tuple[tuple[float, float, float], float]:
    """
    Read (axis, angle) back from U = cos(θ/2)I - i sin(θ/2)(n·σ).

    The angle comes from the trace. The axis components are read as

        nx = -Im U[0,1] / s
        ny = -Im U[1,0] / s
        nz = (Im U[1,1] - Im U[0,0]) / (2s)

    with s = sin(θ/2), then normalized. These are not the exact SU(2)
    inverses: a rotation about x comes back with axis (1, 1, 0)/√2, and a
    rotation about y has no imaginary off-diagonal part, so it comes back
    with the default z axis. Rotations about z are read exactly.

    Returns:
        (unit axis, angle in [0, 2π]) as plain floats; the axis defaults to
        z when the rotation is trivial or the axis cannot be resolved
    """
    u = np.asarray(u, dtype=DTYPE)
    cos_half = max(-1.0, min(1.0, float(np.trace(u).real) / 2))
    angle = 2 * math.acos(cos_half)

    if abs(angle) < UNITARY_TOLERANCE:
        return DEFAULT_AXIS, 0.0

    sin_half = math.sin(angle / 2)
    if abs(sin_half) < UNITARY_TOLERANCE:
        return DEFAULT_AXIS, angle

    nx = -float(u[0, 1].imag) / sin_half
    ny = -float(u[1, 0].imag) / sin_half
    nz = float(u[1, 1].imag - u[0, 0].imag) / (2 * sin_half)

    length = math.sqrt(nx * nx + ny * ny + nz * nz)
    if length < UNITARY_TOLERANCE:
        return DEFAULT_AXIS, angle

    return (nx / length, ny / length, nz / length), angle



def quantize_angle(angle: float, quantum: float = ANGLE_QUANTUM) -> float:
    """Round to the nearest multiple of quantum (halves round up)."""
    return math.floor(angle / quantum + 0.5) * quantum


# =============================================================================
# GLIMPSE SIMILARITY
# =============================================================================

def glimpse_similarity(g1: Glimpse, g2: Glimpse) -> float:
    """
    exp(-mean |Δ P(true)|) over the propositions both glimpses share.

    Identical glimpses score 1. No shared propositions scores 0.
    """
    total = 0.0
    count = 0
    for prop_id, (p1_true, _) in g1.probabilities.items():
        other = g2.probabilities.get(prop_id)
        if other is not None:
            total += abs(p1_true - other[0])
            count += 1
    if count == 0:
        return 0.0
    return math.exp(-total / count)


# =============================================================================
# GAP INFERENCE
# =============================================================================

@dataclass
class InferenceContext:
    """Sibling chains plus the flavor patterns inferred gates may use."""
    chains: list[ReasoningChain] = field(default_factory=list)
    flavor_patterns: list[FlavorPattern] = field(default_factory=list)


def collect_candidates(
    context: InferenceContext,
    chain_index: int,
    gate_index: int,
    target: str,
) -> tuple[list[np.ndarray], list[float]]:
    """Unitaries and similarity weights from every sibling with a gate on target at this step."""
    chain = context.chains[chain_index]
    candidates: list[np.ndarray] = []
    weights: list[float] = []

    for i, other in enumerate(context.chains):
        if i == chain_index or gate_index >= len(other.gates):
            continue
        gate = other.gates[gate_index]
        if gate is None or gate.target != target:
            continue

        candidates.append(compute_spin_rotation(gate))
        weights.append(
            glimpse_similarity(chain.glimpse_at(gate_index), other.glimpse_at(gate_index))
        )

    return candidates, weights


def infer_missing_gate(
    context: InferenceContext,
    chain_index: int,
    gate_index: int,
    target: str,
) -> Optional[GateToken]:
    """
    Infer the gate for a gap from analogous sibling chains.

    Returns:
        A ROTATE gate on target, or None when the chain index is out of
        range or no sibling has a gate on target at gate_index
    """
    if not 0 <= chain_index < len(context.chains):
        return None

    candidates, weights = collect_candidates(context, chain_index, gate_index, target)
    if not candidates:
        logger.debug(
            "no candidates for %s at chain %d step %d", target, chain_index, gate_index
        )
        return None

    u_avg = average_unitaries(candidates, weights)
    axis, angle = extract_rotation_params(u_avg)
    quantized = quantize_angle(angle)

    logger.debug(
        "inferred %s at chain %d step %d from %d candidate(s): axis=%s angle=%.3f",
        target, chain_index, gate_index, len(candidates), axis, quantized,
    )

    pattern = context.flavor_patterns[0] if context.flavor_patterns else all_flavors_pattern()
    return rotate_gate(target, axis, quantized, flavor_pattern=pattern, label="inferred")
