"""
Gate Application for QuarkLogic Engine.

Each apply function takes a read-only proposition map and a gate and
returns a GateResult holding a NEW map. The input map is never mutated.

Soft failures (missing proposition, flavor mismatch) come back as
success=False with a message and the untouched propositions. They are
never raised: the World logs them as GATE_ERROR entries and continues.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Mapping, Optional

from ..history import HistoryEntry, HistoryKind, contradiction_entry, create_entry
from ..proposition import Proposition
from ..spinor import (
    apply_projector,
    controlled_unitary,
    factorize_vec4,
    is_annihilated,
    mat4_vec,
    mat_vec,
    normalize_spinor,
    spinor_norm,
    tensor2,
)
from .tokens import (
    GateKind,
    GateToken,
    compute_spin_rotation,
    get_projector,
    is_gate_allowed,
    validate_gate,
)

logger = logging.getLogger(__name__)

PropositionMap = Mapping[str, Proposition]


@dataclass(frozen=True)
class GateResult:
    """Outcome of applying one gate."""
    success: bool
    propositions: PropositionMap
    history_entry: Optional[HistoryEntry] = None
    error: Optional[str] = None


def _failure(props: PropositionMap, error: str) -> GateResult:
    logger.debug("gate rejected: %s", error)
    return GateResult(success=False, propositions=dict(props), error=error)


def _lookup_target(
    props: PropositionMap,
    gate: GateToken,
    check_flavor: bool = True,
) -> tuple[Optional[Proposition], Optional[str]]:
    """Resolve the gate's target, returning (proposition, error)."""
    prop = props.get(gate.target)
    if prop is None:
        return None, f"Proposition {gate.target} not found"
    if check_flavor and not is_gate_allowed(gate, prop):
        return None, (
            f"Gate not allowed on {gate.target} due to flavor pattern "
            f"{gate.flavor_pattern.describe()}"
        )
    return prop, None


def _with_update(props: PropositionMap, *updated: Proposition) -> dict[str, Proposition]:
    out = dict(props)
    for p in updated:
        out[p.id] = p
    return out


# =============================================================================
# SINGLE-PROPOSITION ROTATIONS
# =============================================================================

def _apply_single_rotation(props: PropositionMap, gate: GateToken, data: dict) -> GateResult:
    prop, error = _lookup_target(props, gate)
    if error:
        return _failure(props, error)

    u = compute_spin_rotation(gate)
    new_amp = normalize_spinor(mat_vec(u, prop.amplitude))

    return GateResult(
        success=True,
        propositions=_with_update(props, prop.with_amplitude(new_amp)),
        history_entry=create_entry(
            HistoryKind.ROTATION,
            proposition=gate.target,
            data={"gate_kind": gate.kind.value, **data},
        ),
    )


def apply_rotate(props: PropositionMap, gate: GateToken) -> GateResult:
    """General spin rotation."""
    return _apply_single_rotation(props, gate, {"axis": gate.axis, "angle": gate.angle})


def apply_negate(props: PropositionMap, gate: GateToken) -> GateResult:
    """Spin flip (π about x)."""
    return _apply_single_rotation(props, gate, {})


def apply_phase_shift(props: PropositionMap, gate: GateToken) -> GateResult:
    """Z rotation by phi."""
    return _apply_single_rotation(props, gate, {"phi": gate.phi})


# =============================================================================
# CONDITIONAL ROTATION
# =============================================================================

def apply_conditional_rotate(props: PropositionMap, gate: GateToken) -> GateResult:
    """
    Controlled rotation across two propositions.

    Steps:
        1. Joint state |cond⟩ ⊗ |target⟩
        2. controlled_unitary(R_axis(θ)): fires when the condition is in its
           second basis component (FALSE)
        3. Approximate refactorization back into two spinors
        4. Both propositions are overwritten
    """
    cond = props.get(gate.condition)
    if cond is None:
        return _failure(props, f"Condition {gate.condition} not found")
    target = props.get(gate.target)
    if target is None:
        return _failure(props, f"Target {gate.target} not found")
    for p in (cond, target):
        if not is_gate_allowed(gate, p):
            return _failure(
                props,
                f"Gate not allowed on {p.id} due to flavor pattern "
                f"{gate.flavor_pattern.describe()}",
            )

    joint = tensor2(cond.amplitude, target.amplitude)
    u_ctrl = controlled_unitary(compute_spin_rotation(gate))
    new_cond, new_target = factorize_vec4(mat4_vec(u_ctrl, joint))

    return GateResult(
        success=True,
        propositions=_with_update(
            props,
            cond.with_amplitude(new_cond),
            target.with_amplitude(new_target),
        ),
        history_entry=create_entry(
            HistoryKind.ROTATION,
            proposition=gate.target,
            condition=gate.condition,
            data={
                "gate_kind": gate.kind.value,
                "axis": gate.axis,
                "angle": gate.angle,
            },
        ),
    )


# =============================================================================
# CONSTRAINT
# =============================================================================

def apply_constrain(props: PropositionMap, gate: GateToken) -> GateResult:
    """
    Project the target directly (no tensor product).

    On annihilation a CONTRADICTION entry is produced and the proposition
    keeps its prior amplitude. No backtracking is attempted.
    """
    prop, error = _lookup_target(props, gate)
    if error:
        return _failure(props, error)

    projected = apply_projector(get_projector(gate), prop.amplitude)

    if is_annihilated(projected):
        logger.debug("constraint on %s annihilated the state", gate.target)
        return GateResult(
            success=True,
            propositions=dict(props),
            history_entry=contradiction_entry(
                gate.target,
                source="gate",
                projector_type=gate.projector_type.value,
                norm=spinor_norm(projected),
            ),
        )

    return GateResult(
        success=True,
        propositions=_with_update(props, prop.with_amplitude(projected)),
        history_entry=create_entry(
            HistoryKind.PROJECTION,
            proposition=gate.target,
            data={"projector_type": gate.projector_type.value},
        ),
    )


# =============================================================================
# READ-ONLY GATES
# =============================================================================

def apply_record_observation(props: PropositionMap, gate: GateToken) -> GateResult:
    """Log current probabilities without mutating anything."""
    prop, error = _lookup_target(props, gate, check_flavor=False)
    if error:
        return _failure(props, error)

    return GateResult(
        success=True,
        propositions=dict(props),
        history_entry=create_entry(
            HistoryKind.OBSERVATION,
            proposition=gate.target,
            data={"p_true": prop.p_true, "p_false": prop.p_false},
        ),
    )


def apply_store_alternative(props: PropositionMap, gate: GateToken) -> GateResult:
    """Compute the rotated state and log it as data; the target is untouched."""
    prop, error = _lookup_target(props, gate, check_flavor=False)
    if error:
        return _failure(props, error)

    alt = normalize_spinor(mat_vec(compute_spin_rotation(gate), prop.amplitude))

    return GateResult(
        success=True,
        propositions=dict(props),
        history_entry=create_entry(
            HistoryKind.ALTERNATIVE,
            proposition=gate.target,
            data={
                "alternative": (complex(alt[0]), complex(alt[1])),
                "axis": gate.axis,
                "angle": gate.angle,
            },
        ),
    )


# =============================================================================
# UNIFIED DISPATCH
# =============================================================================

_APPLIERS: dict[GateKind, Callable[[PropositionMap, GateToken], GateResult]] = {
    GateKind.ROTATE: apply_rotate,
    GateKind.NEGATE: apply_negate,
    GateKind.PHASE_SHIFT: apply_phase_shift,
    GateKind.CONDITIONAL_ROTATE: apply_conditional_rotate,
    GateKind.CONSTRAIN: apply_constrain,
    GateKind.RECORD_OBSERVATION: apply_record_observation,
    GateKind.STORE_ALTERNATIVE: apply_store_alternative,
}


def apply_gate(props: PropositionMap, gate: GateToken) -> GateResult:
    """Apply any gate to a proposition map."""
    validation_error = validate_gate(gate)
    if validation_error:
        return _failure(props, validation_error)

    applier = _APPLIERS.get(gate.kind)
    if applier is None:
        return _failure(props, f"Unknown gate kind: {gate.kind}")
    return applier(props, gate)
