"""
Gate Tokens for QuarkLogic Engine.

Gates are data, not closures. A GateToken names its kind, the proposition
ids it touches, kind-specific parameters and the flavor pattern that
restricts which composites it may act on.

Kinds:
    ROTATE             — SU(2) rotation about an axis
    NEGATE             — π rotation about x (logical NOT)
    PHASE_SHIFT        — z rotation by φ
    CONDITIONAL_ROTATE — controlled rotation across two propositions
    CONSTRAIN          — projector onto a named or explicit state
    RECORD_OBSERVATION — read-only probability record (commit phase)
    STORE_ALTERNATIVE  — computes a rotated state without committing it

A token missing a field its kind requires fails at construction.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Sequence

import numpy as np

from ..domain import (
    ConstructionError,
    ConstructionRule,
    FlavorPattern,
    all_flavors_pattern,
    flavors_match_pattern,
)
from ..proposition import Proposition
from ..spinor import PROJ_DOWN, PROJ_UP, frozen, identity2, rn, rx, rz


class GateKind(Enum):
    """The seven gate kinds."""
    ROTATE = "rotate"
    NEGATE = "negate"
    PHASE_SHIFT = "phase_shift"
    CONDITIONAL_ROTATE = "conditional_rotate"
    CONSTRAIN = "constrain"
    RECORD_OBSERVATION = "record_observation"
    STORE_ALTERNATIVE = "store_alternative"


class ProjectorType(Enum):
    """Which projector a CONSTRAIN gate uses."""
    UP = "up"          # project onto TRUE
    DOWN = "down"      # project onto FALSE
    CUSTOM = "custom"  # explicit 2x2 matrix


# Kinds that need an axis and an angle
_ROTATION_KINDS = {
    GateKind.ROTATE,
    GateKind.CONDITIONAL_ROTATE,
    GateKind.STORE_ALTERNATIVE,
}


# =============================================================================
# GATE TOKEN
# =============================================================================

@dataclass(frozen=True, eq=False)
class GateToken:
    """
    Immutable gate description.

    Invariants enforced at construction (see validate_gate):
    1. Every kind has a target
    2. CONDITIONAL_ROTATE has a condition distinct from its target
    3. Rotation kinds carry an axis (3 components) and an angle
    4. PHASE_SHIFT carries phi
    5. CONSTRAIN with CUSTOM projector carries a 2x2 matrix
    """
    kind: GateKind
    target: Optional[str]
    condition: Optional[str] = None
    flavor_pattern: FlavorPattern = field(default_factory=all_flavors_pattern)
    axis: Optional[tuple[float, float, float]] = None
    angle: Optional[float] = None
    phi: Optional[float] = None
    projector_type: Optional[ProjectorType] = None
    custom_projector: Optional[np.ndarray] = None
    label: Optional[str] = None

    def __post_init__(self):
        if self.axis is not None:
            object.__setattr__(self, "axis", tuple(float(a) for a in self.axis))
        if self.custom_projector is not None:
            object.__setattr__(self, "custom_projector", frozen(self.custom_projector))
        error = validate_gate(self)
        if error:
            raise ConstructionError(
                ConstructionRule.MALFORMED_GATE,
                error,
                self.target,
            )

    @property
    def is_observation(self) -> bool:
        return self.kind == GateKind.RECORD_OBSERVATION

    @property
    def is_constraint(self) -> bool:
        return self.kind == GateKind.CONSTRAIN

    @property
    def proposition_ids(self) -> list[str]:
        """Every proposition id the gate references, condition first."""
        ids = []
        if self.condition:
            ids.append(self.condition)
        if self.target:
            ids.append(self.target)
        return ids

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GateToken):
            return NotImplemented
        same_projector = (
            (self.custom_projector is None and other.custom_projector is None)
            or (
                self.custom_projector is not None
                and other.custom_projector is not None
                and np.array_equal(self.custom_projector, other.custom_projector)
            )
        )
        return (
            self.kind == other.kind
            and self.target == other.target
            and self.condition == other.condition
            and self.flavor_pattern == other.flavor_pattern
            and self.axis == other.axis
            and self.angle == other.angle
            and self.phi == other.phi
            and self.projector_type == other.projector_type
            and same_projector
            and self.label == other.label
        )

    def __hash__(self) -> int:
        return hash((self.kind, self.target, self.condition, self.axis, self.angle, self.phi))

    def __str__(self) -> str:
        return describe_gate(self)


# =============================================================================
# GATE VALIDATION
# =============================================================================

def validate_gate(gate: GateToken) -> Optional[str]:
    """
    Check that a gate has every field its kind requires.

    Returns:
        An error message, or None if the gate is well-formed
    """
    if not isinstance(gate.kind, GateKind):
        return f"unknown gate kind: {gate.kind}"
    name = gate.kind.value
    if not gate.target:
        return f"{name} gate requires target"

    if gate.kind == GateKind.CONDITIONAL_ROTATE:
        if not gate.condition:
            return f"{name} gate requires target and condition"
        if gate.condition == gate.target:
            return f"{name} gate condition and target must differ"

    if gate.kind in _ROTATION_KINDS:
        if gate.axis is None or gate.angle is None:
            return f"{name} gate requires axis and angle"
        if len(gate.axis) != 3:
            return f"{name} gate axis must have 3 components"

    if gate.kind == GateKind.PHASE_SHIFT and gate.phi is None:
        return f"{name} gate requires phi"

    if gate.kind == GateKind.CONSTRAIN:
        if gate.projector_type is None:
            return f"{name} gate requires projector_type"
        if gate.projector_type == ProjectorType.CUSTOM:
            if gate.custom_projector is None:
                return f"{name} gate with custom projector requires custom_projector"
            if np.shape(gate.custom_projector) != (2, 2):
                return f"{name} gate custom_projector must be 2x2"

    return None


def is_gate_allowed(gate: GateToken, prop: Proposition) -> bool:
    """Check the proposition's composite flavors against the gate's pattern."""
    return flavors_match_pattern(prop.flavors, gate.flavor_pattern)


# =============================================================================
# GATE CONSTRUCTORS
# =============================================================================

def rotate_gate(
    target: str,
    axis: Sequence[float],
    angle: float,
    flavor_pattern: Optional[FlavorPattern] = None,
    label: Optional[str] = None,
) -> GateToken:
    """General rotation gate."""
    return GateToken(
        kind=GateKind.ROTATE,
        target=target,
        flavor_pattern=flavor_pattern or all_flavors_pattern(),
        axis=tuple(axis),
        angle=angle,
        label=label,
    )


def negate_gate(
    target: str,
    flavor_pattern: Optional[FlavorPattern] = None,
    label: Optional[str] = None,
) -> GateToken:
    """Spin flip: fixed π rotation about x."""
    return GateToken(
        kind=GateKind.NEGATE,
        target=target,
        flavor_pattern=flavor_pattern or all_flavors_pattern(),
        axis=(1.0, 0.0, 0.0),
        angle=math.pi,
        label=label,
    )


def phase_gate(
    target: str,
    phi: float,
    flavor_pattern: Optional[FlavorPattern] = None,
    label: Optional[str] = None,
) -> GateToken:
    """Phase shift: z rotation by phi."""
    return GateToken(
        kind=GateKind.PHASE_SHIFT,
        target=target,
        flavor_pattern=flavor_pattern or all_flavors_pattern(),
        phi=phi,
        label=label,
    )


def conditional_rotate_gate(
    condition: str,
    target: str,
    axis: Sequence[float] = (1.0, 0.0, 0.0),
    angle: float = math.pi,
    flavor_pattern: Optional[FlavorPattern] = None,
    label: Optional[str] = None,
) -> GateToken:
    """Controlled rotation of target by the state of condition."""
    return GateToken(
        kind=GateKind.CONDITIONAL_ROTATE,
        target=target,
        condition=condition,
        flavor_pattern=flavor_pattern or all_flavors_pattern(),
        axis=tuple(axis),
        angle=angle,
        label=label,
    )


def constrain_gate(
    target: str,
    projector_type: ProjectorType = ProjectorType.UP,
    custom_projector: Optional[np.ndarray] = None,
    flavor_pattern: Optional[FlavorPattern] = None,
    label: Optional[str] = None,
) -> GateToken:
    """Projector constraint on a single proposition."""
    return GateToken(
        kind=GateKind.CONSTRAIN,
        target=target,
        flavor_pattern=flavor_pattern or all_flavors_pattern(),
        projector_type=projector_type,
        custom_projector=custom_projector,
        label=label,
    )


def record_observation_gate(
    target: str,
    flavor_pattern: Optional[FlavorPattern] = None,
    label: Optional[str] = None,
) -> GateToken:
    """Read-only observation, evaluated in the commit phase."""
    return GateToken(
        kind=GateKind.RECORD_OBSERVATION,
        target=target,
        flavor_pattern=flavor_pattern or all_flavors_pattern(),
        label=label,
    )


def store_alternative_gate(
    target: str,
    axis: Sequence[float] = (0.0, 1.0, 0.0),
    angle: float = math.pi / 2,
    flavor_pattern: Optional[FlavorPattern] = None,
    label: Optional[str] = None,
) -> GateToken:
    """Alternative branch: rotated state is logged, never committed."""
    return GateToken(
        kind=GateKind.STORE_ALTERNATIVE,
        target=target,
        flavor_pattern=flavor_pattern or all_flavors_pattern(),
        axis=tuple(axis),
        angle=angle,
        label=label,
    )


# =============================================================================
# OPERATOR EXTRACTION
# =============================================================================

def compute_spin_rotation(gate: GateToken) -> np.ndarray:
    """SU(2) matrix for a gate's parameters. Identity if it has none."""
    if gate.kind == GateKind.NEGATE:
        return rx(math.pi)
    if gate.kind == GateKind.PHASE_SHIFT and gate.phi is not None:
        return rz(gate.phi)
    if gate.axis is not None and gate.angle is not None:
        nx, ny, nz = gate.axis
        return rn(nx, ny, nz, gate.angle)
    return identity2()


def get_projector(gate: GateToken) -> np.ndarray:
    """Projector matrix for a CONSTRAIN gate."""
    if gate.projector_type == ProjectorType.CUSTOM and gate.custom_projector is not None:
        return gate.custom_projector
    if gate.projector_type == ProjectorType.DOWN:
        return PROJ_DOWN
    return PROJ_UP


# =============================================================================
# GATE COMPOSITION
# =============================================================================

def compose_rotations(g1: GateToken, g2: GateToken) -> GateToken:
    """
    Combine two rotations by summing their angles.

    Approximate: assumes both share g2's axis. Exact composition would
    multiply the two unitaries.
    """
    return replace(g2, angle=(g1.angle or 0.0) + (g2.angle or 0.0))


def inverse_gate(gate: GateToken) -> GateToken:
    """Gate undoing this one's rotation (angle and phi negated)."""
    return replace(
        gate,
        angle=-gate.angle if gate.angle is not None else None,
        phi=-gate.phi if gate.phi is not None else None,
    )


def describe_gate(gate: GateToken) -> str:
    parts = [gate.kind.value.upper()]
    if gate.target:
        parts.append(f"target={gate.target}")
    if gate.condition:
        parts.append(f"cond={gate.condition}")
    if gate.angle is not None:
        parts.append(f"θ={gate.angle:.3f}")
    if gate.phi is not None:
        parts.append(f"φ={gate.phi:.3f}")
    if gate.projector_type is not None:
        parts.append(f"proj={gate.projector_type.value}")
    return f"Gate({', '.join(parts)})"
