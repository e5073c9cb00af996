"""
World Validation for QuarkLogic Engine.

On-demand structural checks over a WorldState. Nothing here raises or
mutates; findings come back as a ValidationResult.

Errors (the world cannot reason correctly):
1. A proposition's composite is not a color singlet
2. A gate targets or conditions on a missing proposition
3. A constraint targets a missing proposition

Warnings (the world will run, but something is off):
1. A proposition's norm drifts from 1 by more than NORM_TOLERANCE
2. A gate's flavor pattern excludes a proposition it names
3. The composite index disagrees with the propositions
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .gates.tokens import GateKind, is_gate_allowed
from .hadrons import is_color_singlet
from .world import WorldState

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION CONSTANTS
# =============================================================================

NORM_TOLERANCE = 1e-6


# =============================================================================
# VALIDATION RESULT
# =============================================================================

@dataclass
class ValidationResult:
    """Result of a world validation pass."""
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def summary(self) -> str:
        status = "VALID" if self.valid else "INVALID"
        lines = [f"World is {status} ({len(self.errors)} errors, {len(self.warnings)} warnings)"]
        lines.extend(f"  ERROR: {e}" for e in self.errors)
        lines.extend(f"  WARNING: {w}" for w in self.warnings)
        return "\n".join(lines)


# =============================================================================
# CHECKS
# =============================================================================

def _check_propositions(world: WorldState, errors: list[str], warnings: list[str]) -> None:
    for prop_id, prop in world.propositions.items():
        if abs(prop.norm - 1.0) > NORM_TOLERANCE:
            warnings.append(f"Proposition {prop_id} not normalized: norm = {prop.norm:.6f}")
        if not is_color_singlet(prop.composite):
            errors.append(f"Proposition {prop_id} composite is not a color singlet")
        indexed = world.composites.get(prop_id)
        if indexed is not None and indexed != prop.composite:
            warnings.append(f"Composite index for {prop_id} disagrees with its proposition")


def _check_gates(world: WorldState, errors: list[str], warnings: list[str]) -> None:
    for i, gate in enumerate(world.gates):
        if gate.target not in world.propositions:
            errors.append(f"Gate {i} ({gate.kind.value}) targets unknown proposition {gate.target}")
        if gate.kind == GateKind.CONDITIONAL_ROTATE and gate.condition not in world.propositions:
            errors.append(
                f"Gate {i} ({gate.kind.value}) references unknown condition {gate.condition}"
            )

        # Read-only gates are never flavor-gated
        if gate.kind in (GateKind.RECORD_OBSERVATION, GateKind.STORE_ALTERNATIVE):
            continue
        for prop_id in gate.proposition_ids:
            prop = world.propositions.get(prop_id)
            if prop is not None and not is_gate_allowed(gate, prop):
                warnings.append(
                    f"Gate {i} ({gate.kind.value}) flavor pattern "
                    f"{gate.flavor_pattern.describe()} excludes {prop_id}"
                )


def _check_constraints(world: WorldState, errors: list[str]) -> None:
    for c in world.constraints:
        if c.target not in world.propositions:
            errors.append(f"Constraint {c.constraint_id} targets unknown proposition {c.target}")


def validate_world(world: WorldState) -> ValidationResult:
    """
    Run every structural check over a world.

    Returns:
        ValidationResult with valid=False when any error was found
    """
    errors: list[str] = []
    warnings: list[str] = []

    _check_propositions(world, errors, warnings)
    _check_gates(world, errors, warnings)
    _check_constraints(world, errors)

    if errors:
        logger.debug("world validation found %d error(s)", len(errors))

    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)
