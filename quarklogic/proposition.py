"""
Propositions for QuarkLogic Engine.

A proposition binds a logical statement to a color-singlet composite and
stores its belief as a normalized spinor [amplitude_true, amplitude_false].

INVARIANT: ‖amplitude‖ = 1. The World re-enforces it every engine cycle;
this layer never mutates in place. with_amplitude() and normalized()
return new propositions.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Sequence

import numpy as np

from .domain import ConstructionError, ConstructionRule, Flavor
from .hadrons import Composite, composite_label, is_color_singlet
from .spinor import (
    as_spinor,
    frozen,
    normalize_spinor,
    prob_down,
    prob_up,
    spinor_down,
    spinor_norm,
    spinor_up,
)


# =============================================================================
# CONFIGURATION CONSTANTS
# =============================================================================

# Interpretation bands, checked top-down with strict ">"
INTERPRETATION_BANDS = (
    (0.99, "is TRUE"),
    (0.9, "is almost certainly TRUE"),
    (0.75, "is likely TRUE"),
    (0.6, "is probably TRUE"),
    (0.4, "is UNCERTAIN"),
    (0.25, "is probably FALSE"),
    (0.1, "is likely FALSE"),
    (0.01, "is almost certainly FALSE"),
)
INTERPRETATION_FLOOR = "is FALSE"

DEFINITE_EPSILON = 1e-6
UNIT_NORM_TOLERANCE = 1e-14
SUPERPOSITION_EPSILON = 0.01


# =============================================================================
# PROPOSITION
# =============================================================================

@dataclass(frozen=True, eq=False)
class Proposition:
    """
    A logical statement carried by a composite.

    The amplitude is stored as a read-only complex128 array so a
    proposition shared between World values can never be changed in place.
    """
    id: str
    composite: Composite
    amplitude: np.ndarray

    def __post_init__(self):
        if not self.id:
            raise ConstructionError(
                ConstructionRule.INVALID_PARAMETER,
                "proposition id is required",
            )
        if not is_color_singlet(self.composite):
            raise ConstructionError(
                ConstructionRule.NOT_COLOR_SINGLET,
                f"Proposition {self.id}: composite must be a color singlet",
                self.id,
            )
        try:
            amplitude = as_spinor(self.amplitude)
        except ValueError as e:
            raise ConstructionError(
                ConstructionRule.INVALID_AMPLITUDE,
                str(e),
                self.id,
            )
        object.__setattr__(self, "amplitude", frozen(amplitude))

    @property
    def flavors(self) -> list[Flavor]:
        return self.composite.flavors

    @property
    def p_true(self) -> float:
        return prob_up(self.amplitude)

    @property
    def p_false(self) -> float:
        return prob_down(self.amplitude)

    @property
    def norm(self) -> float:
        return spinor_norm(self.amplitude)

    def with_amplitude(self, amplitude: Sequence[complex]) -> Proposition:
        """New proposition with the given amplitude, normalized."""
        return replace(self, amplitude=normalize_spinor(as_spinor(amplitude)))

    def normalized(self) -> Proposition:
        """
        Renormalized copy. Returns self when already unit-norm to machine
        precision, so a no-op cycle leaves the amplitude bit-for-bit intact.
        """
        if abs(self.norm - 1.0) <= UNIT_NORM_TOLERANCE:
            return self
        return replace(self, amplitude=normalize_spinor(self.amplitude))

    def label(self) -> str:
        return f"{self.id}[{composite_label(self.composite)}]"

    def description(self) -> str:
        return f"{self.label()}: TRUE={self.p_true * 100:.1f}%, FALSE={self.p_false * 100:.1f}%"

    def interpretation(self) -> str:
        return interpretation(self)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Proposition):
            return NotImplemented
        return (
            self.id == other.id
            and self.composite == other.composite
            and np.array_equal(self.amplitude, other.amplitude)
        )

    def __hash__(self) -> int:
        return hash((self.id, self.composite, self.amplitude.tobytes()))


# =============================================================================
# CONSTRUCTORS
# =============================================================================

def prop_true(id: str, composite: Composite) -> Proposition:
    """Proposition in the definite TRUE state [1, 0]."""
    return Proposition(id=id, composite=composite, amplitude=spinor_up())


def prop_false(id: str, composite: Composite) -> Proposition:
    """Proposition in the definite FALSE state [0, 1]."""
    return Proposition(id=id, composite=composite, amplitude=spinor_down())


def prop_superposition(
    id: str,
    composite: Composite,
    amp_true: complex,
    amp_false: complex,
) -> Proposition:
    """
    Proposition with explicit amplitudes, normalized on construction.

    Raises:
        ConstructionError: If both amplitudes are zero (INVALID_AMPLITUDE)
    """
    raw = as_spinor([amp_true, amp_false])
    if spinor_norm(raw) == 0:
        raise ConstructionError(
            ConstructionRule.INVALID_AMPLITUDE,
            f"Proposition {id}: amplitude must have non-zero norm",
            id,
        )
    return Proposition(id=id, composite=composite, amplitude=normalize_spinor(raw))


def prop_with_probability(id: str, composite: Composite, p_true: float) -> Proposition:
    """Proposition with P(TRUE) = p_true, clamped to [0, 1], zero phase."""
    p = max(0.0, min(1.0, p_true))
    return Proposition(
        id=id,
        composite=composite,
        amplitude=[math.sqrt(p), math.sqrt(1 - p)],
    )


def prop_uncertain(id: str, composite: Composite) -> Proposition:
    """Maximally uncertain proposition (50/50)."""
    amp = math.sqrt(0.5)
    return Proposition(id=id, composite=composite, amplitude=[amp, amp])


# =============================================================================
# QUERIES
# =============================================================================

def p_true(p: Proposition) -> float:
    return p.p_true


def p_false(p: Proposition) -> float:
    return p.p_false


def is_definite_true(p: Proposition, epsilon: float = DEFINITE_EPSILON) -> bool:
    return p.p_true > 1 - epsilon


def is_definite_false(p: Proposition, epsilon: float = DEFINITE_EPSILON) -> bool:
    return p.p_false > 1 - epsilon


def is_in_superposition(p: Proposition, epsilon: float = SUPERPOSITION_EPSILON) -> bool:
    return epsilon < p.p_true < 1 - epsilon


def belief_strength(p: Proposition) -> float:
    """How far from 50/50: 0 = uncertain, 1 = definite."""
    return abs(p.p_true - 0.5) * 2


def belief_direction(p: Proposition) -> int:
    """+1 leaning TRUE, -1 leaning FALSE, 0 exactly uncertain."""
    if p.p_true > 0.5:
        return 1
    if p.p_true < 0.5:
        return -1
    return 0


def interpretation(p: Proposition) -> str:
    """Human-readable banding of P(TRUE)."""
    py = p.p_true
    for threshold, text in INTERPRETATION_BANDS:
        if py > threshold:
            return f"{p.id} {text}"
    return f"{p.id} {INTERPRETATION_FLOOR}"
