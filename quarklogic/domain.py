"""
Quantum-Number Domain for QuarkLogic Engine.

Every proposition rides on a composite built from quark modes. This module
defines the discrete labels those modes carry and the construction error
taxonomy shared by every layer.

Domain Objects:
    Spin          — 2-state label, UP maps to logical TRUE
    Flavor        — 6 values in 3 generation doublets
    Color         — 3-valued SU(3) charge
    QuarkMode     — position + spin + flavor + color
    FlavorPattern — whitelist controlling which composites a gate may touch
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Iterable, Optional


# =============================================================================
# CONSTRUCTION ERRORS
# =============================================================================

class ConstructionRule(Enum):
    """
    Hard construction rules.

    Any of these is a caller programming error and fails immediately:
    NOT_COLOR_SINGLET: composite colors do not combine to a singlet
    PAULI_EXCLUSION:   two quarks of a baryon occupy the same mode
    MALFORMED_GATE:    gate is missing a field its kind requires
    INVALID_AMPLITUDE: amplitude is not a 2-vector or has zero norm
    INVALID_PARAMETER: any other out-of-range constructor argument
    """
    NOT_COLOR_SINGLET = "not_color_singlet"
    PAULI_EXCLUSION = "pauli_exclusion"
    MALFORMED_GATE = "malformed_gate"
    INVALID_AMPLITUDE = "invalid_amplitude"
    INVALID_PARAMETER = "invalid_parameter"


class ConstructionError(Exception):
    """Raised when a domain object violates its invariant at construction."""

    def __init__(self, rule: ConstructionRule, reason: str, subject: Optional[str] = None):
        self.rule = rule
        self.reason = reason
        self.subject = subject
        super().__init__(f"[{rule.value}] {reason}")


# =============================================================================
# SPIN
# =============================================================================

class Spin(IntEnum):
    """Two-state spin. UP is the logical TRUE branch, DOWN the FALSE branch."""
    UP = 0
    DOWN = 1

    @property
    def symbol(self) -> str:
        return "↑" if self is Spin.UP else "↓"

    @property
    def logical(self) -> str:
        return "TRUE" if self is Spin.UP else "FALSE"


# =============================================================================
# FLAVOR
# =============================================================================

class Flavor(IntEnum):
    """
    Six quark flavors, grouped pairwise into generations.

    Even values are up-type (+2/3 charge), odd values are down-type (-1/3).
    """
    U = 0  # up      (1st gen)
    D = 1  # down    (1st gen)
    C = 2  # charm   (2nd gen)
    S = 3  # strange (2nd gen)
    T = 4  # top     (3rd gen)
    B = 5  # bottom  (3rd gen)


FLAVOR_NAMES = {
    Flavor.U: "up",
    Flavor.D: "down",
    Flavor.C: "charm",
    Flavor.S: "strange",
    Flavor.T: "top",
    Flavor.B: "bottom",
}

FLAVOR_SYMBOLS = {
    Flavor.U: "u",
    Flavor.D: "d",
    Flavor.C: "c",
    Flavor.S: "s",
    Flavor.T: "t",
    Flavor.B: "b",
}

# Weak isospin doublets, indexed by generation
FLAVOR_DOUBLETS: tuple[tuple[Flavor, Flavor], ...] = (
    (Flavor.U, Flavor.D),
    (Flavor.C, Flavor.S),
    (Flavor.T, Flavor.B),
)

UP_TYPE_FLAVORS = frozenset({Flavor.U, Flavor.C, Flavor.T})
DOWN_TYPE_FLAVORS = frozenset({Flavor.D, Flavor.S, Flavor.B})


def flavor_generation(flavor: Flavor) -> int:
    """Generation index (0, 1, 2) of a flavor."""
    return int(flavor) // 2


def is_up_type(flavor: Flavor) -> bool:
    return flavor in UP_TYPE_FLAVORS


def is_down_type(flavor: Flavor) -> bool:
    return flavor in DOWN_TYPE_FLAVORS


def doublet_partner(flavor: Flavor) -> Flavor:
    """The other member of the flavor's generation doublet."""
    if is_up_type(flavor):
        return Flavor(int(flavor) + 1)
    return Flavor(int(flavor) - 1)


# =============================================================================
# COLOR
# =============================================================================

class Color(IntEnum):
    """Three color charges."""
    R = 0
    G = 1
    B = 2


COLOR_NAMES = {Color.R: "red", Color.G: "green", Color.B: "blue"}
COLOR_SYMBOLS = {Color.R: "r", Color.G: "g", Color.B: "b"}
ALL_COLORS: tuple[Color, ...] = (Color.R, Color.G, Color.B)

# Cyclic orderings of (R, G, B)
_EVEN_PERMUTATIONS = {
    (Color.R, Color.G, Color.B),
    (Color.G, Color.B, Color.R),
    (Color.B, Color.R, Color.G),
}


def levi_civita(c1: Color, c2: Color, c3: Color) -> int:
    """
    Levi-Civita symbol over a color ordering.

    Returns:
        +1 for even permutations (rgb, gbr, brg)
        -1 for odd permutations (rbg, bgr, grb)
         0 if any two colors repeat
    """
    if c1 == c2 or c2 == c3 or c1 == c3:
        return 0
    if (c1, c2, c3) in _EVEN_PERMUTATIONS:
        return 1
    return -1


# =============================================================================
# QUARK MODE
# =============================================================================

@dataclass(frozen=True)
class QuarkMode:
    """
    A single fermionic mode: position plus the three quantum numbers.

    Two modes are the same mode iff all four fields match, which is exactly
    dataclass equality. Antiquark modes reuse this type; the color field then
    stands for the matching anticolor.
    """
    position: int
    spin: Spin
    flavor: Flavor
    color: Color

    def __post_init__(self):
        """Coerce raw ints into the enum labels."""
        try:
            object.__setattr__(self, "spin", Spin(self.spin))
            object.__setattr__(self, "flavor", Flavor(self.flavor))
            object.__setattr__(self, "color", Color(self.color))
        except ValueError as e:
            raise ConstructionError(
                ConstructionRule.INVALID_PARAMETER,
                f"invalid quantum number: {e}",
            )

    @property
    def key(self) -> str:
        """Stable string key used for fermionic ordering."""
        return f"{self.position},{int(self.spin)},{int(self.flavor)},{int(self.color)}"

    def label(self) -> str:
        return (
            f"|{self.position}, {self.spin.symbol}, "
            f"{FLAVOR_SYMBOLS[self.flavor]}, {COLOR_SYMBOLS[self.color]}⟩"
        )

    def antiquark_label(self) -> str:
        return (
            f"|{self.position}, {self.spin.symbol}, "
            f"{FLAVOR_SYMBOLS[self.flavor]}̄, {COLOR_SYMBOLS[self.color]}̄⟩"
        )


def quark_mode(position: int, spin: Spin, flavor: Flavor, color: Color) -> QuarkMode:
    """Factory for a quark mode."""
    return QuarkMode(position=position, spin=spin, flavor=flavor, color=color)


def antiquark_mode(position: int, spin: Spin, flavor: Flavor, color: Color) -> QuarkMode:
    """Factory for an antiquark mode. Same structure, anticolor interpretation."""
    return QuarkMode(position=position, spin=spin, flavor=flavor, color=color)


def same_mode(a: QuarkMode, b: QuarkMode) -> bool:
    """Check whether two quark modes are identical in all four fields."""
    return a == b


# =============================================================================
# FLAVOR PATTERN
# =============================================================================

@dataclass(frozen=True)
class FlavorPattern:
    """
    Whitelist of flavors a gate may act on.

    Optional restrictions narrow the whitelist further:
    - generation: every flavor must belong to that generation
    - up_type_only / down_type_only: charge-type restriction
    """
    allowed: frozenset[Flavor] = field(default_factory=frozenset)
    generation: Optional[int] = None
    up_type_only: bool = False
    down_type_only: bool = False

    def __post_init__(self):
        try:
            object.__setattr__(self, "allowed", frozenset(Flavor(f) for f in self.allowed))
        except ValueError as e:
            raise ConstructionError(
                ConstructionRule.INVALID_PARAMETER,
                f"invalid flavor: {e}",
            )
        if self.generation is not None and self.generation not in (0, 1, 2):
            raise ConstructionError(
                ConstructionRule.INVALID_PARAMETER,
                f"generation must be 0, 1 or 2, got {self.generation}",
            )
        if self.up_type_only and self.down_type_only:
            raise ConstructionError(
                ConstructionRule.INVALID_PARAMETER,
                "flavor pattern cannot be both up-type-only and down-type-only",
            )

    def matches(self, flavors: Iterable[Flavor]) -> bool:
        """Check that every flavor satisfies the pattern."""
        return flavors_match_pattern(flavors, self)

    def describe(self) -> str:
        symbols = "".join(FLAVOR_SYMBOLS[f] for f in sorted(self.allowed))
        parts = [f"{{{symbols}}}"]
        if self.generation is not None:
            parts.append(f"gen={self.generation}")
        if self.up_type_only:
            parts.append("up-type")
        if self.down_type_only:
            parts.append("down-type")
        return " ".join(parts)


def all_flavors_pattern() -> FlavorPattern:
    return FlavorPattern(allowed=frozenset(Flavor))


def generation_pattern(generation: int) -> FlavorPattern:
    if generation not in (0, 1, 2):
        raise ConstructionError(
            ConstructionRule.INVALID_PARAMETER,
            f"generation must be 0, 1 or 2, got {generation}",
        )
    return FlavorPattern(
        allowed=frozenset(FLAVOR_DOUBLETS[generation]),
        generation=generation,
    )


def first_gen_pattern() -> FlavorPattern:
    return generation_pattern(0)


def light_quark_pattern() -> FlavorPattern:
    """u, d and s: the flavors of ordinary hadronic matter."""
    return FlavorPattern(allowed=frozenset({Flavor.U, Flavor.D, Flavor.S}))


def up_type_pattern() -> FlavorPattern:
    return FlavorPattern(allowed=frozenset(Flavor), up_type_only=True)


def down_type_pattern() -> FlavorPattern:
    return FlavorPattern(allowed=frozenset(Flavor), down_type_only=True)


def flavors_match_pattern(flavors: Iterable[Flavor], pattern: FlavorPattern) -> bool:
    """Check if all flavors in a collection match the pattern."""
    for f in flavors:
        if f not in pattern.allowed:
            return False
        if pattern.generation is not None and flavor_generation(f) != pattern.generation:
            return False
        if pattern.up_type_only and not is_up_type(f):
            return False
        if pattern.down_type_only and not is_down_type(f):
            return False
    return True
